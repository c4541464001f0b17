import contextlib
import pathlib
import sys
import warnings
from typing import IO, Generator, Optional, Union, cast

import rich
import rich.console
from loguru import logger


@contextlib.contextmanager
def smart_open(
    f: Union[pathlib.Path, str, IO], mode: str = "r", *args, **kwargs
) -> Generator[IO, None, None]:
    """Open files, paths and i/o streams transparently."""
    fh: IO
    if f == "-":
        if "r" in mode:
            stream = sys.stdin
        else:
            stream = sys.stdout
        if "b" in mode:
            fh = stream.buffer
        else:
            fh = stream
        close = False
    elif hasattr(f, "write") or hasattr(f, "read"):
        fh = cast(IO, f)
        close = False
    else:
        fh = open(cast(Union[pathlib.Path, str], f), mode, *args, **kwargs)
        close = True

    try:
        yield fh
    finally:
        if close:
            fh.close()


def setup_logging(
    console: Optional[rich.console.Console] = None,
    verbose: bool = False,
    replace_warnings: bool = True,
):
    if console is None:
        console = rich.console.Console(stderr=True)
    logger.remove()  # Remove the default logger

    if verbose:
        log_level = "DEBUG"
        log_fmt = (
            "\\[depconfusion]"
            " [green]{time:YYYY-MM-DD HH:mm:ss.SSS}[/green] | [blue]{level: <8}[/blue] |"
            " {message}"
        )
    else:
        log_level = "INFO"
        log_fmt = "\\[depconfusion] [green]{time:YYYY-MM-DD}T{time:HH:mm:ss}[/green] {level} {message}"

    logger.add(
        lambda m: console.print(m, end=""),
        colorize=True,
        format=log_fmt,
        level=log_level,
    )

    # Deal with stdlib.warnings
    def showwarning(message, category, filename, lineno, file=None, line=None):
        logger.warning(warnings.formatwarning(message, category, filename, lineno, None).strip())

    if replace_warnings:
        warnings.showwarning = showwarning
