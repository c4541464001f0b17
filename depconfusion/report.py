import enum
import pathlib
from typing import IO, Union
from collections.abc import Callable, Mapping

from loguru import logger

from depconfusion.confusion import Confusion
from depconfusion.scorer import ScoringResult
from depconfusion.utils import smart_open

Destination = Union[pathlib.Path, str, IO[str]]


class OutputTarget(enum.Enum):
    DEPREL_CONFUSION = "deprel_confusion"
    DEPREL_ACCURACIES = "deprel_accuracies"
    DISTANCE_CONFUSION = "distance_confusion"
    DISTANCE_ACCURACIES = "distance_accuracies"
    FIELD_CONFUSION = "field_confusion"
    FIELD_ACCURACIES = "field_accuracies"

    @property
    def is_matrix(self) -> bool:
        return self.name.endswith("_CONFUSION")

    def confusion(self, result: ScoringResult) -> Confusion:
        if self.name.startswith("DEPREL"):
            return result.deprel_confusion
        elif self.name.startswith("DISTANCE"):
            return result.distance_confusion
        return result.field_confusion


class DestinationWriteError(Exception):
    def __init__(self, target: OutputTarget, destination: Destination, cause: OSError):
        self.target = target
        self.destination = destination
        self.cause = cause
        super().__init__(f"Can't write {target.value} to {destination}: {cause}")


def format_scores(result: ScoringResult) -> list[str]:
    """The headline metrics, one per line, with 4 decimals. `nan` if nothing was scored."""
    lines = []
    if result.options.score_relations:
        lines.append(f"UAS: {result.uas:.4f}")
        lines.append(f"LAS: {result.las:.4f}")
    if result.options.score_fields:
        lines.append(f"Fields: {result.field_accuracy:.4f}")
    return lines


def _writer(target: OutputTarget, separator: str | None) -> Callable[[Confusion, IO[str]], None]:
    if not target.is_matrix:
        return lambda confusion, sink: confusion.write_accuracies(sink)
    elif separator is not None:
        return lambda confusion, sink: confusion.write_to_file(sink, separator)
    return lambda confusion, sink: sink.write(confusion.render())


def write_outputs(
    result: ScoringResult,
    destinations: Mapping[OutputTarget, Destination],
    separator: str | None = None,
) -> list[DestinationWriteError]:
    """Write the requested renderings of `result`, each to its own destination.

    A destination that can't be written doesn't prevent writing the others: the failures are
    logged and returned.
    """
    failures = []
    for target, destination in destinations.items():
        write = _writer(target, separator)
        try:
            with smart_open(destination, "w", encoding="utf-8") as out_stream:
                write(target.confusion(result), out_stream)
        except OSError as e:
            failure = DestinationWriteError(target, destination, e)
            logger.error(str(failure))
            failures.append(failure)
        else:
            logger.debug(f"Wrote {target.value} to {destination}")
    return failures
