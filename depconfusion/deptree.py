import itertools
import re
from dataclasses import dataclass
from functools import cached_property
from typing import NamedTuple, Self, cast
from collections.abc import Iterable, Iterator, Mapping

from loguru import logger


# For use with strip, this is not a list but a concat string, list from
# <https://docs.python.org/3/library/stdtypes.html#str.splitlines>.
EOL_CHARS = (
    "\t"
    "\n"
    "\r"
    "\N{LINE TABULATION}"
    "\N{FORM FEED}"
    "\N{FILE SEPARATOR}"
    "\N{GROUP SEPARATOR}"
    "\N{RECORD SEPARATOR}"
    "\N{NEXT LINE}"
    "\N{LINE SEPARATOR}"
    "\N{PARAGRAPH SEPARATOR}"
)


def parse_features(s: str | None) -> dict[str, str | None]:
    """Parse a FEATS column (`a=b|c`) into a mapping. Features without a value map to `None`."""
    if s is None or s == "_":
        return dict()
    features: dict[str, str | None] = dict()
    for e in s.split("|"):
        if m := re.match("(?P<key>.+?)=(?P<value>.*)", e):
            features[m.group("key")] = m.group("value")
        else:
            features[e] = None
    return features


class HeadRelation(NamedTuple):
    """The governor of a token and the relation it bears to it."""

    head: int
    relation: str


class MWERange(NamedTuple):
    start: int
    end: int
    form: str
    misc: str

    def to_conll(self) -> str:
        return f"{self.start}-{self.end}\t{self.form}\t_\t_\t_\t_\t_\t_\t_\t{self.misc}"


class EmptyNode(NamedTuple):
    """A `n.m` ellipsis node: it is never a token and never scored."""

    after_node: int
    identifier: str
    form: str
    row: tuple[str, ...]

    def to_conll(self) -> str:
        return "\t".join((self.identifier, self.form, *self.row))


@dataclass(eq=False)
class DepNode:
    identifier: int
    form: str
    lemma: str | None
    upos: str | None
    xpos: str | None
    feats: str | None
    head: int | None
    deprel: str | None
    deps: str | None
    misc: str | None

    @cached_property
    def features(self) -> Mapping[str, str | None]:
        return parse_features(self.feats)

    def feature(self, name: str) -> str | None:
        """The value of the feature `name`, `None` if it is absent or has no value."""
        return self.features.get(name)

    def to_conll(self) -> str:
        row = [
            str(self.identifier),
            self.form,
            *(
                str(c) if c is not None else "_"
                for c in (
                    self.lemma,
                    self.upos,
                    self.xpos,
                    self.feats,
                    self.head,
                    self.deprel,
                    self.deps,
                    self.misc,
                )
            ),
        ]
        return "\t".join(row)


class DepGraph:
    """A sentence: its tokens, plus the non-token lines (multi-word ranges, empty nodes, comments)
    that come with it in a CoNLL file."""

    def __init__(
        self,
        nodes: Iterable[DepNode],
        empty_nodes: Iterable[EmptyNode] | None = None,
        mwe_ranges: Iterable[MWERange] | None = None,
        metadata: Iterable[str] | None = None,
    ):
        self.nodes = list(nodes)
        self.mwe_ranges = [] if mwe_ranges is None else list(mwe_ranges)
        self.empty_nodes = [] if empty_nodes is None else list(empty_nodes)
        self.metadata = [] if metadata is None else list(metadata)

    @property
    def words(self) -> list[str]:
        """The forms of the tokens, in order."""
        return [n.form for n in self.nodes]

    def tokens(self) -> Iterator[DepNode]:
        return iter(self.nodes)

    def head(self, idx: int) -> HeadRelation | None:
        """The head and relation of the token at 1-based position `idx`, `None` if that position
        doesn't exist or if its head or relation is not annotated."""
        if not 1 <= idx <= len(self.nodes):
            return None
        node = self.nodes[idx - 1]
        if node.head is None or node.deprel is None:
            return None
        return HeadRelation(node.head, node.deprel)

    @classmethod
    def from_conllu(cls, istream: Iterable[str]) -> Self:
        """Read a conll tree from an input stream"""

        metadata: list[str] = []
        mwe_ranges = []
        empty_nodes = []
        nodes = []
        for line in istream:
            if line.startswith("#"):
                metadata.append(line.rstrip(EOL_CHARS))
                continue

            row = line.rstrip(EOL_CHARS).split("\t")

            processed_row: list[str | None]
            if "-" in row[0]:
                mwe_start, mwe_end = row[0].split("-")
                mwe_ranges.append(
                    MWERange(int(mwe_start), int(mwe_end), row[1], row[9] if len(row) > 9 else "_")
                )
                continue
            if len(row) < 2:
                raise ValueError(f"Too few columns to build a DepNode: {line!r}")
            elif len(row) < 10:
                processed_row = [*row, *("_" for _ in range(10 - len(row)))]
            else:
                processed_row = list(row)

            if "." in row[0]:
                empty_nodes.append(
                    EmptyNode(
                        after_node=int(row[0].split(".", maxsplit=1)[0]),
                        identifier=row[0],
                        form=row[1],
                        row=tuple(cast(list[str], processed_row[2:])),
                    )
                )
                continue
            processed_row[2:10] = [c if c != "_" else None for c in processed_row[2:10]]
            node = DepNode(
                identifier=int(cast(str, processed_row[0])),
                form=cast(str, processed_row[1]),
                lemma=processed_row[2],
                upos=processed_row[3],
                xpos=processed_row[4],
                feats=processed_row[5],
                head=int(processed_row[6]) if processed_row[6] is not None else None,
                deprel=processed_row[7],
                deps=processed_row[8],
                misc=processed_row[9],
            )
            if node.head is None and node.deprel is not None:
                logger.warning(f"Node with empty head and nonempty deprel: {node}")
            nodes.append(node)
        return cls(
            empty_nodes=empty_nodes,
            nodes=nodes,
            mwe_ranges=mwe_ranges,
            metadata=metadata,
        )

    def to_conllu(self) -> str:
        """CoNLL-U string for the dep tree"""
        lines = list(self.metadata)
        for n in self.nodes:
            for mwe in self.mwe_ranges:
                if mwe.start == n.identifier:
                    lines.append(mwe.to_conll())
            lines.append(n.to_conll())
            for empty_node in sorted(
                (e for e in self.empty_nodes if e.after_node == n.identifier),
                key=lambda x: int(x.identifier.rsplit(".", maxsplit=1)[1]),
            ):
                lines.append(empty_node.to_conll())
        return "\n".join(lines)

    def __str__(self):
        return self.to_conllu()

    def __len__(self):
        return len(self.nodes)

    @classmethod
    def read_conll(cls, lines: Iterable[str]) -> Iterator[Self]:
        """Lazily read trees separated by blank lines."""
        current_tree_lines: list[str] = []
        # Add a dummy empty line to flush the last tree even if the mandatory empty last line is
        # absent
        for line in itertools.chain(lines, [""]):
            if not line or line.isspace():
                if current_tree_lines:
                    yield cls.from_conllu(current_tree_lines)
                    current_tree_lines = []
            else:
                current_tree_lines.append(line)
