import contextlib
import pathlib
from dataclasses import dataclass, field
from typing import NamedTuple
from collections.abc import Iterable, Iterator

import pydantic
from loguru import logger

from depconfusion.confusion import Confusion
from depconfusion.deptree import DepGraph, DepNode, HeadRelation
from depconfusion.utils import smart_open

NO_FIELD = "_"


class ScoringError(Exception):
    pass


class InputUnavailableError(ScoringError):
    pass


class AlignmentError(ScoringError):
    def __init__(self, message: str, sentence: int, position: int | None = None):
        self.sentence = sentence
        self.position = position
        if position is None:
            super().__init__(f"sentence {sentence}: {message}")
        else:
            super().__init__(f"sentence {sentence}, token {position}: {message}")


class MissingHeadError(AlignmentError):
    pass


class AlignedToken(NamedTuple):
    position: int
    gold: DepNode
    pred: DepNode
    gold_rel: HeadRelation | None
    pred_rel: HeadRelation | None


class ScoringOptions(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    score_relations: bool = True
    score_fields: bool = False
    gold_field_feature: str = "tf"
    pred_field_feature: str = "p_tf"
    clause_ids: bool = False

    @pydantic.model_validator(mode="after")
    def check_something_to_score(self) -> "ScoringOptions":
        if not (self.score_relations or self.score_fields):
            raise ValueError("Relations and fields scoring can't both be disabled")
        return self


@dataclass
class ScoringResult:
    options: ScoringOptions = field(default_factory=ScoringOptions)
    deprel_confusion: Confusion[str] = field(default_factory=lambda: Confusion("Deprels"))
    distance_confusion: Confusion[int] = field(default_factory=lambda: Confusion("Dists"))
    field_confusion: Confusion[str] = field(default_factory=lambda: Confusion("Fields"))
    correct_head: int = 0
    correct_head_label: int = 0
    total: int = 0
    sentences: int = 0

    @property
    def uas(self) -> float:
        return self.correct_head / self.total if self.total else float("nan")

    @property
    def las(self) -> float:
        return self.correct_head_label / self.total if self.total else float("nan")

    @property
    def field_accuracy(self) -> float:
        return self.field_confusion.accuracy


class Scorer:
    """Compare predicted trees to gold trees, one aligned pair of sentences at a time.

    Both trees of a pair must have the same tokens (same count, same forms); anything else is an
    `AlignmentError` and nothing is recorded for the offending pair.
    """

    def __init__(self, options: ScoringOptions | None = None):
        self.options = options if options is not None else ScoringOptions()
        if self.options.clause_ids:
            logger.warning("Deriving relations from clause ids is not supported, ignoring it.")
        self.result = ScoringResult(options=self.options)

    def _check_alignment(
        self, gold: DepGraph, pred: DepGraph, sentence: int
    ) -> list[AlignedToken]:
        gold_tokens = list(gold.tokens())
        pred_tokens = list(pred.tokens())
        if len(gold_tokens) != len(pred_tokens):
            raise AlignmentError(
                f"gold has {len(gold_tokens)} tokens but prediction has {len(pred_tokens)}",
                sentence=sentence,
            )
        aligned = []
        for idx, (gold_token, pred_token) in enumerate(
            zip(gold_tokens, pred_tokens, strict=True), start=1
        ):
            if gold_token.form != pred_token.form:
                raise AlignmentError(
                    f"gold form {gold_token.form!r} != predicted form {pred_token.form!r}",
                    sentence=sentence,
                    position=idx,
                )
            gold_rel = pred_rel = None
            if self.options.score_relations:
                gold_rel, pred_rel = gold.head(idx), pred.head(idx)
                for name, rel in (("gold", gold_rel), ("predicted", pred_rel)):
                    if rel is None:
                        raise MissingHeadError(
                            f"no head relation in the {name} tree", sentence=sentence, position=idx
                        )
            aligned.append(AlignedToken(idx, gold_token, pred_token, gold_rel, pred_rel))
        return aligned

    def score_trees(self, gold: DepGraph, pred: DepGraph):
        """Record one sentence pair. Validation happens before any count is touched."""
        sentence = self.result.sentences + 1
        aligned = self._check_alignment(gold, pred, sentence)
        result = self.result
        for idx, gold_token, pred_token, gold_rel, pred_rel in aligned:
            if gold_rel is not None and pred_rel is not None:
                result.distance_confusion.insert(
                    abs(gold_rel.head - idx), abs(pred_rel.head - idx)
                )
                result.deprel_confusion.insert(gold_rel.relation, pred_rel.relation)
                result.correct_head += int(pred_rel.head == gold_rel.head)
                result.correct_head_label += int(pred_rel == gold_rel)
                result.total += 1
            if self.options.score_fields:
                gold_field = gold_token.feature(self.options.gold_field_feature)
                if gold_field is None:
                    continue
                pred_field = pred_token.feature(self.options.pred_field_feature)
                result.field_confusion.insert(
                    gold_field, pred_field if pred_field is not None else NO_FIELD
                )
        result.sentences = sentence

    def score(
        self, gold_trees: Iterable[DepGraph], pred_trees: Iterable[DepGraph]
    ) -> ScoringResult:
        """Score two streams of trees in lock-step until either is exhausted."""
        gold_iter: Iterator[DepGraph] = iter(gold_trees)
        pred_iter: Iterator[DepGraph] = iter(pred_trees)
        while True:
            gold = next(gold_iter, None)
            pred = next(pred_iter, None)
            if gold is None or pred is None:
                if gold is not None or pred is not None:
                    longer = "gold" if gold is not None else "predicted"
                    logger.warning(
                        f"The {longer} treebank has more sentences than the other one,"
                        f" only the first {self.result.sentences} were scored."
                    )
                break
            self.score_trees(gold, pred)
        logger.debug(f"Scored {self.result.total} tokens in {self.result.sentences} sentences.")
        return self.result


def _read_trees(
    in_stream: Iterable[str], name: str, path: str | pathlib.Path
) -> Iterator[DepGraph]:
    sentence = 0
    try:
        for tree in DepGraph.read_conll(in_stream):
            sentence += 1
            yield tree
    # `UnicodeDecodeError` is a `ValueError` too
    except ValueError as e:
        raise InputUnavailableError(
            f"Can't read {name} file {path} at sentence {sentence + 1}: {e}"
        ) from e


def score_files(
    gold_path: str | pathlib.Path,
    pred_path: str | pathlib.Path,
    options: ScoringOptions | None = None,
) -> ScoringResult:
    """Score the predicted CoNLL file `pred_path` against the gold CoNLL file `gold_path`."""
    with contextlib.ExitStack() as stack:
        streams = []
        for name, path in (("gold", gold_path), ("predicted", pred_path)):
            try:
                streams.append(stack.enter_context(smart_open(path, encoding="utf-8")))
            except OSError as e:
                raise InputUnavailableError(f"Can't open {name} file {path}: {e}") from e
        gold_file, pred_file = streams
        logger.debug(f"Scoring {pred_path} against {gold_path}")
        return Scorer(options).score(
            _read_trees(gold_file, "gold", gold_path),
            _read_trees(pred_file, "predicted", pred_path),
        )
