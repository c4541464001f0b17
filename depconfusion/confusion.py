from typing import IO, Generic, NamedTuple, TypeVar
from collections.abc import Hashable

import numpy as np

from depconfusion.numberer import Numberer

V = TypeVar("V", bound=Hashable)


class ClassAccuracy(NamedTuple, Generic[V]):
    label: V
    total: int
    accuracy: float


def _ratios(num: np.ndarray, denom: np.ndarray) -> np.ndarray:
    # 0/0 is nan: classes that were never seen on one side get a nan score instead of an error
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.true_divide(num, denom, dtype=np.float64)


class Confusion(Generic[V]):
    """A gold × predicted count matrix over classes numbered on the fly.

    `matrix[i, j]` is the number of times gold class `numberer.get_val(i)` was predicted as
    `numberer.get_val(j)`. The matrix is always square with side `len(numberer)`.
    """

    def __init__(self, name: str):
        self.name = name
        self.numberer: Numberer[V] = Numberer()
        self._matrix = np.zeros((0, 0), dtype=np.int64)

    @property
    def matrix(self) -> np.ndarray:
        """A read-only view of the counts."""
        view = self._matrix.view()
        view.flags.writeable = False
        return view

    @property
    def labels(self) -> list[V]:
        return self.numberer.values

    def __len__(self) -> int:
        return self._matrix.shape[0]

    def resize(self, size: int):
        """Grow the matrix to `size × size`, padding new rows and columns with zeros and leaving
        existing counts untouched."""
        current = self._matrix.shape[0]
        if size < current:
            raise ValueError(f"Can't shrink a confusion matrix from {current} to {size}")
        if size == current:
            return
        self._matrix = np.pad(self._matrix, ((0, size - current), (0, size - current)))

    def insert(self, gold: V, predicted: V):
        gold_idx = self.numberer.number(gold)
        # Keep the matrix in step with the numberer even if numbering `predicted` fails
        try:
            pred_idx = self.numberer.number(predicted)
        finally:
            self.resize(len(self.numberer))
        self._matrix[gold_idx, pred_idx] += 1

    def count(self, gold: V, predicted: V) -> int:
        gold_idx = self.numberer.get_number(gold)
        pred_idx = self.numberer.get_number(predicted)
        if gold_idx is None or pred_idx is None:
            return 0
        return int(self._matrix[gold_idx, pred_idx])

    @property
    def total(self) -> int:
        return int(self._matrix.sum())

    @property
    def correct(self) -> int:
        return int(np.trace(self._matrix))

    @property
    def accuracy(self) -> float:
        """Overall accuracy, nan if nothing was inserted."""
        return float(_ratios(np.int64(self.correct), np.int64(self.total)))

    def row_accuracies(self) -> np.ndarray:
        return _ratios(np.diagonal(self._matrix), self._matrix.sum(axis=1))

    def precisions(self) -> np.ndarray:
        """For each class, the proportion of the predictions of that class that were correct."""
        return _ratios(np.diagonal(self._matrix), self._matrix.sum(axis=0))

    def accuracies(self) -> list[ClassAccuracy[V]]:
        return [
            ClassAccuracy(label, int(total), float(acc))
            for label, total, acc in zip(
                self.labels,
                self._matrix.sum(axis=1).tolist(),
                self.row_accuracies().tolist(),
                strict=True,
            )
        ]

    def write_accuracies(self, sink: IO[str]):
        for label, total, acc in self.accuracies():
            sink.write(f"{label}\t{total}\t{acc:.4f}\n")

    def write_to_file(self, sink: IO[str], separator: str = "\t"):
        """Compact form: the class names, then the raw counts, one row per line."""
        sink.write(separator.join(str(label) for label in self.labels))
        sink.write("\n")
        for row in self._matrix.tolist():
            sink.write(separator.join(str(c) for c in row))
            sink.write("\n")

    def render(self) -> str:
        lines = ["\t".join([self.name, *(str(label) for label in self.labels)])]
        for label, row, acc in zip(
            self.labels, self._matrix.tolist(), self.row_accuracies().tolist(), strict=True
        ):
            lines.append("\t".join([str(label), *(str(c) for c in row), f"{acc:.4f}"]))
        lines.append("".join("\t____" for _ in self.labels))
        lines.append("".join(f"\t{p:.4f}" for p in self.precisions().tolist()))
        lines.append(f"acc: {self.accuracy:.4f}")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Confusion({self.name!r}, labels={self.labels!r}, total={self.total})"
