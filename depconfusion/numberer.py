from typing import Generic, TypeVar
from collections.abc import Hashable, Iterator

from bidict import bidict

V = TypeVar("V", bound=Hashable)


class Numberer(Generic[V]):
    """Assign dense integer indices to values, in the order they are first seen.

    Indices are always exactly `range(len(self))` and are never reassigned: there is no way to
    remove a value once it has been numbered.
    """

    def __init__(self):
        self._mapping: bidict[V, int] = bidict()

    def number(self, value: V) -> int:
        if (idx := self._mapping.get(value)) is not None:
            return idx
        idx = len(self._mapping)
        self._mapping[value] = idx
        return idx

    def get_number(self, value: V) -> int | None:
        return self._mapping.get(value)

    def get_val(self, idx: int) -> V | None:
        return self._mapping.inverse.get(idx)

    @property
    def values(self) -> list[V]:
        """All the numbered values, `values[i]` being the value numbered `i`."""
        return [self._mapping.inverse[i] for i in range(len(self._mapping))]

    def is_empty(self) -> bool:
        return not self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def __iter__(self) -> Iterator[V]:
        return iter(self.values)

    def __contains__(self, value: object) -> bool:
        return value in self._mapping

    def __repr__(self) -> str:
        return f"Numberer({self.values!r})"
