from hypothesis import given
from hypothesis import strategies as st

from depconfusion.numberer import Numberer


def test_empty():
    numberer: Numberer[str] = Numberer()
    assert numberer.is_empty()
    assert len(numberer) == 0
    assert numberer.get_number("a") is None
    assert numberer.get_val(0) is None


def test_first_seen_order():
    numberer: Numberer[str] = Numberer()
    assert numberer.number("obj") == 0
    assert numberer.number("nsubj") == 1
    assert numberer.number("obj") == 0
    assert numberer.number("root") == 2
    assert numberer.values == ["obj", "nsubj", "root"]
    assert list(numberer) == ["obj", "nsubj", "root"]
    assert not numberer.is_empty()


def test_get_val_out_of_range():
    numberer: Numberer[int] = Numberer()
    numberer.number(3)
    assert numberer.get_val(0) == 3
    assert numberer.get_val(1) is None
    assert numberer.get_val(-1) is None


def test_lookups_dont_mutate():
    numberer: Numberer[str] = Numberer()
    numberer.number("a")
    assert numberer.get_number("b") is None
    assert "b" not in numberer
    assert len(numberer) == 1


@given(values=st.lists(st.one_of(st.integers(), st.text())))
def test_numbering_is_deterministic(values: list[int | str]):
    numberer: Numberer[int | str] = Numberer()
    first = [numberer.number(v) for v in values]
    second = [numberer.number(v) for v in values]
    assert first == second
    assert len(numberer) == len(set(values))
    assert sorted(set(first)) == list(range(len(numberer)))
    for v, idx in zip(values, first):
        assert numberer.get_number(v) == idx
        assert numberer.get_val(idx) == v
