import heapq
from typing import Sequence, cast
from collections.abc import Iterable

import numpy as np
from hypothesis import strategies as st

from depconfusion.deptree import DepGraph

DEPRELS = ["nsubj", "obj", "iobj", "obl", "advmod", "amod", "det", "case", "punct", "root"]


def seq_to_heads(
    seq: Sequence[int], root: np.intp | int
) -> np.ndarray[tuple[int], np.dtype[np.intp]]:
    """Decode a Prüfer sequence for a rooted tree into an array `heads` where `heads[i]` is the
    head of node `i` and `heads[root]` is `-1`. Any sequence of `n-2` integers in `[0, n)` is a
    valid Prüfer sequence, which makes this a cheap way to generate random trees.

    The rooted variant removes at each step the lowest-index leaf *that is not the root*.
    """
    _seq = np.asarray(seq, dtype=np.intp)
    n = _seq.shape[0] + 2

    degrees = np.ones(n, dtype=np.intp)
    values, counts = np.unique(_seq, return_counts=True)
    degrees[values] += counts
    # The root never becomes a leaf
    degrees[root] = 0
    leaves = cast(list[int | np.intp], np.flatnonzero(degrees == 1).tolist())
    heapq.heapify(leaves)

    heads = np.full(n, fill_value=-1, dtype=np.intp)
    for h in _seq:
        leaf = heapq.heappop(leaves)
        heads[leaf] = h
        if degrees[h] == 2:
            heapq.heappush(leaves, h)
        elif h != root:
            degrees[h] -= 1

    # The last remaining leaf can only be attached to the root
    heads[leaves[0]] = root
    return heads


def make_tree(
    forms: Sequence[str],
    heads: Sequence[int | None],
    deprels: Sequence[str | None],
    feats: Sequence[str | None] | None = None,
) -> DepGraph:
    if feats is None:
        feats = [None] * len(forms)
    lines = [
        "\t".join(
            (
                str(i),
                form,
                "_",
                "_",
                "_",
                feat if feat is not None else "_",
                str(head) if head is not None else "_",
                deprel if deprel is not None else "_",
                "_",
                "_",
            )
        )
        for i, (form, head, deprel, feat) in enumerate(
            zip(forms, heads, deprels, feats, strict=True), start=1
        )
    ]
    return DepGraph.from_conllu(lines)


tokens_st = st.text(
    alphabet=st.characters(blacklist_categories=["Cc", "Cs", "Zl", "Zp"]),
    min_size=1,
).filter(lambda s: not s.isspace())


@st.composite
def heads_lists(draw: st.DrawFn, n_words: int) -> list[int]:
    """Random well-formed heads for `n_words` words, 1-based with 0 for the root."""
    if n_words == 1:
        return [0]
    heads = seq_to_heads(
        draw(st.lists(st.integers(0, n_words - 1), min_size=n_words - 2, max_size=n_words - 2)),
        root=draw(st.integers(0, n_words - 1)),
    )
    return (heads + 1).tolist()


@st.composite
def labeled_trees(draw: st.DrawFn, forms: Sequence[str]) -> DepGraph:
    heads = draw(heads_lists(len(forms)))
    deprels = ["root" if h == 0 else draw(st.sampled_from(DEPRELS[:-1])) for h in heads]
    return make_tree(forms, heads, deprels)


@st.composite
def tree_pairs(draw: st.DrawFn) -> tuple[DepGraph, DepGraph]:
    """A gold tree and a predicted tree over the same tokens."""
    forms = draw(st.lists(tokens_st, min_size=1, max_size=12))
    return draw(labeled_trees(forms)), draw(labeled_trees(forms))


treebank_pairs = st.lists(tree_pairs(), min_size=1, max_size=5).map(
    lambda pairs: ([g for g, _ in pairs], [p for _, p in pairs])
)


def conllu_lines(trees: Iterable[DepGraph]) -> list[str]:
    return [line for t in trees for line in (*t.to_conllu().splitlines(), "")]
