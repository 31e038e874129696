"""
Offset and indexing engine.

A multi-index ``i`` lives at ``offset + sum(i[k] * strides[k])``. That dot
product is the only addressing rule; it does not care how many slices or
transpositions produced the strides. Walks over every element come in two
flavours, picked once per walk: a linear walk when the layout is row-major
contiguous, and the per-element dot product otherwise.
"""

import itertools
import operator
from typing import Iterator, Sequence

import numpy as np

from .contiguity import is_row_major
from .errors import IndexOutOfBounds
from .layout import Layout


def offset_of(layout: Layout, index: Sequence[int]) -> int:
    """
    Storage position of ``index``.

    Indices are not wrapped: every component must lie in ``[0, extent)``.

    Raises:
        IndexOutOfBounds: If ``index`` has the wrong rank or any component is
            outside its axis.
    """
    if len(index) != layout.rank:
        raise IndexOutOfBounds(
            f"Index {tuple(index)} has {len(index)} components, tensor has rank {layout.rank}"
        )
    position = layout.offset
    for axis, (i, extent, stride) in enumerate(zip(index, layout.shape, layout.strides)):
        try:
            i = operator.index(i)
        except TypeError as e:
            raise IndexOutOfBounds(f"Index {i!r} for axis {axis} is not an integer") from e
        if not 0 <= i < extent:
            raise IndexOutOfBounds(
                f"Index {i} is out of bounds for axis {axis} with extent {extent}"
            )
        position += i * stride
    return position


def iter_offsets(layout: Layout) -> Iterator[int]:
    """Yield every storage position in logical (row-major index) order."""
    if layout.size == 0:
        return
    if is_row_major(layout.shape, layout.strides):
        yield from range(layout.offset, layout.offset + layout.size)
        return
    strides = layout.strides
    base = layout.offset
    for index in itertools.product(*(range(n) for n in layout.shape)):
        yield base + sum(i * s for i, s in zip(index, strides))


def offsets(layout: Layout) -> np.ndarray:
    """
    All storage positions in logical order, as an ``intp`` array.

    The general case broadcasts one ``arange(extent) * stride`` term per axis
    and sums them, which is the dot product evaluated for every index at
    once.
    """
    size = layout.size
    if size == 0:
        return np.empty(0, dtype=np.intp)
    if is_row_major(layout.shape, layout.strides):
        return np.arange(layout.offset, layout.offset + size, dtype=np.intp)
    positions = np.full((), layout.offset, dtype=np.intp)
    rank = layout.rank
    for axis, (extent, stride) in enumerate(zip(layout.shape, layout.strides)):
        term = np.arange(extent, dtype=np.intp) * stride
        positions = positions + term.reshape((extent,) + (1,) * (rank - axis - 1))
    return positions.reshape(-1)


class ElementSequence:
    """
    Lazy, restartable view of a tensor's elements in logical order.

    Every ``iter()`` starts a fresh walk over the storage as it is at that
    moment, so writes made through aliasing views show up in later walks.
    """

    __slots__ = ("_storage", "_layout")

    def __init__(self, storage, layout: Layout):
        self._storage = storage
        self._layout = layout

    def __len__(self) -> int:
        return self._layout.size

    def __iter__(self):
        data = self._storage.data
        layout = self._layout
        if layout.size and is_row_major(layout.shape, layout.strides):
            for value in data[layout.offset:layout.offset + layout.size]:
                yield value.item()
        else:
            for position in iter_offsets(layout):
                yield data[position].item()

    def __repr__(self):
        return f"ElementSequence(shape={self._layout.shape}, size={len(self)})"


__all__ = ["offset_of", "iter_offsets", "offsets", "ElementSequence"]
