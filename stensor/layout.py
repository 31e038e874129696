"""
Shape/strides descriptor.

A ``Layout`` is the metadata half of a tensor handle: extents, per-axis
strides (in elements, not bytes) and the position of index zero inside the
storage buffer. Layouts are immutable values, so copying a handle is just
copying three tuples.
"""

from dataclasses import dataclass
from functools import reduce
import operator
from typing import Sequence, Tuple

from .errors import IndexOutOfBounds, ShapeMismatch

Shape = Tuple[int, ...]
Strides = Tuple[int, ...]


def shape_size(shape: Sequence[int]) -> int:
    """Number of elements in ``shape`` (1 for rank 0, 0 if any extent is 0)."""
    return reduce(operator.mul, shape, 1)


def default_strides(shape: Sequence[int]) -> Strides:
    """Row-major strides: the last axis changes fastest."""
    strides = []
    step = 1
    for extent in reversed(shape):
        strides.append(step)
        step *= extent
    return tuple(reversed(strides))


def normalize_shape(*shape) -> Shape:
    """
    Accept ``f(2, 3)``, ``f((2, 3))`` and ``f([2, 3])`` alike.

    Raises:
        ShapeMismatch: If an extent is negative or not an integer.
    """
    if len(shape) == 1 and hasattr(shape[0], "__iter__"):
        shape = tuple(shape[0])
    result = []
    for extent in shape:
        if isinstance(extent, bool) or not isinstance(extent, int):
            try:
                extent = operator.index(extent)
            except TypeError:
                raise ShapeMismatch(f"Shape entries must be integers, got {extent!r}") from None
        if extent < 0:
            raise ShapeMismatch(f"Shape entries must be non-negative, got {tuple(shape)}")
        result.append(int(extent))
    return tuple(result)


def check_same_shape(a: Sequence[int], b: Sequence[int], what: str = "operands") -> None:
    """Raise ShapeMismatch unless ``a`` and ``b`` have the same rank and extents."""
    if tuple(a) != tuple(b):
        raise ShapeMismatch(f"The {what} have different shapes: {tuple(a)} vs {tuple(b)}")


@dataclass(frozen=True)
class Layout:
    shape: Shape
    strides: Strides
    offset: int = 0

    def __post_init__(self):
        if len(self.shape) != len(self.strides):
            raise ShapeMismatch(
                f"Shape {self.shape} and strides {self.strides} have different ranks"
            )
        if self.offset < 0:
            raise IndexOutOfBounds(f"Offset must be non-negative, got {self.offset}")

    @classmethod
    def contiguous(cls, shape: Sequence[int], offset: int = 0) -> "Layout":
        """Fresh row-major layout, as produced by allocation."""
        shape = tuple(shape)
        return cls(shape, default_strides(shape), offset)

    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def size(self) -> int:
        return shape_size(self.shape)

    def same_shape(self, other: "Layout") -> bool:
        return self.shape == other.shape

    def span(self) -> Tuple[int, int]:
        """
        Smallest and largest storage positions the layout can address.

        Only meaningful when ``size > 0``.
        """
        low = high = self.offset
        for extent, stride in zip(self.shape, self.strides):
            reach = (extent - 1) * stride
            if reach < 0:
                low += reach
            else:
                high += reach
        return low, high

    def validate(self, storage_length: int) -> None:
        """
        Check that every in-bounds multi-index lands inside the storage.

        Raises:
            IndexOutOfBounds: If any reachable position is outside
                ``[0, storage_length)``.
        """
        if self.size == 0:
            return
        low, high = self.span()
        if low < 0 or high >= storage_length:
            raise IndexOutOfBounds(
                f"Layout shape={self.shape} strides={self.strides} offset={self.offset} "
                f"reaches positions [{low}, {high}] outside a storage of {storage_length} elements"
            )


__all__ = [
    "Shape",
    "Strides",
    "Layout",
    "shape_size",
    "default_strides",
    "normalize_shape",
    "check_same_shape",
]
