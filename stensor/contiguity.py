"""
Contiguity classification.

Pure functions of (shape, strides). Nothing here is cached: a view's
contiguity is recomputed every time it is asked for.
"""

import enum
from typing import Sequence


class Contiguity(enum.Enum):
    ROW_MAJOR = "row-major"
    COLUMN_MAJOR = "column-major"
    NONE = "none"

    def __bool__(self):
        return self is not Contiguity.NONE


def _dense(shape: Sequence[int], strides: Sequence[int], axes) -> bool:
    if 0 in shape:
        return True
    expected = 1
    for k in axes:
        # extent-1 axes never move, so their stride is free
        if shape[k] != 1:
            if strides[k] != expected:
                return False
            expected *= shape[k]
    return True


def is_row_major(shape: Sequence[int], strides: Sequence[int]) -> bool:
    """Last axis fastest, no gaps."""
    return _dense(shape, strides, reversed(range(len(shape))))


def is_column_major(shape: Sequence[int], strides: Sequence[int]) -> bool:
    """First axis fastest, no gaps."""
    return _dense(shape, strides, range(len(shape)))


def classify(shape: Sequence[int], strides: Sequence[int]) -> Contiguity:
    """
    Classify a layout.

    Layouts that satisfy both checks (scalars, unit-stride vectors, empty
    tensors) report ``ROW_MAJOR``.
    """
    if is_row_major(shape, strides):
        return Contiguity.ROW_MAJOR
    if is_column_major(shape, strides):
        return Contiguity.COLUMN_MAJOR
    return Contiguity.NONE


__all__ = ["Contiguity", "classify", "is_row_major", "is_column_major"]
