"""
Error types raised by stensor.

Every error derives from ``TensorError`` and from the builtin exception a
caller would naturally catch for the same mistake, so ``except IndexError``
keeps working for out-of-bounds indices.
"""


class TensorError(Exception):
    """Base class for all stensor errors."""


class ShapeMismatch(TensorError, ValueError):
    """An operation received shapes or ranks that do not conform."""


class IndexOutOfBounds(TensorError, IndexError):
    """A multi-index (or a strided view) reaches outside its extents."""


class UnsupportedElementType(TensorError, TypeError):
    """The element type cannot be used by the requested operation."""


class InvalidReshape(TensorError, ValueError):
    """A reshape changes the element count or needs a copy that was not allowed."""


__all__ = [
    "TensorError",
    "ShapeMismatch",
    "IndexOutOfBounds",
    "UnsupportedElementType",
    "InvalidReshape",
]
