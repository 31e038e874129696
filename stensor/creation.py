"""
Tensor construction functions.

Every constructor allocates a new ``Storage`` with a row-major layout and
offset 0. Shapes can be given as separate ints or as one sequence:
``zeros(2, 3)`` and ``zeros((2, 3))`` are the same.
"""

from typing import Optional

import numpy as np

from .config import default_dtype
from .errors import ShapeMismatch, UnsupportedElementType
from .layout import Layout, normalize_shape
from .storage import Storage, check_element_type
from .tensor import Tensor


def _resolve(dtype) -> np.dtype:
    return default_dtype() if dtype is None else check_element_type(dtype)


def _allocate(shape, dtype, zero: bool = True) -> Tensor:
    layout = Layout.contiguous(shape)
    return Tensor(Storage.allocate(layout.size, dtype, zero=zero), layout)


def empty(*shape, dtype=None) -> Tensor:
    """Uninitialized tensor."""
    return _allocate(normalize_shape(*shape), _resolve(dtype), zero=False)


def zeros(*shape, dtype=None) -> Tensor:
    return _allocate(normalize_shape(*shape), _resolve(dtype))


def ones(*shape, dtype=None) -> Tensor:
    return full(normalize_shape(*shape), 1, dtype=dtype)


def full(shape, value, dtype=None) -> Tensor:
    t = _allocate(normalize_shape(shape), _resolve(dtype), zero=False)
    t.storage.data[:] = value
    return t


def arange(stop: int, dtype=None) -> Tensor:
    """1-D tensor holding ``0, 1, ..., stop - 1``."""
    data = np.arange(stop, dtype=np.int64 if dtype is None else check_element_type(dtype))
    return Tensor(Storage(data), Layout.contiguous(data.shape))


# --- Text ---

def _text_array(data) -> np.ndarray:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return np.frombuffer(bytes(data), dtype=np.uint8)


def _char_codes(source: np.ndarray) -> np.ndarray:
    """Byte codes of an array of single characters."""
    if source.dtype.kind == "S":
        if source.dtype.itemsize != 1:
            raise UnsupportedElementType(f"Byte strings must hold one byte per element, got {source.dtype}")
        return np.array(source, order="C").view(np.uint8)
    if source.dtype.itemsize != 4:
        raise UnsupportedElementType(f"Strings must hold one character per element, got {source.dtype}")
    codes = np.array(source, order="C").view(np.uint32)
    if codes.size and codes.max() > 127:
        raise UnsupportedElementType(
            "Only ASCII characters fit in one byte per element; pass UTF-8 text as a single string"
        )
    return codes.astype(np.uint8)


def tensor(data, dtype=None) -> Tensor:
    """
    Build a tensor by copying ``data``.

    Args:
        data: A scalar, a (nested) sequence, a numpy array or another Tensor.
            Text is stored as bytes: a ``str`` becomes the ``uint8`` codes of
            its UTF-8 encoding, ``bytes`` are copied as is, and sequences of
            single ASCII characters map to their codes.
        dtype: Element type. When omitted, numpy arrays and Tensors keep
            theirs, integer and boolean sequences keep numpy's inferred
            type, text uses ``uint8``, and floating sequences use the
            configured default dtype.

    Raises:
        ShapeMismatch: If nested sequences are ragged.
        UnsupportedElementType: If the elements are not numbers, booleans
            or single characters.
    """
    if isinstance(data, Tensor):
        source = data.numpy()
    elif isinstance(data, (str, bytes, bytearray, memoryview)):
        source = _text_array(data)
    elif isinstance(data, np.ndarray):
        source = data
    else:
        try:
            source = np.asarray(data)
        except ValueError as e:
            raise ShapeMismatch(f"Nested sequences must be rectangular: {e}") from e
        if source.dtype == object:
            raise ShapeMismatch("Nested sequences must be rectangular and hold numbers")
        if dtype is None and source.dtype.kind == "f":
            dtype = default_dtype()
    if source.dtype.kind in "SU":
        source = _char_codes(source)
    dtype = check_element_type(source.dtype if dtype is None else dtype)
    return Tensor(Storage.from_array(source, dtype=dtype), Layout.contiguous(source.shape))


# --- Random constructors ---

def _generator(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return np.random.default_rng() if rng is None else rng


def rand_uniform(shape, low: float = 0.0, high: float = 1.0, rng: Optional[np.random.Generator] = None, dtype=None) -> Tensor:
    """
    Samples from ``[low, high)``.

    Pass ``rng`` for reproducible values; without it a freshly seeded
    generator is used for this call only.
    """
    shape = normalize_shape(shape)
    values = _generator(rng).uniform(low, high, size=shape)
    return tensor(values, dtype=_resolve(dtype))


def randn(shape, rng: Optional[np.random.Generator] = None, dtype=None) -> Tensor:
    """Standard normal samples."""
    shape = normalize_shape(shape)
    values = _generator(rng).standard_normal(size=shape)
    return tensor(values, dtype=_resolve(dtype))


__all__ = [
    "empty",
    "zeros",
    "ones",
    "full",
    "arange",
    "tensor",
    "rand_uniform",
    "randn",
]
