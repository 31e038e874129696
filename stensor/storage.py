"""
Storage buffer.

A ``Storage`` owns one flat, typed, fixed-length numpy array. Tensor handles
hold a reference to it; views share the same ``Storage`` object and a clone
gets a new one. Python's reference counting frees the buffer when the last
handle goes away, so there is no explicit ``free``.
"""

from typing import Sequence

import numpy as np

from .errors import UnsupportedElementType

# bool, signed, unsigned, floating, complex
SUPPORTED_KINDS = "biufc"


def check_element_type(dtype) -> np.dtype:
    """
    Resolve ``dtype`` and make sure tensors can hold it.

    Raises:
        UnsupportedElementType: For strings, objects, datetimes and the like.
    """
    try:
        dtype = np.dtype(dtype)
    except TypeError as e:
        raise UnsupportedElementType(f"Not a valid element type: {dtype!r}") from e
    if dtype.kind not in SUPPORTED_KINDS:
        raise UnsupportedElementType(f"Tensors cannot hold elements of type {dtype}")
    return dtype


class Storage:
    """Flat typed buffer shared by every handle that views it."""

    __slots__ = ("_data", "__weakref__")

    def __init__(self, data: np.ndarray):
        if data.ndim != 1 or not data.flags.c_contiguous:
            raise ValueError("Storage requires a flat contiguous array")
        check_element_type(data.dtype)
        self._data = data

    @classmethod
    def allocate(cls, count: int, dtype, zero: bool = True) -> "Storage":
        """
        Allocate a buffer of exactly ``count`` elements.

        With ``zero=False`` the contents are left uninitialized.
        """
        if count < 0:
            raise ValueError(f"Element count must be non-negative, got {count}")
        dtype = check_element_type(dtype)
        data = np.zeros(count, dtype=dtype) if zero else np.empty(count, dtype=dtype)
        return cls(data)

    @classmethod
    def from_array(cls, array, dtype=None) -> "Storage":
        """Copy ``array`` (flattened in row-major order) into a new buffer."""
        data = np.array(array, dtype=dtype, copy=True, order="C").reshape(-1)
        return cls(data)

    # --- Introspection ---

    @property
    def data(self) -> np.ndarray:
        """The underlying flat array (shared, never a copy)."""
        return self._data

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def itemsize(self) -> int:
        return self._data.itemsize

    def __len__(self) -> int:
        return self._data.shape[0]

    def raw_pointer(self) -> int:
        """
        Address of element 0.

        Pointer arithmetic past element 0 is only meaningful for the
        positions a validated layout can reach.
        """
        return self._data.ctypes.data

    # --- Zero-copy export ---

    def strided(self, shape: Sequence[int], strides: Sequence[int], offset: int) -> np.ndarray:
        """
        Numpy view of the buffer with the given element strides.

        The caller must have validated the layout against ``len(self)``.
        """
        itemsize = self.itemsize
        if len(self) == 0:
            return np.empty(tuple(shape), dtype=self.dtype)
        return np.lib.stride_tricks.as_strided(
            self._data[offset:],
            shape=tuple(shape),
            strides=tuple(s * itemsize for s in strides),
        )

    def __repr__(self):
        return f"Storage(length={len(self)}, dtype={self.dtype})"


__all__ = ["Storage", "check_element_type", "SUPPORTED_KINDS"]
