"""
BLAS interop for matmul and matvec.

Operands are handed to the native gemm/gemv routines of ``scipy.linalg.blas``
without copying whenever their layout allows it:

* a column-major matrix is passed as is (``trans=0``, ``ld = strides[1]``);
* a row-major matrix is the column-major storage of its transpose, so it is
  passed as that transpose with ``trans=1`` and ``ld = strides[0]``;
* anything else (gaps, negative or zero strides) is first materialized into
  a row-major scratch copy with ``Tensor.clone``.

Vectors with any positive stride go through BLAS's ``incx`` directly.

Results are always written to a freshly allocated buffer. When the caller
passes ``out=``, that buffer is copied into ``out`` through the view engine,
so a scratch array is never aliased with a caller's tensor.

Only float32, float64, complex64 and complex128 are handled natively;
integer, boolean and half precision operands raise UnsupportedElementType.
Widen them with ``Tensor.astype`` first.
"""

from dataclasses import dataclass
import logging
from typing import Optional

import numpy as np
from scipy.linalg.blas import get_blas_funcs

from .contiguity import Contiguity
from .errors import ShapeMismatch, UnsupportedElementType
from .layout import Layout, check_same_shape
from .storage import Storage
from .tensor import Tensor

logger = logging.getLogger(__name__)

BLAS_DTYPES = frozenset(np.dtype(t) for t in (np.float32, np.float64, np.complex64, np.complex128))


@dataclass(frozen=True)
class BlasOperand:
    """
    A matrix as BLAS sees it.

    ``array`` is a Fortran-ordered numpy view over the operand's storage (or
    over a scratch copy when ``materialized``). The logical matrix is
    ``array`` when ``trans == 0`` and ``array.T`` when ``trans == 1``.

    ``array`` is what reaches gemm/gemv; scipy derives the address and the
    leading dimension from it. ``pointer`` and ``ld`` are kept for inspection:
    ``pointer`` equals ``array.ctypes.data``, and ``ld`` is the element stride
    of ``array``'s second axis whenever that axis has more than one entry.
    """

    array: np.ndarray
    pointer: int
    ld: int
    trans: int
    materialized: bool


@dataclass(frozen=True)
class BlasVector:
    """
    A vector as BLAS sees it: a flat buffer, a start offset and an increment.

    ``pointer`` is the address of the first element, for inspection only;
    gemv receives ``array``, ``offset`` and ``inc``.
    """

    array: np.ndarray
    pointer: int
    offset: int
    inc: int
    materialized: bool


def blas_dtype(*tensors: Tensor) -> np.dtype:
    """
    Element type the native routine will run in.

    Raises:
        UnsupportedElementType: If any operand is not a BLAS floating or
            complex type.
    """
    for t in tensors:
        if t.dtype not in BLAS_DTYPES:
            raise UnsupportedElementType(
                f"BLAS routines do not support {t.dtype} operands; "
                f"convert with astype('float32') or astype('float64') first"
            )
    return np.result_type(*(t.dtype for t in tensors))


def _as_tensor(value, name: str) -> Tensor:
    if not isinstance(value, Tensor):
        raise TypeError(f"{name} must be a Tensor, got {type(value).__name__}")
    return value


def _scratch(t: Tensor, dtype: np.dtype, name: str) -> Tensor:
    if t.dtype != dtype:
        logger.debug("Casting %s from %s to %s for BLAS", name, t.dtype, dtype)
        return t.astype(dtype)
    logger.debug(
        "Materializing %s (shape=%s, strides=%s) into a row-major copy for BLAS",
        name, t.shape, t.strides,
    )
    return t.clone()


def prepare_matrix(t: Tensor, dtype: np.dtype, name: str = "operand") -> BlasOperand:
    """Describe a rank-2 tensor for gemm/gemv, copying only if its layout forces it."""
    materialized = False
    if t.dtype != dtype or t.contiguity() is Contiguity.NONE:
        t = _scratch(t, dtype, name)
        materialized = True

    rows, cols = t.shape
    s0, s1 = t.strides
    storage = t.storage
    pointer = storage.raw_pointer() + t.offset * storage.itemsize
    if t.contiguity() is Contiguity.ROW_MAJOR:
        array = storage.strided((cols, rows), (s1, s0), t.offset)
        ld = s0 if rows > 1 else max(cols, 1)
        trans = 1
    else:
        array = storage.strided((rows, cols), (s0, s1), t.offset)
        ld = s1 if cols > 1 else max(rows, 1)
        trans = 0
    return BlasOperand(array=array, pointer=pointer, ld=ld, trans=trans, materialized=materialized)


def prepare_vector(v: Tensor, dtype: np.dtype, name: str = "vector") -> BlasVector:
    """Describe a rank-1 tensor for gemv; non-positive strides are materialized."""
    materialized = False
    stride = v.strides[0] if v.size > 1 else 1
    if v.dtype != dtype or stride <= 0:
        v = _scratch(v, dtype, name)
        materialized = True
        stride = 1
    storage = v.storage
    return BlasVector(
        array=storage.data,
        pointer=storage.raw_pointer() + v.offset * storage.itemsize,
        offset=v.offset,
        inc=stride,
        materialized=materialized,
    )


def _finish(data: np.ndarray, shape, out: Optional[Tensor]) -> Tensor:
    result = Tensor(Storage(np.ascontiguousarray(data).reshape(-1)), Layout.contiguous(shape))
    if out is None:
        return result
    _as_tensor(out, "out")
    check_same_shape(out.shape, result.shape, "output and result")
    out.assign(result)
    return out


def matmul(a: Tensor, b: Tensor, out: Optional[Tensor] = None) -> Tensor:
    """
    Matrix product of two rank-2 tensors through gemm.

    Raises:
        ShapeMismatch: If either operand is not rank 2 or the inner extents
            differ.
        UnsupportedElementType: For non floating point operands.
    """
    a = _as_tensor(a, "a")
    b = _as_tensor(b, "b")
    if a.rank != 2 or b.rank != 2:
        raise ShapeMismatch(f"matmul expects two matrices, got shapes {a.shape} and {b.shape}")
    m, k = a.shape
    k2, n = b.shape
    if k != k2:
        raise ShapeMismatch(f"matmul inner extents differ: {a.shape} @ {b.shape}")
    dtype = blas_dtype(a, b)

    if m == 0 or n == 0 or k == 0:
        return _finish(np.zeros((m, n), dtype=dtype), (m, n), out)

    op_a = prepare_matrix(a, dtype, "a")
    op_b = prepare_matrix(b, dtype, "b")
    gemm = get_blas_funcs("gemm", dtype=dtype)
    # column-major C.T = B.T @ A.T has the same memory as row-major C
    c_t = gemm(1.0, op_b.array, op_a.array, trans_a=1 - op_b.trans, trans_b=1 - op_a.trans)
    return _finish(c_t.T, (m, n), out)


def matvec(a: Tensor, v: Tensor, out: Optional[Tensor] = None) -> Tensor:
    """
    Matrix-vector product through gemv.

    Raises:
        ShapeMismatch: If ``a`` is not rank 2, ``v`` is not rank 1, or their
            extents do not line up.
        UnsupportedElementType: For non floating point operands.
    """
    a = _as_tensor(a, "a")
    v = _as_tensor(v, "v")
    if a.rank != 2 or v.rank != 1:
        raise ShapeMismatch(f"matvec expects a matrix and a vector, got shapes {a.shape} and {v.shape}")
    m, n = a.shape
    if v.shape[0] != n:
        raise ShapeMismatch(f"matvec extents differ: {a.shape} @ {v.shape}")
    dtype = blas_dtype(a, v)

    if m == 0 or n == 0:
        return _finish(np.zeros(m, dtype=dtype), (m,), out)

    op_a = prepare_matrix(a, dtype, "a")
    x = prepare_vector(v, dtype, "v")
    gemv = get_blas_funcs("gemv", dtype=dtype)
    y = gemv(1.0, op_a.array, x.array, offx=x.offset, incx=x.inc, trans=op_a.trans)
    return _finish(y, (m,), out)


__all__ = [
    "BLAS_DTYPES",
    "BlasOperand",
    "BlasVector",
    "blas_dtype",
    "prepare_matrix",
    "prepare_vector",
    "matmul",
    "matvec",
]
