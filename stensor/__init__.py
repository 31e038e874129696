"""
stensor - a strided tensor storage and view engine.

This package provides a Tensor handle made of a shared flat storage buffer
and a (shape, strides, offset) layout, zero-copy slicing and transposition,
and matmul/matvec routed to native BLAS routines.
"""

import sys

# --- Check Dependencies ---
# setup.py requires numpy and scipy, but report a broken environment clearly
# instead of failing deep inside a submodule.
try:
    import numpy
    import scipy
except ImportError as e:
    print("Error: stensor requires NumPy and SciPy but they could not be imported.", file=sys.stderr)
    print("Please install them: pip install numpy scipy", file=sys.stderr)
    raise e from None


# --- Re-export Core Components ---

from .errors import (
    InvalidReshape,
    IndexOutOfBounds,
    ShapeMismatch,
    TensorError,
    UnsupportedElementType,
)
from .config import TensorOptions, get_options, options, set_options
from .contiguity import Contiguity
from .layout import Layout
from .storage import Storage
from .tensor import Tensor, as_strided

# Tensor creation functions
from .creation import arange, empty, full, ones, rand_uniform, randn, tensor, zeros

# Linear algebra
from .blas import matmul, matvec

from .log import setup_logging

# --- Version Information ---
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("stensor")
except PackageNotFoundError:
    # running from a source checkout; keep in sync with setup.py
    __version__ = "0.1.0"

# --- Clean up namespace ---
del sys
del numpy
del scipy
del PackageNotFoundError, version

__all__ = [
    # Core
    "Tensor",
    "Storage",
    "Layout",
    "Contiguity",
    "__version__",
    # Creation Ops
    "empty",
    "tensor",
    "zeros",
    "ones",
    "full",
    "arange",
    "rand_uniform",
    "randn",
    # Views
    "as_strided",
    # Linear algebra
    "matmul",
    "matvec",
    # Errors
    "TensorError",
    "ShapeMismatch",
    "IndexOutOfBounds",
    "UnsupportedElementType",
    "InvalidReshape",
    # Options and logging
    "TensorOptions",
    "get_options",
    "set_options",
    "options",
    "setup_logging",
]
