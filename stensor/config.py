"""
Process-wide options for stensor.

Options only affect defaults (the dtype picked for floating data) and
printing. They are plain in-memory values; nothing is read from the
environment or from files.
"""

from contextlib import contextmanager
from dataclasses import dataclass, fields, replace
from typing import Iterator

import numpy as np


@dataclass(frozen=True)
class TensorOptions:
    """Defaults used by constructors and ``repr``."""

    default_dtype: str = "float32"
    repr_precision: int = 4
    repr_threshold: int = 1000

    def __post_init__(self):
        if np.dtype(self.default_dtype).kind not in "fc":
            raise TypeError(
                f"default_dtype must be a floating or complex type, got {self.default_dtype!r}"
            )
        if self.repr_precision < 0 or self.repr_threshold < 0:
            raise ValueError("repr_precision and repr_threshold must be non-negative")


_current = TensorOptions()


def get_options() -> TensorOptions:
    """Return the options currently in effect."""
    return _current


def set_options(**changes) -> TensorOptions:
    """
    Replace some options and return the previous ones.

    Raises:
        TypeError: If a keyword is not a field of ``TensorOptions``.
    """
    global _current
    known = {f.name for f in fields(TensorOptions)}
    unknown = set(changes) - known
    if unknown:
        raise TypeError(f"Unknown option(s): {', '.join(sorted(unknown))}")
    previous = _current
    _current = replace(_current, **changes)
    return previous


@contextmanager
def options(**changes) -> Iterator[TensorOptions]:
    """Temporarily change options, restoring the previous ones on exit."""
    global _current
    previous = set_options(**changes)
    try:
        yield _current
    finally:
        _current = previous


def default_dtype() -> np.dtype:
    return np.dtype(_current.default_dtype)


__all__ = [
    "TensorOptions",
    "get_options",
    "set_options",
    "options",
    "default_dtype",
]
