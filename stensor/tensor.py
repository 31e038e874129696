"""
Defines the Tensor handle for stensor.

A ``Tensor`` is a ``Storage`` plus a ``Layout`` (shape, strides, offset).
Slicing, transposition, reshaping and broadcasting build new handles over
the same ``Storage``; writes through any of them are visible through all the
others. ``clone`` is the only operation that copies element data into a new
buffer.
"""

from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np

from . import views
from .config import get_options
from .contiguity import Contiguity, classify
from .errors import InvalidReshape, ShapeMismatch
from .indexing import ElementSequence, offset_of, offsets
from .layout import Layout, check_same_shape, normalize_shape
from .storage import Storage


class Tensor:
    """
    Strided N-dimensional array handle.

    Args:
        storage (Storage): Buffer holding the elements.
        layout (Layout): Shape, strides and offset into ``storage``.

    Most code builds tensors with ``stensor.tensor``, ``stensor.zeros`` and
    friends rather than calling this constructor directly.
    """

    __slots__ = ("_storage", "_layout")

    def __init__(self, storage: Storage, layout: Layout):
        layout.validate(len(storage))
        self._storage = storage
        self._layout = layout

    @classmethod
    def _view(cls, storage: Storage, layout: Layout) -> "Tensor":
        # layouts derived by the view engine are in bounds by construction
        t = cls.__new__(cls)
        t._storage = storage
        t._layout = layout
        return t

    # --- Introspection ---

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def layout(self) -> Layout:
        return self._layout

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._layout.shape

    @property
    def strides(self) -> Tuple[int, ...]:
        """Per-axis strides, in elements."""
        return self._layout.strides

    @property
    def offset(self) -> int:
        return self._layout.offset

    @property
    def rank(self) -> int:
        return self._layout.rank

    ndim = rank

    @property
    def size(self) -> int:
        return self._layout.size

    @property
    def dtype(self) -> np.dtype:
        return self._storage.dtype

    def contiguity(self) -> Contiguity:
        """Recomputed from shape and strides on every call."""
        return classify(self._layout.shape, self._layout.strides)

    is_contiguous = contiguity

    def shares_storage(self, other: "Tensor") -> bool:
        return self._storage is other._storage

    def __len__(self) -> int:
        if self.rank == 0:
            raise TypeError("len() of a rank-0 tensor")
        return self.shape[0]

    # --- Element access ---

    def get(self, index: Sequence[int]) -> Any:
        """
        Read one element.

        Raises:
            IndexOutOfBounds: If ``index`` is not a valid multi-index.
        """
        return self._storage.data[offset_of(self._layout, tuple(index))].item()

    def set(self, index: Sequence[int], value) -> None:
        """Write one element in place."""
        self._storage.data[offset_of(self._layout, tuple(index))] = value

    def elements(self) -> ElementSequence:
        """Lazy, restartable sequence of all elements in logical order."""
        return ElementSequence(self._storage, self._layout)

    def __iter__(self):
        return iter(self.elements())

    # --- Views ---

    def slice(self, spec) -> "Tensor":
        """View selecting ``spec``; always a Tensor, possibly of rank 0."""
        return Tensor._view(self._storage, views.slice_layout(self._layout, spec))

    def __getitem__(self, spec):
        if views.is_element_spec(spec, self.rank):
            return self.slice(spec).item()
        return self.slice(spec)

    def __setitem__(self, spec, value) -> None:
        self.slice(spec).assign(value)

    def assign(self, value) -> None:
        """
        Write ``value`` into every element of this view.

        ``value`` is either a scalar, which fills the view, or a Tensor /
        nested sequence with exactly this view's shape. The storage is
        modified in place.

        Raises:
            ShapeMismatch: If ``value`` has a different shape.
        """
        positions = offsets(self._layout)
        data = self._storage.data
        if isinstance(value, Tensor):
            check_same_shape(value.shape, self.shape, "slice and assigned value")
            # gathered into a fresh array first, so overlapping views are safe
            data[positions] = value._storage.data[offsets(value._layout)]
            return
        try:
            source = np.asarray(value)
        except ValueError as e:
            raise ShapeMismatch(f"Cannot assign a ragged sequence: {e}") from e
        if source.ndim == 0:
            data[positions] = source
        else:
            check_same_shape(source.shape, self.shape, "slice and assigned value")
            data[positions] = source.reshape(-1)

    def fill(self, value) -> "Tensor":
        self._storage.data[offsets(self._layout)] = value
        return self

    def transpose(self, *axes) -> "Tensor":
        """
        View with permuted axes.

        ``t.transpose()`` reverses the axes; otherwise pass a full permutation,
        either as separate ints or as one sequence.
        """
        if not axes:
            axes = tuple(reversed(range(self.rank)))
        elif len(axes) == 1 and hasattr(axes[0], "__iter__"):
            axes = tuple(axes[0])
        return Tensor._view(self._storage, views.permute_layout(self._layout, axes))

    permute = transpose

    @property
    def T(self) -> "Tensor":
        return self.transpose()

    def reshape(self, *shape, copy: bool = False) -> "Tensor":
        """
        Tensor with the same elements and a new shape.

        Returns a view whenever strides alone can express the new shape,
        which is always the case for row-major tensors. Otherwise raises
        InvalidReshape, unless ``copy=True``, in which case the data is
        cloned first. One extent may be ``-1``.

        Raises:
            InvalidReshape: On an element count mismatch, or when a copy
                would be needed and ``copy`` is False.
        """
        if len(shape) == 1 and hasattr(shape[0], "__iter__"):
            shape = tuple(shape[0])
        new_shape = views.resolve_shape(shape, self.size)
        layout = views.reshape_layout(self._layout, new_shape)
        if layout is not None:
            return Tensor._view(self._storage, layout)
        if not copy:
            raise InvalidReshape(
                f"Cannot reshape a tensor with shape {self.shape} and strides {self.strides} "
                f"to {new_shape} without copying; pass copy=True or clone() first"
            )
        return self.clone().reshape(new_shape)

    def broadcast_to(self, *shape) -> "Tensor":
        """Zero-stride view repeating this tensor to ``shape``."""
        target = normalize_shape(*shape)
        return Tensor._view(self._storage, views.broadcast_layout(self._layout, target))

    # --- Copies ---

    def clone(self) -> "Tensor":
        """Deep copy into a new row-major buffer, element by element in logical order."""
        data = self._storage.data[offsets(self._layout)]
        return Tensor._view(Storage(data), Layout.contiguous(self.shape))

    def contiguous(self) -> "Tensor":
        """``self`` if already row-major, else a clone."""
        if self.contiguity() is Contiguity.ROW_MAJOR:
            return self
        return self.clone()

    def astype(self, dtype) -> "Tensor":
        """Row-major copy converted to ``dtype``."""
        data = self._storage.data[offsets(self._layout)].astype(dtype)
        return Tensor._view(Storage(data), Layout.contiguous(self.shape))

    def numpy(self) -> np.ndarray:
        """Independent numpy copy of the data."""
        return self._storage.data[offsets(self._layout)].reshape(self.shape)

    def __array__(self, dtype=None, copy=None):
        array = self.numpy()
        return array if dtype is None else array.astype(dtype, copy=False)

    def tolist(self) -> Union[List, Any]:
        return self.numpy().tolist()

    def item(self) -> Any:
        if self.size != 1:
            raise ShapeMismatch(f"item() needs exactly one element, tensor has shape {self.shape}")
        return self._storage.data[self._layout.offset].item()

    # --- Linear algebra ---

    def matmul(self, other: "Tensor", out: Optional["Tensor"] = None) -> "Tensor":
        from .blas import matmul, matvec
        if isinstance(other, Tensor) and other.rank == 1:
            return matvec(self, other, out=out)
        return matmul(self, other, out=out)

    def __matmul__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        return self.matmul(other)

    # --- Printing ---

    def __repr__(self):
        opts = get_options()
        body = np.array2string(
            self.numpy(),
            precision=opts.repr_precision,
            threshold=opts.repr_threshold,
            separator=", ",
            prefix="tensor(",
        )
        return f"tensor({body}, dtype={self.dtype})"


def as_strided(base: Tensor, shape: Sequence[int], strides: Sequence[int], offset: int = 0) -> Tensor:
    """
    Arbitrary view over ``base``'s storage.

    Raises:
        IndexOutOfBounds: If the layout could address positions outside the
            storage.
    """
    if not isinstance(base, Tensor):
        raise TypeError(f"as_strided expects a Tensor, got {type(base).__name__}")
    layout = Layout(normalize_shape(shape), tuple(int(s) for s in strides), int(offset))
    return Tensor(base.storage, layout)


__all__ = [
    "Tensor",
    "as_strided",
]
