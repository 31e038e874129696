"""
View and slice engine.

Everything here maps a ``Layout`` to a new ``Layout`` over the same storage.
No function in this module reads or writes element data; the only deep copy
is ``Tensor.clone``.
"""

import operator
from typing import List, Optional, Sequence, Tuple

from .errors import IndexOutOfBounds, InvalidReshape, ShapeMismatch
from .layout import Layout, shape_size


# --- Slicing ---

def normalize_spec(spec, rank: int) -> Tuple:
    """
    Expand a slice specification to exactly one entry per axis.

    Entries are ints (collapse the axis) or ``slice`` objects. One ``...``
    stands for as many whole axes as needed; missing trailing axes are taken
    whole.

    Raises:
        IndexOutOfBounds: If the spec indexes more axes than the tensor has.
        TypeError: For entries that are neither ints, slices nor ``...``.
    """
    if not isinstance(spec, tuple):
        spec = (spec,)
    entries = []
    ellipsis_seen = False
    for entry in spec:
        if entry is Ellipsis:
            if ellipsis_seen:
                raise IndexError("An index can only have a single ellipsis ('...')")
            ellipsis_seen = True
            entries.append(entry)
        elif isinstance(entry, slice):
            entries.append(entry)
        else:
            try:
                entries.append(operator.index(entry))
            except TypeError:
                raise TypeError(
                    f"Indices must be integers, slices or '...', got {type(entry).__name__}"
                ) from None
    explicit = len(entries) - (1 if ellipsis_seen else 0)
    if explicit > rank:
        raise IndexOutOfBounds(f"Too many indices: {explicit} given for a tensor of rank {rank}")
    fill = [slice(None)] * (rank - explicit)
    if ellipsis_seen:
        at = entries.index(Ellipsis)
        entries[at:at + 1] = fill
    else:
        entries.extend(fill)
    return tuple(entries)


def slice_layout(layout: Layout, spec) -> Layout:
    """
    Layout of ``tensor[spec]``.

    Kept axes get extent ``len(range(start, stop, step))`` and stride
    ``stride * step``; every start (and every collapsing integer) advances
    the offset by ``start * stride``. Integers may be negative and count
    from the end of their axis.

    Raises:
        IndexOutOfBounds: For integers outside their axis after wrapping.
        ValueError: For a zero slice step.
    """
    entries = normalize_spec(spec, layout.rank)
    shape = []
    strides = []
    offset = layout.offset
    for axis, (entry, extent, stride) in enumerate(zip(entries, layout.shape, layout.strides)):
        if isinstance(entry, slice):
            start, stop, step = entry.indices(extent)
            count = len(range(start, stop, step))
            if count:
                offset += start * stride
            shape.append(count)
            strides.append(stride * step)
        else:
            i = entry + extent if entry < 0 else entry
            if not 0 <= i < extent:
                raise IndexOutOfBounds(
                    f"Index {entry} is out of bounds for axis {axis} with extent {extent}"
                )
            offset += i * stride
    return Layout(tuple(shape), tuple(strides), offset)


def is_element_spec(spec, rank: int) -> bool:
    """True when ``spec`` names a single element with one integer per axis."""
    if not isinstance(spec, tuple):
        spec = (spec,)
    if len(spec) != rank:
        return False
    for entry in spec:
        if entry is Ellipsis or isinstance(entry, slice):
            return False
        try:
            operator.index(entry)
        except TypeError:
            return False
    return True


# --- Transposition ---

def check_permutation(axes: Sequence[int], rank: int) -> Tuple[int, ...]:
    """Validate ``axes`` as a permutation of ``range(rank)``; negative axes wrap."""
    if len(axes) != rank:
        raise ShapeMismatch(f"Permutation {tuple(axes)} does not match a tensor of rank {rank}")
    resolved = []
    for axis in axes:
        axis = operator.index(axis)
        if axis < 0:
            axis += rank
        if not 0 <= axis < rank:
            raise ShapeMismatch(f"Axis {axis} is out of range for a tensor of rank {rank}")
        resolved.append(axis)
    if len(set(resolved)) != rank:
        raise ShapeMismatch(f"Permutation {tuple(axes)} repeats an axis")
    return tuple(resolved)


def inverse_permutation(axes: Sequence[int]) -> Tuple[int, ...]:
    inverse = [0] * len(axes)
    for position, axis in enumerate(axes):
        inverse[axis] = position
    return tuple(inverse)


def permute_layout(layout: Layout, axes: Sequence[int]) -> Layout:
    """Reorder shape and strides; the offset and the data stay put."""
    axes = check_permutation(axes, layout.rank)
    return Layout(
        tuple(layout.shape[a] for a in axes),
        tuple(layout.strides[a] for a in axes),
        layout.offset,
    )


# --- Reshape ---

def resolve_shape(shape: Sequence[int], size: int) -> Tuple[int, ...]:
    """
    Fill in a single ``-1`` extent and check the element count.

    Raises:
        InvalidReshape: If an extent is not an integer, the element count
            differs or ``-1`` cannot be inferred.
    """
    try:
        shape = [operator.index(n) for n in shape]
    except TypeError as e:
        raise InvalidReshape(f"Extents must be integers, got {tuple(shape)}") from e
    unknown = [k for k, n in enumerate(shape) if n == -1]
    if len(unknown) > 1:
        raise InvalidReshape(f"Only one extent can be -1, got {tuple(shape)}")
    if any(n < -1 for n in shape):
        raise InvalidReshape(f"Invalid extent in {tuple(shape)}")
    if unknown:
        known = shape_size(n for n in shape if n != -1)
        if known == 0 or size % known:
            raise InvalidReshape(f"Cannot infer -1 when reshaping {size} elements to {tuple(shape)}")
        shape[unknown[0]] = size // known
    if shape_size(shape) != size:
        raise InvalidReshape(f"Cannot reshape {size} elements into shape {tuple(shape)}")
    return tuple(shape)


def reshape_layout(layout: Layout, new_shape: Sequence[int]) -> Optional[Layout]:
    """
    Layout with ``new_shape`` over the same elements, if strides can express it.

    Groups of old axes are matched with groups of new axes of equal element
    count; a group can be re-split only if its old axes are chained (each
    stride is the next stride times the next extent). Returns ``None`` when
    some group is not, meaning a copy is required. ``new_shape`` must
    already hold the same number of elements.
    """
    new_shape = tuple(new_shape)
    if layout.size == 0 or layout.rank == 0:
        return Layout.contiguous(new_shape, layout.offset)

    old = [(n, s) for n, s in zip(layout.shape, layout.strides) if n != 1]
    old_dims = [n for n, _ in old]
    old_strides = [s for _, s in old]
    new_strides: List[int] = [0] * len(new_shape)

    oi, oj = 0, 1
    ni, nj = 0, 1
    while ni < len(new_shape) and oi < len(old_dims):
        new_count = new_shape[ni]
        old_count = old_dims[oi]
        while new_count != old_count:
            if new_count < old_count:
                new_count *= new_shape[nj]
                nj += 1
            else:
                old_count *= old_dims[oj]
                oj += 1
        for k in range(oi, oj - 1):
            if old_strides[k] != old_dims[k + 1] * old_strides[k + 1]:
                return None
        new_strides[nj - 1] = old_strides[oj - 1]
        for k in range(nj - 1, ni, -1):
            new_strides[k - 1] = new_strides[k] * new_shape[k]
        ni, nj = nj, nj + 1
        oi, oj = oj, oj + 1

    # trailing extent-1 axes
    last = new_strides[ni - 1] if ni > 0 else 1
    for k in range(ni, len(new_shape)):
        new_strides[k] = last
    return Layout(new_shape, tuple(new_strides), layout.offset)


# --- Broadcasting ---

def broadcast_layout(layout: Layout, shape: Sequence[int]) -> Layout:
    """
    Zero-stride view of ``layout`` stretched to ``shape``.

    Shapes are aligned on the right; missing leading axes and extent-1 axes
    are repeated with stride 0.

    Raises:
        ShapeMismatch: If an axis is neither equal to the target nor 1, or the
            target has a lower rank.
    """
    shape = tuple(shape)
    pad = len(shape) - layout.rank
    if pad < 0:
        raise ShapeMismatch(f"Cannot broadcast shape {layout.shape} to lower rank shape {shape}")
    src_shape = (1,) * pad + layout.shape
    src_strides = (0,) * pad + layout.strides
    strides = []
    for extent, target, stride in zip(src_shape, shape, src_strides):
        if extent == target:
            strides.append(stride)
        elif extent == 1:
            strides.append(0)
        else:
            raise ShapeMismatch(f"Cannot broadcast shape {layout.shape} to {shape}")
    return Layout(shape, tuple(strides), layout.offset)


__all__ = [
    "normalize_spec",
    "slice_layout",
    "is_element_spec",
    "check_permutation",
    "inverse_permutation",
    "permute_layout",
    "resolve_shape",
    "reshape_layout",
    "broadcast_layout",
]
