"""Dimension-aware array methods.

Each function computes the new dimensions from the old ones and applies the
matching positional numpy operation to the payload.

Storage model for ordered dimensions: array position ``j`` holds index
position ``j`` when the array order is Forward and ``n - 1 - j`` when it is
Reverse. The relation therefore says whether coordinates increase along the
array axis. Dimensions without an order are always stored aligned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from enum import Enum
from numbers import Integral

import numpy as np
import pandas as pd

from .array import DimArray
from .dimension import (
    Dimension,
    DimType,
    StepRange,
    _detect_order,
    bounds,
    format_dimension,
)
from .exceptions import DimensionMismatchError, ShapeError
from .mode import (
    FORWARD,
    REVERSE,
    ArrayOrder,
    Categorical,
    IndexOrder,
    Irregular,
    NoIndex,
    OrderAspect,
    Ordered,
    OrderTarget,
    Regular,
    Sampled,
)
from .mode import flip as flip_order
from .mode import reverse as reverse_mode
from .options import OPTIONS
from .primitives import (
    _anti_aligned,
    _as_queries,
    align_storage,
    check_matching_dims,
    dimnum,
    dimnums,
    hasdim,
    reducedims,
    slicedim,
)

__all__ = [
    "Rotation",
    "reverse",
    "flip",
    "reorder",
    "permutedims",
    "transpose",
    "rottype",
    "rotl90",
    "rotr90",
    "rot180",
    "cat",
    "dropdims",
    "eachslice",
    "mapslices",
    "modify",
    "dimwise",
    "diff",
    "cov",
    "cor",
    "unique",
]

logger = logging.getLogger(__name__)


def _axes(A: DimArray, dims) -> tuple[int, ...]:
    if dims is None:
        return tuple(range(A.ndim))
    return dimnums(A.dims, _as_queries(dims))


def _reversed_index(val):
    if isinstance(val, StepRange):
        return val.reversed()
    return val[::-1]


def _array_values(dim: Dimension) -> np.ndarray:
    """Index values in storage order."""
    values = dim.values
    return values[::-1] if _anti_aligned(dim) else values


# =============================================================================
# Reverse, flip and reorder
# =============================================================================


def _reverse_dim(aspect: OrderAspect, dim: Dimension) -> Dimension:
    if not isinstance(getattr(dim.mode, "order", None), Ordered):
        return dim.replace(val=_reversed_index(dim.val))
    new_mode = reverse_mode(aspect, dim.mode)
    if aspect is IndexOrder:
        return dim.replace(val=_reversed_index(dim.val), mode=new_mode)
    return dim.replace(mode=new_mode)


def reverse(aspect: OrderAspect, obj, dims=None):
    """
    Reverse one order component of a Dimension or of some dims of an array.

    Parameters
    ----------
    aspect : OrderAspect
        ``IndexOrder`` reverses the index together with the payload axis, so
        every cell keeps its coordinate; index order and relation flip.
        ``ArrayOrder`` and ``Relation`` reverse the payload axis alone;
        array order and relation flip and the index is untouched.
    obj : Dimension or DimArray
    dims : dimension query or list of them, optional
        Dims of an array to reverse. All dims when omitted.

    Dimensions without an order have their index and payload reversed
    together whatever the aspect.
    """
    if isinstance(obj, Dimension):
        return _reverse_dim(aspect, obj)
    axes = _axes(obj, dims)
    new_dims = list(obj.dims)
    data = obj.data
    for n in axes:
        new_dims[n] = _reverse_dim(aspect, new_dims[n])
        data = np.flip(data, axis=n)
    logger.debug("reverse %r on axes %s", aspect, axes)
    return obj.rebuild(data=data, dims=tuple(new_dims))


def _flip_dim(aspect: OrderAspect, dim: Dimension) -> Dimension:
    order_ = getattr(dim.mode, "order", None)
    if not isinstance(order_, Ordered):
        return dim
    return dim.replace(mode=dim.mode.replace(order=flip_order(aspect, order_)))


def flip(aspect: OrderAspect, obj, dims=None):
    """Flip an order flag without touching index or payload."""
    if isinstance(obj, Dimension):
        return _flip_dim(aspect, obj)
    new_dims = list(obj.dims)
    for n in _axes(obj, dims):
        new_dims[n] = _flip_dim(aspect, new_dims[n])
    return obj.rebuild(dims=tuple(new_dims))


def _targets(A: DimArray, target, dims, by_name) -> dict[int, OrderTarget]:
    targets: dict[int, OrderTarget] = {}
    if isinstance(target, OrderTarget):
        for n in _axes(A, dims):
            targets[n] = target
    elif isinstance(target, Mapping):
        for query, t in target.items():
            targets[dimnum(A.dims, query)] = t
    elif target is not None:
        for query, t in target:
            targets[dimnum(A.dims, query)] = t
    for query, t in by_name.items():
        targets[dimnum(A.dims, query)] = t
    for t in targets.values():
        if not isinstance(t, OrderTarget):
            raise TypeError(f"Expected an OrderTarget such as ForwardIndex, got {t!r}")
    return targets


def reorder(A: DimArray, target=None, dims=None, **by_name) -> DimArray:
    """
    Bring order components to a target direction.

    Accepts a single ``OrderTarget`` for all dims (or the dims given), a
    mapping ``{dim: target}``, ``(dim, target)`` pairs or keyword arguments.
    Each dimension is reversed at most once, and only when it is not already
    at its target.

    Examples
    --------
    >>> reorder(A, ForwardIndex)  # doctest: +SKIP
    >>> reorder(A, X=ReverseArray, Y=ForwardIndex)  # doctest: +SKIP
    """
    result = A
    for n, t in _targets(A, target, dims, by_name).items():
        dim = A.dims[n]
        order_ = getattr(dim.mode, "order", None)
        if not isinstance(order_, Ordered):
            logger.debug("reorder: %r has no order, skipped", dim.name)
            continue
        if order_.get(t.aspect) is t.direction:
            logger.debug("reorder: %r already at %r", dim.name, t)
            continue
        logger.debug("reorder: reversing %r to reach %r", dim.name, t)
        result = reverse(t.aspect, result, dims=n)
    return result


# =============================================================================
# Permutation and rotation
# =============================================================================


def permutedims(A: DimArray, order=None) -> DimArray:
    """Permute the dims and the payload axes together; reverse them by default."""
    if order is None:
        axes = tuple(reversed(range(A.ndim)))
    else:
        axes = dimnums(A.dims, _as_queries(order))
        if len(axes) != A.ndim:
            raise DimensionMismatchError(
                f"A permutation must name all {A.ndim} dimensions, got {len(axes)}"
            )
    return A.rebuild(
        data=np.transpose(A.data, axes), dims=tuple(A.dims[n] for n in axes)
    )


transpose = permutedims


class Rotation(Enum):
    """Quarter turns of a matrix, counterclockwise."""

    ROT360 = 0
    ROT90 = 1
    ROT180 = 2
    ROT270 = 3


def rottype(k: int) -> Rotation:
    """Normalise ``k`` quarter turns to one of the four rotations."""
    return Rotation(k % 4)


def _rot90(A: DimArray) -> DimArray:
    return reverse(ArrayOrder, permutedims(A), dims=0)


def _rot180(A: DimArray) -> DimArray:
    return reverse(ArrayOrder, A, dims=(0, 1))


def _rot270(A: DimArray) -> DimArray:
    return reverse(ArrayOrder, permutedims(A), dims=1)


def _rot360(A: DimArray) -> DimArray:
    return A


_ROTATIONS = {
    Rotation.ROT90: _rot90,
    Rotation.ROT180: _rot180,
    Rotation.ROT270: _rot270,
    Rotation.ROT360: _rot360,
}


def _check_matrix(A: DimArray) -> None:
    if A.ndim != 2:
        raise ShapeError(
            "Rotation needs a 2 dimensional array", names=("ndim",), shapes=(A.ndim,)
        )


def rotl90(A: DimArray, k: int = 1) -> DimArray:
    """Rotate ``k`` quarter turns counterclockwise, like ``numpy.rot90``."""
    _check_matrix(A)
    return _ROTATIONS[rottype(k)](A)


def rotr90(A: DimArray, k: int = 1) -> DimArray:
    """Rotate ``k`` quarter turns clockwise."""
    _check_matrix(A)
    return _ROTATIONS[rottype(-k)](A)


def rot180(A: DimArray) -> DimArray:
    _check_matrix(A)
    return _rot180(A)


# =============================================================================
# Concatenation
# =============================================================================


def _check_others(arrays, skip: int | None, strict: bool) -> None:
    first = arrays[0]
    for other in arrays[1:]:
        if [d.name for d in other.dims] != [d.name for d in first.dims]:
            raise DimensionMismatchError(
                f"Cannot concatenate arrays with dims {[d.name for d in first.dims]} "
                f"and {[d.name for d in other.dims]}"
            )
        for n, (a, b) in enumerate(zip(first.dims, other.dims)):
            if n == skip:
                continue
            check_matching_dims((a,), (b,))
            if strict and a != b:
                raise DimensionMismatchError(
                    f"Dimension {a.name!r} differs between the arrays; "
                    "pass strict=False to concatenate anyway"
                )


def _array_step(dim: Dimension):
    step = dim.mode.span.step
    return -step if _anti_aligned(dim) else step


def _contiguous(a: Dimension, b: Dimension, step) -> bool:
    if len(a) == 0 or len(b) == 0:
        return True
    expected = _array_values(a)[-1] + step
    first = _array_values(b)[0]
    try:
        return bool(np.isclose(first, expected))
    except TypeError:
        return bool(first == expected)


def _cat_dim(parts: list[Dimension]) -> Dimension:
    """The concatenation of ``parts`` along their axis, stored aligned."""
    first = parts[0]
    kinds = {type(d.mode) for d in parts}
    if len(kinds) != 1:
        raise DimensionMismatchError(
            f"Cannot concatenate {first.name!r} dimensions with modes "
            f"{sorted(k.__name__ for k in kinds)}"
        )
    total = sum(len(d) for d in parts)
    mode = first.mode
    if isinstance(mode, NoIndex):
        return first.replace(val=StepRange(0, 1, total))

    values = np.concatenate([_array_values(d) for d in parts])
    if isinstance(mode, Categorical):
        index = pd.Index(values)
        return first.replace(val=index, mode=Categorical(_detect_order(index)))

    regular = all(isinstance(d.mode.span, Regular) for d in parts)
    if regular:
        steps = [_array_step(d) for d in parts]
        step = steps[0]
        regular = total > 0 and all(s == step for s in steps) and all(
            _contiguous(a, b, step) for a, b in zip(parts, parts[1:])
        )
    if regular:
        logger.debug("cat %r: contiguous with step %r, span stays Regular", first.name, step)
        index = StepRange(values[0].item(), step, total)
        order_ = Ordered(FORWARD if step > 0 else REVERSE)
        return first.replace(val=index, mode=Sampled(order_, Regular(step), mode.sampling))

    edges = [bounds(d) for d in parts if len(d)]
    lo = min(e[0] for e in edges) if edges else None
    hi = max(e[1] for e in edges) if edges else None
    logger.debug("cat %r: span becomes Irregular(%r, %r)", first.name, lo, hi)
    index = pd.Index(values)
    return first.replace(
        val=index, mode=Sampled(_detect_order(index), Irregular((lo, hi)), mode.sampling)
    )


def _as_new_dim(query) -> Dimension:
    if isinstance(query, DimType):
        return query()
    if isinstance(query, Dimension):
        return query
    return Dimension(query)


def _with_new_axes(A: DimArray, queries) -> DimArray:
    """``A`` with a trailing length-1 axis for each new dimension in ``queries``."""
    new_dims = []
    for query in queries:
        if isinstance(query, Integral) or hasdim(A.dims, query):
            raise DimensionMismatchError(
                f"Only the last of several cat dims may already exist, got {query!r}"
            )
        new_dims.append(_as_new_dim(query))
    data = A.data.reshape(A.shape + (1,) * len(new_dims))
    return A.rebuild(data=data, dims=A.dims + tuple(new_dims))


def cat(*arrays: DimArray, dims, strict: bool | None = None) -> DimArray:
    """
    Concatenate arrays along an existing dimension or stack them along a new one.

    Parameters
    ----------
    *arrays : DimArray
    dims : dimension query, Dimension, or tuple of them
        An existing dimension to concatenate along, or a new dimension
        (optionally with one coordinate per array) to stack along. The new
        dimension is appended as the last axis. An ``int`` is always an
        existing axis; pass ``Dimension(n)`` to stack along a new dimension
        named by an integer.
        A tuple adds every entry but the last as a new length-1 dimension,
        then joins along the last one.
    strict : bool, optional
        Require the other dimensions to be equal, not only the same length.
        Defaults to the ``strict_cat`` option.

    Inputs whose ordered dims store their coordinates the other way round
    from the first array are flipped to match it before joining.

    The concatenated index keeps a ``Regular`` span only when every input is
    Regular with the same step and each one starts where the previous ends;
    otherwise it becomes ``Irregular`` over the extent of all inputs.
    """
    if not arrays:
        raise ValueError("cat needs at least one array")
    strict = OPTIONS["strict_cat"] if strict is None else strict
    if isinstance(dims, tuple):
        if not dims:
            raise ValueError("cat needs at least one dimension")
        *extra, dims = dims
        arrays = tuple(_with_new_axes(a, extra) for a in arrays)
    first = arrays[0]

    if isinstance(dims, Integral) or hasdim(first.dims, dims):
        n = dimnum(first.dims, dims)
        _check_others(arrays, n, strict)
        new_dim = _cat_dim([a.dims[n] for a in arrays])
        others = first.dims[:n] + first.dims[n + 1 :]
        data = np.concatenate(
            [align_storage(others, a.dims, a.data) for a in arrays], axis=n
        )
        new_dims = first.dims[:n] + (new_dim,) + first.dims[n + 1 :]
        return first.rebuild(data=data, dims=new_dims)

    _check_others(arrays, None, strict)
    dims = _as_new_dim(dims)
    data = np.stack([align_storage(first.dims, a.dims, a.data) for a in arrays], axis=-1)
    return first.rebuild(data=data, dims=first.dims + (dims,))


# =============================================================================
# Slices
# =============================================================================


def dropdims(A: DimArray, dims) -> DimArray:
    """Remove length-1 axes, keeping their dimensions in ``refdims``."""
    axes = dimnums(A.dims, _as_queries(dims))
    for n in axes:
        if A.shape[n] != 1:
            raise ShapeError(
                f"Cannot drop dimension {A.dims[n].name!r}",
                names=(str(A.dims[n].name),),
                shapes=(A.shape[n],),
            )
    kept = tuple(d for n, d in enumerate(A.dims) if n not in axes)
    dropped = tuple(A.dims[n] for n in axes)
    return A.rebuild(
        data=np.squeeze(A.data, axis=axes), dims=kept, refdims=A.refdims + dropped
    )


def eachslice(A: DimArray, dims) -> Iterator[DimArray]:
    """Iterate over the positions of one dimension."""
    queries = _as_queries(dims)
    if len(queries) != 1:
        raise ValueError(f"eachslice iterates over a single dimension, got {len(queries)}")
    n = dimnum(A.dims, queries[0])
    lead = (slice(None),) * n
    return (A[lead + (i,)] for i in range(A.shape[n]))


def mapslices(func: Callable, A: DimArray, dims) -> DimArray:
    """
    Apply ``func`` to every slice spanning ``dims``.

    ``func`` receives a plain ndarray with the spanned axes in the order
    they were requested. Scalar results reduce those dims as a reduction
    would; results with the slice's shape keep them.
    """
    axes = dimnums(A.dims, _as_queries(dims))
    k = len(axes)
    moved = np.moveaxis(A.data, axes, tuple(range(-k, 0)))
    outer = moved.shape[: moved.ndim - k]
    inner = moved.shape[moved.ndim - k :]
    results = [np.asarray(func(moved[idx])) for idx in np.ndindex(outer)]

    if all(r.ndim == 0 for r in results):
        out = np.array([r.item() for r in results]).reshape(outer)
        out = np.expand_dims(out, tuple(sorted(axes)))
        return A.rebuild(data=out, dims=reducedims(A.dims, axes))
    if all(r.shape == inner for r in results):
        out = np.stack(results).reshape(outer + inner)
        out = np.moveaxis(out, tuple(range(-k, 0)), axes)
        return A.rebuild(data=out)
    raise ShapeError(
        "mapslices needs scalar results or results shaped like the slice",
        names=("slice", "result"),
        shapes=(inner, results[0].shape),
    )


# =============================================================================
# Modify and dimwise
# =============================================================================


def _remodel(dim: Dimension, values: np.ndarray) -> Dimension:
    """``dim`` with new index values, keeping its mode kind and sampling."""
    mode = dim.mode
    if isinstance(mode, Sampled):
        if isinstance(mode.span, Regular) and len(values) > 1:
            steps = np.diff(values)
            if np.allclose(steps, steps[0]) and steps[0] != 0:
                step = steps[0].item()
                return dim.replace(
                    val=StepRange(values[0].item(), step, len(values)),
                    mode=Sampled(
                        Ordered(FORWARD if step > 0 else REVERSE),
                        Regular(step),
                        mode.sampling,
                    ),
                )
        mode = Sampled(None, Irregular(), mode.sampling)
        return format_dimension(dim.replace(val=pd.Index(values), mode=mode), len(values))
    index = pd.Index(values)
    if isinstance(mode, Categorical):
        return dim.replace(val=index, mode=Categorical(_detect_order(index)))
    return dim.replace(val=index)


def _modify_dim(func: Callable, dim: Dimension) -> Dimension:
    # func sees index values in storage order
    values = np.asarray(func(_array_values(dim)))
    if values.shape != (len(dim),):
        raise ShapeError(
            f"modify changed the length of dimension {dim.name!r}",
            names=("before", "after"),
            shapes=((len(dim),), values.shape),
        )
    return _remodel(dim, values)


def modify(func: Callable, obj, dim=None):
    """
    Transform the payload of an array, or the index of a dimension.

    ``modify(f, A)`` replaces the payload with ``f(A.data)``;
    ``modify(f, A, X)`` and ``modify(f, X(...))`` replace one index with
    ``f(values)``. Neither may change a length.

    Raises
    ------
    ShapeError
        If the payload shape or the index length would change.
    """
    if isinstance(obj, Dimension):
        return _modify_dim(func, obj)
    if dim is not None:
        n = dimnum(obj.dims, dim)
        new_dims = list(obj.dims)
        new_dims[n] = _modify_dim(func, new_dims[n])
        return obj.rebuild(dims=tuple(new_dims))
    data = np.asarray(func(obj.data))
    if data.shape != obj.shape:
        raise ShapeError(
            "modify changed the shape of the payload",
            names=("before", "after"),
            shapes=(obj.shape, data.shape),
        )
    return obj.rebuild(data=data)


def dimwise(op: Callable, A: DimArray, B: DimArray) -> DimArray:
    """
    Apply a binary ``op`` with ``B`` broadcast over the dims of ``A`` it lacks.

    ``B``'s dims must be a subset of ``A``'s, matched by name in any order,
    with equal lengths.

    Shared ordered dims of ``B`` are flipped where needed so cells pair up by
    coordinate, not by position.
    """
    names_a = [d.name for d in A.dims]
    for d in B.dims:
        if d.name not in names_a:
            raise DimensionMismatchError(
                f"Dimension {d.name!r} of the second array is not in {names_a}"
            )
    shared = [n for n in range(A.ndim) if hasdim(B.dims, A.dims[n].name)]
    b_axes = [dimnum(B.dims, A.dims[n].name) for n in shared]
    for n, m in zip(shared, b_axes):
        check_matching_dims((A.dims[n],), (B.dims[m],))
    b = align_storage(A.dims, B.dims, B.data)
    b = np.transpose(b, b_axes) if b_axes else b
    shape = [A.shape[n] if n in shared else 1 for n in range(A.ndim)]
    data = np.asarray(op(A.data, b.reshape(shape)))
    if data.shape != A.shape:
        raise ShapeError(
            "dimwise result does not fit the first array",
            names=("result", "array"),
            shapes=(data.shape, A.shape),
        )
    return A.rebuild(data=data)


# =============================================================================
# Statistics
# =============================================================================


def _single_axis(A: DimArray, dims) -> int:
    if dims is None:
        if A.ndim != 1:
            raise ValueError("dims must be given for arrays with more than one dimension")
        return 0
    queries = _as_queries(dims)
    if len(queries) != 1:
        raise ValueError(f"Expected a single dimension, got {len(queries)}")
    return dimnum(A.dims, queries[0])


def diff(A: DimArray, dims=None) -> DimArray:
    """First difference along one dimension; its first coordinate is dropped."""
    n = _single_axis(A, dims)
    new_dims = list(A.dims)
    new_dims[n] = slicedim(A.dims[n], slice(1, None))
    return A.rebuild(data=np.diff(A.data, axis=n), dims=tuple(new_dims))


def _paired(A: DimArray, dims) -> tuple[int, tuple[Dimension, Dimension]]:
    if A.ndim != 2:
        raise ShapeError(
            "cov and cor need a 2 dimensional array", names=("ndim",), shapes=(A.ndim,)
        )
    n = _single_axis(A, dims)
    other = A.dims[1 - n]
    return n, (other, other.replace(name=f"{other.name}_2"))


def cov(A: DimArray, dims) -> DimArray:
    """
    Covariance between the slices along ``dims``.

    The result carries the other dimension twice; the second copy is named
    ``<name>_2`` so both axes stay addressable.
    """
    n, new_dims = _paired(A, dims)
    return DimArray(np.atleast_2d(np.cov(A.data, rowvar=n == 1)), new_dims)


def cor(A: DimArray, dims) -> DimArray:
    """Pearson correlation, laid out like ``cov``."""
    n, new_dims = _paired(A, dims)
    return DimArray(np.atleast_2d(np.corrcoef(A.data, rowvar=n == 1)), new_dims)


def unique(A: DimArray, dims=None) -> np.ndarray:
    """Unique values, or unique slices along ``dims``."""
    if dims is None:
        return np.unique(A.data)
    return np.unique(A.data, axis=_single_axis(A, dims))
