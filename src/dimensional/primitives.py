"""Dimension identity resolution and the dims bookkeeping shared by all operations.

Queries accepted wherever a dimension is asked for:

- a ``DimType`` tag or a ``Dimension`` (matched on its name),
- a bare name (any hashable),
- a positional ``int`` axis (negative values count from the end).

Tags and dimensions are matched first, then names, and integers are treated
as positions only when no dimension carries that name.
"""

from __future__ import annotations

from collections.abc import Iterable
from numbers import Integral

import numpy as np
import pandas as pd

from .dimension import (
    Dimension,
    DimType,
    StepRange,
    _detect_order,
    bounds,
    interval_edges,
)
from .exceptions import DimensionMismatchError
from .mode import (
    REVERSE,
    Categorical,
    IndexOrder,
    Intervals,
    Irregular,
    Locus,
    NoIndex,
    Ordered,
    Regular,
    Sampled,
    flip,
)

__all__ = [
    "dims",
    "dimnum",
    "dimnums",
    "getdim",
    "hasdim",
    "otherdims",
    "check_matching_dims",
    "align_storage",
    "slicedim",
    "slicedims",
    "reducedim",
    "reducedims",
    "relate",
]


def _dims_of(obj) -> tuple[Dimension, ...]:
    if isinstance(obj, Dimension):
        return (obj,)
    if hasattr(obj, "dims") and not isinstance(obj, tuple):
        return obj.dims
    return tuple(obj)


def _names(dims_: tuple[Dimension, ...]) -> list:
    return [d.name for d in dims_]


def dimnum(obj, query) -> int:
    """
    Axis number of ``query`` within the dims of ``obj``.

    Raises
    ------
    DimensionMismatchError
        If the dimension is not present or a position is out of range.
    """
    dims_ = _dims_of(obj)
    if isinstance(query, (DimType, Dimension)):
        for i, d in enumerate(dims_):
            if d.name == query.name:
                return i
        raise DimensionMismatchError(
            f"Dimension {query.name!r} not found in dims {_names(dims_)}"
        )

    for i, d in enumerate(dims_):
        if type(d.name) is type(query) and d.name == query:
            return i

    if isinstance(query, Integral) and not isinstance(query, bool):
        n = len(dims_)
        if -n <= query < n:
            return int(query) % n
        raise DimensionMismatchError(
            f"Axis {query} is out of range for an array with {n} dimensions"
        )
    raise DimensionMismatchError(f"Dimension {query!r} not found in dims {_names(dims_)}")


def _as_queries(queries) -> tuple:
    if isinstance(queries, (list, tuple)):
        return tuple(queries)
    return (queries,)


def dimnums(obj, queries) -> tuple[int, ...]:
    """
    Axis numbers for one or many queries, in the requested order.

    Two queries resolving to the same axis raise ``DimensionMismatchError``.
    """
    dims_ = _dims_of(obj)
    nums = tuple(dimnum(dims_, q) for q in _as_queries(queries))
    if len(set(nums)) != len(nums):
        names = [dims_[n].name for n in nums]
        raise DimensionMismatchError(f"Dimensions requested more than once: {names}")
    return nums


def getdim(obj, query) -> Dimension:
    dims_ = _dims_of(obj)
    return dims_[dimnum(dims_, query)]


def hasdim(obj, query) -> bool:
    try:
        dimnum(obj, query)
    except DimensionMismatchError:
        return False
    return True


def dims(obj, query=None):
    """
    Dimensions of an array or tuple of dimensions.

    With ``query`` a single dimension is returned; with a list or tuple of
    queries a tuple of dimensions in the requested order.
    """
    dims_ = _dims_of(obj)
    if query is None:
        return dims_
    if isinstance(query, (list, tuple)):
        return tuple(dims_[n] for n in dimnums(dims_, query))
    return getdim(dims_, query)


def otherdims(obj, queries) -> tuple[Dimension, ...]:
    dims_ = _dims_of(obj)
    skip = set(dimnums(dims_, queries))
    return tuple(d for i, d in enumerate(dims_) if i not in skip)


def check_matching_dims(a: Iterable[Dimension], b: Iterable[Dimension]) -> None:
    """Raise ``DimensionMismatchError`` unless names and lengths agree pairwise."""
    a, b = tuple(a), tuple(b)
    if _names(a) != _names(b) or [len(d) for d in a] != [len(d) for d in b]:
        raise DimensionMismatchError(
            f"Dimensions do not match: {[(d.name, len(d)) for d in a]} "
            f"vs {[(d.name, len(d)) for d in b]}"
        )


# =============================================================================
# Array positions vs index positions
# =============================================================================


def _anti_aligned(dim: Dimension) -> bool:
    order_ = getattr(dim.mode, "order", None)
    return isinstance(order_, Ordered) and order_.array is REVERSE


def align_storage(target: Iterable[Dimension], dims_: Iterable[Dimension], data):
    """
    Flip axes of ``data`` so its cells line up with ``target``.

    ``data`` is laid out along ``dims_``. An ordered dimension whose
    same-named dimension in ``target`` is also ordered but stores its
    coordinates the other way round (a different relation) has its axis
    reversed. Other dimensions are left as they are.
    """
    by_name = {d.name: d for d in target}
    for n, dim in enumerate(dims_):
        other = by_name.get(dim.name)
        if other is None:
            continue
        a = getattr(dim.mode, "order", None)
        b = getattr(other.mode, "order", None)
        if isinstance(a, Ordered) and isinstance(b, Ordered) and a.relation is not b.relation:
            data = np.flip(data, axis=n)
    return data


def relate(dim: Dimension, positions):
    """
    Map index positions to array positions (and back, the map is its own inverse).

    Storage runs against the index when the array order is Reverse.
    """
    if not _anti_aligned(dim):
        return positions
    n = len(dim)
    if isinstance(positions, slice):
        # increasing slices come back increasing
        r = range(n)[positions]
        if len(r) == 0:
            return slice(0, 0)
        if r.step > 0:
            return slice(n - 1 - r[-1], n - r[0], r.step)
        return n - 1 - np.arange(r.start, r.stop, r.step)
    if isinstance(positions, Integral):
        return n - 1 - int(positions)
    return n - 1 - np.asarray(positions)


# =============================================================================
# Slicing
# =============================================================================


def _recomputed_bounds(dim: Dimension, positions: np.ndarray) -> tuple:
    """Irregular bounds covering the selected index positions."""
    if len(positions) == 0:
        return (None, None)
    sampling_ = dim.mode.sampling
    if isinstance(sampling_, Intervals):
        lower, upper = interval_edges(dim)
        return (_item(np.min(lower[positions])), _item(np.max(upper[positions])))
    values = dim.values[positions]
    return (_item(np.min(values)), _item(np.max(values)))


def _item(value):
    return value.item() if isinstance(value, np.generic) else value


def _slice_range(dim: Dimension, indexer: slice) -> Dimension:
    n = len(dim)
    r = range(n)[indexer]
    # index positions, in the order the new index will hold them
    q = np.asarray(relate(dim, np.arange(r.start, r.stop, r.step)), dtype=int)
    if _anti_aligned(dim):
        q = q[::-1]
    if len(q) > 1:
        p_step = int(q[1] - q[0])
        p = slice(int(q[0]), int(q[-1]) + (1 if p_step > 0 else -1), p_step)
        if p.stop < 0:
            p = slice(p.start, None, p.step)
    else:
        p_step = 1
        p = slice(int(q[0]), int(q[0]) + 1) if len(q) else slice(0, 0)
    new_index = dim.val[p]

    mode = dim.mode
    if isinstance(mode, (Sampled, Categorical)) and isinstance(mode.order, Ordered):
        if p_step < 0:
            mode = mode.replace(order=flip(IndexOrder, mode.order))
    if isinstance(mode, Sampled):
        if isinstance(mode.span, Regular):
            mode = mode.replace(span=Regular(mode.span.step * p_step))
        elif isinstance(mode.span, Irregular):
            mode = mode.replace(span=Irregular(_recomputed_bounds(dim, q)))
    return dim.replace(val=new_index, mode=mode)


def _select_positions(dim: Dimension, positions: np.ndarray) -> Dimension:
    q = np.asarray(relate(dim, positions), dtype=int)
    new_index = pd.Index(dim.values[q])
    mode = dim.mode
    if isinstance(mode, Sampled):
        mode = Sampled(
            _detect_order(new_index),
            Irregular(_recomputed_bounds(dim, q)),
            mode.sampling,
        )
    elif isinstance(mode, Categorical):
        mode = Categorical(_detect_order(new_index))
    return dim.replace(val=new_index, mode=mode)


def _as_positions(indexer, n: int) -> np.ndarray:
    arr = np.asarray(indexer)
    if arr.dtype == bool:
        if arr.shape != (n,):
            raise IndexError(
                f"boolean index of shape {arr.shape} does not match axis of length {n}"
            )
        return np.flatnonzero(arr)
    arr = arr.astype(int, copy=False)
    return np.where(arr < 0, arr + n, arr)


def slicedim(dim: Dimension, indexer) -> Dimension:
    """
    The dimension of the axis after positional ``indexer`` is applied.

    Integer indexers give the length-1 dimension of the selected cell.
    """
    if isinstance(indexer, Integral) and not isinstance(indexer, bool):
        n = len(dim)
        i = int(indexer)
        if not -n <= i < n:
            raise IndexError(
                f"index {indexer} is out of bounds for axis {dim.name!r} with size {n}"
            )
        i %= n
        return _slice_range(dim, slice(i, i + 1))
    if isinstance(indexer, slice):
        return _slice_range(dim, indexer)
    return _select_positions(dim, _as_positions(indexer, len(dim)))


def slicedims(dims_: tuple[Dimension, ...], refdims: tuple[Dimension, ...], indexers):
    """
    New ``(dims, refdims)`` after applying one positional indexer per axis.

    Axes indexed by an integer are dropped and their dimension appended to
    ``refdims``.
    """
    new_dims = []
    new_refdims = list(refdims)
    for dim, indexer in zip(dims_, indexers):
        sliced = slicedim(dim, indexer)
        if isinstance(indexer, Integral) and not isinstance(indexer, bool):
            new_refdims.append(sliced)
        else:
            new_dims.append(sliced)
    return tuple(new_dims), tuple(new_refdims)


# =============================================================================
# Reduction
# =============================================================================


def _midpoint(lo, hi):
    return lo + (hi - lo) / 2


def reducedim(dim: Dimension) -> Dimension:
    """
    Length-1 dimension standing for a whole reduced axis.

    Sampled dimensions get a representative coordinate at the midpoint of
    their bounds, with the span widened to cover the original extent and
    interval loci moved to the center. Other modes keep their first value.
    """
    mode = dim.mode
    if len(dim) == 0 or not isinstance(mode, Sampled):
        new_index = dim.val[0:1] if len(dim) else StepRange(0, 1, 1)
        new_mode = mode if len(dim) else NoIndex()
        return dim.replace(val=new_index, mode=new_mode)

    lo, hi = bounds(dim)
    mid = _midpoint(lo, hi)
    sampling_ = mode.sampling
    if isinstance(sampling_, Intervals):
        sampling_ = Intervals(Locus.CENTER)
    if isinstance(mode.span, Regular):
        step = mode.span.step * len(dim)
        new_index = StepRange(mid, step, 1)
        span_ = Regular(step)
    else:
        new_index = pd.Index([mid])
        span_ = Irregular((lo, hi))
    return dim.replace(val=new_index, mode=Sampled(mode.order, span_, sampling_))


def reducedims(dims_: tuple[Dimension, ...], axes: Iterable[int]) -> tuple[Dimension, ...]:
    axes = set(axes)
    return tuple(reducedim(d) if i in axes else d for i, d in enumerate(dims_))
