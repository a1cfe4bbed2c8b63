"""Dimensions: named, indexed axis descriptors.

A ``Dimension`` pairs a stable name with a coordinate index and a mode. The
index is either a lazy ``StepRange`` or an immutable ``pandas.Index``.
Dimensions are values: every transformation returns a new one.

Before a dimension is attached to an array its ``val`` may also be a length,
a ``(lo, hi)`` tuple, a Python ``range``, a list or array of coordinates, or
a selector/positional indexer used for indexing. ``format_dimension`` turns
the former into a concrete index and resolves ``AutoMode``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass
from numbers import Integral
from typing import Any

import numpy as np
import pandas as pd

from .exceptions import DimensionMismatchError, ShapeError
from .mode import (
    FORWARD,
    REVERSE,
    AutoMode,
    Categorical,
    Intervals,
    Irregular,
    Locus,
    Mode,
    NoIndex,
    Ordered,
    Regular,
    Sampled,
    Unordered,
)
from .options import OPTIONS

__all__ = [
    "StepRange",
    "Dimension",
    "DimType",
    "X",
    "Y",
    "Z",
    "Ti",
    "Lat",
    "Lon",
    "Vert",
    "Band",
    "WELL_KNOWN_DIMS",
    "format_dimension",
    "format_dims",
    "bounds",
    "interval_edges",
    "intervals",
]


# =============================================================================
# Ranges
# =============================================================================


@dataclass(frozen=True)
class StepRange:
    """
    Evenly spaced coordinates ``start, start + step, ...`` of length ``size``.

    Stays lazy through slicing and reversal, so regular indices never need
    to be materialised to be transformed.
    """

    start: Any
    step: Any
    size: int
    # the range this one was reversed from, so reversing back is exact
    _reversed_from: "StepRange | None" = dataclasses.field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self):
        if not isinstance(self.size, Integral) or self.size < 0:
            raise ValueError(f"size must be a non-negative integer, got {self.size!r}")
        if self.size > 1 and self.step == 0:
            raise ValueError("step must be non-zero")

    @classmethod
    def from_range(cls, r: range) -> "StepRange":
        return cls(r.start, r.step, len(r))

    @classmethod
    def linspace(cls, lo, hi, size: int) -> "StepRange":
        """``size`` points from ``lo`` to ``hi`` inclusive."""
        if size > 1:
            step = (hi - lo) / (size - 1)
        else:
            step = (hi - lo) if hi != lo else 1.0
        return cls(lo * 1.0, step, size)

    @property
    def values(self) -> np.ndarray:
        return self.start + self.step * np.arange(self.size)

    @property
    def first(self):
        return self[0]

    @property
    def last(self):
        return self[self.size - 1]

    def reversed(self) -> "StepRange":
        if self.size == 0:
            return self
        if self._reversed_from is not None:
            return self._reversed_from
        return StepRange(self.last, -self.step, self.size, self)

    def __len__(self) -> int:
        return self.size

    def __iter__(self):
        return iter(self.values)

    def __array__(self, dtype=None, copy=None):
        values = self.values
        return values if dtype is None else values.astype(dtype)

    def __getitem__(self, key):
        if isinstance(key, Integral) and not isinstance(key, bool):
            i = int(key)
            if i < 0:
                i += self.size
            if not 0 <= i < self.size:
                raise IndexError(f"index {key} is out of bounds for size {self.size}")
            return self.start + self.step * i
        if isinstance(key, slice):
            r = range(self.size)[key]
            return StepRange(self.start + self.step * r.start, self.step * r.step, len(r))
        return pd.Index(self.values[np.asarray(key)])


def _is_index(val) -> bool:
    return isinstance(val, (StepRange, pd.Index))


def _index_values(index) -> np.ndarray:
    if isinstance(index, StepRange):
        return index.values
    return np.asarray(index)


def _index_equal(a, b) -> bool:
    if isinstance(a, StepRange) and isinstance(b, StepRange) and a == b:
        return True
    if _is_index(a) and _is_index(b):
        if len(a) != len(b):
            return False
        return bool(np.array_equal(_index_values(a), _index_values(b)))
    if _is_index(a) or _is_index(b):
        return False
    try:
        return bool(np.all(a == b))
    except (TypeError, ValueError):
        return a is b


def _preview(values: np.ndarray) -> str:
    max_items = OPTIONS["repr_max_items"]
    items = [repr(v.item()) if hasattr(v, "item") else repr(v) for v in values]
    if len(items) > max_items:
        half = max_items // 2
        items = items[:half] + ["..."] + items[-(max_items - half) :]
    return "[" + ", ".join(items) + "]"


# =============================================================================
# Dimension
# =============================================================================


@dataclass(frozen=True, eq=False)
class Dimension:
    """
    A named axis descriptor.

    Parameters
    ----------
    name : hashable
        Stable identity of the dimension, used for lookup.
    val : StepRange, pandas.Index or raw value
        The coordinate index. Raw values (lengths, ``(lo, hi)`` tuples,
        ranges, sequences) are converted by ``format_dimension``; selectors
        and positional indexers are only meaningful when indexing an array.
    mode : Mode
        How the index is interpreted. ``AutoMode`` is resolved on formatting.
    metadata : any
        Opaque user payload. A mapping with a ``"units"`` key adds units to
        the label.
    """

    name: Hashable
    val: Any = None
    mode: Mode = AutoMode()
    metadata: Any = None

    def replace(self, **changes) -> "Dimension":
        """Return a copy with some fields changed."""
        return dataclasses.replace(self, **changes)

    @property
    def index(self):
        return self.val

    @property
    def values(self) -> np.ndarray:
        return _index_values(self.val)

    @property
    def is_formatted(self) -> bool:
        return _is_index(self.val) and not isinstance(self.mode, AutoMode)

    @property
    def units(self):
        if isinstance(self.metadata, Mapping):
            return self.metadata.get("units")
        return None

    @property
    def label(self) -> str:
        units = self.units
        return str(self.name) if units is None else f"{self.name} ({units})"

    def bounds(self) -> tuple:
        return bounds(self)

    def intervals(self) -> pd.IntervalIndex:
        return intervals(self)

    def __len__(self) -> int:
        if not _is_index(self.val):
            raise TypeError(f"Dimension {self.name!r} has no index yet")
        return len(self.val)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Dimension):
            return NotImplemented
        return (
            self.name == other.name
            and self.mode == other.mode
            and _index_equal(self.val, other.val)
        )

    def __hash__(self) -> int:
        return hash((self.name, type(self.mode)))

    def __repr__(self) -> str:
        if _is_index(self.val):
            val = _preview(self.values)
        else:
            val = repr(self.val)
        return f"{self.name}({val}, {self.mode!r})"


class DimType:
    """
    Identity tag for a dimension name.

    Calling a tag builds a ``Dimension`` with that name, and tags can be used
    anywhere a dimension query is accepted. Any hashable can be a name, so
    new tags are created with ``DimType("depth")``.
    """

    __slots__ = ("name",)

    def __init__(self, name: Hashable):
        self.name = name

    def __call__(self, val=None, mode: Mode | None = None, metadata=None) -> Dimension:
        return Dimension(self.name, val, AutoMode() if mode is None else mode, metadata)

    def __eq__(self, other) -> bool:
        return isinstance(other, DimType) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("DimType", self.name))

    def __repr__(self) -> str:
        return f"DimType({self.name!r})"


X = DimType("X")
Y = DimType("Y")
Z = DimType("Z")
Ti = DimType("Ti")
Lat = DimType("Lat")
Lon = DimType("Lon")
Vert = DimType("Vert")
Band = DimType("Band")

WELL_KNOWN_DIMS: dict[str, DimType] = {
    d.name: d for d in (X, Y, Z, Ti, Lat, Lon, Vert, Band)
}


# =============================================================================
# Formatting
# =============================================================================


def _is_sampled_dtype(index: pd.Index) -> bool:
    if pd.api.types.is_bool_dtype(index.dtype):
        return False
    return (
        pd.api.types.is_numeric_dtype(index.dtype)
        or pd.api.types.is_datetime64_any_dtype(index.dtype)
        or pd.api.types.is_timedelta64_dtype(index.dtype)
    )


def _format_index(name, val, size: int):
    if val is None:
        return StepRange(0, 1, size)
    if isinstance(val, StepRange):
        return val
    if isinstance(val, bool):
        raise TypeError(f"Dimension {name!r} cannot hold a bool value")
    if isinstance(val, Integral):
        if val != size:
            raise ShapeError(
                f"Dimension {name!r} length does not match the array axis",
                names=(str(name), "axis"),
                shapes=(int(val), size),
            )
        return StepRange(0, 1, int(val))
    if isinstance(val, range):
        return StepRange.from_range(val)
    if isinstance(val, pd.RangeIndex):
        return StepRange(val.start, val.step, len(val))
    if isinstance(val, pd.Index):
        return val
    if isinstance(val, tuple) and len(val) == 2 and not isinstance(val[0], str):
        return StepRange.linspace(val[0], val[1], size)
    if isinstance(val, (Sequence, np.ndarray)) and not isinstance(val, str):
        arr = np.asarray(val)
        if arr.ndim != 1:
            raise ShapeError(
                f"Dimension {name!r} index must be one-dimensional",
                names=(str(name),),
                shapes=(arr.shape,),
            )
        return pd.Index(arr)
    raise TypeError(
        f"Dimension {name!r} holds {val!r}, which is not an index. "
        "Selectors and indexers can only be used to index an array."
    )


def _detect_order(index) -> Ordered | Unordered:
    if len(index) < 2:
        return Ordered()
    if isinstance(index, StepRange):
        return Ordered(FORWARD if index.step > 0 else REVERSE)
    if index.is_monotonic_increasing:
        return Ordered()
    if index.is_monotonic_decreasing:
        return Ordered(REVERSE)
    return Unordered()


def _edges_from_values(values: np.ndarray, locus: Locus) -> tuple:
    a = np.sort(values)
    if len(a) == 1:
        return a[0], a[0]
    first_gap = a[1] - a[0]
    last_gap = a[-1] - a[-2]
    if locus is Locus.START:
        return a[0], a[-1] + last_gap
    if locus is Locus.END:
        return a[0] - first_gap, a[-1]
    return a[0] - first_gap / 2, a[-1] + last_gap / 2


def _irregular_bounds(values: np.ndarray, sampling_) -> tuple:
    if len(values) == 0:
        return (None, None)
    if isinstance(sampling_, Intervals):
        lo, hi = _edges_from_values(values, sampling_.locus)
    else:
        lo, hi = np.min(values), np.max(values)
    return (_scalar(lo), _scalar(hi))


def _scalar(value):
    return value.item() if isinstance(value, np.generic) else value


def _regular_step(index):
    if isinstance(index, StepRange):
        return index.step
    if len(index) < 2:
        return 1
    return _scalar(index[1] - index[0])


def _format_sampled(mode: Sampled, index) -> Sampled:
    order_ = mode.order if mode.order is not None else _detect_order(index)
    span_ = mode.span
    if span_ is None:
        span_ = Regular() if isinstance(index, StepRange) else Irregular()
    if isinstance(span_, Regular) and span_.step is None:
        span_ = Regular(_regular_step(index))
    elif isinstance(span_, Irregular) and span_.bounds is None:
        span_ = Irregular(_irregular_bounds(_index_values(index), mode.sampling))
    return Sampled(order_, span_, mode.sampling)


def _format_mode(mode: Mode, index, placeholder: bool) -> Mode:
    if isinstance(mode, AutoMode):
        if placeholder:
            return NoIndex()
        if isinstance(index, StepRange) or _is_sampled_dtype(index):
            mode = Sampled()
        else:
            mode = Categorical()
    if isinstance(mode, Sampled):
        return _format_sampled(mode, index)
    if isinstance(mode, Categorical) and mode.order is None:
        return Categorical(_detect_order(index))
    return mode


def format_dimension(dim: Dimension, size: int) -> Dimension:
    """
    Return ``dim`` with a concrete index of length ``size`` and a resolved mode.

    Raises
    ------
    ShapeError
        If the index length does not match ``size``.
    """
    placeholder = dim.val is None or (
        isinstance(dim.val, Integral) and not isinstance(dim.val, bool)
    )
    index = _format_index(dim.name, dim.val, size)
    if len(index) != size:
        raise ShapeError(
            f"Dimension {dim.name!r} index does not match the array axis",
            names=(str(dim.name), "axis"),
            shapes=(len(index), size),
        )
    mode = _format_mode(dim.mode, index, placeholder)
    if dim.val is index and mode is dim.mode:
        return dim
    return dim.replace(val=index, mode=mode)


def _as_dimension(dim) -> Dimension:
    if isinstance(dim, Dimension):
        return dim
    if isinstance(dim, DimType):
        return dim()
    if dim is None:
        raise TypeError("Dimension names cannot be None")
    return Dimension(dim)


def format_dims(shape: tuple[int, ...], dims) -> tuple[Dimension, ...]:
    """
    Normalise the ``dims`` argument of an array constructor.

    ``dims`` may be a single dimension-like or a sequence of them
    (``Dimension``, ``DimType`` or plain names).
    """
    if isinstance(dims, (Dimension, DimType, str)):
        dims = (dims,)
    dims = tuple(_as_dimension(d) for d in dims)
    if len(dims) != len(shape):
        raise ShapeError(
            "Number of dimensions does not match the array",
            names=("dims", "ndim"),
            shapes=(len(dims), len(shape)),
        )
    names = [d.name for d in dims]
    if len(set(names)) != len(names):
        raise DimensionMismatchError(f"Duplicate dimension names: {names}")
    return tuple(format_dimension(d, n) for d, n in zip(dims, shape))


# =============================================================================
# Bounds and intervals
# =============================================================================


def _ordered_extremes(dim: Dimension) -> tuple:
    values = dim.values
    if len(values) == 0:
        return (None, None)
    order_ = getattr(dim.mode, "order", None)
    if isinstance(order_, Ordered):
        lo, hi = values[0], values[-1]
        if order_.index is REVERSE:
            lo, hi = hi, lo
        return (_scalar(lo), _scalar(hi))
    try:
        return (_scalar(np.min(values)), _scalar(np.max(values)))
    except TypeError:
        return (_scalar(values[0]), _scalar(values[-1]))


def bounds(dim: Dimension) -> tuple:
    """
    ``(min, max)`` extent of a dimension.

    For ``Intervals`` sampling the extent covers the whole of the first and
    last intervals, not only their anchor values.
    """
    mode = dim.mode
    if not isinstance(mode, Sampled):
        return _ordered_extremes(dim)
    if isinstance(mode.span, Irregular):
        return tuple(mode.span.bounds)
    lo, hi = _ordered_extremes(dim)
    if lo is None or not isinstance(mode.sampling, Intervals):
        return (lo, hi)
    width = abs(mode.span.step)
    loc = mode.sampling.locus
    if loc is Locus.START:
        return (lo, hi + width)
    if loc is Locus.END:
        return (lo - width, hi)
    return (lo - width / 2, hi + width / 2)


def _closed(locus_: Locus) -> str:
    return "right" if locus_ is Locus.END else "left"


def interval_edges(dim: Dimension) -> tuple[np.ndarray, np.ndarray]:
    """
    Lower and upper edges of each interval of an ``Intervals`` dimension,
    aligned with the index positions.
    """
    mode = dim.mode
    if not (isinstance(mode, Sampled) and isinstance(mode.sampling, Intervals)):
        raise TypeError(f"Dimension {dim.name!r} does not have Intervals sampling")
    values = dim.values
    loc = mode.sampling.locus
    if isinstance(mode.span, Regular):
        width = abs(mode.span.step)
        if loc is Locus.START:
            return values, values + width
        if loc is Locus.END:
            return values - width, values
        return values - width / 2, values + width / 2

    lo, hi = mode.span.bounds
    perm = np.argsort(values, kind="stable")
    a = values[perm]
    if loc is Locus.START:
        lower, upper = a, np.append(a[1:], hi)
    elif loc is Locus.END:
        lower, upper = np.insert(a[:-1], 0, lo), a
    else:
        mids = a[:-1] + (a[1:] - a[:-1]) / 2
        lower, upper = np.insert(mids, 0, lo), np.append(mids, hi)
    out_lower = np.empty_like(lower)
    out_upper = np.empty_like(upper)
    out_lower[perm] = lower
    out_upper[perm] = upper
    return out_lower, out_upper


def intervals(dim: Dimension) -> pd.IntervalIndex:
    """The intervals of an ``Intervals`` dimension as a ``pandas.IntervalIndex``."""
    lower, upper = interval_edges(dim)
    return pd.IntervalIndex.from_arrays(lower, upper, closed=_closed(dim.mode.sampling.locus))
