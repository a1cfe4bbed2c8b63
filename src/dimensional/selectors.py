"""Selectors: lookups resolved against a dimension's index.

How sel2indices() works:
------------------------
1. Plain values are treated as ``At(value)``; lists of selectors and
   selectors holding a sequence are resolved element by element.
2. The ``(selector, mode)`` pair is looked up in ``_DISPATCH``. Pairs that
   are not there (anything on ``NoIndex``) raise ``SelectorModeError``.
3. The handler searches the index. Ordered indices use O(log n) binary
   search (``np.searchsorted``); unordered ones fall back to an O(n) scan,
   which only exact matching supports.
4. Index positions are mapped to array positions through ``relate``.

Scalar selectors give an ``int``, ``Between`` gives an ascending ``slice``
and vector selectors give an integer ``ndarray`` (never a range, since the
positions need not be contiguous).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from numbers import Integral
from typing import Any

import numpy as np

from .dimension import Dimension, interval_edges
from .exceptions import SelectorModeError
from .mode import REVERSE, Categorical, Intervals, Locus, NoIndex, Ordered, Sampled
from .options import OPTIONS
from .primitives import relate

__all__ = [
    "Selector",
    "At",
    "Near",
    "Contains",
    "Between",
    "is_selector",
    "sel2indices",
    "to_indexer",
]

logger = logging.getLogger(__name__)


class Selector:
    """Base class of lookup expressions."""


@dataclass(frozen=True)
class At(Selector):
    """Exact match, or match within ``atol`` when given."""

    val: Any
    atol: float | None = None


@dataclass(frozen=True)
class Near(Selector):
    """Nearest index value; ties go to the lower index position."""

    val: Any


@dataclass(frozen=True)
class Contains(Selector):
    """The interval containing ``val`` (exact match for point sampling)."""

    val: Any


@dataclass(frozen=True)
class Between(Selector):
    """All positions whose coordinate or interval intersects ``[lo, hi]``."""

    lo: Any
    hi: Any


def is_selector(key) -> bool:
    if isinstance(key, Selector):
        return True
    return (
        isinstance(key, (list, tuple))
        and len(key) > 0
        and all(isinstance(k, Selector) for k in key)
    )


def _is_vector(val) -> bool:
    return isinstance(val, (Sequence, np.ndarray)) and not isinstance(val, (str, bytes))


# =============================================================================
# Search helpers
# =============================================================================


def _ordered(dim: Dimension, selector) -> Ordered:
    order_ = getattr(dim.mode, "order", None)
    if not isinstance(order_, Ordered):
        raise SelectorModeError(
            f"{type(selector).__name__} needs an ordered index, but dimension "
            f"{dim.name!r} has mode {dim.mode!r}"
        )
    return order_


def _is_reversed(dim: Dimension) -> bool:
    return dim.mode.order.index is REVERSE


def _ascending(dim: Dimension, values: np.ndarray) -> np.ndarray:
    return values[::-1] if _is_reversed(dim) else values


def _from_ascending(dim: Dimension, pos: int) -> int:
    """Array position of an ascending-order position."""
    n = len(dim)
    index_pos = n - 1 - pos if _is_reversed(dim) else pos
    return int(relate(dim, index_pos))


def _not_found(dim: Dimension, value) -> KeyError:
    return KeyError(f"Value {value!r} not found in index of dimension {dim.name!r}")


def _numeric(dim: Dimension, selector) -> None:
    kind = dim.values.dtype.kind
    if kind not in "iufcmM":
        raise SelectorModeError(
            f"{type(selector).__name__} needs numeric coordinates, but dimension "
            f"{dim.name!r} holds {dim.values.dtype} labels"
        )


# =============================================================================
# Handlers
# =============================================================================


def _at(dim: Dimension, selector: At, value) -> int:
    atol = selector.atol if selector.atol is not None else OPTIONS["at_atol"]
    values = dim.values
    if isinstance(getattr(dim.mode, "order", None), Ordered):
        asc = _ascending(dim, values)
        try:
            target = value - atol if atol else value
            i = int(np.searchsorted(asc, target, side="left"))
        except TypeError:
            i = None
        if i is not None:
            logger.debug("At(%r) on %r: binary search", value, dim.name)
            if i < len(asc):
                if asc[i] == value or (atol and abs(asc[i] - value) <= atol):
                    return _from_ascending(dim, i)
            raise _not_found(dim, value)

    logger.debug("At(%r) on %r: linear scan", value, dim.name)
    if atol:
        matches = np.flatnonzero(np.abs(values - value) <= atol)
    else:
        matches = np.flatnonzero(values == value)
    if len(matches) == 0:
        raise _not_found(dim, value)
    return int(relate(dim, int(matches[0])))


def _near(dim: Dimension, selector: Near, value) -> int:
    _ordered(dim, selector)
    _numeric(dim, selector)
    asc = _ascending(dim, dim.values)
    n = len(asc)
    if n == 0:
        raise ValueError("Cannot find nearest in empty index")

    idx = int(np.searchsorted(asc, value))
    if idx == 0:
        pos = 0
    elif idx == n:
        pos = n - 1
    else:
        left = abs(value - asc[idx - 1])
        right = abs(asc[idx] - value)
        # on a tie the lower index position wins, which is the right-hand
        # neighbour when the index runs in reverse
        if left < right or (left == right and not _is_reversed(dim)):
            pos = idx - 1
        else:
            pos = idx
    logger.debug("Near(%r) on %r: ascending position %d", value, dim.name, pos)
    return _from_ascending(dim, pos)


def _edges_ascending(dim: Dimension):
    lower, upper = interval_edges(dim)
    return _ascending(dim, lower), _ascending(dim, upper)


def _contains(dim: Dimension, selector: Contains, value) -> int:
    _ordered(dim, selector)
    sampling_ = getattr(dim.mode, "sampling", None)
    if not isinstance(sampling_, Intervals):
        return _at(dim, At(value), value)

    lower, upper = _edges_ascending(dim)
    if sampling_.locus is Locus.END:
        i = int(np.searchsorted(upper, value, side="left"))
        if i < len(upper) and value > lower[i]:
            return _from_ascending(dim, i)
    else:
        i = int(np.searchsorted(lower, value, side="right")) - 1
        if i >= 0 and value < upper[i]:
            return _from_ascending(dim, i)
    raise KeyError(f"Value {value!r} is not contained in any interval of {dim.name!r}")


def _between(dim: Dimension, selector: Between) -> slice:
    order_ = _ordered(dim, selector)
    lo, hi = selector.lo, selector.hi
    if (hi > lo and order_.index is REVERSE) or (hi < lo and order_.index is not REVERSE):
        logger.debug(
            "Between(%r, %r) runs against the index order of %r", lo, hi, dim.name
        )
        return slice(0, 0)
    a, b = (lo, hi) if lo <= hi else (hi, lo)

    sampling_ = getattr(dim.mode, "sampling", None)
    if isinstance(sampling_, Intervals):
        lower, upper = _edges_ascending(dim)
        if sampling_.locus is Locus.END:
            start = int(np.searchsorted(upper, a, side="left"))
            stop = int(np.searchsorted(lower, b, side="left"))
        else:
            start = int(np.searchsorted(upper, a, side="right"))
            stop = int(np.searchsorted(lower, b, side="right"))
    else:
        asc = _ascending(dim, dim.values)
        start = int(np.searchsorted(asc, a, side="left"))
        stop = int(np.searchsorted(asc, b, side="right"))

    if stop <= start:
        return slice(0, 0)
    n = len(dim)
    if _is_reversed(dim):
        start, stop = n - stop, n - start
    return relate(dim, slice(start, stop))


_HANDLERS = {
    At: _at,
    Near: _near,
    Contains: _contains,
}

_DISPATCH = {
    (At, Sampled),
    (At, Categorical),
    (Near, Sampled),
    (Near, Categorical),
    (Contains, Sampled),
    (Contains, Categorical),
    (Between, Sampled),
    (Between, Categorical),
}


# =============================================================================
# Public API
# =============================================================================


def _check_dispatch(dim: Dimension, selector: Selector) -> None:
    if (type(selector), type(dim.mode)) not in _DISPATCH:
        if isinstance(dim.mode, NoIndex):
            reason = "NoIndex dimensions only support positional indexing"
        else:
            reason = f"not supported for mode {dim.mode!r}"
        raise SelectorModeError(
            f"Cannot use {type(selector).__name__} on dimension {dim.name!r}: {reason}"
        )


def _resolve_one(dim: Dimension, selector: Selector):
    _check_dispatch(dim, selector)
    if isinstance(selector, Between):
        return _between(dim, selector)
    handler = _HANDLERS[type(selector)]
    if _is_vector(selector.val):
        return np.array([handler(dim, selector, v) for v in selector.val], dtype=int)
    return handler(dim, selector, selector.val)


def sel2indices(dim: Dimension, selector) -> int | slice | np.ndarray:
    """
    Resolve ``selector`` against ``dim`` into array positions.

    Raises
    ------
    SelectorModeError
        If the selector cannot be used with the dimension's mode.
    KeyError
        If an exact or interval lookup finds nothing.
    """
    if isinstance(selector, (list, tuple)) and all(
        isinstance(s, Selector) for s in selector
    ):
        positions = []
        for s in selector:
            found = _resolve_one(dim, s)
            if isinstance(found, slice):
                positions.extend(range(len(dim))[found])
            else:
                positions.extend(np.atleast_1d(found).tolist())
        return np.array(positions, dtype=int)
    if not isinstance(selector, Selector):
        selector = At(selector)
    return _resolve_one(dim, selector)


def _is_positional(key) -> bool:
    if isinstance(key, slice) or key is Ellipsis:
        return True
    if isinstance(key, Integral):
        return True
    if isinstance(key, np.ndarray):
        return key.dtype.kind in "iub"
    if isinstance(key, (list, tuple)) and not is_selector(key):
        return len(key) == 0 or all(
            isinstance(k, (Integral, np.integer)) for k in key
        )
    return False


def to_indexer(dim: Dimension, key, labels: bool = False):
    """
    Positional indexer for ``key`` on ``dim``.

    With ``labels=False`` (``A[...]`` and ``isel``) integers, slices and
    integer or boolean arrays are positions and anything else is looked up.
    With ``labels=True`` (``sel``) every key is looked up; slices become
    ``Between`` over their start and stop.
    """
    if is_selector(key):
        return sel2indices(dim, key)
    if labels:
        if isinstance(key, slice):
            if key.step is not None:
                raise ValueError("Label slices do not support a step")
            lo, hi = dim.bounds()
            start = lo if key.start is None else key.start
            stop = hi if key.stop is None else key.stop
            if isinstance(dim.mode.order, Ordered) and _is_reversed(dim):
                if key.start is None:
                    start = hi
                if key.stop is None:
                    stop = lo
            return sel2indices(dim, Between(start, stop))
        return sel2indices(dim, At(key))
    if _is_positional(key):
        return key
    return sel2indices(dim, At(key))
