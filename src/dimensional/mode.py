"""Typed descriptors for how a dimension's index is ordered and sampled.

A dimension's ``mode`` says how its index should be interpreted:

- ``Sampled``: the index holds physical sample locations. It carries an
  ``order`` (``Ordered`` or ``Unordered``), a ``span`` (``Regular`` step or
  ``Irregular`` bounds) and a ``sampling`` (``Points`` or ``Intervals`` with
  a ``Locus``).
- ``Categorical``: discrete labels, optionally ordered.
- ``NoIndex``: position only, no coordinate semantics.
- ``AutoMode``: placeholder resolved from the index when an array is built.

``Ordered`` tracks three directions: the index order (does the coordinate
sequence increase or decrease), the array order (does storage run with or
against the index) and their relation. The relation is always derived:
``FORWARD`` when index and array order agree, ``REVERSE`` otherwise.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any

__all__ = [
    "Direction",
    "FORWARD",
    "REVERSE",
    "OrderAspect",
    "IndexOrder",
    "ArrayOrder",
    "Relation",
    "OrderTarget",
    "ForwardIndex",
    "ReverseIndex",
    "ForwardArray",
    "ReverseArray",
    "ForwardRelation",
    "ReverseRelation",
    "Ordered",
    "Unordered",
    "Regular",
    "Irregular",
    "Locus",
    "Start",
    "Center",
    "End",
    "Points",
    "Intervals",
    "Mode",
    "Sampled",
    "Categorical",
    "NoIndex",
    "AutoMode",
    "flip",
    "reverse",
    "is_ordered",
    "order",
    "indexorder",
    "arrayorder",
    "relation",
    "span",
    "sampling",
    "locus",
]


class Direction(Enum):
    FORWARD = "forward"
    REVERSE = "reverse"

    def flipped(self) -> "Direction":
        return Direction.REVERSE if self is Direction.FORWARD else Direction.FORWARD

    def __repr__(self) -> str:
        return self.name.capitalize()


FORWARD = Direction.FORWARD
REVERSE = Direction.REVERSE


class OrderAspect(Enum):
    """Which of the three order components an operation targets."""

    INDEX = "index"
    ARRAY = "array"
    RELATION = "relation"

    def __repr__(self) -> str:
        return {"index": "IndexOrder", "array": "ArrayOrder", "relation": "Relation"}[
            self.value
        ]


IndexOrder = OrderAspect.INDEX
ArrayOrder = OrderAspect.ARRAY
Relation = OrderAspect.RELATION


@dataclass(frozen=True)
class OrderTarget:
    """A desired direction for one order component, used by ``reorder``."""

    aspect: OrderAspect
    direction: Direction

    def __repr__(self) -> str:
        suffix = {IndexOrder: "Index", ArrayOrder: "Array", Relation: "Relation"}
        return f"{self.direction.name.capitalize()}{suffix[self.aspect]}"


ForwardIndex = OrderTarget(IndexOrder, FORWARD)
ReverseIndex = OrderTarget(IndexOrder, REVERSE)
ForwardArray = OrderTarget(ArrayOrder, FORWARD)
ReverseArray = OrderTarget(ArrayOrder, REVERSE)
ForwardRelation = OrderTarget(Relation, FORWARD)
ReverseRelation = OrderTarget(Relation, REVERSE)


def _relation_of(index: Direction, array: Direction) -> Direction:
    return FORWARD if index is array else REVERSE


class _Replaceable:
    def replace(self, **changes):
        """Return a copy with some fields changed."""
        return dataclasses.replace(self, **changes)


# =============================================================================
# Order
# =============================================================================


@dataclass(frozen=True)
class Ordered(_Replaceable):
    """
    Order of a monotonic index.

    ``relation`` may be omitted and is then derived from ``index`` and
    ``array``. Passing an inconsistent relation raises ``ValueError``.
    """

    index: Direction = FORWARD
    array: Direction = FORWARD
    relation: Direction | None = None

    def __post_init__(self):
        expected = _relation_of(self.index, self.array)
        if self.relation is None:
            object.__setattr__(self, "relation", expected)
        elif self.relation is not expected:
            raise ValueError(
                f"Inconsistent order: index={self.index!r}, array={self.array!r} "
                f"requires relation={expected!r}, got {self.relation!r}"
            )

    def replace(self, **changes) -> "Ordered":
        # relation is re-derived unless asked for explicitly
        changes.setdefault("relation", None)
        return dataclasses.replace(self, **changes)

    def get(self, aspect: OrderAspect) -> Direction:
        if aspect is IndexOrder:
            return self.index
        if aspect is ArrayOrder:
            return self.array
        return self.relation

    def __repr__(self) -> str:
        return f"Ordered({self.index!r}Index, {self.array!r}Array, {self.relation!r}Relation)"


@dataclass(frozen=True)
class Unordered(_Replaceable):
    """Order of an index with no monotonic guarantee."""


# =============================================================================
# Span and sampling
# =============================================================================


@dataclass(frozen=True)
class Regular(_Replaceable):
    """Constant spacing between index values. ``step`` carries the index direction."""

    step: Any = None


@dataclass(frozen=True)
class Irregular(_Replaceable):
    """Arbitrary spacing, with explicit ``(min, max)`` bounds of the whole index."""

    bounds: tuple | None = None


class Locus(Enum):
    """Where in its interval an index value sits."""

    START = "start"
    CENTER = "center"
    END = "end"

    def __repr__(self) -> str:
        return self.name.capitalize()


Start = Locus.START
Center = Locus.CENTER
End = Locus.END


@dataclass(frozen=True)
class Points(_Replaceable):
    """Index values are exact sample locations."""


@dataclass(frozen=True)
class Intervals(_Replaceable):
    """Each index value stands for an interval, anchored at ``locus``."""

    locus: Locus = Locus.CENTER


# =============================================================================
# Modes
# =============================================================================


class Mode(_Replaceable):
    """Base class of all dimension modes."""


@dataclass(frozen=True)
class Sampled(Mode):
    """
    Index of physical sample points or intervals.

    ``order`` and ``span`` may be left as ``None`` (or ``Regular()`` /
    ``Irregular()`` without values) and are filled in from the index when
    the dimension is formatted.
    """

    order: Ordered | Unordered | None = None
    span: Regular | Irregular | None = None
    sampling: Points | Intervals = Points()


@dataclass(frozen=True)
class Categorical(Mode):
    """Index of discrete labels. ``order`` is detected when left as ``None``."""

    order: Ordered | Unordered | None = None


@dataclass(frozen=True)
class NoIndex(Mode):
    """Position-only dimension. Selectors are not allowed."""


@dataclass(frozen=True)
class AutoMode(Mode):
    """Placeholder resolved to a concrete mode when the dimension is formatted."""


# =============================================================================
# Order algebra
# =============================================================================


def flip(aspect: OrderAspect, order: Ordered | Unordered) -> Ordered | Unordered:
    """
    Flip one component of an order, keeping the relation consistent.

    Flipping the array or index order also flips the relation. Flipping the
    relation flips the array order, since the index order is the stable
    reference. ``Unordered`` is returned unchanged.
    """
    if not isinstance(order, Ordered):
        return order
    if aspect is IndexOrder:
        return Ordered(order.index.flipped(), order.array)
    if aspect is ArrayOrder or aspect is Relation:
        return Ordered(order.index, order.array.flipped())
    raise TypeError(f"Expected an OrderAspect, got {aspect!r}")


def reverse(aspect: OrderAspect, mode: Mode) -> Mode:
    """
    Mode after reversing ``aspect``.

    When the index order flips, a ``Regular`` step changes sign with it.
    Modes without an order are returned unchanged.
    """
    mode_order = getattr(mode, "order", None)
    if not isinstance(mode_order, Ordered):
        return mode
    new_mode = mode.replace(order=flip(aspect, mode_order))
    if aspect is IndexOrder and isinstance(new_mode, Sampled):
        span_ = new_mode.span
        if isinstance(span_, Regular) and span_.step is not None:
            new_mode = new_mode.replace(span=Regular(-span_.step))
    return new_mode


def is_ordered(mode: Mode) -> bool:
    return isinstance(getattr(mode, "order", None), Ordered)


# =============================================================================
# Queries
# =============================================================================


def _mode_of(obj) -> Mode:
    return obj if isinstance(obj, Mode) else obj.mode


def order(obj) -> Ordered | Unordered | None:
    """Order of a mode or dimension, ``None`` for modes without one."""
    return getattr(_mode_of(obj), "order", None)


def _order_component(obj, aspect: OrderAspect) -> Direction | None:
    ord_ = order(obj)
    return ord_.get(aspect) if isinstance(ord_, Ordered) else None


def indexorder(obj) -> Direction | None:
    return _order_component(obj, IndexOrder)


def arrayorder(obj) -> Direction | None:
    return _order_component(obj, ArrayOrder)


def relation(obj) -> Direction | None:
    return _order_component(obj, Relation)


def span(obj) -> Regular | Irregular | None:
    return getattr(_mode_of(obj), "span", None)


def sampling(obj) -> Points | Intervals | None:
    return getattr(_mode_of(obj), "sampling", None)


def locus(obj) -> Locus | None:
    return getattr(sampling(obj), "locus", None)
