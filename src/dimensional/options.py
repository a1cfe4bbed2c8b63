"""Global options controlling lookups, concatenation and display."""

from __future__ import annotations

from numbers import Integral, Real
from typing import Any

__all__ = ["OPTIONS", "set_options", "get_options"]

OPTIONS: dict[str, Any] = {
    "strict_cat": True,
    "at_atol": None,
    "repr_max_items": 6,
}


def _is_bool(value) -> bool:
    return isinstance(value, bool)


def _is_atol(value) -> bool:
    return value is None or (
        isinstance(value, Real) and not isinstance(value, bool) and value >= 0
    )


def _is_positive_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool) and value > 0


_VALIDATORS = {
    "strict_cat": (_is_bool, "a bool"),
    "at_atol": (_is_atol, "None or a non-negative number"),
    "repr_max_items": (_is_positive_int, "a positive integer"),
}


class set_options:
    """
    Set options for dimensional, globally or inside a ``with`` block.

    Options
    -------
    strict_cat : bool
        When True (default), ``cat`` requires the dimensions that are not
        concatenated to have equal indices, not only equal lengths.
    at_atol : float or None
        Default absolute tolerance for ``At`` selectors that do not set one.
    repr_max_items : int
        Number of index values shown in reprs before eliding.

    Examples
    --------
    >>> from dimensional import set_options
    >>> with set_options(at_atol=1e-9):
    ...     pass
    >>> set_options(strict_cat=False)  # doctest: +ELLIPSIS
    <dimensional.options.set_options object at ...>
    """

    def __init__(self, **kwargs):
        self.old = {}
        for key, value in kwargs.items():
            if key not in OPTIONS:
                raise ValueError(
                    f"{key!r} is not a valid option. "
                    f"Must be one of: {tuple(OPTIONS)}"
                )
            validator, expected = _VALIDATORS[key]
            if not validator(value):
                raise ValueError(
                    f"Invalid value for option {key!r}: {value!r}. "
                    f"Expected {expected}."
                )
            self.old[key] = OPTIONS[key]
        OPTIONS.update(kwargs)

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        OPTIONS.update(self.old)


def get_options() -> dict[str, Any]:
    """Return a copy of the current option values."""
    return dict(OPTIONS)
