"""Exceptions raised by dimensional."""

from __future__ import annotations

__all__ = [
    "DimensionalError",
    "DimensionMismatchError",
    "SelectorModeError",
    "ShapeError",
]


class DimensionalError(Exception):
    """Base exception class."""


class DimensionMismatchError(DimensionalError, ValueError):
    """Raised when a dimension cannot be resolved or two sets of dims disagree.

    This covers asking for a dimension an array does not have, passing the
    same dimension twice in one request, positional axes out of range, and
    arrays whose shared dimensions do not line up.
    """


class SelectorModeError(DimensionalError, TypeError):
    """Raised when a selector cannot be used with a dimension's mode.

    For example ``Near`` on a ``NoIndex`` dimension, or ``Between`` on an
    unordered one.
    """


class ShapeError(DimensionalError, ValueError):
    """Raised when a dimension length and an array axis length would disagree.

    Parameters
    ----------
    message : str
        Message to show with the exception.
    names : tuple of str, optional
        Names of the things being compared, appended to ``message``.
    shapes : tuple, optional
        Shapes or lengths matching ``names``.
    """

    def __init__(
        self,
        message: str,
        names: tuple[str, ...] | None = None,
        shapes: tuple | None = None,
    ):
        if names is not None and shapes is not None:
            extras = [f"{name}: {shape}" for name, shape in zip(names, shapes)]
            message = f"{message} - {' <> '.join(extras)}"

        super().__init__(message)
