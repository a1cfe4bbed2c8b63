"""Small example arrays for documentation and testing.

All of them are deterministic so they can be used in doctests.
"""

import numpy as np

from .array import DimArray
from .dimension import Band, Ti, X, Y
from .mode import Intervals, Locus, Sampled

__all__ = [
    "regular_grid",
    "irregular_series",
    "interval_series",
    "categorical_table",
]


def regular_grid() -> DimArray:
    """
    A 2x3 integer grid on two regular axes.

    Returns
    -------
    DimArray
        ``X=[10, 20]`` (step 10) by ``Y=[100, 200, 300]`` (step 100),
        holding ``[[1, 2, 3], [4, 5, 6]]``.

    Examples
    --------
    >>> from dimensional.example_data import regular_grid
    >>> A = regular_grid()
    >>> A.shape
    (2, 3)
    >>> A.dim("Y").mode.span
    Regular(step=100)
    """
    data = np.arange(1, 7).reshape(2, 3)
    return DimArray(data, (X(range(10, 30, 10)), Y(range(100, 400, 100))), name="grid")


def irregular_series() -> DimArray:
    """
    A time series sampled at uneven times.

    ``Ti=[0.0, 0.5, 1.5, 3.0, 5.0]`` with ``Irregular`` span and point
    sampling.
    """
    times = [0.0, 0.5, 1.5, 3.0, 5.0]
    values = np.array([1.0, 2.5, 4.0, 3.5, 2.0])
    return DimArray(values, Ti(times), name="series", metadata={"units": "m"})


def interval_series() -> DimArray:
    """
    Counts over regular bins.

    ``X=[0, 10, 20, 30]`` where each value is the start of a bin of width
    10, so the array covers ``[0, 40)``.
    """
    mode = Sampled(sampling=Intervals(Locus.START))
    return DimArray(np.array([3, 1, 4, 1]), X(range(0, 40, 10), mode), name="counts")


def categorical_table() -> DimArray:
    """A table with an unordered categorical ``Band`` and a positional ``X``."""
    data = np.array([[0.1, 0.2], [0.3, 0.4], [0.5, 0.6]])
    return DimArray(data, (Band(["red", "blue", "green"]), X(2)), name="table")
