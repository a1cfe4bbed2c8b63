"""Conversion between DimArray and xarray.DataArray."""

from __future__ import annotations

from collections.abc import Mapping

import numpy as np
import pandas as pd
import xarray as xr

from .array import DimArray
from .dimension import Dimension, format_dimension, intervals
from .mode import Intervals, Locus, NoIndex, Sampled
from .primitives import _anti_aligned

__all__ = ["to_xarray", "from_xarray"]

_INTERVALS_SUFFIX = "_intervals"


def _storage_order(dim: Dimension, values):
    return values[::-1] if _anti_aligned(dim) else values


def to_xarray(A: DimArray) -> xr.DataArray:
    """
    Convert a DimArray to an ``xarray.DataArray``.

    Every indexed dimension becomes a coordinate holding its values in
    storage order. ``Intervals`` dimensions also get a ``<name>_intervals``
    coordinate of ``pandas.Interval`` objects, and refdims become scalar
    coordinates. Mapping metadata is copied to ``attrs``.

    Raises
    ------
    ValueError
        If a dimension name is not a string.
    """
    if not all(isinstance(d.name, str) for d in A.dims + A.refdims):
        raise ValueError(
            "can only convert DimArrays with string dimension names to "
            f"xarray.DataArray, got {[d.name for d in A.dims]!r}"
        )

    coords = {}
    for dim in A.dims:
        if isinstance(dim.mode, NoIndex):
            continue
        coords[dim.name] = (dim.name, _storage_order(dim, dim.values))
        if isinstance(getattr(dim.mode, "sampling", None), Intervals):
            coords[dim.name + _INTERVALS_SUFFIX] = (
                dim.name,
                np.asarray(_storage_order(dim, intervals(dim)), dtype=object),
            )
    for dim in A.refdims:
        if not isinstance(dim.mode, NoIndex) and dim.name not in coords:
            coords[dim.name] = dim.values[0]

    attrs = dict(A.metadata) if isinstance(A.metadata, Mapping) else {}
    return xr.DataArray(
        A.data, dims=[d.name for d in A.dims], coords=coords, name=A.name, attrs=attrs
    )


def _locus(values: np.ndarray, ivals) -> Locus:
    lower = np.array([iv.left for iv in ivals])
    upper = np.array([iv.right for iv in ivals])
    if np.allclose(values, lower):
        return Locus.START
    if np.allclose(values, upper):
        return Locus.END
    return Locus.CENTER


def _dimension_from_coords(da: xr.DataArray, name) -> Dimension:
    if name not in da.coords:
        return Dimension(name, mode=NoIndex())
    values = np.asarray(da.coords[name].values)
    interval_name = f"{name}{_INTERVALS_SUFFIX}"
    if interval_name in da.coords:
        ivals = da.coords[interval_name].values
        mode = Sampled(sampling=Intervals(_locus(values, ivals)))
        return Dimension(name, pd.Index(values), mode)
    return Dimension(name, pd.Index(values))


def from_xarray(da: xr.DataArray) -> DimArray:
    """
    Build a DimArray from an ``xarray.DataArray``.

    Coordinates are formatted like any other index, so their mode is
    detected from the values. Dimensions without a coordinate become
    ``NoIndex``, and scalar coordinates become refdims.
    """
    dims = tuple(_dimension_from_coords(da, name) for name in da.dims)
    refdims = tuple(
        format_dimension(Dimension(name, [coord.values.item()]), 1)
        for name, coord in da.coords.items()
        if coord.ndim == 0
    )
    metadata = dict(da.attrs) if da.attrs else None
    return DimArray(da.values, dims, name=da.name, refdims=refdims, metadata=metadata)
