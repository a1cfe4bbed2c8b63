"""The DimArray container: a payload array with one Dimension per axis.

Every operation works out the new dimensions first (with the helpers in
``primitives``), then lets numpy transform the payload positionally, and
finally wraps the result with the new dimensions. Nothing is mutated in
place except through ``__setitem__``, which writes into the payload.

Indexing
--------
``A[...]`` accepts, per axis:

- integers, slices, integer or boolean arrays (positions),
- selectors (``At``, ``Near``, ``Contains``, ``Between``) or plain labels,
- Dimensions wrapping either of the above, in any order:
  ``A[Y(At(200)), X(0)]``.

Indexing is orthogonal: each axis is indexed independently, as in
``xarray`` and unlike numpy fancy indexing. An integer drops its axis and
moves the length-1 Dimension of the chosen cell into ``refdims``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from numbers import Integral, Number
from typing import Any

import numpy as np
from numpy.lib.mixins import NDArrayOperatorsMixin

from .dimension import Dimension, DimType, _format_index, format_dimension, format_dims
from .exceptions import DimensionMismatchError, ShapeError
from .primitives import (
    _as_queries,
    align_storage,
    check_matching_dims,
    dimnum,
    dimnums,
    getdim,
    reducedims,
    slicedims,
)
from .selectors import to_indexer

__all__ = ["DimArray"]

_NOT_SET = object()


def _is_int(key) -> bool:
    return isinstance(key, Integral) and not isinstance(key, bool)


def _standalone(dim) -> Dimension:
    """Format a dimension that is not attached to an array yet."""
    if isinstance(dim, DimType):
        raise TypeError(f"Dimension {dim.name!r} needs a length or an index")
    val = dim.val
    if _is_int(val):
        n = int(val)
    elif isinstance(val, tuple) and len(val) == 2:
        raise TypeError(
            f"Dimension {dim.name!r}: a (lo, hi) range needs the array to set its length"
        )
    else:
        n = len(_format_index(dim.name, val, 0))
    return format_dimension(dim, n)


class DimArray(NDArrayOperatorsMixin):
    """
    N-dimensional array with named, indexed dimensions.

    Parameters
    ----------
    data : array_like
        The payload. Converted with ``numpy.asarray``.
    dims : dimension-like or sequence of dimension-like
        One per axis: a ``Dimension``, a ``DimType`` tag or a plain name.
        Unformatted indices and ``AutoMode`` are resolved here.
    name : hashable, optional
    refdims : tuple of Dimension, optional
        Dimensions of axes that were indexed away, kept for labelling.
    metadata : any, optional
        Opaque payload carried through every operation.

    Raises
    ------
    ShapeError
        If the number of dims or any dimension length disagrees with ``data``.
    DimensionMismatchError
        If two dims share a name.

    Examples
    --------
    >>> from dimensional import DimArray, X, Y
    >>> A = DimArray([[1, 2, 3], [4, 5, 6]], (X([10, 20]), Y([100, 200, 300])))
    >>> A.shape
    (2, 3)
    """

    __array_priority__ = 70

    def __init__(self, data, dims, name=None, refdims=(), metadata=None):
        data = np.asarray(data)
        self._data = data
        self._dims = format_dims(data.shape, dims)
        self._refdims = tuple(refdims)
        self._name = name
        self._metadata = metadata

    def rebuild(
        self,
        data=_NOT_SET,
        dims=_NOT_SET,
        refdims=_NOT_SET,
        name=_NOT_SET,
        metadata=_NOT_SET,
    ) -> "DimArray":
        """New array with some fields replaced and the rest carried over."""
        return DimArray(
            self._data if data is _NOT_SET else data,
            self._dims if dims is _NOT_SET else dims,
            name=self._name if name is _NOT_SET else name,
            refdims=self._refdims if refdims is _NOT_SET else refdims,
            metadata=self._metadata if metadata is _NOT_SET else metadata,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def values(self) -> np.ndarray:
        return self._data

    @property
    def dims(self) -> tuple[Dimension, ...]:
        return self._dims

    @property
    def refdims(self) -> tuple[Dimension, ...]:
        return self._refdims

    @property
    def name(self):
        return self._name

    @property
    def metadata(self):
        return self._metadata

    @property
    def shape(self) -> tuple[int, ...]:
        return self._data.shape

    @property
    def ndim(self) -> int:
        return self._data.ndim

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    def dim(self, query) -> Dimension:
        return getdim(self._dims, query)

    def dimnum(self, query) -> int:
        return dimnum(self._dims, query)

    def index(self, query):
        """Index (``StepRange`` or ``pandas.Index``) of one dimension."""
        return self.dim(query).val

    def bounds(self, query=None):
        """``(min, max)`` of one dimension, or a tuple of them for all dims."""
        if query is None:
            return tuple(d.bounds() for d in self._dims)
        return self.dim(query).bounds()

    def size_of(self, query) -> int:
        return len(self.dim(query))

    def __len__(self) -> int:
        if self.ndim == 0:
            raise TypeError("len() of a 0-dimensional DimArray")
        return self.shape[0]

    def __array__(self, dtype=None, copy=None):
        if copy:
            return np.array(self._data, dtype=dtype)
        return np.asarray(self._data, dtype=dtype)

    def copy(self) -> "DimArray":
        return self.rebuild(data=self._data.copy())

    def equals(self, other) -> bool:
        """True if ``other`` has the same data, dims, refdims, name and metadata."""
        if not isinstance(other, DimArray):
            return False
        if self.shape != other.shape:
            return False
        try:
            same_data = np.array_equal(self._data, other._data, equal_nan=True)
        except TypeError:
            same_data = np.array_equal(self._data, other._data)
        return (
            bool(same_data)
            and self._dims == other._dims
            and self._refdims == other._refdims
            and self._name == other._name
            and self._metadata == other._metadata
        )

    def __repr__(self) -> str:
        sizes = ", ".join(f"{d.name}: {len(d)}" for d in self._dims)
        title = "DimArray" if self._name is None else f"DimArray {self._name!r}"
        lines = [f"{title} ({sizes}) {self.dtype}"]
        for d in self._dims:
            lines.append(f"  {d!r}")
        if self._refdims:
            lines.append("  refdims: " + ", ".join(repr(d) for d in self._refdims))
        lines.append(repr(self._data))
        return "\n".join(lines)

    # =========================================================================
    # Indexing
    # =========================================================================

    def _key_to_indexers(self, key, labels: bool = False) -> list:
        """One positional indexer per axis."""
        indexers: list[Any] = [slice(None)] * self.ndim
        if isinstance(key, Mapping):
            for query, k in key.items():
                n = dimnum(self._dims, query)
                indexers[n] = to_indexer(self._dims[n], k, labels=labels)
            return indexers

        if not isinstance(key, tuple):
            key = (key,)
        if key and all(isinstance(k, Dimension) for k in key):
            seen = dimnums(self._dims, list(key))
            for n, k in zip(seen, key):
                indexers[n] = to_indexer(self._dims[n], k.val, labels=labels)
            return indexers

        if any(isinstance(k, Dimension) for k in key):
            raise TypeError("Cannot mix Dimension keys with positional keys")
        ellipses = [i for i, k in enumerate(key) if k is Ellipsis]
        if len(ellipses) > 1:
            raise IndexError("an index can only have a single ellipsis ('...')")
        if ellipses:
            i = ellipses[0]
            fill = (slice(None),) * (self.ndim - len(key) + 1)
            key = key[:i] + fill + key[i + 1 :]
        if len(key) > self.ndim:
            raise IndexError(
                f"too many indices for DimArray: {self.ndim} dimensional, "
                f"{len(key)} were indexed"
            )
        for n, k in enumerate(key):
            indexers[n] = to_indexer(self._dims[n], k, labels=labels)
        return indexers

    def _apply(self, indexers: list):
        if indexers and all(_is_int(i) for i in indexers):
            return self._data[tuple(indexers)]

        new_dims, new_refdims = slicedims(self._dims, self._refdims, indexers)
        data = self._data
        # last axis first so earlier axis numbers stay valid when ints drop axes
        for axis in reversed(range(self.ndim)):
            indexer = indexers[axis]
            if isinstance(indexer, slice) and indexer == slice(None):
                continue
            data = data[(slice(None),) * axis + (indexer,)]
        return DimArray(
            data, new_dims, name=self._name, refdims=new_refdims, metadata=self._metadata
        )

    def __getitem__(self, key):
        return self._apply(self._key_to_indexers(key))

    def __setitem__(self, key, value):
        indexers = self._key_to_indexers(key)
        if isinstance(value, DimArray):
            value = value.data
        positions = []
        int_axes = []
        for axis, (dim, indexer) in enumerate(zip(self._dims, indexers)):
            n = len(dim)
            if _is_int(indexer):
                positions.append([int(indexer) % n if -n <= indexer < n else indexer])
                int_axes.append(axis)
            elif isinstance(indexer, slice):
                positions.append(np.arange(n)[indexer])
            else:
                arr = np.asarray(indexer)
                positions.append(np.flatnonzero(arr) if arr.dtype == bool else arr)
        value = np.asarray(value)
        if int_axes and value.ndim == self.ndim - len(int_axes) and value.ndim > 0:
            value = np.expand_dims(value, tuple(int_axes))
        self._data[np.ix_(*positions)] = value

    def isel(self, indexers: Mapping | None = None, **indexers_kwargs):
        """Positional indexing by dimension: ``A.isel(X=0, Y=slice(1, 3))``."""
        indexers = dict(indexers or {}, **indexers_kwargs)
        keys = [slice(None)] * self.ndim
        for query, k in indexers.items():
            keys[dimnum(self._dims, query)] = k
        return self._apply(keys)

    def sel(self, indexers: Mapping | None = None, **indexers_kwargs):
        """
        Label-based indexing by dimension.

        Plain values are exact matches, slices select the inclusive range
        between their start and stop, and selectors are used as given.

        Examples
        --------
        >>> A.sel(X=20, Y=slice(100, 200))  # doctest: +SKIP
        """
        indexers = dict(indexers or {}, **indexers_kwargs)
        return self._apply(self._key_to_indexers(indexers, labels=True))

    # =========================================================================
    # Arithmetic
    # =========================================================================

    _HANDLED_TYPES = (np.ndarray, Number, np.generic, list)

    def __array_ufunc__(self, ufunc, method, *inputs, **kwargs):
        for x in inputs:
            if not isinstance(x, self._HANDLED_TYPES + (DimArray,)):
                return NotImplemented
        if kwargs.get("out"):
            raise NotImplementedError(
                "The `out` argument is not supported by DimArray arithmetic"
            )
        if method != "__call__":
            raise NotImplementedError(f"{ufunc.__name__}.{method} is not supported")
        if ufunc is np.matmul:
            return _matmul(*inputs)

        arrays = [x for x in inputs if isinstance(x, DimArray)]
        template = arrays[0]
        for other in arrays[1:]:
            check_matching_dims(template.dims, other.dims)
        raw = tuple(
            align_storage(template.dims, x.dims, x.data) if isinstance(x, DimArray) else x
            for x in inputs
        )
        result = ufunc(*raw, **kwargs)
        names = {a.name for a in arrays}
        name = template.name if len(names) == 1 else None

        def wrap(data):
            data = np.asarray(data)
            if data.shape != template.shape:
                raise ShapeError(
                    f"Result of {ufunc.__name__} does not fit the array dims",
                    names=("result", "dims"),
                    shapes=(data.shape, template.shape),
                )
            return template.rebuild(data=data, name=name)

        if isinstance(result, tuple):
            return tuple(wrap(r) for r in result)
        return wrap(result)

    def map(self, func: Callable) -> "DimArray":
        """Apply ``func`` to every element, keeping dims."""
        if self.size == 0:
            return self.copy()
        return self.rebuild(data=np.vectorize(func)(self._data))

    # =========================================================================
    # Reductions
    # =========================================================================

    def reduce(self, func: Callable, dims=None, f: Callable | None = None, **kwargs):
        """
        Reduce with ``func(data, axis=..., keepdims=True)``.

        With ``dims=None`` every axis is reduced and the scalar result is
        returned. Otherwise the reduced axes stay in ``dims`` with length 1:
        sampled dimensions get the midpoint of their bounds as coordinate and
        a span covering the original extent, other dimensions keep their
        first label. ``refdims`` is left as is.

        ``f``, when given, is applied to every element before reducing.
        """
        data = self._data if f is None else self.map(f)._data
        if dims is None:
            return func(data, **kwargs)
        axes = dimnums(self._dims, _as_queries(dims))
        data = func(data, axis=axes, keepdims=True, **kwargs)
        return self.rebuild(data=data, dims=reducedims(self._dims, axes))

    def mapreduce(self, f: Callable, func: Callable, dims=None, **kwargs):
        """Apply ``f`` elementwise, then reduce with ``func``."""
        return self.reduce(func, dims, f=f, **kwargs)

    def sum(self, dims=None, f=None):
        return self.reduce(np.sum, dims, f=f)

    def prod(self, dims=None, f=None):
        return self.reduce(np.prod, dims, f=f)

    def mean(self, dims=None, f=None):
        return self.reduce(np.mean, dims, f=f)

    def median(self, dims=None, f=None):
        return self.reduce(np.median, dims, f=f)

    def max(self, dims=None, f=None):
        return self.reduce(np.max, dims, f=f)

    def min(self, dims=None, f=None):
        return self.reduce(np.min, dims, f=f)

    def extrema(self, dims=None, f=None) -> tuple:
        """``(min, max)`` pair, as scalars or as two reduced arrays."""
        return self.min(dims, f=f), self.max(dims, f=f)

    def std(self, dims=None, ddof: int = 0, f=None):
        return self.reduce(np.std, dims, f=f, ddof=ddof)

    def var(self, dims=None, ddof: int = 0, f=None):
        return self.reduce(np.var, dims, f=f, ddof=ddof)

    def any(self, dims=None, f=None):
        return self.reduce(np.any, dims, f=f)

    def all(self, dims=None, f=None):
        return self.reduce(np.all, dims, f=f)

    # =========================================================================
    # Construction
    # =========================================================================

    def similar(self, dtype=None) -> "DimArray":
        """Uninitialised array with the same dims and refdims, and no name."""
        return self.rebuild(data=np.empty_like(self._data, dtype=dtype), name=None)

    def zero(self) -> "DimArray":
        """Array of zeros with the same dims."""
        return self.rebuild(data=np.zeros_like(self._data))

    def one(self) -> "DimArray":
        """
        Multiplicative identity: the identity matrix over the same dims.

        Raises
        ------
        ShapeError
            If the array is not a square matrix.
        """
        if self.ndim != 2 or self.shape[0] != self.shape[1]:
            raise ShapeError(
                "one needs a square matrix",
                names=tuple(str(d.name) for d in self._dims),
                shapes=self.shape,
            )
        return self.rebuild(data=np.eye(self.shape[0], dtype=self.dtype))

    @classmethod
    def fill(cls, value, *dims, name=None, metadata=None) -> "DimArray":
        """
        Array of ``value`` over ``dims``.

        Each dimension needs a length or an explicit index, e.g.
        ``DimArray.fill(0.0, X(range(3)), Y(["a", "b"]))``.
        """
        dims = tuple(_standalone(d) for d in dims)
        data = np.full(tuple(len(d) for d in dims), value)
        return cls(data, dims, name=name, metadata=metadata)

    @classmethod
    def from_function(cls, func: Callable, *dims, name=None, metadata=None) -> "DimArray":
        """Array holding ``func(*coords)`` at every combination of coordinates."""
        dims = tuple(_standalone(d) for d in dims)
        grids = np.meshgrid(*(d.values for d in dims), indexing="ij")
        if any(len(d) == 0 for d in dims):
            data = np.empty(tuple(len(d) for d in dims))
        else:
            data = np.vectorize(func)(*grids)
        return cls(data, dims, name=name, metadata=metadata)


def _matmul(a, b):
    """Matrix product contracting the last dim of ``a`` with the first of ``b``."""
    if not (isinstance(a, DimArray) and isinstance(b, DimArray)):
        raise TypeError("Matrix multiplication needs two DimArrays")
    if a.ndim not in (1, 2) or b.ndim not in (1, 2):
        raise ShapeError(
            "Matrix multiplication needs 1 or 2 dimensional arrays",
            names=(str(a.name), str(b.name)),
            shapes=(a.shape, b.shape),
        )
    inner_a, inner_b = a.dims[-1], b.dims[0]
    if inner_a.name != inner_b.name or len(inner_a) != len(inner_b):
        raise DimensionMismatchError(
            f"Cannot contract {inner_a.name!r} ({len(inner_a)}) "
            f"with {inner_b.name!r} ({len(inner_b)})"
        )
    # only the contracted dimension has to line up
    data = np.matmul(a.data, align_storage((inner_a,), (inner_b,), b.data))
    new_dims = a.dims[:-1] + b.dims[1:]
    if not new_dims:
        return data
    return DimArray(data, new_dims, metadata=a.metadata)
