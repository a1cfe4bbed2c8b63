try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0+unknown"

from .array import DimArray
from .dimension import (
    WELL_KNOWN_DIMS,
    Band,
    Dimension,
    DimType,
    Lat,
    Lon,
    StepRange,
    Ti,
    Vert,
    X,
    Y,
    Z,
    bounds,
    format_dims,
    interval_edges,
    intervals,
)
from .exceptions import (
    DimensionalError,
    DimensionMismatchError,
    SelectorModeError,
    ShapeError,
)
from .methods import (
    Rotation,
    cat,
    cor,
    cov,
    diff,
    dimwise,
    dropdims,
    eachslice,
    flip,
    mapslices,
    modify,
    permutedims,
    reorder,
    reverse,
    rot180,
    rotl90,
    rotr90,
    rottype,
    transpose,
    unique,
)
from .mode import (
    ArrayOrder,
    AutoMode,
    Categorical,
    Center,
    End,
    ForwardArray,
    ForwardIndex,
    ForwardRelation,
    IndexOrder,
    Intervals,
    Irregular,
    NoIndex,
    Ordered,
    Points,
    Regular,
    Relation,
    ReverseArray,
    ReverseIndex,
    ReverseRelation,
    Sampled,
    Start,
    Unordered,
)
from .options import get_options, set_options
from .primitives import dimnum, dims, hasdim, otherdims
from .selectors import At, Between, Contains, Near, sel2indices
from .interop import from_xarray, to_xarray
from . import example_data

__all__ = [
    "__version__",
    # containers and dimensions
    "DimArray",
    "Dimension",
    "DimType",
    "StepRange",
    "X",
    "Y",
    "Z",
    "Ti",
    "Lat",
    "Lon",
    "Vert",
    "Band",
    "WELL_KNOWN_DIMS",
    "bounds",
    "format_dims",
    "interval_edges",
    "intervals",
    # modes
    "Sampled",
    "Categorical",
    "NoIndex",
    "AutoMode",
    "Ordered",
    "Unordered",
    "Regular",
    "Irregular",
    "Points",
    "Intervals",
    "Start",
    "Center",
    "End",
    "IndexOrder",
    "ArrayOrder",
    "Relation",
    "ForwardIndex",
    "ReverseIndex",
    "ForwardArray",
    "ReverseArray",
    "ForwardRelation",
    "ReverseRelation",
    # selectors
    "At",
    "Near",
    "Contains",
    "Between",
    "sel2indices",
    # dimension queries
    "dims",
    "dimnum",
    "hasdim",
    "otherdims",
    # methods
    "reverse",
    "flip",
    "reorder",
    "permutedims",
    "transpose",
    "Rotation",
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
    # interop
    "to_xarray",
    "from_xarray",
    # errors and options
    "DimensionalError",
    "DimensionMismatchError",
    "SelectorModeError",
    "ShapeError",
    "set_options",
    "get_options",
    "example_data",
]
