"""Tests for dimension identity resolution, slicing and reduction of dims."""

import numpy as np
import pandas as pd
import pytest

from dimensional import X, Y, Z
from dimensional.dimension import StepRange, format_dimension, format_dims
from dimensional.exceptions import DimensionMismatchError
from dimensional.mode import (
    FORWARD,
    REVERSE,
    Categorical,
    Intervals,
    Irregular,
    Locus,
    Ordered,
    Regular,
    Sampled,
)
from dimensional.primitives import (
    align_storage,
    dimnum,
    dimnums,
    dims,
    getdim,
    hasdim,
    otherdims,
    reducedim,
    relate,
    slicedim,
    slicedims,
)


@pytest.fixture
def xy():
    """X=[10, 20] irregular, Y=[100, 200, 300] regular."""
    return format_dims((2, 3), (X([10, 20]), Y(range(100, 400, 100))))


class TestDimnum:
    """Tests for resolving dimension queries to axes."""

    def test_by_tag_name_and_position(self, xy):
        """Tags, names and positions all resolve."""
        assert dimnum(xy, Y) == 1
        assert dimnum(xy, "Y") == 1
        assert dimnum(xy, Y(range(3))) == 1
        assert dimnum(xy, 0) == 0
        assert dimnum(xy, -1) == 1

    def test_missing_dimension(self, xy):
        """Asking for Z on an X, Y tuple is an identity error."""
        with pytest.raises(DimensionMismatchError, match="'Z' not found"):
            dimnum(xy, Z)

    def test_position_out_of_range(self, xy):
        """Positions outside the dims raise the identity error."""
        with pytest.raises(DimensionMismatchError, match="out of range"):
            dimnum(xy, 2)

    def test_integer_names_win_over_positions(self):
        """A dimension named by an int is matched before positions."""
        d = format_dims((2, 3), (Y, 0))
        assert dimnum(d, 0) == 1

    def test_dimnums_keeps_order(self, xy):
        """Several queries come back in the requested order."""
        assert dimnums(xy, [Y, X]) == (1, 0)
        assert dimnums(xy, "X") == (0,)

    def test_dimnums_rejects_duplicates(self, xy):
        """The same axis twice in one request is ambiguous."""
        with pytest.raises(DimensionMismatchError, match="more than once"):
            dimnums(xy, [X, "X"])

    def test_lookup_helpers(self, xy):
        """getdim, hasdim, dims and otherdims agree with dimnum."""
        assert getdim(xy, "Y") is xy[1]
        assert hasdim(xy, X)
        assert not hasdim(xy, Z)
        assert dims(xy, [Y, X]) == (xy[1], xy[0])
        assert otherdims(xy, X) == (xy[1],)


class TestRelate:
    """Tests for mapping index positions to array positions."""

    @pytest.fixture
    def anti(self):
        """A dimension stored against its index."""
        return format_dimension(X(range(10, 40, 10), Sampled(Ordered(FORWARD, REVERSE))), 3)

    def test_aligned_is_identity(self, xy):
        """Aligned dimensions map positions to themselves."""
        assert relate(xy[1], 2) == 2
        assert relate(xy[1], slice(0, 2)) == slice(0, 2)

    def test_anti_aligned(self, anti):
        """Reverse array order maps i to n - 1 - i."""
        assert relate(anti, 0) == 2
        np.testing.assert_array_equal(relate(anti, [0, 2]), [2, 0])

    def test_anti_aligned_slice_stays_increasing(self, anti):
        """Increasing slices map to increasing slices."""
        assert relate(anti, slice(0, 2)) == slice(1, 3, 1)

    def test_align_storage_flips_opposite_relation(self, anti):
        """Axes stored the other way round are flipped to match the target."""
        data = np.arange(6).reshape(3, 2)
        target = (format_dimension(X(range(10, 40, 10)), 3),)
        aligned = align_storage(target, (anti, Z(2)), data)
        np.testing.assert_array_equal(aligned, data[::-1])

    def test_align_storage_keeps_matching_dims(self, xy):
        """Dims with the same relation, or absent from the target, are untouched."""
        data = np.arange(6).reshape(2, 3)
        np.testing.assert_array_equal(align_storage(xy, xy, data), data)
        np.testing.assert_array_equal(align_storage((Z(2),), xy, data), data)


class TestSlicedim:
    """Tests for slicing a single dimension."""

    def test_regular_slice_stays_lazy(self, xy):
        """Slicing a regular dimension keeps a StepRange and the step."""
        d = slicedim(xy[1], slice(1, 3))
        assert d.val == StepRange(200, 100, 2)
        assert d.mode.span == Regular(100)

    def test_negative_step_flips_index_order(self, xy):
        """A reversing slice flips the index order and the step."""
        d = slicedim(xy[1], slice(None, None, -1))
        np.testing.assert_array_equal(d.values, [300, 200, 100])
        assert d.mode.order == Ordered(REVERSE, FORWARD)
        assert d.mode.span == Regular(-100)

    def test_irregular_bounds_recomputed(self):
        """Irregular bounds shrink to the selected values."""
        d = format_dimension(X([1.0, 2.0, 4.0]), 3)
        s = slicedim(d, slice(1, 3))
        assert isinstance(s.val, pd.Index)
        assert s.mode.span == Irregular((2.0, 4.0))

    def test_fancy_selection_redetects_order(self):
        """Selecting out of order gives a new detected order."""
        d = format_dimension(X([1.0, 2.0, 4.0]), 3)
        s = slicedim(d, [2, 0])
        np.testing.assert_array_equal(s.values, [4.0, 1.0])
        assert s.mode.order == Ordered(REVERSE)
        assert s.mode.span == Irregular((1.0, 4.0))

    def test_boolean_mask(self, xy):
        """Boolean masks select the true positions."""
        s = slicedim(xy[1], np.array([True, False, True]))
        np.testing.assert_array_equal(s.values, [100, 300])

    def test_integer_gives_length_one(self, xy):
        """An integer gives the length-1 dimension of that cell."""
        s = slicedim(xy[1], -1)
        np.testing.assert_array_equal(s.values, [300])

    def test_integer_out_of_bounds(self, xy):
        """Out of bounds integers raise IndexError."""
        with pytest.raises(IndexError):
            slicedim(xy[1], 3)

    def test_slicedims_moves_ints_to_refdims(self, xy):
        """Integer-indexed axes move to refdims."""
        new_dims, refdims = slicedims(xy, (), (0, slice(None)))
        assert [d.name for d in new_dims] == ["Y"]
        assert [d.name for d in refdims] == ["X"]
        np.testing.assert_array_equal(refdims[0].values, [10])


class TestReducedim:
    """Tests for the length-1 dimension left by a reduction."""

    def test_regular_points(self, xy):
        """Regular dims take the midpoint and a step covering the extent."""
        d = reducedim(xy[1])
        np.testing.assert_allclose(d.values, [200.0])
        assert d.mode.span == Regular(300)

    def test_irregular_intervals(self):
        """Irregular intervals keep the original bounds and move to Center."""
        mode = Sampled(sampling=Intervals(Locus.START))
        d = reducedim(format_dimension(X([0.0, 1.0, 3.0], mode), 3))
        np.testing.assert_allclose(d.values, [2.5])
        assert d.mode.span == Irregular((0.0, 5.0))
        assert d.mode.sampling == Intervals(Locus.CENTER)

    def test_categorical_keeps_first(self):
        """Categorical dims keep their first label."""
        d = reducedim(format_dimension(X(["a", "b"]), 2))
        assert list(d.values) == ["a"]
        assert isinstance(d.mode, Categorical)
