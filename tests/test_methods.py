"""Tests for dimension-aware array methods."""

import numpy as np
import pytest

from dimensional import (
    ArrayOrder,
    At,
    DimArray,
    DimensionMismatchError,
    ForwardIndex,
    IndexOrder,
    Relation,
    ReverseArray,
    Rotation,
    ShapeError,
    StepRange,
    Ti,
    X,
    Y,
    Z,
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
    set_options,
    unique,
)
from dimensional.dimension import format_dimension
from dimensional.example_data import categorical_table
from dimensional.mode import (
    FORWARD,
    REVERSE,
    Categorical,
    Irregular,
    NoIndex,
    Ordered,
    Regular,
)


@pytest.fixture
def A():
    """2x3 ints, X=[10, 20] (step 10), Y=[100, 200, 300] (step 100)."""
    return DimArray(
        np.array([[1, 2, 3], [4, 5, 6]]),
        (X(range(10, 30, 10)), Y(range(100, 400, 100))),
    )


class TestReverse:
    """Tests for reversing order components."""

    def test_index_order_scenario(self, A):
        """Reversing Y's index order reverses Y and the columns, not X."""
        B = reverse(IndexOrder, A, dims=Y)
        np.testing.assert_array_equal(B.data, [[3, 2, 1], [6, 5, 4]])
        np.testing.assert_array_equal(B.dim(Y).values, [300, 200, 100])
        assert B.dim(Y).mode.order == Ordered(REVERSE, FORWARD)
        assert B.dim(Y).mode.span == Regular(-100)
        assert B.dim(X) == A.dim(X)

    def test_array_order_keeps_index(self, A):
        """Reversing the array order reverses storage only."""
        B = reverse(ArrayOrder, A, dims=Y)
        np.testing.assert_array_equal(B.data, [[3, 2, 1], [6, 5, 4]])
        assert B.index(Y) == A.index(Y)
        assert B.dim(Y).mode.order == Ordered(FORWARD, REVERSE)

    @pytest.mark.parametrize("aspect", [IndexOrder, ArrayOrder, Relation])
    def test_cells_keep_coordinates(self, A, aspect):
        """Every reversal keeps each value at its coordinate."""
        B = reverse(aspect, A, dims=Y)
        np.testing.assert_array_equal(B[Y(At(300))].data, [3, 6])
        np.testing.assert_array_equal(B[Y(At(100))].data, [1, 4])

    @pytest.mark.parametrize("aspect", [IndexOrder, ArrayOrder, Relation])
    def test_involution(self, A, aspect):
        """Reversing twice gives the original array."""
        assert reverse(aspect, reverse(aspect, A)).equals(A)

    def test_involution_float_range(self):
        """Reversing a float range twice restores it exactly."""
        a = DimArray(np.arange(7.0), X((0.1, 0.7)))
        b = reverse(IndexOrder, reverse(IndexOrder, a))
        np.testing.assert_array_equal(b.dim(X).values, a.dim(X).values)
        assert b.equals(a)

    def test_dimension(self, A):
        """A lone dimension can be reversed."""
        d = reverse(IndexOrder, A.dim(Y))
        assert d.val == StepRange(300, -100, 3)

    def test_unordered_reverses_index(self):
        """Dims without an order reverse index and payload together."""
        T = categorical_table()
        B = reverse(ArrayOrder, T, dims="Band")
        assert list(B.dim("Band").values) == ["green", "blue", "red"]
        np.testing.assert_array_equal(B.data, T.data[::-1])

    def test_flip_is_metadata_only(self, A):
        """flip changes the flags, nothing else."""
        B = flip(IndexOrder, A, dims=Y)
        np.testing.assert_array_equal(B.data, A.data)
        assert B.index(Y) == A.index(Y)
        assert B.dim(Y).mode.order == Ordered(REVERSE, FORWARD)


class TestReorder:
    """Tests for reordering to a target."""

    def test_back_to_forward(self, A):
        """Reordering undoes an index reversal."""
        B = reverse(IndexOrder, A, dims=Y)
        assert reorder(B, ForwardIndex).equals(A)

    def test_noop_when_at_target(self, A):
        """Nothing is reversed when already at the target."""
        assert reorder(A, ForwardIndex) is A

    def test_forms(self, A):
        """Mapping, pairs and keywords all select dims."""
        expected = reverse(ArrayOrder, A, dims=Y)
        assert reorder(A, {Y: ReverseArray}).equals(expected)
        assert reorder(A, [("Y", ReverseArray)]).equals(expected)
        assert reorder(A, Y=ReverseArray).equals(expected)
        assert reorder(A, ReverseArray, dims=Y).equals(expected)

    def test_bad_target(self, A):
        """Targets must be OrderTargets."""
        with pytest.raises(TypeError, match="OrderTarget"):
            reorder(A, Y=IndexOrder)


class TestPermute:
    """Tests for permutedims."""

    def test_default_reverses(self, A):
        """Without an order the dims are reversed."""
        B = permutedims(A)
        assert [d.name for d in B.dims] == ["Y", "X"]
        np.testing.assert_array_equal(B.data, A.data.T)

    def test_explicit_order(self, A):
        """An explicit order is followed."""
        assert permutedims(A, (Y, X)).equals(permutedims(A))
        assert permutedims(A, ("X", "Y")).equals(A)

    def test_incomplete_order(self, A):
        """Every dim must be named."""
        with pytest.raises(DimensionMismatchError):
            permutedims(A, (Y,))
        with pytest.raises(DimensionMismatchError):
            permutedims(A, (Y, Z))


class TestRotation:
    """Tests for quarter-turn rotations."""

    def test_rottype(self):
        """Quarter turns are normalised modulo 4."""
        assert rottype(1) is Rotation.ROT90
        assert rottype(5) is Rotation.ROT90
        assert rottype(-1) is Rotation.ROT270
        assert rottype(4) is Rotation.ROT360

    def test_matches_numpy(self, A):
        """Rotations move the payload like numpy.rot90."""
        np.testing.assert_array_equal(rotl90(A).data, np.rot90(A.data))
        np.testing.assert_array_equal(rotr90(A).data, np.rot90(A.data, -1))
        np.testing.assert_array_equal(rot180(A).data, np.rot90(A.data, 2))
        np.testing.assert_array_equal(rotl90(A, 3).data, np.rot90(A.data, 3))

    def test_dims_follow(self, A):
        """A quarter turn swaps the dims and reverses the new first one."""
        B = rotl90(A)
        assert [d.name for d in B.dims] == ["Y", "X"]
        assert B.dim(Y).mode.order.array is REVERSE
        assert B.index(Y) == A.index(Y)
        assert B[Y(At(300)), X(At(10))] == 3

    @pytest.mark.parametrize("rotate", [rotl90, rotr90])
    def test_four_turns(self, A, rotate):
        """Four quarter turns give back the original array."""
        B = A
        for _ in range(4):
            B = rotate(B)
        assert B.equals(A)
        assert rotate(A, 4).equals(A)

    def test_needs_matrix(self):
        """Only 2-D arrays rotate."""
        with pytest.raises(ShapeError):
            rotl90(DimArray(np.zeros((2, 2, 2)), (X, Y, Z)))


class TestCat:
    """Tests for concatenation."""

    def test_contiguous_regular(self):
        """Contiguous regular pieces stay regular."""
        a = DimArray([1, 2], X(range(0, 20, 10)))
        b = DimArray([3, 4], X(range(20, 40, 10)))
        C = cat(a, b, dims=X)
        np.testing.assert_array_equal(C.data, [1, 2, 3, 4])
        assert C.index(X) == StepRange(0, 10, 4)
        assert C.dim(X).mode.span == Regular(10)

    def test_gap_becomes_irregular(self):
        """A gap between pieces gives an irregular span over all bounds."""
        a = DimArray([1, 2], X(range(0, 20, 10)))
        b = DimArray([3, 4], X(range(50, 70, 10)))
        C = cat(a, b, dims=X)
        np.testing.assert_array_equal(C.dim(X).values, [0, 10, 50, 60])
        assert C.dim(X).mode.span == Irregular((0, 60))

    def test_different_steps_become_irregular(self):
        """Pieces with different steps give an irregular span."""
        a = DimArray([1, 2], X(range(0, 20, 10)))
        b = DimArray([3, 4], X(range(20, 60, 20)))
        assert cat(a, b, dims=X).dim(X).mode.span == Irregular((0, 40))

    def test_noindex(self):
        """NoIndex dims stay NoIndex."""
        C = cat(DimArray([1, 2], X(2)), DimArray([3], X(1)), dims=X)
        assert C.dim(X).mode == NoIndex()
        assert C.index(X) == StepRange(0, 1, 3)

    def test_along_existing_2d(self, A):
        """Other dims must match to concatenate along one dim."""
        B = DimArray(A.data + 6, (X(range(30, 50, 10)), Y(range(100, 400, 100))))
        C = cat(A, B, dims=X)
        assert C.shape == (4, 3)
        assert C.dim(Y) == A.dim(Y)
        assert C.dim(X).mode.span == Regular(10)

    def test_strict_checks_other_indices(self, A):
        """Other dims with different indices are rejected unless relaxed."""
        B = DimArray(A.data, (X(range(30, 50, 10)), Y(range(0, 3))))
        with pytest.raises(DimensionMismatchError, match="strict=False"):
            cat(A, B, dims=X)
        assert cat(A, B, dims=X, strict=False).shape == (4, 3)
        with set_options(strict_cat=False):
            assert cat(A, B, dims=X).shape == (4, 3)

    def test_other_lengths_must_match(self, A):
        """Other dims of a different length are rejected."""
        B = DimArray(np.zeros((2, 2)), (X(range(30, 50, 10)), Y(range(100, 300, 100))))
        with pytest.raises(DimensionMismatchError):
            cat(A, B, dims=X, strict=False)

    def test_new_dimension(self, A):
        """A new dimension stacks the arrays along a last axis."""
        C = cat(A, A * 2, dims=Z(["a", "b"]))
        assert C.shape == (2, 3, 2)
        assert isinstance(C.dim(Z).mode, Categorical)
        np.testing.assert_array_equal(C[Z(At("b"))].data, A.data * 2)

    @pytest.mark.parametrize("aspect", [IndexOrder, ArrayOrder])
    def test_other_dims_line_up_by_coordinate(self, A, aspect):
        """Pieces stored the other way along a shared dim are joined by coordinate."""
        B = DimArray(A.data + 6, (X(range(30, 50, 10)), Y(range(100, 400, 100))))
        C = cat(A, reverse(aspect, B, dims=Y), dims=X, strict=False)
        assert C.dim(Y) == A.dim(Y)
        np.testing.assert_array_equal(C[Y(At(100))].data, [1, 4, 7, 10])
        np.testing.assert_array_equal(C[Y(At(300))].data, [3, 6, 9, 12])

    def test_new_dimension_lines_up_by_coordinate(self, A):
        """Stacking flips pieces stored the other way round."""
        C = cat(A, reverse(ArrayOrder, A, dims=Y), dims=Z(["a", "b"]), strict=False)
        np.testing.assert_array_equal(C[Z(At("b"))].data, A.data)

    def test_several_new_dimensions(self, A):
        """Leading new dims are added with length 1 before stacking along the last."""
        C = cat(A, A * 2, dims=(Z(range(1, 2)), Ti(range(1, 3))))
        assert C.shape == (2, 3, 1, 2)
        assert [d.name for d in C.dims] == ["X", "Y", "Z", "Ti"]
        np.testing.assert_array_equal(C[Ti(At(2))].data, (A * 2).data[..., np.newaxis])

    def test_several_dims_ending_in_existing(self, A):
        """The last entry may be an existing dimension."""
        B = DimArray(A.data + 6, (X(range(30, 50, 10)), Y(range(100, 400, 100))))
        C = cat(A, B, dims=(Z(range(1, 2)), X))
        assert C.shape == (4, 3, 1)

    def test_only_last_dim_may_exist(self, A):
        """Existing dims before the last entry are rejected."""
        with pytest.raises(DimensionMismatchError):
            cat(A, A, dims=(X, Z(range(1, 3))))

    def test_axis_out_of_range(self, A):
        """An integer axis must exist."""
        with pytest.raises(DimensionMismatchError, match="out of range"):
            cat(A, A, dims=5)

    def test_integer_axis(self, A):
        """An integer selects an existing axis by position."""
        B = DimArray(A.data + 6, (X(range(30, 50, 10)), Y(range(100, 400, 100))))
        assert cat(A, B, dims=0).shape == (4, 3)


class TestSlices:
    """Tests for dropdims, eachslice and mapslices."""

    def test_dropdims(self, A):
        """Length-1 dims move to refdims."""
        B = dropdims(A.sum(Y), Y)
        assert B.shape == (2,)
        assert [d.name for d in B.refdims] == ["Y"]

    def test_dropdims_needs_length_one(self, A):
        """Only length-1 dims can be dropped."""
        with pytest.raises(ShapeError):
            dropdims(A, Y)

    def test_eachslice(self, A):
        """eachslice yields one array per position."""
        rows = list(eachslice(A, X))
        assert len(rows) == 2
        np.testing.assert_array_equal(rows[1].data, [4, 5, 6])
        assert [d.name for d in rows[1].refdims] == ["X"]

    def test_eachslice_single_dim(self, A):
        """Only one dim can be iterated, checked at call time."""
        with pytest.raises(ValueError, match="single dimension"):
            eachslice(A, (X, Y))

    def test_mapslices_scalar(self, A):
        """Scalar results reduce the spanned dims."""
        B = mapslices(np.sum, A, Y)
        np.testing.assert_array_equal(B.data, [[6], [15]])
        np.testing.assert_allclose(B.dim(Y).values, [200.0])

    def test_mapslices_same_shape(self, A):
        """Results shaped like the slice keep the dims."""
        B = mapslices(lambda s: s - s.min(), A, X)
        np.testing.assert_array_equal(B.data, [[0, 0, 0], [3, 3, 3]])
        assert B.dims == A.dims

    def test_mapslices_bad_shape(self, A):
        """Other result shapes are rejected."""
        with pytest.raises(ShapeError):
            mapslices(lambda s: s[:2], A, Y)


class TestModify:
    """Tests for modify."""

    def test_payload(self, A):
        """The payload can be transformed in place of shape."""
        B = modify(lambda d: d * 2, A)
        np.testing.assert_array_equal(B.data, A.data * 2)
        assert B.dims == A.dims

    def test_payload_shape_change(self, A):
        """Changing the payload shape is a shape error."""
        with pytest.raises(ShapeError):
            modify(lambda d: d[:1], A)

    def test_dimension_of_array(self, A):
        """One dimension's index can be transformed."""
        B = modify(lambda v: v / 10, A, Y)
        np.testing.assert_allclose(B.dim(Y).values, [10.0, 20.0, 30.0])
        assert B.dim(Y).mode.span == Regular(10.0)
        np.testing.assert_array_equal(B.data, A.data)

    def test_lone_dimension(self):
        """A lone dimension can be modified."""
        d = format_dimension(X([1.0, 2.0, 4.0]), 3)
        new = modify(lambda v: v + 1, d)
        np.testing.assert_allclose(new.values, [2.0, 3.0, 5.0])
        assert new.mode.span == Irregular((2.0, 5.0))

    def test_dimension_length_change(self, A):
        """Changing a dimension's length is a shape error."""
        with pytest.raises(ShapeError):
            modify(lambda v: v[:2], A, Y)


class TestDimwise:
    """Tests for broadcasting by dimension."""

    def test_broadcast_missing_dims(self, A):
        """The smaller array repeats along the dims it lacks."""
        b = DimArray([1, 2, 3], Y(range(100, 400, 100)))
        np.testing.assert_array_equal(dimwise(np.add, A, b).data, [[2, 4, 6], [5, 7, 9]])

    def test_any_dim_order(self, A):
        """Shared dims are matched by name."""
        assert not dimwise(np.subtract, A, permutedims(A)).data.any()

    def test_unknown_dim(self, A):
        """Dims missing from the first array are rejected."""
        with pytest.raises(DimensionMismatchError):
            dimwise(np.add, A, DimArray([1, 2], Z(2)))

    def test_length_mismatch(self, A):
        """Shared dims must have the same length."""
        with pytest.raises(DimensionMismatchError):
            dimwise(np.add, A, DimArray([1, 2], Y(range(100, 300, 100))))

    @pytest.mark.parametrize("aspect", [IndexOrder, ArrayOrder])
    def test_pairs_by_coordinate(self, A, aspect):
        """A second array stored the other way round is paired by coordinate."""
        b = DimArray([1, 2, 3], Y(range(100, 400, 100)))
        result = dimwise(np.add, A, reverse(aspect, b))
        np.testing.assert_array_equal(result.data, [[2, 4, 6], [5, 7, 9]])


class TestStatistics:
    """Tests for diff, cov, cor and unique."""

    def test_diff(self, A):
        """diff drops the first coordinate."""
        B = diff(A, X)
        np.testing.assert_array_equal(B.data, [[3, 3, 3]])
        np.testing.assert_array_equal(B.dim(X).values, [20])

    def test_diff_1d(self):
        """1-D arrays do not need dims."""
        B = diff(DimArray([1, 4, 9], X(range(3))))
        np.testing.assert_array_equal(B.data, [3, 5])

    def test_diff_needs_dims(self, A):
        """Multi-dimensional arrays need a dim."""
        with pytest.raises(ValueError):
            diff(A)

    def test_cov_and_cor(self, A):
        """The result carries the other dimension twice."""
        C = cov(A, X)
        assert [d.name for d in C.dims] == ["Y", "Y_2"]
        np.testing.assert_allclose(C.data, np.full((3, 3), 4.5))
        np.testing.assert_allclose(cor(A, X).data, np.ones((3, 3)))

    def test_unique(self):
        """unique returns values or slices."""
        B = DimArray([[1, 2], [1, 2], [3, 4]], (X(3), Y(2)))
        np.testing.assert_array_equal(unique(B), [1, 2, 3, 4])
        np.testing.assert_array_equal(unique(B, X), [[1, 2], [3, 4]])
