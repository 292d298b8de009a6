"""Tests for class-count accumulation and area conversion."""

import numpy as np
import pytest

from geozonal.domain.accumulator import accumulate_counts, merge_counts
from geozonal.domain.area import counts_to_area, to_hectares


class TestAccumulateCounts:
    """Tests for masked class counting."""

    def test_basic_counts(self):
        values = np.array([[1, 1, 2], [3, 2, 2]])
        mask = np.array([[True, False, True], [True, True, False]])
        assert accumulate_counts(mask, values) == {1: 1, 2: 2, 3: 1}

    def test_keys_ascending(self):
        values = np.array([[9, 4, 7, 4]])
        mask = np.ones_like(values, dtype=bool)
        counts = accumulate_counts(mask, values)
        assert list(counts) == [4, 7, 9]

    def test_nodata_skipped(self):
        values = np.array([[0, 5, 0], [5, 0, 6]])
        mask = np.ones_like(values, dtype=bool)
        assert accumulate_counts(mask, values, nodata=0) == {5: 2, 6: 1}

    def test_all_nodata_gives_empty(self):
        values = np.full((3, 3), 255, dtype=np.uint8)
        mask = np.ones((3, 3), dtype=bool)
        assert accumulate_counts(mask, values, nodata=255) == {}

    def test_empty_mask_gives_empty(self):
        values = np.array([[1, 2], [3, 4]])
        mask = np.zeros((2, 2), dtype=bool)
        assert accumulate_counts(mask, values) == {}

    def test_float_grid_nan_skipped(self):
        values = np.array([[1.0, np.nan], [2.0, -9999.0]])
        mask = np.ones((2, 2), dtype=bool)
        assert accumulate_counts(mask, values, nodata=-9999.0) == {1: 1, 2: 1}

    def test_float_grid_non_integral_label_rejected(self):
        values = np.array([[1.5, 1.7], [1.0, 2.0]])
        mask = np.ones((2, 2), dtype=bool)
        with pytest.raises(ValueError, match="non-integral"):
            accumulate_counts(mask, values)

    def test_non_integral_label_outside_mask_ignored(self):
        values = np.array([[1.5, 4.0], [4.0, 2.0]])
        mask = np.array([[False, True], [True, True]])
        assert accumulate_counts(mask, values) == {2: 1, 4: 2}

    def test_non_integral_nodata_not_a_label(self):
        values = np.array([[-0.5, 3.0]], dtype=np.float32)
        mask = np.ones((1, 2), dtype=bool)
        assert accumulate_counts(mask, values, nodata=-0.5) == {3: 1}

    def test_counts_are_python_ints(self):
        values = np.array([[1, 1]], dtype=np.uint8)
        counts = accumulate_counts(np.ones((1, 2), dtype=bool), values)
        label, count = next(iter(counts.items()))
        assert type(label) is int
        assert type(count) is int

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError, match="shape"):
            accumulate_counts(np.ones((2, 2), dtype=bool), np.ones((2, 3)))

    def test_input_not_modified(self):
        values = np.array([[1, 2], [2, 0]])
        mask = np.array([[True, True], [False, True]])
        values_before, mask_before = values.copy(), mask.copy()
        accumulate_counts(mask, values, nodata=0)
        np.testing.assert_array_equal(values, values_before)
        np.testing.assert_array_equal(mask, mask_before)


class TestMergeCounts:
    """Tests for combining partition counts."""

    def test_merge_sums(self):
        merged = merge_counts({1: 2, 3: 1}, {3: 4, 2: 5}, {})
        assert merged == {1: 2, 2: 5, 3: 5}
        assert list(merged) == [1, 2, 3]

    def test_merge_nothing(self):
        assert merge_counts() == {}

    def test_partitioned_equals_whole(self):
        rng = np.random.RandomState(7)
        values = rng.randint(0, 5, size=(40, 25))
        mask = rng.random_sample((40, 25)) < 0.6
        whole = accumulate_counts(mask, values, nodata=0)
        parts = [
            accumulate_counts(mask[r:r + 9], values[r:r + 9], nodata=0)
            for r in range(0, 40, 9)
        ]
        assert merge_counts(*parts) == whole


class TestAreaConversion:
    """Tests for counts -> area and hectare conversion."""

    def test_counts_to_area(self):
        assert counts_to_area({1: 4, 7: 10}, 900.0) == {1: 3600.0, 7: 9000.0}

    def test_empty_counts(self):
        assert counts_to_area({}, 25.0) == {}

    def test_non_positive_cell_area_raises(self):
        with pytest.raises(ValueError):
            counts_to_area({1: 1}, 0.0)

    def test_to_hectares_metres(self):
        ha = to_hectares({1: 3600.0, 2: 10000.0})
        assert ha[1] == pytest.approx(0.36)
        assert ha[2] == pytest.approx(1.0)

    def test_to_hectares_feet(self):
        # 1 acre = 43560 ft² = 0.40468564224 ha
        ha = to_hectares({1: 43560.0}, unit_to_metre=0.3048)
        assert ha[1] == pytest.approx(0.40468564224)
