"""
Test Suite for Pivot Series - Chart Pattern Scanner

Tests for pivot series construction, input checks and the local extrema
pivot filter.
"""

import numpy as np
import pytest

from data.pivots import PivotPoint, PivotSeries, check_pivot_index, local_extrema_pivots


class TestPivotSeries:
    """Test pivot lookup into the raw series"""

    @pytest.mark.unit
    def test_from_raw_indexes_both_arrays(self):
        times = np.arange(10, dtype=float) * 2.0
        prices = np.arange(10, dtype=float) + 100.0
        series = PivotSeries.from_raw([0, 3, 7], times, prices)

        assert len(series) == 3
        assert list(series.times) == [0.0, 6.0, 14.0]
        assert list(series.prices) == [100.0, 103.0, 107.0]
        assert series.point(1) == PivotPoint(time=6.0, price=103.0)

    @pytest.mark.unit
    def test_out_of_range_pivots_are_missing(self):
        series = PivotSeries.from_raw([0, 2, 12], np.arange(5.0), np.arange(5.0) + 1.0)
        assert list(series.index) == [0, 2, 12]
        assert series.prices[1] == 3.0
        assert np.isnan(series.prices[2])
        assert np.isnan(series.times[2])

    @pytest.mark.unit
    def test_high_parity(self):
        assert PivotSeries.from_raw([0, 1], [0.0, 1.0], [5.0, 1.0]).high_parity == 0
        assert PivotSeries.from_raw([0, 1], [0.0, 1.0], [1.0, 5.0]).high_parity == 1
        assert PivotSeries.from_raw([0, 1], [0.0, 1.0], [2.0, 2.0]).high_parity == 1

    @pytest.mark.unit
    def test_points_are_immutable(self):
        point = PivotPoint(time=1.0, price=2.0)
        with pytest.raises(AttributeError):
            point.price = 3.0


class TestCheckPivotIndex:
    """Test structural input checks"""

    @pytest.mark.unit
    def test_usable_input(self):
        report = check_pivot_index(list(range(7)), np.arange(7.0), np.arange(7.0))
        assert report.usable
        assert report.reason is None
        assert report.warnings == []

    @pytest.mark.unit
    def test_too_few_pivots(self):
        report = check_pivot_index(list(range(6)), np.arange(7.0), np.arange(7.0))
        assert not report.usable
        assert "6 entries" in report.reason

    @pytest.mark.unit
    def test_custom_minimums(self):
        report = check_pivot_index(list(range(6)), np.arange(7.0), np.arange(7.0), min_pivots=6)
        assert report.usable
        report = check_pivot_index(list(range(7)), np.arange(7.0), np.arange(7.0), min_raw_points=8)
        assert not report.usable

    @pytest.mark.unit
    def test_non_zero_start_is_a_warning(self):
        report = check_pivot_index(list(range(2, 9)), np.arange(9.0), np.arange(9.0))
        assert report.usable
        assert report.warnings == ["pivot filter does not start at zero (first index 2)"]

    @pytest.mark.unit
    def test_non_increasing_is_a_warning(self):
        report = check_pivot_index([0, 1, 2, 2, 4, 5, 6], np.arange(7.0), np.arange(7.0))
        assert report.usable
        assert report.warnings == ["pivot filter is not strictly increasing"]

    @pytest.mark.unit
    def test_out_of_range_indices_are_a_warning(self):
        report = check_pivot_index([0, 1, 2, 3, 4, 5, 9], np.arange(7.0), np.arange(7.0))
        assert report.usable
        assert report.warnings == ["1 pivot indices outside [0, 6] are ignored"]

        report = check_pivot_index([-1, 1, 2, 3, 4, 5, 6], np.arange(7.0), np.arange(7.0))
        assert report.usable
        assert report.warnings[0] == "1 pivot indices outside [0, 6] are ignored"


class TestLocalExtrema:
    """Test the simple pivot filter"""

    @pytest.mark.unit
    def test_alternating_extrema_with_end_points(self):
        prices = [5.0, 6.0, 7.0, 6.0, 5.0, 6.0, 8.0, 7.0]
        assert local_extrema_pivots(prices) == [0, 2, 4, 6, 7]

    @pytest.mark.unit
    def test_flat_stretches_are_skipped(self):
        prices = [1.0, 2.0, 2.0, 1.0, 3.0]
        assert local_extrema_pivots(prices) == [0, 3, 4]

    @pytest.mark.unit
    def test_short_input(self):
        assert local_extrema_pivots([1.0, 2.0]) == [0, 1]
        assert local_extrema_pivots([]) == []

    @pytest.mark.unit
    def test_highs_and_lows_alternate(self, series_builder):
        _, prices = series_builder.random_walk(500, seed=2)
        pivots = local_extrema_pivots(prices)
        inner = pivots[1:-1]
        assert pivots == sorted(set(pivots))
        for a, b in zip(inner, inner[1:]):
            a_high = prices[a] > prices[a - 1]
            b_high = prices[b] > prices[b - 1]
            assert a_high != b_high
