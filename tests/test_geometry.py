"""
Test Suite for Pattern Geometry - Chart Pattern Scanner

Tests for the neckline model, the SHS/iSHS classifier, the vectorised
classifier and shape features.
"""

import math

import numpy as np
import pytest

from patterns.geometry import (
    breakout_features, classify, classify_all, is_ishs, is_shs, neckline_at, shape_features, slope
)
from patterns.types import PatternKind


SHS_PRICES = [10.0, 14.0, 12.0, 18.0, 12.0, 15.0]
SHS_TIMES = [0.0, 2.0, 4.0, 6.0, 8.0, 10.0]


def mirror(prices):
    return [-p for p in prices]


class TestNeckline:
    """Test the line through the two inner pivots"""

    @pytest.mark.unit
    def test_exact_at_anchors(self):
        assert neckline_at(1.0, 0.3, 7.0, 0.7, 1.0) == 0.3
        assert neckline_at(1.0, 0.3, 7.0, 0.7, 7.0) == 0.7

    @pytest.mark.unit
    def test_between_anchors_is_bounded(self):
        for x in np.linspace(4.0, 8.0, 17):
            y = neckline_at(4.0, 12.0, 8.0, 16.0, float(x))
            assert 12.0 <= y <= 16.0

    @pytest.mark.unit
    def test_extrapolates_linearly(self):
        assert neckline_at(4.0, 12.0, 8.0, 16.0, 0.0) == pytest.approx(8.0)
        assert neckline_at(4.0, 12.0, 8.0, 16.0, 10.0) == pytest.approx(18.0)

    @pytest.mark.unit
    def test_coincident_anchor_times_use_mean(self):
        assert neckline_at(5.0, 10.0, 5.0, 14.0, 100.0) == 12.0
        assert neckline_at(5.0, 10.0, 5.0 + 1e-16, 14.0, -3.0) == 12.0

    @pytest.mark.unit
    def test_slope_of_vertical_segment_is_none(self):
        assert slope(2.0, 1.0, 2.0, 5.0) is None
        assert slope(0.0, 1.0, 2.0, 5.0) == 2.0


class TestClassifier:
    """Test the six-pivot shape rules"""

    @pytest.mark.unit
    def test_shs_fixture_classifies_as_shs(self):
        assert is_shs(SHS_PRICES, SHS_TIMES, 0)
        assert not is_ishs(SHS_PRICES, SHS_TIMES, 0)
        assert classify(SHS_PRICES, SHS_TIMES, 0) is PatternKind.SHS

    @pytest.mark.unit
    def test_mirrored_fixture_classifies_as_ishs(self):
        prices = mirror(SHS_PRICES)
        assert classify(prices, SHS_TIMES, 0) is PatternKind.ISHS
        assert not is_shs(prices, SHS_TIMES, 0)

    @pytest.mark.unit
    def test_head_must_exceed_both_shoulders(self):
        prices = list(SHS_PRICES)
        prices[5] = 19.0  # right shoulder above the head
        assert classify(prices, SHS_TIMES, 0) is None

    @pytest.mark.unit
    def test_right_shoulder_must_stay_above_neckline(self):
        prices = list(SHS_PRICES)
        prices[5] = 11.0
        assert classify(prices, SHS_TIMES, 0) is None

    @pytest.mark.unit
    def test_start_point_must_lie_below_neckline(self):
        # Steep neckline rising through the start point rejects a skewed shape
        prices = [10.0, 14.0, 12.0, 18.0, 16.0, 17.0]
        times = [0.0, 2.0, 4.0, 6.0, 8.0, 8.5]
        assert neckline_at(4.0, 12.0, 8.0, 16.0, 0.0) < prices[0]
        assert not is_shs(prices, times, 0)

    @pytest.mark.unit
    def test_window_must_fit(self):
        with pytest.raises(IndexError):
            classify(SHS_PRICES, SHS_TIMES, 1)

    @pytest.mark.unit
    def test_missing_prices_never_match(self):
        prices = list(SHS_PRICES)
        prices[3] = math.nan
        assert classify(prices, SHS_TIMES, 0) is None


class TestVectorisedClassifier:
    """Test classify_all against the scalar classifier"""

    @pytest.mark.unit
    def test_masks_match_scalar_on_random_walks(self, series_builder):
        for seed in range(5):
            times, prices = series_builder.random_walk(400, seed=seed)
            # Coarse rounding creates price ties
            prices = np.round(prices)
            masks = classify_all(prices, times)
            assert len(masks[PatternKind.SHS]) == len(prices) - 5
            for i in range(len(prices) - 5):
                expected = classify(prices, times, i)
                assert bool(masks[PatternKind.SHS][i]) == (expected is PatternKind.SHS)
                assert bool(masks[PatternKind.ISHS][i]) == (expected is PatternKind.ISHS)

    @pytest.mark.unit
    def test_masks_match_scalar_with_repeated_times(self):
        rng = np.random.default_rng(11)
        prices = rng.normal(0.0, 1.0, 200)
        times = np.repeat(np.arange(100, dtype=float), 2)
        masks = classify_all(prices, times)
        for i in range(len(prices) - 5):
            expected = classify(prices, times, i)
            assert bool(masks[PatternKind.SHS][i]) == (expected is PatternKind.SHS)
            assert bool(masks[PatternKind.ISHS][i]) == (expected is PatternKind.ISHS)

    @pytest.mark.unit
    def test_kinds_never_overlap(self, series_builder):
        times, prices = series_builder.random_walk(1000, seed=3)
        masks = classify_all(prices, times)
        assert not np.any(masks[PatternKind.SHS] & masks[PatternKind.ISHS])

    @pytest.mark.unit
    def test_short_input_gives_empty_masks(self):
        masks = classify_all([1.0, 2.0, 3.0], [0.0, 1.0, 2.0])
        assert masks[PatternKind.SHS].shape == (0,)
        assert masks[PatternKind.ISHS].shape == (0,)


class TestShapeFeatures:
    """Test shape features stored on new and confirmed candidates"""

    @pytest.mark.unit
    def test_flat_neckline_features(self):
        features = shape_features(SHS_PRICES, SHS_TIMES, 0)
        assert features.neckline_slope == 0.0
        assert features.neckline_span == 4.0
        assert features.leg_slopes == (2.0, -1.0, 3.0, -3.0, 1.5)
        assert features.leg_lengths == (2.0, 2.0, 2.0, 2.0, 2.0)

    @pytest.mark.unit
    def test_equal_times_give_missing_slopes(self):
        times = [0.0, 2.0, 4.0, 4.0, 4.0, 10.0]
        features = shape_features(SHS_PRICES, times, 0)
        assert features.neckline_slope is None
        assert features.leg_slopes[2] is None
        assert features.leg_slopes[3] is None
        assert features.leg_lengths[2] == 0.0

    @pytest.mark.unit
    def test_post_shoulder_legs_missing_until_breakout(self):
        features = shape_features(SHS_PRICES, SHS_TIMES, 0)
        assert features.post_shoulder_slope is None
        assert features.post_shoulder_length is None
        assert features.breakout_leg_slope is None
        assert features.breakout_leg_length is None

    @pytest.mark.unit
    def test_breakout_features_use_next_pivot_and_cross_point(self):
        prices = SHS_PRICES + [9.0]
        times = SHS_TIMES + [14.0]
        shape = shape_features(prices, times, 0)

        # Neckline crossed at t=12, before the pivot at t=14
        features = breakout_features(shape, prices, times, 0, cross_time=12.0, cross_price=11.0)
        assert features.post_shoulder_slope == pytest.approx(-1.5)
        assert features.post_shoulder_length == 4.0
        assert features.breakout_leg_slope == pytest.approx(-2.0)
        assert features.breakout_leg_length == -2.0
        assert features.leg_slopes == shape.leg_slopes
        assert shape.post_shoulder_slope is None

    @pytest.mark.unit
    def test_breakout_features_need_a_following_pivot(self):
        shape = shape_features(SHS_PRICES, SHS_TIMES, 0)
        features = breakout_features(shape, SHS_PRICES, SHS_TIMES, 0, cross_time=12.0, cross_price=11.0)
        assert features is shape
