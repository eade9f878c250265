"""
Pytest Configuration and Shared Fixtures - Chart Pattern Scanner

This module provides shared pytest configuration, fixtures, and utilities
for testing the pattern geometry, the trackers and the scanner.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pytest

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Disable per-scan summaries during tests to reduce noise
logging.getLogger('engine.scanner').setLevel(logging.WARNING)


class SeriesBuilder:
    """Build raw series from a list of (time, price) pivots"""

    @staticmethod
    def from_pivots(
        pivots: Sequence[Tuple[int, float]],
        end_time: Optional[int] = None
    ) -> Tuple[List[int], np.ndarray, np.ndarray]:
        """
        Linearly interpolate integer-time raw points between pivots.

        Args:
            pivots: (time, price) turning points, integer times in order
            end_time: Last raw time; defaults to the last pivot time

        Returns:
            (pivot_index, raw_times, raw_prices) with pivot_index 0-based
        """
        pivot_times = np.array([t for t, _ in pivots], dtype=float)
        pivot_prices = np.array([p for _, p in pivots], dtype=float)
        first = int(pivot_times[0])
        last = int(pivot_times[-1]) if end_time is None else end_time

        raw_times = np.arange(first, last + 1, dtype=float)
        raw_prices = np.interp(raw_times, pivot_times, pivot_prices)
        pivot_index = [int(t) - first for t, _ in pivots]
        return pivot_index, raw_times, raw_prices

    @staticmethod
    def random_walk(n: int, seed: int = 7, start: float = 100.0) -> Tuple[np.ndarray, np.ndarray]:
        """Deterministic positive random walk"""
        rng = np.random.default_rng(seed)
        steps = rng.normal(0.0, 1.0, size=n)
        prices = start + np.cumsum(steps)
        prices = np.maximum(prices, 1.0)
        times = np.arange(n, dtype=float)
        return times, prices


# Head and shoulders body used across tests: flat neckline at 12
SHS_BODY = [(0, 10.0), (2, 14.0), (4, 12.0), (6, 18.0), (8, 12.0), (10, 15.0)]


@pytest.fixture
def series_builder():
    return SeriesBuilder


@pytest.fixture
def shs_pivots():
    """SHS at pivot 0, breakout below the neckline, tail down to time 40"""
    return SHS_BODY + [(12, 9.0), (14, 11.0), (20, 6.0), (40, 8.0)]


@pytest.fixture
def shs_series(shs_pivots):
    return SeriesBuilder.from_pivots(shs_pivots)


@pytest.fixture
def uptrend_shs_series():
    """Two ascending lows and one ascending high before an SHS at pivot 4"""
    pivots = [(0, 6.0), (2, 9.0), (4, 8.0), (6, 11.0)]
    pivots += [(t + 8, p) for t, p in SHS_BODY]
    pivots += [(20, 9.0), (22, 11.0)]
    return SeriesBuilder.from_pivots(pivots)


@pytest.fixture
def overlapping_series():
    """SHS at pivot 0 and iSHS at pivot 3 sharing pivots 3-5"""
    pivots = SHS_BODY + [(12, 8.0), (14, 15.0), (16, 11.0), (18, 17.0), (20, 13.0)]
    return SeriesBuilder.from_pivots(pivots)


@pytest.fixture
def invalidated_series():
    """SHS whose price climbs back over the right shoulder before breaking out"""
    return SeriesBuilder.from_pivots(SHS_BODY + [(12, 13.0), (14, 20.0)])


@pytest.fixture
def unconfirmed_series():
    """SHS that neither breaks out nor invalidates before the series ends"""
    return SeriesBuilder.from_pivots(SHS_BODY + [(12, 13.0)])


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
