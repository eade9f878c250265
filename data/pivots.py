"""
Pivot Series - Chart Pattern Scanner

This module defines the immutable price/pivot data types the scanner works on
and the structural checks applied to a caller-supplied pivot filter before a
scan starts.

The pivot series is never computed here from scratch: it is the raw series
indexed by an increasing list of pivot positions produced by an upstream
filter. ``local_extrema_pivots`` is a small helper for demos and the CLI.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
from scipy.signal import argrelextrema

logger = logging.getLogger(__name__)


# Core Data Types
@dataclass(frozen=True)
class PivotPoint:
    """Immutable (time, price) turning point"""
    time: float
    price: float


@dataclass(frozen=True)
class InputReport:
    """Outcome of the structural input checks"""
    usable: bool
    reason: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PivotSeries:
    """
    Reduced (time, price) sequence obtained by indexing the raw series.

    Attributes:
        index: Positions of the pivots in the raw series (0-based, increasing)
        times: Pivot times, ``times[k] == raw_times[index[k]]``
        prices: Pivot prices, ``prices[k] == raw_prices[index[k]]``
    """
    index: np.ndarray
    times: np.ndarray
    prices: np.ndarray

    @classmethod
    def from_raw(
        cls,
        pivot_index: Sequence[int],
        raw_times: Sequence[float],
        raw_prices: Sequence[float]
    ) -> "PivotSeries":
        """
        Build the pivot series by index lookup into the raw arrays.

        Pivots outside the raw series get a missing (NaN) time and price, so
        no window containing them can match and they never move a trend.
        """
        index = np.asarray(pivot_index, dtype=np.int64)
        raw_t = np.asarray(raw_times, dtype=float)
        raw_p = np.asarray(raw_prices, dtype=float)
        inside = (index >= 0) & (index < raw_p.shape[0])

        times = np.full(index.shape, np.nan)
        prices = np.full(index.shape, np.nan)
        times[inside] = raw_t[index[inside]]
        prices[inside] = raw_p[index[inside]]
        return cls(index=index, times=times, prices=prices)

    def __len__(self) -> int:
        return int(self.index.shape[0])

    def point(self, k: int) -> PivotPoint:
        return PivotPoint(time=float(self.times[k]), price=float(self.prices[k]))

    @property
    def high_parity(self) -> int:
        """
        Parity (0 or 1) of the positions that hold pivot highs.

        Pivots alternate high/low, so the first two points decide it. Even
        positions are treated as lows when the first two prices are equal.
        """
        if len(self) < 2 or not self.prices[0] > self.prices[1]:
            return 1
        return 0


def check_pivot_index(
    pivot_index: Sequence[int],
    raw_times: Sequence[float],
    raw_prices: Sequence[float],
    min_pivots: int = 7,
    min_raw_points: int = 2
) -> InputReport:
    """
    Check a pivot filter and raw arrays before scanning.

    Structural problems (too short, mismatched lengths) make the input
    unusable. Indices outside the raw series, a filter that does not start at
    zero and one that is not strictly increasing are only reported as
    warnings; the scan skips windows that touch an out-of-range pivot.

    Args:
        pivot_index: Pivot positions in the raw series
        raw_times: Raw time values
        raw_prices: Raw price values
        min_pivots: Minimum pivot filter length
        min_raw_points: Minimum raw series length

    Returns:
        InputReport describing whether the scan can proceed
    """
    n_pivots = len(pivot_index)
    n_times = len(raw_times)
    n_prices = len(raw_prices)

    if n_pivots < min_pivots:
        return InputReport(
            usable=False,
            reason=f"pivot filter has {n_pivots} entries, need at least {min_pivots}"
        )
    if n_times < min_raw_points or n_prices < min_raw_points:
        return InputReport(
            usable=False,
            reason=f"raw series has {min(n_times, n_prices)} points, need at least {min_raw_points}"
        )
    if n_times != n_prices:
        return InputReport(
            usable=False,
            reason=f"raw times ({n_times}) and prices ({n_prices}) differ in length"
        )

    index = np.asarray(pivot_index, dtype=np.int64)
    warnings: List[str] = []

    outside = int(np.count_nonzero((index < 0) | (index >= n_prices)))
    if outside:
        warnings.append(f"{outside} pivot indices outside [0, {n_prices - 1}] are ignored")
    if index[0] != 0:
        warnings.append(f"pivot filter does not start at zero (first index {int(index[0])})")
    if np.any(np.diff(index) <= 0):
        warnings.append("pivot filter is not strictly increasing")

    return InputReport(usable=True, warnings=warnings)


def local_extrema_pivots(prices: Sequence[float]) -> List[int]:
    """
    Simple pivot filter: strict local minima and maxima plus both end points.

    Flat stretches are skipped, and consecutive extrema of the same type are
    collapsed to the more extreme one so highs and lows alternate.
    """
    values = np.asarray(prices, dtype=float)
    n = values.shape[0]
    if n < 3:
        return list(range(n))

    highs = argrelextrema(values, np.greater)[0]
    lows = argrelextrema(values, np.less)[0]
    extrema = sorted([(int(k), 1) for k in highs] + [(int(k), -1) for k in lows])

    pivots: List[int] = [0]
    kinds: List[int] = [0]  # +1 high, -1 low, 0 end point

    for k, kind in extrema:
        if kinds[-1] == kind:
            # Same type twice in a row: keep the more extreme one
            if kind * (values[k] - values[pivots[-1]]) > 0:
                pivots[-1] = k
            continue
        pivots.append(k)
        kinds.append(kind)

    if pivots[-1] != n - 1:
        pivots.append(n - 1)

    logger.debug(f"Extracted {len(pivots)} pivots from {n} prices")
    return pivots
