"""
Trend Tracker - Chart Pattern Scanner

Running trend counters over the pivot series. Pivots alternate high/low, so
each pivot is compared with the pivot two positions earlier (same side). Four
runs are kept, ascending/descending for each side; a move in one direction
extends that run and zeroes the opposite run on the same side.

The tracker is updated exactly once per pivot, in order. Candidates copy the
relevant run when they are created (prior trend). Once confirmed, they take
the longest run in the opposite direction each time a run is reset and once
more at scan end (following trend), so no candidate ever re-scans pivot
history.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from data.pivots import PivotSeries
from .types import CandidateStatus, PatternCandidate, TrendContext, TrendCounts, TrendDirection

logger = logging.getLogger(__name__)

# A following trend of this many points is complete
FOLLOWING_COMPLETE_COUNT = 3


@dataclass
class TrendRun:
    """One running counter with the point where the run started"""
    count: int = 0
    first_index: Optional[int] = None
    first_price: Optional[float] = None
    first_time: Optional[float] = None

    def start(self, index: int, price: float, time: float) -> None:
        self.first_index = index
        self.first_price = price
        self.first_time = time

    def reset(self) -> None:
        self.count = 0
        self.first_index = None
        self.first_price = None
        self.first_time = None

    def context(self) -> TrendContext:
        if self.count == 0:
            return TrendContext()
        return TrendContext(
            start_price=self.first_price,
            start_time=self.first_time,
            point_count=self.count
        )


@dataclass(frozen=True)
class TrendUpdate:
    """Result of feeding one pivot to the tracker"""
    position: int
    direction: TrendDirection
    reset: bool = False


class TrendTracker:
    """
    Four running trend counters plus the candidates awaiting a following trend.

    Runs are keyed by (direction, parity); parity is the side of the pivot
    (``position % 2``) and maps to highs or lows through
    ``PivotSeries.high_parity``.
    """

    def __init__(self, pivots: PivotSeries):
        self._times = pivots.times
        self._prices = pivots.prices
        self._high_parity = pivots.high_parity
        self._runs: Dict[Tuple[TrendDirection, int], TrendRun] = {
            (direction, parity): TrendRun()
            for direction in (TrendDirection.ASCENDING, TrendDirection.DESCENDING)
            for parity in (0, 1)
        }
        self._pending: List[Tuple[PatternCandidate, TrendDirection]] = []
        self._position = -1
        self.reset_count = 0

    @property
    def position(self) -> int:
        """Last pivot fed to the tracker, -1 before the first update"""
        return self._position

    @property
    def pending(self) -> int:
        """Candidates whose following trend is not complete yet"""
        return len(self._pending)

    def is_high(self, position: int) -> bool:
        return position % 2 == self._high_parity

    def run(self, direction: TrendDirection, parity: int) -> TrendRun:
        return self._runs[(direction, parity % 2)]

    def counts(self) -> TrendCounts:
        """Snapshot of the four counters by highs/lows"""
        high, low = self._high_parity, 1 - self._high_parity
        return TrendCounts(
            ascending_highs=self.run(TrendDirection.ASCENDING, high).count,
            ascending_lows=self.run(TrendDirection.ASCENDING, low).count,
            descending_highs=self.run(TrendDirection.DESCENDING, high).count,
            descending_lows=self.run(TrendDirection.DESCENDING, low).count,
        )

    def update(self, position: int) -> TrendUpdate:
        """
        Feed pivot ``position`` to the tracker.

        Args:
            position: Next pivot position, must follow the previous update

        Returns:
            TrendUpdate with the move direction and whether a run was reset

        Raises:
            ValueError: If positions are skipped or repeated
        """
        if position != self._position + 1:
            raise ValueError(f"trend tracker expected pivot {self._position + 1}, got {position}")
        self._position = position

        if position < 2:
            return TrendUpdate(position=position, direction=TrendDirection.FLAT)

        current = self._prices[position]
        previous = self._prices[position - 2]
        if current > previous:
            direction, opposite = TrendDirection.ASCENDING, TrendDirection.DESCENDING
        elif current < previous:
            direction, opposite = TrendDirection.DESCENDING, TrendDirection.ASCENDING
        else:
            # Equal (or missing) prices leave every run untouched
            return TrendUpdate(position=position, direction=TrendDirection.FLAT)

        parity = position % 2
        run = self._runs[(direction, parity)]
        if run.count == 0:
            run.start(position - 2, float(previous), float(self._times[position - 2]))
        run.count += 1

        reset = False
        opposing = self._runs[(opposite, parity)]
        if opposing.count > 0:
            side = "highs" if self.is_high(position) else "lows"
            logger.debug(
                f"Pivot {position}: {opposite.value} {side} run of {opposing.count} reset"
            )
            opposing.reset()
            reset = True
            self.reset_count += 1

        return TrendUpdate(position=position, direction=direction, reset=reset)

    def stamp_prior(self, candidate: PatternCandidate, direction: TrendDirection) -> None:
        """Copy the run on the start pivot's side into the candidate"""
        candidate.prior_trend = self.run(direction, candidate.pivot_start).context()
        candidate.trend_counts = self.counts()

    def longest_run(self, direction: TrendDirection) -> TrendRun:
        """The longer of the highs/lows runs in ``direction``, lows on a tie"""
        lows = self.run(direction, 1 - self._high_parity)
        highs = self.run(direction, self._high_parity)
        return lows if lows.count >= highs.count else highs

    def follow(self, candidate: PatternCandidate, direction: TrendDirection) -> None:
        """Register a candidate whose following trend runs in ``direction``"""
        candidate.following_trend = TrendContext()
        candidate.following_trend_final = False
        self._pending.append((candidate, direction))

    def backfill(self, final: bool = False) -> int:
        """
        Copy the current runs into confirmed candidates.

        Each confirmed candidate takes the longest run in its following
        direction. The trend is complete once that run reaches
        ``FOLLOWING_COMPLETE_COUNT`` points; with ``final`` every confirmed
        candidate is completed with whatever run exists. Invalidated
        candidates are dropped.

        Args:
            final: Complete every confirmed candidate (end of scan)

        Returns:
            Number of candidates updated
        """
        updated = 0
        kept: List[Tuple[PatternCandidate, TrendDirection]] = []
        for candidate, direction in self._pending:
            if candidate.status is CandidateStatus.INVALIDATED:
                continue
            if candidate.status is not CandidateStatus.CONFIRMED:
                if not final:
                    kept.append((candidate, direction))
                continue

            run = self.longest_run(direction)
            if run.count > 0:
                candidate.following_trend = run.context()
                updated += 1
            if final or run.count >= FOLLOWING_COMPLETE_COUNT:
                candidate.following_trend_final = True
            else:
                kept.append((candidate, direction))

        self._pending = kept
        if updated:
            logger.debug(f"Pivot {self._position}: following trend updated on {updated} patterns")
        return updated

    def finalize(self) -> int:
        """Complete every pending following trend with the runs at scan end"""
        return self.backfill(final=True)
