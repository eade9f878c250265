"""
Return Tracker - Chart Pattern Scanner

Forward price performance for confirmed candidates, accumulated during the
same raw-series pass that drives breakout detection.

Each confirmed candidate gets a window holding its breakout point and two
cursors, one into the fixed horizons and one into the relative horizons
(multiples of the pattern duration). At raw index ``j`` after the breakout,
every unfilled horizon strictly exceeded by ``time[j] - time[breakout]`` is
filled with the price at ``j`` relative to the breakout price and never
touched again:

- the shortest fixed horizon records ``log(P_j / P_b)``
- every other horizon records ``P_j / P_b``
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .types import CandidateStatus, PatternCandidate

logger = logging.getLogger(__name__)


@dataclass
class ReturnWindow:
    """Per-candidate return state with its next-unfilled-horizon cursors"""
    candidate: PatternCandidate
    breakout_index: int
    breakout_time: float
    breakout_price: float
    relative_horizons: Tuple[int, ...]
    fixed_cursor: int = 0
    relative_cursor: int = 0


def relative_horizons(duration: int, fractions: Sequence[Tuple[int, int]]) -> Tuple[int, ...]:
    """floor(duration * numerator / denominator) for each fraction"""
    return tuple((duration * numerator) // denominator for numerator, denominator in fractions)


def pattern_duration(start_time: float, breakout_time: float) -> int:
    """Whole time units from pattern start to breakout, at least 1"""
    span = breakout_time - start_time
    if not math.isfinite(span):
        return 1
    duration = int(span)
    return duration if duration > 0 else 1


class ReturnTracker:
    """
    Incremental fixed/relative horizon returns for all confirmed candidates.

    Args:
        fixed_horizons: Strictly increasing time offsets after the breakout
        relative_fractions: Non-decreasing (numerator, denominator) multiples
            of the pattern duration
    """

    def __init__(
        self,
        fixed_horizons: Sequence[int] = (1, 3, 5, 10, 30, 60),
        relative_fractions: Sequence[Tuple[int, int]] = ((1, 3), (1, 2), (1, 1), (2, 1), (4, 1))
    ):
        self.fixed_horizons: Tuple[int, ...] = tuple(fixed_horizons)
        self.relative_fractions: Tuple[Tuple[int, int], ...] = tuple(
            (int(n), int(d)) for n, d in relative_fractions
        )
        self._windows: List[ReturnWindow] = []

    @property
    def active_count(self) -> int:
        return len(self._windows)

    def is_tracking(self, candidate: PatternCandidate) -> bool:
        return any(window.candidate is candidate for window in self._windows)

    def allocate(self, candidate: PatternCandidate) -> None:
        """Give a new candidate empty return slots"""
        candidate.allocate_returns(len(self.fixed_horizons), len(self.relative_fractions))

    def open(self, candidate: PatternCandidate, start_time: float) -> Optional[ReturnWindow]:
        """
        Start accumulating returns for a freshly confirmed candidate.

        Args:
            candidate: CONFIRMED candidate with its breakout recorded
            start_time: Raw time of the pattern start pivot

        Returns:
            The new window, or None when the breakout price cannot anchor
            returns (non-finite or not positive); all returns stay missing
        """
        if candidate.status is not CandidateStatus.CONFIRMED or candidate.breakout_point is None:
            raise ValueError(f"{candidate.kind.value} at pivot {candidate.pivot_start} is not confirmed")

        if len(candidate.fixed_returns) != len(self.fixed_horizons):
            self.allocate(candidate)

        breakout = candidate.breakout_point
        duration = pattern_duration(start_time, breakout.time)
        candidate.duration = duration

        if not math.isfinite(breakout.price) or breakout.price <= 0:
            logger.warning(
                f"{candidate.kind.value} at pivot {candidate.pivot_start}: "
                f"breakout price {breakout.price} cannot anchor returns"
            )
            return None

        window = ReturnWindow(
            candidate=candidate,
            breakout_index=candidate.breakout_raw_index,
            breakout_time=breakout.time,
            breakout_price=breakout.price,
            relative_horizons=relative_horizons(duration, self.relative_fractions)
        )
        self._windows.append(window)
        return window

    def step(self, j: int, time: float, price: float) -> List[PatternCandidate]:
        """
        Observe raw point ``j`` for every active window past its breakout.

        Returns:
            Candidates whose horizons are now all filled; they are retired
        """
        if not self._windows:
            return []
        if not (math.isfinite(time) and math.isfinite(price)) or price <= 0:
            return []

        completed: List[PatternCandidate] = []
        active: List[ReturnWindow] = []
        for window in self._windows:
            if j > window.breakout_index:
                self._observe(window, time, price)
                if window.candidate.returns_complete:
                    completed.append(window.candidate)
                    continue
            active.append(window)

        self._windows = active
        return completed

    def _observe(self, window: ReturnWindow, time: float, price: float) -> None:
        candidate = window.candidate
        # Whole periods since the breakout
        elapsed = int(time - window.breakout_time)
        ratio = price / window.breakout_price

        while window.fixed_cursor < len(self.fixed_horizons) and elapsed > self.fixed_horizons[window.fixed_cursor]:
            k = window.fixed_cursor
            candidate.fixed_returns[k] = math.log(ratio) if k == 0 else ratio
            candidate.fixed_filled[k] = True
            window.fixed_cursor += 1

        while window.relative_cursor < len(window.relative_horizons) and elapsed > window.relative_horizons[window.relative_cursor]:
            k = window.relative_cursor
            candidate.relative_returns[k] = ratio
            candidate.relative_filled[k] = True
            window.relative_cursor += 1

    def finalize(self) -> int:
        """Drop every active window; unfilled horizons stay missing"""
        pending = len(self._windows)
        self._windows = []
        return pending
