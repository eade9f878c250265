"""
Candidate Tracker - Chart Pattern Scanner

Breakout/invalidation state machine for every open candidate. The raw series
is walked once, in increasing index order; at each raw index all still
forming candidates whose right shoulder lies strictly before it are checked:

- Invalidation first: price crosses back past the right shoulder
  (above for SHS, below for iSHS).
- Otherwise breakout: price is past the neckline evaluated at the raw time and
  the next raw price stays past the right shoulder. The breakout is recorded
  at that next raw index.

A candidate that reaches the end of the series without either event stays
FORMING and is reported as not valid.
"""

import logging
from typing import List, Sequence

import numpy as np

from data.pivots import PivotPoint
from .geometry import neckline_at
from .rules import rules_for
from .types import CandidateStatus, PatternCandidate

logger = logging.getLogger(__name__)


class CandidateTracker:
    """Owns the forming candidates and advances them along the raw series"""

    def __init__(self, raw_times: Sequence[float], raw_prices: Sequence[float]):
        self._times = np.asarray(raw_times, dtype=float)
        self._prices = np.asarray(raw_prices, dtype=float)
        self._n = int(self._prices.shape[0])
        self._open: List[PatternCandidate] = []
        self._last_index = -1

        self.confirmed_count = 0
        self.invalidated_count = 0
        self.skipped_count = 0

    @property
    def open_count(self) -> int:
        return len(self._open)

    def add(self, candidate: PatternCandidate) -> bool:
        """
        Start tracking a new FORMING candidate.

        Returns:
            False when the right shoulder does not lie inside the raw series;
            such a candidate is left FORMING and never checked
        """
        if candidate.status is not CandidateStatus.FORMING:
            raise ValueError(f"only forming candidates can be tracked, got {candidate.status.value}")

        if not 0 <= candidate.right_shoulder_raw < self._n:
            logger.warning(
                f"Skipping {candidate.kind.value} at pivot {candidate.pivot_start}: "
                f"right shoulder raw index {candidate.right_shoulder_raw} outside [0, {self._n - 1}]"
            )
            self.skipped_count += 1
            return False

        self._open.append(candidate)
        return True

    def step(self, j: int) -> List[PatternCandidate]:
        """
        Check every open candidate against raw index ``j``.

        Args:
            j: Raw index, strictly greater than the previous call

        Returns:
            Candidates confirmed at this index, breakout already recorded
        """
        if j <= self._last_index:
            raise ValueError(f"raw index {j} does not advance past {self._last_index}")
        if j >= self._n:
            raise IndexError(f"raw index {j} outside series of {self._n} points")
        self._last_index = j

        if not self._open:
            return []

        price = float(self._prices[j])
        time = float(self._times[j])
        has_next = j + 1 < self._n

        confirmed: List[PatternCandidate] = []
        still_open: List[PatternCandidate] = []
        for candidate in self._open:
            if j <= candidate.right_shoulder_raw:
                still_open.append(candidate)
                continue

            rules = rules_for(candidate.kind)
            shoulder = candidate.right_shoulder_price

            if rules.invalidates(price, shoulder):
                candidate.status = CandidateStatus.INVALIDATED
                self.invalidated_count += 1
                logger.debug(
                    f"{candidate.kind.value} at pivot {candidate.pivot_start} invalidated at raw {j}"
                )
                continue

            if has_next:
                neck_a, neck_b = candidate.points[2], candidate.points[4]
                neckline = neckline_at(neck_a.time, neck_a.price, neck_b.time, neck_b.price, time)
                if rules.breaks_out(price, neckline, float(self._prices[j + 1]), shoulder):
                    self._confirm(candidate, j + 1)
                    confirmed.append(candidate)
                    continue

            still_open.append(candidate)

        self._open = still_open
        return confirmed

    def _confirm(self, candidate: PatternCandidate, breakout_index: int) -> None:
        candidate.status = CandidateStatus.CONFIRMED
        candidate.breakout_raw_index = breakout_index
        candidate.breakout_point = PivotPoint(
            time=float(self._times[breakout_index]),
            price=float(self._prices[breakout_index])
        )
        self.confirmed_count += 1
        logger.debug(
            f"{candidate.kind.value} at pivot {candidate.pivot_start} confirmed, "
            f"breakout at raw {breakout_index}"
        )
