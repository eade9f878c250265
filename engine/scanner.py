"""
Pattern Scanner - Chart Pattern Scanner

This module provides the PatternScanner class that orchestrates one scan: a
single linear pass over the pivot series that feeds the trend tracker,
classifies each six-pivot window, and walks the raw series forward so the
candidate and return trackers see every raw point exactly once.

Per pivot ``p``:

1. update the trend tracker
2. when a run was reset, backfill following trends of confirmed candidates
3. classify the window starting at ``p`` and open a candidate on a match
4. advance breakout/invalidation and return tracking up to ``p``'s raw index

After the last pivot the raw walk continues to the end of the series, then
every pending following trend and return window is finalized.
"""

import logging
import warnings
from typing import Dict, Optional, Sequence

import numpy as np

from data.pivots import PivotSeries, check_pivot_index
from patterns.candidates import CandidateTracker
from patterns.geometry import WINDOW, breakout_features, classify_all, shape_features
from patterns.returns import ReturnTracker
from patterns.rules import rules_for
from patterns.trends import TrendTracker
from patterns.types import (
    ConfigurationError, PatternCandidate, PatternKind, PivotIndexWarning, ScanResult
)
from .config import ScanConfig

logger = logging.getLogger(__name__)


class PatternScanner:
    """
    Single-pass SHS/iSHS scanner.

    The scanner itself is stateless between scans; every call to ``scan``
    builds fresh trackers, so one instance can be reused across series.
    """

    def __init__(self, config: Optional[ScanConfig] = None):
        self.config = config or ScanConfig()
        problems = self.config.validate()
        if problems:
            raise ConfigurationError(f"Invalid scan configuration: {'; '.join(problems)}")

    def scan(
        self,
        pivot_index: Sequence[int],
        raw_times: Sequence[float],
        raw_prices: Sequence[float]
    ) -> ScanResult:
        """
        Detect, confirm and annotate patterns in one series.

        Args:
            pivot_index: Increasing pivot positions in the raw series (0-based)
            raw_times: Raw time values
            raw_prices: Raw price values, same length as ``raw_times``

        Returns:
            ScanResult with every candidate in creation order. Degenerate
            input gives an empty result with ``reason`` set
        """
        cfg = self.config
        result = ScanResult(
            pivot_count=len(pivot_index),
            raw_count=len(raw_prices),
            fixed_horizons=tuple(cfg.fixed_horizons),
            relative_fractions=tuple(tuple(f) for f in cfg.relative_fractions),
        )

        report = check_pivot_index(
            pivot_index, raw_times, raw_prices,
            min_pivots=cfg.min_pivots,
            min_raw_points=cfg.min_raw_points
        )
        if not report.usable:
            logger.warning(f"Nothing to scan: {report.reason}")
            result.reason = report.reason
            return result

        for message in report.warnings:
            logger.warning(f"Pivot filter: {message}")
            warnings.warn(message, PivotIndexWarning, stacklevel=2)
            result.warnings.append(message)

        times = np.asarray(raw_times, dtype=float)
        prices = np.asarray(raw_prices, dtype=float)
        pivots = PivotSeries.from_raw(pivot_index, times, prices)

        _ScanPass(cfg, pivots, times, prices, result).run()

        summary = result.summary()
        logger.info(
            f"Scan complete: {summary['pivots']} pivots, {summary['raw_points']} raw points, "
            f"{summary['candidates']} candidates ({summary['confirmed']} confirmed, "
            f"{summary['invalidated']} invalidated)"
        )
        return result


class _ScanPass:
    """State of one scan: the three trackers and the shared raw cursor"""

    def __init__(
        self,
        config: ScanConfig,
        pivots: PivotSeries,
        times: np.ndarray,
        prices: np.ndarray,
        result: ScanResult
    ):
        self.config = config
        self.pivots = pivots
        self.times = times
        self.prices = prices
        self.result = result

        self.trends = TrendTracker(pivots)
        self.candidates = CandidateTracker(times, prices)
        self.returns = ReturnTracker(config.fixed_horizons, config.relative_fractions)

        self._cursor = 0
        self._next_start = 0

    def run(self) -> None:
        cfg = self.config
        m = len(self.pivots)
        last_raw = len(self.prices) - 1
        matches: Dict[PatternKind, np.ndarray] = classify_all(self.pivots.prices, self.pivots.times)

        for p in range(m):
            if p and p % cfg.progress_every == 0:
                logger.debug(
                    f"Pivot {p}/{m}: {len(self.result.candidates)} candidates, "
                    f"{self.candidates.open_count} forming, {self.returns.active_count} collecting returns"
                )

            if self.trends.update(p).reset:
                self.trends.backfill()

            if p + WINDOW <= m and p >= self._next_start and not self._at_capacity():
                kind = self._match_at(matches, p)
                if kind is not None:
                    self._open_candidate(p, kind)
                    if cfg.skip_overlapping:
                        self._next_start = p + WINDOW - 1

            raw = int(self.pivots.index[p])
            if raw <= last_raw:
                self._advance_to(raw)

        self._advance_to(last_raw)

        self.trends.finalize()
        unfinished = self.returns.finalize()
        if unfinished:
            logger.debug(f"{unfinished} confirmed patterns reached the series end with horizons unfilled")

    def _at_capacity(self) -> bool:
        cap = self.config.max_patterns
        return cap is not None and len(self.result.candidates) >= cap

    def _match_at(self, matches: Dict[PatternKind, np.ndarray], p: int) -> Optional[PatternKind]:
        for kind in self.config.kinds:
            if matches[kind][p]:
                return kind
        return None

    def _open_candidate(self, p: int, kind: PatternKind) -> PatternCandidate:
        rules = rules_for(kind)
        index = self.pivots.index
        candidate = PatternCandidate(
            kind=kind,
            pivot_start=p,
            raw_start=int(index[p]),
            right_shoulder_raw=int(index[p + 5]),
            points=tuple(self.pivots.point(p + k) for k in range(WINDOW)),
            shape=shape_features(self.pivots.prices, self.pivots.times, p),
        )
        self.returns.allocate(candidate)
        self.trends.stamp_prior(candidate, rules.prior_direction)
        self.trends.follow(candidate, rules.following_direction)
        self.candidates.add(candidate)
        self.result.candidates.append(candidate)

        logger.debug(
            f"{kind.value} candidate at pivot {p} (raw {candidate.raw_start}), "
            f"prior trend {candidate.prior_trend.point_count} points"
        )
        return candidate

    def _stamp_breakout_shape(self, candidate: PatternCandidate) -> None:
        cross = candidate.breakout_raw_index - 1
        candidate.shape = breakout_features(
            candidate.shape,
            self.pivots.prices,
            self.pivots.times,
            candidate.pivot_start,
            cross_time=float(self.times[cross]),
            cross_price=float(self.prices[cross])
        )

    def _advance_to(self, stop: int) -> None:
        """Walk raw indices from the cursor through ``stop`` inclusive"""
        if stop < self._cursor:
            return

        if self.candidates.open_count == 0 and self.returns.active_count == 0:
            self._cursor = stop + 1
            return

        for j in range(self._cursor, stop + 1):
            for candidate in self.candidates.step(j):
                self._stamp_breakout_shape(candidate)
                self.returns.open(candidate, start_time=candidate.points[0].time)
            self.returns.step(j, float(self.times[j]), float(self.prices[j]))
        self._cursor = stop + 1


def scan_patterns(
    pivot_index: Sequence[int],
    raw_times: Sequence[float],
    raw_prices: Sequence[float],
    config: Optional[ScanConfig] = None
) -> ScanResult:
    """Convenience wrapper: scan one series with a fresh PatternScanner"""
    return PatternScanner(config).scan(pivot_index, raw_times, raw_prices)
