"""
Pattern Types - Chart Pattern Scanner

This module defines the data structures shared by the classifier, the
candidate/trend/return trackers and the scan orchestrator: the tagged pattern
kind, the candidate lifecycle, the per-candidate annotations and the scan
result. Missing values are always ``None``; no sentinel prices or times.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from data.pivots import PivotPoint


# Core Pattern Data Types
class PatternKind(Enum):
    """Supported reversal shapes"""
    SHS = "SHS"    # Shoulder-Head-Shoulder, bearish
    ISHS = "iSHS"  # inverse Shoulder-Head-Shoulder, bullish


class CandidateStatus(Enum):
    """Candidate lifecycle; CONFIRMED and INVALIDATED are terminal"""
    FORMING = "forming"
    CONFIRMED = "confirmed"
    INVALIDATED = "invalidated"


class TrendDirection(Enum):
    """Direction of one same-side pivot comparison"""
    ASCENDING = "ascending"
    DESCENDING = "descending"
    FLAT = "flat"


@dataclass
class TrendContext:
    """Trend run attached to a candidate (before or after the pattern)"""
    start_price: Optional[float] = None
    start_time: Optional[float] = None
    point_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_price": self.start_price,
            "start_time": self.start_time,
            "point_count": self.point_count,
        }


@dataclass(frozen=True)
class TrendCounts:
    """Snapshot of the four running trend counters"""
    ascending_highs: int = 0
    ascending_lows: int = 0
    descending_highs: int = 0
    descending_lows: int = 0


@dataclass(frozen=True)
class ShapeFeatures:
    """
    Geometric description of the six body pivots.

    The post-shoulder and breakout legs are filled in on confirmation when a
    pivot follows the right shoulder: right shoulder to that pivot, and right
    shoulder to the raw point that crossed the neckline (its length measured
    from the following pivot, negative when the cross comes first).
    """
    neckline_slope: Optional[float]
    neckline_span: float
    leg_slopes: Tuple[Optional[float], ...]
    leg_lengths: Tuple[float, ...]
    post_shoulder_slope: Optional[float] = None
    post_shoulder_length: Optional[float] = None
    breakout_leg_slope: Optional[float] = None
    breakout_leg_length: Optional[float] = None


@dataclass
class PatternCandidate:
    """
    An in-progress or terminal six-pivot pattern instance.

    Pivot-space positions of the body are fixed offsets from ``pivot_start``;
    the neckline always runs through offsets 2 and 4 and the right shoulder is
    always offset 5. ``kind`` never changes after creation.
    """

    kind: PatternKind
    pivot_start: int
    raw_start: int
    right_shoulder_raw: int
    points: Tuple[PivotPoint, ...]

    # Lifecycle
    status: CandidateStatus = CandidateStatus.FORMING
    breakout_raw_index: Optional[int] = None
    breakout_point: Optional[PivotPoint] = None

    # Trend context
    prior_trend: TrendContext = field(default_factory=TrendContext)
    following_trend: TrendContext = field(default_factory=TrendContext)
    following_trend_final: bool = False
    trend_counts: TrendCounts = field(default_factory=TrendCounts)

    # Shape and performance annotations
    shape: Optional[ShapeFeatures] = None
    duration: Optional[int] = None
    fixed_returns: List[Optional[float]] = field(default_factory=list)
    relative_returns: List[Optional[float]] = field(default_factory=list)
    fixed_filled: List[bool] = field(default_factory=list)
    relative_filled: List[bool] = field(default_factory=list)

    @property
    def left_shoulder(self) -> int:
        return self.pivot_start + 1

    @property
    def neckline_start(self) -> int:
        return self.pivot_start + 2

    @property
    def head(self) -> int:
        return self.pivot_start + 3

    @property
    def neckline_end(self) -> int:
        return self.pivot_start + 4

    @property
    def right_shoulder(self) -> int:
        return self.pivot_start + 5

    @property
    def right_shoulder_price(self) -> float:
        return self.points[5].price

    @property
    def is_valid(self) -> bool:
        """A candidate is valid once a breakout confirmed it"""
        return self.status is CandidateStatus.CONFIRMED

    @property
    def returns_complete(self) -> bool:
        return all(self.fixed_filled) and all(self.relative_filled)

    def allocate_returns(self, n_fixed: int, n_relative: int) -> None:
        """Reset return slots to missing/unfilled"""
        self.fixed_returns = [None] * n_fixed
        self.relative_returns = [None] * n_relative
        self.fixed_filled = [False] * n_fixed
        self.relative_filled = [False] * n_relative

    def to_dict(
        self,
        fixed_horizons: Tuple[int, ...],
        relative_fractions: Tuple[Tuple[int, int], ...]
    ) -> Dict[str, Any]:
        """Flatten the candidate into one record"""
        record: Dict[str, Any] = {
            "kind": self.kind.value,
            "valid": self.is_valid,
            "status": self.status.value,
            "pivot_start": self.pivot_start,
            "raw_start": self.raw_start,
            "breakout_raw_index": self.breakout_raw_index,
        }

        for k, point in enumerate(self.points):
            record[f"time_{k}"] = point.time
            record[f"price_{k}"] = point.price
        record["breakout_time"] = self.breakout_point.time if self.breakout_point else None
        record["breakout_price"] = self.breakout_point.price if self.breakout_point else None

        # Following trend is only meaningful after confirmation
        following = self.following_trend if self.is_valid else TrendContext()
        record["prior_trend_price"] = self.prior_trend.start_price
        record["prior_trend_time"] = self.prior_trend.start_time
        record["prior_trend_count"] = self.prior_trend.point_count
        record["following_trend_price"] = following.start_price
        record["following_trend_time"] = following.start_time
        record["following_trend_count"] = following.point_count if self.is_valid else None

        record["ascending_highs_before"] = self.trend_counts.ascending_highs
        record["ascending_lows_before"] = self.trend_counts.ascending_lows
        record["descending_highs_before"] = self.trend_counts.descending_highs
        record["descending_lows_before"] = self.trend_counts.descending_lows

        if self.shape is not None:
            record["neckline_slope"] = self.shape.neckline_slope
            record["neckline_span"] = self.shape.neckline_span
            for k, slope in enumerate(self.shape.leg_slopes, start=1):
                record[f"leg_slope_{k}"] = slope
            for k, length in enumerate(self.shape.leg_lengths, start=1):
                record[f"leg_length_{k}"] = length
            record["post_shoulder_slope"] = self.shape.post_shoulder_slope
            record["post_shoulder_length"] = self.shape.post_shoulder_length
            record["breakout_leg_slope"] = self.shape.breakout_leg_slope
            record["breakout_leg_length"] = self.shape.breakout_leg_length
        record["duration"] = self.duration

        for k, horizon in enumerate(fixed_horizons):
            record[f"return_{horizon}"] = self.fixed_returns[k] if k < len(self.fixed_returns) else None
        for k, fraction in enumerate(relative_fractions):
            value = self.relative_returns[k] if k < len(self.relative_returns) else None
            record[relative_return_label(fraction)] = value

        return record


def relative_return_label(fraction: Tuple[int, int]) -> str:
    """Column label for a relative horizon, e.g. (1, 3) -> rel_return_1_3"""
    numerator, denominator = fraction
    if denominator == 1:
        return f"rel_return_{numerator}"
    return f"rel_return_{numerator}_{denominator}"


@dataclass
class ScanResult:
    """All candidates emitted by one scan, in creation order"""
    candidates: List[PatternCandidate] = field(default_factory=list)
    pivot_count: int = 0
    raw_count: int = 0
    fixed_horizons: Tuple[int, ...] = (1, 3, 5, 10, 30, 60)
    relative_fractions: Tuple[Tuple[int, int], ...] = ((1, 3), (1, 2), (1, 1), (2, 1), (4, 1))
    reason: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.candidates

    @property
    def confirmed(self) -> List[PatternCandidate]:
        return [c for c in self.candidates if c.status is CandidateStatus.CONFIRMED]

    @property
    def invalidated(self) -> List[PatternCandidate]:
        return [c for c in self.candidates if c.status is CandidateStatus.INVALIDATED]

    def of_kind(self, kind: PatternKind) -> List[PatternCandidate]:
        return [c for c in self.candidates if c.kind is kind]

    def to_records(self) -> List[Dict[str, Any]]:
        return [c.to_dict(self.fixed_horizons, self.relative_fractions) for c in self.candidates]

    def summary(self) -> Dict[str, Any]:
        """Counts for logging and the CLI"""
        return {
            "pivots": self.pivot_count,
            "raw_points": self.raw_count,
            "candidates": len(self.candidates),
            "confirmed": len(self.confirmed),
            "invalidated": len(self.invalidated),
            "shs": len(self.of_kind(PatternKind.SHS)),
            "ishs": len(self.of_kind(PatternKind.ISHS)),
            "reason": self.reason,
            "warnings": list(self.warnings),
        }


# Exception Types
class PatternError(Exception):
    """Base exception for pattern scanner errors"""
    pass


class ConfigurationError(PatternError):
    """Exception for invalid scan configuration"""
    pass


class PatternInputError(PatternError):
    """Exception for tabular input that cannot be converted"""
    pass


class PivotIndexWarning(UserWarning):
    """Non-fatal pivot filter convention violation"""
    pass
