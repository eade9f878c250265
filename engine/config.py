"""
Scan Configuration - Chart Pattern Scanner

Parameters for one pattern scan: return horizons, enabled pattern kinds,
input minimums and candidate emission limits.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from patterns.types import PatternKind


@dataclass(frozen=True)
class ScanConfig:
    """Configuration for pattern scan execution"""
    fixed_horizons: Tuple[int, ...] = (1, 3, 5, 10, 30, 60)  # time units after breakout
    relative_fractions: Tuple[Tuple[int, int], ...] = ((1, 3), (1, 2), (1, 1), (2, 1), (4, 1))
    kinds: Tuple[PatternKind, ...] = (PatternKind.SHS, PatternKind.ISHS)
    min_pivots: int = 7
    min_raw_points: int = 2
    skip_overlapping: bool = False  # jump past a match's body before classifying again
    max_patterns: Optional[int] = None
    progress_every: int = 500  # Log progress every N pivots

    def validate(self) -> List[str]:
        """Return a list of configuration problems, empty when valid"""
        problems: List[str] = []

        if not self.fixed_horizons:
            problems.append("fixed_horizons must not be empty")
        if any(h <= 0 for h in self.fixed_horizons):
            problems.append("fixed_horizons must be positive")
        if any(b <= a for a, b in zip(self.fixed_horizons, self.fixed_horizons[1:])):
            problems.append("fixed_horizons must be strictly increasing")

        for fraction in self.relative_fractions:
            if len(fraction) != 2:
                problems.append(f"relative fraction {fraction} must be a (numerator, denominator) pair")
                return problems
            if fraction[1] <= 0:
                problems.append(f"relative fraction {fraction} needs a positive denominator")
            if fraction[0] < 0:
                problems.append(f"relative fraction {fraction} must not be negative")
        if not problems:
            values = [n / d for n, d in self.relative_fractions]
            if any(b < a for a, b in zip(values, values[1:])):
                problems.append("relative_fractions must be non-decreasing")

        if not self.kinds:
            problems.append("at least one pattern kind must be enabled")
        if any(not isinstance(kind, PatternKind) for kind in self.kinds):
            problems.append("kinds must be PatternKind values")
        if self.min_pivots < 6:
            problems.append("min_pivots must be at least 6")
        if self.min_raw_points < 2:
            problems.append("min_raw_points must be at least 2")
        if self.max_patterns is not None and self.max_patterns < 0:
            problems.append("max_patterns must not be negative")
        if self.progress_every <= 0:
            problems.append("progress_every must be positive")

        return problems

    @property
    def is_valid(self) -> bool:
        return not self.validate()
