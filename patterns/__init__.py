"""
Patterns Module - Chart Pattern Scanner

Shoulder-Head-Shoulder (SHS) and inverse SHS recognition over pivot series:
geometry and per-kind rules, the candidate/trend/return trackers and the
pandas tabular adapter.

Components:
- types: Pattern data structures and exceptions
- geometry: Neckline model, shape classifier and shape features
- rules: Per-kind breakout, invalidation and trend rules
- candidates: Breakout/invalidation state machine
- trends: Running trend counters
- returns: Incremental forward returns
- frames: DataFrame conversion
"""

from .types import (
    PatternKind,
    CandidateStatus,
    TrendDirection,
    TrendContext,
    TrendCounts,
    ShapeFeatures,
    PatternCandidate,
    ScanResult,
    PatternError,
    ConfigurationError,
    PatternInputError,
    PivotIndexWarning
)
from .geometry import neckline_at, classify, classify_all, shape_features

__version__ = "1.0.0"
__all__ = [
    "PatternKind",
    "CandidateStatus",
    "TrendDirection",
    "TrendContext",
    "TrendCounts",
    "ShapeFeatures",
    "PatternCandidate",
    "ScanResult",
    "PatternError",
    "ConfigurationError",
    "PatternInputError",
    "PivotIndexWarning",
    "neckline_at",
    "classify",
    "classify_all",
    "shape_features"
]
