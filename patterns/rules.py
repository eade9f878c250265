"""
Pattern Rules - Chart Pattern Scanner

Per-kind rule table. Each PatternKind maps to its breakout and invalidation
tests and to the trend directions used for the prior/following trend context.
Callers look rules up by tag instead of branching on the kind.
"""

from dataclasses import dataclass
from typing import Callable, Dict

from .types import PatternKind, TrendDirection


@dataclass(frozen=True)
class KindRules:
    """Rule set for one pattern kind"""
    kind: PatternKind
    breaks_out: Callable[[float, float, float, float], bool]
    invalidates: Callable[[float, float], bool]
    prior_direction: TrendDirection
    following_direction: TrendDirection


def _shs_breaks_out(price: float, neckline: float, next_price: float, shoulder: float) -> bool:
    # Close below the neckline, next point still below the right shoulder
    return price < neckline and next_price < shoulder


def _ishs_breaks_out(price: float, neckline: float, next_price: float, shoulder: float) -> bool:
    return price > neckline and next_price > shoulder


def _shs_invalidates(price: float, shoulder: float) -> bool:
    return price > shoulder


def _ishs_invalidates(price: float, shoulder: float) -> bool:
    return price < shoulder


RULES: Dict[PatternKind, KindRules] = {
    PatternKind.SHS: KindRules(
        kind=PatternKind.SHS,
        breaks_out=_shs_breaks_out,
        invalidates=_shs_invalidates,
        prior_direction=TrendDirection.ASCENDING,
        following_direction=TrendDirection.DESCENDING,
    ),
    PatternKind.ISHS: KindRules(
        kind=PatternKind.ISHS,
        breaks_out=_ishs_breaks_out,
        invalidates=_ishs_invalidates,
        prior_direction=TrendDirection.DESCENDING,
        following_direction=TrendDirection.ASCENDING,
    ),
}


def rules_for(kind: PatternKind) -> KindRules:
    return RULES[kind]
