"""
Pattern Geometry - Chart Pattern Scanner

Pure functions over the pivot price/time arrays: the neckline through the two
inner pivots of a six-pivot window, the Shoulder-Head-Shoulder classifier and
its mirror, a vectorised classifier over every start index, and the shape
features stored on new and confirmed candidates.

Offsets inside a window starting at pivot ``i``:

    i    pattern start
    i+1  left shoulder
    i+2  neckline start
    i+3  head
    i+4  neckline end
    i+5  right shoulder
"""

from dataclasses import replace
from typing import Dict, Optional, Sequence

import numpy as np

from .types import PatternKind, ShapeFeatures

# Anchor times closer than this are treated as coincident
COINCIDENT_TIME_EPS = 1e-15

WINDOW = 6


def slope(x1: float, y1: float, x2: float, y2: float) -> Optional[float]:
    """Slope of the segment (x1, y1) -> (x2, y2), None for a vertical segment"""
    if x2 == x1:
        return None
    return (y2 - y1) / (x2 - x1)


def neckline_at(x1: float, y1: float, x2: float, y2: float, x: float) -> float:
    """
    Evaluate the line through (x1, y1) and (x2, y2) at ``x``.

    Coincident anchor times fall back to the mean of the two anchor prices.
    At an anchor time the anchor price is returned exactly.
    """
    if abs(x2 - x1) < COINCIDENT_TIME_EPS:
        return (y1 + y2) / 2.0
    if x == x1:
        return y1
    if x == x2:
        return y2
    return y1 + (y2 - y1) / (x2 - x1) * (x - x1)


def window_neckline(prices: Sequence[float], times: Sequence[float], i: int, x: float) -> float:
    """Neckline of the window starting at pivot ``i`` evaluated at time ``x``"""
    return neckline_at(times[i + 2], prices[i + 2], times[i + 4], prices[i + 4], x)


def is_shs(prices: Sequence[float], times: Sequence[float], i: int) -> bool:
    """Shoulder-Head-Shoulder test for the window starting at pivot ``i``"""
    p = prices
    if not (p[i] < p[i + 1] and p[i] < p[i + 2] and p[i + 1] < p[i + 3] and p[i + 5] < p[i + 3]):
        return False
    return (
        p[i + 5] > window_neckline(p, times, i, times[i + 5])
        and p[i + 1] > window_neckline(p, times, i, times[i + 1])
        and p[i] < window_neckline(p, times, i, times[i])
    )


def is_ishs(prices: Sequence[float], times: Sequence[float], i: int) -> bool:
    """Inverse Shoulder-Head-Shoulder test, the mirror of ``is_shs``"""
    p = prices
    if not (p[i] > p[i + 1] and p[i] > p[i + 2] and p[i + 1] > p[i + 3] and p[i + 5] > p[i + 3]):
        return False
    return (
        p[i + 5] < window_neckline(p, times, i, times[i + 5])
        and p[i + 1] < window_neckline(p, times, i, times[i + 1])
        and p[i] > window_neckline(p, times, i, times[i])
    )


def classify(prices: Sequence[float], times: Sequence[float], i: int) -> Optional[PatternKind]:
    """
    Classify the six pivots starting at ``i``.

    Args:
        prices: Pivot prices
        times: Pivot times
        i: Start position, requires ``i + 5 < len(prices)``

    Returns:
        PatternKind.SHS, PatternKind.ISHS or None
    """
    if i < 0 or i + WINDOW > len(prices):
        raise IndexError(f"window at {i} does not fit {len(prices)} pivots")
    if is_shs(prices, times, i):
        return PatternKind.SHS
    if is_ishs(prices, times, i):
        return PatternKind.ISHS
    return None


def _neckline_vector(x1: np.ndarray, y1: np.ndarray, x2: np.ndarray, y2: np.ndarray,
                     x: np.ndarray) -> np.ndarray:
    dx = x2 - x1
    coincident = np.abs(dx) < COINCIDENT_TIME_EPS
    safe_dx = np.where(coincident, 1.0, dx)
    with np.errstate(invalid="ignore", over="ignore"):
        line = y1 + (y2 - y1) / safe_dx * (x - x1)
    return np.select(
        [coincident, x == x1, x == x2],
        [(y1 + y2) / 2.0, y1, y2],
        default=line
    )


def classify_all(prices: Sequence[float], times: Sequence[float]) -> Dict[PatternKind, np.ndarray]:
    """
    Evaluate both shape rules for every start index at once.

    Returns:
        Boolean mask per kind, of length ``max(len(prices) - 5, 0)``; entry
        ``i`` agrees with ``classify(prices, times, i)``
    """
    p = np.asarray(prices, dtype=float)
    t = np.asarray(times, dtype=float)
    n = max(p.shape[0] - WINDOW + 1, 0)
    if n == 0:
        empty = np.zeros(0, dtype=bool)
        return {PatternKind.SHS: empty, PatternKind.ISHS: empty.copy()}

    # Column k holds offset k of every window
    pw = [p[k:k + n] for k in range(WINDOW)]
    tw = [t[k:k + n] for k in range(WINDOW)]

    def neck(k: int) -> np.ndarray:
        return _neckline_vector(tw[2], pw[2], tw[4], pw[4], tw[k])

    n0, n1, n5 = neck(0), neck(1), neck(5)

    with np.errstate(invalid="ignore"):
        shs = (
            (pw[0] < pw[1]) & (pw[0] < pw[2]) & (pw[1] < pw[3]) & (pw[5] < pw[3])
            & (pw[5] > n5) & (pw[1] > n1) & (pw[0] < n0)
        )
        ishs = (
            (pw[0] > pw[1]) & (pw[0] > pw[2]) & (pw[1] > pw[3]) & (pw[5] > pw[3])
            & (pw[5] < n5) & (pw[1] < n1) & (pw[0] > n0)
        )
    # SHS takes precedence, matching the scalar classifier
    ishs &= ~shs

    return {PatternKind.SHS: shs, PatternKind.ISHS: ishs}


def shape_features(prices: Sequence[float], times: Sequence[float], i: int) -> ShapeFeatures:
    """Neckline slope and span plus the slope and length of the five legs"""
    points = [(float(times[i + k]), float(prices[i + k])) for k in range(WINDOW)]
    legs = list(zip(points[:-1], points[1:]))

    (x2, y2), (x4, y4) = points[2], points[4]
    if abs(x4 - x2) < COINCIDENT_TIME_EPS:
        neck_slope = None
    else:
        neck_slope = (y4 - y2) / (x4 - x2)

    return ShapeFeatures(
        neckline_slope=neck_slope,
        neckline_span=x4 - x2,
        leg_slopes=tuple(slope(a[0], a[1], b[0], b[1]) for a, b in legs),
        leg_lengths=tuple(b[0] - a[0] for a, b in legs),
    )



def breakout_features(
    shape: ShapeFeatures,
    prices: Sequence[float],
    times: Sequence[float],
    i: int,
    cross_time: float,
    cross_price: float
) -> ShapeFeatures:
    """
    Add the legs after the right shoulder once a pattern breaks out.

    Args:
        shape: Features computed when the candidate was created
        prices: Pivot prices
        times: Pivot times
        i: Pattern start pivot
        cross_time: Time of the raw point that crossed the neckline
        cross_price: Price of that raw point

    Returns:
        ``shape`` unchanged when no pivot follows the right shoulder,
        otherwise a copy with the post-shoulder and breakout legs set
    """
    if i + WINDOW >= len(prices):
        return shape

    t5, p5 = float(times[i + 5]), float(prices[i + 5])
    t6, p6 = float(times[i + 6]), float(prices[i + 6])
    return replace(
        shape,
        post_shoulder_slope=slope(t5, p5, t6, p6),
        post_shoulder_length=t6 - t5,
        breakout_leg_slope=slope(t5, p5, cross_time, cross_price),
        breakout_leg_length=cross_time - t6,
    )
