"""
Tabular Adapter - Chart Pattern Scanner

Conversion between pandas DataFrames and the scanner's arrays and results.
Output frames use pandas nullable dtypes so every missing value is ``pd.NA``.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from data.pivots import local_extrema_pivots
from .types import PatternInputError, ScanResult, relative_return_label

logger = logging.getLogger(__name__)

INFO_COLUMNS: Dict[str, str] = {
    "kind": "string",
    "valid": "boolean",
    "status": "string",
    "pivot_start": "Int64",
    "raw_start": "Int64",
    "breakout_raw_index": "Int64",
    "prior_trend_price": "Float64",
    "prior_trend_time": "Float64",
    "prior_trend_count": "Int64",
    "following_trend_price": "Float64",
    "following_trend_time": "Float64",
    "following_trend_count": "Int64",
    "ascending_highs_before": "Int64",
    "ascending_lows_before": "Int64",
    "descending_highs_before": "Int64",
    "descending_lows_before": "Int64",
    "neckline_slope": "Float64",
    "neckline_span": "Float64",
    **{f"leg_slope_{k}": "Float64" for k in range(1, 6)},
    **{f"leg_length_{k}": "Float64" for k in range(1, 6)},
    "post_shoulder_slope": "Float64",
    "post_shoulder_length": "Float64",
    "breakout_leg_slope": "Float64",
    "breakout_leg_length": "Float64",
    "duration": "Int64",
}

POINT_COLUMNS: Dict[str, str] = {
    **{f"{field}_{k}": "Float64" for k in range(6) for field in ("time", "price")},
    "breakout_time": "Float64",
    "breakout_price": "Float64",
}


def return_columns(
    fixed_horizons: Sequence[int],
    relative_fractions: Sequence[Tuple[int, int]]
) -> Dict[str, str]:
    columns = {f"return_{horizon}": "Float64" for horizon in fixed_horizons}
    columns.update({relative_return_label(f): "Float64" for f in relative_fractions})
    return columns


def _typed_frame(records: List[dict], columns: Dict[str, str]) -> pd.DataFrame:
    frame = pd.DataFrame.from_records(records, columns=list(columns))
    frame = frame.astype(object).where(frame.notna(), None)
    return frame.astype(columns)


def to_frame(result: ScanResult) -> pd.DataFrame:
    """
    One row per candidate, in creation order.

    Args:
        result: Scan output

    Returns:
        DataFrame with pattern info, body/breakout points and returns
    """
    columns = {
        **INFO_COLUMNS,
        **POINT_COLUMNS,
        **return_columns(result.fixed_horizons, result.relative_fractions),
    }
    frame = _typed_frame(result.to_records(), columns)
    frame.index.name = "pattern_id"
    return frame


def split_frames(result: ScanResult) -> Dict[str, pd.DataFrame]:
    """Split ``to_frame`` output into pattern_info, points and returns frames"""
    frame = to_frame(result)
    returns = return_columns(result.fixed_horizons, result.relative_fractions)
    return {
        "pattern_info": frame[list(INFO_COLUMNS)],
        "points": frame[list(POINT_COLUMNS)],
        "returns": frame[list(returns)],
    }


def _numeric_column(df: pd.DataFrame, column: str) -> np.ndarray:
    if column not in df.columns:
        raise PatternInputError(f"column '{column}' not found, available: {list(df.columns)}")

    values = df[column]
    if pd.api.types.is_datetime64_any_dtype(values):
        # Datetimes become fractional days since the epoch
        stamps = pd.to_datetime(values)
        if getattr(stamps.dt, "tz", None) is not None:
            stamps = stamps.dt.tz_convert("UTC").dt.tz_localize(None)
        return ((stamps - pd.Timestamp("1970-01-01")) / pd.Timedelta(days=1)).to_numpy(dtype=float)

    converted = pd.to_numeric(values, errors="coerce")
    if converted.isna().all() and len(converted) > 0:
        raise PatternInputError(f"column '{column}' holds no numeric values")
    return converted.to_numpy(dtype=float, na_value=np.nan)


def from_frame(
    df: pd.DataFrame,
    time_column: str = "time",
    price_column: str = "price",
    pivot_column: Optional[str] = None
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Extract (pivot_index, raw_times, raw_prices) from a DataFrame.

    Args:
        df: Raw price series, one row per observation in time order
        time_column: Numeric or datetime column; datetimes become days
        price_column: Numeric price column
        pivot_column: Boolean column flagging pivot rows. When omitted,
            pivots are the local extrema of the price column

    Returns:
        Tuple of 0-based pivot positions, raw times and raw prices

    Raises:
        PatternInputError: If a column is missing or not convertible
    """
    times = _numeric_column(df, time_column)
    prices = _numeric_column(df, price_column)

    if pivot_column is None:
        pivot_index = np.asarray(local_extrema_pivots(prices), dtype=np.int64)
    else:
        if pivot_column not in df.columns:
            raise PatternInputError(f"pivot column '{pivot_column}' not found")
        flags = df[pivot_column]
        try:
            mask = flags.fillna(False).astype(bool).to_numpy()
        except (TypeError, ValueError) as e:
            raise PatternInputError(f"pivot column '{pivot_column}' is not boolean: {e}") from e
        pivot_index = np.flatnonzero(mask).astype(np.int64)

    logger.debug(f"Loaded {len(prices)} rows with {len(pivot_index)} pivots")
    return pivot_index, times, prices
