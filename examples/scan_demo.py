"""
Pattern Scan Demonstration - Chart Pattern Scanner

This script generates a synthetic price series, reduces it to pivots with the
local extrema filter, scans it for SHS/iSHS patterns and prints a summary of
the confirmed patterns with their forward returns.
"""

import logging

import numpy as np
import pandas as pd

from data.pivots import local_extrema_pivots
from engine.config import ScanConfig
from engine.scanner import PatternScanner
from patterns.frames import split_frames


def generate_series(n: int = 3000, seed: int = 42):
    """Random walk with a slow cycle so reversals are common"""
    rng = np.random.default_rng(seed)
    times = np.arange(n, dtype=float)
    cycle = 8.0 * np.sin(times / 60.0)
    prices = 100.0 + cycle + np.cumsum(rng.normal(0.0, 0.6, n))
    return times, np.maximum(prices, 1.0)


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    times, prices = generate_series()
    # Smoothed prices give fewer, more meaningful pivots
    smoothed = pd.Series(prices).rolling(5, min_periods=1).mean().to_numpy()
    pivot_index = local_extrema_pivots(smoothed)

    print(f"📈 Series: {len(prices)} points, {len(pivot_index)} pivots")

    scanner = PatternScanner(ScanConfig())
    result = scanner.scan(pivot_index, times, prices)

    summary = result.summary()
    print(f"🔍 Candidates: {summary['candidates']} "
          f"(SHS {summary['shs']}, iSHS {summary['ishs']})")
    print(f"✅ Confirmed: {summary['confirmed']}  ❌ Invalidated: {summary['invalidated']}")

    frames = split_frames(result)
    info = frames["pattern_info"]
    returns = frames["returns"]
    confirmed = info["valid"].fillna(False).astype(bool)

    if confirmed.any():
        table = pd.concat([info.loc[confirmed, ["kind", "pivot_start", "duration"]],
                           returns.loc[confirmed]], axis=1)
        print("\nConfirmed patterns:")
        print(table.head(10).to_string())

        print("\nMean return by kind:")
        print(table.groupby("kind")[["return_5", "return_30", "rel_return_1"]].mean().to_string())
    else:
        print("No confirmed patterns in this series")


if __name__ == "__main__":
    main()
