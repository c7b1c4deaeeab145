"""
Progress analytics helpers for quiz history.

Provides:
- Percentage histograms
- Summary statistics (mean, median, min, max)
- Per-subject averages
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Tuple


def score_histogram(percentages: Iterable[float], bin_size: int = 10) -> List[Tuple[str, int]]:
    """
    Build histogram of percentage scores grouped by bins.

    Args:
        percentages: Percentage scores (0-100)
        bin_size: Size of each bin (default: 10 for ranges like 0-9, 10-19, etc.)

    Returns:
        List of (bin_label, count) tuples, sorted by bin

    Example:
        >>> score_histogram([85, 72, 45])
        [('40-49', 1), ('70-79', 1), ('80-89', 1)]
    """
    bins: Dict[str, int] = {}
    for value in percentages:
        # Clamp to [0, 100] and determine bin
        clamped = max(0.0, min(100.0, float(value)))
        bin_start = int(math.floor(clamped) // bin_size) * bin_size

        # A perfect score goes in the top bin
        if bin_start >= 100:
            bin_start = 100 - bin_size

        bin_label = f"{bin_start}-{bin_start + bin_size - 1}"
        bins[bin_label] = bins.get(bin_label, 0) + 1

    return sorted(bins.items(), key=lambda kv: int(kv[0].split("-")[0]))


def score_summary(percentages: Iterable[float]) -> Dict[str, float]:
    """
    Calculate summary statistics for percentage scores.

    Example:
        >>> score_summary([85, 72, 45])["mean"]
        67.33
    """
    values = sorted(float(v) for v in percentages)
    if not values:
        return {
            "mean": 0.0,
            "median": 0.0,
            "min": 0.0,
            "max": 0.0,
            "std_dev": 0.0,
            "count": 0,
        }

    n = len(values)
    mean_val = sum(values) / n

    if n % 2 == 1:
        median_val = values[n // 2]
    else:
        median_val = (values[n // 2 - 1] + values[n // 2]) / 2.0

    variance = sum((v - mean_val) ** 2 for v in values) / n
    std_dev = math.sqrt(variance)

    return {
        "mean": round(mean_val, 2),
        "median": round(median_val, 2),
        "min": round(values[0], 2),
        "max": round(values[-1], 2),
        "std_dev": round(std_dev, 2),
        "count": n,
    }


def subject_averages(results: Iterable[Tuple[str, float]]) -> Dict[str, float]:
    """
    Mean percentage per subject.

    Args:
        results: (subject, percentage) pairs

    Returns:
        Dict mapping subject to mean percentage, rounded to 2 places
    """
    totals: Dict[str, List[float]] = {}
    for subject, percentage in results:
        totals.setdefault(subject, []).append(float(percentage))

    return {
        subject: round(sum(values) / len(values), 2)
        for subject, values in sorted(totals.items())
    }
