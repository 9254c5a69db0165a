"""Cross-path statistics.

Quantiles use the nearest-rank rule on ascending values: the element at
``round((n - 1) * q)`` (halves round away from zero), so every reported value
is an asset level some path actually had.

Example
-------

>>> compute_quantile([3.0, 1.0, 2.0], 0.5)
2.0
>>> compute_quantile([], 0.9)
0.0
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..models import QuantileSummary

QUANTILE_LEVELS = (0.10, 0.50, 0.90)


def _nearest_rank(n: int, q: float) -> int:
    x = (n - 1) * q
    rank = math.floor(x)
    if x - rank >= 0.5:
        rank += 1
    return int(min(max(rank, 0), n - 1))


def compute_quantile(values: Sequence[float], q: float) -> float:
    if len(values) == 0:
        return 0.0
    ordered = np.sort(np.asarray(values, dtype=float))
    return float(ordered[_nearest_rank(len(ordered), q)])


def aggregate_asset_curves(
    paths: Sequence[Sequence[float]], total_year_points: int
) -> Tuple[List[float], List[float], List[float]]:
    """Per-year p10/p50/p90 across paths.

    Paths shorter than ``total_year_points`` count as 0 in the missing years.
    """
    if not paths:
        zeros = [0.0] * total_year_points
        return list(zeros), list(zeros), list(zeros)

    stacked = np.zeros((len(paths), total_year_points), dtype=float)
    for i, path in enumerate(paths):
        n = min(len(path), total_year_points)
        stacked[i, :n] = path[:n]
    stacked.sort(axis=0)  # n_paths x years, each column ascending

    curves = []
    for q in QUANTILE_LEVELS:
        curves.append(stacked[_nearest_rank(len(paths), q)].tolist())
    return curves[0], curves[1], curves[2]


def final_asset_quantiles(paths: Sequence[Sequence[float]]) -> QuantileSummary:
    finals = [path[-1] if len(path) else 0.0 for path in paths]
    p10, p50, p90 = (compute_quantile(finals, q) for q in QUANTILE_LEVELS)
    return QuantileSummary(p10=p10, p50=p50, p90=p90)


def success_rate(failure_years: Sequence[Optional[int]]) -> float:
    if not failure_years:
        return 0.0
    solvent = sum(1 for year in failure_years if year is None)
    return solvent / len(failure_years)


def failure_year_distribution(failure_years: Sequence[Optional[int]]) -> Dict[int, int]:
    counts: Dict[int, int] = {}
    for year in failure_years:
        if year is not None:
            counts[year] = counts.get(year, 0) + 1
    return {year: counts[year] for year in sorted(counts)}


def cumulative_failure_rate(failure_years: Sequence[Optional[int]], retirement_years: int) -> List[float]:
    """Share of paths that have failed by the end of each year 1..retirement_years."""
    n = len(failure_years)
    if n == 0:
        return [0.0] * retirement_years
    by_year = failure_year_distribution(failure_years)
    out = []
    failed = 0
    for year in range(1, retirement_years + 1):
        failed += by_year.get(year, 0)
        out.append(failed / n)
    return out


def median_path_index(final_values: Sequence[float]) -> int:
    """Index of the path whose final value sits closest to the median final value."""
    if len(final_values) == 0:
        raise ValueError("final_values must not be empty")
    terminal = np.asarray(final_values, dtype=float)
    median = compute_quantile(terminal, 0.50)
    return int(np.argmin(np.abs(terminal - median)))
