"""Planned spending by year, independent of how the portfolio is doing.

Example
-------

>>> round(spending_for_year(GrowingNominal(40000, 0.03), 2, 1.0), 2)
42436.0
>>> spending_for_year(CustomNominal((10.0, 20.0)), 5, 1.0)
20.0
"""

from __future__ import annotations

from ..models import CustomNominal, FixedReal, GrowingNominal, SpendingPath


def spending_for_year(spending_path: SpendingPath, year_idx: int, cumulative_inflation: float) -> float:
    """Nominal spending for ``year_idx`` (0-based).

    ``cumulative_inflation`` already includes the current year's inflation.
    """
    if isinstance(spending_path, FixedReal):
        return spending_path.annual_amount * cumulative_inflation
    if isinstance(spending_path, GrowingNominal):
        return spending_path.initial_amount * (1.0 + spending_path.annual_growth) ** year_idx
    if isinstance(spending_path, CustomNominal):
        amounts = spending_path.yearly_amounts
        if not amounts:
            return 0.0
        if year_idx < len(amounts):
            return float(amounts[year_idx])
        return float(amounts[-1])
    raise TypeError(f"Unknown spending path: {spending_path!r}")
