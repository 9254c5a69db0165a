"""How much cash leaves the portfolio each year.

Example
-------

>>> resolve_withdrawal_amount(FixedPercentage(rate=0.04), 3, 500000.0, 0.0, 0.02, None)
20000.0
>>> apply_withdrawal(1000.0, 2500.0)
0.0
"""

from __future__ import annotations

from typing import Optional

from ..models import FixedAmount, FixedPercentage, Guardrail, WithdrawalRule, WithdrawalTiming


def withdrawal_timing(rule: WithdrawalRule) -> WithdrawalTiming:
    return rule.timing


def resolve_withdrawal_amount(
    rule: WithdrawalRule,
    year_idx: int,
    total_assets: float,
    planned_spending: float,
    inflation: float,
    previous_withdrawal: Optional[float],
) -> float:
    """Cash to take out this year under ``rule``.

    The result may exceed ``total_assets``; the caller clamps it.

    Parameters
    ----------
    rule : WithdrawalRule
        Active withdrawal rule.
    year_idx : int
        0-based simulation year.
    total_assets : float
        Portfolio value the rule is evaluated against.
    planned_spending : float
        Nominal spending for the year from the spending path.
    inflation : float
        This year's inflation draw.
    previous_withdrawal : float, optional
        Last year's withdrawal, ``None`` before the first one.
    """
    if isinstance(rule, FixedAmount):
        return planned_spending
    if isinstance(rule, FixedPercentage):
        return total_assets * rule.rate
    if isinstance(rule, Guardrail):
        if year_idx == 0 or previous_withdrawal is None:
            return total_assets * rule.initial_rate

        next_withdrawal = previous_withdrawal * (1.0 + max(inflation, -0.99))
        if total_assets > 0.0:
            current_rate = next_withdrawal / total_assets
        else:
            current_rate = rule.ceiling_rate + 1.0

        if current_rate > rule.ceiling_rate:
            next_withdrawal *= 1.0 - rule.adjust_fraction
        elif current_rate < rule.floor_rate:
            next_withdrawal *= 1.0 + rule.adjust_fraction

        # never below next_withdrawal, so planned_spending cannot change the result
        return max(next_withdrawal, min(planned_spending, next_withdrawal))
    raise TypeError(f"Unknown withdrawal rule: {rule!r}")


def apply_withdrawal(total_assets: float, amount: float) -> float:
    return max(0.0, total_assets - max(0.0, amount))
