"""Plain data containers passed into and out of the simulation engine.

The engine only reads a :class:`SimulationInput` and only produces a
:class:`SimulationOutput`.  Spending paths and withdrawal rules are small
closed families of frozen dataclasses; callers pick a variant and the engine
dispatches on its type.

Example
-------

>>> rule = Guardrail(initial_rate=0.05, floor_rate=0.04, ceiling_rate=0.06,
...                  adjust_fraction=0.1, timing=WithdrawalTiming.END_OF_YEAR)
>>> rule.timing.value
'end_of_year'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


class ReturnMode(Enum):
    NOMINAL = "nominal"
    REAL = "real"


class WithdrawalTiming(Enum):
    START_OF_YEAR = "start_of_year"
    END_OF_YEAR = "end_of_year"


class RebalanceRule(Enum):
    ANNUAL = "annual"
    NONE = "none"


# ---------- Spending paths ----------
@dataclass(frozen=True)
class FixedReal:
    """Constant purchasing power: ``annual_amount`` in today's dollars."""
    annual_amount: float


@dataclass(frozen=True)
class GrowingNominal:
    """Nominal amount compounding at ``annual_growth`` regardless of inflation."""
    initial_amount: float
    annual_growth: float


@dataclass(frozen=True)
class CustomNominal:
    """Explicit nominal schedule; the last entry repeats past its end."""
    yearly_amounts: Tuple[float, ...] = ()


SpendingPath = Union[FixedReal, GrowingNominal, CustomNominal]


# ---------- Withdrawal rules ----------
@dataclass(frozen=True)
class FixedAmount:
    timing: WithdrawalTiming = WithdrawalTiming.START_OF_YEAR


@dataclass(frozen=True)
class FixedPercentage:
    rate: float
    timing: WithdrawalTiming = WithdrawalTiming.START_OF_YEAR


@dataclass(frozen=True)
class Guardrail:
    initial_rate: float
    floor_rate: float
    ceiling_rate: float
    adjust_fraction: float
    timing: WithdrawalTiming = WithdrawalTiming.START_OF_YEAR


WithdrawalRule = Union[FixedAmount, FixedPercentage, Guardrail]


@dataclass(frozen=True)
class SimulationInput:
    """Everything one run needs.  Rates are decimals (0.05 == 5%)."""
    initial_assets: float
    current_age: int
    retirement_years: int
    stock_weight: float
    bond_weight: float
    stock_return_mean: float
    stock_return_volatility: float
    bond_return_mean: float
    bond_return_volatility: float
    stock_bond_correlation: float
    inflation_mean: float
    inflation_volatility: float
    tax_rate: float
    fee_rate: float
    spending_path: SpendingPath
    withdrawal_rule: WithdrawalRule
    rebalance_rule: RebalanceRule
    transaction_cost_rate: float
    return_mode: ReturnMode
    simulation_paths: int
    random_seed: int


@dataclass(frozen=True)
class QuantileSummary:
    p10: float
    p50: float
    p90: float


@dataclass(frozen=True)
class PathResult:
    yearly_assets: List[float]
    failure_year: Optional[int]
    max_drawdown: float


@dataclass(frozen=True)
class SimulationOutput:
    """Cross-path result of one run.

    ``failure_year_distribution`` maps a 1-based failure year to the number of
    paths that failed in it, in ascending year order; years nobody failed in
    are absent.  ``cumulative_failure_rate[y - 1]`` is the share of paths that
    had failed by the end of year ``y``.
    """
    yearly_assets_by_path: List[List[float]]
    failure_year_by_path: List[Optional[int]]
    final_asset_quantiles: QuantileSummary
    success_rate: float
    p10_asset_curve: List[float]
    p50_asset_curve: List[float]
    p90_asset_curve: List[float]
    max_drawdown_by_path: List[float]
    failure_year_distribution: Dict[int, int]
    ages: List[int] = field(default_factory=list)
    cumulative_failure_rate: List[float] = field(default_factory=list)
    ledger_median: Dict[str, list] = field(default_factory=dict)
