"""Portfolio evolution over many simulated paths.

``simulate_path`` runs one path through its yearly market draws:
withdraw (start of year), rebalance, grow, charge fees and tax, withdraw
(end of year), rebalance again.  ``run_simulation`` validates the input,
runs every path from one seeded random source and aggregates the results.

Example
-------

>>> output = run_simulation(params)  # doctest: +SKIP
>>> len(output.p50_asset_curve) == params.retirement_years + 1  # doctest: +SKIP
True
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import InvalidAllocation, InvalidCorrelation, InvalidHorizon, InvalidPathCount
from ..models import (
    PathResult,
    RebalanceRule,
    SimulationInput,
    SimulationOutput,
    WithdrawalTiming,
)
from . import quantiles
from .market import YearMarketSample, generate_market_path
from .rng import DeterministicRng
from .spending import spending_for_year
from .withdrawal import apply_withdrawal, resolve_withdrawal_amount, withdrawal_timing

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-6
LEDGER_KEYS = (
    "year", "age", "inflation", "planned_spending", "withdrawal",
    "fees", "taxes", "transaction_costs", "assets",
)


def validate_input(params: SimulationInput) -> None:
    """Reject a run before any random draw is made."""
    if params.simulation_paths <= 0:
        raise InvalidPathCount(f"simulation_paths must be > 0, got {params.simulation_paths}")
    if params.retirement_years <= 0:
        raise InvalidHorizon(f"retirement_years must be > 0, got {params.retirement_years}")
    weight_sum = params.stock_weight + params.bond_weight
    if not abs(weight_sum - 1.0) < WEIGHT_TOLERANCE:
        raise InvalidAllocation(f"stock_weight + bond_weight must equal 1, got {weight_sum}")
    if not abs(params.stock_bond_correlation) <= 1.0:
        raise InvalidCorrelation(
            f"stock_bond_correlation must lie in [-1, 1], got {params.stock_bond_correlation}"
        )


def rebalance(params: SimulationInput, stock_assets: float, bond_assets: float,
              total_assets: float) -> Tuple[float, float, float]:
    """Reset the sleeves to the target split of ``total_assets``.

    Returns ``(stock, bond, transaction_cost)``.  Half the traded notional is
    charged at ``transaction_cost_rate`` and comes out of the sleeves; the
    caller's total is not touched here.
    """
    if params.rebalance_rule != RebalanceRule.ANNUAL:
        return stock_assets, bond_assets, 0.0

    target_stock = total_assets * params.stock_weight
    target_bond = total_assets * params.bond_weight
    trade_volume = abs(target_stock - stock_assets) + abs(target_bond - bond_assets)
    transaction_cost = trade_volume * params.transaction_cost_rate * 0.5
    adjusted_assets = max(0.0, total_assets - transaction_cost)

    return adjusted_assets * params.stock_weight, adjusted_assets * params.bond_weight, transaction_cost


def simulate_path(params: SimulationInput, market_path: Sequence[YearMarketSample],
                  ledger: Optional[Dict[str, list]] = None) -> PathResult:
    """Evolve one portfolio through ``market_path``.

    When ``ledger`` is given it is filled with one entry per year under each of
    ``LEDGER_KEYS``.
    """
    if ledger is not None:
        for key in LEDGER_KEYS:
            ledger.setdefault(key, [])

    total_assets = params.initial_assets
    stock_assets = total_assets * params.stock_weight
    bond_assets = total_assets * params.bond_weight

    failure_year: Optional[int] = None
    previous_withdrawal: Optional[float] = None
    cumulative_inflation = 1.0

    peak_assets = total_assets
    max_drawdown = 0.0

    timing = withdrawal_timing(params.withdrawal_rule)
    yearly_assets: List[float] = [total_assets]

    for year_idx, sample in enumerate(market_path):
        cumulative_inflation *= 1.0 + sample.inflation
        planned_spending = spending_for_year(params.spending_path, year_idx, cumulative_inflation)

        year_withdrawal = 0.0
        year_costs = 0.0

        # --- start-of-year withdrawal, then rebalance what is left ---
        if timing == WithdrawalTiming.START_OF_YEAR:
            withdrawal = resolve_withdrawal_amount(
                params.withdrawal_rule, year_idx, total_assets, planned_spending,
                sample.inflation, previous_withdrawal,
            )
            before = total_assets
            total_assets = apply_withdrawal(total_assets, withdrawal)
            year_withdrawal = before - total_assets
            previous_withdrawal = withdrawal
            if total_assets <= 0.0 and failure_year is None:
                failure_year = year_idx + 1
            stock_assets, bond_assets, cost = rebalance(params, stock_assets, bond_assets, total_assets)
            year_costs += cost

        # --- market returns per sleeve ---
        stock_assets *= 1.0 + sample.stock_nominal_return
        bond_assets *= 1.0 + sample.bond_nominal_return

        # --- fees, then flat tax on the gain over the value entering this step ---
        pre_fee_assets = max(0.0, stock_assets + bond_assets)
        after_fee_assets = pre_fee_assets * max(0.0, 1.0 - params.fee_rate)
        taxable_gain = max(0.0, after_fee_assets - total_assets)
        taxes = taxable_gain * params.tax_rate
        total_assets = max(0.0, after_fee_assets - taxes)

        # --- end-of-year withdrawal ---
        if timing == WithdrawalTiming.END_OF_YEAR:
            withdrawal = resolve_withdrawal_amount(
                params.withdrawal_rule, year_idx, total_assets, planned_spending,
                sample.inflation, previous_withdrawal,
            )
            before = total_assets
            total_assets = apply_withdrawal(total_assets, withdrawal)
            year_withdrawal = before - total_assets
            previous_withdrawal = withdrawal
            if total_assets <= 0.0 and failure_year is None:
                failure_year = year_idx + 1

        stock_assets, bond_assets, cost = rebalance(params, stock_assets, bond_assets, total_assets)
        year_costs += cost

        # --- bookkeeping ---
        peak_assets = max(peak_assets, total_assets)
        if peak_assets > 0.0:
            max_drawdown = max(max_drawdown, (peak_assets - total_assets) / peak_assets)

        yearly_assets.append(total_assets)

        if ledger is not None:
            ledger["year"].append(year_idx + 1)
            ledger["age"].append(params.current_age + year_idx + 1)
            ledger["inflation"].append(sample.inflation)
            ledger["planned_spending"].append(planned_spending)
            ledger["withdrawal"].append(year_withdrawal)
            ledger["fees"].append(pre_fee_assets - after_fee_assets)
            ledger["taxes"].append(taxes)
            ledger["transaction_costs"].append(year_costs)
            ledger["assets"].append(total_assets)

    return PathResult(yearly_assets=yearly_assets, failure_year=failure_year, max_drawdown=max_drawdown)


def run_simulation(params: SimulationInput) -> SimulationOutput:
    """Simulate ``params.simulation_paths`` independent paths and aggregate them.

    All paths draw from one seeded random source in path order, so the same
    input always gives the same output.
    """
    try:
        validate_input(params)
    except ValueError as exc:
        logger.warning("Rejected simulation input: %s", exc)
        raise

    logger.info(
        "Running %d paths over %d years (seed=%d)",
        params.simulation_paths, params.retirement_years, params.random_seed,
    )

    rng = DeterministicRng(params.random_seed)
    # random source position at the start of each path, for replaying one later
    path_starts: List[Tuple[int, Optional[float]]] = []
    yearly_assets_by_path: List[List[float]] = []
    failure_year_by_path: List[Optional[int]] = []
    max_drawdown_by_path: List[float] = []

    for _ in range(params.simulation_paths):
        path_starts.append((rng.state, rng.cached_normal))
        market_path = generate_market_path(params, rng)
        res = simulate_path(params, market_path)
        yearly_assets_by_path.append(res.yearly_assets)
        failure_year_by_path.append(res.failure_year)
        max_drawdown_by_path.append(res.max_drawdown)

    total_year_points = params.retirement_years + 1
    p10, p50, p90 = quantiles.aggregate_asset_curves(yearly_assets_by_path, total_year_points)
    rate = quantiles.success_rate(failure_year_by_path)

    # ledger of the median path by final value, regenerated from its start position
    finals = [path[-1] for path in yearly_assets_by_path]
    median_idx = quantiles.median_path_index(finals)
    ledger_median: Dict[str, list] = {}
    replay = DeterministicRng(params.random_seed)
    replay.state, replay.cached_normal = path_starts[median_idx]
    simulate_path(params, generate_market_path(params, replay), ledger=ledger_median)

    logger.info("Simulation finished: success rate %.1f%%", rate * 100.0)

    return SimulationOutput(
        yearly_assets_by_path=yearly_assets_by_path,
        failure_year_by_path=failure_year_by_path,
        final_asset_quantiles=quantiles.final_asset_quantiles(yearly_assets_by_path),
        success_rate=rate,
        p10_asset_curve=p10,
        p50_asset_curve=p50,
        p90_asset_curve=p90,
        max_drawdown_by_path=max_drawdown_by_path,
        failure_year_distribution=quantiles.failure_year_distribution(failure_year_by_path),
        ages=[params.current_age + y for y in range(total_year_points)],
        cumulative_failure_rate=quantiles.cumulative_failure_rate(
            failure_year_by_path, params.retirement_years
        ),
        ledger_median=ledger_median,
    )
