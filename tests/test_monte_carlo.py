"""Tests for the Monte Carlo simulation engine."""

import dataclasses

import pytest

from retirement_projection import run_simulation
from retirement_projection.calculators import monte_carlo
from retirement_projection.calculators.market import YearMarketSample
from retirement_projection.errors import (
    InvalidAllocation,
    InvalidCorrelation,
    InvalidHorizon,
    InvalidPathCount,
    InvalidSimulationInput,
)
from retirement_projection.models import (
    FixedAmount,
    FixedReal,
    GrowingNominal,
    Guardrail,
    RebalanceRule,
    ReturnMode,
    SimulationInput,
    WithdrawalTiming,
)


def _base_input(**overrides) -> SimulationInput:
    """Zero-volatility 60/40 portfolio drawing $40k (real) at the start of each year."""
    params = SimulationInput(
        initial_assets=1_000_000.0,
        current_age=65,
        retirement_years=3,
        stock_weight=0.6,
        bond_weight=0.4,
        stock_return_mean=0.05,
        stock_return_volatility=0.0,
        bond_return_mean=0.03,
        bond_return_volatility=0.0,
        stock_bond_correlation=0.0,
        inflation_mean=0.02,
        inflation_volatility=0.0,
        tax_rate=0.0,
        fee_rate=0.0,
        spending_path=FixedReal(annual_amount=40_000.0),
        withdrawal_rule=FixedAmount(timing=WithdrawalTiming.START_OF_YEAR),
        rebalance_rule=RebalanceRule.ANNUAL,
        transaction_cost_rate=0.0,
        return_mode=ReturnMode.NOMINAL,
        simulation_paths=1,
        random_seed=42,
    )
    return dataclasses.replace(params, **overrides)


def _volatile_input(**overrides) -> SimulationInput:
    return _base_input(
        retirement_years=20,
        stock_return_volatility=0.18,
        bond_return_volatility=0.06,
        stock_bond_correlation=0.1,
        inflation_volatility=0.01,
        simulation_paths=200,
        random_seed=2024,
        **overrides,
    )


def test_deterministic_case_matches_expected_path():
    output = run_simulation(_base_input())
    path = output.yearly_assets_by_path[0]

    assert len(path) == 4
    assert path[0] == pytest.approx(1_000_000.0, abs=1e-6)
    assert path[1] == pytest.approx(999_486.4, abs=1e-6)
    assert path[2] == pytest.approx(998_100.9568, abs=1e-6)
    assert path[3] == pytest.approx(995_790.0475456002, abs=1e-6)

    assert output.success_rate == pytest.approx(1.0)
    assert output.failure_year_by_path == [None]
    assert output.final_asset_quantiles.p50 == pytest.approx(995_790.0475456002, abs=1e-6)
    assert output.failure_year_distribution == {}


def test_small_sample_seeded_run_is_stable():
    """Guardrail rule, real returns, fees, taxes and trading costs on a fixed seed."""
    params = SimulationInput(
        initial_assets=500_000.0,
        current_age=60,
        retirement_years=5,
        stock_weight=0.7,
        bond_weight=0.3,
        stock_return_mean=0.06,
        stock_return_volatility=0.15,
        bond_return_mean=0.02,
        bond_return_volatility=0.05,
        stock_bond_correlation=0.2,
        inflation_mean=0.02,
        inflation_volatility=0.01,
        tax_rate=0.1,
        fee_rate=0.005,
        spending_path=GrowingNominal(initial_amount=25_000.0, annual_growth=0.02),
        withdrawal_rule=Guardrail(
            initial_rate=0.05,
            floor_rate=0.04,
            ceiling_rate=0.06,
            adjust_fraction=0.1,
            timing=WithdrawalTiming.END_OF_YEAR,
        ),
        rebalance_rule=RebalanceRule.ANNUAL,
        transaction_cost_rate=0.001,
        return_mode=ReturnMode.REAL,
        simulation_paths=4,
        random_seed=7,
    )
    output = run_simulation(params)

    assert output.success_rate == pytest.approx(1.0)
    assert output.final_asset_quantiles.p10 == pytest.approx(345_011.2234980033, abs=1e-6)
    assert output.final_asset_quantiles.p50 == pytest.approx(478_756.76583945326, abs=1e-6)
    assert output.final_asset_quantiles.p90 == pytest.approx(584_095.2913306322, abs=1e-6)

    assert len(output.failure_year_distribution) == 0
    assert len(output.p50_asset_curve) == 6
    assert output.p50_asset_curve[0] == pytest.approx(500_000.0, abs=1e-6)
    assert output.p50_asset_curve[5] == pytest.approx(478_756.76583945326, abs=1e-6)


def test_repeatability_with_seed():
    """Simulations are bit-identical when the seed and inputs match."""
    params = _volatile_input()
    first = run_simulation(params)
    second = run_simulation(params)
    assert first == second


def test_different_seeds_give_different_paths():
    a = run_simulation(_volatile_input())
    b = run_simulation(dataclasses.replace(_volatile_input(), random_seed=2025))
    assert a.yearly_assets_by_path != b.yearly_assets_by_path


def test_curve_shape_and_statistics_properties():
    params = _volatile_input(spending_path=FixedReal(annual_amount=70_000.0))
    output = run_simulation(params)

    assert len(output.yearly_assets_by_path) == params.simulation_paths
    for curve in output.yearly_assets_by_path:
        assert len(curve) == params.retirement_years + 1
        assert curve[0] == params.initial_assets

    solvent = sum(1 for y in output.failure_year_by_path if y is None)
    assert output.success_rate == solvent / params.simulation_paths
    assert 0.0 <= output.success_rate <= 1.0

    for lo, mid, hi in zip(output.p10_asset_curve, output.p50_asset_curve, output.p90_asset_curve):
        assert lo <= mid <= hi

    for dd in output.max_drawdown_by_path:
        assert 0.0 <= dd <= 1.0

    failed = params.simulation_paths - solvent
    assert sum(output.failure_year_distribution.values()) == failed
    assert all(count > 0 for count in output.failure_year_distribution.values())
    assert list(output.failure_year_distribution) == sorted(output.failure_year_distribution)


def test_zero_volatility_collapses_all_paths():
    output = run_simulation(_base_input(simulation_paths=25, retirement_years=10))
    first = output.yearly_assets_by_path[0]
    assert all(curve == first for curve in output.yearly_assets_by_path)
    assert output.p10_asset_curve == output.p50_asset_curve == output.p90_asset_curve


def test_depletion_is_recorded_once_and_path_keeps_running():
    params = _base_input(
        initial_assets=100_000.0,
        retirement_years=4,
        stock_return_mean=0.0,
        bond_return_mean=0.0,
        inflation_mean=0.0,
        spending_path=FixedReal(annual_amount=50_000.0),
        simulation_paths=3,
    )
    output = run_simulation(params)

    for curve in output.yearly_assets_by_path:
        assert curve == pytest.approx([100_000.0, 50_000.0, 0.0, 0.0, 0.0])
    assert output.failure_year_by_path == [2, 2, 2]
    assert output.failure_year_distribution == {2: 3}
    assert output.success_rate == 0.0
    assert output.cumulative_failure_rate == [0.0, 1.0, 1.0, 1.0]
    assert output.max_drawdown_by_path == [1.0, 1.0, 1.0]


def test_drawdown_is_zero_when_assets_never_fall():
    output = run_simulation(_base_input(spending_path=FixedReal(annual_amount=0.0)))
    curve = output.yearly_assets_by_path[0]
    assert curve == sorted(curve)
    assert output.max_drawdown_by_path == [0.0]


def test_end_of_year_withdrawal_and_gain_tax():
    params = _base_input(
        retirement_years=1,
        stock_return_mean=0.05,
        bond_return_mean=0.05,
        inflation_mean=0.0,
        tax_rate=0.2,
        withdrawal_rule=FixedAmount(timing=WithdrawalTiming.END_OF_YEAR),
    )
    curve = run_simulation(params).yearly_assets_by_path[0]
    # 1,050,000 after returns, 20% tax on the 50,000 gain, then 40,000 out
    assert curve == pytest.approx([1_000_000.0, 1_000_000.0])


def test_fee_is_applied_before_tax():
    params = _base_input(
        retirement_years=1,
        stock_return_mean=0.05,
        bond_return_mean=0.05,
        inflation_mean=0.0,
        fee_rate=0.01,
        tax_rate=0.5,
        spending_path=FixedReal(annual_amount=0.0),
    )
    curve = run_simulation(params).yearly_assets_by_path[0]
    # 1,050,000 * 0.99 = 1,039,500; half of the 39,500 gain is taxed
    assert curve[1] == pytest.approx(1_019_750.0)


def test_real_mode_compounds_with_inflation():
    params = _base_input(
        retirement_years=1,
        stock_return_mean=0.0,
        bond_return_mean=0.0,
        inflation_mean=0.02,
        return_mode=ReturnMode.REAL,
        spending_path=FixedReal(annual_amount=0.0),
    )
    curve = run_simulation(params).yearly_assets_by_path[0]
    assert curve[1] == pytest.approx(1_020_000.0)


def test_transaction_cost_charged_on_rebalance_trade():
    params = _base_input(
        retirement_years=1,
        stock_return_mean=0.0,
        bond_return_mean=0.0,
        inflation_mean=0.0,
        transaction_cost_rate=0.01,
        spending_path=FixedReal(annual_amount=100_000.0),
    )
    curve = run_simulation(params).yearly_assets_by_path[0]
    # 100,000 traded back to 60/40 after the withdrawal, half of it at 1%
    assert curve[1] == pytest.approx(899_500.0)


def test_rebalance_none_leaves_sleeves_alone():
    params = _base_input(rebalance_rule=RebalanceRule.NONE, transaction_cost_rate=0.5)
    assert monte_carlo.rebalance(params, 700.0, 300.0, 1000.0) == (700.0, 300.0, 0.0)


def test_rebalance_resets_to_target_after_cost():
    params = _base_input(transaction_cost_rate=0.01)
    stock, bond, cost = monte_carlo.rebalance(params, 700.0, 300.0, 1000.0)
    assert cost == pytest.approx(1.0)  # 200 traded, half at 1%
    assert stock == pytest.approx(999.0 * 0.6)
    assert bond == pytest.approx(999.0 * 0.4)


def test_simulate_path_ledger_matches_curve():
    params = _base_input()
    market = [YearMarketSample(0.05, 0.03, 0.02)] * params.retirement_years
    ledger = {}
    res = monte_carlo.simulate_path(params, market, ledger=ledger)
    plain = monte_carlo.simulate_path(params, market)

    assert res == plain
    assert set(monte_carlo.LEDGER_KEYS) <= set(ledger)
    assert ledger["year"] == [1, 2, 3]
    assert ledger["age"] == [66, 67, 68]
    assert ledger["assets"] == res.yearly_assets[1:]
    assert ledger["withdrawal"][0] == pytest.approx(40_800.0)
    assert ledger["planned_spending"][1] == pytest.approx(40_000.0 * 1.02 ** 2)


def test_output_carries_ages_and_median_ledger():
    output = run_simulation(_base_input())
    assert output.ages == [65, 66, 67, 68]
    assert output.ledger_median["assets"] == output.yearly_assets_by_path[0][1:]
    assert output.cumulative_failure_rate == [0.0, 0.0, 0.0]


@pytest.mark.parametrize(
    "overrides, error",
    [
        ({"simulation_paths": 0}, InvalidPathCount),
        ({"retirement_years": 0}, InvalidHorizon),
        ({"stock_weight": 0.7}, InvalidAllocation),
        ({"stock_bond_correlation": 1.5}, InvalidCorrelation),
        ({"stock_bond_correlation": -1.0001}, InvalidCorrelation),
    ],
)
def test_invalid_inputs_are_rejected(overrides, error):
    with pytest.raises(error):
        run_simulation(_base_input(**overrides))


def test_validation_errors_are_value_errors():
    with pytest.raises(ValueError):
        run_simulation(_base_input(simulation_paths=-5))
    assert issubclass(InvalidCorrelation, InvalidSimulationInput)


def test_first_violation_wins():
    with pytest.raises(InvalidPathCount):
        run_simulation(_base_input(simulation_paths=0, retirement_years=0, stock_weight=2.0))


def test_rejection_happens_before_any_draw(monkeypatch):
    def _no_rng(seed):
        raise AssertionError("random source created for an invalid run")

    monkeypatch.setattr(monte_carlo, "DeterministicRng", _no_rng)
    with pytest.raises(InvalidAllocation):
        run_simulation(_base_input(bond_weight=0.5))


def test_weights_within_tolerance_are_accepted():
    output = run_simulation(_base_input(stock_weight=0.6 + 5e-7))
    assert output.success_rate == 1.0


def test_median_ledger_replays_the_median_path():
    from retirement_projection.calculators import quantiles

    output = run_simulation(_volatile_input(tax_rate=0.1, fee_rate=0.005, transaction_cost_rate=0.001))
    finals = [curve[-1] for curve in output.yearly_assets_by_path]
    median_idx = quantiles.median_path_index(finals)
    assert output.ledger_median["assets"] == output.yearly_assets_by_path[median_idx][1:]
    assert output.ledger_median["age"][-1] == 65 + 20
