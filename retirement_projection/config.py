"""Plan files and their conversion to ``SimulationInput``.

A *plan* is a nested dict of plain JSON values, grouped the way the sidebar
form groups its widgets.  The defaults ship in ``data/default_plan.json``;
``load_plan`` overlays a user file on top of them.

Example
-------

>>> params = plan_to_input(DEFAULT_PLAN)
>>> params.retirement_years, params.stock_weight
(30, 0.6)

The plan layout is::

    profile     current_age, initial_assets, retirement_years
    allocation  stock_weight, bond_weight, rebalance ("annual" | "none")
    market      stock/bond mean and volatility, stock_bond_correlation,
                inflation_mean, inflation_volatility,
                return_mode ("nominal" | "real")
    costs       tax_rate, fee_rate, transaction_cost_rate
    spending    kind ("fixed_real" | "growing_nominal" | "custom_nominal") + fields
    withdrawal  kind ("fixed_amount" | "fixed_percentage" | "guardrail") + fields,
                timing ("start_of_year" | "end_of_year")
    simulation  paths, seed

Only the shape of the plan is checked here.  Whether the numbers make sense
(weights summing to one and so on) is decided by the engine.
"""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import PlanFormatError
from .models import (
    CustomNominal,
    FixedAmount,
    FixedPercentage,
    FixedReal,
    GrowingNominal,
    Guardrail,
    RebalanceRule,
    ReturnMode,
    SimulationInput,
    WithdrawalTiming,
)

logger = logging.getLogger(__name__)

_DEFAULT_PLAN_PATH = Path(__file__).resolve().parent / "data" / "default_plan.json"


def _read_json(path: Path) -> Dict[str, Any]:
    logger.debug("Reading plan from %s", path)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


DEFAULT_PLAN: Dict[str, Any] = _read_json(_DEFAULT_PLAN_PATH)


def merge_plan(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Nested merge; ``overrides`` wins, ``base`` is not modified."""
    out = deepcopy(dict(base))
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = merge_plan(out[key], value)
        else:
            out[key] = deepcopy(value)
    return out


def load_plan(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load a JSON plan and fill anything it leaves out from ``DEFAULT_PLAN``."""
    if path is None:
        return deepcopy(DEFAULT_PLAN)
    data = _read_json(Path(path))
    if not isinstance(data, dict):
        raise PlanFormatError(f"Plan file {path} must contain a JSON object")
    return merge_plan(DEFAULT_PLAN, data)


# ---------- plan -> SimulationInput ----------
def _section(plan: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    sec = plan.get(name)
    if not isinstance(sec, Mapping):
        raise PlanFormatError(f"Plan is missing the '{name}' section")
    return sec


def _number(sec: Mapping[str, Any], key: str, section: str) -> float:
    if key not in sec:
        raise PlanFormatError(f"'{section}.{key}' is required")
    value = sec[key]
    if isinstance(value, bool):
        raise PlanFormatError(f"'{section}.{key}' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise PlanFormatError(f"'{section}.{key}' must be a number, got {value!r}") from exc


def _integer(sec: Mapping[str, Any], key: str, section: str) -> int:
    raw = sec.get(key)
    # ints pass through untouched; float() would round seeds above 2**53
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    value = _number(sec, key, section)
    if not value.is_integer():
        raise PlanFormatError(f"'{section}.{key}' must be a whole number, got {sec[key]!r}")
    return int(value)


def _enum(enum_cls, value: Any, label: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        choices = ", ".join(m.value for m in enum_cls)
        raise PlanFormatError(f"Unknown {label} '{value}'. Expected one of: {choices}") from exc


def _spending_path(sec: Mapping[str, Any]):
    kind = sec.get("kind")
    if kind == "fixed_real":
        return FixedReal(annual_amount=_number(sec, "annual_amount", "spending"))
    if kind == "growing_nominal":
        return GrowingNominal(
            initial_amount=_number(sec, "initial_amount", "spending"),
            annual_growth=_number(sec, "annual_growth", "spending"),
        )
    if kind == "custom_nominal":
        amounts = sec.get("yearly_amounts", [])
        if not isinstance(amounts, (list, tuple)):
            raise PlanFormatError("'spending.yearly_amounts' must be a list of numbers")
        try:
            return CustomNominal(yearly_amounts=tuple(float(a) for a in amounts))
        except (TypeError, ValueError) as exc:
            raise PlanFormatError("'spending.yearly_amounts' must be a list of numbers") from exc
    raise PlanFormatError(f"Unknown spending kind '{kind}'")


def _withdrawal_rule(sec: Mapping[str, Any]):
    kind = sec.get("kind")
    timing = _enum(WithdrawalTiming, sec.get("timing", WithdrawalTiming.START_OF_YEAR.value), "withdrawal timing")
    if kind == "fixed_amount":
        return FixedAmount(timing=timing)
    if kind == "fixed_percentage":
        return FixedPercentage(rate=_number(sec, "rate", "withdrawal"), timing=timing)
    if kind == "guardrail":
        return Guardrail(
            initial_rate=_number(sec, "initial_rate", "withdrawal"),
            floor_rate=_number(sec, "floor_rate", "withdrawal"),
            ceiling_rate=_number(sec, "ceiling_rate", "withdrawal"),
            adjust_fraction=_number(sec, "adjust_fraction", "withdrawal"),
            timing=timing,
        )
    raise PlanFormatError(f"Unknown withdrawal kind '{kind}'")


def plan_to_input(plan: Mapping[str, Any]) -> SimulationInput:
    profile = _section(plan, "profile")
    allocation = _section(plan, "allocation")
    market = _section(plan, "market")
    costs = _section(plan, "costs")
    sim = _section(plan, "simulation")

    return SimulationInput(
        initial_assets=_number(profile, "initial_assets", "profile"),
        current_age=_integer(profile, "current_age", "profile"),
        retirement_years=_integer(profile, "retirement_years", "profile"),
        stock_weight=_number(allocation, "stock_weight", "allocation"),
        bond_weight=_number(allocation, "bond_weight", "allocation"),
        stock_return_mean=_number(market, "stock_return_mean", "market"),
        stock_return_volatility=_number(market, "stock_return_volatility", "market"),
        bond_return_mean=_number(market, "bond_return_mean", "market"),
        bond_return_volatility=_number(market, "bond_return_volatility", "market"),
        stock_bond_correlation=_number(market, "stock_bond_correlation", "market"),
        inflation_mean=_number(market, "inflation_mean", "market"),
        inflation_volatility=_number(market, "inflation_volatility", "market"),
        tax_rate=_number(costs, "tax_rate", "costs"),
        fee_rate=_number(costs, "fee_rate", "costs"),
        spending_path=_spending_path(_section(plan, "spending")),
        withdrawal_rule=_withdrawal_rule(_section(plan, "withdrawal")),
        rebalance_rule=_enum(RebalanceRule, allocation.get("rebalance", "annual"), "rebalance rule"),
        transaction_cost_rate=_number(costs, "transaction_cost_rate", "costs"),
        return_mode=_enum(ReturnMode, market.get("return_mode", "nominal"), "return mode"),
        simulation_paths=_integer(sim, "paths", "simulation"),
        random_seed=_integer(sim, "seed", "simulation"),
    )


# ---------- SimulationInput -> plan ----------
def input_to_plan(params: SimulationInput) -> Dict[str, Any]:
    path = params.spending_path
    if isinstance(path, FixedReal):
        spending = {"kind": "fixed_real", "annual_amount": path.annual_amount}
    elif isinstance(path, GrowingNominal):
        spending = {"kind": "growing_nominal", "initial_amount": path.initial_amount,
                    "annual_growth": path.annual_growth}
    else:
        spending = {"kind": "custom_nominal", "yearly_amounts": list(path.yearly_amounts)}

    rule = params.withdrawal_rule
    if isinstance(rule, FixedPercentage):
        withdrawal = {"kind": "fixed_percentage", "rate": rule.rate}
    elif isinstance(rule, Guardrail):
        withdrawal = {"kind": "guardrail", "initial_rate": rule.initial_rate,
                      "floor_rate": rule.floor_rate, "ceiling_rate": rule.ceiling_rate,
                      "adjust_fraction": rule.adjust_fraction}
    else:
        withdrawal = {"kind": "fixed_amount"}
    withdrawal["timing"] = rule.timing.value

    return {
        "profile": {
            "current_age": params.current_age,
            "initial_assets": params.initial_assets,
            "retirement_years": params.retirement_years,
        },
        "allocation": {
            "stock_weight": params.stock_weight,
            "bond_weight": params.bond_weight,
            "rebalance": params.rebalance_rule.value,
        },
        "market": {
            "stock_return_mean": params.stock_return_mean,
            "stock_return_volatility": params.stock_return_volatility,
            "bond_return_mean": params.bond_return_mean,
            "bond_return_volatility": params.bond_return_volatility,
            "stock_bond_correlation": params.stock_bond_correlation,
            "inflation_mean": params.inflation_mean,
            "inflation_volatility": params.inflation_volatility,
            "return_mode": params.return_mode.value,
        },
        "costs": {
            "tax_rate": params.tax_rate,
            "fee_rate": params.fee_rate,
            "transaction_cost_rate": params.transaction_cost_rate,
        },
        "spending": spending,
        "withdrawal": withdrawal,
        "simulation": {"paths": params.simulation_paths, "seed": params.random_seed},
    }
