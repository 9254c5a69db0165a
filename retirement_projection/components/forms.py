import streamlit as st

from ..config import DEFAULT_PLAN

# Stable widget keys so we can programmatically set values on load
WIDGET_KEYS = {
    "current_age": "in_current_age",
    "initial_assets": "in_initial_assets",
    "retirement_years": "in_retirement_years",

    "stock_weight": "in_stock_weight_pct",
    "rebalance": "in_rebalance",

    "stock_return_mean": "in_stock_mean",
    "stock_return_volatility": "in_stock_vol",
    "bond_return_mean": "in_bond_mean",
    "bond_return_volatility": "in_bond_vol",
    "stock_bond_correlation": "in_correlation",
    "inflation_mean": "in_inflation_mean",
    "inflation_volatility": "in_inflation_vol",
    "return_mode": "in_return_mode",

    "tax_rate": "in_tax_rate",
    "fee_rate": "in_fee_rate",
    "transaction_cost_rate": "in_tc_rate",

    "spending_kind": "in_spending_kind",
    "spending_amount": "in_spending_amount",
    "spending_growth": "in_spending_growth",
    "spending_schedule": "in_spending_schedule",

    "withdrawal_kind": "in_withdrawal_kind",
    "withdrawal_timing": "in_withdrawal_timing",
    "withdrawal_rate": "in_withdrawal_rate",
    "guardrail_initial": "in_guardrail_initial",
    "guardrail_floor": "in_guardrail_floor",
    "guardrail_ceiling": "in_guardrail_ceiling",
    "guardrail_adjust": "in_guardrail_adjust",

    "n_paths": "in_n_paths",
    "seed": "in_seed",
}

SPENDING_KINDS = ["fixed_real", "growing_nominal", "custom_nominal"]
WITHDRAWAL_KINDS = ["fixed_amount", "fixed_percentage", "guardrail"]
TIMINGS = ["start_of_year", "end_of_year"]


def _d(key, fallback):
    return st.session_state.get("form_defaults", {}).get(key, fallback)


def _pct(label, key, default, step=0.1, min_value=None, max_value=None, help=None):
    """Percent widget; returns a decimal."""
    value = st.number_input(
        label, value=float(_d(key, default * 100.0)), step=step,
        min_value=min_value, max_value=max_value,
        key=WIDGET_KEYS[key], help=help,
    )
    return value / 100.0


def _parse_schedule(text: str):
    out = []
    for part in text.replace("\n", ",").split(","):
        part = part.strip()
        if part:
            try:
                out.append(float(part))
            except ValueError:
                st.sidebar.warning(f"Ignoring '{part}' in the spending schedule (not a number).")
    return out


def plan_form():
    d_profile = DEFAULT_PLAN["profile"]
    d_alloc = DEFAULT_PLAN["allocation"]
    d_market = DEFAULT_PLAN["market"]
    d_costs = DEFAULT_PLAN["costs"]
    d_sim = DEFAULT_PLAN["simulation"]

    # -------- Profile --------
    st.sidebar.header("Profile")
    current_age = st.sidebar.number_input(
        "Current age", min_value=18, max_value=120,
        value=int(_d("current_age", d_profile["current_age"])), key=WIDGET_KEYS["current_age"],
        help="Age at the start of the projection."
    )
    initial_assets = st.sidebar.number_input(
        "Starting portfolio", min_value=0.0, step=10000.0,
        value=float(_d("initial_assets", d_profile["initial_assets"])), key=WIDGET_KEYS["initial_assets"],
    )
    retirement_years = st.sidebar.number_input(
        "Years to simulate", min_value=1, max_value=80,
        value=int(_d("retirement_years", d_profile["retirement_years"])), key=WIDGET_KEYS["retirement_years"],
        help="Projection horizon used for success probability."
    )

    # -------- Allocation --------
    st.sidebar.header("Allocation")
    stock_pct = st.sidebar.slider(
        "Stocks (%)", min_value=0, max_value=100,
        value=int(_d("stock_weight", round(d_alloc["stock_weight"] * 100))), key=WIDGET_KEYS["stock_weight"],
        help="Bonds hold the remainder."
    )
    rebalance = st.sidebar.selectbox(
        "Rebalancing", ["annual", "none"],
        index=["annual", "none"].index(_d("rebalance", d_alloc["rebalance"])), key=WIDGET_KEYS["rebalance"],
    )

    # -------- Market --------
    with st.sidebar.expander("Market assumptions", expanded=False):
        return_mode = st.radio(
            "Returns are quoted as", ["nominal", "real"],
            index=["nominal", "real"].index(_d("return_mode", d_market["return_mode"])),
            key=WIDGET_KEYS["return_mode"], horizontal=True,
        )
        stock_mean = _pct("Stock mean return (%)", "stock_return_mean", d_market["stock_return_mean"])
        stock_vol = _pct("Stock volatility (%)", "stock_return_volatility", d_market["stock_return_volatility"], min_value=0.0)
        bond_mean = _pct("Bond mean return (%)", "bond_return_mean", d_market["bond_return_mean"])
        bond_vol = _pct("Bond volatility (%)", "bond_return_volatility", d_market["bond_return_volatility"], min_value=0.0)
        correlation = st.slider(
            "Stock/bond correlation", min_value=-1.0, max_value=1.0, step=0.05,
            value=float(_d("stock_bond_correlation", d_market["stock_bond_correlation"])),
            key=WIDGET_KEYS["stock_bond_correlation"],
        )
        infl_mean = _pct("Inflation mean (%)", "inflation_mean", d_market["inflation_mean"])
        infl_vol = _pct("Inflation volatility (%)", "inflation_volatility", d_market["inflation_volatility"], min_value=0.0)

    # -------- Costs --------
    with st.sidebar.expander("Taxes and costs", expanded=False):
        tax_rate = _pct("Tax on gains (%)", "tax_rate", d_costs["tax_rate"], min_value=0.0, max_value=100.0)
        fee_rate = _pct("Annual fee (%)", "fee_rate", d_costs["fee_rate"], step=0.05, min_value=0.0, max_value=100.0)
        tc_rate = _pct("Trading cost (% of traded)", "transaction_cost_rate", d_costs["transaction_cost_rate"],
                       step=0.05, min_value=0.0, max_value=100.0)

    # -------- Spending --------
    st.sidebar.header("Spending")
    d_spend = DEFAULT_PLAN["spending"]
    spending_kind = st.sidebar.selectbox(
        "Spending path", SPENDING_KINDS,
        index=SPENDING_KINDS.index(_d("spending_kind", d_spend["kind"])), key=WIDGET_KEYS["spending_kind"],
        format_func=lambda k: {"fixed_real": "Fixed (inflation-adjusted)",
                               "growing_nominal": "Growing (nominal)",
                               "custom_nominal": "Custom schedule"}[k],
    )
    if spending_kind == "custom_nominal":
        text = st.sidebar.text_area(
            "Amount per year (comma separated)",
            value=_d("spending_schedule", "40000, 41000, 42000"), key=WIDGET_KEYS["spending_schedule"],
            help="The last amount repeats after the list runs out."
        )
        spending = {"kind": "custom_nominal", "yearly_amounts": _parse_schedule(text)}
    else:
        amount = st.sidebar.number_input(
            "First-year spending", min_value=0.0, step=1000.0,
            value=float(_d("spending_amount", d_spend.get("annual_amount", 40000.0))),
            key=WIDGET_KEYS["spending_amount"],
        )
        if spending_kind == "fixed_real":
            spending = {"kind": "fixed_real", "annual_amount": amount}
        else:
            growth = st.sidebar.number_input(
                "Annual growth (%)", step=0.1,
                value=float(_d("spending_growth", 2.0)), key=WIDGET_KEYS["spending_growth"],
            ) / 100.0
            spending = {"kind": "growing_nominal", "initial_amount": amount, "annual_growth": growth}

    # -------- Withdrawals --------
    st.sidebar.header("Withdrawals")
    d_wd = DEFAULT_PLAN["withdrawal"]
    withdrawal_kind = st.sidebar.selectbox(
        "Withdrawal rule", WITHDRAWAL_KINDS,
        index=WITHDRAWAL_KINDS.index(_d("withdrawal_kind", d_wd["kind"])), key=WIDGET_KEYS["withdrawal_kind"],
        format_func=lambda k: {"fixed_amount": "Follow spending path",
                               "fixed_percentage": "Fixed % of portfolio",
                               "guardrail": "Guardrails"}[k],
    )
    timing = st.sidebar.radio(
        "Withdraw at", TIMINGS,
        index=TIMINGS.index(_d("withdrawal_timing", d_wd["timing"])), key=WIDGET_KEYS["withdrawal_timing"],
        format_func=lambda t: t.replace("_", " "), horizontal=True,
    )
    withdrawal = {"kind": withdrawal_kind, "timing": timing}
    if withdrawal_kind == "fixed_percentage":
        with st.sidebar:
            withdrawal["rate"] = _pct("Withdrawal rate (%)", "withdrawal_rate", 0.04, min_value=0.0)
    elif withdrawal_kind == "guardrail":
        with st.sidebar.expander("Guardrail settings", expanded=True):
            withdrawal["initial_rate"] = _pct("Initial rate (%)", "guardrail_initial", 0.05, min_value=0.0)
            withdrawal["floor_rate"] = _pct("Floor rate (%)", "guardrail_floor", 0.04, min_value=0.0)
            withdrawal["ceiling_rate"] = _pct("Ceiling rate (%)", "guardrail_ceiling", 0.06, min_value=0.0)
            withdrawal["adjust_fraction"] = _pct("Adjustment (%)", "guardrail_adjust", 0.10, min_value=0.0)

    # -------- Simulation --------
    st.sidebar.header("Simulation")
    n_paths = st.sidebar.number_input(
        "Paths", min_value=1, max_value=100000, step=100,
        value=int(_d("n_paths", d_sim["paths"])), key=WIDGET_KEYS["n_paths"],
    )
    seed = st.sidebar.number_input(
        "Random seed", min_value=0, step=1,
        value=int(_d("seed", d_sim["seed"])), key=WIDGET_KEYS["seed"],
        help="Same seed and inputs give identical results."
    )

    stock_weight = stock_pct / 100.0
    return {
        "profile": {
            "current_age": int(current_age),
            "initial_assets": float(initial_assets),
            "retirement_years": int(retirement_years),
        },
        "allocation": {
            "stock_weight": stock_weight,
            "bond_weight": 1.0 - stock_weight,
            "rebalance": rebalance,
        },
        "market": {
            "stock_return_mean": stock_mean,
            "stock_return_volatility": stock_vol,
            "bond_return_mean": bond_mean,
            "bond_return_volatility": bond_vol,
            "stock_bond_correlation": float(correlation),
            "inflation_mean": infl_mean,
            "inflation_volatility": infl_vol,
            "return_mode": return_mode,
        },
        "costs": {"tax_rate": tax_rate, "fee_rate": fee_rate, "transaction_cost_rate": tc_rate},
        "spending": spending,
        "withdrawal": withdrawal,
        "simulation": {"paths": int(n_paths), "seed": int(seed)},
    }


def plan_to_form_defaults(plan: dict) -> dict:
    """Flatten a plan dict into the keys expected by the sidebar form."""
    profile = plan.get("profile", {})
    alloc = plan.get("allocation", {})
    market = plan.get("market", {})
    costs = plan.get("costs", {})
    spending = plan.get("spending", {})
    wd = plan.get("withdrawal", {})
    sim = plan.get("simulation", {})

    defaults = {
        "current_age": profile.get("current_age"),
        "initial_assets": profile.get("initial_assets"),
        "retirement_years": profile.get("retirement_years"),
        "stock_weight": round(alloc.get("stock_weight", 0.6) * 100),
        "rebalance": alloc.get("rebalance", "annual"),
        "return_mode": market.get("return_mode", "nominal"),
        "stock_bond_correlation": market.get("stock_bond_correlation"),
        "spending_kind": spending.get("kind"),
        "spending_amount": spending.get("annual_amount", spending.get("initial_amount")),
        "spending_growth": spending.get("annual_growth", 0.0) * 100.0,
        "spending_schedule": ", ".join(str(a) for a in spending.get("yearly_amounts", [])),
        "withdrawal_kind": wd.get("kind"),
        "withdrawal_timing": wd.get("timing", "start_of_year"),
        "n_paths": sim.get("paths"),
        "seed": sim.get("seed"),
    }
    for key in ("stock_return_mean", "stock_return_volatility", "bond_return_mean",
                "bond_return_volatility", "inflation_mean", "inflation_volatility"):
        if key in market:
            defaults[key] = market[key] * 100.0
    for key in ("tax_rate", "fee_rate", "transaction_cost_rate"):
        if key in costs:
            defaults[key] = costs[key] * 100.0
    for form_key, plan_key in (("withdrawal_rate", "rate"), ("guardrail_initial", "initial_rate"),
                               ("guardrail_floor", "floor_rate"), ("guardrail_ceiling", "ceiling_rate"),
                               ("guardrail_adjust", "adjust_fraction")):
        if plan_key in wd:
            defaults[form_key] = wd[plan_key] * 100.0
    return {k: v for k, v in defaults.items() if v is not None}
