# app.py
import json
import logging

import streamlit as st

from retirement_projection import run_simulation
from retirement_projection.calculators import sensitivity
from retirement_projection.components.charts import (
    cash_flow_chart,
    drawdown_histogram,
    failure_histogram,
    fan_chart,
    sensitivity_chart,
    success_gauge,
)
from retirement_projection.components.forms import plan_form, plan_to_form_defaults
from retirement_projection.components.insights import generate_insights
from retirement_projection.components.report import build_pdf, ledger_frame, percentile_frame
from retirement_projection.config import merge_plan, DEFAULT_PLAN, plan_to_input
from retirement_projection.errors import InvalidSimulationInput, PlanFormatError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DISCOUNT_RATE = 0.03  # annual discount rate for present value

# ---------- Page config ----------
st.set_page_config(
    page_title="Retirement Projection",
    layout="wide",
    initial_sidebar_state="auto",
)

# Hide Streamlit's default menu and footer, card styling for metrics and charts
st.markdown(
    """
<style>
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
    .block-container { padding: 1.5rem 2rem; max-width: 1400px; margin: auto; }
    section[data-testid="stSidebar"] { background-color: #EEF2F1; }
    div[data-testid="stMetric"], div.stPlotlyChart {
        background: #FFFFFF;
        border-radius: 12px;
        padding: 0.75rem;
        border: 1px solid #E1E7E5;
    }
</style>
""",
    unsafe_allow_html=True,
)

# ---------- Session boot ----------
st.session_state.setdefault("form_defaults", {})
st.session_state.setdefault("export_json", None)
st.session_state.setdefault("export_pdf_bytes", None)
st.session_state.setdefault("auto_run", False)
st.session_state.setdefault("run_now", False)
st.session_state.setdefault("results", None)
st.session_state.setdefault("results_plan", None)

st.markdown(
    """
    ### **Retirement Projection**
    _Monte Carlo paths for a stock/bond portfolio under withdrawals, fees, taxes and rebalancing._
    """
)

# ====== SIDEBAR: FORM + CONTROLS ======
st.sidebar.header("Plan Inputs")
plan = plan_form()

st.sidebar.divider()
st.sidebar.header("Load Plan")
uploaded = st.sidebar.file_uploader("Upload plan JSON", type="json")
if uploaded and st.sidebar.button("Apply uploaded plan"):
    try:
        data = json.load(uploaded)
        if not isinstance(data, dict):
            raise PlanFormatError("Plan file must contain a JSON object")
        loaded = merge_plan(DEFAULT_PLAN, data)
        plan_to_input(loaded)
    except (json.JSONDecodeError, PlanFormatError) as exc:
        st.sidebar.error(f"Invalid plan file: {exc}")
    else:
        st.session_state["form_defaults"] = plan_to_form_defaults(loaded)
        st.sidebar.success("Plan loaded from file.")
        st.rerun()

# --- Main page: run button ---
st.header("Run Simulation")
left, right = st.columns(2)
with left:
    st.session_state["auto_run"] = st.checkbox("Auto run", value=st.session_state["auto_run"])
with right:
    if st.button("Run", type="primary"):
        st.session_state["run_now"] = True

# ====== RUN SIMULATION ======
if st.session_state["run_now"] or st.session_state["auto_run"]:
    st.session_state["run_now"] = False
    try:
        params = plan_to_input(plan)
        with st.spinner(f"Running {params.simulation_paths:,} Monte Carlo paths..."):
            st.session_state["results"] = run_simulation(params)
            st.session_state["results_plan"] = plan
    except InvalidSimulationInput as exc:
        st.error(f"Cannot run this plan: {exc}")
        st.stop()
    except PlanFormatError as exc:
        st.error(f"Plan is incomplete: {exc}")
        st.stop()

# --- Export ---
st.sidebar.divider()
st.sidebar.header("Export")
if st.sidebar.button("Export JSON"):
    st.session_state["export_json"] = json.dumps(plan, indent=2)
if st.session_state.get("export_json"):
    st.sidebar.download_button(
        "⬇️ Download JSON",
        data=st.session_state["export_json"],
        file_name="plan.json",
        mime="application/json",
    )

results = st.session_state.get("results")
if results is None:
    st.info("Run a simulation to see results.")
    st.stop()

run_plan = st.session_state["results_plan"]
params = plan_to_input(run_plan)

if st.sidebar.button("Export PDF"):
    st.session_state["export_pdf_bytes"] = build_pdf(run_plan, results)
if st.session_state.get("export_pdf_bytes"):
    st.sidebar.download_button(
        "⬇️ Download PDF",
        data=st.session_state["export_pdf_bytes"],
        file_name="projection.pdf",
        mime="application/pdf",
    )

# ====== DISPLAY ======
st.subheader("Plan Summary")
kcol1, kcol2 = st.columns(2)
with kcol1:
    st.plotly_chart(success_gauge(results.success_rate), use_container_width=True)

with kcol2:
    q = results.final_asset_quantiles
    col_fv, col_pv = st.columns(2)
    col_fv.metric(label="Median final portfolio", value=f"${q.p50:,.0f}")
    npv_final = q.p50 / ((1 + DISCOUNT_RATE) ** params.retirement_years)
    col_pv.metric(label="Present value", value=f"${npv_final:,.0f}")
    col_lo, col_hi = st.columns(2)
    col_lo.metric(label="10th percentile", value=f"${q.p10:,.0f}")
    col_hi.metric(label="90th percentile", value=f"${q.p90:,.0f}")
    st.caption(
        f"{params.simulation_paths:,} paths, seed {params.random_seed}. "
        f"Present value discounted at {DISCOUNT_RATE*100:.1f}% per year."
    )

st.divider()

c1, c2 = st.columns(2)
with c1:
    st.plotly_chart(
        fan_chart(results.ages, results.p10_asset_curve, results.p50_asset_curve, results.p90_asset_curve),
        use_container_width=True,
    )
with c2:
    st.plotly_chart(
        failure_histogram(results.failure_year_distribution, params.retirement_years, params.simulation_paths),
        use_container_width=True,
    )

c3, c4 = st.columns(2)
with c3:
    st.plotly_chart(drawdown_histogram(results.max_drawdown_by_path), use_container_width=True)
with c4:
    lm = results.ledger_median
    st.plotly_chart(cash_flow_chart(lm.get("age", []), lm), use_container_width=True)

# --- Insights ---
st.divider()
st.subheader("Insights")
st.info(generate_insights(results))

# --- What-if ---
st.divider()
st.subheader("What If")
w1, w2 = st.columns(2)
with w1:
    parameter = st.selectbox(
        "Parameter to vary",
        ["spending", "stock_weight", "stock_return_mean", "stock_return_volatility",
         "bond_return_mean", "stock_bond_correlation", "inflation_mean"],
        help="Each scenario scales the current value by -20% to +20%.",
    )
    if st.button("Run sensitivity"):
        deltas = [-0.2, -0.1, 0.0, 0.1, 0.2]
        with st.spinner("Running scenarios..."):
            points = sensitivity.run_sensitivity(params, parameter, deltas)
        st.plotly_chart(sensitivity_chart(points), use_container_width=True)
with w2:
    target = st.slider("Target success rate", min_value=0.5, max_value=1.0, value=0.9, step=0.05)
    if st.button("Find max spending"):
        with st.spinner("Searching..."):
            best = sensitivity.max_sustainable_spending(params, target_success=target)
        st.metric(label=f"First-year spending at {target:.0%} success", value=f"${best:,.0f}")

# --- Tables ---
st.markdown("### Percentiles by Age")
pct_df = percentile_frame(results)
st.dataframe(pct_df, use_container_width=True, height=300)

st.markdown("### Ledger (Median Path)")
df = ledger_frame(results.ledger_median)
styled_df = df.style.set_properties(subset=["assets"], **{"background-color": "#FFF3CD", "font-weight": "bold"})
st.dataframe(styled_df, use_container_width=True, height=350)
st.download_button(
    "⬇️ CSV (median ledger)",
    data=df.to_csv(index=False).encode("utf-8"),
    file_name="ledger_median.csv",
    mime="text/csv",
)
