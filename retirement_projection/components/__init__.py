"""Expose component submodules for convenience."""

from .forms import plan_form, plan_to_form_defaults
from .charts import (
    fan_chart,
    success_gauge,
    failure_histogram,
    drawdown_histogram,
    cash_flow_chart,
    sensitivity_chart,
)
from .insights import generate_insights
from .report import build_pdf, ledger_frame, percentile_frame

__all__ = [
    "plan_form",
    "plan_to_form_defaults",
    "fan_chart",
    "success_gauge",
    "failure_histogram",
    "drawdown_histogram",
    "cash_flow_chart",
    "sensitivity_chart",
    "generate_insights",
    "build_pdf",
    "ledger_frame",
    "percentile_frame",
]
