import pytest

from retirement_projection.components.forms import WIDGET_KEYS, plan_to_form_defaults
from retirement_projection.config import DEFAULT_PLAN, merge_plan


def test_form_defaults_from_default_plan():
    defaults = plan_to_form_defaults(DEFAULT_PLAN)
    assert defaults["current_age"] == 65
    assert defaults["stock_weight"] == 60
    assert defaults["stock_return_mean"] == pytest.approx(5.0)
    assert defaults["spending_kind"] == "fixed_real"
    assert defaults["spending_amount"] == 40_000.0
    assert defaults["n_paths"] == 1000


def test_form_defaults_for_guardrail_plan():
    plan = merge_plan(DEFAULT_PLAN, {"withdrawal": {"kind": "guardrail", "initial_rate": 0.05,
                                                    "floor_rate": 0.04, "ceiling_rate": 0.06,
                                                    "adjust_fraction": 0.1}})
    defaults = plan_to_form_defaults(plan)
    assert defaults["guardrail_initial"] == pytest.approx(5.0)
    assert defaults["guardrail_adjust"] == pytest.approx(10.0)


def test_every_default_has_a_widget():
    plan = merge_plan(DEFAULT_PLAN, {"spending": {"kind": "custom_nominal", "yearly_amounts": [1.0, 2.0]}})
    defaults = plan_to_form_defaults(plan)
    assert defaults["spending_schedule"] == "1.0, 2.0"
    assert set(defaults) <= set(WIDGET_KEYS)
