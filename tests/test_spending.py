import pytest

from retirement_projection.calculators.spending import spending_for_year
from retirement_projection.models import CustomNominal, FixedReal, GrowingNominal


def test_fixed_real_follows_cumulative_inflation():
    assert spending_for_year(FixedReal(40_000.0), 0, 1.02) == pytest.approx(40_800.0)
    assert spending_for_year(FixedReal(40_000.0), 9, 1.0) == pytest.approx(40_000.0)


def test_growing_nominal_ignores_inflation():
    path = GrowingNominal(initial_amount=25_000.0, annual_growth=0.02)
    assert spending_for_year(path, 0, 1.5) == pytest.approx(25_000.0)
    assert spending_for_year(path, 3, 1.5) == pytest.approx(25_000.0 * 1.02 ** 3)


def test_custom_schedule_repeats_last_entry():
    path = CustomNominal(yearly_amounts=(10_000.0, 12_000.0, 15_000.0))
    assert [spending_for_year(path, y, 2.0) for y in range(5)] == [
        10_000.0, 12_000.0, 15_000.0, 15_000.0, 15_000.0,
    ]


def test_empty_custom_schedule_spends_nothing():
    assert spending_for_year(CustomNominal(), 0, 1.0) == 0.0
    assert spending_for_year(CustomNominal(()), 12, 1.3) == 0.0


def test_unknown_spending_path_rejected():
    with pytest.raises(TypeError):
        spending_for_year("flat", 0, 1.0)
