import numpy as np

from ..models import SimulationOutput


def generate_insights(output: SimulationOutput) -> str:
    """Return a short plain-language summary of a simulation run.

    Rule based: the outlook sentence follows the success rate, then the median
    final value and the typical worst decline along the way.
    """
    success = float(output.success_rate)
    median_final = float(output.final_asset_quantiles.p50)
    ages = output.ages
    last_age = ages[-1] if ages else "the end of the plan"
    drawdowns = output.max_drawdown_by_path
    typical_drawdown = float(np.median(drawdowns)) if drawdowns else 0.0

    if success >= 0.85:
        outlook = "high chance of success"
    elif success >= 0.6:
        outlook = "moderate chance of success"
    else:
        outlook = "plan may be at risk"

    text = (
        f"Your plan has a {outlook} ({success * 100:.1f}% of paths stay funded). "
        f"Median projected portfolio at age {last_age} is ${median_final:,.0f}; "
        f"a typical path falls {typical_drawdown * 100:.0f}% below its peak at some point."
    )
    if output.failure_year_distribution:
        first_year = next(iter(output.failure_year_distribution))
        text += f" The earliest depletion happens in year {first_year}."
    return text
