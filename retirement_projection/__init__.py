"""Monte Carlo projection of a two-asset retirement portfolio.

>>> from retirement_projection import run_simulation
>>> from retirement_projection.config import DEFAULT_PLAN, plan_to_input
>>> output = run_simulation(plan_to_input(DEFAULT_PLAN))  # doctest: +SKIP
>>> 0.0 <= output.success_rate <= 1.0  # doctest: +SKIP
True
"""

from .calculators.monte_carlo import run_simulation
from .models import SimulationInput, SimulationOutput

__all__ = ["run_simulation", "SimulationInput", "SimulationOutput"]
