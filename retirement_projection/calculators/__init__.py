"""Calculators behind the retirement projection.

Each module implements one piece of the simulation:

* ``rng`` – seeded 64-bit generator and Box–Muller normal sampler.
* ``market`` – correlated stock/bond returns and inflation for each year.
* ``spending`` – planned nominal spending per year.
* ``withdrawal`` – fixed amount, fixed percentage and guardrail withdrawal rules.
* ``monte_carlo`` – per-path portfolio evolution and the ``run_simulation`` entry point.
* ``quantiles`` – nearest-rank quantiles and the cross-path summary statistics.
* ``sensitivity`` – parameter sweeps and the maximum sustainable spending search.
"""

from . import rng, market, spending, withdrawal, quantiles, monte_carlo, sensitivity  # noqa: F401

__all__ = ["rng", "market", "spending", "withdrawal", "quantiles", "monte_carlo", "sensitivity"]
