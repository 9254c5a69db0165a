"""Yearly market draws for one simulated path.

Each year consumes three standard normals from the shared random source:
two for the correlated stock and bond shocks, then one for inflation.

Example
-------

>>> path = generate_market_path(params, DeterministicRng(params.random_seed))  # doctest: +SKIP
>>> len(path) == params.retirement_years  # doctest: +SKIP
True
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

from ..models import ReturnMode, SimulationInput
from .rng import DeterministicRng


@dataclass(frozen=True)
class YearMarketSample:
    stock_nominal_return: float
    bond_nominal_return: float
    inflation: float


def generate_market_path(params: SimulationInput, rng: DeterministicRng) -> List[YearMarketSample]:
    """One correlated (stock, bond, inflation) draw per retirement year.

    The bond shock is the second row of the Cholesky factor of the 2x2
    correlation matrix applied to two independent normals.  Inflation gets its
    own independent normal.  In real mode the asset draws are compounded with
    that year's inflation to give nominal returns.
    """
    rho = params.stock_bond_correlation
    cholesky_offdiag = math.sqrt(1.0 - rho * rho)

    out: List[YearMarketSample] = []
    for _ in range(params.retirement_years):
        z1 = rng.sample_standard_normal()
        z2 = rng.sample_standard_normal()

        stock_shock = z1
        bond_shock = rho * z1 + cholesky_offdiag * z2

        stock_draw = params.stock_return_mean + params.stock_return_volatility * stock_shock
        bond_draw = params.bond_return_mean + params.bond_return_volatility * bond_shock

        inflation_z = rng.sample_standard_normal()
        inflation = params.inflation_mean + params.inflation_volatility * inflation_z

        if params.return_mode == ReturnMode.REAL:
            stock_nominal = (1.0 + stock_draw) * (1.0 + inflation) - 1.0
            bond_nominal = (1.0 + bond_draw) * (1.0 + inflation) - 1.0
        else:
            stock_nominal, bond_nominal = stock_draw, bond_draw

        out.append(YearMarketSample(stock_nominal, bond_nominal, inflation))

    return out
