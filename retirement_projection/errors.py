"""Exceptions raised for inputs the engine refuses to simulate.

Every error is a ``ValueError`` so callers that already guard numeric input
with ``except ValueError`` keep working; the subclasses say which invariant
was broken.
"""


class InvalidSimulationInput(ValueError):
    """A run was rejected before any path was simulated."""


class InvalidPathCount(InvalidSimulationInput):
    pass


class InvalidHorizon(InvalidSimulationInput):
    pass


class InvalidAllocation(InvalidSimulationInput):
    pass


class InvalidCorrelation(InvalidSimulationInput):
    pass


class PlanFormatError(ValueError):
    """A plan mapping could not be turned into a ``SimulationInput``."""
