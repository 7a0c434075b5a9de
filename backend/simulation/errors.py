"""Simulation error types."""


class SimulationError(Exception):
    """Base class for all simulation failures."""


class ScenarioNotFoundError(SimulationError, LookupError):
    """Raised when a scenario id is not registered."""

    def __init__(self, scenario_id: str) -> None:
        super().__init__(f"Scenario {scenario_id} not found")
        self.scenario_id = scenario_id


class InvalidConfigurationError(SimulationError, ValueError):
    """Raised before any simulation work when inputs violate the model's contract."""


class SimulationTimeoutError(SimulationError, TimeoutError):
    """Raised when a run exceeds its deadline. No report is stored."""
