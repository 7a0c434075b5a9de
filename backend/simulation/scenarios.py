"""Simulation scenarios and the reports produced by running them."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from core.models import Room
from simulation.contamination import ContaminationRiskMap
from simulation.control import LoopStabilityReport
from simulation.environment import EnvironmentalCurve


class ScenarioType(StrEnum):
    BASELINE = "baseline"
    WHAT_IF = "what-if"
    OPTIMIZATION = "optimization"
    CONTAMINATION = "contamination-scenario"


class SimulationMode(StrEnum):
    SNAPSHOT = "snapshot"
    TIME_SERIES = "time-series"
    STRESS_TEST = "stress-test"
    OPTIMIZATION = "optimization"

    @property
    def runs_environment(self) -> bool:
        """Whether this mode projects a climate curve for each room."""
        return self is not SimulationMode.SNAPSHOT

    @property
    def runs_control_loop(self) -> bool:
        return self in (SimulationMode.STRESS_TEST, SimulationMode.OPTIMIZATION)


@dataclass(frozen=True)
class SimulationScenario:
    """Operator-defined what-if. Never mutated after creation."""

    id: str
    name: str
    description: str
    type: ScenarioType
    mode: SimulationMode
    duration_minutes: float
    rooms: tuple[Room, ...]
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))


@dataclass(frozen=True)
class SimulationReport:
    """Outcome of one run. Every run produces a new report."""

    id: str
    scenario_id: str
    scenario_name: str
    timestamp: datetime
    duration_minutes: float
    room_ids: tuple[str, ...]
    environmental_curves: tuple[EnvironmentalCurve, ...]
    contamination_risks: tuple[ContaminationRiskMap, ...]
    loop_stability: tuple[LoopStabilityReport, ...]
    energy_usage_kwh: float
    summary: str
    warnings: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
