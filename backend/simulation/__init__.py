"""Simulation module - grow-room climate, contamination risk and control loops."""

from simulation.config import DEFAULT as DEFAULT_SIM_CONFIG
from simulation.config import ControlGains, SimConfig
from simulation.config_builder import (
    DeviceConfig,
    EnvironmentOverrides,
    RoomConfig,
    SubstrateConfig,
    build_room,
    generate_snapshot,
    mirror_facility_configuration,
)
from simulation.contamination import ContaminationModel, ContaminationRiskMap, RiskFactors
from simulation.control import (
    ControlStrategy,
    LoopConfig,
    LoopSimulator,
    LoopStabilityReport,
    Tolerances,
)
from simulation.devices import DeviceEffect, Parameter, calculate_device_effect
from simulation.environment import EnvironmentalCurve, EnvironmentalModel, step_environment
from simulation.errors import (
    InvalidConfigurationError,
    ScenarioNotFoundError,
    SimulationError,
    SimulationTimeoutError,
)
from simulation.events import Deadline, EventCategory, EventSink
from simulation.scenarios import ScenarioType, SimulationMode, SimulationReport, SimulationScenario

__all__ = [
    "DEFAULT_SIM_CONFIG",
    "ContaminationModel",
    "ContaminationRiskMap",
    "ControlGains",
    "ControlStrategy",
    "Deadline",
    "DeviceConfig",
    "DeviceEffect",
    "EnvironmentOverrides",
    "EnvironmentalCurve",
    "EnvironmentalModel",
    "EventCategory",
    "EventSink",
    "InvalidConfigurationError",
    "LoopConfig",
    "LoopSimulator",
    "LoopStabilityReport",
    "Parameter",
    "RiskFactors",
    "RoomConfig",
    "ScenarioNotFoundError",
    "ScenarioType",
    "SimConfig",
    "SimulationError",
    "SimulationMode",
    "SimulationReport",
    "SimulationScenario",
    "SimulationTimeoutError",
    "SubstrateConfig",
    "Tolerances",
    "build_room",
    "calculate_device_effect",
    "generate_snapshot",
    "mirror_facility_configuration",
    "step_environment",
]
