"""Core domain models and species targets."""

from core.models import (
    Device,
    DeviceKind,
    DeviceStatus,
    DigitalTwinSnapshot,
    EnvironmentalState,
    Room,
    Substrate,
    TwinMetadata,
)
from core.targets import SPECIES_TARGETS, TargetEnvironment, get_target_environment

__all__ = [
    "SPECIES_TARGETS",
    "Device",
    "DeviceKind",
    "DeviceStatus",
    "DigitalTwinSnapshot",
    "EnvironmentalState",
    "Room",
    "Substrate",
    "TargetEnvironment",
    "TwinMetadata",
    "get_target_environment",
]
