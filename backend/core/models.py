"""Core data models for the grow-room digital twin."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class DeviceKind(StrEnum):
    HEATER = "heater"
    HUMIDIFIER = "humidifier"
    FAN = "fan"
    SCRUBBER = "scrubber"
    LIGHT = "light"
    SENSOR = "sensor"


class DeviceStatus(StrEnum):
    ON = "on"
    OFF = "off"
    STANDBY = "standby"


@dataclass(frozen=True)
class Device:
    """A virtual device in a room.

    ``effect_rate`` units depend on kind: °C/h (heater), %RH/h (humidifier),
    CFM (fan), ppm/h removed (scrubber), lux (light). Sensors have no effect.
    """

    id: str
    kind: DeviceKind
    status: DeviceStatus = DeviceStatus.OFF
    power_watts: float = 0.0
    effect_rate: float = 0.0

    @property
    def is_on(self) -> bool:
        return self.status == DeviceStatus.ON


@dataclass(frozen=True)
class Substrate:
    """Background source term - not mutated during simulation."""

    type: str
    mass_kg: float
    moisture_percent: float
    co2_production_rate: float  # ppm per hour
    heat_production_rate: float  # watts


@dataclass(frozen=True)
class EnvironmentalState:
    """Climate of a room at one instant."""

    temperature_c: float
    humidity_percent: float
    co2_ppm: float
    airflow_cfm: float
    light_lux: float
    timestamp: datetime


@dataclass(frozen=True)
class Room:
    """A digital room - owned by the scenario that created it."""

    id: str
    name: str
    volume_m3: float
    environmental_state: EnvironmentalState
    devices: tuple[Device, ...] = ()
    substrate: Substrate | None = None
    species: str | None = None
    stage: str | None = None

    def devices_of(self, kind: DeviceKind) -> list[Device]:
        return [d for d in self.devices if d.kind == kind]


@dataclass(frozen=True)
class TwinMetadata:
    total_rooms: int
    total_devices: int
    species: tuple[str, ...] = ()
    stages: tuple[str, ...] = ()


@dataclass(frozen=True)
class DigitalTwinSnapshot:
    """Static facility mirror - rooms plus summary metadata."""

    id: str
    facility_id: str
    facility_name: str
    rooms: tuple[Room, ...]
    timestamp: datetime
    mode: str
    metadata: TwinMetadata = field(default_factory=lambda: TwinMetadata(total_rooms=0, total_devices=0))
