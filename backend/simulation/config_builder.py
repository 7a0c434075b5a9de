"""Build digital rooms and facility twin snapshots from configuration records."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeVar

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
from simulation.events import EventCategory, EventSink

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Defaults for anything a configuration record leaves out
_DEFAULT_VOLUME_M3 = 50.0
_DEFAULT_TEMPERATURE_C = 20.0
_DEFAULT_HUMIDITY_PCT = 60.0
_DEFAULT_CO2_PPM = 800.0
_DEFAULT_AIRFLOW_CFM = 100.0
_DEFAULT_LIGHT_LUX = 0.0


@dataclass
class DeviceConfig:
    id: str | None = None
    kind: DeviceKind | str | None = None
    status: DeviceStatus | str | None = None
    power_watts: float | None = None
    effect_rate: float | None = None


@dataclass
class SubstrateConfig:
    type: str | None = None
    mass_kg: float | None = None
    moisture_percent: float | None = None
    co2_production_rate: float | None = None
    heat_production_rate: float | None = None


@dataclass
class EnvironmentOverrides:
    """Initial climate. ``None`` means "use the default"; explicit zeros are kept."""

    temperature_c: float | None = None
    humidity_percent: float | None = None
    co2_ppm: float | None = None
    airflow_cfm: float | None = None
    light_lux: float | None = None


@dataclass
class RoomConfig:
    """A facility room record as handed over by the facility configuration."""

    id: str
    name: str
    species: str | None = None
    stage: str | None = None
    volume_m3: float | None = None
    devices: list[DeviceConfig] = field(default_factory=list)
    substrate: SubstrateConfig | None = None
    initial_environment: EnvironmentOverrides | None = None


def _or(value: T | None, default: T) -> T:
    return default if value is None else value


def build_device(config: DeviceConfig, index: int) -> Device:
    return Device(
        id=config.id or f"device-{index}",
        kind=DeviceKind(config.kind or DeviceKind.SENSOR),
        status=DeviceStatus(config.status or DeviceStatus.OFF),
        power_watts=config.power_watts or 0.0,
        effect_rate=config.effect_rate or 0.0,
    )


def build_substrate(config: SubstrateConfig) -> Substrate:
    return Substrate(
        type=config.type or "generic",
        mass_kg=config.mass_kg or 10.0,
        moisture_percent=config.moisture_percent or 60.0,
        co2_production_rate=config.co2_production_rate or 50.0,  # ppm/hr
        heat_production_rate=config.heat_production_rate or 20.0,  # watts
    )


def initial_state(overrides: EnvironmentOverrides | None, timestamp: datetime) -> EnvironmentalState:
    o = overrides or EnvironmentOverrides()
    return EnvironmentalState(
        temperature_c=_or(o.temperature_c, _DEFAULT_TEMPERATURE_C),
        humidity_percent=_or(o.humidity_percent, _DEFAULT_HUMIDITY_PCT),
        co2_ppm=_or(o.co2_ppm, _DEFAULT_CO2_PPM),
        airflow_cfm=_or(o.airflow_cfm, _DEFAULT_AIRFLOW_CFM),
        light_lux=_or(o.light_lux, _DEFAULT_LIGHT_LUX),
        timestamp=timestamp,
    )


def build_room(config: RoomConfig, timestamp: datetime | None = None) -> Room:
    """Create a fully-populated ``Room`` from a configuration record.

    ``timestamp`` anchors the room's initial state; pass a fixed value for
    reproducible curves.
    """
    return Room(
        id=config.id,
        name=config.name,
        species=config.species,
        stage=config.stage,
        volume_m3=_or(config.volume_m3, _DEFAULT_VOLUME_M3),
        devices=tuple(build_device(d, i) for i, d in enumerate(config.devices)),
        substrate=build_substrate(config.substrate) if config.substrate is not None else None,
        environmental_state=initial_state(config.initial_environment, timestamp or datetime.now()),
    )


def _distinct(values: list[str | None]) -> tuple[str, ...]:
    """Unique non-empty values in first-seen order."""
    return tuple(dict.fromkeys(v for v in values if v))


def generate_snapshot(
    facility_id: str,
    facility_name: str,
    room_configs: list[RoomConfig],
    mode: str,
    events: EventSink | None = None,
    timestamp: datetime | None = None,
) -> DigitalTwinSnapshot:
    """Mirror a facility as a static set of digital rooms."""
    now = timestamp or datetime.now()
    rooms = tuple(build_room(c, now) for c in room_configs)

    snapshot = DigitalTwinSnapshot(
        id=f"twin-{uuid.uuid4().hex[:12]}",
        facility_id=facility_id,
        facility_name=facility_name,
        rooms=rooms,
        timestamp=now,
        mode=mode,
        metadata=TwinMetadata(
            total_rooms=len(rooms),
            total_devices=sum(len(r.devices) for r in rooms),
            species=_distinct([r.species for r in rooms]),
            stages=_distinct([r.stage for r in rooms]),
        ),
    )

    logger.info("Twin %s: %d rooms, %d devices", snapshot.id, len(rooms), snapshot.metadata.total_devices)
    if events is not None:
        events.add(
            EventCategory.TWIN_GENERATION,
            f"Digital twin generated for {facility_name}",
            {"twin_id": snapshot.id, "facility_id": facility_id, "rooms": len(rooms)},
        )

    return snapshot


def mirror_facility_configuration(
    facility_name: str | None = None,
    events: EventSink | None = None,
    timestamp: datetime | None = None,
) -> DigitalTwinSnapshot:
    """Snapshot of the bundled sample facility."""
    from data.sample_facility import SAMPLE_FACILITY_ID, SAMPLE_FACILITY_NAME, sample_room_configs

    return generate_snapshot(
        SAMPLE_FACILITY_ID,
        facility_name or SAMPLE_FACILITY_NAME,
        sample_room_configs(),
        "snapshot",
        events=events,
        timestamp=timestamp,
    )
