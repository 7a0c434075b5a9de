"""Environmental model - steps a room's climate forward in time."""

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Literal

from analysis.signals import mean, population_variance
from core.models import EnvironmentalState, Room
from core.targets import get_target_environment
from simulation.config import DEFAULT, SimConfig
from simulation.devices import Parameter, calculate_device_effect, energy_kwh
from simulation.errors import InvalidConfigurationError
from simulation.events import Deadline, EventCategory, EventSink

logger = logging.getLogger(__name__)

Stability = Literal["stable", "drifting", "oscillating"]


@dataclass(frozen=True)
class EnvironmentalCurve:
    """Chronological samples of one simulation run plus its assessment."""

    room_id: str
    start_time: datetime
    end_time: datetime
    data_points: tuple[EnvironmentalState, ...]
    stability: Stability
    deviations: tuple[str, ...]
    energy_usage_kwh: float = 0.0


# ---------------------------------------------------------------------------
# Physics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dynamics:
    """Per-hour ambient drift for a room."""

    temperature_drift: float
    humidity_drift: float
    co2_drift: float


def calculate_dynamics(room: Room, config: SimConfig = DEFAULT) -> Dynamics:
    """Ambient drift rates - larger rooms drift slower, up to 2x reference volume."""
    volume_factor = min(room.volume_m3 / config.reference_volume_m3, config.max_drift_volume_factor)
    return Dynamics(
        temperature_drift=config.temp_drift_c_per_h / volume_factor,
        humidity_drift=config.humidity_drift_pct_per_h / volume_factor,
        co2_drift=config.co2_drift_ppm_per_h / volume_factor,
    )


def default_actuation(room: Room) -> dict[str, float]:
    """Device id -> intensity from configured status (on = 1.0)."""
    return {d.id: 1.0 if d.is_on else 0.0 for d in room.devices}


def step_environment(
    state: EnvironmentalState,
    room: Room,
    step_minutes: float,
    actuation: Mapping[str, float] | None = None,
    config: SimConfig = DEFAULT,
) -> EnvironmentalState:
    """Advance ``state`` by one step.

    ``actuation`` maps device id to intensity in [0, 1]; devices missing from
    it are off. Without it, the devices' configured status is used.
    """
    step_hours = step_minutes / 60
    intensities = default_actuation(room) if actuation is None else actuation
    dynamics = calculate_dynamics(room, config)

    temp = state.temperature_c + dynamics.temperature_drift * step_hours
    humidity = state.humidity_percent + dynamics.humidity_drift * step_hours
    co2 = state.co2_ppm + dynamics.co2_drift * step_hours

    if room.substrate is not None:
        temp += room.substrate.heat_production_rate / (room.volume_m3 * config.substrate_heat_divisor) * step_hours
        co2 += room.substrate.co2_production_rate * step_hours

    for device in room.devices:
        intensity = intensities.get(device.id, 0.0)
        if intensity <= 0:
            continue
        effect = calculate_device_effect(device, room.volume_m3, config)
        delta = effect.magnitude * intensity * step_hours
        match effect.parameter:
            case Parameter.TEMPERATURE:
                temp += delta
            case Parameter.HUMIDITY:
                humidity += delta
            case Parameter.CO2:
                co2 += delta
            case Parameter.AIRFLOW:
                # Air exchange flushes CO2; airflow itself is a level, not a rate
                co2 -= delta * config.fan_co2_exchange_factor
            case _:
                pass

    temp = max(config.temp_min_c, min(config.temp_max_c, temp))
    humidity = max(config.humidity_min_pct, min(config.humidity_max_pct, humidity))
    co2 = max(config.co2_min_ppm, min(config.co2_max_ppm, co2))

    return EnvironmentalState(
        temperature_c=round(temp, 2),
        humidity_percent=round(humidity, 2),
        co2_ppm=round(co2),
        airflow_cfm=state.airflow_cfm,
        light_lux=state.light_lux,
        timestamp=state.timestamp,
    )


# ---------------------------------------------------------------------------
# Assessment
# ---------------------------------------------------------------------------


def assess_stability(data_points: Sequence[EnvironmentalState], config: SimConfig = DEFAULT) -> Stability:
    """Classify a curve from the variance of temperature and humidity."""
    if len(data_points) < config.stability_min_samples:
        return "stable"

    temp_variance = population_variance([p.temperature_c for p in data_points])
    humidity_variance = population_variance([p.humidity_percent for p in data_points])

    if temp_variance > config.oscillating_temp_variance or humidity_variance > config.oscillating_humidity_variance:
        return "oscillating"
    if temp_variance > config.drifting_temp_variance or humidity_variance > config.drifting_humidity_variance:
        return "drifting"
    return "stable"


def detect_deviations(
    data_points: Sequence[EnvironmentalState],
    room: Room,
    config: SimConfig = DEFAULT,
) -> list[str]:
    """Compare curve means against the room's species/stage target."""
    target = get_target_environment(room.species, room.stage)
    if target.is_empty or not data_points:
        return []

    deviations: list[str] = []

    if target.temperature_c is not None:
        gap = mean([p.temperature_c for p in data_points]) - target.temperature_c
        if abs(gap) > config.deviation_temp_c:
            deviations.append(f"Temperature deviated by {gap:.1f}°C from target")

    if target.humidity_percent is not None:
        gap = mean([p.humidity_percent for p in data_points]) - target.humidity_percent
        if abs(gap) > config.deviation_humidity_pct:
            deviations.append(f"Humidity deviated by {gap:.1f}% from target")

    if target.co2_ppm is not None:
        gap = mean([p.co2_ppm for p in data_points]) - target.co2_ppm
        if abs(gap) > config.deviation_co2_ppm:
            deviations.append(f"CO₂ deviated by {round(gap)} ppm from target")

    return deviations


def validate_room(room: Room) -> None:
    if room.volume_m3 <= 0:
        raise InvalidConfigurationError(f"Room {room.id} volume must be > 0 (got {room.volume_m3})")


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class EnvironmentalModel:
    """Open-loop time-series simulation of a room's climate."""

    def __init__(self, config: SimConfig = DEFAULT, events: EventSink | None = None) -> None:
        self.config = config
        self.events = events

    def simulate_time_series(
        self,
        room: Room,
        duration_minutes: float,
        step_minutes: float = 1,
        deadline: Deadline | None = None,
    ) -> EnvironmentalCurve:
        """Simulate ``duration_minutes`` and return ``floor(duration/step) + 1`` samples."""
        if duration_minutes <= 0:
            raise InvalidConfigurationError(f"Duration must be > 0 minutes (got {duration_minutes})")
        if step_minutes <= 0:
            raise InvalidConfigurationError(f"Step must be > 0 minutes (got {step_minutes})")
        validate_room(room)

        start = room.environmental_state.timestamp
        steps = math.floor(duration_minutes / step_minutes)
        actuation = default_actuation(room)

        state = room.environmental_state
        points: list[EnvironmentalState] = []
        for i in range(steps + 1):
            if deadline is not None:
                deadline.check()
            state = step_environment(state, room, step_minutes, actuation, self.config)
            state = replace(state, timestamp=start + timedelta(minutes=i * step_minutes))
            points.append(state)

        stability = assess_stability(points, self.config)
        deviations = detect_deviations(points, room, self.config)
        hours = duration_minutes / 60
        energy = sum(energy_kwh(d.power_watts, hours) for d in room.devices if d.is_on)

        curve = EnvironmentalCurve(
            room_id=room.id,
            start_time=start,
            end_time=start + timedelta(minutes=duration_minutes),
            data_points=tuple(points),
            stability=stability,
            deviations=tuple(deviations),
            energy_usage_kwh=round(energy, 3),
        )

        logger.debug("Room %s: %d samples, %s, %d deviations", room.id, len(points), stability, len(deviations))
        if self.events is not None:
            self.events.add(
                EventCategory.ENVIRONMENTAL,
                f"Environmental simulation completed for {room.name}",
                {"room_id": room.id, "duration": duration_minutes, "stability": stability, "deviations": len(deviations)},
            )

        return curve
