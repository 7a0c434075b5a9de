"""Device effect calculus - what an active device does to a room per hour."""

from dataclasses import dataclass
from enum import StrEnum

from core.models import Device, DeviceKind
from simulation.config import DEFAULT, SimConfig


class Parameter(StrEnum):
    TEMPERATURE = "temperature_c"
    HUMIDITY = "humidity_percent"
    CO2 = "co2_ppm"
    AIRFLOW = "airflow_cfm"
    LIGHT = "light_lux"


@dataclass(frozen=True)
class DeviceEffect:
    """Per-hour contribution of one device at full intensity."""

    device_id: str
    kind: DeviceKind
    parameter: Parameter | None  # None = no environmental effect (sensors)
    magnitude: float
    energy_cost_w: float


def calculate_device_effect(device: Device, room_volume_m3: float, config: SimConfig = DEFAULT) -> DeviceEffect:
    """Effect of ``device`` in a room of the given volume.

    Rates are rated for the reference volume (50 m³) and scaled by
    ``reference / volume``. Fans and lights are not volume-scaled.
    """
    volume_factor = config.reference_volume_m3 / room_volume_m3

    match device.kind:
        case DeviceKind.HEATER:
            parameter, magnitude = Parameter.TEMPERATURE, device.effect_rate * volume_factor
        case DeviceKind.HUMIDIFIER:
            parameter, magnitude = Parameter.HUMIDITY, device.effect_rate * volume_factor
        case DeviceKind.FAN:
            parameter, magnitude = Parameter.AIRFLOW, device.effect_rate
        case DeviceKind.SCRUBBER:
            # negative = removes CO2
            parameter, magnitude = Parameter.CO2, -device.effect_rate * volume_factor
        case DeviceKind.LIGHT:
            parameter, magnitude = Parameter.LIGHT, device.effect_rate
        case DeviceKind.SENSOR:
            parameter, magnitude = None, 0.0

    return DeviceEffect(
        device_id=device.id,
        kind=device.kind,
        parameter=parameter,
        magnitude=magnitude,
        energy_cost_w=device.power_watts,
    )


def energy_kwh(power_watts: float, hours: float, intensity: float = 1.0) -> float:
    """Energy drawn by a device running at ``intensity`` for ``hours``."""
    return power_watts * intensity * hours / 1000.0
