"""Sample facility configuration for baseline runs and testing."""

from core.models import DeviceKind, DeviceStatus
from simulation.config_builder import DeviceConfig, EnvironmentOverrides, RoomConfig, SubstrateConfig

SAMPLE_FACILITY_ID = "facility-1"
SAMPLE_FACILITY_NAME = "Mock Facility"


def sample_room_configs() -> list[RoomConfig]:
    """Hardcoded two-room facility: one fruiting room, one incubation room."""
    return [
        _fruiting_room(),
        _incubation_room(),
    ]


def _fruiting_room() -> RoomConfig:
    """Oyster fruiting room with a running fan."""
    return RoomConfig(
        id="room-1",
        name="Fruiting Room A",
        species="oyster",
        stage="fruiting",
        volume_m3=60.0,
        devices=[
            DeviceConfig(id="heater-1", kind=DeviceKind.HEATER, status=DeviceStatus.OFF, power_watts=1500, effect_rate=0.5),
            DeviceConfig(id="humid-1", kind=DeviceKind.HUMIDIFIER, status=DeviceStatus.OFF, power_watts=300, effect_rate=2.0),
            DeviceConfig(id="fan-1", kind=DeviceKind.FAN, status=DeviceStatus.ON, power_watts=100, effect_rate=50),
        ],
        substrate=SubstrateConfig(
            type="straw", mass_kg=15, moisture_percent=65, co2_production_rate=60, heat_production_rate=25
        ),
        initial_environment=EnvironmentOverrides(temperature_c=18, humidity_percent=85, co2_ppm=1200),
    )


def _incubation_room() -> RoomConfig:
    """Shiitake incubation room with the heater on."""
    return RoomConfig(
        id="room-2",
        name="Incubation Room B",
        species="shiitake",
        stage="incubation",
        volume_m3=40.0,
        devices=[
            DeviceConfig(id="heater-2", kind=DeviceKind.HEATER, status=DeviceStatus.ON, power_watts=1200, effect_rate=0.4),
            DeviceConfig(id="humid-2", kind=DeviceKind.HUMIDIFIER, status=DeviceStatus.OFF, power_watts=250, effect_rate=1.5),
        ],
        substrate=SubstrateConfig(
            type="sawdust", mass_kg=20, moisture_percent=55, co2_production_rate=40, heat_production_rate=15
        ),
        initial_environment=EnvironmentOverrides(temperature_c=24, humidity_percent=60, co2_ppm=800),
    )
