"""Species / growth-stage target environments.

Static data keyed by ``(species, stage)``. Keep in sync with the species
catalogue used by the rest of the application.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TargetEnvironment:
    """Setpoints for a species at a growth stage. Missing values mean "no target"."""

    temperature_c: float | None = None
    humidity_percent: float | None = None
    co2_ppm: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.temperature_c is None and self.humidity_percent is None and self.co2_ppm is None

    @property
    def is_complete(self) -> bool:
        return self.temperature_c is not None and self.humidity_percent is not None and self.co2_ppm is not None


SPECIES_TARGETS: dict[tuple[str, str], TargetEnvironment] = {
    ("oyster", "fruiting"): TargetEnvironment(temperature_c=18.0, humidity_percent=85.0, co2_ppm=1000.0),
    ("oyster", "incubation"): TargetEnvironment(temperature_c=24.0, humidity_percent=60.0, co2_ppm=5000.0),
    ("shiitake", "fruiting"): TargetEnvironment(temperature_c=16.0, humidity_percent=80.0, co2_ppm=800.0),
    ("shiitake", "incubation"): TargetEnvironment(temperature_c=25.0, humidity_percent=55.0, co2_ppm=2000.0),
    ("lions-mane", "fruiting"): TargetEnvironment(temperature_c=18.0, humidity_percent=85.0, co2_ppm=1200.0),
    ("lions-mane", "incubation"): TargetEnvironment(temperature_c=24.0, humidity_percent=65.0, co2_ppm=5000.0),
}

_NO_TARGET = TargetEnvironment()


def get_target_environment(species: str | None, stage: str | None) -> TargetEnvironment:
    """Look up the target for a species/stage pair. Unknown or unset -> empty target."""
    if not species or not stage:
        return _NO_TARGET
    return SPECIES_TARGETS.get((species, stage), _NO_TARGET)
