"""Contamination model - bounded, explainable risk from climate readings.

The score is a heuristic for comparing scenarios. It is derived purely from
``(room, history)`` and carries no hidden state.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from analysis.signals import round_half_up, value_range
from core.models import DeviceKind, EnvironmentalState, Room
from simulation.config import DEFAULT, SimConfig
from simulation.events import EventCategory, EventSink

logger = logging.getLogger(__name__)

RiskLevel = Literal["low", "medium", "high"]

DISCLAIMER = "Note: This is a model-based projection, not a guarantee of real-world outcomes"


@dataclass(frozen=True)
class RiskFactors:
    """Triggered risk flags for one room."""

    high_humidity_zones: tuple[str, ...]  # room ids
    poor_airflow_zones: tuple[str, ...]
    spore_load_estimate: float  # relative 0-100
    stagnant_air_vectors: tuple[str, ...]
    temperature_fluctuation: float  # °C, max - min over history
    wet_substrate: bool = False


@dataclass(frozen=True)
class ContaminationRiskMap:
    room_id: str
    overall_risk: RiskLevel
    score: int  # 0-100
    factors: RiskFactors
    recommendations: tuple[str, ...]
    rationale: tuple[str, ...]


def analyze_risk_factors(
    room: Room,
    history: Sequence[EnvironmentalState] | None = None,
    config: SimConfig = DEFAULT,
) -> RiskFactors:
    """Extract risk flags from the room's current state and optional history."""
    state = room.environmental_state

    high_humidity = (room.id,) if state.humidity_percent > config.high_humidity_pct else ()

    fans_on = [d for d in room.devices_of(DeviceKind.FAN) if d.is_on]
    poor_airflow = (room.id,) if not fans_on or state.airflow_cfm < config.poor_airflow_cfm else ()

    stagnant: tuple[str, ...] = ()
    if state.co2_ppm > config.stagnant_co2_ppm and state.airflow_cfm < config.stagnant_airflow_cfm:
        stagnant = (f"{room.id}-high-co2-zone",)

    fluctuation = 0.0
    if history and len(history) > config.fluctuation_min_points:
        fluctuation = value_range([h.temperature_c for h in history])

    wet_substrate = room.substrate is not None and room.substrate.moisture_percent > config.wet_substrate_pct

    low, high = config.spore_temp_band_c
    spore_load = 0.0
    if state.humidity_percent > config.spore_humidity_pct:
        spore_load += 20
    if low < state.temperature_c < high:
        spore_load += 15
    if poor_airflow:
        spore_load += 25
    if fluctuation > config.fluctuation_threshold_c:
        spore_load += 10
    if wet_substrate:
        spore_load += 15

    return RiskFactors(
        high_humidity_zones=high_humidity,
        poor_airflow_zones=poor_airflow,
        spore_load_estimate=max(0.0, min(spore_load, 100.0)),
        stagnant_air_vectors=stagnant,
        temperature_fluctuation=fluctuation,
        wet_substrate=wet_substrate,
    )


def calculate_risk_score(factors: RiskFactors) -> int:
    """Weighted sum of factors, rounded to an integer in [0, 100]."""
    score = (
        len(factors.high_humidity_zones) * 20
        + len(factors.poor_airflow_zones) * 25
        + factors.spore_load_estimate * 0.3
        + len(factors.stagnant_air_vectors) * 15
        + min(factors.temperature_fluctuation * 2, 20)
    )
    return max(0, min(round_half_up(score), 100))


def categorize_risk(score: int, config: SimConfig = DEFAULT) -> RiskLevel:
    if score >= config.high_risk_score:
        return "high"
    if score >= config.medium_risk_score:
        return "medium"
    return "low"


def generate_recommendations(factors: RiskFactors, config: SimConfig = DEFAULT) -> list[str]:
    recommendations: list[str] = []

    if factors.high_humidity_zones:
        recommendations.append("Reduce humidity to below 90% to minimize mold spore germination risk")
    if factors.poor_airflow_zones:
        recommendations.append("Increase airflow (enable fans or increase CFM) to prevent stagnant air pockets")
    if factors.stagnant_air_vectors:
        recommendations.append("Address high CO₂ zones with improved ventilation to reduce anaerobic contamination risk")
    if factors.temperature_fluctuation > config.fluctuation_threshold_c:
        recommendations.append("Stabilize temperature to reduce stress on mycelium and contamination susceptibility")
    if factors.spore_load_estimate > config.high_spore_load:
        recommendations.append("Consider HEPA filtration or increased fresh air exchange to reduce ambient spore load")
    if factors.wet_substrate:
        recommendations.append("Monitor substrate moisture; excess moisture can promote bacterial contamination")

    if not recommendations:
        recommendations.append("Current conditions appear favorable; maintain sterile technique during interactions")

    return recommendations


def build_rationale(factors: RiskFactors, score: int, config: SimConfig = DEFAULT) -> list[str]:
    rationale = [
        f"Risk score: {score}/100 based on environmental factors",
        f"Estimated spore load: {factors.spore_load_estimate:g}/100",
    ]

    if factors.high_humidity_zones:
        rationale.append("High humidity detected (>90%), favoring contaminant germination")
    if factors.poor_airflow_zones:
        rationale.append("Insufficient airflow detected, increasing stagnation risk")
    if factors.stagnant_air_vectors:
        rationale.append("Elevated CO₂ with low airflow indicates stagnant air")
    if factors.temperature_fluctuation > config.fluctuation_threshold_c:
        rationale.append(f"Temperature variance of {factors.temperature_fluctuation:.1f}°C may stress cultures")
    if factors.wet_substrate:
        rationale.append("Substrate moisture above 70% supports bacterial growth")

    rationale.append(DISCLAIMER)
    return rationale


class ContaminationModel:
    """Turns current or historical readings into a ``ContaminationRiskMap``."""

    def __init__(self, config: SimConfig = DEFAULT, events: EventSink | None = None) -> None:
        self.config = config
        self.events = events

    def assess_contamination_risk(
        self,
        room: Room,
        history: Sequence[EnvironmentalState] | None = None,
    ) -> ContaminationRiskMap:
        factors = analyze_risk_factors(room, history, self.config)
        score = calculate_risk_score(factors)
        overall = categorize_risk(score, self.config)

        risk_map = ContaminationRiskMap(
            room_id=room.id,
            overall_risk=overall,
            score=score,
            factors=factors,
            recommendations=tuple(generate_recommendations(factors, self.config)),
            rationale=tuple(build_rationale(factors, score, self.config)),
        )

        logger.debug("Room %s: contamination score %d (%s)", room.id, score, overall)
        if self.events is not None:
            self.events.add(
                EventCategory.CONTAMINATION,
                f"Contamination risk assessed for {room.name}",
                {"room_id": room.id, "overall_risk": overall, "score": score},
            )

        return risk_map
