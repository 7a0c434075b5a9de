"""Contamination risk scoring."""

from dataclasses import replace
from datetime import datetime

import pytest

from core.models import Device, DeviceKind, DeviceStatus, EnvironmentalState, Room, Substrate
from simulation.contamination import (
    DISCLAIMER,
    ContaminationModel,
    RiskFactors,
    analyze_risk_factors,
    calculate_risk_score,
    categorize_risk,
)
from simulation.events import EventCategory
from services.event_log import SimulationLog

NOW = datetime(2025, 3, 1, 8, 0, 0)


def make_room(
    temperature: float = 24.0,
    humidity: float = 92.0,
    co2: float = 800.0,
    airflow: float = 30.0,
    devices: tuple[Device, ...] = (),
    moisture: float | None = 75.0,
) -> Room:
    substrate = Substrate("straw", 15.0, moisture, 60.0, 25.0) if moisture is not None else None
    return Room(
        id="room-c",
        name="Contamination Room",
        volume_m3=50.0,
        environmental_state=EnvironmentalState(
            temperature_c=temperature,
            humidity_percent=humidity,
            co2_ppm=co2,
            airflow_cfm=airflow,
            light_lux=0.0,
            timestamp=NOW,
        ),
        devices=devices,
        substrate=substrate,
    )


def fan(status: DeviceStatus = DeviceStatus.ON) -> Device:
    return Device(id="fan-1", kind=DeviceKind.FAN, status=status, effect_rate=100.0)


def test_scoring_arithmetic() -> None:
    risk = ContaminationModel().assess_contamination_risk(make_room())

    assert risk.factors.high_humidity_zones == ("room-c",)
    assert risk.factors.poor_airflow_zones == ("room-c",)
    assert risk.factors.stagnant_air_vectors == ()
    assert risk.factors.wet_substrate
    assert risk.factors.temperature_fluctuation == 0.0
    assert risk.factors.spore_load_estimate == 75.0
    # 20 + 25 + 0.3 * 75 = 67.5, rounded half up
    assert risk.score == 68
    assert risk.overall_risk == "medium"


def test_favourable_conditions_are_low_risk() -> None:
    room = make_room(temperature=16.0, humidity=80.0, airflow=150.0, devices=(fan(),), moisture=60.0)
    risk = ContaminationModel().assess_contamination_risk(room)

    assert risk.score == 0
    assert risk.overall_risk == "low"
    assert risk.recommendations == (
        "Current conditions appear favorable; maintain sterile technique during interactions",
    )
    assert risk.rationale[-1] == DISCLAIMER


def test_fan_that_is_off_counts_as_poor_airflow() -> None:
    room = make_room(airflow=150.0, devices=(fan(DeviceStatus.OFF),))
    assert analyze_risk_factors(room).poor_airflow_zones == ("room-c",)


def test_stagnant_air_needs_high_co2_and_low_airflow() -> None:
    assert analyze_risk_factors(make_room(co2=3500.0, airflow=60.0)).stagnant_air_vectors == ("room-c-high-co2-zone",)
    assert analyze_risk_factors(make_room(co2=3500.0, airflow=90.0)).stagnant_air_vectors == ()
    assert analyze_risk_factors(make_room(co2=2500.0, airflow=10.0)).stagnant_air_vectors == ()


def test_history_drives_fluctuation() -> None:
    room = make_room()
    base = room.environmental_state
    history = [replace(base, temperature_c=18.0 + (i % 2) * 8.0) for i in range(11)]

    model = ContaminationModel()
    with_history = model.assess_contamination_risk(room, history)
    without = model.assess_contamination_risk(room)

    assert with_history.factors.temperature_fluctuation == pytest.approx(8.0)
    assert with_history.factors.spore_load_estimate == 85.0
    # 20 + 25 + 0.3 * 85 + min(16, 20) = 86.5
    assert with_history.score == 87
    assert with_history.overall_risk == "high"
    assert without.score == 68


def test_short_history_is_ignored() -> None:
    room = make_room()
    history = [replace(room.environmental_state, temperature_c=10.0 + i * 3) for i in range(10)]
    assert analyze_risk_factors(room, history).temperature_fluctuation == 0.0


def test_score_is_bounded() -> None:
    worst = RiskFactors(
        high_humidity_zones=("a",),
        poor_airflow_zones=("a",),
        spore_load_estimate=100.0,
        stagnant_air_vectors=("a",),
        temperature_fluctuation=50.0,
        wet_substrate=True,
    )
    assert calculate_risk_score(worst) == 100

    best = RiskFactors((), (), 0.0, (), 0.0)
    assert calculate_risk_score(best) == 0


@pytest.mark.parametrize(("score", "level"), [(0, "low"), (39, "low"), (40, "medium"), (69, "medium"), (70, "high")])
def test_categorize(score: int, level: str) -> None:
    assert categorize_risk(score) == level


def test_recommendations_and_rationale_follow_factors() -> None:
    risk = ContaminationModel().assess_contamination_risk(make_room(co2=4000.0))

    assert any("Reduce humidity" in r for r in risk.recommendations)
    assert any("Increase airflow" in r for r in risk.recommendations)
    assert any("CO₂ zones" in r for r in risk.recommendations)
    assert any("HEPA" in r for r in risk.recommendations)
    assert any("substrate moisture" in r for r in risk.recommendations)
    assert risk.rationale[0] == f"Risk score: {risk.score}/100 based on environmental factors"
    assert risk.rationale[-1] == DISCLAIMER


def test_emits_contamination_event() -> None:
    log = SimulationLog()
    ContaminationModel(events=log).assess_contamination_risk(make_room())

    (entry,) = log.entries(EventCategory.CONTAMINATION)
    assert entry.context == {"room_id": "room-c", "overall_risk": "medium", "score": 68}
