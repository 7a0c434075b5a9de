"""Closed-loop control evaluator.

Steers a room toward a target with a feedback law and classifies the
resulting dynamics. Each step reuses ``step_environment`` with per-device
intensities chosen by the controller. The room itself is never mutated;
device on/off state is tracked locally.

Errors are normalised by the parameter's tolerance, so 1.0 always means
"one tolerance band away from target" regardless of units.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Literal

from typing_extensions import override

from analysis.signals import band_exits, excursion_count, is_growing, mean, sign_flips
from core.models import DeviceKind, Room
from core.targets import TargetEnvironment
from simulation.config import DEFAULT, ControlGains, SimConfig
from simulation.devices import Parameter, energy_kwh
from simulation.environment import step_environment, validate_room
from simulation.errors import InvalidConfigurationError
from simulation.events import Deadline, EventCategory, EventSink

logger = logging.getLogger(__name__)

LoopStability = Literal["stable", "oscillating", "unstable"]


class ControlStrategy(StrEnum):
    PID = "pid"
    BANG_BANG = "bang-bang"
    ADAPTIVE = "adaptive"


@dataclass(frozen=True)
class Tolerances:
    temperature: float = 1.0  # °C
    humidity: float = 5.0  # %RH
    co2: float = 200.0  # ppm

    def for_parameter(self, parameter: Parameter) -> float:
        match parameter:
            case Parameter.TEMPERATURE:
                return self.temperature
            case Parameter.HUMIDITY:
                return self.humidity
            case Parameter.CO2:
                return self.co2
            case _:
                raise InvalidConfigurationError(f"{parameter} is not a controlled parameter")


@dataclass(frozen=True)
class LoopConfig:
    room_id: str
    duration_minutes: float
    strategy: ControlStrategy
    target: TargetEnvironment
    tolerances: Tolerances = field(default_factory=Tolerances)
    step_minutes: float = 1.0


@dataclass(frozen=True)
class LoopStabilityReport:
    id: str
    room_id: str
    duration_minutes: float
    stability: LoopStability
    average_deviation: float  # tolerance units
    max_deviation: float  # tolerance units
    cycle_count: int
    energy_usage_kwh: float
    recommendations: tuple[str, ...]
    oscillation_frequency: float | None = None  # cycles per hour


# ---------------------------------------------------------------------------
# Actuator mapping
# ---------------------------------------------------------------------------

CONTROLLED_PARAMETERS: tuple[Parameter, ...] = (Parameter.TEMPERATURE, Parameter.HUMIDITY, Parameter.CO2)

# +1 = device raises the parameter, -1 = device lowers it
_ACTUATORS: dict[DeviceKind, tuple[Parameter, int]] = {
    DeviceKind.HEATER: (Parameter.TEMPERATURE, 1),
    DeviceKind.HUMIDIFIER: (Parameter.HUMIDITY, 1),
    DeviceKind.SCRUBBER: (Parameter.CO2, -1),
    DeviceKind.FAN: (Parameter.CO2, -1),
}

# Direction available actuators push each parameter
_DIRECTION: dict[Parameter, int] = {Parameter.TEMPERATURE: 1, Parameter.HUMIDITY: 1, Parameter.CO2: -1}

_ACTUATOR_NAMES: dict[Parameter, str] = {
    Parameter.TEMPERATURE: "heater",
    Parameter.HUMIDITY: "humidifier",
    Parameter.CO2: "CO₂ scrubber or fan",
}


def _setpoint(target: TargetEnvironment, parameter: Parameter) -> float:
    value = getattr(target, parameter.value)
    if value is None:
        raise InvalidConfigurationError(f"Target has no {parameter.value} setpoint")
    return float(value)


# ---------------------------------------------------------------------------
# Controllers
# ---------------------------------------------------------------------------


class Controller(ABC):
    """Maps a normalised demand to an actuator intensity in [0, 1].

    ``demand`` is positive when the parameter needs to move in the direction
    its actuators push it.
    """

    @abstractmethod
    def intensity(self, parameter: Parameter, demand: float, step_minutes: float) -> float: ...


class BangBangController(Controller):
    """Full on outside the tolerance band, off inside it."""

    @override
    def intensity(self, parameter: Parameter, demand: float, step_minutes: float) -> float:
        return 1.0 if demand > 1.0 else 0.0


@dataclass
class _PIDState:
    integral: float = 0.0
    previous: float | None = None


class PIDController(Controller):
    """PID on normalised error with conditional-integration anti-windup."""

    def __init__(self, gains: ControlGains) -> None:
        self.gains: dict[Parameter, ControlGains] = dict.fromkeys(CONTROLLED_PARAMETERS, gains)
        self._states: dict[Parameter, _PIDState] = {p: _PIDState() for p in CONTROLLED_PARAMETERS}

    @override
    def intensity(self, parameter: Parameter, demand: float, step_minutes: float) -> float:
        gains = self.gains[parameter]
        state = self._states[parameter]

        derivative = 0.0 if state.previous is None else (demand - state.previous) / step_minutes
        limit = gains.integral_limit
        integral = max(-limit, min(limit, state.integral + demand * step_minutes))
        raw = gains.kp * demand + gains.ki * integral + gains.kd * derivative

        # Hold the integral while saturated in the direction of the error
        if (raw > 1.0 and demand > 0) or (raw < 0.0 and demand < 0):
            integral = state.integral
            raw = gains.kp * demand + gains.ki * integral + gains.kd * derivative

        state.integral = integral
        state.previous = demand
        return max(0.0, min(1.0, raw))


class AdaptiveController(PIDController):
    """PID that retunes its gains every window from the observed error."""

    def __init__(self, gains: ControlGains, config: SimConfig = DEFAULT) -> None:
        super().__init__(gains)
        self.config = config
        self._windows: dict[Parameter, list[float]] = {p: [] for p in CONTROLLED_PARAMETERS}
        self.retunes = 0

    @override
    def intensity(self, parameter: Parameter, demand: float, step_minutes: float) -> float:
        window = self._windows[parameter]
        window.append(demand)
        if len(window) >= self.config.adaptive_window_steps:
            self._retune(parameter, window)
            window.clear()
        return super().intensity(parameter, demand, step_minutes)

    def _retune(self, parameter: Parameter, window: list[float]) -> None:
        cfg = self.config
        gains = self.gains[parameter]
        if sign_flips(window) >= cfg.adaptive_oscillation_flips:
            self.gains[parameter] = replace(
                gains, kp=gains.kp * cfg.adaptive_gain_decay, ki=gains.ki * cfg.adaptive_gain_decay
            )
            self.retunes += 1
        elif all(d > 1.0 for d in window):
            self.gains[parameter] = replace(
                gains,
                kp=min(gains.kp * cfg.adaptive_gain_growth, cfg.adaptive_max_kp),
                ki=gains.ki * cfg.adaptive_gain_growth,
            )
            self.retunes += 1


def make_controller(strategy: ControlStrategy, config: SimConfig = DEFAULT) -> Controller:
    match strategy:
        case ControlStrategy.BANG_BANG:
            return BangBangController()
        case ControlStrategy.PID:
            return PIDController(config.pid_gains)
        case ControlStrategy.ADAPTIVE:
            return AdaptiveController(config.pid_gains, config)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def assess_loop_stability(
    deviations: list[float],
    step_minutes: float,
    config: SimConfig = DEFAULT,
) -> tuple[LoopStability, float | None]:
    """Classify a deviation series (tolerance units). Returns (stability, cycles/hour)."""
    settle = min(len(deviations) - 1, math.floor(len(deviations) * config.loop_settling_fraction))
    settled = deviations[max(settle, 0) :]

    if all(d <= 1.0 for d in settled):
        return "stable", None

    if band_exits(settled) >= 2:
        hours = len(settled) * step_minutes / 60
        return "oscillating", round(excursion_count(settled) / hours, 2)

    if settled[-1] > 1.0:
        return "unstable", None

    # Re-entered the band once and stayed there
    return "stable", None


def generate_loop_recommendations(
    room: Room,
    stability: LoopStability,
    deviations: list[float],
    final_demand: dict[Parameter, float],
    cycle_count: int,
    oscillation_frequency: float | None,
    config: SimConfig = DEFAULT,
) -> list[str]:
    recommendations: list[str] = []
    avg = mean(deviations)

    if stability == "unstable":
        recommendations.append("Loop is unstable; consider adjusting control tolerances or tuning control parameters")
        if is_growing(deviations):
            recommendations.append("Deviation from target keeps growing; the control law cannot hold the setpoint")

    if stability == "oscillating":
        recommendations.append("Loop shows oscillatory behavior; reduce actuator gain or widen the hysteresis band")

    for parameter, demand in final_demand.items():
        if abs(demand) <= 1.0:
            continue
        label = parameter.value.split("_")[0].replace("co2", "CO₂")
        can_act = any(_ACTUATORS.get(d.kind, (None, 0))[0] == parameter for d in room.devices)
        if demand < 0:
            verb = "lower" if _DIRECTION[parameter] > 0 else "raise"
            recommendations.append(f"No device can {verb} {label}; add equipment to reach the target")
        elif not can_act:
            recommendations.append(f"No {_ACTUATOR_NAMES[parameter]} available; add one to control {label}")
        else:
            recommendations.append(f"Increase {_ACTUATOR_NAMES[parameter]} capacity; {label} did not reach target")

    if cycle_count > config.actuator_wear_cycles:
        recommendations.append("High cycle count may reduce actuator lifespan; consider widening control tolerances")

    if oscillation_frequency and oscillation_frequency > config.high_oscillation_per_h:
        recommendations.append(
            f"High oscillation frequency ({oscillation_frequency:.1f} cycles/hr); add damping or hysteresis"
        )

    if avg < config.well_tuned_deviation:
        recommendations.append("Loop is well-tuned and stable; current control strategy is effective")

    return recommendations


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


def validate_loop_config(room: Room, config: LoopConfig) -> None:
    validate_room(room)
    if config.strategy not in set(ControlStrategy):
        raise InvalidConfigurationError(f"Unknown control strategy {config.strategy!r}")
    if config.duration_minutes <= 0:
        raise InvalidConfigurationError(f"Loop duration must be > 0 minutes (got {config.duration_minutes})")
    if config.step_minutes <= 0:
        raise InvalidConfigurationError(f"Loop step must be > 0 minutes (got {config.step_minutes})")
    if not config.target.is_complete:
        raise InvalidConfigurationError(f"Room {room.id}: loop target needs temperature, humidity and CO₂ setpoints")
    for parameter in CONTROLLED_PARAMETERS:
        if config.tolerances.for_parameter(parameter) <= 0:
            raise InvalidConfigurationError(f"Tolerance for {parameter.value} must be > 0")


class LoopSimulator:
    """Runs closed-loop simulations and builds ``LoopStabilityReport``s."""

    def __init__(self, config: SimConfig = DEFAULT, events: EventSink | None = None) -> None:
        self.config = config
        self.events = events

    def run_closed_loop_simulation(
        self,
        room: Room,
        loop: LoopConfig,
        deadline: Deadline | None = None,
    ) -> LoopStabilityReport:
        validate_loop_config(room, loop)

        cfg = self.config
        controller = make_controller(ControlStrategy(loop.strategy), cfg)
        step_hours = loop.step_minutes / 60
        steps = math.floor(loop.duration_minutes / loop.step_minutes)

        setpoints = {p: _setpoint(loop.target, p) for p in CONTROLLED_PARAMETERS}
        tolerances = {p: loop.tolerances.for_parameter(p) for p in CONTROLLED_PARAMETERS}

        state = room.environmental_state
        was_on = {d.id: d.is_on for d in room.devices}
        deviations: list[float] = []
        demand: dict[Parameter, float] = {}
        cycle_count = 0
        total_kwh = 0.0

        for _ in range(steps + 1):
            if deadline is not None:
                deadline.check()

            # Normalised demand in the direction each parameter's actuators push
            demand = {
                p: _DIRECTION[p] * (setpoints[p] - getattr(state, p.value)) / tolerances[p]
                for p in CONTROLLED_PARAMETERS
            }
            deviations.append(max(abs(d) for d in demand.values()))

            outputs = {p: controller.intensity(p, demand[p], loop.step_minutes) for p in CONTROLLED_PARAMETERS}

            actuation: dict[str, float] = {}
            for device in room.devices:
                controlled = _ACTUATORS.get(device.kind)
                level = outputs[controlled[0]] if controlled else (1.0 if device.is_on else 0.0)
                actuation[device.id] = level

                is_on = level > 0
                if is_on != was_on[device.id]:
                    cycle_count += 1
                was_on[device.id] = is_on
                total_kwh += energy_kwh(device.power_watts, step_hours, level)

            state = step_environment(state, room, loop.step_minutes, actuation, cfg)

        stability, frequency = assess_loop_stability(deviations, loop.step_minutes, cfg)
        recommendations = generate_loop_recommendations(
            room, stability, deviations, demand, cycle_count, frequency, cfg
        )

        report = LoopStabilityReport(
            id=f"loop-{room.id}-{loop.strategy}",
            room_id=room.id,
            duration_minutes=loop.duration_minutes,
            stability=stability,
            average_deviation=round(mean(deviations), 2),
            max_deviation=round(max(deviations), 2),
            cycle_count=cycle_count,
            energy_usage_kwh=round(total_kwh, 3),
            recommendations=tuple(recommendations),
            oscillation_frequency=frequency,
        )

        logger.debug("Room %s: loop %s, %d cycles, %.3f kWh", room.id, stability, cycle_count, report.energy_usage_kwh)
        if self.events is not None:
            self.events.add(
                EventCategory.LOOP,
                f"Loop simulation completed for {room.name}",
                {
                    "room_id": room.id,
                    "stability": stability,
                    "cycle_count": cycle_count,
                    "energy_kwh": report.energy_usage_kwh,
                },
            )

        return report
