"""Centralised simulation tunables.

Every magic number that controls the grow-room simulation lives here.
Create a custom ``SimConfig`` to tweak values for testing::

    cfg = SimConfig(loop_duration_cap_min=30)
    engine = SimulationEngine(config=cfg)
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ControlGains:
    """Feedback gains on tolerance-normalised error (1.0 = one tolerance band)."""

    kp: float = 0.8
    ki: float = 0.05  # per minute of accumulated error
    kd: float = 0.2
    integral_limit: float = 20.0  # anti-windup clamp on the integral term


@dataclass(frozen=True)
class SimConfig:
    """All simulation tunables, grouped by category."""

    # --- Reference geometry ---
    reference_volume_m3: float = 50.0  # device effect rates are rated for this volume
    max_drift_volume_factor: float = 2.0  # larger rooms stop slowing drift beyond 2x

    # --- Ambient drift (per hour, at reference volume) ---
    temp_drift_c_per_h: float = -0.5
    humidity_drift_pct_per_h: float = -1.0
    co2_drift_ppm_per_h: float = -20.0

    # --- Substrate / fan coupling ---
    substrate_heat_divisor: float = 50.0  # W / (m³ * divisor) -> °C/h
    fan_co2_exchange_factor: float = 5.0  # ppm removed per CFM per hour

    # --- Physical clamps ---
    temp_min_c: float = 5.0
    temp_max_c: float = 40.0
    humidity_min_pct: float = 20.0
    humidity_max_pct: float = 100.0
    co2_min_ppm: float = 400.0
    co2_max_ppm: float = 10000.0

    # --- Stability classification (population variance) ---
    stability_min_samples: int = 10
    oscillating_temp_variance: float = 4.0
    oscillating_humidity_variance: float = 100.0
    drifting_temp_variance: float = 2.0
    drifting_humidity_variance: float = 50.0

    # --- Deviation thresholds (mean vs. target) ---
    deviation_temp_c: float = 2.0
    deviation_humidity_pct: float = 10.0
    deviation_co2_ppm: float = 500.0

    # --- Contamination thresholds ---
    high_humidity_pct: float = 90.0
    spore_humidity_pct: float = 85.0
    poor_airflow_cfm: float = 50.0
    stagnant_co2_ppm: float = 3000.0
    stagnant_airflow_cfm: float = 80.0
    spore_temp_band_c: tuple[float, float] = (20.0, 28.0)
    fluctuation_min_points: int = 10  # history must be longer than this
    fluctuation_threshold_c: float = 5.0
    wet_substrate_pct: float = 70.0
    high_spore_load: float = 60.0
    high_risk_score: int = 70
    medium_risk_score: int = 40

    # --- Closed loop ---
    loop_duration_cap_min: int = 120
    loop_step_min: float = 1.0
    loop_settling_fraction: float = 0.25
    default_control_strategy: str = "pid"
    default_temp_tolerance_c: float = 1.0
    default_humidity_tolerance_pct: float = 5.0
    default_co2_tolerance_ppm: float = 200.0
    pid_gains: ControlGains = field(default_factory=ControlGains)
    adaptive_window_steps: int = 10
    adaptive_oscillation_flips: int = 3  # error sign flips per window that count as oscillation
    adaptive_gain_decay: float = 0.5
    adaptive_gain_growth: float = 1.25
    adaptive_max_kp: float = 4.0
    actuator_wear_cycles: int = 100
    high_oscillation_per_h: float = 10.0
    well_tuned_deviation: float = 0.5

    # --- Event log ---
    log_max_entries: int = 10000


DEFAULT = SimConfig()
