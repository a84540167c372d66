"""Gas detection sensor with leak simulation."""

from __future__ import annotations

import random
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from plant_simulator.models import AnomalyPattern, Device, SensorType, Severity
from plant_simulator.sensors.base import AnomalyDetectingSensor, parse_numbers

__all__ = ["GasSensor", "LeakDynamics", "LeakState"]

DEFAULT_MAX_CONCENTRATION = 1000.0
DEFAULT_GASES: tuple[str, ...] = ("CO", "CO2", "CH4")


class LeakState(StrEnum):
    NORMAL = "normal"
    MINOR_LEAK = "minor_leak"
    MAJOR_LEAK = "major_leak"


class LeakDynamics(BaseModel):
    """Tuning for :class:`GasSensor` leak state.

    Transition table (evaluated in this order on every reading):

    ==========  ========================  ==========================================
    from        probability               to
    ==========  ========================  ==========================================
    any         ``leak_probability``      major_leak (``major_leak_share``) or
                                          minor_leak, adding U(0, warning) ppm
    not normal  ``recovery_probability``  normal
    ==========  ========================  ==========================================
    """

    model_config = {"frozen": True}

    leak_probability: float = 0.02
    major_leak_share: float = 0.3
    recovery_probability: float = 0.1


class GasSensor(AnomalyDetectingSensor):
    """Multi-gas concentration sensor (ppm).

    Thresholds are derived from the maximum concentration: 10% is the safe
    limit, 50% the warning limit.
    """

    sensor_type = SensorType.GAS
    default_unit = "ppm"

    def __init__(
        self,
        device: Device,
        *,
        rng: random.Random | None = None,
        battery_drain: tuple[float, float] | None = None,
        dynamics: LeakDynamics | None = None,
    ) -> None:
        super().__init__(device, rng=rng, battery_drain=battery_drain)
        self.dynamics = dynamics or LeakDynamics()
        self.max_concentration = self._parse_max_concentration(device.sensor_range)
        self.safe_threshold = self.max_concentration * 0.1
        self.warning_threshold = self.max_concentration * 0.5
        self.gas_types: list[str] = list(device.metadata.get("gases") or DEFAULT_GASES)
        self.leak_state = LeakState.NORMAL
        self.leak_events = 0
        self.primary_gas: str | None = None

    @staticmethod
    def _parse_max_concentration(descriptor: str | None) -> float:
        if descriptor and "ppm" in descriptor:
            numbers = parse_numbers(descriptor)
            if numbers and max(numbers) > 0:
                return max(numbers)
        return DEFAULT_MAX_CONCENTRATION

    def generate_reading(self) -> float:
        dyn = self.dynamics
        concentration = self.rng.uniform(0, self.safe_threshold * 0.5)

        if self.leak_state is LeakState.MINOR_LEAK:
            concentration += self.rng.uniform(0, self.warning_threshold * 0.3)
        elif self.leak_state is LeakState.MAJOR_LEAK:
            concentration += self.rng.uniform(0, self.max_concentration * 0.7)

        if self.rng.random() < dyn.leak_probability:
            self.leak_state = (
                LeakState.MAJOR_LEAK if self.rng.random() < dyn.major_leak_share else LeakState.MINOR_LEAK
            )
            self.leak_events += 1
            concentration += self.rng.uniform(0, self.warning_threshold)

        if self.rng.random() < dyn.recovery_probability and self.leak_state is not LeakState.NORMAL:
            self.leak_state = LeakState.NORMAL

        concentration = round(min(self.max_concentration, max(0.0, concentration)), 2)
        self.primary_gas = self.select_primary_gas(concentration)
        return self._remember(concentration)

    def select_primary_gas(self, concentration: float) -> str:
        """Pick the dominant gas, weighted by how high the concentration is."""
        weights = {
            "CO": 0.4 if concentration > self.safe_threshold else 0.2,
            "CO2": 0.4,
            "CH4": 0.6 if concentration > self.warning_threshold else 0.3,
        }
        gases = self.gas_types or list(DEFAULT_GASES)
        return self.rng.choices(gases, weights=[weights.get(gas, 0.2) for gas in gases])[0]

    def air_quality_index(self, concentration: float) -> str:
        ratio = concentration / self.max_concentration
        if ratio < 0.1:
            return "excellent"
        if ratio < 0.3:
            return "good"
        if ratio < 0.5:
            return "moderate"
        if ratio < 0.7:
            return "poor"
        return "hazardous"

    def get_status(self, reading: float | int | None = None) -> str:
        concentration = self._resolve(reading)
        if concentration is None:
            return "unknown"
        if concentration > self.warning_threshold:
            return "alert"
        if concentration > self.safe_threshold:
            return "warning"
        return "safe"

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        return {
            "sensor_range": self.device.sensor_range or "0-1000 ppm",
            "supported_gases": self.gas_types,
            "primary_gas_detected": self.primary_gas,
            "leak_state": self.leak_state.value,
            "air_quality": self.air_quality_index(reading),
            "status_details": {
                "safe_threshold": self.safe_threshold,
                "warning_threshold": self.warning_threshold,
                "current_status": status,
            },
        }

    def detect_anomalies(self, reading: float | int) -> list[AnomalyPattern]:
        patterns: list[AnomalyPattern] = []
        gas = self.primary_gas or self.gas_types[0]
        previous = self.previous_reading

        if reading > self.warning_threshold:
            patterns.append(
                self.make_pattern(
                    "gas_leak",
                    f"{gas} concentration critical: {reading}ppm (threshold: {self.warning_threshold:g}ppm)",
                    0.95,
                    Severity.CRITICAL,
                    reading,
                    {
                        "concentration": reading,
                        "gas_type": gas,
                        "threshold": self.warning_threshold,
                        "air_quality": self.air_quality_index(reading),
                        "leak_severity": self.leak_state.value,
                    },
                )
            )

        if previous and reading > previous * 1.5 and reading > self.safe_threshold:
            patterns.append(
                self.make_pattern(
                    "gas_buildup",
                    f"Rapid {gas} concentration increase: {previous}ppm to {reading}ppm",
                    0.8,
                    Severity.HIGH,
                    reading,
                    {
                        "previous_reading": previous,
                        "current_reading": reading,
                        "increase_rate": f"{(reading - previous) / previous * 100:.1f}%",
                        "gas_type": gas,
                    },
                )
            )

        if reading > self.safe_threshold * 2 and self.leak_state is LeakState.NORMAL:
            patterns.append(
                self.make_pattern(
                    "ventilation_failure",
                    f"Sustained {gas} concentration without active leak: possible ventilation failure",
                    0.75,
                    Severity.MEDIUM,
                    reading,
                    {
                        "concentration": reading,
                        "expected_max": self.safe_threshold,
                        "gas_type": gas,
                        "ventilation_effectiveness": "compromised",
                    },
                )
            )

        if reading > self.warning_threshold * 0.8:
            patterns.append(
                self.make_pattern(
                    "multi_gas_event",
                    f"High concentration event may involve multiple gases: {reading}ppm",
                    0.7,
                    Severity.HIGH,
                    reading,
                    {
                        "concentration": reading,
                        "possible_gases": self.gas_types,
                        "primary_gas": gas,
                    },
                )
            )

        return patterns
