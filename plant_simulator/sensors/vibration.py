"""Vibration sensor tracking equipment wear and misalignment."""

from __future__ import annotations

import random
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from plant_simulator.models import AnomalyPattern, Device, SensorType, Severity
from plant_simulator.sensors.base import AnomalyDetectingSensor, parse_numbers

__all__ = ["EquipmentDynamics", "EquipmentState", "VibrationSensor"]

DEFAULT_MAX_AMPLITUDE = 10.0


class EquipmentState(StrEnum):
    NORMAL = "normal"
    WEARING = "wearing"
    MISALIGNED = "misaligned"


class EquipmentDynamics(BaseModel):
    """Tuning for :class:`VibrationSensor` equipment state.

    Transition table (evaluated in this order on every reading):

    ==========  ========================  ===================================
    from        probability               to
    ==========  ========================  ===================================
    any         ``spike_probability``     wearing / misaligned (50/50), with
                                          amplitude x U(2, 4)
    not normal  ``recovery_probability``  normal
    ==========  ========================  ===================================
    """

    model_config = {"frozen": True}

    spike_probability: float = 0.05
    spike_min_factor: float = 2.0
    spike_max_factor: float = 4.0
    recovery_probability: float = 0.1


class VibrationSensor(AnomalyDetectingSensor):
    """Accelerometer on rotating equipment.

    The reading is the vibration amplitude in g.  Frequency and velocity
    are derived from it and only reported in metadata.
    """

    sensor_type = SensorType.VIBRATION
    default_unit = "g"
    BATTERY_DRAIN = (0.1, 0.6)

    def __init__(
        self,
        device: Device,
        *,
        rng: random.Random | None = None,
        battery_drain: tuple[float, float] | None = None,
        dynamics: EquipmentDynamics | None = None,
    ) -> None:
        super().__init__(device, rng=rng, battery_drain=battery_drain)
        self.dynamics = dynamics or EquipmentDynamics()
        self.max_amplitude = self._parse_max_amplitude(device.sensor_range)
        self.baseline_amplitude = self.max_amplitude * 0.3
        self.equipment_state = EquipmentState.NORMAL

    @staticmethod
    def _parse_max_amplitude(descriptor: str | None) -> float:
        if descriptor and "g" in descriptor:
            numbers = parse_numbers(descriptor)
            if numbers and max(numbers) > 0:
                return max(numbers)
        return DEFAULT_MAX_AMPLITUDE

    def generate_reading(self) -> float:
        amplitude = self.baseline_amplitude
        if self.equipment_state is EquipmentState.WEARING:
            amplitude *= 1 + self.rng.uniform(0, 0.8)
        elif self.equipment_state is EquipmentState.MISALIGNED:
            amplitude *= 1 + self.rng.uniform(0, 1.2)
        else:
            amplitude *= self.rng.uniform(0.8, 1.2)

        dyn = self.dynamics
        if self.rng.random() < dyn.spike_probability:
            amplitude *= self.rng.uniform(dyn.spike_min_factor, dyn.spike_max_factor)
            self.equipment_state = (
                EquipmentState.WEARING if self.rng.random() < 0.5 else EquipmentState.MISALIGNED
            )

        if self.rng.random() < dyn.recovery_probability and self.equipment_state is not EquipmentState.NORMAL:
            self.equipment_state = EquipmentState.NORMAL

        amplitude = min(self.max_amplitude, max(0.0, amplitude))
        return self._remember(round(amplitude, 2))

    def vibration_metrics(self, amplitude: float) -> dict[str, float]:
        """Derive frequency (Hz) and velocity (mm/s) from an amplitude."""
        frequency = 50 + (amplitude / self.max_amplitude) * 200
        return {
            "amplitude": amplitude,
            "frequency": round(frequency, 1),
            "velocity": round(amplitude * 10, 2),
        }

    def get_status(self, reading: float | int | None = None) -> str:
        amplitude = self._resolve(reading)
        if amplitude is None:
            return "unknown"
        if amplitude > self.max_amplitude * 0.9:
            return "critical"
        if amplitude > self.max_amplitude * 0.7:
            return "warning"
        if amplitude > self.baseline_amplitude * 2:
            return "elevated"
        return "normal"

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        return {
            "sensor_range": self.device.sensor_range or "0-10g amplitude",
            "frequency_range": "10-1000Hz",
            "equipment_state": self.equipment_state.value,
            "vibration_metrics": self.vibration_metrics(reading),
            "status_details": {
                "baseline_amplitude": self.baseline_amplitude,
                "current_status": status,
                "threshold_70": self.max_amplitude * 0.7,
                "threshold_90": self.max_amplitude * 0.9,
            },
        }

    def detect_anomalies(self, reading: float | int) -> list[AnomalyPattern]:
        patterns: list[AnomalyPattern] = []
        metrics = self.vibration_metrics(reading)
        frequency = metrics["frequency"]
        baseline = self.baseline_amplitude

        if reading > self.max_amplitude * 0.8:
            patterns.append(
                self.make_pattern(
                    "vibration_anomaly",
                    f"High vibration amplitude detected: {reading}g (max normal: {baseline * 1.5:g}g)",
                    0.9,
                    Severity.CRITICAL if reading > self.max_amplitude * 0.9 else Severity.HIGH,
                    reading,
                    {
                        **metrics,
                        "equipment_state": self.equipment_state.value,
                        "threshold_exceeded": round(reading / (baseline * 1.5), 3),
                    },
                )
            )

        if self.equipment_state is EquipmentState.WEARING and reading > baseline * 1.8:
            patterns.append(
                self.make_pattern(
                    "equipment_wear",
                    f"Equipment wear indicators: sustained elevated vibration {reading}g",
                    0.8,
                    Severity.MEDIUM,
                    reading,
                    {
                        "amplitude": reading,
                        "wear_indicator": True,
                        "baseline_multiplier": round(reading / baseline, 3),
                    },
                )
            )

        if self.equipment_state is EquipmentState.MISALIGNED and frequency > 150:
            patterns.append(
                self.make_pattern(
                    "equipment_misalignment",
                    f"Potential misalignment: high frequency {frequency}Hz with amplitude {reading}g",
                    0.85,
                    Severity.MEDIUM,
                    reading,
                    {"frequency": frequency, "amplitude": reading, "misalignment_indicator": True},
                )
            )

        if reading > baseline * 3 and frequency > 200:
            patterns.append(
                self.make_pattern(
                    "bearing_failure_warning",
                    f"Bearing failure indicators: extreme vibration {reading}g at {frequency}Hz",
                    0.9,
                    Severity.CRITICAL,
                    reading,
                    {**metrics, "failure_risk": "high"},
                )
            )

        return patterns
