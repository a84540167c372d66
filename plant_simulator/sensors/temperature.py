"""Temperature sensor with a slowly flipping trend."""

from __future__ import annotations

import logging
import random
from typing import Any

from pydantic import BaseModel

from plant_simulator.models import AnomalyPattern, Device, SensorType, Severity, SystemHealth
from plant_simulator.sensors.base import AnomalyDetectingSensor, parse_numbers

__all__ = ["TemperatureSensor", "TrendDynamics"]

logger = logging.getLogger("plant_simulator.sensors.temperature")

DEFAULT_RANGE: tuple[float, float] = (15.0, 35.0)


class TrendDynamics(BaseModel):
    """Tuning for the temperature trend.

    Transition table for ``trend_direction`` (evaluated once per reading):

    ====  ====================  ====
    from  probability           to
    ====  ====================  ====
    +1    ``flip_probability``  -1
    -1    ``flip_probability``  +1
    ====  ====================  ====
    """

    model_config = {"frozen": True}

    flip_probability: float = 0.1
    max_trend_influence: float = 2.0
    noise_amplitude: float = 1.0


class TemperatureSensor(AnomalyDetectingSensor):
    """Industrial temperature probe.

    Readings are drawn uniformly from the device's normal range, pushed by
    the current trend direction, jittered by noise and clamped to five
    degrees either side of the range.
    """

    sensor_type = SensorType.TEMPERATURE
    default_unit = "celsius"

    def __init__(
        self,
        device: Device,
        *,
        rng: random.Random | None = None,
        battery_drain: tuple[float, float] | None = None,
        dynamics: TrendDynamics | None = None,
    ) -> None:
        super().__init__(device, rng=rng, battery_drain=battery_drain)
        self.dynamics = dynamics or TrendDynamics()
        self.normal_range = self._parse_range(device.sensor_range)
        self.trend_direction = 1 if self.rng.random() > 0.5 else -1

    @staticmethod
    def _parse_range(descriptor: str | None) -> tuple[float, float]:
        if descriptor and "°C" in descriptor:
            numbers = parse_numbers(descriptor)
            if len(numbers) >= 2 and numbers[0] < numbers[1]:
                return numbers[0], numbers[1]
        return DEFAULT_RANGE

    def generate_reading(self) -> float:
        low, high = self.normal_range
        temperature = low + self.rng.random() * (high - low)
        temperature += self.rng.uniform(0, self.dynamics.max_trend_influence) * self.trend_direction

        if self.rng.random() < self.dynamics.flip_probability:
            self.trend_direction = -self.trend_direction

        noise = self.dynamics.noise_amplitude
        temperature += self.rng.uniform(-noise, noise)

        temperature = max(low - 5, min(high + 5, temperature))
        return self._remember(round(temperature, 1))

    def get_status(self, reading: float | int | None = None) -> str:
        temperature = self._resolve(reading)
        if temperature is None:
            return "unknown"

        low, high = self.normal_range
        if temperature < low - 10 or temperature > high + 10:
            return "alarm"
        if temperature < low - 5 or temperature > high + 5:
            return "warning"
        if self.health is SystemHealth.CRITICAL:
            return "malfunction"
        return "active"

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        low, high = self.normal_range
        return {
            "sensor_range": self.device.sensor_range or "-40°C to +80°C",
            "accuracy": "±0.5°C",
            "trend_direction": self.trend_direction,
            "status_details": {
                "normal_range": f"{low:g}°C to {high:g}°C",
                "current_status": status,
            },
        }

    def detect_anomalies(self, reading: float | int) -> list[AnomalyPattern]:
        patterns: list[AnomalyPattern] = []
        low, high = self.normal_range
        previous = self.previous_reading

        if previous is not None and abs(reading - previous) > 5:
            patterns.append(
                self.make_pattern(
                    "temperature_spike",
                    f"Rapid temperature change detected: {previous}°C to {reading}°C",
                    0.8,
                    Severity.HIGH,
                    reading,
                    {
                        "previous_reading": previous,
                        "current_reading": reading,
                        "change_rate": round(reading - previous, 2),
                    },
                )
            )

        if reading > high + 10:
            patterns.append(
                self.make_pattern(
                    "temperature_overheat",
                    f"Critical high temperature: {reading}°C (max: {high:g}°C)",
                    0.95,
                    Severity.CRITICAL,
                    reading,
                    {"reading": reading, "threshold": high, "overage": round(reading - high, 2)},
                )
            )
        elif reading < low - 10:
            patterns.append(
                self.make_pattern(
                    "temperature_freeze",
                    f"Critical low temperature: {reading}°C (min: {low:g}°C)",
                    0.95,
                    Severity.CRITICAL,
                    reading,
                    {"reading": reading, "threshold": low, "underage": round(low - reading, 2)},
                )
            )

        expected = (low + high) / 2
        if abs(reading - expected) > (high - low) * 0.8:
            patterns.append(
                self.make_pattern(
                    "temperature_drift",
                    f"Temperature drift from normal range center: {reading}°C vs expected ~{expected:g}°C",
                    0.7,
                    Severity.MEDIUM,
                    reading,
                    {"reading": reading, "expected": expected, "deviation": round(abs(reading - expected), 2)},
                )
            )

        if patterns:
            logger.debug("%s: %d temperature patterns at %s", self.device_id, len(patterns), reading)
        return patterns
