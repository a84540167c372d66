"""Sensor abstraction shared by all device types.

Provides:
- ``Sensor``                 - abstract base class every variant implements.
- ``AnomalyDetectingSensor`` - base for variants that can flag anomaly patterns.
- ``system_health``          - battery level to health classification.
- ``parse_numbers``          - helper for free-form sensor range descriptors.
"""

from __future__ import annotations

import datetime
import random
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from plant_simulator.models import (
    AnomalyPattern,
    Device,
    SensorEvent,
    SensorType,
    Severity,
    SystemHealth,
)

__all__ = [
    "AnomalyDetectingSensor",
    "Sensor",
    "parse_numbers",
    "system_health",
]

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def parse_numbers(descriptor: str | None) -> list[float]:
    """Return every number found in a range descriptor, in order.

    ``"-40°C to +80°C"`` -> ``[-40.0, 80.0]``; ``"0-1000 ppm"`` -> ``[0.0, 1000.0]``.
    A ``-`` directly between two numbers is read as a range separator.
    """
    if not descriptor:
        return []
    numbers: list[float] = []
    for match in _NUMBER_RE.finditer(descriptor):
        text = match.group()
        start = match.start()
        if text.startswith("-") and start > 0 and descriptor[start - 1].isdigit():
            text = text[1:]
        numbers.append(float(text))
    return numbers


def system_health(battery_level: float) -> SystemHealth:
    """Classify device health from its battery level."""
    if battery_level < 20:
        return SystemHealth.CRITICAL
    if battery_level < 40:
        return SystemHealth.WARNING
    return SystemHealth.GOOD


# -----------------------------------------------------------------------
# Sensor ABC
# -----------------------------------------------------------------------


class Sensor(ABC):
    """Behavioural wrapper around one :class:`Device`.

    A sensor keeps its own copy of the device attributes, its own battery
    level and whatever operating state its type needs.  All randomness is
    drawn from ``rng`` so a seeded ``random.Random`` gives reproducible
    readings.

    Parameters:
        device: The device this sensor simulates.
        rng: Random source (defaults to a fresh unseeded ``random.Random``).
        battery_drain: ``(low, high)`` percent drained per event; overrides
            the per-type default in ``BATTERY_DRAIN``.
    """

    sensor_type: ClassVar[SensorType]
    default_unit: ClassVar[str] = ""
    BATTERY_DRAIN: ClassVar[tuple[float, float]] = (0.0, 0.5)

    def __init__(
        self,
        device: Device,
        *,
        rng: random.Random | None = None,
        battery_drain: tuple[float, float] | None = None,
    ) -> None:
        self.device = device.model_copy(deep=True)
        self.device_id = device.device_id
        self.rng = rng or random.Random()
        self.battery_drain = battery_drain or self.BATTERY_DRAIN
        self.battery_level = float(device.battery_level)
        self.last_reading: float | int | None = None
        self.previous_reading: float | int | None = None
        self.last_calibration = self._draw_calibration_date()

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    def generate_reading(self) -> float | int:
        """Advance operating state and return this tick's reading."""

    @abstractmethod
    def get_status(self, reading: float | int | None = None) -> str:
        """Map a reading (default: the last one) to a status label."""

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        """Type-specific metadata merged into every event."""
        return {}

    # ------------------------------------------------------------------
    # Event assembly
    # ------------------------------------------------------------------

    def generate_event(self) -> SensorEvent:
        """Produce one telemetry event, draining the battery as a side effect."""
        reading = self.generate_reading()
        self.degrade_battery()
        status = self.get_status(reading)
        metadata = {**self.base_metadata(), **self.sensor_metadata(reading, status)}
        return SensorEvent(
            device_id=self.device_id,
            type=self.sensor_type.value,
            value=reading,
            status=status,
            metadata=metadata,
        )

    def base_metadata(self) -> dict[str, Any]:
        return {
            "location": self.device.location_name,
            "device_name": self.device.display_name or f"{self.sensor_type.value}_{self.device_id}",
            "manufacturer": self.device.manufacturer_name,
            "battery_level": round(self.battery_level, 2),
            "last_calibration": self.last_calibration,
            "system_health": self.health.value,
            "unit": self.device.unit or self.default_unit,
            "sensor_range": self.device.sensor_range,
        }

    # ------------------------------------------------------------------
    # Battery / health
    # ------------------------------------------------------------------

    def degrade_battery(self) -> float:
        """Drain a random amount from the battery, never below zero."""
        low, high = self.battery_drain
        self.battery_level = max(0.0, self.battery_level - self.rng.uniform(low, high))
        return self.battery_level

    @property
    def health(self) -> SystemHealth:
        return system_health(self.battery_level)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _remember(self, reading: float | int) -> float | int:
        self.previous_reading = self.last_reading
        self.last_reading = reading
        return reading

    def _resolve(self, reading: float | int | None) -> float | int | None:
        return self.last_reading if reading is None else reading

    def _draw_calibration_date(self) -> str:
        days_ago = int(self.rng.random() * 365)
        return (datetime.date.today() - datetime.timedelta(days=days_ago)).isoformat()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(device_id={self.device_id!r}, battery={self.battery_level:.1f})"


class AnomalyDetectingSensor(Sensor):
    """A sensor that can also derive anomaly patterns from its readings.

    Detectors compare a reading with ``previous_reading`` (the one before
    the latest) and fixed thresholds.  They must not change operating state.
    """

    @abstractmethod
    def detect_anomalies(self, reading: float | int) -> list[AnomalyPattern]:
        """Return the patterns triggered by ``reading`` (possibly none)."""

    def make_pattern(
        self,
        pattern_type: str,
        description: str,
        confidence: float,
        severity: Severity,
        reading: float | int,
        evidence: dict[str, Any] | None = None,
    ) -> AnomalyPattern:
        return AnomalyPattern(
            device_id=self.device_id,
            pattern_type=pattern_type,
            description=description,
            confidence_score=confidence,
            severity=severity,
            metadata={
                **(evidence or {}),
                "detected_value": reading,
                "device_type": self.sensor_type.value,
                "location": self.device.location_name,
            },
        )
