"""Common data models for the plant IoT simulator.

Defines the device record the simulator consumes and the two records it
produces: ``SensorEvent`` (one per iteration) and ``AnomalyPattern`` (zero or
more per event, for sensors that support detection).
"""

from __future__ import annotations

import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

__all__ = [
    "AnomalyPattern",
    "Device",
    "SensorEvent",
    "SensorType",
    "Severity",
    "SystemHealth",
]


class SensorType(StrEnum):
    """Device type tags understood by the sensor factory."""

    TEMPERATURE = "temperature"
    VIBRATION = "vibration"
    GAS = "gas"
    HUMIDITY = "humidity"
    PRESSURE = "pressure"
    MOTION = "motion"
    DOOR = "door"
    CARD = "card"
    SMOKE = "smoke"


class Severity(StrEnum):
    """Severity of a detected anomaly pattern."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SystemHealth(StrEnum):
    """Battery-derived health classification of a device."""

    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class _Record(BaseModel):
    """Serialisation helpers shared by all records."""

    def to_dict(self) -> dict[str, Any]:
        """Return a plain ``dict`` representation (JSON-safe types)."""
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        """Return a compact JSON string."""
        return self.model_dump_json()

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Construct a record from a plain dict."""
        return cls.model_validate(data)


class Device(_Record):
    """A simulated physical device as held by the device registry.

    ``type`` is kept as a plain string: a registry may hand out devices of a
    type the simulator does not know, and rejecting those is the sensor
    factory's job.

    Attributes:
        device_id: Stable identifier, e.g. ``"temp_line_3"``.
        type: Type tag, normally one of :class:`SensorType`.
        display_name: Human-friendly name.
        location_name: Where the device is installed.
        manufacturer_name: Device vendor.
        battery_level: Remaining charge in percent (0-100).
        sensor_range: Free-form range descriptor, e.g. ``"15°C to 35°C"``.
        unit: Engineering unit string.
        metadata: Optional dict of extra attributes (e.g. ``{"gases": [...]}``).
    """

    device_id: str
    type: str
    display_name: str = ""
    location_name: str = "Unknown Location"
    manufacturer_name: str = "Unknown Manufacturer"
    battery_level: float = Field(default=100.0, ge=0.0, le=100.0)
    sensor_range: str | None = None
    unit: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SensorEvent(_Record):
    """A single telemetry event produced by a sensor."""

    model_config = {"frozen": True}

    device_id: str
    type: str
    value: int | float
    status: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: float = Field(default_factory=time.time)


class AnomalyPattern(_Record):
    """A detected deviation flagged by a sensor's anomaly detector.

    Attributes:
        device_id: Device the pattern was detected on.
        pattern_type: Taxonomy tag, e.g. ``"gas_leak"``.
        description: Human-readable summary.
        confidence_score: Detector confidence in ``[0, 1]``.
        severity: One of :class:`Severity`.
        metadata: Numeric evidence behind the detection.
    """

    model_config = {"frozen": True}

    device_id: str
    pattern_type: str
    description: str
    confidence_score: float = Field(ge=0.0, le=1.0)
    severity: Severity = Severity.MEDIUM
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: float = Field(default_factory=time.time)
