"""Simple sensors without operating state or anomaly detection.

Humidity, pressure, motion, door, card reader and smoke detector.  Each
draws its reading from a fixed range (or a Bernoulli trial) and maps it
straight to a status.
"""

from __future__ import annotations

from typing import Any, ClassVar

from plant_simulator.models import SensorType, SystemHealth
from plant_simulator.sensors.base import Sensor

__all__ = [
    "CardSensor",
    "DoorSensor",
    "HumiditySensor",
    "MotionSensor",
    "PressureSensor",
    "SmokeSensor",
]


class HumiditySensor(Sensor):
    sensor_type = SensorType.HUMIDITY
    default_unit = "percent"
    BATTERY_DRAIN = (0.0, 0.3)

    def generate_reading(self) -> float:
        return self._remember(round(30 + self.rng.uniform(0, 50), 1))

    def get_status(self, reading: float | int | None = None) -> str:
        humidity = self._resolve(reading)
        if humidity is None:
            return "unknown"
        if humidity > 80:
            return "high_humidity"
        if humidity < 30:
            return "low_humidity"
        return "normal"

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        return {"optimal_range": "40-60%", "accuracy": "±2%"}


class PressureSensor(Sensor):
    sensor_type = SensorType.PRESSURE
    default_unit = "psi"
    BATTERY_DRAIN = (0.0, 0.3)

    def generate_reading(self) -> float:
        return self._remember(round(10 + self.rng.uniform(0, 80), 2))

    def get_status(self, reading: float | int | None = None) -> str:
        pressure = self._resolve(reading)
        if pressure is None:
            return "unknown"
        if pressure > 85:
            return "high_pressure"
        if pressure < 15:
            return "low_pressure"
        return "normal"

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        return {"operating_range": "10-90 PSI"}


class _BinarySensor(Sensor):
    """Bernoulli sensor: reading is 1 with ``ACTIVE_PROBABILITY``, else 0."""

    ACTIVE_PROBABILITY: ClassVar[float]
    ACTIVE_STATUS: ClassVar[str]
    IDLE_STATUS: ClassVar[str]
    default_unit = "boolean"
    BATTERY_DRAIN = (0.0, 0.2)

    def generate_reading(self) -> int:
        return self._remember(1 if self.rng.random() < self.ACTIVE_PROBABILITY else 0)

    def get_status(self, reading: float | int | None = None) -> str:
        value = self._resolve(reading)
        if value is None:
            return "unknown"
        return self.ACTIVE_STATUS if value == 1 else self.IDLE_STATUS


class MotionSensor(_BinarySensor):
    sensor_type = SensorType.MOTION
    ACTIVE_PROBABILITY = 0.6
    ACTIVE_STATUS = "motion_detected"
    IDLE_STATUS = "no_motion"

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        return {"detection_range": "12 meters", "sensitivity": "medium"}


class DoorSensor(_BinarySensor):
    sensor_type = SensorType.DOOR
    ACTIVE_PROBABILITY = 0.3
    ACTIVE_STATUS = "open"
    IDLE_STATUS = "closed"

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        return {"door_type": "security", "access_level": "restricted"}


class CardSensor(Sensor):
    """RFID card reader.

    The reading is the 8-digit id of the presented card.  Whether the read
    succeeded is drawn together with the id so that :meth:`get_status`
    stays a pure function of the sensor state.
    """

    sensor_type = SensorType.CARD
    default_unit = "numeric"
    BATTERY_DRAIN = (0.0, 0.2)
    READ_ERROR_PROBABILITY = 0.1

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.last_read_ok = True

    def generate_reading(self) -> int:
        card_id = self.rng.randint(10_000_000, 99_999_999)
        self.last_read_ok = self.rng.random() >= self.READ_ERROR_PROBABILITY
        return self._remember(card_id)

    def get_status(self, reading: float | int | None = None) -> str:
        if self._resolve(reading) is None:
            return "unknown"
        if not self.last_read_ok or self.health is SystemHealth.CRITICAL:
            return "read_error"
        return "read_success"

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        return {"card_type": "rfid", "encryption": "AES-256"}


class SmokeSensor(Sensor):
    sensor_type = SensorType.SMOKE
    default_unit = "concentration"
    BATTERY_DRAIN = (0.0, 0.2)

    def generate_reading(self) -> float:
        return self._remember(round(self.rng.uniform(1.0, 10.0), 2))

    def get_status(self, reading: float | int | None = None) -> str:
        density = self._resolve(reading)
        if density is None:
            return "unknown"
        if density > 7.0:
            return "smoke_detected"
        if density > 5.0:
            return "elevated_smoke"
        return "normal"

    def sensor_metadata(self, reading: float | int, status: str) -> dict[str, Any]:
        return {"detector_type": "photoelectric", "alarm_threshold": "7.0"}
