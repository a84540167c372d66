"""Tests for plant_simulator.sensors - readings, state machines, statuses and detectors."""

from __future__ import annotations

import random

import pytest

from plant_simulator.models import Device, Severity, SystemHealth
from plant_simulator.sensors import (
    CardSensor,
    DoorSensor,
    EquipmentState,
    GasSensor,
    HumiditySensor,
    LeakState,
    MotionSensor,
    PressureSensor,
    SmokeSensor,
    TemperatureSensor,
    TrendDynamics,
    VibrationSensor,
    system_health,
)
from plant_simulator.sensors.base import parse_numbers
from plant_simulator.sensors.factory import create_sensor

# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------


class ScriptedRandom(random.Random):
    """Returns scripted values from ``random()`` before falling back to the seed.

    ``uniform`` and ``choices`` go through ``random()``; integer draws keep
    using ``getrandbits``.
    """

    def __init__(self, values: list[float], seed: int = 0) -> None:
        super().__init__(seed)
        self._script = list(values)

    def random(self) -> float:
        if self._script:
            return self._script.pop(0)
        return super().random()

    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


def _device(type_: str, **kwargs) -> Device:
    return Device(device_id=f"{type_}_1", type=type_, **kwargs)


def _scripted(sensor, values: list[float]):
    """Swap in a scripted rng after construction-time draws."""
    sensor.rng = ScriptedRandom(values)
    return sensor


def _pattern_types(patterns) -> list[str]:
    return [p.pattern_type for p in patterns]


# -----------------------------------------------------------------------
# Shared helpers
# -----------------------------------------------------------------------


class TestParseNumbers:
    def test_signed_range(self) -> None:
        assert parse_numbers("-40°C to +80°C") == [-40.0, 80.0]

    def test_dash_separator(self) -> None:
        assert parse_numbers("0-1000 ppm") == [0.0, 1000.0]

    def test_decimals(self) -> None:
        assert parse_numbers("0.5-16.5g amplitude") == [0.5, 16.5]

    def test_empty(self) -> None:
        assert parse_numbers(None) == []
        assert parse_numbers("Binary detection") == []


class TestSystemHealth:
    @pytest.mark.parametrize(
        "level,expected",
        [
            (0.0, SystemHealth.CRITICAL),
            (19.99, SystemHealth.CRITICAL),
            (20.0, SystemHealth.WARNING),
            (39.9, SystemHealth.WARNING),
            (40.0, SystemHealth.GOOD),
            (100.0, SystemHealth.GOOD),
        ],
    )
    def test_thresholds(self, level: float, expected: SystemHealth) -> None:
        assert system_health(level) is expected


class TestBatteryAndEvents:
    def test_battery_never_increases_and_floors_at_zero(self) -> None:
        sensor = VibrationSensor(_device("vibration", battery_level=1.0), rng=random.Random(3))
        levels = [sensor.generate_event().metadata["battery_level"] for _ in range(20)]
        assert all(b <= a for a, b in zip(levels, levels[1:]))
        assert levels[-1] == 0.0
        assert sensor.battery_level == 0.0

    def test_battery_drain_override(self) -> None:
        sensor = HumiditySensor(_device("humidity", battery_level=50), rng=random.Random(1), battery_drain=(1, 1))
        sensor.generate_event()
        assert sensor.battery_level == 49.0

    def test_event_carries_device_and_base_metadata(self) -> None:
        device = _device(
            "humidity",
            display_name="Clean Room RH",
            location_name="Clean Room",
            manufacturer_name="IoTCo",
            sensor_range="0-100%",
        )
        sensor = HumiditySensor(device, rng=random.Random(7))
        event = sensor.generate_event()

        assert event.device_id == "humidity_1"
        assert event.type == "humidity"
        assert event.value == sensor.last_reading
        for key in (
            "location",
            "device_name",
            "manufacturer",
            "battery_level",
            "last_calibration",
            "system_health",
            "unit",
            "sensor_range",
        ):
            assert key in event.metadata
        assert event.metadata["location"] == "Clean Room"
        assert event.metadata["unit"] == "percent"
        assert event.metadata["optimal_range"] == "40-60%"

    def test_sensor_keeps_own_device_copy(self) -> None:
        device = _device("smoke")
        sensor = SmokeSensor(device, rng=random.Random(0))
        device.location_name = "Moved"
        assert sensor.device.location_name == "Unknown Location"

    def test_seeded_sensors_are_reproducible(self) -> None:
        device = _device("gas")
        a = GasSensor(device, rng=random.Random(42))
        b = GasSensor(device, rng=random.Random(42))
        assert [a.generate_reading() for _ in range(50)] == [b.generate_reading() for _ in range(50)]

    def test_previous_reading_tracks_the_one_before(self) -> None:
        sensor = PressureSensor(_device("pressure"), rng=random.Random(5))
        first = sensor.generate_reading()
        second = sensor.generate_reading()
        assert sensor.previous_reading == first
        assert sensor.last_reading == second


# -----------------------------------------------------------------------
# Temperature
# -----------------------------------------------------------------------


class TestTemperatureSensor:
    def _sensor(self, sensor_range: str = "15°C to 35°C", **kwargs) -> TemperatureSensor:
        sensor = TemperatureSensor(_device("temperature", sensor_range=sensor_range), rng=random.Random(0), **kwargs)
        sensor.trend_direction = 1
        return sensor

    def test_range_parsing(self) -> None:
        assert self._sensor("-10°C to 50°C").normal_range == (-10.0, 50.0)
        assert self._sensor("-40°C to +80°C").normal_range == (-40.0, 80.0)
        assert self._sensor("0-100 units").normal_range == (15.0, 35.0)

    def test_reading_without_trend_or_noise(self) -> None:
        # base 0.5 -> 25.0, trend U(0,2)=0, no flip, noise U(-1,1)=0
        sensor = _scripted(self._sensor(), [0.5, 0.0, 0.9, 0.5])
        assert sensor.generate_reading() == 25.0
        assert sensor.trend_direction == 1

    def test_trend_flip(self) -> None:
        sensor = _scripted(self._sensor(), [0.5, 0.0, 0.05, 0.5])
        sensor.generate_reading()
        assert sensor.trend_direction == -1

    def test_readings_clamped(self) -> None:
        sensor = _scripted(self._sensor(dynamics=TrendDynamics(max_trend_influence=20)), [0.99, 1.0, 0.9, 1.0])
        assert sensor.generate_reading() == 40.0

    def test_readings_stay_within_clamp(self) -> None:
        sensor = TemperatureSensor(_device("temperature", sensor_range="15°C to 35°C"), rng=random.Random(11))
        for _ in range(500):
            assert 10.0 <= sensor.generate_reading() <= 40.0

    def test_status(self) -> None:
        sensor = self._sensor()
        assert sensor.get_status() == "unknown"
        assert sensor.get_status(25.0) == "active"
        assert sensor.get_status(41.0) == "warning"
        assert sensor.get_status(9.0) == "warning"
        assert sensor.get_status(46.0) == "alarm"
        assert sensor.get_status(4.0) == "alarm"
        sensor.battery_level = 10.0
        assert sensor.get_status(25.0) == "malfunction"

    def test_spike_compares_with_previous_reading(self) -> None:
        sensor = _scripted(self._sensor(), [0.25, 0.0, 0.9, 0.5, 0.6, 0.0, 0.9, 0.5])
        assert sensor.generate_reading() == 20.0
        assert sensor.generate_reading() == 27.0

        patterns = sensor.detect_anomalies(27.0)
        assert _pattern_types(patterns) == ["temperature_spike"]
        spike = patterns[0]
        assert spike.confidence_score == 0.8
        assert spike.severity is Severity.HIGH
        assert spike.metadata["previous_reading"] == 20.0
        assert spike.metadata["device_type"] == "temperature"

    def test_overheat_and_drift(self) -> None:
        patterns = self._sensor().detect_anomalies(46.0)
        assert _pattern_types(patterns) == ["temperature_overheat", "temperature_drift"]
        assert patterns[0].severity is Severity.CRITICAL
        assert patterns[0].confidence_score == 0.95
        assert patterns[1].severity is Severity.MEDIUM

    def test_freeze(self) -> None:
        patterns = self._sensor().detect_anomalies(4.0)
        assert "temperature_freeze" in _pattern_types(patterns)
        assert "temperature_overheat" not in _pattern_types(patterns)

    def test_normal_reading_has_no_patterns(self) -> None:
        assert self._sensor().detect_anomalies(25.0) == []

    def test_detection_does_not_change_state(self) -> None:
        sensor = self._sensor()
        sensor.previous_reading = 20.0
        sensor.last_reading = 30.0
        sensor.detect_anomalies(30.0)
        assert (sensor.previous_reading, sensor.last_reading, sensor.trend_direction) == (20.0, 30.0, 1)


# -----------------------------------------------------------------------
# Vibration
# -----------------------------------------------------------------------


class TestVibrationSensor:
    def _sensor(self, sensor_range: str = "0-10g amplitude") -> VibrationSensor:
        return VibrationSensor(_device("vibration", sensor_range=sensor_range), rng=random.Random(0))

    def test_range_parsing(self) -> None:
        assert self._sensor().max_amplitude == 10.0
        assert self._sensor("0-16g amplitude").max_amplitude == 16.0
        assert self._sensor("no unit").max_amplitude == 10.0

    def test_baseline_reading(self) -> None:
        sensor = _scripted(self._sensor(), [0.5, 0.9, 0.9])
        assert sensor.generate_reading() == 3.0
        assert sensor.equipment_state is EquipmentState.NORMAL
        assert sensor.get_status() == "normal"

    def test_forced_spike_to_wearing(self) -> None:
        # x1.0, spike, x3.2, wearing, no recovery
        sensor = _scripted(self._sensor(), [0.5, 0.01, 0.6, 0.2, 0.9])
        reading = sensor.generate_reading()

        assert reading == 9.6
        assert sensor.equipment_state is EquipmentState.WEARING
        assert sensor.get_status() == "critical"

        patterns = sensor.detect_anomalies(reading)
        assert _pattern_types(patterns) == ["vibration_anomaly", "equipment_wear", "bearing_failure_warning"]
        anomaly = patterns[0]
        assert anomaly.severity is Severity.CRITICAL
        assert anomaly.confidence_score == 0.9
        assert anomaly.metadata["frequency"] == 242.0

    def test_forced_spike_to_misaligned(self) -> None:
        sensor = _scripted(self._sensor(), [0.5, 0.01, 0.6, 0.7, 0.9])
        reading = sensor.generate_reading()
        assert sensor.equipment_state is EquipmentState.MISALIGNED
        assert "equipment_misalignment" in _pattern_types(sensor.detect_anomalies(reading))

    def test_recovery_to_normal(self) -> None:
        sensor = self._sensor()
        sensor.equipment_state = EquipmentState.WEARING
        _scripted(sensor, [0.5, 0.9, 0.05])
        assert sensor.generate_reading() == 4.2
        assert sensor.equipment_state is EquipmentState.NORMAL

    def test_high_but_not_critical_anomaly(self) -> None:
        patterns = self._sensor().detect_anomalies(8.5)
        assert patterns[0].pattern_type == "vibration_anomaly"
        assert patterns[0].severity is Severity.HIGH

    def test_metrics(self) -> None:
        metrics = self._sensor().vibration_metrics(5.0)
        assert metrics == {"amplitude": 5.0, "frequency": 150.0, "velocity": 50.0}

    def test_status_thresholds(self) -> None:
        sensor = self._sensor()
        assert sensor.get_status(9.5) == "critical"
        assert sensor.get_status(7.5) == "warning"
        assert sensor.get_status(6.5) == "elevated"
        assert sensor.get_status(5.0) == "normal"

    def test_readings_within_bounds(self) -> None:
        sensor = VibrationSensor(_device("vibration"), rng=random.Random(9))
        for _ in range(1000):
            assert 0.0 <= sensor.generate_reading() <= 10.0


# -----------------------------------------------------------------------
# Gas
# -----------------------------------------------------------------------


class TestGasSensor:
    def _sensor(self, **kwargs) -> GasSensor:
        kwargs.setdefault("sensor_range", "0-1000 ppm")
        return GasSensor(_device("gas", **kwargs), rng=random.Random(0))

    def test_thresholds_from_largest_number(self) -> None:
        sensor = self._sensor()
        assert sensor.max_concentration == 1000.0
        assert sensor.safe_threshold == 100.0
        assert sensor.warning_threshold == 500.0
        assert self._sensor(sensor_range="0-5000 ppm").max_concentration == 5000.0
        assert self._sensor(sensor_range="percent").max_concentration == 1000.0

    def test_gas_types_from_metadata(self) -> None:
        sensor = self._sensor(metadata={"gases": ["H2S", "O2"]})
        assert sensor.gas_types == ["H2S", "O2"]
        assert self._sensor().gas_types == ["CO", "CO2", "CH4"]

    def test_forced_major_leak(self) -> None:
        # ambient 25, leak, major, +495, no recovery, CH4 picked
        sensor = _scripted(self._sensor(), [0.5, 0.01, 0.1, 0.99, 0.9, 0.99])
        reading = sensor.generate_reading()

        assert reading == 520.0
        assert sensor.leak_state is LeakState.MAJOR_LEAK
        assert sensor.leak_events == 1
        assert sensor.primary_gas == "CH4"
        assert sensor.get_status() == "alert"

        patterns = sensor.detect_anomalies(reading)
        assert _pattern_types(patterns) == ["gas_leak", "multi_gas_event"]
        leak = patterns[0]
        assert leak.severity is Severity.CRITICAL
        assert leak.confidence_score == 0.95
        assert leak.metadata["gas_type"] == "CH4"
        assert leak.metadata["leak_severity"] == "major_leak"

    def test_forced_minor_leak(self) -> None:
        sensor = _scripted(self._sensor(), [0.5, 0.01, 0.5, 0.1, 0.9])
        sensor.generate_reading()
        assert sensor.leak_state is LeakState.MINOR_LEAK

    def test_recovery(self) -> None:
        sensor = self._sensor()
        sensor.leak_state = LeakState.MINOR_LEAK
        _scripted(sensor, [0.5, 0.5, 0.9, 0.05])
        sensor.generate_reading()
        assert sensor.leak_state is LeakState.NORMAL

    def test_buildup_uses_previous_reading(self) -> None:
        sensor = self._sensor()
        sensor.previous_reading = 100.0
        patterns = sensor.detect_anomalies(160.0)
        assert _pattern_types(patterns) == ["gas_buildup"]
        assert patterns[0].metadata["increase_rate"] == "60.0%"

    def test_no_buildup_after_zero_reading(self) -> None:
        sensor = self._sensor()
        sensor.previous_reading = 0
        assert sensor.detect_anomalies(160.0) == []

    def test_ventilation_failure_only_without_leak(self) -> None:
        sensor = self._sensor()
        assert _pattern_types(sensor.detect_anomalies(250.0)) == ["ventilation_failure"]
        sensor.leak_state = LeakState.MINOR_LEAK
        assert sensor.detect_anomalies(250.0) == []

    def test_status_and_air_quality(self) -> None:
        sensor = self._sensor()
        assert sensor.get_status(50.0) == "safe"
        assert sensor.get_status(150.0) == "warning"
        assert sensor.get_status(600.0) == "alert"
        assert sensor.air_quality_index(50.0) == "excellent"
        assert sensor.air_quality_index(200.0) == "good"
        assert sensor.air_quality_index(400.0) == "moderate"
        assert sensor.air_quality_index(600.0) == "poor"
        assert sensor.air_quality_index(800.0) == "hazardous"

    def test_leak_rate_is_about_two_percent(self) -> None:
        sensor = GasSensor(_device("gas", sensor_range="0-1000 ppm"), rng=random.Random(2024))
        for _ in range(10_000):
            sensor.generate_reading()
        assert 0.015 <= sensor.leak_events / 10_000 <= 0.025

    def test_readings_within_bounds(self) -> None:
        sensor = GasSensor(_device("gas", sensor_range="0-1000 ppm"), rng=random.Random(8))
        for _ in range(2000):
            assert 0.0 <= sensor.generate_reading() <= 1000.0


# -----------------------------------------------------------------------
# Simple sensors
# -----------------------------------------------------------------------


class TestSimpleSensors:
    def test_humidity_range_and_status(self) -> None:
        sensor = HumiditySensor(_device("humidity"), rng=random.Random(1))
        for _ in range(300):
            value = sensor.generate_reading()
            assert 30.0 <= value <= 80.0
        assert sensor.get_status(85.0) == "high_humidity"
        assert sensor.get_status(25.0) == "low_humidity"
        assert sensor.get_status(50.0) == "normal"

    def test_pressure_range_and_status(self) -> None:
        sensor = PressureSensor(_device("pressure"), rng=random.Random(1))
        for _ in range(300):
            assert 10.0 <= sensor.generate_reading() <= 90.0
        assert sensor.get_status(86.0) == "high_pressure"
        assert sensor.get_status(12.0) == "low_pressure"
        assert sensor.get_status(50.0) == "normal"

    def test_smoke_range_and_status(self) -> None:
        sensor = SmokeSensor(_device("smoke"), rng=random.Random(1))
        for _ in range(300):
            assert 1.0 <= sensor.generate_reading() <= 10.0
        assert sensor.get_status(8.0) == "smoke_detected"
        assert sensor.get_status(6.0) == "elevated_smoke"
        assert sensor.get_status(3.0) == "normal"

    def test_motion_rate(self) -> None:
        sensor = MotionSensor(_device("motion"), rng=random.Random(4))
        readings = [sensor.generate_reading() for _ in range(2000)]
        assert set(readings) <= {0, 1}
        assert 0.55 <= sum(readings) / len(readings) <= 0.65
        assert sensor.get_status(1) == "motion_detected"
        assert sensor.get_status(0) == "no_motion"

    def test_door_rate(self) -> None:
        sensor = DoorSensor(_device("door"), rng=random.Random(4))
        readings = [sensor.generate_reading() for _ in range(2000)]
        assert 0.25 <= sum(readings) / len(readings) <= 0.35
        assert sensor.get_status(1) == "open"
        assert sensor.get_status(0) == "closed"

    def test_card_ids_and_stable_status(self) -> None:
        sensor = CardSensor(_device("card"), rng=random.Random(6))
        for _ in range(200):
            card_id = sensor.generate_reading()
            assert 10_000_000 <= card_id <= 99_999_999
            assert sensor.get_status() == sensor.get_status()

    def test_card_read_error(self) -> None:
        sensor = _scripted(CardSensor(_device("card"), rng=random.Random(0)), [0.05])
        sensor.generate_reading()
        assert sensor.get_status() == "read_error"

    def test_card_critical_battery_is_read_error(self) -> None:
        sensor = _scripted(CardSensor(_device("card", battery_level=10), rng=random.Random(0)), [0.5])
        sensor.generate_reading()
        assert sensor.get_status() == "read_error"

    def test_simple_sensors_do_not_detect(self) -> None:
        sensor = HumiditySensor(_device("humidity"), rng=random.Random(0))
        assert not hasattr(sensor, "detect_anomalies")


# -----------------------------------------------------------------------
# Emitted patterns
# -----------------------------------------------------------------------


class TestEmittedPatterns:
    @pytest.mark.parametrize(
        "device",
        [
            _device("temperature", sensor_range="15°C to 35°C"),
            _device("vibration", sensor_range="0-10g amplitude"),
            _device("gas", sensor_range="0-1000 ppm"),
        ],
        ids=["temperature", "vibration", "gas"],
    )
    def test_confidence_and_severity_bounds(self, device: Device) -> None:
        sensor = create_sensor(device, rng=random.Random(31))
        severities = {s.value for s in Severity}
        emitted = 0
        for _ in range(1500):
            for pattern in sensor.detect_anomalies(sensor.generate_reading()):
                emitted += 1
                assert 0.0 <= pattern.confidence_score <= 1.0
                assert pattern.severity in severities
                assert pattern.device_id == device.device_id
        assert emitted > 0
