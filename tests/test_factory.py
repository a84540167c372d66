"""Tests for plant_simulator.sensors.factory - create_sensor and SensorCache."""

from __future__ import annotations

import random

import pytest

from plant_simulator.errors import UnsupportedSensorType
from plant_simulator.models import Device, SensorType
from plant_simulator.sensors import (
    CardSensor,
    DoorSensor,
    GasSensor,
    HumiditySensor,
    MotionSensor,
    PressureSensor,
    SensorCache,
    SmokeSensor,
    TemperatureSensor,
    VibrationSensor,
    create_sensor,
    supported_types,
)

# -----------------------------------------------------------------------
# create_sensor
# -----------------------------------------------------------------------


class TestCreateSensor:
    @pytest.mark.parametrize(
        "type_name,cls",
        [
            ("temperature", TemperatureSensor),
            ("vibration", VibrationSensor),
            ("gas", GasSensor),
            ("humidity", HumiditySensor),
            ("pressure", PressureSensor),
            ("motion", MotionSensor),
            ("door", DoorSensor),
            ("card", CardSensor),
            ("smoke", SmokeSensor),
        ],
    )
    def test_variant_per_type(self, type_name: str, cls: type) -> None:
        sensor = create_sensor(Device(device_id="d1", type=type_name))
        assert type(sensor) is cls
        assert sensor.device_id == "d1"
        assert sensor.generate_event().type == type_name

    def test_type_tag_is_normalised(self) -> None:
        assert isinstance(create_sensor(Device(device_id="d1", type=" Temperature ")), TemperatureSensor)

    def test_unknown_type(self) -> None:
        with pytest.raises(UnsupportedSensorType) as exc_info:
            create_sensor(Device(device_id="d1", type="laser"))
        assert exc_info.value.type_name == "laser"
        assert isinstance(exc_info.value, ValueError)

    def test_rng_is_passed_through(self) -> None:
        rng = random.Random(1)
        assert create_sensor(Device(device_id="d1", type="door"), rng=rng).rng is rng

    def test_supported_types(self) -> None:
        assert supported_types() == tuple(SensorType)
        assert len(supported_types()) == 9


# -----------------------------------------------------------------------
# SensorCache
# -----------------------------------------------------------------------


class TestSensorCache:
    def test_reuses_sensor_per_device_id(self) -> None:
        cache = SensorCache(rng=random.Random(0))
        device = Device(device_id="g1", type="gas")
        first = cache.get_or_create(device)
        first.generate_event()

        again = cache.get_or_create(Device(device_id="g1", type="gas", battery_level=100))
        assert again is first
        assert again.battery_level < 100
        assert len(cache) == 1
        assert "g1" in cache
        assert cache.get("g1") is first

    def test_separate_devices(self) -> None:
        cache = SensorCache()
        cache.get_or_create(Device(device_id="a", type="door"))
        cache.get_or_create(Device(device_id="b", type="door"))
        assert len(cache) == 2

    def test_unsupported_type_not_cached(self) -> None:
        cache = SensorCache()
        with pytest.raises(UnsupportedSensorType):
            cache.get_or_create(Device(device_id="x", type="laser"))
        assert "x" not in cache
        assert cache.get("x") is None

    def test_clear(self) -> None:
        cache = SensorCache()
        cache.get_or_create(Device(device_id="a", type="smoke"))
        cache.clear()
        assert len(cache) == 0
