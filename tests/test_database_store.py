"""Tests for DatabaseStore - SQLAlchemy async on a temporary SQLite file."""

from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("sqlalchemy")
pytest.importorskip("aiosqlite")

from plant_simulator.backends.database import DatabaseStore  # noqa: E402
from plant_simulator.models import AnomalyPattern, SensorEvent, SensorType, Severity  # noqa: E402
from plant_simulator.runner import RunnerOptions, SimulationRunner  # noqa: E402

# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------

_DEVICES = [
    {
        "device_id": "press_1_vib",
        "type": "vibration",
        "location_name": "Press Line 1",
        "sensor_range": "0-16g amplitude",
        "battery_level": 90.0,
    },
    {"device_id": "boiler_gas", "type": "gas", "sensor_range": "0-5000 ppm", "metadata": {"gases": ["CO"]}},
]


def _store(tmp_path: Path, **kwargs) -> DatabaseStore:
    return DatabaseStore(connection_string=f"sqlite+aiosqlite:///{tmp_path / 'plant.db'}", **kwargs)


# -----------------------------------------------------------------------
# DatabaseStore
# -----------------------------------------------------------------------


class TestDatabaseStore:
    @pytest.mark.asyncio
    async def test_connect_creates_tables_and_seeds(self, tmp_path: Path) -> None:
        store = _store(tmp_path, devices=_DEVICES)
        await store.connect()
        try:
            assert await store.check_connection() is True
            device = await store.get_random_device(SensorType.GAS)
            assert device.device_id == "boiler_gas"
            assert device.metadata == {"gases": ["CO"]}
            assert await store.get_random_device(SensorType.DOOR) is None
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_update_battery(self, tmp_path: Path) -> None:
        store = _store(tmp_path, devices=_DEVICES)
        await store.connect()
        try:
            await store.update_battery("press_1_vib", 42.25)
            device = await store.get_random_device(SensorType.VIBRATION)
            assert device.battery_level == 42.25
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_insert_event_returns_id(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        await store.connect()
        try:
            event = SensorEvent(device_id="d1", type="door", value=1, status="open", metadata={"a": 1})
            first = await store.insert_event(event)
            second = await store.insert_event(event)
            assert first == 1
            assert second == 2
            await store.insert_pattern(
                AnomalyPattern(
                    device_id="d1",
                    pattern_type="gas_leak",
                    description="leak",
                    confidence_score=0.95,
                    severity=Severity.CRITICAL,
                )
            )
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_reseeding_replaces_devices(self, tmp_path: Path) -> None:
        store = _store(tmp_path, devices=_DEVICES)
        await store.connect()
        try:
            await store.add_devices(store._seed_devices[:1])
            device = await store.get_random_device(SensorType.VIBRATION)
            assert device.battery_level == 90.0
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_not_connected(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError):
            await _store(tmp_path).get_random_device()

    @pytest.mark.asyncio
    async def test_full_run(self, tmp_path: Path) -> None:
        store = _store(tmp_path, devices=_DEVICES)
        opts = RunnerOptions(iterations=6, delay_ms=0, seed=3)
        stats = await SimulationRunner(opts, registry=store, event_sink=store, pattern_sink=store).run_async()

        assert stats.successful_events == 6
        assert set(stats.device_counts) <= {"press_1_vib", "boiler_gas"}

        reader = _store(tmp_path)
        await reader.connect()
        try:
            device = await reader.get_random_device(SensorType.VIBRATION)
            if "press_1_vib" in stats.device_counts:
                assert device.battery_level < 90.0
        finally:
            await reader.close()
