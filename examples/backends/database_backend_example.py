#!/usr/bin/env python3
"""DatabaseStore examples -- 2 cases demonstrating a seeded SQLite device
registry and querying events and patterns after a run.

Directly runnable using SQLite (no external database required).

Requires the database extra::

    pip install plant-iot-simulator[database]

Usage::

    python examples/backends/database_backend_example.py           # Case 1 (default)
    python examples/backends/database_backend_example.py --case 2   # Query after run
"""

from __future__ import annotations

import argparse
import os

_DB_PATH = "./example_plant.db"

_DEVICES = [
    {
        "device_id": "press_line_1_vib",
        "type": "vibration",
        "display_name": "Press Line 1 Vibration",
        "location_name": "Production Line A",
        "sensor_range": "0-16g amplitude",
        "battery_level": 64.0,
    },
    {
        "device_id": "boiler_room_gas",
        "type": "gas",
        "location_name": "Boiler Room",
        "sensor_range": "0-5000 ppm",
        "metadata": {"gases": ["CO", "CH4"]},
    },
    {
        "device_id": "furnace_temp",
        "type": "temperature",
        "location_name": "Furnace Line 2",
        "sensor_range": "200°C to 400°C",
    },
]


def _check_database():
    from plant_simulator.backends.database import SQLALCHEMY_AVAILABLE

    if not SQLALCHEMY_AVAILABLE:
        print("DatabaseStore requires sqlalchemy + aiosqlite. Install with:")
        print("  pip install plant-iot-simulator[database]")
    return SQLALCHEMY_AVAILABLE


def _clean_db(path: str) -> None:
    """Remove SQLite database file from previous runs."""
    if os.path.exists(path):
        os.remove(path)


def _store(devices=_DEVICES):
    from plant_simulator.backends.database import DatabaseStore

    return DatabaseStore(connection_string=f"sqlite+aiosqlite:///{_DB_PATH}", devices=devices)


# ---------------------------------------------------------------------------
# Case 1: Seeded registry
# ---------------------------------------------------------------------------


def run_case_1() -> None:
    """One store acts as device registry, event sink and pattern sink.

    Knobs demonstrated:
      - devices=[...]      -> registry seeded on connect()
      - same instance x3   -> connected and closed once by the runner
    """
    if not _check_database():
        return

    from plant_simulator import RunnerOptions, SimulationRunner

    print("=== Case 1: Seeded SQLite registry ===\n")
    _clean_db(_DB_PATH)

    store = _store()
    stats = SimulationRunner(
        RunnerOptions(iterations=30, delay_ms=50, seed=1),
        registry=store,
        event_sink=store,
        pattern_sink=store,
    ).run()

    print(f"  {stats.successful_events} events, {stats.pattern_events} patterns")
    for device_id, count in sorted(stats.device_counts.items()):
        print(f"  {device_id:<20s} {count:>4d} events")


# ---------------------------------------------------------------------------
# Case 2: Query after run
# ---------------------------------------------------------------------------


def run_case_2() -> None:
    """Run, then read back battery levels and pattern counts with SQLAlchemy.

    Knobs demonstrated:
      - battery sync -> registry rows reflect drained batteries
      - pattern rows -> one row per detected anomaly
    """
    if not _check_database():
        return

    import asyncio

    from sqlalchemy import func, select

    from plant_simulator import RunnerOptions, SimulationRunner

    print("=== Case 2: Query after run ===\n")
    _clean_db(_DB_PATH)

    store = _store()
    SimulationRunner(
        RunnerOptions(iterations=60, delay_ms=0, seed=2),
        registry=store,
        event_sink=store,
        pattern_sink=store,
    ).run()

    async def report() -> None:
        # no seed devices, so connect() leaves the drained rows alone
        reader = _store(devices=[])
        await reader.connect()
        engine = reader._require_engine()
        async with engine.connect() as conn:
            devices = await conn.execute(select(reader.devices.c.device_id, reader.devices.c.battery_level))
            for device_id, battery in devices:
                print(f"  {device_id:<20s} battery {battery:6.2f}%")
            patterns = await conn.execute(
                select(reader.patterns.c.pattern_type, func.count()).group_by(reader.patterns.c.pattern_type)
            )
            for pattern_type, count in patterns:
                print(f"  {pattern_type:<28s} x{count}")
        await reader.close()

    asyncio.run(report())
    _clean_db(_DB_PATH)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    parser = argparse.ArgumentParser(description="DatabaseStore examples")
    parser.add_argument("--case", type=int, default=1, choices=[1, 2], help="Which example case to run (default: 1)")
    args = parser.parse_args()

    cases = {
        1: run_case_1,
        2: run_case_2,
    }
    cases[args.case]()


if __name__ == "__main__":
    main()
