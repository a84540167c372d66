#!/usr/bin/env python3
"""Device type tour -- run every sensor type with its own profile, one after
another or all at once, sharing a single in-memory store.

Directly runnable (no external services required).

Usage::

    python examples/scenarios/device_type_tour_example.py              # sequential
    python examples/scenarios/device_type_tour_example.py --parallel   # concurrent

Equivalent CLI::

    plant-simulator run-all [--parallel]
"""

from __future__ import annotations

import argparse
import asyncio
import logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Run every device type")
    parser.add_argument("--parallel", action="store_true", help="Run all types concurrently")
    parser.add_argument("--iterations", type=int, default=None, help="Events per type (default: profile)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )

    from plant_simulator import RunnerOptions, run_device_types
    from plant_simulator.backends import MemoryStore

    store = MemoryStore()
    results = asyncio.run(
        run_device_types(
            event_sink=store,
            pattern_sink=store,
            options=RunnerOptions(use_registry=False, seed=11),
            iterations=args.iterations,
            delay_ms=50,
            pause_s=0.5,
            concurrent=args.parallel,
        )
    )

    print(f"\n{'Type':<13} {'Events':>7} {'OK %':>7} {'Patterns':>9}")
    print("-" * 40)
    for type_name, stats in results.items():
        print(f"{type_name:<13} {stats.total_events:>7} {stats.success_rate:>6.1f}% {stats.pattern_events:>9}")
    print("-" * 40)
    print(f"{'stored':<13} {len(store.events):>7} {'':>7} {len(store.patterns):>9}")


if __name__ == "__main__":
    main()
