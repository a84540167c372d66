#!/usr/bin/env python3
"""CallbackSink examples -- 3 cases demonstrating lambda sinks, async
pattern alerts, and running per-type tallies.

Directly runnable (no external services required).

Usage::

    python examples/backends/callback_backend_example.py           # Case 1 (default)
    python examples/backends/callback_backend_example.py --case 2   # Async pattern alerts
    python examples/backends/callback_backend_example.py --case 3   # Per-type tallies
"""

from __future__ import annotations

import argparse

# ---------------------------------------------------------------------------
# Case 1: Lambda shorthand -- simplest possible sink
# ---------------------------------------------------------------------------


def run_case_1() -> None:
    """A lambda that prints each event's value and status.

    Knobs demonstrated:
      - lambda as sink     -> no class needed, just a callable
      - use_registry=False -> fallback devices only
    """
    from plant_simulator import RunnerOptions, SimulationRunner
    from plant_simulator.backends import CallbackSink

    print("=== Case 1: Lambda shorthand ===\n")

    sink = CallbackSink(lambda e: print(f"  {e.device_id:<26s} {e.value!s:>10} {e.status}"))
    runner = SimulationRunner(
        RunnerOptions(iterations=10, delay_ms=200, use_registry=False, pattern_detection_enabled=False),
        event_sink=sink,
    )
    runner.run()


# ---------------------------------------------------------------------------
# Case 2: Async pattern alerts
# ---------------------------------------------------------------------------


def run_case_2() -> None:
    """Events are discarded, anomaly patterns are "paged" asynchronously.

    Knobs demonstrated:
      - separate on_pattern callback -> route patterns elsewhere
      - async def callback           -> awaited natively in the event loop
      - device_type_filter=GAS       -> only gas sensors (leaks, buildup)
    """
    import asyncio

    from plant_simulator import RunnerOptions, SensorType, SimulationRunner
    from plant_simulator.backends import CallbackSink

    print("=== Case 2: Async pattern alerts ===\n")

    async def page_on_call(pattern):
        await asyncio.sleep(0.01)
        print(
            f"  PAGE [{pattern.severity.value:>8s}] {pattern.device_id}: "
            f"{pattern.pattern_type} ({pattern.confidence_score:.0%})"
        )

    sink = CallbackSink(lambda e: None, page_on_call)
    runner = SimulationRunner(
        RunnerOptions(iterations=300, delay_ms=0, device_type_filter=SensorType.GAS, use_registry=False, seed=7),
        event_sink=sink,
        pattern_sink=sink,
    )
    stats = runner.run()
    print(f"\n  {stats.pattern_events} patterns from {stats.successful_events} events")


# ---------------------------------------------------------------------------
# Case 3: Per-type tallies
# ---------------------------------------------------------------------------


def run_case_3() -> None:
    """Keep a running status histogram per device type.

    Knobs demonstrated:
      - Stateful callback -> accumulates across events
      - seed=42           -> reproducible histogram
    """
    from collections import Counter

    from plant_simulator import RunnerOptions, SimulationRunner
    from plant_simulator.backends import CallbackSink

    print("=== Case 3: Per-type tallies ===\n")

    tallies: dict[str, Counter] = {}

    def tally(event):
        tallies.setdefault(event.type, Counter())[event.status] += 1

    runner = SimulationRunner(
        RunnerOptions(iterations=200, delay_ms=0, use_registry=False, seed=42),
        event_sink=CallbackSink(tally),
    )
    runner.run()

    for type_name in sorted(tallies):
        counts = ", ".join(f"{status}={n}" for status, n in tallies[type_name].most_common())
        print(f"  {type_name:<12s} {counts}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    parser = argparse.ArgumentParser(description="CallbackSink examples")
    parser.add_argument("--case", type=int, default=1, choices=[1, 2, 3], help="Which example case to run (default: 1)")
    args = parser.parse_args()

    cases = {
        1: run_case_1,
        2: run_case_2,
        3: run_case_3,
    }
    cases[args.case]()


if __name__ == "__main__":
    main()
