"""Console sink - prints events and patterns to stdout.

Useful for debugging, demos, and verifying the pipeline is working.
"""

from __future__ import annotations

import itertools
import sys
from typing import IO

from plant_simulator.backends.base import EventSink, PatternSink
from plant_simulator.models import AnomalyPattern, SensorEvent

__all__ = ["ConsoleSink"]


class ConsoleSink(EventSink, PatternSink):
    """Writes events and patterns to the console (stdout by default).

    Parameters:
        fmt: Output format - ``"text"`` (human-readable) or ``"json"``
             (one JSON object per line).
        stream: Writable file-like object (defaults to ``sys.stdout``).
    """

    def __init__(self, *, fmt: str = "text", stream: IO[str] | None = None) -> None:
        if fmt not in ("text", "json"):
            raise ValueError(f"Unknown console format {fmt!r} (expected 'text' or 'json')")
        self._fmt = fmt
        self._stream = stream or sys.stdout
        self._ids = itertools.count(1)

    async def insert_event(self, event: SensorEvent) -> int:
        if self._fmt == "json":
            self._stream.write(event.to_json() + "\n")
        else:
            meta = event.metadata
            self._stream.write(
                f"[{event.type}/{event.device_id}] "
                f"{event.value:>12} {str(meta.get('unit', '')):<12s} "
                f"status={event.status} battery={meta.get('battery_level')}% "
                f"@ {meta.get('location', '?')}\n"
            )
        self._stream.flush()
        return next(self._ids)

    async def insert_pattern(self, pattern: AnomalyPattern) -> None:
        if self._fmt == "json":
            self._stream.write(pattern.to_json() + "\n")
        else:
            self._stream.write(
                f"  !! {pattern.pattern_type} [{pattern.severity.value}] "
                f"confidence={pattern.confidence_score:.2f} - {pattern.description}\n"
            )
        self._stream.flush()

    async def close(self) -> None:
        """Flush only - we do not own stdout."""
        self._stream.flush()
