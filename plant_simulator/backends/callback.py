"""Callback sink – delegates inserts to a user-provided Python callable.

This allows users to hook any custom logic into the pipeline without
having to subclass a sink::

    runner = SimulationRunner(options, event_sink=CallbackSink(print))
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from plant_simulator.backends.base import EventSink, PatternSink
from plant_simulator.models import AnomalyPattern, SensorEvent

__all__ = ["CallbackSink"]


class CallbackSink(EventSink, PatternSink):
    """Wraps user-supplied functions as an event and pattern sink.

    Each callable can be a regular function, a coroutine function, or a
    lambda.  Sync callables run in the default executor so they do not
    block the event loop.  The event callback's return value is used as
    the inserted id; when it returns ``None`` a running counter is used.

    Parameters:
        on_event: ``(event: SensorEvent) -> Any`` or async variant.
        on_pattern: ``(pattern: AnomalyPattern) -> Any`` or async variant.
            Defaults to ``on_event``.
    """

    def __init__(
        self,
        on_event: Callable[[SensorEvent], Any],
        on_pattern: Callable[[AnomalyPattern], Any] | None = None,
    ) -> None:
        self._on_event = on_event
        self._on_pattern = on_pattern or on_event
        self._count = 0

    async def insert_event(self, event: SensorEvent) -> Any:
        result = await self._call(self._on_event, event)
        self._count += 1
        return self._count if result is None else result

    async def insert_pattern(self, pattern: AnomalyPattern) -> None:
        await self._call(self._on_pattern, pattern)

    @staticmethod
    async def _call(callback: Callable[[Any], Any], record: Any) -> Any:
        if inspect.iscoroutinefunction(callback):
            return await callback(record)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, callback, record)
