"""REST store - device registry and sinks on a PostgREST (Supabase) API.

Requires the ``rest`` extra::

    pip install plant-iot-simulator[rest]

Expected resources under ``<url>/rest/v1``:

- ``devices`` with embedded ``device_types``, ``locations`` and
  ``manufacturers`` relations,
- ``iot_events`` for telemetry events,
- ``pattern_events`` for anomaly patterns (referencing the numeric
  ``devices.id``).
"""

from __future__ import annotations

import logging
import os
import random
from typing import Any

from plant_simulator.backends.base import DeviceRegistry, EventSink, PatternSink
from plant_simulator.models import AnomalyPattern, Device, SensorEvent, SensorType

__all__ = ["RestStore"]

logger = logging.getLogger("plant_simulator.backends.rest")

try:
    import httpx

    HTTPX_AVAILABLE = True
except ImportError:
    HTTPX_AVAILABLE = False

_DEVICE_SELECT = "*,device_types{inner}(*),locations(*),manufacturers(*)"


class RestStore(DeviceRegistry, EventSink, PatternSink):
    """Talks to a PostgREST API over HTTP.

    Parameters:
        url: Project URL, e.g. ``"https://xyz.supabase.co"``.  Defaults to
            the ``SUPABASE_URL`` environment variable.
        api_key: API key sent as ``apikey`` and bearer token.  Defaults to
            the ``SUPABASE_ANON_KEY`` environment variable.
        timeout_s: Per-request timeout in seconds.
        transport: Optional ``httpx`` transport (used by tests).
    """

    def __init__(
        self,
        *,
        url: str | None = None,
        api_key: str | None = None,
        timeout_s: float = 30.0,
        transport: Any = None,
        rng: random.Random | None = None,
    ) -> None:
        if not HTTPX_AVAILABLE:
            raise ImportError(
                "httpx is required for RestStore.  Install with: pip install plant-iot-simulator[rest]"
            )
        url = url or os.environ.get("SUPABASE_URL")
        api_key = api_key or os.environ.get("SUPABASE_ANON_KEY")
        if not url or not api_key:
            raise ValueError("RestStore needs a url and api_key (or SUPABASE_URL / SUPABASE_ANON_KEY)")

        self._base_url = url.rstrip("/") + "/rest/v1"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }
        self._timeout = timeout_s
        self._transport = transport
        self._rng = rng or random.Random()
        self._client: httpx.AsyncClient | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )
        logger.info("RestStore ready - target: %s", self._base_url)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("RestStore closed")

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("RestStore is not connected")
        return self._client

    # ------------------------------------------------------------------
    # Device registry
    # ------------------------------------------------------------------

    async def check_connection(self) -> bool:
        try:
            resp = await self._require_client().get("/iot_events", params={"select": "count", "limit": 1})
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("REST connection test failed: %s", exc)
            return False
        return True

    async def get_random_device(self, type_filter: SensorType | None = None) -> Device | None:
        params = {"select": _DEVICE_SELECT.format(inner="!inner" if type_filter else "")}
        if type_filter is not None:
            params["device_types.type_name"] = f"eq.{type_filter.value}"

        resp = await self._require_client().get("/devices", params=params)
        resp.raise_for_status()
        rows = resp.json()
        if not rows:
            return None
        return self._to_device(self._rng.choice(rows), type_filter)

    async def update_battery(self, device_id: str, battery_level: float) -> None:
        resp = await self._require_client().patch(
            "/devices",
            params={"device_id": f"eq.{device_id}"},
            json={"battery_level": battery_level},
        )
        resp.raise_for_status()

    @staticmethod
    def _to_device(row: dict[str, Any], type_filter: SensorType | None) -> Device:
        device_type = row.get("device_types") or {}
        location = row.get("locations") or {}
        manufacturer = row.get("manufacturers") or {}
        default_type = type_filter.value if type_filter else "unknown"
        return Device(
            device_id=row["device_id"],
            type=device_type.get("type_name") or default_type,
            display_name=row.get("device_name") or "",
            location_name=location.get("name") or "Unknown Location",
            manufacturer_name=manufacturer.get("name") or "Unknown Manufacturer",
            battery_level=row.get("battery_level") if row.get("battery_level") is not None else 100.0,
            sensor_range=device_type.get("sensor_range"),
            unit=device_type.get("unit"),
            metadata=row.get("metadata") or {},
        )

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    async def insert_event(self, event: SensorEvent) -> Any:
        payload = event.to_dict()
        payload.pop("timestamp", None)
        resp = await self._require_client().post("/iot_events", json=payload)
        resp.raise_for_status()
        rows = resp.json()
        return rows[0].get("id") if rows else None

    async def insert_pattern(self, pattern: AnomalyPattern) -> None:
        client = self._require_client()
        lookup = await client.get("/devices", params={"select": "id", "device_id": f"eq.{pattern.device_id}"})
        lookup.raise_for_status()
        matches = lookup.json()
        if not matches:
            raise LookupError(f"Device not found: {pattern.device_id}")

        resp = await client.post(
            "/pattern_events",
            json={
                "device_id": matches[0]["id"],
                "pattern_type": pattern.pattern_type,
                "pattern_description": pattern.description,
                "confidence_score": pattern.confidence_score,
                "severity": pattern.severity.value,
                "metadata": pattern.metadata,
            },
        )
        resp.raise_for_status()
