from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from aiohttp import ClientError, ClientSession, ClientTimeout
from yarl import URL

from .const import (
    API_BASE_URL,
    API_KEY_HEADER,
    DEVICES_PATH,
    HUMIDITY_INSTANCE,
    LEGACY_HUMIDITY_INDEX,
    LEGACY_TEMPERATURE_INDEX,
    READING_SCALE,
    REQUEST_RETRIES,
    REQUEST_TIMEOUT_S,
    RETRY_BACKOFF_S,
    STATE_PATH,
    TEMPERATURE_INSTANCE,
)
from .models import GoveeDevice, Reading

_LOGGER = logging.getLogger(__name__)


class GoveeError(Exception):
    pass


class GoveeAuthError(GoveeError):
    """The API key was rejected; retrying will not help."""


class GoveeConnectionError(GoveeError):
    """Transport failure, timeout or unexpected HTTP status."""


class GoveeResponseError(GoveeError):
    """The response body did not have the expected shape."""


class GoveeDeviceUnreachableError(GoveeResponseError):
    """No reading could be extracted for the device."""


def _is_transient(status: int) -> bool:
    return status == 429 or status >= 500


class GoveeClient:
    """Minimal Govee OpenAPI client for thermo-hygrometers."""

    def __init__(
        self,
        session: ClientSession,
        *,
        api_key: str,
        base_url: str = API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_S,
        retries: int = REQUEST_RETRIES,
        retry_backoff: float = RETRY_BACKOFF_S,
    ) -> None:
        self._session = session
        self._api_key = api_key
        self._base_url = URL(base_url)
        self._timeout = ClientTimeout(total=timeout)
        self._retries = retries
        self._retry_backoff = retry_backoff

    async def _request_json(self, method: str, path: str, *, json_data: Any | None = None) -> Any:
        url = str(self._base_url.with_path(path))
        headers = {API_KEY_HEADER: self._api_key, "Accept": "application/json"}
        if json_data is not None:
            headers["Content-Type"] = "application/json"

        attempt = 0
        while True:
            try:
                async with self._session.request(
                    method,
                    url,
                    json=json_data,
                    headers=headers,
                    timeout=self._timeout,
                ) as resp:
                    if resp.status in (401, 403):
                        raise GoveeAuthError(f"API key rejected by {path} (HTTP {resp.status})")
                    if resp.status < 300:
                        try:
                            return await resp.json(content_type=None)
                        except ValueError as e:
                            raise GoveeResponseError(f"{method} {path} returned a non-JSON body") from e
                    err = GoveeConnectionError(f"{method} {path} failed with HTTP {resp.status}")
                    if not _is_transient(resp.status):
                        # Not worth retrying, the request itself is wrong.
                        raise err
            except (ClientError, TimeoutError) as e:
                err = GoveeConnectionError(f"{method} {path} failed: {e!r}")
                err.__cause__ = e

            if attempt >= self._retries:
                raise err
            attempt += 1
            _LOGGER.warning("Retrying %s %s after error: %s", method, path, err)
            await asyncio.sleep(self._retry_backoff * attempt)

    async def async_get_devices(self) -> list[GoveeDevice]:
        body = await self._request_json("GET", DEVICES_PATH)
        entries = body.get("data") if isinstance(body, dict) else None
        if not isinstance(entries, list):
            raise GoveeResponseError("Unexpected device list response shape")

        devices: list[GoveeDevice] = []
        for entry in entries:
            device = GoveeDevice.from_api(entry)
            if device is None:
                _LOGGER.debug("Skipping malformed device entry: %s", entry)
                continue
            devices.append(device)
        return devices

    async def async_get_reading(self, device: GoveeDevice) -> Reading:
        payload = {
            "requestId": str(uuid.uuid4()),
            "payload": {"sku": device.model, "device": device.address},
        }
        body = await self._request_json("POST", STATE_PATH, json_data=payload)
        reading = parse_reading(body)
        _LOGGER.debug("Reading for %s (%s): %s", device.name, device.address, reading)
        return reading


def _find_capability(capabilities: list[Any], instance: str, legacy_index: int) -> dict[str, Any]:
    if any(isinstance(cap, dict) and "instance" in cap for cap in capabilities):
        for cap in capabilities:
            if isinstance(cap, dict) and cap.get("instance") == instance:
                return cap
        raise GoveeDeviceUnreachableError(f"State response has no {instance} capability")

    if legacy_index >= len(capabilities) or not isinstance(capabilities[legacy_index], dict):
        raise GoveeDeviceUnreachableError(f"State response has no capability at position {legacy_index}")
    return capabilities[legacy_index]


def _state_value(capability: dict[str, Any]) -> Any:
    state = capability.get("state")
    if not isinstance(state, dict) or "value" not in state:
        raise GoveeDeviceUnreachableError(f"Capability {capability.get('instance')!r} has no state value")
    return state["value"]


def _scaled(raw: Any, what: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise GoveeDeviceUnreachableError(f"Unexpected {what} value {raw!r}")
    return raw / READING_SCALE


def parse_reading(body: Any) -> Reading:
    """Extract temperature and humidity from a device state response.

    Capabilities are matched by their ``instance`` name. Responses whose
    capabilities carry no instance names at all fall back to the fixed
    positions the API has historically used.
    """
    payload = body.get("payload") if isinstance(body, dict) else None
    capabilities = payload.get("capabilities") if isinstance(payload, dict) else None
    if not isinstance(capabilities, list):
        raise GoveeDeviceUnreachableError("State response has no capabilities")

    for cap in capabilities:
        if isinstance(cap, dict) and cap.get("instance") == "online":
            state = cap.get("state")
            if isinstance(state, dict) and state.get("value") is False:
                raise GoveeDeviceUnreachableError("Device reports itself offline")

    temperature = _state_value(_find_capability(capabilities, TEMPERATURE_INSTANCE, LEGACY_TEMPERATURE_INDEX))

    humidity = _state_value(_find_capability(capabilities, HUMIDITY_INSTANCE, LEGACY_HUMIDITY_INDEX))
    # Humidity is nested one level deeper on current firmware.
    if isinstance(humidity, dict):
        humidity = humidity.get("currentHumidity")

    return Reading(
        temperature=_scaled(temperature, "temperature"),
        humidity=_scaled(humidity, "humidity"),
    )
