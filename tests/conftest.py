from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from custom_components.govee_thermometer.discovery import DeviceIdentity
from custom_components.govee_thermometer.models import GoveeDevice


class StubResponse:
    def __init__(self, status: int = 200, body: Any = None, raw: str | None = None) -> None:
        self.status = status
        self._body = body
        self._raw = raw

    async def json(self, content_type: str | None = "application/json") -> Any:
        if self._raw is not None:
            return json.loads(self._raw)
        return self._body

    async def __aenter__(self) -> "StubResponse":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class StubSession:
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes: List[Any] = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> StubResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeRegistry:
    def __init__(self, *existing: GoveeDevice) -> None:
        self.identities: Dict[str, DeviceIdentity] = {
            d.identity: DeviceIdentity(key=d.identity, device=d) for d in existing
        }
        self.inserted: List[str] = []
        self.updated: List[str] = []

    async def async_lookup(self, key: str) -> DeviceIdentity | None:
        return self.identities.get(key)

    async def async_insert(self, key: str, device: GoveeDevice) -> DeviceIdentity:
        assert key not in self.identities
        identity = DeviceIdentity(key=key, device=device)
        self.identities[key] = identity
        self.inserted.append(key)
        return identity

    async def async_update(self, identity: DeviceIdentity, device: GoveeDevice) -> DeviceIdentity:
        updated = DeviceIdentity(key=identity.key, device=device)
        self.identities[identity.key] = updated
        self.updated.append(identity.key)
        return updated


def device_entry(address: str, name: str = "Living room", sku: str = "H5179") -> Dict[str, Any]:
    return {"sku": sku, "device": address, "deviceName": name, "type": "devices.types.thermometer"}


@pytest.fixture()
def thermometer() -> GoveeDevice:
    return GoveeDevice(model="H5179", address="AA:BB:CC:DD:EE:FF:00:11", name="Living room")
