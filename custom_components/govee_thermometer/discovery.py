from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from .api import GoveeClient, GoveeError
from .models import GoveeDevice

_LOGGER = logging.getLogger(__name__)


@dataclass
class DeviceIdentity:
    key: str
    device: GoveeDevice


class IdentityRegistry(Protocol):
    """Host-owned store of known device identities."""

    async def async_lookup(self, key: str) -> DeviceIdentity | None: ...

    async def async_insert(self, key: str, device: GoveeDevice) -> DeviceIdentity: ...

    async def async_update(self, identity: DeviceIdentity, device: GoveeDevice) -> DeviceIdentity: ...


class DeviceDirectory:
    """Keeps the host's identities in step with the account's device list.

    Devices that disappear from the list are left registered; removing them
    is up to the operator.
    """

    def __init__(self, client: GoveeClient, registry: IdentityRegistry) -> None:
        self._client = client
        self._registry = registry
        self._sync_task: asyncio.Task[list[DeviceIdentity]] | None = None
        self.last_error: GoveeError | None = None
        self.known_addresses: set[str] = set()

    async def async_discover_devices(self) -> list[GoveeDevice]:
        """Fetch the device list; any failure yields an empty list."""
        try:
            devices = await self._client.async_get_devices()
        except GoveeError as e:
            _LOGGER.error("Error fetching devices: %s", e)
            self.last_error = e
            return []
        self.last_error = None
        self.known_addresses = {device.address for device in devices}
        return devices

    async def async_sync(self) -> list[DeviceIdentity]:
        # A second caller joins the cycle already in flight instead of starting another.
        if self._sync_task is None or self._sync_task.done():
            self._sync_task = asyncio.create_task(self._async_sync())
        return await asyncio.shield(self._sync_task)

    async def _async_sync(self) -> list[DeviceIdentity]:
        identities: list[DeviceIdentity] = []
        seen: set[str] = set()
        for device in await self.async_discover_devices():
            key = device.identity
            if key in seen:
                continue
            seen.add(key)

            existing = await self._registry.async_lookup(key)
            if existing is not None:
                _LOGGER.info("Restoring existing device: %s", existing.device.name)
                if existing.device != device:
                    existing = await self._registry.async_update(existing, device)
                identities.append(existing)
                continue

            _LOGGER.info("Adding new device: %s", device.name)
            identities.append(await self._registry.async_insert(key, device))
        return identities
