from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers import device_registry as dr

from .const import DOMAIN, MANUFACTURER
from .discovery import DeviceIdentity
from .models import GoveeDevice


def _identity_from_entry(key: str, device: dr.DeviceEntry) -> DeviceIdentity | None:
    # Entries written by this integration always carry all three fields.
    if not (device.model and device.serial_number and device.name):
        return None
    return DeviceIdentity(
        key=key,
        device=GoveeDevice(model=device.model, address=device.serial_number, name=device.name),
    )


class HomeAssistantIdentityRegistry:
    """Device registry backed identities for one config entry."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        self._hass = hass
        self._entry = entry

    @property
    def _dev_reg(self) -> dr.DeviceRegistry:
        return dr.async_get(self._hass)

    async def async_lookup(self, key: str) -> DeviceIdentity | None:
        device = self._dev_reg.async_get_device(identifiers={(DOMAIN, key)})
        if device is None or self._entry.entry_id not in device.config_entries:
            return None
        return _identity_from_entry(key, device)

    async def async_insert(self, key: str, device: GoveeDevice) -> DeviceIdentity:
        self._dev_reg.async_get_or_create(
            config_entry_id=self._entry.entry_id,
            identifiers={(DOMAIN, key)},
            manufacturer=MANUFACTURER,
            model=device.model,
            name=device.name,
            serial_number=device.address,
        )
        return DeviceIdentity(key=key, device=device)

    async def async_update(self, identity: DeviceIdentity, device: GoveeDevice) -> DeviceIdentity:
        entry = self._dev_reg.async_get_device(identifiers={(DOMAIN, identity.key)})
        if entry is not None:
            self._dev_reg.async_update_device(entry.id, model=device.model, name=device.name)
        return DeviceIdentity(key=identity.key, device=device)
