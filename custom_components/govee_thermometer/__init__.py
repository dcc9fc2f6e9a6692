from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ConfigEntryAuthFailed, ConfigEntryNotReady, HomeAssistantError
from homeassistant.helpers import aiohttp_client, device_registry as dr
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.typing import ConfigType

from .api import GoveeAuthError, GoveeClient, GoveeConnectionError
from .const import CONF_API_KEY, DOMAIN, PLATFORMS, SERVICE_REFRESH_DEVICES, SIGNAL_NEW_DEVICES
from .coordinator import GoveeReadingCoordinator
from .discovery import DeviceDirectory
from .registry import HomeAssistantIdentityRegistry

_LOGGER = logging.getLogger(__name__)


def _get_entry(hass: HomeAssistant, entry_id: str | None) -> ConfigEntry:
    entries = [e for e in hass.config_entries.async_entries(DOMAIN) if e.entry_id in hass.data.get(DOMAIN, {})]
    if not entries:
        raise HomeAssistantError("No govee_thermometer entries loaded")

    if entry_id is None:
        if len(entries) == 1:
            return entries[0]
        raise HomeAssistantError("Multiple govee_thermometer entries loaded; specify entry_id")

    for entry in entries:
        if entry.entry_id == entry_id:
            return entry
    raise HomeAssistantError(f"Unknown entry_id {entry_id}")


async def _async_sync_devices(hass: HomeAssistant, entry: ConfigEntry) -> list[GoveeReadingCoordinator]:
    """Run discovery and build coordinators for identities not seen before."""
    store: dict[str, Any] = hass.data[DOMAIN][entry.entry_id]
    directory: DeviceDirectory = store["directory"]
    coordinators: dict[str, GoveeReadingCoordinator] = store["coordinators"]

    identities = await directory.async_sync()
    if isinstance(directory.last_error, GoveeAuthError):
        raise ConfigEntryAuthFailed(str(directory.last_error)) from directory.last_error

    new: list[GoveeReadingCoordinator] = []
    for identity in identities:
        existing = coordinators.get(identity.key)
        if existing is not None:
            existing.identity = identity
            continue
        coordinator = GoveeReadingCoordinator(hass, entry, store["client"], identity)
        # A device that is offline right now still gets its entities; they start unavailable.
        await coordinator.async_refresh()
        coordinators[identity.key] = coordinator
        new.append(coordinator)
    return new


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    session = aiohttp_client.async_get_clientsession(hass)
    client = GoveeClient(session, api_key=entry.data[CONF_API_KEY])

    directory = DeviceDirectory(client, HomeAssistantIdentityRegistry(hass, entry))

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {
        "client": client,
        "directory": directory,
        "coordinators": {},
    }
    try:
        await _async_sync_devices(hass, entry)
        if isinstance(directory.last_error, GoveeConnectionError):
            # Let the host retry setup instead of starting with no entities.
            raise ConfigEntryNotReady(str(directory.last_error)) from directory.last_error
    except (ConfigEntryAuthFailed, ConfigEntryNotReady):
        hass.data[DOMAIN].pop(entry.entry_id, None)
        raise

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    _register_services(hass)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
        if not hass.data.get(DOMAIN):
            hass.services.async_remove(DOMAIN, SERVICE_REFRESH_DEVICES)
    return unload_ok


async def async_remove_config_entry_device(hass: HomeAssistant, entry: ConfigEntry, device: dr.DeviceEntry) -> bool:
    """Allow removing a device from the UI once the account no longer lists it."""
    store = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if store is None:
        return True
    directory: DeviceDirectory = store["directory"]
    if device.serial_number in directory.known_addresses:
        return False
    for domain, key in device.identifiers:
        if domain == DOMAIN:
            store["coordinators"].pop(key, None)
    return True


def _register_services(hass: HomeAssistant) -> None:
    if hass.services.has_service(DOMAIN, SERVICE_REFRESH_DEVICES):
        return

    async def refresh_devices(call: ServiceCall) -> None:
        entry = _get_entry(hass, call.data.get("entry_id"))
        try:
            new = await _async_sync_devices(hass, entry)
        except ConfigEntryAuthFailed as e:
            entry.async_start_reauth(hass)
            raise HomeAssistantError("Govee rejected the API key; reauthentication started") from e
        _LOGGER.debug("Device refresh for %s found %d new devices", entry.title, len(new))
        if new:
            async_dispatcher_send(hass, SIGNAL_NEW_DEVICES.format(entry.entry_id), new)

    hass.services.async_register(
        DOMAIN,
        SERVICE_REFRESH_DEVICES,
        refresh_devices,
        schema=vol.Schema({vol.Optional("entry_id"): str}),
    )
