from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.helpers import aiohttp_client

from .api import GoveeAuthError, GoveeClient, GoveeError
from .const import CONF_API_KEY, DOMAIN

_LOGGER = logging.getLogger(__name__)

_SCHEMA = vol.Schema({vol.Required(CONF_API_KEY): str})


async def _validate(hass: HomeAssistant, api_key: str) -> int:
    """Check the key against the device list; returns the number of devices."""
    session = aiohttp_client.async_get_clientsession(hass)
    client = GoveeClient(session, api_key=api_key)
    devices = await client.async_get_devices()
    return len(devices)


async def _errors_for(hass: HomeAssistant, api_key: str) -> tuple[dict[str, str], int]:
    errors: dict[str, str] = {}
    count = 0
    try:
        count = await _validate(hass, api_key)
    except GoveeAuthError as e:
        _LOGGER.warning("Govee config flow rejected API key: %s", e)
        errors["base"] = "invalid_auth"
    except (GoveeError, Exception):  # noqa: BLE001 - config flow should be resilient
        _LOGGER.exception("Govee config flow failed")
        errors["base"] = "cannot_connect"
    return errors, count


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = 1

    async def async_step_user(self, user_input=None):
        errors: dict[str, str] = {}

        if user_input is not None:
            api_key = (user_input[CONF_API_KEY] or "").strip()
            self._async_abort_entries_match({CONF_API_KEY: api_key})

            errors, count = await _errors_for(self.hass, api_key)
            if not errors:
                return self.async_create_entry(title=f"Govee ({count} devices)", data={CONF_API_KEY: api_key})

        return self.async_show_form(step_id="user", data_schema=_SCHEMA, errors=errors)

    async def async_step_reauth(self, entry_data: Mapping[str, Any]):
        return await self.async_step_reauth_confirm()

    async def async_step_reauth_confirm(self, user_input=None):
        errors: dict[str, str] = {}

        if user_input is not None:
            api_key = (user_input[CONF_API_KEY] or "").strip()
            errors, _ = await _errors_for(self.hass, api_key)
            if not errors:
                return self.async_update_reload_and_abort(
                    self._get_reauth_entry(),
                    data_updates={CONF_API_KEY: api_key},
                )

        return self.async_show_form(step_id="reauth_confirm", data_schema=_SCHEMA, errors=errors)
