from __future__ import annotations

import logging
from datetime import timedelta

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryAuthFailed
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import GoveeAuthError, GoveeClient, GoveeError
from .const import DEFAULT_SCAN_INTERVAL_SECONDS, DOMAIN
from .discovery import DeviceIdentity
from .models import Reading


_LOGGER = logging.getLogger(__name__)


class GoveeReadingCoordinator(DataUpdateCoordinator[Reading]):
    def __init__(self, hass: HomeAssistant, entry: ConfigEntry, client: GoveeClient, identity: DeviceIdentity) -> None:
        super().__init__(
            hass,
            logger=_LOGGER,
            config_entry=entry,
            name=f"{DOMAIN}_{identity.device.address}",
            update_interval=timedelta(seconds=DEFAULT_SCAN_INTERVAL_SECONDS),
        )
        self.client = client
        self.identity = identity

    async def _async_update_data(self) -> Reading:
        # One state call feeds both the temperature and the humidity entity.
        try:
            return await self.client.async_get_reading(self.identity.device)
        except GoveeAuthError as e:
            raise ConfigEntryAuthFailed(str(e)) from e
        except GoveeError as e:
            raise UpdateFailed(f"{self.identity.device.name} is not responding: {e}") from e
