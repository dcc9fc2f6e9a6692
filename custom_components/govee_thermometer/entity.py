from __future__ import annotations

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, MANUFACTURER
from .coordinator import GoveeReadingCoordinator
from .models import GoveeDevice


class GoveeThermometerEntity(CoordinatorEntity[GoveeReadingCoordinator]):
    _attr_has_entity_name = True

    def __init__(self, coordinator: GoveeReadingCoordinator, *, unique_key: str) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{coordinator.identity.key}-{unique_key}"

    @property
    def _device(self) -> GoveeDevice:
        return self.coordinator.identity.device

    @property
    def device_info(self) -> DeviceInfo:
        dev = self._device
        return DeviceInfo(
            identifiers={(DOMAIN, self.coordinator.identity.key)},
            name=dev.name,
            manufacturer=MANUFACTURER,
            model=dev.model,
            serial_number=dev.address,
        )
