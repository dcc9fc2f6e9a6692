from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import PERCENTAGE, UnitOfTemperature
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN, SIGNAL_NEW_DEVICES
from .coordinator import GoveeReadingCoordinator
from .entity import GoveeThermometerEntity
from .models import Reading


@dataclass(frozen=True, kw_only=True)
class GoveeSensorEntityDescription(SensorEntityDescription):
    value_fn: Callable[[Reading], float]


SENSORS: tuple[GoveeSensorEntityDescription, ...] = (
    GoveeSensorEntityDescription(
        key="temperature",
        device_class=SensorDeviceClass.TEMPERATURE,
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        state_class=SensorStateClass.MEASUREMENT,
        value_fn=lambda reading: reading.temperature,
    ),
    GoveeSensorEntityDescription(
        key="humidity",
        device_class=SensorDeviceClass.HUMIDITY,
        native_unit_of_measurement=PERCENTAGE,
        state_class=SensorStateClass.MEASUREMENT,
        value_fn=lambda reading: reading.humidity,
    ),
)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback) -> None:
    coordinators: dict[str, GoveeReadingCoordinator] = hass.data[DOMAIN][entry.entry_id]["coordinators"]

    @callback
    def _add(new: Iterable[GoveeReadingCoordinator]) -> None:
        async_add_entities(
            GoveeThermometerSensor(coordinator, description)
            for coordinator in new
            for description in SENSORS
        )

    _add(coordinators.values())
    entry.async_on_unload(async_dispatcher_connect(hass, SIGNAL_NEW_DEVICES.format(entry.entry_id), _add))


class GoveeThermometerSensor(GoveeThermometerEntity, SensorEntity):
    entity_description: GoveeSensorEntityDescription

    def __init__(self, coordinator: GoveeReadingCoordinator, description: GoveeSensorEntityDescription) -> None:
        super().__init__(coordinator, unique_key=description.key)
        self.entity_description = description

    @property
    def native_value(self) -> float | None:
        reading = self.coordinator.data
        if reading is None:
            return None
        return self.entity_description.value_fn(reading)
