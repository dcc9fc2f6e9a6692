from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

# Fixed namespace so the same device address maps to the same identity across restarts.
_IDENTITY_NAMESPACE = uuid.UUID("5b0f3c7e-6a57-4f5e-9d0a-1c9b7e4a2d61")


def identity_for(address: str) -> str:
    """Return the stable identity key for a vendor device address."""
    return str(uuid.uuid5(_IDENTITY_NAMESPACE, address))


@dataclass(frozen=True)
class GoveeDevice:
    """A thermo-hygrometer as listed by the cloud API."""

    model: str
    address: str
    name: str

    @classmethod
    def from_api(cls, entry: Any) -> GoveeDevice | None:
        """Normalize one entry of the device list; None when a field is missing."""
        if not isinstance(entry, dict):
            return None
        sku = entry.get("sku")
        address = entry.get("device")
        name = entry.get("deviceName")
        if not all(isinstance(v, str) and v for v in (sku, address, name)):
            return None
        return cls(model=sku, address=address, name=name)

    @property
    def identity(self) -> str:
        return identity_for(self.address)


@dataclass(frozen=True)
class Reading:
    temperature: float
    humidity: float
