from __future__ import annotations

import uuid

import pytest

from conftest import device_entry
from custom_components.govee_thermometer.models import GoveeDevice, identity_for


def test_identity_is_stable_and_unique() -> None:
    assert identity_for("AA:01") == identity_for("AA:01")
    assert identity_for("AA:01") != identity_for("AA:02")
    assert uuid.UUID(identity_for("AA:01")).version == 5


def test_from_api_normalizes_entry() -> None:
    device = GoveeDevice.from_api(device_entry("AA:01", "Cellar", sku="H5179"))

    assert device == GoveeDevice(model="H5179", address="AA:01", name="Cellar")
    assert device.identity == identity_for("AA:01")


@pytest.mark.parametrize("missing", ["sku", "device", "deviceName"])
def test_from_api_skips_incomplete_entry(missing: str) -> None:
    entry = device_entry("AA:01")
    del entry[missing]

    assert GoveeDevice.from_api(entry) is None


@pytest.mark.parametrize("entry", [None, [], "AA:01", {"sku": "H5179", "device": 42, "deviceName": "x"}])
def test_from_api_rejects_wrong_shapes(entry) -> None:
    assert GoveeDevice.from_api(entry) is None
