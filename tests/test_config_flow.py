from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any, List

import pytest
from homeassistant.data_entry_flow import AbortFlow

from custom_components.govee_thermometer import config_flow
from custom_components.govee_thermometer.api import GoveeAuthError, GoveeConnectionError
from custom_components.govee_thermometer.const import CONF_API_KEY


class StubValidate:
    def __init__(self, outcome: Any) -> None:
        self.outcome = outcome
        self.keys: List[str] = []

    async def __call__(self, hass, api_key: str) -> int:
        self.keys.append(api_key)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _flow(configured_keys: tuple[str, ...] = ()) -> config_flow.ConfigFlow:
    flow = config_flow.ConfigFlow()
    flow.hass = SimpleNamespace()
    flow.async_show_form = lambda **kw: {"type": "form", **kw}
    flow.async_create_entry = lambda **kw: {"type": "create_entry", **kw}

    def abort_if_configured(match: dict) -> None:
        if match[CONF_API_KEY] in configured_keys:
            raise AbortFlow("already_configured")

    flow._async_abort_entries_match = abort_if_configured
    return flow


@pytest.fixture()
def validate(monkeypatch):
    def install(outcome: Any) -> StubValidate:
        stub = StubValidate(outcome)
        monkeypatch.setattr(config_flow, "_validate", stub)
        return stub

    return install


def test_user_step_shows_form() -> None:
    result = asyncio.run(_flow().async_step_user())

    assert result["type"] == "form"
    assert result["step_id"] == "user"
    assert result["errors"] == {}


def test_user_step_creates_entry(validate) -> None:
    stub = validate(3)

    result = asyncio.run(_flow().async_step_user({CONF_API_KEY: "  key-1 "}))

    assert result["type"] == "create_entry"
    assert result["title"] == "Govee (3 devices)"
    assert result["data"] == {CONF_API_KEY: "key-1"}
    assert stub.keys == ["key-1"]


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (GoveeAuthError("HTTP 401"), "invalid_auth"),
        (GoveeConnectionError("HTTP 502"), "cannot_connect"),
        (RuntimeError("boom"), "cannot_connect"),
    ],
)
def test_user_step_maps_errors(validate, error: Exception, expected: str) -> None:
    validate(error)

    result = asyncio.run(_flow().async_step_user({CONF_API_KEY: "key-1"}))

    assert result["type"] == "form"
    assert result["errors"] == {"base": expected}


def test_user_step_aborts_for_known_key(validate) -> None:
    stub = validate(1)

    with pytest.raises(AbortFlow) as excinfo:
        asyncio.run(_flow(configured_keys=("key-1",)).async_step_user({CONF_API_KEY: "key-1"}))

    assert excinfo.value.reason == "already_configured"
    assert stub.keys == []


def test_reauth_replaces_key(validate) -> None:
    validate(2)
    entry = SimpleNamespace(entry_id="entry1", data={CONF_API_KEY: "old"})
    flow = _flow()
    flow._get_reauth_entry = lambda: entry
    flow.async_update_reload_and_abort = lambda e, **kw: {"type": "abort", "reason": "reauth_successful", "entry": e, **kw}

    async def run():
        first = await flow.async_step_reauth(entry.data)
        second = await flow.async_step_reauth_confirm({CONF_API_KEY: "new"})
        return first, second

    first, second = asyncio.run(run())

    assert first["step_id"] == "reauth_confirm"
    assert second["entry"] is entry
    assert second["data_updates"] == {CONF_API_KEY: "new"}


def test_reauth_rejected_key_keeps_form(validate) -> None:
    validate(GoveeAuthError("HTTP 403"))

    result = asyncio.run(_flow().async_step_reauth_confirm({CONF_API_KEY: "still-bad"}))

    assert result["step_id"] == "reauth_confirm"
    assert result["errors"] == {"base": "invalid_auth"}
