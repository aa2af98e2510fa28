"""Test configuration and fixtures."""

from __future__ import annotations

import itertools
from typing import Any
from unittest.mock import Mock

import pytest
import requests

from portal_e2e.config import HarnessSettings
from portal_e2e.polling import CancellationToken

_HARNESS_ENV = (
    "PORTAL_BASE_URL",
    "VAULT_GITHUB_APP_WEBHOOK_SECRET",
    "VAULT_GH_RHDH_QE_USER_TOKEN",
    "PORTAL_TOKEN",
    "GITHUB_BASE_URL",
    "GITHUB_ORG",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "PORTAL_VERIFY_TLS",
    "POLL_TIMEOUT_SECONDS",
    "POLL_INTERVAL_SECONDS",
    "MEMBERSHIP_POLL_INTERVAL_SECONDS",
)


class VirtualClock:
    """Deterministic clock: sleeping only advances ``now``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float, cancel: CancellationToken | None = None) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    async def async_sleep(self, seconds: float) -> None:
        self.sleep(seconds)


class SequenceIds:
    """Deterministic identifier generator for golden payloads."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def numeric_id(self, upper: int) -> int:
        return next(self._counter) % upper or 1

    def node_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._counter):020d}"

    def hex_id(self, length: int = 40) -> str:
        return f"{next(self._counter):0{length}x}"

    def delivery_id(self) -> str:
        return f"00000000-0000-4000-8000-{next(self._counter):012d}"


def fake_response(
    status_code: int = 200,
    *,
    json_body: Any = None,
    text: str = "",
    reason: str = "",
) -> Mock:
    resp = Mock(spec=requests.Response)
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.reason = reason
    resp.text = text
    if json_body is None:
        resp.json.side_effect = requests.JSONDecodeError("Expecting value", "", 0)
    else:
        resp.json.return_value = json_body
    return resp


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def ids() -> SequenceIds:
    return SequenceIds()


@pytest.fixture
def session() -> Mock:
    """Provide a mocked requests session."""
    return Mock(spec=requests.Session)


@pytest.fixture
def clean_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate settings from the developer's environment and `.env`."""
    for name in _HARNESS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings(clean_env) -> HarnessSettings:
    """Provide fully configured test settings."""
    return HarnessSettings(
        PORTAL_BASE_URL="https://portal.example.test/",
        VAULT_GITHUB_APP_WEBHOOK_SECRET="test-secret",
        VAULT_GH_RHDH_QE_USER_TOKEN="test-token",
    )


@pytest.fixture
def make_response():
    """Factory for mocked `requests.Response` objects."""
    return fake_response
