"""Fixtures for live scenarios against a deployed portal and GitHub.

Every test here is skipped unless the portal URL, webhook secret, GitHub token
and a portal token are configured (environment or `.env`).
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from portal_e2e.config import HarnessSettings
from portal_e2e.scenario import ScenarioContext, open_scenario


@pytest.fixture(scope="module")
def live_settings() -> HarnessSettings:
    settings = HarnessSettings()
    missing = [
        name
        for name, value in (
            ("PORTAL_BASE_URL", settings.portal_base_url),
            ("VAULT_GITHUB_APP_WEBHOOK_SECRET", settings.webhook_secret),
            ("VAULT_GH_RHDH_QE_USER_TOKEN", settings.github_token),
            ("PORTAL_TOKEN", settings.portal_token),
        )
        if not value.strip()
    ]
    if missing:
        pytest.skip(f"live portal not configured: {', '.join(missing)}")
    return settings


@pytest.fixture
def scenario(live_settings: HarnessSettings) -> Iterator[ScenarioContext]:
    with open_scenario(live_settings) as ctx:
        yield ctx
