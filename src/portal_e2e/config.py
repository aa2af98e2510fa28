"""Configuration for the e2e harness.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Secret variable names match the ones CI injects from the vault
(`VAULT_GITHUB_APP_WEBHOOK_SECRET`, `VAULT_GH_RHDH_QE_USER_TOKEN`).
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MissingSettingError(ValueError):
    """A setting required by the requested operation is empty."""


class HarnessSettings(BaseSettings):
    """Settings for signed event delivery and catalog polling.

    Secrets are optional at load time so that commands which do not need them
    (e.g. signing a file locally) still work. Use the ``require_*`` helpers at
    the point where a secret becomes mandatory.

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `HarnessSettings(_env_file=path_to_env)`.
    """

    portal_base_url: str = Field(
        default="",
        validation_alias="PORTAL_BASE_URL",
        description="Base URL of the developer portal under test",
    )
    webhook_secret: str = Field(
        default="",
        validation_alias="VAULT_GITHUB_APP_WEBHOOK_SECRET",
        description="Shared secret used to sign GitHub webhook deliveries",
    )
    github_token: str = Field(
        default="",
        validation_alias="VAULT_GH_RHDH_QE_USER_TOKEN",
        description="GitHub personal access token for repository and team setup",
    )
    portal_token: str = Field(
        default="",
        validation_alias="PORTAL_TOKEN",
        description=(
            "Portal bearer token for catalog lookups. Obtain it from a logged-in session "
            "via the refresh endpoint when not provided."
        ),
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )
    github_org: str = Field(
        default="janus-qe",
        validation_alias="GITHUB_ORG",
        description="Organization that owns test repositories and teams",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        validation_alias="LOG_FORMAT",
        description="'json' for CI log collection, 'text' for terminals",
    )
    verify_tls: bool = Field(
        default=False,
        validation_alias="PORTAL_VERIFY_TLS",
        description="Verify the portal's TLS certificate (test clusters often self-sign)",
    )

    poll_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        validation_alias="POLL_TIMEOUT_SECONDS",
        description="Budget for catalog convergence polls",
    )
    poll_interval_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias="POLL_INTERVAL_SECONDS",
        description="Wait between catalog convergence attempts",
    )
    membership_poll_interval_seconds: float = Field(
        default=3.0,
        gt=0,
        validation_alias="MEMBERSHIP_POLL_INTERVAL_SECONDS",
        description="Wait between group membership attempts",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    def require_portal_base_url(self) -> str:
        if not self.portal_base_url.strip():
            raise MissingSettingError("PORTAL_BASE_URL is required")
        return self.portal_base_url.rstrip("/")

    def require_webhook_secret(self) -> str:
        if not self.webhook_secret.strip():
            raise MissingSettingError("VAULT_GITHUB_APP_WEBHOOK_SECRET is required")
        return self.webhook_secret

    def require_github_token(self) -> str:
        if not self.github_token.strip():
            raise MissingSettingError("VAULT_GH_RHDH_QE_USER_TOKEN is required")
        return self.github_token
