"""Bearer token bootstrap against the portal's session-refresh endpoint.

``get_token`` does not retry: the refresh endpoint races session establishment,
so callers wrap it in the poller (see :func:`wait_for_token`).
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from portal_e2e.polling import CancellationToken, Clock, poll_until

logger = logging.getLogger(__name__)


class PortalAuthError(Exception):
    """The refresh endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP error! Status: {status_code}")
        self.status_code = status_code


class TokenNotFoundError(TypeError):
    """The refresh endpoint answered, but without ``backstageIdentity.token``."""


def refresh_url(base_url: str, *, provider: str = "oidc", environment: str = "production") -> str:
    return (
        f"{base_url.rstrip('/')}/api/auth/{provider}/refresh"
        f"?optional=&scope=&env={environment}"
    )


def _extract_token(body: Any) -> str:
    identity = body.get("backstageIdentity") if isinstance(body, dict) else None
    token = identity.get("token") if isinstance(identity, dict) else None
    if not isinstance(token, str):
        raise TokenNotFoundError("Token not found in response body")
    return token


def get_token(
    session: requests.Session,
    base_url: str,
    *,
    provider: str = "oidc",
    environment: str = "production",
    timeout_seconds: float = 30.0,
) -> str:
    """Return the portal bearer token for the session's logged-in identity."""

    url = refresh_url(base_url, provider=provider, environment=environment)
    try:
        resp = session.get(
            url,
            headers={"x-requested-with": "XMLHttpRequest"},
            timeout=timeout_seconds,
        )
        if not resp.ok:
            raise PortalAuthError(resp.status_code)
        try:
            body = resp.json()
        except ValueError as exc:
            raise TokenNotFoundError("Refresh response is not JSON") from exc
        return _extract_token(body)
    except (requests.RequestException, PortalAuthError, TokenNotFoundError):
        logger.exception("Failed to retrieve the token", extra={"url": url})
        raise


def wait_for_token(
    session: requests.Session,
    base_url: str,
    *,
    timeout: float = 30.0,
    intervals: tuple[float, ...] = (2.0,),
    clock: Clock | None = None,
    cancel: CancellationToken | None = None,
) -> str:
    """Poll the refresh endpoint until the session yields a non-empty token."""

    tokens: list[str] = []

    def _observe() -> bool:
        token = get_token(session, base_url)
        if token:
            tokens.append(token)
            return True
        return False

    poll_until(
        _observe,
        True,
        timeout=timeout,
        intervals=intervals,
        message="Token should be retrieved after session is established",
        clock=clock,
        cancel=cancel,
        retry_on=(requests.RequestException, PortalAuthError, TokenNotFoundError),
    )
    return tokens[-1]
