"""Per-scenario context.

Each scenario gets its own HTTP session, acquired at start and closed at the
end. The session is not shared across scenarios.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import requests

from portal_e2e.config import HarnessSettings
from portal_e2e.events.emitter import SignedEventEmitter
from portal_e2e.events.ids import IdGenerator
from portal_e2e.github.client import GitHubAdminClient
from portal_e2e.polling import CancellationToken, Clock
from portal_e2e.portal.catalog import CatalogClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScenarioContext:
    settings: HarnessSettings
    session: requests.Session
    emitter: SignedEventEmitter
    github: GitHubAdminClient | None
    cancel: CancellationToken
    clock: Clock | None = None

    def catalog(self, token: str) -> CatalogClient:
        """Return a catalog client bound to this scenario's session."""

        return CatalogClient(
            base_url=self.settings.require_portal_base_url(),
            token=token,
            session=self.session,
        )


def new_session(*, verify_tls: bool) -> requests.Session:
    session = requests.Session()
    session.verify = verify_tls
    return session


@contextmanager
def open_scenario(
    settings: HarnessSettings,
    *,
    ids: IdGenerator | None = None,
    clock: Clock | None = None,
    with_github: bool = True,
) -> Iterator[ScenarioContext]:
    """Acquire the scenario's resources and release them on exit.

    On exit the cancellation token is triggered so that any poll still waiting
    on it returns promptly.
    """

    session = new_session(verify_tls=settings.verify_tls)
    cancel = CancellationToken()
    try:
        emitter = SignedEventEmitter.for_portal(
            base_url=settings.require_portal_base_url(),
            secret=settings.require_webhook_secret(),
            session=session,
            ids=ids,
        )
        github = (
            GitHubAdminClient(
                token=settings.require_github_token(), base_url=settings.github_base_url
            )
            if with_github
            else None
        )
        yield ScenarioContext(
            settings=settings,
            session=session,
            emitter=emitter,
            github=github,
            cancel=cancel,
            clock=clock,
        )
    finally:
        cancel.cancel()
        session.close()
        logger.debug("Scenario session closed")
