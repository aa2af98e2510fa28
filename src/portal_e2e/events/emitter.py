"""Signed webhook delivery to the portal's GitHub event ingestion endpoint.

The emitter never interprets the response: callers assert on the status
themselves. Transport failures (``requests.RequestException``) propagate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from portal_e2e.events.ids import DEFAULT_IDS, IdGenerator
from portal_e2e.events.payloads import (
    CatalogAction,
    MembershipAction,
    TeamAction,
    WebhookEvent,
    create_membership_payload,
    create_ping_payload,
    create_push_payload,
    create_team_payload,
)
from portal_e2e.events.signing import compute_signature, serialize_payload

logger = logging.getLogger(__name__)

EVENTS_PATH = "/api/events/http/github"


@dataclass(frozen=True, slots=True)
class WebhookHeaderNames:
    """Header names carrying the event type, delivery id and signature."""

    event_type: str = "X-GitHub-Event"
    delivery_id: str = "X-GitHub-Delivery"
    signature: str = "X-Hub-Signature-256"


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    """Raw outcome of a webhook delivery."""

    event_type: str
    delivery_id: str
    signature: str
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class SignedEventEmitter:
    """Build, sign and post synthetic GitHub events."""

    def __init__(
        self,
        *,
        events_url: str,
        secret: str,
        session: requests.Session,
        ids: IdGenerator | None = None,
        header_names: WebhookHeaderNames | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        if not events_url:
            raise ValueError("events_url is required")
        if not secret:
            raise ValueError("Webhook secret is required")

        self._events_url = events_url
        self._secret = secret
        self._session = session
        self._ids = ids or DEFAULT_IDS
        self._headers = header_names or WebhookHeaderNames()
        self._timeout = timeout_seconds

    @classmethod
    def for_portal(
        cls,
        *,
        base_url: str,
        secret: str,
        session: requests.Session,
        ids: IdGenerator | None = None,
    ) -> SignedEventEmitter:
        return cls(
            events_url=base_url.rstrip("/") + EVENTS_PATH,
            secret=secret,
            session=session,
            ids=ids,
        )

    @property
    def events_url(self) -> str:
        return self._events_url

    def send(self, event_type: str, payload: Any) -> DeliveryResult:
        """Sign ``payload`` and post it as ``event_type``.

        The signature is computed over the exact bytes sent as the body.
        """

        if not event_type.strip():
            raise ValueError("event_type is required")

        body = serialize_payload(payload)
        signature = compute_signature(self._secret, body)
        delivery_id = self._ids.delivery_id()

        headers = {
            "Accept": "*/*",
            "Content-Type": "application/json",
            "User-Agent": "GitHub-Hookshot/test",
            self._headers.delivery_id: delivery_id,
            self._headers.event_type: event_type,
            self._headers.signature: signature,
        }

        resp = self._session.post(
            self._events_url, data=body, headers=headers, timeout=self._timeout
        )
        logger.info(
            "Delivered webhook event",
            extra={
                "event_type": event_type,
                "delivery_id": delivery_id,
                "status_code": resp.status_code,
            },
        )
        return DeliveryResult(
            event_type=event_type,
            delivery_id=delivery_id,
            signature=signature,
            status_code=resp.status_code,
            body=resp.text,
        )

    def send_event(self, event: WebhookEvent) -> DeliveryResult:
        return self.send(event.event_type, event.payload)

    def send_push_event(
        self, repo: str, catalog_action: CatalogAction = "modified"
    ) -> DeliveryResult:
        return self.send("push", create_push_payload(repo, catalog_action, ids=self._ids))

    def send_team_event(self, action: TeamAction, team_name: str, org_name: str) -> DeliveryResult:
        return self.send("team", create_team_payload(action, team_name, org_name, ids=self._ids))

    def send_membership_event(
        self,
        action: MembershipAction,
        username: str,
        team_name: str,
        org_name: str,
    ) -> DeliveryResult:
        payload = create_membership_payload(action, username, team_name, org_name, ids=self._ids)
        return self.send("membership", payload)

    def send_ping(self) -> DeliveryResult:
        return self.send("ping", create_ping_payload(ids=self._ids))
