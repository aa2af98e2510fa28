"""Synthetic GitHub webhook events: payload builders, signing and delivery."""

from portal_e2e.events.emitter import DeliveryResult, SignedEventEmitter, WebhookHeaderNames
from portal_e2e.events.ids import IdGenerator, SecureIdGenerator
from portal_e2e.events.payloads import (
    MembershipEvent,
    PingEvent,
    PushEvent,
    TeamEvent,
    WebhookEvent,
)
from portal_e2e.events.signing import compute_signature, verify_signature

__all__ = [
    "DeliveryResult",
    "IdGenerator",
    "MembershipEvent",
    "PingEvent",
    "PushEvent",
    "SecureIdGenerator",
    "SignedEventEmitter",
    "TeamEvent",
    "WebhookEvent",
    "WebhookHeaderNames",
    "compute_signature",
    "verify_signature",
]
