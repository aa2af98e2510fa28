"""Unit tests for signed webhook delivery (mocked session)."""

from __future__ import annotations

import hashlib
import hmac
import json
from unittest.mock import Mock

import pytest
import requests

from portal_e2e.events.emitter import SignedEventEmitter, WebhookHeaderNames
from portal_e2e.events.payloads import team_event
from portal_e2e.events.signing import compute_signature, serialize_payload, verify_signature


def _emitter(session: Mock, ids) -> SignedEventEmitter:
    return SignedEventEmitter.for_portal(
        base_url="https://portal.example.test/",
        secret="test-secret",
        session=session,
        ids=ids,
    )


def _sent(session: Mock) -> tuple[str, bytes, dict[str, str]]:
    call = session.post.call_args
    return call.args[0], call.kwargs["data"], call.kwargs["headers"]


def test_send_signs_exact_transmitted_bytes(session: Mock, ids, make_response) -> None:
    """Test the signature covers the exact bytes posted."""
    session.post.return_value = make_response(202, text="")
    emitter = _emitter(session, ids)

    result = emitter.send_push_event("org/repo", "added")

    url, body, headers = _sent(session)
    assert url == "https://portal.example.test/api/events/http/github"

    expected = "sha256=" + hmac.new(b"test-secret", body, hashlib.sha256).hexdigest()
    assert headers["X-Hub-Signature-256"] == expected
    assert result.signature == expected
    assert verify_signature("test-secret", body, headers["X-Hub-Signature-256"])

    assert headers["X-GitHub-Event"] == "push"
    assert headers["Content-Type"] == "application/json"
    assert headers["X-GitHub-Delivery"] == result.delivery_id
    assert json.loads(body)["created"] is True


def test_every_delivery_gets_a_fresh_id(session: Mock, make_response) -> None:
    """Test each delivery carries a new delivery id."""
    session.post.return_value = make_response(202)
    emitter = SignedEventEmitter(
        events_url="https://portal.example.test/api/events/http/github",
        secret="s",
        session=session,
    )

    first = emitter.send_ping()
    second = emitter.send_ping()

    assert first.delivery_id != second.delivery_id


def test_non_2xx_is_returned_not_raised(session: Mock, ids, make_response) -> None:
    """Test rejected deliveries are reported, not raised."""
    session.post.return_value = make_response(401, text="signature mismatch")
    emitter = _emitter(session, ids)

    result = emitter.send_team_event("created", "QE Team", "janus-qe")

    assert result.status_code == 401
    assert result.body == "signature mismatch"
    assert result.ok is False


def test_transport_errors_propagate(session: Mock, ids) -> None:
    session.post.side_effect = requests.ConnectionError("refused")
    emitter = _emitter(session, ids)

    with pytest.raises(requests.ConnectionError):
        emitter.send_ping()


def test_send_event_uses_variant_discriminator(session: Mock, ids, make_response) -> None:
    session.post.return_value = make_response(202)
    emitter = _emitter(session, ids)

    event = team_event("deleted", "QE Team", "janus-qe", ids=ids)
    result = emitter.send_event(event)

    _, body, headers = _sent(session)
    assert headers["X-GitHub-Event"] == "team"
    assert result.event_type == "team"
    assert body == serialize_payload(event.payload)


def test_membership_event_body(session: Mock, ids, make_response) -> None:
    session.post.return_value = make_response(202)
    emitter = _emitter(session, ids)

    emitter.send_membership_event("added", "rhdh-qe", "QE Team", "janus-qe")

    _, body, headers = _sent(session)
    payload = json.loads(body)
    assert headers["X-GitHub-Event"] == "membership"
    assert payload["member"]["login"] == "rhdh-qe"
    assert payload["team"]["slug"] == "qe-team"


def test_custom_header_names(session: Mock, ids, make_response) -> None:
    """Test header names can be overridden."""
    session.post.return_value = make_response(202)
    emitter = SignedEventEmitter(
        events_url="https://portal.example.test/api/events/http/github",
        secret="test-secret",
        session=session,
        ids=ids,
        header_names=WebhookHeaderNames(
            event_type="X-Event-Type", delivery_id="X-Delivery-Id", signature="X-Signature-256"
        ),
    )

    emitter.send("ping", {"zen": "hi"})

    _, body, headers = _sent(session)
    assert headers["X-Event-Type"] == "ping"
    assert headers["X-Signature-256"] == compute_signature("test-secret", body)
    assert "X-Delivery-Id" in headers


def test_empty_secret_is_rejected(session: Mock) -> None:
    with pytest.raises(ValueError):
        SignedEventEmitter(events_url="https://x/api/events/http/github", secret="", session=session)


def test_verify_signature_rejects_tampering() -> None:
    body = serialize_payload({"a": 1})
    signature = compute_signature("k", body)

    assert verify_signature("k", body, signature)
    assert not verify_signature("k", body + b" ", signature)
    assert not verify_signature("other", body, signature)
    assert not verify_signature("k", body, signature.removeprefix("sha256="))
