"""HMAC-SHA256 webhook signatures (``X-Hub-Signature-256`` format)."""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any

SIGNATURE_PREFIX = "sha256="


def serialize_payload(payload: Any) -> bytes:
    """Serialize a payload to the exact bytes that are signed and transmitted."""

    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def compute_signature(secret: str, body: bytes) -> str:
    if not secret:
        raise ValueError("Webhook secret is required")
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(secret: str, body: bytes, signature: str) -> bool:
    """Recompute the signature over ``body`` and compare in constant time."""

    if not secret or not signature.startswith(SIGNATURE_PREFIX):
        return False
    return hmac.compare_digest(compute_signature(secret, body), signature)
