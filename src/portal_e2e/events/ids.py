"""Identifier sources for synthetic webhook payloads.

Fixtures key catalog lookups by these values within a short time window, so the
default generator draws from the CSPRNG. Tests inject a deterministic generator.
"""

from __future__ import annotations

import secrets
import uuid
from typing import Protocol


class IdGenerator(Protocol):
    def numeric_id(self, upper: int) -> int: ...

    def node_id(self, prefix: str) -> str: ...

    def hex_id(self, length: int = 40) -> str: ...

    def delivery_id(self) -> str: ...


class SecureIdGenerator:
    """Default generator backed by :mod:`secrets`."""

    def numeric_id(self, upper: int) -> int:
        if upper <= 1:
            raise ValueError("upper must be > 1")
        # GitHub ids are never zero.
        return 1 + secrets.randbelow(upper - 1)

    def node_id(self, prefix: str) -> str:
        """Return a GitHub-shaped node id such as ``T_1f0c...`` (20 chars after the prefix)."""

        return f"{prefix}_{secrets.token_hex(10)}"

    def hex_id(self, length: int = 40) -> str:
        if length <= 0:
            raise ValueError("length must be > 0")
        return secrets.token_hex((length + 1) // 2)[:length]

    def delivery_id(self) -> str:
        return str(uuid.uuid4())


DEFAULT_IDS: IdGenerator = SecureIdGenerator()
