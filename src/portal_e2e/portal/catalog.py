"""Read-only catalog lookups used as poll observations."""

from __future__ import annotations

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)


class CatalogApiError(Exception):
    """The catalog API answered with an unexpected status."""

    def __init__(self, message: str, *, status_code: int, reason: str = "") -> None:
        super().__init__(f"{message}: {status_code} {reason}".rstrip())
        self.status_code = status_code
        self.reason = reason


class CatalogClient:
    """Bearer-authenticated client for ``/api/catalog``."""

    def __init__(
        self,
        *,
        base_url: str,
        token: str,
        session: requests.Session,
        timeout_seconds: float = 30.0,
    ) -> None:
        if not token:
            raise ValueError("Portal token is required")
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._session = session
        self._timeout = timeout_seconds

    def _entity_url(self, kind: str, name: str, namespace: str) -> str:
        return (
            f"{self._base_url}/api/catalog/entities/by-name/"
            f"{kind.lower()}/{namespace}/{name}"
        )

    def _get(self, url: str) -> requests.Response:
        return self._session.get(
            url,
            headers={"Authorization": f"Bearer {self._token}"},
            timeout=self._timeout,
        )

    def get_entity(
        self, kind: str, name: str, *, namespace: str = "default"
    ) -> dict[str, Any] | None:
        """Return the entity, or None when the catalog does not know it."""

        resp = self._get(self._entity_url(kind, name, namespace))
        if resp.status_code == 404:
            return None
        if not resp.ok:
            raise CatalogApiError(
                f"Failed to get {kind.lower()} entity",
                status_code=resp.status_code,
                reason=resp.reason or "",
            )
        data = resp.json()
        if not isinstance(data, dict):
            raise CatalogApiError(
                f"Unexpected {kind.lower()} entity response", status_code=resp.status_code
            )
        return data

    def entity_exists(self, kind: str, name: str, *, namespace: str = "default") -> bool:
        return self.get_entity(kind, name, namespace=namespace) is not None

    def get_entity_description(
        self, kind: str, name: str, *, namespace: str = "default"
    ) -> str | None:
        entity = self.get_entity(kind, name, namespace=namespace)
        if entity is None:
            return None
        metadata = entity.get("metadata")
        if not isinstance(metadata, dict):
            return None
        description = metadata.get("description")
        return description if isinstance(description, str) else None

    def get_group_entity(self, group_name: str) -> dict[str, Any]:
        resp = self._get(self._entity_url("group", group_name, "default"))
        if not resp.ok:
            raise CatalogApiError(
                "Failed to get group entity",
                status_code=resp.status_code,
                reason=resp.reason or "",
            )
        data: dict[str, Any] = resp.json()
        return data

    def get_group_members(self, group_name: str) -> list[str]:
        """Return member names from the group's ``hasMember`` relations.

        ``targetRef`` looks like ``user:default/jdoe``; the name is the part after
        the slash.
        """

        entity = self.get_group_entity(group_name)
        relations = entity.get("relations")
        if not isinstance(relations, list):
            return []

        members: list[str] = []
        for relation in relations:
            if not isinstance(relation, dict) or relation.get("type") != "hasMember":
                continue
            target = relation.get("targetRef")
            if isinstance(target, str) and "/" in target:
                members.append(target.split("/", 1)[1])
        logger.debug("Group members", extra={"group": group_name, "members": members})
        return members
