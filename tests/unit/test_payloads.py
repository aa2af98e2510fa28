"""Unit tests for synthetic webhook payload builders."""

from __future__ import annotations

import re
from datetime import UTC, datetime

import pytest

from portal_e2e.events.ids import SecureIdGenerator
from portal_e2e.events.payloads import (
    CATALOG_FILE,
    MembershipEvent,
    PushEvent,
    TeamEvent,
    create_membership_payload,
    create_ping_payload,
    create_push_payload,
    create_team_payload,
    membership_event,
    push_event,
    team_event,
    team_slug,
)

_HEX40 = re.compile(r"^[0-9a-f]{40}$")


@pytest.mark.parametrize("action", ["added", "modified", "removed"])
def test_push_payload_flags_follow_catalog_action(action: str) -> None:
    payload = create_push_payload("org/repo", action)  # type: ignore[arg-type]

    assert payload["created"] is (action == "added")
    assert payload["deleted"] is (action == "removed")
    assert payload["forced"] is False

    commit = payload["commits"][0]
    non_empty = [key for key in ("added", "removed", "modified") if commit[key]]
    assert non_empty == [action]
    assert commit[action] == [CATALOG_FILE]


def test_push_payload_added_scenario() -> None:
    payload = create_push_payload("org/repo", "added")

    assert payload["created"] is True
    assert payload["deleted"] is False
    assert payload["commits"][0]["added"] == ["catalog-info.yaml"]
    assert payload["commits"][0]["removed"] == []
    assert payload["commits"][0]["modified"] == []
    assert payload["commits"][0]["message"] == "Add catalog-info.yaml"


def test_push_payload_repository_identity_and_commit_ids() -> None:
    payload = create_push_payload("janus-qe/my-repo")

    repo = payload["repository"]
    assert repo["name"] == "my-repo"
    assert repo["full_name"] == "janus-qe/my-repo"
    assert repo["owner"]["login"] == "janus-qe"
    assert repo["html_url"] == "https://github.com/janus-qe/my-repo"
    assert payload["organization"]["login"] == "janus-qe"
    assert payload["ref"] == "refs/heads/main"
    assert payload["before"] == "0" * 40

    assert _HEX40.match(payload["after"])
    commit = payload["commits"][0]
    assert _HEX40.match(commit["id"])
    assert commit["url"] == f"https://github.com/janus-qe/my-repo/commit/{commit['id']}"
    assert payload["head_commit"] is commit


def test_push_payload_uses_injected_ids_and_clock(ids) -> None:
    now = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)

    first = create_push_payload("org/repo", "modified", ids=ids, now=now)

    assert first["commits"][0]["timestamp"] == "2025-01-02T03:04:05.000Z"
    assert first["commits"][0]["author"]["date"] == "2025-01-02T03:04:05.000Z"
    assert first["commits"][0]["id"] == f"{1:040x}"
    assert first["repository"]["node_id"].startswith("R_")


@pytest.mark.parametrize("repo", ["repo", "/repo", "org/", "a/b/c", ""])
def test_push_payload_rejects_malformed_repository(repo: str) -> None:
    with pytest.raises(ValueError):
        create_push_payload(repo)


def test_push_payload_rejects_unknown_action() -> None:
    with pytest.raises(ValueError, match="Unsupported action"):
        create_push_payload("org/repo", "renamed")  # type: ignore[arg-type]


def test_team_payload_slug_scenario() -> None:
    payload = create_team_payload("created", "QE Team", "org")

    assert payload["team"]["slug"] == "qe-team"
    assert payload["action"] == "created"


@pytest.mark.parametrize(
    ("name", "slug"),
    [
        ("QE Team", "qe-team"),
        ("test-team-123", "test-team-123"),
        ("Platform   Core\tOps", "platform-core-ops"),
    ],
)
def test_team_slug(name: str, slug: str) -> None:
    assert team_slug(name) == slug


def test_team_payload_links_team_and_organization() -> None:
    payload = create_team_payload("deleted", "QE Team", "janus-qe")

    team = payload["team"]
    org = payload["organization"]
    assert team["organization_id"] == org["id"]
    assert team["url"] == f"https://api.github.com/organizations/{org['id']}/team/{team['id']}"
    assert team["html_url"] == "https://github.com/orgs/janus-qe/teams/qe-team"
    assert team["node_id"].startswith("T_")
    assert len(team["node_id"]) == 22
    assert org["node_id"].startswith("O_")
    assert org["members_url"] == "https://api.github.com/orgs/janus-qe/members{/member}"
    assert org["description"] is None
    assert payload["sender"]["login"] == "test-user"


def test_team_payload_rejects_unknown_action() -> None:
    with pytest.raises(ValueError):
        create_team_payload("renamed", "QE Team", "org")  # type: ignore[arg-type]


def test_membership_payload_composes_member_team_and_org() -> None:
    payload = create_membership_payload("added", "rhdh-qe", "QE Team", "janus-qe")

    assert payload["action"] == "added"
    assert payload["scope"] == "team"

    member = payload["member"]
    assert member["login"] == "rhdh-qe"
    assert member["url"] == "https://api.github.com/users/rhdh-qe"
    assert member["following_url"] == "https://api.github.com/users/rhdh-qe/following{/other_user}"
    assert member["starred_url"] == "https://api.github.com/users/rhdh-qe/starred{/owner}{/repo}"
    assert member["avatar_url"] == f"https://avatars.githubusercontent.com/u/{member['id']}?v=4"

    assert payload["team"]["slug"] == "qe-team"
    assert payload["team"]["organization_id"] == payload["organization"]["id"]
    assert payload["sender"]["login"] == "test-admin"


def test_membership_payload_rejects_removed_typo() -> None:
    with pytest.raises(ValueError):
        create_membership_payload("deleted", "u", "t", "o")  # type: ignore[arg-type]


def test_random_identifiers_are_unique_per_call() -> None:
    payloads = [create_team_payload("created", "QE Team", "org") for _ in range(50)]

    node_ids = {p["team"]["node_id"] for p in payloads}
    assert len(node_ids) == 50

    commits = {create_push_payload("org/repo")["after"] for _ in range(50)}
    assert len(commits) == 50


def test_secure_id_generator_shapes() -> None:
    gen = SecureIdGenerator()

    assert 1 <= gen.numeric_id(10) < 10
    assert _HEX40.match(gen.hex_id())
    assert len(gen.hex_id(7)) == 7
    assert re.match(r"^U_[0-9a-f]{20}$", gen.node_id("U"))
    assert len(gen.delivery_id()) == 36


def test_event_constructors_carry_discriminator(ids) -> None:
    assert isinstance(push_event("org/repo", ids=ids), PushEvent)
    assert push_event("org/repo", ids=ids).event_type == "push"
    assert team_event("created", "t", "o", ids=ids).event_type == "team"
    assert isinstance(team_event("created", "t", "o", ids=ids), TeamEvent)
    event = membership_event("removed", "u", "t", "o", ids=ids)
    assert isinstance(event, MembershipEvent)
    assert event.event_type == "membership"
    assert event.payload["action"] == "removed"


def test_ping_payload_shape(ids) -> None:
    payload = create_ping_payload(ids=ids)

    assert payload["zen"] == "Test Payload."
    assert payload["repository"] == {"full_name": "test/repo"}
    assert payload["organization"] == {"login": "test-org"}
