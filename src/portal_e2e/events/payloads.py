"""Synthetic GitHub webhook payloads.

Builders are pure constructors: they own no external state and only draw
identifiers from the injected :class:`~portal_e2e.events.ids.IdGenerator`.

Each event kind has its own frozen dataclass carrying the ``event_type``
discriminator sent in the event-type header.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar, Literal, get_args

from portal_e2e.events.ids import DEFAULT_IDS, IdGenerator

CatalogAction = Literal["added", "modified", "removed"]
TeamAction = Literal["created", "deleted"]
MembershipAction = Literal["added", "removed"]

CATALOG_FILE = "catalog-info.yaml"
ZERO_SHA = "0" * 40

_COMMIT_MESSAGES: dict[str, str] = {
    "added": f"Add {CATALOG_FILE}",
    "modified": f"Update {CATALOG_FILE}",
    "removed": f"Remove {CATALOG_FILE}",
}

_WHITESPACE_RE = re.compile(r"\s+")

Payload = dict[str, Any]


@dataclass(frozen=True, slots=True)
class PushEvent:
    event_type: ClassVar[str] = "push"
    payload: Payload = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TeamEvent:
    event_type: ClassVar[str] = "team"
    payload: Payload = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MembershipEvent:
    event_type: ClassVar[str] = "membership"
    payload: Payload = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PingEvent:
    event_type: ClassVar[str] = "ping"
    payload: Payload = field(default_factory=dict)


WebhookEvent = PushEvent | TeamEvent | MembershipEvent | PingEvent


def team_slug(team_name: str) -> str:
    """Return GitHub's slug for a team name ("QE Team" -> "qe-team")."""

    return _WHITESPACE_RE.sub("-", team_name.lower())


def _iso(now: datetime) -> str:
    # Millisecond precision with a trailing "Z", as GitHub sends it.
    return now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _split_repo(repo: str) -> tuple[str, str]:
    owner, sep, name = repo.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"Repository must be in the form 'owner/repo': {repo!r}")
    return owner, name


def _check_action(action: str, allowed: object) -> None:
    choices = get_args(allowed)
    if action not in choices:
        raise ValueError(f"Unsupported action {action!r}; expected one of {list(choices)}")


def _user(login: str, user_id: int, ids: IdGenerator) -> Payload:
    return {
        "login": login,
        "id": user_id,
        "node_id": ids.node_id("U"),
        "avatar_url": f"https://avatars.githubusercontent.com/u/{user_id}?v=4",
        "gravatar_id": "",
        "url": f"https://api.github.com/users/{login}",
        "html_url": f"https://github.com/{login}",
        "type": "User",
        "user_view_type": "public",
        "site_admin": False,
    }


def _member_profile(login: str, user_id: int, ids: IdGenerator) -> Payload:
    api = f"https://api.github.com/users/{login}"
    # Key order follows GitHub's user object.
    return {
        "login": login,
        "id": user_id,
        "node_id": ids.node_id("U"),
        "avatar_url": f"https://avatars.githubusercontent.com/u/{user_id}?v=4",
        "gravatar_id": "",
        "url": api,
        "html_url": f"https://github.com/{login}",
        "followers_url": f"{api}/followers",
        "following_url": f"{api}/following{{/other_user}}",
        "gists_url": f"{api}/gists{{/gist_id}}",
        "starred_url": f"{api}/starred{{/owner}}{{/repo}}",
        "subscriptions_url": f"{api}/subscriptions",
        "organizations_url": f"{api}/orgs",
        "repos_url": f"{api}/repos",
        "events_url": f"{api}/events{{/privacy}}",
        "received_events_url": f"{api}/received_events",
        "type": "User",
        "user_view_type": "public",
        "site_admin": False,
    }


def _organization(org_name: str, org_id: int, ids: IdGenerator) -> Payload:
    api = f"https://api.github.com/orgs/{org_name}"
    return {
        "login": org_name,
        "id": org_id,
        "node_id": ids.node_id("O"),
        "url": api,
        "repos_url": f"{api}/repos",
        "events_url": f"{api}/events",
        "hooks_url": f"{api}/hooks",
        "issues_url": f"{api}/issues",
        "members_url": f"{api}/members{{/member}}",
        "public_members_url": f"{api}/public_members{{/member}}",
        "avatar_url": f"https://avatars.githubusercontent.com/u/{org_id}?v=4",
        "description": None,
    }


def _team(team_name: str, team_id: int, org_id: int, org_name: str, ids: IdGenerator) -> Payload:
    slug = team_slug(team_name)
    api = f"https://api.github.com/organizations/{org_id}/team/{team_id}"
    return {
        "name": team_name,
        "id": team_id,
        "node_id": ids.node_id("T"),
        "slug": slug,
        "description": "",
        "privacy": "closed",
        "notification_setting": "notifications_enabled",
        "url": api,
        "html_url": f"https://github.com/orgs/{org_name}/teams/{slug}",
        "members_url": f"{api}/members{{/member}}",
        "repositories_url": f"{api}/repos",
        "type": "organization",
        "organization_id": org_id,
        "permission": "pull",
        "parent": None,
    }


def _commit(
    repo: str,
    message: str,
    *,
    added: list[str],
    removed: list[str],
    modified: list[str],
    ids: IdGenerator,
    timestamp: str,
) -> Payload:
    commit_id = ids.hex_id(40)
    return {
        "id": commit_id,
        "tree_id": ids.hex_id(40),
        "distinct": True,
        "message": message,
        "timestamp": timestamp,
        "url": f"https://github.com/{repo}/commit/{commit_id}",
        "author": {
            "name": "Test User",
            "email": "test@example.com",
            "date": timestamp,
            "username": "test-user",
        },
        "committer": {
            "name": "GitHub",
            "email": "noreply@github.com",
            "date": timestamp,
            "username": "web-flow",
        },
        "added": added,
        "removed": removed,
        "modified": modified,
    }


def create_push_payload(
    repo: str,
    catalog_action: CatalogAction = "modified",
    *,
    ids: IdGenerator | None = None,
    now: datetime | None = None,
) -> Payload:
    """Build a push payload touching only ``catalog-info.yaml``.

    ``created`` is true iff the file was added and ``deleted`` iff it was removed.
    Exactly one of the commit's added/removed/modified lists is non-empty.
    """

    _check_action(catalog_action, CatalogAction)
    ids = ids or DEFAULT_IDS
    owner, name = _split_repo(repo)
    full_name = f"{owner}/{name}"
    timestamp = _iso(now or datetime.now(UTC))

    commit = _commit(
        full_name,
        _COMMIT_MESSAGES[catalog_action],
        added=[CATALOG_FILE] if catalog_action == "added" else [],
        removed=[CATALOG_FILE] if catalog_action == "removed" else [],
        modified=[CATALOG_FILE] if catalog_action == "modified" else [],
        ids=ids,
        timestamp=timestamp,
    )
    after = ids.hex_id(40)

    return {
        "ref": "refs/heads/main",
        "before": ZERO_SHA,
        "after": after,
        "repository": {
            "id": ids.numeric_id(1_000_000),
            "node_id": ids.node_id("R"),
            "name": name,
            "full_name": full_name,
            "private": False,
            "owner": {
                "name": owner,
                "login": owner,
                "id": ids.numeric_id(100_000),
                "node_id": ids.node_id("U"),
                "avatar_url": f"https://avatars.githubusercontent.com/u/{ids.numeric_id(100_000)}",
                "type": "Organization",
            },
            "html_url": f"https://github.com/{full_name}",
            "description": f"Test repository {name}",
            "url": f"https://api.github.com/repos/{full_name}",
            "default_branch": "main",
            "topics": [],
            "archived": False,
            "fork": False,
            "visibility": "public",
        },
        "pusher": {"name": "test-user", "email": "test@example.com"},
        "organization": {
            "login": owner,
            "id": ids.numeric_id(100_000),
            "node_id": ids.node_id("O"),
            "url": f"https://api.github.com/orgs/{owner}",
            "avatar_url": f"https://avatars.githubusercontent.com/u/{ids.numeric_id(100_000)}",
        },
        "sender": {"login": "test-user", "id": ids.numeric_id(100_000), "type": "User"},
        "created": catalog_action == "added",
        "deleted": catalog_action == "removed",
        "forced": False,
        "base_ref": None,
        "compare": f"https://github.com/{full_name}/compare/{ZERO_SHA[:12]}...{after[:12]}",
        "commits": [commit],
        "head_commit": commit,
    }


def create_team_payload(
    action: TeamAction,
    team_name: str,
    org_name: str,
    *,
    ids: IdGenerator | None = None,
) -> Payload:
    _check_action(action, TeamAction)
    if not team_name.strip():
        raise ValueError("team_name is required")
    ids = ids or DEFAULT_IDS
    org_id = ids.numeric_id(1_000_000)
    team_id = ids.numeric_id(100_000_000)
    return {
        "action": action,
        "team": _team(team_name, team_id, org_id, org_name, ids),
        "organization": _organization(org_name, org_id, ids),
        "sender": _user("test-user", ids.numeric_id(100_000), ids),
    }


def create_membership_payload(
    action: MembershipAction,
    username: str,
    team_name: str,
    org_name: str,
    *,
    ids: IdGenerator | None = None,
) -> Payload:
    _check_action(action, MembershipAction)
    if not username.strip():
        raise ValueError("username is required")
    if not team_name.strip():
        raise ValueError("team_name is required")
    ids = ids or DEFAULT_IDS
    org_id = ids.numeric_id(1_000_000)
    team_id = ids.numeric_id(100_000_000)
    user_id = ids.numeric_id(1_000_000)
    return {
        "action": action,
        "scope": "team",
        "member": _member_profile(username, user_id, ids),
        "sender": _user("test-admin", ids.numeric_id(100_000), ids),
        "team": _team(team_name, team_id, org_id, org_name, ids),
        "organization": _organization(org_name, org_id, ids),
    }


def create_ping_payload(
    *,
    repo: str = "test/repo",
    org_name: str = "test-org",
    ids: IdGenerator | None = None,
) -> Payload:
    ids = ids or DEFAULT_IDS
    return {
        "zen": "Test Payload.",
        "hook_id": ids.numeric_id(1_000_000),
        "repository": {"full_name": repo},
        "organization": {"login": org_name},
    }


def push_event(
    repo: str,
    catalog_action: CatalogAction = "modified",
    *,
    ids: IdGenerator | None = None,
) -> PushEvent:
    return PushEvent(payload=create_push_payload(repo, catalog_action, ids=ids))


def team_event(
    action: TeamAction, team_name: str, org_name: str, *, ids: IdGenerator | None = None
) -> TeamEvent:
    return TeamEvent(payload=create_team_payload(action, team_name, org_name, ids=ids))


def membership_event(
    action: MembershipAction,
    username: str,
    team_name: str,
    org_name: str,
    *,
    ids: IdGenerator | None = None,
) -> MembershipEvent:
    return MembershipEvent(
        payload=create_membership_payload(action, username, team_name, org_name, ids=ids)
    )


def ping_event(*, ids: IdGenerator | None = None) -> PingEvent:
    return PingEvent(payload=create_ping_payload(ids=ids))
