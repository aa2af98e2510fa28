"""GitHub REST calls used to mutate external state before an event is emitted.

This wraps PyGithub so scenario code never talks to the API directly and tests
can inject a mocked ``Github`` instance.

Whether a 404 counts as success is decided per operation (see
``NOT_FOUND_TOLERATED``): deletes are idempotent, creates and additions are not.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from github import Auth, Github, GithubException

from portal_e2e.events.payloads import team_slug

logger = logging.getLogger(__name__)

T = TypeVar("T")

NOT_FOUND_TOLERATED: dict[str, bool] = {
    "create repository": False,
    "create file": False,
    "get file": False,
    "update file": False,
    "delete file": True,
    "delete repository": True,
    "create team": False,
    "delete team": True,
    "add user to team": False,
    "remove user from team": True,
}

REPO_SETTLE_SECONDS = 2.0


class GitHubApiError(Exception):
    """A GitHub call returned an unexpected status."""

    def __init__(self, *, operation: str, status: int | None, body: str) -> None:
        super().__init__(f"Failed to {operation}: {status} {body}")
        self.operation = operation
        self.status = status
        self.body = body


def _render_body(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    try:
        return json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


class GitHubAdminClient:
    """Repository, file, team and membership operations for test scenarios."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.github.com",
        github_api: Github | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")

        self._sleep = sleep
        if github_api is not None:
            self._github = github_api
            logger.debug("Using injected Github instance")
            return

        self._github = Github(auth=Auth.Token(token), base_url=base_url.rstrip("/"))

    def _call(self, operation: str, fn: Callable[[], T]) -> T | None:
        try:
            return fn()
        except GithubException as exc:
            if exc.status == 404 and NOT_FOUND_TOLERATED[operation]:
                logger.info(
                    "GitHub resource already absent",
                    extra={"operation": operation},
                )
                return None
            raise GitHubApiError(
                operation=operation, status=exc.status, body=_render_body(exc.data)
            ) from exc

    def create_repo_with_file(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        content: str,
    ) -> None:
        """Create a public, auto-initialised org repository holding one file."""

        created = self._call(
            "create repository",
            lambda: self._github.get_organization(owner).create_repo(
                repo, private=False, auto_init=True
            ),
        )
        logger.info("Created repository", extra={"repo": f"{owner}/{repo}"})

        # The contents API can 404 right after repository creation.
        self._sleep(REPO_SETTLE_SECONDS)

        self._call(
            "create file",
            lambda: created.create_file(path, f"Add {path}", content),
        )
        logger.info("Created file", extra={"repo": f"{owner}/{repo}", "path": path})

    def update_file(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
    ) -> None:
        repository = self._call("get file", lambda: self._github.get_repo(f"{owner}/{repo}"))
        current = self._call("get file", lambda: repository.get_contents(path))
        self._call(
            "update file",
            lambda: repository.update_file(path, message, content, current.sha),
        )
        logger.info("Updated file", extra={"repo": f"{owner}/{repo}", "path": path})

    def delete_file(self, *, owner: str, repo: str, path: str, message: str) -> None:
        repository = self._call("delete file", lambda: self._github.get_repo(f"{owner}/{repo}"))
        if repository is None:
            return
        current = self._call("delete file", lambda: repository.get_contents(path))
        if current is None:
            logger.info(
                "File already deleted or does not exist",
                extra={"repo": f"{owner}/{repo}", "path": path},
            )
            return
        self._call(
            "delete file",
            lambda: repository.delete_file(path, message, current.sha),
        )
        logger.info("Deleted file", extra={"repo": f"{owner}/{repo}", "path": path})

    def delete_repo(self, *, owner: str, repo: str) -> None:
        repository = self._call(
            "delete repository", lambda: self._github.get_repo(f"{owner}/{repo}")
        )
        if repository is None:
            return
        self._call("delete repository", repository.delete)
        logger.info("Deleted repository", extra={"repo": f"{owner}/{repo}"})

    def create_team(self, *, org: str, team_name: str) -> None:
        self._call(
            "create team",
            lambda: self._github.get_organization(org).create_team(team_name, privacy="closed"),
        )
        logger.info("Created team", extra={"org": org, "team": team_name})

    def delete_team(self, *, org: str, team_name: str) -> None:
        team = self._call(
            "delete team",
            lambda: self._github.get_organization(org).get_team_by_slug(team_slug(team_name)),
        )
        if team is None:
            return
        self._call("delete team", team.delete)
        logger.info("Deleted team", extra={"org": org, "team": team_name})

    def add_user_to_team(self, *, org: str, team_name: str, username: str) -> None:
        def _add() -> None:
            team = self._github.get_organization(org).get_team_by_slug(team_slug(team_name))
            team.add_membership(self._github.get_user(username), role="member")

        self._call("add user to team", _add)
        logger.info("Added user to team", extra={"org": org, "team": team_name, "user": username})

    def remove_user_from_team(self, *, org: str, team_name: str, username: str) -> None:
        def _remove() -> None:
            team = self._github.get_organization(org).get_team_by_slug(team_slug(team_name))
            team.remove_membership(self._github.get_user(username))

        self._call("remove user from team", _remove)
        logger.info(
            "Removed user from team", extra={"org": org, "team": team_name, "user": username}
        )
