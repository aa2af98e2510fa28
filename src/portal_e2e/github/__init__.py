"""GitHub API access for scenario setup and teardown."""

from portal_e2e.github.client import GitHubAdminClient, GitHubApiError

__all__ = ["GitHubAdminClient", "GitHubApiError"]
