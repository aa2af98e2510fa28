#!/usr/bin/env python3
"""Team membership round trip against a live portal.

This demonstrates using the harness components directly:

* create a GitHub team and announce it with a signed ``team`` event
* add a user to the team and announce it with a signed ``membership`` event
* poll the catalog until the group lists the user
* clean up (idempotent deletes)

The portal token must come from an already logged-in session (login flows are
outside this harness); pass it with ``--portal-token``.
"""

from __future__ import annotations

import argparse
import time
from typing import Sequence

from portal_e2e.config import HarnessSettings
from portal_e2e.logging import configure_logging
from portal_e2e.polling import contains, poll_until
from portal_e2e.portal.catalog import CatalogApiError
from portal_e2e.scenario import open_scenario


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check team membership ingestion end to end.")
    parser.add_argument("--user", required=True, help="GitHub login to add to the team")
    parser.add_argument("--portal-token", required=True, help="Portal bearer token")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = HarnessSettings()
    configure_logging(settings.log_level, fmt=settings.log_format)
    org = settings.github_org
    team_name = f"test-team-{int(time.time() * 1000)}"

    with open_scenario(settings) as scenario:
        assert scenario.github is not None
        catalog = scenario.catalog(args.portal_token)

        scenario.github.create_team(org=org, team_name=team_name)
        try:
            scenario.emitter.send_team_event("created", team_name, org)

            scenario.github.add_user_to_team(org=org, team_name=team_name, username=args.user)
            scenario.emitter.send_membership_event("added", args.user, team_name, org)

            poll_until(
                lambda: catalog.get_group_members(team_name),
                contains(args.user),
                timeout=settings.poll_timeout_seconds,
                intervals=[settings.membership_poll_interval_seconds],
                message="User should be added to group",
                cancel=scenario.cancel,
                retry_on=(CatalogApiError,),
            )
            print(f"{args.user} is a member of {team_name}")
        finally:
            scenario.github.remove_user_from_team(org=org, team_name=team_name, username=args.user)
            scenario.github.delete_team(org=org, team_name=team_name)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
