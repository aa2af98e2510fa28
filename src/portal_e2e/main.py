"""CLI entrypoint: deliver signed GitHub events to a portal by hand.

Useful when debugging the event ingestion endpoint outside a test run.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from portal_e2e import __version__
from portal_e2e.config import HarnessSettings, MissingSettingError
from portal_e2e.events.emitter import DeliveryResult
from portal_e2e.events.signing import compute_signature, verify_signature
from portal_e2e.logging import configure_logging
from portal_e2e.scenario import open_scenario

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portal-e2e",
        description="Send signed GitHub webhook events to a developer portal",
    )
    parser.add_argument("--version", action="version", version=f"portal-e2e-harness {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ping", help="Send a ping event (expects 202)")

    push = subparsers.add_parser("push", help="Send a push touching catalog-info.yaml")
    push.add_argument(
        "--repo",
        "--repository",
        dest="repository",
        required=True,
        help="Repository in the form 'owner/repo'",
    )
    push.add_argument(
        "--action",
        choices=["added", "modified", "removed"],
        default="modified",
        help="What happened to catalog-info.yaml",
    )

    team = subparsers.add_parser("team", help="Send a team created/deleted event")
    team.add_argument("--action", choices=["created", "deleted"], required=True)
    team.add_argument("--team", required=True, help="Team name (not slug)")
    team.add_argument("--org", default=None, help="Organization (defaults to GITHUB_ORG)")

    membership = subparsers.add_parser("membership", help="Send a team membership event")
    membership.add_argument("--action", choices=["added", "removed"], required=True)
    membership.add_argument("--user", required=True, help="GitHub login")
    membership.add_argument("--team", required=True, help="Team name (not slug)")
    membership.add_argument("--org", default=None, help="Organization (defaults to GITHUB_ORG)")

    sign = subparsers.add_parser("sign", help="Print the signature header for a payload")
    sign.add_argument("--file", type=Path, default=None, help="Payload file (default: stdin)")

    verify = subparsers.add_parser("verify", help="Check a signature against a payload")
    verify.add_argument("--file", type=Path, default=None, help="Payload file (default: stdin)")
    verify.add_argument("--signature", required=True, help="Value like 'sha256=<hex>'")

    return parser


def _read_body(path: Path | None) -> bytes:
    if path is None:
        return sys.stdin.buffer.read()
    return path.read_bytes()


def _report(result: DeliveryResult) -> int:
    print(f"{result.event_type} {result.delivery_id}: HTTP {result.status_code}")
    if result.body:
        print(result.body)
    return 0 if result.ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = HarnessSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, fmt=settings.log_format)

    try:
        if args.command == "sign":
            print(compute_signature(settings.require_webhook_secret(), _read_body(args.file)))
            return 0

        if args.command == "verify":
            body = _read_body(args.file)
            valid = verify_signature(settings.require_webhook_secret(), body, args.signature)
            print("valid" if valid else "invalid")
            return 0 if valid else 1

        with open_scenario(settings, with_github=False) as scenario:
            emitter = scenario.emitter
            org = getattr(args, "org", None) or settings.github_org

            if args.command == "ping":
                return _report(emitter.send_ping())

            if args.command == "push":
                return _report(emitter.send_push_event(args.repository, args.action))

            if args.command == "team":
                return _report(emitter.send_team_event(args.action, args.team, org))

            if args.command == "membership":
                return _report(
                    emitter.send_membership_event(args.action, args.user, args.team, org)
                )

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except MissingSettingError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
