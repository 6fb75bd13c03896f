#!/usr/bin/env python3
"""Print a signed bearer token for local testing of the Jobly API."""

from __future__ import annotations

import argparse
from datetime import timedelta

from jobly.core.config import get_settings
from jobly.core.security import create_token


def render_token(*, username: str, admin: bool, expires_minutes: int | None) -> str:
    settings = get_settings()
    expires_delta = timedelta(minutes=expires_minutes) if expires_minutes else None
    return create_token(username, admin, settings, expires_delta=expires_delta)


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit a JWT signed with JOBLY_SECRET_KEY.")
    parser.add_argument("username", help="Username claim of the token")
    parser.add_argument("--admin", action="store_true", help="Set the isAdmin claim")
    parser.add_argument(
        "--expires-minutes",
        type=int,
        default=None,
        help="Lifetime of the token (defaults to JOBLY_ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    args = parser.parse_args()

    print(render_token(username=args.username, admin=args.admin, expires_minutes=args.expires_minutes))


if __name__ == "__main__":
    main()
