#!/usr/bin/env python3
"""Print the Microsoft Health profile for the owner of a refresh token."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

import structlog

from bex.client import BexClient
from bex.errors import BexError
from bex.get_auth import configure_logging, get_env_or_exit

logger = structlog.get_logger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Redeem a refresh token and print the Microsoft Health profile."
    )
    parser.add_argument(
        "--refresh-token",
        default=os.environ.get("BEX_REFRESH_TOKEN"),
        help="Refresh token issued with the offline_access scope "
        "(default: $BEX_REFRESH_TOKEN).",
    )
    parser.add_argument(
        "--show-credentials",
        action="store_true",
        help="Print the credentials issued by the refresh even when unchanged.",
    )
    return parser.parse_args()


async def fetch_profile(
    client_id: str, client_secret: str, refresh_token: str, show_credentials: bool
) -> None:
    async with BexClient(client_id, client_secret) as client:
        credentials = await client.exchange_code(refresh_token, is_refresh=True)
        profile = await client.get_profile()

    print(json.dumps(profile, indent=2))
    rotated = bool(credentials.refresh_token) and credentials.refresh_token != refresh_token
    if rotated:
        # Live ID rotates refresh tokens; keep the new one for the next run
        logger.warning("refresh_token_rotated", hint="store refresh_token printed below")
    if show_credentials or rotated:
        print(json.dumps(credentials.as_dict(), indent=2))


def main() -> None:
    args = parse_args()
    configure_logging()
    if not args.refresh_token:
        logger.error("refresh_token_missing", help="pass --refresh-token")
        sys.exit(1)

    client_id = get_env_or_exit("BEX_CLIENT_ID")
    client_secret = get_env_or_exit("BEX_CLIENT_SECRET")

    try:
        asyncio.run(
            fetch_profile(client_id, client_secret, args.refresh_token, args.show_credentials)
        )
    except BexError as exc:
        logger.error("microsoft_health_api_error", error=str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
