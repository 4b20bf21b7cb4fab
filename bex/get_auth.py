"""Microsoft Health OAuth2 authorization helper utilities."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import List, Optional, Sequence
from urllib.parse import parse_qs, urlparse

import structlog

from .client import BexClient
from .errors import BexError
from .scopes import Scope

__all__ = [
    "DEFAULT_SCOPES",
    "configure_logging",
    "extract_code",
    "get_env_or_exit",
    "main",
    "parse_args",
]

logger = structlog.get_logger()

# Profile for basic user info, activity history for the recorded activities and
# offline access so that a refresh token is issued
DEFAULT_SCOPES = [Scope.READ_PROFILE, Scope.READ_ACTIVITY_HISTORY, Scope.OFFLINE_ACCESS]

APP_REGISTRATION_URL = "https://account.live.com/developers/applications"


def configure_logging() -> None:
    """Render log events as coloured console lines with ISO timestamps."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ]
    )


def get_env_or_exit(var_name: str) -> str:
    """Return a Live ID app setting from the environment.

    The client id and secret come from the application registered at
    ``APP_REGISTRATION_URL``; without them no token can be issued, so a
    missing value ends the program with status 1.
    """
    value = os.environ.get(var_name)
    if not value:
        logger.error(
            "missing_app_setting",
            variable=var_name,
            help=f"export {var_name} with the value from {APP_REGISTRATION_URL}",
        )
        sys.exit(1)
    return value


def extract_code(callback_url: str) -> str:
    """Return the authorization code carried by the redirect URL.

    Raises:
        SystemExit: If the URL reports an error or carries no code.
    """
    query_params = parse_qs(urlparse(callback_url).query)

    if "error" in query_params:
        error = query_params["error"][0]
        error_description = query_params.get("error_description", ["Unknown error"])[0]
        logger.error(
            "Authorization failed",
            error=error,
            description=error_description,
        )
        sys.exit(1)

    if "code" not in query_params:
        logger.error("No authorization code found in callback URL")
        sys.exit(1)

    return query_params["code"][0]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sign in to Microsoft Health and print the issued tokens."
    )
    parser.add_argument(
        "--scope",
        dest="scopes",
        action="append",
        choices=[scope.value for scope in Scope],
        help="Scope to request; repeat for several (default: profile, "
        "activity history and offline access).",
    )
    parser.add_argument(
        "--sign-out",
        action="store_true",
        help="Print the Live ID sign-out URL and exit.",
    )
    return parser.parse_args(argv)


async def _authorize(client: BexClient, scopes: List[Scope]) -> None:
    # Live ID redirects desktop apps to a blank page, so we ask the user to
    # copy/paste the redirect URL instead of running a local web server.
    print("\n" + "=" * 80)
    print("STEP 1: Visit the following URL to authorize the application:")
    print("=" * 80)
    print(f"\n{client.build_authorization_url(scopes)}\n")
    print("=" * 80)

    print("\nSTEP 2: After authorizing, you'll be redirected to a blank page.")
    print("Copy the entire URL from your browser and paste it here.")
    callback_url = input("\nPaste the callback URL here: ").strip()

    if not callback_url:
        logger.error("No callback URL provided")
        sys.exit(1)

    auth_code = extract_code(callback_url)
    logger.info("Authorization code received", code=auth_code[:10] + "...")

    credentials = await client.exchange_code(auth_code)

    print("\n" + "=" * 80)
    print("SUCCESS! Access token received:")
    print("=" * 80)
    print(json.dumps(credentials.as_dict(), indent=2))
    if not credentials.refresh_token:
        print("\nNo refresh token issued; request the offline_access scope to get one.")
    print("\n" + "=" * 80)

    profile = await client.get_profile()
    print("Profile:")
    print(json.dumps(profile, indent=2))


async def _run(args: argparse.Namespace) -> None:
    client_id = get_env_or_exit("BEX_CLIENT_ID")
    client_secret = get_env_or_exit("BEX_CLIENT_SECRET")

    async with BexClient(client_id, client_secret) as client:
        if args.sign_out:
            print(client.build_sign_out_url())
            return

        scopes = [Scope(value) for value in args.scopes] if args.scopes else DEFAULT_SCOPES
        logger.info(
            "Using configuration",
            client_id=client_id[:8] + "...",
            redirect_uri=client.redirect_uri,
            scopes=[scope.description for scope in scopes],
        )
        await _authorize(client, scopes)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run the Microsoft Health OAuth2 authorization flow tool"""
    args = parse_args(argv)
    configure_logging()
    logger.info("Starting Microsoft Health OAuth2 Flow Helper")

    try:
        asyncio.run(_run(args))
    except BexError as exc:
        logger.error("Microsoft Health API error", error=str(exc))
        sys.exit(1)

    logger.info("Credential Helper completed successfully")


if __name__ == "__main__":  # pragma: no cover
    main()
