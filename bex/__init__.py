"""Client helpers for the Microsoft Health API."""

from __future__ import annotations

__all__ = [
    "AUTH_URL",
    "BASE_HEALTH_URL",
    "REDIRECT_URI",
    "SIGN_OUT_URL",
    "TOKEN_URL",
]

BASE_HEALTH_URL = "https://api.microsofthealth.net/v1/me/"

# Microsoft Live ID OAuth2 endpoints
REDIRECT_URI = "https://login.live.com/oauth20_desktop.srf"
AUTH_URL = "https://login.live.com/oauth20_authorize.srf"
SIGN_OUT_URL = "https://login.live.com/oauth20_logout.srf"
TOKEN_URL = "https://login.live.com/oauth20_token.srf"
