"""Microsoft Health API client."""

from __future__ import annotations

import os
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote, urlencode

import httpx
import structlog

from . import AUTH_URL, BASE_HEALTH_URL, REDIRECT_URI, SIGN_OUT_URL, TOKEN_URL
from .credentials import Credentials
from .errors import DeserializationError, HttpError, InvalidArgument, Unauthenticated
from .scopes import Scope, join_scopes

logger = structlog.get_logger(__name__)


class BexClient:
    """Handles the Live ID sign-in flow and authorized Health API requests."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        *,
        redirect_uri: str = REDIRECT_URI,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.client_id = client_id or os.environ.get("BEX_CLIENT_ID") or ""
        self.client_secret = client_secret or os.environ.get("BEX_CLIENT_SECRET") or ""
        self.redirect_uri = redirect_uri
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(transport=transport)
        self._credentials: Optional[Credentials] = None

    async def __aenter__(self) -> "BexClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()

    @property
    def credentials(self) -> Optional[Credentials]:
        """Return the credentials used for resource calls, if any."""
        return self._credentials

    def set_credentials(self, credentials: Credentials) -> None:
        """Use ``credentials`` for every following resource call."""
        if not isinstance(credentials, Credentials) or not credentials.access_token:
            raise InvalidArgument("credentials must carry a non-empty access token")
        self._credentials = credentials

    def build_authorization_url(self, scopes: Iterable[Scope]) -> str:
        """Return the Live ID URL the resource owner visits to grant ``scopes``."""
        query = "&".join(
            [
                f"redirect_uri={_escape(self.redirect_uri)}",
                f"client_id={_escape(self.client_id)}",
                f"scope={_escape(join_scopes(scopes))}",
                "response_type=code",
            ]
        )
        return f"{AUTH_URL}?{query}"

    def build_sign_out_url(self) -> str:
        """Return the Live ID sign-out URL.

        Local credentials are left untouched.
        """
        query = "&".join(
            [
                f"redirect_uri={_escape(self.redirect_uri)}",
                f"client_id={_escape(self.client_id)}",
            ]
        )
        return f"{SIGN_OUT_URL}?{query}"

    async def exchange_code(self, code: str, is_refresh: bool = False) -> Credentials:
        """Exchange an authorization code (or refresh token) for credentials.

        Args:
            code: The authorization code, or the refresh token when
                ``is_refresh`` is set.
            is_refresh: Perform a ``refresh_token`` grant instead of an
                ``authorization_code`` grant.

        Returns:
            The new credentials, which also replace the stored ones.

        Raises:
            InvalidArgument: If ``code`` is empty.
            HttpError: If the token endpoint does not answer with 2xx.
            DeserializationError: If the body is not a token response.
        """
        if not code:
            raise InvalidArgument("code cannot be empty")

        form: Dict[str, str] = {
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        if is_refresh:
            form["refresh_token"] = code
            form["grant_type"] = "refresh_token"
        else:
            form["code"] = code
            form["grant_type"] = "authorization_code"

        logger.info(
            "exchanging_code",
            grant_type=form["grant_type"],
            client_id=self.client_id[:8] + "...",
        )
        payload = await self._request(
            "POST", "", form, base_url=TOKEN_URL, authorized=False
        )
        credentials = Credentials.from_dict(payload)
        self.set_credentials(credentials)
        logger.info(
            "token_exchanged",
            token_type=credentials.token_type,
            expires_in=credentials.expires_in,
            has_refresh_token=bool(credentials.refresh_token),
        )
        return credentials

    async def get_profile(self) -> Any:
        """Return the signed-in user's profile as decoded JSON."""
        self._validate_credentials()
        profile = await self._request("GET", "Profile", {})
        logger.info("profile_fetched")
        return profile

    def _validate_credentials(self) -> None:
        if self._credentials is None or not self._credentials.access_token:
            raise Unauthenticated("No valid credentials have been set")

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, str],
        *,
        base_url: Optional[str] = None,
        authorized: bool = True,
    ) -> Any:
        """Send a request and decode its JSON body.

        GET requests carry ``params`` in the query string; POST requests send
        them as a form body.
        """
        url = (base_url or BASE_HEALTH_URL) + path
        headers = {"Accept": "application/json"}
        if authorized:
            self._validate_credentials()
            headers["Authorization"] = f"bearer {self._credentials.access_token}"

        request_kwargs: Dict[str, Any] = {"headers": headers}
        if method == "GET":
            if params:
                url = f"{url}?{urlencode(params, quote_via=quote)}"
        else:
            request_kwargs["data"] = params

        try:
            response = await self._http.request(method, url, **request_kwargs)
        except httpx.HTTPError as exc:
            logger.error("http_transport_failed", method=method, url=url, error=str(exc))
            raise HttpError(f"{method} {url} failed: {exc}", url=url) from exc

        if not response.is_success:
            logger.error(
                "http_request_failed",
                method=method,
                url=url,
                status=response.status_code,
            )
            raise HttpError(
                f"Microsoft Health API call failed with {response.status_code}: {response.text}",
                status_code=response.status_code,
                url=url,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise DeserializationError(
                f"Response from {url} is not valid JSON: {exc}"
            ) from exc


def _escape(value: str) -> str:
    return quote(value, safe="")
