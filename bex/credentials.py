"""In-memory representation of Live ID OAuth credentials."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from .errors import DeserializationError

UTC = timezone.utc


@dataclass
class Credentials:
    """Token response returned by the Live ID token endpoint."""

    access_token: str
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    expires_at: Optional[datetime] = None
    scope: Optional[List[str]] = None
    user_id: Optional[str] = None
    raw: Dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> "Credentials":
        """Create Credentials from a decoded token response.

        Raises:
            DeserializationError: If the payload is not a token object or
                carries no usable access token.
        """
        if not isinstance(payload, dict):
            raise DeserializationError(
                f"Expected a JSON object for credentials, got {type(payload).__name__}"
            )
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise DeserializationError("Token response has no access_token")

        expires_in = _parse_expires_in(payload.get("expires_in"))
        expires_at_str = payload.get("expires_at")
        if expires_at_str:
            expires_at = _parse_timestamp(expires_at_str)
        elif expires_in is not None:
            expires_at = datetime.now(UTC) + timedelta(seconds=expires_in)
        else:
            expires_at = None

        # Live ID sends the granted scopes space separated
        scope_value = payload.get("scope")
        if isinstance(scope_value, str):
            scope = scope_value.split()
        elif isinstance(scope_value, Iterable):
            scope = [str(item) for item in scope_value]
        else:
            scope = None

        return cls(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            token_type=payload.get("token_type"),
            expires_in=expires_in,
            expires_at=expires_at,
            scope=scope,
            user_id=payload.get("user_id"),
            raw=payload,
        )

    def as_dict(self) -> Dict[str, Any]:
        """Return the set fields as a JSON serializable dict for display.

        Extra fields Live ID returned (``authentication_token`` for example)
        are appended after the known ones.
        """
        data: Dict[str, Any] = {"access_token": self.access_token}
        for key in ("token_type", "refresh_token", "expires_in", "user_id"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.expires_at:
            data["expires_at"] = self.expires_at.isoformat()
        if self.scope:
            data["scope"] = " ".join(self.scope)
        for key, value in (self.raw or {}).items():
            data.setdefault(key, value)
        return data


def _parse_expires_in(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise DeserializationError(f"Invalid expires_in value: {value!r}") from exc


def _parse_timestamp(value: str) -> datetime:
    try:
        dt = datetime.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise DeserializationError(f"Invalid expires_at value: {value!r}") from exc
    if not dt.tzinfo:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
