"""Permission scopes understood by the Microsoft Health API."""

from __future__ import annotations

import enum
from typing import Dict, Iterable, List


class Scope(enum.Enum):
    READ_PROFILE = "read_profile"
    READ_ACTIVITY_HISTORY = "read_activity_history"
    READ_DEVICES = "read_devices"
    READ_ACTIVITY_LOCATION = "read_activity_location"
    OFFLINE_ACCESS = "offline_access"

    @property
    def description(self) -> str:
        """Return the wire value sent in the ``scope`` parameter."""
        return SCOPE_DESCRIPTIONS[self]


SCOPE_DESCRIPTIONS: Dict[Scope, str] = {
    Scope.READ_PROFILE: "mshealth.ReadProfile",
    Scope.READ_ACTIVITY_HISTORY: "mshealth.ReadActivityHistory",
    Scope.READ_DEVICES: "mshealth.ReadDevices",
    Scope.READ_ACTIVITY_LOCATION: "mshealth.ReadActivityLocation",
    Scope.OFFLINE_ACCESS: "offline_access",
}


def join_scopes(scopes: Iterable[Scope]) -> str:
    """Return the space separated wire descriptions, each listed once."""
    seen: List[str] = []
    for scope in scopes:
        description = scope.description
        if description not in seen:
            seen.append(description)
    return " ".join(seen)
