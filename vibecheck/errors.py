"""
Exception types raised at the engine's I/O seams.

Pure computation (distance, aggregation, scoring, ranking, filtering) never
raises for well-typed input; only store, geolocation and routing adapters do.
"""

from enum import Enum


class VibecheckError(Exception):
    """Base class for engine errors."""


class StoreError(VibecheckError):
    """Read or write against the check-in / venue store failed."""


class GeoErrorKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"

    @property
    def is_terminal(self) -> bool:
        # Denied and unsupported need the user (or another device) to fix them
        return self in (GeoErrorKind.PERMISSION_DENIED, GeoErrorKind.UNSUPPORTED)


class GeolocationError(VibecheckError):
    """Position request failed."""

    def __init__(self, kind: GeoErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind


class RoutingError(VibecheckError):
    """Walking route could not be computed."""
