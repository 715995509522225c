"""
Device position source contract.
"""

from enum import Enum
from typing import Protocol

from vibecheck.data.schemas import GeoPosition
from vibecheck.errors import GeoErrorKind


class PermissionState(str, Enum):
    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"  # No geolocation support on this device


class PositionSource(Protocol):
    async def permission_state(self) -> PermissionState:
        ...

    async def current_position(self) -> GeoPosition:
        """One-shot fix. Raises GeolocationError on failure."""
        ...


# Messages surfaced in SmartCheckinState.geo_error
GEO_ERROR_MESSAGES = {
    GeoErrorKind.PERMISSION_DENIED: "Location access was denied. Smart check-in needs location permission.",
    GeoErrorKind.POSITION_UNAVAILABLE: "Could not determine your position.",
    GeoErrorKind.TIMEOUT: "Timed out while getting your position.",
    GeoErrorKind.UNSUPPORTED: "Geolocation is not available on this device.",
}


def permission_for_error(kind: GeoErrorKind) -> PermissionState:
    """Permission state implied by a terminal geolocation error."""
    if kind == GeoErrorKind.PERMISSION_DENIED:
        return PermissionState.DENIED
    return PermissionState.UNAVAILABLE
