"""
Error taxonomy for the hotspot recommendation core.

Environmental failures (network, storage, geolocation) are caught at the
sync / store boundary and turned into status values. Only data or logic
defects are allowed to escape as exceptions.
"""

from enum import Enum


class InputError(ValueError):
    """Malformed caller input (bad coordinate, empty candidate set)."""

    pass


class TransportError(Exception):
    """Remote hotspot query or weather lookup failed."""

    pass


class StorageError(Exception):
    """Local cache engine unavailable or a write failed."""

    pass


class LocationFailure(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class LocationError(Exception):
    """Device geolocation could not produce a fix."""

    def __init__(self, failure: LocationFailure, message: str = ""):
        super().__init__(message or failure.value)
        self.failure = failure
