"""Error taxonomy for the map engine.

Invalid entity rows are not represented here: they are dropped during
parsing rather than raised.
"""


class PawMapError(Exception):
    """Base exception for map engine errors."""


class LocationError(PawMapError):
    """The device position could not be acquired."""


class PermissionDenied(LocationError):
    """The user declined location access.

    Blocks the map until permission is granted.
    """


class PositionUnavailable(LocationError):
    """A position fix could not be obtained. Transient; safe to retry."""


class BackendError(PawMapError):
    """A single backend request failed."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class RepositoryError(PawMapError):
    """Map entities could not be loaded (animals on both paths, or emergencies)."""
