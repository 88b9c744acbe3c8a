"""
Error taxonomy for the parking client.

Every failure a user action can hit is one of these; views catch them at the
component boundary so no action is fatal to the app.
"""

from typing import Optional


class ParkingClientError(Exception):
    """Base class for all client-side failures"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(ParkingClientError):
    """Form input rejected before any request was issued"""


class RequestError(ParkingClientError):
    """The remote service answered with a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code in (401, 403)

    def __repr__(self) -> str:
        return f"RequestError(status_code={self.status_code!r}, message={self.message!r})"


class TransportError(ParkingClientError):
    """No response at all: connection refused, network failure, timeout"""

    def __init__(self, message: str = "Unable to reach the parking service", cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class MalformedSessionError(ParkingClientError):
    """Persisted session data could not be decoded"""
