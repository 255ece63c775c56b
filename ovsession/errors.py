"""
Error taxonomy for the session client.

Operation errors wrap the transport failure that caused them (available as
``__cause__``); data errors describe malformed server payloads.
"""

from __future__ import annotations

from typing import Optional


class OpenViduError(RuntimeError):
    """Base class for every error raised by the client."""


class RestClientError(OpenViduError):
    """Raised by the transport on network failure or a non-success status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionCreationError(OpenViduError):
    """Raised when the server could not create a session."""


class SessionFetchError(OpenViduError):
    """Raised when the session state could not be retrieved."""


class SessionCloseError(OpenViduError):
    """Raised when the server refused to close a session."""


class DisconnectError(OpenViduError):
    """Raised when a connection could not be force-disconnected."""


class UnpublishError(OpenViduError):
    """Raised when a stream could not be force-unpublished."""


class TokenError(OpenViduError):
    """Raised when a token could not be issued."""


class InvalidDataError(OpenViduError):
    """Raised when a response field is absent or has the wrong type."""


class InvalidSnapshotError(InvalidDataError):
    """Raised when a session snapshot is missing required fields or is malformed."""


class InvalidEnumValueError(InvalidSnapshotError):
    """Raised when a value is not part of a recognised enumeration."""

    def __init__(self, enum_name: str, value: object) -> None:
        super().__init__(f"Unsupported {enum_name} value {value!r}")
        self.enum_name = enum_name
        self.value = value


class SettingsError(OpenViduError):
    """Raised when the client configuration is incomplete or invalid."""
