"""
Client-side model of media server sessions.

The package keeps a local view of a session's identity, configuration and
participant graph in sync with the server through explicit calls; there is
no background polling.
"""

from __future__ import annotations

from .client import OpenViduClient
from .connection import Connection, ConnectionMap, Publisher, Subscriber
from .enums import MediaMode, OutputMode, RecordingLayout, RecordingMode, Role
from .errors import (
    DisconnectError,
    InvalidDataError,
    InvalidEnumValueError,
    InvalidSnapshotError,
    OpenViduError,
    RestClientError,
    SessionCloseError,
    SessionCreationError,
    SessionFetchError,
    SettingsError,
    TokenError,
    UnpublishError,
)
from .properties import KurentoOptions, SessionProperties, TokenOptions
from .rest import ApiPaths, Response, RestClient, Transport
from .session import Session
from .settings import ClientSettings, load_settings

__all__ = [
    "ApiPaths",
    "ClientSettings",
    "Connection",
    "ConnectionMap",
    "DisconnectError",
    "InvalidDataError",
    "InvalidEnumValueError",
    "InvalidSnapshotError",
    "KurentoOptions",
    "MediaMode",
    "OpenViduClient",
    "OpenViduError",
    "OutputMode",
    "Publisher",
    "RecordingLayout",
    "RecordingMode",
    "Response",
    "RestClient",
    "RestClientError",
    "Role",
    "Session",
    "SessionCloseError",
    "SessionCreationError",
    "SessionFetchError",
    "SessionProperties",
    "SettingsError",
    "Subscriber",
    "TokenError",
    "TokenOptions",
    "Transport",
    "UnpublishError",
    "load_settings",
]

__version__ = "0.1.0"
