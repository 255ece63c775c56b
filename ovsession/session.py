"""
Local model of a media server session.

A :class:`Session` holds the identity, configuration, recording flag and
participant graph of one remote session.  It only changes through explicit
calls: :meth:`Session.reconcile` replaces local state from a server snapshot,
and :meth:`Session.force_disconnect` removes a connection together with every
subscription to the streams it published.

:meth:`Session.force_unpublish` deliberately leaves local subscriber lists
alone; call :meth:`Session.refresh` afterwards to observe the server's view.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import json
import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .connection import Connection, ConnectionMap
from .enums import MediaMode, OutputMode, RecordingLayout, RecordingMode
from .errors import (
    DisconnectError,
    InvalidDataError,
    InvalidSnapshotError,
    RestClientError,
    SessionCloseError,
    SessionCreationError,
    SessionFetchError,
    TokenError,
    UnpublishError,
)
from .properties import MERGE_TABLE, SessionProperties, TokenOptions, merge_properties
from .rest import ApiPaths, Transport
from .schemas import SessionSnapshotModel

LOG = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)

# property name -> parser for the raw snapshot value
PROPERTY_PARSERS: Dict[str, Callable[[Any], Any]] = {
    "media_mode": MediaMode.parse,
    "recording_mode": RecordingMode.parse,
    "default_output_mode": OutputMode.parse,
    "default_recording_layout": RecordingLayout.parse,
    "default_custom_layout": str,
    "custom_session_id": str,
}


def from_millis(value: int) -> datetime:
    """
    Convert a wire ``createdAt`` to an aware UTC datetime.

    The media server reports epoch milliseconds; older PHP clients read the
    same field as seconds, which places sessions far in the future.
    """

    return EPOCH + timedelta(milliseconds=int(value))


def to_millis(value: datetime) -> int:
    return (value - EPOCH) // _MILLISECOND


def _now() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


@dataclass(frozen=True)
class _Reconciliation:
    """Fully validated snapshot, ready to be applied in one step."""

    session_id: str
    created_at: Optional[datetime]
    recording: bool
    properties: SessionProperties
    connections: List[Connection]


class Session:
    """
    Session identity, configuration and participant graph.

    Instances are not meant to be shared across remote session ids.  State
    mutations are serialised by an internal lock; transport calls run outside
    of it.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        session_id: str = "",
        properties: Optional[SessionProperties] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        self._transport = transport
        self._lock = threading.RLock()
        self._session_id = session_id
        self._created_at = created_at or _now()
        self._properties = properties or SessionProperties()
        self._recording = False
        self._connections = ConnectionMap()

    # ------------------------------------------------------------------ constructors

    @classmethod
    def create(cls, transport: Transport, properties: Optional[SessionProperties] = None) -> "Session":
        """
        Ask the server for a new session and return its local model.
        """

        properties = properties or SessionProperties()
        try:
            response = transport.post(ApiPaths.SESSIONS, properties.to_request())
        except RestClientError as exc:
            raise SessionCreationError("Unable to generate a session id") from exc
        session_id = response.get_string("id")
        if not session_id:
            raise InvalidDataError("Server returned an empty session id")
        LOG.info("Created session %s (%s)", session_id, properties.media_mode)
        return cls(transport, session_id=session_id, properties=properties)

    @classmethod
    def adopt(cls, transport: Transport, snapshot: Mapping[str, Any]) -> "Session":
        """
        Build a session from a server snapshot without creating it remotely.
        """

        session = cls(transport)
        session.reconcile(snapshot)
        return session

    # ------------------------------------------------------------------ accessors

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def properties(self) -> SessionProperties:
        return self._properties

    @property
    def active_connections(self) -> Mapping[str, Connection]:
        return self._connections.as_mapping()

    def has_id(self) -> bool:
        return self._session_id != ""

    def is_being_recorded(self) -> bool:
        return self._recording

    def set_recording(self, recording: bool) -> None:
        with self._lock:
            self._recording = bool(recording)

    def __str__(self) -> str:
        return self._session_id

    def __repr__(self) -> str:
        return (
            f"Session(id={self._session_id!r}, recording={self._recording}, "
            f"connections={len(self._connections)})"
        )

    # ------------------------------------------------------------------ reconciliation

    def _prepare(self, snapshot: Mapping[str, Any]) -> _Reconciliation:
        if not isinstance(snapshot, Mapping):
            raise InvalidSnapshotError(f"Session snapshot must be a mapping, got {type(snapshot).__name__}")
        try:
            model = SessionSnapshotModel.model_validate(dict(snapshot))
        except ValidationError as exc:
            raise InvalidSnapshotError(f"Malformed session snapshot: {exc}") from exc

        incoming: Dict[str, Any] = {}
        for name, (key, _) in MERGE_TABLE.items():
            raw = getattr(model, key)
            if raw is not None:
                incoming[name] = PROPERTY_PARSERS[name](raw)

        created_at: Optional[datetime] = None
        if model.createdAt is not None:
            try:
                created_at = from_millis(model.createdAt)
            except (OverflowError, ValueError) as exc:
                raise InvalidSnapshotError(f"createdAt {model.createdAt!r} is out of range") from exc

        return _Reconciliation(
            session_id=model.sessionId,
            created_at=created_at,
            recording=model.recording,
            properties=merge_properties(self._properties, incoming),
            connections=[Connection.from_dict(item) for item in model.connections.content],
        )

    def reconcile(self, snapshot: Mapping[str, Any]) -> None:
        """
        Replace local state with ``snapshot``.

        The snapshot is validated completely before anything is assigned, so
        a malformed snapshot raises :class:`InvalidSnapshotError` and leaves
        the session unchanged.  The connection map is replaced, not merged.
        """

        with self._lock:
            prepared = self._prepare(snapshot)
            self._session_id = prepared.session_id
            if prepared.created_at is not None:
                self._created_at = prepared.created_at
            self._recording = prepared.recording
            self._properties = prepared.properties
            self._connections.replace_all(prepared.connections)
        LOG.debug(
            "Reconciled session %s: recording=%s connections=%d",
            prepared.session_id,
            prepared.recording,
            len(prepared.connections),
        )

    def to_dict(self) -> dict:
        """Snapshot of the local state in the server's wire shape."""

        with self._lock:
            connections = self._connections.to_list()
            return {
                "sessionId": self._session_id,
                "createdAt": to_millis(self._created_at),
                "customSessionId": self._properties.custom_session_id,
                "recording": self._recording,
                "mediaMode": str(self._properties.media_mode),
                "recordingMode": str(self._properties.recording_mode),
                "defaultOutputMode": str(self._properties.default_output_mode),
                "defaultRecordingLayout": str(self._properties.default_recording_layout),
                "defaultCustomLayout": self._properties.default_custom_layout,
                "connections": {
                    "numberOfElements": len(connections),
                    "content": connections,
                },
            }

    def fingerprint(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    # ------------------------------------------------------------------ remote operations

    def refresh(self) -> bool:
        """
        Fetch the session from the server and reconcile.

        Returns ``True`` when the local state changed.
        """

        before = self.fingerprint()
        try:
            response = self._transport.get(ApiPaths.session(self._session_id))
        except RestClientError as exc:
            raise SessionFetchError(f"Unable to fetch session {self._session_id}") from exc
        self.reconcile(response.get_array())
        return self.fingerprint() != before

    def force_disconnect(self, connection_id: str) -> None:
        """
        Evict a participant and drop every subscription to its streams.

        An id that is not tracked locally is still deleted remotely; locally
        it is a no-op.
        """

        try:
            self._transport.delete(ApiPaths.connection(self._session_id, connection_id))
        except RestClientError as exc:
            raise DisconnectError(f"Disconnecting {connection_id} from {self._session_id} failed") from exc
        with self._lock:
            removed = self._connections.cascade_remove(connection_id)
        if removed is None:
            LOG.warning("Connection %s is not tracked in session %s", connection_id, self._session_id)
        else:
            LOG.info("Disconnected %s from session %s", connection_id, self._session_id)

    def force_unpublish(self, stream_id: str) -> None:
        """
        Stop a published stream on the server.

        Local subscriber lists are not updated; use :meth:`refresh`.
        """

        try:
            self._transport.delete(ApiPaths.stream(self._session_id, stream_id))
        except RestClientError as exc:
            raise UnpublishError(f"Unpublishing {stream_id} from {self._session_id} failed") from exc
        LOG.info("Unpublished stream %s in session %s", stream_id, self._session_id)

    def issue_token(self, options: Optional[TokenOptions] = None) -> str:
        options = options or TokenOptions()
        body: Dict[str, Any] = {
            "session": self._session_id,
            "role": str(options.role),
            "data": options.data,
        }
        if options.kurento_options is not None:
            body["kurentoOptions"] = options.kurento_options.to_dict()
        try:
            response = self._transport.post(ApiPaths.TOKENS, body)
        except RestClientError as exc:
            raise TokenError(f"Could not retrieve token for {self._session_id}") from exc
        token = response.get_string("id")
        LOG.info("Issued %s token for session %s", options.role, self._session_id)
        return token

    def close(self) -> None:
        try:
            self._transport.delete(ApiPaths.session(self._session_id))
        except RestClientError as exc:
            raise SessionCloseError(f"Unable to close session {self._session_id}") from exc
        LOG.info("Closed session %s", self._session_id)


__all__ = ["Session", "from_millis", "to_millis"]
