"""
Entry point tracking every session known to one media server.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from .errors import InvalidSnapshotError, RestClientError, SessionFetchError
from .properties import SessionProperties
from .rest import ApiPaths, RestClient, Transport
from .schemas import SessionListModel
from .session import Session
from .settings import ClientSettings

LOG = logging.getLogger(__name__)


class OpenViduClient:
    """
    Registry of :class:`Session` objects kept in sync with the server.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self._sessions: Dict[str, Session] = {}

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "OpenViduClient":
        return cls(RestClient.from_settings(settings))

    def create_session(self, properties: Optional[SessionProperties] = None) -> Session:
        session = Session.create(self.transport, properties)
        self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def active_sessions(self) -> List[Session]:
        return list(self._sessions.values())

    def fetch(self) -> bool:
        """
        Synchronise every session with the server.

        Known sessions are reconciled, new ones adopted and sessions the
        server no longer reports are dropped.  Returns ``True`` if anything
        changed.
        """

        try:
            response = self.transport.get(ApiPaths.SESSIONS)
        except RestClientError as exc:
            raise SessionFetchError("Unable to fetch sessions") from exc
        try:
            listing = SessionListModel.model_validate(response.get_array())
        except ValidationError as exc:
            raise InvalidSnapshotError(f"Malformed session list: {exc}") from exc

        changed = False
        fresh: Dict[str, Session] = {}
        for snapshot in listing.content:
            session_id = snapshot.get("sessionId")
            existing = self._sessions.get(session_id) if isinstance(session_id, str) else None
            if existing is None:
                session = Session.adopt(self.transport, snapshot)
                LOG.info("Discovered session %s", session.session_id)
                changed = True
            else:
                before = existing.fingerprint()
                existing.reconcile(snapshot)
                changed = changed or existing.fingerprint() != before
                session = existing
            fresh[session.session_id] = session

        for session_id in self._sessions.keys() - fresh.keys():
            LOG.info("Session %s is gone", session_id)
            changed = True
        self._sessions = fresh
        return changed


__all__ = ["OpenViduClient"]
