"""
Participant graph of a session: connections and the streams they publish
or subscribe to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set

from pydantic import ValidationError

from .errors import InvalidSnapshotError
from .schemas import ConnectionModel, PublisherModel, SubscriberModel

LOG = logging.getLogger(__name__)


@dataclass
class Publisher:
    """Outbound stream owned by a connection."""

    stream_id: str
    created_at: Optional[int] = None
    media_options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_model(cls, model: PublisherModel) -> "Publisher":
        return cls(
            stream_id=model.streamId,
            created_at=model.createdAt,
            media_options=dict(model.mediaOptions),
        )

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {"streamId": self.stream_id, "mediaOptions": dict(self.media_options)}
        if self.created_at is not None:
            payload["createdAt"] = int(self.created_at)
        return payload


@dataclass(frozen=True)
class Subscriber:
    """Reference to a stream published by another connection."""

    stream_id: str
    publisher: Optional[str] = None
    created_at: Optional[int] = None

    @classmethod
    def from_model(cls, model: SubscriberModel) -> "Subscriber":
        return cls(stream_id=model.streamId, publisher=model.publisher, created_at=model.createdAt)

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {"streamId": self.stream_id}
        if self.publisher is not None:
            payload["publisher"] = self.publisher
        if self.created_at is not None:
            payload["createdAt"] = int(self.created_at)
        return payload


@dataclass
class Connection:
    connection_id: str
    created_at: Optional[int] = None
    role: Optional[str] = None
    token: Optional[str] = None
    location: Optional[str] = None
    platform: Optional[str] = None
    server_data: Optional[str] = None
    client_data: Optional[str] = None
    publishers: List[Publisher] = field(default_factory=list)
    subscribers: List[Subscriber] = field(default_factory=list)

    def __setattr__(self, name: str, value: Any) -> None:
        # The id keys the owning ConnectionMap.
        if name == "connection_id" and "connection_id" in self.__dict__:
            raise AttributeError("connection_id cannot be reassigned")
        super().__setattr__(name, value)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Connection":
        try:
            model = ConnectionModel.model_validate(payload)
        except ValidationError as exc:
            raise InvalidSnapshotError(f"Malformed connection entry: {exc}") from exc
        return cls.from_model(model)

    @classmethod
    def from_model(cls, model: ConnectionModel) -> "Connection":
        return cls(
            connection_id=model.connectionId,
            created_at=model.createdAt,
            role=model.role,
            token=model.token,
            location=model.location,
            platform=model.platform,
            server_data=model.serverData,
            client_data=model.clientData,
            publishers=[Publisher.from_model(item) for item in model.publishers],
            subscribers=[Subscriber.from_model(item) for item in model.subscribers],
        )

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {"connectionId": self.connection_id}
        optional = {
            "createdAt": self.created_at,
            "role": self.role,
            "token": self.token,
            "location": self.location,
            "platform": self.platform,
            "serverData": self.server_data,
            "clientData": self.client_data,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        payload["publishers"] = [publisher.to_dict() for publisher in self.publishers]
        payload["subscribers"] = [subscriber.to_dict() for subscriber in self.subscribers]
        return payload

    def stream_ids(self) -> Set[str]:
        return {publisher.stream_id for publisher in self.publishers}

    def drop_subscriptions(self, stream_ids: Iterable[str]) -> int:
        """
        Remove subscriber entries that reference any of ``stream_ids``.

        Returns the number of entries removed.
        """

        targets = set(stream_ids)
        if not targets:
            return 0
        kept = [subscriber for subscriber in self.subscribers if subscriber.stream_id not in targets]
        removed = len(self.subscribers) - len(kept)
        self.subscribers = kept
        return removed


class ConnectionMap:
    """
    Owned mapping of connection id to :class:`Connection`.

    Every write goes through :meth:`_store`, which rejects entries whose key
    differs from the connection's own id.
    """

    def __init__(self, connections: Iterable[Connection] = ()) -> None:
        self._connections: Dict[str, Connection] = {}
        for connection in connections:
            self.add(connection)

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _store(target: Dict[str, Connection], key: str, connection: Connection) -> None:
        if key != connection.connection_id:
            raise ValueError(
                f"connection key {key!r} does not match connection id {connection.connection_id!r}"
            )
        target[key] = connection

    # ------------------------------------------------------------------ public API

    def add(self, connection: Connection) -> None:
        self._store(self._connections, connection.connection_id, connection)

    def replace_all(self, connections: Iterable[Connection]) -> None:
        """
        Replace every entry with ``connections``; later duplicates win.

        The map is updated in place so views from :meth:`as_mapping` stay live.
        """

        fresh: Dict[str, Connection] = {}
        for connection in connections:
            self._store(fresh, connection.connection_id, connection)
        self._connections.clear()
        self._connections.update(fresh)

    def cascade_remove(self, connection_id: str) -> Optional[Connection]:
        """
        Remove ``connection_id`` and purge subscriptions to its streams.

        Returns the removed connection, or ``None`` if it was not tracked, in
        which case nothing is modified.
        """

        removed = self._connections.pop(connection_id, None)
        if removed is None:
            return None
        stream_ids = removed.stream_ids()
        dropped = 0
        for connection in self._connections.values():
            dropped += connection.drop_subscriptions(stream_ids)
        LOG.debug(
            "Removed connection %s (%d streams), dropped %d dangling subscriptions",
            connection_id,
            len(stream_ids),
            dropped,
        )
        return removed

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def as_mapping(self) -> Mapping[str, Connection]:
        return MappingProxyType(self._connections)

    def to_list(self) -> List[dict]:
        """Serialised connections ordered by id."""

        return [self._connections[key].to_dict() for key in sorted(self._connections)]

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __iter__(self) -> Iterator[str]:
        return iter(self._connections)

    def __len__(self) -> int:
        return len(self._connections)


__all__ = ["Connection", "ConnectionMap", "Publisher", "Subscriber"]
