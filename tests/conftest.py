from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest

from ovsession.rest import Response


class FakeTransport:
    """In-memory transport returning canned payloads keyed by (method, path)."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str, Optional[dict]]] = []
        self.outcomes: Dict[Tuple[str, str], Any] = {}

    def respond(self, method: str, path: str, outcome: Any) -> None:
        self.outcomes[(method, path)] = outcome

    def _resolve(self, method: str, path: str, body: Optional[dict]) -> Any:
        self.calls.append((method, path, body))
        outcome = self.outcomes.get((method, path), {})
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def post(self, path: str, body) -> Response:
        return Response(self._resolve("POST", path, dict(body)))

    def get(self, path: str) -> Response:
        return Response(self._resolve("GET", path, None))

    def delete(self, path: str) -> None:
        self._resolve("DELETE", path, None)


def make_connection(
    connection_id: str,
    publishers: Iterable[str] = (),
    subscribers: Iterable[str] = (),
) -> dict:
    return {
        "connectionId": connection_id,
        "publishers": [{"streamId": stream_id} for stream_id in publishers],
        "subscribers": [{"streamId": stream_id} for stream_id in subscribers],
    }


def make_snapshot(session_id: str = "s1", connections: Iterable[dict] = (), **overrides: Any) -> dict:
    content = list(connections)
    snapshot = {
        "sessionId": session_id,
        "createdAt": 1_700_000_000_123,
        "recording": False,
        "mediaMode": "ROUTED",
        "recordingMode": "MANUAL",
        "defaultOutputMode": "COMPOSED",
        "connections": {"numberOfElements": len(content), "content": content},
    }
    snapshot.update(overrides)
    return snapshot


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest.fixture
def connection_factory():
    return make_connection
