"""Tests covering snapshot reconciliation and refresh."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ovsession.enums import MediaMode, OutputMode, RecordingLayout, RecordingMode
from ovsession.errors import InvalidEnumValueError, InvalidSnapshotError, RestClientError, SessionFetchError
from ovsession.properties import SessionProperties
from ovsession.session import Session


def test_reconcile_minimal_snapshot_on_fresh_state(transport) -> None:
    session = Session(transport)
    assert session.has_id() is False

    session.reconcile(
        {
            "sessionId": "s1",
            "recording": True,
            "mediaMode": "ROUTED",
            "recordingMode": "MANUAL",
            "defaultOutputMode": "COMPOSED",
            "connections": {"numberOfElements": 0, "content": []},
        }
    )

    assert session.session_id == "s1"
    assert str(session) == "s1"
    assert session.has_id() is True
    assert session.is_being_recorded() is True
    assert dict(session.active_connections) == {}


def test_reconcile_parses_configuration(transport, snapshot_factory) -> None:
    session = Session(transport)
    session.reconcile(
        snapshot_factory(
            mediaMode="RELAYED",
            recordingMode="ALWAYS",
            defaultOutputMode="INDIVIDUAL",
            defaultRecordingLayout="CUSTOM",
            defaultCustomLayout="layouts/grid",
        )
    )

    assert session.properties == SessionProperties(
        media_mode=MediaMode.RELAYED,
        recording_mode=RecordingMode.ALWAYS,
        default_output_mode=OutputMode.INDIVIDUAL,
        default_recording_layout=RecordingLayout.CUSTOM,
        default_custom_layout="layouts/grid",
    )
    assert session.created_at == datetime(2023, 11, 14, 22, 13, 20, 123000, tzinfo=timezone.utc)


def test_reconcile_keeps_created_at_when_absent(transport, snapshot_factory) -> None:
    session = Session.adopt(transport, snapshot_factory())
    created_at = session.created_at

    snapshot = snapshot_factory(recording=True)
    del snapshot["createdAt"]
    session.reconcile(snapshot)

    assert session.created_at == created_at
    assert session.is_being_recorded() is True


def test_adopt_then_refresh_with_same_snapshot_reports_no_change(
    transport, snapshot_factory, connection_factory
) -> None:
    snapshot = snapshot_factory(
        connections=[
            connection_factory("A", publishers=["p1"]),
            connection_factory("B", subscribers=["p1"]),
        ]
    )
    session = Session.adopt(transport, snapshot)
    before = session.to_dict()

    session.reconcile(snapshot)
    assert session.to_dict() == before

    transport.respond("GET", "/api/sessions/s1", snapshot)
    assert session.refresh() is False
    assert transport.calls == [("GET", "/api/sessions/s1", None)]


def test_refresh_reports_change(transport, snapshot_factory, connection_factory) -> None:
    session = Session.adopt(transport, snapshot_factory())
    transport.respond(
        "GET",
        "/api/sessions/s1",
        snapshot_factory(connections=[connection_factory("A", publishers=["p1"])]),
    )

    assert session.refresh() is True
    assert list(session.active_connections) == ["A"]


def test_refresh_failure_raises_fetch_error(transport, snapshot_factory) -> None:
    session = Session.adopt(transport, snapshot_factory())
    failure = RestClientError("GET /api/sessions/s1 returned 404", status_code=404)
    transport.respond("GET", "/api/sessions/s1", failure)

    with pytest.raises(SessionFetchError) as excinfo:
        session.refresh()

    assert excinfo.value.__cause__ is failure
    assert session.session_id == "s1"


def test_custom_session_id_is_kept_locally(transport, snapshot_factory) -> None:
    session = Session(
        transport,
        session_id="mine",
        properties=SessionProperties(custom_session_id="mine"),
    )

    session.reconcile(snapshot_factory(session_id="mine"))
    assert session.properties.custom_session_id == "mine"

    session.reconcile(snapshot_factory(session_id="mine", customSessionId="theirs"))
    assert session.properties.custom_session_id == "mine"


def test_custom_session_id_is_adopted_when_unset(transport, snapshot_factory) -> None:
    session = Session.adopt(transport, snapshot_factory(customSessionId="room-7"))
    assert session.properties.custom_session_id == "room-7"


def test_optional_fields_overwrite_only_when_present(transport, snapshot_factory) -> None:
    session = Session.adopt(transport, snapshot_factory(defaultCustomLayout="layouts/a"))
    assert session.properties.default_custom_layout == "layouts/a"

    session.reconcile(snapshot_factory(defaultCustomLayout="layouts/b"))
    assert session.properties.default_custom_layout == "layouts/b"

    session.reconcile(snapshot_factory())
    assert session.properties.default_custom_layout == "layouts/b"
    assert session.properties.default_recording_layout is RecordingLayout.BEST_FIT


def test_reconcile_replaces_connection_map(transport, snapshot_factory, connection_factory) -> None:
    session = Session.adopt(
        transport,
        snapshot_factory(connections=[connection_factory("A"), connection_factory("B")]),
    )
    session.reconcile(snapshot_factory(connections=[connection_factory("C", publishers=["p9"])]))

    connections = session.active_connections
    assert list(connections) == ["C"]
    assert connections["C"].connection_id == "C"
    assert [publisher.stream_id for publisher in connections["C"].publishers] == ["p9"]


def test_invalid_enum_leaves_state_untouched(transport, snapshot_factory, connection_factory) -> None:
    session = Session.adopt(transport, snapshot_factory(connections=[connection_factory("A")]))
    before = session.to_dict()

    with pytest.raises(InvalidEnumValueError):
        session.reconcile(snapshot_factory(session_id="s2", recording=True, mediaMode="BROADCAST"))

    assert session.to_dict() == before


def test_malformed_connection_leaves_state_untouched(transport, snapshot_factory) -> None:
    session = Session.adopt(transport, snapshot_factory())
    before = session.to_dict()

    with pytest.raises(InvalidSnapshotError):
        session.reconcile(
            snapshot_factory(session_id="s2", recording=True, connections=[{"publishers": []}])
        )

    assert session.to_dict() == before


@pytest.mark.parametrize(
    "missing",
    ["sessionId", "recording", "mediaMode", "recordingMode", "defaultOutputMode", "connections"],
)
def test_missing_required_field_is_rejected(transport, snapshot_factory, missing) -> None:
    snapshot = snapshot_factory()
    del snapshot[missing]

    with pytest.raises(InvalidSnapshotError):
        Session(transport).reconcile(snapshot)


def test_serialised_state_round_trips(transport, snapshot_factory, connection_factory) -> None:
    original = Session.adopt(
        transport,
        snapshot_factory(
            recording=True,
            defaultRecordingLayout="PICTURE_IN_PICTURE",
            customSessionId="room",
            connections=[
                {
                    "connectionId": "A",
                    "createdAt": 1_700_000_000_500,
                    "role": "PUBLISHER",
                    "clientData": "alice",
                    "publishers": [
                        {"streamId": "p1", "createdAt": 1_700_000_000_600, "mediaOptions": {"hasAudio": True}}
                    ],
                    "subscribers": [],
                },
                connection_factory("B", subscribers=["p1"]),
            ],
        ),
    )

    copy = Session(transport)
    copy.reconcile(original.to_dict())

    assert copy.session_id == original.session_id
    assert copy.is_being_recorded() == original.is_being_recorded()
    assert copy.properties == original.properties
    assert copy.created_at == original.created_at
    assert dict(copy.active_connections) == dict(original.active_connections)


def test_out_of_range_created_at_is_rejected(transport, snapshot_factory) -> None:
    session = Session.adopt(transport, snapshot_factory())
    before = session.to_dict()

    with pytest.raises(InvalidSnapshotError):
        session.reconcile(snapshot_factory(createdAt=10**15))

    assert session.to_dict() == before


def test_connection_view_follows_reconcile(transport, snapshot_factory, connection_factory) -> None:
    session = Session.adopt(transport, snapshot_factory(connections=[connection_factory("A")]))
    view = session.active_connections

    session.reconcile(snapshot_factory(connections=[connection_factory("B")]))

    assert list(view) == ["B"]
