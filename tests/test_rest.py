"""Tests covering the httpx-backed REST transport."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from ovsession.errors import InvalidDataError, RestClientError
from ovsession.rest import ApiPaths, Response, RestClient


def _client(handler) -> RestClient:
    return RestClient("https://media.example.com/", "s3cret", transport=httpx.MockTransport(handler))


def test_post_sends_json_with_basic_auth() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "ses_1"})

    with _client(handler) as client:
        response = client.post(ApiPaths.SESSIONS, {"mediaMode": "ROUTED"})

    assert response.get_string("id") == "ses_1"
    request = seen[0]
    assert request.method == "POST"
    assert request.url == "https://media.example.com/api/sessions"
    expected = base64.b64encode(b"OPENVIDUAPP:s3cret").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert json.loads(request.content) == {"mediaMode": "ROUTED"}


def test_delete_accepts_empty_body() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(204)

    with _client(handler) as client:
        assert client.delete(ApiPaths.connection("s1", "con_1")) is None

    assert seen == [("DELETE", "/api/sessions/s1/connection/con_1")]


def test_error_status_raises_with_status_code() -> None:
    with _client(lambda request: httpx.Response(404, json={"error": "missing"})) as client:
        with pytest.raises(RestClientError) as excinfo:
            client.get(ApiPaths.session("s1"))

    assert excinfo.value.status_code == 404


def test_network_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(RestClientError) as excinfo:
            client.get(ApiPaths.SESSIONS)

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_non_json_body_is_invalid_data() -> None:
    with _client(lambda request: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(InvalidDataError):
            client.get(ApiPaths.SESSIONS)


def test_response_field_access() -> None:
    response = Response({"id": "tok", "count": 3})

    assert response.get_string("id") == "tok"
    assert response.get_value("count") == 3
    with pytest.raises(InvalidDataError):
        response.get_string("count")
    with pytest.raises(InvalidDataError):
        response.get_value("missing")
    with pytest.raises(InvalidDataError):
        Response(["not", "a", "mapping"]).get_array()


def test_api_paths() -> None:
    assert ApiPaths.session("s1") == "/api/sessions/s1"
    assert ApiPaths.stream("s1", "str_1") == "/api/sessions/s1/stream/str_1"
    assert ApiPaths.TOKENS == "/api/tokens"
