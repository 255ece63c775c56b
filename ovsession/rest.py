"""
REST transport for the media server API.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol

import httpx

from .errors import InvalidDataError, RestClientError

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .settings import ClientSettings

LOG = logging.getLogger(__name__)

BASIC_AUTH_USER = "OPENVIDUAPP"


class ApiPaths:
    SESSIONS = "/api/sessions"
    TOKENS = "/api/tokens"

    @classmethod
    def session(cls, session_id: str) -> str:
        return f"{cls.SESSIONS}/{session_id}"

    @classmethod
    def connection(cls, session_id: str, connection_id: str) -> str:
        return f"{cls.SESSIONS}/{session_id}/connection/{connection_id}"

    @classmethod
    def stream(cls, session_id: str, stream_id: str) -> str:
        return f"{cls.SESSIONS}/{session_id}/stream/{stream_id}"


class Response:
    """
    Parsed JSON body of a successful call with typed field access.
    """

    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "Response":
        if not response.content:
            return cls({}, response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidDataError(f"Response body is not valid JSON: {exc}") from exc
        return cls(payload, response.status_code)

    def get_array(self) -> dict:
        if not isinstance(self.payload, dict):
            raise InvalidDataError(f"Expected a JSON object, got {type(self.payload).__name__}")
        return self.payload

    def get_value(self, key: str) -> Any:
        data = self.get_array()
        if key not in data:
            raise InvalidDataError(f"Response is missing field '{key}'")
        return data[key]

    def get_string(self, key: str) -> str:
        value = self.get_value(key)
        if not isinstance(value, str):
            raise InvalidDataError(f"Field '{key}' is not a string: {value!r}")
        return value


class Transport(Protocol):
    def post(self, path: str, body: Mapping[str, Any]) -> Response: ...

    def get(self, path: str) -> Response: ...

    def delete(self, path: str) -> None: ...


class RestClient:
    """
    Synchronous :class:`Transport` backed by :mod:`httpx`.

    Network failures and non-success statuses raise :class:`RestClientError`;
    nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        secret: str,
        *,
        timeout: float = 10.0,
        verify: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=(BASIC_AUTH_USER, secret),
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
            verify=verify,
            transport=transport,
            headers={"User-Agent": "ovsession/0.1"},
        )

    @classmethod
    def from_settings(cls, settings: "ClientSettings") -> "RestClient":
        return cls(
            settings.url,
            settings.secret,
            timeout=settings.timeout,
            verify=settings.verify_tls,
        )

    def _request(self, method: str, path: str, body: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        LOG.debug("%s %s", method, path)
        try:
            response = self._client.request(method, path, json=dict(body) if body is not None else None)
        except httpx.HTTPError as exc:
            raise RestClientError(f"{method} {path} failed: {exc}") from exc
        if response.status_code >= 400:
            raise RestClientError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def post(self, path: str, body: Mapping[str, Any]) -> Response:
        return Response.from_httpx(self._request("POST", path, body))

    def get(self, path: str) -> Response:
        return Response.from_httpx(self._request("GET", path))

    def delete(self, path: str) -> None:
        self._request("DELETE", path)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RestClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["ApiPaths", "BASIC_AUTH_USER", "Response", "RestClient", "Transport"]
