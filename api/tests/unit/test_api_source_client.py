"""
Tests unitarios para el cliente de fuentes HTTP.

Usa una sesion falsa en lugar de requests.Session: no hay red.
"""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

import pytest
import requests

from datasync.domain.entities.sync import ExternalConnection
from datasync.infrastructure.external.connections.api_client import (
    ApiSourceClient,
    build_headers,
    extract_records,
)
from datasync.shared.exceptions.sync import SourceError

_NOT_JSON = object()


class DummyResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, headers: Optional[Dict[str, str]] = None, reason: str = "OK"):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.reason = reason
        self.text = "" if payload is _NOT_JSON else str(payload)

    def json(self) -> Any:
        if self._payload is _NOT_JSON:
            raise ValueError("Expecting value")
        return self._payload


class DummySession:
    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(self, **kwargs: Any) -> DummyResponse:
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _connection(**overrides) -> ExternalConnection:
    values = dict(id="c-1", connection_type="api", api_url="https://src.example/users", api_method="GET")
    values.update(overrides)
    return ExternalConnection(**values)


def _client(responses, sleeps=None, max_retries: int = 2) -> ApiSourceClient:
    sink = sleeps if sleeps is not None else []
    return ApiSourceClient(session=DummySession(responses), max_retries=max_retries, timeout_s=5, sleep=sink.append)


def test_bearer_auth_header_and_static_headers() -> None:
    headers = build_headers(_connection(
        api_auth_type="bearer",
        api_auth_token="t1",
        api_headers={"X-Tenant": "acme", "Authorization": "static"},
    ))

    assert headers["Authorization"] == "Bearer t1"
    assert headers["X-Tenant"] == "acme"
    assert headers["Content-Type"] == "application/json"


def test_basic_and_apikey_auth_headers() -> None:
    basic = build_headers(_connection(api_auth_type="basic", api_auth_username="u", api_auth_password="p"))
    assert basic["Authorization"] == "Basic " + base64.b64encode(b"u:p").decode("ascii")

    apikey = build_headers(_connection(api_auth_type="apikey", api_auth_apikey_name="X-Api-Key", api_auth_apikey_value="k"))
    assert apikey["X-Api-Key"] == "k"
    assert "Authorization" not in apikey


def test_extract_records_normalizes_to_list() -> None:
    assert extract_records([{"id": 1}], None) == [{"id": 1}]
    assert extract_records({"data": {"items": [{"id": 1}, {"id": 2}]}}, "data.items") == [{"id": 1}, {"id": 2}]
    assert extract_records({"data": {"id": 1}}, "data") == [{"id": 1}]
    assert extract_records({"data": None}, "data") == []
    assert extract_records({"data": []}, "data.items") == []


def test_extract_records_indexes_into_arrays() -> None:
    payload = {"results": [{"items": [{"id": 1}, {"id": 2}]}, {"items": []}]}

    assert extract_records(payload, "results.0.items") == [{"id": 1}, {"id": 2}]
    assert extract_records(payload, "results.1") == [{"items": []}]
    assert extract_records(payload, "results.5.items") == []


def test_fetch_get_does_not_send_body() -> None:
    client = _client([DummyResponse(payload=[{"id": 1}])])
    records = client.fetch(_connection(api_body='{"q": 1}'))

    assert records == [{"id": 1}]
    call = client._session.calls[0]
    assert call["method"] == "GET"
    assert call["timeout"] == 5
    assert "json" not in call and "data" not in call


def test_fetch_post_sends_json_body() -> None:
    client = _client([DummyResponse(payload={"result": [{"id": 1}]})])
    records = client.fetch(_connection(api_method="post", api_body='{"q": 1}', api_response_path="result"))

    assert records == [{"id": 1}]
    assert client._session.calls[0]["json"] == {"q": 1}


def test_fetch_retries_on_429_using_retry_after() -> None:
    sleeps: List[float] = []
    client = _client(
        [DummyResponse(status_code=429, payload={}, headers={"Retry-After": "2"}, reason="Too Many Requests"),
         DummyResponse(payload=[{"id": 1}])],
        sleeps=sleeps,
    )

    assert client.fetch(_connection()) == [{"id": 1}]
    assert sleeps == [2.0]


def test_fetch_gives_up_after_max_retries_on_5xx() -> None:
    sleeps: List[float] = []
    client = _client(
        [DummyResponse(status_code=503, payload={}, reason="Service Unavailable")] * 2,
        sleeps=sleeps,
        max_retries=1,
    )

    with pytest.raises(SourceError) as exc_info:
        client.fetch(_connection())

    assert exc_info.value.message == "API request failed: 503 Service Unavailable"
    assert exc_info.value.details["status_code"] == 503
    assert len(sleeps) == 1


def test_fetch_client_error_fails_immediately() -> None:
    client = _client([DummyResponse(status_code=404, payload={}, reason="Not Found")])

    with pytest.raises(SourceError) as exc_info:
        client.fetch(_connection())

    assert exc_info.value.message == "API request failed: 404 Not Found"
    assert len(client._session.calls) == 1


def test_fetch_wraps_transport_errors() -> None:
    client = _client([requests.ConnectionError("refused")])
    with pytest.raises(SourceError, match="refused"):
        client.fetch(_connection())


def test_fetch_rejects_non_json_response() -> None:
    client = _client([DummyResponse(payload=_NOT_JSON)])
    with pytest.raises(SourceError, match="not valid JSON"):
        client.fetch(_connection())


def test_fetch_requires_url() -> None:
    with pytest.raises(SourceError):
        _client([]).fetch(_connection(api_url=None))
