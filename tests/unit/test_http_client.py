"""SecureHttpClient retry, error mapping and credential scrubbing."""

from __future__ import annotations

import httpx
import pytest

from travelsphere.security.http_client import SecureHttpClient
from travelsphere.security.key_manager import get_key_manager
from travelsphere.shared.exceptions import TransportError


def _client(handler, *, max_retries=2, sleeps=None):
    return SecureHttpClient(
        base_url="https://api.example.test",
        max_retries=max_retries,
        retry_delay=0.5,
        tool_name="flight",
        transport=httpx.MockTransport(handler),
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
    )


def test_retries_server_errors_with_backoff():
    statuses = iter([503, 502, 200])
    sleeps = []

    def handler(request):
        status = next(statuses)
        return httpx.Response(status, json={"ok": status == 200})

    client = _client(handler, sleeps=sleeps)

    assert client.post_json("/Reprice", {"TraceId": "t"}) == {"ok": True}
    assert sleeps == [0.5, 1.0]


def test_gives_up_after_max_retries():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(504)

    with pytest.raises(TransportError) as exc:
        _client(handler, max_retries=1).get_json("/health")

    assert exc.value.code == "504"
    assert exc.value.recoverable is True
    assert len(calls) == 2


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(400, json={"Error": "bad"})

    with pytest.raises(TransportError) as exc:
        _client(handler).post_json("/Book", {})

    assert exc.value.code == "400"
    assert exc.value.recoverable is False
    assert calls == [1]


def test_timeout_maps_to_timeout_code():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError) as exc:
        _client(handler, max_retries=0).post_json("/Reprice", {})

    assert exc.value.code == "TIMEOUT"


def test_connection_failure_maps_to_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as exc:
        _client(handler, max_retries=0).post_json("/Reprice", {})

    assert exc.value.code == "NETWORK_ERROR"


def test_non_json_body_is_not_retried():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(TransportError) as exc:
        _client(handler).get_json("/health")

    assert exc.value.code == "API_ERROR"
    assert calls == [1]


def test_error_messages_are_scrubbed(monkeypatch):
    secret = "flight-token-abcdef123456"
    monkeypatch.setenv("FLIGHT_API_KEY", secret)
    get_key_manager().reload("FLIGHT_API_KEY")

    def handler(request):
        return httpx.Response(401)

    with pytest.raises(TransportError) as exc:
        _client(handler).get_json("/Authenticate", params={"token": secret})

    assert secret not in str(exc.value)
    assert exc.value.code == "401"
