# tests/test_binance_api.py
"""
Tests for the Binance fetch layer.

- A stub object stands in for the binance-connector Spot client.
- requests.get is monkeypatched for the public IP lookup.
"""

import pytest
import requests
from binance.error import ClientError, ServerError

from keyaudit import binance_api
from keyaudit.binance_api import FetchError, fetch_permissions, lookup_public_ip, make_client

API_RESPONSE = {
    "ipRestrict": False,
    "createTime": 1698645219000,
    "enableReading": True,
    "enableWithdrawals": False,
    "enableFutures": False,
    "enablePortfolioMarginTrading": False,
}

class StubClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = 0

    def api_key_permission(self, **kwargs):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.response

def client_error(code, msg):
    return ClientError(401, code, msg, {})

def test_fetch_returns_snapshot():
    client = StubClient(response=API_RESPONSE)
    snapshot = fetch_permissions("key", "secret", client=client)

    assert client.calls == 1
    assert list(snapshot.flags) == ["ipRestrict", "enableReading", "enableWithdrawals",
                                    "enableFutures", "enablePortfolioMarginTrading"]
    assert snapshot.create_time == 1698645219000

@pytest.mark.parametrize("key, secret", [("", "secret"), ("key", ""), (None, None)])
def test_missing_credentials_never_hit_the_api(key, secret):
    client = StubClient(response=API_RESPONSE)
    with pytest.raises(FetchError) as exc:
        fetch_permissions(key, secret, client=client)
    assert exc.value.kind == "missing_credentials"
    assert client.calls == 0

@pytest.mark.parametrize("code, kind", [
    (-2008, "invalid_key"),
    (-2015, "rejected"),
    (-1022, "api_error"),
])
def test_client_errors_are_classified(code, kind):
    client = StubClient(error=client_error(code, "Binance says no."))
    with pytest.raises(FetchError) as exc:
        fetch_permissions("key", "secret", client=client)
    assert exc.value.kind == kind
    assert exc.value.code == code
    assert exc.value.message == "Binance says no."

def test_server_error_is_api_error():
    client = StubClient(error=ServerError(503, "Service Unavailable"))
    with pytest.raises(FetchError) as exc:
        fetch_permissions("key", "secret", client=client)
    assert exc.value.kind == "api_error"
    assert "503" in exc.value.message

def test_timeout_is_network_error():
    client = StubClient(error=requests.exceptions.ConnectTimeout("timed out"))
    with pytest.raises(FetchError) as exc:
        fetch_permissions("key", "secret", client=client)
    assert exc.value.kind == "network"
    assert exc.value.code is None

def test_non_object_response_is_rejected():
    client = StubClient(response=["not", "a", "dict"])
    with pytest.raises(FetchError) as exc:
        fetch_permissions("key", "secret", client=client)
    assert exc.value.kind == "api_error"

def test_fetch_error_str_never_contains_secret():
    client = StubClient(error=client_error(-2015, "Invalid API-key, IP, or permissions for action."))
    with pytest.raises(FetchError) as exc:
        fetch_permissions("my-key", "top-secret-value", client=client)
    assert "top-secret-value" not in str(exc.value)
    assert str(exc.value).startswith("rejected (-2015)")

def test_make_client_uses_configured_endpoint():
    client = make_client("key", "secret", base_url="https://testnet.binance.vision", timeout=3)
    assert client.base_url == "https://testnet.binance.vision"
    assert client.timeout == 3

class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload

def test_lookup_public_ip(monkeypatch):
    seen = {}

    def fake_get(url, timeout):
        seen["url"] = url
        return FakeResponse({"ip": "203.0.113.7"})

    monkeypatch.setattr(binance_api.requests, "get", fake_get)
    assert lookup_public_ip() == "203.0.113.7"
    assert seen["url"].startswith("https://api.ipify.org")

def test_lookup_public_ip_failure_returns_none(monkeypatch):
    def fake_get(url, timeout):
        raise requests.exceptions.ConnectionError("offline")

    monkeypatch.setattr(binance_api.requests, "get", fake_get)
    assert lookup_public_ip() is None

def test_lookup_public_ip_http_error_returns_none(monkeypatch):
    monkeypatch.setattr(binance_api.requests, "get", lambda url, timeout: FakeResponse({}, status=500))
    assert lookup_public_ip() is None

@pytest.mark.parametrize("payload", [["203.0.113.7"], "203.0.113.7", {"address": "203.0.113.7"}, {"ip": None}])
def test_lookup_public_ip_unexpected_body_returns_none(monkeypatch, payload):
    monkeypatch.setattr(binance_api.requests, "get", lambda url, timeout: FakeResponse(payload))
    assert lookup_public_ip() is None
