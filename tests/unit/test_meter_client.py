"""
Unit tests for meter_dashboard.transport.meter_client.MeterClient.

Validates:
- request shape (POST body, headers, timeout, TLS flag)
- decoding of the first reading of the response
- every failure mode surfaces as MeterFetchError

No real network I/O is performed (requests.post is monkeypatched).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

import pytest
import requests

from meter_dashboard.transport.meter_client import MeterClient, MeterClientConfig, MeterFetchError

CFG = MeterClientConfig(url="https://meter.example/get_realtime_data", meter_id=65010600, timeout_s=3.0)

READING = {
    "meter_name": "Main Incomer",
    "status": "Online",
    "date_time": "2026-01-01 10:00:00",
    "location": "Plant A",
    "hierachy": "Site",
    "kVA": {"value": "512.3", "unit": "kVA"},
}


@dataclass
class FakeResponse:
    """Minimal stand-in for requests.Response."""

    status_code: int = 200
    body: Any = None
    bad_json: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self.bad_json:
            raise ValueError("Expecting value")
        return self.body


def _patch_post(monkeypatch, response: FakeResponse, captured: List[Dict[str, Any]]) -> None:
    def fake_post(url: str, **kwargs: Any) -> FakeResponse:
        captured.append({"url": url, **kwargs})
        return response

    monkeypatch.setattr("meter_dashboard.transport.meter_client.requests.post", fake_post)


def test_fetch_posts_request_and_decodes_first_reading(monkeypatch) -> None:
    """The request follows the endpoint contract; the first element is decoded."""
    captured: List[Dict[str, Any]] = []
    _patch_post(monkeypatch, FakeResponse(body=[READING, {"ignored": True}]), captured)

    r = MeterClient(CFG).fetch()

    assert r.meter_name == "Main Incomer"
    assert r.demand == 512.3
    call = captured[0]
    assert call["url"] == CFG.url
    assert call["json"] == [{"meter": 65010600, "paraMeters": [7]}]
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["timeout"] == 3.0
    assert call["verify"] is True


def test_fetch_uses_session_when_given() -> None:
    """An injected session is used instead of requests.post."""

    class Session:
        def __init__(self) -> None:
            self.calls = 0

        def post(self, url: str, **kwargs: Any) -> FakeResponse:
            self.calls += 1
            return FakeResponse(body=[READING])

    s = Session()
    MeterClient(CFG, session=s).fetch()  # type: ignore[arg-type]
    assert s.calls == 1


def test_http_error_status(monkeypatch) -> None:
    """Non-2xx responses fail with the status code."""
    _patch_post(monkeypatch, FakeResponse(status_code=503), [])

    with pytest.raises(MeterFetchError, match="HTTP 503"):
        MeterClient(CFG).fetch()


def test_transport_error(monkeypatch) -> None:
    """Connection problems are wrapped."""

    def boom(url: str, **kwargs: Any) -> FakeResponse:
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr("meter_dashboard.transport.meter_client.requests.post", boom)

    with pytest.raises(MeterFetchError, match="connection refused"):
        MeterClient(CFG).fetch()


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(bad_json=True),
        FakeResponse(body=[]),
        FakeResponse(body={"meter_name": "x"}),
        FakeResponse(body=[{"meter_name": "no kva"}]),
        FakeResponse(body=["not an object"]),
    ],
)
def test_bad_bodies(monkeypatch, response: FakeResponse) -> None:
    """Invalid JSON, empty arrays and malformed readings all fail the fetch."""
    _patch_post(monkeypatch, response, [])

    with pytest.raises(MeterFetchError):
        MeterClient(CFG).fetch()
