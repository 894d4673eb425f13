from __future__ import annotations

import json

import pytest
import requests
from requests.exceptions import ConnectionError

from eventures.core.aggregate import aggregate
from eventures.core.session import MapSession
from eventures.errors import SourceUnavailable
from eventures.providers.combined import build_source
from eventures.providers.eventfinda import EventFindaSource, flatten_event
from eventures.providers.http import HTTPClient
from eventures.providers.mock import MockEventSource


def _response(body: str, status: int = 200) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r._content = body.encode("utf-8")
    r.encoding = "utf-8"
    r.url = "https://api.example.test/v2/events.json"
    return r


class _FakeClient:
    def __init__(self, payload):
        self.payload = payload
        self.requests = []

    def get_json(self, url, params=None, timeout_s=None):
        self.requests.append((url, params))
        return self.payload


# ---- HTTPClient ----

def test_http_client_keeps_decimal_text(monkeypatch):
    client = HTTPClient(user_agent="test", tries=1)
    body = '{"events": [{"point": {"lat": -41.2900, "lng": 174.78}}]}'
    monkeypatch.setattr(client.s, "get", lambda url, params=None, timeout=None: _response(body))

    data = client.get_json("https://api.example.test/v2/events.json")

    assert data["events"][0]["point"]["lat"] == "-41.2900"


def test_http_client_retries_then_raises(monkeypatch):
    client = HTTPClient(user_agent="test", tries=3, backoff_s=0.0)
    attempts = []

    def failing_get(url, params=None, timeout=None):
        attempts.append(url)
        raise ConnectionError("refused")

    monkeypatch.setattr(client.s, "get", failing_get)

    with pytest.raises(SourceUnavailable):
        client.get_json("https://api.example.test/v2/events.json")
    assert len(attempts) == 3


def test_http_client_maps_http_errors(monkeypatch):
    client = HTTPClient(user_agent="test", tries=3, backoff_s=0.0)
    monkeypatch.setattr(client.s, "get", lambda url, params=None, timeout=None: _response("nope", 503))

    with pytest.raises(SourceUnavailable):
        client.get_json("https://api.example.test/v2/events.json")


def test_http_client_maps_bad_json(monkeypatch):
    client = HTTPClient(user_agent="test", tries=1)
    monkeypatch.setattr(client.s, "get", lambda url, params=None, timeout=None: _response("<html>"))

    with pytest.raises(SourceUnavailable):
        client.get_json("https://api.example.test/v2/events.json")


def test_http_client_basic_auth():
    client = HTTPClient(user_agent="test", username="user", password="secret")
    assert client.s.auth == ("user", "secret")
    assert client.s.headers["User-Agent"] == "test"


# ---- EventFinda ----

def test_flatten_event():
    rec = flatten_event(
        {"id": 42, "name": "Jazz", "point": {"lat": "-41.29", "lng": "174.78"}, "sessions": {"x": 1}}
    )
    assert rec == {"id": "42", "name": "Jazz", "lat": "-41.29", "lng": "174.78"}


def test_flatten_event_without_point():
    rec = flatten_event({"name": "Online"})
    assert rec["lat"] == ""
    assert rec["lng"] == ""


def test_eventfinda_fetch_builds_request():
    client = _FakeClient({"events": [{"point": {"lat": "1", "lng": "2"}}]})
    source = EventFindaSource(client=client, base_url="https://api.example.test/v2/")

    records = source.fetch("jazz", {"location": "wellington", "category": ""}, limit=20, offset=40)

    url, params = client.requests[0]
    assert url == "https://api.example.test/v2/events.json"
    assert params == {"location": "wellington", "q": "jazz", "rows": "20", "offset": "40"}
    assert records == [{"lat": "1", "lng": "2"}]


def test_eventfinda_exact_page_truncates():
    events = [{"point": {"lat": str(i), "lng": "0"}} for i in range(5)]
    source = EventFindaSource(client=_FakeClient({"events": events}), base_url="https://x")

    assert len(source.fetch("", None, limit=1, offset=0, exact_page=True)) == 1
    assert len(source.fetch("", None, limit=1, offset=0, exact_page=False)) == 5


def test_eventfinda_rejects_unexpected_payload():
    source = EventFindaSource(client=_FakeClient({"error": "bad key"}), base_url="https://x")
    with pytest.raises(SourceUnavailable):
        source.fetch("", None, limit=20, offset=0)


# ---- Mock source ----

def test_mock_source_query_filters_and_slicing():
    source = MockEventSource()

    assert len(source.fetch("jazz", None, limit=20, offset=0)) == 3
    assert len(source.fetch("jazz", None, limit=2, offset=2)) == 1
    hits = source.fetch("", {"location_summary": "Nelson"}, limit=20, offset=0)
    assert {r["name"] for r in hits} == {"Wine and Food Festival", "Summer Jazz Series"}
    assert source.calls[0] == ("jazz", 20, 0)


def test_mock_source_from_json_keeps_coordinate_text(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(
        '[{"name": "A", "lat": 10.0, "lng": 20}, {"name": "B", "lat": 10.00, "lng": 20}, {"name": "C", "lat": 1e-3, "lng": 20}]',
        encoding="utf-8",
    )

    source = MockEventSource.from_json(path)
    records = source.fetch("", None, limit=5, offset=0)

    assert [r["lat"] for r in records] == ["10.0", "10.00", "1e-3"]
    assert records[0]["lng"] == "20"
    assert len(aggregate(records)) == 3


def test_mock_source_from_saved_eventfinda_response(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(
        json.dumps({"events": [{"id": 7, "name": "A", "point": {"lat": "-41.29", "lng": "174.77"}}]}),
        encoding="utf-8",
    )

    session = MapSession(MockEventSource.from_json(path))

    assert session.search("") is True
    assert [p.key for p in session.points] == [("-41.29", "174.77")]
    assert session.aggregator.dropped == 0


def test_mock_source_failure():
    with pytest.raises(SourceUnavailable):
        MockEventSource(fail=True).fetch("", None, limit=1, offset=0)


# ---- factory ----

def test_build_source():
    assert isinstance(build_source("mock"), MockEventSource)
    assert isinstance(build_source("EventFinda"), EventFindaSource)
    with pytest.raises(ValueError):
        build_source("carrier-pigeon")
