"""Tests for the driver-behaviour webhook receiver."""

import http.client
import json
import threading
import urllib.error
import urllib.request
from http import HTTPStatus

import pytest

from src.web.webhook_server import EventStore, WebhookServer, event_key, handle_event_payload


@pytest.fixture
def store():
    return EventStore()


def _post(body, store, config):
    raw = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    return handle_event_payload(raw, store, config)


class TestHandlePayload:
    def test_success(self, seatbelt_payload, store, normalizer_config):
        status, response = _post(seatbelt_payload, store, normalizer_config)
        assert status == HTTPStatus.OK
        assert response["success"] is True
        assert response["created"] is True
        assert response["event"]["event_type"] == "seatbelt_violation"
        assert response["event"]["driver_name"] == "Phillimon Kwarire"
        assert len(store) == 1

    def test_invalid_json(self, store, normalizer_config):
        status, response = _post(b"{not json", store, normalizer_config)
        assert status == HTTPStatus.BAD_REQUEST
        assert response == {"error": "Invalid JSON payload"}

    def test_missing_event_type(self, store, normalizer_config):
        status, response = _post({"driverName": "X"}, store, normalizer_config)
        assert status == HTTPStatus.BAD_REQUEST
        assert "error" in response
        assert len(store) == 0

    def test_ignored_event_not_stored(self, store, normalizer_config):
        status, response = _post({"eventType": "ACC_ON"}, store, normalizer_config)
        assert status == HTTPStatus.OK
        assert response["success"] is False
        assert response["message"] == "Ignored event type"
        assert len(store) == 0

    def test_redelivery_updates_in_place(self, seatbelt_payload, store, normalizer_config):
        _post(seatbelt_payload, store, normalizer_config)
        _, response = _post(seatbelt_payload, store, normalizer_config)
        assert response["created"] is False
        assert len(store) == 1

    def test_payload_id_is_key(self, store, normalizer_config):
        _, response = _post({"id": "evt-42", "eventType": "Speeding"}, store, normalizer_config)
        assert response["id"] == "evt-42"


class TestEventKey:
    def test_content_hash_ignores_key_order(self):
        a = event_key({"eventType": "Speeding", "serialNumber": "1"})
        b = event_key({"serialNumber": "1", "eventType": "Speeding"})
        assert a == b
        assert a.startswith("EVENT-")

    def test_different_content_different_key(self):
        assert event_key({"eventType": "Speeding"}) != event_key({"eventType": "Tamper"})


@pytest.fixture
def server(normalizer_config):
    srv = WebhookServer(("127.0.0.1", 0), config=normalizer_config)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.shutdown()
    srv.server_close()


def _request(server, path, method="GET", body=None):
    host, port = server.server_address[:2]
    data = json.dumps(body).encode("utf-8") if body is not None else None
    req = urllib.request.Request(f"http://{host}:{port}{path}", data=data, method=method,
                                 headers={"Content-Type": "application/json"})
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            return resp.status, resp.headers, resp.read()
    except urllib.error.HTTPError as exc:
        return exc.code, exc.headers, exc.read()


class TestHttpServer:
    def test_health(self, server):
        status, _, body = _request(server, "/api/health")
        assert status == 200
        assert json.loads(body)["status"] == "ok"

    def test_post_then_list(self, server, seatbelt_payload):
        status, headers, body = _request(server, "/api/driver-behavior", "POST", seatbelt_payload)
        assert status == 200
        assert headers["Access-Control-Allow-Origin"] == "*"
        event_id = json.loads(body)["id"]

        _, _, body = _request(server, "/api/events")
        listing = json.loads(body)
        assert listing["count"] == 1
        assert listing["events"][0]["id"] == event_id

    def test_get_on_webhook_not_allowed(self, server):
        status, _, _ = _request(server, "/api/driver-behavior")
        assert status == 405

    def test_unknown_route(self, server):
        assert _request(server, "/nope")[0] == 404
        assert _request(server, "/nope", "POST", {"eventType": "Speeding"})[0] == 404

    def test_preflight(self, server):
        status, headers, _ = _request(server, "/api/driver-behavior", "OPTIONS")
        assert status == 204
        assert "POST" in headers["Access-Control-Allow-Methods"]

    def test_bad_body(self, server):
        status, _, body = _request(server, "/api/driver-behavior", "POST", ["not", "an", "object"])
        assert status == 400
        assert "error" in json.loads(body)

    def test_malformed_content_length(self, server):
        host, port = server.server_address[:2]
        conn = http.client.HTTPConnection(host, port, timeout=5)
        try:
            conn.putrequest("POST", "/api/driver-behavior")
            conn.putheader("Content-Type", "application/json")
            conn.putheader("Content-Length", "lots")
            conn.endheaders()
            resp = conn.getresponse()
            assert resp.status == 400
            assert "Content-Length" in json.loads(resp.read())["error"]
        finally:
            conn.close()
        assert len(server.store) == 0


class TestEventStore:
    def test_oldest_event_evicted_when_full(self, seatbelt_payload, normalizer_config):
        store = EventStore(max_events=2)
        for i in range(3):
            _post(dict(seatbelt_payload, id=f"evt-{i}"), store, normalizer_config)
        assert len(store) == 2
        assert [key for key, _ in store.all()] == ["evt-1", "evt-2"]

    def test_rewrite_refreshes_position(self, seatbelt_payload, normalizer_config):
        store = EventStore(max_events=2)
        for key in ("a", "b", "a", "c"):
            _post(dict(seatbelt_payload, id=key), store, normalizer_config)
        assert [key for key, _ in store.all()] == ["a", "c"]

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError, match="max_events"):
            EventStore(max_events=0)
