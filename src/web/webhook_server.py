"""Driver-behaviour webhook receiver.

Serves:
- POST /api/driver-behavior  raw telematics event -> normalized event
- GET  /api/health
- GET  /api/events           events accepted so far
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from dataclasses import asdict
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from src.config.schema import NormalizerConfig, default_normalizer_config
from src.events.normalizer import NormalizedEvent, normalize
from src.events.payload import InvalidPayloadError, parse_raw_event

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}

# In-memory cap for the event store
DEFAULT_MAX_EVENTS = 10_000


def event_key(payload: dict) -> str:
    """Caller-side identifier: the payload's id, else a hash of its content."""
    if payload.get("id"):
        return str(payload["id"])
    digest = hashlib.sha256(json.dumps(payload, sort_keys=True, default=str).encode("utf-8"))
    return f"EVENT-{digest.hexdigest()[:16]}"


class EventStore:
    """Thread-safe in-memory upsert store keyed by event id.

    Holds at most max_events; once full, the least recently written event
    is evicted. Durable storage is the caller's concern.
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS):
        if max_events <= 0:
            raise ValueError(f"max_events must be positive, got {max_events}")
        self.max_events = max_events
        self._events: OrderedDict[str, NormalizedEvent] = OrderedDict()
        self._lock = threading.Lock()

    def upsert(self, key: str, event: NormalizedEvent) -> bool:
        """Store an event; returns False when the key was already present."""
        with self._lock:
            created = key not in self._events
            self._events[key] = event
            self._events.move_to_end(key)
            while len(self._events) > self.max_events:
                evicted, _ = self._events.popitem(last=False)
                logger.debug(f"Evicted event {evicted}")
        return created

    def all(self) -> List[Tuple[str, NormalizedEvent]]:
        with self._lock:
            return list(self._events.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


def handle_event_payload(
    body: bytes,
    store: EventStore,
    config: NormalizerConfig,
) -> Tuple[HTTPStatus, dict]:
    """Process one webhook body; returns (status, JSON response)."""
    try:
        payload = json.loads(body.decode("utf-8") or "null")
    except (UnicodeDecodeError, json.JSONDecodeError):
        return HTTPStatus.BAD_REQUEST, {"error": "Invalid JSON payload"}

    try:
        raw = parse_raw_event(payload)
    except InvalidPayloadError as exc:
        return HTTPStatus.BAD_REQUEST, {"error": str(exc)}

    event = normalize(raw, config)
    if event is None:
        return HTTPStatus.OK, {
            "success": False,
            "message": "Ignored event type",
            "eventType": raw.event_type,
        }

    key = event_key(payload)
    created = store.upsert(key, event)
    logger.info(f"{'Stored' if created else 'Updated'} event {key}: {event.event_type}")
    return HTTPStatus.OK, {
        "success": True,
        "message": "Driver behavior event recorded successfully",
        "id": key,
        "created": created,
        "event": asdict(event),
    }


class WebhookHandler(BaseHTTPRequestHandler):
    """Webhook API; store and config are attached to the server instance."""

    def _send_json(self, payload: dict, status: HTTPStatus = HTTPStatus.OK) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        for name, value in CORS_HEADERS.items():
            self.send_header(name, value)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_OPTIONS(self) -> None:  # noqa: N802
        self.send_response(HTTPStatus.NO_CONTENT)
        for name, value in CORS_HEADERS.items():
            self.send_header(name, value)
        self.end_headers()

    def do_GET(self) -> None:  # noqa: N802
        route = urlparse(self.path).path

        if route == "/api/health":
            self._send_json({"status": "ok", "service": "driver-behavior-webhook"})
            return

        if route == "/api/events":
            events = [{"id": key, **asdict(e)} for key, e in self.server.store.all()]
            self._send_json({"count": len(events), "events": events})
            return

        if route == "/api/driver-behavior":
            self._send_json({"error": "Method not allowed"}, HTTPStatus.METHOD_NOT_ALLOWED)
            return

        self._send_json({"error": "Not found"}, HTTPStatus.NOT_FOUND)

    def do_POST(self) -> None:  # noqa: N802
        route = urlparse(self.path).path
        if route != "/api/driver-behavior":
            self._send_json({"error": "Not found"}, HTTPStatus.NOT_FOUND)
            return

        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            self._send_json({"error": "Invalid Content-Length header"}, HTTPStatus.BAD_REQUEST)
            return
        body = self.rfile.read(length) if length > 0 else b""
        status, payload = handle_event_payload(body, self.server.store, self.server.config)
        self._send_json(payload, status)

    def log_message(self, format, *args) -> None:  # noqa: A002
        logger.debug(f"{self.address_string()} {format % args}")


class WebhookServer(ThreadingHTTPServer):
    def __init__(
        self,
        address: Tuple[str, int],
        store: Optional[EventStore] = None,
        config: Optional[NormalizerConfig] = None,
    ):
        super().__init__(address, WebhookHandler)
        self.store = store if store is not None else EventStore()
        self.config = config or default_normalizer_config()


def run_server(
    host: str = "127.0.0.1",
    port: int = 8787,
    config: Optional[NormalizerConfig] = None,
) -> None:
    """Run the webhook server until interrupted."""
    server = WebhookServer((host, port), config=config)

    print(f"Webhook server running at http://{host}:{port}")
    print("API: POST /api/driver-behavior | GET /api/health, /api/events")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    run_server()
