"""Run the driver-behaviour webhook receiver.

Usage:
    python run_webhook_server.py --port 8787 --config fleet_config.json
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from src.config.schema import load_config
from src.web.webhook_server import run_server


def main() -> None:
    parser = argparse.ArgumentParser(description="Receive telematics events and normalize them.")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind")
    parser.add_argument("--port", type=int, default=8787, help="Port to bind")
    parser.add_argument("--config", default=None, help="JSON file overriding event tables")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    _, normalizer = load_config(Path(args.config) if args.config else None)
    run_server(host=args.host, port=args.port, config=normalizer)


if __name__ == "__main__":
    main()
