"""Script to launch the Gemini Studio server."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn

# Ensure src/ is on sys.path (so imports work when run directly)
SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from gemini_studio.config import configure_logging, load_config  # noqa: E402
from gemini_studio.server import create_app  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Gemini Studio server.")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML config file (default: $GEMINI_STUDIO_CONFIG or config/default.yaml)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=os.environ.get("HOST"),
        help="Host to bind the server to (default: server.host from config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ["PORT"]) if os.environ.get("PORT") else None,
        help="Port to bind the server to (default: server.port from config)",
    )
    args = parser.parse_args()

    cfg = load_config(args.config)
    configure_logging(cfg)
    server_cfg = cfg.get("server", {})

    app = create_app(config=cfg)

    uvicorn.run(
        app,
        host=args.host or server_cfg.get("host", "127.0.0.1"),
        port=args.port or int(server_cfg.get("port", 8000)),
        log_level=str(cfg.get("logging", {}).get("level", "info")).lower(),
    )


if __name__ == "__main__":
    main()
