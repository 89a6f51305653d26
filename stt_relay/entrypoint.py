#!/usr/bin/env python3
"""Entrypoint for the STT relay server.

Runs the FastAPI app under uvicorn. Host and port come from SERVER_HOST /
SERVER_PORT, falling back to the ``server`` section of config.yaml.
"""

import os

import uvicorn

from stt_relay import __version__
from stt_relay.config import get_config


def print_banner(host: str, port: int, speech_api_url: str, has_credentials: bool) -> None:
    """Print startup banner."""
    print("=" * 60)
    print(f"STT Relay {__version__}")
    print("=" * 60)
    print(f"Server URL:     http://{host}:{port}")
    print(f"Speech API:     {speech_api_url}")
    print(f"Credentials:    {'Configured' if has_credentials else 'MISSING'}")
    print("")
    print("Endpoints:")
    print("  - Demo page:   GET /")
    print("  - Transcribe:  POST /  (raw audio body)")
    print("=" * 60)


def main() -> None:
    """Main entrypoint."""
    config = get_config()

    host = os.environ.get("SERVER_HOST") or config.get("server", "host", default="0.0.0.0")
    port = int(os.environ.get("SERVER_PORT") or config.get("server", "port", default=8787))
    log_level = os.environ.get("LOG_LEVEL") or config.get("logging", "level", default="info")

    print_banner(
        host,
        port,
        config.speech_api_url,
        has_credentials=config.get_service_credentials() is not None,
    )

    uvicorn.run(
        "stt_relay.api.main:app",
        host=host,
        port=port,
        log_level=str(log_level).lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
