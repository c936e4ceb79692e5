from __future__ import annotations

import argparse
import sys
from collections.abc import Callable

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from .config import Settings, get_settings
from .errors import ConfigurationError
from .host import DEFAULT_HOST_PORT, create_host_app
from .logger import configure_logging, get_logger
from .relay import create_relay_app
from .twilio_client import TwilioMessenger

logger = get_logger("cli")

DEFAULT_RELAY_PORT = 3000


def _parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0).")
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: $PORT, then the service default).",
    )
    parser.add_argument("--log-level", default=None, help="Overrides $LOG_LEVEL.")
    return parser


def _run(
    description: str,
    default_port: int,
    build_app: Callable[[Settings, int], FastAPI],
    argv: list[str] | None = None,
) -> int:
    args = _parser(description).parse_args(argv)
    load_dotenv()
    get_settings.cache_clear()

    try:
        settings = get_settings()
        configure_logging(args.log_level or settings.log_level)
        port = args.port or settings.port or default_port
        app = build_app(settings, port)
    except ConfigurationError as e:
        configure_logging()
        logger.error("Invalid configuration", extra={"error": str(e), "missing": e.missing})
        return 1

    logger.info("Server starting", extra={"host": args.host, "port": port})
    uvicorn.run(app, host=args.host, port=port, log_level=(args.log_level or settings.log_level).lower())
    return 0


def _build_relay(settings: Settings, port: int) -> FastAPI:
    # Fail before binding the port rather than on the first request.
    settings.require_twilio()
    settings.firebase_service_account()
    return create_relay_app(settings, messenger=TwilioMessenger.from_settings(settings))


def relay_main(argv: list[str] | None = None) -> None:
    sys.exit(_run("Run the BootWatcher SMS relay.", DEFAULT_RELAY_PORT, _build_relay, argv))


def host_main(argv: list[str] | None = None) -> None:
    sys.exit(_run("Run the BootWatcher static host.", DEFAULT_HOST_PORT, create_host_app, argv))


if __name__ == "__main__":
    relay_main()
