from __future__ import annotations

import json
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Final

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .logger import get_logger

logger = get_logger("http")

CORS_METHODS: Final[list[str]] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS: Final[list[str]] = ["Content-Type", "Authorization"]

REDACTED_HEADERS: Final[frozenset[str]] = frozenset({"authorization", "cookie"})

# Bodies larger than this are summarised instead of logged.
MAX_LOGGED_BODY_BYTES: Final[int] = 4096


def add_cors(app: FastAPI, allowed_origins: Sequence[str]) -> None:
    """
    Allow cross-origin calls from an explicit list of origins only.

    Origins are compared exactly (case-sensitive). Requests without an Origin
    header (curl, mobile apps) are not affected by CORS at all.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(allowed_origins),
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )


def _loggable_headers(request: Request) -> dict[str, str]:
    return {
        key: ("<redacted>" if key.lower() in REDACTED_HEADERS else value)
        for key, value in request.headers.items()
    }


def _loggable_body(raw: bytes) -> Any:
    if not raw:
        return None
    if len(raw) > MAX_LOGGED_BODY_BYTES:
        return f"<{len(raw)} bytes>"
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return raw[:200].decode("utf-8", errors="replace")


def add_request_logging(
    app: FastAPI,
    allowed_origins: Sequence[str],
    log_bodies: bool = True,
) -> None:
    """Log every request (method, path, origin, headers, body) and its final status."""
    allowed = frozenset(allowed_origins)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        origin = request.headers.get("origin")
        body = _loggable_body(await request.body()) if log_bodies else None

        logger.info(
            "request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "origin": origin,
                "headers": _loggable_headers(request),
                "body": body,
            },
        )
        if origin is not None and origin not in allowed:
            logger.warning("CORS origin not allowed", extra={"origin": origin})

        started = time.perf_counter()
        response = await call_next(request)

        logger.info(
            "response",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return response
