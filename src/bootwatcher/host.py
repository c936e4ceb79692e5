from __future__ import annotations

import json
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Final

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .debug import collect_debug_info
from .logger import get_logger
from .middleware import add_cors, add_request_logging
from .pages import GENERIC_ERROR_HTML, MAPS_ERROR_HTML

logger = get_logger("host")

DEFAULT_HOST_PORT: Final[int] = 8080
INDEX_DOCUMENT: Final[str] = "index.html"
ERROR_DOCUMENT: Final[str] = "error.html"


def render_env_script(config: Mapping[str, str]) -> str:
    # "</" is escaped so a config value can never close the script element early.
    payload = json.dumps(dict(config)).replace("</", "<\\/")
    return f"<script>window.env = {payload};</script>"


def inject_client_config(html: str, config: Mapping[str, str]) -> str:
    """Insert the window.env script right before the first </head>; no-op without one."""
    return html.replace("</head>", f"{render_env_script(config)}</head>", 1)


def resolve_asset(asset_root: Path, url_path: str) -> Path | None:
    """
    Map a request path to a file under asset_root.

    Directories resolve to their index.html. Anything that would escape the
    asset root, does not exist, or is not a valid filesystem path (NUL bytes,
    over-long names) resolves to None.
    """
    try:
        root = asset_root.resolve()
        candidate = (root / url_path.lstrip("/")).resolve()
        if not candidate.is_relative_to(root):
            return None
        if candidate.is_dir():
            candidate = candidate / INDEX_DOCUMENT
        return candidate if candidate.is_file() else None
    except (OSError, ValueError):
        return None


def create_host_app(settings: Settings | None = None, port: int | None = None) -> FastAPI:
    """
    Build the static host for the single-page app.

    `port` is the port the server actually binds, shown on /debug; it
    defaults to the configured one.
    """
    settings = settings or get_settings()
    asset_root = settings.asset_root
    port = port or settings.port or DEFAULT_HOST_PORT

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        routes = ["/health"]
        if not settings.is_production:
            routes.append("/debug")
        routes += ["/error", "/maps-error", "/*"]
        logger.info(
            "Static host started",
            extra={"asset_root": str(asset_root), "port": port, "routes": routes},
        )
        yield

    # The SPA owns every path, so the generated API docs are switched off.
    app = FastAPI(
        title="bootwatcher-host",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.add_middleware(GZipMiddleware, minimum_size=500)
    add_cors(app, settings.allowed_origins)
    add_request_logging(app, settings.allowed_origins, log_bodies=False)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 404:
            return PlainTextResponse("Not Found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    def render_document(path: Path) -> HTMLResponse:
        html = path.read_text(encoding="utf-8")
        return HTMLResponse(inject_client_config(html, settings.public_client_config))

    @app.get("/health")
    def health() -> PlainTextResponse:
        return PlainTextResponse("OK")

    if not settings.is_production:

        @app.get("/debug")
        def debug() -> JSONResponse:
            return JSONResponse(collect_debug_info(settings, port))

    @app.get("/error")
    def error_page() -> Response:
        page = resolve_asset(asset_root, ERROR_DOCUMENT)
        if page is not None:
            return FileResponse(page, media_type="text/html")
        return HTMLResponse(GENERIC_ERROR_HTML)

    @app.get("/maps-error")
    def maps_error_page() -> HTMLResponse:
        return HTMLResponse(MAPS_ERROR_HTML)

    @app.get("/{full_path:path}")
    def serve(full_path: str) -> Response:
        """
        Static assets with single-page-app fallback.

        HTML documents (including "/") get the public client config injected.
        Unknown paths are answered with the root document so client-side
        routing can take over.
        """
        asset = resolve_asset(asset_root, full_path)
        if asset is not None:
            if asset.suffix == ".html":
                return render_document(asset)
            return FileResponse(asset)

        index = resolve_asset(asset_root, INDEX_DOCUMENT)
        if index is None:
            raise HTTPException(status_code=404)
        return render_document(index)

    return app

