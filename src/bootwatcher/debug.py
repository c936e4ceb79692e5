from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from .config import Settings

# Runtime keys that are safe to show next to the public client config.
_NON_SECRET_ENV_KEYS = ("ENVIRONMENT", "NODE_ENV", "LOG_LEVEL", "PORT", "RAILWAY_PORT", "ASSET_ROOT")


def _list_assets(asset_root: Path) -> tuple[list[str], str | None]:
    try:
        return sorted(os.listdir(asset_root)), None
    except OSError as e:
        return [], f"{type(e).__name__}: {e.strerror or e}"


def collect_debug_info(settings: Settings, port: int) -> dict[str, Any]:
    """
    Snapshot for the static host's /debug page.

    Only the public client config and a few runtime keys are included; the
    rest of the process environment (credentials in particular) never is.
    """
    env = {key: value for key, value in os.environ.items() if key in _NON_SECRET_ENV_KEYS}
    env.update(settings.public_client_config)

    files, error = _list_assets(settings.asset_root)
    info: dict[str, Any] = {
        "env": env,
        "port": port,
        "cwd": os.getcwd(),
        "assetRoot": str(settings.asset_root),
        "files": files,
    }
    if error:
        info["error"] = error
    return info
