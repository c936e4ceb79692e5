from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, Field

from .errors import ConfigurationError

# Keys the static host is allowed to expose to the browser. Everything else in
# the environment stays on the server.
PUBLIC_CLIENT_CONFIG_KEYS: Final[tuple[str, ...]] = (
    "VITE_MAPS_API_KEY",
    "VITE_FIREBASE_API_KEY",
    "VITE_FIREBASE_AUTH_DOMAIN",
    "VITE_FIREBASE_DATABASE_URL",
    "VITE_FIREBASE_PROJECT_ID",
    "VITE_FIREBASE_STORAGE_BUCKET",
    "VITE_FIREBASE_MESSAGING_SENDER_ID",
    "VITE_FIREBASE_APP_ID",
)

DEFAULT_ALLOWED_ORIGINS: Final[tuple[str, ...]] = (
    "http://localhost:5173",
    "http://localhost:5174",
    "https://web-production-fc86.up.railway.app",
    "https://boot-watcher.vercel.app",
    "https://bootwatcher.com",
    "https://www.bootwatcher.com",
)

# env var -> service account field expected by firebase_admin.credentials.Certificate
FIREBASE_SERVICE_ACCOUNT_ENV: Final[dict[str, str]] = {
    "FIREBASE_TYPE": "type",
    "FIREBASE_PROJECT_ID": "project_id",
    "FIREBASE_PRIVATE_KEY_ID": "private_key_id",
    "FIREBASE_PRIVATE_KEY": "private_key",
    "FIREBASE_CLIENT_EMAIL": "client_email",
    "FIREBASE_CLIENT_ID": "client_id",
    "FIREBASE_AUTH_URI": "auth_uri",
    "FIREBASE_TOKEN_URI": "token_uri",
    "FIREBASE_AUTH_PROVIDER_CERT_URL": "auth_provider_x509_cert_url",
    "FIREBASE_CLIENT_CERT_URL": "client_x509_cert_url",
}

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[2]


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value


def _read_port() -> int | None:
    raw = _env("PORT") or _env("RAILWAY_PORT")
    if raw is None:
        return None
    try:
        port = int(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid PORT='{raw}'. Must be an integer.") from None
    if not 0 < port < 65536:
        raise ConfigurationError(f"Invalid PORT='{raw}'. Must be between 1 and 65535.")
    return port


def _read_allowed_origins() -> list[str]:
    raw = _env("ALLOWED_ORIGINS")
    if raw is None:
        return list(DEFAULT_ALLOWED_ORIGINS)
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if "*" in origins:
        raise ConfigurationError(
            "ALLOWED_ORIGINS must list explicit origins; '*' is not accepted"
        )
    return origins


def _read_asset_root() -> Path:
    raw = _env("ASSET_ROOT")
    if raw:
        return Path(raw)
    return Path(os.getenv("PROJECT_ROOT", PROJECT_ROOT)) / "public"


class Settings(BaseModel):
    # "production" hides /debug and internal error details.
    environment: str = Field(
        default_factory=lambda: (_env("ENVIRONMENT") or _env("NODE_ENV") or "development").lower()
    )
    log_level: str = Field(default_factory=lambda: (_env("LOG_LEVEL") or "INFO").upper())
    port: int | None = Field(default_factory=_read_port)

    # --- Static host ---
    asset_root: Path = Field(default_factory=_read_asset_root)
    public_client_config: dict[str, str] = Field(
        default_factory=lambda: {key: os.getenv(key, "") for key in PUBLIC_CLIENT_CONFIG_KEYS}
    )

    # --- CORS (both services) ---
    allowed_origins: list[str] = Field(default_factory=_read_allowed_origins)

    # --- Twilio, API key authentication ---
    twilio_account_sid: str | None = Field(default_factory=lambda: _env("TWILIO_ACCOUNT_SID"))
    twilio_api_key_sid: str | None = Field(default_factory=lambda: _env("TWILIO_API_KEY_SID"))
    twilio_api_key_secret: str | None = Field(default_factory=lambda: _env("TWILIO_API_KEY_SECRET"))
    twilio_phone_number: str | None = Field(default_factory=lambda: _env("TWILIO_PHONE_NUMBER"))

    # --- Firebase Realtime Database ---
    firebase_database_url: str | None = Field(default_factory=lambda: _env("FIREBASE_DATABASE_URL"))
    firebase_credentials: dict[str, str | None] = Field(
        default_factory=lambda: {name: _env(name) for name in FIREBASE_SERVICE_ACCOUNT_ENV}
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def require_twilio(self) -> None:
        """Raise ConfigurationError naming every missing Twilio variable."""
        missing = [
            name
            for name, value in [
                ("TWILIO_API_KEY_SID", self.twilio_api_key_sid),
                ("TWILIO_API_KEY_SECRET", self.twilio_api_key_secret),
                ("TWILIO_ACCOUNT_SID", self.twilio_account_sid),
                ("TWILIO_PHONE_NUMBER", self.twilio_phone_number),
            ]
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing Twilio credentials: {', '.join(missing)}", missing=missing
            )

    def firebase_service_account(self) -> dict[str, Any]:
        """
        Build the service account mapping for firebase_admin.

        The private key usually arrives with literal "\\n" sequences when it is
        pasted into a hosting dashboard; those are turned back into newlines.
        """
        missing = [name for name, value in self.firebase_credentials.items() if not value]
        if not self.firebase_database_url:
            missing.append("FIREBASE_DATABASE_URL")
        if missing:
            raise ConfigurationError(
                f"Missing Firebase credentials: {', '.join(missing)}", missing=missing
            )

        account = {
            FIREBASE_SERVICE_ACCOUNT_ENV[name]: value
            for name, value in self.firebase_credentials.items()
        }
        account["private_key"] = str(account["private_key"]).replace("\\n", "\n")
        return account


@lru_cache
def get_settings() -> Settings:
    return Settings()
