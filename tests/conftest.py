from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import pytest

from bootwatcher.config import Settings, get_settings
from bootwatcher.errors import ProviderError, StoreError
from bootwatcher.sms import NotificationRecord

ALLOWED_ORIGIN = "https://bootwatcher.com"


class FakeMessenger:
    """Records every send; numbers listed in `failing` are rejected by the 'provider'."""

    def __init__(self, failing: set[str] | None = None, reason: str = "Invalid 'To' Phone Number") -> None:
        self.failing = failing or set()
        self.reason = reason
        self.sent: list[dict[str, str]] = []
        self._lock = threading.Lock()

    def send(self, to: str, body: str) -> str:
        with self._lock:
            self.sent.append({"to": to, "body": body})
        if to in self.failing:
            raise ProviderError(to, self.reason)
        return f"SM{to.lstrip('+')}"


class FakeStore:
    def __init__(self, users: dict[str, Any] | None = None) -> None:
        self.users = users or {}
        self.records: list[NotificationRecord] = []
        self.fail_reads = False
        self.fail_writes = False
        self._lock = threading.Lock()

    def fetch_users(self) -> dict[str, Any]:
        if self.fail_reads:
            raise StoreError("permission denied")
        return self.users

    def append_notification(self, record: NotificationRecord) -> str:
        if self.fail_writes:
            raise StoreError("database unavailable")
        with self._lock:
            self.records.append(record)
            return f"-N{len(self.records)}"


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()


@pytest.fixture
def asset_root(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    root.mkdir()
    return root


@pytest.fixture
def settings(asset_root: Path) -> Settings:
    return Settings(
        environment="development",
        port=8080,
        asset_root=asset_root,
        allowed_origins=[ALLOWED_ORIGIN, "http://localhost:5173"],
        public_client_config={
            "VITE_MAPS_API_KEY": "maps-key",
            "VITE_FIREBASE_PROJECT_ID": "bootwatcher-demo",
        },
        twilio_account_sid="ACxxx",
        twilio_api_key_sid="SKxxx",
        twilio_api_key_secret="secret",
        twilio_phone_number="+15550000000",
    )


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
