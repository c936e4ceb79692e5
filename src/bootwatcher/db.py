from __future__ import annotations

from typing import Any, Protocol

import firebase_admin
from firebase_admin import credentials, db
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

from .config import Settings
from .errors import ConfigurationError, StoreError
from .logger import get_logger
from .sms import NotificationRecord

logger = get_logger("db")

USERS_PATH = "users"
NOTIFICATIONS_PATH = "notifications"

# Named app so the relay never collides with a default app created elsewhere.
FIREBASE_APP_NAME = "bootwatcher-relay"


class NotificationStore(Protocol):
    def fetch_users(self) -> dict[str, Any]: ...

    def append_notification(self, record: NotificationRecord) -> str: ...


class FirebaseStore:
    """
    Realtime Database access for the relay.

    `users/*` is only ever read, `notifications/*` is only ever appended to.
    """

    def __init__(self, app: firebase_admin.App) -> None:
        self._app = app

    @classmethod
    def from_settings(cls, settings: Settings) -> FirebaseStore:
        account = settings.firebase_service_account()
        try:
            cert = credentials.Certificate(account)
        except ValueError as e:
            # raised for a malformed private key or wrong account type
            raise ConfigurationError(f"Invalid Firebase service account: {e}") from e

        app = firebase_admin.initialize_app(
            cert,
            {"databaseURL": settings.firebase_database_url},
            name=FIREBASE_APP_NAME,
        )
        logger.info("Firebase initialized successfully")
        return cls(app)

    def close(self) -> None:
        firebase_admin.delete_app(self._app)

    def fetch_users(self) -> dict[str, Any]:
        try:
            users = db.reference(USERS_PATH, app=self._app).get()
        except (FirebaseError, GoogleAuthError, ValueError, OSError) as e:
            raise StoreError(f"Failed to read '{USERS_PATH}': {e}") from e
        return users or {}

    def append_notification(self, record: NotificationRecord) -> str:
        """Push the record under a generated id and return that id."""
        try:
            ref = db.reference(NOTIFICATIONS_PATH, app=self._app).push(record.to_document())
        except (FirebaseError, GoogleAuthError, ValueError, OSError) as e:
            raise StoreError(f"Failed to append notification: {e}") from e
        return str(ref.key)
