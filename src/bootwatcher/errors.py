from __future__ import annotations

from typing import Any


class BootwatcherError(Exception):
    """Base class for every error raised by the bootwatcher services."""


class ConfigurationError(BootwatcherError):
    """Missing or malformed settings. Fatal at startup."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class ValidationError(BootwatcherError):
    """
    Malformed client input on the relay.

    Rendered as a 400 response; these are client mistakes and are logged
    at warning level, never as server errors.
    """

    field: str = ""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, "field": self.field}


class MissingOrInvalidRecipients(ValidationError):
    field = "phoneNumbers"

    def __init__(self, message: str = "Invalid request: phoneNumbers must be a non-empty array") -> None:
        super().__init__(message)


class MissingOrInvalidMessage(ValidationError):
    field = "message"

    def __init__(self, message: str = "Invalid request: message must be a non-empty string") -> None:
        super().__init__(message)


class InvalidPhoneNumbers(ValidationError):
    field = "phoneNumbers"

    def __init__(self, invalid_numbers: list[str]) -> None:
        super().__init__("Invalid phone numbers")
        self.invalid_numbers = list(invalid_numbers)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["invalidNumbers"] = self.invalid_numbers
        return data


class ProviderError(BootwatcherError):
    """A single recipient could not be reached through the messaging provider."""

    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(f"{recipient}: {reason}")
        self.recipient = recipient
        self.reason = reason


class StoreError(BootwatcherError):
    """Reading from or writing to the document store failed."""
