from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Final, Literal

from pydantic import BaseModel, Field

from .errors import InvalidPhoneNumbers, MissingOrInvalidMessage, MissingOrInvalidRecipients

# E.164: "+", a non-zero leading ASCII digit, at most 15 digits in total.
E164_RE: Final[re.Pattern[str]] = re.compile(r"\+[1-9]\d{1,14}", re.ASCII)

DEFAULT_ORIGIN_LABEL: Final[str] = "Unknown"


class SendRequest(BaseModel):
    recipients: list[str]
    body: str
    origin_label: str | None = None


class SendOutcome(BaseModel):
    recipient: str = Field(serialization_alias="phoneNumber")
    status: Literal["success", "failed"]
    provider_message_id: str | None = Field(default=None, serialization_alias="sid")
    failure_reason: str | None = Field(default=None, serialization_alias="error")

    @classmethod
    def success(cls, recipient: str, provider_message_id: str) -> SendOutcome:
        return cls(recipient=recipient, status="success", provider_message_id=provider_message_id)

    @classmethod
    def failed(cls, recipient: str, failure_reason: str) -> SendOutcome:
        return cls(recipient=recipient, status="failed", failure_reason=failure_reason)


class SendReport(BaseModel):
    outcomes: list[SendOutcome]

    @property
    def overall_success(self) -> bool:
        # False only when every single recipient failed.
        return any(o.status == "success" for o in self.outcomes)

    def to_response(self) -> dict[str, Any]:
        return {
            "success": self.overall_success,
            "message": (
                "SMS processing completed"
                if self.overall_success
                else "Failed to send SMS to all numbers"
            ),
            "results": [
                o.model_dump(by_alias=True, exclude_none=True) for o in self.outcomes
            ],
        }


class NotificationRecord(BaseModel):
    """One entry under notifications/<push-id> for every delivered SMS."""

    recipient: str = Field(serialization_alias="phoneNumber")
    body: str = Field(serialization_alias="message")
    origin_label: str = Field(default=DEFAULT_ORIGIN_LABEL, serialization_alias="parkingLot")
    sent_at_epoch_millis: int = Field(serialization_alias="timestamp")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def is_e164(number: str) -> bool:
    return E164_RE.fullmatch(number) is not None


def validate(payload: Any) -> SendRequest:
    """
    Turn a raw /send-sms JSON body into a SendRequest.

    Rules are applied in order and the first failing rule wins:

      1. phoneNumbers must be a non-empty list of strings
      2. message must be a non-empty string
      3. every phone number must be E.164; all offenders are reported at once

    Raises a ValidationError subclass; has no side effects.
    """
    if not isinstance(payload, Mapping):
        raise MissingOrInvalidRecipients()

    recipients = payload.get("phoneNumbers")
    if (
        not isinstance(recipients, list)
        or not recipients
        or not all(isinstance(r, str) for r in recipients)
    ):
        raise MissingOrInvalidRecipients()

    body = payload.get("message")
    if not isinstance(body, str) or not body:
        raise MissingOrInvalidMessage()

    invalid_numbers = [r for r in recipients if not is_e164(r)]
    if invalid_numbers:
        raise InvalidPhoneNumbers(invalid_numbers)

    origin_label = payload.get("parkingLot")
    if not isinstance(origin_label, str) or not origin_label:
        origin_label = None

    return SendRequest(recipients=recipients, body=body, origin_label=origin_label)
