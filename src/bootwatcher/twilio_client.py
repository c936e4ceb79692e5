from __future__ import annotations

from typing import Protocol

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from .config import Settings
from .errors import ProviderError
from .logger import get_logger

logger = get_logger("twilio")


class Messenger(Protocol):
    def send(self, to: str, body: str) -> str:
        """Send one SMS and return the provider's message id; raise ProviderError on failure."""
        ...


def get_twilio_client(settings: Settings) -> Client:
    """Build a Twilio REST client authenticated with an API key rather than the auth token."""
    settings.require_twilio()
    return Client(
        settings.twilio_api_key_sid,
        settings.twilio_api_key_secret,
        settings.twilio_account_sid,
    )


class TwilioMessenger:
    """
    Sends SMS from a fixed sender number.

    The underlying twilio Client holds no per-request state, so a single
    instance is shared by every worker thread of the relay.
    """

    def __init__(self, client: Client, from_number: str) -> None:
        self._client = client
        self.from_number = from_number

    @classmethod
    def from_settings(cls, settings: Settings) -> TwilioMessenger:
        client = get_twilio_client(settings)
        logger.info("Twilio client initialized successfully")
        return cls(client, str(settings.twilio_phone_number))

    def send(self, to: str, body: str) -> str:
        try:
            message = self._client.messages.create(
                to=to,
                from_=self.from_number,
                body=body,
            )
        except TwilioRestException as e:
            raise ProviderError(to, e.msg or str(e)) from e
        except (TwilioException, OSError) as e:
            # OSError covers connection failures from the HTTP transport
            raise ProviderError(to, str(e)) from e

        return str(message.sid)
