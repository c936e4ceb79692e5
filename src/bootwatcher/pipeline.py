from __future__ import annotations

import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Final

from .db import NotificationStore
from .errors import ProviderError, StoreError
from .logger import get_logger
from .sms import DEFAULT_ORIGIN_LABEL, NotificationRecord, SendOutcome, SendReport, SendRequest
from .twilio_client import Messenger

logger = get_logger("pipeline")

# Upper bound on concurrent provider calls for a single request.
MAX_PARALLEL_SENDS: Final[int] = 16


def epoch_millis() -> int:
    return int(time.time() * 1000)


def send_one(
    recipient: str,
    request: SendRequest,
    messenger: Messenger,
    store: NotificationStore | None,
    clock: Callable[[], int] = epoch_millis,
) -> SendOutcome:
    """
    Deliver the message to a single recipient and log it to the store.

    Never raises: any error from the provider becomes a failed outcome, and
    any error while logging to the store is logged and the outcome stays a
    success, since the SMS has already gone out.
    """
    logger.info("Sending SMS", extra={"to": recipient})
    try:
        sid = messenger.send(to=recipient, body=request.body)
    except ProviderError as e:
        logger.error("Failed to send SMS", extra={"to": recipient, "error": e.reason})
        return SendOutcome.failed(recipient, e.reason)
    except Exception as e:
        logger.exception("Unexpected error sending SMS", extra={"to": recipient})
        return SendOutcome.failed(recipient, str(e) or type(e).__name__)

    logger.info("Successfully sent SMS", extra={"to": recipient, "sid": sid})

    if store is not None:
        try:
            store.append_notification(
                NotificationRecord(
                    recipient=recipient,
                    body=request.body,
                    origin_label=request.origin_label or DEFAULT_ORIGIN_LABEL,
                    sent_at_epoch_millis=clock(),
                )
            )
        except StoreError as e:
            logger.warning(
                "Could not log notification", extra={"to": recipient, "sid": sid, "error": str(e)}
            )
        except Exception:
            logger.exception("Unexpected error logging notification", extra={"to": recipient, "sid": sid})

    return SendOutcome.success(recipient, sid)


def dispatch(
    request: SendRequest,
    messenger: Messenger,
    store: NotificationStore | None = None,
    max_workers: int = MAX_PARALLEL_SENDS,
) -> SendReport:
    """
    Fan the message out to every recipient in parallel and wait for all of them.

    Outcomes come back in the same order as request.recipients, one per
    recipient. Each attempt is independent: a failing recipient never stops
    or delays the others, and nothing is retried.
    """
    workers = max(1, min(max_workers, len(request.recipients)))

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="send-sms") as executor:
        futures = [
            (recipient, executor.submit(send_one, recipient, request, messenger, store))
            for recipient in request.recipients
        ]

        outcomes: list[SendOutcome] = []
        for recipient, future in futures:
            try:
                outcomes.append(future.result())
            except Exception as e:
                # one outcome per recipient, even if a task dies
                logger.exception("Send task crashed", extra={"to": recipient})
                outcomes.append(SendOutcome.failed(recipient, str(e) or type(e).__name__))

    report = SendReport(outcomes=outcomes)
    logger.info(
        "SMS batch settled",
        extra={
            "recipients": len(outcomes),
            "succeeded": sum(1 for o in outcomes if o.status == "success"),
            "overall_success": report.overall_success,
        },
    )
    return report
