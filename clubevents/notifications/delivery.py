"""Best-effort delivery of a single notification."""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Iterable

from structlog.stdlib import BoundLogger

from clubevents.db.enums import DeliveryStatus
from clubevents.errors import NotificationFailure
from clubevents.notifications.base import NotificationSender, OutgoingMessage


async def deliver_best_effort(
    sender: NotificationSender,
    message: OutgoingMessage,
    *,
    timeout_seconds: float,
    logger: BoundLogger,
    **log_context: object,
) -> DeliveryStatus:
    """Attempt one send; failures and timeouts are logged and reported, never raised."""

    try:
        await asyncio.wait_for(
            sender.send(message.address, message.subject, message.body, message.attachment),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.warning(
            "notification_timed_out",
            address=message.address,
            timeout_seconds=timeout_seconds,
            **log_context,
        )
        return DeliveryStatus.FAILED
    except NotificationFailure as exc:
        logger.warning("notification_failed", address=message.address, error=exc.message, **log_context)
        return DeliveryStatus.FAILED
    except Exception:
        logger.exception("notification_unexpected_error", address=message.address, **log_context)
        return DeliveryStatus.FAILED

    logger.info("notification_sent", address=message.address, **log_context)
    return DeliveryStatus.SENT


def count_statuses(statuses: Iterable[DeliveryStatus]) -> tuple[int, int]:
    """Return (sent, failed); skipped deliveries count as neither."""

    counts = Counter(statuses)
    return counts[DeliveryStatus.SENT], counts[DeliveryStatus.FAILED]
