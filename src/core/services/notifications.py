"""Outbound notifications about trips, groups, join requests and admin grants.

Sending is best-effort: a failed send is logged and never affects the
request that triggered it.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from core.clients import get_ses_client
from core.config import get_config

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    TRIP_SUBMITTED = "trip_submitted"
    GROUP_PROPOSED = "group_proposed"
    GROUP_APPROVED = "group_approved"
    GROUP_REJECTED = "group_rejected"
    JOIN_REQUEST_CREATED = "join_request_created"
    JOIN_REQUEST_APPROVED = "join_request_approved"
    JOIN_REQUEST_REJECTED = "join_request_rejected"
    ADMIN_GRANTED = "admin_granted"


SUBJECTS: dict[NotificationKind, str] = {
    NotificationKind.TRIP_SUBMITTED: "Trip request received",
    NotificationKind.GROUP_PROPOSED: "Shared trip proposed",
    NotificationKind.GROUP_APPROVED: "Your trip has been optimized",
    NotificationKind.GROUP_REJECTED: "Shared trip proposal withdrawn",
    NotificationKind.JOIN_REQUEST_CREATED: "New request to join a trip",
    NotificationKind.JOIN_REQUEST_APPROVED: "Your join request was approved",
    NotificationKind.JOIN_REQUEST_REJECTED: "Your join request was rejected",
    NotificationKind.ADMIN_GRANTED: "You have been granted admin access",
}


class NotificationSender(ABC):
    @abstractmethod
    def send(self, kind: NotificationKind, recipients: list[str], data: dict[str, Any]) -> None:
        """Deliver one notification; raise on failure."""


class LoggingNotificationSender(NotificationSender):
    """Writes notifications to the log. Used when no sender address is configured."""

    def send(self, kind: NotificationKind, recipients: list[str], data: dict[str, Any]) -> None:
        logger.info("Notification %s to %s: %s", kind.value, ", ".join(recipients), data)


class SesNotificationSender(NotificationSender):
    def __init__(self, ses_client: Any, sender: str) -> None:
        self._client = ses_client
        self._sender = sender

    def send(self, kind: NotificationKind, recipients: list[str], data: dict[str, Any]) -> None:
        body = "\n".join(f"{key}: {value}" for key, value in data.items())
        self._client.send_email(
            Source=self._sender,
            Destination={"ToAddresses": recipients},
            Message={
                "Subject": {"Data": SUBJECTS[kind]},
                "Body": {"Text": {"Data": body}},
            },
        )


def get_notification_sender() -> NotificationSender:
    config = get_config()
    if config.notification_sender:
        return SesNotificationSender(get_ses_client(), config.notification_sender)
    return LoggingNotificationSender()


def notify(
    kind: NotificationKind,
    recipients: list[str],
    data: dict[str, Any],
    sender: NotificationSender | None = None,
) -> bool:
    """Send without raising. Returns False when nothing was delivered."""
    recipients = [r for r in recipients if r]
    if not recipients:
        return False
    try:
        (sender or get_notification_sender()).send(kind, recipients, data)
    except Exception:
        logger.exception("Failed to send %s notification to %s", kind.value, recipients)
        return False
    return True
