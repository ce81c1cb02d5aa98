import os
from unittest.mock import MagicMock, patch

from core.services.notifications import (
    LoggingNotificationSender,
    NotificationKind,
    SesNotificationSender,
    get_notification_sender,
    notify,
)


def test_default_sender_logs():
    with patch.dict(os.environ, {"NOTIFICATION_SENDER": ""}):
        assert isinstance(get_notification_sender(), LoggingNotificationSender)


def test_ses_sender_when_configured():
    with (
        patch.dict(os.environ, {"NOTIFICATION_SENDER": "trips@example.com"}),
        patch("core.services.notifications.get_ses_client", return_value=MagicMock()),
    ):
        assert isinstance(get_notification_sender(), SesNotificationSender)


def test_ses_sender_sends_email():
    ses = MagicMock()
    SesNotificationSender(ses, "trips@example.com").send(
        NotificationKind.GROUP_APPROVED, ["an@example.com"], {"groupId": "g1"}
    )

    kwargs = ses.send_email.call_args.kwargs
    assert kwargs["Source"] == "trips@example.com"
    assert kwargs["Destination"] == {"ToAddresses": ["an@example.com"]}
    assert kwargs["Message"]["Subject"]["Data"] == "Your trip has been optimized"
    assert "groupId: g1" in kwargs["Message"]["Body"]["Text"]["Data"]


def test_notify_swallows_failures():
    sender = MagicMock()
    sender.send.side_effect = Exception("Throttling")

    assert notify(NotificationKind.TRIP_SUBMITTED, ["an@example.com"], {}, sender=sender) is False


def test_notify_skips_empty_recipients():
    sender = MagicMock()

    assert notify(NotificationKind.TRIP_SUBMITTED, ["", None], {}, sender=sender) is False
    sender.send.assert_not_called()


def test_notify_delivers():
    sender = MagicMock()

    assert notify(NotificationKind.ADMIN_GRANTED, ["new@example.com"], {"adminType": "super_admin"}, sender=sender)
    sender.send.assert_called_once_with(
        NotificationKind.ADMIN_GRANTED, ["new@example.com"], {"adminType": "super_admin"}
    )
