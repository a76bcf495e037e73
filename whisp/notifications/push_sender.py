"""Push notification delivery implementations."""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from whisp.notifications.contracts import InvalidPushTokenError, NotificationProviderError, PushNotification, PushSender

logger = logging.getLogger(__name__)

ANDROID_CHANNEL_ID = "default_channel"
DEFAULT_SOUND = "default"


def mask_token(token: str | None) -> str:
  """Shorten a device token for logs; full tokens are credentials for a device."""
  if not token:
    return "<none>"
  if len(token) <= 12:
    return "***"
  return f"{token[:8]}...{token[-4:]}"


def build_fcm_message(notification: PushNotification) -> messaging.Message:
  """Build an FCM message with prompt delivery and the default alert sound."""
  return messaging.Message(
    token=notification.token,
    notification=messaging.Notification(title=notification.title, body=notification.body),
    data=dict(notification.data),
    android=messaging.AndroidConfig(priority="high", notification=messaging.AndroidNotification(channel_id=ANDROID_CHANNEL_ID, sound=DEFAULT_SOUND)),
    apns=messaging.APNSConfig(headers={"apns-priority": "10"}, payload=messaging.APNSPayload(aps=messaging.Aps(sound=DEFAULT_SOUND))),
  )


class FirebasePushSender(PushSender):
  """`firebase_admin.messaging` backed sender."""

  def __init__(self, *, app: firebase_admin.App | None = None, dry_run: bool = False) -> None:
    self._app = app
    self._dry_run = dry_run

  def send(self, notification: PushNotification) -> str:
    """Send one FCM message and return the provider message id."""
    message = build_fcm_message(notification)
    try:
      message_id = messaging.send(message, dry_run=self._dry_run, app=self._app)
    except (messaging.UnregisteredError, messaging.SenderIdMismatchError) as exc:
      raise InvalidPushTokenError(f"Device token is no longer valid token={mask_token(notification.token)} code={exc.code}") from exc
    except firebase_exceptions.FirebaseError as exc:
      raise NotificationProviderError(f"FCM delivery failed code={exc.code}: {exc}") from exc
    except ValueError as exc:
      # The SDK validates message fields locally before any network call.
      raise NotificationProviderError(f"FCM rejected message: {exc}") from exc

    logger.debug("FCM accepted message_id=%s token=%s", message_id, mask_token(notification.token))
    return message_id


class NullPushSender(PushSender):
  """Push sender used when push notifications are disabled or unconfigured; nothing is ever delivered."""

  def send(self, notification: PushNotification) -> str:
    """Refuse every push so callers record it as undelivered."""
    logger.debug("Push notifications disabled; dropping push token=%s type=%s", mask_token(notification.token), notification.data.get("type"))
    raise NotificationProviderError("push notifications disabled")
