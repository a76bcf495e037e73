from __future__ import annotations

import pytest
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from whisp.notifications.contracts import InvalidPushTokenError, NotificationProviderError, PushNotification
from whisp.notifications.push_sender import FirebasePushSender, NullPushSender, build_fcm_message, mask_token


def _notification() -> PushNotification:
  return PushNotification(token="fcm-device-token-abcdef123456", title="Alice", body="Sent you a photo", data={"type": "image"})


def test_build_fcm_message_requests_prompt_delivery():
  message = build_fcm_message(_notification())

  assert message.token == "fcm-device-token-abcdef123456"
  assert message.notification.title == "Alice"
  assert message.notification.body == "Sent you a photo"
  assert message.data == {"type": "image"}
  assert message.android.priority == "high"
  assert message.android.notification.channel_id == "default_channel"
  assert message.android.notification.sound == "default"
  assert message.apns.payload.aps.sound == "default"


def test_firebase_push_sender_returns_message_id(monkeypatch):
  captured = {}

  def _send(message, dry_run=False, app=None):
    captured["message"] = message
    captured["dry_run"] = dry_run
    return "projects/whisp/messages/42"

  monkeypatch.setattr("whisp.notifications.push_sender.messaging.send", _send)

  message_id = FirebasePushSender().send(_notification())

  assert message_id == "projects/whisp/messages/42"
  assert captured["message"].data == {"type": "image"}
  assert captured["dry_run"] is False


def test_firebase_push_sender_maps_unregistered_token(monkeypatch):
  def _send(message, dry_run=False, app=None):
    raise messaging.UnregisteredError("Requested entity was not found.")

  monkeypatch.setattr("whisp.notifications.push_sender.messaging.send", _send)

  with pytest.raises(InvalidPushTokenError):
    FirebasePushSender().send(_notification())


def test_firebase_push_sender_maps_provider_errors(monkeypatch):
  def _send(message, dry_run=False, app=None):
    raise firebase_exceptions.UnavailableError("FCM is down")

  monkeypatch.setattr("whisp.notifications.push_sender.messaging.send", _send)

  with pytest.raises(NotificationProviderError) as excinfo:
    FirebasePushSender().send(_notification())

  assert not isinstance(excinfo.value, InvalidPushTokenError)


def test_null_push_sender_refuses_delivery():
  with pytest.raises(NotificationProviderError, match="disabled"):
    NullPushSender().send(_notification())


def test_mask_token_hides_most_of_the_token():
  masked = mask_token("fcm-device-token-abcdef123456")
  assert masked.startswith("fcm-devi")
  assert "token-abcdef" not in masked
  assert mask_token(None) == "<none>"
  assert mask_token("short") == "***"
