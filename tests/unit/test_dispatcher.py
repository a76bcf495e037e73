from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from whisp.notifications.contracts import DispatchErrorCode, InvalidPushTokenError, NotificationProviderError
from whisp.notifications.dispatcher import Dispatcher
from whisp.notifications.fanout import FanoutEngine
from whisp.notifications.push_sender import NullPushSender


@pytest.mark.anyio
async def test_dispatcher_builds_payload_with_type_field(push_sender):
  dispatcher = Dispatcher(push_sender=push_sender)

  ok = await dispatcher.send(token="device-token-123456", title="Alice", body="Sent you a photo", message_type="image")

  assert ok is True
  notification = push_sender.send.call_args.args[0]
  assert notification.token == "device-token-123456"
  assert notification.title == "Alice"
  assert notification.body == "Sent you a photo"
  assert notification.data == {"type": "image"}


@pytest.mark.anyio
@pytest.mark.parametrize("error", [NotificationProviderError("quota exceeded"), InvalidPushTokenError("unregistered"), RuntimeError("socket closed")])
async def test_dispatcher_reports_failures_as_false(error):
  push_sender = MagicMock()
  push_sender.send.side_effect = error
  dispatcher = Dispatcher(push_sender=push_sender)

  ok = await dispatcher.send(token="device-token-123456", title="t", body="b", message_type="chat")

  assert ok is False
  assert push_sender.send.call_count == 1


@pytest.mark.anyio
async def test_dispatcher_with_push_disabled_reports_nothing_sent(users, groups):
  dispatcher = Dispatcher(push_sender=NullPushSender())

  ok = await dispatcher.send(token="device-token-123456", title="t", body="b", message_type="chat")

  assert ok is False

  engine = FanoutEngine(users=users, groups=groups, dispatcher=dispatcher)
  result = await engine.dispatch_group(group_id="g1", sender_id="alice", sender_name="Alice", body="hi")

  assert result.success is True
  assert [(o.recipient_id, o.token_found, o.sent) for o in result.outcomes] == [("bob", True, False), ("carol", True, False)]
  assert all(o.error is DispatchErrorCode.PROVIDER_SEND_FAILURE for o in result.outcomes)
