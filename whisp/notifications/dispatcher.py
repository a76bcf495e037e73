"""Single-token push delivery with failures reported as a boolean."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from whisp.notifications.contracts import InvalidPushTokenError, NotificationProviderError, PushNotification, PushSender
from whisp.notifications.push_sender import mask_token

logger = logging.getLogger(__name__)


class Dispatcher:
  """Sends one notification to one device token through the push provider."""

  def __init__(self, *, push_sender: PushSender) -> None:
    self._push_sender = push_sender

  async def send(self, *, token: str, title: str, body: str, message_type: str) -> bool:
    """Return True when the provider accepted the push; never raises."""
    notification = PushNotification(token=token, title=title, body=body, data={"type": message_type})

    try:
      message_id = await run_in_threadpool(self._push_sender.send, notification)
    except InvalidPushTokenError as exc:
      logger.warning("Push skipped for stale device token: %s", exc)
      return False
    except NotificationProviderError as exc:
      # Provider errors are expected operationally; keep logs free of tracebacks.
      logger.error("Push notification delivery failed (provider error): %s", exc)
      return False
    except Exception as exc:  # noqa: BLE001
      logger.error("Push notification delivery failed token=%s: %s", mask_token(token), exc, exc_info=True)
      return False

    logger.info("Push notification sent token=%s type=%s message_id=%s", mask_token(token), message_type, message_id)
    return True
