"""Routes that turn chat events into push notifications."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field

from whisp.api.deps import get_dispatcher, get_fanout_engine, get_upload_storage
from whisp.notifications.contracts import BatchResult, DirectNotificationRequest, DispatchErrorCode, GroupNotificationRequest
from whisp.notifications.dispatcher import Dispatcher
from whisp.notifications.fanout import FanoutEngine
from whisp.notifications.templates import ATTACHMENT_TITLE, MESSAGE_TYPE_CHAT
from whisp.storage.uploads import LocalUploadStorage, UploadRejectedError

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_FILE_FIELD = File(...)
RECEIVER_ID_FIELD = Form(..., alias="receiverId", min_length=1)
SENDER_ID_FIELD = Form(None, alias="senderId")
MESSAGE_TYPE_FIELD = Form(None, alias="messageType")

_ERROR_STATUS: dict[DispatchErrorCode, int] = {
  DispatchErrorCode.RECIPIENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
  DispatchErrorCode.GROUP_NOT_FOUND: status.HTTP_404_NOT_FOUND,
  DispatchErrorCode.NO_DEVICE_TOKEN: status.HTTP_400_BAD_REQUEST,
}

_ERROR_MESSAGES: dict[DispatchErrorCode, str] = {
  DispatchErrorCode.RECIPIENT_NOT_FOUND: "User not found",
  DispatchErrorCode.GROUP_NOT_FOUND: "Group not found",
  DispatchErrorCode.NO_DEVICE_TOKEN: "User has no FCM token",
}


class SendNotificationRequest(BaseModel):
  """Raw push to an already-known device token."""

  token: str = Field(min_length=1)
  title: str = Field(min_length=1)
  body: str = Field(min_length=1)
  model_config = ConfigDict(extra="forbid")


class ChatNotificationRequest(BaseModel):
  """One-to-one chat push; `title` carries the sender's display name."""

  to_uid: str = Field(alias="toUid", min_length=1)
  title: str = Field(min_length=1)
  body: str | None = None
  message_type: str | None = Field(default=None, alias="messageType")
  model_config = ConfigDict(extra="forbid", populate_by_name=True)


class GroupNotificationPayload(BaseModel):
  """Group chat push sent to every member except the sender."""

  group_id: str = Field(alias="groupId", min_length=1)
  sender_id: str = Field(alias="senderId", min_length=1)
  sender_name: str | None = Field(default=None, alias="senderName")
  group_name: str | None = Field(default=None, alias="groupName")
  body: str = Field(min_length=1)
  model_config = ConfigDict(extra="forbid", populate_by_name=True)


def _raise_for_error(result: BatchResult) -> None:
  """Turn a call that could not attempt delivery into a structured HTTP error."""
  if result.error is None or result.error not in _ERROR_STATUS:
    return
  raise HTTPException(status_code=_ERROR_STATUS[result.error], detail={"error": result.error.value, "message": _ERROR_MESSAGES[result.error]})


@router.post("/send-notification")
async def send_notification(payload: SendNotificationRequest, dispatcher: Dispatcher = Depends(get_dispatcher)) -> dict[str, bool]:  # noqa: B008
  """Send a push straight to a device token."""
  ok = await dispatcher.send(token=payload.token, title=payload.title, body=payload.body, message_type=MESSAGE_TYPE_CHAT)
  return {"success": ok}


@router.post("/send-chat-notification")
async def send_chat_notification(payload: ChatNotificationRequest, engine: FanoutEngine = Depends(get_fanout_engine)) -> dict[str, Any]:  # noqa: B008
  """Resolve the recipient's device and push a chat message, defaulting the body from its type."""
  result = await engine.dispatch(DirectNotificationRequest(recipient_id=payload.to_uid, title=payload.title, body=payload.body, message_type=payload.message_type))
  _raise_for_error(result)
  return result.to_payload()


@router.post("/send-group-notification")
async def send_group_notification(payload: GroupNotificationPayload, engine: FanoutEngine = Depends(get_fanout_engine)) -> dict[str, Any]:  # noqa: B008
  """Fan a group message out to every member device, reporting per-member outcomes."""
  request = GroupNotificationRequest(group_id=payload.group_id, sender_id=payload.sender_id, sender_name=payload.sender_name, group_name=payload.group_name, body=payload.body)
  result = await engine.dispatch(request)
  _raise_for_error(result)
  return result.to_payload()


@router.post("/upload-message")
async def upload_message(
  file: UploadFile = UPLOAD_FILE_FIELD,
  receiver_id: str = RECEIVER_ID_FIELD,
  sender_id: str | None = SENDER_ID_FIELD,
  message_type: str | None = MESSAGE_TYPE_FIELD,
  engine: FanoutEngine = Depends(get_fanout_engine),  # noqa: B008
  storage: LocalUploadStorage = Depends(get_upload_storage),  # noqa: B008
) -> dict[str, Any]:
  """Store an attachment, then tell the receiver a new media message arrived."""
  try:
    stored = await storage.save(file)
  except UploadRejectedError as exc:
    code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE if exc.too_large else status.HTTP_400_BAD_REQUEST
    raise HTTPException(status_code=code, detail=str(exc)) from exc
  finally:
    await file.close()

  logger.info("Attachment stored sender_id=%s receiver_id=%s type=%s url=%s", sender_id, receiver_id, message_type, stored.url)

  result = await engine.dispatch_direct(recipient_id=receiver_id, title=ATTACHMENT_TITLE, body=None, message_type=message_type)
  # A receiver without a device still gets the file; only an unknown receiver is an error.
  if result.error is DispatchErrorCode.RECIPIENT_NOT_FOUND:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail={"error": result.error.value, "message": "Receiver not found"})

  return {"success": True, "fileUrl": stored.url, "notified": result.success}
