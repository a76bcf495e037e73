"""Default notification text derived from message types.

Clients send media messages without any caption, so the push body falls back
to a short phrase describing the attachment. Everything here is pure.
"""

from __future__ import annotations

MESSAGE_TYPE_CHAT = "chat"
MESSAGE_TYPE_GROUP = "group"
MESSAGE_TYPE_AUDIO = "audio"
MESSAGE_TYPE_IMAGE = "image"
MESSAGE_TYPE_VIDEO = "video"
MESSAGE_TYPE_DOCUMENT = "document"

DEFAULT_BODY = "Sent you a message"
DEFAULT_SENDER_NAME = "Someone"
DEFAULT_GROUP_TITLE = "Group Message"
ATTACHMENT_TITLE = "New Message"

BODY_BY_MESSAGE_TYPE: dict[str, str] = {
  MESSAGE_TYPE_AUDIO: "Sent you a voice message",
  MESSAGE_TYPE_IMAGE: "Sent you a photo",
  MESSAGE_TYPE_VIDEO: "Sent you a video",
  MESSAGE_TYPE_DOCUMENT: "Sent you a document",
}


def resolve_body(explicit_body: str | None, message_type: str | None) -> str:
  """Return the explicit body when it has content, else the default for the message type."""
  if explicit_body is not None and explicit_body.strip():
    return explicit_body

  if message_type is None:
    return DEFAULT_BODY

  return BODY_BY_MESSAGE_TYPE.get(message_type.strip(), DEFAULT_BODY)


def resolve_message_type(message_type: str | None) -> str:
  """Return the data `type` field sent to clients; untyped pushes are chat pushes."""
  if message_type is None or not message_type.strip():
    return MESSAGE_TYPE_CHAT
  return message_type.strip()


def resolve_sender_name(sender_name: str | None) -> str:
  if sender_name is None or not sender_name.strip():
    return DEFAULT_SENDER_NAME
  return sender_name.strip()


def resolve_group_title(group_name: str | None, fallback: str | None = None) -> str:
  """Prefer the caller's group name, then the stored one, then a generic label."""
  for candidate in (group_name, fallback):
    if candidate is not None and candidate.strip():
      return candidate.strip()
  return DEFAULT_GROUP_TITLE


def format_group_body(sender_name: str | None, body: str) -> str:
  """Prefix the message text with the sender so group pushes carry identity."""
  return f"{resolve_sender_name(sender_name)}: {body}"
