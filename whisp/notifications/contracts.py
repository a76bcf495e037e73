"""Contracts for recipient resolution and push fan-out."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class DispatchErrorCode(str, Enum):
  """Error codes surfaced to callers and recorded on per-recipient outcomes."""

  RECIPIENT_NOT_FOUND = "RecipientNotFound"
  GROUP_NOT_FOUND = "GroupNotFound"
  NO_DEVICE_TOKEN = "NoDeviceToken"
  PROVIDER_SEND_FAILURE = "ProviderSendFailure"
  MISSING_REQUIRED_FIELD = "MissingRequiredField"


@dataclass(frozen=True)
class DeviceUser:
  """A user as seen by the push layer: an id and an optional device token."""

  id: str
  device_token: str | None = None

  @property
  def can_receive_push(self) -> bool:
    return bool(self.device_token)


@dataclass(frozen=True)
class Group:
  """A chat group with its member ids."""

  id: str
  name: str | None = None
  members: tuple[str, ...] = ()


@dataclass(frozen=True)
class PushNotification:
  """Represents one fully-formed push for one device token."""

  token: str
  title: str
  body: str
  data: dict[str, str]


@dataclass(frozen=True)
class DirectNotificationRequest:
  """Notify a single user, e.g. for a one-to-one chat message."""

  recipient_id: str
  title: str
  body: str | None = None
  message_type: str | None = None


@dataclass(frozen=True)
class GroupNotificationRequest:
  """Notify every member of a group except the sender."""

  group_id: str
  sender_id: str
  body: str
  sender_name: str | None = None
  group_name: str | None = None


NotificationRequest = DirectNotificationRequest | GroupNotificationRequest


@dataclass(frozen=True)
class DispatchOutcome:
  """Delivery outcome for one recipient within a single dispatch call."""

  recipient_id: str
  token_found: bool
  sent: bool
  error: DispatchErrorCode | None = None

  def to_payload(self) -> dict[str, Any]:
    return {"recipientId": self.recipient_id, "tokenFound": self.token_found, "sent": self.sent, "error": self.error.value if self.error else None}


@dataclass(frozen=True)
class BatchResult:
  """Aggregate result of one dispatch call.

  `error` is set only when nothing could be attempted (unknown group, unknown
  recipient, recipient without a token). Mixed per-recipient results are
  reported through `outcomes` with `success` left true.
  """

  success: bool
  outcomes: tuple[DispatchOutcome, ...] = field(default_factory=tuple)
  error: DispatchErrorCode | None = None

  @property
  def sent_count(self) -> int:
    return sum(1 for outcome in self.outcomes if outcome.sent)

  def to_payload(self) -> dict[str, Any]:
    """Serialize the result for HTTP responses."""
    payload: dict[str, Any] = {"success": self.success, "outcomes": [outcome.to_payload() for outcome in self.outcomes]}
    if self.error is not None:
      payload["error"] = self.error.value
    return payload


class NotificationError(Exception):
  """Base class for all notification delivery failures."""


class NotificationProviderError(NotificationError):
  """Exception raised when the push provider rejects or fails a send."""


class InvalidPushTokenError(NotificationProviderError):
  """Exception raised when a device token is unregistered or belongs to another project."""


class PushSender(Protocol):
  """Delivery contract for the external push provider."""

  def send(self, notification: PushNotification) -> str:
    """Send one push synchronously and return the provider message id, raising on failure."""


class UserDirectory(Protocol):
  """Lookup of a user's current device token."""

  async def get(self, user_id: str) -> DeviceUser | None:
    """Return the user, or None when no such user exists."""


class GroupDirectory(Protocol):
  """Lookup of a group's member list."""

  async def get(self, group_id: str) -> Group | None:
    """Return the group, or None when no such group exists."""
