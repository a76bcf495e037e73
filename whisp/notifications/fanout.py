"""Recipient resolution and fan-out dispatch.

One engine serves every notify flow. A request names recipients by user or
group id; the engine resolves device tokens, fills in default text, sends one
push per device and folds the per-recipient results into a `BatchResult`.

Failures for one recipient never abort a group batch. Only two conditions end
a call without attempting delivery: an unknown group, and a direct recipient
that is unknown or has no device token.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from whisp.notifications.contracts import (
  BatchResult,
  DeviceUser,
  DirectNotificationRequest,
  DispatchErrorCode,
  DispatchOutcome,
  Group,
  GroupDirectory,
  GroupNotificationRequest,
  NotificationRequest,
  UserDirectory,
)
from whisp.notifications.dispatcher import Dispatcher
from whisp.notifications.templates import MESSAGE_TYPE_GROUP, format_group_body, resolve_body, resolve_group_title, resolve_message_type

logger = logging.getLogger(__name__)


class FanoutEngine:
  """Resolves recipients and dispatches one push per resolved device."""

  def __init__(self, *, users: UserDirectory, groups: GroupDirectory, dispatcher: Dispatcher, max_concurrency: int = 10, timeout_seconds: float | None = 30.0) -> None:
    if max_concurrency <= 0:
      raise ValueError("max_concurrency must be positive")
    self._users = users
    self._groups = groups
    self._dispatcher = dispatcher
    self._max_concurrency = max_concurrency
    self._timeout_seconds = timeout_seconds

  @property
  def dispatcher(self) -> Dispatcher:
    return self._dispatcher

  async def dispatch(self, request: NotificationRequest) -> BatchResult:
    """Route a tagged request to the matching dispatch path."""
    if isinstance(request, DirectNotificationRequest):
      return await self.dispatch_direct(recipient_id=request.recipient_id, title=request.title, body=request.body, message_type=request.message_type)

    if isinstance(request, GroupNotificationRequest):
      return await self.dispatch_group(group_id=request.group_id, sender_id=request.sender_id, sender_name=request.sender_name, group_name=request.group_name, body=request.body)

    raise TypeError(f"Unsupported notification request: {type(request).__name__}")

  async def dispatch_direct(self, *, recipient_id: str, title: str, body: str | None = None, message_type: str | None = None) -> BatchResult:
    """Notify one user; fails without sending when the user or their token is missing."""
    user = await self._lookup_user(recipient_id)
    if user is None:
      logger.info("Direct notification skipped; recipient not found recipient_id=%s", recipient_id)
      return BatchResult(success=False, error=DispatchErrorCode.RECIPIENT_NOT_FOUND)

    if not user.can_receive_push:
      logger.info("Direct notification skipped; recipient has no device token recipient_id=%s", recipient_id)
      outcome = DispatchOutcome(recipient_id=recipient_id, token_found=False, sent=False, error=DispatchErrorCode.NO_DEVICE_TOKEN)
      return BatchResult(success=False, outcomes=(outcome,), error=DispatchErrorCode.NO_DEVICE_TOKEN)

    final_body = resolve_body(body, message_type)
    sent = await self._dispatcher.send(token=user.device_token, title=title, body=final_body, message_type=resolve_message_type(message_type))
    outcome = DispatchOutcome(recipient_id=recipient_id, token_found=True, sent=sent, error=None if sent else DispatchErrorCode.PROVIDER_SEND_FAILURE)
    return BatchResult(success=sent, outcomes=(outcome,))

  async def dispatch_group(self, *, group_id: str, sender_id: str, body: str, sender_name: str | None = None, group_name: str | None = None, timeout_seconds: float | None = None) -> BatchResult:
    """Best-effort broadcast to every group member except the sender."""
    group = await self._lookup_group(group_id)
    if group is None:
      logger.info("Group notification skipped; group not found group_id=%s", group_id)
      return BatchResult(success=False, error=DispatchErrorCode.GROUP_NOT_FOUND)

    receivers = [member for member in group.members if member != sender_id]
    if not receivers:
      logger.debug("Group notification has no receivers after excluding sender group_id=%s", group_id)
      return BatchResult(success=True)

    title = resolve_group_title(group_name, group.name)
    final_body = format_group_body(sender_name, resolve_body(body, None))

    async def _notify_member(member_id: str) -> DispatchOutcome:
      return await self._notify_member(member_id, title=title, body=final_body)

    outcomes = await self._fan_out(receivers, _notify_member, timeout_seconds=self._timeout_seconds if timeout_seconds is None else timeout_seconds)
    result = BatchResult(success=True, outcomes=tuple(outcomes))
    logger.info("Group notification dispatched group_id=%s receivers=%d completed=%d sent=%d", group.id, len(receivers), len(outcomes), result.sent_count)
    return result

  async def _notify_member(self, member_id: str, *, title: str, body: str) -> DispatchOutcome:
    user = await self._lookup_user(member_id)
    if user is None:
      return DispatchOutcome(recipient_id=member_id, token_found=False, sent=False, error=DispatchErrorCode.RECIPIENT_NOT_FOUND)

    if not user.can_receive_push:
      return DispatchOutcome(recipient_id=member_id, token_found=False, sent=False, error=DispatchErrorCode.NO_DEVICE_TOKEN)

    sent = await self._dispatcher.send(token=user.device_token, title=title, body=body, message_type=MESSAGE_TYPE_GROUP)
    return DispatchOutcome(recipient_id=member_id, token_found=True, sent=sent, error=None if sent else DispatchErrorCode.PROVIDER_SEND_FAILURE)

  async def _fan_out(self, receivers: Sequence[str], notify: Callable[[str], Awaitable[DispatchOutcome]], *, timeout_seconds: float | None) -> list[DispatchOutcome]:
    """Run per-member sends with capped parallelism and collect what completes in time."""
    semaphore = asyncio.Semaphore(self._max_concurrency)
    stopped = asyncio.Event()

    async def _guarded(member_id: str) -> DispatchOutcome | None:
      async with semaphore:
        # Members still queued when the deadline passes are never started.
        if stopped.is_set():
          return None
        try:
          return await notify(member_id)
        except Exception as exc:  # noqa: BLE001
          # The lookup state is lost here, so token_found is always False on this path.
          logger.error("Group member dispatch failed member_id=%s: %s", member_id, exc, exc_info=True)
          return DispatchOutcome(recipient_id=member_id, token_found=False, sent=False, error=DispatchErrorCode.PROVIDER_SEND_FAILURE)

    tasks = [asyncio.create_task(_guarded(member_id)) for member_id in receivers]
    try:
      done, pending = await asyncio.wait(tasks, timeout=timeout_seconds)
    finally:
      stopped.set()

    if pending:
      logger.warning("Group fan-out deadline reached; %d of %d sends incomplete", len(pending), len(tasks))

    outcomes: list[DispatchOutcome] = []
    for task in tasks:
      if task not in done:
        continue
      outcome = task.result()
      if outcome is not None:
        outcomes.append(outcome)

    return outcomes

  async def _lookup_user(self, user_id: str) -> DeviceUser | None:
    """Treat directory transport failures as absence for this one recipient."""
    try:
      return await self._users.get(user_id)
    except Exception as exc:  # noqa: BLE001
      logger.error("User lookup failed user_id=%s: %s", user_id, exc, exc_info=True)
      return None

  async def _lookup_group(self, group_id: str) -> Group | None:
    try:
      return await self._groups.get(group_id)
    except Exception as exc:  # noqa: BLE001
      logger.error("Group lookup failed group_id=%s: %s", group_id, exc, exc_info=True)
      return None
