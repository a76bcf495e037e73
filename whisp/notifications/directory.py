"""Firestore-backed user and group lookups."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from google.cloud.firestore import Client as FirestoreClient
from starlette.concurrency import run_in_threadpool

from whisp.notifications.contracts import DeviceUser, Group, GroupDirectory, UserDirectory

logger = logging.getLogger(__name__)

DEVICE_TOKEN_FIELD = "deviceToken"
GROUP_MEMBERS_FIELD = "members"
GROUP_NAME_FIELD = "name"

ClientFactory = Callable[[], FirestoreClient | None]


class DirectoryUnavailableError(RuntimeError):
  """Raised when Firestore cannot be reached or is not configured."""


async def _read_document(client_factory: ClientFactory, collection: str, document_id: str) -> dict[str, Any] | None:
  """Fetch one document's data, returning None when it does not exist."""
  client = client_factory()
  if client is None:
    raise DirectoryUnavailableError("Firestore client is not available.")

  snapshot = await run_in_threadpool(client.collection(collection).document(document_id).get)
  if not snapshot.exists:
    return None

  return snapshot.to_dict() or {}


class FirestoreUserDirectory(UserDirectory):
  """Resolves users from the `users` collection."""

  def __init__(self, *, client_factory: ClientFactory, collection: str = "users") -> None:
    self._client_factory = client_factory
    self._collection = collection

  async def get(self, user_id: str) -> DeviceUser | None:
    data = await _read_document(self._client_factory, self._collection, user_id)
    if data is None:
      return None

    raw_token = data.get(DEVICE_TOKEN_FIELD)
    token = raw_token.strip() if isinstance(raw_token, str) else None
    return DeviceUser(id=user_id, device_token=token or None)


class FirestoreGroupDirectory(GroupDirectory):
  """Resolves groups and their member ids from the `groups` collection."""

  def __init__(self, *, client_factory: ClientFactory, collection: str = "groups") -> None:
    self._client_factory = client_factory
    self._collection = collection

  async def get(self, group_id: str) -> Group | None:
    data = await _read_document(self._client_factory, self._collection, group_id)
    if data is None:
      return None

    raw_members = data.get(GROUP_MEMBERS_FIELD) or []
    if not isinstance(raw_members, list | tuple):
      logger.warning("Group members field is not a list group_id=%s type=%s", group_id, type(raw_members).__name__)
      raw_members = []

    members = tuple(str(member) for member in raw_members if member)
    raw_name = data.get(GROUP_NAME_FIELD)
    name = raw_name if isinstance(raw_name, str) and raw_name.strip() else None
    return Group(id=group_id, name=name, members=members)
