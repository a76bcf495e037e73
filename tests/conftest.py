"""Shared fixtures: in-memory directories and a recording push sender."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from whisp.notifications.contracts import DeviceUser, Group
from whisp.notifications.dispatcher import Dispatcher
from whisp.notifications.fanout import FanoutEngine


class InMemoryUserDirectory:
  def __init__(self, users: list[DeviceUser] | None = None) -> None:
    self._users = {user.id: user for user in users or []}
    self.lookups: list[str] = []

  async def get(self, user_id: str) -> DeviceUser | None:
    self.lookups.append(user_id)
    return self._users.get(user_id)


class InMemoryGroupDirectory:
  def __init__(self, groups: list[Group] | None = None) -> None:
    self._groups = {group.id: group for group in groups or []}

  async def get(self, group_id: str) -> Group | None:
    return self._groups.get(group_id)


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def users() -> InMemoryUserDirectory:
  return InMemoryUserDirectory(
    [
      DeviceUser(id="alice", device_token="token-alice-0000000000"),
      DeviceUser(id="bob", device_token="token-bob-0000000000"),
      DeviceUser(id="carol", device_token="token-carol-0000000000"),
      DeviceUser(id="dave", device_token=None),
    ]
  )


@pytest.fixture
def groups() -> InMemoryGroupDirectory:
  return InMemoryGroupDirectory(
    [
      Group(id="g1", name="Weekend Plans", members=("alice", "bob", "carol")),
      Group(id="g-solo", name="Notes to self", members=("alice",)),
      Group(id="g-mixed", name=None, members=("alice", "bob", "dave", "ghost")),
      Group(id="g-empty", name="Empty", members=()),
    ]
  )


@pytest.fixture
def push_sender() -> MagicMock:
  sender = MagicMock()
  sender.send.return_value = "projects/whisp/messages/1"
  return sender


@pytest.fixture
def engine(users, groups, push_sender) -> FanoutEngine:
  return FanoutEngine(users=users, groups=groups, dispatcher=Dispatcher(push_sender=push_sender), max_concurrency=4, timeout_seconds=5.0)
