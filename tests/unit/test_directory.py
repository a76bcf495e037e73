from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from whisp.notifications.directory import DirectoryUnavailableError, FirestoreGroupDirectory, FirestoreUserDirectory


def _client_with_document(data: dict | None) -> MagicMock:
  snapshot = MagicMock()
  snapshot.exists = data is not None
  snapshot.to_dict.return_value = data
  client = MagicMock()
  client.collection.return_value.document.return_value.get.return_value = snapshot
  return client


@pytest.mark.anyio
async def test_user_directory_reads_device_token():
  client = _client_with_document({"deviceToken": " fcm-token ", "name": "Bob"})
  directory = FirestoreUserDirectory(client_factory=lambda: client, collection="people")

  user = await directory.get("bob")

  assert user is not None
  assert user.id == "bob"
  assert user.device_token == "fcm-token"
  client.collection.assert_called_once_with("people")
  client.collection.return_value.document.assert_called_once_with("bob")


@pytest.mark.anyio
@pytest.mark.parametrize("data", [{}, {"deviceToken": ""}, {"deviceToken": None}, {"deviceToken": 123}])
async def test_user_directory_normalizes_missing_tokens(data):
  directory = FirestoreUserDirectory(client_factory=lambda: _client_with_document(data))

  user = await directory.get("dave")

  assert user is not None
  assert user.device_token is None
  assert user.can_receive_push is False


@pytest.mark.anyio
async def test_user_directory_returns_none_for_missing_document():
  directory = FirestoreUserDirectory(client_factory=lambda: _client_with_document(None))

  assert await directory.get("ghost") is None


@pytest.mark.anyio
async def test_directory_raises_when_firestore_is_unavailable():
  directory = FirestoreUserDirectory(client_factory=lambda: None)

  with pytest.raises(DirectoryUnavailableError):
    await directory.get("bob")


@pytest.mark.anyio
async def test_group_directory_reads_members_and_name():
  directory = FirestoreGroupDirectory(client_factory=lambda: _client_with_document({"members": ["a", "b", "", "c"], "name": "Friends"}))

  group = await directory.get("g1")

  assert group is not None
  assert group.members == ("a", "b", "c")
  assert group.name == "Friends"


@pytest.mark.anyio
async def test_group_directory_tolerates_malformed_members():
  directory = FirestoreGroupDirectory(client_factory=lambda: _client_with_document({"members": "a,b", "name": "  "}))

  group = await directory.get("g1")

  assert group is not None
  assert group.members == ()
  assert group.name is None
