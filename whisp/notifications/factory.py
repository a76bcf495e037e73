"""Factory helpers for the notification fan-out engine."""

from __future__ import annotations

import logging

from whisp.config import Settings
from whisp.core.firebase import get_firestore_client, initialize_firebase
from whisp.notifications.contracts import PushSender
from whisp.notifications.directory import FirestoreGroupDirectory, FirestoreUserDirectory
from whisp.notifications.dispatcher import Dispatcher
from whisp.notifications.fanout import FanoutEngine
from whisp.notifications.push_sender import FirebasePushSender, NullPushSender

logger = logging.getLogger(__name__)


def build_push_sender(settings: Settings) -> PushSender:
  """Use FCM when push is enabled and Firebase is configured, else drop pushes."""
  if not settings.push_notifications_enabled:
    logger.info("Push notifications disabled by configuration; using NullPushSender.")
    return NullPushSender()

  if not initialize_firebase(settings):
    logger.warning("Firebase unavailable; push notifications will be dropped.")
    return NullPushSender()

  return FirebasePushSender()


def build_fanout_engine(settings: Settings, *, push_sender: PushSender | None = None) -> FanoutEngine:
  """Construct a fan-out engine based on environment configuration."""
  sender = push_sender if push_sender is not None else build_push_sender(settings)
  users = FirestoreUserDirectory(client_factory=get_firestore_client, collection=settings.users_collection)
  groups = FirestoreGroupDirectory(client_factory=get_firestore_client, collection=settings.groups_collection)
  return FanoutEngine(users=users, groups=groups, dispatcher=Dispatcher(push_sender=sender), max_concurrency=settings.fanout_max_concurrency, timeout_seconds=settings.fanout_timeout_seconds)
