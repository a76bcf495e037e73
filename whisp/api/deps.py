"""Shared FastAPI dependencies for the notification routes."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from whisp.config import get_settings
from whisp.notifications.dispatcher import Dispatcher
from whisp.notifications.factory import build_fanout_engine
from whisp.notifications.fanout import FanoutEngine
from whisp.storage.uploads import LocalUploadStorage, build_upload_storage


@lru_cache(maxsize=1)
def get_fanout_engine() -> FanoutEngine:
  """Build the process-wide fan-out engine on first use."""
  return build_fanout_engine(get_settings())


def get_dispatcher(engine: FanoutEngine = Depends(get_fanout_engine)) -> Dispatcher:  # noqa: B008
  """Expose the engine's dispatcher for raw token sends."""
  return engine.dispatcher


@lru_cache(maxsize=1)
def get_upload_storage() -> LocalUploadStorage:
  return build_upload_storage(get_settings())
