import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from whisp.api.deps import get_fanout_engine, get_upload_storage
from whisp.core.logging import _initialize_logging


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
  """Set up logging, Firebase and the upload directory before serving requests."""
  from whisp.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("whisp.core.lifespan")

  try:
    _initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except RuntimeError:
    # File logging is optional; console logging keeps working without it.
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  # Build the engine eagerly so Firebase initialization problems show up at boot.
  get_fanout_engine()
  logger.info("Fan-out engine ready max_concurrency=%s timeout_seconds=%s", settings.fanout_max_concurrency, settings.fanout_timeout_seconds)

  storage = get_upload_storage()
  try:
    storage.ensure_root()
    logger.info("Upload directory ready: %s", storage.root)
  except OSError as exc:
    logger.warning("Failed to create upload directory %s: %s", storage.root, exc)

  yield
