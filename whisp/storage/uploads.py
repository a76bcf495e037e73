"""Local disk storage for chat attachments served under `/uploads`."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from whisp.config import Settings

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")
_CHUNK_BYTES = 1024 * 1024


class UploadRejectedError(ValueError):
  """Raised when an upload is empty or exceeds the configured size limit."""

  def __init__(self, message: str, *, too_large: bool = False) -> None:
    super().__init__(message)
    self.too_large = too_large


@dataclass(frozen=True)
class StoredUpload:
  """Where an attachment landed and how clients should reference it."""

  filename: str
  path: Path
  url: str
  size: int


def sanitize_filename(original: str | None) -> str:
  """Keep the basename and a conservative character set so names stay URL-safe."""
  basename = Path(original or "").name
  cleaned = _UNSAFE_FILENAME_RE.sub("_", basename).strip("._")
  return cleaned or "file"


class LocalUploadStorage:
  """Writes uploads to a directory that the app also mounts as static files."""

  def __init__(self, *, root: Path, url_prefix: str = "/uploads", max_bytes: int = 25 * 1024 * 1024) -> None:
    self._root = root
    self._url_prefix = url_prefix.rstrip("/")
    self._max_bytes = max_bytes

  @property
  def root(self) -> Path:
    return self._root

  def ensure_root(self) -> Path:
    self._root.mkdir(parents=True, exist_ok=True)
    return self._root

  async def save(self, upload: UploadFile) -> StoredUpload:
    """Persist the upload as `<epoch-millis>_<name>` and return its public reference."""
    await run_in_threadpool(self.ensure_root)
    filename = f"{int(time.time() * 1000)}_{sanitize_filename(upload.filename)}"
    target = self._root / filename

    size = 0
    try:
      with target.open("wb") as handle:
        while chunk := await upload.read(_CHUNK_BYTES):
          size += len(chunk)
          if size > self._max_bytes:
            raise UploadRejectedError(f"Upload exceeds {self._max_bytes} bytes", too_large=True)
          await run_in_threadpool(handle.write, chunk)
    except UploadRejectedError:
      target.unlink(missing_ok=True)
      raise

    if size == 0:
      target.unlink(missing_ok=True)
      raise UploadRejectedError("Upload is empty")

    logger.info("Stored upload filename=%s size=%d", filename, size)
    return StoredUpload(filename=filename, path=target, url=f"{self._url_prefix}/{filename}", size=size)


def build_upload_storage(settings: Settings) -> LocalUploadStorage:
  return LocalUploadStorage(root=Path(settings.upload_dir).resolve(), url_prefix=settings.upload_url_prefix, max_bytes=settings.upload_max_bytes)
