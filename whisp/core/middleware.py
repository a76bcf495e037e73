import json
import logging
import time
import uuid
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from whisp.config import get_settings

logger = logging.getLogger("whisp.core.middleware")

# Device tokens and display names are personal data; never echo them into logs.
_SENSITIVE_KEYS = {"token", "fcmtoken", "devicetoken", "authorization", "cookie", "secret", "private_key", "sendername", "title", "body"}


def _redact_sensitive_keys(data: Any) -> Any:
  """Redact sensitive keys from a dictionary or list recursively."""
  if isinstance(data, dict):
    return {k: ("***" if k.lower() in _SENSITIVE_KEYS else _redact_sensitive_keys(v)) for k, v in data.items()}
  if isinstance(data, list):
    return [_redact_sensitive_keys(item) for item in data]
  return data


def _header(scope: Scope, name: bytes) -> str | None:
  for key, value in scope.get("headers", []):
    if key.lower() == name:
      return value.decode("latin-1")
  return None


def _format_json_body(body: bytes, max_bytes: int) -> str:
  """Render a JSON request body for logs with sensitive keys masked."""
  if not body:
    return "<empty>"
  if len(body) > max_bytes:
    return f"<json body {len(body)} bytes, over log limit>"
  try:
    parsed = json.loads(body.decode("utf-8"))
  except (UnicodeDecodeError, json.JSONDecodeError):
    return "<invalid json>"
  return json.dumps(_redact_sensitive_keys(parsed), ensure_ascii=True)


class RequestLoggingMiddleware:
  """Log request metadata and latency, tagging every response with a request id."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    settings = get_settings()
    request_id = str(uuid.uuid4())
    scope.setdefault("state", {})["request_id"] = request_id

    start_time = time.time()
    method = scope.get("method", "UNKNOWN")
    path = scope.get("path", "")
    content_type = _header(scope, b"content-type")
    logger.info("Incoming request request_id=%s %s %s", request_id, method, path)

    receive_wrapper = receive
    # Only JSON bodies are buffered; multipart uploads stream straight through.
    if settings.log_http_bodies and content_type and "application/json" in content_type.lower():
      chunks: list[bytes] = []
      more_body = True
      while more_body:
        message = await receive()
        if message.get("type") != "http.request":
          break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)

      request_body = b"".join(chunks)
      logger.info("Request body request_id=%s body=%s", request_id, _format_json_body(request_body, settings.log_http_body_bytes))
      replayed = False

      async def receive_wrapper() -> Message:
        nonlocal replayed
        if replayed:
          return {"type": "http.request", "body": b"", "more_body": False}
        replayed = True
        return {"type": "http.request", "body": request_body, "more_body": False}

    status_code: int | None = None

    async def send_wrapper(message: Message) -> None:
      nonlocal status_code
      if message.get("type") == "http.response.start":
        status_code = message.get("status")
        headers = MutableHeaders(scope=message)
        if "x-request-id" not in headers:
          headers["x-request-id"] = request_id
      await send(message)

    await self.app(scope, receive_wrapper, send_wrapper)

    process_time = (time.time() - start_time) * 1000
    logger.info("Response request_id=%s status=%s (took %.2fms)", request_id, status_code or 0, process_time)
