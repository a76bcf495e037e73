"""Unit tests for API exception sanitization behavior."""

from __future__ import annotations

from whisp.core.exceptions import _sanitize_validation_errors
from whisp.core.middleware import _format_json_body, _redact_sensitive_keys


def test_sanitize_validation_errors_removes_input_and_serializes_exception_ctx() -> None:
  """Validation errors stay JSON-serializable and never echo the submitted token."""
  errors = [{"type": "value_error", "loc": ("body", "token"), "msg": "Value error, token is blank.", "input": {"token": "fcm-secret"}, "ctx": {"error": ValueError("token is blank."), "input": "fcm-secret"}, "url": "https://errors.pydantic.dev"}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert "url" not in sanitized[0]
  assert sanitized[0]["loc"] == ["body", "token"]
  assert sanitized[0]["ctx"]["error"] == "ValueError: token is blank."
  assert "input" not in sanitized[0]["ctx"]


def test_request_body_logging_masks_tokens_and_message_text() -> None:
  redacted = _redact_sensitive_keys({"toUid": "bob", "token": "fcm-secret", "body": "private words", "nested": [{"deviceToken": "x"}]})
  assert redacted == {"toUid": "bob", "token": "***", "body": "***", "nested": [{"deviceToken": "***"}]}
  assert _format_json_body(b'{"token": "fcm-secret"}', 1024) == '{"token": "***"}'
  assert _format_json_body(b"{not json", 1024) == "<invalid json>"
  assert _format_json_body(b"", 1024) == "<empty>"
