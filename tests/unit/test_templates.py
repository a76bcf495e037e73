from __future__ import annotations

import pytest

from whisp.notifications.templates import DEFAULT_BODY, format_group_body, resolve_body, resolve_group_title, resolve_message_type, resolve_sender_name


@pytest.mark.parametrize(
  ("message_type", "expected"),
  [
    ("audio", "Sent you a voice message"),
    ("image", "Sent you a photo"),
    ("video", "Sent you a video"),
    ("document", "Sent you a document"),
  ],
)
def test_resolve_body_maps_media_types(message_type, expected):
  assert resolve_body(None, message_type) == expected
  assert resolve_body("   ", message_type) == expected


@pytest.mark.parametrize("message_type", [None, "text", "sticker", "", "IMAGE"])
def test_resolve_body_falls_back_to_generic_default(message_type):
  assert resolve_body(None, message_type) == DEFAULT_BODY == "Sent you a message"


def test_resolve_body_returns_explicit_text_unchanged():
  assert resolve_body("  see you at 8 ", "image") == "  see you at 8 "


def test_resolve_body_is_idempotent():
  once = resolve_body("", "video")
  assert resolve_body(once, "video") == once
  assert resolve_body(once, None) == once


def test_group_helpers_apply_defaults():
  assert resolve_sender_name(None) == "Someone"
  assert resolve_sender_name("  Alice ") == "Alice"
  assert resolve_group_title(None) == "Group Message"
  assert resolve_group_title("", "Stored Name") == "Stored Name"
  assert resolve_group_title("Request Name", "Stored Name") == "Request Name"
  assert format_group_body(None, "hi") == "Someone: hi"
  assert format_group_body("Alice", "hi") == "Alice: hi"


def test_resolve_message_type_defaults_to_chat():
  assert resolve_message_type(None) == "chat"
  assert resolve_message_type(" ") == "chat"
  assert resolve_message_type("image") == "image"


def test_padded_message_type_matches_its_data_type():
  assert resolve_message_type(" image ") == "image"
  assert resolve_body(None, " image ") == "Sent you a photo"
