"""Lightweight .env loader so local runs pick up Firebase credentials."""

from __future__ import annotations

import os
from pathlib import Path


def default_env_path() -> Path:
  """Return the .env path at the repository root."""

  return Path(__file__).resolve().parents[2] / ".env"


def parse_env_text(text: str) -> dict[str, str]:
  """Parse KEY=VALUE lines, ignoring comments, blanks and `export` prefixes."""
  values: dict[str, str] = {}
  for raw_line in text.splitlines():
    parsed = _parse_line(raw_line)
    if parsed is None:
      continue
    key, value = parsed
    values[key] = value

  return values


def load_env_file(path: Path, *, override: bool = False) -> list[str]:
  """Copy .env values into the process environment and return the keys applied."""

  if not path.is_file():
    return []

  applied: list[str] = []
  for key, value in parse_env_text(path.read_text(encoding="utf-8")).items():
    # Real environment wins unless the caller explicitly asks otherwise.
    if not override and key in os.environ:
      continue
    os.environ[key] = value
    applied.append(key)

  return applied


def _parse_line(raw_line: str) -> tuple[str, str] | None:
  line = raw_line.strip()
  if not line or line.startswith("#"):
    return None
  if line.startswith("export "):
    line = line[len("export ") :].lstrip()

  key, sep, value = line.partition("=")
  key = key.strip()
  if not sep or not key:
    return None

  value = value.strip()
  # Quoted values keep their content verbatim; PEM keys are usually quoted.
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    return key, value[1:-1]

  return key, value
