"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from whisp.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class ServiceAccountSettings:
  """Inline Firebase service-account fields, mirroring the Google JSON key layout."""

  type: str | None
  project_id: str | None
  private_key_id: str | None
  private_key: str | None
  client_email: str | None
  client_id: str | None
  auth_uri: str | None
  token_uri: str | None
  auth_provider_x509_cert_url: str | None
  client_x509_cert_url: str | None

  @property
  def is_complete(self) -> bool:
    """Return True when the fields required to sign Google OAuth requests are present."""
    return bool(self.project_id and self.private_key and self.client_email)

  def as_certificate_dict(self) -> dict[str, str]:
    """Build the dict accepted by `firebase_admin.credentials.Certificate`."""
    payload = {
      "type": self.type or "service_account",
      "project_id": self.project_id,
      "private_key_id": self.private_key_id,
      "private_key": self.private_key,
      "client_email": self.client_email,
      "client_id": self.client_id,
      "auth_uri": self.auth_uri,
      "token_uri": self.token_uri or "https://oauth2.googleapis.com/token",
      "auth_provider_x509_cert_url": self.auth_provider_x509_cert_url,
      "client_x509_cert_url": self.client_x509_cert_url,
    }
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True)
class Settings:
  """Typed settings for the Whisp notification service."""

  environment: str
  debug: bool
  port: int
  allowed_origins: tuple[str, ...]
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  log_http_bodies: bool
  log_http_body_bytes: int
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None
  service_account: ServiceAccountSettings
  push_notifications_enabled: bool
  users_collection: str
  groups_collection: str
  fanout_max_concurrency: int
  fanout_timeout_seconds: float
  upload_dir: str
  upload_url_prefix: str
  upload_max_bytes: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  # Mobile clients do not send an Origin header; default to open CORS like the legacy server.
  if not raw:
    return ("*",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("WHISP_ALLOWED_ORIGINS must include at least one origin.")

  return tuple(origins)


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  normalized = raw.strip()
  return normalized or None


def _load_private_key(raw: str | None) -> str | None:
  """Convert escaped newlines so PEM keys survive single-line env storage."""
  value = _optional_str(raw)
  if value is None:
    return None
  return value.replace("\\n", "\n")


def _load_service_account() -> ServiceAccountSettings:
  return ServiceAccountSettings(
    type=_optional_str(os.getenv("TYPE")),
    project_id=_optional_str(os.getenv("PROJECT_ID")),
    private_key_id=_optional_str(os.getenv("PRIVATE_KEY_ID")),
    private_key=_load_private_key(os.getenv("PRIVATE_KEY")),
    client_email=_optional_str(os.getenv("CLIENT_EMAIL")),
    client_id=_optional_str(os.getenv("CLIENT_ID")),
    auth_uri=_optional_str(os.getenv("AUTH_URI")),
    token_uri=_optional_str(os.getenv("TOKEN_URI")),
    auth_provider_x509_cert_url=_optional_str(os.getenv("AUTH_PROVIDER_X509_CERT_URL")),
    client_x509_cert_url=_optional_str(os.getenv("CLIENT_X509_CERT_URL")),
  )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("WHISP_ENV", "development").lower()
  debug = _parse_bool(os.getenv("WHISP_DEBUG"))
  port = _parse_positive_int("PORT", "3000")

  log_max_bytes = _parse_positive_int("WHISP_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("WHISP_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("WHISP_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Allow opt-in logging of 4xx HTTPExceptions and request bodies for diagnostics.
  log_http_4xx = _parse_bool(os.getenv("WHISP_LOG_HTTP_4XX"))
  log_http_bodies = _parse_bool(os.getenv("WHISP_LOG_HTTP_BODIES"))
  log_http_body_bytes = _parse_positive_int("WHISP_LOG_HTTP_BODY_BYTES", "2048")

  service_account = _load_service_account()
  firebase_project_id = _optional_str(os.getenv("FIREBASE_PROJECT_ID")) or service_account.project_id

  fanout_max_concurrency = _parse_positive_int("WHISP_FANOUT_MAX_CONCURRENCY", "10")
  fanout_timeout_seconds = float(os.getenv("WHISP_FANOUT_TIMEOUT_SECONDS", "30"))
  if fanout_timeout_seconds <= 0:
    raise ValueError("WHISP_FANOUT_TIMEOUT_SECONDS must be a positive number.")

  upload_max_bytes = _parse_positive_int("WHISP_UPLOAD_MAX_BYTES", str(25 * 1024 * 1024))

  return Settings(
    environment=environment,
    debug=debug,
    port=port,
    allowed_origins=_parse_origins(os.getenv("WHISP_ALLOWED_ORIGINS")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=log_http_4xx,
    log_http_bodies=log_http_bodies,
    log_http_body_bytes=log_http_body_bytes,
    firebase_project_id=firebase_project_id,
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    service_account=service_account,
    push_notifications_enabled=_parse_bool(os.getenv("WHISP_PUSH_NOTIFICATIONS_ENABLED"), default=True),
    users_collection=(os.getenv("WHISP_USERS_COLLECTION") or "users").strip(),
    groups_collection=(os.getenv("WHISP_GROUPS_COLLECTION") or "groups").strip(),
    fanout_max_concurrency=fanout_max_concurrency,
    fanout_timeout_seconds=fanout_timeout_seconds,
    upload_dir=(os.getenv("WHISP_UPLOAD_DIR") or "./uploads").strip(),
    upload_url_prefix="/uploads",
    upload_max_bytes=upload_max_bytes,
  )
