import logging

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore import Client as FirestoreClient

from whisp.config import Settings, get_settings

logger = logging.getLogger(__name__)


def _build_credential(settings: Settings) -> credentials.Base | None:
  """Pick a credential source: JSON key file, inline env fields, or application default."""
  if settings.firebase_service_account_json_path:
    return credentials.Certificate(settings.firebase_service_account_json_path)

  if settings.service_account.is_complete:
    return credentials.Certificate(settings.service_account.as_certificate_dict())

  return None


def initialize_firebase(settings: Settings | None = None) -> bool:
  """Initializes the Firebase Admin SDK and reports whether it is usable."""
  if firebase_admin._apps:
    return True

  settings = settings or get_settings()
  logger.debug(
    "Validating Firebase credentials project_id=%s client_email=%s private_key_present=%s key_file=%s",
    settings.firebase_project_id,
    settings.service_account.client_email,
    bool(settings.service_account.private_key),
    bool(settings.firebase_service_account_json_path),
  )

  if not settings.firebase_project_id:
    logger.warning("Firebase Project ID not set. Firebase Admin SDK not initialized.")
    return False

  try:
    credential = _build_credential(settings)
    if credential is not None:
      firebase_admin.initialize_app(credential, {"projectId": settings.firebase_project_id})
    else:
      # Use default credentials (e.g. Google Application Default Credentials)
      firebase_admin.initialize_app(options={"projectId": settings.firebase_project_id})
    logger.info("Firebase Admin SDK initialized successfully.")
    return True
  except (ValueError, OSError) as e:
    logger.error("Failed to initialize Firebase Admin SDK: %s", e)
    return False


def is_firebase_initialized() -> bool:
  return bool(firebase_admin._apps)


def get_firestore_client() -> FirestoreClient | None:
  """Returns a Firestore client instance. Lazily initializes if needed."""
  if not firebase_admin._apps and not initialize_firebase():
    return None

  try:
    return firestore.client()
  except Exception as e:  # noqa: BLE001
    logger.error("Failed to get Firestore client: %s", e)
    return None
