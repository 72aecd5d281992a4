"""
Module for initializing the Firebase Admin SDK with robust handling of credentials.

Behavior:
- If Firebase app already initialized, do nothing.
- Read credentials from `settings.FIREBASE_CREDENTIALS_JSON` (preferred).
  * If value looks like JSON (starts with '{'), parse it and use Certificate(dict).
  * Otherwise treat it as a path to a JSON file and load it.
- If `settings.FIREBASE_CREDENTIALS_JSON` is empty, fall back to the
  GOOGLE_APPLICATION_CREDENTIALS environment variable (path to file).
- The Cloud Storage bucket used for course images comes from
  `settings.FIREBASE_STORAGE_BUCKET` and is passed as an app option.
"""
import os
import json
import logging
import firebase_admin
from firebase_admin import credentials
from formation_portal.core.config import settings


def _load_cred_from_json_string(val: str):
    try:
        cred_dict = json.loads(val)
    except ValueError as e:
        raise ValueError(f"FIREBASE_CREDENTIALS_JSON does not contain valid JSON: {e}")
    if cred_dict.get("type") != "service_account":
        raise ValueError("Invalid service account certificate: 'type' field must be 'service_account'.")
    return credentials.Certificate(cred_dict)


def _app_options() -> dict:
    options = {}
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET
    return options


def _resolve_credentials():
    firebase_creds = settings.FIREBASE_CREDENTIALS_JSON

    if firebase_creds:
        if firebase_creds.strip().startswith("{"):
            return _load_cred_from_json_string(firebase_creds), "FIREBASE_CREDENTIALS_JSON"
        path = os.path.expanduser(firebase_creds)
        if os.path.isfile(path):
            return credentials.Certificate(path), "FIREBASE_CREDENTIALS_JSON"
        raise ValueError(f"FIREBASE_CREDENTIALS_JSON value is neither a valid JSON nor a path to a file: {path}")

    gac = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    if gac:
        path = os.path.expanduser(gac)
        if not os.path.isfile(path):
            raise ValueError(f"GOOGLE_APPLICATION_CREDENTIALS is set but the file was not found: {path}")
        return credentials.Certificate(path), "GOOGLE_APPLICATION_CREDENTIALS"

    raise ValueError(
        "Firebase credentials not provided. Set FIREBASE_CREDENTIALS_JSON (content or path) "
        "or GOOGLE_APPLICATION_CREDENTIALS (path)."
    )


def initialize_firebase():
    """Initializes the Firebase Admin SDK using credentials from environment variables.

    Raises a clear exception when credentials are missing or invalid so the deploy logs
    show an actionable message.
    """
    if firebase_admin._apps:
        logging.debug("Firebase already initialized")
        return

    logging.info("Initializing Firebase Admin SDK...")
    try:
        cred, source = _resolve_credentials()
        firebase_admin.initialize_app(cred, _app_options())
    except Exception as e:
        logging.error(f"Fatal error: Failed to initialize Firebase Admin SDK: {e}")
        raise
    logging.info("Firebase Admin SDK initialized successfully from %s.", source)
