"""
Firebase Configuration

Initializes the Firebase Admin SDK and exposes a shared Firestore client.

Environment:
    FIREBASE_CREDENTIALS: Path to a service-account JSON file.
    GOOGLE_APPLICATION_CREDENTIALS: Used when FIREBASE_CREDENTIALS is unset.

Functions:
    get_db: Return the Firestore client, or None if Firebase is not configured.
"""

import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore


logger = logging.getLogger(__name__)

_db = None


def _credentials_path():
    return os.environ.get("FIREBASE_CREDENTIALS") or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")


def _ensure_app(path: str) -> None:
    # get_app raises ValueError until the default app is initialized
    try:
        firebase_admin.get_app()
    except ValueError:
        firebase_admin.initialize_app(credentials.Certificate(path))


def get_db():
    """
    Return the Firestore client, initializing Firebase on first use.

    Returns:
        google.cloud.firestore.Client | None: The client, or None when no
        credentials are configured or initialization failed.

    Notes:
        - Callers are expected to raise RuntimeError on None
    """
    global _db
    if _db is not None:
        return _db

    path = _credentials_path()
    if not path:
        logger.warning("Firebase credentials not configured; Firestore is disabled")
        return None

    try:
        _ensure_app(path)
        _db = firestore.client()
    except (ValueError, OSError) as e:
        logger.warning("Could not initialize Firestore from %s: %s", path, e)
        return None

    logger.info("Connected to Firestore using %s", path)
    return _db


def reset_db() -> None:
    """Forget the cached client (used by tests)."""
    global _db
    _db = None
