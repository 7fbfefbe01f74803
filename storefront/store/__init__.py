"""
Persistence adapter. get_store() picks the backend once per process: the
realtime database when its credentials are configured, the local storage
mirror otherwise.
"""
import logging
import threading

from django.conf import settings

from .base import BaseStore
from .local import LocalStore
from .realtime import RealtimeDatabaseStore

logger = logging.getLogger(__name__)

_store = None
_store_lock = threading.Lock()


def firebase_configured():
    """True when API key, database URL and project id are all set and the URL is https."""
    api_key = (getattr(settings, 'FIREBASE_API_KEY', '') or '').strip()
    database_url = (getattr(settings, 'FIREBASE_DATABASE_URL', '') or '').strip()
    project_id = (getattr(settings, 'FIREBASE_PROJECT_ID', '') or '').strip()
    if not (api_key and database_url and project_id):
        return False
    return database_url.startswith('https://')


def build_store():
    if firebase_configured():
        logger.info('Using Firebase Realtime Database at %s', settings.FIREBASE_DATABASE_URL)
        return RealtimeDatabaseStore()
    logger.info('Firebase not configured; using local storage mirror')
    return LocalStore()


def get_store():
    global _store
    with _store_lock:
        if _store is None:
            _store = build_store()
        return _store


def reset_store():
    """Drop the process store (stopping its threads). Used by tests and management commands."""
    global _store
    with _store_lock:
        if _store is not None:
            _store.stop()
        _store = None


__all__ = [
    'BaseStore',
    'LocalStore',
    'RealtimeDatabaseStore',
    'build_store',
    'firebase_configured',
    'get_store',
    'reset_store',
]
