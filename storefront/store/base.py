"""
Persistence adapter contract shared by the realtime (push) and local (polling)
backends. Callers only ever see decoded Python documents and full-collection
callbacks; nothing outside this package knows which backend is running.
"""
import logging
import threading

from .. import defaults, documents
from ..constants import (
    COLLECTION_KEYS,
    COLLECTIONS,
    COUPONS,
    MENU_ITEMS,
    STORE_CONFIG,
)

logger = logging.getLogger(__name__)

SEED_DATA = {
    MENU_ITEMS: defaults.MENU_ITEMS,
    COUPONS: defaults.COUPONS,
    STORE_CONFIG: defaults.STORE_CONFIG,
}


class BaseStore:
    """
    subscribe(collection, callback) -> unsubscribe
    create(collection, doc) -> key
    update(collection, key, changes)
    delete(collection, key)
    fetch(collection) -> decoded collection
    seed()

    Keyed collections are lists of dicts; storeConfig is a single dict (or None).
    Write failures are logged and swallowed, never raised to the caller.
    fetch() may raise one of read_errors; callers log it and keep what they had.
    """
    mode = None
    read_errors = (OSError, ValueError)

    def __init__(self):
        self._subscribers = {c: [] for c in COLLECTIONS}
        self._lock = threading.RLock()
        self._seeded = False

    # --- Subscriptions ---

    def subscribe(self, collection, callback):
        self._check(collection)
        with self._lock:
            self._subscribers[collection].append(callback)
        self._on_subscribe(collection, callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers[collection]:
                    self._subscribers[collection].remove(callback)
                remaining = len(self._subscribers[collection])
            if not remaining:
                self._on_last_unsubscribe(collection)

        return unsubscribe

    def has_subscribers(self, collection):
        return bool(self._subscribers[collection])

    def _notify(self, collection, snapshot):
        for callback in list(self._subscribers[collection]):
            try:
                callback(snapshot)
            except Exception:
                logger.exception('%s subscriber failed', collection)

    def _on_subscribe(self, collection, callback):
        raise NotImplementedError

    def _on_last_unsubscribe(self, collection):
        pass

    # --- Reads / writes ---

    def fetch(self, collection):
        self._check(collection)
        return documents.decode_collection(collection, self._read_raw(collection))

    def create(self, collection, doc):
        raise NotImplementedError

    def update(self, collection, key, changes):
        raise NotImplementedError

    def delete(self, collection, key):
        raise NotImplementedError

    def _read_raw(self, collection):
        raise NotImplementedError

    def _write_collection(self, collection, docs):
        raise NotImplementedError

    # --- Lifecycle ---

    def seed(self):
        """
        Write the built-in dataset into each empty collection. Completes once per
        store; a collection that could not be read is retried on the next call.
        Returns True once every collection has been checked.
        """
        with self._lock:
            if self._seeded:
                return True
            complete = True
            for collection, data in SEED_DATA.items():
                try:
                    existing = self._read_raw(collection)
                except self.read_errors:
                    logger.exception('Could not read %s while seeding', collection)
                    complete = False
                    continue
                if existing:
                    continue
                logger.info('Seeding %s with default data', collection)
                self._write_collection(collection, documents.decode_collection(collection, data))
            self._seeded = complete
            return complete

    def restore_defaults(self, collections=None):
        """Overwrite collections (default: every seeded one) with the built-in dataset."""
        for collection in collections or SEED_DATA:
            self._check(collection)
            data = SEED_DATA.get(collection, [])
            logger.info('Restoring default %s', collection)
            self._write_collection(collection, documents.decode_collection(collection, data))

    def start(self):
        pass

    def stop(self):
        pass

    @staticmethod
    def key_of(collection, doc):
        return doc.get(COLLECTION_KEYS[collection])

    @staticmethod
    def _check(collection):
        if collection not in COLLECTIONS:
            raise ValueError(f'Unknown collection: {collection}')
