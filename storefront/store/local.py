"""
Polling backend over the local storage mirror (StorageEntry rows).

Each collection is one JSON document under a namespaced key. A poll re-reads
the key, content-hashes it and only notifies subscribers when the digest moved.
Writes notify subscribers first, then persist; a storage_changed signal fired
on every write lets other stores in the process refresh before the next poll.
"""
import logging
import threading

from django.conf import settings
from django.db import DatabaseError, close_old_connections

from .. import documents
from ..constants import COLLECTIONS, STORAGE_NAMES, STORE_CONFIG, storage_key
from ..models import StorageEntry
from ..signals import storage_changed
from .base import BaseStore

logger = logging.getLogger(__name__)


class LocalStore(BaseStore):
    mode = 'local'
    read_errors = (DatabaseError, OSError, ValueError)

    def __init__(self, storage=StorageEntry, interval=None):
        super().__init__()
        self.storage = storage
        self.interval = interval if interval is not None else getattr(settings, 'STORE_POLL_INTERVAL', 2.0)
        self._snapshots = {}
        self._digests = {}
        self._keys = {storage_key(STORAGE_NAMES[c]): c for c in COLLECTIONS}
        self._stop_event = threading.Event()
        self._thread = None
        storage_changed.connect(self._on_storage_changed)

    def key_for(self, collection):
        return storage_key(STORAGE_NAMES[collection])

    # --- Reading ---

    def _read_raw(self, collection):
        text = self.storage.get_item(self.key_for(collection))
        try:
            return documents.loads(text)
        except ValueError:
            logger.warning('Stored %s is not valid JSON; ignoring it', collection)
            return None

    def _refresh(self, collection, notify=True):
        """Re-read one collection. Returns True when its content changed."""
        with self._lock:
            try:
                raw = self._read_raw(collection)
            except Exception:
                logger.exception('Could not read %s from local storage', collection)
                return False
            digest = documents.content_digest(raw)
            if collection in self._snapshots and self._digests.get(collection) == digest:
                return False
            self._digests[collection] = digest
            snapshot = documents.decode_collection(collection, raw)
            self._snapshots[collection] = snapshot
            if notify:
                self._notify(collection, snapshot)
            return True

    def _current(self, collection):
        with self._lock:
            if collection not in self._snapshots:
                self._refresh(collection, notify=False)
            return self._snapshots.get(collection)

    def _on_subscribe(self, collection, callback):
        snapshot = self._current(collection)
        try:
            callback(snapshot)
        except Exception:
            logger.exception('%s subscriber failed', collection)

    def poll(self):
        """One polling pass over every subscribed collection."""
        changed = []
        for collection in COLLECTIONS:
            if self.has_subscribers(collection) and self._refresh(collection):
                changed.append(collection)
        return changed

    def _on_storage_changed(self, sender, key=None, **kwargs):
        collection = self._keys.get(key)
        if collection and self.has_subscribers(collection):
            self._refresh(collection)

    # --- Writing ---

    def _write_collection(self, collection, docs):
        self._commit(collection, docs)

    def _commit(self, collection, snapshot):
        """Apply snapshot locally (subscribers see it immediately), then persist it."""
        with self._lock:
            self._snapshots[collection] = snapshot
            self._notify(collection, snapshot)
            raw = documents.encode_collection(collection, snapshot)
            self._digests[collection] = documents.content_digest(raw)
            try:
                self.storage.set_item(self.key_for(collection), documents.dumps(raw))
            except Exception:
                logger.exception('Could not write %s to local storage', collection)

    def _mutate(self, collection, change):
        with self._lock:
            self._refresh(collection)
            current = self._snapshots.get(collection)
            updated = change(current)
            if updated is None:
                return
            self._commit(collection, updated)

    def create(self, collection, doc):
        self._check(collection)
        if collection == STORE_CONFIG:
            self._mutate(collection, lambda current: dict(doc))
            return None
        key = self.key_of(collection, doc)

        def add(current):
            rest = [d for d in current or [] if self.key_of(collection, d) != key]
            return [dict(doc)] + rest

        self._mutate(collection, add)
        return key

    def update(self, collection, key, changes):
        self._check(collection)
        if collection == STORE_CONFIG:
            self._mutate(collection, lambda current: {**(current or {}), **changes})
            return

        def merge(current):
            current = current or []
            if not any(self.key_of(collection, d) == key for d in current):
                logger.warning('Update for missing %s record %s ignored', collection, key)
                return None
            return [{**d, **changes} if self.key_of(collection, d) == key else d for d in current]

        self._mutate(collection, merge)

    def delete(self, collection, key):
        self._check(collection)
        if collection == STORE_CONFIG:
            raise ValueError('storeConfig cannot be deleted')
        self._mutate(
            collection,
            lambda current: [d for d in current or [] if self.key_of(collection, d) != key],
        )

    # --- Polling loop ---

    def _run(self):
        logger.info('Local storage polling every %ss', self.interval)
        while not self._stop_event.wait(self.interval):
            try:
                self.poll()
            except Exception:
                logger.exception('Local storage poll failed')
            finally:
                close_old_connections()

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name='storefront-poll', daemon=True)
        self._thread.start()

    def stop(self):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval + 1)
            self._thread = None
