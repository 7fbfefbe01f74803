"""
Push backend over the Firebase Realtime Database REST API.

Reads and writes are plain JSON requests against <database>/<path>.json.
Subscriptions hold one server-sent-events stream per collection on a daemon
thread; every put/patch event re-delivers the whole collection to subscribers.
"""
import json
import logging
import threading
import urllib.error
import urllib.request
from urllib.parse import quote, urlencode

from django.conf import settings

from .. import documents
from ..constants import COLLECTION_KEYS, STORE_CONFIG
from .base import BaseStore

logger = logging.getLogger(__name__)

STREAM_RETRY_SECONDS = 5
STREAM_READ_TIMEOUT = 90  # Firebase sends keep-alive every ~30s


class RefetchRequired(Exception):
    """Event path runs through a non-object node; re-read the collection instead."""


def apply_event(tree, path, data):
    """
    Return a copy of tree with data written at path ('/a/b'). None deletes.
    """
    parts = [p for p in path.split('/') if p]
    if not parts:
        return data
    if tree is not None and not isinstance(tree, dict):
        raise RefetchRequired(path)
    root = dict(tree or {})
    node = root
    for part in parts[:-1]:
        child = node.get(part)
        if child is not None and not isinstance(child, dict):
            raise RefetchRequired(path)
        child = dict(child or {})
        node[part] = child
        node = child
    if data is None:
        node.pop(parts[-1], None)
    else:
        node[parts[-1]] = data
    return root


def apply_patch(tree, path, data):
    for key, value in (data or {}).items():
        tree = apply_event(tree, f'{path.rstrip("/")}/{key}', value)
    return tree


def iter_sse(lines):
    """Yield (event, data) pairs from an iterable of SSE byte/str lines."""
    event, data = None, []
    for raw in lines:
        line = raw.decode('utf-8') if isinstance(raw, bytes) else raw
        line = line.rstrip('\r\n')
        if not line:
            if event is not None:
                yield event, '\n'.join(data)
            event, data = None, []
            continue
        if line.startswith(':'):
            continue
        field, _, value = line.partition(':')
        value = value[1:] if value.startswith(' ') else value
        if field == 'event':
            event = value
        elif field == 'data':
            data.append(value)
    if event is not None:
        yield event, '\n'.join(data)


class _CollectionStream(threading.Thread):
    """Listens to one collection and forwards events to the store."""

    def __init__(self, store, collection):
        super().__init__(name=f'storefront-stream-{collection}', daemon=True)
        self.store = store
        self.collection = collection
        self._stopped = threading.Event()
        self._response = None

    def run(self):
        while not self._stopped.is_set():
            try:
                self._response = self.store.open_stream(self.collection)
                for event, data in iter_sse(self._response):
                    if self._stopped.is_set():
                        break
                    if event in ('cancel', 'auth_revoked'):
                        logger.warning('Stream for %s ended by server: %s', self.collection, event)
                        self._stopped.set()
                        break
                    if event in ('put', 'patch'):
                        self.store.handle_event(self.collection, event, json.loads(data))
            except Exception:
                if self._stopped.is_set():
                    break
                logger.exception('Stream for %s dropped; reconnecting', self.collection)
            finally:
                self._close()
            self._stopped.wait(STREAM_RETRY_SECONDS)

    def _close(self):
        response, self._response = self._response, None
        if response is not None:
            try:
                response.close()
            except Exception:
                logger.debug('Closing stream for %s failed', self.collection, exc_info=True)

    def stop(self):
        self._stopped.set()
        self._close()


class RealtimeDatabaseStore(BaseStore):
    mode = 'realtime'
    read_errors = (urllib.error.URLError, OSError, ValueError)

    def __init__(self, database_url=None, auth_token=None, timeout=None):
        super().__init__()
        self.database_url = (database_url or settings.FIREBASE_DATABASE_URL).rstrip('/')
        self.auth_token = auth_token if auth_token is not None else getattr(settings, 'FIREBASE_AUTH_TOKEN', '')
        self.timeout = timeout or getattr(settings, 'FIREBASE_TIMEOUT', 10)
        self._trees = {}
        self._streams = {}

    # --- HTTP ---

    def url_for(self, path):
        url = f'{self.database_url}/{quote(path)}.json'
        if self.auth_token:
            url += '?' + urlencode({'auth': self.auth_token})
        return url

    def request(self, method, path, payload=None):
        data = None
        headers = {'Accept': 'application/json'}
        if payload is not None:
            data = documents.dumps(payload).encode('utf-8')
            headers['Content-Type'] = 'application/json'
        req = urllib.request.Request(self.url_for(path), data=data, headers=headers, method=method)
        with urllib.request.urlopen(req, timeout=self.timeout) as resp:
            body = resp.read()
        return json.loads(body) if body else None

    def open_stream(self, collection):
        req = urllib.request.Request(
            self.url_for(collection),
            headers={'Accept': 'text/event-stream'},
            method='GET',
        )
        return urllib.request.urlopen(req, timeout=STREAM_READ_TIMEOUT)

    def _send(self, method, path, payload=None):
        """Write and swallow failures; the next push brings the real state."""
        try:
            return self.request(method, path, payload), True
        except (urllib.error.URLError, OSError, ValueError) as e:
            logger.exception('%s %s failed: %s', method, path, e)
            return None, False

    # --- Reads ---

    def _read_raw(self, collection):
        return self.request('GET', collection)

    # --- Writes ---

    def _write_collection(self, collection, docs):
        raw = documents.encode_collection(collection, docs)
        if collection != STORE_CONFIG:
            key_field = COLLECTION_KEYS[collection]
            raw = {record[key_field]: record for record in raw}
        self._send('PUT', collection, raw)

    def create(self, collection, doc):
        self._check(collection)
        record = documents.encode(collection, doc)
        if collection == STORE_CONFIG:
            self._send('PUT', collection, record)
            return None
        key = self.key_of(collection, doc)
        if key:
            self._send('PUT', f'{collection}/{key}', record)
            return key
        result, ok = self._send('POST', collection, record)
        return result.get('name') if ok and result else None

    def update(self, collection, key, changes):
        self._check(collection)
        payload = documents.encode_changes(collection, changes)
        path = collection if collection == STORE_CONFIG else f'{collection}/{key}'
        self._send('PATCH', path, payload)

    def delete(self, collection, key):
        self._check(collection)
        if collection == STORE_CONFIG:
            raise ValueError('storeConfig cannot be deleted')
        self._send('DELETE', f'{collection}/{key}')

    # --- Push ---

    def handle_event(self, collection, event, payload):
        """Fold one stream event into the cached tree and re-deliver the collection."""
        path = payload.get('path', '/')
        data = payload.get('data')
        with self._lock:
            tree = self._trees.get(collection)
            try:
                if event == 'patch':
                    tree = apply_patch(tree, path, data)
                else:
                    tree = apply_event(tree, path, data)
            except RefetchRequired:
                try:
                    tree = self._read_raw(collection)
                except self.read_errors:
                    logger.exception('Could not re-read %s after event', collection)
                    return
            self._trees[collection] = tree
            snapshot = documents.decode_collection(collection, tree)
            if collection == STORE_CONFIG and snapshot is None:
                # An absent config is not delivered; subscribers keep the last one.
                return
            self._notify(collection, snapshot)

    def _on_subscribe(self, collection, callback):
        with self._lock:
            stream = self._streams.get(collection)
            if stream is None or not stream.is_alive():
                stream = _CollectionStream(self, collection)
                self._streams[collection] = stream
                stream.start()
                return
            tree = self._trees.get(collection)
        if tree is not None:
            # Stream already live: hand the newcomer the current collection.
            try:
                callback(documents.decode_collection(collection, tree))
            except Exception:
                logger.exception('%s subscriber failed', collection)

    def _on_last_unsubscribe(self, collection):
        with self._lock:
            stream = self._streams.pop(collection, None)
            self._trees.pop(collection, None)
        if stream is not None:
            stream.stop()

    def stop(self):
        with self._lock:
            streams = list(self._streams.values())
            self._streams.clear()
        for stream in streams:
            stream.stop()
