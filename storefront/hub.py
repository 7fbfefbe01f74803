"""
DataHub: the process-wide state container for the storefront.

It owns the latest snapshot of every collection, keeps them current through the
store's subscriptions, and is the only path views and consumers use to read or
change data. One hub per process, created and started by get_hub().
"""
import logging
import threading

from . import coupons as coupon_rules
from . import defaults, documents
from .constants import COUPONS, MENU_ITEMS, ORDERS, STORE_CONFIG
from .models import StorageEntry
from .orders import NewOrderWatcher, OrderAlarm, set_order_status

logger = logging.getLogger(__name__)


class DuplicateCoupon(Exception):
    pass


class DataHub:

    def __init__(self, store, storage=StorageEntry, alarm=None):
        self.store = store
        self.watcher = NewOrderWatcher(storage)
        self.alarm = alarm or OrderAlarm()
        self.menu_items = []
        self.coupons = []
        self.orders = []
        self.store_config = documents.decode_collection(STORE_CONFIG, defaults.STORE_CONFIG)
        self._listeners = []
        self._unsubscribes = []
        self._started = False
        self._lock = threading.RLock()

    @property
    def mode(self):
        return self.store.mode

    # --- Lifecycle ---

    def start(self, run_store=True):
        """Seed, subscribe to every collection and (optionally) start the store's background work."""
        with self._lock:
            if self._started:
                return
            self.store.seed()
            self._unsubscribes = [
                self.store.subscribe(MENU_ITEMS, self._on_menu_items),
                self.store.subscribe(COUPONS, self._on_coupons),
                self.store.subscribe(ORDERS, self._on_orders),
                self.store.subscribe(STORE_CONFIG, self._on_store_config),
            ]
            if run_store:
                self.store.start()
            self._started = True
            logger.info('Data hub started in %s mode', self.mode)

    def stop(self):
        with self._lock:
            for unsubscribe in self._unsubscribes:
                unsubscribe()
            self._unsubscribes = []
            self.alarm.stop()
            self.store.stop()
            self._started = False

    def refresh(self):
        """
        Re-read every collection from the backing store. A collection that cannot
        be read keeps its last snapshot. Also finishes a seed that start() could not.
        """
        self.store.seed()
        handlers = (
            (MENU_ITEMS, self._on_menu_items),
            (COUPONS, self._on_coupons),
            (ORDERS, self._on_orders),
            (STORE_CONFIG, self._on_store_config),
        )
        for collection, handler in handlers:
            try:
                snapshot = self.store.fetch(collection)
            except self.store.read_errors:
                logger.exception('Could not refresh %s; keeping the last snapshot', collection)
                continue
            handler(snapshot)

    # --- Listeners ---

    def add_listener(self, listener):
        """listener(event, payload) is called for every snapshot and new-order event."""
        self._listeners.append(listener)

    def remove_listener(self, listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event, payload):
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:
                logger.exception('Hub listener failed for %s', event)

    # --- Subscription callbacks (each snapshot replaces the previous one) ---

    def _on_menu_items(self, items):
        self.menu_items = items or []
        self._emit(MENU_ITEMS, self.menu_items)

    def _on_coupons(self, items):
        self.coupons = items or []
        self._emit(COUPONS, self.coupons)

    def _on_orders(self, items):
        with self._lock:
            self.orders = items or []
            arrived = self.watcher.observe(self.orders)
            self.alarm.sync(self.orders)
        if arrived:
            logger.info('New orders: %s', ', '.join(o['id'] for o in arrived))
            self._emit('newOrders', [o['id'] for o in arrived])
        self._emit(ORDERS, self.orders)

    def _on_store_config(self, config):
        if config is None:
            return
        self.store_config = config
        self._emit(STORE_CONFIG, self.store_config)

    # --- Reads ---

    def get_menu_item(self, item_id):
        return next((i for i in self.menu_items if i['id'] == item_id), None)

    def get_order(self, order_id):
        return next((o for o in self.orders if o['id'] == order_id), None)

    def get_coupon(self, code):
        return coupon_rules.find_coupon(self.coupons, code)

    @property
    def new_order_ids(self):
        return list(self.watcher.new_order_ids)

    def validate_coupon(self, code, order_total, now=None):
        return coupon_rules.validate_coupon(self.coupons, code, order_total, now=now)

    # --- Menu ---

    def add_menu_item(self, item):
        return self.store.create(MENU_ITEMS, item)

    def update_menu_item(self, item_id, changes):
        self.store.update(MENU_ITEMS, item_id, changes)

    def delete_menu_item(self, item_id):
        self.store.delete(MENU_ITEMS, item_id)

    # --- Coupons ---

    def add_coupon(self, coupon):
        """Codes are unique ignoring case; raises DuplicateCoupon on a clash."""
        if self.get_coupon(coupon['code']) is not None:
            raise DuplicateCoupon(coupon['code'])
        return self.store.create(COUPONS, {**coupon, 'code': coupon['code'].upper()})

    def update_coupon(self, code, changes):
        changes = {k: v for k, v in changes.items() if k != 'code'}
        self.store.update(COUPONS, code.upper(), changes)

    def delete_coupon(self, code):
        self.store.delete(COUPONS, code.upper())

    # --- Orders ---

    def place_order(self, order):
        return self.store.create(ORDERS, order)

    def update_order_status(self, order_id, status):
        set_order_status(self.store, order_id, status)

    def acknowledge_order(self, order_id):
        self.watcher.acknowledge(order_id)

    def acknowledge_all_orders(self):
        self.watcher.acknowledge_all()

    # --- Store config ---

    def update_store_config(self, changes):
        self.store.update(STORE_CONFIG, None, changes)


_hub = None
_hub_lock = threading.Lock()


def get_hub():
    """The process hub, built on get_store() and started on first use."""
    global _hub
    with _hub_lock:
        if _hub is None:
            from .consumers import broadcast, ring_admin_alarm
            from .store import get_store

            hub = DataHub(get_store(), alarm=OrderAlarm(ring=ring_admin_alarm))
            hub.add_listener(broadcast)
            hub.start()
            _hub = hub
        return _hub


def reset_hub():
    global _hub
    with _hub_lock:
        if _hub is not None:
            _hub.stop()
        _hub = None
