"""
Order lifecycle: building orders at checkout, deriving the customer's active
order, admin status transitions, new-order detection and the new-order alarm.
"""
import copy
import datetime
import json
import logging
import threading

from django.conf import settings
from django.utils import timezone

from . import documents
from .constants import (
    ACKNOWLEDGED_ORDERS_NAME,
    ORDERS,
    TERMINAL_STATUSES,
    OrderStatus,
    storage_key,
)
from .pricing import calculate_totals

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    OrderStatus.NEW: 'Order Received',
    OrderStatus.PREPARING: 'Being Prepared',
    OrderStatus.OUT_FOR_DELIVERY: 'On the way!',
    OrderStatus.COMPLETED: 'Delivered',
    OrderStatus.CANCELLED: 'Order cancelled',
}

# Minutes after created_at the order is expected at the door, per status.
ETA_MINUTES = {
    OrderStatus.NEW: 35,
    OrderStatus.PREPARING: 25,
    OrderStatus.OUT_FOR_DELIVERY: 10,
}

# The single next step the admin screen offers for each status. Not enforced:
# set_order_status accepts any status.
NEXT_ACTIONS = {
    OrderStatus.NEW: [OrderStatus.PREPARING, OrderStatus.CANCELLED],
    OrderStatus.PREPARING: [OrderStatus.OUT_FOR_DELIVERY],
    OrderStatus.OUT_FOR_DELIVERY: [OrderStatus.COMPLETED],
    OrderStatus.COMPLETED: [],
    OrderStatus.CANCELLED: [],
}

_BASE36 = '0123456789abcdefghijklmnopqrstuvwxyz'


def _base36(number):
    if number == 0:
        return '0'
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return ''.join(reversed(digits))


def new_order_id(now=None):
    """FP + base-36 of the epoch milliseconds, uppercased."""
    now = now or timezone.now()
    return 'FP' + _base36(int(now.timestamp() * 1000)).upper()


def short_id(order_id):
    return order_id[-6:].upper()


def is_terminal(order):
    return order['status'] in TERMINAL_STATUSES


def status_label(status):
    return STATUS_LABELS.get(status, f'Status: {status}')


def estimated_delivery(order):
    """Expected delivery time for a live order; None once completed or cancelled."""
    minutes = ETA_MINUTES.get(order['status'])
    if minutes is None:
        return None
    return order['created_at'] + datetime.timedelta(minutes=minutes)


def build_order(cart_state, config, distance, order_id=None, now=None):
    """
    Turn a checked-out cart into a new order. Items are deep-copied so later menu
    edits cannot reach into the order.
    """
    now = now or timezone.now()
    totals = calculate_totals(cart_state['items'], cart_state['discount'], config)
    order = {
        'id': order_id or new_order_id(now),
        'items': copy.deepcopy(cart_state['items']),
        'customer': copy.deepcopy(cart_state['customer']),
        'subtotal': totals['subtotal'],
        'discount': totals['discount'],
        'delivery_charge': totals['delivery_charge'],
        'total': totals['total'],
        'payment_method': cart_state['payment_method'],
        'status': OrderStatus.NEW.value,
        'created_at': now,
        'distance': distance or 0,
    }
    if cart_state.get('coupon_code'):
        order['coupon_code'] = cart_state['coupon_code']
    return order


# --- Customer side ---

def active_order(orders):
    """Most recent order not yet completed or cancelled. orders may be in any order."""
    live = [o for o in orders if not is_terminal(o)]
    if not live:
        return None
    return max(live, key=lambda o: o['created_at'])


def refresh_tracked(tracked, orders):
    """
    Re-derive the order the customer is looking at.
    Returns (order, changed). A tracked order still present is only replaced when
    its status moved; otherwise the active order is picked up.
    """
    if tracked is not None:
        current = next((o for o in orders if o['id'] == tracked['id']), None)
        if current is not None:
            if current['status'] != tracked['status']:
                return current, True
            return tracked, False
    candidate = active_order(orders)
    if candidate is not None and (tracked is None or tracked['id'] != candidate['id']):
        return candidate, True
    return tracked, False


def notify_order_update(center, order):
    """
    Reflect an order status in the customer's notification center.
    Completed orders drop their notification.
    """
    if order['status'] == OrderStatus.COMPLETED:
        center.remove_for_order(order['id'])
        return
    center.set_for_order(
        order['id'],
        status_label(order['status']),
        f'Order #{order["id"]}: {status_label(order["status"])}',
    )


def orders_for_phone(orders, phone):
    phone = (phone or '').strip()
    if not phone:
        return []
    return [o for o in orders if o['customer'].get('phone') == phone]


# --- Admin side ---

def set_order_status(store, order_id, status):
    """Write only the status field of an order."""
    store.update(ORDERS, order_id, {'status': status})


def mark_preparing(store, order_id):
    set_order_status(store, order_id, OrderStatus.PREPARING.value)


def mark_out_for_delivery(store, order_id):
    set_order_status(store, order_id, OrderStatus.OUT_FOR_DELIVERY.value)


def mark_completed(store, order_id):
    set_order_status(store, order_id, OrderStatus.COMPLETED.value)


def cancel(store, order_id):
    set_order_status(store, order_id, OrderStatus.CANCELLED.value)


TRANSITIONS = {
    'prepare': (mark_preparing, 'marked as Preparing'),
    'dispatch': (mark_out_for_delivery, 'is Out for Delivery'),
    'complete': (mark_completed, 'completed'),
    'cancel': (cancel, 'has been cancelled'),
}


class NewOrderWatcher:
    """
    Spots orders that arrived in status 'new' and have not been acknowledged.
    seen_ids is per process; acknowledged IDs persist in the storage mirror so a
    restart does not re-announce orders the admin already dealt with.
    """

    def __init__(self, storage):
        self.storage = storage
        self.key = storage_key(ACKNOWLEDGED_ORDERS_NAME)
        self.seen_ids = set()
        self.new_order_ids = []

    def acknowledged_ids(self):
        try:
            return set(documents.loads(self.storage.get_item(self.key)) or [])
        except (TypeError, ValueError):
            logger.warning('Unreadable acknowledged order list; treating as empty')
            return set()

    def _save_acknowledged(self, ids):
        try:
            self.storage.set_item(self.key, json.dumps(sorted(ids)))
        except Exception:
            logger.exception('Could not persist acknowledged orders')

    def observe(self, orders):
        """Record a fresh orders snapshot. Returns the orders that just arrived."""
        acknowledged = self.acknowledged_ids()
        arrived = [
            o for o in orders
            if o['id'] not in self.seen_ids
            and o['id'] not in acknowledged
            and o['status'] == OrderStatus.NEW
        ]
        for o in arrived:
            if o['id'] not in self.new_order_ids:
                self.new_order_ids.append(o['id'])
        self.seen_ids.update(o['id'] for o in orders)
        # Only orders still waiting in 'new' need to stay acknowledged.
        still_new = {o['id'] for o in orders if o['status'] == OrderStatus.NEW}
        if acknowledged - still_new:
            self._save_acknowledged(acknowledged & still_new)
        return arrived

    def acknowledge(self, order_id):
        ids = self.acknowledged_ids()
        ids.add(order_id)
        self._save_acknowledged(ids)
        self.new_order_ids = [i for i in self.new_order_ids if i != order_id]

    def acknowledge_all(self):
        ids = self.acknowledged_ids()
        ids.update(self.new_order_ids)
        self._save_acknowledged(ids)
        self.new_order_ids = []


class OrderAlarm:
    """
    Repeating ring while at least one order is waiting in 'new'.
    sync() must be called with every orders snapshot; it starts or stops the loop.
    """

    def __init__(self, ring=None, interval=None):
        self.ring = ring or self._log_ring
        self.interval = interval if interval is not None else getattr(settings, 'ORDER_ALARM_INTERVAL', 3.0)
        self.is_playing = False
        self._timer = None
        self._lock = threading.Lock()

    @staticmethod
    def _log_ring():
        logger.warning('New order waiting for action')

    def _ring_once(self):
        try:
            self.ring()
        except Exception:
            logger.exception('Order alarm ring failed')

    def _tick(self):
        with self._lock:
            if not self.is_playing:
                return
        self._ring_once()
        self._schedule()

    def _schedule(self):
        with self._lock:
            if not self.is_playing or self.interval <= 0:
                return
            self._timer = threading.Timer(self.interval, self._tick)
            self._timer.daemon = True
            self._timer.start()

    def start(self):
        with self._lock:
            if self.is_playing:
                return
            self.is_playing = True
        self._ring_once()
        self._schedule()

    def stop(self):
        with self._lock:
            self.is_playing = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def sync(self, orders):
        waiting = any(o['status'] == OrderStatus.NEW for o in orders)
        if waiting and not self.is_playing:
            self.start()
        elif not waiting and self.is_playing:
            self.stop()
        return self.is_playing
