import datetime
from decimal import Decimal

import pytest

from storefront import documents, hub as hub_module
from storefront.constants import COUPONS, MENU_ITEMS, STORE_CONFIG
from storefront import defaults
from storefront.hub import DataHub
from storefront.orders import OrderAlarm
from storefront.store.local import LocalStore


class MemoryStorage:
    """Dict-backed stand-in for StorageEntry's get_item/set_item/remove_item."""

    def __init__(self):
        self.data = {}
        self.writes = []

    def get_item(self, key):
        return self.data.get(key)

    def set_item(self, key, value):
        self.writes.append(key)
        self.data[key] = value

    def remove_item(self, key):
        self.data.pop(key, None)


class RecordingAlarm(OrderAlarm):
    """Alarm that rings into a list and never schedules timers."""

    def __init__(self):
        self.rings = []
        super().__init__(ring=lambda: self.rings.append(True), interval=0)


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def local_store(memory_storage):
    store = LocalStore(storage=memory_storage, interval=0.01)
    yield store
    store.stop()


@pytest.fixture
def store_config():
    return documents.decode_collection(STORE_CONFIG, defaults.STORE_CONFIG)


@pytest.fixture
def menu_items():
    return documents.decode_collection(MENU_ITEMS, defaults.MENU_ITEMS)


@pytest.fixture
def coupons():
    return documents.decode_collection(COUPONS, defaults.COUPONS)


@pytest.fixture
def now():
    return datetime.datetime(2026, 3, 1, 12, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def hub(local_store, memory_storage):
    """A started DataHub on in-memory storage, installed as the process hub."""
    data_hub = DataHub(local_store, storage=memory_storage, alarm=RecordingAlarm())
    data_hub.start(run_store=False)
    hub_module._hub = data_hub
    yield data_hub
    hub_module._hub = None
    data_hub.stop()


def make_order(order_id, status='new', minutes_ago=0, phone='9876543210', items=None, now=None):
    now = now or datetime.datetime(2026, 3, 1, 12, 0, tzinfo=datetime.timezone.utc)
    items = items or [{
        'id': 'v1', 'name': 'Margherita Pizza', 'price': Decimal('199'), 'image': '',
        'category': 'veg', 'is_available': True, 'quantity': 2,
    }]
    subtotal = sum(i['price'] * i['quantity'] for i in items)
    return {
        'id': order_id,
        'items': items,
        'customer': {'name': 'Asha', 'phone': phone, 'address': '12 MG Road',
                     'location': {'lat': 12.97, 'lng': 77.59}},
        'subtotal': subtotal,
        'discount': Decimal('0'),
        'delivery_charge': Decimal('0'),
        'total': subtotal,
        'payment_method': 'cod',
        'status': status,
        'created_at': now - datetime.timedelta(minutes=minutes_ago),
        'distance': 0.5,
    }


@pytest.fixture
def order_factory():
    return make_order
