"""Shared choices, collection names and storage keys for the storefront."""
from django.conf import settings
from django.db import models


class Category(models.TextChoices):
    VEG = 'veg', 'Veg'
    NON_VEG = 'non-veg', 'Non-Veg'
    COMBOS = 'combos', 'Combos'
    BEVERAGES = 'beverages', 'Beverages'


class CouponType(models.TextChoices):
    FLAT = 'flat', 'Flat'
    PERCENTAGE = 'percentage', 'Percentage'


class PaymentMethod(models.TextChoices):
    UPI = 'upi', 'UPI'
    COD = 'cod', 'Cash on Delivery'


class OrderStatus(models.TextChoices):
    NEW = 'new', 'New'
    PREPARING = 'preparing', 'Preparing'
    OUT_FOR_DELIVERY = 'out-for-delivery', 'Out for Delivery'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


# Document-store collections
MENU_ITEMS = 'menuItems'
COUPONS = 'coupons'
ORDERS = 'orders'
STORE_CONFIG = 'storeConfig'

COLLECTIONS = (MENU_ITEMS, COUPONS, ORDERS, STORE_CONFIG)

# Singleton collections hold one document instead of a keyed list.
SINGLETON_COLLECTIONS = frozenset({STORE_CONFIG})

# Field that keys each record inside a keyed collection.
COLLECTION_KEYS = {
    MENU_ITEMS: 'id',
    COUPONS: 'code',
    ORDERS: 'id',
}


def storage_key(name):
    """Namespaced key in the local storage mirror, e.g. 'flashpizza_orders'."""
    prefix = getattr(settings, 'STORE_KEY_PREFIX', 'flashpizza')
    return f'{prefix}_{name}'


STORAGE_NAMES = {
    MENU_ITEMS: 'menu_items',
    COUPONS: 'coupons',
    ORDERS: 'orders',
    STORE_CONFIG: 'store_config',
}
ACKNOWLEDGED_ORDERS_NAME = 'acknowledged_orders'
NOTIFICATIONS_NAME = 'notifications'
ADMIN_AUTH_NAME = 'admin_auth'
CART_NAME = 'cart'
