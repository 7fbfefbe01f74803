"""
Document codec for the storefront collections.

Documents live in the document store (and the local mirror) as camelCase JSON.
Inside Python they are snake_case dicts with Decimal money and aware datetimes.
The DRF serializers below do both directions and validate admin/customer input.
"""
import datetime
import hashlib
import json
import logging
from decimal import Decimal

from rest_framework import serializers

from .constants import (
    COLLECTION_KEYS,
    COUPONS,
    MENU_ITEMS,
    ORDERS,
    STORE_CONFIG,
    Category,
    CouponType,
    OrderStatus,
    PaymentMethod,
)

logger = logging.getLogger(__name__)


def _money(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, **kwargs)


def _timestamp(**kwargs):
    return serializers.DateTimeField(default_timezone=datetime.timezone.utc, **kwargs)


class LocationSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)


class MenuItemSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=255)
    price = _money(min_value=Decimal('0.01'))
    image = serializers.CharField(allow_blank=True, required=False, default='')
    category = serializers.ChoiceField(choices=Category.choices)
    description = serializers.CharField(allow_blank=True, required=False)
    isAvailable = serializers.BooleanField(source='is_available', default=True)
    rating = serializers.FloatField(min_value=0, max_value=5, required=False, allow_null=True)
    popularity = serializers.FloatField(min_value=0, required=False, allow_null=True)


class CartItemSerializer(MenuItemSerializer):
    quantity = serializers.IntegerField(min_value=1)


class CouponSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32)
    type = serializers.ChoiceField(choices=CouponType.choices)
    value = _money(min_value=Decimal('0'))
    minOrder = _money(source='min_order', min_value=Decimal('0'), default=Decimal('0'))
    maxDiscount = _money(source='max_discount', min_value=Decimal('0'), required=False, allow_null=True)
    isActive = serializers.BooleanField(source='is_active', default=True)
    expiresAt = _timestamp(source='expires_at')

    def validate_code(self, value):
        code = value.strip().upper()
        if not code:
            raise serializers.ValidationError('Coupon code is required')
        return code

    def validate(self, attrs):
        if attrs.get('type') == CouponType.PERCENTAGE and attrs.get('value', 0) > 100:
            raise serializers.ValidationError({'value': 'Percentage cannot exceed 100'})
        return attrs


class CustomerInfoSerializer(serializers.Serializer):
    name = serializers.CharField(allow_blank=True, default='')
    phone = serializers.CharField(allow_blank=True, default='')
    address = serializers.CharField(allow_blank=True, default='')
    location = LocationSerializer(allow_null=True, default=None)


class OrderSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64)
    items = CartItemSerializer(many=True)
    customer = CustomerInfoSerializer()
    subtotal = _money()
    discount = _money(default=Decimal('0'))
    deliveryCharge = _money(source='delivery_charge', default=Decimal('0'))
    total = _money()
    couponCode = serializers.CharField(source='coupon_code', required=False, allow_null=True, allow_blank=True)
    paymentMethod = serializers.ChoiceField(source='payment_method', choices=PaymentMethod.choices)
    status = serializers.ChoiceField(choices=OrderStatus.choices, default=OrderStatus.NEW)
    createdAt = _timestamp(source='created_at')
    distance = serializers.FloatField(default=0)


class BannerSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64)
    image = serializers.CharField()
    title = serializers.CharField(allow_blank=True)
    subtitle = serializers.CharField(allow_blank=True, required=False)
    isActive = serializers.BooleanField(source='is_active', default=True)
    order = serializers.IntegerField(default=0)


class StoreConfigSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20)
    upiId = serializers.CharField(source='upi_id', allow_blank=True)
    location = LocationSerializer()
    maxDeliveryRadius = serializers.FloatField(source='max_delivery_radius', min_value=0)
    freeDeliveryThreshold = _money(source='free_delivery_threshold', min_value=Decimal('0'))
    deliveryCharge = _money(source='delivery_charge', min_value=Decimal('0'))
    bannerImage = serializers.CharField(source='banner_image', allow_blank=True, default='')
    offerText = serializers.CharField(source='offer_text', allow_blank=True, default='')
    isOpen = serializers.BooleanField(source='is_open', default=True)
    banners = BannerSerializer(many=True, required=False)


class CartStateSerializer(serializers.Serializer):
    """Cart as kept in the customer's session."""
    items = CartItemSerializer(many=True)
    couponCode = serializers.CharField(source='coupon_code', allow_blank=True, default='')
    discount = _money(default=Decimal('0'))
    customer = CustomerInfoSerializer()
    paymentMethod = serializers.ChoiceField(source='payment_method', choices=PaymentMethod.choices,
                                            default=PaymentMethod.COD)


SERIALIZERS = {
    MENU_ITEMS: MenuItemSerializer,
    COUPONS: CouponSerializer,
    ORDERS: OrderSerializer,
    STORE_CONFIG: StoreConfigSerializer,
}


# --- Encoding ---

def plain(value):
    """Turn serializer output (Decimal, OrderedDict) into JSON-ready values."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain(v) for v in value]
    return value


def encode(collection, doc):
    """Python document -> storage (camelCase) dict."""
    return plain(SERIALIZERS[collection](doc).data)


def encode_changes(collection, changes):
    """Encode a partial update, keeping only the fields present in changes."""
    serializer = SERIALIZERS[collection]()
    out = {}
    for name, field in serializer.fields.items():
        if field.source not in changes:
            continue
        value = changes[field.source]
        out[name] = None if value is None else plain(field.to_representation(value))
    return out


def encode_collection(collection, docs):
    if collection == STORE_CONFIG:
        return encode(collection, docs) if docs else None
    return [encode(collection, d) for d in docs]


def encode_cart(state):
    return plain(CartStateSerializer(state).data)


# --- Decoding ---

def _validated(serializer_class, raw, partial=False):
    serializer = serializer_class(data=raw, partial=partial)
    serializer.is_valid(raise_exception=True)
    return _to_dict(serializer.validated_data)


def _to_dict(value):
    if isinstance(value, dict):
        return {k: _to_dict(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_dict(v) for v in value]
    return value


def decode(collection, raw, partial=False):
    """
    Storage/API dict -> Python document. Raises serializers.ValidationError.
    With partial=True only the supplied fields are validated and returned.
    """
    doc = _validated(SERIALIZERS[collection], raw, partial=partial)
    if collection == STORE_CONFIG and not partial:
        doc.setdefault('banners', [])
    return doc


def decode_cart(raw):
    return _validated(CartStateSerializer, raw)


def decode_customer(raw):
    return _validated(CustomerInfoSerializer, raw)


def decode_banner(raw, partial=False):
    return _validated(BannerSerializer, raw, partial=partial)


def decode_collection(collection, raw):
    """
    Decode a whole stored collection. Keyed collections may be stored as a list
    (local mirror) or as an object keyed by id/code (realtime database).
    Invalid records are logged and skipped. Orders come back newest first.
    """
    if collection == STORE_CONFIG:
        if not raw:
            return None
        try:
            return decode(collection, raw)
        except serializers.ValidationError as e:
            logger.warning('Skipping invalid store config: %s', e.detail)
            return None
    if not raw:
        return []
    key_field = COLLECTION_KEYS[collection]
    if isinstance(raw, dict):
        entries = []
        for key, value in raw.items():
            if isinstance(value, dict):
                value = dict(value)
                value.setdefault(key_field, key)
                entries.append(value)
    else:
        entries = [e for e in raw if isinstance(e, dict)]
    docs = []
    for entry in entries:
        try:
            docs.append(decode(collection, entry))
        except serializers.ValidationError as e:
            logger.warning('Skipping invalid %s record %s: %s', collection, entry.get(key_field), e.detail)
    if collection == ORDERS:
        docs.sort(key=lambda o: o['created_at'], reverse=True)
    return docs


# --- JSON ---

def dumps(value):
    return json.dumps(plain(value), ensure_ascii=False, separators=(',', ':'))


def loads(text):
    if not text:
        return None
    return json.loads(text)


def content_digest(value):
    """Stable sha256 of a JSON value; equal digests mean structurally equal values."""
    canonical = json.dumps(plain(value), sort_keys=True, ensure_ascii=False, separators=(',', ':'))
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()
