"""
Coupon validation against the current coupon set and an order subtotal.
Pure: same coupons, code, subtotal and clock give the same answer.
"""
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from .constants import CouponType


class CouponRejected(Exception):
    """Base for coupon rejections. str(exc) is the message shown to the customer."""
    message = 'Invalid coupon code'

    def __init__(self, message=None):
        super().__init__(message or self.message)


class CouponNotFound(CouponRejected):
    message = 'Invalid coupon code'


class CouponInactive(CouponRejected):
    message = 'This coupon is no longer active'


class CouponExpired(CouponRejected):
    message = 'This coupon has expired'


class CouponBelowMinimum(CouponRejected):
    def __init__(self, min_order):
        self.min_order = min_order
        super().__init__(f'Minimum order amount is ₹{format_amount(min_order)}')


def format_amount(value):
    """Render a Decimal amount without trailing zeros: 300.00 -> '300', 105.60 -> '105.6'."""
    value = Decimal(str(value))
    if value == value.to_integral_value():
        return str(value.quantize(Decimal('1')))
    return format(value.normalize(), 'f')


def find_coupon(coupons, code):
    """Case-insensitive lookup by code. Returns the coupon dict or None."""
    wanted = (code or '').strip().upper()
    if not wanted:
        return None
    for coupon in coupons:
        if coupon['code'].upper() == wanted:
            return coupon
    return None


def compute_discount(coupon, order_total):
    """Percentage: order_total * value / 100, capped by max_discount when set. Flat: value."""
    order_total = Decimal(str(order_total))
    if coupon['type'] == CouponType.PERCENTAGE:
        discount = order_total * Decimal(str(coupon['value'])) / Decimal('100')
        max_discount = coupon.get('max_discount')
        if max_discount:
            discount = min(discount, Decimal(str(max_discount)))
    else:
        discount = Decimal(str(coupon['value']))
    return discount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def check_coupon(coupons, code, order_total, now=None):
    """
    Return (coupon, discount) or raise a CouponRejected subclass.
    Checks run in order: exists, active, not expired, minimum order.
    """
    coupon = find_coupon(coupons, code)
    if coupon is None:
        raise CouponNotFound()
    if not coupon.get('is_active', False):
        raise CouponInactive()
    now = now or timezone.now()
    expires_at = coupon.get('expires_at')
    if expires_at is not None and expires_at < now:
        raise CouponExpired()
    order_total = Decimal(str(order_total))
    min_order = Decimal(str(coupon.get('min_order') or 0))
    if order_total < min_order:
        raise CouponBelowMinimum(min_order)
    return coupon, compute_discount(coupon, order_total)


def validate_coupon(coupons, code, order_total, now=None):
    """Dict form of check_coupon: {'valid', 'discount', 'message'}."""
    try:
        _, discount = check_coupon(coupons, code, order_total, now=now)
    except CouponRejected as e:
        return {'valid': False, 'discount': Decimal('0'), 'message': str(e)}
    return {
        'valid': True,
        'discount': discount,
        'message': f'₹{format_amount(discount)} discount applied!',
    }
