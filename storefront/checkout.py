"""
Checkout validation: customer details, delivery radius, store hours and cart contents.
"""
import re

from .cart import apply_cart_coupon
from .coupons import CouponRejected
from .geo import check_delivery_radius

PHONE_RE = re.compile(r'^[6-9]\d{9}$')


class CheckoutRejected(Exception):
    """The order cannot be placed; errors maps field -> message."""

    def __init__(self, errors):
        self.errors = errors
        super().__init__('; '.join(errors.values()))


def validate_customer(customer):
    """Return {field: message} for every missing or malformed customer field."""
    errors = {}
    if not (customer.get('name') or '').strip():
        errors['name'] = 'Name is required'
    phone = (customer.get('phone') or '').strip()
    if not phone:
        errors['phone'] = 'Phone number is required'
    elif not PHONE_RE.match(phone):
        errors['phone'] = 'Enter a valid 10-digit phone number'
    if not (customer.get('address') or '').strip():
        errors['address'] = 'Address is required'
    if not customer.get('location'):
        errors['location'] = 'Please share your location for delivery'
    return errors


def check_checkout(state, config):
    """
    Validate a cart for checkout. Returns the delivery distance in km or raises
    CheckoutRejected.
    """
    errors = {}
    if not config.get('is_open', True):
        errors['store'] = 'Sorry, the store is currently closed'
    if not state['items']:
        errors['cart'] = 'Your cart is empty'
    errors.update(validate_customer(state['customer']))
    distance = None
    if 'location' not in errors:
        distance, radius_error = check_delivery_radius(config, state['customer']['location'])
        if radius_error:
            errors['location'] = radius_error
    if errors:
        raise CheckoutRejected(errors)
    return distance


def recheck_coupon(state, coupons, now=None):
    """
    Re-validate the applied coupon against the cart's current subtotal and return
    the state carrying a fresh discount. Raises CheckoutRejected once the coupon
    no longer applies.
    """
    if not state.get('coupon_code') or not state['items']:
        return state
    try:
        return apply_cart_coupon(state, coupons, state['coupon_code'], now=now)
    except CouponRejected as e:
        raise CheckoutRejected({'coupon': str(e)})
