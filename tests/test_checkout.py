from decimal import Decimal

import pytest

from storefront import cart
from storefront.checkout import CheckoutRejected, check_checkout, recheck_coupon, validate_customer

GOOD_CUSTOMER = {
    'name': 'Asha',
    'phone': '9876543210',
    'address': '12 MG Road',
    'location': {'lat': 12.975, 'lng': 77.6},
}


@pytest.fixture
def ready_cart(menu_items):
    state = cart.reduce(cart.initial_state(), cart.add_item(menu_items[3]))
    return cart.reduce(state, cart.set_customer(GOOD_CUSTOMER))


@pytest.mark.parametrize('phone', ['5876543210', '987654321', '98765432100', '98765abc10'])
def test_bad_phone_numbers(phone):
    errors = validate_customer({**GOOD_CUSTOMER, 'phone': phone})
    assert errors == {'phone': 'Enter a valid 10-digit phone number'}


def test_missing_fields():
    errors = validate_customer({'name': ' ', 'phone': '', 'address': '', 'location': None})
    assert set(errors) == {'name', 'phone', 'address', 'location'}


def test_ready_cart_passes(ready_cart, store_config):
    assert check_checkout(ready_cart, store_config) < 5


def test_closed_store_and_empty_cart(ready_cart, store_config):
    empty = {**ready_cart, 'items': []}
    with pytest.raises(CheckoutRejected) as exc:
        check_checkout(empty, {**store_config, 'is_open': False})
    assert set(exc.value.errors) == {'store', 'cart'}


def test_out_of_radius(ready_cart, store_config):
    far = cart.reduce(ready_cart, cart.set_customer({**GOOD_CUSTOMER, 'location': {'lat': 13.2, 'lng': 77.6}}))
    with pytest.raises(CheckoutRejected) as exc:
        check_checkout(far, store_config)
    assert exc.value.errors['location'].startswith('Sorry, we only deliver within 5 km.')


def test_recheck_coupon_follows_the_current_subtotal(ready_cart, menu_items, coupons, now):
    state = cart.reduce(ready_cart, cart.add_item(menu_items[3]))
    state = cart.apply_cart_coupon(state, coupons, 'WELCOME', now=now)
    assert state['discount'] == Decimal('59.70')
    state = cart.reduce(state, cart.add_item(menu_items[3]))
    assert recheck_coupon(state, coupons, now=now)['discount'] == Decimal('89.55')


def test_recheck_coupon_rejects_cart_shrunk_below_minimum(ready_cart, menu_items, coupons, now):
    state = cart.reduce(ready_cart, cart.add_item(menu_items[3]))
    state = cart.apply_cart_coupon(state, coupons, 'FLAT50', now=now)
    state = cart.reduce(state, cart.remove_item('v1'))
    with pytest.raises(CheckoutRejected) as exc:
        recheck_coupon(state, coupons, now=now)
    assert exc.value.errors == {'coupon': 'Minimum order amount is ₹300'}


def test_recheck_without_coupon_is_a_no_op(ready_cart, coupons):
    assert recheck_coupon(ready_cart, coupons) is ready_cart
