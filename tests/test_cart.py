import copy
from decimal import Decimal

import pytest

from storefront import cart
from storefront.coupons import CouponBelowMinimum


@pytest.fixture
def margherita(menu_items):
    return next(i for i in menu_items if i['id'] == 'v1')


@pytest.fixture
def coke(menu_items):
    return next(i for i in menu_items if i['id'] == 'b1')


def test_add_item_new_line_and_increment(margherita):
    state = cart.reduce(cart.initial_state(), cart.add_item(margherita))
    assert cart.item_quantity(state, 'v1') == 1
    state = cart.reduce(state, cart.add_item(margherita))
    assert len(state['items']) == 1
    assert cart.item_quantity(state, 'v1') == 2


def test_reduce_does_not_mutate_input(margherita):
    state = cart.reduce(cart.initial_state(), cart.add_item(margherita))
    before = copy.deepcopy(state)
    cart.reduce(state, cart.add_item(margherita))
    cart.reduce(state, cart.remove_item('v1'))
    assert state == before


def test_remove_item_decrements_then_drops(margherita, coke):
    state = cart.initial_state()
    for item in (margherita, margherita, coke):
        state = cart.reduce(state, cart.add_item(item))
    state = cart.reduce(state, cart.remove_item('v1'))
    assert cart.item_quantity(state, 'v1') == 1
    state = cart.reduce(state, cart.remove_item('v1'))
    assert [i['id'] for i in state['items']] == ['b1']
    assert cart.item_count(state) == 1


def test_remove_missing_item_is_noop(margherita):
    state = cart.reduce(cart.initial_state(), cart.add_item(margherita))
    assert cart.reduce(state, cart.remove_item('zzz')) is state


def test_set_quantity(margherita):
    state = cart.reduce(cart.initial_state(), cart.add_item(margherita))
    state = cart.reduce(state, cart.set_quantity('v1', 5))
    assert cart.item_count(state) == 5
    state = cart.reduce(state, cart.set_quantity('v1', 0))
    assert state['items'] == []


def test_coupon_and_clear(margherita):
    state = cart.reduce(cart.initial_state(), cart.add_item(margherita))
    state = cart.reduce(state, cart.apply_coupon('FLAT50', 50))
    assert state['coupon_code'] == 'FLAT50'
    assert state['discount'] == Decimal('50')
    state = cart.reduce(state, cart.remove_coupon())
    assert state['coupon_code'] == ''
    assert state['discount'] == 0
    state = cart.reduce(state, cart.set_payment_method('upi'))
    state = cart.reduce(state, cart.clear_cart())
    assert state == cart.initial_state()


def test_unknown_action_returns_same_state():
    state = cart.initial_state()
    assert cart.reduce(state, {'type': 'NOPE'}) is state


def test_apply_cart_coupon_uses_subtotal(margherita, coupons, now):
    state = cart.initial_state()
    for _ in range(2):
        state = cart.reduce(state, cart.add_item(margherita))
    # 398 >= 300
    state = cart.apply_cart_coupon(state, coupons, 'flat50', now=now)
    assert state['coupon_code'] == 'FLAT50'
    assert state['discount'] == Decimal('50')


def test_apply_cart_coupon_rejection_leaves_state(margherita, coupons, now):
    state = cart.reduce(cart.initial_state(), cart.add_item(margherita))
    with pytest.raises(CouponBelowMinimum):
        cart.apply_cart_coupon(state, coupons, 'FLAT50', now=now)
    assert state['coupon_code'] == ''
