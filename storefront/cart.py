"""
Cart state machine. reduce(state, action) is pure: it never mutates its input
and always returns a state (the same one for unknown actions or no-op removes).
Totals are derived elsewhere (storefront.pricing) from the reduced state.
"""
from decimal import Decimal

from .constants import PaymentMethod
from .coupons import check_coupon
from .pricing import subtotal

ADD_ITEM = 'ADD_ITEM'
REMOVE_ITEM = 'REMOVE_ITEM'
SET_QUANTITY = 'SET_QUANTITY'
APPLY_COUPON = 'APPLY_COUPON'
REMOVE_COUPON = 'REMOVE_COUPON'
SET_CUSTOMER = 'SET_CUSTOMER'
SET_PAYMENT_METHOD = 'SET_PAYMENT_METHOD'
CLEAR_CART = 'CLEAR_CART'


def empty_customer():
    return {'name': '', 'phone': '', 'address': '', 'location': None}


def initial_state():
    return {
        'items': [],
        'coupon_code': '',
        'discount': Decimal('0'),
        'customer': empty_customer(),
        'payment_method': PaymentMethod.COD.value,
    }


# --- Action constructors ---

def add_item(menu_item):
    return {'type': ADD_ITEM, 'payload': menu_item}


def remove_item(item_id):
    return {'type': REMOVE_ITEM, 'payload': item_id}


def set_quantity(item_id, quantity):
    return {'type': SET_QUANTITY, 'payload': {'id': item_id, 'quantity': quantity}}


def apply_coupon(code, discount):
    return {'type': APPLY_COUPON, 'payload': {'code': code, 'discount': discount}}


def remove_coupon():
    return {'type': REMOVE_COUPON}


def set_customer(info):
    return {'type': SET_CUSTOMER, 'payload': info}


def set_payment_method(method):
    return {'type': SET_PAYMENT_METHOD, 'payload': method}


def clear_cart():
    return {'type': CLEAR_CART}


def _index_of(items, item_id):
    for i, line in enumerate(items):
        if line['id'] == item_id:
            return i
    return -1


def reduce(state, action):
    kind = action.get('type')
    payload = action.get('payload')

    if kind == ADD_ITEM:
        items = list(state['items'])
        idx = _index_of(items, payload['id'])
        if idx >= 0:
            items[idx] = {**items[idx], 'quantity': items[idx]['quantity'] + 1}
        else:
            line = {k: v for k, v in payload.items() if k != 'quantity'}
            items.append({**line, 'quantity': 1})
        return {**state, 'items': items}

    if kind == REMOVE_ITEM:
        idx = _index_of(state['items'], payload)
        if idx < 0:
            return state
        line = state['items'][idx]
        if line['quantity'] > 1:
            items = list(state['items'])
            items[idx] = {**line, 'quantity': line['quantity'] - 1}
            return {**state, 'items': items}
        return {**state, 'items': [i for i in state['items'] if i['id'] != payload]}

    if kind == SET_QUANTITY:
        item_id, quantity = payload['id'], int(payload['quantity'])
        if quantity <= 0:
            return {**state, 'items': [i for i in state['items'] if i['id'] != item_id]}
        return {
            **state,
            'items': [{**i, 'quantity': quantity} if i['id'] == item_id else i for i in state['items']],
        }

    if kind == APPLY_COUPON:
        return {**state, 'coupon_code': payload['code'], 'discount': Decimal(str(payload['discount']))}

    if kind == REMOVE_COUPON:
        return {**state, 'coupon_code': '', 'discount': Decimal('0')}

    if kind == SET_CUSTOMER:
        return {**state, 'customer': dict(payload)}

    if kind == SET_PAYMENT_METHOD:
        return {**state, 'payment_method': payload}

    if kind == CLEAR_CART:
        return initial_state()

    return state


def item_count(state):
    return sum(i['quantity'] for i in state['items'])


def item_quantity(state, item_id):
    idx = _index_of(state['items'], item_id)
    return state['items'][idx]['quantity'] if idx >= 0 else 0


def apply_cart_coupon(state, coupons, code, now=None):
    """
    Validate code against the cart's current subtotal and apply it.
    Returns the new state; raises CouponRejected and leaves state untouched on rejection.
    """
    coupon, discount = check_coupon(coupons, code, subtotal(state['items']), now=now)
    return reduce(state, apply_coupon(coupon['code'], discount))
