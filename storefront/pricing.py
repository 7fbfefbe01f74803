"""
Cart pricing: subtotal, delivery charge and grand total.
Discount is taken as already validated; see storefront.coupons.
"""
from decimal import Decimal


def _dec(value):
    if value is None:
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def subtotal(items):
    """Sum of price * quantity over cart lines."""
    return sum((_dec(i['price']) * int(i['quantity']) for i in items), Decimal('0'))


def item_count(items):
    return sum(int(i['quantity']) for i in items)


def delivery_charge(order_subtotal, discount, config):
    """Free when (subtotal - discount) reaches the store's threshold, else the flat charge."""
    final_amount = _dec(order_subtotal) - _dec(discount)
    if final_amount >= _dec(config['free_delivery_threshold']):
        return Decimal('0')
    return _dec(config['delivery_charge'])


def calculate_totals(items, discount, config):
    """
    Return subtotal, discount, delivery_charge, total, item_count and
    amount_for_free_delivery for the given cart lines and store config.
    """
    sub = subtotal(items)
    disc = _dec(discount)
    fee = delivery_charge(sub, disc, config)
    remaining = _dec(config['free_delivery_threshold']) - (sub - disc)
    return {
        'subtotal': sub,
        'discount': disc,
        'delivery_charge': fee,
        'total': sub - disc + fee,
        'item_count': item_count(items),
        'amount_for_free_delivery': max(Decimal('0'), remaining),
    }
