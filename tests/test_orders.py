import datetime
from decimal import Decimal

from storefront import cart
from storefront.constants import ORDERS
from storefront.notifications import NotificationCenter
from storefront.orders import (
    NEXT_ACTIONS,
    NewOrderWatcher,
    OrderAlarm,
    active_order,
    build_order,
    cancel,
    estimated_delivery,
    mark_completed,
    new_order_id,
    notify_order_update,
    orders_for_phone,
    refresh_tracked,
    short_id,
)


def test_new_order_id_format(now):
    order_id = new_order_id(now)
    assert order_id.startswith('FP')
    assert order_id == order_id.upper()
    assert int(order_id[2:], 36) == int(now.timestamp() * 1000)
    assert short_id('fpabcdef123') == 'DEF123'


def test_build_order_freezes_items(menu_items, store_config, now):
    state = cart.reduce(cart.initial_state(), cart.add_item(menu_items[3]))
    state = cart.reduce(state, cart.apply_coupon('FLAT50', 50))
    order = build_order(state, store_config, 1.2, order_id='FPX', now=now)
    state['items'][0]['name'] = 'Changed later'
    assert order['items'][0]['name'] == 'Margherita Pizza'
    assert order['subtotal'] == Decimal('199')
    assert order['discount'] == Decimal('50')
    assert order['delivery_charge'] == Decimal('35')
    assert order['total'] == Decimal('184')
    assert order['coupon_code'] == 'FLAT50'
    assert order['status'] == 'new'
    assert order['created_at'] == now


def test_active_order_is_newest_non_terminal(order_factory):
    orders = [
        order_factory('FP1', status='preparing', minutes_ago=20),
        order_factory('FP2', status='completed', minutes_ago=1),
        order_factory('FP3', status='new', minutes_ago=10),
    ]
    assert active_order(orders)['id'] == 'FP3'
    assert active_order([order_factory('FP4', status='cancelled')]) is None


def test_refresh_tracked_only_on_status_change(order_factory):
    tracked = order_factory('FP1', status='new')
    same = dict(tracked, total=Decimal('1'))
    order, changed = refresh_tracked(tracked, [same])
    assert changed is False
    assert order is tracked

    moved = dict(tracked, status='preparing')
    order, changed = refresh_tracked(tracked, [moved])
    assert changed is True
    assert order['status'] == 'preparing'


def test_refresh_tracked_picks_up_active_order(order_factory):
    order, changed = refresh_tracked(None, [order_factory('FP9', status='new')])
    assert changed is True
    assert order['id'] == 'FP9'
    assert refresh_tracked(None, []) == (None, False)


def test_estimated_delivery(order_factory, now):
    assert estimated_delivery(order_factory('FP1', status='new')) == now + datetime.timedelta(minutes=35)
    assert estimated_delivery(order_factory('FP1', status='out-for-delivery')) == now + datetime.timedelta(minutes=10)
    assert estimated_delivery(order_factory('FP1', status='completed')) is None


def test_notify_order_update_replaces_and_removes(order_factory):
    center = NotificationCenter()
    order = order_factory('FP1', status='preparing')
    notify_order_update(center, order)
    notify_order_update(center, dict(order, status='out-for-delivery'))
    assert len(center.notifications) == 1
    assert center.notifications[0]['title'] == 'On the way!'
    notify_order_update(center, dict(order, status='completed'))
    assert center.notifications == []


def test_orders_for_phone(order_factory):
    orders = [order_factory('FP1', phone='9000000001'), order_factory('FP2', phone='9000000002')]
    assert [o['id'] for o in orders_for_phone(orders, '9000000002')] == ['FP2']
    assert orders_for_phone(orders, '') == []


def test_transitions_are_not_enforced(local_store, order_factory):
    local_store.create(ORDERS, order_factory('FP1', status='new'))
    mark_completed(local_store, 'FP1')
    assert local_store.fetch(ORDERS)[0]['status'] == 'completed'
    cancel(local_store, 'FP1')
    assert local_store.fetch(ORDERS)[0]['status'] == 'cancelled'
    assert NEXT_ACTIONS['completed'] == []


def test_watcher_announces_each_new_order_once(memory_storage, order_factory):
    watcher = NewOrderWatcher(memory_storage)
    first = watcher.observe([order_factory('FP1'), order_factory('FP2', status='preparing')])
    assert [o['id'] for o in first] == ['FP1']
    assert watcher.observe([order_factory('FP1')]) == []
    arrived = watcher.observe([order_factory('FP1'), order_factory('FP3')])
    assert [o['id'] for o in arrived] == ['FP3']
    assert watcher.new_order_ids == ['FP1', 'FP3']


def test_acknowledged_orders_survive_restart(memory_storage, order_factory):
    watcher = NewOrderWatcher(memory_storage)
    watcher.observe([order_factory('FP1'), order_factory('FP2')])
    watcher.acknowledge('FP1')
    assert watcher.new_order_ids == ['FP2']

    restarted = NewOrderWatcher(memory_storage)
    arrived = restarted.observe([order_factory('FP1'), order_factory('FP2')])
    assert [o['id'] for o in arrived] == ['FP2']
    restarted.acknowledge_all()
    assert NewOrderWatcher(memory_storage).observe([order_factory('FP2')]) == []


def test_acknowledged_list_drops_orders_that_moved_on(memory_storage, order_factory):
    watcher = NewOrderWatcher(memory_storage)
    watcher.observe([order_factory('FP1'), order_factory('FP2')])
    watcher.acknowledge('FP1')
    watcher.acknowledge('FP2')
    assert watcher.acknowledged_ids() == {'FP1', 'FP2'}

    watcher.observe([order_factory('FP1', status='preparing'), order_factory('FP2')])
    assert watcher.acknowledged_ids() == {'FP2'}
    watcher.observe([])
    assert watcher.acknowledged_ids() == set()


def test_alarm_follows_new_orders(order_factory):
    rings = []
    alarm = OrderAlarm(ring=lambda: rings.append(1), interval=0)
    assert alarm.sync([order_factory('FP1', status='preparing')]) is False
    assert alarm.sync([order_factory('FP1', status='new')]) is True
    assert rings == [1]
    # Already playing: no second start.
    alarm.sync([order_factory('FP1', status='new')])
    assert rings == [1]
    assert alarm.sync([order_factory('FP1', status='cancelled')]) is False


def test_alarm_ring_failure_is_contained(order_factory):
    def broken():
        raise RuntimeError('no speaker')

    alarm = OrderAlarm(ring=broken, interval=0)
    assert alarm.sync([order_factory('FP1')]) is True
    alarm.stop()
    assert alarm.is_playing is False
