"""
WebSocket sync for storefront clients. Everyone joins the public group and gets
menu, coupon, store config and order-status pushes; admin sessions also join the
admin group for full orders, new-order arrivals and the alarm ring.
"""
import logging

from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from channels.layers import get_channel_layer

from . import documents
from .constants import ADMIN_AUTH_NAME, COUPONS, MENU_ITEMS, ORDERS, STORE_CONFIG, storage_key

logger = logging.getLogger(__name__)

PUBLIC_GROUP = 'storefront_sync'
ADMIN_GROUP = 'storefront_admin'


def order_statuses(orders):
    return [{'id': o['id'], 'status': o['status']} for o in orders]


def _group_send(group, message):
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(group, message)
    except Exception:
        logger.exception('Push to %s failed', group)


def broadcast(event, payload):
    """DataHub listener: relay a collection snapshot or new-order event to the groups."""
    if event == 'newOrders':
        _group_send(ADMIN_GROUP, {'type': 'new.orders', 'ids': payload})
    elif event == ORDERS:
        _group_send(ADMIN_GROUP, {
            'type': 'sync.collection',
            'collection': ORDERS,
            'data': documents.encode_collection(ORDERS, payload),
        })
        _group_send(PUBLIC_GROUP, {'type': 'order.statuses', 'orders': order_statuses(payload)})
    else:
        _group_send(PUBLIC_GROUP, {
            'type': 'sync.collection',
            'collection': event,
            'data': documents.encode_collection(event, payload),
        })


def ring_admin_alarm():
    _group_send(ADMIN_GROUP, {'type': 'order.alarm'})


@database_sync_to_async
def load_snapshot(is_admin):
    """Current state for a freshly connected client."""
    from .hub import get_hub

    hub = get_hub()
    data = {
        MENU_ITEMS: documents.encode_collection(MENU_ITEMS, hub.menu_items),
        COUPONS: documents.encode_collection(COUPONS, hub.coupons),
        STORE_CONFIG: documents.encode_collection(STORE_CONFIG, hub.store_config),
    }
    if is_admin:
        data[ORDERS] = documents.encode_collection(ORDERS, hub.orders)
        data['newOrderIds'] = hub.new_order_ids
    else:
        data['orderStatuses'] = order_statuses(hub.orders)
    return data


@database_sync_to_async
def refresh_hub():
    from .hub import get_hub

    get_hub().refresh()


class SyncConsumer(AsyncJsonWebsocketConsumer):
    """WebSocket for live storefront data. URL: /ws/sync/"""

    async def connect(self):
        session = self.scope.get('session')
        self.is_admin = bool(session and session.get(storage_key(ADMIN_AUTH_NAME)))
        self.groups_joined = [PUBLIC_GROUP] + ([ADMIN_GROUP] if self.is_admin else [])
        for group in self.groups_joined:
            await self.channel_layer.group_add(group, self.channel_name)
        await self.accept()
        await self.send_json({'type': 'snapshot', 'data': await load_snapshot(self.is_admin)})

    async def disconnect(self, close_code):
        for group in getattr(self, 'groups_joined', []):
            await self.channel_layer.group_discard(group, self.channel_name)

    async def receive_json(self, content, **kwargs):
        action = content.get('action')
        if action == 'ping':
            await self.send_json({'type': 'pong'})
        elif action == 'refresh':
            await refresh_hub()
        else:
            await self.send_json({'type': 'error', 'error': f'Unknown action: {action}'})

    async def sync_collection(self, event):
        await self.send_json({
            'type': 'collection',
            'collection': event['collection'],
            'data': event['data'],
        })

    async def order_statuses(self, event):
        await self.send_json({'type': 'orderStatuses', 'orders': event['orders']})

    async def new_orders(self, event):
        await self.send_json({'type': 'newOrders', 'ids': event['ids']})

    async def order_alarm(self, event):
        await self.send_json({'type': 'alarm'})
