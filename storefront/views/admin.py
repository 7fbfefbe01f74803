"""
Admin API under /api/admin/: passphrase gate, menu/coupon/banner/settings CRUD,
order board with status transitions and new-order acknowledgement.
"""
import datetime
import hmac
import logging

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from rest_framework import serializers

from storefront import documents
from storefront.constants import ADMIN_AUTH_NAME, COUPONS, MENU_ITEMS, ORDERS, STORE_CONFIG, OrderStatus, storage_key
from storefront.hub import DuplicateCoupon, get_hub
from storefront.menu import reorder_banners
from storefront.orders import NEXT_ACTIONS, TRANSITIONS, is_terminal, short_id
from storefront.utils import admin_required, is_admin, read_json, validation_error_response

logger = logging.getLogger(__name__)

DEFAULT_ITEM_IMAGE = 'https://images.unsplash.com/photo-1565299624946-b28f40a0ae38?w=200&h=200&fit=crop'
DEFAULT_COUPON_LIFETIME = datetime.timedelta(days=365)


def _new_id(prefix, taken):
    """prefix_<epoch ms>, stepping forward past ids already in use."""
    ms = int(timezone.now().timestamp() * 1000)
    while f'{prefix}_{ms}' in taken:
        ms += 1
    return f'{prefix}_{ms}'


def _order_payload(order, new_ids=()):
    return {
        **documents.encode(ORDERS, order),
        'isNew': order['id'] in new_ids,
        'nextActions': list(NEXT_ACTIONS.get(order['status'], [])),
    }


def _banners_payload(banners):
    ordered = sorted(banners, key=lambda b: b.get('order', 0))
    return documents.plain(documents.BannerSerializer(ordered, many=True).data)


# --- Gate ---

@csrf_exempt
@require_http_methods(['POST'])
def admin_login(request):
    """POST JSON: password. Sets the admin flag in the session."""
    body, error = read_json(request)
    if error:
        return error
    password = body.get('password') or ''
    if not hmac.compare_digest(password.encode(), settings.ADMIN_PASSPHRASE.encode()):
        logger.warning('Failed admin login attempt')
        return JsonResponse({'error': 'Incorrect password'}, status=401)
    request.session[storage_key(ADMIN_AUTH_NAME)] = True
    return JsonResponse({'isAdmin': True})


@csrf_exempt
@require_http_methods(['POST'])
def admin_logout(request):
    request.session.pop(storage_key(ADMIN_AUTH_NAME), None)
    return JsonResponse({'isAdmin': False})


@require_http_methods(['GET'])
def admin_session(request):
    return JsonResponse({'isAdmin': is_admin(request), 'mode': get_hub().mode})


# --- Orders ---

@admin_required
@require_http_methods(['GET'])
def order_list(request):
    """GET ?status=active|completed|cancelled|new|... (default all). Newest first."""
    hub = get_hub()
    wanted = request.GET.get('status') or 'all'
    orders = hub.orders
    if wanted == 'active':
        orders = [o for o in orders if not is_terminal(o)]
    elif wanted != 'all':
        if wanted not in OrderStatus.values:
            return JsonResponse({'error': f'Unknown status: {wanted}'}, status=400)
        orders = [o for o in orders if o['status'] == wanted]
    new_ids = set(hub.new_order_ids)
    return JsonResponse({
        'results': [_order_payload(o, new_ids) for o in orders],
        'counts': {s: sum(1 for o in hub.orders if o['status'] == s) for s in OrderStatus.values},
        'newOrderIds': hub.new_order_ids,
        'alarmPlaying': hub.alarm.is_playing,
    })


@csrf_exempt
@admin_required
@require_http_methods(['POST'])
def order_transition(request, order_id, action):
    """POST /api/admin/orders/<id>/<prepare|dispatch|complete|cancel>/"""
    hub = get_hub()
    if action not in TRANSITIONS:
        return JsonResponse({'error': f'Unknown action: {action}'}, status=400)
    if hub.get_order(order_id) is None:
        return JsonResponse({'error': 'Order not found'}, status=404)
    transition, text = TRANSITIONS[action]
    transition(hub.store, order_id)
    hub.acknowledge_order(order_id)
    order = hub.get_order(order_id)
    return JsonResponse({
        'order': _order_payload(order, set(hub.new_order_ids)) if order else None,
        'message': f'Order #{short_id(order_id)} {text}',
    })


@csrf_exempt
@admin_required
@require_http_methods(['POST'])
def order_acknowledge(request, order_id):
    hub = get_hub()
    hub.acknowledge_order(order_id)
    return JsonResponse({'newOrderIds': hub.new_order_ids})


@csrf_exempt
@admin_required
@require_http_methods(['POST'])
def order_acknowledge_all(request):
    hub = get_hub()
    hub.acknowledge_all_orders()
    return JsonResponse({'newOrderIds': hub.new_order_ids})


# --- Menu ---

@csrf_exempt
@admin_required
@require_http_methods(['GET', 'POST'])
def menu_items(request):
    """GET every item (available or not). POST JSON: name, price, category, ... - new item_<ms> id."""
    hub = get_hub()
    if request.method == 'GET':
        return JsonResponse({'results': documents.encode_collection(MENU_ITEMS, hub.menu_items)})
    body, error = read_json(request)
    if error:
        return error
    raw = {**body, 'id': _new_id('item', {i['id'] for i in hub.menu_items})}
    if not raw.get('image'):
        raw['image'] = DEFAULT_ITEM_IMAGE
    try:
        item = documents.decode(MENU_ITEMS, raw)
    except serializers.ValidationError as e:
        return validation_error_response(e)
    hub.add_menu_item(item)
    return JsonResponse({'item': documents.encode(MENU_ITEMS, item), 'message': 'Item added'}, status=201)


@csrf_exempt
@admin_required
@require_http_methods(['PATCH', 'DELETE'])
def menu_item_detail(request, item_id):
    hub = get_hub()
    if hub.get_menu_item(item_id) is None:
        return JsonResponse({'error': 'Menu item not found'}, status=404)
    if request.method == 'DELETE':
        hub.delete_menu_item(item_id)
        return JsonResponse({'message': 'Item deleted'})
    body, error = read_json(request)
    if error:
        return error
    body.pop('id', None)
    try:
        changes = documents.decode(MENU_ITEMS, body, partial=True)
    except serializers.ValidationError as e:
        return validation_error_response(e)
    hub.update_menu_item(item_id, changes)
    item = hub.get_menu_item(item_id)
    return JsonResponse({'item': documents.encode(MENU_ITEMS, item), 'message': 'Item updated'})


# --- Coupons ---

@csrf_exempt
@admin_required
@require_http_methods(['GET', 'POST'])
def coupons(request):
    """GET all coupons. POST JSON: code, type, value, minOrder, maxDiscount, expiresAt, isActive."""
    hub = get_hub()
    if request.method == 'GET':
        return JsonResponse({'results': documents.encode_collection(COUPONS, hub.coupons)})
    body, error = read_json(request)
    if error:
        return error
    raw = dict(body)
    if not raw.get('expiresAt'):
        raw['expiresAt'] = (timezone.now() + DEFAULT_COUPON_LIFETIME).isoformat()
    try:
        coupon = documents.decode(COUPONS, raw)
    except serializers.ValidationError as e:
        return validation_error_response(e)
    try:
        hub.add_coupon(coupon)
    except DuplicateCoupon:
        return JsonResponse({'errors': {'code': 'A coupon with this code already exists'}}, status=400)
    return JsonResponse({'coupon': documents.encode(COUPONS, coupon), 'message': 'Coupon added'}, status=201)


@csrf_exempt
@admin_required
@require_http_methods(['PATCH', 'DELETE'])
def coupon_detail(request, code):
    hub = get_hub()
    coupon = hub.get_coupon(code)
    if coupon is None:
        return JsonResponse({'error': 'Coupon not found'}, status=404)
    if request.method == 'DELETE':
        hub.delete_coupon(coupon['code'])
        return JsonResponse({'message': 'Coupon deleted'})
    body, error = read_json(request)
    if error:
        return error
    body.pop('code', None)
    try:
        changes = documents.decode(COUPONS, {**body, 'type': body.get('type', coupon['type'])}, partial=True)
    except serializers.ValidationError as e:
        return validation_error_response(e)
    hub.update_coupon(coupon['code'], changes)
    return JsonResponse({'coupon': documents.encode(COUPONS, hub.get_coupon(coupon['code'])),
                         'message': 'Coupon updated'})


# --- Store settings and banners ---

@csrf_exempt
@admin_required
@require_http_methods(['GET', 'PATCH'])
def store_settings(request):
    hub = get_hub()
    if request.method == 'PATCH':
        body, error = read_json(request)
        if error:
            return error
        body.pop('banners', None)
        try:
            changes = documents.decode(STORE_CONFIG, body, partial=True)
        except serializers.ValidationError as e:
            return validation_error_response(e)
        hub.update_store_config(changes)
        return JsonResponse({
            'store': documents.encode_collection(STORE_CONFIG, hub.store_config),
            'message': 'Settings saved successfully!',
        })
    return JsonResponse({'store': documents.encode_collection(STORE_CONFIG, hub.store_config)})


@csrf_exempt
@admin_required
@require_http_methods(['GET', 'POST'])
def banners(request):
    """GET every banner in display order. POST JSON: image, title, subtitle, isActive."""
    hub = get_hub()
    current = list(hub.store_config.get('banners') or [])
    if request.method == 'GET':
        return JsonResponse({'results': _banners_payload(current)})
    body, error = read_json(request)
    if error:
        return error
    if not body.get('image'):
        return JsonResponse({'errors': {'image': 'Banner image URL is required'}}, status=400)
    raw = {'title': '', **body, 'id': _new_id('banner', {b['id'] for b in current}), 'order': len(current)}
    try:
        banner = documents.decode_banner(raw)
    except serializers.ValidationError as e:
        return validation_error_response(e)
    hub.update_store_config({'banners': current + [banner]})
    return JsonResponse({'results': _banners_payload(hub.store_config.get('banners') or []),
                         'message': 'Banner added'}, status=201)


@csrf_exempt
@admin_required
@require_http_methods(['PATCH', 'DELETE'])
def banner_detail(request, banner_id):
    hub = get_hub()
    current = list(hub.store_config.get('banners') or [])
    existing = next((b for b in current if b['id'] == banner_id), None)
    if existing is None:
        return JsonResponse({'error': 'Banner not found'}, status=404)
    if request.method == 'DELETE':
        updated = [b for b in current if b['id'] != banner_id]
        message = 'Banner deleted'
    else:
        body, error = read_json(request)
        if error:
            return error
        body.pop('id', None)
        try:
            changes = documents.decode_banner(body, partial=True)
        except serializers.ValidationError as e:
            return validation_error_response(e)
        updated = [{**b, **changes} if b['id'] == banner_id else b for b in current]
        message = 'Banner updated'
    hub.update_store_config({'banners': updated})
    return JsonResponse({'results': _banners_payload(updated), 'message': message})


@csrf_exempt
@admin_required
@require_http_methods(['POST'])
def banner_toggle(request, banner_id):
    hub = get_hub()
    current = list(hub.store_config.get('banners') or [])
    existing = next((b for b in current if b['id'] == banner_id), None)
    if existing is None:
        return JsonResponse({'error': 'Banner not found'}, status=404)
    updated = [{**b, 'is_active': not b.get('is_active')} if b['id'] == banner_id else b for b in current]
    hub.update_store_config({'banners': updated})
    message = 'Banner disabled' if existing.get('is_active') else 'Banner enabled'
    return JsonResponse({'results': _banners_payload(updated), 'message': message})


@csrf_exempt
@admin_required
@require_http_methods(['POST'])
def banner_move(request, banner_id):
    """POST JSON: direction (up | down). Moving past either end is a 400."""
    body, error = read_json(request)
    if error:
        return error
    direction = body.get('direction')
    if direction not in ('up', 'down'):
        return JsonResponse({'error': 'direction must be up or down'}, status=400)
    hub = get_hub()
    updated = reorder_banners(hub.store_config.get('banners') or [], banner_id, direction)
    if updated is None:
        return JsonResponse({'error': 'Banner cannot move that way'}, status=400)
    hub.update_store_config({'banners': updated})
    return JsonResponse({'results': _banners_payload(updated)})
