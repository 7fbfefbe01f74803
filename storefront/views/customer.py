"""
Customer API: menu, store info, session cart, checkout (COD and UPI), order
tracking, order history and notifications.
"""
import logging

from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from rest_framework import serializers

from storefront import cart, documents
from storefront.checkout import CheckoutRejected, check_checkout, recheck_coupon
from storefront.constants import MENU_ITEMS, ORDERS, STORE_CONFIG, PaymentMethod, storage_key
from storefront.coupons import CouponRejected, format_amount
from storefront.documents import BannerSerializer
from storefront.hub import get_hub
from storefront.menu import SORT_DEFAULT, SORT_OPTIONS, active_banners, filter_menu
from storefront.notifications import TOAST_SUCCESS
from storefront.orders import (
    build_order,
    estimated_delivery,
    new_order_id,
    notify_order_update,
    orders_for_phone,
    refresh_tracked,
    status_label,
)
from storefront.payment_qr import generate_upi_qr_png, upi_payment_url
from storefront.pricing import calculate_totals
from storefront.utils import (
    dispatch,
    load_cart,
    load_notifications,
    read_json,
    remember_customer,
    remembered_customer,
    save_cart,
    save_notifications,
    validation_error_response,
)

logger = logging.getLogger(__name__)

PENDING_ORDER_KEY = storage_key('pending_upi_order')
TRACKED_ORDER_KEY = storage_key('tracked_order')
PLACED_ORDERS_KEY = storage_key('placed_orders')


def _totals_payload(totals):
    return {
        'subtotal': documents.plain(totals['subtotal']),
        'discount': documents.plain(totals['discount']),
        'deliveryCharge': documents.plain(totals['delivery_charge']),
        'total': documents.plain(totals['total']),
        'itemCount': totals['item_count'],
        'amountForFreeDelivery': documents.plain(totals['amount_for_free_delivery']),
    }


def _cart_payload(state, config):
    return {
        'cart': documents.encode_cart(state),
        'totals': _totals_payload(calculate_totals(state['items'], state['discount'], config)),
    }


def _order_payload(order):
    eta = estimated_delivery(order)
    return {
        **documents.encode(ORDERS, order),
        'statusLabel': status_label(order['status']),
        'estimatedDelivery': eta.isoformat() if eta else None,
    }


# --- Menu / store ---

@require_http_methods(['GET'])
def menu_list(request):
    """GET /api/menu/?category=&veg_only=1&min_rating=&sort= - available items only."""
    sort = request.GET.get('sort') or SORT_DEFAULT
    if sort not in SORT_OPTIONS:
        return JsonResponse({'error': f'Unknown sort: {sort}'}, status=400)
    try:
        min_rating = float(request.GET.get('min_rating') or 0)
    except ValueError:
        return JsonResponse({'error': 'min_rating must be a number'}, status=400)
    veg_only = request.GET.get('veg_only', '').lower() in ('1', 'true', 'yes')
    items = filter_menu(
        get_hub().menu_items,
        category=request.GET.get('category') or 'all',
        veg_only=veg_only,
        min_rating=min_rating,
        sort=sort,
    )
    return JsonResponse({'results': documents.encode_collection(MENU_ITEMS, items)})


@require_http_methods(['GET'])
def store_info(request):
    hub = get_hub()
    return JsonResponse({
        'store': documents.encode_collection(STORE_CONFIG, hub.store_config),
        'mode': hub.mode,
    })


@require_http_methods(['GET'])
def banner_list(request):
    banners = active_banners(get_hub().store_config)
    return JsonResponse({'results': documents.plain(BannerSerializer(banners, many=True).data)})


# --- Cart ---

@csrf_exempt
@require_http_methods(['GET', 'DELETE'])
def cart_detail(request):
    """GET the session cart with totals; DELETE empties it."""
    if request.method == 'DELETE':
        state = dispatch(request, cart.clear_cart())
    else:
        state = load_cart(request)
    return JsonResponse(_cart_payload(state, get_hub().store_config))


@csrf_exempt
@require_http_methods(['POST'])
def cart_add_item(request):
    """POST JSON: itemId. Adds one unit of an available menu item."""
    body, error = read_json(request)
    if error:
        return error
    hub = get_hub()
    item = hub.get_menu_item(body.get('itemId') or '')
    if item is None:
        return JsonResponse({'error': 'Menu item not found'}, status=404)
    if not item.get('is_available'):
        return JsonResponse({'error': f'{item["name"]} is currently unavailable'}, status=400)
    state = dispatch(request, cart.add_item(item))
    return JsonResponse(_cart_payload(state, hub.store_config))


@csrf_exempt
@require_http_methods(['POST'])
def cart_remove_item(request, item_id):
    """POST: decrement one unit; the line disappears at zero."""
    state = dispatch(request, cart.remove_item(item_id))
    return JsonResponse(_cart_payload(state, get_hub().store_config))


@csrf_exempt
@require_http_methods(['PUT'])
def cart_set_quantity(request, item_id):
    """PUT JSON: quantity. 0 or less removes the line."""
    body, error = read_json(request)
    if error:
        return error
    try:
        quantity = int(body.get('quantity'))
    except (TypeError, ValueError):
        return JsonResponse({'error': 'quantity must be an integer'}, status=400)
    state = dispatch(request, cart.set_quantity(item_id, quantity))
    return JsonResponse(_cart_payload(state, get_hub().store_config))


@csrf_exempt
@require_http_methods(['POST', 'DELETE'])
def cart_coupon(request):
    """POST JSON: code - validate against the current subtotal and apply. DELETE removes it."""
    hub = get_hub()
    if request.method == 'DELETE':
        state = dispatch(request, cart.remove_coupon())
        return JsonResponse(_cart_payload(state, hub.store_config))
    body, error = read_json(request)
    if error:
        return error
    code = (body.get('code') or '').strip()
    if not code:
        return JsonResponse({'error': 'Coupon code is required'}, status=400)
    state = load_cart(request)
    try:
        state = cart.apply_cart_coupon(state, hub.coupons, code)
    except CouponRejected as e:
        return JsonResponse({'error': str(e)}, status=400)
    save_cart(request, state)
    return JsonResponse({
        **_cart_payload(state, hub.store_config),
        'message': f'₹{format_amount(state["discount"])} discount applied!',
    })


@csrf_exempt
@require_http_methods(['PUT'])
def cart_customer(request):
    """PUT JSON: name, phone, address, location {lat, lng}. Stored as-is; checked at checkout."""
    body, error = read_json(request)
    if error:
        return error
    try:
        customer = documents.decode_customer(body)
    except serializers.ValidationError as e:
        return validation_error_response(e)
    state = dispatch(request, cart.set_customer(customer))
    return JsonResponse(_cart_payload(state, get_hub().store_config))


@csrf_exempt
@require_http_methods(['PUT'])
def cart_payment_method(request):
    """PUT JSON: paymentMethod (upi | cod)."""
    body, error = read_json(request)
    if error:
        return error
    method = body.get('paymentMethod')
    if method not in PaymentMethod.values:
        return JsonResponse({'error': 'paymentMethod must be upi or cod'}, status=400)
    state = dispatch(request, cart.set_payment_method(method))
    return JsonResponse(_cart_payload(state, get_hub().store_config))


# --- Checkout ---

def _place(request, state, distance, order_id=None):
    """Persist the order, notify the customer and empty the cart."""
    hub = get_hub()
    order = build_order(state, hub.store_config, distance, order_id=order_id)
    hub.place_order(order)

    center = load_notifications(request)
    center.show_toast(TOAST_SUCCESS, f'Order #{order["id"]} placed successfully!')
    center.set_for_order(
        order['id'],
        'Order Confirmed!',
        f'Your order #{order["id"]} has been placed. Estimated delivery: 30-40 mins.',
    )
    save_notifications(request, center)

    remember_customer(request, order['customer'])
    placed = request.session.get(PLACED_ORDERS_KEY, [])
    request.session[PLACED_ORDERS_KEY] = [order['id']] + [i for i in placed if i != order['id']]
    request.session[TRACKED_ORDER_KEY] = {'id': order['id'], 'status': order['status']}
    request.session.pop(PENDING_ORDER_KEY, None)
    save_cart(request, cart.initial_state())
    logger.info('Order %s placed (%s, total %s)', order['id'], order['payment_method'], order['total'])
    return order


@csrf_exempt
@require_http_methods(['POST'])
def checkout(request):
    """
    POST JSON (optional): customer, paymentMethod - override the cart's values.
    COD: places the order (201). UPI: returns a pending order id and upi:// link;
    the order is placed by checkout/confirm/ once the customer has paid.
    """
    body, error = read_json(request)
    if error:
        return error
    hub = get_hub()
    state = load_cart(request)
    if 'customer' in body:
        try:
            customer = documents.decode_customer(body['customer'] or {})
        except serializers.ValidationError as e:
            return validation_error_response(e)
        state = cart.reduce(state, cart.set_customer(customer))
    if body.get('paymentMethod'):
        if body['paymentMethod'] not in PaymentMethod.values:
            return JsonResponse({'error': 'paymentMethod must be upi or cod'}, status=400)
        state = cart.reduce(state, cart.set_payment_method(body['paymentMethod']))
    save_cart(request, state)

    try:
        state = recheck_coupon(state, hub.coupons)
        distance = check_checkout(state, hub.store_config)
    except CheckoutRejected as e:
        return JsonResponse({'errors': e.errors}, status=400)
    save_cart(request, state)

    if state['payment_method'] == PaymentMethod.UPI:
        order_id = new_order_id()
        totals = calculate_totals(state['items'], state['discount'], hub.store_config)
        request.session[PENDING_ORDER_KEY] = order_id
        return JsonResponse({
            'pendingOrderId': order_id,
            'amount': documents.plain(totals['total']),
            'upiUrl': upi_payment_url(hub.store_config, order_id, totals['total']),
            'upiId': hub.store_config['upi_id'],
        })

    order = _place(request, state, distance)
    return JsonResponse({'order': _order_payload(order)}, status=201)


@csrf_exempt
@require_http_methods(['POST'])
def checkout_confirm_upi(request):
    """POST: the customer reports the UPI payment done; place the pending order."""
    order_id = request.session.get(PENDING_ORDER_KEY)
    if not order_id:
        return JsonResponse({'error': 'No pending UPI payment'}, status=400)
    hub = get_hub()
    state = load_cart(request)
    try:
        state = recheck_coupon(state, hub.coupons)
        distance = check_checkout(state, hub.store_config)
    except CheckoutRejected as e:
        return JsonResponse({'errors': e.errors}, status=400)
    order = _place(request, state, distance, order_id=order_id)
    return JsonResponse({'order': _order_payload(order)}, status=201)


@csrf_exempt
@require_http_methods(['POST'])
def checkout_cancel_upi(request):
    request.session.pop(PENDING_ORDER_KEY, None)
    return JsonResponse({'ok': True})


@require_http_methods(['GET'])
def checkout_upi_qr(request):
    """GET /api/checkout/upi-qr/ - PNG QR for the pending UPI order."""
    order_id = request.session.get(PENDING_ORDER_KEY)
    if not order_id:
        return JsonResponse({'error': 'No pending UPI payment'}, status=400)
    state = load_cart(request)
    config = get_hub().store_config
    totals = calculate_totals(state['items'], state['discount'], config)
    png_bytes, err = generate_upi_qr_png(config, order_id, totals['total'])
    if err:
        return JsonResponse({'error': err}, status=400)
    return HttpResponse(png_bytes, content_type='image/png')


# --- Orders ---

def _my_orders(request, orders):
    placed = set(request.session.get(PLACED_ORDERS_KEY, []))
    phone = remembered_customer(request).get('phone')
    return [o for o in orders if o['id'] in placed or (phone and o['customer'].get('phone') == phone)]


@require_http_methods(['GET'])
def order_active(request):
    """
    GET /api/orders/active/ - the order this customer is tracking. The tracked order
    is only replaced when its status moved; a move updates the notification center.
    """
    mine = _my_orders(request, get_hub().orders)
    tracked = request.session.get(TRACKED_ORDER_KEY)
    order, changed = refresh_tracked(tracked, mine)
    if order is None:
        request.session.pop(TRACKED_ORDER_KEY, None)
        return JsonResponse({'order': None})
    # refresh_tracked hands back the session stub when nothing moved
    order = next((o for o in mine if o['id'] == order['id']), None)
    if order is None:
        request.session.pop(TRACKED_ORDER_KEY, None)
        return JsonResponse({'order': None})
    if changed:
        request.session[TRACKED_ORDER_KEY] = {'id': order['id'], 'status': order['status']}
        if tracked is not None:
            center = load_notifications(request)
            notify_order_update(center, order)
            save_notifications(request, center)
    return JsonResponse({'order': _order_payload(order), 'changed': changed})


@require_http_methods(['GET'])
def order_history(request):
    """GET /api/orders/history/?phone= - defaults to the phone used at the last checkout."""
    phone = request.GET.get('phone') or remembered_customer(request).get('phone')
    if not phone:
        return JsonResponse({'results': []})
    orders = orders_for_phone(get_hub().orders, phone)
    return JsonResponse({'results': [_order_payload(o) for o in orders]})


@csrf_exempt
@require_http_methods(['POST'])
def order_reorder(request, order_id):
    """POST: add every line of a past order back to the cart, quantity times."""
    hub = get_hub()
    order = hub.get_order(order_id)
    if order is None:
        return JsonResponse({'error': 'Order not found'}, status=404)
    state = load_cart(request)
    for line in order['items']:
        for _ in range(line['quantity']):
            state = cart.reduce(state, cart.add_item(line))
    save_cart(request, state)
    return JsonResponse(_cart_payload(state, hub.store_config))


# --- Notifications ---

def _notifications_payload(center):
    data = center.to_dict()
    return {
        'results': data['notifications'],
        'unreadCount': center.unread_count,
        'toasts': data['toasts'],
    }


@csrf_exempt
@require_http_methods(['GET', 'DELETE'])
def notification_list(request):
    """GET notifications, unread count and live toasts. DELETE clears all notifications."""
    center = load_notifications(request)
    if request.method == 'DELETE':
        center.clear_all()
    center.active_toasts()
    save_notifications(request, center)
    return JsonResponse(_notifications_payload(center))


@csrf_exempt
@require_http_methods(['POST'])
def notification_read_all(request):
    center = load_notifications(request)
    center.mark_all_read()
    save_notifications(request, center)
    return JsonResponse(_notifications_payload(center))


@csrf_exempt
@require_http_methods(['POST', 'DELETE'])
def notification_detail(request, notification_id):
    """POST marks one notification read; DELETE removes it."""
    center = load_notifications(request)
    if request.method == 'DELETE':
        center.clear(notification_id)
    else:
        center.mark_read(notification_id)
    save_notifications(request, center)
    return JsonResponse(_notifications_payload(center))


@csrf_exempt
@require_http_methods(['DELETE'])
def toast_dismiss(request, toast_id):
    center = load_notifications(request)
    center.remove_toast(toast_id)
    save_notifications(request, center)
    return JsonResponse(_notifications_payload(center))
