"""
View helpers: JSON bodies, session-backed cart and notifications, admin gate.
"""
import json
import logging
from functools import wraps

from django.http import JsonResponse
from rest_framework import serializers

from . import cart, documents
from .constants import ADMIN_AUTH_NAME, CART_NAME, NOTIFICATIONS_NAME, storage_key
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)

CUSTOMER_NAME = 'customer'


def read_json(request):
    """Return (body, None) or (None, 400 response) for the request's JSON body."""
    try:
        body = json.loads(request.body) if request.body else {}
    except json.JSONDecodeError:
        return None, JsonResponse({'error': 'Invalid JSON'}, status=400)
    if not isinstance(body, dict):
        return None, JsonResponse({'error': 'JSON object expected'}, status=400)
    return body, None


def flatten_errors(detail):
    """DRF ValidationError detail -> {field: first message}."""
    if isinstance(detail, dict):
        out = {}
        for field, value in detail.items():
            if isinstance(value, dict):
                for sub, message in flatten_errors(value).items():
                    out[f'{field}.{sub}'] = message
            elif isinstance(value, list) and value:
                first = value[0]
                out[field] = str(first) if not isinstance(first, dict) else next(iter(flatten_errors(first).values()), '')
            else:
                out[field] = str(value)
        return out
    if isinstance(detail, list) and detail:
        return {'non_field_errors': str(detail[0])}
    return {'non_field_errors': str(detail)}


def validation_error_response(exc):
    return JsonResponse({'errors': flatten_errors(exc.detail)}, status=400)


def is_admin(request):
    return bool(request.session.get(storage_key(ADMIN_AUTH_NAME)))


def admin_required(view_func):
    """Decorator: 401 unless the session passed the admin gate."""

    @wraps(view_func)
    def wrapped(request, *args, **kwargs):
        if not is_admin(request):
            return JsonResponse({'error': 'Admin login required'}, status=401)
        return view_func(request, *args, **kwargs)
    return wrapped


# --- Session cart ---

def load_cart(request):
    raw = request.session.get(storage_key(CART_NAME))
    if not raw:
        return cart.initial_state()
    try:
        return documents.decode_cart(raw)
    except serializers.ValidationError:
        logger.warning('Discarding unreadable cart in session %s', request.session.session_key)
        return cart.initial_state()


def save_cart(request, state):
    request.session[storage_key(CART_NAME)] = documents.encode_cart(state)


def dispatch(request, action):
    """Run one cart action against the session cart and save the result."""
    state = cart.reduce(load_cart(request), action)
    save_cart(request, state)
    return state


# --- Session notifications ---

def load_notifications(request):
    return NotificationCenter.from_dict(request.session.get(storage_key(NOTIFICATIONS_NAME)))


def save_notifications(request, center):
    request.session[storage_key(NOTIFICATIONS_NAME)] = center.to_dict()


# --- Remembered customer (profile / order history) ---

def remember_customer(request, customer):
    request.session[storage_key(CUSTOMER_NAME)] = {
        'name': customer.get('name', ''),
        'phone': customer.get('phone', ''),
    }


def remembered_customer(request):
    return request.session.get(storage_key(CUSTOMER_NAME)) or {}
