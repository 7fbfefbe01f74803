"""
Customer notification center and toasts.
Notifications are keyed by order: setting one for an order replaces any previous
one for that order. Toasts are short-lived messages that expire after TOAST_TTL.
The center is plain data so it can live in the customer's session.
"""
import datetime
import logging
import uuid

from django.utils import timezone
from django.utils.dateparse import parse_datetime

logger = logging.getLogger(__name__)

TOAST_TTL = datetime.timedelta(seconds=3)

TOAST_SUCCESS = 'success'
TOAST_ERROR = 'error'
TOAST_INFO = 'info'
TOAST_WARNING = 'warning'


def _ms(now):
    return int(now.timestamp() * 1000)


class NotificationCenter:

    def __init__(self, notifications=None, toasts=None):
        self.notifications = list(notifications or [])
        self.toasts = list(toasts or [])

    # --- Notifications ---

    def set_for_order(self, order_id, title, message, now=None):
        """Replace any notification for order_id with a new unread one, newest first."""
        now = now or timezone.now()
        notification = {
            'id': f'notif_{order_id}_{_ms(now)}',
            'type': 'order',
            'title': title,
            'message': message,
            'timestamp': now,
            'read': False,
            'order_id': order_id,
        }
        self.notifications = [notification] + [
            n for n in self.notifications if n.get('order_id') != order_id
        ]
        return notification

    def remove_for_order(self, order_id):
        self.notifications = [n for n in self.notifications if n.get('order_id') != order_id]

    def mark_read(self, notification_id):
        for n in self.notifications:
            if n['id'] == notification_id:
                n['read'] = True

    def mark_all_read(self):
        for n in self.notifications:
            n['read'] = True

    def clear(self, notification_id):
        self.notifications = [n for n in self.notifications if n['id'] != notification_id]

    def clear_all(self):
        self.notifications = []

    @property
    def unread_count(self):
        return sum(1 for n in self.notifications if not n['read'])

    # --- Toasts ---

    def show_toast(self, kind, message, now=None):
        now = now or timezone.now()
        toast = {
            'id': f'toast_{uuid.uuid4().hex[:12]}',
            'type': kind,
            'message': message,
            'expires_at': now + TOAST_TTL,
        }
        self.toasts.append(toast)
        return toast

    def remove_toast(self, toast_id):
        self.toasts = [t for t in self.toasts if t['id'] != toast_id]

    def active_toasts(self, now=None):
        """Drop expired toasts and return the rest."""
        now = now or timezone.now()
        self.toasts = [t for t in self.toasts if t['expires_at'] > now]
        return list(self.toasts)

    # --- Session form ---

    def to_dict(self):
        return {
            'notifications': [{**n, 'timestamp': n['timestamp'].isoformat()} for n in self.notifications],
            'toasts': [{**t, 'expires_at': t['expires_at'].isoformat()} for t in self.toasts],
        }

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        try:
            notifications = [
                {**n, 'timestamp': parse_datetime(n['timestamp'])} for n in data.get('notifications', [])
            ]
            toasts = [
                {**t, 'expires_at': parse_datetime(t['expires_at'])} for t in data.get('toasts', [])
            ]
        except (KeyError, TypeError, ValueError):
            logger.warning('Discarding unreadable notifications')
            return cls()
        return cls(notifications, toasts)
