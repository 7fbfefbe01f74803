"""
ASGI config for flashpizza project.

It exposes the ASGI callable as a module-level variable named ``application``.
HTTP goes to Django; /ws/sync/ goes to the storefront sync consumer.
"""

import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'flashpizza.settings')

from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter
from channels.sessions import SessionMiddlewareStack

django_asgi_app = get_asgi_application()

from storefront.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter({
    'http': django_asgi_app,
    'websocket': SessionMiddlewareStack(URLRouter(websocket_urlpatterns)),
})
