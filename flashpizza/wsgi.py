"""
WSGI config for flashpizza project.

HTTP only; the /ws/sync/ WebSocket needs the ASGI application in asgi.py.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'flashpizza.settings')

application = get_wsgi_application()
