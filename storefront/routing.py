from django.urls import path

from .consumers import SyncConsumer

websocket_urlpatterns = [
    path('ws/sync/', SyncConsumer.as_asgi()),
]
