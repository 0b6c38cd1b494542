"""
WebSocket URL routing for polls app.
"""

from django.urls import re_path

from .consumers import PollUpdatesConsumer

websocket_urlpatterns = [
    re_path(r"ws/polls/$", PollUpdatesConsumer.as_asgi()),
]
