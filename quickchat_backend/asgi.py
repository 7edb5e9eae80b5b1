import os
import logging

import django

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "quickchat_backend.settings")
django.setup()

from django.core.asgi import get_asgi_application
from channels.auth import AuthMiddlewareStack
from channels.routing import ProtocolTypeRouter, URLRouter

from chat.routing import websocket_urlpatterns

logger = logging.getLogger(__name__)

application = ProtocolTypeRouter({
    "http": get_asgi_application(),
    "websocket": AuthMiddlewareStack(
        URLRouter(websocket_urlpatterns)
    ),
})
logger.info("ASGI application ready with WebSocket support")
