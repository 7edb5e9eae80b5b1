import logging

from django.dispatch import Signal

from .registry import registry as default_registry

logger = logging.getLogger(__name__)

# Both carry ``user_id`` and ``channel_name``.
user_connected = Signal()
user_disconnected = Signal()


class PresenceChannel:
    """A connection is live exactly while it is registered."""

    def __init__(self, registry=None):
        self.registry = registry or default_registry

    async def connect(self, user, channel_name):
        await self.registry.register(user.pk, channel_name)
        logger.info(f"User {user.pk} connected on {channel_name}")
        user_connected.send(sender=self.__class__, user_id=user.pk, channel_name=channel_name)

    async def disconnect(self, user, channel_name):
        await self.registry.unregister(channel_name)
        logger.info(f"User {user.pk} disconnected from {channel_name}")
        user_disconnected.send(sender=self.__class__, user_id=user.pk, channel_name=channel_name)

    def is_online(self, user_id):
        return bool(self.registry.connections_for(user_id))


presence = PresenceChannel()
