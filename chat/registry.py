import logging
from collections import defaultdict

from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def user_group(user_id):
    return f"user_{user_id}"


def chat_group(chat_id):
    return f"chat_{chat_id}"


class SessionRegistry:
    """
    Live connections of this process, keyed by user and by joined chat.

    Delivery goes through channel layer groups: every connection sits in
    ``user_<id>`` for its lifetime and in ``chat_<id>`` while it views that
    chat, so a single ``group_send`` reaches every device of a user or every
    viewer of a chat. The bookkeeping here mirrors those memberships so
    they can be inspected and torn down on disconnect.
    """

    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer
        self._connections = defaultdict(set)
        self._owners = {}
        self._rooms = defaultdict(set)
        self._joined = {}

    @property
    def channel_layer(self):
        return self._channel_layer or get_channel_layer()

    async def register(self, user_id, channel_name):
        self._connections[user_id].add(channel_name)
        self._owners[channel_name] = user_id
        await self.channel_layer.group_add(user_group(user_id), channel_name)
        logger.debug(f"Registered {channel_name} for user {user_id}")

    async def unregister(self, channel_name):
        chat_id = self._joined.get(channel_name)
        if chat_id is not None:
            await self.leave(channel_name, chat_id)

        user_id = self._owners.pop(channel_name, None)
        if user_id is None:
            return
        connections = self._connections.get(user_id)
        if connections is not None:
            connections.discard(channel_name)
            if not connections:
                del self._connections[user_id]
        await self.channel_layer.group_discard(user_group(user_id), channel_name)
        logger.debug(f"Unregistered {channel_name} for user {user_id}")

    async def join(self, channel_name, chat_id):
        current = self._joined.get(channel_name)
        if current == chat_id:
            return
        if current is not None:
            await self.leave(channel_name, current)
        self._joined[channel_name] = chat_id
        self._rooms[chat_id].add(channel_name)
        await self.channel_layer.group_add(chat_group(chat_id), channel_name)

    async def leave(self, channel_name, chat_id):
        if self._joined.get(channel_name) == chat_id:
            del self._joined[channel_name]
        room = self._rooms.get(chat_id)
        if room is not None:
            room.discard(channel_name)
            if not room:
                del self._rooms[chat_id]
        await self.channel_layer.group_discard(chat_group(chat_id), channel_name)

    def connections_for(self, user_id):
        return set(self._connections.get(user_id, ()))

    def joined_chat(self, channel_name):
        return self._joined.get(channel_name)

    def members(self, chat_id):
        return set(self._rooms.get(chat_id, ()))

    def viewers(self, chat_id):
        """Ids of users with at least one connection currently in the chat room."""
        return {self._owners[name] for name in self._rooms.get(chat_id, ()) if name in self._owners}

    def reset(self):
        self._connections.clear()
        self._owners.clear()
        self._rooms.clear()
        self._joined.clear()


registry = SessionRegistry()
