import enum
import json
import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import AccessToken

from . import protocol, services
from .exceptions import ChatError, ValidationFailed
from .presence import presence
from .registry import chat_group, registry, user_group
from .search import search_users

User = get_user_model()

logger = logging.getLogger(__name__)

CLOSE_UNAUTHENTICATED = 4401


def error_scope(chat_id):
    # Only ids that serialize back as plain JSON scope an error frame.
    if isinstance(chat_id, bool) or not isinstance(chat_id, (int, str)):
        return None
    return chat_id


class SessionState(enum.Enum):
    IDLE = "idle"
    JOINING = "joining"
    ACTIVE = "active"


class ChatConsumer(AsyncWebsocketConsumer):
    """
    One WebSocket per signed-in client.

    The connection is bound to the user of a verified access token for its
    whole life and views at most one chat at a time. Frames are dispatched on
    their ``type``; expected failures come back as error frames and never
    close the socket.
    """
    registry = registry
    presence = presence

    async def connect(self):
        self.user = None
        self.state = SessionState.IDLE
        self.chat_id = None

        # 1. Identity comes from a JWT in the query string (?token=xyz),
        #    falling back to an authenticated Django session.
        token_key = self.get_query_param("token")
        if token_key:
            user = await self.get_user_from_token(token_key)
        else:
            user = self.scope.get("user")

        if user is None or not user.is_authenticated:
            logger.info("Rejecting WebSocket without valid credentials")
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return

        # 2. Register presence, then accept.
        self.user = user
        self.scope["user"] = user
        await self.presence.connect(user, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        if self.user is None:
            return
        logger.debug(f"User {self.user.pk} disconnecting with code {close_code}")
        await self.presence.disconnect(self.user, self.channel_name)
        self.state = SessionState.IDLE
        self.chat_id = None

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            await self.send_frame(protocol.error_frame(400, "Malformed JSON frame."))
            return
        if not isinstance(data, dict):
            await self.send_frame(protocol.error_frame(400, "Frames must be JSON objects."))
            return

        event_type = data.get("type")
        handler = self.handlers.get(event_type) if isinstance(event_type, str) else None
        if handler is None:
            await self.send_frame(protocol.error_frame(400, f"Unknown event type: {event_type!r}"))
            return

        chat_id = data.get("chatId")
        try:
            await handler(self, data)
        except ChatError as e:
            scope = e.chat_id if e.chat_id is not None else chat_id
            await self.send_frame(protocol.error_frame(e.status, e.message, error_scope(scope)))
        except DatabaseError:
            logger.exception(f"Database error while handling {event_type} for user {self.user.pk}")
            await self.send_frame(protocol.error_frame(500, "Internal server error.", error_scope(chat_id)))

    async def handle_search(self, data):
        query = data.get("query")
        if not isinstance(query, str):
            raise ValidationFailed("Search query must be a string.")
        results = await database_sync_to_async(search_users)(query)
        await self.send_frame(protocol.frame(protocol.SEARCH_RESULT, list(results)))

    async def handle_joined_chat(self, data):
        previous = self.state
        self.state = SessionState.JOINING
        try:
            chat = await database_sync_to_async(services.get_chat_for_participant)(data.get("chatId"), self.user)
        except Exception:
            # Authorization failed: keep whatever chat was open before.
            self.state = previous
            raise

        # Joining the room drops any previously joined chat.
        await self.registry.join(self.channel_name, chat.pk)
        self.chat_id = chat.pk
        try:
            snapshot = await self.load_snapshot(chat)
        except Exception:
            await self.registry.leave(self.channel_name, chat.pk)
            self.chat_id = None
            self.state = SessionState.IDLE
            raise
        await self.send_frame(protocol.frame(protocol.CHAT_INIT, snapshot, chat.pk))
        self.state = SessionState.ACTIVE
        logger.info(f"User {self.user.pk} joined chat {chat.pk}")

    async def handle_left_chat(self, data):
        chat_id = services.parse_id(data.get("chatId"), "chat id", chat_id=data.get("chatId"))
        await self.registry.leave(self.channel_name, chat_id)
        if self.chat_id == chat_id:
            self.chat_id = None
            self.state = SessionState.IDLE
            logger.info(f"User {self.user.pk} left chat {chat_id}")

    async def handle_start_chat(self, data):
        chat, created = await database_sync_to_async(services.start_chat)(
            self.user, data.get("userId"), data.get("message")
        )
        if not created:
            await self.send_frame(protocol.frame(protocol.CHAT_EXISTS, {"chatId": chat.pk}))
            return

        own_summary, recipient_summary, recipient_id = await self.summaries_for_new_chat(chat)
        await self.send_frame(protocol.frame(protocol.NEW_CHAT_CREATED, own_summary))
        await self.channel_layer.group_send(
            user_group(recipient_id),
            {"type": "chat.event", "frame": protocol.frame(protocol.NEW_CHAT, recipient_summary)},
        )

    async def handle_send_message(self, data):
        message = await database_sync_to_async(services.send_message)(
            data.get("chatId"), self.user, data.get("body")
        )
        await self.channel_layer.group_send(
            chat_group(message["chatId"]),
            {"type": "chat.event", "frame": protocol.frame(protocol.CHAT_MESSAGE, message, message["chatId"])},
        )

    handlers = {
        protocol.SEARCH: handle_search,
        protocol.JOINED_CHAT: handle_joined_chat,
        protocol.LEFT_CHAT: handle_left_chat,
        protocol.START_CHAT: handle_start_chat,
        protocol.SEND_MESSAGE: handle_send_message,
    }

    async def chat_event(self, event):
        """Relay a frame broadcast to one of this connection's groups."""
        frame = event["frame"]
        if self.is_viewing(frame):
            try:
                await self.mark_viewed_chat_read()
            except DatabaseError:
                logger.exception(f"Could not mark chat {self.chat_id} read for user {self.user.pk}")
        await self.send_frame(frame)

    def is_viewing(self, frame):
        return (
            frame["type"] == protocol.CHAT_MESSAGE
            and self.state is SessionState.ACTIVE
            and frame.get("chatId") == self.chat_id
            and frame["payload"]["senderId"] != self.user.pk
        )

    async def send_frame(self, frame):
        await self.send(text_data=json.dumps(frame))

    def get_query_param(self, name):
        query_string = self.scope.get("query_string", b"").decode("utf-8")
        values = parse_qs(query_string).get(name)
        return values[0] if values else None

    @database_sync_to_async
    def get_user_from_token(self, token_key):
        try:
            access_token = AccessToken(token_key)
            return User.objects.get(id=access_token['user_id'])
        except (TokenError, InvalidToken) as e:
            logger.info(f"Token validation error: {e}")
            return AnonymousUser()
        except (KeyError, User.DoesNotExist):
            logger.info("Token does not match an existing user")
            return AnonymousUser()

    @database_sync_to_async
    def mark_viewed_chat_read(self):
        services.mark_read(self.chat_id, self.user)

    @database_sync_to_async
    def load_snapshot(self, chat):
        services.mark_read(chat, self.user)
        return services.chat_snapshot(chat, self.user)

    @database_sync_to_async
    def summaries_for_new_chat(self, chat):
        recipient = services.recipient_of(chat, self.user)
        return (
            services.chat_summary(chat, self.user),
            services.chat_summary(chat, recipient),
            recipient.pk,
        )
