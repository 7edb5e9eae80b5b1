"""
Wire format of the chat WebSocket.

Every frame is a JSON object. Client frames carry a ``type`` naming the
action. Server frames are envelopes of the form::

    {"type": "chat-init", "event": "chat-42-init", "chatId": 42, "payload": {...}}

``type`` is the discriminator clients should switch on. ``event`` repeats
the historical per-chat event name (``chat-<id>-init``) so older clients
that subscribe by name keep working. ``chatId`` is present only on frames
scoped to a chat.
"""

# Client -> server
SEARCH = "search"
JOINED_CHAT = "joined-chat"
LEFT_CHAT = "left-chat"
START_CHAT = "start-chat"
SEND_MESSAGE = "send-message"

# Server -> client
SEARCH_RESULT = "search-result"
CHAT_INIT = "chat-init"
CHAT_ERROR = "chat-error"
CHAT_MESSAGE = "chat-message"
NEW_CHAT_CREATED = "new-chat-created"
NEW_CHAT = "new-chat"
CHAT_EXISTS = "chat-exists"
ERROR = "error"

CHAT_SCOPED = {CHAT_INIT, CHAT_ERROR, CHAT_MESSAGE}


def event_name(event_type, chat_id=None):
    if event_type in CHAT_SCOPED:
        return f"chat-{chat_id}-{event_type[len('chat-'):]}"
    return event_type


def frame(event_type, payload, chat_id=None):
    data = {
        "type": event_type,
        "event": event_name(event_type, chat_id),
        "payload": payload,
    }
    if event_type in CHAT_SCOPED:
        data["chatId"] = chat_id
    return data


def error_frame(status, message, chat_id=None):
    payload = {"status": status, "errorMessage": message}
    if chat_id is None:
        return frame(ERROR, payload)
    return frame(CHAT_ERROR, payload, chat_id)
