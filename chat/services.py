"""
Chat operations over the ORM.

Everything here is synchronous and runs inside ``database_sync_to_async``
when called from the WebSocket consumer. Expected failures raise a
``ChatError`` subclass; data-store failures propagate as ``DatabaseError``.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from accounts.serializer import UserSerializer

from .exceptions import NotFound, Unauthorized, ValidationFailed
from .models import Chat, ChatParticipant, Message, pair_key_for
from .serializer import ChatSummarySerializer, MessageSerializer

logger = logging.getLogger(__name__)

User = get_user_model()

# Largest BigAutoField value.
MAX_ID = 2 ** 63 - 1


def parse_id(value, label, chat_id=None):
    """
    Accept a JSON integer or its canonical decimal string and nothing else.

    Floats and strings such as ``"05"`` are refused so the id echoed in
    scoped event names is the one the client sent.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        parsed = value
    elif isinstance(value, str) and value.isascii() and value.isdigit() and str(int(value)) == value:
        parsed = int(value)
    else:
        raise ValidationFailed(f"Invalid {label}.", chat_id=chat_id)
    if not 0 < parsed <= MAX_ID:
        raise ValidationFailed(f"Invalid {label}.", chat_id=chat_id)
    return parsed


def get_chat_for_participant(chat_id, user):
    """
    Return the chat if ``user`` takes part in it.

    A missing chat is reported the same way as a foreign one so the
    response does not reveal which chat ids exist.
    """
    pk = parse_id(chat_id, "chat id", chat_id=chat_id)
    chat = Chat.objects.filter(pk=pk, memberships__user=user).first()
    if chat is None:
        logger.warning(f"User {user.pk} is not a participant of chat {pk}")
        raise Unauthorized("You are not a participant of this chat.", chat_id=pk)
    return chat


def recipient_of(chat, user):
    return chat.participants.exclude(pk=user.pk).first()


def mark_read(chat, user):
    ChatParticipant.objects.filter(chat=chat, user=user).update(
        unread_count=0,
        last_read_at=timezone.now(),
    )


def chat_snapshot(chat, user):
    """Recipient identity and full ordered history, sent on join."""
    recipient = recipient_of(chat, user)
    messages = chat.messages.all()
    return {
        "recipientUser": UserSerializer(recipient).data if recipient else None,
        "messages": MessageSerializer(messages, many=True).data,
    }


def find_direct_chat(user_a_id, user_b_id):
    return Chat.objects.filter(pair_key=pair_key_for(user_a_id, user_b_id)).first()


def start_chat(initiator, recipient_id, body):
    """
    Create a two-party chat with its first message, or find the existing one.

    Returns ``(chat, created)``. When two users open a chat with each other
    at the same moment the unique ``pair_key`` rejects the second insert,
    and the loser gets the winner's chat back with ``created=False``.
    """
    recipient_pk = parse_id(recipient_id, "user id")
    if recipient_pk == initiator.pk:
        raise ValidationFailed("You cannot start a chat with yourself.")

    recipient = User.objects.filter(pk=recipient_pk).first()
    if recipient is None:
        raise NotFound("User not found.")

    existing = find_direct_chat(initiator.pk, recipient.pk)
    if existing is not None:
        return existing, False

    if not isinstance(body, str) or not body.strip():
        raise ValidationFailed("The first message cannot be empty.")

    key = pair_key_for(initiator.pk, recipient.pk)
    now = timezone.now()
    try:
        with transaction.atomic():
            chat = Chat.objects.create(pair_key=key, last_message=body, updated_at=now)
            ChatParticipant.objects.bulk_create([
                ChatParticipant(chat=chat, user=initiator, last_read_at=now),
                ChatParticipant(chat=chat, user=recipient, unread_count=1),
            ])
            Message.objects.create(chat=chat, sender=initiator, body=body)
    except IntegrityError:
        existing = Chat.objects.filter(pair_key=key).first()
        if existing is None:
            logger.warning(f"Creating chat {key} failed and no concurrent chat exists")
            raise NotFound("User not found.")
        logger.info(f"Chat {key} was created concurrently, reusing it")
        return existing, False

    logger.info(f"Chat {chat.pk} created between users {initiator.pk} and {recipient.pk}")
    return chat, True


def send_message(chat_id, sender, body):
    """
    Append a message and update the chat's summary and unread counters.

    Every participant but the sender gets an unread increment. Connections
    viewing the chat clear it again when the broadcast reaches them, on
    whichever worker they live.
    """
    chat = get_chat_for_participant(chat_id, sender)
    if not isinstance(body, str) or not body.strip():
        raise ValidationFailed("Message cannot be empty.", chat_id=chat.pk)

    with transaction.atomic():
        message = Message.objects.create(chat=chat, sender=sender, body=body)
        Chat.objects.filter(pk=chat.pk).update(last_message=body, updated_at=message.created_at)
        (
            ChatParticipant.objects.filter(chat=chat)
            .exclude(user=sender)
            .update(unread_count=F("unread_count") + 1)
        )
    return MessageSerializer(message).data


def chat_summary(chat, user):
    membership = ChatParticipant.objects.select_related("chat").get(chat=chat, user=user)
    membership.recipient = recipient_of(chat, user)
    return ChatSummarySerializer(membership).data


def list_chats(user):
    """The user's chats, most recently active first."""
    memberships = list(
        ChatParticipant.objects.filter(user=user)
        .select_related("chat")
        .order_by("-chat__updated_at", "-chat_id")
    )
    others = {
        participant.chat_id: participant.user
        for participant in ChatParticipant.objects.filter(
            chat_id__in=[m.chat_id for m in memberships]
        ).exclude(user=user).select_related("user")
    }

    summaries = []
    for membership in memberships:
        membership.recipient = others.get(membership.chat_id)
        if membership.recipient is None:
            logger.warning(f"Chat {membership.chat_id} has no other participant")
            continue
        summaries.append(membership)
    return ChatSummarySerializer(summaries, many=True).data
