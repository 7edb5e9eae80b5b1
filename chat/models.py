from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


def pair_key_for(user_a_id, user_b_id):
    """Canonical key of a two-party chat, independent of who started it."""
    low, high = sorted([int(user_a_id), int(user_b_id)])
    return f"{low}:{high}"


class Chat(models.Model):
    participants = models.ManyToManyField(User, through="ChatParticipant", related_name="chats")
    # Unique per user pair; the store-level guard against duplicate chats.
    pair_key = models.CharField(max_length=64, unique=True, null=True, blank=True)
    last_message = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self):
        return f"Chat {self.pk} ({self.pair_key})"


class ChatParticipant(models.Model):
    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="chat_memberships")
    unread_count = models.PositiveIntegerField(default=0)
    last_read_at = models.DateTimeField(blank=True, null=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["chat", "user"], name="unique_chat_participant"),
        ]

    def __str__(self):
        return f"{self.user} in chat {self.chat_id} ({self.unread_count} unread)"


class Message(models.Model):
    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name="messages")
    sender = models.ForeignKey(User, on_delete=models.CASCADE, related_name="sent_messages")
    body = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.sender} -> chat {self.chat_id}: {self.body[:20]}"
