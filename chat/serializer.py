from rest_framework import serializers

from .models import Message


class MessageSerializer(serializers.ModelSerializer):
    chatId = serializers.IntegerField(source='chat_id', read_only=True)
    senderId = serializers.IntegerField(source='sender_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'chatId', 'senderId', 'body', 'createdAt']
        read_only_fields = fields


class ChatSummarySerializer(serializers.Serializer):
    """
    One row of a user's chat list, built from that user's ``ChatParticipant``
    row with the other participant attached as ``recipient``.
    """
    id = serializers.IntegerField(source='chat.id')
    recipientId = serializers.IntegerField(source='recipient.id')
    displayName = serializers.CharField(source='recipient.display_name')
    profilePicture = serializers.CharField(source='recipient.profile_picture', allow_null=True)
    lastMessage = serializers.CharField(source='chat.last_message')
    lastMessageDate = serializers.DateTimeField(source='chat.updated_at')
    unreadCount = serializers.IntegerField(source='unread_count')
