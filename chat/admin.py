from django.contrib import admin

from .models import Chat, ChatParticipant, Message


class ChatParticipantInline(admin.TabularInline):
    model = ChatParticipant
    extra = 0
    readonly_fields = ['user', 'unread_count', 'last_read_at', 'joined_at']


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ['id', 'pair_key', 'last_message', 'updated_at']
    search_fields = ['pair_key', 'last_message']
    ordering = ['-updated_at']
    inlines = [ChatParticipantInline]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'chat', 'sender', 'created_at']
    list_filter = ['created_at']
    search_fields = ['body', 'sender__username']
