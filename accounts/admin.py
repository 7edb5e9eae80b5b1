from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class QuickChatUserAdmin(UserAdmin):
    list_display = ['email', 'username', 'display_name', 'is_staff', 'date_joined']
    search_fields = ['email', 'username', 'display_name']
    ordering = ['-date_joined']
    fieldsets = UserAdmin.fieldsets + (
        ('Profile', {'fields': ('display_name', 'profile_picture')}),
    )
