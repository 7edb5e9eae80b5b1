from django.urls import path
from . import chat_views

urlpatterns = [
    path('chats', chat_views.get_chats, name='get_chats'),
    path('chats/', chat_views.get_chats),
]
