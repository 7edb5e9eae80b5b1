from django.contrib.auth import get_user_model
from django.db.models import Q

from accounts.serializer import UserSerializer

User = get_user_model()


def user_search_filter(query):
    """
    Exact match on id, email or username, or a case-insensitive substring of
    the display name. No minimum length is enforced here; the web client
    waits for three characters before asking.
    """
    condition = Q(email=query) | Q(username=query) | Q(display_name__icontains=query)
    if query.isascii() and query.isdigit() and len(query) < 19 and str(int(query)) == query:
        condition |= Q(pk=int(query))
    return condition


def search_users(query):
    users = User.objects.filter(user_search_filter(query)).order_by("id")
    return UserSerializer(users, many=True).data
