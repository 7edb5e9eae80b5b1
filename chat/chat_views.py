import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from . import services

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_chats(request):
    """List the caller's chats, most recently active first."""
    chats = services.list_chats(request.user)
    logger.debug(f"Listed {len(chats)} chats for user {request.user.id}")
    return Response(chats)
