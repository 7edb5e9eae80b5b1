import logging

from django.contrib.auth import logout
from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .serializer import CreateAccountSerializer, LoginSerializer, UserSerializer, issue_tokens

logger = logging.getLogger(__name__)


class CreateAccountView(generics.CreateAPIView):
    serializer_class = CreateAccountSerializer
    permission_classes = [AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Account created for user: {user.email} (ID: {user.id})")
        return Response({
            'user': UserSerializer(user).data,
            'tokens': issue_tokens(user),
        }, status=status.HTTP_201_CREATED)


class LoginView(generics.GenericAPIView):
    serializer_class = LoginSerializer
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        logger.info(f"Login successful for user: {serializer.validated_data['user']['email']}")
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class SignoutView(APIView):
    """Ends the Django session and, when given, blacklists the refresh token."""
    permission_classes = [AllowAny]

    def get(self, request):
        refresh = request.query_params.get('refresh')
        if refresh:
            try:
                RefreshToken(refresh).blacklist()
            except TokenError as e:
                raise ValidationError({'refresh': str(e)})
        if request.user.is_authenticated:
            logger.info(f"User {request.user.id} signed out")
        logout(request._request)
        return Response({'message': 'Signed out.'}, status=status.HTTP_200_OK)


class UserProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response(serializer.data)
