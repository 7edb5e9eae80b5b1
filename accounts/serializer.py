import re
import logging
from django.contrib.auth import get_user_model, authenticate
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

logger = logging.getLogger(__name__)

User = get_user_model()


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {
        'access': str(refresh.access_token),
        'refresh': str(refresh),
    }


def unique_username_for(email):
    """Derive a free username from the local part of an email address."""
    base = re.sub(r'[^\w.+-]', '', email.split('@')[0].lower())[:140] or 'user'
    candidate = base
    suffix = 1
    while User.objects.filter(username=candidate).exists():
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


class UserSerializer(serializers.ModelSerializer):
    displayName = serializers.CharField(source='display_name', read_only=True)
    profilePicture = serializers.CharField(source='profile_picture', read_only=True, allow_null=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'username', 'displayName', 'profilePicture']
        read_only_fields = fields


class CreateAccountSerializer(serializers.Serializer):
    email = serializers.EmailField()
    displayName = serializers.CharField(source='display_name', max_length=64)
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password]
    )
    confirmPassword = serializers.CharField(write_only=True, required=True)

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Email is already registered.")
        return value

    def validate_displayName(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Display name cannot be blank.")
        return value

    def validate(self, data):
        if data['password'] != data['confirmPassword']:
            raise serializers.ValidationError({"confirmPassword": "Passwords don't match."})
        return data

    def create(self, validated_data):
        validated_data.pop('confirmPassword')
        email = validated_data['email']
        user = User.objects.create_user(
            username=unique_username_for(email),
            email=email,
            password=validated_data['password'],
            display_name=validated_data['display_name'],
        )
        logger.info(f"User created: {user.email} (ID: {user.id})")
        return user


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(style={'input_type': 'password'}, trim_whitespace=False)

    def validate(self, attrs):
        email = attrs.get('email').lower()
        password = attrs.get('password')

        user = authenticate(
            request=self.context.get('request'),
            username=email,
            password=password
        )
        if not user:
            logger.warning(f"Login failed for email: {email}")
            raise serializers.ValidationError("Invalid credentials.")

        return {
            'user': UserSerializer(user).data,
            'tokens': issue_tokens(user),
        }
