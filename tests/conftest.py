import pytest
from channels.layers import channel_layers
from channels.testing import WebsocketCommunicator
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from chat.registry import registry

PASSWORD = "s3cure-Passw0rd"


@pytest.fixture(autouse=True)
def fresh_realtime_state():
    """Each test starts with an empty registry and a new in-memory channel layer."""
    registry.reset()
    channel_layers.backends.clear()
    yield
    registry.reset()
    channel_layers.backends.clear()


@pytest.fixture
def make_user(django_user_model):
    def make(email, display_name, username=None, password=PASSWORD):
        return django_user_model.objects.create_user(
            username=username or email.split("@")[0],
            email=email,
            password=password,
            display_name=display_name,
        )
    return make


@pytest.fixture
def alice(make_user):
    return make_user("alice@x.com", "Alice Liddell", username="alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob@x.com", "Bob Builder", username="bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol@x.com", "Carol Danvers", username="carol")


@pytest.fixture
def api_client():
    return APIClient()


def token_for(user):
    return str(AccessToken.for_user(user))


async def open_socket(user):
    from quickchat_backend.asgi import application

    communicator = WebsocketCommunicator(application, f"/ws/chat/?token={token_for(user)}")
    connected, _ = await communicator.connect()
    assert connected
    return communicator
