from types import SimpleNamespace

import pytest
from channels.layers import InMemoryChannelLayer

from chat.presence import PresenceChannel, user_connected, user_disconnected
from chat.registry import SessionRegistry


@pytest.fixture
def presence_channel():
    return PresenceChannel(SessionRegistry(channel_layer=InMemoryChannelLayer()))


@pytest.fixture
def received():
    events = []

    def on_connected(sender, user_id, channel_name, **kwargs):
        events.append(("connected", user_id, channel_name))

    def on_disconnected(sender, user_id, channel_name, **kwargs):
        events.append(("disconnected", user_id, channel_name))

    user_connected.connect(on_connected)
    user_disconnected.connect(on_disconnected)
    yield events
    user_connected.disconnect(on_connected)
    user_disconnected.disconnect(on_disconnected)


@pytest.mark.asyncio
async def test_presence_follows_registry_membership(presence_channel, received):
    user = SimpleNamespace(pk=5)

    await presence_channel.connect(user, "specific.one")
    await presence_channel.connect(user, "specific.two")
    assert presence_channel.is_online(5)

    await presence_channel.disconnect(user, "specific.one")
    assert presence_channel.is_online(5)

    await presence_channel.disconnect(user, "specific.two")
    assert not presence_channel.is_online(5)
    assert received == [
        ("connected", 5, "specific.one"),
        ("connected", 5, "specific.two"),
        ("disconnected", 5, "specific.one"),
        ("disconnected", 5, "specific.two"),
    ]
