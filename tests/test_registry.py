import asyncio

import pytest
from channels.layers import InMemoryChannelLayer

from chat.registry import SessionRegistry, chat_group, user_group


@pytest.fixture
def layer():
    return InMemoryChannelLayer()


@pytest.fixture
def session_registry(layer):
    return SessionRegistry(channel_layer=layer)


async def assert_nothing_for(layer, channel):
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(layer.receive(channel), timeout=0.1)


def event(text):
    return {"type": "chat.event", "frame": {"text": text}}


@pytest.mark.asyncio
async def test_user_broadcast_reaches_every_device(session_registry, layer):
    phone = await layer.new_channel()
    laptop = await layer.new_channel()
    await session_registry.register(1, phone)
    await session_registry.register(1, laptop)

    await layer.group_send(user_group(1), event("hello"))

    assert (await layer.receive(phone))["frame"] == {"text": "hello"}
    assert (await layer.receive(laptop))["frame"] == {"text": "hello"}
    assert session_registry.connections_for(1) == {phone, laptop}


@pytest.mark.asyncio
async def test_join_groups_connections_across_users(session_registry, layer):
    alice = await layer.new_channel()
    bob = await layer.new_channel()
    await session_registry.register(1, alice)
    await session_registry.register(2, bob)
    await session_registry.join(alice, 7)
    await session_registry.join(bob, 7)

    await layer.group_send(chat_group(7), event("hi"))

    assert (await layer.receive(alice))["frame"] == {"text": "hi"}
    assert (await layer.receive(bob))["frame"] == {"text": "hi"}
    assert session_registry.viewers(7) == {1, 2}


@pytest.mark.asyncio
async def test_join_elsewhere_leaves_previous_chat(session_registry, layer):
    channel = await layer.new_channel()
    await session_registry.register(1, channel)
    await session_registry.join(channel, 7)
    await session_registry.join(channel, 8)

    assert session_registry.joined_chat(channel) == 8
    assert session_registry.members(7) == set()
    await layer.group_send(chat_group(7), event("stale"))
    await assert_nothing_for(layer, channel)


@pytest.mark.asyncio
async def test_leave_only_affects_that_connection(session_registry, layer):
    phone = await layer.new_channel()
    laptop = await layer.new_channel()
    await session_registry.register(1, phone)
    await session_registry.register(1, laptop)
    await session_registry.join(phone, 7)
    await session_registry.join(laptop, 7)

    await session_registry.leave(phone, 7)
    await layer.group_send(chat_group(7), event("after leave"))

    assert (await layer.receive(laptop))["frame"] == {"text": "after leave"}
    await assert_nothing_for(layer, phone)
    assert session_registry.joined_chat(phone) is None
    assert session_registry.viewers(7) == {1}


@pytest.mark.asyncio
async def test_unregister_drops_room_membership(session_registry, layer):
    channel = await layer.new_channel()
    await session_registry.register(1, channel)
    await session_registry.join(channel, 7)

    await session_registry.unregister(channel)

    assert session_registry.connections_for(1) == set()
    assert session_registry.members(7) == set()
    assert session_registry.joined_chat(channel) is None
    await layer.group_send(chat_group(7), event("room"))
    await layer.group_send(user_group(1), event("user"))
    await assert_nothing_for(layer, channel)


@pytest.mark.asyncio
async def test_unregister_unknown_connection_is_a_noop(session_registry):
    await session_registry.unregister("specific.missing!abc")
    assert session_registry.connections_for(1) == set()
