import pytest
from django.db import DatabaseError

from chat import services

from .conftest import token_for

pytestmark = pytest.mark.django_db

URL = "/api/chats"


def test_requires_authentication(api_client):
    response = api_client.get(URL)

    assert response.status_code == 401
    assert response.json()["message"]


def test_lists_chats_with_bearer_token(api_client, alice, bob, carol):
    older, _ = services.start_chat(carol, alice.pk, "hi alice")
    newer, _ = services.start_chat(alice, bob.pk, "hi bob")
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token_for(alice)}")

    response = api_client.get(URL)

    assert response.status_code == 200
    body = response.json()
    assert [chat["id"] for chat in body] == [newer.pk, older.pk]
    assert body[0] == {
        "id": newer.pk,
        "recipientId": bob.pk,
        "displayName": "Bob Builder",
        "profilePicture": None,
        "lastMessage": "hi bob",
        "lastMessageDate": body[0]["lastMessageDate"],
        "unreadCount": 0,
    }
    assert body[1]["unreadCount"] == 1


def test_data_store_failure_is_a_500(api_client, alice, monkeypatch):
    def broken(user):
        raise DatabaseError("connection lost")

    monkeypatch.setattr(services, "list_chats", broken)
    api_client.force_authenticate(alice)

    response = api_client.get(URL)

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error.", "status": 500}
