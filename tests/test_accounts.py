import pytest

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def signup(api_client, **overrides):
    data = {
        "email": "Newbie@X.com",
        "displayName": "New Person",
        "password": PASSWORD,
        "confirmPassword": PASSWORD,
    }
    data.update(overrides)
    return api_client.post("/api/auth/", data, format="json")


def test_signup_returns_user_and_tokens(api_client, django_user_model):
    response = signup(api_client)

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "newbie@x.com"
    assert body["user"]["displayName"] == "New Person"
    assert body["user"]["username"] == "newbie"
    assert set(body["tokens"]) == {"access", "refresh"}
    assert django_user_model.objects.get(email="newbie@x.com").check_password(PASSWORD)


def test_signup_password_mismatch(api_client):
    response = signup(api_client, confirmPassword="something-else-1")

    assert response.status_code == 400
    assert response.json()["message"] == "Passwords don't match."


def test_signup_duplicate_email_and_username_collision(api_client, make_user):
    make_user("newbie@x.com", "Someone")
    assert signup(api_client).status_code == 400

    response = signup(api_client, email="newbie@y.com")
    assert response.status_code == 201
    assert response.json()["user"]["username"] == "newbie2"


def test_login(api_client, alice):
    response = api_client.post("/api/auth/login/", {"email": "alice@x.com", "password": PASSWORD}, format="json")

    assert response.status_code == 200
    assert response.json()["user"]["id"] == alice.pk
    assert "access" in response.json()["tokens"]


def test_login_with_wrong_password(api_client, alice):
    response = api_client.post("/api/auth/login/", {"email": "alice@x.com", "password": "nope"}, format="json")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid credentials."


def test_me(api_client, alice):
    api_client.force_authenticate(alice)

    response = api_client.get("/api/auth/me")

    assert response.status_code == 200
    assert response.json()["displayName"] == "Alice Liddell"


def test_signout_blacklists_refresh_token(api_client):
    tokens = signup(api_client).json()["tokens"]

    response = api_client.get("/api/auth/signout", {"refresh": tokens["refresh"]})
    assert response.status_code == 200

    refreshed = api_client.post("/api/token/refresh/", {"refresh": tokens["refresh"]}, format="json")
    assert refreshed.status_code == 401
