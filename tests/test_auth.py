from fastapi import status
from tests.conf_tests import client, clear_db, test_db, test_user, TEST_PASSWORD  # pylint: disable=unused-import

NEW_USER = {
    "username": "rina",
    "email": "rina@example.com",
    "password": "s3cret-pass",
    "name": "Rina",
    "institution": "Example University",
}


def test_register_user():
    response = client.post("/auth/register", json=NEW_USER)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["username"] == "rina"
    assert data["role"] == "user"
    assert "password" not in data
    assert "hashed_password" not in data


def test_register_duplicate_username():
    client.post("/auth/register", json=NEW_USER)
    response = client.post("/auth/register", json={**NEW_USER, "email": "other@example.com"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["success"] is False


def test_register_invalid_email():
    response = client.post("/auth/register", json={**NEW_USER, "email": "not-an-email"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["success"] is False


# pylint: disable-next=redefined-outer-name
def test_login_success(test_user):
    response = client.post("/auth/login", data={"username": test_user.username, "password": TEST_PASSWORD})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["token_type"] == "bearer"

    token = response.json()["access_token"]
    response = client.get("/bookings/my-bookings", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_200_OK


# pylint: disable-next=redefined-outer-name
def test_login_wrong_password(test_user):
    response = client.post("/auth/login", data={"username": test_user.username, "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"success": False, "message": "Incorrect username or password"}


def test_invalid_token_rejected():
    response = client.get("/bookings/my-bookings", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
