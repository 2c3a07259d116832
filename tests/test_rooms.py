from fastapi import status
from app.models.room import Room
from tests.conf_tests import (  # pylint: disable=unused-import
    client,
    clear_db,
    test_db,
    test_user,
    admin_user,
    auth_headers,
    admin_headers,
    test_room,
    make_booking,
)


# Tests
def test_create_room_unauthorized():
    response = client.post(
        "/rooms/", json={"name": "Meeting Room", "capacity": 5, "location": "Floor 2"}
    )
    assert response.status_code in [
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    ]
    assert response.json()["success"] is False


# pylint: disable-next=redefined-outer-name
def test_create_room_requires_admin(auth_headers):
    response = client.post(
        "/rooms/", json={"name": "Meeting Room", "capacity": 5}, headers=auth_headers
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["message"] == "Admin access required"


# pylint: disable-next=redefined-outer-name
def test_create_room_success(admin_headers):
    room_data = {"name": "Meeting Room", "capacity": 5, "location": "Floor 2"}
    response = client.post("/rooms/", json=room_data, headers=admin_headers)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["is_active"] is True
    assert data["opening_time"] == "08:00"
    assert data["closing_time"] == "17:00"
    assert data["timezone"] == "Asia/Jakarta"


# pylint: disable-next=redefined-outer-name
def test_create_room_rejects_bad_hours(admin_headers):
    room_data = {"name": "Meeting Room", "capacity": 5, "opening_time": "18:00", "closing_time": "09:00"}
    response = client.post("/rooms/", json=room_data, headers=admin_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# pylint: disable-next=redefined-outer-name
def test_create_room_rejects_unknown_timezone(admin_headers):
    room_data = {"name": "Meeting Room", "capacity": 5, "timezone": "Mars/Olympus"}
    response = client.post("/rooms/", json=room_data, headers=admin_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# pylint: disable-next=redefined-outer-name
def test_get_rooms_with_data(test_room):
    response = client.get("/rooms/")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data) == 1
    assert data[0]["id"] == test_room.id
    assert data[0]["name"] == test_room.name


# pylint: disable-next=redefined-outer-name
def test_get_rooms_active_only(test_db, test_room):
    test_db.add(Room(name="Closed Room", capacity=4, is_active=False))
    test_db.commit()
    response = client.get("/rooms/?active_only=true")
    assert [room["id"] for room in response.json()] == [test_room.id]


# pylint: disable-next=redefined-outer-name
def test_get_room_success(test_room):
    response = client.get(f"/rooms/{test_room.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == test_room.id
    assert data["capacity"] == test_room.capacity
    assert data["location"] == test_room.location


def test_get_room_not_found():
    response = client.get("/rooms/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"success": False, "message": "Room not found"}


# pylint: disable-next=redefined-outer-name
def test_update_room_unauthorized(test_room):
    response = client.put(f"/rooms/{test_room.id}", json={"name": "Updated Name"})
    assert response.status_code in [
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    ]


# pylint: disable-next=redefined-outer-name
def test_update_room_success(admin_headers, test_room):
    update_data = {
        "name": "Updated Conference Room",
        "capacity": 15,
        "location": "Floor 3",
    }
    response = client.put(
        f"/rooms/{test_room.id}", json=update_data, headers=admin_headers
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["name"] == update_data["name"]
    assert data["capacity"] == update_data["capacity"]
    assert data["location"] == update_data["location"]


# pylint: disable-next=redefined-outer-name
def test_partial_update_room(admin_headers, test_room):
    response = client.put(
        f"/rooms/{test_room.id}", json={"capacity": 20}, headers=admin_headers
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["capacity"] == 20
    assert data["name"] == test_room.name
    assert data["location"] == test_room.location


# pylint: disable-next=redefined-outer-name
def test_update_room_hours_out_of_order(admin_headers, test_room):
    response = client.put(
        f"/rooms/{test_room.id}", json={"opening_time": "18:00"}, headers=admin_headers
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


# pylint: disable-next=redefined-outer-name
def test_deactivate_room_keeps_bookings(admin_headers, test_room, make_booking):
    booking = make_booking()
    response = client.put(
        f"/rooms/{test_room.id}", json={"is_active": False}, headers=admin_headers
    )
    assert response.status_code == status.HTTP_200_OK
    response = client.get(f"/bookings/{booking.id}", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK


# pylint: disable-next=redefined-outer-name
def test_update_room_not_found(admin_headers):
    response = client.put(
        "/rooms/9999", json={"name": "Non-existent Room"}, headers=admin_headers
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
def test_delete_room_unauthorized(test_room):
    response = client.delete(f"/rooms/{test_room.id}")
    assert response.status_code in [
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    ]


# pylint: disable-next=redefined-outer-name
def test_delete_room_success(admin_headers, test_room, test_db):
    response = client.delete(f"/rooms/{test_room.id}", headers=admin_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    deleted_room = test_db.query(Room).filter(Room.id == test_room.id).first()
    assert deleted_room is None


# pylint: disable-next=redefined-outer-name
def test_delete_room_with_bookings_refused(admin_headers, test_room, make_booking):
    make_booking()
    response = client.delete(f"/rooms/{test_room.id}", headers=admin_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


# pylint: disable-next=redefined-outer-name
def test_delete_room_not_found(admin_headers):
    response = client.delete("/rooms/9999", headers=admin_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
