import pytest
from datetime import date
from fastapi import status
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query
from hotel_booking.models.room import Room
from tests.conf_tests import (
    add_booking,
    add_room,
    client,
    clear_db,
    test_db,
    test_user,
    auth_headers,
    guest_headers,
)

TEST_ROOM_DATA = {
    "roomNumber": "101",
    "roomType": "Double",
    "pricePerNight": 120.0,
    "maxGuests": 2,
    "description": "Sea view",
    "amenities": ["wifi", "tv"],
}


@pytest.fixture
def test_room(test_db):
    return add_room(test_db, room_number="101", amenities=["wifi", "tv"])


# CRUD
def test_create_room_unauthorized():
    response = client.post("/rooms/", json=TEST_ROOM_DATA)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_room_requires_admin(guest_headers):
    response = client.post("/rooms/", json=TEST_ROOM_DATA, headers=guest_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_create_room_success(auth_headers):
    response = client.post("/rooms/", json=TEST_ROOM_DATA, headers=auth_headers)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["roomNumber"] == "101"
    assert data["roomType"] == "Double"
    assert data["pricePerNight"] == 120.0
    assert data["availabilityStatus"] == "Available"
    assert data["amenities"] == ["wifi", "tv"]


def test_create_room_with_amenity_mapping(auth_headers):
    room_data = dict(TEST_ROOM_DATA, amenities={"wifi": True, "minibar": False})
    response = client.post("/rooms/", json=room_data, headers=auth_headers)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["amenities"] == {"wifi": True, "minibar": False}


def test_create_room_invalid_data(auth_headers):
    room_data = dict(TEST_ROOM_DATA, roomType="Penthouse", pricePerNight=0)
    response = client.post("/rooms/", json=room_data, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"roomType", "pricePerNight"} <= fields


def test_create_room_duplicate_number(auth_headers, test_room):
    response = client.post("/rooms/", json=TEST_ROOM_DATA, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Room number already exists"


def test_get_room_success(test_room):
    response = client.get(f"/rooms/{test_room.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == test_room.id
    assert data["maxGuests"] == test_room.max_guests


def test_get_room_not_found():
    response = client.get("/rooms/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "Room not found"


def test_partial_update_room(auth_headers, test_room):
    response = client.put(
        f"/rooms/{test_room.id}",
        json={"availabilityStatus": "Maintenance", "maxGuests": 3},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["availabilityStatus"] == "Maintenance"
    assert data["maxGuests"] == 3
    assert data["roomNumber"] == test_room.room_number


def test_update_room_not_found(auth_headers):
    response = client.put("/rooms/9999", json={"maxGuests": 3}, headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_room_success(auth_headers, test_room, test_db):
    response = client.delete(f"/rooms/{test_room.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert test_db.query(Room).filter(Room.id == test_room.id).first() is None


def test_delete_room_not_found(auth_headers):
    response = client.delete("/rooms/9999", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


# Filtering
def test_get_rooms_filters(test_db):
    add_room(test_db, room_number="1", room_type="Single", price_per_night=60.0, max_guests=1)
    add_room(test_db, room_number="2", room_type="Double", price_per_night=120.0, max_guests=2)
    add_room(test_db, room_number="3", room_type="Suite", price_per_night=300.0, max_guests=4,
             availability_status="Booked")

    response = client.get("/rooms/", params={"minPrice": "100", "maxPrice": "200"})
    assert [room["roomNumber"] for room in response.json()] == ["2"]

    response = client.get("/rooms/", params={"maxGuests": "2"})
    assert sorted(room["roomNumber"] for room in response.json()) == ["2", "3"]

    response = client.get("/rooms/", params={"roomType": "Suite", "availabilityStatus": "Booked"})
    assert [room["roomNumber"] for room in response.json()] == ["3"]


def test_get_rooms_fractional_guest_bound_is_floored(test_db):
    add_room(test_db, room_number="1", max_guests=1)
    add_room(test_db, room_number="2", max_guests=2)
    add_room(test_db, room_number="3", max_guests=4)

    response = client.get("/rooms/", params={"maxGuests": "2.5"})
    assert response.status_code == status.HTTP_200_OK
    assert sorted(room["roomNumber"] for room in response.json()) == ["2", "3"]


def test_get_rooms_zero_price_bound_is_applied(test_db):
    add_room(test_db, room_number="1", price_per_night=80.0)
    response = client.get("/rooms/", params={"maxPrice": "0"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []


def test_get_rooms_unparseable_bound_is_ignored(test_db):
    add_room(test_db, room_number="1", price_per_night=80.0)
    response = client.get("/rooms/", params={"minPrice": "cheap", "maxGuests": "many"})
    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()) == 1


def test_get_rooms_unknown_status_matches_nothing(test_db):
    add_room(test_db, room_number="1")
    response = client.get("/rooms/", params={"availabilityStatus": "Closed"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []


def test_get_rooms_by_amenities_in_list(test_db):
    add_room(test_db, room_number="1", amenities=["wifi", "tv", "minibar"])
    add_room(test_db, room_number="2", amenities={"wifi": True, "minibar": True})
    add_room(test_db, room_number="3", amenities={"wifi": True, "minibar": False})
    add_room(test_db, room_number="4", amenities=None)

    response = client.get("/rooms/", params={"amenities": "wifi, minibar"})
    assert sorted(room["roomNumber"] for room in response.json()) == ["1", "2"]


# Amenities search
def test_amenities_search(test_db):
    add_room(test_db, room_number="3", amenities=["wifi", "tv"])

    response = client.get("/rooms/amenities", params={"amenities": "wifi,minibar"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"rooms": [], "totalRooms": 0, "requestedAmenities": ["wifi", "minibar"]}

    response = client.get("/rooms/amenities", params={"amenities": "wifi"})
    data = response.json()
    assert data["totalRooms"] == 1
    assert data["rooms"][0]["roomNumber"] == "3"
    assert data["requestedAmenities"] == ["wifi"]


def test_amenities_search_with_room_type(test_db):
    add_room(test_db, room_number="1", room_type="Single", amenities=["wifi"])
    add_room(test_db, room_number="2", room_type="Suite", amenities=["wifi"])
    response = client.get("/rooms/amenities", params={"amenities": "wifi", "roomType": "Suite"})
    assert [room["roomNumber"] for room in response.json()["rooms"]] == ["2"]


def test_amenities_search_requires_amenities():
    response = client.get("/rooms/amenities")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "amenities query parameter is required"


# Availability
def test_availability_excludes_overlapping_confirmed_booking(test_db, test_user):
    room = add_room(test_db, room_number="1")
    add_booking(test_db, room, test_user, date(2023, 6, 1), date(2023, 6, 5))

    response = client.get(
        "/rooms/availability", params={"checkInDate": "2023-06-02", "checkOutDate": "2023-06-04"}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"availableRooms": [], "totalAvailable": 0}


def test_availability_back_to_back_stay(test_db, test_user):
    room = add_room(test_db, room_number="1")
    add_booking(test_db, room, test_user, date(2023, 6, 1), date(2023, 6, 5))

    response = client.get(
        "/rooms/availability", params={"checkInDate": "2023-06-05", "checkOutDate": "2023-06-10"}
    )
    data = response.json()
    assert data["totalAvailable"] == 1
    assert data["availableRooms"][0]["id"] == room.id


def test_availability_ignores_unconfirmed_bookings(test_db, test_user):
    room = add_room(test_db, room_number="1")
    add_booking(test_db, room, test_user, date(2023, 6, 1), date(2023, 6, 5), status="Pending")
    add_booking(test_db, room, test_user, date(2023, 6, 1), date(2023, 6, 5), status="Cancelled")

    response = client.get(
        "/rooms/availability", params={"checkInDate": "2023-06-02", "checkOutDate": "2023-06-04"}
    )
    assert response.json()["totalAvailable"] == 1


def test_availability_excludes_maintenance_and_booked_status(test_db):
    add_room(test_db, room_number="1", availability_status="Maintenance")
    add_room(test_db, room_number="2", availability_status="Booked")
    available = add_room(test_db, room_number="3")

    response = client.get(
        "/rooms/availability", params={"checkInDate": "2023-06-02", "checkOutDate": "2023-06-04"}
    )
    data = response.json()
    assert [room["id"] for room in data["availableRooms"]] == [available.id]


def test_availability_room_type_and_guests(test_db):
    add_room(test_db, room_number="1", room_type="Single", max_guests=1)
    add_room(test_db, room_number="2", room_type="Suite", max_guests=4)

    response = client.get(
        "/rooms/availability",
        params={"checkInDate": "2023-06-02", "checkOutDate": "2023-06-04", "maxGuests": "3"},
    )
    assert [room["roomNumber"] for room in response.json()["availableRooms"]] == ["2"]

    response = client.get(
        "/rooms/availability",
        params={"checkInDate": "2023-06-02", "checkOutDate": "2023-06-04", "roomType": "Single"},
    )
    assert [room["roomNumber"] for room in response.json()["availableRooms"]] == ["1"]


def test_availability_is_repeatable(test_db, test_user):
    room = add_room(test_db, room_number="1")
    add_room(test_db, room_number="2")
    add_booking(test_db, room, test_user, date(2023, 6, 1), date(2023, 6, 5))
    params = {"checkInDate": "2023-06-03", "checkOutDate": "2023-06-08"}

    first = client.get("/rooms/availability", params=params).json()
    second = client.get("/rooms/availability", params=params).json()
    assert first == second
    assert first["totalAvailable"] == 1


def test_availability_missing_dates():
    response = client.get("/rooms/availability", params={"checkOutDate": "2023-06-04"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"message": "Both checkInDate and checkOutDate are required"}


@pytest.mark.parametrize("check_out", ["2023-06-02", "2023-06-01"])
def test_availability_invalid_range(check_out):
    response = client.get(
        "/rooms/availability", params={"checkInDate": "2023-06-02", "checkOutDate": check_out}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"message": "checkOutDate must be after checkInDate"}


def test_availability_unparseable_date():
    response = client.get(
        "/rooms/availability", params={"checkInDate": "soon", "checkOutDate": "2023-06-04"}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_availability_timestamps_within_one_day(test_db, test_user):
    room = add_room(test_db, room_number="1")
    free = add_room(test_db, room_number="2")
    add_booking(test_db, room, test_user, date(2023, 6, 2), date(2023, 6, 3))

    response = client.get(
        "/rooms/availability",
        params={"checkInDate": "2023-06-02T10:00:00", "checkOutDate": "2023-06-02T18:00:00"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert [room["id"] for room in response.json()["availableRooms"]] == [free.id]


def test_availability_timestamps_compared_in_utc():
    # 2023-06-02T01:00+02:00 is 2023-06-01T23:00Z, before the check-out
    response = client.get(
        "/rooms/availability",
        params={"checkInDate": "2023-06-02T01:00:00+02:00", "checkOutDate": "2023-06-02T00:00:00Z"},
    )
    assert response.status_code == status.HTTP_200_OK


def failing_query(*args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("database is locked"))


def test_availability_database_error(test_db, monkeypatch):
    add_room(test_db, room_number="1")
    monkeypatch.setattr(Query, "all", failing_query)

    response = client.get(
        "/rooms/availability", params={"checkInDate": "2023-06-02", "checkOutDate": "2023-06-04"}
    )
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["message"] == "Error checking room availability"
    assert "database is locked" in data["error"]


def test_get_rooms_database_error(monkeypatch):
    monkeypatch.setattr(Query, "all", failing_query)

    response = client.get("/rooms/")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["message"] == "Error fetching rooms"
    assert "database is locked" in data["error"]
