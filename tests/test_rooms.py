import io
import os
import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Query

from tests.conf_tests import (  # pylint: disable=unused-import
    UPLOAD_DIR,
    blob_store,
    broken_session,
    clear_db,
    client,
    db_error,
    raising,
    test_db,
    upload_path,
)
from booking_service.config import reset_settings_cache
from booking_service.main import app
from booking_service.models.room import Room

IMAGE_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
ROOM_FORM = {"room_name": "Deluxe Suite", "room_number": "101", "bed_count": "2"}


def add_room(form=None, filename="suite.png", content=IMAGE_BYTES):
    files = {"img": (filename, content, "image/png")} if filename is not None else None
    return client.post("/api/add-room", data=form or ROOM_FORM, files=files)


def uploaded_files():
    return sorted(os.listdir(UPLOAD_DIR)) if os.path.isdir(UPLOAD_DIR) else []


@pytest.fixture
def test_room(test_db, blob_store):  # pylint: disable=redefined-outer-name
    with open(os.devnull, "rb") as empty:
        filename = blob_store.save(empty, "standard.jpg")
    room = Room(room_name="Standard Room", room_number="305", bed_count=1, img=filename)
    test_db.add(room)
    test_db.commit()
    test_db.refresh(room)
    return room


# Tests
def test_add_room_success(test_db):  # pylint: disable=redefined-outer-name
    response = add_room()
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["message"] == "Room added successfully!"

    room = test_db.query(Room).filter(Room.id == data["roomId"]).first()
    assert room is not None
    assert room.room_name == "Deluxe Suite"
    assert room.bed_count == 2
    assert room.img.endswith("-suite.png")
    with open(upload_path(room.img), "rb") as stored:
        assert stored.read() == IMAGE_BYTES


def test_add_room_round_trip():
    room_id = add_room().json()["roomId"]

    response = client.get("/api/rooms", params={"room_number": "101"})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == room_id
    assert data["room_name"] == "Deluxe Suite"
    assert data["room_number"] == "101"
    assert data["bed_count"] == 2

    image = client.get(f"/uploads/{data['img']}")
    assert image.status_code == status.HTTP_200_OK
    assert image.content == IMAGE_BYTES


def test_add_room_same_filename_twice():
    add_room()
    add_room(form={**ROOM_FORM, "room_number": "102"})
    files = uploaded_files()
    assert len(files) == 2
    assert all(name.endswith("-suite.png") for name in files)


def test_add_room_sanitizes_filename(test_db):  # pylint: disable=redefined-outer-name
    response = add_room(filename="../../etc/passwd")
    assert response.status_code == status.HTTP_201_CREATED
    room = test_db.query(Room).one()
    assert "/" not in room.img
    assert uploaded_files() == [room.img]


def test_add_room_without_file(test_db):  # pylint: disable=redefined-outer-name
    response = add_room(filename=None)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "All fields are required"
    assert test_db.query(Room).count() == 0
    assert uploaded_files() == []


@pytest.mark.parametrize("field", ["room_name", "room_number", "bed_count"])
def test_add_room_missing_field(field, test_db):  # pylint: disable=redefined-outer-name
    form = {k: v for k, v in ROOM_FORM.items() if k != field}
    response = add_room(form=form)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert test_db.query(Room).count() == 0
    assert uploaded_files() == []


def test_add_room_insert_failure_removes_image():
    with broken_session(commit=raising(db_error("INSERT INTO rooms"))):
        response = add_room()

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Database error"}
    assert uploaded_files() == []


def test_get_rooms_empty():
    response = client.get("/api/rooms")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []


# pylint: disable-next=redefined-outer-name
def test_get_rooms_with_data(test_room):
    add_room()
    response = client.get("/api/rooms")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data) == 2
    assert data[0]["id"] == test_room.id
    assert data[0]["room_number"] == "305"
    assert data[1]["room_number"] == "101"


def test_get_room_not_found():
    response = client.get("/api/rooms", params={"room_number": "999"})
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "Room not found"


def test_get_room_duplicate_number_returns_first():
    first_id = add_room().json()["roomId"]
    add_room(form={**ROOM_FORM, "room_name": "Second Suite"})
    response = client.get("/api/rooms", params={"room_number": "101"})
    assert response.json()["id"] == first_id


# pylint: disable-next=redefined-outer-name
def test_delete_room_success(test_room, test_db):
    room_id, image = test_room.id, test_room.img
    assert os.path.exists(upload_path(image))

    response = client.delete(f"/api/rooms/{room_id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == f"Room ID {room_id} and associated image deleted successfully"

    test_db.expire_all()
    assert test_db.query(Room).filter(Room.id == room_id).first() is None
    assert not os.path.exists(upload_path(image))
    assert client.get("/api/rooms").json() == []
    assert client.get(f"/uploads/{image}").status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
def test_delete_room_missing_image_tolerated(test_room):
    os.remove(upload_path(test_room.img))
    response = client.delete(f"/api/rooms/{test_room.id}")
    assert response.status_code == status.HTTP_200_OK


# pylint: disable-next=redefined-outer-name
def test_delete_room_image_removal_error_tolerated(test_room, monkeypatch):
    def refuse(_path):
        raise PermissionError("read-only file system")

    monkeypatch.setattr("booking_service.utils.blob_store.os.remove", refuse)
    response = client.delete(f"/api/rooms/{test_room.id}")
    assert response.status_code == status.HTTP_200_OK


def test_delete_room_without_image(test_db):  # pylint: disable=redefined-outer-name
    room = Room(room_name="Bare Room", room_number="7", bed_count=1, img=None)
    test_db.add(room)
    test_db.commit()
    response = client.delete(f"/api/rooms/{room.id}")
    assert response.status_code == status.HTTP_200_OK


def test_delete_room_not_found():
    response = client.delete("/api/rooms/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "Room not found"


def test_delete_room_invalid_id():
    response = client.delete("/api/rooms/abc")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Invalid room ID"


def test_cors_allows_configured_origin():
    response = client.options(
        "/api/rooms",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "DELETE"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


def test_cors_rejects_other_origin():
    response = client.options(
        "/api/rooms",
        headers={"Origin": "http://evil.example", "Access-Control-Request-Method": "GET"},
    )
    assert "access-control-allow-origin" not in response.headers


# pylint: disable-next=redefined-outer-name
def test_startup_sweeps_orphaned_uploads(test_room, blob_store, monkeypatch):
    orphan = blob_store.save(io.BytesIO(b"left behind"), "orphan.png")
    monkeypatch.setenv("SWEEP_ORPHANED_UPLOADS", "true")
    monkeypatch.setenv("SWEEP_GRACE_SECONDS", "0")
    reset_settings_cache()
    try:
        with TestClient(app):
            pass
    finally:
        reset_settings_cache()
    assert uploaded_files() == [test_room.img]
    assert orphan not in uploaded_files()


def test_get_rooms_storage_error():
    with broken_session(query=raising(db_error())):
        response = client.get("/api/rooms")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Database error"}


# pylint: disable-next=redefined-outer-name
def test_delete_room_lookup_storage_error(test_room):
    with broken_session(query=raising(db_error())):
        response = client.delete(f"/api/rooms/{test_room.id}")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Error retrieving room details"}
    assert os.path.exists(upload_path(test_room.img))


# pylint: disable-next=redefined-outer-name
def test_delete_room_commit_storage_error(test_room, test_db):
    room_id, image = test_room.id, test_room.img
    with broken_session(commit=raising(db_error("DELETE FROM rooms"))):
        response = client.delete(f"/api/rooms/{room_id}")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Error deleting room"}

    test_db.expire_all()
    assert test_db.query(Room).filter(Room.id == room_id).first() is not None
    assert os.path.exists(upload_path(image))


# pylint: disable-next=redefined-outer-name
def test_delete_room_lost_race_is_not_found(test_room, monkeypatch):
    # another request deletes the row between the lookup and our delete
    monkeypatch.setattr(Query, "delete", lambda self, *args, **kwargs: 0)
    response = client.delete(f"/api/rooms/{test_room.id}")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Room not found"}
    assert os.path.exists(upload_path(test_room.img))
