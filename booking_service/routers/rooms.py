from typing import List, Optional, Union
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from booking_service.db import get_db
from booking_service.models.room import Room
from booking_service.schemas.room import MessageResponse, RoomCreatedResponse, RoomResponse
from booking_service.utils.blob_store import BlobStore, get_blob_store
from booking_service.utils.errors import NotFoundError, StorageError, ValidationError
from booking_service.utils.validation_helpers import all_present, blank_to_none
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["rooms"],
)


@router.post("/add-room", response_model=RoomCreatedResponse, status_code=status.HTTP_201_CREATED)
def add_room(
    room_name: Optional[str] = Form(None),
    room_number: Optional[str] = Form(None),
    bed_count: Optional[int] = Form(None),
    img: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    """
    Add a room together with its image.
    The image is stored first; if the row cannot be written it is removed again.
    """
    room_name, room_number = blank_to_none(room_name), blank_to_none(room_number)
    if not all_present(room_name, room_number, bed_count) or img is None or not img.filename:
        raise ValidationError("All fields are required")

    try:
        filename = store.save(img.file, img.filename)
    except OSError:
        logger.exception(f"Error storing image {img.filename!r}")
        raise StorageError("Error storing image")

    db_room = Room(room_name=room_name, room_number=room_number, bed_count=bed_count, img=filename)
    db.add(db_room)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error adding room")
        store.remove(filename)
        raise StorageError("Database error")

    db.refresh(db_room)
    logger.info(f"Added room {db_room.id} ({db_room.room_number}) with image {filename}")
    return RoomCreatedResponse(message="Room added successfully!", room_id=db_room.id)


@router.get("/rooms", response_model=Union[List[RoomResponse], RoomResponse])
def get_rooms(room_number: Optional[str] = None, db: Session = Depends(get_db)):
    """
    List all rooms, or return the room with the given room_number.
    Room numbers are not unique; the oldest match wins.
    """
    try:
        query = db.query(Room).order_by(Room.id)
        if room_number:
            room = query.filter(Room.room_number == room_number).first()
        else:
            rooms = query.all()
    except SQLAlchemyError:
        logger.exception("Error retrieving rooms")
        raise StorageError("Database error")

    if not room_number:
        return [RoomResponse.model_validate(r) for r in rooms]
    if room is None:
        raise NotFoundError("Room not found")
    return RoomResponse.model_validate(room)


@router.delete("/rooms/{room_id}", response_model=MessageResponse)
def delete_room(
    room_id: str,
    db: Session = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    """
    Delete a room and then its image.

    The response reports success once the row is gone; failing to remove
    the image only gets logged.
    """
    try:
        room_id = int(room_id)
    except ValueError:
        raise ValidationError("Invalid room ID")

    logger.info(f"Deleting room with ID {room_id}")
    try:
        row = db.query(Room.img).filter(Room.id == room_id).first()
    except SQLAlchemyError:
        logger.exception("Error retrieving room image")
        raise StorageError("Error retrieving room details")
    if row is None:
        raise NotFoundError("Room not found")
    img = row.img

    try:
        deleted = db.query(Room).filter(Room.id == room_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error deleting room from database")
        raise StorageError("Error deleting room")
    # another request removed the row after our lookup
    if deleted == 0:
        raise NotFoundError("Room not found")
    logger.info(f"Room with ID {room_id} deleted from database")

    if img:
        store.remove(img)

    return MessageResponse(message=f"Room ID {room_id} and associated image deleted successfully")
