from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from booking_service.db import get_db
from booking_service.models.booking import Booking
from booking_service.schemas.booking import AvailabilityResponse, BookingCreate, BookingCreatedResponse
from booking_service.utils.errors import ConflictError, StorageError, ValidationError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["bookings"],
)

# MySQL names the violated key, SQLite lists the constrained columns
DOUBLE_BOOKING_MARKERS = (
    "uq_booking_room_date",
    "bookings.room_number, bookings.booking_date",
)


def is_double_booking(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in DOUBLE_BOOKING_MARKERS)


@router.post(
    "/book",
    response_model=BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a booking",
)
def create_booking(booking: BookingCreate, db: Session = Depends(get_db)):
    """
    Book a room for a date.

    - **room_number**: Number of the room to book.
    - **quantity**: Number of rooms booked.
    - **name**: Guest name.
    - **persons**: Number of occupants.
    - **booking_date**: Date of the stay (YYYY-MM-DD).

    Availability is not checked here; a second booking for the same room
    and date is rejected by the database and reported as 409.
    """
    if not booking.is_complete():
        raise ValidationError("All fields are required")

    db_booking = Booking(**booking.model_dump())
    db.add(db_booking)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not is_double_booking(exc):
            logger.exception("Error adding booking")
            raise StorageError("Database error")
        logger.warning(f"Room {booking.room_number} already booked on {booking.booking_date}")
        raise ConflictError("Room is already booked for this date")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error adding booking")
        raise StorageError("Database error")

    db.refresh(db_booking)
    logger.info(f"Created booking {db_booking.id} for room {db_booking.room_number} on {db_booking.booking_date}")
    return BookingCreatedResponse(message="Booking successful", booking_id=db_booking.id)


@router.get(
    "/available",
    response_model=AvailabilityResponse,
    summary="Check room availability",
)
def check_availability(
    room_number: Optional[str] = None,
    booking_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """
    Report whether a room has no booking on the given date.

    This is a point-in-time read; use the result as advice only.
    """
    if not room_number or not booking_date:
        raise ValidationError("room_number and booking_date are required")

    try:
        count = (
            db.query(func.count(Booking.id))
            .filter(Booking.room_number == room_number, Booking.booking_date == booking_date)
            .scalar()
        )
    except SQLAlchemyError:
        logger.exception("Error checking availability")
        raise StorageError("Database error")

    logger.debug(f"Room {room_number} has {count} bookings on {booking_date}")
    return AvailabilityResponse(available=count == 0)
