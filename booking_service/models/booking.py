from sqlalchemy import Column, Date, Integer, String, UniqueConstraint
from booking_service.db import Base


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("room_number", "booking_date", name="uq_booking_room_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # refers to Room.room_number by value, there is no foreign key
    room_number = Column(String(50), index=True, nullable=False)
    quantity = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    persons = Column(Integer, nullable=False)
    booking_date = Column(Date, nullable=False)
