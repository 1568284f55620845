from sqlalchemy import Column, Integer, String
from booking_service.db import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_name = Column(String(255), nullable=False)
    room_number = Column(String(50), index=True, nullable=False)
    bed_count = Column(Integer, nullable=False)
    # filename relative to the upload directory
    img = Column(String(255), nullable=True)
