from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    room_name: str
    room_number: str
    bed_count: int
    img: Optional[str] = None


class RoomCreatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    room_id: int = Field(alias="roomId")


class MessageResponse(BaseModel):
    message: str
