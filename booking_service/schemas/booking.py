from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from booking_service.utils.validation_helpers import all_present, blank_to_none, normalize_room_number


class BookingCreate(BaseModel):
    room_number: Optional[str] = None
    quantity: Optional[int] = None
    name: Optional[str] = None
    persons: Optional[int] = None
    booking_date: Optional[date] = None

    @field_validator("*", mode="before")
    @classmethod
    def clean_value(cls, value, info: ValidationInfo):
        value = blank_to_none(value)
        if info.field_name == "room_number":
            value = normalize_room_number(value)
        return value

    def is_complete(self) -> bool:
        return all_present(self.room_number, self.quantity, self.name, self.persons, self.booking_date)


class BookingCreatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    booking_id: int = Field(alias="bookingId")


class AvailabilityResponse(BaseModel):
    available: bool
