import datetime as dt
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationInfo, field_validator

SlotType = Literal["delivery", "pickup"]
SlotStatus = Literal["active", "inactive", "cancelled"]


class ScheduleBase(BaseModel):
    date: dt.date
    start_time: dt.time = Field(..., validation_alias=AliasChoices("start_time", "startTime"))
    end_time: dt.time = Field(..., validation_alias=AliasChoices("end_time", "endTime"))
    type: SlotType
    location: str = Field(..., min_length=1, max_length=300)
    max_slots: int = Field(..., gt=0, validation_alias=AliasChoices("max_slots", "maxSlots"))
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("end_time")
    def validate_time_range(cls, end_time: dt.time, info: ValidationInfo) -> dt.time:
        start_time = info.data.get("start_time")
        if start_time and end_time <= start_time:
            raise ValueError("end_time must be after start_time")
        return end_time

    @field_validator("location")
    def validate_location(cls, location: str) -> str:
        if not location.strip():
            raise ValueError("location must not be blank")
        return location.strip()


class ScheduleCreate(ScheduleBase):
    id_admin: Optional[int] = Field(
        None, gt=0, validation_alias=AliasChoices("id_admin", "adminId")
    )


class ScheduleUpdate(BaseModel):
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = Field(
        None, validation_alias=AliasChoices("start_time", "startTime")
    )
    end_time: Optional[dt.time] = Field(None, validation_alias=AliasChoices("end_time", "endTime"))
    location: Optional[str] = Field(None, min_length=1, max_length=300)
    max_slots: Optional[int] = Field(
        None, gt=0, validation_alias=AliasChoices("max_slots", "maxSlots")
    )
    status: Optional[SlotStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)


class UserSummary(BaseModel):
    id_user: int
    name: str
    lastname: str
    email: str
    phone: Optional[str]

    class Config:
        from_attributes = True


class ScheduleResponse(BaseModel):
    id_schedule: int
    id_admin: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    type: str
    location: str
    max_slots: int
    status: str
    notes: Optional[str]
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class ScheduleAvailabilityResponse(ScheduleResponse):
    current_bookings: int
    available_slots: int
    is_available: bool


class ScheduleDeleteResponse(BaseModel):
    id_schedule: int
    deleted: bool
    status: str
