"""Pydantic schemas for pickup bookings and their denormalized views."""

import datetime as dt
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from app.schemas.delivery import DeliverySummary, ListingSummary
from app.schemas.schedule import ScheduleResponse, UserSummary


class PickupBookingCreate(BaseModel):
    """Body sent by a buyer to book a pickup slot.

    ``id_listing`` may be omitted; it is then taken from the delivery.
    """

    id_listing: Optional[int] = Field(
        None, gt=0, validation_alias=AliasChoices("id_listing", "productId")
    )
    id_schedule: int = Field(
        ..., gt=0, validation_alias=AliasChoices("id_schedule", "adminScheduleId")
    )
    id_delivery: int = Field(
        ..., gt=0, validation_alias=AliasChoices("id_delivery", "deliveryId")
    )
    preferred_time: Optional[dt.time] = Field(
        None, validation_alias=AliasChoices("preferred_time", "preferredTime")
    )
    notes: Optional[str] = Field(None, max_length=1000)


class BookingStatusUpdate(BaseModel):
    id_booking: int = Field(..., gt=0, validation_alias=AliasChoices("id_booking", "bookingId"))
    status: str = Field(..., min_length=1, max_length=30)
    admin_notes: Optional[str] = Field(
        None, max_length=1000, validation_alias=AliasChoices("admin_notes", "adminNotes")
    )


class BookingResponse(BaseModel):
    id_booking: int
    id_listing: int
    id_buyer: int
    id_seller: Optional[int]
    id_admin: int
    id_schedule: int
    id_delivery: int
    preferred_time: Optional[dt.time]
    notes: str
    status: str
    admin_notes: Optional[str]
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True


class BookingViewResponse(BookingResponse):
    """Booking joined with its slot, listing, buyer and delivery for display."""

    schedule: Optional[ScheduleResponse] = None
    listing: Optional[ListingSummary] = None
    buyer: Optional[UserSummary] = None
    delivery: Optional[DeliverySummary] = None
