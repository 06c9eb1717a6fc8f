"""Pydantic schemas for delivery bookings."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from app.schemas.schedule import ScheduleResponse, UserSummary


class DeliveryCreate(BaseModel):
    id_listing: int = Field(..., gt=0, validation_alias=AliasChoices("id_listing", "productId"))
    id_schedule: int = Field(
        ..., gt=0, validation_alias=AliasChoices("id_schedule", "adminScheduleId")
    )
    preferred_time: Optional[dt.time] = Field(
        None, validation_alias=AliasChoices("preferred_time", "preferredTime")
    )
    notes: Optional[str] = Field(None, max_length=1000)


class DeliveryStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=30)
    admin_notes: Optional[str] = Field(
        None, max_length=1000, validation_alias=AliasChoices("admin_notes", "adminNotes")
    )


class ListingSummary(BaseModel):
    id_listing: int
    title: str
    price: Decimal
    status: str
    id_seller: int

    class Config:
        from_attributes = True


class DeliverySummary(BaseModel):
    id_delivery: int
    id_listing: int
    id_seller: int
    id_admin: Optional[int]
    status: str
    completed_at: Optional[dt.datetime]

    class Config:
        from_attributes = True


class DeliveryResponse(DeliverySummary):
    id_schedule: Optional[int]
    preferred_time: Optional[dt.time]
    notes: str
    admin_notes: Optional[str]
    created_at: dt.datetime
    updated_at: dt.datetime


class DeliveryViewResponse(DeliveryResponse):
    schedule: Optional[ScheduleResponse] = None
    listing: Optional[ListingSummary] = None
    seller: Optional[UserSummary] = None
