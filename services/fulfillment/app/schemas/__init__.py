"""Pydantic schemas for the fulfillment service."""

from app.schemas.schedule import (
    ScheduleAvailabilityResponse,
    ScheduleCreate,
    ScheduleDeleteResponse,
    ScheduleResponse,
    ScheduleUpdate,
    UserSummary,
)
from app.schemas.delivery import (
    DeliveryCreate,
    DeliveryResponse,
    DeliveryStatusUpdate,
    DeliverySummary,
    DeliveryViewResponse,
    ListingSummary,
)
from app.schemas.booking import (
    BookingResponse,
    BookingStatusUpdate,
    BookingViewResponse,
    PickupBookingCreate,
)
from app.schemas.assignment import OrderAdminResponse

__all__ = [
    "ScheduleAvailabilityResponse",
    "ScheduleCreate",
    "ScheduleDeleteResponse",
    "ScheduleResponse",
    "ScheduleUpdate",
    "UserSummary",
    "DeliveryCreate",
    "DeliveryResponse",
    "DeliveryStatusUpdate",
    "DeliverySummary",
    "DeliveryViewResponse",
    "ListingSummary",
    "BookingResponse",
    "BookingStatusUpdate",
    "BookingViewResponse",
    "PickupBookingCreate",
    "OrderAdminResponse",
]
