"""Domain services for the fulfillment service."""

from app.services.schedule_service import ScheduleService
from app.services.booking_service import BookingService
from app.services.delivery_service import DeliveryService
from app.services.fulfillment_view import FulfillmentViewService
from app.services.assignment_resolver import AssignmentResolver
from app.services.capacity_ledger import CapacityLedger
from app.services.notification_client import NotificationClient

__all__ = [
    "ScheduleService",
    "BookingService",
    "DeliveryService",
    "FulfillmentViewService",
    "AssignmentResolver",
    "CapacityLedger",
    "NotificationClient",
]
