"""SQLAlchemy models for the fulfillment service."""
from app.models.user import User
from app.models.listing import Listing
from app.models.schedule_slot import ScheduleSlot
from app.models.delivery import DeliveryRecord
from app.models.order_assignment import OrderAssignment
from app.models.booking import Booking

__all__ = ["User", "Listing", "ScheduleSlot", "DeliveryRecord", "OrderAssignment", "Booking"]
