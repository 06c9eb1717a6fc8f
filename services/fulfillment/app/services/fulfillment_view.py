"""Read-only views over bookings and deliveries.

Nothing here writes; every method applies the caller's visibility rule and
returns ORM rows with their slot, listing and party relationships loaded for
the response models to flatten.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import AuthorizationError, NotFoundError
from app.core.security import Principal
from app.models.booking import BOOKING_STATUSES, Booking
from app.models.delivery import DELIVERY_STATUSES, DeliveryRecord
from app.repository import assignment_repository, booking_repository, delivery_repository
from app.services.assignment_resolver import AssignmentResolver, belongs_to_buyer
from app.services.status_transitions import normalize_status

logger = logging.getLogger(__name__)


class FulfillmentViewService:

    def __init__(self, db: Session):
        self.db = db

    def list_bookings(
        self,
        viewer: Principal,
        *,
        status_filter: Optional[str] = None,
        schedule_id: Optional[int] = None,
        delivery_id: Optional[int] = None,
        buyer_id: Optional[int] = None,
        admin_id: Optional[int] = None,
    ) -> List[Booking]:

        if viewer.is_buyer:
            buyer_id = viewer.user_id
        elif not viewer.is_admin:
            raise AuthorizationError("Only buyers and admins can view pickup bookings")

        if status_filter is not None:
            status_filter = normalize_status(status_filter, BOOKING_STATUSES)

        return booking_repository.list_bookings(
            self.db,
            buyer_id=buyer_id,
            admin_id=admin_id,
            status_filter=status_filter,
            schedule_id=schedule_id,
            delivery_id=delivery_id,
        )

    def get_booking(self, viewer: Principal, booking_id: int) -> Booking:

        if not (viewer.is_buyer or viewer.is_admin):
            raise AuthorizationError("Only buyers and admins can view pickup bookings")

        booking = booking_repository.get_booking(self.db, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        if viewer.is_buyer and booking.id_buyer != viewer.user_id:
            raise AuthorizationError("You can only view your own bookings")
        return booking

    def list_deliveries(
        self,
        viewer: Principal,
        *,
        status_filter: Optional[str] = None,
        schedule_id: Optional[int] = None,
        listing_id: Optional[int] = None,
        admin_id: Optional[int] = None,
    ) -> List[DeliveryRecord]:

        seller_id = None
        if viewer.is_seller:
            seller_id = viewer.user_id
        elif not viewer.is_admin:
            raise AuthorizationError("Only sellers and admins can view deliveries")

        if status_filter is not None:
            status_filter = normalize_status(status_filter, DELIVERY_STATUSES)

        return delivery_repository.list_deliveries(
            self.db,
            seller_id=seller_id,
            admin_id=admin_id,
            status_filter=status_filter,
            schedule_id=schedule_id,
            listing_id=listing_id,
        )

    def get_order_admin(self, buyer: Principal, order_id: int) -> dict:
        """Contact details of the admin handling one of the buyer's orders."""

        assignment = assignment_repository.get_assignment_by_order(self.db, order_id)
        if assignment is None or not belongs_to_buyer(assignment, buyer.user_id, buyer.email):
            raise NotFoundError("Order not found")

        resolution = AssignmentResolver(self.db).resolve_assigned_admin(
            order_id=order_id,
            buyer_id=buyer.user_id,
            buyer_email=buyer.email,
        )
        if not resolution.is_assigned:
            return {
                "id_order": order_id,
                "has_assigned_admin": False,
                "admin": None,
                "assigned_at": None,
                "source": None,
                "message": "No admin has been assigned to this order yet",
            }

        admin = assignment_repository.get_user(self.db, resolution.admin_id)
        if admin is None:
            logger.warning(
                "Order %s is assigned to admin %s who does not exist",
                order_id,
                resolution.admin_id,
            )
            raise NotFoundError("Assigned admin not found")

        return {
            "id_order": order_id,
            "has_assigned_admin": True,
            "admin": admin,
            "assigned_at": resolution.assigned_at,
            "source": resolution.source,
            "message": "Admin assigned",
        }


__all__ = ["FulfillmentViewService"]
