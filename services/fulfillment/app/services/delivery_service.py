import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    AuthorizationError,
    CapacityExceededError,
    DuplicateBookingError,
    InvalidStateError,
    NotFoundError,
)
from app.core.security import Principal
from app.models.delivery import (
    DELIVERY_STATUS_CANCELLED,
    DELIVERY_STATUS_COMPLETED,
    DELIVERY_STATUS_PENDING,
    DeliveryRecord,
)
from app.models.schedule_slot import SLOT_STATUS_ACTIVE, SLOT_TYPE_DELIVERY, ScheduleSlot
from app.repository import delivery_repository, schedule_repository
from app.schemas.delivery import DeliveryCreate, DeliveryStatusUpdate
from app.services.booking_service import resolve_preferred_time
from app.services.capacity_ledger import CapacityLedger
from app.services.notification_client import NotificationClient
from app.services.status_transitions import (
    DELIVERY_TRANSITIONS,
    delivery_status,
    ensure_transition,
)

logger = logging.getLogger(__name__)


class DeliveryService:

    _EXCLUDED_DELIVERY_STATUSES = (DELIVERY_STATUS_CANCELLED,)

    def __init__(self, db: Session, notifier: Optional[NotificationClient] = None):
        self.db = db
        self.ledger = CapacityLedger(db)
        self.notifier = notifier or NotificationClient()

    def _get_delivery_slot(self, schedule_id: int) -> ScheduleSlot:
        slot = schedule_repository.get_schedule(self.db, schedule_id)
        if slot is None or slot.type != SLOT_TYPE_DELIVERY:
            raise NotFoundError("Delivery schedule not found")
        if slot.status != SLOT_STATUS_ACTIVE:
            raise InvalidStateError("Schedule is not active")
        return slot

    def create_delivery_booking(
        self,
        seller: Principal,
        payload: DeliveryCreate,
        *,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> DeliveryRecord:
        """Book a seller's product into an admin delivery slot.

        The slot owner becomes the admin responsible for the delivery.
        """

        listing = delivery_repository.get_listing(self.db, payload.id_listing)
        if listing is None or listing.id_seller != seller.user_id:
            raise NotFoundError("Product not found or does not belong to you")

        slot = self._get_delivery_slot(payload.id_schedule)

        if not self.ledger.has_capacity(slot):
            logger.warning(
                "Delivery schedule %s is full (max_slots=%s)", slot.id_schedule, slot.max_slots
            )
            raise CapacityExceededError()

        if delivery_repository.seller_has_active_delivery(
            self.db,
            listing_id=listing.id_listing,
            seller_id=seller.user_id,
            excluded_statuses=self._EXCLUDED_DELIVERY_STATUSES,
        ):
            raise DuplicateBookingError("You already have a delivery booking for this product")

        preferred_time = resolve_preferred_time(slot, payload.preferred_time)
        now = datetime.now(timezone.utc)

        try:
            self.ledger.reserve(slot)
            delivery = delivery_repository.add_delivery(
                self.db,
                {
                    "id_listing": listing.id_listing,
                    "id_seller": seller.user_id,
                    "id_admin": slot.id_admin,
                    "id_schedule": slot.id_schedule,
                    "preferred_time": preferred_time,
                    "notes": payload.notes or "",
                    "status": DELIVERY_STATUS_PENDING,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(
                "Duplicate delivery booking rejected for seller %s and listing %s: %s",
                seller.user_id,
                listing.id_listing,
                exc.orig,
            )
            raise DuplicateBookingError(
                "You already have a delivery booking for this product"
            ) from exc
        except Exception:
            self.db.rollback()
            raise

        delivery = delivery_repository.get_delivery(self.db, delivery.id_delivery)
        logger.info(
            "Seller %s booked delivery %s for listing %s on schedule %s (admin %s)",
            seller.user_id,
            delivery.id_delivery,
            delivery.id_listing,
            delivery.id_schedule,
            delivery.id_admin,
        )

        if background_tasks is not None:
            background_tasks.add_task(
                self.notifier.send_delivery_event, "created", self._event_payload(delivery)
            )
        return delivery

    def transition_delivery_status(
        self,
        admin: Principal,
        delivery_id: int,
        payload: DeliveryStatusUpdate,
        *,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> DeliveryRecord:

        target = delivery_status(payload.status)

        delivery = delivery_repository.get_delivery(self.db, delivery_id)
        if delivery is None:
            raise NotFoundError("Delivery not found")

        if delivery.id_admin != admin.user_id:
            logger.warning(
                "Admin %s tried to update delivery %s held by admin %s",
                admin.user_id,
                delivery_id,
                delivery.id_admin,
            )
            raise AuthorizationError("Only the assigned admin can update this delivery")

        previous = delivery.status
        ensure_transition(previous, target, DELIVERY_TRANSITIONS)

        now = datetime.now(timezone.utc)
        values = {"status": target, "updated_at": now}
        if target == DELIVERY_STATUS_COMPLETED:
            values["completed_at"] = now
        if payload.admin_notes is not None:
            values["admin_notes"] = payload.admin_notes

        schedule_id = delivery.id_schedule
        try:
            if not delivery_repository.update_delivery_status(
                self.db, delivery_id, previous=previous, values=values
            ):
                logger.warning(
                    "Delivery %s left status %s before admin %s could move it to %s",
                    delivery_id,
                    previous,
                    admin.user_id,
                    target,
                )
                raise InvalidStateError("Delivery status changed concurrently; reload and retry")
            if target == DELIVERY_STATUS_CANCELLED and schedule_id is not None:
                self.ledger.release(schedule_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        delivery = delivery_repository.get_delivery(self.db, delivery_id)

        logger.info(
            "Admin %s moved delivery %s from %s to %s",
            admin.user_id,
            delivery_id,
            previous,
            target,
        )

        if background_tasks is not None:
            background_tasks.add_task(
                self.notifier.send_delivery_event, target, self._event_payload(delivery)
            )
        return delivery

    @staticmethod
    def _event_payload(delivery: DeliveryRecord) -> dict:
        return {
            "id_delivery": delivery.id_delivery,
            "id_listing": delivery.id_listing,
            "id_seller": delivery.id_seller,
            "id_admin": delivery.id_admin,
            "status": delivery.status,
        }


__all__ = ["DeliveryService"]
