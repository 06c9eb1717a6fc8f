import logging
from datetime import date, datetime, time, timezone
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    AssignmentError,
    AuthorizationError,
    CapacityExceededError,
    DuplicateBookingError,
    InvalidStateError,
    NotFoundError,
    PreconditionError,
    TemporalOrderError,
    ValidationError,
)
from app.core.security import Principal
from app.models.booking import BOOKING_STATUS_CANCELLED, BOOKING_STATUS_PENDING, Booking
from app.models.delivery import DELIVERY_STATUS_COMPLETED, DeliveryRecord
from app.models.schedule_slot import SLOT_STATUS_ACTIVE, SLOT_TYPE_PICKUP, ScheduleSlot
from app.repository import (
    assignment_repository,
    booking_repository,
    delivery_repository,
    schedule_repository,
)
from app.schemas.booking import BookingStatusUpdate, PickupBookingCreate
from app.services.assignment_resolver import AssignmentResolver
from app.services.capacity_ledger import CapacityLedger
from app.services.notification_client import NotificationClient
from app.services.status_transitions import (
    BOOKING_TRANSITIONS,
    booking_status,
    ensure_transition,
)

logger = logging.getLogger(__name__)


def _ensure_timezone(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def completion_date(delivery: DeliveryRecord) -> Optional[date]:
    """UTC calendar date on which the delivery was completed."""

    completed_at = delivery.completed_at or delivery.updated_at
    if completed_at is None:
        return None
    return _ensure_timezone(completed_at).date()


def resolve_preferred_time(slot: ScheduleSlot, preferred_time: Optional[time]) -> time:
    if preferred_time is None:
        return slot.start_time
    if not slot.start_time <= preferred_time < slot.end_time:
        raise ValidationError(
            f"Preferred time must fall between {slot.start_time.strftime('%H:%M')} "
            f"and {slot.end_time.strftime('%H:%M')}"
        )
    return preferred_time


class BookingService:
    """Creates pickup bookings and moves them through their status machine."""

    _EXCLUDED_BOOKING_STATUSES = (BOOKING_STATUS_CANCELLED,)

    def __init__(self, db: Session, notifier: Optional[NotificationClient] = None):
        self.db = db
        self.ledger = CapacityLedger(db)
        self.resolver = AssignmentResolver(db)
        self.notifier = notifier or NotificationClient()

    def _buyer_email(self, buyer: Principal) -> Optional[str]:
        if buyer.email:
            return buyer.email
        user = assignment_repository.get_user(self.db, buyer.user_id)
        return user.email if user is not None else None

    def _get_delivery(self, payload: PickupBookingCreate) -> DeliveryRecord:
        if payload.id_listing is None:
            delivery = delivery_repository.get_delivery(self.db, payload.id_delivery)
        else:
            delivery = delivery_repository.get_delivery_for_listing(
                self.db, payload.id_delivery, payload.id_listing
            )
        if delivery is None:
            raise NotFoundError("Delivery not found for this product")

        if delivery_repository.get_listing(self.db, delivery.id_listing) is None:
            raise NotFoundError("Product not found")
        return delivery

    def _get_pickup_slot(self, schedule_id: int) -> ScheduleSlot:
        slot = schedule_repository.get_schedule(self.db, schedule_id)
        if slot is None or slot.type != SLOT_TYPE_PICKUP:
            raise NotFoundError("Pickup schedule not found")
        if slot.status != SLOT_STATUS_ACTIVE:
            raise InvalidStateError("Schedule is not active")
        return slot

    def create_pickup_booking(
        self,
        buyer: Principal,
        payload: PickupBookingCreate,
        *,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Booking:
        """Book a buyer into an admin's pickup slot.

        Checks run in a fixed order so that the first failing one decides the
        error returned: delivery, completion, slot, assigned admin, slot
        ownership, capacity, duplicates, then date ordering. The capacity
        reservation and the insert share one transaction; nothing is written
        unless both succeed.
        """

        delivery = self._get_delivery(payload)

        if (delivery.status or "").lower() != DELIVERY_STATUS_COMPLETED:
            raise PreconditionError("Delivery must be completed before booking a pickup")

        slot = self._get_pickup_slot(payload.id_schedule)

        resolution = self.resolver.resolve_assigned_admin(
            product_id=delivery.id_listing,
            buyer_id=buyer.user_id,
            buyer_email=self._buyer_email(buyer),
        )
        if not resolution.is_assigned:
            logger.warning(
                "Buyer %s has no assigned order for listing %s",
                buyer.user_id,
                delivery.id_listing,
            )
            raise AssignmentError()
        admin_id = self.resolver.cross_check(resolution, delivery)

        if slot.id_admin != admin_id:
            logger.warning(
                "Buyer %s tried to book schedule %s owned by admin %s; order is handled by admin %s",
                buyer.user_id,
                slot.id_schedule,
                slot.id_admin,
                admin_id,
            )
            raise AuthorizationError("You can only book schedules from your assigned admin")

        if not self.ledger.has_capacity(slot):
            logger.warning(
                "Schedule %s is full (max_slots=%s)", slot.id_schedule, slot.max_slots
            )
            raise CapacityExceededError()

        if booking_repository.buyer_has_active_booking(
            self.db,
            delivery_id=delivery.id_delivery,
            buyer_id=buyer.user_id,
            excluded_statuses=self._EXCLUDED_BOOKING_STATUSES,
        ):
            raise DuplicateBookingError("You already have a pickup booking for this delivery")

        completed_on = completion_date(delivery)
        if completed_on is None or slot.date <= completed_on:
            raise TemporalOrderError(
                "Pickup schedule must be on a date after the delivery was completed"
            )

        preferred_time = resolve_preferred_time(slot, payload.preferred_time)
        now = datetime.now(timezone.utc)

        try:
            self.ledger.reserve(slot)
            booking = booking_repository.add_booking(
                self.db,
                {
                    "id_listing": delivery.id_listing,
                    "id_buyer": buyer.user_id,
                    "id_seller": delivery.id_seller,
                    "id_admin": admin_id,
                    "id_schedule": slot.id_schedule,
                    "id_delivery": delivery.id_delivery,
                    "preferred_time": preferred_time,
                    "notes": payload.notes or "",
                    "status": BOOKING_STATUS_PENDING,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(
                "Duplicate pickup booking rejected for buyer %s and delivery %s: %s",
                buyer.user_id,
                delivery.id_delivery,
                exc.orig,
            )
            raise DuplicateBookingError(
                "You already have a pickup booking for this delivery"
            ) from exc
        except Exception:
            self.db.rollback()
            raise

        booking = booking_repository.get_booking(self.db, booking.id_booking)
        logger.info(
            "Buyer %s booked pickup %s on schedule %s (admin %s, delivery %s)",
            buyer.user_id,
            booking.id_booking,
            booking.id_schedule,
            booking.id_admin,
            booking.id_delivery,
        )

        if background_tasks is not None:
            background_tasks.add_task(
                self.notifier.send_booking_event, "created", self._event_payload(booking)
            )
        return booking

    def transition_booking_status(
        self,
        admin: Principal,
        payload: BookingStatusUpdate,
        *,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Booking:

        target = booking_status(payload.status)

        booking = booking_repository.get_booking(self.db, payload.id_booking)
        if booking is None:
            raise NotFoundError("Booking not found")

        if booking.id_admin != admin.user_id:
            logger.warning(
                "Admin %s tried to update booking %s owned by admin %s",
                admin.user_id,
                booking.id_booking,
                booking.id_admin,
            )
            raise AuthorizationError("Only the assigned admin can update this booking")

        previous = booking.status
        ensure_transition(previous, target, BOOKING_TRANSITIONS)

        values = {"status": target, "updated_at": datetime.now(timezone.utc)}
        if payload.admin_notes is not None:
            values["admin_notes"] = payload.admin_notes

        booking_id = booking.id_booking
        schedule_id = booking.id_schedule
        try:
            if not booking_repository.update_booking_status(
                self.db, booking_id, previous=previous, values=values
            ):
                logger.warning(
                    "Booking %s left status %s before admin %s could move it to %s",
                    booking_id,
                    previous,
                    admin.user_id,
                    target,
                )
                raise InvalidStateError("Booking status changed concurrently; reload and retry")
            if target == BOOKING_STATUS_CANCELLED:
                self.ledger.release(schedule_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        booking = booking_repository.get_booking(self.db, booking_id)

        logger.info(
            "Admin %s moved booking %s from %s to %s",
            admin.user_id,
            booking.id_booking,
            previous,
            target,
        )

        if background_tasks is not None:
            background_tasks.add_task(
                self.notifier.send_booking_event, target, self._event_payload(booking)
            )
        return booking

    @staticmethod
    def _event_payload(booking: Booking) -> dict:
        return {
            "id_booking": booking.id_booking,
            "id_buyer": booking.id_buyer,
            "id_admin": booking.id_admin,
            "id_schedule": booking.id_schedule,
            "id_delivery": booking.id_delivery,
            "status": booking.status,
        }


__all__ = ["BookingService", "completion_date", "resolve_preferred_time"]
