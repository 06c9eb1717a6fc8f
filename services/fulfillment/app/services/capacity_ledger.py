"""Slot utilization counting and reservation."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.errors import CapacityExceededError
from app.models.schedule_slot import SLOT_TYPE_DELIVERY, ScheduleSlot
from app.repository import booking_repository, delivery_repository, schedule_repository

logger = logging.getLogger(__name__)

_EXCLUDED_STATUSES = ("cancelled",)


class CapacityLedger:
    """Reports and reserves slot capacity.

    ``count_active_bookings`` and ``has_capacity`` are plain reads and may be
    stale by the time the caller acts on them. ``reserve`` is the
    authoritative check: it goes through the slot's conditional counter update
    and must run inside the transaction that writes the booking.
    """

    def __init__(self, db: Session):
        self.db = db

    def count_active_bookings(self, slot: ScheduleSlot) -> int:
        if slot.type == SLOT_TYPE_DELIVERY:
            return delivery_repository.count_schedule_deliveries(
                self.db,
                slot.id_schedule,
                excluded_statuses=_EXCLUDED_STATUSES,
            )
        return booking_repository.count_schedule_bookings(
            self.db,
            slot.id_schedule,
            excluded_statuses=_EXCLUDED_STATUSES,
        )

    def has_capacity(self, slot: ScheduleSlot) -> bool:
        return self.count_active_bookings(slot) < slot.max_slots

    def available_slots(self, slot: ScheduleSlot) -> int:
        return max(slot.max_slots - self.count_active_bookings(slot), 0)

    def has_references(self, slot: ScheduleSlot) -> bool:
        """Whether any booking, in any status, ever pointed at the slot."""

        if slot.type == SLOT_TYPE_DELIVERY:
            return delivery_repository.schedule_has_deliveries(self.db, slot.id_schedule)
        return booking_repository.schedule_has_bookings(self.db, slot.id_schedule)

    def reserve(self, slot: ScheduleSlot) -> None:
        if not schedule_repository.reserve_slot(self.db, slot.id_schedule):
            logger.warning(
                "Capacity reservation rejected for schedule %s (max_slots=%s)",
                slot.id_schedule,
                slot.max_slots,
            )
            raise CapacityExceededError()

    def release(self, slot_id: int) -> None:
        if not schedule_repository.release_slot(self.db, slot_id):
            logger.warning("Schedule %s had no reserved capacity to release", slot_id)


__all__ = ["CapacityLedger"]
