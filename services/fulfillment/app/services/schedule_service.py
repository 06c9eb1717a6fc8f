import logging
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ScheduleConflictError,
    ValidationError,
)
from app.core.security import Principal
from app.models.schedule_slot import (
    SLOT_STATUS_ACTIVE,
    SLOT_STATUS_CANCELLED,
    SLOT_STATUSES,
    SLOT_TYPE_PICKUP,
    SLOT_TYPES,
    ScheduleSlot,
)
from app.repository import assignment_repository, delivery_repository, schedule_repository
from app.schemas.schedule import ScheduleCreate, ScheduleUpdate
from app.services.capacity_ledger import CapacityLedger

logger = logging.getLogger(__name__)

_CONFLICT_SCHEDULE_EXCLUDED_STATUSES = (SLOT_STATUS_CANCELLED,)
_STATUS_ONLY_FIELDS = {"status", "notes"}


class ScheduleService:

    def __init__(self, db: Session):
        self.db = db
        self.ledger = CapacityLedger(db)

    @staticmethod
    def _validate_schedule_window(*, start_time: time, end_time: time) -> None:
        if end_time <= start_time:
            raise ValidationError("end_time must be after start_time")

    @staticmethod
    def _validate_max_slots(max_slots: int) -> None:
        if max_slots < 1 or max_slots > settings.MAX_SLOTS_PER_SCHEDULE:
            raise ValidationError(
                f"Max slots must be between 1 and {settings.MAX_SLOTS_PER_SCHEDULE}"
            )

    def _ensure_no_overlap(
        self,
        *,
        admin_id: int,
        slot_date: date,
        slot_type: str,
        start_time: time,
        end_time: time,
        exclude_schedule_id: Optional[int] = None,
    ) -> None:
        if schedule_repository.admin_has_schedule_in_range(
            self.db,
            admin_id=admin_id,
            slot_date=slot_date,
            slot_type=slot_type,
            start_time=start_time,
            end_time=end_time,
            exclude_schedule_id=exclude_schedule_id,
            exclude_statuses=_CONFLICT_SCHEDULE_EXCLUDED_STATUSES,
        ):
            raise ScheduleConflictError()

    def get_schedule(self, admin: Principal, schedule_id: int) -> ScheduleSlot:

        schedule = schedule_repository.get_admin_schedule(self.db, schedule_id, admin.user_id)
        if schedule is None:
            raise NotFoundError("Schedule not found or access denied")
        return schedule

    def create_schedule(self, admin: Principal, payload: ScheduleCreate) -> ScheduleSlot:

        if payload.id_admin is not None and payload.id_admin != admin.user_id:
            raise AuthorizationError("Schedules can only be created for your own account")
        if payload.type not in SLOT_TYPES:
            raise ValidationError("Type must be either delivery or pickup")

        self._validate_schedule_window(start_time=payload.start_time, end_time=payload.end_time)
        self._validate_max_slots(payload.max_slots)
        self._ensure_no_overlap(
            admin_id=admin.user_id,
            slot_date=payload.date,
            slot_type=payload.type,
            start_time=payload.start_time,
            end_time=payload.end_time,
        )

        now = datetime.now(timezone.utc)
        schedule_data = payload.model_dump(exclude={"id_admin"})
        schedule_data.update(
            id_admin=admin.user_id,
            status=SLOT_STATUS_ACTIVE,
            reserved_slots=0,
            notes=payload.notes or "",
            created_at=now,
            updated_at=now,
        )

        schedule = schedule_repository.create_schedule(self.db, schedule_data)
        logger.info(
            "Admin %s created %s schedule %s on %s (%s - %s, %s slots)",
            admin.user_id,
            schedule.type,
            schedule.id_schedule,
            schedule.date,
            schedule.start_time,
            schedule.end_time,
            schedule.max_slots,
        )
        return schedule

    def update_schedule(
        self, admin: Principal, schedule_id: int, payload: ScheduleUpdate
    ) -> ScheduleSlot:

        schedule = self.get_schedule(admin, schedule_id)
        update_data = payload.model_dump(exclude_unset=True)

        if not update_data:
            return schedule

        if schedule.status == SLOT_STATUS_CANCELLED:
            raise InvalidStateError("Cancelled schedules cannot be modified")

        if "status" in update_data and update_data["status"] not in SLOT_STATUSES:
            raise ValidationError(f"Invalid status '{update_data['status']}'")

        active_bookings = self.ledger.count_active_bookings(schedule)
        structural_changes = set(update_data) - _STATUS_ONLY_FIELDS
        if structural_changes and active_bookings > 0:
            raise InvalidStateError("Cannot modify schedule with existing bookings")

        start_time = update_data.get("start_time", schedule.start_time)
        end_time = update_data.get("end_time", schedule.end_time)
        slot_date = update_data.get("date", schedule.date)
        self._validate_schedule_window(start_time=start_time, end_time=end_time)

        if "max_slots" in update_data:
            self._validate_max_slots(update_data["max_slots"])
            if update_data["max_slots"] < schedule.reserved_slots:
                raise InvalidStateError("Max slots cannot drop below the reserved slots")

        if structural_changes & {"date", "start_time", "end_time"}:
            self._ensure_no_overlap(
                admin_id=admin.user_id,
                slot_date=slot_date,
                slot_type=schedule.type,
                start_time=start_time,
                end_time=end_time,
                exclude_schedule_id=schedule.id_schedule,
            )

        for attribute, value in update_data.items():
            setattr(schedule, attribute, value)
        schedule.updated_at = datetime.now(timezone.utc)

        schedule = schedule_repository.save_schedule(self.db, schedule)
        logger.info("Admin %s updated schedule %s: %s", admin.user_id, schedule_id, sorted(update_data))
        return schedule

    def delete_schedule(self, admin: Principal, schedule_id: int) -> Dict[str, object]:
        """Delete an unused schedule, or cancel it when bookings reference it.

        Bookings are never deleted, so a slot they point at is kept as
        ``cancelled`` instead of being removed.
        """

        schedule = self.get_schedule(admin, schedule_id)

        if self.ledger.has_references(schedule):
            schedule.status = SLOT_STATUS_CANCELLED
            schedule.updated_at = datetime.now(timezone.utc)
            schedule_repository.save_schedule(self.db, schedule)
            logger.info("Admin %s cancelled referenced schedule %s", admin.user_id, schedule_id)
            return {"id_schedule": schedule_id, "deleted": False, "status": SLOT_STATUS_CANCELLED}

        schedule_repository.delete_schedule(self.db, schedule)
        logger.info("Admin %s deleted schedule %s", admin.user_id, schedule_id)
        return {"id_schedule": schedule_id, "deleted": True, "status": "deleted"}

    def list_schedules(
        self,
        admin: Principal,
        *,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        type_filter: Optional[str] = None,
        status_filter: Optional[str] = None,
    ) -> List[dict]:

        if date_from is not None and date_to is not None and date_to < date_from:
            raise ValidationError("date_to must not be before date_from")

        schedules = schedule_repository.list_schedules(
            self.db,
            admin_ids=[admin.user_id],
            date_from=date_from,
            date_to=date_to,
            type_filter=type_filter,
            status_filter=status_filter,
        )
        return [self._with_availability(schedule) for schedule in schedules]

    def list_available_for_buyer(
        self,
        buyer: Principal,
        *,
        target_date: Optional[date] = None,
    ) -> List[dict]:
        """Active pickup slots of the admins handling the buyer's orders.

        A slot is offered only while it has free capacity and its admin has
        completed the delivery of at least one of the buyer's products.
        """

        assignments = assignment_repository.list_buyer_assignments(
            self.db, buyer_id=buyer.user_id, buyer_email=buyer.email
        )
        if not assignments:
            logger.info("Buyer %s has no orders with assigned admins", buyer.user_id)
            return []

        admin_ids = sorted({assignment.id_admin for assignment in assignments})
        listing_ids = sorted({assignment.id_listing for assignment in assignments})

        schedules = schedule_repository.list_schedules(
            self.db,
            admin_ids=admin_ids,
            date_from=target_date,
            date_to=target_date,
            type_filter=SLOT_TYPE_PICKUP,
            status_filter=SLOT_STATUS_ACTIVE,
        )

        delivered_by_admin = {
            admin_id: delivery_repository.admin_has_completed_delivery(
                self.db, admin_id=admin_id, listing_ids=listing_ids
            )
            for admin_id in admin_ids
        }

        available: List[dict] = []
        for schedule in schedules:
            entry = self._with_availability(schedule)
            if entry["is_available"] and delivered_by_admin.get(schedule.id_admin):
                available.append(entry)
        return available

    def _with_availability(self, schedule: ScheduleSlot) -> dict:
        current = self.ledger.count_active_bookings(schedule)
        available_slots = max(schedule.max_slots - current, 0)
        return {
            "id_schedule": schedule.id_schedule,
            "id_admin": schedule.id_admin,
            "date": schedule.date,
            "start_time": schedule.start_time,
            "end_time": schedule.end_time,
            "type": schedule.type,
            "location": schedule.location,
            "max_slots": schedule.max_slots,
            "status": schedule.status,
            "notes": schedule.notes,
            "created_at": schedule.created_at,
            "updated_at": schedule.updated_at,
            "current_bookings": current,
            "available_slots": available_slots,
            "is_available": schedule.status == SLOT_STATUS_ACTIVE and available_slots > 0,
        }
