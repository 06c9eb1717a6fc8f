from __future__ import annotations

from datetime import date, time
from typing import Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.models.schedule_slot import ScheduleSlot


def get_schedule(db: Session, schedule_id: int) -> Optional[ScheduleSlot]:
    return db.query(ScheduleSlot).filter(ScheduleSlot.id_schedule == schedule_id).first()


def get_admin_schedule(db: Session, schedule_id: int, admin_id: int) -> Optional[ScheduleSlot]:
    return (
        db.query(ScheduleSlot)
        .filter(ScheduleSlot.id_schedule == schedule_id)
        .filter(ScheduleSlot.id_admin == admin_id)
        .first()
    )


def list_schedules(
    db: Session,
    *,
    admin_ids: Optional[Sequence[int]] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    type_filter: Optional[str] = None,
    status_filter: Optional[str] = None,
) -> list[ScheduleSlot]:
    query = db.query(ScheduleSlot)

    if admin_ids is not None:
        if not admin_ids:
            return []
        query = query.filter(ScheduleSlot.id_admin.in_(list(admin_ids)))
    if date_from is not None:
        query = query.filter(ScheduleSlot.date >= date_from)
    if date_to is not None:
        query = query.filter(ScheduleSlot.date <= date_to)
    if type_filter is not None:
        query = query.filter(ScheduleSlot.type == type_filter)
    if status_filter is not None:
        query = query.filter(ScheduleSlot.status == status_filter)

    return query.order_by(ScheduleSlot.date, ScheduleSlot.start_time).all()


def admin_has_schedule_in_range(
    db: Session,
    *,
    admin_id: int,
    slot_date: date,
    slot_type: str,
    start_time: time,
    end_time: time,
    exclude_schedule_id: Optional[int] = None,
    exclude_statuses: Optional[Sequence[str]] = None,
) -> bool:
    """Return ``True`` when the admin already publishes an overlapping slot."""

    query = (
        db.query(ScheduleSlot.id_schedule)
        .filter(ScheduleSlot.id_admin == admin_id)
        .filter(ScheduleSlot.date == slot_date)
        .filter(ScheduleSlot.type == slot_type)
        .filter(ScheduleSlot.start_time < end_time)
        .filter(ScheduleSlot.end_time > start_time)
    )

    if exclude_schedule_id is not None:
        query = query.filter(ScheduleSlot.id_schedule != exclude_schedule_id)

    normalized_excluded = [
        status_value.strip().lower()
        for status_value in (exclude_statuses or ())
        if status_value and status_value.strip()
    ]

    if normalized_excluded:
        query = query.filter(~func.lower(ScheduleSlot.status).in_(normalized_excluded))

    return query.first() is not None


def create_schedule(db: Session, schedule_data: dict) -> ScheduleSlot:
    schedule = ScheduleSlot(**schedule_data)
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    return schedule


def save_schedule(db: Session, schedule: ScheduleSlot) -> ScheduleSlot:
    db.flush()
    db.commit()
    db.refresh(schedule)
    return schedule


def delete_schedule(db: Session, schedule: ScheduleSlot) -> None:
    db.delete(schedule)
    db.commit()


def reserve_slot(db: Session, schedule_id: int) -> bool:
    """Atomically take one unit of capacity from a slot.

    A single conditional ``UPDATE`` both checks and increments the counter, so
    two concurrent callers can never both take the last unit. The caller owns
    the transaction: nothing is committed here.
    """

    result = db.execute(
        update(ScheduleSlot)
        .where(ScheduleSlot.id_schedule == schedule_id)
        .where(ScheduleSlot.reserved_slots < ScheduleSlot.max_slots)
        .values(reserved_slots=ScheduleSlot.reserved_slots + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def release_slot(db: Session, schedule_id: int) -> bool:
    """Give one unit of capacity back; never drops the counter below zero."""

    result = db.execute(
        update(ScheduleSlot)
        .where(ScheduleSlot.id_schedule == schedule_id)
        .where(ScheduleSlot.reserved_slots > 0)
        .values(reserved_slots=ScheduleSlot.reserved_slots - 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
