from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.models.booking import Booking


def list_bookings(
    db: Session,
    *,
    buyer_id: Optional[int] = None,
    admin_id: Optional[int] = None,
    status_filter: Optional[str] = None,
    schedule_id: Optional[int] = None,
    delivery_id: Optional[int] = None,
) -> list[Booking]:
    query = db.query(Booking)

    if buyer_id is not None:
        query = query.filter(Booking.id_buyer == buyer_id)
    if admin_id is not None:
        query = query.filter(Booking.id_admin == admin_id)
    if status_filter is not None:
        query = query.filter(Booking.status == status_filter)
    if schedule_id is not None:
        query = query.filter(Booking.id_schedule == schedule_id)
    if delivery_id is not None:
        query = query.filter(Booking.id_delivery == delivery_id)

    return query.order_by(Booking.created_at.desc(), Booking.id_booking.desc()).all()


def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
    return db.query(Booking).filter(Booking.id_booking == booking_id).first()


def _exclude_statuses(query, excluded_statuses: Iterable[str]):
    filtered_statuses = [
        status_value.lower()
        for status_value in excluded_statuses
        if status_value
    ]

    if filtered_statuses:
        query = query.filter(func.lower(Booking.status).notin_(filtered_statuses))
    return query


def count_schedule_bookings(
    db: Session,
    schedule_id: int,
    *,
    excluded_statuses: Iterable[str] = (),
) -> int:
    query = db.query(func.count(Booking.id_booking)).filter(Booking.id_schedule == schedule_id)
    return _exclude_statuses(query, excluded_statuses).scalar() or 0


def schedule_has_bookings(db: Session, schedule_id: int) -> bool:
    return (
        db.query(Booking.id_booking).filter(Booking.id_schedule == schedule_id).first()
        is not None
    )


def buyer_has_active_booking(
    db: Session,
    *,
    delivery_id: int,
    buyer_id: int,
    excluded_statuses: Iterable[str] = (),
) -> bool:
    query = (
        db.query(Booking.id_booking)
        .filter(Booking.id_delivery == delivery_id)
        .filter(Booking.id_buyer == buyer_id)
    )
    return _exclude_statuses(query, excluded_statuses).first() is not None


def add_booking(db: Session, booking_data: dict) -> Booking:
    """Stage a booking in the current transaction; the caller commits."""

    booking = Booking(**booking_data)
    db.add(booking)
    db.flush([booking])
    return booking


def update_booking_status(
    db: Session, booking_id: int, *, previous: str, values: dict
) -> bool:
    """Apply ``values`` only while the booking is still in ``previous``.

    Returns False when another writer moved the booking first. Nothing is
    committed here.
    """

    result = db.execute(
        update(Booking)
        .where(Booking.id_booking == booking_id)
        .where(Booking.status == previous)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
