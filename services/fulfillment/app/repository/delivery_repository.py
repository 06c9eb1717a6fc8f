from __future__ import annotations

from typing import Iterable, Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.models.delivery import DeliveryRecord
from app.models.listing import Listing


def get_listing(db: Session, listing_id: int) -> Optional[Listing]:
    return db.query(Listing).filter(Listing.id_listing == listing_id).first()


def get_delivery(db: Session, delivery_id: int) -> Optional[DeliveryRecord]:
    return (
        db.query(DeliveryRecord)
        .filter(DeliveryRecord.id_delivery == delivery_id)
        .first()
    )


def get_delivery_for_listing(
    db: Session, delivery_id: int, listing_id: int
) -> Optional[DeliveryRecord]:
    return (
        db.query(DeliveryRecord)
        .filter(DeliveryRecord.id_delivery == delivery_id)
        .filter(DeliveryRecord.id_listing == listing_id)
        .first()
    )


def list_deliveries(
    db: Session,
    *,
    seller_id: Optional[int] = None,
    admin_id: Optional[int] = None,
    status_filter: Optional[str] = None,
    schedule_id: Optional[int] = None,
    listing_id: Optional[int] = None,
) -> list[DeliveryRecord]:
    query = db.query(DeliveryRecord)

    if seller_id is not None:
        query = query.filter(DeliveryRecord.id_seller == seller_id)
    if admin_id is not None:
        query = query.filter(DeliveryRecord.id_admin == admin_id)
    if status_filter is not None:
        query = query.filter(DeliveryRecord.status == status_filter)
    if schedule_id is not None:
        query = query.filter(DeliveryRecord.id_schedule == schedule_id)
    if listing_id is not None:
        query = query.filter(DeliveryRecord.id_listing == listing_id)

    return query.order_by(DeliveryRecord.created_at.desc(), DeliveryRecord.id_delivery.desc()).all()


def admin_has_completed_delivery(
    db: Session, *, admin_id: int, listing_ids: Sequence[int]
) -> bool:
    if not listing_ids:
        return False
    return (
        db.query(DeliveryRecord.id_delivery)
        .filter(DeliveryRecord.id_admin == admin_id)
        .filter(DeliveryRecord.status == "completed")
        .filter(DeliveryRecord.id_listing.in_(list(listing_ids)))
        .first()
        is not None
    )


def _exclude_statuses(query, excluded_statuses: Iterable[str]):
    filtered_statuses = [
        status_value.lower()
        for status_value in excluded_statuses
        if status_value
    ]

    if filtered_statuses:
        query = query.filter(func.lower(DeliveryRecord.status).notin_(filtered_statuses))
    return query


def count_schedule_deliveries(
    db: Session,
    schedule_id: int,
    *,
    excluded_statuses: Iterable[str] = (),
) -> int:
    query = db.query(func.count(DeliveryRecord.id_delivery)).filter(
        DeliveryRecord.id_schedule == schedule_id
    )
    return _exclude_statuses(query, excluded_statuses).scalar() or 0


def schedule_has_deliveries(db: Session, schedule_id: int) -> bool:
    return (
        db.query(DeliveryRecord.id_delivery)
        .filter(DeliveryRecord.id_schedule == schedule_id)
        .first()
        is not None
    )


def seller_has_active_delivery(
    db: Session,
    *,
    listing_id: int,
    seller_id: int,
    excluded_statuses: Iterable[str] = (),
) -> bool:
    query = (
        db.query(DeliveryRecord.id_delivery)
        .filter(DeliveryRecord.id_listing == listing_id)
        .filter(DeliveryRecord.id_seller == seller_id)
    )
    return _exclude_statuses(query, excluded_statuses).first() is not None


def add_delivery(db: Session, delivery_data: dict) -> DeliveryRecord:
    """Stage a delivery in the current transaction; the caller commits."""

    delivery = DeliveryRecord(**delivery_data)
    db.add(delivery)
    db.flush([delivery])
    return delivery


def update_delivery_status(
    db: Session, delivery_id: int, *, previous: str, values: dict
) -> bool:
    """Conditional status update; False when the delivery is no longer in ``previous``."""

    result = db.execute(
        update(DeliveryRecord)
        .where(DeliveryRecord.id_delivery == delivery_id)
        .where(DeliveryRecord.status == previous)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
