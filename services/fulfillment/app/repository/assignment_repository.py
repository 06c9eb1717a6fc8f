"""Read-only queries over order assignments and the users they point at."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.order_assignment import OrderAssignment
from app.models.user import User


def get_assignment_by_order(db: Session, order_id: int) -> Optional[OrderAssignment]:
    return db.query(OrderAssignment).filter(OrderAssignment.id_order == order_id).first()


def get_assignment_by_listing_and_buyer(
    db: Session, listing_id: int, buyer_id: int
) -> Optional[OrderAssignment]:
    return (
        db.query(OrderAssignment)
        .filter(OrderAssignment.id_listing == listing_id)
        .filter(OrderAssignment.id_buyer == buyer_id)
        .order_by(OrderAssignment.assigned_at.desc(), OrderAssignment.id_order.desc())
        .first()
    )


def get_assignment_by_listing_and_email(
    db: Session, listing_id: int, buyer_email: str
) -> Optional[OrderAssignment]:
    return (
        db.query(OrderAssignment)
        .filter(OrderAssignment.id_listing == listing_id)
        .filter(func.lower(OrderAssignment.buyer_email) == buyer_email.strip().lower())
        .order_by(OrderAssignment.assigned_at.desc(), OrderAssignment.id_order.desc())
        .first()
    )


def list_buyer_assignments(
    db: Session, *, buyer_id: int, buyer_email: Optional[str] = None
) -> list[OrderAssignment]:
    """Assigned orders of a buyer, matched by id or by the email on legacy orders."""

    condition = OrderAssignment.id_buyer == buyer_id
    if buyer_email:
        condition = condition | (
            func.lower(OrderAssignment.buyer_email) == buyer_email.strip().lower()
        )

    return (
        db.query(OrderAssignment)
        .filter(condition)
        .filter(OrderAssignment.id_admin.isnot(None))
        .order_by(OrderAssignment.id_order)
        .all()
    )


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id_user == user_id).first()


__all__ = [
    "get_assignment_by_order",
    "get_assignment_by_listing_and_buyer",
    "get_assignment_by_listing_and_email",
    "list_buyer_assignments",
    "get_user",
]
