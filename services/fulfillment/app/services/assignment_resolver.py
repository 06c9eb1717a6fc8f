"""Resolution of the admin responsible for an order's fulfillment.

Orders written by different generations of the marketplace reference buyers
and orders inconsistently: identifiers arrive as integers or as strings, and
older orders only carry the buyer's email. The resolver runs a chain of
lookup strategies in this fixed order and stops at the first hit:

1. ``OrderIdLookup``       - the assignment keyed by order id.
2. ``ProductBuyerLookup``  - the assignment for (listing, buyer id).
3. ``ProductEmailLookup``  - the assignment for (listing, buyer email).

A strategy whose identifiers cannot be coerced is skipped, never raised.

The delivery record carries its own admin (``DeliveryAdminLookup``). It never
stands in for a missing order assignment: the booking engine calls
:meth:`AssignmentResolver.cross_check` only to confirm the two paths agree, and
disagreement is rejected rather than settled in favour of either side.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Union

from sqlalchemy.orm import Session

from app.core.errors import AssignmentError, AssignmentMismatchError
from app.models.delivery import DeliveryRecord
from app.models.order_assignment import OrderAssignment
from app.repository import assignment_repository

logger = logging.getLogger(__name__)

SOURCE_ORDER = "order"
SOURCE_PRODUCT_BUYER = "product_buyer"
SOURCE_PRODUCT_EMAIL = "product_email"
SOURCE_DELIVERY = "delivery"
SOURCE_NONE = "none"


def coerce_id(value: Any) -> Optional[int]:
    """Return ``value`` as a positive integer id, or ``None`` when it is not one."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    text_value = str(value).strip()
    if not (text_value.isascii() and text_value.isdigit()):
        return None
    number = int(text_value)
    return number if number > 0 else None


def coerce_email(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    return normalized if "@" in normalized else None


@dataclass(frozen=True)
class AssignmentResolution:
    admin_id: Optional[int]
    source: str
    order_id: Optional[int] = None
    assigned_at: Optional[datetime] = None

    @property
    def is_assigned(self) -> bool:
        return self.admin_id is not None


UNASSIGNED = AssignmentResolution(admin_id=None, source=SOURCE_NONE)


@dataclass(frozen=True)
class OrderIdLookup:
    order_id: Any
    buyer_id: Any = None
    buyer_email: Any = None

    def lookup(self, db: Session) -> Optional[AssignmentResolution]:
        order_id = coerce_id(self.order_id)
        if order_id is None:
            return None
        assignment = assignment_repository.get_assignment_by_order(db, order_id)
        if assignment is None or not belongs_to_buyer(assignment, self.buyer_id, self.buyer_email):
            return None
        return _from_assignment(assignment, SOURCE_ORDER)


@dataclass(frozen=True)
class ProductBuyerLookup:
    product_id: Any
    buyer_id: Any

    def lookup(self, db: Session) -> Optional[AssignmentResolution]:
        product_id = coerce_id(self.product_id)
        buyer_id = coerce_id(self.buyer_id)
        if product_id is None or buyer_id is None:
            return None
        assignment = assignment_repository.get_assignment_by_listing_and_buyer(
            db, product_id, buyer_id
        )
        if assignment is None:
            return None
        return _from_assignment(assignment, SOURCE_PRODUCT_BUYER)


@dataclass(frozen=True)
class ProductEmailLookup:
    product_id: Any
    buyer_email: Any

    def lookup(self, db: Session) -> Optional[AssignmentResolution]:
        product_id = coerce_id(self.product_id)
        email = coerce_email(self.buyer_email)
        if product_id is None or email is None:
            return None
        assignment = assignment_repository.get_assignment_by_listing_and_email(
            db, product_id, email
        )
        if assignment is None:
            return None
        return _from_assignment(assignment, SOURCE_PRODUCT_EMAIL)


@dataclass(frozen=True)
class DeliveryAdminLookup:
    delivery: DeliveryRecord

    def lookup(self, db: Session) -> Optional[AssignmentResolution]:
        admin_id = coerce_id(self.delivery.id_admin)
        if admin_id is None:
            return None
        return AssignmentResolution(admin_id=admin_id, source=SOURCE_DELIVERY)


LookupStrategy = Union[OrderIdLookup, ProductBuyerLookup, ProductEmailLookup, DeliveryAdminLookup]


def belongs_to_buyer(assignment: OrderAssignment, buyer_id: Any, buyer_email: Any) -> bool:
    buyer_id = coerce_id(buyer_id)
    buyer_email = coerce_email(buyer_email)
    if buyer_id is None and buyer_email is None:
        return True
    if buyer_id is not None and assignment.id_buyer == buyer_id:
        return True
    stored_email = coerce_email(assignment.buyer_email)
    return buyer_email is not None and stored_email == buyer_email


def _from_assignment(assignment: OrderAssignment, source: str) -> Optional[AssignmentResolution]:
    admin_id = coerce_id(assignment.id_admin)
    if admin_id is None:
        return None
    return AssignmentResolution(
        admin_id=admin_id,
        source=source,
        order_id=assignment.id_order,
        assigned_at=assignment.assigned_at,
    )


def build_lookup_chain(
    *,
    order_id: Any = None,
    product_id: Any = None,
    buyer_id: Any = None,
    buyer_email: Any = None,
) -> List[LookupStrategy]:
    chain: List[LookupStrategy] = []
    if order_id is not None:
        chain.append(OrderIdLookup(order_id, buyer_id=buyer_id, buyer_email=buyer_email))
    if product_id is not None:
        if buyer_id is not None:
            chain.append(ProductBuyerLookup(product_id, buyer_id))
        if buyer_email is not None:
            chain.append(ProductEmailLookup(product_id, buyer_email))
    return chain


class AssignmentResolver:
    def __init__(self, db: Session):
        self.db = db

    def run(self, chain: List[LookupStrategy]) -> AssignmentResolution:
        for strategy in chain:
            resolution = strategy.lookup(self.db)
            if resolution is not None:
                return resolution
        return UNASSIGNED

    def resolve_assigned_admin(
        self,
        *,
        order_id: Any = None,
        product_id: Any = None,
        buyer_id: Any = None,
        buyer_email: Any = None,
    ) -> AssignmentResolution:
        return self.run(
            build_lookup_chain(
                order_id=order_id,
                product_id=product_id,
                buyer_id=buyer_id,
                buyer_email=buyer_email,
            )
        )

    def cross_check(
        self, order_resolution: AssignmentResolution, delivery: DeliveryRecord
    ) -> int:
        """Return the admin of the order assignment, confirmed by the delivery.

        The order assignment is the only source of the admin. Raises
        ``AssignmentError`` when it names none, and ``AssignmentMismatchError``
        when the delivery is held by a different admin. A delivery without an
        admin does not contradict the assignment.
        """

        if not order_resolution.is_assigned:
            raise AssignmentError()

        delivery_resolution = self.run([DeliveryAdminLookup(delivery)])
        if (
            delivery_resolution.is_assigned
            and delivery_resolution.admin_id != order_resolution.admin_id
        ):
            logger.warning(
                "Order %s is assigned to admin %s but delivery %s is held by admin %s",
                order_resolution.order_id,
                order_resolution.admin_id,
                delivery.id_delivery,
                delivery_resolution.admin_id,
            )
            raise AssignmentMismatchError()
        return order_resolution.admin_id


__all__ = [
    "AssignmentResolution",
    "AssignmentResolver",
    "DeliveryAdminLookup",
    "OrderIdLookup",
    "ProductBuyerLookup",
    "ProductEmailLookup",
    "UNASSIGNED",
    "belongs_to_buyer",
    "build_lookup_chain",
    "coerce_id",
]
