"""SQLAlchemy model for the seller-to-admin delivery leg of an order."""

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    func,
    text,
)
from sqlalchemy.orm import relationship

from app.core.database import Base, BigIntegerId

DELIVERY_STATUS_PENDING = "pending"
DELIVERY_STATUS_CONFIRMED = "confirmed"
DELIVERY_STATUS_COMPLETED = "completed"
DELIVERY_STATUS_CANCELLED = "cancelled"
DELIVERY_STATUSES = (
    DELIVERY_STATUS_PENDING,
    DELIVERY_STATUS_CONFIRMED,
    DELIVERY_STATUS_COMPLETED,
    DELIVERY_STATUS_CANCELLED,
)


_ACTIVE_ONLY = text(f"status <> '{DELIVERY_STATUS_CANCELLED}'")


class DeliveryRecord(Base):
    """A seller's booking into an admin delivery slot.

    ``completed_at`` is stamped by the status update that moves the delivery
    to ``completed``; pickups are ordered against it.
    """

    __tablename__ = "delivery"
    __table_args__ = (
        Index(
            "uq_delivery_active_listing_seller",
            "id_listing",
            "id_seller",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        {"schema": "fulfillment"},
    )

    id_delivery = Column(BigIntegerId, primary_key=True, index=True)
    id_listing = Column(BigInteger, ForeignKey("catalog.listings.id_listing"), nullable=False)
    id_seller = Column(BigInteger, ForeignKey("auth.users.id_user"), nullable=False)
    id_admin = Column(BigInteger, ForeignKey("auth.users.id_user"), nullable=True)
    id_schedule = Column(
        BigInteger, ForeignKey("fulfillment.schedule.id_schedule"), nullable=True
    )
    preferred_time = Column(Time, nullable=True)
    notes = Column(Text, nullable=False, default="")
    status = Column(String(30), nullable=False, default=DELIVERY_STATUS_PENDING)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    schedule = relationship("ScheduleSlot", lazy="joined")
    listing = relationship("Listing", lazy="joined")
    seller = relationship("User", foreign_keys=[id_seller], lazy="joined")

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            f"<DeliveryRecord(id_delivery={self.id_delivery}, id_listing={self.id_listing}, "
            f"status={self.status})>"
        )


__all__ = ["DeliveryRecord"]
