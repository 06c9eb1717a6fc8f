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

BOOKING_STATUS_PENDING = "pending"
BOOKING_STATUS_CONFIRMED = "confirmed"
BOOKING_STATUS_IN_PROGRESS = "in_progress"
BOOKING_STATUS_COMPLETED = "completed"
BOOKING_STATUS_CANCELLED = "cancelled"
BOOKING_STATUSES = (
    BOOKING_STATUS_PENDING,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_IN_PROGRESS,
    BOOKING_STATUS_COMPLETED,
    BOOKING_STATUS_CANCELLED,
)

_ACTIVE_ONLY = text(f"status <> '{BOOKING_STATUS_CANCELLED}'")


class Booking(Base):
    """A buyer's pickup reservation against an admin pickup slot."""

    __tablename__ = "booking"
    __table_args__ = (
        Index(
            "uq_booking_active_delivery_buyer",
            "id_delivery",
            "id_buyer",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        Index("ix_booking_schedule_status", "id_schedule", "status"),
        {"schema": "fulfillment"},
    )

    id_booking = Column(BigIntegerId, primary_key=True, index=True)
    id_listing = Column(BigInteger, ForeignKey("catalog.listings.id_listing"), nullable=False)
    id_buyer = Column(BigInteger, ForeignKey("auth.users.id_user"), nullable=False)
    id_seller = Column(BigInteger, ForeignKey("auth.users.id_user"), nullable=True)
    id_admin = Column(BigInteger, ForeignKey("auth.users.id_user"), nullable=False)
    id_schedule = Column(
        BigInteger, ForeignKey("fulfillment.schedule.id_schedule"), nullable=False
    )
    id_delivery = Column(
        BigInteger, ForeignKey("fulfillment.delivery.id_delivery"), nullable=False
    )
    preferred_time = Column(Time, nullable=True)
    notes = Column(Text, nullable=False, default="")
    status = Column(String(30), nullable=False, default=BOOKING_STATUS_PENDING)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    schedule = relationship("ScheduleSlot", lazy="joined")
    delivery = relationship("DeliveryRecord", lazy="joined")
    listing = relationship("Listing", lazy="joined")
    buyer = relationship("User", foreign_keys=[id_buyer], lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<Booking(id_booking={self.id_booking}, status={self.status}, "
            f"id_schedule={self.id_schedule}, id_delivery={self.id_delivery})>"
        )
