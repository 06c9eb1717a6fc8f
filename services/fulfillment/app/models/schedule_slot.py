from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    func,
)
from sqlalchemy.orm import relationship

from app.core.database import Base, BigIntegerId

SLOT_TYPE_DELIVERY = "delivery"
SLOT_TYPE_PICKUP = "pickup"
SLOT_TYPES = (SLOT_TYPE_DELIVERY, SLOT_TYPE_PICKUP)

SLOT_STATUS_ACTIVE = "active"
SLOT_STATUS_INACTIVE = "inactive"
SLOT_STATUS_CANCELLED = "cancelled"
SLOT_STATUSES = (SLOT_STATUS_ACTIVE, SLOT_STATUS_INACTIVE, SLOT_STATUS_CANCELLED)


class ScheduleSlot(Base):
    """Capacity window published by an admin for deliveries or pickups.

    ``reserved_slots`` is the store-side reservation counter. It only moves
    through conditional updates (see ``schedule_repository.reserve_slot``) and
    the check constraint keeps it within ``max_slots`` even if a caller skips
    the capacity read.
    """

    __tablename__ = "schedule"
    __table_args__ = (
        CheckConstraint("max_slots > 0", name="ck_schedule_max_slots_positive"),
        CheckConstraint(
            "reserved_slots >= 0 AND reserved_slots <= max_slots",
            name="ck_schedule_reserved_within_capacity",
        ),
        Index("ix_schedule_admin_date", "id_admin", "date"),
        {"schema": "fulfillment"},
    )

    id_schedule = Column(BigIntegerId, primary_key=True, index=True)
    id_admin = Column(BigInteger, ForeignKey("auth.users.id_user"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    type = Column(String(20), nullable=False)
    location = Column(String(300), nullable=False)
    max_slots = Column(Integer, nullable=False)
    reserved_slots = Column(Integer, nullable=False, default=0, server_default="0")
    status = Column(String(30), nullable=False, default=SLOT_STATUS_ACTIVE)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    admin = relationship("User", foreign_keys=[id_admin], lazy="joined")

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            "<ScheduleSlot(id_schedule={id}, type={type}, date={date}, "
            "start_time={start}, end_time={end})>"
        ).format(
            id=self.id_schedule,
            type=self.type,
            date=self.date,
            start=self.start_time,
            end=self.end_time,
        )
