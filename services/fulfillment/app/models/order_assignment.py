"""SQLAlchemy model binding an order to the admin responsible for it."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String

from app.core.database import Base


class OrderAssignment(Base):
    """Order-status projection written by the admin assignment process.

    The fulfillment service only reads it: ``id_admin`` is the source of truth
    for which admin owns the order's fulfillment. ``buyer_email`` is kept for
    orders created before buyers had numeric identifiers.
    """

    __tablename__ = "order_assignment"
    __table_args__ = {"schema": "fulfillment"}

    id_order = Column(BigInteger, primary_key=True, index=True)
    id_listing = Column(
        BigInteger, ForeignKey("catalog.listings.id_listing"), nullable=False, index=True
    )
    id_buyer = Column(BigInteger, ForeignKey("auth.users.id_user"), nullable=True, index=True)
    buyer_email = Column(String(255), nullable=True)
    id_admin = Column(BigInteger, ForeignKey("auth.users.id_user"), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<OrderAssignment(id_order={self.id_order}, id_admin={self.id_admin})>"


__all__ = ["OrderAssignment"]
