"""ORM model that exposes catalog listings to the fulfillment service."""

from sqlalchemy import BigInteger, Column, ForeignKey, Numeric, String

from app.core.database import Base


class Listing(Base):
    __tablename__ = "listings"
    __table_args__ = {"schema": "catalog"}

    id_listing = Column(BigInteger, primary_key=True, index=True)
    title = Column(String(300), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(30), nullable=False, default="active")
    id_seller = Column(BigInteger, ForeignKey("auth.users.id_user"), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Listing(id_listing={self.id_listing}, title={self.title})>"


__all__ = ["Listing"]
