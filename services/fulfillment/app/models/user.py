"""SQLAlchemy model mapping to the auth.users table."""

from sqlalchemy import BigInteger, Column, DateTime, String, Text
from sqlalchemy.sql import func

from app.core.database import Base


class User(Base):
    """Read-only view of a user owned by the authentication service."""

    __tablename__ = "users"
    __table_args__ = {"schema": "auth"}

    id_user = Column(BigInteger, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    lastname = Column(String(200), nullable=False, default="")
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=True)
    imageurl = Column(Text, nullable=True)
    role = Column(String(30), nullable=False, default="buyer")
    status = Column(String(30), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User(id_user={self.id_user}, email={self.email}, role={self.role})>"
