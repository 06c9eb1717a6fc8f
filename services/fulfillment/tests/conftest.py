import os
import tempfile
from datetime import date, datetime, time, timedelta, timezone

_DB_DIR = tempfile.mkdtemp(prefix="fulfillment-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'fulfillment.db')}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ALGORITHM"] = "HS256"
os.environ["NOTIFICATION_SERVICE_URL"] = ""
os.environ["SQLITE_BUSY_TIMEOUT"] = "15"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.database import Base, SessionLocal, engine  # noqa: E402
from app.core.security import Principal  # noqa: E402
from app.models import (  # noqa: E402
    Booking,
    DeliveryRecord,
    Listing,
    OrderAssignment,
    ScheduleSlot,
    User,
)

ADMIN_ID = 1
OTHER_ADMIN_ID = 2
SELLER_ID = 10
BUYER_ID = 20
OTHER_BUYER_ID = 21
LISTING_ID = 100
ORDER_ID = 500

BUYER_EMAIL = "buyer@campus.edu"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    return utcnow().date()


class Seed:
    """Writes fixture rows, each in its own short-lived session."""

    def _add(self, instance, id_attribute: str) -> int:
        with SessionLocal() as db:
            db.add(instance)
            db.commit()
            return getattr(instance, id_attribute)

    def user(self, user_id: int, role: str, email: str = None, name: str = "Test") -> int:
        return self._add(
            User(
                id_user=user_id,
                name=name,
                lastname="User",
                email=email or f"user{user_id}@campus.edu",
                phone="999000111",
                role=role,
            ),
            "id_user",
        )

    def listing(self, listing_id: int = LISTING_ID, seller_id: int = SELLER_ID) -> int:
        return self._add(
            Listing(
                id_listing=listing_id,
                title=f"Listing {listing_id}",
                price=25,
                status="active",
                id_seller=seller_id,
            ),
            "id_listing",
        )

    def slot(
        self,
        *,
        admin_id: int = ADMIN_ID,
        slot_type: str = "pickup",
        slot_date: date = None,
        start: time = time(10, 0),
        end: time = time(12, 0),
        max_slots: int = 5,
        reserved_slots: int = 0,
        status: str = "active",
    ) -> int:
        now = utcnow()
        return self._add(
            ScheduleSlot(
                id_admin=admin_id,
                date=slot_date or today() + timedelta(days=2),
                start_time=start,
                end_time=end,
                type=slot_type,
                location="Library entrance",
                max_slots=max_slots,
                reserved_slots=reserved_slots,
                status=status,
                notes="",
                created_at=now,
                updated_at=now,
            ),
            "id_schedule",
        )

    def delivery(
        self,
        *,
        listing_id: int = LISTING_ID,
        seller_id: int = SELLER_ID,
        admin_id: int = ADMIN_ID,
        schedule_id: int = None,
        status: str = "completed",
        completed_at: datetime = None,
    ) -> int:
        now = utcnow()
        if status == "completed" and completed_at is None:
            completed_at = now
        return self._add(
            DeliveryRecord(
                id_listing=listing_id,
                id_seller=seller_id,
                id_admin=admin_id,
                id_schedule=schedule_id,
                status=status,
                notes="",
                created_at=now,
                updated_at=now,
                completed_at=completed_at,
            ),
            "id_delivery",
        )

    def assignment(
        self,
        *,
        order_id: int = ORDER_ID,
        listing_id: int = LISTING_ID,
        buyer_id: int = BUYER_ID,
        buyer_email: str = BUYER_EMAIL,
        admin_id: int = ADMIN_ID,
    ) -> int:
        return self._add(
            OrderAssignment(
                id_order=order_id,
                id_listing=listing_id,
                id_buyer=buyer_id,
                buyer_email=buyer_email,
                id_admin=admin_id,
                assigned_at=utcnow(),
            ),
            "id_order",
        )

    def booking(
        self,
        *,
        delivery_id: int,
        schedule_id: int,
        buyer_id: int = BUYER_ID,
        admin_id: int = ADMIN_ID,
        status: str = "pending",
    ) -> int:
        now = utcnow()
        return self._add(
            Booking(
                id_listing=LISTING_ID,
                id_buyer=buyer_id,
                id_seller=SELLER_ID,
                id_admin=admin_id,
                id_schedule=schedule_id,
                id_delivery=delivery_id,
                preferred_time=time(10, 0),
                notes="",
                status=status,
                created_at=now,
                updated_at=now,
            ),
            "id_booking",
        )

    def marketplace(self) -> None:
        """Admins, seller, buyers and one listing ordered by the buyer."""

        self.user(ADMIN_ID, "admin", name="Ana")
        self.user(OTHER_ADMIN_ID, "admin", name="Luis")
        self.user(SELLER_ID, "seller")
        self.user(BUYER_ID, "buyer", email=BUYER_EMAIL)
        self.user(OTHER_BUYER_ID, "buyer")
        self.listing()
        self.assignment()


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def seed() -> Seed:
    return Seed()


@pytest.fixture()
def marketplace(seed) -> Seed:
    seed.marketplace()
    return seed


@pytest.fixture()
def admin() -> Principal:
    return Principal(user_id=ADMIN_ID, role="admin")


@pytest.fixture()
def other_admin() -> Principal:
    return Principal(user_id=OTHER_ADMIN_ID, role="admin")


@pytest.fixture()
def buyer() -> Principal:
    return Principal(user_id=BUYER_ID, role="buyer", email=BUYER_EMAIL)


@pytest.fixture()
def seller() -> Principal:
    return Principal(user_id=SELLER_ID, role="seller")


def auth_headers(user_id: int, role: str, email: str = None) -> dict:
    claims = {"id_user": user_id, "role": role}
    if email:
        claims["email"] = email
    token = jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client():
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
