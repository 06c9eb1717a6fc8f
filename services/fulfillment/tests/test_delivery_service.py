from datetime import time
from types import SimpleNamespace

import pytest

from app.core.database import SessionLocal
from app.core.errors import (
    AuthorizationError,
    CapacityExceededError,
    DuplicateBookingError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
)
from app.core.security import Principal
from app.repository import delivery_repository, schedule_repository
from app.schemas.delivery import DeliveryCreate, DeliveryStatusUpdate
from app.services.delivery_service import DeliveryService
from conftest import ADMIN_ID, LISTING_ID, SELLER_ID


def _deliver(seller, slot_id, **overrides):
    data = {"productId": LISTING_ID, "adminScheduleId": slot_id}
    data.update(overrides)
    with SessionLocal() as db:
        delivery = DeliveryService(db).create_delivery_booking(
            seller, DeliveryCreate.model_validate(data)
        )
        return delivery.id_delivery


def _transition(admin, delivery_id, status, notes=None):
    with SessionLocal() as db:
        delivery = DeliveryService(db).transition_delivery_status(
            admin, delivery_id, DeliveryStatusUpdate(status=status, admin_notes=notes)
        )
        return delivery.status, delivery.completed_at


class TestCreateDeliveryBooking:
    def test_slot_owner_becomes_delivery_admin(self, marketplace, seller):
        slot_id = marketplace.slot(slot_type="delivery")

        delivery_id = _deliver(seller, slot_id, preferredTime="11:15")

        with SessionLocal() as db:
            delivery = delivery_repository.get_delivery(db, delivery_id)
            assert delivery.id_admin == ADMIN_ID
            assert delivery.id_seller == SELLER_ID
            assert delivery.status == "pending"
            assert delivery.preferred_time == time(11, 15)
            assert schedule_repository.get_schedule(db, slot_id).reserved_slots == 1

    def test_listing_of_another_seller(self, marketplace):
        slot_id = marketplace.slot(slot_type="delivery")
        with pytest.raises(NotFoundError):
            _deliver(Principal(user_id=11, role="seller"), slot_id)

    def test_pickup_slot_is_not_a_delivery_slot(self, marketplace, seller):
        slot_id = marketplace.slot(slot_type="pickup")
        with pytest.raises(NotFoundError):
            _deliver(seller, slot_id)

    def test_cancelled_slot_is_rejected(self, marketplace, seller):
        slot_id = marketplace.slot(slot_type="delivery", status="cancelled")
        with pytest.raises(InvalidStateError):
            _deliver(seller, slot_id)

    def test_full_slot(self, marketplace, seller):
        slot_id = marketplace.slot(slot_type="delivery", max_slots=1)
        marketplace.listing(listing_id=LISTING_ID + 1)
        _deliver(seller, slot_id, productId=LISTING_ID + 1)

        with pytest.raises(CapacityExceededError):
            _deliver(seller, slot_id)

    def test_duplicate_delivery(self, marketplace, seller):
        slot_id = marketplace.slot(slot_type="delivery")
        _deliver(seller, slot_id)
        with pytest.raises(DuplicateBookingError):
            _deliver(seller, slot_id)


class TestTransitionDeliveryStatus:
    def test_completion_is_stamped(self, marketplace, seller, admin):
        delivery_id = _deliver(seller, marketplace.slot(slot_type="delivery"))

        status, completed_at = _transition(admin, delivery_id, "confirmed")
        assert (status, completed_at) == ("confirmed", None)

        status, completed_at = _transition(admin, delivery_id, "completed", "Received")
        assert status == "completed"
        assert completed_at is not None

    def test_cancel_releases_slot(self, marketplace, seller, admin):
        slot_id = marketplace.slot(slot_type="delivery", max_slots=1)
        delivery_id = _deliver(seller, slot_id)

        _transition(admin, delivery_id, "cancelled")

        with SessionLocal() as db:
            assert schedule_repository.get_schedule(db, slot_id).reserved_slots == 0
        assert _deliver(seller, slot_id) != delivery_id

    def test_only_the_delivery_admin(self, marketplace, seller, other_admin):
        delivery_id = _deliver(seller, marketplace.slot(slot_type="delivery"))
        with pytest.raises(AuthorizationError):
            _transition(other_admin, delivery_id, "confirmed")

    def test_completed_is_terminal(self, marketplace, admin):
        delivery_id = marketplace.delivery(status="completed")
        with pytest.raises(InvalidTransitionError):
            _transition(admin, delivery_id, "cancelled")

    def test_missing_delivery(self, marketplace, admin):
        with pytest.raises(NotFoundError):
            _transition(admin, 31337, "confirmed")

    def test_stale_cancel_does_not_release_twice(self, marketplace, seller, admin, monkeypatch):
        slot_id = marketplace.slot(slot_type="delivery", max_slots=3, reserved_slots=1)
        delivery_id = _deliver(seller, slot_id)
        stale = SimpleNamespace(
            id_delivery=delivery_id, id_admin=ADMIN_ID, id_schedule=slot_id, status="pending"
        )
        _transition(admin, delivery_id, "cancelled")

        monkeypatch.setattr(delivery_repository, "get_delivery", lambda db, _id: stale)
        with pytest.raises(InvalidStateError):
            _transition(admin, delivery_id, "cancelled")
        monkeypatch.undo()

        with SessionLocal() as db:
            assert delivery_repository.get_delivery(db, delivery_id).status == "cancelled"
            assert schedule_repository.get_schedule(db, slot_id).reserved_slots == 1

    def test_conditional_update_requires_the_read_status(self, marketplace, admin):
        delivery_id = marketplace.delivery(status="pending")
        with SessionLocal() as db:
            assert not delivery_repository.update_delivery_status(
                db, delivery_id, previous="confirmed", values={"status": "completed"}
            )
            assert delivery_repository.update_delivery_status(
                db, delivery_id, previous="pending", values={"status": "confirmed"}
            )
            db.commit()
            assert delivery_repository.get_delivery(db, delivery_id).status == "confirmed"
