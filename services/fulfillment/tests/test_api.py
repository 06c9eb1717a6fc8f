"""HTTP tests for the fulfillment routes."""

from datetime import timedelta

from conftest import (
    ADMIN_ID,
    BUYER_EMAIL,
    BUYER_ID,
    LISTING_ID,
    ORDER_ID,
    OTHER_ADMIN_ID,
    OTHER_BUYER_ID,
    SELLER_ID,
    auth_headers,
    today,
)

PREFIX = "/api/campusmart/v1/fulfillment"

ADMIN = auth_headers(ADMIN_ID, "admin")
OTHER_ADMIN = auth_headers(OTHER_ADMIN_ID, "admin")
BUYER = auth_headers(BUYER_ID, "buyer", email=BUYER_EMAIL)
OTHER_BUYER = auth_headers(OTHER_BUYER_ID, "buyer")
SELLER = auth_headers(SELLER_ID, "seller")


def _slot_body(**overrides):
    body = {
        "date": (today() + timedelta(days=2)).isoformat(),
        "startTime": "10:00",
        "endTime": "12:00",
        "type": "pickup",
        "location": "Library entrance",
        "maxSlots": 2,
    }
    body.update(overrides)
    return body


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get(f"{PREFIX}/schedules")
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get(
            f"{PREFIX}/schedules", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_role_is_enforced(self, client, marketplace):
        response = client.post(f"{PREFIX}/schedules", json=_slot_body(), headers=BUYER)
        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"


class TestScheduleRoutes:
    def test_create_and_list(self, client, marketplace):
        created = client.post(f"{PREFIX}/schedules", json=_slot_body(), headers=ADMIN)
        assert created.status_code == 201
        slot = created.json()
        assert slot["id_admin"] == ADMIN_ID
        assert slot["status"] == "active"

        listed = client.get(f"{PREFIX}/schedules", params={"type": "pickup"}, headers=ADMIN)
        assert listed.status_code == 200
        [entry] = listed.json()
        assert entry["id_schedule"] == slot["id_schedule"]
        assert entry["available_slots"] == 2
        assert entry["current_bookings"] == 0

    def test_validation_errors_are_400(self, client, marketplace):
        response = client.post(
            f"{PREFIX}/schedules",
            json=_slot_body(startTime="12:00", endTime="09:00"),
            headers=ADMIN,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

        response = client.post(
            f"{PREFIX}/schedules", json=_slot_body(maxSlots=0), headers=ADMIN
        )
        assert response.status_code == 400

    def test_overlap_is_409(self, client, marketplace):
        client.post(f"{PREFIX}/schedules", json=_slot_body(), headers=ADMIN)
        response = client.post(
            f"{PREFIX}/schedules", json=_slot_body(startTime="11:00", endTime="13:00"), headers=ADMIN
        )
        assert response.status_code == 409
        assert response.json()["code"] == "schedule_conflict"

    def test_get_update_delete(self, client, marketplace):
        slot_id = marketplace.slot()

        assert client.get(f"{PREFIX}/schedules/{slot_id}", headers=ADMIN).status_code == 200
        assert client.get(f"{PREFIX}/schedules/{slot_id}", headers=OTHER_ADMIN).status_code == 404

        updated = client.put(
            f"{PREFIX}/schedules/{slot_id}", json={"maxSlots": 6}, headers=ADMIN
        )
        assert updated.status_code == 200
        assert updated.json()["max_slots"] == 6

        deleted = client.delete(f"{PREFIX}/schedules/{slot_id}", headers=ADMIN)
        assert deleted.status_code == 200
        assert deleted.json() == {"id_schedule": slot_id, "deleted": True, "status": "deleted"}

    def test_available_for_buyer(self, client, marketplace):
        slot_id = marketplace.slot()
        marketplace.slot(admin_id=OTHER_ADMIN_ID)
        marketplace.delivery()

        response = client.get(f"{PREFIX}/schedules/available", headers=BUYER)
        assert response.status_code == 200
        assert [slot["id_schedule"] for slot in response.json()] == [slot_id]


class TestDeliveryRoutes:
    def test_seller_books_and_admin_completes(self, client, marketplace):
        slot_id = marketplace.slot(slot_type="delivery")

        created = client.post(
            f"{PREFIX}/deliveries",
            json={"productId": LISTING_ID, "adminScheduleId": slot_id},
            headers=SELLER,
        )
        assert created.status_code == 201
        delivery_id = created.json()["id_delivery"]
        assert created.json()["id_admin"] == ADMIN_ID

        for status in ("confirmed", "completed"):
            response = client.put(
                f"{PREFIX}/deliveries/{delivery_id}/status",
                json={"status": status},
                headers=ADMIN,
            )
            assert response.status_code == 200
        assert response.json()["completed_at"] is not None

    def test_visibility(self, client, marketplace):
        marketplace.delivery()
        marketplace.listing(listing_id=LISTING_ID + 1, seller_id=11)
        marketplace.delivery(listing_id=LISTING_ID + 1, seller_id=11)

        as_seller = client.get(f"{PREFIX}/deliveries", headers=SELLER)
        assert as_seller.status_code == 200
        assert [item["id_seller"] for item in as_seller.json()] == [SELLER_ID]
        assert as_seller.json()[0]["listing"]["id_listing"] == LISTING_ID

        as_admin = client.get(f"{PREFIX}/deliveries", headers=ADMIN)
        assert len(as_admin.json()) == 2

        assert client.get(f"{PREFIX}/deliveries", headers=BUYER).status_code == 403

    def test_wrong_admin_cannot_transition(self, client, marketplace):
        delivery_id = marketplace.delivery(status="pending")
        response = client.put(
            f"{PREFIX}/deliveries/{delivery_id}/status",
            json={"status": "confirmed"},
            headers=OTHER_ADMIN,
        )
        assert response.status_code == 403


class TestBookingRoutes:
    def _book(self, client, slot_id, delivery_id, headers=BUYER):
        return client.post(
            f"{PREFIX}/bookings/pickups",
            json={
                "productId": LISTING_ID,
                "adminScheduleId": slot_id,
                "deliveryId": delivery_id,
                "preferredTime": "10:30",
            },
            headers=headers,
        )

    def test_create_and_view(self, client, marketplace):
        slot_id = marketplace.slot()
        delivery_id = marketplace.delivery()

        created = self._book(client, slot_id, delivery_id)
        assert created.status_code == 201
        booking = created.json()
        assert booking["status"] == "pending"
        assert booking["preferred_time"] == "10:30:00"

        listed = client.get(f"{PREFIX}/bookings", headers=BUYER)
        assert listed.status_code == 200
        [view] = listed.json()
        assert view["schedule"]["id_schedule"] == slot_id
        assert view["buyer"]["email"] == BUYER_EMAIL
        assert view["delivery"]["status"] == "completed"

        detail = client.get(f"{PREFIX}/bookings/{booking['id_booking']}", headers=ADMIN)
        assert detail.status_code == 200

        assert client.get(f"{PREFIX}/bookings", headers=OTHER_BUYER).json() == []
        assert (
            client.get(f"{PREFIX}/bookings/{booking['id_booking']}", headers=OTHER_BUYER).status_code
            == 403
        )
        assert client.get(f"{PREFIX}/bookings", headers=SELLER).status_code == 403

    def test_error_codes_are_distinct(self, client, marketplace):
        pending_delivery = marketplace.delivery(status="confirmed")
        slot_id = marketplace.slot()

        response = self._book(client, slot_id, pending_delivery)
        assert response.status_code == 409
        assert response.json() == {
            "detail": "Delivery must be completed before booking a pickup",
            "code": "precondition_failed",
            "retryable": False,
        }

    def test_buyer_without_order_cannot_book(self, client, marketplace):
        slot_id = marketplace.slot()
        delivery_id = marketplace.delivery()

        response = self._book(client, slot_id, delivery_id, headers=OTHER_BUYER)
        assert response.status_code == 409
        assert response.json()["code"] == "unassigned"
        assert client.get(f"{PREFIX}/bookings", headers=ADMIN).json() == []

    def test_past_dated_slot(self, client, marketplace):
        delivery_id = marketplace.delivery()
        slot_id = marketplace.slot(slot_date=today() - timedelta(days=1), max_slots=1)

        response = self._book(client, slot_id, delivery_id)
        assert response.status_code == 400
        assert response.json()["code"] == "temporal_order"

    def test_duplicate_is_retryable_conflict(self, client, marketplace):
        slot_id = marketplace.slot()
        delivery_id = marketplace.delivery()
        assert self._book(client, slot_id, delivery_id).status_code == 201

        response = self._book(client, slot_id, delivery_id)
        assert response.status_code == 409
        assert response.json()["code"] == "duplicate_booking"
        assert response.json()["retryable"] is True

    def test_status_update_by_assigned_admin_only(self, client, marketplace):
        slot_id = marketplace.slot()
        delivery_id = marketplace.delivery()
        booking_id = self._book(client, slot_id, delivery_id).json()["id_booking"]

        denied = client.put(
            f"{PREFIX}/bookings/status",
            json={"bookingId": booking_id, "status": "confirmed"},
            headers=OTHER_ADMIN,
        )
        assert denied.status_code == 403

        confirmed = client.put(
            f"{PREFIX}/bookings/status",
            json={"bookingId": booking_id, "status": "confirmed", "adminNotes": "See you"},
            headers=ADMIN,
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["admin_notes"] == "See you"

        illegal = client.put(
            f"{PREFIX}/bookings/status",
            json={"bookingId": booking_id, "status": "completed"},
            headers=ADMIN,
        )
        assert illegal.status_code == 400
        assert illegal.json()["code"] == "invalid_transition"

    def test_buyer_cannot_update_status(self, client, marketplace):
        response = client.put(
            f"{PREFIX}/bookings/status",
            json={"bookingId": 1, "status": "confirmed"},
            headers=BUYER,
        )
        assert response.status_code == 403


class TestAssignmentRoutes:
    def test_assigned_admin_contact(self, client, marketplace):
        response = client.get(f"{PREFIX}/assignments/orders/{ORDER_ID}/admin", headers=BUYER)
        assert response.status_code == 200
        body = response.json()
        assert body["has_assigned_admin"] is True
        assert body["admin"]["id_user"] == ADMIN_ID
        assert body["source"] == "order"

    def test_unassigned_order(self, client, seed):
        seed.marketplace()
        seed.listing(listing_id=LISTING_ID + 3)
        seed.assignment(order_id=ORDER_ID + 1, listing_id=LISTING_ID + 3, admin_id=None)

        response = client.get(
            f"{PREFIX}/assignments/orders/{ORDER_ID + 1}/admin", headers=BUYER
        )
        assert response.status_code == 200
        assert response.json()["has_assigned_admin"] is False
        assert response.json()["admin"] is None

    def test_other_buyers_order_is_hidden(self, client, marketplace):
        response = client.get(
            f"{PREFIX}/assignments/orders/{ORDER_ID}/admin", headers=OTHER_BUYER
        )
        assert response.status_code == 404
