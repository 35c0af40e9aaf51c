"""
Tests for the Booking API routes
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import auth_header

from courtside.models.booking import Booking, BookingStatus
from courtside.models.coupon import Coupon
from courtside.models.facility import Court
from courtside.models.notification import Notification, NotificationStatus, NotificationType
from courtside.models.user import User
from courtside.services.wallet_service import WalletService


def booking_payload(court: Court, booking_date: date, **overrides) -> dict:
    payload = {
        "court_id": str(court.id),
        "booking_date": booking_date.isoformat(),
        "start_time": "10:00",
        "end_time": "12:00",
        "payment_method": "wallet",
    }
    payload.update(overrides)
    return payload


@pytest.mark.integration
class TestCreateBookingRoute:
    """POST /bookings/"""

    def test_wallet_booking_created(
        self, client: TestClient, db: Session, customer: User, customer_headers: dict, court: Court, booking_date
    ):
        WalletService.top_up(db, customer.id, 2000)

        response = client.post("/bookings/", json=booking_payload(court, booking_date), headers=customer_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "confirmed"
        assert Decimal(data["final_amount"]) == Decimal("1000")
        assert data["reward_points_earned"] == 100
        assert data["payment_method"] == "wallet"

        notification = db.query(Notification).filter(Notification.booking_id == UUID(data["id"])).one()
        assert notification.notification_type == NotificationType.BOOKING_CONFIRMATION
        assert notification.status == NotificationStatus.SKIPPED

    def test_duration_instead_of_end_time(
        self, client: TestClient, db: Session, customer: User, customer_headers: dict, court: Court, booking_date
    ):
        WalletService.top_up(db, customer.id, 2000)
        payload = booking_payload(court, booking_date, end_time=None, duration_hours=1)

        response = client.post("/bookings/", json=payload, headers=customer_headers)

        assert response.status_code == 201
        assert response.json()["end_time"] == "11:00"

    def test_coupon_code_is_case_insensitive(
        self,
        client: TestClient,
        db: Session,
        customer: User,
        customer_headers: dict,
        court: Court,
        coupon: Coupon,
        booking_date,
    ):
        WalletService.top_up(db, customer.id, 2000)

        response = client.post(
            "/bookings/", json=booking_payload(court, booking_date, coupon_code="save10"), headers=customer_headers
        )

        assert response.status_code == 201
        assert Decimal(response.json()["final_amount"]) == Decimal("900")

    def test_stripe_booking_pending(self, client: TestClient, customer_headers: dict, court: Court, booking_date):
        payload = booking_payload(court, booking_date, payment_method="stripe", payment_intent_id="pi_abc")

        response = client.post("/bookings/", json=payload, headers=customer_headers)

        assert response.status_code == 201
        assert response.json()["status"] == "pending"

    def test_insufficient_balance_response(
        self, client: TestClient, db: Session, customer: User, customer_headers: dict, court: Court, booking_date
    ):
        WalletService.top_up(db, customer.id, 500)

        response = client.post("/bookings/", json=booking_payload(court, booking_date), headers=customer_headers)

        assert response.status_code == 402
        body = response.json()
        assert body["error_code"] == "InsufficientWalletBalance"
        assert body["details"]["shortfall"] == "500.00"
        assert db.query(Booking).count() == 0

    def test_slot_conflict_response(
        self, client: TestClient, db: Session, customer: User, customer_headers: dict, court: Court, booking_date
    ):
        WalletService.top_up(db, customer.id, 5000)
        client.post("/bookings/", json=booking_payload(court, booking_date), headers=customer_headers)

        response = client.post(
            "/bookings/",
            json=booking_payload(court, booking_date, start_time="11:00", end_time="13:00"),
            headers=customer_headers,
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "SlotConflict"

    def test_missing_payment_reference(self, client: TestClient, customer_headers: dict, court: Court, booking_date):
        response = client.post(
            "/bookings/", json=booking_payload(court, booking_date, payment_method="upi"), headers=customer_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "PaymentReferenceMissing"

    def test_invalid_coupon_response(self, client: TestClient, customer_headers: dict, court: Court, booking_date):
        response = client.post(
            "/bookings/", json=booking_payload(court, booking_date, coupon_code="NOPE"), headers=customer_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "CouponInvalid"

    def test_unknown_fields_rejected(self, client: TestClient, customer_headers: dict, court: Court, booking_date):
        payload = booking_payload(court, booking_date, final_amount=1)

        response = client.post("/bookings/", json=payload, headers=customer_headers)

        assert response.status_code == 422

    def test_malformed_time_rejected(self, client: TestClient, customer_headers: dict, court: Court, booking_date):
        response = client.post(
            "/bookings/", json=booking_payload(court, booking_date, start_time="9am"), headers=customer_headers
        )

        assert response.status_code == 422

    def test_requires_authentication(self, client: TestClient, court: Court, booking_date):
        response = client.post("/bookings/", json=booking_payload(court, booking_date))

        assert response.status_code == 401


@pytest.mark.integration
class TestBookingQueries:
    def test_list_my_bookings(
        self,
        client: TestClient,
        db: Session,
        customer: User,
        other_customer: User,
        customer_headers: dict,
        court: Court,
        booking_date,
    ):
        WalletService.top_up(db, customer.id, 5000)
        client.post("/bookings/", json=booking_payload(court, booking_date), headers=customer_headers)
        client.post(
            "/bookings/",
            json=booking_payload(court, booking_date, start_time="14:00", end_time="15:00", payment_method="upi",
                                 payment_intent_id="UPI-77"),
            headers=customer_headers,
        )

        response = client.get("/bookings/", headers=customer_headers)
        pending = client.get("/bookings/", params={"status": "pending"}, headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 2
        assert pending.json()["total"] == 1
        assert pending.json()["bookings"][0]["payment_intent_id"] == "UPI-77"

    def test_get_booking_visibility(
        self,
        client: TestClient,
        db: Session,
        customer: User,
        other_customer: User,
        customer_headers: dict,
        owner_headers: dict,
        court: Court,
        booking_date,
    ):
        WalletService.top_up(db, customer.id, 2000)
        booking_id = client.post(
            "/bookings/", json=booking_payload(court, booking_date), headers=customer_headers
        ).json()["id"]

        assert client.get(f"/bookings/{booking_id}", headers=customer_headers).status_code == 200
        assert client.get(f"/bookings/{booking_id}", headers=owner_headers).status_code == 200
        assert client.get(f"/bookings/{booking_id}", headers=auth_header(other_customer)).status_code == 403

    def test_get_unknown_booking(self, client: TestClient, customer_headers: dict):
        response = client.get("/bookings/00000000-0000-0000-0000-000000000000", headers=customer_headers)

        assert response.status_code == 404

    def test_manage_list_scoped_to_owner(
        self,
        client: TestClient,
        customer_headers: dict,
        owner_headers: dict,
        admin_headers: dict,
        other_owner: User,
        court: Court,
        booking_date,
    ):

        client.post(
            "/bookings/",
            json=booking_payload(court, booking_date, payment_method="upi", payment_intent_id="UPI-1"),
            headers=customer_headers,
        )

        assert client.get("/bookings/manage/", headers=owner_headers).json()["total"] == 1
        assert client.get("/bookings/manage/", headers=admin_headers).json()["total"] == 1
        assert client.get("/bookings/manage/", headers=auth_header(other_owner)).json()["total"] == 0
        assert client.get("/bookings/manage/", headers=customer_headers).status_code == 403


@pytest.mark.integration
class TestTransitionRoutes:
    def _pending_booking(self, client: TestClient, headers: dict, court: Court, booking_date) -> str:
        payload = booking_payload(court, booking_date, payment_method="stripe", payment_intent_id="pi_route")
        return client.post("/bookings/", json=payload, headers=headers).json()["id"]

    def test_owner_confirms_then_customer_cancels(
        self,
        client: TestClient,
        db: Session,
        customer_headers: dict,
        owner_headers: dict,
        court: Court,
        booking_date,
    ):
        booking_id = self._pending_booking(client, customer_headers, court, booking_date)

        confirmed = client.post(f"/bookings/{booking_id}/confirm", headers=owner_headers)
        cancelled = client.post(
            f"/bookings/{booking_id}/cancel", json={"reason": "Plans changed"}, headers=customer_headers
        )

        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancellation_reason"] == "Plans changed"

        types = {n.notification_type for n in db.query(Notification).all()}
        assert db.query(Notification).count() == 3
        assert types == {
            NotificationType.BOOKING_PENDING,
            NotificationType.BOOKING_CONFIRMATION,
            NotificationType.BOOKING_CANCELLATION,
        }

    def test_repeat_confirm_returns_success_without_new_notification(
        self, client: TestClient, db: Session, customer_headers: dict, owner_headers: dict, court: Court, booking_date
    ):
        booking_id = self._pending_booking(client, customer_headers, court, booking_date)

        first = client.post(f"/bookings/{booking_id}/confirm", headers=owner_headers)
        second = client.post(f"/bookings/{booking_id}/confirm", headers=owner_headers)

        assert first.status_code == second.status_code == 200
        assert db.query(Notification).count() == 2

    def test_customer_cannot_confirm(self, client: TestClient, customer_headers: dict, court: Court, booking_date):
        booking_id = self._pending_booking(client, customer_headers, court, booking_date)

        response = client.post(f"/bookings/{booking_id}/confirm", headers=customer_headers)

        assert response.status_code == 403
        assert response.json()["error_code"] == "Unauthorized"

    def test_reject_then_confirm_is_invalid(
        self, client: TestClient, customer_headers: dict, admin_headers: dict, court: Court, booking_date
    ):
        booking_id = self._pending_booking(client, customer_headers, court, booking_date)

        rejected = client.post(f"/bookings/{booking_id}/reject", headers=admin_headers)
        response = client.post(f"/bookings/{booking_id}/confirm", headers=admin_headers)

        assert rejected.json()["status"] == "rejected"
        assert response.status_code == 409
        assert response.json()["error_code"] == "InvalidTransition"
        assert response.json()["details"]["current_status"] == "rejected"

    def test_transition_unknown_booking(self, client: TestClient, admin_headers: dict):
        response = client.post("/bookings/00000000-0000-0000-0000-000000000000/confirm", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "NotFound"

    def test_cancel_wallet_booking_refunds(
        self, client: TestClient, db: Session, customer: User, customer_headers: dict, court: Court, booking_date
    ):
        WalletService.top_up(db, customer.id, 2000)
        booking_id = client.post(
            "/bookings/", json=booking_payload(court, booking_date), headers=customer_headers
        ).json()["id"]

        response = client.post(f"/bookings/{booking_id}/cancel", headers=customer_headers)
        wallet = client.get("/wallet/", headers=customer_headers).json()

        assert response.status_code == 200
        assert response.json()["status"] == BookingStatus.CANCELLED.value
        assert Decimal(wallet["balance"]) == Decimal("2000")
        assert wallet["transactions"][0]["reference_id"] == booking_id
