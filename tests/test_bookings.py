"""
Unit tests for booking management endpoints.
"""
import pytest

from scraply.routers.bookings import can_transition


def get_auth_header(token: str) -> dict:
    """Helper function to create authorization header."""
    return {"Authorization": f"Bearer {token}"}


def booking_payload(**overrides):
    payload = {
        "userEmail": "regular@example.com",
        "recycleItem": "iPhone 8",
        "recycleItemPrice": 1800,
        "facility": "Green Cycle Hub",
        "pickupDate": "2030-03-10",
        "pickupTime": "14:00",
        "fullName": "Regular User",
        "address": "12 MG Road, Bengaluru",
        "phone": "9800000000",
    }
    payload.update(overrides)
    return payload


class TestBookingCreation:
    """Tests for booking creation endpoint."""

    def test_create_booking_success(self, client, regular_user, regular_token):
        """Test successful booking creation."""
        response = client.post(
            "/bookings/",
            headers=get_auth_header(regular_token),
            json=booking_payload(),
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["userId"] == regular_user.id
        assert data["recycleItem"] == "iPhone 8"
        assert data["pickupDate"] == "2030-03-10"
        assert data["bookStatus"] == "pending"
        assert data["bookStatusAt"] is None

    def test_owner_comes_from_token(self, client, regular_user, regular_token, other_user):
        """Test that a userId in the body cannot book on someone else's behalf."""
        response = client.post(
            "/bookings/",
            headers=get_auth_header(regular_token),
            json=booking_payload(userId=other_user.id),
        )
        assert response.status_code == 201
        assert response.json()["data"]["userId"] == regular_user.id

    def test_email_defaults_to_account_email(self, client, regular_token):
        payload = booking_payload()
        del payload["userEmail"]
        response = client.post("/bookings/", headers=get_auth_header(regular_token), json=payload)
        assert response.status_code == 201
        assert response.json()["data"]["userEmail"] == "regular@example.com"

    def test_unknown_facility_is_accepted(self, client, regular_token):
        """Test that the facility name is not checked against facilities."""
        response = client.post(
            "/bookings/",
            headers=get_auth_header(regular_token),
            json=booking_payload(facility="Nowhere Depot"),
        )
        assert response.status_code == 201

    def test_create_booking_requires_auth(self, client):
        """Test creating booking without authentication fails."""
        response = client.post("/bookings/", json=booking_payload())
        assert response.status_code == 401

    def test_create_booking_missing_field(self, client, regular_token):
        payload = booking_payload()
        del payload["recycleItem"]
        response = client.post("/bookings/", headers=get_auth_header(regular_token), json=payload)
        assert response.status_code == 422


class TestBookingQueries:
    """Tests for listing and reading bookings."""

    def test_admin_lists_all_bookings(self, client, admin_token, sample_booking):
        response = client.get("/bookings/", headers=get_auth_header(admin_token))
        assert response.status_code == 200
        assert [b["id"] for b in response.json()["data"]] == [sample_booking.id]

    def test_user_lists_own_bookings(self, client, regular_user, regular_token, sample_booking):
        response = client.get(f"/bookings/user/{regular_user.id}", headers=get_auth_header(regular_token))
        assert response.status_code == 200
        bookings = response.json()["data"]
        assert len(bookings) == 1
        assert bookings[0]["facility"] == "Green Cycle Hub"

    def test_user_cannot_list_other_users_bookings(self, client, regular_user, other_token, sample_booking):
        response = client.get(f"/bookings/user/{regular_user.id}", headers=get_auth_header(other_token))
        assert response.status_code == 403

    def test_admin_lists_any_users_bookings(self, client, regular_user, admin_token, sample_booking):
        response = client.get(f"/bookings/user/{regular_user.id}", headers=get_auth_header(admin_token))
        assert response.status_code == 200
        assert len(response.json()["data"]) == 1

    def test_owner_reads_booking(self, client, regular_token, sample_booking):
        response = client.get(f"/bookings/{sample_booking.id}", headers=get_auth_header(regular_token))
        assert response.status_code == 200
        assert response.json()["data"]["recycleItemPrice"] == 2500.0

    def test_other_user_cannot_read_booking(self, client, other_token, sample_booking):
        response = client.get(f"/bookings/{sample_booking.id}", headers=get_auth_header(other_token))
        assert response.status_code == 403

    def test_get_nonexistent_booking(self, client, admin_token):
        response = client.get("/bookings/9999", headers=get_auth_header(admin_token))
        assert response.status_code == 404

    def test_bookings_survive_owner_deletion(self, client, regular_user, regular_token, admin_token, sample_booking):
        client.delete(f"/users/{regular_user.id}", headers=get_auth_header(regular_token))
        response = client.get(f"/bookings/{sample_booking.id}", headers=get_auth_header(admin_token))
        assert response.status_code == 200
        assert response.json()["data"]["userId"] is None


class TestBookingLifecycle:
    """
    Status changes are strictly forward, one step at a time:
    pending -> in-progress -> completed.
    """

    @pytest.mark.parametrize(
        "current, target, allowed",
        [
            ("pending", "in-progress", True),
            ("in-progress", "completed", True),
            ("pending", "completed", False),
            ("in-progress", "pending", False),
            ("completed", "in-progress", False),
            ("completed", "completed", False),
            ("pending", "pending", False),
        ],
    )
    def test_can_transition(self, current, target, allowed):
        assert can_transition(current, target) is allowed

    def test_admin_advances_booking(self, client, admin_user, admin_token, sample_booking):
        response = client.put(
            f"/bookings/{sample_booking.id}",
            headers=get_auth_header(admin_token),
            json={"bookStatus": "in-progress"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["bookStatus"] == "in-progress"
        assert data["bookStatusBy"] == "admin"
        assert data["bookStatusAt"] is not None

        response = client.put(
            f"/bookings/{sample_booking.id}",
            headers=get_auth_header(admin_token),
            json={"bookStatus": "completed"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["bookStatus"] == "completed"

    def test_skip_from_pending_to_completed_rejected(self, client, admin_token, sample_booking):
        """Test that a booking cannot jump straight to completed."""
        response = client.put(
            f"/bookings/{sample_booking.id}",
            headers=get_auth_header(admin_token),
            json={"bookStatus": "completed"},
        )
        assert response.status_code == 409

        response = client.get(f"/bookings/{sample_booking.id}", headers=get_auth_header(admin_token))
        assert response.json()["data"]["bookStatus"] == "pending"

    def test_reversal_rejected(self, client, admin_token, sample_booking, db_session):
        sample_booking.book_status = "completed"
        db_session.commit()
        response = client.put(
            f"/bookings/{sample_booking.id}",
            headers=get_auth_header(admin_token),
            json={"bookStatus": "pending"},
        )
        assert response.status_code == 409

    def test_unknown_status_rejected(self, client, admin_token, sample_booking):
        response = client.put(
            f"/bookings/{sample_booking.id}",
            headers=get_auth_header(admin_token),
            json={"bookStatus": "cancelled"},
        )
        assert response.status_code == 422

    def test_user_cannot_change_status(self, client, regular_token, sample_booking):
        response = client.put(
            f"/bookings/{sample_booking.id}",
            headers=get_auth_header(regular_token),
            json={"bookStatus": "in-progress"},
        )
        assert response.status_code == 403

    def test_update_nonexistent_booking(self, client, admin_token):
        response = client.put(
            "/bookings/9999",
            headers=get_auth_header(admin_token),
            json={"bookStatus": "in-progress"},
        )
        assert response.status_code == 404
