from app.db.models import Booking, UserRole
from tests.factories import add_booking, add_user, at, auth_headers, future_day, seed_salon


def _payload(salon, clock: str = "10:00", professional=None) -> dict:
    return {
        "branch_id": salon.branch.id,
        "service_id": salon.service.id,
        "professional_id": professional.id if professional else None,
        "scheduled_at": at(future_day(), clock).isoformat(),
    }


def test_client_books_confirms_and_cancels_by_token(client, db_session):
    salon = seed_salon(db_session, professional_count=2)
    first_professional_id = salon.professionals[0].id

    created = client.post(
        "/salon/glow/bookings",
        headers=auth_headers(salon.client),
        json=_payload(salon),
    )
    assert created.status_code == 201
    booking = created.json()
    assert booking["status"] == "pending"
    assert booking["professional_id"] == first_professional_id
    assert booking["display_id"] == f"BK-{booking['id']:06d}"
    assert booking["total_price"] == "25.00"
    assert booking["currency"] == "EUR"
    assert booking["user_name"] == "client-glow"

    token = db_session.get(Booking, booking["id"]).confirmation_token
    by_token = client.get(f"/salon/glow/bookings/token/{token}")
    assert by_token.status_code == 200
    assert by_token.json()["id"] == booking["id"]

    confirmed = client.post("/salon/glow/bookings/confirm", json={"token": token})
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    cancelled = client.delete(f"/salon/glow/bookings/cancel/{token}")
    assert cancelled.status_code == 204

    again = client.delete(f"/salon/glow/bookings/cancel/{token}")
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "conflict"
    assert again.json()["detail"] == "Booking is already cancelled"


def test_token_of_other_tenant_is_not_found(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    seed_salon(db_session, slug="other", professional_count=1)
    booking = add_booking(db_session, salon, salon.professionals[0], salon.client, at(future_day(), "10:00"))

    response = client.post("/salon/other/bookings/confirm", json={"token": booking.confirmation_token})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"


def test_double_booking_returns_conflict(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    professional = salon.professionals[0]
    other_client = add_user(db_session, salon.customer, UserRole.CLIENT, "second-client@example.com")

    first = client.post("/salon/glow/bookings", headers=auth_headers(salon.client), json=_payload(salon))
    second = client.post(
        "/salon/glow/bookings",
        headers=auth_headers(other_client),
        json=_payload(salon, "10:15", professional=professional),
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "Professional is not available at the requested time"


def test_past_booking_is_a_validation_error(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    payload = _payload(salon)
    payload["scheduled_at"] = "2001-01-01T10:00:00Z"

    response = client.post("/salon/glow/bookings", headers=auth_headers(salon.client), json=payload)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


def test_booking_requires_membership_of_the_salon(client, db_session):
    seed_salon(db_session, professional_count=1)
    other = seed_salon(db_session, slug="other", professional_count=1)

    response = client.post("/salon/glow/bookings", headers=auth_headers(other.client), json=_payload(other))

    assert response.status_code == 403


def test_unknown_salon_is_not_found(client, db_session):
    salon = seed_salon(db_session, professional_count=1)

    response = client.get("/salon/nowhere/bookings/my", headers=auth_headers(salon.client))

    assert response.status_code == 404


def test_my_bookings_lists_only_own(client, db_session):
    salon = seed_salon(db_session, professional_count=2)
    first, second = salon.professionals
    add_booking(db_session, salon, first, salon.client, at(future_day(), "10:00"))
    add_booking(db_session, salon, second, salon.staff, at(future_day(), "10:00"))

    response = client.get("/salon/glow/bookings/my", headers=auth_headers(salon.client))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["page"] == 1
    assert body["bookings"][0]["user_id"] == salon.client.id


def test_salon_booking_list_is_staff_only(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    add_booking(db_session, salon, salon.professionals[0], salon.client, at(future_day(), "10:00"))

    as_client = client.get("/salon/glow/bookings", headers=auth_headers(salon.client))
    as_staff = client.get("/salon/glow/bookings?status=pending&limit=5", headers=auth_headers(salon.staff))

    assert as_client.status_code == 403
    assert as_staff.status_code == 200
    assert as_staff.json()["total"] == 1
    assert as_staff.json()["limit"] == 5


def test_client_cannot_read_or_cancel_foreign_booking(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    stranger = add_user(db_session, salon.customer, UserRole.CLIENT, "stranger@example.com")
    booking = add_booking(db_session, salon, salon.professionals[0], salon.client, at(future_day(), "10:00"))

    read = client.get(f"/salon/glow/bookings/{booking.id}", headers=auth_headers(stranger))
    cancel = client.delete(f"/salon/glow/bookings/{booking.id}", headers=auth_headers(stranger))
    own = client.delete(f"/salon/glow/bookings/{booking.id}", headers=auth_headers(salon.client))

    assert read.status_code == 403
    assert cancel.status_code == 403
    assert cancel.json()["error"]["code"] == "forbidden"
    assert own.status_code == 204


def test_client_cannot_change_status(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    booking = add_booking(db_session, salon, salon.professionals[0], salon.client, at(future_day(), "10:00"))

    as_client = client.patch(
        f"/salon/glow/bookings/{booking.id}",
        headers=auth_headers(salon.client),
        json={"status": "confirmed"},
    )
    as_staff = client.patch(
        f"/salon/glow/bookings/{booking.id}",
        headers=auth_headers(salon.staff),
        json={"status": "confirmed"},
    )

    assert as_client.status_code == 403
    assert as_staff.status_code == 200
    assert as_staff.json()["status"] == "confirmed"


def test_client_reschedules_own_booking(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    booking = add_booking(db_session, salon, salon.professionals[0], salon.client, at(future_day(), "10:00"))
    new_time = at(future_day(), "15:30")

    response = client.patch(
        f"/salon/glow/bookings/{booking.id}",
        headers=auth_headers(salon.client),
        json={"scheduled_at": new_time.isoformat()},
    )

    assert response.status_code == 200
    assert response.json()["scheduled_at"].startswith(new_time.strftime("%Y-%m-%dT15:30:00"))


def test_null_scheduled_at_is_rejected(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    booking = add_booking(db_session, salon, salon.professionals[0], salon.client, at(future_day(), "10:00"))

    response = client.patch(
        f"/salon/glow/bookings/{booking.id}",
        headers=auth_headers(salon.staff),
        json={"scheduled_at": None},
    )

    assert response.status_code == 400


def test_admin_endpoints_require_admin(client, db_session):
    salon = seed_salon(db_session, professional_count=1)

    as_staff = client.get("/bookings", headers=auth_headers(salon.staff))
    anonymous = client.get("/bookings")

    assert as_staff.status_code == 403
    assert anonymous.status_code == 401


def test_admin_manages_bookings_across_tenants(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    headers = auth_headers(salon.admin)

    created = client.post(
        "/bookings",
        headers=headers,
        json={**_payload(salon), "user_id": salon.client.id},
    )
    assert created.status_code == 201
    booking_id = created.json()["id"]

    listed = client.get("/bookings?page=1&limit=10", headers=headers)
    assert listed.status_code == 200
    assert listed.json()["total"] == 1

    fetched = client.get(f"/bookings/{booking_id}", headers=headers)
    assert fetched.json()["user_id"] == salon.client.id

    moved = client.patch(
        f"/bookings/{booking_id}",
        headers=headers,
        json={"scheduled_at": at(future_day(), "12:00").isoformat()},
    )
    assert moved.status_code == 200

    deleted = client.delete(f"/bookings/{booking_id}", headers=headers)
    assert deleted.status_code == 204
    # cancelling twice through the admin API stays a success
    assert client.delete(f"/bookings/{booking_id}", headers=headers).status_code == 204
    assert client.get(f"/bookings/{booking_id}", headers=headers).json()["status"] == "cancelled"

    missing = client.get("/bookings/999999", headers=headers)
    assert missing.status_code == 404


def test_admin_is_member_of_every_salon(client, db_session):
    salon = seed_salon(db_session, professional_count=1)

    response = client.get("/salon/glow/bookings", headers=auth_headers(salon.admin))

    assert response.status_code == 200
