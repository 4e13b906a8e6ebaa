from app.core.config import settings
from tests.factories import add_booking, at, auth_headers, future_day, seed_salon


def _availability(client, salon, day, **params):
    query = {"branch_id": salon.branch.id, "service_id": salon.service.id, "date": day.isoformat(), **params}
    return client.get(f"/salon/{salon.customer.url_slug}/availability", params=query)


def test_availability_is_public_and_lists_slots(client, db_session):
    salon = seed_salon(db_session, professional_count=1, duration_minutes=45)
    day = future_day()

    response = _availability(client, salon, day)

    assert response.status_code == 200
    body = response.json()
    assert body["date"] == day.isoformat()
    assert body["service"] == {"id": salon.service.id, "name": "Haircut", "duration": 45}
    times = [slot["time"] for slot in body["available_slots"]]
    assert times[0] == "09:00"
    assert times[-1] == "17:00"
    assert len(times) == 17


def test_cancelling_frees_the_slot(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    professional_id = salon.professionals[0].id
    day = future_day()
    booking = add_booking(db_session, salon, salon.professionals[0], salon.client, at(day, "11:00"))
    headers = auth_headers(salon.staff)
    client.patch(f"/salon/glow/bookings/{booking.id}", headers=headers, json={"status": "confirmed"})

    def slot_at_eleven():
        slots = _availability(client, salon, day, professional_id=professional_id).json()["available_slots"]
        return next(slot for slot in slots if slot["time"] == "11:00")

    assert slot_at_eleven()["available"] is False
    assert client.delete(f"/salon/glow/bookings/{booking.id}", headers=headers).status_code == 204
    assert slot_at_eleven() == {"time": "11:00", "available": True, "professional_id": professional_id}


def test_malformed_date_is_a_validation_error(client, db_session):
    salon = seed_salon(db_session, professional_count=1)

    response = client.get(
        "/salon/glow/availability",
        params={"branch_id": salon.branch.id, "service_id": salon.service.id, "date": "2030-13-01"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


def test_missing_query_parameter_is_request_validation_error(client, db_session):
    seed_salon(db_session, professional_count=1)

    response = client.get("/salon/glow/availability", params={"date": future_day().isoformat()})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "request_validation_error"


def test_unknown_professional_is_not_found(client, db_session):
    salon = seed_salon(db_session, professional_count=1)

    response = _availability(client, salon, future_day(), professional_id=424242)

    assert response.status_code == 404


def test_availability_is_rate_limited(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    original_limit = settings.public_rate_limit_max_attempts
    settings.public_rate_limit_max_attempts = 2
    try:
        statuses = [_availability(client, salon, future_day()).status_code for _ in range(3)]
    finally:
        settings.public_rate_limit_max_attempts = original_limit

    assert statuses == [200, 200, 429]
