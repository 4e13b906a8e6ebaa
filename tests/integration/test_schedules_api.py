from tests.factories import auth_headers, seed_salon


def test_staff_updates_branch_hours(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    url = f"/salon/glow/branches/{salon.branch.id}/schedules"

    updated = client.put(
        f"{url}/1",
        headers=auth_headers(salon.staff),
        json={"start_time": "10:00", "end_time": "16:00"},
    )
    listed = client.get(url, headers=auth_headers(salon.client))

    assert updated.status_code == 200
    assert updated.json()["start_time"] == "10:00"
    assert listed.status_code == 200
    assert len(listed.json()) == 7
    monday = next(row for row in listed.json() if row["day_of_week"] == 1)
    assert monday["end_time"] == "16:00"


def test_client_cannot_update_schedules(client, db_session):
    salon = seed_salon(db_session, professional_count=1)

    response = client.put(
        f"/salon/glow/branches/{salon.branch.id}/schedules/1",
        headers=auth_headers(salon.client),
        json={"start_time": "10:00", "end_time": "16:00"},
    )

    assert response.status_code == 403


def test_professional_break_must_fit_working_hours(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    url = f"/salon/glow/professionals/{salon.professionals[0].id}/schedules/2"
    headers = auth_headers(salon.staff)

    outside = client.put(
        url,
        headers=headers,
        json={"start_time": "09:00", "end_time": "17:00", "break_start_time": "17:00", "break_end_time": "18:00"},
    )
    inverted = client.put(url, headers=headers, json={"start_time": "17:00", "end_time": "09:00"})
    half_break = client.put(
        url, headers=headers, json={"start_time": "09:00", "end_time": "17:00", "break_start_time": "12:00"}
    )
    valid = client.put(
        url,
        headers=headers,
        json={"start_time": "09:00", "end_time": "17:00", "break_start_time": "12:00", "break_end_time": "12:45"},
    )

    assert outside.status_code == 422
    assert inverted.status_code == 422
    assert half_break.status_code == 422
    assert valid.status_code == 200
    assert valid.json()["break_end_time"] == "12:45"


def test_weekday_out_of_range_is_rejected(client, db_session):
    salon = seed_salon(db_session, professional_count=1)

    response = client.put(
        f"/salon/glow/branches/{salon.branch.id}/schedules/7",
        headers=auth_headers(salon.staff),
        json={"start_time": "10:00", "end_time": "16:00"},
    )

    assert response.status_code == 422


def test_schedules_of_other_tenants_are_hidden(client, db_session):
    salon = seed_salon(db_session, professional_count=1)
    other = seed_salon(db_session, slug="other", professional_count=1)

    response = client.get(
        f"/salon/glow/professionals/{other.professionals[0].id}/schedules",
        headers=auth_headers(salon.staff),
    )

    assert response.status_code == 404
