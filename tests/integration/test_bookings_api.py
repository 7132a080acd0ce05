BASE_BOOKING = {
    "hallName": "Main Hall",
    "bookingName": "Guest Lecture",
    "email": "alice@newhorizonindia.edu",
    "department": "CSE",
    "phone": "9876543210",
    "slotTitle": "Seminar",
}


def _time_slot(day="2025-03-10", start="10:00", end="11:00", **extra):
    return {**BASE_BOOKING, "date": day, "startTime": start, "endTime": end, **extra}


def _day_range(start="2025-04-01", end="2025-04-03", day_slots=None, **extra):
    payload = {**BASE_BOOKING, "startDate": start, "endDate": end, **extra}
    if day_slots is not None:
        payload["daySlots"] = day_slots
    return payload


def test_create_booking_returns_pending_camel_case_record(client):
    response = client.post("/bookings", json=_time_slot())

    assert response.status_code == 201
    body = response.json()
    assert body["id"] > 0
    assert body["hallName"] == "Main Hall"
    assert body["status"] == "PENDING"
    assert body["createdBy"] is None
    assert body["appliedAt"]


def test_overlapping_time_slot_is_rejected_with_conflict_details(client):
    first = client.post("/bookings", json=_time_slot()).json()

    response = client.post("/bookings", json=_time_slot(start="10:30", end="11:30"))

    assert response.status_code == 409
    body = response.json()
    assert body["error"]["code"] == "booking_conflict"
    assert body["detail"]["conflictingBookingId"] == first["id"]
    assert body["detail"]["conflictingInterval"] == "10:00-11:00"
    assert body["detail"]["date"] == "2025-03-10"
    assert "Main Hall is already booked on 2025-03-10" in body["error"]["message"]


def test_back_to_back_and_other_hall_bookings_are_accepted(client):
    assert client.post("/bookings", json=_time_slot()).status_code == 201
    assert client.post("/bookings", json=_time_slot(start="11:00", end="12:00")).status_code == 201
    assert client.post("/bookings", json=_time_slot(hallName="Annex")).status_code == 201


def test_hall_names_compare_case_insensitively(client):
    assert client.post("/bookings", json=_time_slot()).status_code == 201

    response = client.post("/bookings", json=_time_slot(hallName="  main hall"))

    assert response.status_code == 409


def test_day_range_blocks_time_slot_on_covered_day(client):
    created = client.post(
        "/bookings",
        json=_day_range(day_slots={"2025-04-02": {"startTime": "09:00", "endTime": "12:00"}}),
    )
    assert created.status_code == 201
    assert created.json()["daySlots"] == {"2025-04-02": {"startTime": "09:00", "endTime": "12:00"}}

    clash = client.post("/bookings", json=_time_slot(day="2025-04-02", start="11:00", end="13:00"))
    free = client.post("/bookings", json=_time_slot(day="2025-04-02", start="12:00", end="13:00"))
    unlisted_day = client.post("/bookings", json=_time_slot(day="2025-04-01", start="18:00", end="19:00"))

    assert clash.status_code == 409
    assert clash.json()["detail"]["conflictingInterval"] == "09:00-12:00"
    assert free.status_code == 201
    assert unlisted_day.status_code == 201


def test_empty_day_slots_block_the_whole_range(client):
    created = client.post("/bookings", json=_day_range(day_slots={}))
    assert created.status_code == 201
    assert created.json()["daySlots"] is None

    response = client.post("/bookings", json=_time_slot(day="2025-04-03", start="07:00", end="08:00"))

    assert response.status_code == 409
    assert response.json()["detail"]["conflictingInterval"] == "full-day booking"


def test_validation_errors_report_kind_and_field(client):
    bad_email = client.post("/bookings", json=_time_slot(email="alice@gmail.com"))
    bad_phone = client.post("/bookings", json=_time_slot(phone="12345"))
    bad_range = client.post("/bookings", json=_time_slot(start="11:00", end="10:00"))
    outside = client.post(
        "/bookings",
        json=_day_range(day_slots={"2025-05-01": {"startTime": "09:00", "endTime": "10:00"}}),
    )
    both_shapes = client.post("/bookings", json={**_time_slot(), "startDate": "2025-04-01", "endDate": "2025-04-02"})

    assert bad_email.status_code == 400
    assert bad_email.json()["detail"]["kind"] == "INVALID_EMAIL"
    assert bad_phone.json()["detail"]["kind"] == "INVALID_PHONE"
    assert bad_range.json()["detail"] == {
        "kind": "BAD_TIME_RANGE",
        "field": "endTime",
        "message": bad_range.json()["error"]["message"],
    }
    assert outside.json()["detail"]["kind"] == "DAYSLOT_OUT_OF_RANGE"
    assert both_shapes.json()["detail"]["kind"] == "MALFORMED_PAYLOAD"
    assert client.get("/bookings").json() == []


def test_non_admin_cannot_set_status_or_creator(client, department_headers):
    forced = client.post("/bookings", json=_time_slot(status="APPROVED"), headers=department_headers)
    assert forced.status_code == 201
    assert forced.json()["status"] == "PENDING"

    creator = client.post("/bookings", json=_time_slot(start="12:00", end="13:00", createdBy="ADMIN"))
    assert creator.status_code == 400
    assert creator.json()["detail"]["kind"] == "FORBIDDEN_FIELD"


def test_admin_can_create_approved_booking(client, admin_headers):
    response = client.post("/bookings", json=_time_slot(status="APPROVED"), headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["status"] == "APPROVED"
    assert response.json()["createdBy"] == "ADMIN"


def test_update_requires_admin(client, department_headers):
    booking = client.post("/bookings", json=_time_slot()).json()

    anonymous = client.put(f"/bookings/{booking['id']}", json={"status": "APPROVED"})
    department = client.put(f"/bookings/{booking['id']}", json={"status": "APPROVED"}, headers=department_headers)

    assert anonymous.status_code == 401
    assert department.status_code == 403


def test_admin_update_approves_and_rechecks_conflicts(client, admin_headers):
    booking = client.post("/bookings", json=_time_slot()).json()
    other = client.post("/bookings", json=_time_slot(start="11:30", end="12:30")).json()

    approved = client.put(
        f"/bookings/{booking['id']}",
        json={"status": "APPROVED", "remarks": "Looks fine"},
        headers=admin_headers,
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "APPROVED"
    assert approved.json()["remarks"] == "Looks fine"

    moved = client.put(
        f"/bookings/{booking['id']}",
        json={"startTime": "11:00", "endTime": "12:00"},
        headers=admin_headers,
    )
    assert moved.status_code == 409
    assert moved.json()["detail"]["conflictingBookingId"] == other["id"]
    assert client.get(f"/bookings/{booking['id']}").json()["startTime"] == "10:00"


def test_invalid_transition_is_rejected(client, admin_headers):
    booking = client.post("/bookings", json=_time_slot()).json()
    rejected = client.put(f"/bookings/{booking['id']}", json={"status": "REJECTED"}, headers=admin_headers)
    assert rejected.status_code == 200

    response = client.put(f"/bookings/{booking['id']}", json={"status": "APPROVED"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "INVALID_STATUS_TRANSITION"


def test_update_missing_booking_returns_not_found(client, admin_headers):
    response = client.put("/bookings/404", json={"status": "APPROVED"}, headers=admin_headers)

    assert response.status_code == 404


def test_cancel_request_flow_releases_slot_once_cancelled(client, admin_headers):
    booking = client.post("/bookings", json=_time_slot(remarks="First")).json()

    requested = client.put(
        f"/bookings/{booking['id']}/cancel-request",
        json={"cancellationReason": "Event postponed", "remarks": "Speaker unavailable"},
    )
    assert requested.status_code == 200
    body = requested.json()
    assert body["status"] == "CANCEL_REQUESTED"
    assert body["cancellationReason"] == "Event postponed"
    assert body["remarks"] == "First | Speaker unavailable"

    assert client.post("/bookings", json=_time_slot()).status_code == 409

    cancelled = client.put(f"/bookings/{booking['id']}", json={"status": "CANCELLED"}, headers=admin_headers)
    assert cancelled.status_code == 200
    assert client.post("/bookings", json=_time_slot()).status_code == 201

    again = client.put(f"/bookings/{booking['id']}/cancel-request", json={"cancellationReason": "Twice"})
    assert again.status_code == 400


def test_delete_booking_frees_the_hall(client, admin_headers):
    booking = client.post("/bookings", json=_time_slot()).json()

    assert client.delete(f"/bookings/{booking['id']}").status_code == 401
    assert client.delete(f"/bookings/{booking['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/bookings/{booking['id']}").status_code == 404
    assert client.delete(f"/bookings/{booking['id']}", headers=admin_headers).status_code == 404
    assert client.post("/bookings", json=_time_slot()).status_code == 201


def test_read_views(client):
    client.post("/bookings", json=_time_slot())
    client.post("/bookings", json=_time_slot(hallName="Annex", department="ECE", email="bob@newhorizonindia.edu"))
    client.post("/bookings", json=_day_range(start="2025-03-09", end="2025-03-11", hallName="Seminar Room"))
    client.post("/bookings", json={**BASE_BOOKING, "hallName": "Annex", "slot": "Morning Session"})

    by_date = client.get("/bookings/date/2025-03-10").json()
    by_hall_date = client.get("/bookings/hall/main hall/date/2025-03-10").json()
    day_view = client.get("/bookings/day/2025-03-10").json()
    room_view = client.get("/bookings/day/2025-03-11", params={"hall": "seminar room"}).json()
    history = client.get("/bookings/history", params={"department": "ECE", "email": "bob@newhorizonindia.edu"}).json()
    pending = client.get("/bookings/status/pending").json()
    search = client.get("/bookings/search", params={"hall": "annex", "slot": "morning"}).json()
    dated = client.get("/bookings/search", params={"date": "2025-03-10"}).json()

    assert [item["id"] for item in by_date] == [1, 2]
    assert [item["id"] for item in by_hall_date] == [1]
    assert [item["id"] for item in day_view] == [1, 2, 3]
    assert [item["id"] for item in room_view] == [3]
    assert [item["id"] for item in history] == [2]
    assert len(pending) == 4
    assert [item["id"] for item in search] == [4]
    assert [item["id"] for item in dated] == [1, 2]


def test_month_calendar(client):
    client.post("/bookings", json=_time_slot(day="2025-02-27"))
    client.post("/bookings", json=_day_range(start="2025-02-28", end="2025-03-01"))

    response = client.get("/bookings/calendar", params={"year": 2025, "month": 2, "hall": "Main Hall"})

    assert response.status_code == 200
    days = response.json()
    assert len(days) == 28
    assert days[0] == {"date": "2025-02-01", "free": True, "count": 0}
    assert days[26] == {"date": "2025-02-27", "free": False, "count": 1}
    assert days[27] == {"date": "2025-02-28", "free": False, "count": 1}


def test_notification_failure_does_not_fail_the_write(client, monkeypatch):
    from app.tasks.notifications import booking_event_task

    def broken_delay(*args):
        raise ConnectionError("broker down")

    monkeypatch.setattr(booking_event_task, "delay", broken_delay)

    response = client.post("/bookings", json=_time_slot())

    assert response.status_code == 201
    assert client.get(f"/bookings/{response.json()['id']}").status_code == 200
