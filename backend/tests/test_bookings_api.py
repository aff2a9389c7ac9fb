from sqlmodel import select

from booking_calendar.models import Booking

from conftest import add_booking, at, auth_headers

BOOKINGS = "/api/v1/bookings"


def _interval(start_hour, end_hour):
    return at(10, start_hour), at(10, end_hour)


def booking_payload(start="2024-06-10T10:00:00", end="2024-06-10T11:00:00", title="Review"):
    return {"title": title, "starts_at": start, "ends_at": end}


def test_create_booking_inside_window(client, sink, user, workday_window):
    response = client.post(BOOKINGS + "/", json=booking_payload(), headers=auth_headers(user))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["user_id"] == str(user.id)
    assert data["starts_at"] == "2024-06-10T10:00:00"

    assert len(sink.events) == 1
    event = sink.events[0]
    assert (event.entity_type, event.action) == ("booking", "create")
    assert str(event.entity_id) == data["id"]
    assert event.actor_id == user.id


def test_create_booking_with_offset_is_stored_in_utc(client, user, workday_window):
    payload = booking_payload("2024-06-10T12:00:00+02:00", "2024-06-10T13:00:00+02:00")

    response = client.post(BOOKINGS + "/", json=payload, headers=auth_headers(user))

    assert response.status_code == 201
    assert response.json()["starts_at"] == "2024-06-10T10:00:00"


def test_create_booking_outside_window(client, sink, user, workday_window):
    payload = booking_payload("2024-06-10T16:30:00", "2024-06-10T17:30:00")

    response = client.post(BOOKINGS + "/", json=payload, headers=auth_headers(user))

    assert response.status_code == 409
    body = response.json()
    assert body["reason"] == "OUTSIDE_AVAILABILITY"
    assert body["detail"] == "Selected time slot is not available"
    assert body["conflicting_booking"] is None
    assert sink.events == []


def test_create_overlapping_booking(client, session, sink, user, other_user, workday_window):
    existing = add_booking(session, other_user, *_interval(10, 11), title="Standup")

    payload = booking_payload("2024-06-10T10:30:00", "2024-06-10T11:30:00")
    response = client.post(BOOKINGS + "/", json=payload, headers=auth_headers(user))

    assert response.status_code == 409
    body = response.json()
    assert body["reason"] == "OVERLAPS_BOOKING"
    assert body["conflicting_booking"]["id"] == str(existing.id)
    assert "Standup" in body["detail"]
    assert sink.events == []


def test_create_booking_with_reversed_interval(client, user, workday_window):
    payload = booking_payload("2024-06-10T11:00:00", "2024-06-10T10:00:00")

    response = client.post(BOOKINGS + "/", json=payload, headers=auth_headers(user))

    assert response.status_code == 400
    assert response.json()["detail"] == "end must be after start"


def test_create_booking_requires_auth(client, workday_window):
    assert client.post(BOOKINGS + "/", json=booking_payload()).status_code == 401


def test_check_endpoint_reports_without_writing(client, session, user, workday_window):
    headers = auth_headers(user)
    allowed = client.post(
        BOOKINGS + "/check",
        json={"starts_at": "2024-06-10T10:00:00", "ends_at": "2024-06-10T11:00:00"},
        headers=headers,
    )
    assert allowed.json() == {"allowed": True, "reason": None, "conflicting_booking": None}

    denied = client.post(
        BOOKINGS + "/check",
        json={"starts_at": "2024-06-10T08:00:00", "ends_at": "2024-06-10T09:30:00"},
        headers=headers,
    )
    assert denied.json()["reason"] == "OUTSIDE_AVAILABILITY"
    assert session.exec(select(Booking)).all() == []


def test_check_endpoint_with_excluded_booking(client, session, user, workday_window):
    booking = add_booking(session, user, *_interval(10, 11))
    body = {"starts_at": "2024-06-10T10:00:00", "ends_at": "2024-06-10T11:00:00"}

    conflict = client.post(BOOKINGS + "/check", json=body, headers=auth_headers(user)).json()
    assert conflict["reason"] == "OVERLAPS_BOOKING"
    assert conflict["conflicting_booking"]["id"] == str(booking.id)

    body["exclude_booking_id"] = str(booking.id)
    result = client.post(BOOKINGS + "/check", json=body, headers=auth_headers(user)).json()
    assert result["allowed"] is True


def test_reschedule_over_own_previous_interval(client, session, sink, user, workday_window):
    booking = add_booking(session, user, *_interval(10, 11))

    response = client.put(
        f"{BOOKINGS}/{booking.id}",
        json={"starts_at": "2024-06-10T10:30:00", "ends_at": "2024-06-10T11:30:00"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert response.json()["ends_at"] == "2024-06-10T11:30:00"
    assert [event.action for event in sink.events] == ["update"]


def test_resubmitting_unchanged_interval_succeeds(client, session, user, workday_window):
    booking = add_booking(session, user, *_interval(10, 11))

    response = client.put(
        f"{BOOKINGS}/{booking.id}",
        json={"starts_at": "2024-06-10T10:00:00", "ends_at": "2024-06-10T11:00:00"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200


def test_reschedule_onto_another_booking_is_rejected(
    client, session, sink, user, other_user, workday_window
):
    mine = add_booking(session, user, *_interval(10, 11))
    add_booking(session, other_user, *_interval(12, 13))

    response = client.put(
        f"{BOOKINGS}/{mine.id}",
        json={"starts_at": "2024-06-10T12:30:00", "ends_at": "2024-06-10T13:30:00"},
        headers=auth_headers(user),
    )

    assert response.status_code == 409
    assert response.json()["reason"] == "OVERLAPS_BOOKING"
    session.refresh(mine)
    assert mine.starts_at == _interval(10, 11)[0]
    assert sink.events == []


def test_title_update_does_not_recheck_availability(client, session, user):
    # No window covers this booking any more, editing its title still works
    booking = add_booking(session, user, *_interval(10, 11))

    response = client.put(
        f"{BOOKINGS}/{booking.id}", json={"title": "Renamed"}, headers=auth_headers(user)
    )

    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"


def test_canceling_frees_the_slot(client, session, user, other_user, workday_window):
    booking = add_booking(session, other_user, *_interval(10, 11))

    cancel = client.put(
        f"{BOOKINGS}/{booking.id}", json={"status": "canceled"}, headers=auth_headers(other_user)
    )
    assert cancel.status_code == 200
    assert cancel.json()["status"] == "canceled"

    response = client.post(BOOKINGS + "/", json=booking_payload(), headers=auth_headers(user))
    assert response.status_code == 201


def test_status_transitions(client, session, admin, user, workday_window):
    booking = add_booking(session, user, *_interval(10, 11))
    url = f"{BOOKINGS}/{booking.id}"
    headers = auth_headers(admin)

    assert client.put(url, json={"status": "confirmed"}, headers=headers).status_code == 200
    back = client.put(url, json={"status": "pending"}, headers=headers)
    assert back.status_code == 400
    assert client.put(url, json={"status": "canceled"}, headers=headers).status_code == 200
    revive = client.put(url, json={"status": "confirmed"}, headers=headers)
    assert revive.status_code == 400


def test_unknown_status_is_rejected_by_schema(client, session, user, workday_window):
    booking = add_booking(session, user, *_interval(10, 11))

    response = client.put(
        f"{BOOKINGS}/{booking.id}", json={"status": "archived"}, headers=auth_headers(user)
    )

    assert response.status_code == 422


def test_canceled_booking_cannot_be_rescheduled(client, session, user, workday_window):
    booking = add_booking(session, user, *_interval(10, 11), status="canceled")

    response = client.put(
        f"{BOOKINGS}/{booking.id}",
        json={"starts_at": "2024-06-10T12:00:00", "ends_at": "2024-06-10T13:00:00"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400


def test_other_user_cannot_touch_booking(client, session, user, other_user, workday_window):
    booking = add_booking(session, user, *_interval(10, 11))
    url = f"{BOOKINGS}/{booking.id}"
    headers = auth_headers(other_user)

    assert client.get(url, headers=headers).status_code == 403
    assert client.put(url, json={"title": "Mine now"}, headers=headers).status_code == 403
    assert client.delete(url, headers=headers).status_code == 403


def test_admin_can_modify_any_booking(client, session, admin, user, workday_window):
    booking = add_booking(session, user, *_interval(10, 11))

    response = client.put(
        f"{BOOKINGS}/{booking.id}", json={"status": "confirmed"}, headers=auth_headers(admin)
    )

    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"


def test_delete_booking(client, session, sink, user, workday_window):
    booking_id = add_booking(session, user, *_interval(10, 11)).id
    url = f"{BOOKINGS}/{booking_id}"

    response = client.delete(url, headers=auth_headers(user))

    assert response.status_code == 204
    assert client.get(url, headers=auth_headers(user)).status_code == 404
    assert len(sink.events) == 1
    event = sink.events[0]
    assert (event.action, event.entity_id, event.entity) == ("delete", booking_id, None)


def test_missing_booking_is_404(client, user):
    response = client.get(
        f"{BOOKINGS}/00000000-0000-0000-0000-000000000000", headers=auth_headers(user)
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Booking not found"


def test_external_event_ref(client, session, sink, user, workday_window):
    booking = add_booking(session, user, *_interval(10, 11), status="canceled")
    url = f"{BOOKINGS}/{booking.id}/external-ref"

    response = client.put(url, json={"external_event_ref": "gcal-123"}, headers=auth_headers(user))

    assert response.status_code == 200
    data = response.json()
    assert data["external_event_ref"] == "gcal-123"
    assert data["status"] == "canceled"
    assert sink.events[0].entity["external_event_ref"] == "gcal-123"

    cleared = client.put(url, json={"external_event_ref": None}, headers=auth_headers(user))
    assert cleared.json()["external_event_ref"] is None


def test_list_my_bookings(client, session, user, other_user):
    add_booking(session, user, *_interval(12, 13), title="Second")
    add_booking(session, user, *_interval(10, 11), title="First")
    add_booking(session, other_user, *_interval(14, 15), title="Not mine")

    response = client.get(BOOKINGS + "/me", headers=auth_headers(user))

    assert [b["title"] for b in response.json()] == ["First", "Second"]


def test_admin_listing_with_filters(client, session, admin, user, other_user):
    add_booking(session, user, *_interval(10, 11), title="Morning")
    add_booking(session, other_user, *_interval(14, 15), title="Afternoon", status="confirmed")
    add_booking(session, user, *_interval(16, 17), title="Dropped", status="canceled")
    headers = auth_headers(admin)

    everything = client.get(BOOKINGS + "/", headers=headers).json()
    assert [b["title"] for b in everything] == ["Morning", "Afternoon", "Dropped"]
    assert everything[0]["user_email"] == "alice@example.com"

    confirmed = client.get(BOOKINGS + "/", params={"status": "confirmed"}, headers=headers)
    assert [b["title"] for b in confirmed.json()] == ["Afternoon"]

    ranged = client.get(
        BOOKINGS + "/",
        params={"from": "2024-06-10T10:30:00", "to": "2024-06-10T14:00:00"},
        headers=headers,
    )
    assert [b["title"] for b in ranged.json()] == ["Morning"]


def test_admin_listing_forbidden_for_users(client, user):
    assert client.get(BOOKINGS + "/", headers=auth_headers(user)).status_code == 403