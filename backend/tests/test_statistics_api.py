from conftest import add_booking, at, auth_headers

STATS = "/api/v1/statistics/bookings"


def test_booking_statistics(client, session, admin, user):
    # Monday 10:00-11:30 and Wednesday 14:00-15:00
    add_booking(session, user, at(10, 10), at(10, 11, 30))
    add_booking(session, user, at(12, 14), at(12, 15), status="confirmed")
    add_booking(session, user, at(12, 16), at(12, 17), status="canceled")
    add_booking(session, user, at(20, 10), at(20, 11))

    response = client.get(
        STATS,
        params={"from": "2024-06-10T00:00:00", "to": "2024-06-17T00:00:00"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_bookings"] == 3
    assert (data["pending"], data["confirmed"], data["canceled"]) == (1, 1, 1)
    assert data["booked_minutes"] == 150
    assert data["booked_hours"] == 2.5
    assert data["by_weekday"] == {"1": 1, "3": 1}


def test_statistics_range_must_be_ordered(client, admin):
    response = client.get(
        STATS,
        params={"from": "2024-06-17T00:00:00", "to": "2024-06-10T00:00:00"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400


def test_statistics_require_admin(client, user):
    response = client.get(
        STATS,
        params={"from": "2024-06-10T00:00:00", "to": "2024-06-17T00:00:00"},
        headers=auth_headers(user),
    )
    assert response.status_code == 403
