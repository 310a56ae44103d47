"""HTTP surface: seat map polling, reservations, fixed seats and settings."""

from datetime import datetime

import pytest

from conftest import CENTER_ID

SEAT_MAP = f"/api/v1/study-cafe/seats/{CENTER_ID}"
RESERVATIONS = "/api/v1/study-cafe/reservations"
FIXED_SEATS = "/api/v1/study-cafe/fixed-seats"


def seat_entry(body, seat_number):
    return next(s for s in body["seats"] if s["seat"]["seat_number"] == seat_number)


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_seat_map_requires_token(client, seats):
    response = await client.get(SEAT_MAP)

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_seat_map_rejects_garbage_token(client, seats):
    response = await client.get(SEAT_MAP, headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_seat_map_lists_every_seat(client, seats, auth_headers):
    response = await client.get(SEAT_MAP, headers=auth_headers("student-a"))

    assert response.status_code == 200
    body = response.json()
    assert body["center_id"] == CENTER_ID
    assert body["poll_interval_seconds"] == 30
    assert body["notice"] == "Quiet please"
    assert len(body["seats"]) == 26
    assert all(s["is_available"] and s["state"]["kind"] == "available" for s in body["seats"])


@pytest.mark.asyncio
async def test_reserve_then_seat_map_shows_reserved(client, seats, auth_headers):
    response = await client.post(
        RESERVATIONS,
        json={"seat_id": str(seats[12].id), "center_id": CENTER_ID},
        headers=auth_headers("student-a"),
    )

    assert response.status_code == 201
    reservation = response.json()
    assert reservation["student_id"] == "student-a"
    assert reservation["status"] == "active"
    assert reservation["remaining_minutes"] == 120

    body = (await client.get(SEAT_MAP, headers=auth_headers("student-b"))).json()
    entry = seat_entry(body, 12)
    assert entry["is_available"] is False
    assert entry["state"]["kind"] == "reserved"
    assert entry["state"]["student_id"] == "student-a"
    assert entry["state"]["remaining_minutes"] == 120


@pytest.mark.asyncio
async def test_taken_seat_is_a_conflict(client, seats, auth_headers):
    payload = {"seat_id": str(seats[12].id), "center_id": CENTER_ID}
    await client.post(RESERVATIONS, json=payload, headers=auth_headers("student-a"))

    response = await client.post(RESERVATIONS, json=payload, headers=auth_headers("student-b"))

    assert response.status_code == 409
    assert response.json()["error"]["error_code"] == "SEAT_OCCUPIED"


@pytest.mark.asyncio
async def test_second_reservation_for_student_is_a_conflict(client, seats, auth_headers):
    headers = auth_headers("student-a")
    await client.post(RESERVATIONS, json={"seat_id": str(seats[1].id), "center_id": CENTER_ID}, headers=headers)

    response = await client.post(
        RESERVATIONS, json={"seat_id": str(seats[2].id), "center_id": CENTER_ID}, headers=headers
    )

    assert response.status_code == 409
    assert response.json()["error"]["error_code"] == "ALREADY_RESERVED"


@pytest.mark.asyncio
async def test_my_reservation(client, seats, auth_headers):
    headers = auth_headers("student-a")
    params = {"center_id": CENTER_ID}

    assert (await client.get(f"{RESERVATIONS}/me", params=params, headers=headers)).json() is None

    await client.post(RESERVATIONS, json={"seat_id": str(seats[5].id), "center_id": CENTER_ID}, headers=headers)
    response = await client.get(f"{RESERVATIONS}/me", params=params, headers=headers)

    assert response.status_code == 200
    assert response.json()["seat_id"] == str(seats[5].id)


@pytest.mark.asyncio
async def test_release_by_owner_and_by_stranger(client, seats, auth_headers):
    created = await client.post(
        RESERVATIONS,
        json={"seat_id": str(seats[9].id), "center_id": CENTER_ID},
        headers=auth_headers("student-a"),
    )
    release_url = f"{RESERVATIONS}/{created.json()['id']}/release"

    forbidden = await client.post(release_url, headers=auth_headers("student-b"))
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["error_code"] == "FORBIDDEN"

    released = await client.post(release_url, headers=auth_headers("student-a"))
    assert released.status_code == 200
    assert released.json()["released"] is True
    assert released.json()["reservation"]["status"] == "released"

    again = await client.post(release_url, headers=auth_headers("student-a"))
    assert again.status_code == 200
    assert again.json()["reservation"]["status"] == "released"

    body = (await client.get(SEAT_MAP, headers=auth_headers("student-b"))).json()
    assert seat_entry(body, 9)["is_available"] is True


@pytest.mark.asyncio
async def test_extend_restarts_window(client, clock, seats, auth_headers):
    headers = auth_headers("student-a")
    created = await client.post(
        RESERVATIONS, json={"seat_id": str(seats[3].id), "center_id": CENTER_ID}, headers=headers
    )
    clock.advance(minutes=90)

    response = await client.post(f"{RESERVATIONS}/{created.json()['id']}/extend", headers=headers)

    assert response.status_code == 200
    assert response.json()["remaining_minutes"] == 120


@pytest.mark.asyncio
async def test_lapsed_reservation_frees_seat(client, clock, seats, auth_headers):
    await client.post(
        RESERVATIONS,
        json={"seat_id": str(seats[4].id), "center_id": CENTER_ID},
        headers=auth_headers("student-a"),
    )
    clock.advance(minutes=120)

    body = (await client.get(SEAT_MAP, headers=auth_headers("student-b"))).json()

    assert seat_entry(body, 4)["is_available"] is True


@pytest.mark.asyncio
async def test_disabled_center_is_forbidden(client, auth_headers):
    response = await client.get("/api/v1/study-cafe/seats/center-closed", headers=auth_headers("student-a"))

    assert response.status_code == 403
    assert response.json()["error"]["error_code"] == "CENTER_FEATURE_DISABLED"


@pytest.mark.asyncio
async def test_students_cannot_assign_fixed_seats(client, seats, auth_headers):
    response = await client.post(
        FIXED_SEATS,
        json={
            "seat_id": str(seats[7].id),
            "student_id": "student-a",
            "center_id": CENTER_ID,
            "start_date": "2024-03-01",
            "end_date": "2024-03-31",
        },
        headers=auth_headers("student-a"),
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_fixed_seat_lifecycle(client, seats, auth_headers):
    staff_headers = auth_headers("teacher-kim", "teacher")
    created = await client.post(
        FIXED_SEATS,
        json={
            "seat_id": str(seats[7].id),
            "student_id": "student-a",
            "center_id": CENTER_ID,
            "start_date": "2024-03-01",
            "end_date": "2024-03-31",
        },
        headers=staff_headers,
    )
    assert created.status_code == 201
    assignment_id = created.json()["id"]

    body = (await client.get(SEAT_MAP, headers=auth_headers("student-b"))).json()
    entry = seat_entry(body, 7)
    assert entry["state"]["kind"] == "fixed"
    assert entry["state"]["student_id"] == "student-a"

    reserve = await client.post(
        RESERVATIONS,
        json={"seat_id": str(seats[7].id), "center_id": CENTER_ID},
        headers=auth_headers("student-b"),
    )
    assert reserve.status_code == 409
    assert reserve.json()["error"]["error_code"] == "SEAT_FIXED"

    listed = await client.get(f"{FIXED_SEATS}/{CENTER_ID}", headers=staff_headers)
    assert [a["id"] for a in listed.json()] == [assignment_id]

    deleted = await client.delete(f"{FIXED_SEATS}/{assignment_id}", headers=staff_headers)
    assert deleted.status_code == 204

    body = (await client.get(SEAT_MAP, headers=auth_headers("student-b"))).json()
    assert seat_entry(body, 7)["is_available"] is True


@pytest.mark.asyncio
async def test_overlapping_fixed_seat_is_a_conflict(client, seats, auth_headers):
    staff_headers = auth_headers("teacher-kim", "teacher")
    payload = {
        "seat_id": str(seats[8].id),
        "student_id": "student-a",
        "center_id": CENTER_ID,
        "start_date": "2024-01-01",
        "end_date": "2024-01-31",
    }
    await client.post(FIXED_SEATS, json=payload, headers=staff_headers)

    response = await client.post(
        FIXED_SEATS,
        json={**payload, "student_id": "student-b", "start_date": "2024-01-15", "end_date": "2024-02-15"},
        headers=staff_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"]["error_code"] == "OVERLAPPING_ASSIGNMENT"


@pytest.mark.asyncio
async def test_staff_enables_center(client, auth_headers):
    staff_headers = auth_headers("principal-lee", "principal")

    response = await client.put(
        "/api/v1/study-cafe/settings/center-new",
        json={"is_enabled": True, "notice": "Open 9-22"},
        headers=staff_headers,
    )
    assert response.status_code == 200
    assert response.json()["is_enabled"] is True

    enabled = await client.get("/api/v1/study-cafe/enabled-centers", headers=auth_headers("student-a"))
    assert [c["center_id"] for c in enabled.json()] == ["center-new"]

    body = (await client.get("/api/v1/study-cafe/seats/center-new", headers=auth_headers("student-a"))).json()
    assert len(body["seats"]) == 26


@pytest.mark.asyncio
async def test_students_cannot_change_settings(client, auth_headers):
    response = await client.put(
        f"/api/v1/study-cafe/settings/{CENTER_ID}",
        json={"is_enabled": False},
        headers=auth_headers("student-a"),
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_staff_cannot_reserve(client, seats, auth_headers):
    response = await client.post(
        RESERVATIONS,
        json={"seat_id": str(seats[12].id), "center_id": CENTER_ID},
        headers=auth_headers("teacher-kim", "teacher"),
    )

    assert response.status_code == 403
    assert response.json()["error"]["error_code"] == "FORBIDDEN"

    body = (await client.get(SEAT_MAP, headers=auth_headers("student-a"))).json()
    assert seat_entry(body, 12)["is_available"] is True


@pytest.mark.asyncio
async def test_seat_map_is_computed_at_one_instant(client, clock, seats, auth_headers):
    await client.post(
        RESERVATIONS,
        json={"seat_id": str(seats[6].id), "center_id": CENTER_ID},
        headers=auth_headers("student-a"),
    )
    clock.advance(minutes=30, seconds=30)

    body = (await client.get(SEAT_MAP, headers=auth_headers("student-b"))).json()

    generated_at = datetime.fromisoformat(body["generated_at"].replace("Z", "+00:00"))
    assert generated_at == clock.now()
    assert seat_entry(body, 6)["state"]["remaining_minutes"] == 90
