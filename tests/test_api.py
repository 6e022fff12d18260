"""Tests for the HTTP API."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient

from tests.conftest import MONDAY, NOW, at

API = "/api/v1"


async def register(client: AsyncClient, headers: dict, data: dict) -> dict:
    response = await client.post(f"{API}/professionals", json=data, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def book(client: AsyncClient, headers: dict, professional_id: str, start: datetime) -> dict:
    response = await client.post(
        f"{API}/appointments",
        json={
            "patient_id": str(uuid4()),
            "professional_id": professional_id,
            "scheduled_at": start.isoformat(),
        },
        headers=headers,
    )
    return response.json() | {"_status": response.status_code}


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get(f"{API}/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_detailed_health_reports_storage(client: AsyncClient) -> None:
    response = await client.get(f"{API}/health/detailed")
    assert response.status_code == 200
    assert response.json()["storage_backend"] == "memory"
    assert "X-Process-Time" in response.headers


@pytest.mark.asyncio
async def test_ping(client: AsyncClient) -> None:
    response = await client.get(f"{API}/ping")
    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient) -> None:
    response = await client.get(f"{API}/professionals")
    assert response.status_code in (401, 403)

    response = await client.get(
        f"{API}/professionals", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401
    assert response.json()["kind"] == "unauthorized"


@pytest.mark.asyncio
async def test_professional_crud(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict
) -> None:
    created = await register(client, auth_headers, sample_professional_data)
    assert created["status"] == "active"
    assert created["consultation_fee"] == 200.0

    pid = created["id"]
    response = await client.patch(
        f"{API}/professionals/{pid}", json={"phone": "+55 11 4000-0000"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["phone"] == "+55 11 4000-0000"

    response = await client.put(
        f"{API}/professionals/{pid}/status",
        json={"status": "suspended", "reason": "Audit"},
        headers=auth_headers,
    )
    assert response.json()["status"] == "suspended"

    response = await client.get(
        f"{API}/professionals", params={"status": "active"}, headers=auth_headers
    )
    assert response.json() == []

    response = await client.get(f"{API}/professionals/statistics", headers=auth_headers)
    assert response.json()["suspended"] == 1

    response = await client.delete(f"{API}/professionals/{pid}", headers=auth_headers)
    assert response.status_code == 204
    response = await client.get(f"{API}/professionals/{pid}", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


@pytest.mark.asyncio
async def test_duplicate_registration(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict
) -> None:
    await register(client, auth_headers, sample_professional_data)

    response = await client.post(
        f"{API}/professionals",
        json=sample_professional_data | {"email": "someone.else@example.com"},
        headers=auth_headers,
    )

    assert response.status_code == 409
    body = response.json()
    assert body["kind"] == "duplicate"
    assert body["error"] == "DuplicateError"


@pytest.mark.asyncio
async def test_request_validation_error(client: AsyncClient, auth_headers: dict) -> None:
    response = await client.post(
        f"{API}/professionals", json={"name": "No category"}, headers=auth_headers
    )
    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "validation_error"
    assert body["details"]


@pytest.mark.asyncio
async def test_working_hours_and_availability(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict
) -> None:
    pid = (await register(client, auth_headers, sample_professional_data))["id"]
    response = await client.put(
        f"{API}/professionals/{pid}/working-hours",
        json={
            "working_hours": [
                {
                    "day_of_week": 0,
                    "start_time": "08:00:00",
                    "end_time": "17:00:00",
                    "breaks": [{"start_time": "12:00:00", "end_time": "13:00:00"}],
                }
            ]
        },
        headers=auth_headers,
    )
    assert response.status_code == 200

    window = {"start": at(0).isoformat(), "end": at(23).isoformat()}
    response = await client.get(
        f"{API}/professionals/{pid}/free-slots", params=window, headers=auth_headers
    )
    assert response.status_code == 200
    slots = response.json()["slots"]
    parsed = [(datetime.fromisoformat(s["start"]), datetime.fromisoformat(s["end"])) for s in slots]
    assert parsed == [
        (at(8), at(12)),
        (at(13), at(17)),
    ]

    response = await client.get(
        f"{API}/professionals/{pid}/start-times", params=window, headers=auth_headers
    )
    body = response.json()
    assert body["duration_minutes"] == 60
    assert len(body["start_times"]) == 8

    response = await client.get(
        f"{API}/professionals/{pid}/availability",
        params={"start": at(12, 30).isoformat()},
        headers=auth_headers,
    )
    assert response.json()["available"] is False

    response = await client.get(
        f"{API}/professionals/available",
        params={"category": "legal", "date": MONDAY.isoformat()},
        headers=auth_headers,
    )
    assert [p["id"] for p in response.json()] == [pid]


@pytest.mark.asyncio
async def test_free_slots_range_validation(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict
) -> None:
    pid = (await register(client, auth_headers, sample_professional_data))["id"]
    response = await client.get(
        f"{API}/professionals/{pid}/free-slots",
        params={"start": at(12).isoformat(), "end": at(9).isoformat()},
        headers=auth_headers,
    )
    assert response.status_code == 422
    assert response.json()["kind"] == "validation_error"


@pytest.mark.asyncio
async def test_booking_conflict_response(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict
) -> None:
    pid = (await register(client, auth_headers, sample_professional_data))["id"]
    first = await book(client, auth_headers, pid, at(10))
    assert first["_status"] == 201
    assert first["status"] == "scheduled"

    clash = await book(client, auth_headers, pid, at(10, 30))

    assert clash["_status"] == 409
    assert clash["kind"] == "scheduling_conflict"
    assert clash["conflicting_appointment_id"] == first["id"]


@pytest.mark.asyncio
async def test_appointment_lifecycle_over_http(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict, clock, user_id
) -> None:
    pid = (await register(client, auth_headers, sample_professional_data))["id"]
    appointment = await book(client, auth_headers, pid, at(9))
    aid = appointment["id"]
    assert appointment["created_by"] == str(user_id)

    response = await client.post(f"{API}/appointments/{aid}/confirm", headers=auth_headers)
    assert response.json()["status"] == "confirmed"

    response = await client.post(f"{API}/appointments/{aid}/start", headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["kind"] == "invalid_transition"

    response = await client.post(
        f"{API}/appointments/{aid}/start", json={"override": True}, headers=auth_headers
    )
    assert response.json()["status"] == "in_progress"

    response = await client.post(
        f"{API}/appointments/{aid}/complete",
        json={"notes": "Contract reviewed"},
        headers=auth_headers,
    )
    assert response.json()["status"] == "completed"

    response = await client.post(
        f"{API}/appointments/{aid}/review", json={"score": 5}, headers=auth_headers
    )
    assert response.status_code == 201

    response = await client.post(
        f"{API}/appointments/{aid}/cancel", json={"reason": "Too late"}, headers=auth_headers
    )
    assert response.status_code == 409

    response = await client.post(
        f"{API}/records",
        json={"appointment_id": aid, "content": "Reviewed rental contract"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    record_id = response.json()["id"]
    response = await client.get(f"{API}/records/{record_id}", headers=auth_headers)
    assert response.json()["professional_id"] == pid
    response = await client.get(
        f"{API}/records", params={"appointment_id": aid}, headers=auth_headers
    )
    assert [r["id"] for r in response.json()] == [record_id]


@pytest.mark.asyncio
async def test_reschedule_and_cancel_over_http(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict
) -> None:
    pid = (await register(client, auth_headers, sample_professional_data))["id"]
    aid = (await book(client, auth_headers, pid, at(9)))["id"]

    response = await client.post(
        f"{API}/appointments/{aid}/reschedule",
        json={"scheduled_at": at(11).isoformat()},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert datetime.fromisoformat(response.json()["scheduled_at"]) == at(11)

    response = await client.post(
        f"{API}/appointments/{aid}/cancel", json={"reason": " "}, headers=auth_headers
    )
    assert response.status_code == 422

    response = await client.post(
        f"{API}/appointments/{aid}/cancel", json={"reason": "Moved away"}, headers=auth_headers
    )
    assert response.json()["status"] == "cancelled"

    again = await book(client, auth_headers, pid, at(11))
    assert again["_status"] == 201


@pytest.mark.asyncio
async def test_list_and_delete_appointments(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict, clock
) -> None:
    pid = (await register(client, auth_headers, sample_professional_data))["id"]
    first = await book(client, auth_headers, pid, at(9))
    await book(client, auth_headers, pid, at(10))

    response = await client.get(
        f"{API}/appointments",
        params={"professional_id": pid, "page_size": 1},
        headers=auth_headers,
    )
    body = response.json()
    assert body["total"] == 2
    assert len(body["items"]) == 1

    response = await client.get(f"{API}/appointments/upcoming", headers=auth_headers)
    assert [a["id"] for a in response.json()] == [first["id"], body["items"][0]["id"]]

    response = await client.get(
        f"{API}/appointments/patients/{first['patient_id']}", headers=auth_headers
    )
    assert [a["id"] for a in response.json()] == [first["id"]]

    response = await client.delete(f"{API}/appointments/{first['id']}", headers=auth_headers)
    assert response.status_code == 204
    response = await client.get(f"{API}/appointments/{first['id']}", headers=auth_headers)
    assert response.status_code == 404

    clock.set(at(11))
    response = await client.get(f"{API}/appointments/overdue", headers=auth_headers)
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_events_over_http(client: AsyncClient, auth_headers: dict) -> None:
    response = await client.post(
        f"{API}/events",
        json={
            "title": "Legal aid clinic",
            "starts_at": (NOW + timedelta(days=2)).isoformat(),
            "max_participants": 1,
            "responsible_id": str(uuid4()),
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    event_id = response.json()["id"]

    response = await client.post(
        f"{API}/events/{event_id}/responses", json={"status": "confirmed"}, headers=auth_headers
    )
    assert response.status_code == 200

    response = await client.get(f"{API}/events/{event_id}/responses", headers=auth_headers)
    body = response.json()
    assert body["confirmed_count"] == 1
    assert body["max_participants"] == 1


@pytest.mark.asyncio
async def test_statistics_over_http(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict
) -> None:
    pid = (await register(client, auth_headers, sample_professional_data))["id"]
    await book(client, auth_headers, pid, at(9))

    response = await client.get(
        f"{API}/statistics", params={"professional_id": pid}, headers=auth_headers
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["by_status"]["scheduled"] == 1
    assert body["revenue"] == 0.0

    response = await client.post(
        f"{API}/statistics/report", json={"status": "scheduled"}, headers=auth_headers
    )
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_date_filters_require_timezone(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict
) -> None:
    pid = (await register(client, auth_headers, sample_professional_data))["id"]
    await book(client, auth_headers, pid, at(9))
    naive = "2030-01-01T00:00:00"

    response = await client.get(
        f"{API}/appointments", params={"from_date": naive}, headers=auth_headers
    )
    assert response.status_code == 422
    assert response.json()["kind"] == "validation_error"

    response = await client.get(f"{API}/statistics", params={"end": naive}, headers=auth_headers)
    assert response.status_code == 422

    response = await client.post(
        f"{API}/statistics/report", json={"to_date": naive}, headers=auth_headers
    )
    assert response.status_code == 422

    response = await client.get(
        f"{API}/appointments",
        params={"from_date": "2030-01-01T00:00:00+00:00"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_notification_inbox(
    client: AsyncClient, auth_headers: dict, sample_professional_data: dict, user_id
) -> None:
    pid = (await register(client, auth_headers, sample_professional_data))["id"]
    response = await client.post(
        f"{API}/appointments",
        json={
            "patient_id": str(user_id),
            "professional_id": pid,
            "scheduled_at": at(9).isoformat(),
        },
        headers=auth_headers,
    )
    assert response.status_code == 201

    response = await client.get(f"{API}/notifications/me", headers=auth_headers)
    assert response.status_code == 200
    inbox = response.json()
    assert len(inbox) == 1
    assert inbox[0]["category"] == "appointment_created"
