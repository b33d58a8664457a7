"""
Integration tests for identifiers that are malformed or out of range.
"""
import pytest
from httpx import AsyncClient

from tests.factories import CREATOR_ID, event_payload, student_id

HUGE_ID = 99999999999999999999999


@pytest.mark.integration
@pytest.mark.asyncio
class TestUuidWithTrailingNewline:

    async def test_student_events_path(self, client: AsyncClient):
        response = await client.get(f"/events/student/{student_id(1)}%0A")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid student ID provided"

    async def test_agenda_path(self, client: AsyncClient):
        response = await client.get(f"/agenda/student/{student_id(1)}%0A")

        assert response.status_code == 400

    async def test_event_creator(self, client: AsyncClient):
        response = await client.post("/events", json=event_payload(id_creator=CREATOR_ID + "\n"))

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid creator ID provided"

    async def test_event_student_create(self, client: AsyncClient, make_event):
        event = await make_event()
        response = await client.post(
            "/event-students", json={"id_student": student_id(1) + "\n", "id_event": event.id}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid student ID format"

    async def test_slot_registration(self, client: AsyncClient, make_event):
        event = await make_event(slots=[{"maxUsers": 1, "users": []}])
        response = await client.post(
            f"/events/{event.id}/slots/0/register", json={"id_student": student_id(1) + "\n"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid student ID provided"


@pytest.mark.integration
@pytest.mark.asyncio
class TestOutOfRangeIds:

    async def test_event_routes(self, client: AsyncClient):
        assert (await client.get(f"/events/{HUGE_ID}")).status_code == 404
        assert (await client.patch(f"/events/{HUGE_ID}", json={"location": "Lab"})).status_code == 404
        assert (await client.delete(f"/events/{HUGE_ID}")).status_code == 404
        assert (await client.get(f"/events/{HUGE_ID}/students")).status_code == 404

    async def test_slot_routes(self, client: AsyncClient, make_event):
        event = await make_event(slots=[{"maxUsers": 1, "users": []}])

        response = await client.post(f"/events/{HUGE_ID}/slots/0/register", json={"id_student": student_id(1)})
        assert response.status_code == 404
        assert response.json()["message"] == "Event not found"

        response = await client.post(
            f"/events/{event.id}/slots/{HUGE_ID}/register", json={"id_student": student_id(1)}
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Slot not found"

    async def test_event_student_routes(self, client: AsyncClient, make_event, assign):
        event = await make_event()
        row = await assign(event.id, student_id(1))

        assert (await client.get(f"/event-students/{HUGE_ID}")).status_code == 404
        assert (await client.delete(f"/event-students/{HUGE_ID}")).status_code == 404

        response = await client.post("/event-students", json={"id_student": student_id(2), "id_event": HUGE_ID})
        assert response.status_code == 404
        assert response.json()["message"] == "Event not found"

        response = await client.patch(f"/event-students/{row.id}", json={"id_event": HUGE_ID})
        assert response.status_code == 404
        assert response.json()["message"] == "Event not found"
