"""
Unit tests for slot booking.
"""
import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.core.errors import Conflict, Forbidden, InvalidInput, NotFound
from campus_events.db.models import Event
from campus_events.services.slot_service import SlotService
from tests.factories import student_id


def open_slots(count, max_users=1):
    return [{"start": f"{9 + i}:00", "maxUsers": max_users, "users": []} for i in range(count)]


@pytest.mark.unit
@pytest.mark.asyncio
class TestSlotService:

    async def test_register_books_an_exclusive_slot(self, db_session, make_event):
        event = await make_event(slots=open_slots(2))
        result = await SlotService(db_session).register(event.id, 0, student_id(1))

        assert result["event_id"] == event.id
        assert result["slot_index"] == 0
        assert result["student_id"] == student_id(1)
        slot = result["updated_slots"][0]
        assert slot["users"] == [student_id(1)]
        assert slot["user"] == student_id(1)
        assert slot["currentUsers"] == 1
        assert slot["start"] == "9:00"
        assert event.slots[0]["users"] == [student_id(1)]

    async def test_exclusive_slot_rejects_second_student(self, db_session, make_event):
        event = await make_event(slots=open_slots(1))
        service = SlotService(db_session)
        await service.register(event.id, 0, student_id(1))

        with pytest.raises(Conflict) as exc:
            await service.register(event.id, 0, student_id(2))
        assert exc.value.message == "Slot already taken"

    async def test_student_cannot_hold_two_slots(self, db_session, make_event):
        event = await make_event(slots=open_slots(2))
        service = SlotService(db_session)
        await service.register(event.id, 0, student_id(1))

        with pytest.raises(Conflict) as exc:
            await service.register(event.id, 1, student_id(1))
        assert exc.value.message == "Student already has a slot in this event"

    async def test_registering_twice_for_same_slot_conflicts(self, db_session, make_event):
        event = await make_event(slots=open_slots(1, max_users=3), allow_multiple_users=True)
        service = SlotService(db_session)
        await service.register(event.id, 0, student_id(1))

        with pytest.raises(Conflict):
            await service.register(event.id, 0, student_id(1))

    async def test_shared_slot_admits_up_to_capacity(self, db_session, make_event):
        event = await make_event(slots=open_slots(1, max_users=2), allow_multiple_users=True)
        service = SlotService(db_session)
        await service.register(event.id, 0, student_id(1))
        result = await service.register(event.id, 0, student_id(2))
        assert result["updated_slots"][0]["currentUsers"] == 2

        with pytest.raises(Conflict) as exc:
            await service.register(event.id, 0, student_id(3))
        assert exc.value.message == "Slot is full"

    async def test_missing_event_or_slot(self, db_session, make_event):
        event = await make_event(slots=open_slots(1))
        service = SlotService(db_session)

        with pytest.raises(NotFound) as exc:
            await service.register(event.id + 100, 0, student_id(1))
        assert exc.value.message == "Event not found"
        for index in (1, -1):
            with pytest.raises(NotFound) as exc:
                await service.register(event.id, index, student_id(1))
            assert exc.value.message == "Slot not found"

    async def test_student_id_is_validated_and_canonicalized(self, db_session, make_event):
        event = await make_event(slots=open_slots(1))
        service = SlotService(db_session)

        with pytest.raises(InvalidInput):
            await service.register(event.id, 0, "student-1")
        with pytest.raises(InvalidInput):
            await service.register(event.id, 0, None)
        result = await service.register(event.id, 0, student_id(1).upper())
        assert result["student_id"] == student_id(1)

    async def test_unregister_releases_the_slot(self, db_session, make_event):
        event = await make_event(slots=open_slots(1))
        service = SlotService(db_session)
        await service.register(event.id, 0, student_id(1))
        result = await service.unregister(event.id, 0, student_id(1))

        assert result["updated_slots"][0]["users"] == []
        assert result["updated_slots"][0]["user"] is None
        await service.register(event.id, 0, student_id(2))

    async def test_unregister_by_non_occupant_is_forbidden(self, db_session, make_event):
        event = await make_event(slots=open_slots(1))
        service = SlotService(db_session)
        await service.register(event.id, 0, student_id(1))

        with pytest.raises(Forbidden) as exc:
            await service.unregister(event.id, 0, student_id(2))
        assert exc.value.message == "Student is not registered to this slot"

    async def test_unregister_from_legacy_slot(self, db_session, make_event):
        event = await make_event(slots=[{"user": student_id(4), "currentUsers": 1}])
        result = await SlotService(db_session).unregister(event.id, 0, student_id(4))

        assert result["updated_slots"] == [{"maxUsers": 1, "users": [], "currentUsers": 0, "user": None}]
        assert event.slots == [{"maxUsers": 1, "users": []}]

    async def test_concurrent_modification_is_a_conflict(self, db_session, make_event):
        event = await make_event(slots=open_slots(1))
        # another writer bumps the row after this session loaded it
        async with AsyncSession(db_session.bind) as other:
            await other.execute(update(Event).where(Event.id == event.id).values(version=Event.version + 1))
            await other.commit()

        with pytest.raises(Conflict) as exc:
            await SlotService(db_session).register(event.id, 0, student_id(1))
        assert "modified concurrently" in exc.value.message
