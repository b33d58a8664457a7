import copy
import uuid
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.cache.redis_client import invalidate_events
from campus_events.core.errors import Conflict, Forbidden, InvalidInput, NotFound
from campus_events.core.logging import logger
from campus_events.core.validators import require_uuid
from campus_events.db.models.event import Event
from campus_events.db.repositories import get_event_row
from campus_events.db.session import commit, store_errors
from campus_events.services.slots import capacity, occupants, present_slots


class SlotService:
    """
    Booking of the time slots embedded in an event.

    Every write is checked against the event's version column, so two
    concurrent bookings of the same event cannot both succeed on a stale
    read; the loser gets a Conflict and may retry.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _student(student_id) -> str:
        if not student_id:
            raise InvalidInput("Student ID is required")
        return str(uuid.UUID(require_uuid(student_id, "Invalid student ID provided")))

    @staticmethod
    def _result(event_id: int, slot_index: int, student_id: str, slots: List[dict]) -> dict:
        return {
            "event_id": event_id,
            "slot_index": slot_index,
            "student_id": student_id,
            "updated_slots": present_slots(slots),
        }

    async def _load(self, event_id: int, slot_index: int) -> Event:
        async with store_errors(self.session, "Failed to fetch event"):
            event = await get_event_row(self.session, event_id)
        if not event:
            raise NotFound("Event not found")
        if not isinstance(event.slots, list) or not 0 <= slot_index < len(event.slots):
            raise NotFound("Slot not found")
        return event

    async def register(self, event_id: int, slot_index: int, student_id: str) -> dict:
        """
        Book a slot for a student.

        Returns:
            {event_id, slot_index, student_id, updated_slots}

        Raises:
            NotFound: No such event or slot index
            Conflict: Slot full, student already in this or another slot,
                or the event changed concurrently
        """
        student_id = self._student(student_id)
        event = await self._load(event_id, slot_index)
        slots = copy.deepcopy(event.slots)
        slot = slots[slot_index]
        users = occupants(slot)

        if student_id in users:
            raise Conflict("Student is already registered to this slot")
        if any(student_id in occupants(other) for i, other in enumerate(slots) if i != slot_index):
            raise Conflict("Student already has a slot in this event")
        if len(users) >= capacity(slot, event.allow_multiple_users):
            raise Conflict("Slot already taken" if not event.allow_multiple_users else "Slot is full")

        slot.pop("user", None)
        slot.pop("currentUsers", None)
        slot["users"] = users + [student_id]
        slot.setdefault("maxUsers", 1)
        event.slots = slots

        await commit(self.session, "Failed to register student to slot")
        await invalidate_events()
        logger.info(f"Student {student_id} registered to slot {slot_index} of event {event_id}")
        return self._result(event_id, slot_index, student_id, slots)

    async def unregister(self, event_id: int, slot_index: int, student_id: str) -> dict:
        """
        Release a student's booking.

        Raises:
            NotFound: No such event or slot index
            Forbidden: The student does not hold this slot
        """
        student_id = self._student(student_id)
        event = await self._load(event_id, slot_index)
        slots = copy.deepcopy(event.slots)
        slot = slots[slot_index]
        users = occupants(slot)

        if student_id not in users:
            raise Forbidden("Student is not registered to this slot")

        slot.pop("user", None)
        slot.pop("currentUsers", None)
        slot["users"] = [u for u in users if u != student_id]
        slot.setdefault("maxUsers", 1)
        event.slots = slots

        await commit(self.session, "Failed to unregister student from slot")
        await invalidate_events()
        logger.info(f"Student {student_id} unregistered from slot {slot_index} of event {event_id}")
        return self._result(event_id, slot_index, student_id, slots)
