import uuid
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.core.errors import Conflict, InvalidInput, NotFound
from campus_events.core.logging import logger
from campus_events.core.validators import require_uuid
from campus_events.db.models.event_student import EventStudent
from campus_events.db.repositories import (
    find_event_student_pair,
    get_event_row,
    get_event_student,
    list_event_students,
    list_event_students_for_student,
    list_events_by_ids,
    serialize_event,
    serialize_event_student,
)
from campus_events.db.session import commit, store_errors
from campus_events.schemas import EventStudentCreate, EventStudentUpdate

PAIR_EXISTS_MESSAGE = "Event student with this student id and event id already exists"


class EventStudentService:
    """Direct management of (event, student) assignment rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_event_students(self) -> List[dict]:
        async with store_errors(self.session, "Failed to fetch event students"):
            rows = await list_event_students(self.session)
        return [serialize_event_student(r) for r in rows]

    async def get_event_student(self, row_id: int) -> dict:
        async with store_errors(self.session, "Failed to fetch event student"):
            row = await get_event_student(self.session, row_id)
        if not row:
            raise NotFound("Event student not found")
        return serialize_event_student(row)

    async def list_for_student(self, student_id: str) -> List[dict]:
        sid = uuid.UUID(require_uuid(student_id, "Invalid student ID provided"))
        async with store_errors(self.session, "Failed to fetch event students"):
            rows = await list_event_students_for_student(self.session, sid)
        return [serialize_event_student(r) for r in rows]

    async def create_event_student(self, payload: EventStudentCreate) -> dict:
        """
        Assign a student to an event.

        Raises:
            InvalidInput: Missing field or malformed student id
            NotFound: The event does not exist
            Conflict: The pair is already assigned
        """
        if not payload.id_student or payload.id_event is None:
            raise InvalidInput("Student id and event id are required to create an event-student")
        sid = uuid.UUID(require_uuid(payload.id_student, "Invalid student ID format"))

        async with store_errors(self.session, "Failed to create event student"):
            event = await get_event_row(self.session, payload.id_event)
            if not event:
                raise NotFound("Event not found")
            existing = await find_event_student_pair(self.session, payload.id_event, sid)
        if existing:
            raise Conflict(PAIR_EXISTS_MESSAGE)

        row = EventStudent(id_event=payload.id_event, id_student=sid)
        self.session.add(row)
        await commit(self.session, "Failed to create event student", PAIR_EXISTS_MESSAGE)
        await self.session.refresh(row)
        logger.info(f"Student {sid} assigned to event {payload.id_event}")
        return serialize_event_student(row)

    async def update_event_student(self, row_id: int, payload: EventStudentUpdate) -> dict:
        """
        Move an assignment to another student and/or event.

        Raises:
            InvalidInput: Neither field given, or malformed student id
            NotFound: No such row, or the target event does not exist
            Conflict: The resulting pair belongs to another row
        """
        fields = payload.model_dump(exclude_unset=True)
        id_student = fields.get("id_student")
        id_event = fields.get("id_event")
        if not id_student and id_event is None:
            raise InvalidInput("At least one field (student id or event id) must be provided")
        sid = uuid.UUID(require_uuid(id_student, "Invalid student ID format")) if id_student else None

        async with store_errors(self.session, "Failed to update event student"):
            row = await get_event_student(self.session, row_id)
            if not row:
                raise NotFound("Event student not found")
            if id_event is not None and not await get_event_row(self.session, id_event):
                raise NotFound("Event not found")

            target_event = id_event if id_event is not None else row.id_event
            target_student = sid or row.id_student
            other = await find_event_student_pair(self.session, target_event, target_student, exclude_id=row_id)
        if other:
            raise Conflict("This student is already assigned to this event")

        row.id_event = target_event
        row.id_student = target_student
        await commit(self.session, "Failed to update event student", "This student is already assigned to this event")
        await self.session.refresh(row)
        return serialize_event_student(row)

    async def delete_event_student(self, row_id: int) -> dict:
        async with store_errors(self.session, "Failed to fetch event student"):
            row = await get_event_student(self.session, row_id)
        if not row:
            raise NotFound("Event student not found")
        snapshot = serialize_event_student(row)
        async with store_errors(self.session, "Failed to delete event student"):
            await self.session.delete(row)
        await commit(self.session, "Failed to delete event student")
        logger.info(f"Event student {row_id} deleted")
        return snapshot

    async def agenda(self, student_id: str) -> List[dict]:
        """Events assigned to a student, earliest first."""
        sid = uuid.UUID(require_uuid(student_id, "Invalid student ID provided"))
        async with store_errors(self.session, "Failed to fetch student agenda"):
            rows = await list_event_students_for_student(self.session, sid)
            events = await list_events_by_ids(self.session, {r.id_event for r in rows})
        return [serialize_event(ev) for ev in events]
