import uuid
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.cache.redis_client import invalidate_events
from campus_events.clients.profile_client import ProfileServiceClient
from campus_events.core.errors import Conflict, InvalidInput, NotFound
from campus_events.core.logging import logger
from campus_events.core.validators import (
    format_event_datetime,
    parse_event_datetime,
    require_event_type,
    require_positive_int,
    require_uuid,
)
from campus_events.db.models.event import Event, EventType
from campus_events.db.repositories import (
    delete_assignments_for_event,
    find_event_by_identity,
    find_event_by_title,
    get_event as db_get_event,
    get_event_row,
    list_assignments_with_events,
    list_event_students_for_event,
    list_events as db_list_events,
    list_events_by_type as db_list_events_by_type,
    serialize_event,
)
from campus_events.db.session import commit, store_errors
from campus_events.schemas import EventCreate, EventUpdate
from campus_events.services.assignment_service import AssignmentJob, dispatch_assignment_job
from campus_events.services.slots import normalize_slots

REQUIRED_FIELDS_MESSAGE = (
    "Title, event datetime, event duration, event type and creator id are required to create an event"
)


class EventService:
    """
    Event CRUD and the student/event read models.

    Args:
        session: Database session
        profile_client: Profile service client used by assignment jobs
        credentials: Caller credential forwarded to the profile service
    """

    def __init__(
        self,
        session: AsyncSession,
        profile_client: ProfileServiceClient,
        credentials: Optional[str] = None,
    ):
        self.session = session
        self.profile_client = profile_client
        self.credentials = credentials

    async def list_events(self) -> List[dict]:
        async with store_errors(self.session, "Failed to fetch events"):
            return await db_list_events(self.session)

    async def get_event(self, event_id: int) -> dict:
        async with store_errors(self.session, "Failed to fetch event"):
            event = await db_get_event(self.session, event_id)
        if not event:
            raise NotFound("Event not found")
        return event

    async def get_events_by_type(self, event_type: str) -> List[dict]:
        require_event_type(event_type, "Invalid type provided")
        async with store_errors(self.session, "Failed to fetch events"):
            return await db_list_events_by_type(self.session, event_type)

    async def create_event(self, payload: EventCreate) -> dict:
        """
        Create an event and assign its target population.

        Assignment runs after the event is committed; its failures are
        logged and never fail the creation.

        Raises:
            InvalidInput: Missing or malformed fields
            Conflict: An event with the same title, datetime, type and creator exists
        """
        if not (payload.title and payload.event_datetime and payload.duration_minutes
                and payload.event_type and payload.id_creator):
            raise InvalidInput(REQUIRED_FIELDS_MESSAGE)

        event_datetime = parse_event_datetime(payload.event_datetime)
        require_positive_int(payload.duration_minutes, "duration_minutes")
        require_event_type(payload.event_type)
        id_creator = uuid.UUID(require_uuid(payload.id_creator, "Invalid creator ID provided"))
        id_prom = None
        if payload.id_prom is not None:
            id_prom = uuid.UUID(require_uuid(payload.id_prom, "Invalid promotion ID provided"))
        slot_duration = 30
        if payload.slot_duration is not None:
            slot_duration = require_positive_int(payload.slot_duration, "slot_duration")
        allow_multiple_users = bool(payload.allow_multiple_users)
        slots = normalize_slots(payload.slots, allow_multiple_users)

        # Absent means nobody; an explicit null means every active student
        if "target_promotions" in payload.model_fields_set:
            target_promotions = payload.target_promotions
        else:
            target_promotions = []

        async with store_errors(self.session, "Failed to check existing event"):
            existing = await find_event_by_identity(
                self.session, payload.title, event_datetime, payload.event_type, id_creator
            )
        if existing:
            raise Conflict("Event with this name and time already exists")

        event = Event(
            title=payload.title,
            event_datetime=event_datetime,
            duration_minutes=payload.duration_minutes,
            description=payload.description,
            event_type=EventType(payload.event_type),
            report=payload.report,
            id_creator=id_creator,
            id_prom=id_prom,
            location=payload.location,
            slot_duration=slot_duration,
            allow_multiple_users=allow_multiple_users,
            target_promotions=target_promotions,
            slots=slots,
        )
        self.session.add(event)
        await commit(self.session, "Failed to create event", "Event with this name and time already exists")
        await self.session.refresh(event)
        created = serialize_event(event)
        await invalidate_events()
        logger.info(f"Event {event.id} created by {id_creator}")

        await dispatch_assignment_job(
            AssignmentJob(event_id=created["id"], target_promotions=target_promotions, credentials=self.credentials),
            self.session,
            self.profile_client,
        )
        return created

    async def update_event(self, event_id: int, payload: EventUpdate) -> dict:
        """
        Apply a partial update.

        Only the keys present in the request are written. A present
        ``target_promotions`` key (even null) replaces the event's
        assignments with the newly resolved population.

        Raises:
            InvalidInput: Empty body or malformed field
            NotFound: No such event
            Conflict: Title taken by another event, or concurrent modification
        """
        fields = payload.model_dump(exclude_unset=True)
        if not fields:
            raise InvalidInput("At least one field must be provided")

        async with store_errors(self.session, "Failed to fetch event"):
            event = await get_event_row(self.session, event_id)
        if not event:
            raise NotFound("Event not found")

        changes = {}
        if "title" in fields:
            title = fields["title"]
            if title is None or title.strip() == "":
                raise InvalidInput("Title cannot be empty")
            async with store_errors(self.session, "Failed to check existing title for another event"):
                other = await find_event_by_title(self.session, title, exclude_id=event_id)
            if other:
                raise Conflict("Title already exists for another event")
            changes["title"] = title

        if "event_datetime" in fields:
            changes["event_datetime"] = parse_event_datetime(fields["event_datetime"])
        if "duration_minutes" in fields:
            changes["duration_minutes"] = require_positive_int(fields["duration_minutes"], "duration_minutes")
        if "event_type" in fields:
            changes["event_type"] = EventType(require_event_type(fields["event_type"]))
        if "id_creator" in fields:
            changes["id_creator"] = uuid.UUID(require_uuid(fields["id_creator"], "Invalid creator ID provided"))
        if "id_prom" in fields:
            id_prom = fields["id_prom"]
            changes["id_prom"] = uuid.UUID(require_uuid(id_prom, "Invalid promotion ID provided")) if id_prom else None
        if "slot_duration" in fields:
            changes["slot_duration"] = require_positive_int(fields["slot_duration"], "slot_duration")
        if "allow_multiple_users" in fields:
            if fields["allow_multiple_users"] is None:
                raise InvalidInput("allow_multiple_users must be a boolean")
            changes["allow_multiple_users"] = fields["allow_multiple_users"]
        for key in ("description", "report", "location"):
            if key in fields:
                changes[key] = fields[key]

        allow_multiple_users = changes.get("allow_multiple_users", event.allow_multiple_users)
        if "slots" in fields:
            changes["slots"] = normalize_slots(fields["slots"], allow_multiple_users)
        elif allow_multiple_users != event.allow_multiple_users:
            changes["slots"] = normalize_slots(event.slots, allow_multiple_users)

        reassign = "target_promotions" in fields
        if reassign:
            changes["target_promotions"] = fields["target_promotions"]

        for key, value in changes.items():
            setattr(event, key, value)
        await commit(self.session, "Failed to update event", "Event with this name and time already exists")
        await self.session.refresh(event)
        updated = serialize_event(event)
        await invalidate_events()

        if reassign:
            logger.info(f"Event {event_id} target promotions changed, updating student assignments")
            await dispatch_assignment_job(
                AssignmentJob(
                    event_id=event_id,
                    target_promotions=fields["target_promotions"],
                    replace=True,
                    credentials=self.credentials,
                ),
                self.session,
                self.profile_client,
            )
        return updated

    async def delete_event(self, event_id: int) -> dict:
        """
        Delete an event together with all of its assignments.

        Both deletes commit in one transaction; on failure nothing is removed.
        """
        async with store_errors(self.session, "Failed to fetch event"):
            event = await get_event_row(self.session, event_id)
        if not event:
            raise NotFound("Event not found")
        snapshot = serialize_event(event)

        async with store_errors(self.session, "Failed to delete event and its student registrations"):
            removed = await delete_assignments_for_event(self.session, event_id)
            await self.session.delete(event)
        await commit(self.session, "Failed to delete event and its student registrations")
        await invalidate_events()
        logger.info(f"Event {event_id} deleted with {removed} student registrations")
        return snapshot

    async def list_events_for_student(self, student_id: str) -> List[dict]:
        """Events a student is assigned to, with computed start/end times."""
        sid = uuid.UUID(require_uuid(student_id, "Invalid student ID provided"))
        async with store_errors(self.session, "Failed to fetch student events"):
            pairs = await list_assignments_with_events(self.session, sid)

        events = []
        for assignment, event in pairs:
            data = serialize_event(event)
            start = event.event_datetime
            data["start"] = data["event_datetime"]
            data["end"] = format_event_datetime(start + timedelta(minutes=event.duration_minutes))
            data["registration_id"] = assignment.id
            events.append(data)
        return events

    async def list_students_for_event(self, event_id: int) -> Tuple[dict, List[dict]]:
        """
        Students assigned to an event.

        Returns:
            ({id, title} of the event, registrations)
        """
        async with store_errors(self.session, "Failed to fetch event students"):
            event = await get_event_row(self.session, event_id)
            if not event:
                raise NotFound("Event not found")
            rows = await list_event_students_for_event(self.session, event_id)

        students = [
            {
                "registration_id": row.id,
                "student_id": str(row.id_student),
                "registered_at": row.created_at.isoformat() if row.created_at else None,
            }
            for row in rows
        ]
        return {"id": event.id, "title": event.title}, students
