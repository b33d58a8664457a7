"""
Repository layer for database operations.

Provides async functions for queries and writes on Event and EventStudent.
Write helpers only stage changes; the calling service owns the commit so a
multi-step write can run in one transaction. Read paths for events are
cached in Redis.
"""
import uuid
from typing import Iterable, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.cache.cache_decorators import cached
from campus_events.core.validators import MAX_ROW_ID, format_event_datetime
from campus_events.db.models.event import Event, EventType
from campus_events.db.models.event_student import EventStudent
from campus_events.schemas import EventOut, EventStudentOut
from campus_events.services.slots import present_slots


def serialize_event(ev: Event) -> dict:
    """Convert an Event row to its API representation."""
    return EventOut(
        id=ev.id,
        title=ev.title,
        event_datetime=format_event_datetime(ev.event_datetime),
        duration_minutes=ev.duration_minutes,
        description=ev.description,
        event_type=ev.event_type.value if isinstance(ev.event_type, EventType) else ev.event_type,
        report=ev.report,
        id_creator=str(ev.id_creator),
        id_prom=str(ev.id_prom) if ev.id_prom else None,
        location=ev.location,
        slot_duration=ev.slot_duration,
        allow_multiple_users=ev.allow_multiple_users,
        target_promotions=ev.target_promotions,
        slots=present_slots(ev.slots),
        created_at=ev.created_at.isoformat() if ev.created_at else None,
    ).model_dump()


def serialize_event_student(row: EventStudent) -> dict:
    return EventStudentOut(
        id=row.id,
        id_event=row.id_event,
        id_student=str(row.id_student),
        created_at=row.created_at.isoformat() if row.created_at else None,
        updated_at=row.updated_at.isoformat() if row.updated_at else None,
    ).model_dump()


# Events

@cached('events:list', expire=300)
async def list_events(db: AsyncSession) -> List[dict]:
    """All events, newest first."""
    q = select(Event).order_by(Event.created_at.desc(), Event.id.desc())
    res = await db.execute(q)
    return [serialize_event(ev) for ev in res.scalars().all()]


@cached('events:type', expire=300)
async def list_events_by_type(db: AsyncSession, event_type: str) -> List[dict]:
    q = (
        select(Event)
        .where(Event.event_type == EventType(event_type))
        .order_by(Event.created_at.desc(), Event.id.desc())
    )
    res = await db.execute(q)
    return [serialize_event(ev) for ev in res.scalars().all()]


@cached('events:detail', expire=300)
async def get_event(db: AsyncSession, event_id: int) -> Optional[dict]:
    ev = await get_event_row(db, event_id)
    return serialize_event(ev) if ev else None


async def get_event_row(db: AsyncSession, event_id: int) -> Optional[Event]:
    if not 0 < event_id <= MAX_ROW_ID:
        return None
    q = select(Event).where(Event.id == event_id)
    res = await db.execute(q)
    return res.scalars().first()


async def find_event_by_identity(db: AsyncSession, title, event_datetime, event_type, id_creator) -> Optional[Event]:
    """Event matching the (title, datetime, type, creator) creation key."""
    q = select(Event).where(
        Event.title == title,
        Event.event_datetime == event_datetime,
        Event.event_type == EventType(event_type),
        Event.id_creator == id_creator,
    )
    res = await db.execute(q)
    return res.scalars().first()


async def find_event_by_title(db: AsyncSession, title: str, exclude_id: Optional[int] = None) -> Optional[Event]:
    q = select(Event).where(Event.title == title)
    if exclude_id is not None:
        q = q.where(Event.id != exclude_id)
    res = await db.execute(q)
    return res.scalars().first()


async def list_events_by_ids(db: AsyncSession, event_ids: Iterable[int]) -> List[Event]:
    """Events with the given ids, earliest first."""
    ids = list(event_ids)
    if not ids:
        return []
    q = select(Event).where(Event.id.in_(ids)).order_by(Event.event_datetime.asc(), Event.id.asc())
    res = await db.execute(q)
    return list(res.scalars().all())


# Assignments

async def list_event_students(db: AsyncSession) -> List[EventStudent]:
    q = select(EventStudent).order_by(EventStudent.id)
    res = await db.execute(q)
    return list(res.scalars().all())


async def get_event_student(db: AsyncSession, row_id: int) -> Optional[EventStudent]:
    if not 0 < row_id <= MAX_ROW_ID:
        return None
    q = select(EventStudent).where(EventStudent.id == row_id)
    res = await db.execute(q)
    return res.scalars().first()


async def list_event_students_for_student(db: AsyncSession, student_id: uuid.UUID) -> List[EventStudent]:
    q = select(EventStudent).where(EventStudent.id_student == student_id).order_by(EventStudent.id)
    res = await db.execute(q)
    return list(res.scalars().all())


async def list_event_students_for_event(db: AsyncSession, event_id: int) -> List[EventStudent]:
    q = select(EventStudent).where(EventStudent.id_event == event_id).order_by(EventStudent.id)
    res = await db.execute(q)
    return list(res.scalars().all())


async def list_assignments_with_events(db: AsyncSession, student_id: uuid.UUID) -> List[tuple]:
    """(EventStudent, Event) pairs for one student, earliest event first."""
    q = (
        select(EventStudent, Event)
        .join(Event, Event.id == EventStudent.id_event)
        .where(EventStudent.id_student == student_id)
        .order_by(Event.event_datetime.asc(), Event.id.asc())
    )
    res = await db.execute(q)
    return [tuple(row) for row in res.all()]


async def find_event_student_pair(
    db: AsyncSession,
    event_id: int,
    student_id: uuid.UUID,
    exclude_id: Optional[int] = None,
) -> Optional[EventStudent]:
    q = select(EventStudent).where(
        EventStudent.id_event == event_id,
        EventStudent.id_student == student_id,
    )
    if exclude_id is not None:
        q = q.where(EventStudent.id != exclude_id)
    res = await db.execute(q)
    return res.scalars().first()


async def delete_assignments_for_event(db: AsyncSession, event_id: int) -> int:
    res = await db.execute(delete(EventStudent).where(EventStudent.id_event == event_id))
    return res.rowcount or 0


def _insert_for(db: AsyncSession):
    dialect = db.bind.dialect.name if db.bind is not None else "postgresql"
    if dialect == "sqlite":
        return sqlite.insert
    return postgresql.insert


async def insert_assignments(db: AsyncSession, event_id: int, student_ids: Iterable[uuid.UUID]) -> int:
    """
    Insert (event, student) assignments, skipping pairs that already exist.

    A single INSERT ... ON CONFLICT DO NOTHING keeps the existence check and
    the insert atomic.

    Returns:
        Number of rows actually inserted
    """
    rows = [{"id_event": event_id, "id_student": sid} for sid in student_ids]
    if not rows:
        return 0
    insert = _insert_for(db)
    stmt = insert(EventStudent).values(rows).on_conflict_do_nothing(
        index_elements=["id_event", "id_student"]
    )
    res = await db.execute(stmt)
    return res.rowcount if res.rowcount is not None and res.rowcount >= 0 else len(rows)
