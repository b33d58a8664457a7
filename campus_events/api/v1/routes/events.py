from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.api.v1.deps import get_profile_client, limiter
from campus_events.auth import CallerIdentity, get_caller
from campus_events.clients.profile_client import ProfileServiceClient
from campus_events.core.config import settings
from campus_events.db.session import get_session
from campus_events.schemas import EventCreate, EventUpdate, SlotRegistration
from campus_events.services.event_service import EventService
from campus_events.services.slot_service import SlotService
from campus_events.utils.responses import success_response

router = APIRouter(prefix="/events", tags=["events"], dependencies=[Depends(get_caller)])


def get_event_service(
    session: AsyncSession = Depends(get_session),
    profile_client: ProfileServiceClient = Depends(get_profile_client),
    caller: CallerIdentity = Depends(get_caller),
) -> EventService:
    return EventService(session, profile_client, credentials=caller.token)


def get_slot_service(session: AsyncSession = Depends(get_session)) -> SlotService:
    return SlotService(session)


@router.get("")
async def list_events(event_service: EventService = Depends(get_event_service)):
    events = await event_service.list_events()
    return success_response("Events retrieved successfully", events, count=len(events))


@router.get("/type/{event_type}")
async def list_events_by_type(event_type: str, event_service: EventService = Depends(get_event_service)):
    events = await event_service.get_events_by_type(event_type)
    return success_response("Events retrieved successfully", events, count=len(events))


@router.get("/student/{student_id}")
async def list_student_events(student_id: str, event_service: EventService = Depends(get_event_service)):
    events = await event_service.list_events_for_student(student_id)
    if not events:
        return success_response("No events found for this student", [])
    return success_response("Student events retrieved successfully", events, count=len(events))


@router.get("/{event_id}/students")
async def list_event_students(event_id: int, event_service: EventService = Depends(get_event_service)):
    event, students = await event_service.list_students_for_event(event_id)
    if not students:
        return success_response("No students registered for this event", [])
    return success_response("Event students retrieved successfully", students, count=len(students), event=event)


@router.get("/{event_id}")
async def get_event(event_id: int, event_service: EventService = Depends(get_event_service)):
    event = await event_service.get_event(event_id)
    return success_response("Event retrieved successfully", event)


@router.post("")
@limiter.limit(settings.RATE_LIMIT_WRITE)
async def create_event(
    request: Request,
    payload: EventCreate,
    event_service: EventService = Depends(get_event_service),
):
    event = await event_service.create_event(payload)
    return success_response("Event created successfully", event, status_code=201)


@router.patch("/{event_id}")
@limiter.limit(settings.RATE_LIMIT_WRITE)
async def update_event(
    request: Request,
    event_id: int,
    payload: EventUpdate,
    event_service: EventService = Depends(get_event_service),
):
    event = await event_service.update_event(event_id, payload)
    return success_response("Event updated successfully", event)


@router.delete("/{event_id}")
@limiter.limit(settings.RATE_LIMIT_WRITE)
async def delete_event(
    request: Request,
    event_id: int,
    event_service: EventService = Depends(get_event_service),
):
    snapshot = await event_service.delete_event(event_id)
    return success_response("Event and associated registrations deleted successfully", {"deletedEvent": snapshot})


@router.post("/{event_id}/slots/{slot_index}/register")
@limiter.limit(settings.RATE_LIMIT_WRITE)
async def register_to_slot(
    request: Request,
    event_id: int,
    slot_index: int,
    payload: Optional[SlotRegistration] = None,
    caller: CallerIdentity = Depends(get_caller),
    slot_service: SlotService = Depends(get_slot_service),
):
    result = await slot_service.register(event_id, slot_index, (payload.id_student if payload else None) or caller.user_id)
    return success_response("Student registered to slot successfully", result)


@router.delete("/{event_id}/slots/{slot_index}/unregister")
@limiter.limit(settings.RATE_LIMIT_WRITE)
async def unregister_from_slot(
    request: Request,
    event_id: int,
    slot_index: int,
    payload: Optional[SlotRegistration] = None,
    caller: CallerIdentity = Depends(get_caller),
    slot_service: SlotService = Depends(get_slot_service),
):
    result = await slot_service.unregister(event_id, slot_index, (payload.id_student if payload else None) or caller.user_id)
    return success_response("Student unregistered from slot successfully", result)
