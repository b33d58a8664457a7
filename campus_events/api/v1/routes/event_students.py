from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.api.v1.deps import limiter
from campus_events.auth import get_caller
from campus_events.core.config import settings
from campus_events.db.session import get_session
from campus_events.schemas import EventStudentCreate, EventStudentUpdate
from campus_events.services.event_student_service import EventStudentService
from campus_events.utils.responses import success_response

router = APIRouter(prefix="/event-students", tags=["event-students"], dependencies=[Depends(get_caller)])


def get_event_student_service(session: AsyncSession = Depends(get_session)) -> EventStudentService:
    return EventStudentService(session)


@router.get("")
async def list_event_students(service: EventStudentService = Depends(get_event_student_service)):
    rows = await service.list_event_students()
    return success_response("Event students retrieved successfully", rows, count=len(rows))


@router.get("/student/{id_student}")
async def list_for_student(id_student: str, service: EventStudentService = Depends(get_event_student_service)):
    rows = await service.list_for_student(id_student)
    return success_response("Event students retrieved successfully", rows, count=len(rows))


@router.get("/{row_id}")
async def get_event_student(row_id: int, service: EventStudentService = Depends(get_event_student_service)):
    row = await service.get_event_student(row_id)
    return success_response("Event student retrieved successfully", row)


@router.post("")
@limiter.limit(settings.RATE_LIMIT_WRITE)
async def create_event_student(
    request: Request,
    payload: EventStudentCreate,
    service: EventStudentService = Depends(get_event_student_service),
):
    row = await service.create_event_student(payload)
    return success_response("Event student created successfully", row, status_code=201)


@router.patch("/{row_id}")
@limiter.limit(settings.RATE_LIMIT_WRITE)
async def update_event_student(
    request: Request,
    row_id: int,
    payload: EventStudentUpdate,
    service: EventStudentService = Depends(get_event_student_service),
):
    row = await service.update_event_student(row_id, payload)
    return success_response("Event student updated successfully", row)


@router.delete("/{row_id}")
@limiter.limit(settings.RATE_LIMIT_WRITE)
async def delete_event_student(
    request: Request,
    row_id: int,
    service: EventStudentService = Depends(get_event_student_service),
):
    row = await service.delete_event_student(row_id)
    return success_response("Event student deleted successfully", {"deletedEventStudent": row})
