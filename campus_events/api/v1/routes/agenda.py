from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.auth import get_caller
from campus_events.db.session import get_session
from campus_events.services.event_student_service import EventStudentService
from campus_events.utils.responses import success_response

router = APIRouter(prefix="/agenda", tags=["agenda"], dependencies=[Depends(get_caller)])


@router.get("/student/{id_student}")
async def student_agenda(id_student: str, session: AsyncSession = Depends(get_session)):
    """Events assigned to a student, earliest first."""
    events = await EventStudentService(session).agenda(id_student)
    if not events:
        return success_response("No events found for this student.", [])
    return success_response("Student agenda retrieved successfully", events, count=len(events))
