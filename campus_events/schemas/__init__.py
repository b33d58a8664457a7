from pydantic import BaseModel, StrictBool, StrictInt
from typing import Any, Dict, List, Optional, Union


class ApiResponse(BaseModel):
    """Envelope returned by every endpoint."""
    success: bool
    message: str
    data: Optional[Any] = None
    count: Optional[int] = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error: Optional[str] = None


class EventCreate(BaseModel):
    # Required fields are checked by the service so the client gets a single
    # "... are required" message instead of a per-field validation dump.
    title: Optional[str] = None
    event_datetime: Optional[str] = None
    duration_minutes: Optional[StrictInt] = None
    description: Optional[str] = None
    event_type: Optional[str] = None
    report: Optional[str] = None
    id_creator: Optional[str] = None
    id_prom: Optional[str] = None
    location: Optional[str] = None
    slot_duration: Optional[StrictInt] = None
    allow_multiple_users: Optional[StrictBool] = None
    target_promotions: Optional[List[Union[StrictInt, str]]] = None
    slots: Optional[List[Dict[str, Any]]] = None


class EventUpdate(EventCreate):
    """Partial update; only the keys present in the request body are applied."""


class EventOut(BaseModel):
    id: int
    title: str
    event_datetime: str
    duration_minutes: int
    description: Optional[str] = None
    event_type: str
    report: Optional[str] = None
    id_creator: str
    id_prom: Optional[str] = None
    location: Optional[str] = None
    slot_duration: int
    allow_multiple_users: bool
    target_promotions: Optional[List[Union[int, str]]] = None
    slots: List[Dict[str, Any]] = []
    created_at: Optional[str] = None


class EventStudentCreate(BaseModel):
    id_student: Optional[str] = None
    id_event: Optional[StrictInt] = None


class EventStudentUpdate(EventStudentCreate):
    pass


class EventStudentOut(BaseModel):
    id: int
    id_event: int
    id_student: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SlotRegistration(BaseModel):
    id_student: Optional[str] = None
