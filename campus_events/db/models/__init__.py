"""Database models package."""
from campus_events.db.models.event import Event, EventType
from campus_events.db.models.event_student import EventStudent

__all__ = ["Event", "EventType", "EventStudent"]
