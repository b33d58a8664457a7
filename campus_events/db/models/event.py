from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON, Uuid, func, Enum, Index, UniqueConstraint
from campus_events.db.session import Base
import enum


class EventType(str, enum.Enum):
    """Kinds of events a campus can schedule."""
    follow_up = "follow-up"
    kick_off = "kick-off"
    keynote = "keynote"
    hub_talk = "hub-talk"
    other = "other"


class Event(Base):
    __tablename__ = "event"
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    event_datetime = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    report = Column(Text, nullable=True)
    event_type = Column(
        Enum(EventType, name="event_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    id_creator = Column(Uuid(as_uuid=True), nullable=False)
    id_prom = Column(Uuid(as_uuid=True), nullable=True)
    location = Column(String(255), nullable=True)
    slot_duration = Column(Integer, nullable=False, default=30)
    allow_multiple_users = Column(Boolean, nullable=False, default=False)
    # NULL targets every active student, [] targets no one
    target_promotions = Column(JSON(none_as_null=True), nullable=True)
    slots = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Optimistic concurrency: every flush of a changed row bumps and checks `version`
    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint('title', 'event_datetime', 'event_type', 'id_creator', name='uq_event_identity'),
        Index('idx_event_type', 'event_type'),
        Index('idx_event_datetime', 'event_datetime'),
        Index('idx_event_created_at', 'created_at'),
    )
