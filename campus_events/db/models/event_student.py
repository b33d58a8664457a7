from sqlalchemy import Column, Integer, DateTime, ForeignKey, Uuid, func, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from campus_events.db.session import Base


class EventStudent(Base):
    __tablename__ = "event_student"
    id = Column(Integer, primary_key=True, autoincrement=True)
    id_event = Column(Integer, ForeignKey("event.id"), nullable=False)
    id_student = Column(Uuid(as_uuid=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event = relationship("Event")

    # One assignment per (event, student); the resolver's upsert targets this constraint
    __table_args__ = (
        UniqueConstraint('id_event', 'id_student', name='uq_event_student'),
        Index('idx_event_student_student', 'id_student'),
        Index('idx_event_student_event', 'id_event'),
    )
