from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    organizer_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=True)  # workshop | seminar | hackathon | ...
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=True)
    max_participants = Column(Integer, nullable=False, default=1)
    credits = Column(Integer, nullable=False, default=0)
    registration_deadline = Column(DateTime(timezone=True), nullable=False)

    # upcoming | ongoing | completed | cancelled; organizer-driven, no automatic transitions
    status = Column(String(20), nullable=False, default="upcoming", index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    organizer = relationship("Profile")
    participants = relationship("EventParticipation", back_populates="event", cascade="all, delete-orphan")


class EventParticipation(Base):
    __tablename__ = "event_participants"
    __table_args__ = (
        UniqueConstraint("event_id", "student_id", name="uq_event_participants_event_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("student_profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    event = relationship("Event", back_populates="participants")
    student = relationship("StudentProfile")
