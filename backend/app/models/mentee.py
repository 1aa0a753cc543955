from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class Mentee(Base):
    __tablename__ = "mentees"
    __table_args__ = (
        UniqueConstraint("mentor_id", "student_id", name="uq_mentees_mentor_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    mentor_id = Column(Integer, ForeignKey("faculty_profiles.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("student_profiles.id"), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active | inactive
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    mentor = relationship("FacultyProfile")
    student = relationship("StudentProfile")
