from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class StudentProfile(Base):
    __tablename__ = "student_profiles"

    id = Column(Integer, primary_key=True, index=True)
    # Conflict key for the bootstrap upsert.
    profile_id = Column(String(64), ForeignKey("profiles.id"), unique=True, nullable=False, index=True)
    roll_number = Column(String(64), nullable=True)
    batch = Column(String(32), nullable=True)
    course = Column(String(120), nullable=True)
    current_year = Column(Integer, nullable=True)
    current_semester = Column(Integer, nullable=True)
    skills = Column(Text, nullable=True)  # JSON string list
    # Aggregates maintained by the achievement approval flow
    total_credits = Column(Integer, nullable=False, default=0)
    achievement_count = Column(Integer, nullable=False, default=0)
    is_profile_complete = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    profile = relationship("Profile", back_populates="student_profile")
    achievements = relationship("Achievement", back_populates="student")
    applications = relationship("JobApplication", back_populates="student")
    portfolio = relationship("StudentPortfolio", back_populates="student", uselist=False)
