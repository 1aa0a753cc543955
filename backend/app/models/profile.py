from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class Profile(Base):
    """Base row for every authenticated identity; `id` is the identity provider's user id."""
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(32), nullable=False, default="student")  # student / faculty / recruiter / institution_admin
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    student_profile = relationship("StudentProfile", back_populates="profile", uselist=False)
    faculty_profile = relationship("FacultyProfile", back_populates="profile", uselist=False)
    recruiter_profile = relationship("RecruiterProfile", back_populates="profile", uselist=False)
    institution = relationship("Institution", back_populates="owner", uselist=False)
