from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class FacultyProfile(Base):
    __tablename__ = "faculty_profiles"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(String(64), ForeignKey("profiles.id"), unique=True, nullable=False, index=True)
    designation = Column(String(120), nullable=True)
    specialization = Column(String(255), nullable=True)
    # Approval power: whether this faculty member may decide achievements, and the
    # optional per-decision credit ceiling (NULL = no ceiling).
    can_approve_achievements = Column(Boolean, nullable=False, default=False)
    max_credit_value = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    profile = relationship("Profile", back_populates="faculty_profile")

    @property
    def approval_power(self) -> dict:
        return {
            "can_approve_achievements": bool(self.can_approve_achievements),
            "max_credit_value": self.max_credit_value,
        }
