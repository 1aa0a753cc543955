from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class AchievementCategory(Base):
    __tablename__ = "achievement_categories"

    id = Column(String(64), primary_key=True)  # slug, e.g. "tech"
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(64), nullable=True)
    credit_multiplier = Column(Float, nullable=False, default=1.0)

    achievements = relationship("Achievement", back_populates="category")


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("student_profiles.id"), nullable=False, index=True)
    category_id = Column(String(64), ForeignKey("achievement_categories.id"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date_achieved = Column(DateTime(timezone=True), nullable=False)
    skill_tags = Column(Text, nullable=True)  # JSON string list
    is_public = Column(Boolean, nullable=False, default=True)

    # Lifecycle: pending -> approved | rejected (both terminal)
    status = Column(String(20), nullable=False, default="pending", index=True)
    credits = Column(Integer, nullable=False, default=0)  # > 0 only once approved
    rejection_reason = Column(Text, nullable=True)
    approved_by = Column(String(64), ForeignKey("profiles.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    student = relationship("StudentProfile", back_populates="achievements")
    category = relationship("AchievementCategory", back_populates="achievements")
    approver = relationship("Profile")
