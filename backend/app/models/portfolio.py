from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class StudentPortfolio(Base):
    __tablename__ = "student_portfolios"

    id = Column(Integer, primary_key=True, index=True)
    # Conflict key for the portfolio upsert; skills live on the student profile.
    student_id = Column(Integer, ForeignKey("student_profiles.id"), unique=True, nullable=False, index=True)
    about = Column(Text, nullable=True)
    interests = Column(Text, nullable=True)  # JSON string list
    projects = Column(Text, nullable=True)  # JSON list of {title, description, url}
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    student = relationship("StudentProfile", back_populates="portfolio")
