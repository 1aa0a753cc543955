from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class JobPosting(Base):
    __tablename__ = "job_postings"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    posted_by = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    title = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(30), nullable=True, index=True)  # full-time | internship | part-time | contract
    category = Column(String(100), nullable=True, index=True)
    location = Column(String(100), nullable=True, index=True)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    requirements = Column(Text, nullable=True)  # JSON string list
    responsibilities = Column(Text, nullable=True)  # JSON string list
    deadline = Column(DateTime(timezone=True), nullable=True)  # Application deadline
    status = Column(String(20), nullable=False, default="active")  # active | closed
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)

    company = relationship("Company", back_populates="jobs")
    poster = relationship("Profile")
    applications = relationship("JobApplication", back_populates="job", cascade="all, delete-orphan")
