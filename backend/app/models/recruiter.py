from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    industry = Column(String(120), nullable=True)
    logo_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    recruiters = relationship("RecruiterProfile", back_populates="company")
    jobs = relationship("JobPosting", back_populates="company")


class RecruiterProfile(Base):
    __tablename__ = "recruiter_profiles"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(String(64), ForeignKey("profiles.id"), unique=True, nullable=False, index=True)
    company_name = Column(String(255), nullable=True)
    designation = Column(String(120), nullable=True)
    # Linked on the first job post; jobs always take their company from here.
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    profile = relationship("Profile", back_populates="recruiter_profile")
    company = relationship("Company", back_populates="recruiters")
