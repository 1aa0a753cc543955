from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class Institution(Base):
    __tablename__ = "institutions"

    id = Column(Integer, primary_key=True, index=True)
    # An institution admin owns exactly one institution record.
    owner_id = Column(String(64), ForeignKey("profiles.id"), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    code = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    owner = relationship("Profile", back_populates="institution")
