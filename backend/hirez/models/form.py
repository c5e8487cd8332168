from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Form(Base):
    __tablename__ = "forms"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(150), nullable=False)
    job_description = Column(Text, nullable=False)  # HTML
    fields_json = Column(Text, nullable=False)  # JSON array of field definitions, in display order
    hiring_domain = Column(String(30), nullable=True)  # tech | sales | non-tech
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="forms")
    # Back-reference only: applications are never deleted with their form.
    applications = relationship("Application", back_populates="form")
