from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # store hashed password
    role = Column(String(50), nullable=False, default="admin")  # admin / owner

    # Personal information
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    name = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    job_title = Column(String(150), nullable=True)
    department = Column(String(150), nullable=True)

    # Organization
    company_name = Column(String(255), nullable=True)
    company_website = Column(String(255), nullable=True)
    industry = Column(String(120), nullable=True)
    company_size = Column(String(50), nullable=True)
    recruitment_challenges = Column(Text, nullable=True)  # JSON string list

    accepted_terms = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    forms = relationship("Form", back_populates="user")
