from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    form_id = Column(Integer, ForeignKey("forms.id"), nullable=False, index=True)
    responses_json = Column(Text, nullable=False)  # JSON object: field id/label -> value
    resume_url = Column(String(1000), nullable=False)
    status = Column(String(20), nullable=False, default="pending")

    # Filled in by the analysis step (extraction + AI match)
    parsed_resume_text = Column(Text, nullable=True)
    match_score = Column(Float, nullable=True)  # 0-100
    match_reasoning = Column(Text, nullable=True)
    strengths_json = Column(Text, nullable=True)  # JSON string list
    weaknesses_json = Column(Text, nullable=True)  # JSON string list
    analyzed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    form = relationship("Form", back_populates="applications")
