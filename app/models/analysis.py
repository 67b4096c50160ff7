"""
Stored AI quality analyses generated in the background by Celery.
"""

import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, JSON, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class AnalysisStatus(str, enum.Enum):
    """
    - PENDING: queued, worker not started
    - PROCESSING: LLM call in progress
    - COMPLETED: `content` holds the analysis
    - FAILED: see `error_message`
    """
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ProjectAnalysis(Base):
    __tablename__ = "project_analyses"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(AnalysisStatus, name="analysis_status"), default=AnalysisStatus.PENDING, nullable=False, index=True)
    error_message = Column(String, nullable=True)

    # Same structure as the synchronous AI analysis response
    content = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="analyses")

    def __repr__(self):
        return f"<ProjectAnalysis(id={self.id}, project_id={self.project_id}, status={self.status.value})>"
