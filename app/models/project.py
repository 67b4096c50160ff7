import enum
from sqlalchemy import Column, Integer, String, Text, Float, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class ProjectStatus(str, enum.Enum):
    """
    Project lifecycle.

    - IN_PROGRESS: evaluations are being configured or measured
    - COMPLETED: project result calculated
    - CANCELLED: abandoned by its creator
    """
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Project(Base):
    """
    A software project under quality evaluation.

    `minimum_threshold` is the pass mark as a percentage (80 == 8.0 on the
    0-10 score scale).
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    creator_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        Enum(ProjectStatus, name="project_status", values_callable=lambda e: [m.value for m in e]),
        default=ProjectStatus.IN_PROGRESS,
        nullable=False,
        index=True,
    )
    minimum_threshold = Column(Float, nullable=True, default=80)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    creator = relationship("User", back_populates="projects")
    evaluations = relationship(
        "Evaluation",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Evaluation.id",
    )
    result = relationship("ProjectResult", back_populates="project", uselist=False, cascade="all, delete-orphan")
    analyses = relationship("ProjectAnalysis", back_populates="project", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}', status={self.status.value})>"
