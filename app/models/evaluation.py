"""
Evaluation configuration models.

An Evaluation measures one Project against one Standard. The user weighs a
subset of the standard's criteria (EvaluationCriterion) and picks the metrics
to measure for each of them (EvaluationMetric).
"""

import enum
from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class EvaluationStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ImportanceLevel(str, enum.Enum):
    """Criterion importance: Alta / Media / Baja"""
    HIGH = "A"
    MEDIUM = "M"
    LOW = "B"


class Evaluation(Base):
    __tablename__ = "evaluations"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    standard_id = Column(Integer, ForeignKey("standards.id"), nullable=False, index=True)
    status = Column(
        Enum(EvaluationStatus, name="evaluation_status", values_callable=lambda e: [m.value for m in e]),
        default=EvaluationStatus.IN_PROGRESS,
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    project = relationship("Project", back_populates="evaluations")
    standard = relationship("Standard")
    evaluation_criteria = relationship(
        "EvaluationCriterion",
        back_populates="evaluation",
        cascade="all, delete-orphan",
        order_by="EvaluationCriterion.id",
    )
    result = relationship("EvaluationResult", back_populates="evaluation", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Evaluation(id={self.id}, project_id={self.project_id}, standard_id={self.standard_id})>"


class EvaluationCriterion(Base):
    __tablename__ = "evaluation_criteria"

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    criterion_id = Column(Integer, ForeignKey("criteria.id"), nullable=False, index=True)
    importance_level = Column(
        Enum(ImportanceLevel, name="importance_level", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    importance_percentage = Column(Float, nullable=False)

    # Relationships
    evaluation = relationship("Evaluation", back_populates="evaluation_criteria")
    criterion = relationship("Criterion")
    evaluation_metrics = relationship(
        "EvaluationMetric",
        back_populates="evaluation_criterion",
        cascade="all, delete-orphan",
        order_by="EvaluationMetric.id",
    )
    result = relationship(
        "EvaluationCriteriaResult",
        back_populates="evaluation_criterion",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<EvaluationCriterion(id={self.id}, criterion_id={self.criterion_id}, pct={self.importance_percentage})>"


class EvaluationMetric(Base):
    __tablename__ = "evaluation_metrics"

    id = Column(Integer, primary_key=True, index=True)
    eval_criterion_id = Column(Integer, ForeignKey("evaluation_criteria.id", ondelete="CASCADE"), nullable=False, index=True)
    metric_id = Column(Integer, ForeignKey("metrics.id"), nullable=False, index=True)

    # Relationships
    evaluation_criterion = relationship("EvaluationCriterion", back_populates="evaluation_metrics")
    metric = relationship("Metric")
    variables = relationship(
        "EvaluationVariable",
        back_populates="evaluation_metric",
        cascade="all, delete-orphan",
        order_by="EvaluationVariable.id",
    )
    result = relationship(
        "EvaluationMetricResult",
        back_populates="evaluation_metric",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<EvaluationMetric(id={self.id}, metric_id={self.metric_id})>"
