"""
Measurement data and calculated results.

EvaluationVariable holds the values entered by the evaluator. The four result
tables hold one row per metric / criterion / evaluation / project; the
calculation service upserts them so recalculating never duplicates rows.
"""

from sqlalchemy import Column, Integer, Float, String, Text, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class EvaluationVariable(Base):
    __tablename__ = "evaluation_variables"
    __table_args__ = (
        UniqueConstraint("eval_metric_id", "variable_id", name="uq_evaluation_variable_metric_variable"),
    )

    id = Column(Integer, primary_key=True, index=True)
    eval_metric_id = Column(Integer, ForeignKey("evaluation_metrics.id", ondelete="CASCADE"), nullable=False, index=True)
    variable_id = Column(Integer, ForeignKey("formula_variables.id"), nullable=False, index=True)
    value = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    evaluation_metric = relationship("EvaluationMetric", back_populates="variables")
    variable = relationship("FormulaVariable")

    def __repr__(self):
        return f"<EvaluationVariable(eval_metric_id={self.eval_metric_id}, variable_id={self.variable_id}, value={self.value})>"


class EvaluationMetricResult(Base):
    __tablename__ = "evaluation_metric_results"

    id = Column(Integer, primary_key=True, index=True)
    eval_metric_id = Column(Integer, ForeignKey("evaluation_metrics.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    calculated_value = Column(Float, nullable=False)
    weighted_value = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    evaluation_metric = relationship("EvaluationMetric", back_populates="result")

    def __repr__(self):
        return f"<EvaluationMetricResult(eval_metric_id={self.eval_metric_id}, weighted={self.weighted_value})>"


class EvaluationCriteriaResult(Base):
    __tablename__ = "evaluation_criteria_results"

    id = Column(Integer, primary_key=True, index=True)
    eval_criterion_id = Column(Integer, ForeignKey("evaluation_criteria.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    final_score = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    evaluation_criterion = relationship("EvaluationCriterion", back_populates="result")

    def __repr__(self):
        return f"<EvaluationCriteriaResult(eval_criterion_id={self.eval_criterion_id}, final_score={self.final_score})>"


class EvaluationResult(Base):
    __tablename__ = "evaluation_results"

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    evaluation_score = Column(Float, nullable=False)
    conclusion = Column(Text, nullable=True)
    score_level = Column(String(50), nullable=True)
    satisfaction_grade = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    evaluation = relationship("Evaluation", back_populates="result")

    def __repr__(self):
        return f"<EvaluationResult(evaluation_id={self.evaluation_id}, score={self.evaluation_score})>"


class ProjectResult(Base):
    __tablename__ = "project_results"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    final_project_score = Column(Float, nullable=False)
    score_level = Column(String(50), nullable=True)
    satisfaction_grade = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="result")

    def __repr__(self):
        return f"<ProjectResult(project_id={self.project_id}, score={self.final_project_score})>"
