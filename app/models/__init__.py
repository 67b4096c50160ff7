"""
Database models package.
"""

from app.models.user import User, Role, RoleName
from app.models.parameterization import (
    ItemState,
    Standard,
    Criterion,
    SubCriterion,
    Metric,
    FormulaVariable,
)
from app.models.project import Project, ProjectStatus
from app.models.evaluation import (
    Evaluation,
    EvaluationStatus,
    EvaluationCriterion,
    EvaluationMetric,
    ImportanceLevel,
)
from app.models.results import (
    EvaluationVariable,
    EvaluationMetricResult,
    EvaluationCriteriaResult,
    EvaluationResult,
    ProjectResult,
)
from app.models.analysis import ProjectAnalysis, AnalysisStatus

__all__ = [
    "User", "Role", "RoleName",
    "ItemState", "Standard", "Criterion", "SubCriterion", "Metric", "FormulaVariable",
    "Project", "ProjectStatus",
    "Evaluation", "EvaluationStatus", "EvaluationCriterion", "EvaluationMetric", "ImportanceLevel",
    "EvaluationVariable", "EvaluationMetricResult", "EvaluationCriteriaResult", "EvaluationResult", "ProjectResult",
    "ProjectAnalysis", "AnalysisStatus",
]
