from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.schemas.parameterization import (
    StandardResponse,
    CriterionResponse,
    SubCriterionResponse,
    MetricResponse,
    FormulaVariableResponse,
)


class ProjectStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EvaluationStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ImportanceLevelEnum(str, Enum):
    """A = Alta, M = Media, B = Baja"""
    HIGH = "A"
    MEDIUM = "M"
    LOW = "B"


# =========================================================================
# Projects
# =========================================================================

class ProjectCreate(BaseModel):
    """
    Schema for creating a project.

    creator_user_id defaults to the authenticated user.
    """
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    creator_user_id: Optional[int] = None
    minimum_threshold: Optional[float] = Field(None, ge=0, le=100, description="Pass mark as a percentage")


class ProjectCreator(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class ProjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    creator_user_id: int
    status: ProjectStatusEnum
    minimum_threshold: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =========================================================================
# Evaluations
# =========================================================================

class EvaluationCreate(BaseModel):
    project_id: int
    standard_id: int


class EvaluationResponse(BaseModel):
    id: int
    project_id: int
    standard_id: int
    status: EvaluationStatusEnum
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectDetailResponse(ProjectResponse):
    creator: Optional[ProjectCreator] = None
    evaluations: List[EvaluationResponse] = []


# =========================================================================
# Evaluation criteria and metrics
# =========================================================================

class EvaluationCriterionCreate(BaseModel):
    evaluation_id: int
    criterion_id: int
    importance_level: ImportanceLevelEnum
    importance_percentage: float = Field(..., gt=0, le=100)


class BulkEvaluationCriteriaCreate(BaseModel):
    """All items must target the same evaluation and their percentages must sum to 100"""
    criteria: List[EvaluationCriterionCreate] = Field(..., min_length=1)


class EvaluationCriterionResponse(BaseModel):
    id: int
    evaluation_id: int
    criterion_id: int
    importance_level: ImportanceLevelEnum
    importance_percentage: float

    class Config:
        from_attributes = True


class EvaluationMetricCreate(BaseModel):
    eval_criterion_id: int
    metric_id: int


class BulkEvaluationMetricsCreate(BaseModel):
    metrics: List[EvaluationMetricCreate] = Field(..., min_length=1)


class EvaluationMetricResponse(BaseModel):
    id: int
    eval_criterion_id: int
    metric_id: int

    class Config:
        from_attributes = True


# =========================================================================
# Nested views
# =========================================================================

class MetricWithVariables(MetricResponse):
    variables: List[FormulaVariableResponse] = []


class EvaluationMetricDetail(EvaluationMetricResponse):
    metric: MetricWithVariables


class EvaluationCriterionDetail(EvaluationCriterionResponse):
    criterion: CriterionResponse
    evaluation_metrics: List[EvaluationMetricDetail] = []


class EvaluationDetailResponse(EvaluationResponse):
    """Evaluation with its weighted criteria, selected metrics and their variables"""
    project: Optional[ProjectResponse] = None
    standard: Optional[StandardResponse] = None
    evaluation_criteria: List[EvaluationCriterionDetail] = []


class SubCriterionWithMetrics(SubCriterionResponse):
    metrics: List[MetricResponse] = []


class CriterionWithMetrics(CriterionResponse):
    sub_criteria: List[SubCriterionWithMetrics] = []
