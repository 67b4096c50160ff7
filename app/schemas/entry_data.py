from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum


class ProgressStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# =========================================================================
# Requests
# =========================================================================

class MetricVariableValue(BaseModel):
    variable_id: int = Field(..., gt=0)
    value: float = Field(..., ge=0)


class SaveMetricVariablesRequest(BaseModel):
    """Values for the formula variables of one selected metric"""
    variables: List[MetricVariableValue] = Field(..., min_length=1)


class EvaluationVariableInput(BaseModel):
    eval_metric_id: int = Field(..., gt=0)
    variable_id: int = Field(..., gt=0)
    value: float = Field(..., ge=0)


class SubmitEvaluationDataRequest(BaseModel):
    """Values for any number of selected metrics of one evaluation"""
    evaluation_variables: List[EvaluationVariableInput] = Field(..., min_length=1)


class FormulaInspectRequest(BaseModel):
    """
    Candidate values keyed by variable symbol.

    Used by data-entry forms to order inputs, pre-fill fixed denominators and
    flag zero denominators before anything is saved.
    """
    metric_id: int
    values: Dict[str, float] = Field(default_factory=dict)


# =========================================================================
# Stored values and results
# =========================================================================

class VariableRef(BaseModel):
    id: int
    symbol: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class EvaluationVariableResponse(BaseModel):
    id: int
    eval_metric_id: int
    variable_id: int
    value: float
    variable: Optional[VariableRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MetricResultResponse(BaseModel):
    id: int
    eval_metric_id: int
    calculated_value: float
    weighted_value: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CriteriaResultResponse(BaseModel):
    id: int
    eval_criterion_id: int
    final_score: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EvaluationResultResponse(BaseModel):
    id: int
    evaluation_id: int
    evaluation_score: float
    conclusion: Optional[str] = None
    score_level: Optional[str] = None
    satisfaction_grade: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectResultResponse(BaseModel):
    id: int
    project_id: int
    final_project_score: float
    score_level: Optional[str] = None
    satisfaction_grade: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VariableList(BaseModel):
    count: int
    data: List[EvaluationVariableResponse]


class MetricResultList(BaseModel):
    count: int
    data: List[MetricResultResponse]


class CriteriaResultList(BaseModel):
    count: int
    data: List[CriteriaResultResponse]


class EvaluationResultList(BaseModel):
    count: int
    data: List[EvaluationResultResponse]


# =========================================================================
# Operation responses
# =========================================================================

class DataProcessedResponse(BaseModel):
    message: str
    variables_saved: int


class FinalizeEvaluationResponse(BaseModel):
    message: str
    evaluation_id: int
    metric_results: int
    criteria_results: int
    final_score: float
    score_level: Optional[str] = None
    satisfaction_grade: Optional[str] = None
    finalized_at: Optional[datetime] = None


class FinalizeProjectResponse(BaseModel):
    message: str
    project_id: int
    final_score: float
    score_level: Optional[str] = None
    satisfaction_grade: Optional[str] = None
    finalized_at: Optional[datetime] = None


class FinalizeQueuedResponse(BaseModel):
    message: str
    evaluation_id: int
    task_id: str


class ResetEvaluationResponse(BaseModel):
    message: str
    evaluation_id: int
    deleted: Dict[str, int]


class MessageResponse(BaseModel):
    message: str


# =========================================================================
# Progress and summaries
# =========================================================================

class EvaluationSummaryResponse(BaseModel):
    evaluation_id: int
    variables: VariableList
    metric_results: MetricResultList
    final_result: Optional[EvaluationResultResponse] = None
    status: ProgressStatusEnum


class VariableProgress(BaseModel):
    submitted: int
    expected: int


class EvaluationProgress(BaseModel):
    variables: VariableProgress
    metric_results: int
    is_finalized: bool


class EvaluationStatusResponse(BaseModel):
    evaluation_id: int
    status: ProgressStatusEnum
    progress: EvaluationProgress
    completion_percentage: int


class ProjectProgressResponse(BaseModel):
    project_id: int
    total_evaluations: int
    completed_evaluations: int
    completion_percentage: int
    final_result: Optional[ProjectResultResponse] = None
    status: ProgressStatusEnum
    evaluation_results: List[EvaluationResultResponse]


class ProjectCompleteResultsResponse(BaseModel):
    project_id: int
    project_result: Optional[ProjectResultResponse] = None
    evaluation_results: EvaluationResultList
    criteria_results: CriteriaResultList
    metric_results: MetricResultList
    evaluation_variables: VariableList
    status: ProgressStatusEnum


# =========================================================================
# Formula tools
# =========================================================================

class FixedVariableResponse(BaseModel):
    symbol: str
    fixed_value: float
    reason: str


class DivisionFinding(BaseModel):
    symbol: str
    message: str


class FormulaInspectResponse(BaseModel):
    metric_id: int
    formula: Optional[str] = None
    ordered_variables: List[VariableRef]
    denominators: List[str]
    fixed_variables: List[FixedVariableResponse]
    division_errors: List[DivisionFinding]
