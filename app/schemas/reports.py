from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum


# =========================================================================
# Evaluation report
# =========================================================================

class ReportVariable(BaseModel):
    symbol: str
    description: Optional[str] = None
    value: float


class ReportMetric(BaseModel):
    metric_code: Optional[str] = None
    metric_name: str
    formula: Optional[str] = None
    desired_threshold: Optional[str] = None
    worst_case: Optional[str] = None
    calculated_value: float
    weighted_value: float
    meets_threshold: bool
    variables: List[ReportVariable]


class ReportCriterion(BaseModel):
    criterion_name: str
    importance_level: str
    importance_percentage: float
    final_score: float
    metrics: List[ReportMetric]


class EvaluationReport(BaseModel):
    evaluation_id: int
    project_id: int
    project_name: str
    standard_name: str
    standard_version: Optional[str] = None
    created_at: Optional[datetime] = None
    final_score: float
    score_level: Optional[str] = None
    satisfaction_grade: Optional[str] = None
    conclusion: str
    minimum_threshold: float
    meets_threshold: bool
    criteria_results: List[ReportCriterion]


class EvaluationListItem(BaseModel):
    evaluation_id: int
    project_id: int
    project_name: str
    standard_name: str
    created_at: Optional[datetime] = None
    final_score: Optional[float] = None
    has_results: bool
    status: str


class NamedScore(BaseModel):
    name: str
    score: float


class ScoreByImportance(BaseModel):
    high: float
    medium: float
    low: float


class EvaluationStats(BaseModel):
    total_criteria: int
    total_metrics: int
    average_criteria_score: float
    best_criterion: NamedScore
    worst_criterion: NamedScore
    score_by_importance: ScoreByImportance


# =========================================================================
# Project reports
# =========================================================================

class ProjectSummary(BaseModel):
    project_id: int
    project_name: str
    project_description: Optional[str] = None
    minimum_threshold: Optional[float] = None
    final_project_score: Optional[float] = None
    meets_threshold: bool
    status: str
    evaluation_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectReportEvaluation(BaseModel):
    evaluation_id: int
    standard_name: str
    final_score: float
    status: str
    created_at: Optional[datetime] = None


class ProjectReport(BaseModel):
    project_id: int
    project_name: str
    project_description: Optional[str] = None
    creator_name: str
    minimum_threshold: float
    final_project_score: float
    meets_threshold: bool
    status: str
    created_at: Optional[datetime] = None
    evaluations: List[ProjectReportEvaluation]


class StandardScore(BaseModel):
    standard_name: str
    score: float


class ProjectStats(BaseModel):
    total_evaluations: int
    completed_evaluations: int
    average_evaluation_score: float
    highest_evaluation: StandardScore
    lowest_evaluation: StandardScore


# =========================================================================
# AI analysis
# =========================================================================

class RecommendationPriority(str, Enum):
    HIGH = "Alta"
    MEDIUM = "Media"
    LOW = "Baja"


class AIRecommendation(BaseModel):
    prioridad: RecommendationPriority
    titulo: str
    descripcion: str
    impacto: str
    categoria: Optional[str] = None


class AIAnalysisMetadata(BaseModel):
    score: float
    threshold: float
    meetsThreshold: bool
    totalEvaluations: int


class AIAnalysisResponse(BaseModel):
    """Structured narrative generated by the LLM, in Spanish"""
    projectId: int
    projectName: str
    analisis_general: str
    fortalezas: List[str] = Field(default_factory=list)
    debilidades: List[str] = Field(default_factory=list)
    recomendaciones: List[AIRecommendation] = Field(default_factory=list)
    riesgos: List[str] = Field(default_factory=list)
    proximos_pasos: List[str] = Field(default_factory=list)
    generatedAt: datetime
    metadata: AIAnalysisMetadata


class AnalysisStatusEnum(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class AIAnalysisQueued(BaseModel):
    message: str
    analysis_id: int
    project_id: int
    task_id: str
    status: AnalysisStatusEnum


class StoredAnalysisResponse(BaseModel):
    id: int
    project_id: int
    status: AnalysisStatusEnum
    error_message: Optional[str] = None
    content: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
