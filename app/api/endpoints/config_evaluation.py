"""
Evaluation configuration endpoints: projects, evaluations, weighted criteria
and selected metrics.
"""

import logging
from typing import List
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import require_evaluator
from app.crud import evaluation as evaluation_crud
from app.crud import project as project_crud
from app.models.user import User
from app.schemas.config_evaluation import (
    ProjectCreate, ProjectResponse, ProjectDetailResponse,
    EvaluationCreate, EvaluationResponse, EvaluationDetailResponse,
    EvaluationCriterionCreate, BulkEvaluationCriteriaCreate, EvaluationCriterionResponse,
    BulkEvaluationMetricsCreate, EvaluationMetricResponse,
    CriterionWithMetrics,
)
from app.services import config_evaluation as config_service

router = APIRouter(prefix="/config-evaluation", tags=["Evaluation Configuration"])
logger = logging.getLogger(__name__)


@router.post("/projects", status_code=201, response_model=ProjectResponse)
def create_project(
    request: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """
    Create a project.

    The authenticated user is the creator unless `creator_user_id` is given.
    The project starts IN_PROGRESS with the default minimum threshold (80%)
    unless one is provided.
    """
    try:
        return config_service.create_project(db, request, current_user)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating project: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create project: {str(e)}")


@router.post("/evaluations", status_code=201, response_model=EvaluationResponse)
def create_evaluation(
    request: EvaluationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    try:
        return config_service.create_evaluation(db, request)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating evaluation: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create evaluation: {str(e)}")


@router.post("/evaluation-criteria", status_code=201, response_model=EvaluationCriterionResponse)
def create_evaluation_criterion(
    request: EvaluationCriterionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    try:
        return config_service.create_evaluation_criterion(db, request)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating evaluation criterion: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create evaluation criterion: {str(e)}")


@router.post("/evaluation-criteria/bulk", status_code=201, response_model=List[EvaluationCriterionResponse])
def bulk_create_evaluation_criteria(
    request: BulkEvaluationCriteriaCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """
    Create all weighted criteria of an evaluation at once.

    Importance percentages must sum to 100 (±0.01) and every item must
    target the same evaluation.
    """
    try:
        return config_service.bulk_create_evaluation_criteria(db, request)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error bulk creating evaluation criteria: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create evaluation criteria: {str(e)}")


@router.post("/evaluation-metrics/bulk", status_code=201, response_model=List[EvaluationMetricResponse])
def bulk_create_evaluation_metrics(
    request: BulkEvaluationMetricsCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    try:
        return config_service.bulk_create_evaluation_metrics(db, request)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error bulk creating evaluation metrics: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create evaluation metrics: {str(e)}")


@router.get("/projects", response_model=List[ProjectDetailResponse])
def list_projects(db: Session = Depends(get_db), current_user: User = Depends(require_evaluator)):
    return project_crud.get_multi(db)


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_evaluator)):
    return config_service.find_project(db, project_id)


@router.get("/evaluations", response_model=List[EvaluationResponse])
def list_evaluations(db: Session = Depends(get_db), current_user: User = Depends(require_evaluator)):
    return evaluation_crud.get_multi(db)


@router.get("/evaluations/{evaluation_id}", response_model=EvaluationDetailResponse)
def get_evaluation(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """Evaluation with project, standard, weighted criteria and selected metrics"""
    return config_service.find_evaluation(db, evaluation_id)


@router.get("/projects/{project_id}/evaluations", response_model=List[EvaluationDetailResponse])
def list_project_evaluations(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """
    Evaluations of a project with criteria -> metrics -> variables.

    Used to build the data-entry form; results are not included.
    """
    return config_service.evaluations_by_project(db, project_id)


@router.get("/standards/{standard_id}/evaluations", response_model=List[EvaluationResponse])
def list_standard_evaluations(
    standard_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return evaluation_crud.get_by_standard(db, standard_id)


@router.get("/criteria/{criterion_id}/metrics", response_model=CriterionWithMetrics)
def get_criterion_metrics(
    criterion_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """Criterion with its sub-criteria and their metrics, for metric selection"""
    return config_service.metrics_by_criterion(db, criterion_id)
