"""
Measurement data entry, finalization and result retrieval endpoints.
"""

import logging
from typing import List
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import require_evaluator
from app.models.user import User
from app.schemas.entry_data import (
    SaveMetricVariablesRequest,
    SubmitEvaluationDataRequest,
    FormulaInspectRequest,
    FormulaInspectResponse,
    EvaluationVariableResponse,
    MetricResultResponse,
    CriteriaResultResponse,
    EvaluationResultResponse,
    ProjectResultResponse,
    DataProcessedResponse,
    FinalizeEvaluationResponse,
    FinalizeProjectResponse,
    FinalizeQueuedResponse,
    ResetEvaluationResponse,
    MessageResponse,
    EvaluationSummaryResponse,
    EvaluationStatusResponse,
    ProjectProgressResponse,
    ProjectCompleteResultsResponse,
)
from app.services import entry_data as entry_data_service
from app.services.evaluation_calculation import get_evaluation_or_404
from app.tasks.evaluation_tasks import finalize_evaluation_task

router = APIRouter(prefix="/entry-data", tags=["Entry Data"])
logger = logging.getLogger(__name__)


# =========================================================================
# Data entry
# =========================================================================

@router.post(
    "/metrics/{eval_metric_id}/variables",
    status_code=201,
    response_model=List[EvaluationVariableResponse]
)
def save_metric_variables(
    eval_metric_id: int,
    request: SaveMetricVariablesRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """
    Save the variable values of one selected metric.

    Existing values are overwritten. A 0 for a variable used as a
    denominator of the metric's formula is rejected with 400.
    """
    try:
        return entry_data_service.save_metric_variables(
            db, eval_metric_id, [item.model_dump() for item in request.variables]
        )
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving variables for evaluation metric {eval_metric_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to save variables: {str(e)}")


@router.post("/evaluations/{evaluation_id}/submit-data", response_model=DataProcessedResponse)
def submit_evaluation_data(
    evaluation_id: int,
    request: SubmitEvaluationDataRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    try:
        return entry_data_service.submit_evaluation_data(
            db, evaluation_id, [item.model_dump() for item in request.evaluation_variables]
        )
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error submitting data for evaluation {evaluation_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to submit evaluation data: {str(e)}")


@router.post("/formula-tools/inspect", response_model=FormulaInspectResponse)
def inspect_formula(
    request: FormulaInspectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """
    Ordered inputs, denominators, threshold-fixed denominators and zero
    denominator findings for a metric and a set of candidate values.
    """
    return entry_data_service.inspect_formula(db, request.metric_id, request.values)


# =========================================================================
# Finalization
# =========================================================================

@router.post("/evaluations/{evaluation_id}/finalize", response_model=FinalizeEvaluationResponse)
def finalize_evaluation(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """
    Calculate metric, criteria and evaluation results and mark the
    evaluation completed. Safe to call again after editing values.
    """
    try:
        return entry_data_service.finalize_evaluation(db, evaluation_id)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error finalizing evaluation {evaluation_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to finalize evaluation: {str(e)}")


@router.post("/evaluations/{evaluation_id}/finalize/async", status_code=202, response_model=FinalizeQueuedResponse)
def finalize_evaluation_async(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    get_evaluation_or_404(db, evaluation_id)

    task = finalize_evaluation_task.delay(evaluation_id)
    logger.info(f"Queued finalize task {task.id} for evaluation {evaluation_id}")

    return {
        "message": "Evaluation finalization queued",
        "evaluation_id": evaluation_id,
        "task_id": str(task.id),
    }


@router.post("/projects/{project_id}/finalize", response_model=FinalizeProjectResponse)
def finalize_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    try:
        return entry_data_service.finalize_project(db, project_id)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error finalizing project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to finalize project: {str(e)}")


# =========================================================================
# Evaluation queries
# =========================================================================

@router.get("/evaluations/{evaluation_id}/evaluation-variables", response_model=List[EvaluationVariableResponse])
def get_evaluation_variables(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_evaluation_variables(db, evaluation_id)


@router.get("/evaluations/{evaluation_id}/metric-results", response_model=List[MetricResultResponse])
def get_metric_results(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_metric_results(db, evaluation_id)


@router.get("/evaluations/{evaluation_id}/criteria-results", response_model=List[CriteriaResultResponse])
def get_criteria_results(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_criteria_results(db, evaluation_id)


@router.get("/evaluations/{evaluation_id}/result", response_model=EvaluationResultResponse)
def get_evaluation_result(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_evaluation_result(db, evaluation_id)


@router.get("/evaluations/{evaluation_id}/summary", response_model=EvaluationSummaryResponse)
def get_evaluation_summary(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_evaluation_summary(db, evaluation_id)


@router.get("/evaluations/{evaluation_id}/progress", response_model=EvaluationStatusResponse)
def get_evaluation_status(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """Submitted values against the active formula variables of every selected metric"""
    return entry_data_service.get_evaluation_status(db, evaluation_id)


# =========================================================================
# Project queries
# =========================================================================

@router.get("/projects/{project_id}/progress", response_model=ProjectProgressResponse)
def get_project_progress(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_project_progress(db, project_id)


@router.get("/projects/{project_id}/evaluation-results", response_model=List[EvaluationResultResponse])
def get_project_evaluation_results(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_project_evaluation_results(db, project_id)


@router.get("/projects/{project_id}/criteria-results", response_model=List[CriteriaResultResponse])
def get_project_criteria_results(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_project_criteria_results(db, project_id)


@router.get("/projects/{project_id}/metric-results", response_model=List[MetricResultResponse])
def get_project_metric_results(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_project_metric_results(db, project_id)


@router.get("/projects/{project_id}/evaluation-variables", response_model=List[EvaluationVariableResponse])
def get_project_variables(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_project_variables(db, project_id)


@router.get("/projects/{project_id}/project-result", response_model=ProjectResultResponse)
def get_project_result(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.get_project_result(db, project_id)


@router.get("/projects/{project_id}/complete-results", response_model=ProjectCompleteResultsResponse)
def get_project_complete_results(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """Project result plus every evaluation, criteria and metric result and entered value"""
    return entry_data_service.get_project_complete_results(db, project_id)


# =========================================================================
# Deletion
# =========================================================================

@router.delete("/metrics/{eval_metric_id}/variables/{variable_id}", response_model=MessageResponse)
def delete_variable(
    eval_metric_id: int,
    variable_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.delete_variable(db, eval_metric_id, variable_id)


@router.delete("/metric-results/{result_id}", response_model=MessageResponse)
def delete_metric_result(
    result_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return entry_data_service.delete_metric_result(db, result_id)


@router.post("/evaluations/{evaluation_id}/reset", response_model=ResetEvaluationResponse)
def reset_evaluation(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """Delete every entered value and result of the evaluation and reopen it"""
    try:
        return entry_data_service.reset_evaluation(db, evaluation_id)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error resetting evaluation {evaluation_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to reset evaluation: {str(e)}")
