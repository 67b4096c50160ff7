"""
Report endpoints: evaluation and project views, statistics and the AI
quality analysis.
"""

import logging
from typing import List
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user, require_evaluator
from app.crud import analysis as analysis_crud
from app.models.user import User
from app.schemas.reports import (
    EvaluationReport,
    EvaluationListItem,
    EvaluationStats,
    ProjectSummary,
    ProjectReport,
    ProjectStats,
    AIAnalysisResponse,
    AIAnalysisQueued,
    StoredAnalysisResponse,
)
from app.services import reports as reports_service
from app.services.ai_analysis import analyze_project_quality, AIAnalysisError, AIAnalysisNotConfiguredError
from app.services.evaluation_calculation import get_project_or_404
from app.tasks.analysis_tasks import generate_ai_analysis_task

router = APIRouter(prefix="/reports", tags=["Reports"])
logger = logging.getLogger(__name__)


@router.get("/my-evaluations", response_model=List[EvaluationListItem])
def get_my_evaluations(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Evaluations of the projects created by the authenticated user"""
    return reports_service.get_evaluations_by_user(db, current_user.id)


@router.get("/my-projects", response_model=List[ProjectSummary])
def get_my_projects(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return reports_service.get_projects_by_user(db, current_user.id)


@router.get("/evaluations", response_model=List[EvaluationListItem])
def get_all_evaluations(db: Session = Depends(get_db), current_user: User = Depends(require_evaluator)):
    return reports_service.get_all_evaluations(db)


@router.get("/evaluations/{evaluation_id}", response_model=EvaluationReport)
def get_evaluation_report(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Full report of a finalized evaluation.

    Returns 404 until the evaluation has been finalized.
    """
    return reports_service.get_evaluation_report(db, evaluation_id)


@router.get("/evaluations/{evaluation_id}/stats", response_model=EvaluationStats)
def get_evaluation_stats(
    evaluation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return reports_service.get_evaluation_stats(db, evaluation_id)


@router.get("/projects/{project_id}/evaluations", response_model=List[EvaluationListItem])
def get_project_evaluations(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return reports_service.get_evaluations_by_project(db, project_id)


@router.get("/projects/{project_id}/report", response_model=ProjectReport)
def get_project_report(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return reports_service.get_project_report(db, project_id)


@router.get("/projects/{project_id}/stats", response_model=ProjectStats)
def get_project_stats(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return reports_service.get_project_stats(db, project_id)


# =========================================================================
# AI analysis
# =========================================================================

@router.post("/projects/{project_id}/ai-analysis", response_model=AIAnalysisResponse)
async def generate_ai_analysis(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Generate the AI quality analysis of a project and return it.

    - 503 when OpenAI is not configured
    - 502 when generation fails after all retries
    """
    try:
        return await analyze_project_quality(db, project_id)
    except AIAnalysisNotConfiguredError as e:
        logger.error(f"AI analysis unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except AIAnalysisError as e:
        logger.error(f"AI analysis failed for project {project_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to generate AI analysis: {str(e)}")


@router.post("/projects/{project_id}/ai-analysis/async", status_code=202, response_model=AIAnalysisQueued)
def queue_ai_analysis(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Queue the AI analysis; poll /ai-analysis/latest for the result"""
    get_project_or_404(db, project_id)

    analysis = analysis_crud.create_pending(db, project_id)
    task = generate_ai_analysis_task.delay(analysis.id)
    logger.info(f"Queued AI analysis task {task.id} for project {project_id} (analysis {analysis.id})")

    return {
        "message": "AI analysis queued",
        "analysis_id": analysis.id,
        "project_id": project_id,
        "task_id": str(task.id),
        "status": analysis.status.value,
    }


@router.get("/projects/{project_id}/ai-analysis/latest", response_model=StoredAnalysisResponse)
def get_latest_ai_analysis(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    analysis = analysis_crud.get_latest(db, project_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail=f"No AI analysis found for project {project_id}")
    return analysis
