"""
Background AI analysis generation.

The API creates a PENDING ProjectAnalysis row and queues this task; the
worker moves it through PROCESSING to COMPLETED (content stored) or FAILED.
"""

import logging
import asyncio
from fastapi import HTTPException
from app.core.celery_app import celery_app
from app.core.database import SessionLocal
from app.crud import analysis as analysis_crud
from app.models.analysis import AnalysisStatus
from app.schemas.reports import AIAnalysisResponse
from app.services.ai_analysis import analyze_project_quality, AIAnalysisError

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.analysis_tasks.generate_ai_analysis_task", bind=True)
def generate_ai_analysis_task(self, analysis_id: int):
    """
    Generate and store the AI analysis of a project.

    Args:
        analysis_id: The ProjectAnalysis row to fill

    Returns:
        dict: Status of the generation
    """
    logger.info(f"[Task {self.request.id}] Starting AI analysis {analysis_id}")

    db = SessionLocal()
    analysis = None

    try:
        analysis = analysis_crud.get_by_id(db, analysis_id)
        if not analysis:
            logger.error(f"[Task {self.request.id}] Analysis {analysis_id} not found")
            return {"status": "error", "message": "Analysis not found"}

        analysis_crud.update_status(db, analysis, AnalysisStatus.PROCESSING)
        logger.info(f"[Task {self.request.id}] Analysis {analysis_id} status set to PROCESSING")

        # Async OpenAI client from a synchronous Celery worker
        result = asyncio.run(analyze_project_quality(db, analysis.project_id))
        content = AIAnalysisResponse(**result).model_dump(mode="json")

        analysis_crud.update_status(db, analysis, AnalysisStatus.COMPLETED, content=content)
        logger.info(f"[Task {self.request.id}] Analysis {analysis_id} completed successfully")
        return {"status": "success", "analysis_id": analysis_id}

    except (AIAnalysisError, HTTPException) as e:
        message = e.detail if isinstance(e, HTTPException) else str(e)
        logger.error(f"[Task {self.request.id}] AI analysis {analysis_id} failed: {message}")
        if analysis:
            analysis_crud.update_status(db, analysis, AnalysisStatus.FAILED, error_message=message)
        return {"status": "failed", "error": message}

    except Exception as e:
        logger.error(f"[Task {self.request.id}] Unexpected error in analysis {analysis_id}: {e}", exc_info=True)
        if analysis:
            db.rollback()
            analysis_crud.update_status(db, analysis, AnalysisStatus.FAILED, error_message=f"Unexpected error: {str(e)}")
        return {"status": "error", "error": str(e)}

    finally:
        db.close()
        logger.info(f"[Task {self.request.id}] Task completed, database session closed")
