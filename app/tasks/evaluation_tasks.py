"""
Background evaluation finalization.

Large evaluations score many metrics; the async finalize endpoint queues this
task so the request returns immediately. The result is the same dict the
synchronous endpoint returns.
"""

import logging
from fastapi import HTTPException
from app.core.celery_app import celery_app
from app.core.database import SessionLocal
from app.services import entry_data as entry_data_service

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.evaluation_tasks.finalize_evaluation_task", bind=True)
def finalize_evaluation_task(self, evaluation_id: int):
    """
    Run the calculation pipeline for an evaluation in a worker.

    Args:
        evaluation_id: The evaluation to finalize

    Returns:
        dict: {"status": "success", "result": ...} or {"status": "failed", "error": ...}
    """
    logger.info(f"[Task {self.request.id}] Finalizing evaluation {evaluation_id}")
    db = SessionLocal()

    try:
        result = entry_data_service.finalize_evaluation(db, evaluation_id)
        result["finalized_at"] = result["finalized_at"].isoformat() if result["finalized_at"] else None

        logger.info(f"[Task {self.request.id}] Evaluation {evaluation_id} finalized with score {result['final_score']}")
        return {"status": "success", "result": result}

    except HTTPException as e:
        # Missing data or unscorable formulas; retrying would fail the same way
        db.rollback()
        logger.error(f"[Task {self.request.id}] Evaluation {evaluation_id} could not be finalized: {e.detail}")
        return {"status": "failed", "error": e.detail}

    except Exception as e:
        db.rollback()
        logger.error(f"[Task {self.request.id}] Unexpected error finalizing evaluation {evaluation_id}: {e}", exc_info=True)
        raise

    finally:
        db.close()
        logger.info(f"[Task {self.request.id}] Task completed, database session closed")
