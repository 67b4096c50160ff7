"""
Health check and monitoring endpoints.

Provides detailed health status for the database and the Celery broker.
"""

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import text, func
from datetime import datetime, timezone
import redis

from app.core.config import settings
from app.core.database import get_db
from app.models.evaluation import Evaluation, EvaluationStatus
from app.models.project import Project
from app.models.results import EvaluationResult
from app.models.user import User

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health/detailed", status_code=status.HTTP_200_OK)
async def detailed_health_check(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Database connectivity
    - Redis (Celery broker) availability

    Returns 200 with the status of each component.
    """
    health_status = {
        "status": "healthy",
        "timestamp": _timestamp(),
        "checks": {}
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": f"Database error: {str(e)}"
        }

    try:
        redis.Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2).ping()
        health_status["checks"]["broker"] = {
            "status": "healthy",
            "message": "Redis broker reachable"
        }
    except redis.RedisError as e:
        # Only background finalize / AI analysis depend on the broker
        logger.warning(f"Broker health check failed: {e}")
        health_status["status"] = "degraded" if health_status["status"] == "healthy" else health_status["status"]
        health_status["checks"]["broker"] = {
            "status": "unhealthy",
            "message": f"Broker error: {str(e)}"
        }

    return health_status


@router.get("/metrics", status_code=status.HTTP_200_OK)
async def get_metrics(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Application metrics endpoint.

    Returns basic operational counts: users, projects, evaluations and
    finalized evaluations.
    """
    try:
        return {
            "timestamp": _timestamp(),
            "metrics": {
                "total_users": db.query(func.count(User.id)).scalar() or 0,
                "total_projects": db.query(func.count(Project.id)).scalar() or 0,
                "total_evaluations": db.query(func.count(Evaluation.id)).scalar() or 0,
                "completed_evaluations": db.query(func.count(Evaluation.id)).filter(
                    Evaluation.status == EvaluationStatus.COMPLETED
                ).scalar() or 0,
                "evaluation_results": db.query(func.count(EvaluationResult.id)).scalar() or 0,
            }
        }
    except Exception as e:
        logger.error(f"Failed to retrieve metrics: {e}")
        return {
            "error": "Failed to retrieve metrics",
            "message": str(e)
        }
