"""
CRUD operations for stored AI project analyses.
"""

from typing import Optional
from sqlalchemy.orm import Session
from app.models.analysis import ProjectAnalysis, AnalysisStatus


def create_pending(db: Session, project_id: int) -> ProjectAnalysis:
    analysis = ProjectAnalysis(project_id=project_id, status=AnalysisStatus.PENDING)

    db.add(analysis)
    db.commit()
    db.refresh(analysis)

    return analysis


def get_by_id(db: Session, analysis_id: int) -> Optional[ProjectAnalysis]:
    return db.query(ProjectAnalysis).filter(ProjectAnalysis.id == analysis_id).first()


def get_latest(db: Session, project_id: int) -> Optional[ProjectAnalysis]:
    """Most recently requested analysis of a project, whatever its status"""
    return (
        db.query(ProjectAnalysis)
        .filter(ProjectAnalysis.project_id == project_id)
        .order_by(ProjectAnalysis.created_at.desc(), ProjectAnalysis.id.desc())
        .first()
    )


def update_status(
    db: Session,
    analysis: ProjectAnalysis,
    status: AnalysisStatus,
    content: Optional[dict] = None,
    error_message: Optional[str] = None,
) -> ProjectAnalysis:
    analysis.status = status
    if content is not None:
        analysis.content = content
    analysis.error_message = error_message
    db.commit()
    db.refresh(analysis)
    return analysis
