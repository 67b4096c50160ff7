"""
CRUD operations for Project model.
"""

from typing import List, Optional
from sqlalchemy.orm import Session, joinedload, selectinload
from app.models.project import Project, ProjectStatus


def create(
    db: Session,
    name: str,
    creator_user_id: int,
    description: Optional[str] = None,
    minimum_threshold: Optional[float] = None,
) -> Project:
    """
    Create a new project in the database.

    Args:
        db: Database session
        name: Project name
        creator_user_id: ID of the user who owns the project
        description: Optional description
        minimum_threshold: Pass mark as a percentage (model default when None)

    Returns:
        Created Project instance with id
    """
    db_project = Project(
        name=name,
        description=description,
        creator_user_id=creator_user_id,
        status=ProjectStatus.IN_PROGRESS,
    )
    if minimum_threshold is not None:
        db_project.minimum_threshold = minimum_threshold

    db.add(db_project)
    db.commit()
    db.refresh(db_project)

    return db_project


def get_by_id(db: Session, project_id: int) -> Optional[Project]:
    return db.query(Project).filter(Project.id == project_id).first()


def get_multi(db: Session) -> List[Project]:
    """All projects, newest first, with creator and evaluations loaded"""
    return (
        db.query(Project)
        .options(joinedload(Project.creator), selectinload(Project.evaluations))
        .order_by(Project.created_at.desc(), Project.id.desc())
        .all()
    )


def get_by_creator(db: Session, user_id: int) -> List[Project]:
    return (
        db.query(Project)
        .options(selectinload(Project.evaluations), joinedload(Project.result))
        .filter(Project.creator_user_id == user_id)
        .order_by(Project.created_at.desc(), Project.id.desc())
        .all()
    )


def update_status(db: Session, project: Project, status: ProjectStatus) -> Project:
    project.status = status
    db.commit()
    db.refresh(project)
    return project
