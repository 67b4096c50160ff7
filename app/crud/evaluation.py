"""
CRUD operations for Evaluation, EvaluationCriterion and EvaluationMetric.
"""

from typing import Iterable, List, Optional
from sqlalchemy.orm import Session, joinedload, selectinload
from app.models.evaluation import (
    Evaluation,
    EvaluationStatus,
    EvaluationCriterion,
    EvaluationMetric,
)
from app.models.parameterization import Criterion, SubCriterion, Metric
from app.models.project import Project


def _with_structure(query):
    """Eager-load criteria -> selected metrics -> metric variables"""
    return query.options(
        joinedload(Evaluation.project),
        joinedload(Evaluation.standard),
        selectinload(Evaluation.evaluation_criteria).joinedload(EvaluationCriterion.criterion),
        selectinload(Evaluation.evaluation_criteria)
        .selectinload(EvaluationCriterion.evaluation_metrics)
        .joinedload(EvaluationMetric.metric)
        .selectinload(Metric.variables),
    )


def create(db: Session, project_id: int, standard_id: int) -> Evaluation:
    db_evaluation = Evaluation(
        project_id=project_id,
        standard_id=standard_id,
        status=EvaluationStatus.IN_PROGRESS,
    )

    db.add(db_evaluation)
    db.commit()
    db.refresh(db_evaluation)

    return db_evaluation


def get_by_id(db: Session, evaluation_id: int) -> Optional[Evaluation]:
    return db.query(Evaluation).filter(Evaluation.id == evaluation_id).first()


def get_with_structure(db: Session, evaluation_id: int) -> Optional[Evaluation]:
    """
    Retrieve an evaluation with project, standard, criteria and selected metrics.

    Args:
        db: Database session
        evaluation_id: Evaluation ID to retrieve

    Returns:
        Evaluation instance if found, None otherwise
    """
    return _with_structure(db.query(Evaluation)).filter(Evaluation.id == evaluation_id).first()


def get_multi(db: Session) -> List[Evaluation]:
    return (
        db.query(Evaluation)
        .options(joinedload(Evaluation.project), joinedload(Evaluation.standard), joinedload(Evaluation.result))
        .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
        .all()
    )


def get_by_project(db: Session, project_id: int) -> List[Evaluation]:
    """Evaluations of a project with the full data-entry structure, newest first"""
    return (
        _with_structure(db.query(Evaluation))
        .filter(Evaluation.project_id == project_id)
        .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
        .all()
    )


def get_by_standard(db: Session, standard_id: int) -> List[Evaluation]:
    return (
        db.query(Evaluation)
        .options(joinedload(Evaluation.project))
        .filter(Evaluation.standard_id == standard_id)
        .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
        .all()
    )


def get_by_creator(db: Session, user_id: int) -> List[Evaluation]:
    return (
        db.query(Evaluation)
        .join(Evaluation.project)
        .options(joinedload(Evaluation.project), joinedload(Evaluation.standard), joinedload(Evaluation.result))
        .filter(Project.creator_user_id == user_id)
        .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
        .all()
    )


def update_status(db: Session, evaluation: Evaluation, status: EvaluationStatus) -> Evaluation:
    evaluation.status = status
    db.commit()
    db.refresh(evaluation)
    return evaluation


# =========================================================================
# Evaluation criteria / metrics
# =========================================================================

def get_criterion(db: Session, eval_criterion_id: int) -> Optional[EvaluationCriterion]:
    return db.query(EvaluationCriterion).filter(EvaluationCriterion.id == eval_criterion_id).first()


def get_criteria(db: Session, evaluation_id: int) -> List[EvaluationCriterion]:
    return (
        db.query(EvaluationCriterion)
        .filter(EvaluationCriterion.evaluation_id == evaluation_id)
        .order_by(EvaluationCriterion.id.asc())
        .all()
    )


def get_metric(db: Session, eval_metric_id: int) -> Optional[EvaluationMetric]:
    return (
        db.query(EvaluationMetric)
        .options(
            joinedload(EvaluationMetric.evaluation_criterion),
            joinedload(EvaluationMetric.metric).selectinload(Metric.variables),
        )
        .filter(EvaluationMetric.id == eval_metric_id)
        .first()
    )


def get_metrics(db: Session, evaluation_id: int) -> List[EvaluationMetric]:
    """All selected metrics of an evaluation, in criterion then selection order"""
    return (
        db.query(EvaluationMetric)
        .join(EvaluationMetric.evaluation_criterion)
        .options(joinedload(EvaluationMetric.metric).selectinload(Metric.variables))
        .filter(EvaluationCriterion.evaluation_id == evaluation_id)
        .order_by(EvaluationCriterion.id.asc(), EvaluationMetric.id.asc())
        .all()
    )


def count_existing(db: Session, model, ids: Iterable[int]) -> int:
    """Number of distinct `ids` that exist for `model`"""
    unique_ids = set(ids)
    if not unique_ids:
        return 0
    return db.query(model).filter(model.id.in_(unique_ids)).count()


def add_criteria(db: Session, items: List[dict]) -> List[EvaluationCriterion]:
    """
    Insert several evaluation criteria in one transaction.

    Args:
        db: Database session
        items: Dicts with evaluation_id, criterion_id, importance_level, importance_percentage

    Returns:
        Created EvaluationCriterion instances
    """
    created = [EvaluationCriterion(**item) for item in items]
    db.add_all(created)
    db.commit()
    for item in created:
        db.refresh(item)
    return created


def add_metrics(db: Session, items: List[dict]) -> List[EvaluationMetric]:
    created = [EvaluationMetric(**item) for item in items]
    db.add_all(created)
    db.commit()
    for item in created:
        db.refresh(item)
    return created


def get_criterion_with_metrics(db: Session, criterion_id: int) -> Optional[Criterion]:
    """Parameterization criterion with its sub-criteria and their metrics"""
    return (
        db.query(Criterion)
        .options(selectinload(Criterion.sub_criteria).selectinload(SubCriterion.metrics))
        .filter(Criterion.id == criterion_id)
        .first()
    )


def count_by_project(db: Session, project_id: int) -> int:
    return db.query(Evaluation).filter(Evaluation.project_id == project_id).count()
