"""
Evaluation configuration.

Flow: create project -> create evaluation (project x standard) -> weigh the
evaluated criteria (percentages sum to 100) -> select the metrics measured
for each criterion.
"""

import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.crud import evaluation as evaluation_crud
from app.crud import project as project_crud
from app.crud import user as user_crud
from app.models.evaluation import Evaluation, EvaluationCriterion, EvaluationMetric, ImportanceLevel
from app.models.parameterization import Criterion, Metric, Standard
from app.models.project import Project
from app.models.user import User
from app.schemas.config_evaluation import (
    ProjectCreate,
    EvaluationCreate,
    EvaluationCriterionCreate,
    BulkEvaluationCriteriaCreate,
    BulkEvaluationMetricsCreate,
)

logger = logging.getLogger(__name__)

PERCENTAGE_TOLERANCE = 0.01


def _not_found(entity: str, entity_id: int) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{entity} with ID {entity_id} not found")


def create_project(db: Session, request: ProjectCreate, current_user: User) -> Project:
    """Create a project owned by `creator_user_id`, or by the caller when omitted"""
    creator_id = request.creator_user_id or current_user.id

    if user_crud.get_by_id(db, creator_id) is None:
        raise _not_found("User", creator_id)

    project = project_crud.create(
        db,
        name=request.name,
        creator_user_id=creator_id,
        description=request.description,
        minimum_threshold=request.minimum_threshold,
    )

    logger.info(f"Project created: {project.name} (ID: {project.id}) by user {creator_id}")
    return project


def create_evaluation(db: Session, request: EvaluationCreate) -> Evaluation:
    if project_crud.get_by_id(db, request.project_id) is None:
        raise _not_found("Project", request.project_id)

    if db.get(Standard, request.standard_id) is None:
        raise _not_found("Standard", request.standard_id)

    evaluation = evaluation_crud.create(db, request.project_id, request.standard_id)

    logger.info(
        f"Evaluation created (ID: {evaluation.id}) for project {request.project_id} "
        f"with standard {request.standard_id}"
    )
    return evaluation


def create_evaluation_criterion(db: Session, request: EvaluationCriterionCreate) -> EvaluationCriterion:
    if evaluation_crud.get_by_id(db, request.evaluation_id) is None:
        raise _not_found("Evaluation", request.evaluation_id)

    if db.get(Criterion, request.criterion_id) is None:
        raise _not_found("Criterion", request.criterion_id)

    created = evaluation_crud.add_criteria(db, [_criterion_row(request)])[0]
    logger.info(f"Evaluation criterion created (ID: {created.id}) for evaluation {request.evaluation_id}")
    return created


def bulk_create_evaluation_criteria(db: Session, request: BulkEvaluationCriteriaCreate) -> List[EvaluationCriterion]:
    """
    Create the weighted criteria of an evaluation in one transaction.

    Raises:
        HTTPException 400: Percentages don't sum to 100, items target different
            evaluations, or a criterion ID is invalid
        HTTPException 404: Evaluation not found
    """
    total = sum(c.importance_percentage for c in request.criteria)
    if abs(total - 100) > PERCENTAGE_TOLERANCE:
        raise HTTPException(
            status_code=400,
            detail=f"Sum of importance percentages must be 100%. Current sum: {total:g}%"
        )

    evaluation_ids = {c.evaluation_id for c in request.criteria}
    if len(evaluation_ids) > 1:
        raise HTTPException(status_code=400, detail="All criteria must belong to the same evaluation")

    evaluation_id = request.criteria[0].evaluation_id
    if evaluation_crud.get_by_id(db, evaluation_id) is None:
        raise _not_found("Evaluation", evaluation_id)

    criterion_ids = [c.criterion_id for c in request.criteria]
    if evaluation_crud.count_existing(db, Criterion, criterion_ids) != len(set(criterion_ids)):
        raise HTTPException(status_code=400, detail="One or more criterion IDs are invalid")

    created = evaluation_crud.add_criteria(db, [_criterion_row(c) for c in request.criteria])
    logger.info(f"Bulk created {len(created)} evaluation criteria for evaluation {evaluation_id}")
    return created


def bulk_create_evaluation_metrics(db: Session, request: BulkEvaluationMetricsCreate) -> List[EvaluationMetric]:
    """
    Select the metrics measured for each evaluation criterion.

    Raises:
        HTTPException 400: An evaluation criterion or metric ID is invalid
    """
    eval_criterion_ids = [m.eval_criterion_id for m in request.metrics]
    if evaluation_crud.count_existing(db, EvaluationCriterion, eval_criterion_ids) != len(set(eval_criterion_ids)):
        raise HTTPException(status_code=400, detail="One or more evaluation criterion IDs are invalid")

    metric_ids = [m.metric_id for m in request.metrics]
    if evaluation_crud.count_existing(db, Metric, metric_ids) != len(set(metric_ids)):
        raise HTTPException(status_code=400, detail="One or more metric IDs are invalid")

    created = evaluation_crud.add_metrics(db, [m.model_dump() for m in request.metrics])
    logger.info(f"Bulk created {len(created)} evaluation metrics")
    return created


def _criterion_row(request: EvaluationCriterionCreate) -> dict:
    return {
        "evaluation_id": request.evaluation_id,
        "criterion_id": request.criterion_id,
        "importance_level": ImportanceLevel(request.importance_level.value),
        "importance_percentage": request.importance_percentage,
    }


# =========================================================================
# Queries
# =========================================================================

def find_project(db: Session, project_id: int) -> Project:
    project = project_crud.get_by_id(db, project_id)
    if project is None:
        raise _not_found("Project", project_id)
    return project


def find_evaluation(db: Session, evaluation_id: int) -> Evaluation:
    evaluation = evaluation_crud.get_with_structure(db, evaluation_id)
    if evaluation is None:
        raise _not_found("Evaluation", evaluation_id)
    return evaluation


def evaluations_by_project(db: Session, project_id: int) -> List[Evaluation]:
    """Evaluations with criteria, metrics and variables for the data-entry form"""
    find_project(db, project_id)
    return evaluation_crud.get_by_project(db, project_id)


def metrics_by_criterion(db: Session, criterion_id: int) -> Criterion:
    criterion = evaluation_crud.get_criterion_with_metrics(db, criterion_id)
    if criterion is None:
        logger.error(f"Criterion with ID {criterion_id} not found")
        raise _not_found("Criterion", criterion_id)

    logger.debug(f"Found criterion {criterion.name} with {len(criterion.sub_criteria)} sub-criteria")
    return criterion
