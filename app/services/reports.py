"""
Read-only report views over finalized evaluations and projects.

Nothing here calculates results; it only reads what the entry-data pipeline
stored. Scores are on the 0-10 scale, so a project's minimum threshold
(a percentage) is divided by 10 before comparing.
"""

import logging
from statistics import fmean
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.crud import evaluation as evaluation_crud
from app.crud import project as project_crud
from app.models.evaluation import Evaluation, ImportanceLevel
from app.models.project import Project
from app.services.evaluation_calculation import get_project_or_404
from app.services.formula_utils import sort_variables_by_formula_order

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


def _threshold(project: Optional[Project]) -> float:
    if project is None or not project.minimum_threshold:
        return float(settings.DEFAULT_MINIMUM_THRESHOLD)
    return float(project.minimum_threshold)


def meets_threshold(score: Optional[float], threshold: float) -> bool:
    """True when a 0-10 score reaches a percentage threshold"""
    return score is not None and score >= threshold / 10


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    return fmean(values) if values else 0.0


def _list_item(evaluation: Evaluation) -> dict:
    result = evaluation.result
    return {
        "evaluation_id": evaluation.id,
        "project_id": evaluation.project_id,
        "project_name": evaluation.project.name if evaluation.project else UNKNOWN,
        "standard_name": evaluation.standard.name if evaluation.standard else UNKNOWN,
        "created_at": evaluation.created_at,
        "final_score": result.evaluation_score if result else None,
        "has_results": result is not None,
        "status": evaluation.status.value,
    }


# =========================================================================
# Evaluations
# =========================================================================

def get_evaluation_report(db: Session, evaluation_id: int) -> dict:
    """
    Full report of a finalized evaluation: criteria results with their metric
    results and the values entered for each metric.

    Raises:
        HTTPException 404: Evaluation not found, or not finalized yet
    """
    logger.info(f"Building report for evaluation {evaluation_id}")

    evaluation = evaluation_crud.get_with_structure(db, evaluation_id)
    if evaluation is None:
        raise HTTPException(status_code=404, detail=f"Evaluation with ID {evaluation_id} not found")

    result = evaluation.result
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=f"No results found for evaluation {evaluation_id}. Please finalize the evaluation first."
        )

    threshold = _threshold(evaluation.project)

    criteria_results = []
    for eval_criterion in evaluation.evaluation_criteria:
        if eval_criterion.result is None:
            continue

        metrics = []
        for eval_metric in eval_criterion.evaluation_metrics:
            if eval_metric.result is None or eval_metric.metric is None:
                continue

            metric = eval_metric.metric
            variables = sort_variables_by_formula_order(metric.formula, [
                {"symbol": v.variable.symbol, "description": v.variable.description, "value": v.value}
                for v in eval_metric.variables
            ])
            metrics.append({
                "metric_code": metric.code,
                "metric_name": metric.name,
                "formula": metric.formula,
                "desired_threshold": metric.desired_threshold,
                "worst_case": metric.worst_case,
                "calculated_value": eval_metric.result.calculated_value,
                "weighted_value": eval_metric.result.weighted_value,
                "meets_threshold": meets_threshold(eval_metric.result.weighted_value, threshold),
                "variables": variables,
            })

        criteria_results.append({
            "criterion_name": eval_criterion.criterion.name if eval_criterion.criterion else UNKNOWN,
            "importance_level": eval_criterion.importance_level.value,
            "importance_percentage": eval_criterion.importance_percentage or 0,
            "final_score": eval_criterion.result.final_score,
            "metrics": metrics,
        })

    return {
        "evaluation_id": evaluation.id,
        "project_id": evaluation.project_id,
        "project_name": evaluation.project.name if evaluation.project else UNKNOWN,
        "standard_name": evaluation.standard.name if evaluation.standard else UNKNOWN,
        "standard_version": evaluation.standard.version if evaluation.standard else None,
        "created_at": evaluation.created_at,
        "final_score": result.evaluation_score,
        "score_level": result.score_level,
        "satisfaction_grade": result.satisfaction_grade,
        "conclusion": result.conclusion or "",
        "minimum_threshold": threshold,
        "meets_threshold": meets_threshold(result.evaluation_score, threshold),
        "criteria_results": criteria_results,
    }


def get_evaluations_by_user(db: Session, user_id: int) -> List[dict]:
    """Evaluations of every project the user created, newest first"""
    evaluations = evaluation_crud.get_by_creator(db, user_id)
    logger.info(f"Found {len(evaluations)} evaluations for user {user_id}")
    return [_list_item(evaluation) for evaluation in evaluations]


def get_all_evaluations(db: Session) -> List[dict]:
    return [_list_item(evaluation) for evaluation in evaluation_crud.get_multi(db)]


def get_evaluations_by_project(db: Session, project_id: int) -> List[dict]:
    return [_list_item(evaluation) for evaluation in evaluation_crud.get_by_project(db, project_id)]


def get_evaluation_stats(db: Session, evaluation_id: int) -> dict:
    """Average, best and worst criterion, and mean score per importance level"""
    evaluation = evaluation_crud.get_with_structure(db, evaluation_id)
    if evaluation is None:
        raise HTTPException(status_code=404, detail=f"Evaluation with ID {evaluation_id} not found")

    scored = []
    by_importance = {ImportanceLevel.HIGH: [], ImportanceLevel.MEDIUM: [], ImportanceLevel.LOW: []}
    total_metrics = 0

    for eval_criterion in evaluation.evaluation_criteria:
        total_metrics += len(eval_criterion.evaluation_metrics)
        if eval_criterion.result is None:
            continue

        score = eval_criterion.result.final_score
        name = eval_criterion.criterion.name if eval_criterion.criterion else UNKNOWN
        scored.append({"name": name, "score": score})
        by_importance[eval_criterion.importance_level].append(score)

    ranked = sorted(scored, key=lambda c: c["score"], reverse=True)
    empty = {"name": "N/A", "score": 0}

    return {
        "total_criteria": len(scored),
        "total_metrics": total_metrics,
        "average_criteria_score": round(_mean(c["score"] for c in scored), 2),
        "best_criterion": ranked[0] if ranked else empty,
        "worst_criterion": ranked[-1] if ranked else empty,
        "score_by_importance": {
            "high": _mean(by_importance[ImportanceLevel.HIGH]),
            "medium": _mean(by_importance[ImportanceLevel.MEDIUM]),
            "low": _mean(by_importance[ImportanceLevel.LOW]),
        },
    }


# =========================================================================
# Projects
# =========================================================================

def get_projects_by_user(db: Session, user_id: int) -> List[dict]:
    summaries = []
    for project in project_crud.get_by_creator(db, user_id):
        threshold = _threshold(project)
        final_score = project.result.final_project_score if project.result else None
        summaries.append({
            "project_id": project.id,
            "project_name": project.name,
            "project_description": project.description,
            "minimum_threshold": project.minimum_threshold,
            "final_project_score": final_score,
            "meets_threshold": meets_threshold(final_score, threshold),
            "status": project.status.value,
            "evaluation_count": len(project.evaluations),
            "created_at": project.created_at,
            "updated_at": project.updated_at,
        })

    logger.info(f"Found {len(summaries)} projects for user {user_id}")
    return summaries


def get_project_report(db: Session, project_id: int) -> dict:
    project = get_project_or_404(db, project_id)
    threshold = _threshold(project)
    final_score = project.result.final_project_score if project.result else 0.0

    evaluations = [
        {
            "evaluation_id": evaluation.id,
            "standard_name": evaluation.standard.name if evaluation.standard else UNKNOWN,
            "final_score": evaluation.result.evaluation_score if evaluation.result else 0.0,
            "status": evaluation.status.value,
            "created_at": evaluation.created_at,
        }
        for evaluation in project.evaluations
    ]

    return {
        "project_id": project.id,
        "project_name": project.name,
        "project_description": project.description,
        "creator_name": project.creator.name if project.creator else UNKNOWN,
        "minimum_threshold": threshold,
        "final_project_score": final_score,
        "meets_threshold": meets_threshold(final_score, threshold),
        "status": project.status.value,
        "created_at": project.created_at,
        "evaluations": evaluations,
    }


def get_project_stats(db: Session, project_id: int) -> dict:
    project = get_project_or_404(db, project_id)

    completed = [
        {
            "standard_name": evaluation.standard.name if evaluation.standard else UNKNOWN,
            "score": evaluation.result.evaluation_score,
        }
        for evaluation in project.evaluations
        if evaluation.result is not None
    ]
    empty = {"standard_name": "N/A", "score": 0}

    return {
        "total_evaluations": len(project.evaluations),
        "completed_evaluations": len(completed),
        "average_evaluation_score": round(_mean(e["score"] for e in completed), 2),
        "highest_evaluation": max(completed, key=lambda e: e["score"]) if completed else empty,
        "lowest_evaluation": min(completed, key=lambda e: e["score"]) if completed else empty,
    }
