"""
Measurement data entry and result retrieval.

Values are entered per selected metric (or for a whole evaluation at once),
then finalize_evaluation runs the calculation pipeline and marks the
evaluation completed. Everything read here is a plain dict or ORM instance;
the endpoints shape it through the entry_data schemas.
"""

import logging
from typing import List, Mapping, Sequence

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.crud import evaluation as evaluation_crud
from app.crud import results as results_crud
from app.models.evaluation import EvaluationStatus
from app.models.parameterization import ItemState, Metric
from app.models.project import ProjectStatus
from app.models.results import EvaluationVariable
from app.services import evaluation_calculation as calculation
from app.services.formula_utils import (
    detect_fixed_variables,
    get_denominator_variables,
    sort_variables_by_formula_order,
    validate_no_division_by_zero,
)

logger = logging.getLogger(__name__)


def _percentage(part: int, total: int) -> int:
    """Rounded percentage, halves rounded up; 0 when total is 0"""
    if total <= 0:
        return 0
    return int(part / total * 100 + 0.5)


def _status(finished: bool) -> str:
    return "completed" if finished else "in_progress"


def _counted(items: list) -> dict:
    return {"count": len(items), "data": items}


# =========================================================================
# Data entry
# =========================================================================

def save_metric_variables(db: Session, eval_metric_id: int, values: Sequence[Mapping]) -> List[EvaluationVariable]:
    """
    Upsert the entered values of one selected metric.

    Args:
        db: Database session
        eval_metric_id: Selected metric the values belong to
        values: Items with variable_id and value

    Raises:
        HTTPException 404: Evaluation metric not found
        HTTPException 400: Variable not part of the metric's formula, or a 0
            entered for a denominator variable
    """
    eval_metric = evaluation_crud.get_metric(db, eval_metric_id)
    if eval_metric is None:
        raise HTTPException(status_code=404, detail=f"EvaluationMetric with ID {eval_metric_id} not found")

    metric = eval_metric.metric
    variables = {variable.id: variable for variable in metric.variables}

    rows = []
    for item in values:
        variable = variables.get(item["variable_id"])
        calculation.validate_entered_value(metric, variable, item["variable_id"], item["value"])

        rows.append((eval_metric_id, variable.id, item["value"]))

    saved = results_crud.save_variables(db, rows)
    logger.info(f"Saved {len(saved)} variables for evaluation metric {eval_metric_id}")
    return saved


def submit_evaluation_data(db: Session, evaluation_id: int, values: Sequence[Mapping]) -> dict:
    return calculation.process_evaluation_data(db, evaluation_id, values)


# =========================================================================
# Finalization
# =========================================================================

def finalize_evaluation(db: Session, evaluation_id: int) -> dict:
    """
    Run the full calculation pipeline for an evaluation.

    metric results -> criteria results -> evaluation result -> status completed.
    Re-running recalculates in place.
    """
    logger.info(f"Finalizing evaluation {evaluation_id}")
    calculation.get_evaluation_or_404(db, evaluation_id)

    metric_results = [
        calculation.calculate_metric_result(db, eval_metric.id)
        for eval_metric in evaluation_crud.get_metrics(db, evaluation_id)
    ]
    criteria_results = calculation.calculate_criteria_results(db, evaluation_id)
    result = calculation.calculate_evaluation_result(db, evaluation_id)
    calculation.update_evaluation_status(db, evaluation_id, EvaluationStatus.COMPLETED)

    logger.info(f"Evaluation {evaluation_id} finalized with score {result.evaluation_score}")
    return {
        "message": "Evaluation finalized successfully",
        "evaluation_id": evaluation_id,
        "metric_results": len(metric_results),
        "criteria_results": len(criteria_results),
        "final_score": result.evaluation_score,
        "score_level": result.score_level,
        "satisfaction_grade": result.satisfaction_grade,
        "finalized_at": result.updated_at or result.created_at,
    }


def finalize_project(db: Session, project_id: int) -> dict:
    logger.info(f"Finalizing project {project_id}")
    result = calculation.calculate_project_result(db, project_id)
    calculation.update_project_status(db, project_id, ProjectStatus.COMPLETED)

    return {
        "message": "Project finalized successfully",
        "project_id": project_id,
        "final_score": result.final_project_score,
        "score_level": result.score_level,
        "satisfaction_grade": result.satisfaction_grade,
        "finalized_at": result.updated_at or result.created_at,
    }


# =========================================================================
# Queries
# =========================================================================

def get_evaluation_variables(db: Session, evaluation_id: int) -> List[EvaluationVariable]:
    return results_crud.get_variables_for_evaluation(db, evaluation_id)


def get_metric_results(db: Session, evaluation_id: int):
    return results_crud.get_metric_results(db, evaluation_id)


def get_criteria_results(db: Session, evaluation_id: int):
    return results_crud.get_criteria_results(db, evaluation_id)


def get_evaluation_result(db: Session, evaluation_id: int):
    result = results_crud.get_evaluation_result(db, evaluation_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No result found for evaluation {evaluation_id}")
    return result


def get_project_result(db: Session, project_id: int):
    result = results_crud.get_project_result(db, project_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No result found for project {project_id}")
    return result


def get_project_evaluation_results(db: Session, project_id: int):
    return results_crud.get_evaluation_results_for_project(db, project_id)


def get_project_criteria_results(db: Session, project_id: int):
    return results_crud.get_criteria_results_for_project(db, project_id)


def get_project_metric_results(db: Session, project_id: int):
    return results_crud.get_metric_results_for_project(db, project_id)


def get_project_variables(db: Session, project_id: int) -> List[EvaluationVariable]:
    return results_crud.get_variables_for_project(db, project_id)


def get_evaluation_summary(db: Session, evaluation_id: int) -> dict:
    calculation.get_evaluation_or_404(db, evaluation_id)

    final_result = results_crud.get_evaluation_result(db, evaluation_id)
    return {
        "evaluation_id": evaluation_id,
        "variables": _counted(results_crud.get_variables_for_evaluation(db, evaluation_id)),
        "metric_results": _counted(results_crud.get_metric_results(db, evaluation_id)),
        "final_result": final_result,
        "status": _status(final_result is not None),
    }


def get_evaluation_status(db: Session, evaluation_id: int) -> dict:
    """Entered values against the active variables the evaluation expects"""
    calculation.get_evaluation_or_404(db, evaluation_id)

    submitted = len(results_crud.get_variables_for_evaluation(db, evaluation_id))
    expected = results_crud.count_expected_variables(db, evaluation_id)
    metric_results = len(results_crud.get_metric_results(db, evaluation_id))
    is_finalized = results_crud.get_evaluation_result(db, evaluation_id) is not None

    return {
        "evaluation_id": evaluation_id,
        "status": _status(is_finalized),
        "progress": {
            "variables": {"submitted": submitted, "expected": expected},
            "metric_results": metric_results,
            "is_finalized": is_finalized,
        },
        "completion_percentage": _percentage(submitted, expected),
    }


def get_project_progress(db: Session, project_id: int) -> dict:
    calculation.get_project_or_404(db, project_id)

    evaluation_results = results_crud.get_evaluation_results_for_project(db, project_id)
    total = evaluation_crud.count_by_project(db, project_id)
    project_result = results_crud.get_project_result(db, project_id)

    return {
        "project_id": project_id,
        "total_evaluations": total,
        "completed_evaluations": len(evaluation_results),
        "completion_percentage": _percentage(len(evaluation_results), total),
        "final_result": project_result,
        "status": _status(project_result is not None),
        "evaluation_results": evaluation_results,
    }


def get_project_complete_results(db: Session, project_id: int) -> dict:
    """Every stored value and result of a project, grouped by table"""
    calculation.get_project_or_404(db, project_id)

    project_result = results_crud.get_project_result(db, project_id)
    return {
        "project_id": project_id,
        "project_result": project_result,
        "evaluation_results": _counted(results_crud.get_evaluation_results_for_project(db, project_id)),
        "criteria_results": _counted(results_crud.get_criteria_results_for_project(db, project_id)),
        "metric_results": _counted(results_crud.get_metric_results_for_project(db, project_id)),
        "evaluation_variables": _counted(results_crud.get_variables_for_project(db, project_id)),
        "status": _status(project_result is not None),
    }


# =========================================================================
# Deletion
# =========================================================================

def delete_variable(db: Session, eval_metric_id: int, variable_id: int) -> dict:
    if not results_crud.delete_variable(db, eval_metric_id, variable_id):
        raise HTTPException(
            status_code=404,
            detail=f"Variable not found for metric {eval_metric_id} and variable {variable_id}"
        )

    logger.info(f"Deleted variable {variable_id} of evaluation metric {eval_metric_id}")
    return {"message": "Variable deleted successfully"}


def delete_metric_result(db: Session, result_id: int) -> dict:
    if not results_crud.delete_metric_result(db, result_id):
        raise HTTPException(status_code=404, detail=f"Metric result {result_id} not found")

    logger.info(f"Deleted metric result {result_id}")
    return {"message": "Metric result deleted successfully"}


def reset_evaluation(db: Session, evaluation_id: int) -> dict:
    """Delete every entered value and result and reopen the evaluation"""
    calculation.get_evaluation_or_404(db, evaluation_id)

    deleted = results_crud.reset_evaluation(db, evaluation_id)
    calculation.update_evaluation_status(db, evaluation_id, EvaluationStatus.IN_PROGRESS)

    logger.info(f"Reset evaluation {evaluation_id}: {deleted}")
    return {
        "message": "Evaluation reset successfully",
        "evaluation_id": evaluation_id,
        "deleted": deleted,
    }


# =========================================================================
# Formula tools
# =========================================================================

def inspect_formula(db: Session, metric_id: int, values: Mapping[str, float]) -> dict:
    """
    Describe how a metric's variables should be entered.

    Returns the active variables in formula order, the denominator symbols,
    the denominators fixed by ratio thresholds, and a finding for every
    candidate value of 0 on a denominator.
    """
    metric = db.get(Metric, metric_id)
    if metric is None:
        raise HTTPException(status_code=404, detail=f"Metric with ID {metric_id} not found")

    formula = metric.formula or ""
    active = [variable for variable in metric.variables if variable.state == ItemState.ACTIVE]
    ordered = sort_variables_by_formula_order(formula, active)
    symbols = [variable.symbol for variable in ordered]

    division_errors = []
    for symbol, value in values.items():
        check = validate_no_division_by_zero(value, symbol, formula)
        if not check.is_valid:
            division_errors.append({"symbol": symbol, "message": check.error_message})

    return {
        "metric_id": metric.id,
        "formula": metric.formula,
        "ordered_variables": ordered,
        "denominators": get_denominator_variables(formula, symbols),
        "fixed_variables": [
            vars(fixed) for fixed in detect_fixed_variables(metric.formula, metric.desired_threshold, metric.worst_case)
        ],
        "division_errors": division_errors,
    }
