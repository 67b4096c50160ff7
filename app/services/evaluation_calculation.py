"""
Evaluation calculation pipeline.

1. Metric result:     MetricScoring over the entered variable values
2. Criterion result:  mean(metric weighted values) * importance_percentage / 100
3. Evaluation result: sum of criterion results, classified against the
                      project's minimum threshold
4. Project result:    mean of evaluation results, classified the same way

Every step upserts its result row, so the pipeline can be re-run safely.
"""

import logging
from statistics import fmean
from typing import List, Mapping, Optional, Sequence

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.crud import evaluation as evaluation_crud
from app.crud import project as project_crud
from app.crud import results as results_crud
from app.models.evaluation import Evaluation, EvaluationStatus
from app.models.parameterization import FormulaVariable, Metric
from app.models.project import Project, ProjectStatus
from app.models.results import (
    EvaluationMetricResult,
    EvaluationCriteriaResult,
    EvaluationResult,
    ProjectResult,
)
from app.services.formula_evaluation import FormulaEvaluationError, validate_required_variables
from app.services.formula_utils import (
    DIVISION_BY_ZERO_MESSAGE,
    get_fixed_value,
    sort_variables_by_formula_order,
    validate_no_division_by_zero,
)
from app.services.metric_scoring import calculate_score
from app.services.score_classification import classify_score

logger = logging.getLogger(__name__)

AUTO_CONCLUSION = "Evaluación calculada automáticamente"


def get_evaluation_or_404(db: Session, evaluation_id: int) -> Evaluation:
    evaluation = evaluation_crud.get_by_id(db, evaluation_id)
    if evaluation is None:
        raise HTTPException(status_code=404, detail=f"Evaluation with ID {evaluation_id} not found")
    return evaluation


def get_project_or_404(db: Session, project_id: int) -> Project:
    project = project_crud.get_by_id(db, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail=f"Project with ID {project_id} not found")
    return project


def _minimum_threshold(project: Project) -> float:
    return project.minimum_threshold or settings.DEFAULT_MINIMUM_THRESHOLD


def validate_entered_value(metric: Metric, variable: Optional[FormulaVariable], variable_id: int, value) -> None:
    """
    Reject a value the metric's formula can't take.

    Raises:
        HTTPException 400: Variable not part of the metric's formula, or a 0
            entered for a denominator variable
    """
    if variable is None or variable.metric_id != metric.id:
        raise HTTPException(
            status_code=400,
            detail=f"FormulaVariable {variable_id} does not belong to metric {metric.id}"
        )

    check = validate_no_division_by_zero(value, variable.symbol, metric.formula or "")
    if not check.is_valid:
        logger.warning(f"Rejected zero denominator {variable.symbol} for metric {metric.id}")
        raise HTTPException(status_code=400, detail=check.error_message or DIVISION_BY_ZERO_MESSAGE)


def process_evaluation_data(db: Session, evaluation_id: int, variables: Sequence[Mapping]) -> dict:
    """
    Validate and upsert entered values for an evaluation.

    Args:
        db: Database session
        evaluation_id: Evaluation the values belong to
        variables: Items with eval_metric_id, variable_id and value

    Returns:
        {"message": str, "variables_saved": int}

    Raises:
        HTTPException 404: Evaluation, evaluation metric or variable not found
        HTTPException 400: Evaluation metric belongs to another evaluation, variable
            not part of the metric's formula, or a 0 entered for a denominator
    """
    logger.info(f"Processing evaluation data for evaluation {evaluation_id}")
    get_evaluation_or_404(db, evaluation_id)

    rows = []
    for item in variables:
        eval_metric = evaluation_crud.get_metric(db, item["eval_metric_id"])
        if eval_metric is None:
            raise HTTPException(
                status_code=404,
                detail=f"EvaluationMetric with ID {item['eval_metric_id']} not found"
            )

        if eval_metric.evaluation_criterion.evaluation_id != evaluation_id:
            raise HTTPException(
                status_code=400,
                detail=f"EvaluationMetric {item['eval_metric_id']} does not belong to evaluation {evaluation_id}"
            )

        variable = db.get(FormulaVariable, item["variable_id"])
        if variable is None:
            raise HTTPException(
                status_code=404,
                detail=f"FormulaVariable with ID {item['variable_id']} not found"
            )

        validate_entered_value(eval_metric.metric, variable, item["variable_id"], item["value"])

        rows.append((item["eval_metric_id"], item["variable_id"], item["value"]))

    saved = results_crud.save_variables(db, rows)
    logger.info(f"Saved {len(saved)} evaluation variables for evaluation {evaluation_id}")

    return {
        "message": "Evaluation data processed successfully",
        "variables_saved": len(saved),
    }


def calculate_metric_result(db: Session, eval_metric_id: int) -> EvaluationMetricResult:
    """
    Score one selected metric and upsert its result.

    Values are passed to the scorer in formula order. A denominator the
    thresholds fix (e.g. the 20 of ">=10/20min") is filled in when left blank.

    Raises:
        HTTPException 404: Evaluation metric not found
        HTTPException 400: No values entered, a formula variable has no value,
            or the formula/thresholds can't be evaluated
    """
    logger.info(f"Calculating metric result for evaluation metric {eval_metric_id}")

    eval_metric = evaluation_crud.get_metric(db, eval_metric_id)
    if eval_metric is None:
        raise HTTPException(status_code=404, detail=f"EvaluationMetric with ID {eval_metric_id} not found")

    entered = results_crud.get_variables_for_metric(db, eval_metric_id)
    if not entered:
        raise HTTPException(status_code=400, detail=f"No variables found for evaluation metric {eval_metric_id}")

    metric = eval_metric.metric
    values = [{"symbol": v.variable.symbol, "value": float(v.value)} for v in entered]

    # Denominators implied by ratio thresholds may be left blank
    missing = []
    for symbol in validate_required_variables(metric.formula, values):
        fixed_value = get_fixed_value(symbol, metric.formula, metric.desired_threshold, metric.worst_case)
        if fixed_value is None:
            missing.append(symbol)
        else:
            logger.info(f"Using fixed value {fixed_value:g} for {symbol} of evaluation metric {eval_metric_id}")
            values.append({"symbol": symbol, "value": fixed_value})

    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Missing values for variables {', '.join(missing)} of metric {metric.code or metric.id}"
        )

    values = sort_variables_by_formula_order(metric.formula, values)
    logger.debug(f"Formula: {metric.formula}, variables: {values}")

    try:
        score = calculate_score(metric.formula, values, metric.desired_threshold, metric.worst_case)
    except (FormulaEvaluationError, ValueError, TypeError, ZeroDivisionError) as e:
        logger.error(f"Failed to score evaluation metric {eval_metric_id}: {e}")
        raise HTTPException(status_code=400, detail=f"Error calculating metric {metric.code or metric.id}: {e}")

    result = results_crud.upsert_metric_result(db, eval_metric_id, score.calculated_value, score.weighted_value)
    logger.info(f"Saved metric result {result.id} with weighted value {result.weighted_value}")
    return result


def calculate_criteria_results(db: Session, evaluation_id: int) -> List[EvaluationCriteriaResult]:
    """
    Upsert one result per evaluated criterion.

    final_score = mean(weighted values) * importance_percentage / 100; the
    factor is 1 when no percentage is set.
    """
    logger.info(f"Calculating criteria results for evaluation {evaluation_id}")
    get_evaluation_or_404(db, evaluation_id)

    criteria_results = []
    for criterion in evaluation_crud.get_criteria(db, evaluation_id):
        metric_results = results_crud.get_metric_results_for_criterion(db, criterion.id)
        if not metric_results:
            raise HTTPException(status_code=400, detail=f"No metric results found for criterion {criterion.id}")

        average = fmean(mr.weighted_value for mr in metric_results)
        factor = criterion.importance_percentage / 100 if criterion.importance_percentage else 1
        final_score = average * factor

        logger.debug(
            f"Criterion {criterion.id}: avg_weighted={average}, "
            f"importance={criterion.importance_percentage}%, final_score={final_score}"
        )
        criteria_results.append(results_crud.upsert_criteria_result(db, criterion.id, final_score))

    return criteria_results


def calculate_evaluation_result(db: Session, evaluation_id: int) -> EvaluationResult:
    """Sum the criteria results and classify the total"""
    logger.info(f"Calculating final evaluation result for evaluation {evaluation_id}")
    evaluation = get_evaluation_or_404(db, evaluation_id)

    criteria_results = results_crud.get_criteria_results(db, evaluation_id)
    if not criteria_results:
        raise HTTPException(status_code=400, detail=f"No criteria results found for evaluation {evaluation_id}")

    score = sum(cr.final_score for cr in criteria_results)
    threshold = _minimum_threshold(evaluation.project)
    classification = classify_score(score, threshold)

    result = results_crud.upsert_evaluation_result(
        db,
        evaluation_id,
        evaluation_score=score,
        conclusion=AUTO_CONCLUSION,
        score_level=classification["score_level"],
        satisfaction_grade=classification["satisfaction_grade"],
    )

    logger.info(
        f"Saved evaluation result {result.id} with score {score}, "
        f"level: {classification['score_level']}, grade: {classification['satisfaction_grade']}"
    )
    return result


def calculate_project_result(db: Session, project_id: int) -> ProjectResult:
    """Average the evaluation results of a project and classify the average"""
    logger.info(f"Calculating project result for project {project_id}")
    project = get_project_or_404(db, project_id)

    evaluation_results = results_crud.get_evaluation_results_for_project(db, project_id)
    if not evaluation_results:
        raise HTTPException(status_code=400, detail=f"No evaluation results found for project {project_id}")

    score = fmean(er.evaluation_score for er in evaluation_results)
    classification = classify_score(score, _minimum_threshold(project))

    result = results_crud.upsert_project_result(
        db,
        project_id,
        final_project_score=score,
        score_level=classification["score_level"],
        satisfaction_grade=classification["satisfaction_grade"],
    )

    logger.info(
        f"Saved project result {result.id} with score {score}, "
        f"level: {classification['score_level']}, grade: {classification['satisfaction_grade']}"
    )
    return result


def update_evaluation_status(db: Session, evaluation_id: int, status: EvaluationStatus) -> Evaluation:
    evaluation = evaluation_crud.update_status(db, get_evaluation_or_404(db, evaluation_id), status)
    logger.info(f"Updated evaluation {evaluation_id} status to {status.value}")
    return evaluation


def update_project_status(db: Session, project_id: int, status: ProjectStatus) -> Project:
    project = project_crud.update_status(db, get_project_or_404(db, project_id), status)
    logger.info(f"Updated project {project_id} status to {status.value}")
    return project
