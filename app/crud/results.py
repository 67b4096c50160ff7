"""
CRUD operations for measurement data and calculated results.

Result rows are unique per metric / criterion / evaluation / project, so every
save here is an upsert: recalculating updates the existing row.
"""

from typing import Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session, joinedload
from app.models.evaluation import Evaluation, EvaluationCriterion, EvaluationMetric
from app.models.parameterization import FormulaVariable, ItemState
from app.models.results import (
    EvaluationVariable,
    EvaluationMetricResult,
    EvaluationCriteriaResult,
    EvaluationResult,
    ProjectResult,
)


# =========================================================================
# Evaluation variables (entered values)
# =========================================================================

def get_variable(db: Session, eval_metric_id: int, variable_id: int) -> Optional[EvaluationVariable]:
    return (
        db.query(EvaluationVariable)
        .filter(EvaluationVariable.eval_metric_id == eval_metric_id, EvaluationVariable.variable_id == variable_id)
        .first()
    )


def save_variables(db: Session, rows: Iterable[Tuple[int, int, float]]) -> List[EvaluationVariable]:
    """
    Upsert entered values in a single transaction.

    Args:
        db: Database session
        rows: (eval_metric_id, variable_id, value) tuples

    Returns:
        Saved EvaluationVariable instances, in input order
    """
    saved = []
    for eval_metric_id, variable_id, value in rows:
        variable = get_variable(db, eval_metric_id, variable_id)
        if variable is None:
            variable = EvaluationVariable(eval_metric_id=eval_metric_id, variable_id=variable_id)
            db.add(variable)
        variable.value = value
        # Flush so a repeated (metric, variable) pair in the same batch finds this row
        db.flush()
        saved.append(variable)

    db.commit()
    for variable in saved:
        db.refresh(variable)
    return saved


def get_variables_for_metric(db: Session, eval_metric_id: int) -> List[EvaluationVariable]:
    """Entered values of one metric, in formula variable order"""
    return (
        db.query(EvaluationVariable)
        .options(joinedload(EvaluationVariable.variable))
        .filter(EvaluationVariable.eval_metric_id == eval_metric_id)
        .order_by(EvaluationVariable.variable_id.asc())
        .all()
    )


def get_variables_for_evaluation(db: Session, evaluation_id: int) -> List[EvaluationVariable]:
    return (
        db.query(EvaluationVariable)
        .join(EvaluationVariable.evaluation_metric)
        .join(EvaluationMetric.evaluation_criterion)
        .options(joinedload(EvaluationVariable.variable))
        .filter(EvaluationCriterion.evaluation_id == evaluation_id)
        .order_by(EvaluationVariable.eval_metric_id.asc(), EvaluationVariable.variable_id.asc())
        .all()
    )


def get_variables_for_project(db: Session, project_id: int) -> List[EvaluationVariable]:
    return (
        db.query(EvaluationVariable)
        .join(EvaluationVariable.evaluation_metric)
        .join(EvaluationMetric.evaluation_criterion)
        .join(EvaluationCriterion.evaluation)
        .options(joinedload(EvaluationVariable.variable))
        .filter(Evaluation.project_id == project_id)
        .order_by(EvaluationVariable.eval_metric_id.asc(), EvaluationVariable.variable_id.asc())
        .all()
    )


def count_expected_variables(db: Session, evaluation_id: int) -> int:
    """Active formula variables across every metric selected for the evaluation"""
    return (
        db.query(FormulaVariable)
        .join(EvaluationMetric, EvaluationMetric.metric_id == FormulaVariable.metric_id)
        .join(EvaluationMetric.evaluation_criterion)
        .filter(
            EvaluationCriterion.evaluation_id == evaluation_id,
            FormulaVariable.state == ItemState.ACTIVE,
        )
        .count()
    )


def delete_variable(db: Session, eval_metric_id: int, variable_id: int) -> bool:
    variable = get_variable(db, eval_metric_id, variable_id)
    if variable is None:
        return False

    db.delete(variable)
    db.commit()
    return True


# =========================================================================
# Metric results
# =========================================================================

def upsert_metric_result(db: Session, eval_metric_id: int, calculated_value: float,
                         weighted_value: float) -> EvaluationMetricResult:
    result = db.query(EvaluationMetricResult).filter(EvaluationMetricResult.eval_metric_id == eval_metric_id).first()
    if result is None:
        result = EvaluationMetricResult(eval_metric_id=eval_metric_id)
        db.add(result)

    result.calculated_value = calculated_value
    result.weighted_value = weighted_value
    db.commit()
    db.refresh(result)
    return result


def get_metric_results(db: Session, evaluation_id: int) -> List[EvaluationMetricResult]:
    return (
        db.query(EvaluationMetricResult)
        .join(EvaluationMetricResult.evaluation_metric)
        .join(EvaluationMetric.evaluation_criterion)
        .filter(EvaluationCriterion.evaluation_id == evaluation_id)
        .order_by(EvaluationMetricResult.eval_metric_id.asc())
        .all()
    )


def get_metric_results_for_criterion(db: Session, eval_criterion_id: int) -> List[EvaluationMetricResult]:
    return (
        db.query(EvaluationMetricResult)
        .join(EvaluationMetricResult.evaluation_metric)
        .filter(EvaluationMetric.eval_criterion_id == eval_criterion_id)
        .order_by(EvaluationMetricResult.eval_metric_id.asc())
        .all()
    )


def get_metric_results_for_project(db: Session, project_id: int) -> List[EvaluationMetricResult]:
    return (
        db.query(EvaluationMetricResult)
        .join(EvaluationMetricResult.evaluation_metric)
        .join(EvaluationMetric.evaluation_criterion)
        .join(EvaluationCriterion.evaluation)
        .filter(Evaluation.project_id == project_id)
        .order_by(EvaluationMetricResult.eval_metric_id.asc())
        .all()
    )


def delete_metric_result(db: Session, result_id: int) -> bool:
    result = db.query(EvaluationMetricResult).filter(EvaluationMetricResult.id == result_id).first()
    if result is None:
        return False

    db.delete(result)
    db.commit()
    return True


# =========================================================================
# Criteria results
# =========================================================================

def upsert_criteria_result(db: Session, eval_criterion_id: int, final_score: float) -> EvaluationCriteriaResult:
    result = (
        db.query(EvaluationCriteriaResult)
        .filter(EvaluationCriteriaResult.eval_criterion_id == eval_criterion_id)
        .first()
    )
    if result is None:
        result = EvaluationCriteriaResult(eval_criterion_id=eval_criterion_id)
        db.add(result)

    result.final_score = final_score
    db.commit()
    db.refresh(result)
    return result


def get_criteria_results(db: Session, evaluation_id: int) -> List[EvaluationCriteriaResult]:
    return (
        db.query(EvaluationCriteriaResult)
        .join(EvaluationCriteriaResult.evaluation_criterion)
        .filter(EvaluationCriterion.evaluation_id == evaluation_id)
        .order_by(EvaluationCriteriaResult.eval_criterion_id.asc())
        .all()
    )


def get_criteria_results_for_project(db: Session, project_id: int) -> List[EvaluationCriteriaResult]:
    return (
        db.query(EvaluationCriteriaResult)
        .join(EvaluationCriteriaResult.evaluation_criterion)
        .join(EvaluationCriterion.evaluation)
        .filter(Evaluation.project_id == project_id)
        .order_by(EvaluationCriteriaResult.eval_criterion_id.asc())
        .all()
    )


# =========================================================================
# Evaluation and project results
# =========================================================================

def upsert_evaluation_result(db: Session, evaluation_id: int, evaluation_score: float, conclusion: str,
                             score_level: str, satisfaction_grade: str) -> EvaluationResult:
    result = db.query(EvaluationResult).filter(EvaluationResult.evaluation_id == evaluation_id).first()
    if result is None:
        result = EvaluationResult(evaluation_id=evaluation_id)
        db.add(result)

    result.evaluation_score = evaluation_score
    result.conclusion = conclusion
    result.score_level = score_level
    result.satisfaction_grade = satisfaction_grade
    db.commit()
    db.refresh(result)
    return result


def get_evaluation_result(db: Session, evaluation_id: int) -> Optional[EvaluationResult]:
    return db.query(EvaluationResult).filter(EvaluationResult.evaluation_id == evaluation_id).first()


def get_evaluation_results_for_project(db: Session, project_id: int) -> List[EvaluationResult]:
    return (
        db.query(EvaluationResult)
        .join(EvaluationResult.evaluation)
        .filter(Evaluation.project_id == project_id)
        .order_by(EvaluationResult.evaluation_id.asc())
        .all()
    )


def upsert_project_result(db: Session, project_id: int, final_project_score: float, score_level: str,
                          satisfaction_grade: str) -> ProjectResult:
    result = db.query(ProjectResult).filter(ProjectResult.project_id == project_id).first()
    if result is None:
        result = ProjectResult(project_id=project_id)
        db.add(result)

    result.final_project_score = final_project_score
    result.score_level = score_level
    result.satisfaction_grade = satisfaction_grade
    db.commit()
    db.refresh(result)
    return result


def get_project_result(db: Session, project_id: int) -> Optional[ProjectResult]:
    return db.query(ProjectResult).filter(ProjectResult.project_id == project_id).first()


def reset_evaluation(db: Session, evaluation_id: int) -> dict:
    """
    Delete every result and entered value of an evaluation in one transaction.

    Returns:
        Counts of deleted rows per table
    """
    eval_criterion_ids = [
        row.id for row in db.query(EvaluationCriterion.id).filter(EvaluationCriterion.evaluation_id == evaluation_id)
    ]
    eval_metric_ids = [
        row.id for row in db.query(EvaluationMetric.id).filter(EvaluationMetric.eval_criterion_id.in_(eval_criterion_ids))
    ] if eval_criterion_ids else []

    deleted = {
        "evaluation_results": db.query(EvaluationResult)
        .filter(EvaluationResult.evaluation_id == evaluation_id)
        .delete(synchronize_session=False),
        "criteria_results": 0,
        "metric_results": 0,
        "variables": 0,
    }

    if eval_criterion_ids:
        deleted["criteria_results"] = (
            db.query(EvaluationCriteriaResult)
            .filter(EvaluationCriteriaResult.eval_criterion_id.in_(eval_criterion_ids))
            .delete(synchronize_session=False)
        )

    if eval_metric_ids:
        deleted["metric_results"] = (
            db.query(EvaluationMetricResult)
            .filter(EvaluationMetricResult.eval_metric_id.in_(eval_metric_ids))
            .delete(synchronize_session=False)
        )
        deleted["variables"] = (
            db.query(EvaluationVariable)
            .filter(EvaluationVariable.eval_metric_id.in_(eval_metric_ids))
            .delete(synchronize_session=False)
        )

    db.commit()
    db.expire_all()
    return deleted
