"""
Metric scoring.

Turns the raw variable values of a metric into a calculated value and a
weighted value on the 0-10 scale. The rule used depends on the metric's
threshold case (see threshold_parser.classify_case):

    SIMPLE_BINARY             calc = formula          weighted = calc * 10
    RATIO_WITH_MIN_THRESHOLD  calc = A                weighted = 10 if A >= D.num else A / D.num * 10
    INVERSE_RATIO_WITH_MAX    calc = A                weighted = 0 if A > W.num else (1 - A / W.num) * 10
    TIME_THRESHOLD            calc = formula          weighted = 0 if calc > W else calc / D * 10
    ZERO_WITH_MAX_THRESHOLD   calc = formula          weighted = 0 if calc > W else (1 - calc / W) * 10
    PERCENTAGE_WITH_MAX       calc = A or formula     weighted = 0 if calc >= W, 10 if calc == 1, else (1 - calc / W) * 10
    NUMERIC_WITH_MAX          calc = A or formula     weighted = 0 if calc >= W, 10 if calc == D, else (1 - calc / W) * 10
    NUMERIC_WITH_MIN          calc = A or formula     weighted = 0 if calc == W, 10 if calc >= D, else calc / D * 10
"""

import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from app.services.formula_evaluation import evaluate_formula
from app.services.threshold_parser import ThresholdCase, ThresholdCaseType, classify_case

logger = logging.getLogger(__name__)

MAX_SCORE = 10

_SINGLE_LETTER = re.compile(r"^[A-Z]$", re.IGNORECASE)


@dataclass
class MetricScore:
    calculated_value: float
    weighted_value: float


def calculate_score(
    formula: str,
    variables: Sequence[Mapping],
    desired_threshold: Optional[str],
    worst_case: Optional[str],
) -> MetricScore:
    """
    Score a metric according to its threshold case.

    Args:
        formula: Metric formula (e.g. "A/B")
        variables: Sequence of {"symbol": str, "value": number}, in variable order
        desired_threshold: Desired threshold string
        worst_case: Worst case string

    Returns:
        MetricScore with calculated_value and weighted_value (0-10)

    Raises:
        ValueError: If no variables are given or a threshold cannot be parsed
        FormulaEvaluationError: If the formula cannot be evaluated
    """
    if not variables:
        raise ValueError("No variables provided")

    logger.debug(f"Calculating score for formula '{formula}' (desired={desired_threshold}, worst={worst_case})")

    threshold_case = classify_case(desired_threshold, worst_case)
    logger.debug(f"Case type: {threshold_case.case_type.value}")

    scorer = _SCORERS[threshold_case.case_type]
    score = scorer(formula, variables, threshold_case)

    logger.debug(
        f"[{threshold_case.case_type.value}] calculated={score.calculated_value}, weighted={score.weighted_value}"
    )
    return score


def _simple_binary(formula, variables, case: ThresholdCase) -> MetricScore:
    calculated = evaluate_formula(formula, variables)
    return MetricScore(calculated, calculated * MAX_SCORE)


def _ratio_with_min_threshold(formula, variables, case: ThresholdCase) -> MetricScore:
    # The ratio denominator is fixed by the threshold; only A is measured
    a = _single_variable_value(variables)
    d = case.desired.numerator
    weighted = MAX_SCORE if a >= d else (a / d) * MAX_SCORE
    return MetricScore(a, weighted)


def _inverse_ratio_with_max(formula, variables, case: ThresholdCase) -> MetricScore:
    a = _single_variable_value(variables)
    w = case.worst.numerator
    weighted = 0 if a > w else (1 - a / w) * MAX_SCORE
    return MetricScore(a, weighted)


def _time_threshold(formula, variables, case: ThresholdCase) -> MetricScore:
    calculated = evaluate_formula(formula, variables)
    d = case.desired.value
    w = case.worst.value
    weighted = 0 if calculated > w else (calculated / d) * MAX_SCORE
    return MetricScore(calculated, weighted)


def _zero_with_max_threshold(formula, variables, case: ThresholdCase) -> MetricScore:
    calculated = evaluate_formula(formula, variables)
    w = case.worst.value
    weighted = 0 if calculated > w else (1 - calculated / w) * MAX_SCORE
    return MetricScore(calculated, weighted)


def _percentage_with_max(formula, variables, case: ThresholdCase) -> MetricScore:
    calculated = _single_or_evaluate(formula, variables)
    w = case.worst.value

    if calculated >= w:
        weighted = 0
    elif calculated == 1:
        weighted = MAX_SCORE
    else:
        weighted = (1 - calculated / w) * MAX_SCORE
    return MetricScore(calculated, weighted)


def _numeric_with_max(formula, variables, case: ThresholdCase) -> MetricScore:
    calculated = _single_or_evaluate(formula, variables)
    d = case.desired.value
    w = case.worst.value

    if calculated >= w:
        weighted = 0
    elif calculated == d:
        weighted = MAX_SCORE
    else:
        weighted = (1 - calculated / w) * MAX_SCORE
    return MetricScore(calculated, weighted)


def _numeric_with_min(formula, variables, case: ThresholdCase) -> MetricScore:
    calculated = _single_or_evaluate(formula, variables)
    d = case.desired.value
    w = case.worst.value

    if calculated == w:
        weighted = 0
    elif calculated >= d:
        weighted = MAX_SCORE
    else:
        weighted = (calculated / d) * MAX_SCORE
    return MetricScore(calculated, weighted)


_SCORERS = {
    ThresholdCaseType.SIMPLE_BINARY: _simple_binary,
    ThresholdCaseType.RATIO_WITH_MIN_THRESHOLD: _ratio_with_min_threshold,
    ThresholdCaseType.INVERSE_RATIO_WITH_MAX: _inverse_ratio_with_max,
    ThresholdCaseType.TIME_THRESHOLD: _time_threshold,
    ThresholdCaseType.ZERO_WITH_MAX_THRESHOLD: _zero_with_max_threshold,
    ThresholdCaseType.PERCENTAGE_WITH_MAX: _percentage_with_max,
    ThresholdCaseType.NUMERIC_WITH_MAX: _numeric_with_max,
    ThresholdCaseType.NUMERIC_WITH_MIN: _numeric_with_min,
}


def _single_variable_value(variables: Sequence[Mapping]) -> float:
    """First variable's value (the measured "A")"""
    if not variables:
        raise ValueError("No variables provided")
    return float(variables[0]["value"])


def _single_or_evaluate(formula: str, variables: Sequence[Mapping]) -> float:
    """Use the lone variable's value for a one-letter formula, otherwise evaluate it"""
    if formula and _SINGLE_LETTER.match(formula.strip()) and len(variables) == 1:
        return float(variables[0]["value"])
    return evaluate_formula(formula, variables)
