"""
Threshold parsing and scoring-case classification.

A metric's `desired_threshold` and `worst_case` are free-form strings such as
"1", ">=4", "20min", ">=10/20min", "0 %", ">=15 seg". Together they decide
which scoring rule applies to the metric (see metric_scoring).
"""

import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

THRESHOLD_UNITS = ("min", "seg", "%")

_OPERATOR = re.compile(r"^(>=|<=|>|<|=)")
_RATIO = re.compile(r"^(\d+(?:\.\d+)?)/(\d+(?:\.\d+)?)$")
_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class ThresholdCaseType(str, enum.Enum):
    SIMPLE_BINARY = "SIMPLE_BINARY"                        # desired=1|0, worst=None
    RATIO_WITH_MIN_THRESHOLD = "RATIO_WITH_MIN_THRESHOLD"  # desired=">=10/20min", worst="0/20min"
    INVERSE_RATIO_WITH_MAX = "INVERSE_RATIO_WITH_MAX"      # desired="0/1min", worst=">=10/1min"
    TIME_THRESHOLD = "TIME_THRESHOLD"                      # desired="20min", worst=">20 min"
    ZERO_WITH_MAX_THRESHOLD = "ZERO_WITH_MAX_THRESHOLD"    # desired="0seg", worst=">=15 seg"
    PERCENTAGE_WITH_MAX = "PERCENTAGE_WITH_MAX"            # desired="0 %", worst=">=10%"
    NUMERIC_WITH_MAX = "NUMERIC_WITH_MAX"                  # desired="1", worst=">=4"
    NUMERIC_WITH_MIN = "NUMERIC_WITH_MIN"                  # desired="4", worst="0"


@dataclass
class ParsedThreshold:
    value: float
    operator: Optional[str] = None
    numerator: Optional[float] = None
    denominator: Optional[float] = None
    unit: Optional[str] = None


@dataclass
class ThresholdCase:
    case_type: ThresholdCaseType
    desired: ParsedThreshold
    worst: Optional[ParsedThreshold]


def parse_threshold(threshold: str, units: Sequence[str] = THRESHOLD_UNITS) -> ParsedThreshold:
    """
    Parse a threshold string into operator, value, optional ratio parts and unit.

    Args:
        threshold: Threshold text (e.g. ">=10/20min")
        units: Trailing units recognised, tried in order

    Raises:
        ValueError: If the threshold is empty
        TypeError: If no numeric value can be read from it
    """
    if not threshold or not threshold.strip():
        raise ValueError("Threshold cannot be empty")

    trimmed = threshold.strip()

    operator_match = _OPERATOR.match(trimmed)
    operator = operator_match.group(1) if operator_match else None
    value_str = trimmed[len(operator):].strip() if operator else trimmed

    unit_match = re.search(rf"({'|'.join(re.escape(u) for u in units)})\s*$", value_str)
    unit = unit_match.group(1) if unit_match else None
    number_str = value_str[:unit_match.start()].strip() if unit_match else value_str

    # "10 / 3", "10 /3" and "10/ 3" are all the same ratio
    clean = re.sub(r"\s+", "", number_str)

    ratio_match = _RATIO.match(clean)
    if ratio_match:
        numerator = float(ratio_match.group(1))
        denominator = float(ratio_match.group(2))
        return ParsedThreshold(
            operator=operator,
            value=numerator / denominator if denominator else float("inf"),
            numerator=numerator,
            denominator=denominator,
            unit=unit,
        )

    number_match = _LEADING_NUMBER.match(clean)
    if not number_match:
        raise TypeError(f"Cannot parse threshold value: {threshold}")

    return ParsedThreshold(operator=operator, value=float(number_match.group(0)), unit=unit)


def classify_case(desired_threshold: Optional[str], worst_case: Optional[str]) -> ThresholdCase:
    """
    Decide which scoring rule applies to a (desired, worst) threshold pair.

    Rules are tried in order; the first match wins. When nothing matches the
    metric is scored as SIMPLE_BINARY.
    """
    logger.debug(f"Classifying case: desired='{desired_threshold}', worst='{worst_case}'")

    desired = parse_threshold(desired_threshold) if desired_threshold else None
    worst = parse_threshold(worst_case) if worst_case else None

    case_type = _match_case(desired, worst)
    if case_type is not None:
        return ThresholdCase(case_type=case_type, desired=desired, worst=worst)

    logger.warning(
        f"No specific case matched for desired='{desired_threshold}', worst='{worst_case}', using SIMPLE_BINARY"
    )
    return ThresholdCase(
        case_type=ThresholdCaseType.SIMPLE_BINARY,
        desired=desired or ParsedThreshold(value=1),
        worst=None,
    )


def _match_case(desired: Optional[ParsedThreshold], worst: Optional[ParsedThreshold]) -> Optional[ThresholdCaseType]:
    if desired is None:
        return None

    if worst is None:
        if desired.value in (0, 1) and not desired.unit:
            return ThresholdCaseType.SIMPLE_BINARY
        return None

    if (desired.operator == ">=" and desired.numerator and desired.denominator
            and desired.unit and worst.numerator == 0):
        return ThresholdCaseType.RATIO_WITH_MIN_THRESHOLD

    if desired.numerator == 0 and desired.denominator and worst.operator == ">=" and worst.numerator:
        return ThresholdCaseType.INVERSE_RATIO_WITH_MAX

    if not desired.operator and desired.unit == "min" and worst.operator and worst.unit == "min":
        return ThresholdCaseType.TIME_THRESHOLD

    if desired.value == 0 and desired.unit == "seg" and worst.operator == ">=" and worst.unit == "seg":
        return ThresholdCaseType.ZERO_WITH_MAX_THRESHOLD

    if desired.value == 0 and desired.unit == "%" and worst.operator == ">=" and worst.unit == "%":
        return ThresholdCaseType.PERCENTAGE_WITH_MAX

    if not desired.operator and not desired.unit and worst.operator == ">=" and not worst.unit:
        return ThresholdCaseType.NUMERIC_WITH_MAX

    if not desired.operator and not desired.unit and worst.value == 0 and not worst.unit:
        return ThresholdCaseType.NUMERIC_WITH_MIN

    return None
