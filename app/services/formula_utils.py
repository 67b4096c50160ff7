"""
Formula inspection helpers used by data entry.

- Ordering variables the way they appear in a formula
- Detecting denominator variables and rejecting zero values for them
- Detecting denominator variables whose value is fixed by ratio thresholds
  (e.g. desired ">=10/20min" fixes B = 20 in "A/B")
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, TypeVar, Union

from app.services.threshold_parser import ParsedThreshold, parse_threshold

logger = logging.getLogger(__name__)

T = TypeVar("T")

DIVISION_BY_ZERO_MESSAGE = "No se puede usar 0 en el denominador de una división."

FIXED_VARIABLE_UNITS = ("min", "seg", "%", "ms", "s", "h")

_DIVISION = re.compile(r"([A-Z])\s*/\s*([A-Z])")


@dataclass
class DivisionCheck:
    is_valid: bool
    error_message: Optional[str] = None


@dataclass
class FixedVariable:
    symbol: str
    fixed_value: float
    reason: str


def _symbol_of(variable: Any) -> str:
    if isinstance(variable, dict):
        return variable["symbol"]
    return variable.symbol


def sort_variables_by_formula_order(formula: Optional[str], variables: List[T]) -> List[T]:
    """
    Sort variables by the first (case-insensitive) occurrence of their symbol
    in the formula. Symbols missing from the formula go last; ties keep their
    original order.

    Works with dicts and with objects exposing a `symbol` attribute.
    """
    if not formula or not variables:
        return variables

    def position(variable) -> float:
        match = re.search(re.escape(_symbol_of(variable)), formula, re.IGNORECASE)
        return match.start() if match else math.inf

    return sorted(variables, key=position)


def is_denominator_variable(symbol: str, formula: str) -> bool:
    """
    Whether `symbol` appears in a denominator of `formula`.

    Matches "x/B", "x/B+...", "(...)/B" and "x/(A+B)".
    """
    if not formula or not symbol:
        return False

    escaped = re.escape(symbol)
    patterns = (
        rf"/\s*{escaped}\b(?:\s*[+\-*/)$]|$)",
        rf"\)\s*/\s*{escaped}\b",
        rf"/\s*\([^)]*\b{escaped}\b[^)]*\)",
    )
    return any(re.search(pattern, formula, re.IGNORECASE) for pattern in patterns)


def validate_no_division_by_zero(value: Union[float, str], symbol: str, formula: str) -> DivisionCheck:
    """Only a zero on a denominator variable is invalid"""
    numeric = _parse_float(value) if isinstance(value, str) else value

    if numeric != 0:
        return DivisionCheck(is_valid=True)

    if is_denominator_variable(symbol, formula):
        return DivisionCheck(is_valid=False, error_message=DIVISION_BY_ZERO_MESSAGE)

    return DivisionCheck(is_valid=True)


def get_denominator_variables(formula: str, symbols: Sequence[str]) -> List[str]:
    return [symbol for symbol in symbols if is_denominator_variable(symbol, formula)]


def detect_fixed_variables(
    formula: Optional[str],
    desired_threshold: Optional[str],
    worst_case: Optional[str],
) -> List[FixedVariable]:
    """
    Detect the denominator variable of an "X/Y" formula whose value is implied
    by the thresholds.

    Rules, first match wins:
        1. desired is a ratio and a threshold is in minutes -> desired.denominator
        2. worst is a ratio and a threshold is in minutes -> worst.denominator
        3. desired is "0/X" and worst shares denominator X -> X
    """
    if not formula:
        return []

    desired = _parse_optional(desired_threshold)
    worst = _parse_optional(worst_case)

    has_min_unit = (desired is not None and desired.unit == "min") or (worst is not None and worst.unit == "min")
    has_ratio = bool((desired and desired.denominator) or (worst and worst.denominator))
    if not has_min_unit and not has_ratio:
        return []

    match = _DIVISION.search(formula)
    if not match:
        return []
    denominator_symbol = match.group(2)

    if desired and desired.denominator and has_min_unit:
        return [FixedVariable(
            symbol=denominator_symbol,
            fixed_value=desired.denominator,
            reason=f"Fixed denominator from desired threshold ({desired_threshold})",
        )]

    if worst and worst.denominator and has_min_unit:
        return [FixedVariable(
            symbol=denominator_symbol,
            fixed_value=worst.denominator,
            reason=f"Fixed denominator from worst case ({worst_case})",
        )]

    if (desired and desired.numerator == 0 and desired.denominator
            and worst and worst.denominator and desired.denominator == worst.denominator):
        return [FixedVariable(
            symbol=denominator_symbol,
            fixed_value=desired.denominator,
            reason=f"Common denominator in thresholds ({desired.denominator:g})",
        )]

    return []


def is_variable_fixed(
    symbol: str,
    formula: Optional[str],
    desired_threshold: Optional[str],
    worst_case: Optional[str],
) -> Optional[FixedVariable]:
    """Return the FixedVariable for `symbol`, or None when it is user-entered"""
    for fixed in detect_fixed_variables(formula, desired_threshold, worst_case):
        if fixed.symbol == symbol:
            return fixed
    return None


def get_fixed_value(
    symbol: str,
    formula: Optional[str],
    desired_threshold: Optional[str],
    worst_case: Optional[str],
) -> Optional[float]:
    fixed = is_variable_fixed(symbol, formula, desired_threshold, worst_case)
    return fixed.fixed_value if fixed else None


def _parse_optional(threshold: Optional[str]) -> Optional[ParsedThreshold]:
    if not threshold:
        return None
    try:
        return parse_threshold(threshold, units=FIXED_VARIABLE_UNITS)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring unparsable threshold '{threshold}'")
        return None


def _parse_float(text: str) -> float:
    try:
        return float(text.strip())
    except ValueError:
        return math.nan
