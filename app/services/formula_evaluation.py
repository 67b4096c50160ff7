"""
Safe evaluation of metric formulas.

Formulas are plain arithmetic over variable symbols ("A/B", "1-(A/B)",
"(A+B)*100/C"). Values are substituted textually, the result is validated to
contain only numbers and arithmetic characters, and the expression is then
evaluated by walking its AST. Nothing is ever passed to eval().
"""

import ast
import logging
import math
import operator
import re
from decimal import Decimal
from typing import List, Mapping, Sequence, Union

logger = logging.getLogger(__name__)

Number = Union[int, float]

# Tokens that have no business in an arithmetic formula
_DANGEROUS_PATTERNS = [
    re.compile(r"[;]"),
    re.compile(r"\bDROP\b", re.IGNORECASE),
    re.compile(r"\bTABLE\b", re.IGNORECASE),
    re.compile(r"\bDELETE\b", re.IGNORECASE),
    re.compile(r"\bINSERT\b", re.IGNORECASE),
    re.compile(r"\bUPDATE\b", re.IGNORECASE),
    re.compile(r"\bSELECT\b", re.IGNORECASE),
    re.compile(r"['\"]"),
    re.compile(r"[{}]"),
    re.compile(r"\$\{"),
]

_ALLOWED_EXPRESSION = re.compile(r"^[\d+\-*/().\s]+$")
_IDENTIFIER = re.compile(r"\b[a-zA-Z_][a-zA-Z0-9_]*\b")

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


class FormulaEvaluationError(ValueError):
    """Raised when a formula cannot be evaluated"""
    pass


def evaluate_formula(formula: str, variables: Sequence[Mapping]) -> float:
    """
    Evaluate a formula with the given variable values.

    Args:
        formula: Arithmetic expression over variable symbols (e.g. "A/B")
        variables: Sequence of {"symbol": str, "value": number}

    Returns:
        Result rounded to 4 decimals

    Raises:
        FormulaEvaluationError: If the formula is empty, unsafe, references
            unknown symbols, divides by zero or yields a non-finite value
    """
    logger.debug(f"Evaluating formula '{formula}' with {len(variables)} variables")

    try:
        expression = _prepare_expression(formula, variables)
        return _execute_calculation(expression)
    except FormulaEvaluationError as e:
        logger.error(f"Formula evaluation failed for '{formula}': {e}")
        raise FormulaEvaluationError(f"Formula evaluation failed: {e}")


def validate_required_variables(formula: str, provided: Sequence[Mapping]) -> List[str]:
    """
    Return the identifiers used in `formula` that are missing from `provided`.
    """
    provided_symbols = {v["symbol"] for v in provided}
    missing: List[str] = []
    for identifier in _IDENTIFIER.findall(formula or ""):
        if identifier not in provided_symbols and identifier not in missing:
            missing.append(identifier)
    return missing


def _prepare_expression(formula: str, variables: Sequence[Mapping]) -> str:
    if not formula or not formula.strip():
        raise FormulaEvaluationError("Formula cannot be empty")

    for pattern in _DANGEROUS_PATTERNS:
        if pattern.search(formula):
            raise FormulaEvaluationError("Expression contains invalid characters")

    expression = formula.strip()

    # Longest symbols first so "AB" is replaced before "A"
    for variable in sorted(variables, key=lambda v: len(v["symbol"]), reverse=True):
        pattern = re.compile(rf"\b{re.escape(variable['symbol'])}\b")
        expression = pattern.sub(_format_number(variable["value"]), expression)

    if re.search(r"[a-zA-Z]", expression):
        raise FormulaEvaluationError(f"Expression contains unreplaced variables: {expression}")

    if not _ALLOWED_EXPRESSION.match(expression):
        raise FormulaEvaluationError(f"Expression contains invalid characters: {expression}")

    return expression


def _format_number(value: Number) -> str:
    """Render a value without exponent notation (1e-05 would look like a variable)"""
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text.startswith("-"):
        return f"({text})"
    return text


def _execute_calculation(expression: str) -> float:
    try:
        tree = ast.parse(expression, mode="eval")
        result = float(_eval_node(tree.body))
    except ZeroDivisionError:
        raise FormulaEvaluationError("Calculation error: division by zero")
    except OverflowError:
        raise FormulaEvaluationError("Calculation error: result out of range")
    except SyntaxError as e:
        raise FormulaEvaluationError(f"Calculation error: {e.msg}")

    if not math.isfinite(result):
        raise FormulaEvaluationError(f"Invalid calculation result: {result}")

    return round(result, 4)


def _eval_node(node: ast.AST) -> Number:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        return _BINARY_OPERATORS[type(node.op)](_eval_node(node.left), _eval_node(node.right))

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_eval_node(node.operand))

    raise FormulaEvaluationError(f"Calculation error: unsupported expression element {type(node).__name__}")

