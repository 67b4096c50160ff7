"""
Unit tests for formula evaluation.

Tests:
- Arithmetic over substituted variable values
- Rejection of unsafe or incomplete formulas
- Missing variable detection
"""

import pytest

from app.services.formula_evaluation import (
    FormulaEvaluationError,
    evaluate_formula,
    validate_required_variables,
)


def values(**kwargs):
    return [{"symbol": symbol, "value": value} for symbol, value in kwargs.items()]


class TestEvaluateFormula:
    """Test evaluate_formula"""

    def test_simple_ratio(self):
        assert evaluate_formula("A/B", values(A=8, B=10)) == 0.8

    def test_parentheses_and_precedence(self):
        assert evaluate_formula("(A+B)*100/C", values(A=1, B=1, C=4)) == 50.0

    def test_result_rounded_to_four_decimals(self):
        assert evaluate_formula("1-(A/B)", values(A=1, B=3)) == 0.6667

    def test_negative_value_is_parenthesized(self):
        """A negative value must not merge with the preceding operator"""
        assert evaluate_formula("B-A", values(A=-2, B=5)) == 7.0

    def test_longer_symbols_replaced_first(self):
        assert evaluate_formula("AB+A", values(AB=10, A=1)) == 11.0

    def test_tiny_values_do_not_use_exponent_notation(self):
        assert evaluate_formula("A*100000", values(A=0.00001)) == 1.0

    def test_empty_formula(self):
        with pytest.raises(FormulaEvaluationError, match="Formula cannot be empty"):
            evaluate_formula("   ", values(A=1))

    @pytest.mark.parametrize("formula", [
        "A; DROP TABLE metrics",
        "A + 'B'",
        "{A}",
        "SELECT A",
    ])
    def test_dangerous_formula_rejected(self, formula):
        with pytest.raises(FormulaEvaluationError, match="invalid characters"):
            evaluate_formula(formula, values(A=1, B=2))

    def test_unreplaced_variable(self):
        with pytest.raises(FormulaEvaluationError, match="unreplaced variables"):
            evaluate_formula("A/C", values(A=1))

    def test_division_by_zero(self):
        with pytest.raises(FormulaEvaluationError, match="division by zero"):
            evaluate_formula("A/B", values(A=1, B=0))

    def test_power_operator_not_supported(self):
        with pytest.raises(FormulaEvaluationError, match="unsupported expression"):
            evaluate_formula("A**B", values(A=2, B=3))

    def test_error_is_a_value_error(self):
        """Callers that catch ValueError also catch formula errors"""
        with pytest.raises(ValueError):
            evaluate_formula("", [])


class TestValidateRequiredVariables:
    """Test validate_required_variables"""

    def test_all_present(self):
        assert validate_required_variables("A/B", values(A=1, B=2)) == []

    def test_missing_reported_once_in_order(self):
        assert validate_required_variables("C/B+C", values(A=1)) == ["C", "B"]

    def test_empty_formula(self):
        assert validate_required_variables("", values(A=1)) == []
