"""
Unit tests for threshold parsing and scoring-case classification.
"""

import pytest

from app.services.threshold_parser import ThresholdCaseType, classify_case, parse_threshold


class TestParseThreshold:
    """Test parse_threshold"""

    def test_ratio_with_operator_and_unit(self):
        parsed = parse_threshold(">=10/20min")

        assert parsed.operator == ">="
        assert parsed.numerator == 10
        assert parsed.denominator == 20
        assert parsed.value == 0.5
        assert parsed.unit == "min"

    def test_percentage_with_space(self):
        parsed = parse_threshold("0 %")

        assert parsed.operator is None
        assert parsed.value == 0
        assert parsed.unit == "%"

    def test_seconds_with_operator(self):
        parsed = parse_threshold(">=15 seg")

        assert parsed.operator == ">="
        assert parsed.value == 15
        assert parsed.unit == "seg"

    def test_spaces_inside_ratio(self):
        parsed = parse_threshold("10 / 4")

        assert parsed.numerator == 10
        assert parsed.denominator == 4
        assert parsed.value == 2.5

    def test_plain_number(self):
        parsed = parse_threshold("4")

        assert parsed.value == 4
        assert parsed.numerator is None
        assert parsed.unit is None

    def test_leading_number_is_used(self):
        assert parse_threshold("4 funciones").value == 4

    def test_empty_threshold(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            parse_threshold("  ")

    def test_non_numeric_threshold(self):
        with pytest.raises(TypeError):
            parse_threshold("alto")


class TestClassifyCase:
    """Test classify_case"""

    @pytest.mark.parametrize("desired,worst,expected", [
        ("1", None, ThresholdCaseType.SIMPLE_BINARY),
        ("0", None, ThresholdCaseType.SIMPLE_BINARY),
        (">=10/20min", "0/20min", ThresholdCaseType.RATIO_WITH_MIN_THRESHOLD),
        ("0/1min", ">=10/1min", ThresholdCaseType.INVERSE_RATIO_WITH_MAX),
        ("20min", ">20 min", ThresholdCaseType.TIME_THRESHOLD),
        ("0seg", ">=15 seg", ThresholdCaseType.ZERO_WITH_MAX_THRESHOLD),
        ("0 %", ">=10%", ThresholdCaseType.PERCENTAGE_WITH_MAX),
        ("1", ">=4", ThresholdCaseType.NUMERIC_WITH_MAX),
        ("4", "0", ThresholdCaseType.NUMERIC_WITH_MIN),
    ])
    def test_cases(self, desired, worst, expected):
        assert classify_case(desired, worst).case_type == expected

    def test_unmatched_pair_falls_back_to_simple_binary(self):
        case = classify_case("5min", None)

        assert case.case_type == ThresholdCaseType.SIMPLE_BINARY
        assert case.desired.value == 5
        assert case.worst is None

    def test_no_thresholds(self):
        case = classify_case(None, None)

        assert case.case_type == ThresholdCaseType.SIMPLE_BINARY
        assert case.desired.value == 1
