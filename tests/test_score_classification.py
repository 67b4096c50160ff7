"""
Unit tests for score level and satisfaction grade classification.
"""

import pytest

from app.services.score_classification import (
    SatisfactionGrade,
    ScoreLevel,
    calculate_satisfaction_grade,
    calculate_score_level,
    classify_score,
)


class TestScoreLevel:
    """Boundaries for the default 80% threshold are 2.75, 5.0 and 8.75"""

    @pytest.mark.parametrize("score,expected", [
        (0, ScoreLevel.UNACCEPTABLE),
        (2.74, ScoreLevel.UNACCEPTABLE),
        (2.75, ScoreLevel.MINIMALLY_ACCEPTABLE),
        (4.99, ScoreLevel.MINIMALLY_ACCEPTABLE),
        (5.0, ScoreLevel.TARGET_RANGE),
        (8.74, ScoreLevel.TARGET_RANGE),
        (8.75, ScoreLevel.EXCEEDS_REQUIREMENTS),
        (10, ScoreLevel.EXCEEDS_REQUIREMENTS),
    ])
    def test_default_threshold(self, score, expected):
        assert calculate_score_level(score, 80) == expected

    def test_boundaries_scale_with_threshold(self):
        """With a 60% threshold the target range starts at 3.75"""
        assert calculate_score_level(3.7, 60) == ScoreLevel.MINIMALLY_ACCEPTABLE
        assert calculate_score_level(3.75, 60) == ScoreLevel.TARGET_RANGE


class TestSatisfactionGrade:

    @pytest.mark.parametrize("score,expected", [
        (4.99, SatisfactionGrade.UNSATISFACTORY),
        (5.0, SatisfactionGrade.SATISFACTORY),
        (8.74, SatisfactionGrade.SATISFACTORY),
        (8.75, SatisfactionGrade.VERY_SATISFACTORY),
    ])
    def test_default_threshold(self, score, expected):
        assert calculate_satisfaction_grade(score, 80) == expected


class TestClassifyScore:

    def test_returns_display_values(self):
        assert classify_score(6.8, 80) == {
            "score_level": "Rango Objetivo",
            "satisfaction_grade": "Satisfactorio",
        }
