"""
Score classification.

Scores are on the 0-10 scale; the project's minimum threshold is a percentage
(80 == 8.0). Level boundaries scale with the threshold, so with the default
threshold of 80 they are 2.75, 5.0 and 8.75.
"""

import enum
import logging
from typing import Dict

logger = logging.getLogger(__name__)

UNACCEPTABLE_FACTOR = 0.34375
MINIMALLY_ACCEPTABLE_FACTOR = 0.625
TARGET_RANGE_FACTOR = 1.09375


class ScoreLevel(str, enum.Enum):
    UNACCEPTABLE = "Inaceptable"
    MINIMALLY_ACCEPTABLE = "Mínimamente Aceptable"
    TARGET_RANGE = "Rango Objetivo"
    EXCEEDS_REQUIREMENTS = "Excede los Requisitos"


class SatisfactionGrade(str, enum.Enum):
    UNSATISFACTORY = "Insatisfactorio"
    SATISFACTORY = "Satisfactorio"
    VERY_SATISFACTORY = "Muy Satisfactorio"


def calculate_score_level(score: float, minimum_threshold: float) -> ScoreLevel:
    threshold = minimum_threshold / 10
    logger.debug(f"Calculating score level: score={score}, threshold={minimum_threshold}% ({threshold} on 0-10)")

    if score < threshold * UNACCEPTABLE_FACTOR:
        return ScoreLevel.UNACCEPTABLE
    if score < threshold * MINIMALLY_ACCEPTABLE_FACTOR:
        return ScoreLevel.MINIMALLY_ACCEPTABLE
    if score < threshold * TARGET_RANGE_FACTOR:
        return ScoreLevel.TARGET_RANGE
    return ScoreLevel.EXCEEDS_REQUIREMENTS


def calculate_satisfaction_grade(score: float, minimum_threshold: float) -> SatisfactionGrade:
    threshold = minimum_threshold / 10
    logger.debug(f"Calculating satisfaction grade: score={score}, threshold={minimum_threshold}%")

    if score < threshold * MINIMALLY_ACCEPTABLE_FACTOR:
        return SatisfactionGrade.UNSATISFACTORY
    if score < threshold * TARGET_RANGE_FACTOR:
        return SatisfactionGrade.SATISFACTORY
    return SatisfactionGrade.VERY_SATISFACTORY


def classify_score(score: float, minimum_threshold: float) -> Dict[str, str]:
    """
    Classify a score against a project's minimum threshold.

    Returns:
        {"score_level": str, "satisfaction_grade": str}
    """
    return {
        "score_level": calculate_score_level(score, minimum_threshold).value,
        "satisfaction_grade": calculate_satisfaction_grade(score, minimum_threshold).value,
    }
