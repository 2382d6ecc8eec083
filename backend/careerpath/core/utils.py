import math
from typing import Any, Dict, Optional
import logging

from .models import (
    ClassLevel, ConfidenceLabel, SingleChoice, Rating, MultiChoice, Distribution
)

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_SCORE = 80
MEDIUM_CONFIDENCE_SCORE = 60


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp value into [low, high]"""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (69.5 -> 70)"""
    return int(math.floor(value + 0.5))


def get_confidence_label(match_score: float) -> ConfidenceLabel:
    """Convert a 0-100 match score to a confidence label"""
    if match_score >= HIGH_CONFIDENCE_SCORE:
        return ConfidenceLabel.HIGH
    elif match_score >= MEDIUM_CONFIDENCE_SCORE:
        return ConfidenceLabel.MEDIUM
    else:
        return ConfidenceLabel.LOW


def normalize_distribution(weights: Dict[str, float]) -> Dict[str, float]:
    """
    Convert a weight mapping to fractions of its total

    Negative entries are ignored; an empty or zero-total mapping yields {}.
    """
    positive = {key: value for key, value in weights.items() if value > 0}
    total = math.fsum(positive.values())
    if total == 0:
        return {}
    return {key: value / total for key, value in positive.items()}


def resolve_class_level(value: Optional[Any]) -> ClassLevel:
    """Map a profile's class level to 10 or 12; anything not 10 means 12"""
    if value is None:
        return ClassLevel.TWELFTH
    text = str(value).strip().lower()
    if text in ("10", "10th", "class 10", "after_10th"):
        return ClassLevel.TENTH
    return ClassLevel.TWELFTH


def answer_to_text(answer: Any) -> str:
    """Flatten any answer shape into the text searched by keyword matching"""
    if isinstance(answer, SingleChoice):
        return answer.value
    if isinstance(answer, Rating):
        return str(answer.value)
    if isinstance(answer, MultiChoice):
        return " ".join(answer.values)
    if isinstance(answer, Distribution):
        return " ".join(answer.weights.keys())
    if isinstance(answer, dict):
        return " ".join(str(key) for key in answer.keys())
    if isinstance(answer, (list, tuple, set, frozenset)):
        return " ".join(str(item) for item in answer)
    return "" if answer is None else str(answer)
