from .scoring import score_traits
from .selector import (
    initialize_quiz_state, is_quiz_complete, select_next_question, update_quiz_state
)
from .matcher import recommend

__all__ = [
    "score_traits",
    "initialize_quiz_state",
    "is_quiz_complete",
    "select_next_question",
    "update_quiz_state",
    "recommend",
]
