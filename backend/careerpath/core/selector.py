"""
Adaptive question selection for the RIASEC quiz.

The quiz opens with the baseline questions, then asks deep-dive questions
from the categories that currently lead, preferring the least explored of
the top three. It stops at the hard cap, or earlier once the leading trait
is clear of the runner-up by the confidence gap.
"""

import logging
from typing import Any, List, Optional

from .models import (
    Question, QuestionBank, QuizPhase, QuizResponse, QuizState, TraitCategory
)
from .scoring import QuestionCatalog, score_traits
from ..config import settings

logger = logging.getLogger(__name__)


def initialize_quiz_state() -> QuizState:
    """Fresh state: no answers, all-zero trait vector"""
    return QuizState()


def is_quiz_complete(state: QuizState) -> bool:
    """True at the hard cap, or past the minimum with a dominant trait"""
    if state.question_count >= settings.MAX_QUESTIONS:
        return True

    if state.question_count < settings.MIN_QUESTIONS:
        return False

    ranked = state.current_scores.ranked()
    gap = ranked[0][1] - ranked[1][1]
    return gap > settings.CONFIDENCE_GAP


def quiz_phase(state: QuizState) -> QuizPhase:
    if is_quiz_complete(state):
        return QuizPhase.COMPLETE
    if state.question_count < settings.BASELINE_QUESTIONS:
        return QuizPhase.BASELINE
    return QuizPhase.DEEP_DIVE


def count_deep_dive_asked(state: QuizState, bank: QuestionBank, category: TraitCategory) -> int:
    """Number of questions from the category's pool already asked"""
    return sum(1 for question in bank.pool(category) if question.id in state.asked_question_ids)


def _first_unasked(questions: List[Question], state: QuizState) -> Optional[Question]:
    for question in questions:
        if question.id not in state.asked_question_ids:
            return question
    return None


def select_next_question(state: QuizState, bank: QuestionBank) -> Optional[Question]:
    """
    Pick the next question, or None when the quiz is over

    Baseline questions go first, in catalog order. After that the top three
    categories are ranked by fewest deep-dive questions asked, then by
    highest score, and the first unasked question from the best-ranked
    non-exhausted pool is returned. When those pools are empty every other
    pool is scanned in catalog order. Missing pools count as exhausted.
    """
    phase = quiz_phase(state)
    if phase == QuizPhase.COMPLETE:
        return None

    if phase == QuizPhase.BASELINE:
        question = _first_unasked(bank.baseline, state)
        if question is not None:
            return question
        logger.debug("Baseline pool exhausted early, moving to deep-dive questions")

    scores = state.current_scores
    candidates = [
        (category, scores.get(category), count_deep_dive_asked(state, bank, category))
        for category in scores.top(3)
    ]
    # stable sort keeps score rank order for full ties
    candidates.sort(key=lambda item: (item[2], -item[1]))

    for category, score, asked in candidates:
        question = _first_unasked(bank.pool(category), state)
        if question is not None:
            logger.debug(
                f"Deep-dive into {category.full_name} (score={score:.1f}, asked={asked}): {question.id}"
            )
            return question

    for pool in bank.deepdive.values():
        question = _first_unasked(pool, state)
        if question is not None:
            return question

    logger.info(f"No questions left after {state.question_count} answers")
    return None


def update_quiz_state(
    state: QuizState,
    question_id: str,
    answer: Any,
    questions: QuestionCatalog
) -> QuizState:
    """
    Record an answer and return the next state

    The trait vector is recomputed from the whole answer history rather than
    patched, so it always equals score_traits over the recorded answers.
    """
    response = QuizResponse(question_id=question_id, answer=answer)
    answered = state.answered_questions + (response,)

    return QuizState(
        answered_questions=answered,
        current_scores=score_traits(answered, questions),
        asked_question_ids=state.asked_question_ids | {question_id},
        question_count=state.question_count + 1,
    )


def get_quiz_progress(state: QuizState) -> float:
    """Progress percentage against the target quiz length"""
    return min(state.question_count / settings.PROGRESS_TARGET_QUESTIONS * 100, 100.0)


def get_all_questions_used(state: QuizState, bank: QuestionBank) -> List[Question]:
    """Questions of the bank that were asked, in catalog order"""
    return [question for question in bank.all_questions() if question.id in state.asked_question_ids]
