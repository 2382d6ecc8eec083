import math
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Union

from .models import (
    Question, QuestionBank, QuizResponse, TraitCategory, TraitVector,
    SingleChoice, Rating, MultiChoice, Distribution
)
from .utils import normalize_distribution

logger = logging.getLogger(__name__)

QuestionCatalog = Union[QuestionBank, Mapping[str, Question], Iterable[Question]]


def build_question_index(questions: QuestionCatalog) -> Dict[str, Question]:
    """Index a bank, a mapping or a plain sequence of questions by id"""
    if isinstance(questions, QuestionBank):
        questions = questions.all_questions()
    elif isinstance(questions, Mapping):
        return dict(questions)
    return {question.id: question for question in questions}


def answer_contributions(question: Question, response: QuizResponse) -> List[Dict[TraitCategory, float]]:
    """
    Weight tables contributed by one answer

    Multi-choice answers add every selected option at its own weight;
    distributions add each entry scaled by its share of the total.
    """
    answer = response.answer

    if isinstance(answer, SingleChoice):
        return [question.weights_for(answer.value)]

    if isinstance(answer, Rating):
        return [question.weights_for(answer.value)]

    if isinstance(answer, MultiChoice):
        return [question.weights_for(value) for value in answer.values]

    if isinstance(answer, Distribution):
        contributions = []
        for key, fraction in normalize_distribution(answer.weights).items():
            table = question.weights_for(key)
            contributions.append({category: weight * fraction for category, weight in table.items()})
        return contributions

    return []


def score_traits(responses: Iterable[QuizResponse], questions: QuestionCatalog) -> TraitVector:
    """
    Accumulate the trait vector for a set of responses

    Responses whose question id is not in the catalog are skipped. Sums are
    exact (math.fsum), so any ordering of the same responses gives the
    same vector.
    """
    index = build_question_index(questions)
    parts: Dict[TraitCategory, List[float]] = defaultdict(list)
    skipped = 0

    for response in responses:
        question = index.get(response.question_id)
        if question is None:
            skipped += 1
            continue
        for table in answer_contributions(question, response):
            for category, weight in table.items():
                parts[category].append(weight)

    if skipped:
        logger.debug(f"Skipped {skipped} responses with unknown question ids")

    return TraitVector(scores={
        category: math.fsum(parts[category]) for category in TraitCategory
    })
