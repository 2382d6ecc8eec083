import pytest

from careerpath.config import settings
from careerpath.core.advisor import CareerAdvisor
from careerpath.core.data_loader import load_courses, load_question_banks
from careerpath.core.models import ClassLevel, QuestionBank

POOL_CODES = {
    "realistic": "R",
    "investigative": "I",
    "artistic": "A",
    "social": "S",
    "enterprising": "E",
    "conventional": "C",
}


def rating_question(question_id, code, weight=4):
    return {
        "id": question_id,
        "text": f"Statement {question_id}",
        "type": "rating",
        "category": code,
        "scale_weights": {code: weight},
    }


def bank_data(pools=None):
    """Three baseline questions plus two rating questions per pool"""
    if pools is None:
        pools = list(POOL_CODES)

    return {
        "class_level": "12",
        "baseline": [
            {
                "id": "b1",
                "text": "Favourite subject?",
                "type": "single_choice",
                "options": [
                    {"value": "science", "weights": {"I": 10}},
                    {"value": "art", "weights": {"A": 10}},
                    {"value": "business", "weights": {"E": 10}},
                    {"value": "tools", "weights": {"R": 10}},
                ],
            },
            {
                "id": "b2",
                "text": "Weekend activities?",
                "type": "multi_choice",
                "options": [
                    {"value": "tinker", "weights": {"R": 5}},
                    {"value": "code", "weights": {"I": 5}},
                    {"value": "draw", "weights": {"A": 5}},
                    {"value": "help", "weights": {"S": 5}},
                ],
            },
            {
                "id": "b3",
                "text": "Split 100 points",
                "type": "distribution",
                "options": [
                    {"value": "hands_on", "weights": {"R": 20}},
                    {"value": "research", "weights": {"I": 20}},
                    {"value": "people", "weights": {"S": 20}},
                    {"value": "organising", "weights": {"C": 20}},
                ],
            },
        ],
        "deepdive": {
            pool: [
                rating_question(f"{POOL_CODES[pool].lower()}1", POOL_CODES[pool]),
                rating_question(f"{POOL_CODES[pool].lower()}2", POOL_CODES[pool]),
            ]
            for pool in pools
        },
    }


@pytest.fixture
def small_bank():
    return QuestionBank(**bank_data())


@pytest.fixture
def make_bank():
    def _make(pools=None, baseline=None):
        data = bank_data(pools)
        if baseline is not None:
            data["baseline"] = data["baseline"][:baseline]
        return QuestionBank(**data)
    return _make


@pytest.fixture(scope="session")
def catalog():
    return load_courses(settings.COURSES_FILE)


@pytest.fixture(scope="session")
def real_banks():
    return load_question_banks({
        ClassLevel.TENTH: settings.QUESTION_BANK_10TH_FILE,
        ClassLevel.TWELFTH: settings.QUESTION_BANK_12TH_FILE,
    })


@pytest.fixture
def advisor(real_banks, catalog):
    return CareerAdvisor(banks=real_banks, courses=catalog)
