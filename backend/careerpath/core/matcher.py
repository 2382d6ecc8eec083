"""
Course recommendation from quiz results.

Two scoring strategies share one pipeline: pick a stream, keep the courses
of that stream for the student's class level, score them, and report the
best one with up to three alternatives. TraitVectorStrategy works from
RIASEC scores; LegacyKeywordStrategy matches keywords in the answer text
and serves answer sets that carry no trait data.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .models import (
    Branch, CareerRecommendation, Course, QuizResponse, Stream, TraitCategory,
    TraitVector, UserProfile
)
from .utils import answer_to_text, clamp, get_confidence_label, resolve_class_level, round_half_up

logger = logging.getLogger(__name__)

BASE_COURSE_SCORE = 50.0
MAX_REASONS = 4
MAX_ALTERNATIVES = 3

# Vocational carve-out for a strongly Realistic, weakly Investigative profile
VOCATIONAL_REALISTIC_MIN = 80
VOCATIONAL_INVESTIGATIVE_MAX = 50

R, I, A, S, E, C = (
    TraitCategory.REALISTIC, TraitCategory.INVESTIGATIVE, TraitCategory.ARTISTIC,
    TraitCategory.SOCIAL, TraitCategory.ENTERPRISING, TraitCategory.CONVENTIONAL
)

TRAIT_STREAMS = {
    R: Stream.SCIENCE,
    I: Stream.SCIENCE,
    E: Stream.COMMERCE,
    C: Stream.COMMERCE,
    A: Stream.ARTS,
    S: Stream.ARTS,
}

BRANCH_TRAIT_WEIGHTS: Dict[Branch, Dict[TraitCategory, float]] = {
    Branch.ENGINEERING: {R: 0.3, I: 0.4},
    Branch.MEDICAL: {I: 0.4, S: 0.3},
    Branch.BUSINESS: {E: 0.4, C: 0.3},
    Branch.FINANCE: {E: 0.4, C: 0.3},
    Branch.LAW: {A: 0.3, E: 0.2, S: 0.2},
    Branch.HUMANITIES: {A: 0.3, S: 0.3},
    Branch.SKILLED: {R: 0.5},
}

# Checked in this order, so reasons always come out I, R, A, S, E, C
TRAIT_REASONS: List[Tuple[TraitCategory, str]] = [
    (I, "Strong analytical and problem-solving abilities"),
    (R, "Practical, hands-on learning approach"),
    (A, "Creative thinking and communication skills"),
    (S, "People-oriented and collaborative nature"),
    (E, "Leadership potential and business acumen"),
    (C, "Organized and detail-oriented mindset"),
]

STREAM_KEYWORDS: Dict[Stream, List[str]] = {
    Stream.SCIENCE: ["math", "science", "technology", "engineering", "doctor", "research"],
    Stream.COMMERCE: ["business", "finance", "accounting", "management", "entrepreneur"],
    Stream.ARTS: ["law", "writing", "history", "politics", "creative", "social"],
    Stream.VOCATIONAL: ["practical", "hands-on", "skill", "trade"],
}

STREAM_KEYWORD_POINTS = 10

# (branch, course id or None for any course) -> [(keywords, points)]
KEYWORD_COURSE_RULES: Dict[Tuple[Branch, Optional[str]], List[Tuple[List[str], float]]] = {
    (Branch.ENGINEERING, "btech-cs"): [
        (["technology", "coding"], 20),
        (["problem solving"], 15),
        (["logical"], 10),
    ],
    (Branch.ENGINEERING, "btech-mechanical"): [
        (["machines", "automobile"], 20),
        (["design"], 10),
    ],
    (Branch.MEDICAL, None): [
        (["helping", "care"], 20),
        (["biology", "health"], 15),
        (["patient"], 10),
    ],
    (Branch.BUSINESS, None): [
        (["business", "money"], 20),
        (["leadership", "management"], 15),
    ],
    (Branch.FINANCE, None): [
        (["business", "money"], 20),
        (["leadership", "management"], 15),
    ],
    (Branch.BUSINESS, "ca"): [(["numbers"], 10)],
    (Branch.FINANCE, "ca"): [(["numbers"], 10)],
    (Branch.LAW, None): [
        (["justice", "debate"], 20),
        (["reading", "arguing"], 15),
    ],
    (Branch.SKILLED, None): [
        (["practical", "hands"], 20),
        (["quick job", "skill"], 15),
    ],
}

BRANCH_REASONS: Dict[Branch, List[str]] = {
    Branch.ENGINEERING: ["Strong technical and logical thinking ability"],
    Branch.MEDICAL: [
        "Compassionate and caring personality",
        "Interest in biological sciences and healthcare",
    ],
    Branch.BUSINESS: ["Business acumen and leadership potential"],
    Branch.FINANCE: ["Business acumen and leadership potential"],
    Branch.LAW: [
        "Excellent communication and argumentation skills",
        "Interest in justice and social issues",
    ],
    Branch.SKILLED: [
        "Practical hands-on learning preference",
        "Quick pathway to employment",
    ],
}

COURSE_REASONS: Dict[str, List[str]] = {
    "btech-cs": [
        "Interest in technology and programming",
        "Excellent problem-solving skills",
    ],
    "ca": ["Strong analytical and numerical skills"],
}


def demand_reason(course: Course) -> Optional[str]:
    if course.demand == "Very High":
        return f"{course.demand.lower()} job market demand"
    return None


class TraitVectorStrategy:
    """Stream, course score and reasons derived from RIASEC scores"""

    name = "trait_vector"

    def __init__(self, traits: TraitVector):
        self.traits = traits

    def determine_stream(self) -> Stream:
        top_type, top_score = self.traits.ranked()[0]

        if (top_type == R and top_score > VOCATIONAL_REALISTIC_MIN
                and self.traits.get(I) < VOCATIONAL_INVESTIGATIVE_MAX):
            return Stream.VOCATIONAL

        return TRAIT_STREAMS.get(top_type, Stream.SCIENCE)

    def score_course(self, course: Course) -> float:
        score = BASE_COURSE_SCORE
        for category, weight in BRANCH_TRAIT_WEIGHTS.get(course.branch, {}).items():
            score += self.traits.get(category) * weight
        return clamp(score)

    def reasons(self, course: Course) -> List[str]:
        top_types = self.traits.top(3)
        reasons = [reason for category, reason in TRAIT_REASONS if category in top_types]

        demand = demand_reason(course)
        if demand:
            reasons.append(demand)

        return reasons[:MAX_REASONS]


class LegacyKeywordStrategy:
    """
    Keyword matching over raw answer text

    Kept for answer sets from the older quiz format that carry no trait
    data. The keyword lists and point values have no documented rationale
    and are preserved as observed.
    """

    name = "legacy_keyword"

    def __init__(self, answers: Mapping[str, Any]):
        self.answer_texts = [answer_to_text(answer).lower() for answer in answers.values()]
        self.answer_string = " ".join(self.answer_texts)

    def determine_stream(self) -> Stream:
        scores = {stream: 0 for stream in STREAM_KEYWORDS}

        for text in self.answer_texts:
            for stream, keywords in STREAM_KEYWORDS.items():
                if any(keyword in text for keyword in keywords):
                    scores[stream] += STREAM_KEYWORD_POINTS

        best_stream, best_score = Stream.SCIENCE, 0
        for stream, score in scores.items():
            if score > best_score:
                best_stream, best_score = stream, score
        return best_stream

    def score_course(self, course: Course) -> float:
        score = BASE_COURSE_SCORE
        for rule_key in ((course.branch, course.id), (course.branch, None)):
            for keywords, points in KEYWORD_COURSE_RULES.get(rule_key, []):
                if any(keyword in self.answer_string for keyword in keywords):
                    score += points
        return clamp(score)

    def reasons(self, course: Course) -> List[str]:
        reasons = list(BRANCH_REASONS.get(course.branch, []))
        reasons.extend(COURSE_REASONS.get(course.id, []))

        demand = demand_reason(course)
        if demand:
            reasons.append(demand)

        return reasons[:MAX_REASONS]


ScoringStrategy = Union[TraitVectorStrategy, LegacyKeywordStrategy]


def _answers_by_question(responses: Union[Mapping[str, Any], Sequence[QuizResponse], None]) -> Dict[str, Any]:
    if not responses:
        return {}
    if isinstance(responses, Mapping):
        return dict(responses)
    return {response.question_id: response.answer for response in responses}


def _coerce_profile(profile: Union[UserProfile, Mapping[str, Any], None]) -> UserProfile:
    if isinstance(profile, UserProfile):
        return profile
    return UserProfile(**(profile or {}))


def _coerce_traits(traits: Union[TraitVector, Mapping[str, float], None]) -> Optional[TraitVector]:
    if traits is None or isinstance(traits, TraitVector):
        return traits
    return TraitVector.from_mapping(traits)


def select_strategy(answers: Mapping[str, Any], traits: Optional[TraitVector]) -> ScoringStrategy:
    if traits is not None:
        return TraitVectorStrategy(traits)
    return LegacyKeywordStrategy(answers)


def recommend(
    responses: Union[Mapping[str, Any], Sequence[QuizResponse], None],
    user_context: Union[UserProfile, Mapping[str, Any], None],
    trait_vector: Union[TraitVector, Mapping[str, float], None] = None,
    catalog: Sequence[Course] = ()
) -> Optional[CareerRecommendation]:
    """
    Recommend one course plus up to three alternatives

    Returns None when there are no responses or no course of the chosen
    stream exists for the student's class level.
    """
    answers = _answers_by_question(responses)
    if not answers:
        return None

    profile = _coerce_profile(user_context)
    traits = _coerce_traits(trait_vector)
    strategy = select_strategy(answers, traits)

    stream = strategy.determine_stream()
    class_level = resolve_class_level(profile.class_level)
    relevant = [
        course for course in catalog
        if course.stream == stream and course.class_level == class_level
    ]

    if not relevant:
        logger.info(f"No {stream.value} courses for class {class_level.value}")
        return None

    # sorted() is stable, so equal scores keep catalog order
    scored = sorted(
        ((course, strategy.score_course(course)) for course in relevant),
        key=lambda item: item[1],
        reverse=True
    )
    top_course, top_score = scored[0]
    match_score = round_half_up(top_score)

    recommendation = CareerRecommendation(
        course_id=top_course.id,
        course_name=top_course.full_name,
        stream=top_course.stream.value,
        match_score=match_score,
        why_recommended=strategy.reasons(top_course),
        alternative_courses=[course.id for course, _ in scored[1:1 + MAX_ALTERNATIVES]],
        confidence=get_confidence_label(top_score),
        strategy=strategy.name,
    )

    logger.info(
        f"Recommended {recommendation.course_id} ({recommendation.match_score}, "
        f"{recommendation.confidence.value}) via {strategy.name}"
    )
    return recommendation


def get_alternative_courses(
    primary_course_id: str,
    stream: Union[Stream, str],
    catalog: Sequence[Course],
    limit: int = MAX_ALTERNATIVES
) -> List[Course]:
    """Other courses of the stream, in catalog order"""
    if not any(course.id == primary_course_id for course in catalog):
        return []

    stream = Stream(stream)
    return [
        course for course in catalog
        if course.stream == stream and course.id != primary_course_id
    ][:limit]
