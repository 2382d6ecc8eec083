"""
Tests for course recommendation.
"""

import pytest

from careerpath.core.matcher import (
    LegacyKeywordStrategy, TraitVectorStrategy, get_alternative_courses, recommend
)
from careerpath.core.models import (
    ConfidenceLabel, Course, QuizResponse, Stream, TraitVector, UserProfile
)
from careerpath.core.utils import get_confidence_label, round_half_up

SCIENCE_PROFILE = {"R": 20, "I": 85, "A": 30, "S": 40, "E": 25, "C": 15}
HANDS_ON_PROFILE = {"R": 90, "I": 30, "A": 10, "S": 20, "E": 15, "C": 25}
ANSWERS = {"q1": "some answer"}


def class_12():
    return UserProfile(class_level="12")


class TestTraitVectorRecommendation:

    def test_investigative_profile_gets_science_course(self, catalog):
        result = recommend(ANSWERS, class_12(), SCIENCE_PROFILE, catalog)

        assert result.stream == "science"
        assert result.course_id == "mbbs"
        assert result.match_score == 96
        assert result.confidence == ConfidenceLabel.HIGH
        assert result.strategy == "trait_vector"

    def test_equal_scores_keep_catalog_order(self, catalog):
        result = recommend(ANSWERS, class_12(), SCIENCE_PROFILE, catalog)
        assert result.alternative_courses == ["bds", "bsc-nursing", "bpharm"]

    def test_reasons_follow_top_traits_and_demand(self, catalog):
        result = recommend(ANSWERS, class_12(), SCIENCE_PROFILE, catalog)

        assert result.why_recommended == [
            "Strong analytical and problem-solving abilities",
            "Creative thinking and communication skills",
            "People-oriented and collaborative nature",
            "very high job market demand",
        ]

    def test_strong_realistic_weak_investigative_goes_vocational(self, catalog):
        result = recommend(ANSWERS, class_12(), HANDS_ON_PROFILE, catalog)

        assert result.stream == "vocational"
        assert result.course_id == "bvoc-automobile"
        assert result.match_score == 95
        assert result.alternative_courses == ["bvoc-hospitality", "diploma-aircraft-maintenance"]
        assert len(result.why_recommended) == 3

    def test_vocational_needs_realistic_above_eighty(self):
        traits = TraitVector.from_mapping({"R": 80, "I": 10})
        assert TraitVectorStrategy(traits).determine_stream() == Stream.SCIENCE

    def test_vocational_needs_investigative_below_fifty(self):
        traits = TraitVector.from_mapping({"R": 90, "I": 50})
        assert TraitVectorStrategy(traits).determine_stream() == Stream.SCIENCE

    @pytest.mark.parametrize("top, stream", [
        ("E", Stream.COMMERCE),
        ("C", Stream.COMMERCE),
        ("A", Stream.ARTS),
        ("S", Stream.ARTS),
        ("I", Stream.SCIENCE),
    ])
    def test_stream_by_top_trait(self, top, stream):
        traits = TraitVector.from_mapping({top: 40, "R": 10})
        assert TraitVectorStrategy(traits).determine_stream() == stream

    def test_all_zero_traits_default_to_science(self):
        assert TraitVectorStrategy(TraitVector()).determine_stream() == Stream.SCIENCE

    def test_class_10_profile_uses_class_10_courses(self, catalog):
        result = recommend(ANSWERS, {"class_level": "10"}, SCIENCE_PROFILE, catalog)

        assert result.course_id == "science-pcb"
        assert result.alternative_courses == ["science-pcmb", "science-pcm"]

    def test_confidence_uses_unrounded_score(self):
        course = Course(
            id="eng", name="Eng", full_name="Engineering", stream="science",
            branch="engineering", class_level="12"
        )
        result = recommend(ANSWERS, class_12(), {"I": 70, "R": 5}, [course])

        assert result.match_score == 80
        assert result.confidence == ConfidenceLabel.MEDIUM
        assert result.alternative_courses == []

    def test_accepts_response_sequences(self, catalog):
        responses = [QuizResponse(question_id="q1", answer="x")]
        result = recommend(responses, class_12(), SCIENCE_PROFILE, catalog)
        assert result.course_id == "mbbs"


class TestLegacyKeywordRecommendation:

    def test_keywords_pick_computer_science(self, catalog):
        answers = {"q1": "I love technology and coding", "q2": "problem solving is fun"}
        result = recommend(answers, class_12(), None, catalog)

        assert result.strategy == "legacy_keyword"
        assert result.course_id == "btech-cs"
        assert result.match_score == 85
        assert result.confidence == ConfidenceLabel.HIGH
        assert result.why_recommended == [
            "Strong technical and logical thinking ability",
            "Interest in technology and programming",
            "Excellent problem-solving skills",
            "very high job market demand",
        ]

    def test_business_keywords_for_class_10(self, catalog):
        answers = {"q1": "business and money"}
        result = recommend(answers, {"class_level": "10"}, None, catalog)

        assert result.stream == "commerce"
        assert result.course_id == "commerce-maths"
        assert result.match_score == 70
        assert result.confidence == ConfidenceLabel.MEDIUM
        assert result.alternative_courses == ["commerce-general"]

    def test_no_keywords_defaults_to_science(self):
        strategy = LegacyKeywordStrategy({"q1": "blue", "q2": 3})
        assert strategy.determine_stream() == Stream.SCIENCE

    def test_list_and_mapping_answers_are_searched(self):
        strategy = LegacyKeywordStrategy({"q1": ["history", "politics"], "q2": {"law": 1}})
        assert strategy.determine_stream() == Stream.ARTS


class TestRecommendationEdgeCases:

    def test_empty_answers_return_none(self, catalog):
        assert recommend({}, class_12(), SCIENCE_PROFILE, catalog) is None
        assert recommend(None, class_12(), SCIENCE_PROFILE, catalog) is None

    def test_no_courses_for_stream_returns_none(self, catalog):
        science_only = [course for course in catalog if course.stream == Stream.SCIENCE]
        assert recommend(ANSWERS, class_12(), {"E": 50}, science_only) is None

    def test_empty_catalog_returns_none(self):
        assert recommend(ANSWERS, class_12(), SCIENCE_PROFILE, []) is None

    def test_limits_hold_across_profiles(self, catalog):
        for top in ("R", "I", "A", "S", "E", "C"):
            result = recommend(ANSWERS, class_12(), {top: 60}, catalog)
            assert 0 <= result.match_score <= 100
            assert len(result.why_recommended) <= 4
            assert len(result.alternative_courses) <= 3
            assert result.course_id not in result.alternative_courses


class TestConfidence:

    @pytest.mark.parametrize("score, label", [
        (100, ConfidenceLabel.HIGH),
        (80, ConfidenceLabel.HIGH),
        (79.5, ConfidenceLabel.MEDIUM),
        (79, ConfidenceLabel.MEDIUM),
        (60, ConfidenceLabel.MEDIUM),
        (59.5, ConfidenceLabel.LOW),
        (59, ConfidenceLabel.LOW),
        (0, ConfidenceLabel.LOW),
    ])
    def test_boundaries(self, score, label):
        assert get_confidence_label(score) == label

    def test_round_half_up(self):
        assert round_half_up(69.5) == 70
        assert round_half_up(79.5) == 80
        assert round_half_up(79.49) == 79
        assert round_half_up(0) == 0


class TestAlternativeCourses:

    def test_same_stream_without_primary(self, catalog):
        alternatives = get_alternative_courses("ca", "commerce", catalog)
        assert [course.id for course in alternatives] == ["bcom", "bba", "company-secretary"]

    def test_respects_limit(self, catalog):
        assert len(get_alternative_courses("btech-cs", Stream.SCIENCE, catalog, limit=2)) == 2

    def test_unknown_primary_returns_empty(self, catalog):
        assert get_alternative_courses("nope", "science", catalog) == []
