from datetime import datetime, timedelta

import pytest

from careerpath.core.advisor import CareerAdvisor, SessionNotFoundError
from careerpath.core.models import QuestionType, QuizPhase, UserProfile

# Strongly investigative answers for the class 12 bank
BASELINE_ANSWERS = {
    "12-b1": "Mathematics and physics",
    "12-b2": ["Solving puzzles or coding"],
    "12-b3": {"research": 100},
}


def investigative_answer(question):
    if question.id in BASELINE_ANSWERS:
        return BASELINE_ANSWERS[question.id]
    if question.type == QuestionType.RATING:
        return 5 if question.category.value == "I" else 1
    return question.options[0].value


def run_quiz(advisor, profile):
    session, question = advisor.start_session(profile)
    asked = []
    while question is not None:
        asked.append(question.id)
        question, session = advisor.process_answer(
            session.session_id, question.id, investigative_answer(question)
        )
    return session, asked


class TestQuizFlow:

    def test_full_quiz_stops_early_on_dominant_trait(self, advisor):
        session, asked = run_quiz(advisor, UserProfile(class_level="12"))

        assert asked == ["12-b1", "12-b2", "12-b3", "12-i1", "12-r1", "12-a1", "12-i2", "12-r2"]
        assert session.phase == QuizPhase.COMPLETE
        assert session.completed_at is not None
        assert session.recommendation.course_id == "btech-cs"
        assert session.recommendation.match_score == 77

    def test_status_reports_progress(self, advisor):
        session, _ = run_quiz(advisor, UserProfile(class_level="12"))
        status = advisor.get_session_status(session.session_id)

        assert status["phase"] == "complete"
        assert status["questions_answered"] == 8
        assert status["progress_percentage"] == 80.0
        assert status["top_traits"][0] == "investigative"
        assert status["recommendation"]["course_id"] == "btech-cs"

    def test_class_10_students_get_class_10_questions(self, advisor):
        _, question = advisor.start_session(UserProfile(class_level="10th"))
        assert question.id == "10-b1"

    def test_missing_class_level_defaults_to_12(self, advisor):
        session, question = advisor.start_session()
        assert session.class_level.value == "12"
        assert question.id == "12-b1"


class TestAnswerValidation:

    def test_unknown_session(self, advisor):
        with pytest.raises(SessionNotFoundError):
            advisor.process_answer("nope", "12-b1", "Accountancy")

    def test_unknown_question(self, advisor):
        session, _ = advisor.start_session()
        with pytest.raises(ValueError):
            advisor.process_answer(session.session_id, "10-b1", "Accountancy")

    def test_only_the_served_question_can_be_answered(self, advisor):
        session, first = advisor.start_session(UserProfile(class_level="12"))
        assert session.pending_question_id == first.id == "12-b1"

        for skipped_to in ("12-r1", "12-i1", "12-b2"):
            with pytest.raises(ValueError):
                advisor.process_answer(session.session_id, skipped_to, 5)

        assert session.state.question_count == 0
        assert session.phase == QuizPhase.BASELINE

        next_question, session = advisor.process_answer(
            session.session_id, "12-b1", "Mathematics and physics"
        )
        assert next_question.id == "12-b2"
        assert session.pending_question_id == "12-b2"

    def test_baseline_cannot_be_bypassed(self, advisor):
        session, _ = run_quiz(advisor, UserProfile(class_level="12"))
        answered = [response.question_id for response in session.state.answered_questions]
        assert answered[:3] == ["12-b1", "12-b2", "12-b3"]
        assert session.pending_question_id is None

    def test_repeated_question(self, advisor):
        session, _ = advisor.start_session()
        advisor.process_answer(session.session_id, "12-b1", "Accountancy")
        with pytest.raises(ValueError):
            advisor.process_answer(session.session_id, "12-b1", "Accountancy")

    def test_answer_after_completion(self, advisor):
        session, _ = run_quiz(advisor, UserProfile(class_level="12"))
        with pytest.raises(ValueError):
            advisor.process_answer(session.session_id, "12-c1", 3)


class TestAccessAndHousekeeping:

    def test_parents_cannot_start_quiz(self, advisor):
        with pytest.raises(PermissionError):
            advisor.start_session(UserProfile(user_type="parent"))

    def test_parents_cannot_request_recommendations(self, advisor):
        with pytest.raises(PermissionError):
            advisor.recommend({"q1": "x"}, UserProfile(user_type="parent"), {"I": 80})

    def test_cleanup_removes_idle_sessions(self, advisor):
        stale, _ = advisor.start_session()
        fresh, _ = advisor.start_session()
        stale.last_activity = datetime.now() - timedelta(hours=48)

        assert advisor.cleanup_expired_sessions(24) == 1
        assert fresh.session_id in advisor.sessions
        assert stale.session_id not in advisor.sessions

    def test_empty_bank_completes_immediately(self, catalog):
        advisor = CareerAdvisor(banks={}, courses=catalog)
        session, question = advisor.start_session()

        assert question is None
        assert session.phase == QuizPhase.COMPLETE
        assert session.recommendation is None
