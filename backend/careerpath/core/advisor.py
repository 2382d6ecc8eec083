import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from .models import (
    CareerRecommendation, ClassLevel, Course, Question, QuestionBank, QuizPhase,
    QuizResponse, QuizSession, TraitVector, UserProfile, UserType
)
from .data_loader import load_courses, load_question_banks, validate_data_integrity
from .matcher import recommend
from .scoring import score_traits
from .selector import (
    get_quiz_progress, initialize_quiz_state, quiz_phase, select_next_question,
    update_quiz_state
)
from .utils import resolve_class_level
from ..config import settings

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    pass


def ensure_student(profile: Optional[UserProfile]):
    """Parents use the parent zone; quiz and recommendations are for students"""
    if profile is not None and profile.user_type == UserType.PARENT:
        raise PermissionError("Quiz and recommendations are only available to students")


class CareerAdvisor:
    """
    Drives quiz sessions for the HTTP layer

    Holds the question banks, the course catalog and the in-progress
    sessions. Every scoring, selection and matching decision is delegated to
    the pure functions in scoring, selector and matcher.
    """

    def __init__(
        self,
        banks: Optional[Dict[ClassLevel, QuestionBank]] = None,
        courses: Optional[List[Course]] = None
    ):
        self.banks: Dict[ClassLevel, QuestionBank] = banks if banks is not None else {}
        self.courses: List[Course] = courses if courses is not None else []
        self.sessions: Dict[str, QuizSession] = {}

        if banks is None or courses is None:
            self._load_data(load_banks=banks is None, load_catalog=courses is None)

        logger.info(
            f"CareerAdvisor initialized: {len(self.banks)} question banks, "
            f"{len(self.courses)} courses"
        )

    def _load_data(self, load_banks: bool = True, load_catalog: bool = True):
        """Load question banks and the course catalog from JSON files"""
        try:
            if load_banks:
                self.banks = load_question_banks({
                    ClassLevel.TENTH: settings.QUESTION_BANK_10TH_FILE,
                    ClassLevel.TWELFTH: settings.QUESTION_BANK_12TH_FILE,
                })
            if load_catalog:
                self.courses = load_courses(settings.COURSES_FILE)
        except Exception as e:
            logger.error(f"Failed to load data: {e}")
            raise RuntimeError(f"Data loading failed: {e}")

        _, errors = validate_data_integrity(self.banks, self.courses)
        for error in errors:
            logger.warning(error)

    def get_bank(self, class_level: ClassLevel) -> QuestionBank:
        # An absent bank behaves as an empty one: the quiz simply has no questions
        return self.banks.get(class_level) or QuestionBank(class_level=class_level.value)

    def get_course(self, course_id: str) -> Optional[Course]:
        for course in self.courses:
            if course.id == course_id:
                return course
        return None

    def get_session(self, session_id: str) -> QuizSession:
        session = self.sessions.get(session_id)
        if not session:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session

    def start_session(self, profile: Optional[UserProfile] = None) -> Tuple[QuizSession, Optional[Question]]:
        """Start new quiz session and return it with its first question"""
        ensure_student(profile)
        profile = profile or UserProfile()

        session = QuizSession(
            profile=profile,
            class_level=resolve_class_level(profile.class_level),
            state=initialize_quiz_state(),
        )
        self.sessions[session.session_id] = session

        first_question = select_next_question(session.state, self.get_bank(session.class_level))
        session.pending_question_id = first_question.id if first_question else None
        if first_question is None:
            self._complete(session)

        logger.info(f"Started session {session.session_id} for class {session.class_level.value}")
        return session, first_question

    def process_answer(
        self, session_id: str, question_id: str, answer: Any
    ) -> Tuple[Optional[Question], QuizSession]:
        """Record an answer and return the next question (None once complete)"""
        session = self.get_session(session_id)
        bank = self.get_bank(session.class_level)

        if session.phase == QuizPhase.COMPLETE:
            raise ValueError(f"Quiz already complete for session {session_id}")

        if bank.get_question(question_id) is None:
            raise ValueError(f"Question not found: {question_id}")

        if question_id in session.state.asked_question_ids:
            raise ValueError(f"Question already answered: {question_id}")

        if question_id != session.pending_question_id:
            raise ValueError(
                f"Expected an answer to {session.pending_question_id}, got {question_id}"
            )

        session.state = update_quiz_state(session.state, question_id, answer, bank)
        session.update_activity()

        next_question = select_next_question(session.state, bank)
        session.pending_question_id = next_question.id if next_question else None
        if next_question is None:
            self._complete(session)
        else:
            session.phase = quiz_phase(session.state)

        logger.info(
            f"Session {session_id}: {session.state.question_count} answered, "
            f"phase={session.phase.value}"
        )
        return next_question, session

    def _complete(self, session: QuizSession):
        session.phase = QuizPhase.COMPLETE
        session.completed_at = datetime.now()
        session.recommendation = self.recommend_for_session(session)

        if session.recommendation:
            logger.info(
                f"Quiz complete for session {session.session_id}: {session.recommendation.course_id}"
            )
        else:
            logger.info(f"Quiz complete for session {session.session_id} without a recommendation")

    def recommend_for_session(self, session: QuizSession) -> Optional[CareerRecommendation]:
        answers = {response.question_id: response.answer for response in session.state.answered_questions}
        return recommend(answers, session.profile, session.state.current_scores, self.courses)

    def score_responses(self, class_level: Optional[str], responses: List[QuizResponse]) -> TraitVector:
        bank = self.get_bank(resolve_class_level(class_level))
        return score_traits(responses, bank)

    def recommend(
        self,
        answers: Dict[str, Any],
        profile: UserProfile,
        trait_scores: Optional[Dict[str, float]] = None
    ) -> Optional[CareerRecommendation]:
        ensure_student(profile)
        return recommend(answers, profile, trait_scores, self.courses)

    def get_session_status(self, session_id: str) -> Dict[str, Any]:
        """Get detailed session status"""
        session = self.get_session(session_id)
        state = session.state
        return {
            "session_id": session_id,
            "phase": session.phase.value,
            "questions_answered": state.question_count,
            "progress_percentage": round(get_quiz_progress(state), 1),
            "trait_scores": state.current_scores.as_dict(),
            "top_traits": [category.full_name for category in state.current_scores.top(3)],
            "recommendation": session.recommendation.model_dump(mode="json") if session.recommendation else None,
            "created_at": session.created_at.isoformat(),
            "last_activity": session.last_activity.isoformat(),
        }

    def cleanup_expired_sessions(self, max_age_hours: int = 24) -> int:
        """Drop sessions idle for longer than max_age_hours"""
        cutoff = datetime.now() - timedelta(hours=max_age_hours)

        expired_sessions = [
            sid for sid, session in self.sessions.items()
            if session.last_activity < cutoff
        ]
        for sid in expired_sessions:
            del self.sessions[sid]

        if expired_sessions:
            logger.info(f"Cleaned up {len(expired_sessions)} expired sessions")
        return len(expired_sessions)
