from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import logging
from datetime import datetime

from ..core.advisor import CareerAdvisor, SessionNotFoundError
from ..core.matcher import get_alternative_courses
from ..core.models import (
    AnswerQuestionRequest, CollegeCostRequest, EMIRequest, QuizPhase, QuizResponse,
    ReadinessRequest, RecommendationRequest, StartQuizRequest, Stream, TraitScoreRequest
)
from ..core.planning import build_readiness_report, calculate_college_cost, calculate_emi
from ..core.utils import resolve_class_level
from ..config import settings
from .. import __version__

logger = logging.getLogger(__name__)

router = APIRouter()

_advisor_instance: Optional[CareerAdvisor] = None


def get_advisor() -> CareerAdvisor:
    """Dependency returning the process-wide advisor"""
    global _advisor_instance
    if _advisor_instance is None:
        _advisor_instance = CareerAdvisor()
    return _advisor_instance


# QUIZ ENDPOINTS

@router.post("/quiz/start")
async def start_quiz(request: StartQuizRequest, advisor: CareerAdvisor = Depends(get_advisor)):
    """Start new adaptive quiz session"""
    try:
        session, first_question = advisor.start_session(request.profile)

        logger.info(f"Started quiz session {session.session_id}")
        return {
            "session_id": session.session_id,
            "class_level": session.class_level.value,
            "first_question": first_question.format_for_display() if first_question else None,
            "is_complete": session.phase == QuizPhase.COMPLETE,
            "estimated_questions": f"{settings.MIN_QUESTIONS}-{settings.MAX_QUESTIONS} questions",
            "message": "Answer honestly - there are no right or wrong answers.",
        }

    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to start quiz: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to start quiz session: {str(e)}"
        )


@router.post("/quiz/answer")
async def submit_answer(request: AnswerQuestionRequest, advisor: CareerAdvisor = Depends(get_advisor)):
    """Submit an answer and get the next question or the recommendation"""
    try:
        next_question, session = advisor.process_answer(
            request.session_id,
            request.question_id,
            request.answer
        )
        is_complete = session.phase == QuizPhase.COMPLETE
        recommendation = session.recommendation

        if is_complete and recommendation:
            message = (
                f"Quiz complete! Top match: {recommendation.course_name} "
                f"({recommendation.match_score}% match)"
            )
        elif is_complete:
            message = "Quiz complete, but no course matched your profile yet."
        else:
            message = f"Question {session.state.question_count} recorded"

        return {
            "next_question": next_question.format_for_display() if next_question else None,
            "is_complete": is_complete,
            "status": advisor.get_session_status(session.session_id),
            "recommendation": recommendation.model_dump(mode="json") if recommendation else None,
            "message": message,
        }

    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        logger.warning(f"Invalid request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to process answer: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process answer: {str(e)}"
        )


@router.get("/quiz/status/{session_id}")
async def get_quiz_status(session_id: str, advisor: CareerAdvisor = Depends(get_advisor)):
    """Get current status of a quiz session"""
    try:
        return advisor.get_session_status(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# SCORING AND RECOMMENDATION ENDPOINTS

@router.post("/traits/score")
async def score_traits_endpoint(request: TraitScoreRequest, advisor: CareerAdvisor = Depends(get_advisor)):
    """Score a full answer set without a session"""
    try:
        responses = [
            QuizResponse(question_id=item.question_id, answer=item.answer)
            for item in request.responses
        ]
        traits = advisor.score_responses(request.class_level, responses)

        return {
            "trait_scores": traits.as_dict(),
            "ranked": [
                {"category": category.full_name, "code": category.value, "score": score}
                for category, score in traits.ranked()
            ],
            "responses_scored": len(responses),
        }

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/recommendations")
async def get_recommendation(request: RecommendationRequest, advisor: CareerAdvisor = Depends(get_advisor)):
    """Stateless course recommendation from answers and optional trait scores"""
    try:
        recommendation = advisor.recommend(request.answers, request.profile, request.trait_scores)

        return {
            "recommendation": recommendation.model_dump(mode="json") if recommendation else None,
            "message": "Recommendation ready" if recommendation else "Not enough signal to recommend a course",
        }

    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# COURSE ENDPOINTS

@router.get("/courses")
async def list_courses(
    stream: Optional[Stream] = Query(None, description="Filter by stream"),
    class_level: Optional[str] = Query(None, description="10 or 12"),
    search: Optional[str] = Query(None, description="Search by name or description"),
    advisor: CareerAdvisor = Depends(get_advisor)
):
    """List catalog courses with optional filtering"""
    courses = advisor.courses

    if stream:
        courses = [course for course in courses if course.stream == stream]

    if class_level:
        level = resolve_class_level(class_level)
        courses = [course for course in courses if course.class_level == level]

    if search:
        search_lower = search.lower()
        courses = [
            course for course in courses
            if (search_lower in course.name.lower() or
                search_lower in course.full_name.lower() or
                search_lower in course.description.lower())
        ]

    logger.info(f"Listed {len(courses)} courses, stream={stream}, class_level={class_level}, search='{search}'")
    return {
        "courses": [course.model_dump(mode="json") for course in courses],
        "total": len(courses),
    }


@router.get("/courses/{course_id}")
async def get_course_details(course_id: str, advisor: CareerAdvisor = Depends(get_advisor)):
    course = advisor.get_course(course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course.model_dump(mode="json")


@router.get("/courses/{course_id}/alternatives")
async def get_course_alternatives(
    course_id: str,
    limit: int = Query(3, ge=1, le=10, description="Number of alternatives"),
    advisor: CareerAdvisor = Depends(get_advisor)
):
    """Other courses in the same stream"""
    course = advisor.get_course(course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    alternatives = get_alternative_courses(course_id, course.stream, advisor.courses, limit)
    return {
        "course": {"id": course.id, "name": course.name},
        "alternatives": [
            {"id": alt.id, "name": alt.name, "full_name": alt.full_name, "demand": alt.demand}
            for alt in alternatives
        ],
        "total_found": len(alternatives),
    }


# PLANNING ENDPOINTS

@router.post("/planning/readiness")
async def career_readiness(request: ReadinessRequest):
    report = build_readiness_report(
        request.profile,
        request.quiz_answer_count,
        request.saved_colleges,
        request.saved_career_paths
    )
    return report.model_dump()


@router.post("/planning/emi")
async def education_loan_emi(request: EMIRequest):
    try:
        estimate = calculate_emi(request.loan_amount, request.annual_interest_rate, request.tenure_years)
        return estimate.model_dump()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/planning/college-cost")
async def college_cost(request: CollegeCostRequest):
    try:
        estimate = calculate_college_cost(
            request.tuition, request.hostel, request.books, request.misc, request.years
        )
        return estimate.model_dump()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# MONITORING ENDPOINTS

@router.get("/health")
async def health_check(advisor: CareerAdvisor = Depends(get_advisor)):
    """Health check endpoint"""
    question_counts = {
        level.value: len(bank.all_questions()) for level, bank in advisor.banks.items()
    }
    healthy = bool(advisor.courses) and any(question_counts.values())

    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now().isoformat(),
        "service": "CareerPath Advisor",
        "version": __version__,
        "components": {
            "courses_loaded": len(advisor.courses),
            "questions_loaded": question_counts,
            "active_sessions": len(advisor.sessions),
        },
        "configuration": {
            "max_questions": settings.MAX_QUESTIONS,
            "min_questions": settings.MIN_QUESTIONS,
            "confidence_gap": settings.CONFIDENCE_GAP,
        },
    }


@router.get("/stats")
async def get_usage_statistics(advisor: CareerAdvisor = Depends(get_advisor)):
    """Session usage statistics"""
    sessions = list(advisor.sessions.values())
    completed = [s for s in sessions if s.phase == QuizPhase.COMPLETE]

    course_counts = {}
    stream_counts = {}
    for session in completed:
        if session.recommendation:
            course_id = session.recommendation.course_id
            course_counts[course_id] = course_counts.get(course_id, 0) + 1
            stream = session.recommendation.stream
            stream_counts[stream] = stream_counts.get(stream, 0) + 1

    question_counts = [s.state.question_count for s in sessions]
    avg_questions = sum(question_counts) / len(question_counts) if question_counts else 0
    completion_rate = len(completed) / len(sessions) if sessions else 0

    return {
        "summary": {
            "total_sessions": len(sessions),
            "completed_sessions": len(completed),
            "active_sessions": len(sessions) - len(completed),
            "completion_rate": round(completion_rate, 3),
        },
        "metrics": {
            "average_questions_per_session": round(avg_questions, 1),
            "stream_distribution": stream_counts,
        },
        "popular_courses": sorted(course_counts.items(), key=lambda x: x[1], reverse=True)[:5],
        "timestamp": datetime.now().isoformat(),
    }


@router.post("/admin/cleanup")
async def cleanup_sessions(
    max_age_hours: int = Query(settings.SESSION_MAX_AGE_HOURS, ge=1, le=168),
    advisor: CareerAdvisor = Depends(get_advisor)
):
    """Clean up idle sessions (admin endpoint)"""
    removed = advisor.cleanup_expired_sessions(max_age_hours)

    logger.info(f"Session cleanup: removed {removed} sessions older than {max_age_hours}h")
    return {
        "sessions_removed": removed,
        "sessions_remaining": len(advisor.sessions),
        "max_age_hours": max_age_hours,
        "timestamp": datetime.now().isoformat(),
    }
