"""
Dashboard and parent-zone calculations: career readiness, education-loan
EMI and total college cost.
"""

from typing import List, Optional, Tuple
from pydantic import BaseModel, Field

from .models import UserProfile


MAX_READINESS_SCORE = 100
QUIZ_COMPLETED_POINTS = 30
POINTS_PER_SAVED_ITEM = 4
MAX_SAVED_ITEM_POINTS = 20
PROFILE_FIELD_POINTS = 5
DEEP_ENGAGEMENT_POINTS = 30
LIGHT_ENGAGEMENT_POINTS = 15
DEEP_ENGAGEMENT_ANSWERS = 10
SAVED_ITEMS_MILESTONE = 3


class ReadinessSuggestion(BaseModel):
    text: str
    link: str
    points: str


class ReadinessReport(BaseModel):
    score: int = Field(..., ge=0, le=100)
    label: str
    description: str
    milestones_completed: int = Field(..., ge=0, le=3)
    suggestions: List[ReadinessSuggestion] = Field(default_factory=list)


class LoanEstimate(BaseModel):
    monthly_emi: float
    total_payment: float
    total_interest: float
    months: int


class CostEstimate(BaseModel):
    yearly_total: float
    total_cost: float
    years: int


def _profile_complete(profile: UserProfile) -> bool:
    return all([profile.name, profile.class_level, profile.gender, profile.email])


def calculate_readiness_score(
    profile: Optional[UserProfile],
    quiz_answer_count: int,
    saved_item_count: int
) -> int:
    """Career readiness score out of 100; 0 without a profile"""
    if profile is None:
        return 0

    score = 0

    if quiz_answer_count > 0:
        score += QUIZ_COMPLETED_POINTS

    score += min(saved_item_count * POINTS_PER_SAVED_ITEM, MAX_SAVED_ITEM_POINTS)

    for field in (profile.name, profile.class_level, profile.gender, profile.email):
        if field:
            score += PROFILE_FIELD_POINTS

    # Engagement, by depth of quiz answers
    if quiz_answer_count >= DEEP_ENGAGEMENT_ANSWERS:
        score += DEEP_ENGAGEMENT_POINTS
    elif quiz_answer_count > 0:
        score += LIGHT_ENGAGEMENT_POINTS

    return min(score, MAX_READINESS_SCORE)


def readiness_label(score: int) -> Tuple[str, str]:
    if score >= 80:
        return "Path Master", "You're crushing it!"
    elif score >= 60:
        return "Rising Explorer", "Great progress!"
    elif score >= 40:
        return "Career Seeker", "Keep going!"
    else:
        return "Just Starting", "Every journey begins somewhere!"


def build_readiness_report(
    profile: Optional[UserProfile],
    quiz_answer_count: int = 0,
    saved_colleges: int = 0,
    saved_career_paths: int = 0
) -> ReadinessReport:
    """Score, label, milestone count and suggestions for the dashboard"""
    saved_items = saved_colleges + saved_career_paths
    score = calculate_readiness_score(profile, quiz_answer_count, saved_items)
    label, description = readiness_label(score)

    quiz_completed = quiz_answer_count > 0
    enough_saved = saved_items >= SAVED_ITEMS_MILESTONE
    profile_complete = profile is not None and _profile_complete(profile)

    suggestions = []
    if not quiz_completed:
        suggestions.append(ReadinessSuggestion(
            text="Complete the aptitude quiz", link="/quiz", points="+30 points"
        ))
    if not enough_saved:
        suggestions.append(ReadinessSuggestion(
            text="Save colleges and career paths", link="/colleges", points="+20 points"
        ))
    if not profile_complete:
        suggestions.append(ReadinessSuggestion(
            text="Complete your profile", link="/profile", points="+20 points"
        ))

    return ReadinessReport(
        score=score,
        label=label,
        description=description,
        milestones_completed=sum([quiz_completed, enough_saved, profile_complete]),
        suggestions=suggestions,
    )


def calculate_emi(loan_amount: float, annual_interest_rate: float, tenure_years: int) -> LoanEstimate:
    """
    Monthly instalment for an education loan

    EMI = P * r * (1 + r)^n / ((1 + r)^n - 1), with r the monthly rate and
    n the number of months. A zero rate spreads the principal evenly.
    """
    if loan_amount <= 0:
        raise ValueError(f"Loan amount must be positive, got {loan_amount}")
    if tenure_years <= 0:
        raise ValueError(f"Tenure must be at least one year, got {tenure_years}")
    if annual_interest_rate < 0:
        raise ValueError(f"Interest rate cannot be negative, got {annual_interest_rate}")

    monthly_rate = annual_interest_rate / 12 / 100
    months = tenure_years * 12

    if monthly_rate == 0:
        emi = loan_amount / months
    else:
        growth = (1 + monthly_rate) ** months
        emi = loan_amount * monthly_rate * growth / (growth - 1)

    total_payment = emi * months
    return LoanEstimate(
        monthly_emi=round(emi, 2),
        total_payment=round(total_payment, 2),
        total_interest=round(total_payment - loan_amount, 2),
        months=months,
    )


def calculate_college_cost(
    tuition: float,
    hostel: float,
    books: float,
    misc: float,
    years: int
) -> CostEstimate:
    """Yearly and whole-course cost of a college programme"""
    if min(tuition, hostel, books, misc) < 0:
        raise ValueError("Cost components cannot be negative")
    if not 1 <= years <= 6:
        raise ValueError(f"Course duration must be 1-6 years, got {years}")

    yearly_total = tuition + hostel + books + misc
    return CostEstimate(yearly_total=yearly_total, total_cost=yearly_total * years, years=years)
