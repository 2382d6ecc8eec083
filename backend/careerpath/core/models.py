from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Tuple, Union
from pydantic import BaseModel, Field, field_validator
import uuid


class TraitCategory(str, Enum):
    """RIASEC personality-interest dimensions, in canonical order"""
    REALISTIC = "R"
    INVESTIGATIVE = "I"
    ARTISTIC = "A"
    SOCIAL = "S"
    ENTERPRISING = "E"
    CONVENTIONAL = "C"

    @property
    def full_name(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, key: Any) -> "TraitCategory":
        """Accept a category, its letter code or its full name"""
        if isinstance(key, cls):
            return key
        text = str(key).strip()
        for category in cls:
            if text.upper() == category.value or text.lower() == category.full_name:
                return category
        raise ValueError(f"Unknown trait category: {key}")


def _parse_weight_table(table: Optional[Dict[Any, Any]]) -> Dict[TraitCategory, float]:
    parsed: Dict[TraitCategory, float] = {}
    for key, weight in (table or {}).items():
        weight = float(weight)
        if weight < 0:
            raise ValueError(f"Weight for {key} must be non-negative, got {weight}")
        parsed[TraitCategory.parse(key)] = weight
    return parsed


class TraitVector(BaseModel):
    """Score for each of the six trait categories; all six are always present"""
    scores: Dict[TraitCategory, float] = Field(default_factory=dict, validate_default=True)

    @field_validator("scores", mode="before")
    @classmethod
    def _fill_categories(cls, value):
        filled = {category: 0.0 for category in TraitCategory}
        filled.update(_parse_weight_table(value))
        return filled

    @classmethod
    def from_mapping(cls, mapping: Optional[Dict[Any, float]]) -> "TraitVector":
        return cls(scores=mapping or {})

    def get(self, category: Union[TraitCategory, str]) -> float:
        return self.scores[TraitCategory.parse(category)]

    def ranked(self) -> List[Tuple[TraitCategory, float]]:
        """Categories by descending score; ties keep R-I-A-S-E-C order"""
        return sorted(
            ((category, self.scores[category]) for category in TraitCategory),
            key=lambda item: item[1],
            reverse=True
        )

    def top(self, n: int = 3) -> List[TraitCategory]:
        return [category for category, _ in self.ranked()[:n]]

    def as_dict(self) -> Dict[str, float]:
        return {category.value: score for category, score in self.scores.items()}


# Answer variants

class SingleChoice(BaseModel):
    kind: Literal["single_choice"] = "single_choice"
    value: str

    class Config:
        frozen = True


class Rating(BaseModel):
    kind: Literal["rating"] = "rating"
    value: int

    class Config:
        frozen = True


class MultiChoice(BaseModel):
    kind: Literal["multi_choice"] = "multi_choice"
    values: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class Distribution(BaseModel):
    kind: Literal["distribution"] = "distribution"
    weights: Dict[str, float] = Field(default_factory=dict)

    class Config:
        frozen = True


Answer = Annotated[
    Union[SingleChoice, Rating, MultiChoice, Distribution],
    Field(discriminator="kind")
]

RawAnswer = Union[int, str, List[str], Dict[str, float]]

_ANSWER_KINDS = {
    "single_choice": SingleChoice,
    "rating": Rating,
    "multi_choice": MultiChoice,
    "distribution": Distribution,
}


def coerce_answer(raw: Any) -> Union[SingleChoice, Rating, MultiChoice, Distribution]:
    """Turn a raw answer shape (str, number, list, mapping) into its variant"""
    if isinstance(raw, (SingleChoice, Rating, MultiChoice, Distribution)):
        return raw
    if isinstance(raw, dict) and "kind" in raw:
        variant = _ANSWER_KINDS.get(raw["kind"])
        if variant is None:
            raise ValueError(f"Unknown answer kind: {raw['kind']}")
        return variant(**raw)
    if isinstance(raw, bool):
        raise ValueError("Boolean answers are not supported")
    if isinstance(raw, str):
        return SingleChoice(value=raw)
    if isinstance(raw, (int, float)):
        # utils imports this module, so import at call time
        from .utils import round_half_up
        return Rating(value=round_half_up(raw))
    if isinstance(raw, (list, tuple, set, frozenset)):
        return MultiChoice(values=[str(item) for item in raw])
    if isinstance(raw, dict):
        return Distribution(weights={str(k): float(v) for k, v in raw.items()})
    raise ValueError(f"Unsupported answer type: {type(raw).__name__}")


class QuizResponse(BaseModel):
    """One recorded answer; never edited after it is recorded"""
    question_id: str
    answer: Answer

    class Config:
        frozen = True

    @field_validator("answer", mode="before")
    @classmethod
    def _coerce(cls, value):
        return coerce_answer(value)


# Question bank

class QuestionType(str, Enum):
    """Types of questions available"""
    SINGLE_CHOICE = "single_choice"
    RATING = "rating"
    MULTI_CHOICE = "multi_choice"
    DISTRIBUTION = "distribution"


class AnswerOption(BaseModel):
    value: str
    label: Optional[str] = None
    weights: Dict[TraitCategory, float] = Field(default_factory=dict)

    @field_validator("weights", mode="before")
    @classmethod
    def _parse_weights(cls, value):
        return _parse_weight_table(value)


class Question(BaseModel):
    """Quiz question with a per-answer weight table"""
    id: str
    text: str
    type: QuestionType = QuestionType.SINGLE_CHOICE
    category: Optional[TraitCategory] = None
    options: List[AnswerOption] = Field(default_factory=list)
    scale_min: int = 1
    scale_max: int = 5
    scale_weights: Dict[TraitCategory, float] = Field(default_factory=dict)

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value):
        return None if value is None else TraitCategory.parse(value)

    @field_validator("scale_weights", mode="before")
    @classmethod
    def _parse_scale_weights(cls, value):
        return _parse_weight_table(value)

    def weights_for(self, value: Any) -> Dict[TraitCategory, float]:
        """
        Weight table for one literal answer value

        Explicit options win; rating questions without a matching option
        scale `scale_weights` by the number of points above `scale_min`.
        """
        key = str(value)
        for option in self.options:
            if option.value == key:
                return option.weights

        if self.type == QuestionType.RATING and self.scale_weights:
            try:
                rating = int(float(value))
            except (TypeError, ValueError):
                return {}
            rating = max(self.scale_min, min(self.scale_max, rating))
            steps = rating - self.scale_min
            return {category: weight * steps for category, weight in self.scale_weights.items()}

        return {}

    def format_for_display(self) -> Dict[str, Any]:
        """Question without its weight tables"""
        data = {
            "id": self.id,
            "text": self.text,
            "type": self.type.value,
            "category": self.category.full_name if self.category else None,
            "options": [
                {"value": option.value, "label": option.label or option.value}
                for option in self.options
            ],
        }
        if self.type == QuestionType.RATING:
            data["scale"] = {"min": self.scale_min, "max": self.scale_max}
        return data


class QuestionBank(BaseModel):
    """Baseline questions plus one deep-dive pool per trait category"""
    class_level: str = "12"
    baseline: List[Question] = Field(default_factory=list)
    deepdive: Dict[str, List[Question]] = Field(default_factory=dict)

    @field_validator("deepdive", mode="before")
    @classmethod
    def _normalise_pool_keys(cls, value):
        pools = {}
        for key, questions in (value or {}).items():
            try:
                key = TraitCategory.parse(key).full_name
            except ValueError:
                pass
            pools[key] = questions or []
        return pools

    def pool(self, category: TraitCategory) -> List[Question]:
        return self.deepdive.get(category.full_name, [])

    def all_questions(self) -> List[Question]:
        questions = list(self.baseline)
        for pool in self.deepdive.values():
            questions.extend(pool)
        return questions

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self.all_questions():
            if question.id == question_id:
                return question
        return None


class QuizPhase(str, Enum):
    BASELINE = "baseline"
    DEEP_DIVE = "deep_dive"
    COMPLETE = "complete"


class QuizState(BaseModel):
    """Working state of one in-progress quiz; each update yields a new state"""
    answered_questions: Tuple[QuizResponse, ...] = ()
    current_scores: TraitVector = Field(default_factory=TraitVector)
    asked_question_ids: FrozenSet[str] = frozenset()
    question_count: int = Field(0, ge=0)

    class Config:
        frozen = True


# Courses and recommendations

class Stream(str, Enum):
    SCIENCE = "science"
    COMMERCE = "commerce"
    ARTS = "arts"
    VOCATIONAL = "vocational"


class Branch(str, Enum):
    ENGINEERING = "engineering"
    MEDICAL = "medical"
    BUSINESS = "business"
    FINANCE = "finance"
    LAW = "law"
    HUMANITIES = "humanities"
    SKILLED = "skilled"


class ClassLevel(str, Enum):
    TENTH = "10"
    TWELFTH = "12"


class Course(BaseModel):
    """Course catalog entry"""
    id: str
    name: str
    full_name: str
    stream: Stream
    branch: Branch
    class_level: ClassLevel
    demand: str = "Medium"
    duration: str = ""
    description: str = ""
    entrance_exams: List[str] = Field(default_factory=list)
    career_paths: List[str] = Field(default_factory=list)
    average_fees: Optional[str] = None


class UserType(str, Enum):
    STUDENT = "student"
    PARENT = "parent"


class UserProfile(BaseModel):
    user_type: UserType = UserType.STUDENT
    class_level: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None


class ConfidenceLabel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CareerRecommendation(BaseModel):
    course_id: str
    course_name: str
    stream: str
    match_score: int = Field(..., ge=0, le=100)
    why_recommended: List[str] = Field(default_factory=list, max_length=4)
    alternative_courses: List[str] = Field(default_factory=list, max_length=3)
    confidence: ConfidenceLabel
    strategy: str

    class Config:
        frozen = True


# Session model

class QuizSession(BaseModel):
    """Quiz session held by the advisor"""
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    profile: UserProfile = Field(default_factory=UserProfile)
    class_level: ClassLevel = ClassLevel.TWELFTH
    state: QuizState = Field(default_factory=QuizState)
    phase: QuizPhase = QuizPhase.BASELINE
    pending_question_id: Optional[str] = None
    recommendation: Optional[CareerRecommendation] = None
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    last_activity: datetime = Field(default_factory=datetime.now)

    def update_activity(self):
        """Update last activity timestamp"""
        self.last_activity = datetime.now()


# API Request/Response Models

class ResponseItem(BaseModel):
    question_id: str
    answer: RawAnswer


class StartQuizRequest(BaseModel):
    """Request to start a new quiz session"""
    profile: Optional[UserProfile] = None


class AnswerQuestionRequest(BaseModel):
    """Request to submit a question answer"""
    session_id: str
    question_id: str
    answer: RawAnswer


class TraitScoreRequest(BaseModel):
    class_level: Optional[str] = None
    responses: List[ResponseItem] = Field(default_factory=list)


class RecommendationRequest(BaseModel):
    answers: Dict[str, RawAnswer] = Field(default_factory=dict)
    profile: UserProfile = Field(default_factory=UserProfile)
    trait_scores: Optional[Dict[str, float]] = None


class ReadinessRequest(BaseModel):
    profile: Optional[UserProfile] = None
    quiz_answer_count: int = Field(0, ge=0)
    saved_colleges: int = Field(0, ge=0)
    saved_career_paths: int = Field(0, ge=0)


class EMIRequest(BaseModel):
    loan_amount: float = Field(500000, gt=0)
    annual_interest_rate: float = Field(8.5, ge=0, le=50)
    tenure_years: int = Field(5, ge=1, le=30)


class CollegeCostRequest(BaseModel):
    tuition: float = Field(50000, ge=0)
    hostel: float = Field(40000, ge=0)
    books: float = Field(10000, ge=0)
    misc: float = Field(20000, ge=0)
    years: int = Field(4, ge=1, le=6)
