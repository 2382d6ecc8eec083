from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings

PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Application configuration with environment variable support"""

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    RELOAD: bool = False
    LOG_LEVEL: str = "INFO"

    # Quiz settings
    BASELINE_QUESTIONS: int = 3
    MIN_QUESTIONS: int = 8
    MAX_QUESTIONS: int = 12
    CONFIDENCE_GAP: float = 25.0
    PROGRESS_TARGET_QUESTIONS: int = 10

    # Session housekeeping
    SESSION_MAX_AGE_HOURS: int = 24

    # Data paths
    DATA_DIR: str = str(PACKAGE_DIR / "data")
    QUESTION_BANK_10TH_FILE: str = str(PACKAGE_DIR / "data" / "question_bank_10th.json")
    QUESTION_BANK_12TH_FILE: str = str(PACKAGE_DIR / "data" / "question_bank_12th.json")
    COURSES_FILE: str = str(PACKAGE_DIR / "data" / "courses.json")

    # CORS settings
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:9002",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "CAREERPATH_"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
