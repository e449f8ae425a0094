from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    # App
    APP_NAME: str = "CourseHub"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./coursehub.db"

    # Security
    SECRET_KEY: str = "your-secret-key-here-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Subscription lifecycle
    SCHEDULER_ENABLED: bool = True
    SUBSCRIPTION_CHECK_INTERVAL_HOURS: int = 24
    EXPIRY_LOOKAHEAD_DAYS: int = 7
    EXPIRY_NOTIFICATION_DAYS: List[int] = [7, 3, 1]

    # Grading / entitlement policy
    SHORT_ANSWER_MATCH_RATIO: float = 0.5
    PAID_PAYMENT_STATUSES: List[str] = ["approved", "confirmed"]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
