from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    aggregation_workers: int = Field(1, ge=1, alias="LEDGER_AGGREGATION_WORKERS")
    attendance_trend_days: int = Field(7, ge=1, alias="LEDGER_ATTENDANCE_TREND_DAYS")
    exam_pass_percent: int = Field(33, ge=0, le=100, alias="LEDGER_EXAM_PASS_PERCENT")
    top_class_limit: int = Field(10, ge=1, alias="LEDGER_TOP_CLASS_LIMIT")

    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
