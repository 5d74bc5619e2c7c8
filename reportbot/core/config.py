"""
ReportBot 설정 관리 모듈
"""

from datetime import datetime
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "1.0.0"


class Settings(BaseSettings):
    """애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 프로젝트 경로
    BASE_DIR: Path = Path(__file__).parent.parent.parent

    # 데이터베이스
    database_url: str = Field(default="sqlite:///./reportbot.db")

    # Telegram Bot API
    telegram_bot_token: str = Field(default="")
    telegram_api_base: str = Field(default="https://api.telegram.org")

    # 발송 재시도 / 타임아웃 (초)
    delivery_max_retries: int = Field(default=3, ge=1)
    delivery_text_timeout: float = Field(default=10.0)
    delivery_document_timeout: float = Field(default=30.0)

    # 스케줄러
    scheduler_timezone: str = Field(default="America/Mexico_City")
    scheduler_autostart: bool = Field(default=True)

    # 문서 문제 리포트 - 최근 N개월
    document_window_months: int = Field(default=2, ge=1)

    # 로깅
    log_level: str = Field(default="INFO")

    # API
    api_port: int = Field(default=9070)

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.scheduler_timezone)


@lru_cache()
def get_settings() -> Settings:
    """설정 싱글톤 반환"""
    return Settings()


settings = get_settings()


def now_local() -> datetime:
    """스케줄러 타임존 기준 현재 시각"""
    return datetime.now(settings.timezone)
