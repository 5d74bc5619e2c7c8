"""
설정 관리 Pydantic 스키마
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

SECRET_KEYS = {"telegram_bot_token"}


class AppSettingUpdate(BaseModel):
    value: str = Field(..., max_length=1000)
    value_type: Optional[str] = Field(None, max_length=20)
    category: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)


class AppSettingResponse(BaseModel):
    """응답 스키마 - 비밀 값은 마스킹"""
    id: int
    key: str
    value: str
    value_type: str
    category: str
    description: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

    @field_validator("value")
    @classmethod
    def _mask_secret(cls, value: str, info) -> str:
        key = info.data.get("key")
        if key in SECRET_KEYS and value:
            return value[:4] + "***"
        return value


class SetupStatusResponse(BaseModel):
    telegram_configured: bool
    active_configs_count: int
    telegram_users_count: int
    app_settings_count: int
    is_ready: bool
