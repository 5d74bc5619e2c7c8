"""
앱 설정 API (Key-Value 설정, 준비 상태, .env 시드)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....models.app_setting import AppSetting
from ....models.user import TelegramUser
from ....schemas.config import AppSettingUpdate, AppSettingResponse, SetupStatusResponse
from ....services import config_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config", tags=["설정 관리"])


@router.get("/settings", response_model=list[AppSettingResponse])
def list_settings(category: Optional[str] = None, db: Session = Depends(get_db)):
    """앱 설정 목록 조회"""
    query = db.query(AppSetting).order_by(AppSetting.category, AppSetting.key)
    if category:
        query = query.filter(AppSetting.category == category)
    return query.all()


@router.get("/settings/{key}", response_model=AppSettingResponse)
def get_setting(key: str, db: Session = Depends(get_db)):
    """앱 설정 단건 조회"""
    setting = db.query(AppSetting).filter(AppSetting.key == key).first()
    if not setting:
        raise HTTPException(status_code=404, detail=f"설정 '{key}'을(를) 찾을 수 없습니다.")
    return setting


@router.put("/settings/{key}", response_model=AppSettingResponse)
def update_setting(key: str, data: AppSettingUpdate, db: Session = Depends(get_db)):
    """앱 설정 수정 (없으면 생성)"""
    setting = db.query(AppSetting).filter(AppSetting.key == key).first()
    if setting:
        setting.value = data.value
        if data.value_type is not None:
            setting.value_type = data.value_type
        if data.category is not None:
            setting.category = data.category
        if data.description is not None:
            setting.description = data.description
    else:
        setting = AppSetting(
            key=key,
            value=data.value,
            value_type=data.value_type or "string",
            category=data.category or "general",
            description=data.description,
        )
        db.add(setting)

    db.commit()
    db.refresh(setting)
    logger.info(f"설정 변경: {key}")
    return setting


@router.get("/setup-status", response_model=SetupStatusResponse)
def get_setup_status(db: Session = Depends(get_db)):
    """초기 설정 완료 여부"""
    telegram_configured = bool(config_service.get_telegram_config(db)["bot_token"])
    active_configs_count = len(config_service.list_active_configs(db))
    telegram_users_count = db.query(TelegramUser).filter(
        TelegramUser.is_active == True  # noqa: E712
    ).count()
    settings_count = db.query(AppSetting).count()

    return SetupStatusResponse(
        telegram_configured=telegram_configured,
        active_configs_count=active_configs_count,
        telegram_users_count=telegram_users_count,
        app_settings_count=settings_count,
        is_ready=telegram_configured and active_configs_count > 0 and telegram_users_count > 0,
    )


@router.post("/seed")
def seed_from_env(db: Session = Depends(get_db)):
    """.env 값을 DB 설정으로 시드"""
    result = config_service.seed_from_env(db)
    return {
        "message": f"{len(result['seeded'])}건 시드 완료",
        **result,
    }
