"""
설정 관리 서비스 - DB-first, .env fallback
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ..core.config import settings
from ..core.exceptions import ConfigurationError
from ..models.app_setting import AppSetting
from ..models.report_config import ReportConfig
from .schedule import RecurringRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigSnapshot:
    """실행 시점에 고정한 보고서 설정 값 (실행 중 편집의 영향을 받지 않음)"""
    id: int
    name: str
    report_type: str
    route_ids: tuple[int, ...]
    recipient_ids: tuple[int, ...]
    rule: Optional[RecurringRule]
    is_active: bool


def get_setting(db: Session, key: str, default: str = None) -> Optional[str]:
    """DB에서 설정 조회, 없으면 .env fallback"""
    row = db.query(AppSetting).filter(AppSetting.key == key).first()
    if row:
        return row.value

    # .env fallback
    env_map = {
        "telegram_bot_token": settings.telegram_bot_token,
        "delivery_max_retries": str(settings.delivery_max_retries),
        "document_window_months": str(settings.document_window_months),
    }
    return env_map.get(key) or default


def get_setting_int(db: Session, key: str, default: int = 0) -> int:
    """정수 설정 조회"""
    value = get_setting(db, key)
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def get_telegram_config(db: Session) -> dict:
    """Telegram 설정 조회 (DB → .env fallback)"""
    return {
        "bot_token": get_setting(db, "telegram_bot_token") or "",
        "max_retries": get_setting_int(db, "delivery_max_retries", settings.delivery_max_retries),
    }


def require_bot_token(db: Session) -> str:
    token = get_telegram_config(db)["bot_token"]
    if not token:
        raise ConfigurationError("Telegram 봇 토큰 미설정 (TELEGRAM_BOT_TOKEN)")
    return token


# ============================================================
# 보고서 설정
# ============================================================

def _config_query(db: Session):
    return db.query(ReportConfig).options(
        selectinload(ReportConfig.routes),
        selectinload(ReportConfig.recipients),
    )


def list_configs(db: Session, active_only: bool = False) -> list[ReportConfig]:
    query = _config_query(db).order_by(ReportConfig.id)
    if active_only:
        query = query.filter(ReportConfig.is_active == True)  # noqa: E712
    return query.all()


def list_active_configs(db: Session) -> list[ReportConfig]:
    """활성 보고서 설정 목록"""
    return list_configs(db, active_only=True)


def get_config(db: Session, config_id: int) -> ReportConfig:
    config = _config_query(db).filter(ReportConfig.id == config_id).first()
    if config is None:
        raise ConfigurationError(f"보고서 설정 #{config_id} 없음")
    return config


def parse_rule(config: ReportConfig) -> Optional[RecurringRule]:
    """스케줄 규칙 해석 (요일 미지정/잘못된 값이면 None)"""
    try:
        return RecurringRule.from_config(config.schedule_days or "", config.schedule_hour)
    except ValueError as e:
        logger.warning(f"보고서 설정 '{config.name}' 스케줄 규칙 오류: {e}")
        return None


def snapshot_config(config: ReportConfig) -> ConfigSnapshot:
    """ORM 객체 → 불변 스냅샷"""
    return ConfigSnapshot(
        id=config.id,
        name=config.name,
        report_type=config.report_type,
        route_ids=tuple(route.id for route in config.routes),
        recipient_ids=tuple(user.id for user in config.recipients),
        rule=parse_rule(config),
        is_active=bool(config.is_active),
    )


def load_snapshot(db: Session, config_id: int) -> ConfigSnapshot:
    return snapshot_config(get_config(db, config_id))


def seed_from_env(db: Session) -> dict:
    """
    .env 값을 DB로 시드 (멱등 - 이미 있으면 건너뜀)
    Returns: {seeded: [...], skipped: [...]}
    """
    seeded = []
    skipped = []

    setting_seeds = [
        ("telegram_bot_token", settings.telegram_bot_token, "string", "telegram", "Telegram 봇 토큰"),
        ("delivery_max_retries", str(settings.delivery_max_retries), "int", "telegram", "발송 최대 시도 횟수"),
        ("document_window_months", str(settings.document_window_months), "int", "report", "서류 문제 조회 기간 (개월)"),
    ]

    for key, value, value_type, category, description in setting_seeds:
        if not value:
            skipped.append(f"setting: {key} (값 없음)")
            continue
        existing = db.query(AppSetting).filter(AppSetting.key == key).first()
        if not existing:
            db.add(AppSetting(
                key=key,
                value=value,
                value_type=value_type,
                category=category,
                description=description,
            ))
            seeded.append(f"setting: {key}")
        else:
            skipped.append(f"setting: {key} (이미 존재)")

    db.commit()
    logger.info(f"시드 완료: {len(seeded)}건 추가, {len(skipped)}건 건너뜀")
    return {"seeded": seeded, "skipped": skipped}
