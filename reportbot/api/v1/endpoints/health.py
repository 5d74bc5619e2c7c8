"""
헬스체크 및 모니터링 엔드포인트
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ....core.config import APP_VERSION, now_local
from ....core.database import get_db
from ....core.scheduler import get_report_scheduler
from ....models.execution_log import ReportExecutionLog
from ....models.report_config import ReportConfig
from ....models.user import TelegramUser

router = APIRouter()


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """서비스 상태 확인"""
    config_count = db.query(func.count(ReportConfig.id)).scalar()
    execution_count = db.query(func.count(ReportExecutionLog.id)).scalar()

    return {
        "status": "ok",
        "service": "ReportBot",
        "version": APP_VERSION,
        "timestamp": now_local().isoformat(),
        "database": {
            "report_configs": config_count,
            "executions": execution_count,
        },
        "scheduler": get_report_scheduler().status(),
    }


@router.get("/telegram-diagnosis")
def telegram_diagnosis(db: Session = Depends(get_db)):
    """Telegram 발송 진단 (봇 토큰, 등록 채팅, 최근 실행 이력)"""
    from ....services import config_service
    from ....services.telegram_service import get_telegram_service_with_token

    # 1. 봇 토큰 확인
    telegram_config = config_service.get_telegram_config(db)
    token = telegram_config["bot_token"]

    bot_info = None
    bot_error = None
    if token:
        try:
            bot_info = get_telegram_service_with_token(token, telegram_config["max_retries"]).get_me()
        except Exception as e:
            bot_error = str(e)

    # 2. 활성 채팅
    active_chats = db.query(func.count(TelegramUser.id)).filter(
        TelegramUser.is_active == True  # noqa: E712
    ).scalar()
    linked_chats = db.query(func.count(TelegramUser.id)).filter(
        TelegramUser.is_active == True,  # noqa: E712
        TelegramUser.platform_user_id.isnot(None),
    ).scalar()

    # 3. 활성 보고서 설정
    active_configs = config_service.list_active_configs(db)

    # 4. 최근 실행 이력
    recent_logs = (
        db.query(ReportExecutionLog)
        .order_by(ReportExecutionLog.id.desc())
        .limit(5)
        .all()
    )

    issues = []
    if not token:
        issues.append("Telegram 봇 토큰 미설정 (TELEGRAM_BOT_TOKEN)")
    elif bot_error:
        issues.append(f"Telegram getMe 실패: {bot_error}")
    if linked_chats == 0:
        issues.append("사용자와 연결된 활성 Telegram 채팅 없음")
    if not active_configs:
        issues.append("활성 보고서 설정 없음")
    if not get_report_scheduler().state.running:
        issues.append("보고서 스케줄러 정지 상태")

    return {
        "status": "ok" if not issues else "warning",
        "issues": issues,
        "telegram_configured": bool(token),
        "bot_token": token[:4] + "***" if token else "",
        "bot": {
            "username": bot_info.get("username"),
            "id": bot_info.get("id"),
        } if bot_info else None,
        "chats": {
            "active": active_chats,
            "linked": linked_chats,
        },
        "active_configs": [
            {"id": c.id, "name": c.name, "report_type": c.report_type}
            for c in active_configs
        ],
        "recent_executions": [
            {
                "id": log.id,
                "config_name": log.config_name,
                "status": log.status.value,
                "message": log.message,
                "start_time": log.start_time.isoformat() if log.start_time else None,
            }
            for log in recent_logs
        ],
    }
