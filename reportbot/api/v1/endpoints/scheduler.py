"""
스케줄러 제어 API (시작 / 정지 / 설정별 재등록)
"""

from fastapi import APIRouter, HTTPException

from ....core.exceptions import ConfigurationError
from ....core.scheduler import get_report_scheduler
from ....schemas.scheduler import RescheduleResponse, SchedulerStatusResponse

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.get("/status", response_model=SchedulerStatusResponse)
def scheduler_status():
    """스케줄러 상태 (실행 여부, 다음/마지막 실행, 활성 설정 수)"""
    return get_report_scheduler().status()


@router.post("/start", response_model=SchedulerStatusResponse)
def start_scheduler():
    """활성 설정 전체로 다음 실행 시각 재계산 후 시작"""
    scheduler = get_report_scheduler()
    scheduler.start()
    return scheduler.status()


@router.post("/stop", response_model=SchedulerStatusResponse)
def stop_scheduler():
    """이후 실행 중단 (진행 중인 실행은 계속)"""
    scheduler = get_report_scheduler()
    scheduler.stop()
    return scheduler.status()


@router.post("/configs/{config_id}/reschedule", response_model=RescheduleResponse)
def reschedule_config(config_id: int):
    """설정 변경 후 재등록"""
    try:
        run_at = get_report_scheduler().reschedule(config_id)
    except ConfigurationError:
        raise HTTPException(status_code=404, detail="보고서 설정을 찾을 수 없습니다.")

    return RescheduleResponse(
        config_id=config_id,
        scheduled=run_at is not None,
        next_execution_at=run_at.isoformat() if run_at else None,
        message="스케줄 등록 완료" if run_at else "등록되지 않음 (스케줄러 정지, 비활성 또는 요일 미지정)",
    )


@router.post("/configs/{config_id}/unschedule", response_model=RescheduleResponse)
def unschedule_config(config_id: int):
    """설정 스케줄 해제"""
    removed = get_report_scheduler().unschedule(config_id)
    return RescheduleResponse(
        config_id=config_id,
        scheduled=False,
        next_execution_at=None,
        message="스케줄 해제 완료" if removed else "등록된 스케줄 없음",
    )
