"""
APScheduler 스케줄러 설정

보고서 설정마다 1회성 date 작업을 등록하고, 실행이 끝나면 다음 실행 시각으로 다시 등록한다.
실행 중인 보고서는 중단하지 않는다 (stop은 이후 작업만 제거).
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler

from .config import settings, now_local
from .database import SessionLocal
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

JOB_PREFIX = "report_config_"

scheduler = BackgroundScheduler(
    timezone=settings.scheduler_timezone,
    executors={"default": ThreadPoolExecutor(max_workers=1)},
    job_defaults={
        "coalesce": True,
        "max_instances": 1,
        "misfire_grace_time": 300,
    },
)


@dataclass
class SchedulerState:
    """관리 화면이 소유하는 스케줄러 상태 (lock 보호, 스냅샷으로 읽음)"""
    running: bool = False
    next_execution_at: Optional[datetime] = None
    last_execution_at: Optional[datetime] = None
    scheduled_config_ids: set[int] = field(default_factory=set)


def _job_listener(event):
    """스케줄러 작업 실행 이벤트 리스너"""
    job_id = event.job_id
    if event.exception:
        logger.error(f"스케줄 작업 실패: {job_id} - {event.exception}")
    else:
        logger.info(f"스케줄 작업 완료: {job_id}")


class ReportScheduler:
    """보고서 스케줄 제어 (start / stop / reschedule / unschedule / status)"""

    def __init__(
        self,
        aps_scheduler: BackgroundScheduler,
        session_factory: Callable = SessionLocal,
        agent=None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._scheduler = aps_scheduler
        self._session_factory = session_factory
        self._agent = agent
        self._clock = clock
        self._lock = threading.Lock()
        self._state = SchedulerState()
        self._next_by_config: dict[int, datetime] = {}

    @staticmethod
    def job_id(config_id: int) -> str:
        return f"{JOB_PREFIX}{config_id}"

    @property
    def agent(self):
        if self._agent is None:
            from ..agents.report_agent import get_report_agent
            self._agent = get_report_agent()
        return self._agent

    @property
    def state(self) -> SchedulerState:
        """상태 스냅샷"""
        with self._lock:
            return replace(self._state, scheduled_config_ids=set(self._state.scheduled_config_ids))

    def next_execution_for(self, config_id: int) -> Optional[datetime]:
        with self._lock:
            return self._next_by_config.get(config_id)

    # ---------- 제어 ----------

    def start(self) -> SchedulerState:
        """활성 설정 전체로 다음 실행 시각을 다시 계산하고 가장 이른 시각을 채택"""
        from ..services import config_service

        if not self._scheduler.running:
            self._scheduler.start()

        db = self._session_factory()
        try:
            snapshots = [config_service.snapshot_config(c) for c in config_service.list_active_configs(db)]
        finally:
            db.close()

        with self._lock:
            self._state.running = True

        now = self._clock()
        for snapshot in snapshots:
            self._arm(snapshot, now)
        self._refresh_next()

        state = self.state
        logger.info(
            f"보고서 스케줄러 시작: 설정 {len(state.scheduled_config_ids)}건, "
            f"다음 실행 {state.next_execution_at}"
        )
        return state

    def stop(self) -> SchedulerState:
        """이후 실행만 막는다 (진행 중인 실행은 끝까지 수행)"""
        with self._lock:
            config_ids = list(self._state.scheduled_config_ids)
        for config_id in config_ids:
            self._remove_job(config_id)

        with self._lock:
            self._state.running = False
            self._state.next_execution_at = None
            self._state.scheduled_config_ids.clear()
            self._next_by_config.clear()
        logger.info("보고서 스케줄러 정지")
        return self.state

    def reschedule(self, config_id: int) -> Optional[datetime]:
        """설정 1건 재등록 (비활성/규칙 없음이면 해제). 설정이 없으면 ConfigurationError"""
        from ..services import config_service

        db = self._session_factory()
        try:
            snapshot = config_service.load_snapshot(db, config_id)
        finally:
            db.close()

        with self._lock:
            running = self._state.running
        if not running:
            logger.info(f"스케줄러 정지 상태 - 설정 #{config_id} 등록 생략")
            return None

        if not snapshot.is_active or snapshot.rule is None:
            self.unschedule(config_id)
            return None

        run_at = self._arm(snapshot, self._clock())
        self._refresh_next()
        return run_at

    def unschedule(self, config_id: int) -> bool:
        """설정 1건 해제"""
        removed = self._remove_job(config_id)
        with self._lock:
            self._state.scheduled_config_ids.discard(config_id)
            self._next_by_config.pop(config_id, None)
        self._refresh_next()
        if removed:
            logger.info(f"스케줄 해제: 설정 #{config_id}")
        return removed

    def status(self) -> dict:
        """상태 조회 (진단용)"""
        state = self.state
        jobs = []
        for job in self._scheduler.get_jobs():
            if not job.id.startswith(JOB_PREFIX):
                continue
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run.isoformat() if next_run else None,
            })
        return {
            "running": state.running,
            "next_execution_at": state.next_execution_at.isoformat() if state.next_execution_at else None,
            "last_execution_at": state.last_execution_at.isoformat() if state.last_execution_at else None,
            "active_configs": len(state.scheduled_config_ids),
            "scheduled_config_ids": sorted(state.scheduled_config_ids),
            "jobs": jobs,
        }

    # ---------- 내부 ----------

    def _arm(self, snapshot, now: datetime) -> Optional[datetime]:
        from ..services.schedule import next_execution

        if not snapshot.is_active or snapshot.rule is None:
            return None

        run_at = next_execution(snapshot.rule, now)
        job_name = f"보고서 발송: {snapshot.name}"
        try:
            self._scheduler.add_job(
                self._run_job, "date",
                run_date=run_at,
                args=[snapshot.id],
                id=self.job_id(snapshot.id),
                name=job_name,
                replace_existing=True,
            )
        except Exception as e:
            logger.error(f"  스케줄 작업 등록 실패: {job_name} - {e}", exc_info=True)
            return None

        with self._lock:
            self._next_by_config[snapshot.id] = run_at
            self._state.scheduled_config_ids.add(snapshot.id)
        logger.info(f"  스케줄 작업 등록: {job_name} (다음 실행: {run_at})")
        return run_at

    def _remove_job(self, config_id: int) -> bool:
        job = self._scheduler.get_job(self.job_id(config_id))
        if job is None:
            return False
        job.remove()
        return True

    def _refresh_next(self):
        with self._lock:
            self._state.next_execution_at = min(self._next_by_config.values(), default=None)

    def _run_job(self, config_id: int):
        """트리거 시점에 설정 스냅샷을 고정하고 실행한 뒤 다음 실행을 등록"""
        from ..models.execution_log import ExecutionType
        from ..services import config_service

        with self._lock:
            if not self._state.running:
                return
            self._next_by_config.pop(config_id, None)

        db = self._session_factory()
        try:
            snapshot = config_service.load_snapshot(db, config_id)
        except ConfigurationError as e:
            logger.warning(f"예약 실행 건너뜀: {e}")
            snapshot = None
        finally:
            db.close()

        if snapshot is None or not snapshot.is_active:
            self.unschedule(config_id)
            return

        result = self.agent.execute(snapshot, ExecutionType.AUTOMATIC)

        with self._lock:
            self._state.last_execution_at = result.last_execution_at
            running = self._state.running

        if running:
            self._arm(snapshot, self._clock())
        self._refresh_next()


# 싱글톤
_report_scheduler: Optional[ReportScheduler] = None


def get_report_scheduler() -> ReportScheduler:
    global _report_scheduler
    if _report_scheduler is None:
        _report_scheduler = ReportScheduler(scheduler)
    return _report_scheduler


def setup_scheduler():
    """스케줄러 초기화 및 보고서 작업 등록"""
    scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
    scheduler.start()
    logger.info("스케줄러 시작 완료")

    if settings.scheduler_autostart:
        get_report_scheduler().start()
    else:
        logger.info("SCHEDULER_AUTOSTART=false - 보고서 스케줄은 /scheduler/start 호출 시 등록됩니다.")

    for job in scheduler.get_jobs():
        logger.info(f"  등록된 작업: {job.name} (다음 실행: {job.next_run_time})")


def get_scheduler_status() -> dict:
    """스케줄러 상태 조회 (진단용)"""
    return get_report_scheduler().status()


def shutdown_scheduler():
    """스케줄러 종료"""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("스케줄러 종료 완료")
