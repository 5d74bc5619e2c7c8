"""
Report-Agent
보고서 설정 1건 실행: 아티팩트 1회 생성 → 수신자별 순차 Telegram 발송 → 실행 이력 기록
"""

import time
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ..core.config import now_local
from ..core.database import SessionLocal
from ..core.exceptions import ConfigurationError, DeliveryError, MissingEndpointError
from ..models.execution_log import (
    DeliveryLog, DeliveryStatus, ExecutionStatus, ExecutionType, ReportExecutionLog,
)
from ..services import config_service, recipient_service
from ..services.config_service import ConfigSnapshot
from ..services.generators import (
    ArtifactKind, ReportArtifact, ReportContext, ReportGeneratorRegistry,
    get_generator_registry, render_message,
)
from ..services.periods import previous_reporting_period
from ..services.schedule import next_execution
from ..services.telegram_service import TelegramService, get_telegram_service_with_token

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """실행 1회 결과 (관리 화면에 그대로 노출)"""
    config_id: int
    config_name: str
    report_type: str
    execution_type: ExecutionType
    status: ExecutionStatus = ExecutionStatus.SUCCESS
    sent_count: int = 0
    failed_count: int = 0
    recipients_without_endpoint: list[str] = field(default_factory=list)
    failed_recipients: list[str] = field(default_factory=list)
    last_execution_at: Optional[datetime] = None
    next_execution_at: Optional[datetime] = None
    generation_error: Optional[str] = None
    error: Optional[str] = None
    summary: str = ""
    execution_log_id: Optional[int] = None

    @property
    def aborted(self) -> bool:
        return self.error is not None


def _resolve_status(result: ExecutionResult) -> ExecutionStatus:
    if result.aborted:
        return ExecutionStatus.ERROR
    if result.failed_count == 0 and result.generation_error is None:
        return ExecutionStatus.SUCCESS
    if result.sent_count > 0:
        return ExecutionStatus.PARTIAL
    return ExecutionStatus.ERROR


def _build_summary(result: ExecutionResult) -> str:
    if result.aborted:
        return f"'{result.config_name}' 실행 중단: {result.error}"

    parts = [f"발송 {result.sent_count}건", f"실패 {result.failed_count}건"]
    if result.recipients_without_endpoint:
        names = ", ".join(result.recipients_without_endpoint)
        parts.append(f"Telegram 미등록 {len(result.recipients_without_endpoint)}명 ({names})")
    text = f"'{result.config_name}': " + ", ".join(parts)
    if result.failed_recipients:
        text += f" / 실패 수신자: {', '.join(result.failed_recipients)}"
    if result.generation_error:
        text += f" / 생성 오류 안내 발송: {result.generation_error}"
    return text


class ReportAgent:
    """보고서 생성/발송 Agent"""

    def __init__(
        self,
        session_factory: Callable = SessionLocal,
        registry: Optional[ReportGeneratorRegistry] = None,
        telegram_factory: Callable[[str, int], TelegramService] = get_telegram_service_with_token,
        clock: Callable[[], datetime] = now_local,
    ):
        self._session_factory = session_factory
        self._registry = registry or get_generator_registry()
        self._telegram_factory = telegram_factory
        self._clock = clock

    # ---------- 생성 ----------

    def render_artifact(self, snapshot: ConfigSnapshot, now: datetime = None, db=None) -> ReportArtifact:
        """아티팩트 생성 (다운로드 경로와 발송 경로 공용, 발송 없음)"""
        now = now or self._clock()
        own_session = db is None
        if own_session:
            db = self._session_factory()
        try:
            generator = self._registry.get_generator(snapshot.report_type)
            period = None
            if self._registry.is_period_sensitive(snapshot.report_type):
                period = previous_reporting_period(now)
                logger.info(f"보고 기간: {period.label}")

            context = ReportContext(
                db=db, now=now, report_type=snapshot.report_type, config_name=snapshot.name,
            )
            return generator.generate(context, list(snapshot.route_ids), period)
        finally:
            if own_session:
                db.close()

    # ---------- 실행 ----------

    def execute(
        self,
        snapshot: ConfigSnapshot,
        execution_type: ExecutionType = ExecutionType.MANUAL,
        now: datetime = None,
    ) -> ExecutionResult:
        """보고서 설정 1건 실행 (예외를 호출자에게 전달하지 않음)"""
        now = now or self._clock()
        logger.info(f"=== 보고서 실행 시작: {snapshot.name} ({snapshot.report_type}, {execution_type.value}) ===")
        start_time = time.time()

        result = ExecutionResult(
            config_id=snapshot.id,
            config_name=snapshot.name,
            report_type=snapshot.report_type,
            execution_type=execution_type,
        )
        deliveries: list[DeliveryLog] = []

        db = self._session_factory()
        try:
            token = config_service.require_bot_token(db)
            max_retries = config_service.get_telegram_config(db)["max_retries"]
            telegram = self._telegram_factory(token, max_retries)

            artifact = self.render_artifact(snapshot, now, db=db)
            if artifact.failed:
                result.generation_error = artifact.error_message
                logger.warning(f"보고서 생성 실패 → 오류 안내 발송: {artifact.error_message}")

            error_notice = None
            if artifact.failed:
                error_notice = render_message(
                    "error_notice.html",
                    config_name=snapshot.name,
                    report_type=snapshot.report_type,
                    generated_at=f"{now:%Y-%m-%d %H:%M}",
                    error_message=artifact.error_message,
                )

            recipients = recipient_service.get_recipients(db, snapshot.recipient_ids)
            logger.info(f"수신자 {len(recipients)}명")
            for recipient in recipients:
                deliveries.append(
                    self._deliver(db, telegram, artifact, error_notice, recipient, result)
                )

        except ConfigurationError as e:
            logger.error(f"보고서 실행 중단 ({snapshot.name}): {e}")
            result.error = str(e)
        except Exception as e:
            logger.error(f"보고서 실행 오류 ({snapshot.name}): {e}", exc_info=True)
            result.error = str(e)

        result.last_execution_at = now
        if snapshot.rule is not None and snapshot.is_active:
            result.next_execution_at = next_execution(snapshot.rule, now)
        result.status = _resolve_status(result)
        result.summary = _build_summary(result)

        duration = time.time() - start_time
        self._save_log(db, snapshot, result, deliveries, now, duration)
        db.close()

        logger.info(f"=== 보고서 실행 완료: {result.summary} ({duration:.1f}초) ===")
        return result

    def _deliver(
        self,
        db,
        telegram: TelegramService,
        artifact: ReportArtifact,
        error_notice: Optional[str],
        recipient: recipient_service.Recipient,
        result: ExecutionResult,
    ) -> DeliveryLog:
        """수신자 1명 발송 (어떤 실패도 이 수신자 안에서 끝난다)"""
        log = DeliveryLog(user_id=recipient.user_id, user_name=recipient.name)
        try:
            chat_id = recipient_service.resolve_chat_id(db, recipient)
            log.chat_id = chat_id

            if error_notice is not None:
                sent = telegram.send_message(chat_id, error_notice)
            elif artifact.kind == ArtifactKind.DOCUMENT:
                sent = telegram.send_document(chat_id, artifact.content, artifact.filename, artifact.caption)
            else:
                sent = telegram.send_message(chat_id, artifact.caption)

            result.sent_count += 1
            log.status = DeliveryStatus.SENT
            log.response_time_ms = sent.response_time_ms
            log.sent_at = self._clock()

        except MissingEndpointError as e:
            logger.info(f"수신자 건너뜀: {e}")
            result.recipients_without_endpoint.append(recipient.name)
            log.status = DeliveryStatus.NO_ENDPOINT
            log.error_message = str(e)

        except DeliveryError as e:
            logger.error(f"발송 실패: {recipient.name} - {e}")
            result.failed_count += 1
            result.failed_recipients.append(recipient.name)
            log.status = DeliveryStatus.FAILED
            log.error_message = str(e)[:1000]

        except Exception as e:
            logger.error(f"발송 오류: {recipient.name} - {e}", exc_info=True)
            result.failed_count += 1
            result.failed_recipients.append(recipient.name)
            log.status = DeliveryStatus.FAILED
            log.error_message = str(e)[:1000]

        return log

    def _save_log(
        self,
        db,
        snapshot: ConfigSnapshot,
        result: ExecutionResult,
        deliveries: list[DeliveryLog],
        start: datetime,
        duration: float,
    ):
        """ReportExecutionLog + DeliveryLog 기록 (실패해도 결과 반환에는 영향 없음)"""
        try:
            db.rollback()
            log = ReportExecutionLog(
                report_config_id=snapshot.id,
                config_name=snapshot.name,
                report_type=snapshot.report_type,
                execution_type=result.execution_type,
                status=result.status,
                message=result.summary,
                error_details=result.error or result.generation_error,
                recipients_count=len(deliveries),
                successful_deliveries=result.sent_count,
                failed_deliveries=result.failed_count,
                recipients_without_endpoint=len(result.recipients_without_endpoint),
                start_time=start,
                end_time=self._clock(),
                duration_seconds=round(duration, 2),
                next_execution_at=result.next_execution_at,
            )
            log.deliveries = deliveries
            db.add(log)
            db.commit()
            result.execution_log_id = log.id
        except Exception as e:
            logger.error(f"실행 이력 저장 실패: {e}", exc_info=True)
            db.rollback()


# 싱글톤
_agent = None


def get_report_agent() -> ReportAgent:
    global _agent
    if _agent is None:
        _agent = ReportAgent()
    return _agent
