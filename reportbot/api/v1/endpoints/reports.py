"""
보고서 API 엔드포인트
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session, selectinload

from ....agents.report_agent import get_report_agent
from ....core.database import get_db
from ....core.exceptions import ConfigurationError
from ....core.scheduler import get_report_scheduler
from ....models.execution_log import ExecutionType, ReportExecutionLog
from ....schemas.report import (
    ExecutionLogResponse, ExecutionResultResponse, ReportConfigResponse,
)
from ....services import config_service
from ....services.generators import ArtifactKind

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


def _load_snapshot(db: Session, config_id: int):
    try:
        return config_service.load_snapshot(db, config_id)
    except ConfigurationError:
        raise HTTPException(status_code=404, detail="보고서 설정을 찾을 수 없습니다.")


@router.get("/configs", response_model=list[ReportConfigResponse])
def list_report_configs(active_only: bool = False, db: Session = Depends(get_db)):
    """보고서 설정 목록 (다음 실행 시각 포함)"""
    scheduler = get_report_scheduler()
    result = []
    for config in config_service.list_configs(db, active_only=active_only):
        snapshot = config_service.snapshot_config(config)
        item = ReportConfigResponse.model_validate(config)
        item.route_ids = list(snapshot.route_ids)
        item.recipient_ids = list(snapshot.recipient_ids)
        item.next_execution_at = scheduler.next_execution_for(config.id)
        result.append(item)
    return result


@router.post("/configs/{config_id}/send", response_model=ExecutionResultResponse)
def send_report(config_id: int, db: Session = Depends(get_db)):
    """보고서 수동 실행 (즉시 발송)"""
    snapshot = _load_snapshot(db, config_id)
    result = get_report_agent().execute(snapshot, ExecutionType.MANUAL)
    return ExecutionResultResponse.model_validate(result)


@router.get("/configs/{config_id}/download")
def download_report(config_id: int, db: Session = Depends(get_db)):
    """보고서 파일 다운로드 (발송 없음)"""
    snapshot = _load_snapshot(db, config_id)
    artifact = get_report_agent().render_artifact(snapshot, db=db)
    if artifact.failed:
        raise HTTPException(status_code=500, detail=artifact.error_message)

    media_type = "application/pdf" if artifact.kind == ArtifactKind.DOCUMENT else "text/plain; charset=utf-8"
    return Response(
        content=artifact.content or b"",
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.get("/executions", response_model=list[ExecutionLogResponse])
def list_executions(
    config_id: int = None,
    limit: int = Query(default=20, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    """보고서 실행 이력 조회"""
    query = (
        db.query(ReportExecutionLog)
        .options(selectinload(ReportExecutionLog.deliveries))
        .order_by(ReportExecutionLog.id.desc())
    )
    if config_id:
        query = query.filter(ReportExecutionLog.report_config_id == config_id)
    return query.offset(offset).limit(limit).all()
