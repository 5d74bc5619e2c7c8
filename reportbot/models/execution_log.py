"""
보고서 실행 이력 / 수신자별 발송 이력 모델
"""

import enum
from datetime import datetime

from sqlalchemy import String, Text, Integer, Float, DateTime, Enum, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base


class ExecutionType(str, enum.Enum):
    """실행 방식"""
    AUTOMATIC = "AUTOMATIC"
    MANUAL = "MANUAL"


class ExecutionStatus(str, enum.Enum):
    """실행 결과"""
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    ERROR = "ERROR"


class DeliveryStatus(str, enum.Enum):
    """수신자별 발송 결과"""
    SENT = "SENT"
    FAILED = "FAILED"
    NO_ENDPOINT = "NO_ENDPOINT"


class ReportExecutionLog(Base):
    """보고서 실행 이력 테이블"""
    __tablename__ = "report_execution_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # 설정 정보 (실행 시점 스냅샷)
    report_config_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("report_configs.id", ondelete="SET NULL"), nullable=True
    )
    config_name: Mapped[str] = mapped_column(String(200), nullable=False)
    report_type: Mapped[str] = mapped_column(String(50), nullable=False)
    execution_type: Mapped[ExecutionType] = mapped_column(Enum(ExecutionType), nullable=False)

    # 실행 결과
    status: Mapped[ExecutionStatus] = mapped_column(Enum(ExecutionStatus), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    recipients_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    successful_deliveries: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed_deliveries: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    recipients_without_endpoint: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # 타이밍
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_seconds: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    next_execution_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    deliveries: Mapped[list["DeliveryLog"]] = relationship(
        "DeliveryLog", back_populates="execution", cascade="all, delete-orphan",
        order_by="DeliveryLog.id",
    )

    def __repr__(self) -> str:
        return f"<ReportExecutionLog(id={self.id}, config={self.config_name}, status={self.status})>"


class DeliveryLog(Base):
    """수신자별 발송 이력 테이블"""
    __tablename__ = "delivery_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    execution_log_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("report_execution_logs.id", ondelete="CASCADE"), nullable=False
    )

    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_name: Mapped[str] = mapped_column(String(200), nullable=False)
    chat_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[DeliveryStatus] = mapped_column(Enum(DeliveryStatus), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    response_time_ms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    execution: Mapped["ReportExecutionLog"] = relationship(
        "ReportExecutionLog", back_populates="deliveries"
    )

    def __repr__(self) -> str:
        return f"<DeliveryLog(id={self.id}, user={self.user_name}, status={self.status})>"
