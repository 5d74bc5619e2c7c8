"""
ReportConfig 모델 - 정기 보고서 설정 (관리 화면이 작성, 파이프라인은 읽기 전용)
"""

import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Table, func
from sqlalchemy.orm import relationship

from ..core.database import Base


class ReportType(str, enum.Enum):
    """보고서 유형 (알 수 없는 값도 저장 가능 - 텍스트 generator로 처리)"""
    DOCUMENT_PROBLEMS = "document_problems"
    PORTFOLIO_SUMMARY = "portfolio_summary"
    LOANS_WITHOUT_DOCUMENTS = "loans_without_documents"
    COMPLETE_LOANS = "complete_loans"
    FINANCIAL_SUMMARY = "financial_summary"
    COLLECTION_SUMMARY = "collection_summary"


report_config_routes = Table(
    "report_config_routes",
    Base.metadata,
    Column("report_config_id", Integer, ForeignKey("report_configs.id", ondelete="CASCADE"), primary_key=True),
    Column("route_id", Integer, ForeignKey("routes.id", ondelete="CASCADE"), primary_key=True),
)

report_config_recipients = Table(
    "report_config_recipients",
    Base.metadata,
    Column("report_config_id", Integer, ForeignKey("report_configs.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class ReportConfig(Base):
    """정기 보고서 설정"""
    __tablename__ = "report_configs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    report_type = Column(String(50), nullable=False)

    # 스케줄 (예: "monday,thursday" / 9)
    schedule_days = Column(String(100), default="", nullable=False)
    schedule_hour = Column(Integer, default=9, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # 라우트가 비어 있으면 전체
    routes = relationship("Route", secondary=report_config_routes, order_by="Route.id")
    recipients = relationship("User", secondary=report_config_recipients, order_by="User.id")

    def __repr__(self):
        return f"<ReportConfig(id={self.id}, name='{self.name}', type='{self.report_type}')>"
