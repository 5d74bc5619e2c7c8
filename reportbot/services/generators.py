"""
보고서 Generator 레지스트리

report_type 문자열 → Generator. 등록되지 않은 유형은 텍스트 Generator로 처리한다.
모든 Generator는 generate(context, route_ids, period) → ReportArtifact 하나만 제공하며 예외를 던지지 않는다.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import GenerationError
from ..models.report_config import ReportType
from . import config_service
from .document_pdf import build_document_problem_pdf
from .document_problems import collect_document_problems
from .periods import ReportingPeriod, shift_months
from .portfolio_service import build_portfolio_pdf, collect_portfolio_summary

logger = logging.getLogger(__name__)

_template_dir = settings.BASE_DIR / "reportbot" / "templates" / "messages"
_jinja_env = Environment(
    loader=FileSystemLoader(str(_template_dir)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


class ArtifactKind(str, enum.Enum):
    DOCUMENT = "DOCUMENT"
    TEXT = "TEXT"


@dataclass
class ReportArtifact:
    """Generator 1회 호출 결과 (바이너리 문서 또는 텍스트)"""
    kind: ArtifactKind
    caption: str
    content: Optional[bytes] = None
    filename: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error_message is not None


@dataclass
class ReportContext:
    """생성 컨텍스트"""
    db: Session
    now: datetime
    report_type: str
    config_name: str = ""


def render_message(template_name: str, **values) -> str:
    template = _jinja_env.get_template(template_name)
    return template.render(**values).strip()


def route_scope_label(route_ids: list[int]) -> str:
    return f"{len(route_ids)} specific" if route_ids else "All"


def _failed_artifact(kind: ArtifactKind, message: str) -> ReportArtifact:
    return ReportArtifact(kind=kind, caption="", error_message=message)


# ============================================================
# Generators
# ============================================================

class DocumentProblemGenerator:
    """서류 문제 PDF"""

    period_sensitive = False

    def generate(
        self,
        context: ReportContext,
        route_ids: list[int],
        period: Optional[ReportingPeriod] = None,
    ) -> ReportArtifact:
        try:
            months = config_service.get_setting_int(
                context.db, "document_window_months", settings.document_window_months,
            )
            records = collect_document_problems(context.db, route_ids, context.now, months=months)
            window_start = shift_months(context.now, -months)
            route_label = f"{route_scope_label(route_ids)} routes"
            content, _ = build_document_problem_pdf(
                records, context.now, window_start, route_label,
            )
            if not content:
                raise GenerationError("생성된 PDF가 비어 있습니다.")

            timestamp = int(context.now.timestamp() * 1000)
            return ReportArtifact(
                kind=ArtifactKind.DOCUMENT,
                content=content,
                filename=f"document_problems_{context.now:%Y-%m-%d}_{timestamp}.pdf",
                caption=render_message(
                    "document_caption.html",
                    generated_at=f"{context.now:%Y-%m-%d %H:%M}",
                    route_scope=route_scope_label(route_ids),
                    total_rows=len(records),
                ),
            )
        except Exception as e:
            logger.error(f"서류 문제 보고서 생성 실패: {e}", exc_info=True)
            return _failed_artifact(ArtifactKind.DOCUMENT, f"서류 문제 보고서 생성 오류: {e}")


class PortfolioSummaryGenerator:
    """포트폴리오 요약 PDF (직전 보고 기간 기준)"""

    period_sensitive = True

    def generate(
        self,
        context: ReportContext,
        route_ids: list[int],
        period: Optional[ReportingPeriod] = None,
    ) -> ReportArtifact:
        try:
            if period is None:
                raise GenerationError("보고 기간이 지정되지 않았습니다.")

            summary = collect_portfolio_summary(context.db, route_ids, period)
            content = build_portfolio_pdf(
                summary, context.now, f"{route_scope_label(route_ids)} routes",
            )
            if not content:
                raise GenerationError("생성된 PDF가 비어 있습니다.")

            timestamp = int(context.now.timestamp() * 1000)
            return ReportArtifact(
                kind=ArtifactKind.DOCUMENT,
                content=content,
                filename=f"portfolio_{period.month_label}_{period.year}_{timestamp}.pdf",
                caption=render_message(
                    "portfolio_caption.html",
                    period_label=period.label,
                    route_scope=route_scope_label(route_ids),
                    new_loans=summary.total_new_loans,
                ),
            )
        except Exception as e:
            logger.error(f"포트폴리오 보고서 생성 실패: {e}", exc_info=True)
            return _failed_artifact(ArtifactKind.DOCUMENT, f"포트폴리오 보고서 생성 오류: {e}")


class TextReportGenerator:
    """나머지 유형 공통 텍스트 보고서"""

    period_sensitive = False

    HEADLINES = {
        ReportType.LOANS_WITHOUT_DOCUMENTS.value: ("⚠️", "LOANS WITHOUT DOCUMENTS"),
        ReportType.COMPLETE_LOANS.value: ("✅", "COMPLETE LOANS"),
        ReportType.FINANCIAL_SUMMARY.value: ("💰", "FINANCIAL SUMMARY"),
        ReportType.COLLECTION_SUMMARY.value: ("💵", "COLLECTION SUMMARY"),
    }

    def generate(
        self,
        context: ReportContext,
        route_ids: list[int],
        period: Optional[ReportingPeriod] = None,
    ) -> ReportArtifact:
        try:
            report_type = context.report_type or "general"
            icon, headline = self.HEADLINES.get(report_type, ("📊", "GENERAL"))
            message = render_message(
                "text_report.html",
                icon=icon,
                headline=headline,
                generated_at=f"{context.now:%Y-%m-%d %H:%M}",
                route_scope=route_scope_label(route_ids),
                config_name=context.config_name,
                show_type=report_type not in self.HEADLINES,
                report_type=report_type,
            )
            timestamp = int(context.now.timestamp() * 1000)
            return ReportArtifact(
                kind=ArtifactKind.TEXT,
                content=message.encode("utf-8"),
                filename=f"report_{report_type}_{timestamp}.txt",
                caption=message,
            )
        except Exception as e:
            logger.error(f"텍스트 보고서 생성 실패: {e}", exc_info=True)
            return _failed_artifact(ArtifactKind.TEXT, f"텍스트 보고서 생성 오류: {e}")


# ============================================================
# Registry
# ============================================================

class ReportGeneratorRegistry:
    """report_type → Generator (등록 후 변경 없음)"""

    DEFAULT_KEY = "default"

    def __init__(self):
        self._generators = {
            ReportType.DOCUMENT_PROBLEMS.value: DocumentProblemGenerator(),
            ReportType.PORTFOLIO_SUMMARY.value: PortfolioSummaryGenerator(),
            self.DEFAULT_KEY: TextReportGenerator(),
        }

    def get_generator(self, report_type):
        """어떤 입력이든 Generator 반환 (미등록 → 텍스트)"""
        key = report_type.value if isinstance(report_type, enum.Enum) else report_type
        try:
            return self._generators.get(key) or self._generators[self.DEFAULT_KEY]
        except TypeError:
            # dict 키로 쓸 수 없는 입력
            return self._generators[self.DEFAULT_KEY]

    def is_period_sensitive(self, report_type) -> bool:
        return bool(getattr(self.get_generator(report_type), "period_sensitive", False))

    @property
    def registered_types(self) -> list[str]:
        return [key for key in self._generators if key != self.DEFAULT_KEY]


# 싱글톤
_registry: Optional[ReportGeneratorRegistry] = None


def get_generator_registry() -> ReportGeneratorRegistry:
    global _registry
    if _registry is None:
        _registry = ReportGeneratorRegistry()
    return _registry
