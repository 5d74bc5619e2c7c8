"""
포트폴리오(Cartera) 요약 서비스 - 보고 기간 단위 라우트별 집계 + PDF
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal
from typing import Iterable

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from ..models.loan import Loan
from .periods import ReportingPeriod
from .pdf_layout import Column, ReportCanvas, TEXT_MUTED, truncate

logger = logging.getLogger(__name__)

COLUMNS = [
    Column("ROUTE", 152),
    Column("NEW LOANS", 80),
    Column("REQUESTED", 100),
    Column("GIVEN", 100),
    Column("ACTIVE", 80),
]

SUMMARY_ROW_HEIGHT = 24


@dataclass
class RouteSummary:
    route_name: str
    new_loans: int = 0
    requested: Decimal = Decimal("0")
    given: Decimal = Decimal("0")
    active_loans: int = 0


@dataclass
class PortfolioSummary:
    period: ReportingPeriod
    routes: list[RouteSummary] = field(default_factory=list)

    @property
    def total_new_loans(self) -> int:
        return sum(r.new_loans for r in self.routes)

    @property
    def total_requested(self) -> Decimal:
        return sum((r.requested for r in self.routes), Decimal("0"))

    @property
    def total_given(self) -> Decimal:
        return sum((r.given for r in self.routes), Decimal("0"))

    @property
    def total_active(self) -> int:
        return sum(r.active_loans for r in self.routes)


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def collect_portfolio_summary(
    db: Session,
    route_ids: Iterable[int],
    period: ReportingPeriod,
) -> PortfolioSummary:
    """
    기간 내 신규 대출(서명일 기준)과 기간 말 기준 활성 대출 수를 라우트별로 집계
    """
    route_ids = list(route_ids)
    period_start = datetime.combine(period.start, time.min)
    period_end = datetime.combine(period.end, time.max)

    stmt = (
        select(Loan)
        .where(Loan.sign_date <= period_end)
        .where(or_(Loan.finished_date.is_(None), Loan.finished_date >= period_start))
        .options(selectinload(Loan.route))
        .order_by(Loan.id)
    )
    if route_ids:
        stmt = stmt.where(Loan.route_id.in_(route_ids))
    loans = db.execute(stmt).scalars().all()

    by_route: dict[str, RouteSummary] = {}
    for loan in loans:
        name = loan.route.name if loan.route else "No route"
        row = by_route.setdefault(name, RouteSummary(route_name=name))
        if loan.sign_date >= period_start:
            row.new_loans += 1
            row.requested += loan.requested_amount or Decimal("0")
            row.given += loan.amount_given or Decimal("0")
        if loan.finished_date is None or loan.finished_date > period_end:
            row.active_loans += 1

    summary = PortfolioSummary(period=period, routes=sorted(by_route.values(), key=lambda r: r.route_name))
    logger.info(
        f"포트폴리오 집계 ({period.label}): 라우트 {len(summary.routes)}개, "
        f"신규 {summary.total_new_loans}건, 활성 {summary.total_active}건"
    )
    return summary


def build_portfolio_pdf(summary: PortfolioSummary, now: datetime, route_label: str = "All routes") -> bytes:
    """라우트별 표 + 합계"""
    pdf = ReportCanvas(
        "PORTFOLIO REPORT",
        f"Period: {summary.period.label} | Routes: {route_label}",
    )
    pdf.new_page()
    pdf.heading(f"PORTFOLIO SUMMARY - {summary.period.label.upper()}")
    pdf.paragraph(f"Period: {summary.period.start:%Y-%m-%d} to {summary.period.end:%Y-%m-%d}")
    pdf.space(8)

    pdf.stat_grid([
        ("New loans", str(summary.total_new_loans)),
        ("Amount requested", _money(summary.total_requested)),
        ("Amount given", _money(summary.total_given)),
        ("Active loans", str(summary.total_active)),
        ("Routes", str(len(summary.routes))),
        ("Period", summary.period.month_label),
    ])

    pdf.table_header(COLUMNS)
    if not summary.routes:
        pdf.paragraph("No loans found for this period.", color=TEXT_MUTED)

    for index, row in enumerate(summary.routes):
        if pdf.needs_break():
            pdf.new_page()
            pdf.table_header(COLUMNS)
        pdf.table_row(COLUMNS, [
            truncate(row.route_name),
            str(row.new_loans),
            _money(row.requested),
            _money(row.given),
            str(row.active_loans),
        ], SUMMARY_ROW_HEIGHT, shade=index % 2 == 1)

    if summary.routes:
        pdf.table_row(COLUMNS, [
            "TOTAL",
            str(summary.total_new_loans),
            _money(summary.total_requested),
            _money(summary.total_given),
            str(summary.total_active),
        ], SUMMARY_ROW_HEIGHT, shade=True)

    pdf.space(20)
    pdf.paragraph(f"Report generated automatically on {now:%Y-%m-%d %H:%M}.", size=8, color=TEXT_MUTED)
    return pdf.finish()
