"""
서류 문제 보고서 PDF 생성
1페이지 요약 → 주 단위 그룹 테이블 → 조치 계획 페이지
"""

import logging
from datetime import datetime

from .document_problems import (
    DocumentProblemRecord, ProblemSummary, group_by_week, summarize,
)
from .pdf_layout import (
    Column, ReportCanvas, MARGIN_X, ROW_HEIGHT, TABLE_WIDTH, WEEK_HEADER_HEIGHT,
    WEEK_BAND, BRAND_PRIMARY, DANGER, WARNING, SUCCESS, TEXT_MUTED,
    truncate, wrap_text,
)

logger = logging.getLogger(__name__)

COLUMNS = [
    Column("ROUTE", 60),
    Column("LOCALITY", 90),
    Column("CLIENT", 130),
    Column("TYPE", 50),
    Column("PROBLEMS", 90),
    Column("OBSERVATIONS", 92),
]

MAX_PROBLEM_LINES = 3
MAX_LOCALITIES_ON_SUMMARY = 10
MAX_ACTION_ITEMS = 20


def _problem_lines(record: DocumentProblemRecord) -> list[str]:
    lines = []
    for description in record.problem_descriptions:
        doc_type, _, status = description.partition(" ")
        label = "MISSING" if status == "missing" else "ERROR"
        lines.append(f"{label}: {doc_type}")
    if len(lines) > MAX_PROBLEM_LINES:
        hidden = len(lines) - MAX_PROBLEM_LINES
        lines = lines[:MAX_PROBLEM_LINES] + [f"+{hidden} more"]
    return lines


class DocumentProblemPdf:
    """
    서류 문제 PDF 빌더

    build() 이후 page_count, rows_drawn 값을 확인할 수 있다.
    """

    TITLE = "DOCUMENT PROBLEMS REPORT"

    def __init__(self):
        self.page_count = 0
        self.rows_drawn = 0

    def build(
        self,
        records: list[DocumentProblemRecord],
        now: datetime,
        window_start: datetime,
        route_label: str = "All routes",
    ) -> bytes:
        subtitle = f"Generated {now:%Y-%m-%d %H:%M} | Routes: {route_label}"
        pdf = ReportCanvas(self.TITLE, subtitle)
        self.rows_drawn = 0

        pdf.new_page()
        if not records:
            self._draw_empty(pdf, now, window_start)
        else:
            summary = summarize(records)
            self._draw_summary(pdf, summary, now, window_start, route_label)
            self._draw_table(pdf, records)
            self._draw_action_plan(pdf, records, summary, now)

        content = pdf.finish()
        self.page_count = pdf.page_count
        logger.info(f"서류 문제 PDF 생성: {self.page_count}페이지, {self.rows_drawn}행, {len(content)} bytes")
        return content

    # ---------- 빈 결과 ----------

    def _draw_empty(self, pdf: ReportCanvas, now: datetime, window_start: datetime):
        pdf.heading("NO PROBLEMS FOUND", size=16, color=SUCCESS)
        pdf.paragraph(
            f"No loans signed between {window_start:%Y-%m-%d} and {now:%Y-%m-%d} "
            "have documents flagged with errors or marked as missing."
        )
        pdf.space(10)
        pdf.paragraph("All reviewed documentation is complete.", color=TEXT_MUTED)

    # ---------- 1페이지 요약 ----------

    def _draw_summary(
        self,
        pdf: ReportCanvas,
        summary: ProblemSummary,
        now: datetime,
        window_start: datetime,
        route_label: str,
    ):
        pdf.heading("EXECUTIVE SUMMARY")
        pdf.paragraph(f"Analysis window: {window_start:%Y-%m-%d} to {now:%Y-%m-%d}")
        pdf.paragraph(f"Route scope: {route_label}")
        pdf.space(8)

        pdf.stat_grid([
            ("Affected clients", str(summary.affected_clients)),
            ("Rows with problems", str(summary.total_rows)),
            ("Localities", str(len(summary.by_locality))),
            ("Client rows", str(summary.client_rows)),
            ("Guarantor rows", str(summary.guarantor_rows)),
            ("Routes", str(summary.route_count)),
        ])

        pdf.heading("BY DOCUMENT TYPE", size=11)
        for doc_type, counts in summary.by_doc_type.items():
            pdf.paragraph(
                f"{doc_type}: {counts['missing']} missing, {counts['error']} with error"
            )
        pdf.space(8)

        pdf.heading("BY LOCALITY", size=11)
        localities = list(summary.by_locality.items())
        for locality, count in localities[:MAX_LOCALITIES_ON_SUMMARY]:
            pdf.paragraph(f"{truncate(locality, 40)}: {count}")
        if len(localities) > MAX_LOCALITIES_ON_SUMMARY:
            others = sum(count for _, count in localities[MAX_LOCALITIES_ON_SUMMARY:])
            pdf.paragraph(
                f"... {len(localities) - MAX_LOCALITIES_ON_SUMMARY} more localities ({others} rows)",
                color=TEXT_MUTED,
            )

    # ---------- 테이블 ----------

    def _table_page(self, pdf: ReportCanvas):
        pdf.new_page()
        pdf.table_header(COLUMNS)

    def _draw_week_header(self, pdf: ReportCanvas, group, continued: bool = False):
        pdf.fill_rect(MARGIN_X, pdf.y, TABLE_WIDTH, WEEK_HEADER_HEIGHT, WEEK_BAND)
        label = (
            f"Week {group.week_start:%Y-%m-%d} to {group.week_end:%Y-%m-%d}"
            f"  ({len(group.records)} rows)"
        )
        if continued:
            label += "  (cont.)"
        pdf.text(MARGIN_X + 6, pdf.y + 16, label, size=8, bold=True, color=BRAND_PRIMARY)
        pdf.y += WEEK_HEADER_HEIGHT

    def _row_cells(self, record: DocumentProblemRecord) -> list:
        observations = wrap_text(record.observations, COLUMNS[5].width - 8)
        return [
            truncate(record.route_name),
            truncate(record.locality),
            truncate(record.client_name),
            "CLIENT" if record.subject_type.value == "CLIENT" else "GUAR.",
            _problem_lines(record),
            observations,
        ]

    def _draw_table(self, pdf: ReportCanvas, records: list[DocumentProblemRecord]):
        self._table_page(pdf)

        for group_index, group in enumerate(group_by_week(records)):
            # 주 헤더 아래 첫 행이 같은 페이지에 오도록
            if pdf.needs_break(WEEK_HEADER_HEIGHT):
                self._table_page(pdf)
            self._draw_week_header(pdf, group)

            shade = group_index % 2 == 1
            for record in group.records:
                if pdf.needs_break():
                    self._table_page(pdf)
                    self._draw_week_header(pdf, group, continued=True)
                pdf.table_row(COLUMNS, self._row_cells(record), ROW_HEIGHT, shade=shade)
                self.rows_drawn += 1

    # ---------- 조치 계획 ----------

    def _action_line(self, record: DocumentProblemRecord) -> str:
        problems = ", ".join(record.problem_descriptions)
        return f"- {truncate(record.client_name, 45)} ({record.locality}): {problems}"

    def _draw_bucket(self, pdf: ReportCanvas, title: str, color, rows: list[DocumentProblemRecord]):
        pdf.heading(f"{title} ({len(rows)})", size=11, color=color)
        if not rows:
            pdf.paragraph("None.", color=TEXT_MUTED)
        for record in rows[:MAX_ACTION_ITEMS]:
            if pdf.needs_break():
                pdf.new_page()
            pdf.paragraph(self._action_line(record), size=8)
        if len(rows) > MAX_ACTION_ITEMS:
            pdf.paragraph(f"... and {len(rows) - MAX_ACTION_ITEMS} more", size=8, color=TEXT_MUTED)
        pdf.space(8)

    def _draw_action_plan(
        self,
        pdf: ReportCanvas,
        records: list[DocumentProblemRecord],
        summary: ProblemSummary,
        now: datetime,
    ):
        pdf.new_page()
        pdf.heading("ACTION PLAN")

        high = [r for r in records if r.has_missing]
        medium = [r for r in records if not r.has_missing]

        self._draw_bucket(pdf, "HIGH PRIORITY - missing documents", DANGER, high)
        self._draw_bucket(pdf, "MEDIUM PRIORITY - documents with errors", WARNING, medium)

        if pdf.needs_break():
            pdf.new_page()
        pdf.space(10)
        pdf.paragraph(
            f"{summary.affected_clients} clients require follow-up. "
            "Collect missing documents first, then replace documents with errors.",
        )
        pdf.space(20)
        pdf.paragraph(
            f"Report generated automatically on {now:%Y-%m-%d %H:%M}.",
            size=8, color=TEXT_MUTED,
        )


def build_document_problem_pdf(
    records: list[DocumentProblemRecord],
    now: datetime,
    window_start: datetime,
    route_label: str = "All routes",
) -> tuple[bytes, DocumentProblemPdf]:
    builder = DocumentProblemPdf()
    content = builder.build(records, now, window_start, route_label)
    return content, builder
