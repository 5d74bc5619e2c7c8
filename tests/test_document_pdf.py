"""서류 문제 PDF 레이아웃 테스트."""

from datetime import timedelta

import reportlab.rl_config

from reportbot.models import DocumentSubject
from reportbot.services.document_pdf import DocumentProblemPdf, _problem_lines, build_document_problem_pdf
from reportbot.services.document_problems import DocumentProblemRecord
from reportbot.services.pdf_layout import truncate
from tests.conftest import local


def make_records(count: int, weeks: int = 1) -> list[DocumentProblemRecord]:
    base = local(2025, 2, 17, 10, 0).replace(tzinfo=None)
    records = []
    for index in range(count):
        records.append(DocumentProblemRecord(
            locality=f"Locality {index % 3}",
            route_name="Route A",
            client_name=f"Client {index:03d}",
            sign_date=base - timedelta(days=7 * (index % weeks)),
            subject_type=DocumentSubject.CLIENT if index % 2 == 0 else DocumentSubject.GUARANTOR,
            problem_descriptions=["INE missing", "PAGARE with error"],
            observations="Photo is cut off on the right side",
            missing_types=["INE"],
            error_types=["PAGARE"],
        ))
    return records


def make_week(sign_date, count: int) -> list[DocumentProblemRecord]:
    return [
        DocumentProblemRecord(
            locality="Centro",
            route_name="Route A",
            client_name=f"Client {sign_date:%m%d}-{index}",
            sign_date=sign_date.replace(tzinfo=None),
            subject_type=DocumentSubject.CLIENT,
            problem_descriptions=["INE missing"],
            missing_types=["INE"],
        )
        for index in range(count)
    ]


class TracingPdf(DocumentProblemPdf):
    """주 헤더/행 그리기 순서를 기록."""

    def __init__(self):
        super().__init__()
        self.events = []

    def _draw_week_header(self, pdf, group, continued=False):
        self.events.append(("header", group.week_start, continued))
        super()._draw_week_header(pdf, group, continued)

    def _row_cells(self, record):
        self.events.append(("row", record.week_start, False))
        return super()._row_cells(record)


class TestDocumentProblemPdf:
    """페이지 구성과 페이지 넘김."""

    def test_empty_report_is_single_page(self, now):
        content, builder = build_document_problem_pdf([], now, now - timedelta(days=60))

        assert content.startswith(b"%PDF"), "output must be a PDF document"
        assert builder.page_count == 1
        assert builder.rows_drawn == 0

    def test_empty_report_says_no_problems(self, monkeypatch, now):
        """압축을 끄면 본문 문자열을 그대로 확인할 수 있다."""
        monkeypatch.setattr(reportlab.rl_config, "pageCompression", 0)
        content, _ = build_document_problem_pdf([], now, now - timedelta(days=60))

        assert b"NO PROBLEMS FOUND" in content, "empty report must state that nothing was found"
        assert b"EXECUTIVE SUMMARY" not in content

    def test_single_row_has_summary_table_and_action_plan(self, now):
        content, builder = build_document_problem_pdf(make_records(1), now, now - timedelta(days=60))

        assert content.startswith(b"%PDF")
        assert builder.page_count == 3
        assert builder.rows_drawn == 1

    def test_long_table_breaks_across_pages(self, now):
        _, builder = build_document_problem_pdf(make_records(30), now, now - timedelta(days=60))

        assert builder.rows_drawn == 30, "every row must be drawn once"
        assert builder.page_count > 3, "30 rows cannot fit on one table page"

    def test_rows_split_over_several_weeks(self, now):
        _, builder = build_document_problem_pdf(make_records(12, weeks=4), now, now - timedelta(days=60))
        assert builder.rows_drawn == 12

    def test_week_header_never_left_alone_at_page_bottom(self, now):
        """4행, 5행 주 다음의 세 번째 주 헤더는 새 페이지에서 시작한다."""
        records = (
            make_week(local(2025, 2, 17, 10, 0), 4)
            + make_week(local(2025, 2, 10, 10, 0), 5)
            + make_week(local(2025, 2, 3, 10, 0), 2)
        )
        builder = TracingPdf()
        builder.build(records, now, now - timedelta(days=60))

        assert builder.rows_drawn == 11
        for current, following in zip(builder.events, builder.events[1:]):
            assert not (current[0] == "header" and following[0] == "header"), (
                f"week header {current[1]} has no row below it"
            )
        headers = [event for event in builder.events if event[0] == "header"]
        assert [continued for _, _, continued in headers] == [False, False, False]


class TestCellFormatting:
    def test_truncate_long_text(self):
        text = "abcdefghijklmnopqrstuvwxyz"
        result = truncate(text)
        assert result == "abcdefghijklmnopqrstuv..."
        assert len(result) == 25

    def test_truncate_keeps_short_text(self):
        assert truncate("a" * 25) == "a" * 25
        assert truncate("") == ""

    def test_problem_lines_are_capped(self):
        row = make_records(1)[0]
        row.problem_descriptions = [
            "INE missing", "INE with error", "DOMICILIO missing",
            "DOMICILIO with error", "PAGARE missing",
        ]
        lines = _problem_lines(row)
        assert lines == ["MISSING: INE", "ERROR: INE", "MISSING: DOMICILIO", "+2 more"]
