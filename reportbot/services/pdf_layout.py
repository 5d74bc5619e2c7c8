"""
PDF 공통 레이아웃 (ReportLab canvas)

좌표는 위에서 아래로 증가하는 y 커서로 다루고, 그릴 때만 ReportLab 좌표(아래→위)로 변환한다.
"""

import io
from dataclasses import dataclass

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

PAGE_WIDTH, PAGE_HEIGHT = letter  # 612 x 792

HEADER_HEIGHT = 90
CONTENT_TOP = 110
MARGIN_X = 50
TABLE_WIDTH = 512
PAGE_BREAK_Y = 650
FOOTER_Y = 760

ROW_HEIGHT = 50
TABLE_HEADER_HEIGHT = 35
WEEK_HEADER_HEIGHT = 25

CELL_CHAR_LIMIT = 25

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

BRAND_PRIMARY = colors.HexColor("#1E3A8A")
BRAND_ACCENT = colors.HexColor("#F59E0B")
TEXT_DARK = colors.HexColor("#111827")
TEXT_MUTED = colors.HexColor("#6B7280")
ROW_SHADE = colors.HexColor("#F3F4F6")
WEEK_BAND = colors.HexColor("#DBEAFE")
BORDER = colors.HexColor("#D1D5DB")
DANGER = colors.HexColor("#DC2626")
WARNING = colors.HexColor("#D97706")
SUCCESS = colors.HexColor("#059669")


@dataclass(frozen=True)
class Column:
    label: str
    width: float


def truncate(text: str, limit: int = CELL_CHAR_LIMIT) -> str:
    """limit 초과 시 (limit - 3)자 + "..." """
    text = text or ""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def wrap_text(text: str, width: float, font: str = FONT, size: float = 7) -> list[str]:
    return simpleSplit(text or "", font, size, width)


class ReportCanvas:
    """
    페이지/커서 관리 래퍼
    - new_page(): 이전 페이지를 닫고 헤더 밴드를 그린 뒤 커서를 본문 시작점으로 이동
    - page_count: 지금까지 시작한 페이지 수
    """

    def __init__(self, title: str, subtitle: str = ""):
        self.title = title
        self.subtitle = subtitle
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=letter)
        self._canvas.setTitle(title)
        self.page_count = 0
        self.y = CONTENT_TOP

    # ---------- 페이지 ----------

    def new_page(self):
        if self.page_count > 0:
            self._canvas.showPage()
        self.page_count += 1
        self._draw_header_band()
        self._draw_page_number()
        self.y = CONTENT_TOP

    def needs_break(self, reserve: float = 0) -> bool:
        return self.y + reserve > PAGE_BREAK_Y

    def finish(self) -> bytes:
        self._canvas.save()
        return self._buffer.getvalue()

    def _draw_header_band(self):
        self.fill_rect(0, 0, PAGE_WIDTH, HEADER_HEIGHT, BRAND_PRIMARY)
        self.fill_rect(0, HEADER_HEIGHT - 4, PAGE_WIDTH, 4, BRAND_ACCENT)
        self.text(MARGIN_X, 40, self.title, size=18, bold=True, color=colors.white)
        if self.subtitle:
            self.text(MARGIN_X, 62, self.subtitle, size=10, color=colors.white)

    def _draw_page_number(self):
        self.text(
            PAGE_WIDTH - MARGIN_X, FOOTER_Y, f"Page {self.page_count}",
            size=8, color=TEXT_MUTED, align="right",
        )

    # ---------- 기본 도형 ----------

    def fill_rect(self, x: float, top: float, width: float, height: float, fill, stroke=None):
        c = self._canvas
        c.setFillColor(fill)
        if stroke is not None:
            c.setStrokeColor(stroke)
            c.setLineWidth(0.5)
        c.rect(x, PAGE_HEIGHT - top - height, width, height, fill=1, stroke=1 if stroke is not None else 0)

    def line(self, x1: float, y1: float, x2: float, y2: float, color=BORDER):
        c = self._canvas
        c.setStrokeColor(color)
        c.setLineWidth(0.5)
        c.line(x1, PAGE_HEIGHT - y1, x2, PAGE_HEIGHT - y2)

    def text(self, x: float, baseline: float, value: str, size: float = 10, bold: bool = False,
             color=TEXT_DARK, align: str = "left"):
        c = self._canvas
        c.setFillColor(color)
        c.setFont(FONT_BOLD if bold else FONT, size)
        y = PAGE_HEIGHT - baseline
        if align == "right":
            c.drawRightString(x, y, value)
        elif align == "center":
            c.drawCentredString(x, y, value)
        else:
            c.drawString(x, y, value)

    # ---------- 커서 기반 ----------

    def heading(self, value: str, size: float = 13, color=BRAND_PRIMARY):
        self.text(MARGIN_X, self.y + size, value, size=size, bold=True, color=color)
        self.y += size + 10

    def paragraph(self, value: str, size: float = 9, color=TEXT_DARK, bold: bool = False):
        for line in wrap_text(value, TABLE_WIDTH, FONT_BOLD if bold else FONT, size):
            self.text(MARGIN_X, self.y + size, line, size=size, color=color, bold=bold)
            self.y += size + 4

    def space(self, amount: float):
        self.y += amount

    def stat_grid(self, stats: list[tuple[str, str]], columns: int = 3, cell_height: float = 55):
        """통계 카드 격자 (값 + 라벨)"""
        cell_width = TABLE_WIDTH / columns
        for index, (label, value) in enumerate(stats):
            row, col = divmod(index, columns)
            x = MARGIN_X + col * cell_width
            top = self.y + row * cell_height
            self.fill_rect(x + 2, top + 2, cell_width - 4, cell_height - 4, ROW_SHADE, stroke=BORDER)
            self.text(x + cell_width / 2, top + 26, value, size=16, bold=True,
                      color=BRAND_PRIMARY, align="center")
            self.text(x + cell_width / 2, top + 42, label, size=8, color=TEXT_MUTED, align="center")
        rows = (len(stats) + columns - 1) // columns
        self.y += rows * cell_height + 10

    def table_header(self, columns: list[Column]):
        self.fill_rect(MARGIN_X, self.y, TABLE_WIDTH, TABLE_HEADER_HEIGHT, BRAND_PRIMARY)
        x = MARGIN_X
        for column in columns:
            self.text(x + 4, self.y + 21, column.label, size=8, bold=True, color=colors.white)
            x += column.width
        self.y += TABLE_HEADER_HEIGHT

    def table_row(self, columns: list[Column], cells: list, height: float, shade: bool = False):
        """
        cells 항목: str (한 줄) 또는 list[str] (여러 줄, 행 높이에 맞춰 잘림)
        """
        if shade:
            self.fill_rect(MARGIN_X, self.y, TABLE_WIDTH, height, ROW_SHADE)
        self.line(MARGIN_X, self.y + height, MARGIN_X + TABLE_WIDTH, self.y + height)

        x = MARGIN_X
        for column, cell in zip(columns, cells):
            lines = cell if isinstance(cell, list) else [cell]
            max_lines = max(1, int((height - 6) // 9))
            for index, line in enumerate(lines[:max_lines]):
                self.text(x + 4, self.y + 12 + index * 9, line, size=7)
            x += column.width
        self.y += height
