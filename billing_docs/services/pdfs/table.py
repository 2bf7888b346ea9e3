# FILE: billing_docs/services/pdfs/table.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit

from billing_docs.core.errors import LayoutError
from billing_docs.services.pdfs.engine import PageManager

logger = logging.getLogger(__name__)

WIDTH_TOLERANCE = 0.5  # pt


@dataclass(frozen=True)
class Column:
    label: str
    width: float
    align: str = "left"  # left | center | right
    bold: bool = False
    color: Any = None


@dataclass(frozen=True)
class TableTheme:
    header_fill: Any = colors.HexColor("#0b1220")
    header_text: Any = colors.white
    grid: Any = colors.HexColor("#e5e7eb")
    zebra_fill: Any = colors.HexColor("#f8fafc")
    text: Any = colors.HexColor("#0f172a")
    font: str = "Helvetica"
    bold_font: str = "Helvetica-Bold"
    header_size: float = 8.5
    body_size: float = 8.5
    pad_x: float = 2 * mm
    pad_y: float = 1.8 * mm
    line_h: float = 3.8 * mm
    header_h: float = 8 * mm
    min_row_h: float = 7 * mm


@dataclass
class TableSpec:
    columns: List[Column]
    rows: List[List[str]]
    # called after every page break caused by the table, before the header
    # row is redrawn on the new page
    on_continue: Optional[Callable[[PageManager], None]] = None
    header_cells: Optional[List[str]] = None

    def headers(self) -> List[str]:
        return self.header_cells or [col.label for col in self.columns]


@dataclass
class _Row:
    lines: List[List[str]] = field(default_factory=list)
    height: float = 0.0


class TableRenderer:
    """Draws a bordered, zebra-striped table that continues across pages."""

    def __init__(self, pm: PageManager, theme: Optional[TableTheme] = None):
        self.pm = pm
        self.theme = theme or TableTheme()
        self.header_draws = 0

    # ---- measuring ----
    def _font_for(self, col: Column) -> str:
        return self.theme.bold_font if col.bold else self.theme.font

    def _wrap(self, text: Any, col: Column) -> List[str]:
        s = "" if text is None else str(text)
        avail = max(1.0, col.width - 2 * self.theme.pad_x)
        lines = simpleSplit(s, self._font_for(col), self.theme.body_size, avail)
        return lines or [""]

    def _row(self, lines: List[List[str]]) -> _Row:
        t = self.theme
        n = max((len(x) for x in lines), default=1)
        return _Row(lines=lines, height=max(t.min_row_h, 2 * t.pad_y + n * t.line_h))

    def _measure(self, columns: Sequence[Column], cells: Sequence[Any]) -> _Row:
        return self._row([
            self._wrap(cells[i] if i < len(cells) else "", col)
            for i, col in enumerate(columns)
        ])

    def _page_room(self) -> float:
        """Height left for rows on a fresh page, below the header row."""
        g = self.pm.geometry
        return g.content_bottom - g.content_top - self.theme.header_h

    def _lines_fitting(self, room: float) -> int:
        t = self.theme
        if room < t.min_row_h:
            return 0
        return max(0, int((room - 2 * t.pad_y) // t.line_h))

    def _split(self, row: _Row, n: int) -> Tuple[_Row, _Row]:
        return (self._row([x[:n] for x in row.lines]),
                self._row([x[n:] for x in row.lines]))

    def _check_widths(self, columns: Sequence[Column]) -> None:
        total = sum(col.width for col in columns)
        usable = self.pm.geometry.usable_width
        if abs(total - usable) > WIDTH_TOLERANCE:
            raise LayoutError(
                f"column widths sum to {total:.2f}pt, usable width is {usable:.2f}pt")

    # ---- drawing ----
    def _text_x(self, x0: float, col: Column) -> float:
        if col.align == "right":
            return x0 + col.width - self.theme.pad_x
        if col.align == "center":
            return x0 + col.width / 2
        return x0 + self.theme.pad_x

    def _draw_text(self, x: float, y: float, text: str, align: str) -> None:
        c = self.pm.canvas
        if align == "right":
            c.drawRightString(x, y, text)
        elif align == "center":
            c.drawCentredString(x, y, text)
        else:
            c.drawString(x, y, text)

    def _verticals(self, columns: Sequence[Column], top: float, h: float) -> None:
        c = self.pm.canvas
        x = self.pm.geometry.margin_x
        for col in columns[:-1]:
            x += col.width
            c.line(x, self.pm.y(top + h), x, self.pm.y(top))

    def draw_header(self, spec: TableSpec) -> None:
        pm, t, c = self.pm, self.theme, self.pm.canvas
        top = pm.cursor
        h = t.header_h
        x0 = pm.geometry.margin_x

        c.saveState()
        c.setFillColor(t.header_fill)
        c.setStrokeColor(t.header_fill)
        c.rect(x0, pm.y(top + h), pm.geometry.usable_width, h, stroke=1, fill=1)

        c.setFillColor(t.header_text)
        c.setFont(t.bold_font, t.header_size)
        x = x0
        for col, label in zip(spec.columns, spec.headers()):
            self._draw_text(self._text_x(x, col), pm.y(top + h / 2 + t.header_size * 0.35),
                            label, col.align)
            x += col.width
        c.restoreState()

        pm.advance(h)
        self.header_draws += 1

    def _draw_row(self, spec: TableSpec, row: _Row, zebra: bool) -> None:
        pm, t, c = self.pm, self.theme, self.pm.canvas
        top = pm.cursor
        x0 = pm.geometry.margin_x

        c.saveState()
        c.setFillColor(t.zebra_fill if (zebra and t.zebra_fill is not None) else colors.white)
        c.setStrokeColor(t.grid)
        c.setLineWidth(0.6)
        c.rect(x0, pm.y(top + row.height), pm.geometry.usable_width, row.height,
               stroke=1, fill=1)
        self._verticals(spec.columns, top, row.height)

        x = x0
        for col, lines in zip(spec.columns, row.lines):
            c.setFont(self._font_for(col), t.body_size)
            c.setFillColor(col.color or t.text)
            tx = self._text_x(x, col)
            for i, ln in enumerate(lines):
                baseline = top + t.pad_y + (i + 1) * t.line_h - 1.0 * mm
                self._draw_text(tx, pm.y(baseline), ln, col.align)
            x += col.width
        c.restoreState()

        pm.advance(row.height)

    def _break(self, spec: TableSpec) -> None:
        self.pm.new_page()
        if spec.on_continue:
            spec.on_continue(self.pm)
        self.draw_header(spec)

    def _place_row(self, spec: TableSpec, row: _Row, zebra: bool) -> None:
        """
        Rows that fit a fresh page move there whole; taller rows are split
        line-wise, the first part filling the current page.
        """
        fresh = False
        while True:
            room = self.pm.remaining()
            if row.height <= room:
                self._draw_row(spec, row, zebra)
                return

            n = self._lines_fitting(room)
            if not fresh and (n < 1 or row.height <= self._page_room()):
                self._break(spec)
                fresh = True
                continue
            if n < 1:
                logger.warning("table row does not fit below the header on an empty page")
                self._draw_row(spec, row, zebra)
                return

            head, row = self._split(row, n)
            self._draw_row(spec, head, zebra)
            self._break(spec)
            fresh = True

    def render(self, spec: TableSpec) -> float:
        """Draw header + rows from the current cursor; returns the cursor below the table."""
        self._check_widths(spec.columns)
        if not spec.rows:
            return self.pm.cursor

        rows = [self._measure(spec.columns, cells) for cells in spec.rows]

        # never leave a header row alone at the bottom of a page
        first = rows[0].height
        if first > self._page_room():
            first = self.theme.min_row_h
        if self.pm.ensure_space(self.theme.header_h + first) and spec.on_continue:
            spec.on_continue(self.pm)
        self.draw_header(spec)

        for i, row in enumerate(rows):
            self._place_row(spec, row, zebra=(i % 2 == 1))

        logger.debug("table: %s rows, %s header draws", len(rows), self.header_draws)
        return self.pm.cursor
