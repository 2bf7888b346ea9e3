# FILE: billing_docs/services/pdfs/engine.py
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as rl_canvas

from billing_docs.core.errors import LayoutError

logger = logging.getLogger(__name__)

PHASE_FRESH = "fresh"
PHASE_ACTIVE = "active"
PHASE_DONE = "done"


def mm_pt(x_mm: float) -> float:
    return x_mm * mm


# -----------------------------
# Page-number canvas (Page X of Y)
# -----------------------------
class NumberedCanvas(rl_canvas.Canvas):
    """
    Two-pass canvas:
    - showPage() stores the page state and starts the next page
    - save() keeps the open page as the last one, replays every stored page,
      lets footer_cb stamp "Page X of Y",
      then writes the file without the base save() (which would add a page)
    """

    def __init__(self, *args, footer_cb=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states: List[Dict[str, Any]] = []
        self._footer_cb = footer_cb

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        # the open page is always a real page here (PageManager opened it)
        self._saved_page_states.append(dict(self.__dict__))
        total_pages = len(self._saved_page_states)

        for state in self._saved_page_states:
            self.__dict__.update(state)
            if callable(self._footer_cb):
                self._footer_cb(self, self._pageNumber, total_pages)
            rl_canvas.Canvas.showPage(self)

        self._code = []
        self._doc.SaveToFile(self._filename, self)


# -----------------------------
# Geometry / state
# -----------------------------
@dataclass(frozen=True)
class PageGeometry:
    """All values in points; offsets are measured from the top edge."""

    width: float
    height: float
    margin_x: float
    header_h: float
    content_top: float
    footer_safe: float

    @classmethod
    def a4(cls, *, margin_x_mm: float, header_h_mm: float,
           content_top_mm: float, footer_safe_mm: float) -> "PageGeometry":
        w, h = A4
        return cls(
            width=w,
            height=h,
            margin_x=mm_pt(margin_x_mm),
            header_h=mm_pt(header_h_mm),
            content_top=mm_pt(content_top_mm),
            footer_safe=mm_pt(footer_safe_mm),
        )

    @property
    def usable_width(self) -> float:
        return self.width - 2 * self.margin_x

    @property
    def content_bottom(self) -> float:
        return self.height - self.footer_safe

    @property
    def right(self) -> float:
        return self.width - self.margin_x


@dataclass
class RenderState:
    page_index: int = 0
    cursor: float = 0.0
    phase: str = PHASE_FRESH
    header_pages: List[int] = field(default_factory=list)
    footer_pages: List[int] = field(default_factory=list)


ChromeCallback = Callable[["PageManager"], None]


class PageManager:
    """
    Owns the vertical cursor of one render.

    Content code asks for room with ensure_space(h) before drawing a block;
    the manager closes the page (footer), opens the next one (header) and
    resets the cursor when the block would cross the footer-safe limit.
    """

    def __init__(self,
                 c: rl_canvas.Canvas,
                 geometry: PageGeometry,
                 *,
                 draw_header: Optional[ChromeCallback] = None,
                 draw_footer: Optional[ChromeCallback] = None):
        self.canvas = c
        self.geometry = geometry
        self._draw_header = draw_header
        self._draw_footer = draw_footer
        self.state = RenderState(cursor=geometry.content_top)

    # ---- protocol ----
    def _require_active(self, what: str) -> None:
        if self.state.phase != PHASE_ACTIVE:
            raise LayoutError(f"{what} called while page manager is {self.state.phase}")

    def begin(self) -> "PageManager":
        if self.state.phase != PHASE_FRESH:
            raise LayoutError("begin() called twice")
        self.state.phase = PHASE_ACTIVE
        self._header()
        self.state.cursor = self.geometry.content_top
        return self

    def finish(self) -> int:
        self._require_active("finish()")
        self._footer()
        self.state.phase = PHASE_DONE
        return self.page_count

    def _header(self) -> None:
        idx = self.state.page_index
        if idx in self.state.header_pages:
            raise LayoutError(f"header already drawn on page {idx + 1}")
        self.state.header_pages.append(idx)
        if self._draw_header:
            self.canvas.saveState()
            self._draw_header(self)
            self.canvas.restoreState()

    def _footer(self) -> None:
        idx = self.state.page_index
        if idx in self.state.footer_pages:
            raise LayoutError(f"footer already drawn on page {idx + 1}")
        self.state.footer_pages.append(idx)
        if self._draw_footer:
            self.canvas.saveState()
            self._draw_footer(self)
            self.canvas.restoreState()

    # ---- pages ----
    @property
    def page_number(self) -> int:
        return self.state.page_index + 1

    @property
    def page_count(self) -> int:
        return self.state.page_index + 1

    @property
    def cursor(self) -> float:
        return self.state.cursor

    @property
    def at_page_top(self) -> bool:
        return self.state.cursor <= self.geometry.content_top

    def new_page(self) -> None:
        self._require_active("new_page()")
        self._footer()
        self.canvas.showPage()
        self.state.page_index += 1
        self._header()
        self.state.cursor = self.geometry.content_top
        logger.debug("page break -> page %s", self.page_number)

    def ensure_space(self, h: float) -> bool:
        """Break the page when h more points do not fit; True if it broke."""
        self._require_active("ensure_space()")
        if self.state.cursor + h <= self.geometry.content_bottom:
            return False
        if self.at_page_top:
            # taller than a whole page: draw it here rather than loop on blanks
            logger.warning("block of %.1fpt does not fit an empty page", h)
            return False
        self.new_page()
        return True

    # ---- cursor ----
    def advance(self, h: float) -> float:
        self._require_active("advance()")
        self.state.cursor += h
        return self.state.cursor

    def move_to(self, offset: float) -> float:
        self._require_active("move_to()")
        self.state.cursor = offset
        return self.state.cursor

    def y(self, offset: float) -> float:
        """Top-down offset -> reportlab bottom-up coordinate."""
        return self.geometry.height - offset

    def remaining(self) -> float:
        return self.geometry.content_bottom - self.state.cursor


# -----------------------------
# Document driver
# -----------------------------
PageStamp = Callable[[rl_canvas.Canvas, int, int], None]


def render_pages(geometry: PageGeometry,
                 body: Callable[[PageManager], None],
                 *,
                 draw_header: Optional[ChromeCallback] = None,
                 draw_footer: Optional[ChromeCallback] = None,
                 page_stamp: Optional[PageStamp] = None,
                 title: str = "",
                 author: str = "") -> Tuple[bytes, int]:
    """
    Run one layout pass and return (pdf bytes, page count).

    invariant=1 keeps the output byte-identical for identical input, so no
    creation timestamp or random document id ends up in the file.
    """
    # fresh buffer per call
    buf = io.BytesIO()
    c = NumberedCanvas(
        buf,
        pagesize=(geometry.width, geometry.height),
        footer_cb=page_stamp,
        invariant=1,
    )
    c.setTitle(title)
    c.setAuthor(author)

    pm = PageManager(c, geometry, draw_header=draw_header, draw_footer=draw_footer)
    pm.begin()
    body(pm)
    pages = pm.finish()
    c.save()

    pdf_bytes = buf.getvalue()
    buf.close()
    return pdf_bytes, pages
