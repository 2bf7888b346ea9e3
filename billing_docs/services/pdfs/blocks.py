# FILE: billing_docs/services/pdfs/blocks.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas as rl_canvas

from billing_docs.core.config import settings
from billing_docs.services.assets import AssetResolver, RasterImage
from billing_docs.utils.text import PLACEHOLDER, safe
from billing_docs.utils.timezone import local_tz, today_local

logger = logging.getLogger(__name__)

STATUS_GREEN = colors.Color(34 / 255, 139 / 255, 34 / 255)
STATUS_RED = colors.Color(220 / 255, 38 / 255, 38 / 255)
STATUS_AMBER = colors.Color(255 / 255, 140 / 255, 0)

QR_SIZE = 24 * mm


# -----------------------------
# Render options / result
# -----------------------------
@dataclass(frozen=True)
class RenderOptions:
    # fixed "Generated on" date keeps re-renders byte-identical
    generated_on: Optional[date] = None
    filename_fallback: Optional[str] = None

    def generated_date(self) -> date:
        return self.generated_on or today_local()


@dataclass(frozen=True)
class RenderedDocument:
    filename: str
    content: bytes
    page_count: int
    media_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.content)


# -----------------------------
# Text helpers
# -----------------------------
def status_color(status: Any) -> colors.Color:
    s = str(status or "").strip().upper()
    if s in ("SUCCESS", "PAID"):
        return STATUS_GREEN
    if s == "FAILED":
        return STATUS_RED
    return STATUS_AMBER


def display_date(v: Any) -> str:
    """dd/mm/yyyy for ISO dates; strings like "16 Dec 2025" are kept as sent."""
    if v is None or v == "":
        return PLACEHOLDER
    if isinstance(v, datetime):
        dt = v.astimezone(local_tz()) if v.tzinfo else v
        return dt.strftime("%d/%m/%Y")
    if isinstance(v, date):
        return v.strftime("%d/%m/%Y")

    s = str(v).strip()
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        # already formatted for display ("16 Dec 2025") or unknown: as sent
        return s
    if dt.tzinfo is not None:
        dt = dt.astimezone(local_tz())
    return dt.strftime("%d/%m/%Y")


def wrap(text: Any, font: str, size: float, max_w: float) -> List[str]:
    s = "" if text is None else str(text).replace("\n", " ").strip()
    if not s:
        return []
    return simpleSplit(s, font, size, max_w) or [s]


def wrap_all(lines: Sequence[str], font: str, size: float, max_w: float) -> List[str]:
    out: List[str] = []
    for ln in lines:
        out.extend(wrap(ln, font, size, max_w))
    return out


def state_line(label: str, state_name: Optional[str], state_code: Optional[str]) -> str:
    if not (state_name or state_code):
        return ""
    return f"{label} : {safe(state_name)}, Code : {safe(state_code)}"


# -----------------------------
# Images
# -----------------------------
def load_logo(payload: Any, assets: Optional[AssetResolver]) -> Optional[RasterImage]:
    resolver = assets or AssetResolver()
    clinic = payload.clinic
    return resolver.resolve_first(clinic.logo_url, clinic.logo, settings.FALLBACK_LOGO_URL)


def draw_image_fit(c: rl_canvas.Canvas, img: RasterImage, x: float, y: float,
                   w: float, h: float) -> None:
    """Draw inside the (x, y, w, h) box keeping the aspect ratio, centred."""
    iw, ih = img.size
    scale = min(w / float(iw), h / float(ih))
    dw, dh = iw * scale, ih * scale
    try:
        c.drawImage(img.reader(), x + (w - dw) / 2, y + (h - dh) / 2,
                    width=dw, height=dh, mask="auto")
    except Exception:
        logger.exception("Failed to draw image")


# -----------------------------
# Bank / UPI panel
# -----------------------------
def bank_lines(payload: Any) -> List[Tuple[str, str]]:
    bank = payload.bank
    rows = [
        ("A/c Holder", safe(bank.account_holder or payload.clinic.name)),
        ("Bank", safe(bank.bank_name)),
        ("A/c No.", safe(bank.account_number)),
        ("IFSC", safe(bank.ifsc)),
        ("Branch", safe(bank.branch)),
    ]
    if bank.upi_id:
        rows.append(("UPI ID", bank.upi_id))
    return rows


def bank_panel_height(payload: Any, qr: Optional[RasterImage], *, min_h: float,
                      width: float, body_size: float = 7.6,
                      line_h: float = 3.5 * mm) -> float:
    detail_w = width - (QR_SIZE + 2 * mm if qr else 0) - 4 * mm
    lines = wrap_all([f"{k} : {v}" for k, v in bank_lines(payload)],
                     "Helvetica", body_size, detail_w)
    h = 9 * mm + len(lines) * line_h + 2 * mm
    if qr:
        h = max(h, 8 * mm + QR_SIZE + 5 * mm)
    return max(min_h, h)


def draw_bank_panel(c: rl_canvas.Canvas,
                    *,
                    x: float,
                    y_top: float,
                    w: float,
                    h: float,
                    title: str,
                    payload: Any,
                    qr: Optional[RasterImage],
                    show_details: bool = True,
                    ink: Any = colors.black,
                    muted: Any = colors.black,
                    body_size: float = 7.6,
                    line_h: float = 3.5 * mm) -> None:
    """
    Bank details on the left, optional "Scan to Pay" QR on the right.

    y_top is a reportlab coordinate (top edge of the box); the box outline
    is left to the caller.
    """
    c.setFillColor(ink)
    c.setFont("Helvetica-Bold", 8.5)
    c.drawString(x + 2 * mm, y_top - 5 * mm, title)

    qr_w = QR_SIZE + 2 * mm if qr else 0
    detail_w = w - qr_w - 4 * mm

    c.setFont("Helvetica", body_size)
    c.setFillColor(muted)
    if not show_details:
        c.drawString(x + 2 * mm, y_top - 11 * mm, PLACEHOLDER)
    else:
        ly = y_top - 9 * mm
        floor = y_top - h + 3 * mm
        for k, v in bank_lines(payload):
            for ln in wrap(f"{k} : {v}", "Helvetica", body_size, detail_w):
                if ly < floor:
                    break
                c.drawString(x + 2 * mm, ly, ln)
                ly -= line_h

    if qr:
        qx = x + w - QR_SIZE - 2 * mm
        qy = y_top - 8 * mm - QR_SIZE
        draw_image_fit(c, qr, qx, qy, QR_SIZE, QR_SIZE)
        c.setFillColor(ink)
        c.setFont("Helvetica-Bold", 7)
        c.drawCentredString(qx + QR_SIZE / 2, qy - 3.5 * mm, "Scan to Pay")
