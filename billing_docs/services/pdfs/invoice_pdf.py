# FILE: billing_docs/services/pdfs/invoice_pdf.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Optional

from reportlab.lib import colors
from reportlab.lib.units import mm

from billing_docs.schemas.billing_payload import BillingPayload, ServiceLineItem, parse_payload
from billing_docs.services.assets import AssetResolver
from billing_docs.services.currency import amount_in_words, compute_totals, fmt_inr
from billing_docs.services.pdfs.blocks import (
    RenderOptions,
    RenderedDocument,
    bank_panel_height,
    display_date,
    draw_bank_panel,
    draw_image_fit,
    load_logo,
    state_line,
    status_color,
    wrap,
    wrap_all,
)
from billing_docs.services.pdfs.engine import PageGeometry, PageManager, render_pages
from billing_docs.services.pdfs.table import Column, TableRenderer, TableSpec, TableTheme
from billing_docs.services.upi_qr import payment_qr
from billing_docs.utils.text import PLACEHOLDER, invoice_filename, safe

logger = logging.getLogger(__name__)

DEFAULT_DECLARATION = (
    "We declare that this invoice shows the actual price of the goods "
    "described and that all particulars are true and correct.")
DEFAULT_SERVICE = "Consultation / Therapy"
DEFAULT_HSN = "9993"

GEOMETRY = PageGeometry.a4(margin_x_mm=12,
                           header_h_mm=15,
                           content_top_mm=18,
                           footer_safe_mm=16)

LINE = colors.Color(40 / 255, 40 / 255, 40 / 255)
INK = colors.black

INVOICE_TABLE_THEME = TableTheme(
    header_fill=colors.white,
    header_text=colors.black,
    grid=LINE,
    zebra_fill=None,
    text=colors.black,
    header_size=8,
    body_size=8,
    pad_x=1.6 * mm,
    pad_y=1.6 * mm,
    line_h=3.6 * mm,
    header_h=7 * mm,
    min_row_h=6.5 * mm,
)


def _num(d: Decimal) -> str:
    if d == d.to_integral_value():
        return str(int(d))
    return format(d.normalize(), "f")


def _item_row(item: ServiceLineItem) -> List[str]:
    gst = f"{_num(item.gst_rate)}%" if item.gst_rate is not None else "0%"
    return [
        safe(item.label),
        safe(item.hsn, DEFAULT_HSN),
        gst,
        fmt_inr(item.unit_rate),
        _num(item.quantity),
        fmt_inr(item.line_total),
    ]


def _mm_round(points: float, ratio: float) -> float:
    # widths are whole millimetres
    return round(points / mm * ratio) * mm


def build_invoice_pdf(payload: Any,
                      *,
                      assets: Optional[AssetResolver] = None,
                      options: Optional[RenderOptions] = None) -> RenderedDocument:
    """
    Render a GST tax invoice.

    Layout per page: "TAX INVOICE" title bar + footer with jurisdiction,
    clinic email and "Page X of Y". The first page carries the seller /
    buyer / invoice-meta block; items continue across pages and the
    totals, words + bank/UPI and declaration blocks follow the table.
    """
    p: BillingPayload = parse_payload(payload)
    opts = options or RenderOptions()

    clinic, invoice, patient, bank = p.clinic, p.invoice, p.patient, p.bank
    totals = compute_totals(p)
    fallback = opts.filename_fallback or "Invoice"
    number = invoice.number or fallback

    words = invoice.amount_in_words or amount_in_words(totals.overall)
    declaration = p.declaration or DEFAULT_DECLARATION
    signature = p.signature or f"for {safe(clinic.name, 'Clinic')}"
    jurisdiction = p.jurisdiction or ""
    status = (invoice.status or "").upper() or "PAID"

    # everything external is resolved before the canvas exists
    logo = load_logo(p, assets)
    show_bank = bank.show_on_invoice
    qr = payment_qr(p, totals, show=show_bank)

    G = GEOMETRY
    W = G.width
    M = G.margin_x
    usable = G.usable_width

    # ---------------- chrome ----------------
    def draw_header(pm: PageManager) -> None:
        c = pm.canvas
        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 12)
        c.drawCentredString(W / 2, pm.y(12 * mm), "TAX INVOICE")

        c.setFont("Helvetica", 7.5)
        c.drawRightString(W - M, pm.y(12 * mm), f"Invoice No. {number}")
        if pm.page_number > 1:
            c.drawString(M, pm.y(12 * mm), safe(clinic.name, ""))

        c.setStrokeColor(LINE)
        c.setLineWidth(0.3)
        c.line(M, pm.y(G.header_h), W - M, pm.y(G.header_h))

    def draw_footer(pm: PageManager) -> None:
        c = pm.canvas
        c.setFillColor(INK)
        c.setFont("Helvetica", 7.5)
        if jurisdiction:
            c.drawString(M, 6 * mm, f"SUBJECT TO {jurisdiction.upper()} JURISDICTION")
        if clinic.email:
            c.drawRightString(W - M, 6 * mm, clinic.email)

    def page_stamp(c, page_no: int, total: int) -> None:
        c.saveState()
        c.setFillColor(INK)
        c.setFont("Helvetica", 7.5)
        c.drawCentredString(W / 2, 6 * mm, f"Page {page_no} of {total}")
        c.restoreState()

    # ---------------- blocks ----------------
    def draw_parties(pm: PageManager) -> None:
        c = pm.canvas
        left_w = _mm_round(usable, 0.64)
        right_w = usable - left_w
        logo_w, logo_h = 18 * mm, 14 * mm

        seller = [
            clinic.address or "",
            f"GSTIN/UIN : {clinic.gstin}" if clinic.gstin else "",
            state_line("State Name", clinic.state_name, clinic.state_code),
            f"Email : {clinic.email}" if clinic.email else "",
            f"Phone : {clinic.phone}" if clinic.phone else "",
            f"Website : {clinic.website}" if clinic.website else "",
        ]
        seller_lines = wrap_all([x for x in seller if x], "Helvetica", 8,
                                left_w - 6 * mm - logo_w)
        buyer = [
            f"Name : {safe(patient.name)}",
            f"Phone : {patient.phone}" if patient.phone else "",
            f"P.ID : {patient.p_id}" if patient.p_id else "",
            f"Case ID : {patient.case_id}" if patient.case_id else "",
            state_line("State Name", patient.state_name, patient.state_code),
            f"Place of Supply : {safe(patient.place_of_supply or patient.state_name)}",
        ]
        buyer_lines = wrap_all([x for x in buyer if x], "Helvetica", 8, left_w - 4 * mm)

        # both halves grow with their lines; 52mm / 28mm is the minimum
        divider_off = max(28 * mm, 11 * mm + len(seller_lines) * 3.6 * mm)
        block_h = max(52 * mm, divider_off + 10 * mm + len(buyer_lines) * 3.6 * mm)
        pm.ensure_space(block_h + 4 * mm)

        top = pm.cursor
        divider = top + divider_off

        c.setLineWidth(0.3)
        c.setStrokeColor(LINE)
        c.rect(M, pm.y(top + block_h), left_w, block_h, stroke=1, fill=0)
        rx = M + left_w
        c.rect(rx, pm.y(top + block_h), right_w, block_h, stroke=1, fill=0)

        if logo:
            draw_image_fit(c, logo, M + left_w - logo_w - 3 * mm,
                           pm.y(top + 3 * mm + logo_h), logo_w, logo_h)

        # seller
        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(M + 2 * mm, pm.y(top + 6 * mm), safe(clinic.name, "CLINIC"))

        c.setFont("Helvetica", 8)
        sy = top + 11 * mm
        for ln in seller_lines:
            c.drawString(M + 2 * mm, pm.y(sy), ln)
            sy += 3.6 * mm

        c.line(M, pm.y(divider), M + left_w, pm.y(divider))

        # buyer
        c.setFont("Helvetica-Bold", 8.5)
        c.drawString(M + 2 * mm, pm.y(divider + 6 * mm), "Buyer (Bill to)")

        c.setFont("Helvetica", 8)
        by = divider + 10 * mm
        for ln in buyer_lines:
            c.drawString(M + 2 * mm, pm.y(by), ln)
            by += 3.6 * mm

        # invoice meta
        label_x = rx + 2 * mm
        value_x = rx + 26 * mm
        value_w = right_w - 28 * mm
        meta = [
            ("Invoice No.", number, INK),
            ("Dated", display_date(invoice.date) if invoice.date else PLACEHOLDER, INK),
            ("Status", status, status_color(status)),
            ("Total", f"INR {fmt_inr(totals.overall)}", INK),
        ]
        yy = top + 8 * mm
        for label, value, color in meta:
            c.setFillColor(INK)
            c.setFont("Helvetica-Bold", 8.5)
            c.drawString(label_x, pm.y(yy), label)
            c.setFillColor(color)
            c.setFont("Helvetica", 8.5)
            lines = wrap(value, "Helvetica", 8.5, value_w) or [PLACEHOLDER]
            c.drawString(value_x, pm.y(yy), lines[0])
            yy += 6 * mm

        pm.advance(block_h + 4 * mm)

    def item_columns() -> List[Column]:
        desc_w = _mm_round(usable, 0.46)
        fixed = [20 * mm, 16 * mm, 22 * mm, 14 * mm]
        amount_w = usable - desc_w - sum(fixed)
        return [
            Column("Description", desc_w),
            Column("HSN/SAC", fixed[0], align="center"),
            Column("GST %", fixed[1], align="center"),
            Column("Rate (INR)", fixed[2], align="right"),
            Column("Qty", fixed[3], align="center"),
            Column("Amount (INR)", amount_w, align="right", bold=True),
        ]

    def draw_items(pm: PageManager) -> List[Column]:
        cols = item_columns()
        if invoice.services:
            rows = [_item_row(s) for s in invoice.services]
        else:
            overall = fmt_inr(totals.overall)
            rows = [[DEFAULT_SERVICE, DEFAULT_HSN, "0%", overall, "1", overall]]

        TableRenderer(pm, INVOICE_TABLE_THEME).render(TableSpec(columns=cols, rows=rows))
        return cols

    def draw_total_strip(pm: PageManager, amount_w: float) -> None:
        c = pm.canvas
        h = 7 * mm
        pm.ensure_space(h + 3 * mm)
        top = pm.cursor
        amount_x = M + usable - amount_w

        c.setStrokeColor(LINE)
        c.setLineWidth(0.3)
        c.rect(M, pm.y(top + h), usable - amount_w, h, stroke=1, fill=0)
        c.rect(amount_x, pm.y(top + h), amount_w, h, stroke=1, fill=0)

        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 9)
        c.drawRightString(amount_x - 4 * mm, pm.y(top + 4.8 * mm), "Total (INR)")
        c.drawRightString(amount_x + amount_w - 2 * mm, pm.y(top + 4.8 * mm),
                          fmt_inr(totals.overall))
        pm.advance(h + 3 * mm)

    def draw_words_and_bank(pm: PageManager) -> None:
        c = pm.canvas
        left_w = _mm_round(usable, 0.58)
        gap = 2 * mm
        right_w = usable - left_w - gap

        words_lines = wrap(words, "Helvetica", 8, left_w - 4 * mm)
        words_h = max(16 * mm, 10 * mm + len(words_lines) * 4 * mm)
        bank_h = max(words_h, 34 * mm)
        if show_bank:
            bank_h = bank_panel_height(p, qr, min_h=bank_h, width=right_w)

        pm.ensure_space(bank_h + 3 * mm)
        top = pm.cursor

        c.setStrokeColor(LINE)
        c.setLineWidth(0.3)
        c.rect(M, pm.y(top + words_h), left_w, words_h, stroke=1, fill=0)
        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 8.5)
        c.drawString(M + 2 * mm, pm.y(top + 5 * mm), "Amount Chargeable (in words)")
        c.setFont("Helvetica", 8)
        wy = top + 9 * mm
        for ln in words_lines:
            c.drawString(M + 2 * mm, pm.y(wy), ln)
            wy += 4 * mm

        bank_x = M + left_w + gap
        c.rect(bank_x, pm.y(top + bank_h), right_w, bank_h, stroke=1, fill=0)
        draw_bank_panel(
            c,
            x=bank_x,
            y_top=pm.y(top),
            w=right_w,
            h=bank_h,
            title="Company Bank / UPI" if qr else "Company Bank Details",
            payload=p,
            qr=qr,
            show_details=show_bank,
        )
        pm.advance(bank_h + 3 * mm)

    def draw_declaration(pm: PageManager) -> None:
        c = pm.canvas
        sig_w = 52 * mm
        decl_w = usable - sig_w - 2 * mm
        decl_lines = wrap(declaration, "Helvetica", 8, decl_w - 4 * mm)
        h = max(18 * mm, 8 * mm + len(decl_lines) * 4 * mm)

        pm.ensure_space(h)
        top = pm.cursor

        c.setStrokeColor(LINE)
        c.setLineWidth(0.3)
        c.rect(M, pm.y(top + h), decl_w, h, stroke=1, fill=0)
        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 8.5)
        c.drawString(M + 2 * mm, pm.y(top + 5 * mm), "Declaration")
        c.setFont("Helvetica", 8)
        dy = top + 9 * mm
        for ln in decl_lines:
            c.drawString(M + 2 * mm, pm.y(dy), ln)
            dy += 4 * mm

        sig_x = M + decl_w + 2 * mm
        c.rect(sig_x, pm.y(top + h), sig_w, h, stroke=1, fill=0)
        c.setFont("Helvetica", 8)
        sig_lines = wrap(signature, "Helvetica", 8, sig_w - 4 * mm) or [signature]
        c.drawString(sig_x + 2 * mm, pm.y(top + h - 7 * mm), sig_lines[0])
        c.setFont("Helvetica-Bold", 8)
        c.drawString(sig_x + 2 * mm, pm.y(top + h - 2.5 * mm), "Authorised Signatory")
        pm.advance(h)

    def body(pm: PageManager) -> None:
        draw_parties(pm)
        cols = draw_items(pm)
        draw_total_strip(pm, cols[-1].width)
        draw_words_and_bank(pm)
        draw_declaration(pm)

    content, pages = render_pages(
        G,
        body,
        draw_header=draw_header,
        draw_footer=draw_footer,
        page_stamp=page_stamp,
        title=f"Tax Invoice {number}",
        author=clinic.name or "",
    )

    filename = invoice_filename(number)
    logger.info("Invoice rendered: %s (%s page(s), %s bytes)", filename, pages, len(content))
    return RenderedDocument(filename=filename, content=content, page_count=pages)
