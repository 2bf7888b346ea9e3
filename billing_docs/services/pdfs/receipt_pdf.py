# FILE: billing_docs/services/pdfs/receipt_pdf.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Optional

from reportlab.lib import colors
from reportlab.lib.units import mm

from billing_docs.schemas.billing_payload import BillingPayload, Invoice, Transaction, parse_payload
from billing_docs.services.assets import AssetResolver
from billing_docs.services.currency import ZERO, amount_in_words, compute_totals, fmt_inr, inr
from billing_docs.services.pdfs.blocks import (
    RenderOptions,
    RenderedDocument,
    bank_panel_height,
    display_date,
    draw_bank_panel,
    draw_image_fit,
    load_logo,
    status_color,
    wrap,
    wrap_all,
)
from billing_docs.services.pdfs.engine import PageGeometry, PageManager, render_pages
from billing_docs.services.pdfs.table import Column, TableRenderer, TableSpec, TableTheme
from billing_docs.services.upi_qr import payment_qr
from billing_docs.utils.text import PLACEHOLDER, receipt_filename, safe

logger = logging.getLogger(__name__)


def _rgb(r: int, g: int, b: int) -> colors.Color:
    return colors.Color(r / 255, g / 255, b / 255)


# light palette, prints fine in black & white
PRIMARY = _rgb(8, 34, 74)
PRIMARY2 = _rgb(41, 74, 128)
INK = _rgb(27, 46, 89)
BORDER = _rgb(205, 214, 226)
ROW_ALT = _rgb(243, 248, 255)
TEXT = _rgb(60, 60, 60)
MUTED = _rgb(120, 120, 120)
SOFT_BG = _rgb(252, 252, 253)
META_BG = _rgb(245, 248, 252)
WORDS_BG = _rgb(248, 250, 252)

GEOMETRY = PageGeometry.a4(margin_x_mm=15,
                           header_h_mm=35,
                           content_top_mm=42,
                           footer_safe_mm=16)

RECEIPT_TABLE_THEME = TableTheme(
    header_fill=PRIMARY,
    header_text=colors.white,
    grid=BORDER,
    zebra_fill=ROW_ALT,
    text=_rgb(50, 50, 50),
    header_size=9,
    body_size=9,
    pad_x=3 * mm,
    pad_y=2.4 * mm,
    line_h=4.2 * mm,
    header_h=8.5 * mm,
    min_row_h=8.5 * mm,
)

NOTE = ("This is a computer-generated receipt for a single transaction and "
        "does not require a signature.")


def pick_receipt_no(invoice: Invoice, txn: Transaction) -> str:
    return (invoice.number or txn.receipt_no or txn.receipt_number
            or txn.internal_transaction_id or txn.txn_id or "RECEIPT")


def pick_status(invoice: Invoice, txn: Transaction) -> str:
    return (invoice.status or txn.status or "success").lower()


def receipt_amount(invoice: Invoice, txn: Transaction) -> Decimal:
    if txn.amount is not None:
        return txn.amount
    if invoice.total_amount is not None:
        return invoice.total_amount
    return ZERO


def build_receipt_pdf(payload: Any,
                      *,
                      assets: Optional[AssetResolver] = None,
                      options: Optional[RenderOptions] = None) -> RenderedDocument:
    """Render the payment receipt of ONE transaction (1 txn = 1 receipt)."""
    p: BillingPayload = parse_payload(payload)
    opts = options or RenderOptions()

    clinic, invoice, patient, txn, bank = p.clinic, p.invoice, p.patient, p.transaction, p.bank
    totals = compute_totals(p)

    receipt_no = pick_receipt_no(invoice, txn)
    generated = opts.generated_date()
    receipt_date = invoice.date or txn.paid_at or txn.created_at or generated.isoformat()
    status = pick_status(invoice, txn).upper()
    amount = receipt_amount(invoice, txn)
    words = invoice.amount_in_words or amount_in_words(amount)
    signature = p.signature or f"for {clinic.name or 'Clinic'}"
    jurisdiction = p.jurisdiction or ""
    clinic_name = clinic.name or "Clinic"

    # everything external is resolved before the canvas exists
    logo = load_logo(p, assets)
    show_bank = bank.show_on_receipt
    qr = payment_qr(p, totals, show=show_bank)

    G = GEOMETRY
    W = G.width
    M = G.margin_x
    usable = G.usable_width

    # ---------------- chrome ----------------
    def draw_header(pm: PageManager) -> None:
        c = pm.canvas
        c.setFillColor(PRIMARY)
        c.rect(0, pm.y(G.header_h), W, G.header_h, stroke=0, fill=1)
        c.setFillColor(PRIMARY2)
        c.rect(0, pm.y(28 * mm), W, 28 * mm, stroke=0, fill=1)

        if logo:
            logo_w, logo_h = 24 * mm, 18 * mm
            c.setFillColor(colors.white)
            c.roundRect(W - M - logo_w - 2 * mm, pm.y(8 * mm + logo_h + 4 * mm),
                        logo_w + 4 * mm, logo_h + 4 * mm, 2 * mm, stroke=0, fill=1)
            draw_image_fit(c, logo, W - M - logo_w, pm.y(10 * mm + logo_h), logo_w, logo_h)

        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", 18)
        c.drawString(M, pm.y(19 * mm), "PAYMENT RECEIPT")
        c.setFont("Helvetica", 10)
        c.drawString(M, pm.y(24 * mm), f"By {clinic_name}")

        if pm.page_number > 1:
            c.setFont("Helvetica", 8)
            c.drawString(M, pm.y(32 * mm), f"Receipt No {receipt_no} (continued)")

    def draw_footer(pm: PageManager) -> None:
        c = pm.canvas
        footer_y = 10 * mm

        c.setStrokeColor(BORDER)
        c.setLineWidth(0.3 * mm)
        c.line(M, footer_y + 4 * mm, W - M, footer_y + 4 * mm)

        c.setFont("Helvetica", 7)
        c.setFillColor(MUTED)
        if jurisdiction:
            c.drawString(M, footer_y, f"Subject to {jurisdiction} Jurisdiction")
        c.drawCentredString(W / 2, footer_y, f"Generated on {generated.strftime('%d/%m/%Y')}")
        if clinic.email:
            c.drawRightString(W - M, footer_y, clinic.email)

    def page_stamp(c, page_no: int, total: int) -> None:
        c.saveState()
        c.setFont("Helvetica", 7)
        c.setFillColor(MUTED)
        c.drawCentredString(W / 2, 5 * mm, f"Page {page_no} of {total}")
        c.restoreState()

    # ---------------- blocks ----------------
    def draw_from_and_meta(pm: PageManager) -> None:
        c = pm.canvas
        meta_h = 50 * mm
        pm.ensure_space(meta_h)
        top = pm.cursor

        info_left_w = usable * 0.55
        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(M, pm.y(top), "FROM")

        clinic_info = [
            clinic.address or "",
            f"Phone: {clinic.phone}" if clinic.phone else "",
            f"Email: {clinic.email}" if clinic.email else "",
            f"GSTIN: {clinic.gstin}" if clinic.gstin else "",
            f"State: {clinic.state_name} ({clinic.state_code or '-'})" if clinic.state_name else "",
        ]
        c.setFont("Helvetica", 8.5)
        c.setFillColor(TEXT)
        y = top + 5 * mm
        for ln in wrap_all([x for x in clinic_info if x], "Helvetica", 8.5,
                           info_left_w - 5 * mm):
            if y > top + meta_h - 2 * mm:
                break
            c.drawString(M, pm.y(y), ln)
            y += 4 * mm

        meta_x = M + info_left_w + 8 * mm
        meta_w = usable - info_left_w - 8 * mm
        c.setFillColor(META_BG)
        c.setStrokeColor(BORDER)
        c.setLineWidth(0.3 * mm)
        c.roundRect(meta_x, pm.y(top - 4 * mm + meta_h), meta_w, meta_h, 2 * mm,
                    stroke=1, fill=1)

        meta = [
            ("Receipt No", safe(receipt_no), None),
            ("Date", display_date(receipt_date), None),
            ("Mode", safe(txn.payment_mode), None),
            ("Provider", safe(txn.provider), None),
            ("Status", status, status_color(status)),
            ("Receipt Amount", inr(amount), None),
        ]
        y = top + 2 * mm
        for label, value, color in meta:
            c.setFont("Helvetica", 7.3)
            c.setFillColor(MUTED)
            c.drawString(meta_x + 4 * mm, pm.y(y), label)

            c.setFont("Helvetica-Bold", 8.7)
            c.setFillColor(color or _rgb(40, 40, 40))
            c.drawRightString(meta_x + meta_w - 4 * mm, pm.y(y), value)
            y += 8.2 * mm

        pm.advance(meta_h)

    def draw_received_from(pm: PageManager) -> None:
        c = pm.canvas
        h = 32 * mm
        pm.ensure_space(h + 2 * mm)
        top = pm.cursor

        c.setFillColor(SOFT_BG)
        c.setStrokeColor(BORDER)
        c.setLineWidth(0.3 * mm)
        c.roundRect(M, pm.y(top + h), usable, h, 2 * mm, stroke=1, fill=1)

        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(M + 4 * mm, pm.y(top + 6 * mm), "RECEIVED FROM")

        col1 = [
            f"Patient: {safe(patient.name)}",
            f"Phone: {patient.phone}" if patient.phone else "",
            f"Patient ID: {safe(patient.p_id)}",
        ]
        col2 = [
            f"Case ID: {safe(patient.case_id)}",
            f"Place of Supply: {safe(patient.place_of_supply or patient.state_name)}",
            f"Txn Ref: {safe(txn.reference)}",
        ]
        col_w = usable / 2 - 6 * mm
        c.setFont("Helvetica", 8.5)
        c.setFillColor(TEXT)
        for x, lines in ((M + 4 * mm, col1), (M + usable / 2, col2)):
            y = top + 11 * mm
            for ln in [l for l in lines if l]:
                first = wrap(ln, "Helvetica", 8.5, col_w) or [PLACEHOLDER]
                c.drawString(x, pm.y(y), first[0])
                y += 5 * mm

        pm.advance(h + 2 * mm)

    def draw_items(pm: PageManager) -> None:
        amount_w = 45 * mm
        cols = [
            Column("Description", usable - amount_w),
            Column("Amount (INR)", amount_w, align="right", bold=True, color=INK),
        ]
        rows: List[List[str]] = []
        for s in invoice.services:
            if s.cost is not None:
                line_amount = s.cost
            elif s.amount is not None:
                line_amount = s.amount
            else:
                line_amount = amount
            rows.append([s.label or "Payment Receipt", fmt_inr(line_amount)])
        if not rows:
            rows = [["Payment Received", fmt_inr(amount)]]

        TableRenderer(pm, RECEIPT_TABLE_THEME).render(TableSpec(columns=cols, rows=rows))
        pm.advance(6 * mm)

    def draw_amount_strip(pm: PageManager) -> None:
        c = pm.canvas
        pm.ensure_space(16 * mm)
        top = pm.cursor

        c.setFillColor(PRIMARY)
        c.rect(M, pm.y(top + 10 * mm), usable, 10 * mm, stroke=0, fill=1)
        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", 11)
        c.drawRightString(M + usable - 55 * mm, pm.y(top + 7 * mm), "RECEIPT AMOUNT")
        c.drawRightString(W - M - 6 * mm, pm.y(top + 7 * mm), inr(amount))

        pm.advance(14 * mm)

    def draw_words(pm: PageManager) -> None:
        c = pm.canvas
        lines = wrap(words, "Helvetica-Bold", 9, usable - 8 * mm)
        h = 14 * mm + max(0, len(lines) - 1) * 4.5 * mm
        pm.ensure_space(h + 6 * mm)
        top = pm.cursor

        c.setFillColor(WORDS_BG)
        c.setStrokeColor(BORDER)
        c.setLineWidth(0.3 * mm)
        c.roundRect(M, pm.y(top + h), usable, h, 2 * mm, stroke=1, fill=1)

        c.setFont("Helvetica-Bold", 8)
        c.setFillColor(_rgb(100, 100, 100))
        c.drawString(M + 4 * mm, pm.y(top + 5 * mm), "Amount in Words")

        c.setFont("Helvetica-Bold", 9)
        c.setFillColor(INK)
        y = top + 10 * mm
        for ln in lines:
            c.drawString(M + 4 * mm, pm.y(y), ln)
            y += 4.5 * mm

        pm.advance(h + 4 * mm)

    def draw_bill_summary(pm: PageManager) -> None:
        c = pm.canvas
        h = 20 * mm
        pm.ensure_space(26 * mm)
        top = pm.cursor

        c.setFillColor(SOFT_BG)
        c.setStrokeColor(BORDER)
        c.setLineWidth(0.3 * mm)
        c.roundRect(M, pm.y(top + h), usable, h, 2 * mm, stroke=1, fill=1)

        c.setFillColor(INK)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(M + 4 * mm, pm.y(top + 6 * mm), "BILL SUMMARY")

        c.setFont("Helvetica", 9)
        c.setFillColor(TEXT)
        y = pm.y(top + 14 * mm)
        c.drawString(M + 4 * mm, y, f"Bill Overall: {inr(totals.overall)}")
        c.drawString(M + usable / 2, y, f"Paid Till Now: {inr(totals.paid)}")
        c.drawRightString(W - M - 4 * mm, y, f"Due: {inr(totals.due)}")

        pm.advance(26 * mm)

    def draw_bank(pm: PageManager) -> None:
        c = pm.canvas
        h = bank_panel_height(p, qr, min_h=22 * mm, width=usable - 4 * mm,
                              body_size=8.5, line_h=4.5 * mm) + 1 * mm
        pm.ensure_space(h + 8 * mm)
        top = pm.cursor

        c.setFillColor(colors.white)
        c.setStrokeColor(BORDER)
        c.setLineWidth(0.3 * mm)
        c.roundRect(M, pm.y(top + h), usable, h, 2 * mm, stroke=1, fill=1)
        draw_bank_panel(
            c,
            x=M + 2 * mm,
            y_top=pm.y(top + 1 * mm),
            w=usable - 4 * mm,
            h=h - 1 * mm,
            title="BANK DETAILS / UPI" if qr else "BANK DETAILS",
            payload=p,
            qr=qr,
            ink=INK,
            muted=TEXT,
            body_size=8.5,
            line_h=4.5 * mm,
        )
        pm.advance(h + 8 * mm)

    def draw_note_and_signature(pm: PageManager) -> None:
        c = pm.canvas
        note_lines = wrap(NOTE, "Helvetica", 8, usable)
        # note lines, gap, signature line
        pm.ensure_space(len(note_lines) * 4 * mm + 4 * mm + 2 * mm)

        c.setFont("Helvetica", 8)
        c.setFillColor(_rgb(90, 90, 90))
        for ln in note_lines:
            c.drawString(M, pm.y(pm.cursor), ln)
            pm.advance(4 * mm)
        pm.advance(4 * mm)

        c.setFont("Helvetica-Bold", 8)
        c.setFillColor(INK)
        c.drawString(M, pm.y(pm.cursor), signature)
        pm.advance(2 * mm)

    def body(pm: PageManager) -> None:
        draw_from_and_meta(pm)
        draw_received_from(pm)
        draw_items(pm)
        draw_amount_strip(pm)
        draw_words(pm)
        draw_bill_summary(pm)
        if show_bank:
            draw_bank(pm)
        draw_note_and_signature(pm)

    content, pages = render_pages(
        G,
        body,
        draw_header=draw_header,
        draw_footer=draw_footer,
        page_stamp=page_stamp,
        title=f"Payment Receipt {receipt_no}",
        author=clinic.name or "",
    )

    filename = receipt_filename(receipt_no, txn.reference)
    logger.info("Receipt rendered: %s (%s page(s), %s bytes)", filename, pages, len(content))
    return RenderedDocument(filename=filename, content=content, page_count=pages)
