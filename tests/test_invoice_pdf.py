import copy
from datetime import date

import pytest

from billing_docs.core.errors import PayloadError
from billing_docs.services.pdfs import invoice_pdf
from billing_docs.services.pdfs.blocks import RenderOptions
from billing_docs.services.pdfs.engine import NumberedCanvas, PageManager
from billing_docs.services.pdfs.invoice_pdf import DEFAULT_HSN, DEFAULT_SERVICE, build_invoice_pdf
from billing_docs.services.pdfs.table import TableRenderer


@pytest.fixture
def captured_tables(monkeypatch):
    specs = []
    original = TableRenderer.render

    def spy(self, spec):
        specs.append(spec)
        return original(self, spec)

    monkeypatch.setattr(TableRenderer, "render", spy)
    return specs


def test_renders_pdf_named_after_invoice_number(sample_payload, offline_assets):
    doc = build_invoice_pdf(sample_payload, assets=offline_assets)

    assert doc.content.startswith(b"%PDF")
    assert doc.filename == "Invoice_INV-2025-001.pdf"
    assert doc.media_type == "application/pdf"
    assert doc.page_count == 1
    assert doc.size == len(doc.content)


def test_unsafe_invoice_number_is_sanitised(sample_payload, offline_assets):
    sample_payload["invoice"]["number"] = "INV/2025 #7"
    doc = build_invoice_pdf(sample_payload, assets=offline_assets)
    assert doc.filename == "Invoice_INV_2025__7.pdf"


def test_missing_number_uses_filename_fallback(sample_payload, offline_assets):
    sample_payload["invoice"]["number"] = None
    doc = build_invoice_pdf(sample_payload, assets=offline_assets,
                            options=RenderOptions(filename_fallback="CASE-9"))
    assert doc.filename == "Invoice_CASE-9.pdf"

    doc = build_invoice_pdf(sample_payload, assets=offline_assets)
    assert doc.filename == "Invoice_Invoice.pdf"


def test_item_rows_follow_services(sample_payload, offline_assets, captured_tables):
    build_invoice_pdf(sample_payload, assets=offline_assets)

    (spec,) = captured_tables
    assert [c.label for c in spec.columns] == [
        "Description", "HSN/SAC", "GST %", "Rate (INR)", "Qty", "Amount (INR)"]
    assert spec.rows[0] == ["Speech Therapy Session", "999312", "0%", "500.00", "2", "1,000.00"]
    assert spec.rows[1][0] == "Assessment"
    assert spec.rows[1][1] == DEFAULT_HSN
    assert spec.rows[1][-1] == "500.00"


def test_empty_services_draw_one_default_row(sample_payload, offline_assets, captured_tables):
    sample_payload["invoice"]["services"] = []
    build_invoice_pdf(sample_payload, assets=offline_assets)

    (spec,) = captured_tables
    assert spec.rows == [[DEFAULT_SERVICE, DEFAULT_HSN, "0%", "1,500.00", "1", "1,500.00"]]


def test_long_service_list_spans_pages(sample_payload, offline_assets):
    sample_payload["invoice"]["services"] = [
        {"name": f"Occupational therapy session {i}", "cost": 750, "qty": 1}
        for i in range(80)
    ]
    doc = build_invoice_pdf(sample_payload, assets=offline_assets)
    assert doc.page_count >= 2


def test_same_payload_renders_identical_bytes(sample_payload, offline_assets):
    opts = RenderOptions(generated_on=date(2025, 12, 16))
    first = build_invoice_pdf(copy.deepcopy(sample_payload), assets=offline_assets, options=opts)
    second = build_invoice_pdf(copy.deepcopy(sample_payload), assets=offline_assets, options=opts)
    assert first.content == second.content


def test_bank_hidden_skips_qr(sample_payload, offline_assets, monkeypatch):
    calls = []

    def fake_qr(payload, totals, *, show):
        calls.append(show)
        return None

    monkeypatch.setattr(invoice_pdf, "payment_qr", fake_qr)
    sample_payload["bank"]["showOnInvoice"] = "false"
    doc = build_invoice_pdf(sample_payload, assets=offline_assets)

    assert calls == [False]
    assert doc.content.startswith(b"%PDF")


def test_unreachable_logo_still_renders(sample_payload, offline_assets):
    sample_payload["clinic"]["logoUrl"] = "https://cdn.example.invalid/logo.png"
    doc = build_invoice_pdf(sample_payload, assets=offline_assets)

    assert doc.content.startswith(b"%PDF")
    assert offline_assets.session.calls == ["https://cdn.example.invalid/logo.png"]


def test_invalid_payload_raises_before_layout():
    with pytest.raises(PayloadError):
        build_invoice_pdf(["not", "an", "object"])


@pytest.fixture
def captured_pages(monkeypatch):
    """PageManager state and table header draws of the render, read at finish()."""
    seen = {"managers": [], "tables": []}
    finish = PageManager.finish
    render = TableRenderer.render

    def recording_finish(self):
        seen["managers"].append(self)
        return finish(self)

    def recording_render(self, spec):
        start = self.pm.page_number
        out = render(self, spec)
        seen["tables"].append((self, start, self.pm.page_number))
        return out

    monkeypatch.setattr(PageManager, "finish", recording_finish)
    monkeypatch.setattr(TableRenderer, "render", recording_render)
    return seen


def test_every_page_gets_chrome_once_and_table_header(sample_payload, offline_assets,
                                                      captured_pages):
    sample_payload["invoice"]["services"] = [
        {"name": f"Occupational therapy session {i}", "cost": 750, "qty": 1}
        for i in range(80)
    ]
    doc = build_invoice_pdf(sample_payload, assets=offline_assets)

    (pm,) = captured_pages["managers"]
    assert pm.state.header_pages == list(range(doc.page_count))
    assert pm.state.footer_pages == list(range(doc.page_count))

    (renderer, first_page, last_page) = captured_pages["tables"][0]
    assert last_page > first_page
    assert renderer.header_draws == last_page - first_page + 1


def test_huge_amount_is_coerced_instead_of_crashing(sample_payload, offline_assets):
    sample_payload["billing"]["overallTotal"] = 1e30
    sample_payload["invoice"]["services"][0]["cost"] = "1e40"
    doc = build_invoice_pdf(sample_payload, assets=offline_assets)
    assert doc.content.startswith(b"%PDF")


def test_all_seller_and_buyer_lines_are_drawn(sample_payload, offline_assets, monkeypatch):
    drawn = []
    draw_string = NumberedCanvas.drawString

    def recording_draw_string(self, x, y, text, *args, **kwargs):
        drawn.append(text)
        return draw_string(self, x, y, text, *args, **kwargs)

    monkeypatch.setattr(NumberedCanvas, "drawString", recording_draw_string)
    build_invoice_pdf(sample_payload, assets=offline_assets)

    for line in ("Phone : 9876543210", "Website : sunrise.test", "Email : billing@sunrise.test",
                 "Case ID : CASE-9", "P.ID : P-0042"):
        assert line in drawn
