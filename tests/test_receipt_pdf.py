import copy
from datetime import date
from decimal import Decimal

import pytest

from billing_docs.schemas.billing_payload import Invoice, Transaction
from billing_docs.services.pdfs import receipt_pdf
from billing_docs.services.pdfs.blocks import RenderOptions
from billing_docs.services.pdfs.engine import PageManager
from billing_docs.services.pdfs.receipt_pdf import (
    build_receipt_pdf,
    pick_receipt_no,
    pick_status,
    receipt_amount,
)
from billing_docs.services.pdfs.table import TableRenderer

FIXED = RenderOptions(generated_on=date(2025, 12, 16))


@pytest.fixture
def captured_tables(monkeypatch):
    specs = []
    original = TableRenderer.render

    def spy(self, spec):
        specs.append(spec)
        return original(self, spec)

    monkeypatch.setattr(TableRenderer, "render", spy)
    return specs


def test_receipt_number_precedence():
    txn = Transaction.model_validate({"receiptNo": "R-1", "internalTransactionId": "TXN-1",
                                      "_id": "abc"})
    assert pick_receipt_no(Invoice.model_validate({"number": "INV-1"}), txn) == "INV-1"
    assert pick_receipt_no(Invoice(), txn) == "R-1"
    assert pick_receipt_no(Invoice(), Transaction.model_validate({"_id": "abc"})) == "abc"
    assert pick_receipt_no(Invoice(), Transaction()) == "RECEIPT"


def test_status_and_amount_fallbacks():
    assert pick_status(Invoice(), Transaction()) == "success"
    assert pick_status(Invoice(), Transaction.model_validate({"status": "FAILED"})) == "failed"

    inv = Invoice.model_validate({"totalAmount": "1500"})
    assert receipt_amount(inv, Transaction.model_validate({"amount": 250})) == Decimal("250")
    assert receipt_amount(inv, Transaction()) == Decimal("1500")
    assert receipt_amount(Invoice(), Transaction()) == Decimal("0")


def test_renders_pdf_named_after_receipt_and_transaction(sample_payload, offline_assets):
    doc = build_receipt_pdf(sample_payload, assets=offline_assets, options=FIXED)

    assert doc.content.startswith(b"%PDF")
    assert doc.filename == "Receipt_INV-2025-001_TXN-77.pdf"
    assert doc.page_count == 1


def test_filename_without_transaction_reference(sample_payload, offline_assets):
    sample_payload["invoice"]["number"] = None
    sample_payload["transaction"] = {"amount": 1000, "receiptNo": "R/9"}
    doc = build_receipt_pdf(sample_payload, assets=offline_assets, options=FIXED)
    assert doc.filename == "Receipt_R_9.pdf"


def test_line_amount_falls_back_to_receipt_amount(sample_payload, offline_assets, captured_tables):
    sample_payload["invoice"]["services"] = [
        {"name": "Speech Therapy Session", "cost": 1000},
        {"name": "Assessment", "amount": 500},
        {"name": "Home programme"},
    ]
    build_receipt_pdf(sample_payload, assets=offline_assets, options=FIXED)

    (spec,) = captured_tables
    assert [c.label for c in spec.columns] == ["Description", "Amount (INR)"]
    assert spec.rows == [
        ["Speech Therapy Session", "1,000.00"],
        ["Assessment", "500.00"],
        ["Home programme", "1,000.00"],
    ]


def test_no_services_gives_single_payment_row(sample_payload, offline_assets, captured_tables):
    sample_payload["invoice"]["services"] = None
    build_receipt_pdf(sample_payload, assets=offline_assets, options=FIXED)

    (spec,) = captured_tables
    assert spec.rows == [["Payment Received", "1,000.00"]]


def test_many_lines_continue_on_later_pages(sample_payload, offline_assets, captured_tables):
    sample_payload["invoice"]["services"] = [
        {"name": f"Therapy session {i}", "cost": 400} for i in range(90)
    ]
    doc = build_receipt_pdf(sample_payload, assets=offline_assets, options=FIXED)
    assert doc.page_count >= 2


def test_fixed_generation_date_gives_identical_bytes(sample_payload, offline_assets):
    first = build_receipt_pdf(copy.deepcopy(sample_payload), assets=offline_assets, options=FIXED)
    second = build_receipt_pdf(copy.deepcopy(sample_payload), assets=offline_assets, options=FIXED)
    assert first.content == second.content


def test_minimal_payload_renders(offline_assets):
    doc = build_receipt_pdf({"transaction": {"amount": "99.5"}}, assets=offline_assets,
                            options=FIXED)
    assert doc.content.startswith(b"%PDF")
    assert doc.filename == "Receipt_RECEIPT.pdf"


def test_bank_box_with_qr_still_fits_one_page(sample_payload, offline_assets, monkeypatch):
    qrs = []
    real_payment_qr = receipt_pdf.payment_qr

    def recording_payment_qr(*args, **kwargs):
        qr = real_payment_qr(*args, **kwargs)
        qrs.append(qr)
        return qr

    monkeypatch.setattr(receipt_pdf, "payment_qr", recording_payment_qr)
    doc = build_receipt_pdf(sample_payload, assets=offline_assets, options=FIXED)

    assert qrs[0] is not None
    assert doc.page_count == 1


def test_each_page_gets_chrome_once_and_table_header(sample_payload, offline_assets,
                                                     monkeypatch):
    managers, tables = [], []
    finish = PageManager.finish
    render = TableRenderer.render

    def recording_finish(self):
        managers.append(self)
        return finish(self)

    def recording_render(self, spec):
        start = self.pm.page_number
        out = render(self, spec)
        tables.append((self, start, self.pm.page_number))
        return out

    monkeypatch.setattr(PageManager, "finish", recording_finish)
    monkeypatch.setattr(TableRenderer, "render", recording_render)
    sample_payload["invoice"]["services"] = [
        {"name": f"Therapy session {i}", "cost": 400} for i in range(90)
    ]
    doc = build_receipt_pdf(sample_payload, assets=offline_assets, options=FIXED)

    (pm,) = managers
    assert pm.state.header_pages == list(range(doc.page_count))
    assert pm.state.footer_pages == list(range(doc.page_count))
    ((renderer, first_page, last_page),) = tables
    assert last_page > first_page
    assert renderer.header_draws == last_page - first_page + 1
