from decimal import Decimal

import pytest

from billing_docs.core.errors import PayloadError
from billing_docs.schemas.billing_payload import BillingPayload, parse_payload


def test_camel_case_keys_are_accepted(sample_payload):
    p = parse_payload(sample_payload)
    assert p.clinic.state_name == "Tamil Nadu"
    assert p.patient.case_id == "CASE-9"
    assert p.transaction.internal_transaction_id == "TXN-77"
    assert p.transaction.txn_id == "65f0c0ffee"
    assert p.bank.upi_id == "sunrise@okbank"


def test_null_sections_become_empty_defaults():
    p = parse_payload({"clinic": None, "invoice": None, "bank": None})
    assert p.clinic.name is None
    assert p.invoice.services == []
    assert p.bank.show_on_invoice is True


def test_text_fields_are_stripped_and_blank_is_missing():
    p = parse_payload({"clinic": {"name": "  Clinic  ", "email": "   ", "phone": 9876543210}})
    assert p.clinic.name == "Clinic"
    assert p.clinic.email is None
    assert p.clinic.phone == "9876543210"


def test_money_fields_are_coerced():
    p = parse_payload({"billing": {"overallTotal": "1,234.50", "paidTotal": "NaN", "dueTotal": ""}})
    assert p.billing.overall_total == Decimal("1234.50")
    assert p.billing.paid_total == Decimal("0")
    assert p.billing.due_total is None


def test_flags_only_turn_off_on_explicit_false():
    p = parse_payload({"bank": {"showOnReceipt": "false", "showOnInvoice": None, "enableUpiQr": 0}})
    assert p.bank.show_on_receipt is False
    assert p.bank.show_on_invoice is True
    assert p.bank.enable_upi_qr is False

    p = parse_payload({"bank": {"showOnReceipt": "yes"}})
    assert p.bank.show_on_receipt is True


def test_services_must_be_a_list_of_objects():
    assert parse_payload({"invoice": {"services": "oops"}}).invoice.services == []
    p = parse_payload({"invoice": {"services": [{"name": "A"}, "junk", 3]}})
    assert [s.name for s in p.invoice.services] == ["A"]


def test_service_line_item_derived_values():
    p = parse_payload({"invoice": {"services": [
        {"description": "Group session", "cost": 900, "qty": 3},
        {"name": "Kit", "amount": "250"},
        {"name": "Free", "qty": 0},
    ]}})
    first, second, third = p.invoice.services
    assert first.label == "Group session"
    assert first.unit_rate == Decimal("300")
    assert second.line_total == Decimal("250")
    assert second.quantity == Decimal("1")
    assert third.line_total == Decimal("0")
    assert third.unit_rate == Decimal("0")


def test_transaction_reference_prefers_internal_id():
    p = parse_payload({"transaction": {"_id": "abc"}})
    assert p.transaction.reference == "abc"
    p = parse_payload({"transaction": {"_id": "abc", "internalTransactionId": "T-1"}})
    assert p.transaction.reference == "T-1"


def test_payload_is_immutable(sample_payload):
    p = parse_payload(sample_payload)
    with pytest.raises(Exception):
        p.clinic.name = "Other"


def test_parse_payload_rejects_non_objects():
    with pytest.raises(PayloadError):
        parse_payload(["not", "a", "payload"])
    with pytest.raises(PayloadError):
        parse_payload({"clinic": "oops"})


def test_parse_payload_passes_models_through(sample_payload):
    p = BillingPayload.model_validate(sample_payload)
    assert parse_payload(p) is p
