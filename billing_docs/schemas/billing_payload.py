# billing_docs/schemas/billing_payload.py
from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import (BaseModel, BeforeValidator, ConfigDict, Field, ValidationError,
                      field_validator)

from billing_docs.core.errors import PayloadError
from billing_docs.services.currency import to_decimal


def _to_text(v: Any) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, (dict, list, tuple, set)):
        return None
    s = str(v).strip()
    return s or None


def _to_money(v: Any) -> Optional[Decimal]:
    if v is None:
        return None
    if isinstance(v, str) and not v.strip():
        return None
    return to_decimal(v)


def _to_flag(v: Any) -> bool:
    # only an explicit "off" value hides a block
    if v is None:
        return True
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float, Decimal)):
        return v != 0
    s = str(v).strip().lower()
    return s not in ("0", "false", "no", "n", "off")


Text = Annotated[Optional[str], BeforeValidator(_to_text)]
Money = Annotated[Optional[Decimal], BeforeValidator(_to_money)]
Flag = Annotated[bool, BeforeValidator(_to_flag)]


class _PayloadModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )


class Clinic(_PayloadModel):
    name: Text = None
    address: Text = None
    phone: Text = None
    email: Text = None
    website: Text = None
    gstin: Text = None
    state_name: Text = Field(default=None, alias="stateName")
    state_code: Text = Field(default=None, alias="stateCode")
    logo_url: Text = Field(default=None, alias="logoUrl")
    logo: Text = None


class Patient(_PayloadModel):
    name: Text = None
    phone: Text = None
    p_id: Text = None
    case_id: Text = Field(default=None, alias="caseId")
    case_type: Text = Field(default=None, alias="caseType")
    state_name: Text = Field(default=None, alias="stateName")
    state_code: Text = Field(default=None, alias="stateCode")
    place_of_supply: Text = Field(default=None, alias="placeOfSupply")


class Transaction(_PayloadModel):
    amount: Money = None
    payment_mode: Text = Field(default=None, alias="paymentMode")
    provider: Text = None
    status: Text = None
    paid_at: Text = Field(default=None, alias="paidAt")
    created_at: Text = Field(default=None, alias="createdAt")
    internal_transaction_id: Text = Field(default=None,
                                          alias="internalTransactionId")
    txn_id: Text = Field(default=None, alias="_id")
    receipt_no: Text = Field(default=None, alias="receiptNo")
    receipt_number: Text = None

    @property
    def reference(self) -> Optional[str]:
        return self.internal_transaction_id or self.txn_id


class ServiceLineItem(_PayloadModel):
    name: Text = None
    description: Text = None
    cost: Money = None
    amount: Money = None
    qty: Money = None
    hsn: Text = None
    gst_rate: Money = Field(default=None, alias="gstRate")

    @property
    def label(self) -> Optional[str]:
        return self.name or self.description

    @property
    def line_total(self) -> Decimal:
        if self.cost is not None:
            return self.cost
        if self.amount is not None:
            return self.amount
        return Decimal("0")

    @property
    def quantity(self) -> Decimal:
        return self.qty if self.qty is not None else Decimal("1")

    @property
    def unit_rate(self) -> Decimal:
        q = self.quantity
        return self.line_total / q if q > 0 else self.line_total


class Invoice(_PayloadModel):
    number: Text = None
    date: Text = None
    status: Text = None
    total_amount: Money = Field(default=None, alias="totalAmount")
    paid_amount: Money = Field(default=None, alias="paidAmount")
    due_amount: Money = Field(default=None, alias="dueAmount")
    amount_in_words: Text = Field(default=None, alias="amountInWords")
    services: List[ServiceLineItem] = Field(default_factory=list)

    @field_validator("services", mode="before")
    @classmethod
    def _services_list(cls, v: Any) -> Any:
        if not isinstance(v, (list, tuple)):
            return []
        return [x for x in v if isinstance(x, (dict, ServiceLineItem))]


class Billing(_PayloadModel):
    overall_total: Money = Field(default=None, alias="overallTotal")
    paid_total: Money = Field(default=None, alias="paidTotal")
    due_total: Money = Field(default=None, alias="dueTotal")


class Bank(_PayloadModel):
    account_holder: Text = Field(default=None, alias="accountHolder")
    bank_name: Text = Field(default=None, alias="bankName")
    account_number: Text = Field(default=None, alias="accountNumber")
    ifsc: Text = None
    branch: Text = None
    upi_id: Text = Field(default=None, alias="upiId")
    upi_name: Text = Field(default=None, alias="upiName")
    upi_note: Text = Field(default=None, alias="upiNote")
    show_on_receipt: Flag = Field(default=True, alias="showOnReceipt")
    show_on_invoice: Flag = Field(default=True, alias="showOnInvoice")
    enable_upi_qr: Flag = Field(default=True, alias="enableUpiQr")


class BillingPayload(_PayloadModel):
    """Unified payload served by the invoice and receipt endpoints."""

    clinic: Clinic = Field(default_factory=Clinic)
    invoice: Invoice = Field(default_factory=Invoice)
    patient: Patient = Field(default_factory=Patient)
    transaction: Transaction = Field(default_factory=Transaction)
    billing: Billing = Field(default_factory=Billing)
    bank: Bank = Field(default_factory=Bank)
    jurisdiction: Text = None
    signature: Text = None
    declaration: Text = None

    @field_validator("clinic",
                     "invoice",
                     "patient",
                     "transaction",
                     "billing",
                     "bank",
                     mode="before")
    @classmethod
    def _null_section(cls, v: Any) -> Any:
        return {} if v is None else v


def parse_payload(data: Any) -> BillingPayload:
    """Validate raw JSON (dict) into a BillingPayload; PayloadError otherwise."""
    if isinstance(data, BillingPayload):
        return data
    if not isinstance(data, dict):
        raise PayloadError("billing payload must be a JSON object")
    try:
        return BillingPayload.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        loc = ".".join(str(x) for x in first.get("loc", ()))
        msg = first.get("msg", "invalid value")
        raise PayloadError(f"invalid billing payload: {loc}: {msg}" if loc else
                           f"invalid billing payload: {msg}") from exc
