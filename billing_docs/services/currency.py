# billing_docs/services/currency.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, List

from billing_docs.core.config import settings

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
# beyond this an amount is junk, and quantize would overflow the context
MAX_AMOUNT = Decimal("1e15")

_ONES = [
    "",
    "One",
    "Two",
    "Three",
    "Four",
    "Five",
    "Six",
    "Seven",
    "Eight",
    "Nine",
]
_TEENS = [
    "Ten",
    "Eleven",
    "Twelve",
    "Thirteen",
    "Fourteen",
    "Fifteen",
    "Sixteen",
    "Seventeen",
    "Eighteen",
    "Nineteen",
]
_TENS = [
    "", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy",
    "Eighty", "Ninety"
]


def to_decimal(x: Any) -> Decimal:
    """
    Coerce anything to a finite Decimal.

    Junk, NaN, infinities and amounts of MAX_AMOUNT or more give 0.
    """
    if isinstance(x, bool):
        return Decimal(int(x))
    if isinstance(x, Decimal):
        v = x
    else:
        raw = str(x if x is not None else "").strip().replace(",", "")
        try:
            v = Decimal(raw or "0")
        except (InvalidOperation, ValueError, TypeError):
            return ZERO
    if not v.is_finite():
        return ZERO
    if abs(v) >= MAX_AMOUNT:
        logger.warning("Amount out of range, treated as 0: %s", x)
        return ZERO
    return v


def money2(x: Any) -> Decimal:
    return to_decimal(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def fmt_inr(amount: Any) -> str:
    """12,34,567.00 style grouping (last three digits, then pairs)."""
    n = money2(amount)
    sign = "-" if n < 0 else ""
    s = f"{abs(n):.2f}"
    whole, frac = s.split(".")
    if len(whole) <= 3:
        return f"{sign}{whole}.{frac}"
    last3 = whole[-3:]
    rest = whole[:-3]
    parts: List[str] = []
    while len(rest) > 2:
        parts.insert(0, rest[-2:])
        rest = rest[:-2]
    if rest:
        parts.insert(0, rest)
    return f"{sign}{','.join(parts)},{last3}.{frac}"


def inr(amount: Any) -> str:
    return f"{settings.CURRENCY_CODE} {fmt_inr(amount)}"


def _two_digits(x: int) -> str:
    if x < 10:
        return _ONES[x]
    if x < 20:
        return _TEENS[x - 10]
    return (_TENS[x // 10] + (" " + _ONES[x % 10] if x % 10 else "")).strip()


def _indian_words(num: int) -> str:
    crore = num // 10000000
    lakh = (num % 10000000) // 100000
    thousand = (num % 100000) // 1000
    hundred = (num % 1000) // 100
    remainder = num % 100

    parts: List[str] = []
    if crore:
        # 100+ crore: spell the crore count itself in lakh/thousand units
        head = _two_digits(crore) if crore < 100 else _indian_words(crore)
        parts.append(f"{head} Crore")
    if lakh:
        parts.append(f"{_two_digits(lakh)} Lakh")
    if thousand:
        parts.append(f"{_two_digits(thousand)} Thousand")
    if hundred:
        parts.append(f"{_ONES[hundred]} Hundred")
    if remainder:
        parts.append(_two_digits(remainder))
    return " ".join(parts)


def amount_in_words(amount: Any) -> str:
    """
    Whole-rupee amount in words using crore / lakh / thousand / hundred.

    Example: 1234567 -> "Twelve Lakh Thirty Four Thousand Five Hundred
    Sixty Seven Rupees Only"
    """
    num = int(to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if num <= 0:
        return f"Zero {settings.CURRENCY_WORD} Only"
    return f"{_indian_words(num)} {settings.CURRENCY_WORD} Only"


# ----------------------------
# Bill totals
# ----------------------------
@dataclass(frozen=True)
class BillTotals:
    overall: Decimal
    paid: Decimal
    due: Decimal


def _first_present(*values: Any) -> Decimal:
    for v in values:
        if v is not None:
            return to_decimal(v)
    return ZERO


def compute_totals(payload: Any) -> BillTotals:
    """
    Overall / paid / due for a billing payload.

    Billing totals win over invoice totals; due is always derived so it can
    never go negative, whatever the server sent.
    """
    billing = payload.billing
    invoice = payload.invoice

    overall = _first_present(billing.overall_total, invoice.total_amount)
    paid = _first_present(billing.paid_total, invoice.paid_amount)
    due = max(ZERO, overall - paid)

    sent_due = billing.due_total if billing.due_total is not None else invoice.due_amount
    if sent_due is not None and money2(sent_due) != money2(due):
        logger.warning(
            "Ignoring inconsistent due total %s (overall=%s, paid=%s, due=%s)",
            sent_due, overall, paid, due)

    return BillTotals(overall=overall, paid=paid, due=due)
