# FILE: billing_docs/utils/text.py
from __future__ import annotations

import re
from typing import Any

PLACEHOLDER = "-"

_UNSAFE_FILENAME = re.compile(r"[^\w-]", re.ASCII)


def safe(v: Any, fallback: str = PLACEHOLDER) -> str:
    """String value or the placeholder for None / blank."""
    if v is None:
        return fallback
    s = str(v).strip()
    return s if s else fallback


def filename_part(v: Any) -> str:
    """
    Keep ASCII word characters and hyphens, replace everything else by "_".
    Example: "INV/2025 #7" -> "INV_2025__7"
    """
    return _UNSAFE_FILENAME.sub("_", str(v if v is not None else ""))


def invoice_filename(number: Any) -> str:
    return f"Invoice_{filename_part(number)}.pdf"


def receipt_filename(receipt_no: Any, txn_ref: Any = None) -> str:
    safe_txn = filename_part(txn_ref) if txn_ref else ""
    suffix = f"_{safe_txn}" if safe_txn else ""
    return f"Receipt_{filename_part(receipt_no)}{suffix}.pdf"
