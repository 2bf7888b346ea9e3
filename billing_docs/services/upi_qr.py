# billing_docs/services/upi_qr.py
from __future__ import annotations

import io
import logging
from decimal import Decimal
from typing import Any, Optional
from urllib.parse import urlencode

import qrcode

from billing_docs.core.config import settings
from billing_docs.services.assets import RasterImage
from billing_docs.services.currency import BillTotals, ZERO, money2

logger = logging.getLogger(__name__)


def build_upi_uri(payee: Optional[str],
                  payee_name: Optional[str] = None,
                  amount: Any = None,
                  note: Optional[str] = None) -> str:
    """
    upi://pay deep link understood by UPI apps.

    Optional parts are left out when empty; amount always carries two
    decimals. No payee address means no link ("").
    """
    pa = (payee or "").strip()
    if not pa:
        return ""

    params = [("pa", pa)]
    if payee_name and payee_name.strip():
        params.append(("pn", payee_name.strip()))
    if amount is not None:
        params.append(("am", f"{money2(amount):.2f}"))
    params.append(("cu", "INR"))
    if note and note.strip():
        params.append(("tn", note.strip()))

    return "upi://pay?" + urlencode(params)


def qr_amount(totals: BillTotals) -> Decimal:
    # pending balance first, the full bill once it is settled
    return totals.due if totals.due > ZERO else totals.overall


def render_qr(uri: str) -> Optional[RasterImage]:
    if not uri:
        return None
    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=0,
        )
        qr.add_data(uri)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return RasterImage.from_bytes(buf.getvalue(), "image/png")
    except Exception as exc:
        logger.warning("UPI QR generation failed: %s", exc)
        return None


def payment_qr(payload: Any, totals: BillTotals, *, show: bool) -> Optional[RasterImage]:
    """
    QR raster for the bank panel, or None when the panel must not carry one.

    `show` is the document-specific visibility flag (showOnInvoice /
    showOnReceipt); the QR additionally needs enableUpiQr and a UPI id.
    """
    bank = payload.bank
    if not (show and bank.enable_upi_qr and bank.upi_id):
        return None

    uri = build_upi_uri(
        bank.upi_id,
        payee_name=bank.upi_name or payload.clinic.name,
        amount=qr_amount(totals),
        note=bank.upi_note or settings.UPI_DEFAULT_NOTE,
    )
    return render_qr(uri)
