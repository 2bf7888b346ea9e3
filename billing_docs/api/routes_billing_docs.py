# FILE: billing_docs/api/routes_billing_docs.py
from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import StreamingResponse

from billing_docs.api.deps import bearer_token, get_asset_resolver, get_billing_client
from billing_docs.services.assets import AssetResolver
from billing_docs.services.billing_client import BillingApiClient
from billing_docs.services.documents import render_invoice, render_receipt
from billing_docs.services.pdfs.blocks import RenderOptions, RenderedDocument

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing/docs", tags=["Billing Documents"])


def _pdf_response(doc: RenderedDocument, disposition: str) -> StreamingResponse:
    # inline = preview in the browser, attachment = download
    headers = {"Content-Disposition": f'{disposition}; filename="{doc.filename}"'}
    return StreamingResponse(BytesIO(doc.content),
                             media_type=doc.media_type,
                             headers=headers)


# ---------------------------------------------------------
# Render a posted payload
# ---------------------------------------------------------
@router.post("/invoice")
def invoice_pdf(
        payload: Dict[str, Any] = Body(...),
        fallback: Optional[str] = Query(None, max_length=64),
        disposition: str = Query("inline", pattern="^(inline|attachment)$"),
        assets: AssetResolver = Depends(get_asset_resolver),
):
    doc = render_invoice(payload, assets=assets,
                         options=RenderOptions(filename_fallback=fallback))
    return _pdf_response(doc, disposition)


@router.post("/receipt")
def receipt_pdf(
        payload: Dict[str, Any] = Body(...),
        disposition: str = Query("inline", pattern="^(inline|attachment)$"),
        assets: AssetResolver = Depends(get_asset_resolver),
):
    doc = render_receipt(payload, assets=assets)
    return _pdf_response(doc, disposition)


# ---------------------------------------------------------
# Fetch from the billing API, then render
# ---------------------------------------------------------
@router.get("/receipts/by-transaction/{transaction_id}")
def receipt_by_transaction_pdf(
        transaction_id: str,
        disposition: str = Query("inline", pattern="^(inline|attachment)$"),
        token: Optional[str] = Depends(bearer_token),
        client: BillingApiClient = Depends(get_billing_client),
        assets: AssetResolver = Depends(get_asset_resolver),
):
    data = client.receipt_by_transaction(transaction_id, token)
    doc = render_receipt(data, assets=assets)
    return _pdf_response(doc, disposition)


@router.get("/invoice/by-case/{case_id}")
def invoice_by_case_pdf(
        case_id: str,
        billing_id: Optional[str] = Query(None, alias="billingId"),
        disposition: str = Query("inline", pattern="^(inline|attachment)$"),
        token: Optional[str] = Depends(bearer_token),
        client: BillingApiClient = Depends(get_billing_client),
        assets: AssetResolver = Depends(get_asset_resolver),
):
    data = client.invoice_by_case(case_id, token, billing_id=billing_id)
    doc = render_invoice(data, assets=assets,
                         options=RenderOptions(filename_fallback=case_id))
    return _pdf_response(doc, disposition)


@router.get("/invoices/final/by-bill/{bill_id}")
def final_invoice_by_bill_pdf(
        bill_id: str,
        disposition: str = Query("inline", pattern="^(inline|attachment)$"),
        token: Optional[str] = Depends(bearer_token),
        client: BillingApiClient = Depends(get_billing_client),
        assets: AssetResolver = Depends(get_asset_resolver),
):
    data = client.final_invoice_by_bill(bill_id, token)
    doc = render_invoice(data, assets=assets,
                         options=RenderOptions(filename_fallback=bill_id))
    return _pdf_response(doc, disposition)
