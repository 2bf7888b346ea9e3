# billing_docs/services/documents.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from billing_docs.core.errors import BillingDocsError
from billing_docs.schemas.billing_payload import parse_payload
from billing_docs.services.assets import AssetResolver
from billing_docs.services.billing_client import BillingApiClient
from billing_docs.services.output import FileOutputSink, LogNotifier, Notifier, OutputSink
from billing_docs.services.pdfs.blocks import RenderOptions, RenderedDocument
from billing_docs.services.pdfs.invoice_pdf import build_invoice_pdf
from billing_docs.services.pdfs.receipt_pdf import build_receipt_pdf

logger = logging.getLogger(__name__)


def render_invoice(payload: Any,
                   *,
                   assets: Optional[AssetResolver] = None,
                   options: Optional[RenderOptions] = None) -> RenderedDocument:
    return build_invoice_pdf(payload, assets=assets, options=options)


def render_receipt(payload: Any,
                   *,
                   assets: Optional[AssetResolver] = None,
                   options: Optional[RenderOptions] = None) -> RenderedDocument:
    return build_receipt_pdf(payload, assets=assets, options=options)


def deliver(document: RenderedDocument, sink: OutputSink, preview: bool = False) -> Path:
    return sink.preview(document) if preview else sink.save(document)


class BillingDocumentService:
    """
    Fetch -> render -> deliver for the three billing document entry points.

    Failures (network, auth, bad payload) are reported through the notifier
    and the call returns None; nothing is written in that case.
    """

    def __init__(self,
                 client: Optional[BillingApiClient] = None,
                 sink: Optional[OutputSink] = None,
                 notifier: Optional[Notifier] = None,
                 assets: Optional[AssetResolver] = None):
        self.client = client or BillingApiClient()
        self.sink = sink or FileOutputSink()
        self.notifier = notifier or LogNotifier()
        self.assets = assets

    def _run(self,
             fetch: Callable[[], Dict[str, Any]],
             render: Callable[..., RenderedDocument],
             *,
             preview: bool,
             failure_prefix: str,
             options: Optional[RenderOptions] = None) -> Optional[Path]:
        try:
            data = fetch()
            # validate before any layout starts
            payload = parse_payload(data)
        except BillingDocsError as e:
            self.notifier.report_failure(f"{failure_prefix}: {e.message}")
            return None

        document = render(payload, assets=self.assets, options=options)
        return deliver(document, self.sink, preview)

    def receipt_by_transaction(self, transaction_id: str, *, token: Optional[str] = None,
                               preview: bool = False) -> Optional[Path]:
        return self._run(
            lambda: self.client.receipt_by_transaction(transaction_id, token),
            render_receipt,
            preview=preview,
            failure_prefix="Failed to download receipt",
        )

    def invoice_by_case(self, case_id: str, *, token: Optional[str] = None,
                        billing_id: Optional[str] = None,
                        preview: bool = False) -> Optional[Path]:
        return self._run(
            lambda: self.client.invoice_by_case(case_id, token, billing_id=billing_id),
            render_invoice,
            preview=preview,
            failure_prefix="Failed to download invoice",
            options=RenderOptions(filename_fallback=str(case_id)),
        )

    def final_invoice_by_bill(self, bill_id: str, *, token: Optional[str] = None,
                              preview: bool = False) -> Optional[Path]:
        return self._run(
            lambda: self.client.final_invoice_by_bill(bill_id, token),
            render_invoice,
            preview=preview,
            failure_prefix="Failed to download invoice",
            options=RenderOptions(filename_fallback=str(bill_id)),
        )
