# billing_docs/services/billing_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from billing_docs.core.config import settings
from billing_docs.core.errors import BillingFetchError

logger = logging.getLogger(__name__)


def _error_message(resp: Optional[requests.Response], exc: Exception) -> str:
    """The server's "error" (else "detail" / "message") field, else the exception text."""
    if resp is not None:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("error", "detail", "message"):
                val = body.get(key)
                if isinstance(val, dict):
                    val = val.get("msg") or val.get("message")
                if isinstance(val, str) and val.strip():
                    return val.strip()
    return str(exc) or exc.__class__.__name__


class BillingApiClient:
    """
    Fetches billing document payloads from the clinic billing API.

    One method per endpoint; every call sends the caller's bearer token
    (when given) and returns the decoded JSON object.
    """

    def __init__(self,
                 base_url: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 *,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or settings.BILLING_API_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS

    def _get(self, path: str, token: Optional[str],
             params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        resp: Optional[requests.Response] = None
        try:
            logger.info("Fetching billing payload: %s", url)
            resp = self.session.get(url, headers=headers, params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            msg = _error_message(resp if resp is not None else getattr(e, "response", None), e)
            status = resp.status_code if resp is not None else None
            logger.error("Billing API request failed (%s): %s", status or "no response", msg)
            raise BillingFetchError(msg, status_code=status) from e

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("Billing API returned a non-JSON body from %s", url)
            raise BillingFetchError("Invalid response from billing API",
                                    status_code=resp.status_code) from e

        if not isinstance(data, dict):
            raise BillingFetchError("Invalid response from billing API",
                                    status_code=resp.status_code)
        return data

    def receipt_by_transaction(self, transaction_id: str,
                               token: Optional[str] = None) -> Dict[str, Any]:
        return self._get(f"/receipts/by-transaction/{quote(str(transaction_id), safe='')}", token)

    def invoice_by_case(self, case_id: str, token: Optional[str] = None,
                        billing_id: Optional[str] = None) -> Dict[str, Any]:
        params = {"billingId": billing_id} if billing_id else None
        return self._get(f"/invoice/by-case/{quote(str(case_id), safe='')}", token, params)

    def final_invoice_by_bill(self, bill_id: str,
                              token: Optional[str] = None) -> Dict[str, Any]:
        return self._get(f"/invoices/final/by-bill/{quote(str(bill_id), safe='')}", token)
