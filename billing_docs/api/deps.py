# billing_docs/api/deps.py
from __future__ import annotations

from typing import Optional

from fastapi import Header

from billing_docs.services.assets import AssetResolver
from billing_docs.services.billing_client import BillingApiClient


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Caller's token, forwarded as-is to the billing API."""
    return _extract_bearer(authorization)


def get_billing_client() -> BillingApiClient:
    return BillingApiClient()


def get_asset_resolver() -> AssetResolver:
    return AssetResolver()
