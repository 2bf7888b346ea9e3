# billing_docs/core/errors.py
from __future__ import annotations


class BillingDocsError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BillingFetchError(BillingDocsError):
    """The billing API could not deliver a payload (network, auth, 4xx/5xx)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PayloadError(BillingDocsError):
    """The fetched/posted payload is not a billing document payload."""


class LayoutError(BillingDocsError):
    """The page drawing protocol was used out of order."""
