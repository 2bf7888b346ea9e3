# FILE: billing_docs/schemas/common.py
from __future__ import annotations

from pydantic import BaseModel


class ApiError(BaseModel):
    msg: str


class ErrorEnvelope(BaseModel):
    """Body of every non-PDF error response: {"status": false, "error": {"msg": ...}}."""

    status: bool = False
    error: ApiError
