# FILE: billing_docs/utils/resp.py
from __future__ import annotations

from fastapi.responses import JSONResponse

from billing_docs.schemas.common import ApiError, ErrorEnvelope


def err(msg: str, status_code: int = 400) -> JSONResponse:
    body = ErrorEnvelope(error=ApiError(msg=msg))
    return JSONResponse(status_code=status_code, content=body.model_dump())
