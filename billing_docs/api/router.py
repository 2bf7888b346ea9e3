# billing_docs/api/router.py
from fastapi import APIRouter

from billing_docs.api import routes_billing_docs

api_router = APIRouter()
api_router.include_router(routes_billing_docs.router)
