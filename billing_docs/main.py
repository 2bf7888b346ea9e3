# billing_docs/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from billing_docs.api.exception_handlers import register_exception_handlers
from billing_docs.api.router import api_router
from billing_docs.core.config import settings
from billing_docs.core.logging_setup import configure_logging

configure_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)


# Health
@app.get("/")
def root():
    return {"message": "Clinic billing documents API running", "version": "v1"}
