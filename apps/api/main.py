"""HomeSpend API — FastAPI entry point.

Serves the import engine, the ledger and the category tooling to the web
client. Routes live in domain modules under apps/api/domains/.
"""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from apps.api.core.config import settings
from apps.api.core.errors import register_error_handlers
from apps.api.core.logging import bind_request_context, setup_logging

from apps.api.domains.categories.router import router as categories_router
from apps.api.domains.household.router import router as household_router
from apps.api.domains.ingestion.router import router as ingestion_router
from apps.api.domains.transactions.router import router as transactions_router
from apps.api.routers import health

logger = structlog.get_logger()

APP_VERSION = settings.APP_VERSION if settings else "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup/shutdown hooks."""
    setup_logging(
        log_level=settings.log_level if settings else "INFO",
        json_output=bool(settings and settings.is_production),
    )
    logger.info("app_starting", version=APP_VERSION)
    yield
    logger.info("app_stopping")


app = FastAPI(
    title="HomeSpend API",
    description="Household spending ledger with idempotent spreadsheet import.",
    version=APP_VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins if settings else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag every log line and error body with a request id and the household."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id
    bind_request_context(request_id, request.headers.get("x-household-id"))
    response = await call_next(request)
    response.headers["X-Request-Id"] = request_id
    return response


app.include_router(ingestion_router, prefix="/api/v1")
app.include_router(transactions_router, prefix="/api/v1")
app.include_router(categories_router, prefix="/api/v1")
app.include_router(household_router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")
