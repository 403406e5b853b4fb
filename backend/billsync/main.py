import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from billsync.core.config import settings
from billsync.core.database import init_db
from billsync.core.exceptions import GENERIC_ERROR_MESSAGE, BillSyncError
from billsync.core.logging_config import configure_logging
from billsync.routers import checkout, plans, refunds, subscriptions, webhooks

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Webhooks", "description": "Receive signed events from Stripe."},
    {"name": "Checkout", "description": "Open subscription checkout sessions."},
    {"name": "Subscriptions", "description": "Read and reconcile local subscriptions."},
    {"name": "Refunds", "description": "Create refunds and track their status."},
    {"name": "Plans", "description": "Sync and browse the plan catalog."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    init_db()
    logger.info("%s %s started", settings.APP_NAME, settings.version)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Keeps local subscriptions, refunds and the plan catalog in sync "
        "with Stripe through signed webhooks and direct API calls."
    ),
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BillSyncError)
async def billsync_error_handler(request: Request, exc: BillSyncError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR_MESSAGE})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR_MESSAGE})


app.include_router(webhooks.router, prefix="/v1/webhooks", tags=["Webhooks"])
app.include_router(checkout.router, prefix="/v1/checkout", tags=["Checkout"])
app.include_router(subscriptions.router, prefix="/v1/subscriptions", tags=["Subscriptions"])
app.include_router(refunds.router, prefix="/v1/refunds", tags=["Refunds"])
app.include_router(plans.router, prefix="/v1/plans", tags=["Plans"])


@app.get("/health")
async def health() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
