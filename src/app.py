"""Marketplace FastAPI application.

Single-domain web server that processes commands synchronously via HTTP.
Every request runs inside the marketplace domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import os
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from marketplace import settings
from marketplace.domain import marketplace
from marketplace.utils.logging import add_context, clear_context, configure_logging

# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------
# Misconfigured production deployments stop here rather than at first payment
configure_logging(log_dir=os.getenv("LOG_DIR"))
settings.validate_environment()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace API",
    description="Multivendor marketplace: carts, orders, coupons and payment settlement",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the marketplace domain context and bind request log context."""
    add_context(
        request_id=request.headers.get("x-request-id") or uuid4().hex,
        method=request.method,
        path=request.url.path,
        user_id=request.headers.get("x-user-id"),
    )
    try:
        with marketplace.domain_context():
            response = await call_next(request)
        return response
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from marketplace.catalogue.api.routes import product_router  # noqa: E402
from marketplace.notifications.api.routes import notification_router  # noqa: E402
from marketplace.ordering.api.routes import cart_router, coupon_router, order_router  # noqa: E402
from marketplace.payments.api.routes import payment_router  # noqa: E402
from marketplace.shared.errors import register_error_handlers  # noqa: E402

# Every handler, repository and projection is registered once the routers are imported
marketplace.init()

app.include_router(product_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(coupon_router)
app.include_router(payment_router)
app.include_router(notification_router)

register_exception_handlers(app)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": marketplace.name,
            "environment": settings.PROTEAN_ENV,
        }
    )


logger.info("Marketplace API ready", environment=settings.PROTEAN_ENV, gateway=settings.PAYMENT_GATEWAY)
