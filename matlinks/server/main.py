"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request logging), registers the exception handlers and includes all API
routers. It serves as the root of the web server.

Run with ``uvicorn matlinks.server.main:app``.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from matlinks import __version__
from matlinks.core.database import init_db
from matlinks.core.logging_config import get_logger, setup_logging
from matlinks.core.monitoring import initialize_logfire

from .api.v1 import (
    admin_payments,
    auth,
    check_ins,
    checkout,
    class_types,
    cron,
    dashboard,
    gyms,
    health,
    locations,
    members,
    membership_plans,
    payment_methods,
    payments,
    plans,
    promotions,
    schedules,
    subscriptions,
    webhooks,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware

# Initialize logging
setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Verifies the database connection on startup. A failure is logged rather
    than raised so the health endpoint stays reachable.
    """
    try:
        logger.info("Starting up MatLinks Server...")
        await init_db()
        logger.info("Database connection verified")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    logger.info("Shutting down MatLinks Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    MatLinks Server API

    Backend for running a martial-arts gym: gyms, locations, class types and
    schedules for admins; a dashboard, check-ins and billing for members; and
    the Stripe webhook and cron jobs that keep memberships paid up.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

initialize_logfire(app)
setup_exception_handlers(app)

cors_config = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_config.origins,
    allow_credentials=cors_config.allow_credentials,
    allow_methods=cors_config.allow_methods,
    allow_headers=cors_config.allow_headers,
)
app.add_middleware(LogfireMiddleware)

API = constant.API_V1_STR
ADMIN = f"{API}/admin"

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{API}/auth")

# Admin
app.include_router(gyms.router, prefix=f"{ADMIN}/gyms")
app.include_router(locations.router, prefix=f"{ADMIN}/locations")
app.include_router(class_types.router, prefix=f"{ADMIN}/class-types")
app.include_router(schedules.router, prefix=f"{ADMIN}/schedules")
app.include_router(membership_plans.router, prefix=f"{ADMIN}/membership-plans")
app.include_router(promotions.router, prefix=f"{ADMIN}/promotions")
app.include_router(members.router, prefix=f"{ADMIN}/members")
app.include_router(admin_payments.router, prefix=f"{ADMIN}/payments")

# Members
app.include_router(dashboard.router, prefix=f"{API}/dashboard")
app.include_router(plans.router, prefix=f"{API}/plans")
app.include_router(promotions.public_router, prefix=f"{API}/promotions")
app.include_router(check_ins.router, prefix=f"{API}/check-ins")

# Billing
app.include_router(checkout.router, prefix=f"{API}/checkout")
app.include_router(payments.router, prefix=f"{API}/payments")
app.include_router(payment_methods.router, prefix=f"{API}/payment-methods")
app.include_router(subscriptions.router, prefix=f"{API}/subscriptions")
app.include_router(webhooks.router, prefix=f"{API}/webhooks")
app.include_router(cron.router, prefix=f"{API}/cron")
