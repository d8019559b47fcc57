from opentelemetry.instrumentation import auto_instrumentation

auto_instrumentation.initialize()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi_errors_rfc9457 import RFC9457Config, setup_rfc9457_handlers

from app.api.v1 import api as api_v1
from app.core.config import settings
from app.core.database import async_session_maker, create_db_and_tables
from app.core.events import lifespan as events_lifespan
from app.infrastructure.identity import close_identity_store, initialize_identity_store
from app.services.field_config_service import seed_default_field_configs
from app.services.notification_service import NotificationDispatcher
from app.services.specialty_service import seed_default_specialties

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle:
    - Initialize the identity store (Keycloak) and the notification dispatcher.
    - Create tables and seed field configurations and specialties.
    - Open the Redis client for domain events.
    - Close everything on shutdown.
    """
    logger.info("=== Application Startup ===")

    app.state.identity_store = await initialize_identity_store()
    logger.info(f"Identity store initialized: {settings.KEYCLOAK_SERVER_URL}")

    app.state.notifier = NotificationDispatcher()

    await create_db_and_tables()
    async with async_session_maker() as session:
        await seed_default_field_configs(session)
        await seed_default_specialties(session)
    logger.info("Database tables created and seeded")

    async with events_lifespan(app):
        try:
            logger.info("=== Application Startup Complete ===")
            yield
        finally:
            logger.info("=== Application Shutdown ===")
            await app.state.notifier.close()
            await close_identity_store()
            logger.info("=== Application Shutdown Complete ===")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan,
    openapi_url=f"{settings.get_api_prefix()}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

# RFC 9457 Problem Details exception handlers
config_rfc9457 = RFC9457Config(
    base_url="about:blank",
    include_trace_id=True,
    expose_internal_errors=settings.DEBUG,
    include_error_pages=False,
)
setup_rfc9457_handlers(app, config=config_rfc9457)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.ALLOWED_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Access-Token", "X-Refresh-Token"],
)

if settings.ENVIRONMENT != "development":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.TRUSTED_HOSTS,
    )

app.include_router(api_v1.router, prefix=settings.get_api_prefix("v1"))
