from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded

from dojo_schedule.core.limits import limiter, rate_limit_handler
from dojo_schedule.core.error_handlers import setup_exception_handlers
from dojo_schedule.core.database import db_manager
from dojo_schedule.core.middleware import setup_middleware
from dojo_schedule.core.logging_utils import (
    setup_logging,
    get_logger,
    log_business_event,
    error_tracker,
)
from dojo_schedule.core.config import (
    validate_config,
    APP_NAME,
    APP_VERSION,
    CORS_ORIGINS,
    DEBUG,
    ENVIRONMENT,
    LOG_LEVEL,
    LOG_FORMAT,
)

from dojo_schedule.routers import admin
from dojo_schedule.routers import clubs
from dojo_schedule.routers import overrides
from dojo_schedule.routers import schedule
from dojo_schedule.routers import templates

setup_logging(LOG_LEVEL, LOG_FORMAT)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {APP_NAME} v{APP_VERSION}")

    try:
        validate_config()
        logger.info("Configuration validated")

        await db_manager.check_connection()
        logger.info("Database connection established")

        await db_manager.create_tables()
        logger.info("Database initialized")

        log_business_event(
            "application_started",
            "system",
            0,
            {"version": APP_VERSION, "environment": ENVIRONMENT},
        )

        logger.info("Application startup completed")

    except Exception as e:
        logger.error(f"Application startup failed: {str(e)}")
        error_tracker.track_error(
            "STARTUP_ERROR",
            str(e),
            {"component": "application_startup", "version": APP_VERSION},
        )
        raise

    yield

    logger.info("Shutting down application...")
    await db_manager.close_connections()
    logger.info("Application shutdown completed")


app = FastAPI(
    title=APP_NAME,
    description="Dojo trainer schedule: slots, rosters and overrides",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

setup_middleware(
    app,
    {
        "slow_request_threshold": 5.0,
        "exclude_paths": [
            "/health",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/favicon.ico",
        ],
    },
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

app.include_router(clubs.router, prefix="/api/v1")
app.include_router(schedule.router, prefix="/api/v1")
app.include_router(overrides.router, prefix="/api/v1")
app.include_router(templates.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")


@app.get("/health", tags=["System"])
async def health():
    return {
        "status": "ok",
        "version": APP_VERSION,
        "errors": error_tracker.get_stats()["total_errors"],
    }
