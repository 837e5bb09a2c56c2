from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from starlette.middleware.cors import CORSMiddleware

from salon.apps.bookings.routers import (
    create_booking_router,
    manage_booking_router,
    otp_router,
)
from salon.core.config import app_logger, settings
from salon.core.db import dispose_db, init_db
from salon.core.dependencies import SessionDep
from salon.core.exceptions.handlers import (
    authentication_exception_handler,
    database_exception_handler,
    email_delivery_exception_handler,
    exception_schema,
    general_exception_handler,
    rate_limit_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from salon.core.exceptions.types import (
    AppException,
    AuthenticationException,
    DatabaseException,
    EmailDeliveryException,
    RateLimitExceededException,
)
from salon.core.services import (
    BrevoService,
    EmailManagerService,
    RedisService,
    Renderer,
    TwilioService,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_logger.info("Starting application...")

    # Create tables
    app_logger.info("Initializing database...")
    await init_db()
    app_logger.info("Database initialized successfully.")

    # Initialize Redis service (only for the shared rate limit store)
    if settings.RATE_LIMIT_BACKEND == "redis":
        app_logger.info("Initializing Redis service...")
        await RedisService.init(settings.REDIS_URL)
        app_logger.info("Redis service initialized successfully.")
    else:
        app_logger.info("Using in-memory rate limiting; Redis not initialized.")

    # Initialize template renderer
    app_logger.info("Initializing template renderer...")
    Renderer.initialize()
    app_logger.info("Template renderer initialized successfully.")

    # Initialize Brevo Service
    app_logger.info("Initializing Brevo service...")
    await BrevoService.init(
        api_key=settings.BREVO_API_KEY,
        sender_email=settings.BREVO_SENDER_EMAIL,
        sender_name=settings.BREVO_SENDER_NAME,
    )
    EmailManagerService.init()
    app_logger.info("Brevo service initialized successfully.")

    # Initialize Twilio Service
    app_logger.info("Initializing Twilio service...")
    await TwilioService.init()
    app_logger.info("Twilio service initialized successfully.")

    yield

    # Cleanup on shutdown
    app_logger.info("Shutting down application...")

    await TwilioService.aclose()
    await BrevoService.aclose()

    if settings.RATE_LIMIT_BACKEND == "redis":
        app_logger.info("Closing Redis service...")
        await RedisService.aclose()
        app_logger.info("Redis service closed successfully.")

    await dispose_db()
    app_logger.info("Application shut down.")


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=settings.APP_DESCRIPTION,
    debug=settings.DEBUG,
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    responses=exception_schema,
)

# Register exception handlers (order matters - more specific first)
app.add_exception_handler(RateLimitExceededException, rate_limit_exception_handler)
app.add_exception_handler(AuthenticationException, authentication_exception_handler)
app.add_exception_handler(DatabaseException, database_exception_handler)
app.add_exception_handler(EmailDeliveryException, email_delivery_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
# Generic fallbacks
app.add_exception_handler(AppException, general_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "HEAD", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
app.include_router(otp_router, tags=["Booking Verification"])
app.include_router(manage_booking_router, tags=["Booking Management"])
app.include_router(create_booking_router, tags=["Bookings"])


@app.get("/", include_in_schema=False)
async def root(request: Request):
    base_url = str(request.base_url).rstrip("/")
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "documentations": {
            "swagger": f"{base_url}/docs",
            "redoc": f"{base_url}/redoc",
        },
        "version": settings.APP_VERSION,
    }


@app.head("/health", include_in_schema=False)
@app.get("/health")
async def health_check(session: SessionDep):
    """
    Health check endpoint to verify if the API is running.

    Checks:
        - Database connectivity
        - Redis connectivity (only with the Redis rate limit backend)
    """
    health_status = {
        "status": "ok",
        "message": f"{settings.APP_NAME} API is running.",
        "checks": {
            "database": "ok",
        },
    }

    try:
        result = await session.execute(text("SELECT 1"))
        if result.scalar() != 1:
            health_status["checks"]["database"] = "unhealthy"
            health_status["status"] = "degraded"
    except Exception as e:
        app_logger.error(f"Database health check failed: {e}")
        health_status["checks"]["database"] = "unhealthy"
        health_status["status"] = "degraded"

    if settings.RATE_LIMIT_BACKEND == "redis":
        health_status["checks"]["redis"] = "ok"
        if not await RedisService.ping():
            health_status["checks"]["redis"] = "unhealthy"
            health_status["status"] = "degraded"

    if health_status["status"] != "ok":
        raise AppException(
            "One or more health checks failed.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=health_status,
        )

    return health_status
