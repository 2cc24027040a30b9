from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
import sys

from keygate import __version__
from keygate.config import settings
from keygate.database import init_db
from keygate.errors import (
    ConflictError,
    GenerationError,
    KeyServiceError,
    NotFoundError,
    PartialRotationError,
    PolicyValidationError,
    RepositoryError,
    UnauthorizedError,
)
from keygate.routers import api_router
from keygate.middleware.request_id import RequestIDMiddleware


# Configure loguru
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="DEBUG" if settings.ENVIRONMENT == "development" else "INFO",
)

# Most specific first: PartialRotationError is a RepositoryError
ERROR_STATUS = [
    (NotFoundError, 404),
    (UnauthorizedError, 403),
    (PolicyValidationError, 400),
    (ConflictError, 409),
    (PartialRotationError, 500),
    (GenerationError, 500),
    (RepositoryError, 500),
]


def status_for(exc: KeyServiceError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting keygate API...")

    # Validate production secrets
    validation_errors = settings.validate_production_secrets()
    if validation_errors:
        for error in validation_errors:
            logger.error(f"Configuration error: {error}")
        if settings.ENVIRONMENT == "production":
            raise RuntimeError(
                f"Production configuration invalid: {'; '.join(validation_errors)}"
            )
        else:
            logger.warning("Configuration issues detected (non-fatal in development)")

    # Note: In production, use Alembic migrations instead
    if settings.ENVIRONMENT == "development":
        await init_db()
        logger.info("Database initialized")

    yield

    logger.info("Shutting down keygate API...")


app = FastAPI(
    title="keygate",
    description="API key issuance, permission policies and key rotation",
    version=__version__,
    lifespan=lifespan,
)

# Request ID middleware - must be added first (outermost)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(KeyServiceError)
async def key_service_error_handler(request: Request, exc: KeyServiceError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{exc.code}: {exc.message} {exc.context}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "keygate",
        "version": __version__,
        "docs": "/docs",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
    }
