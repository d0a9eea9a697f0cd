"""DocAudit Backend - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.routers import ingestion, validation
from app.services.clients import close_http_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown."""
    logger.info("Starting DocAudit Backend...")

    settings = get_settings()
    for name, value in (
        ("SUPABASE_URL", settings.supabase_url),
        ("ANTHROPIC_API_KEY", settings.anthropic_api_key),
        ("OPENAI_API_KEY", settings.openai_api_key),
    ):
        if not value:
            logger.warning(f"{name} not configured - dependent endpoints will fail")

    logger.info("DocAudit Backend started successfully")

    yield

    # Shutdown: release pooled connections
    logger.info("Shutting down DocAudit Backend...")

    try:
        await close_http_client()
    except Exception as e:
        logger.warning(f"Error closing HTTP client: {e}")

    logger.info("DocAudit Backend shutdown complete")


app = FastAPI(
    title="DocAudit Backend",
    description="Documentation quality auditing - page ingestion and issue gap validation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in get_settings().cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(ingestion.router)
app.include_router(validation.router)


@app.get("/health")
async def health_check() -> dict:
    """Liveness check for monitoring."""
    return {"status": "healthy"}


def _describe_errors(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "Invalid request body: " + "; ".join(problems)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the endpoint's own failure shape with a 400."""
    message = _describe_errors(exc)
    path = request.url.path
    logger.warning(f"Rejected request to {path}: {message}")

    if path.startswith(ingestion.router.prefix):
        return ingestion.error_response(400, message)
    if path.startswith(validation.router.prefix):
        return validation.error_response(400, message)
    return await request_validation_exception_handler(request, exc)
