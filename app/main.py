"""
Main FastAPI application entry point.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.db import initialize_database
from app.routers import quotes
from app.middleware import PerformanceMiddleware, RequestContextMiddleware
from app.cache import config_cache
from app.schemas import ErrorBody
from typing import List
import logging
import os

# Configure logging
logger = logging.getLogger("quote_leads")


def get_allowed_origins() -> List[str]:
    """Parse ALLOWED_ORIGINS; an empty list means any origin is allowed."""
    raw = os.getenv("ALLOWED_ORIGINS", "")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(
    title="Quote Lead API",
    description="API for membership quote lead capture with HubSpot sync",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add performance middleware (innermost - executes first)
app.add_middleware(PerformanceMiddleware)

# Add request context middleware
app.add_middleware(RequestContextMiddleware)

# Add CORS middleware (outermost)
allowed_origins = get_allowed_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-Id", "Idempotency-Key"],
    max_age=86400,
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Reject malformed submissions with the standard error envelope."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(f"Invalid request payload | request_id={request_id} | errors={len(exc.errors())}")
    body = ErrorBody(code="invalid_request", details=jsonable_encoder(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": body.model_dump(), "request_id": request_id},
    )


@app.on_event("startup")
async def startup_event():
    """Initialize database and warm up caches on startup."""
    logger.info("Starting Quote Lead API...")

    # Initialize database
    initialize_database()
    logger.info("Database initialized")

    # Warm up config cache
    logger.info(f"Config cache warmed up: {len(config_cache.get_enum_schema())} enum properties, "
                f"{len(config_cache.get_aliases())} alias tables")

    if not os.getenv("HUBSPOT_ACCESS_TOKEN"):
        logger.warning("HUBSPOT_ACCESS_TOKEN not set; submissions will be stored as sync_failed")

    logger.info("Startup complete")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Quote Lead API", "status": "healthy"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# Include all routers
app.include_router(quotes.router, prefix="/v1", tags=["quotes"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
