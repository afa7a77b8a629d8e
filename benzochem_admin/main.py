"""
BenzoChem Admin API
FastAPI Application Entry Point
"""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from benzochem_admin.db.session import SessionLocal, close_db, init_db
from benzochem_admin.routes.activity_log_routes import router as activity_logs_router
from benzochem_admin.routes.api_key_routes import router as api_keys_router
from benzochem_admin.routes.auth_routes import router as auth_router
from benzochem_admin.routes.v1_routes import router as v1_router
from benzochem_admin.services.auth_service import auth_service
from benzochem_admin.utils.clock import utcnow
from benzochem_admin.utils.responses import error_response

handlers = [logging.StreamHandler(sys.stdout)]
if os.getenv("LOG_FILE"):
    handlers.append(logging.FileHandler(os.environ["LOG_FILE"]))

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=handlers,
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "VALIDATION_ERROR",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMITED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and the bootstrap admin on startup"""
    logger.info("Starting up BenzoChem admin API...")
    try:
        init_db()
        logger.info("Database initialized successfully")

        db = SessionLocal()
        try:
            auth_service.ensure_bootstrap_admin(db)
        finally:
            db.close()
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}", exc_info=True)
        raise

    yield

    logger.info("Shutting down BenzoChem admin API...")
    try:
        close_db()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database: {str(e)}", exc_info=True)


app = FastAPI(
    title="BenzoChem Admin API",
    description="API key management and API key authorization for BenzoChem",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors in the uniform error shape"""
    if isinstance(exc.detail, dict):
        return error_response(
            status_code=exc.status_code,
            message=exc.detail.get("message", ""),
            error=exc.detail.get("error", "ERROR"),
            errors=exc.detail.get("errors"),
            headers=exc.headers,
        )

    return error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error=HTTP_ERROR_CODES.get(exc.status_code, "ERROR"),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    return error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Request validation failed",
        error="VALIDATION_ERROR",
        errors={"details": details},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to catch unhandled exceptions
    Logs error and returns generic error message to client
    """
    logger.error(
        f"Unhandled exception: {str(exc)} - Path: {request.url.path}", exc_info=True
    )

    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An internal error occurred. Please try again later.",
        error="INTERNAL_ERROR",
    )


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["Authentication"])
app.include_router(api_keys_router, prefix="/admin/api-keys", tags=["API Keys"])
app.include_router(
    activity_logs_router, prefix="/admin/activity-logs", tags=["Activity Logs"]
)
app.include_router(v1_router, prefix="/v1", tags=["Public API"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "BenzoChem Admin API",
        "version": "1.0.0",
        "status": "operational",
        "timestamp": utcnow().isoformat(),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": utcnow().isoformat()}
