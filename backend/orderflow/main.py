"""
Orderflow - Main FastAPI Application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError

from orderflow.core.limiter import apply_rate_limiting
from orderflow.api.v1 import router as api_v1_router
from orderflow.core.config import settings
from orderflow.exceptions import OrderflowException
from orderflow.logging_config import setup_logging, get_logger
from orderflow.schemas.common import ApiResponse, ErrorResponse, StatusResponse

# Setup structured logging
setup_logging()
logger = get_logger(__name__)


# ===================
# Security Headers Middleware
# ===================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Referrer policy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # HSTS in production
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def init_database():
    """Initialize database tables on startup (idempotent)."""
    try:
        from orderflow.db.session import engine
        from orderflow.db.base import Base
        import orderflow.models  # noqa: F401
        logger.info("Checking database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ready")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Starting Orderflow API",
        extra={
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "debug": settings.DEBUG,
        }
    )
    init_database()
    yield
    logger.info("Shutting down Orderflow API")


# Create FastAPI app
app = FastAPI(
    title="Orderflow API",
    description="Manufacturing order fulfillment: orders, raw material allocation, work orders and deliveries",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.state.limiter, RATE_LIMITS_ENABLED = apply_rate_limiting(app)

# Security headers middleware (outermost)
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With", "X-User-Id"],
)


# ===================
# Exception Handlers
# ===================

def _error_envelope(message: str, error: str, data=None) -> dict:
    return ErrorResponse(message=message, data=data, error=error).model_dump()


@app.exception_handler(OrderflowException)
async def orderflow_exception_handler(request: Request, exc: OrderflowException):
    logger.warning(
        f"Orderflow Exception: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code, "details": exc.details, "path": request.url.path}
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors.append({"field": field, "message": error["msg"], "type": error["type"]})
    logger.warning("Validation error on %s", request.url.path, extra={"errors": errors})
    return JSONResponse(
        status_code=422,
        content=_error_envelope("Request validation failed", "VALIDATION_ERROR", {"errors": errors}),
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_envelope("A database error occurred. Please try again.", "DATABASE_ERROR"),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.url.path}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_envelope("An unexpected error occurred. Please try again later.", "INTERNAL_ERROR"),
    )


# Include API routes
app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"success": True, "message": "Orderflow API", "data": {"version": settings.VERSION, "status": "online"}}


@app.get("/health", response_model=ApiResponse[StatusResponse])
async def health_check():
    return ApiResponse(message="OK", data=StatusResponse(status="healthy", version=settings.VERSION))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("orderflow.main:app", host="0.0.0.0", port=8000, reload=True)
