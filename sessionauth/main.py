"""
Session Auth Service

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sessionauth.api.deps import get_request_id
from sessionauth.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from sessionauth.api.v1 import router as api_v1_router
from sessionauth.config import get_settings
from sessionauth.database import close_db, init_db
from sessionauth.errors import AuthError
from sessionauth.logging_config import configure_logging, get_logger
from sessionauth.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Session Auth Service

    Issues and validates access/refresh token pairs.

    ## Session rules

    1. One live refresh token per account; a new login ends the previous session
    2. Refresh tokens are single use: each refresh rotates the pair
    3. Logout clears the stored refresh token
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# Last added = outermost: CORS wraps everything
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_headers(request: Request, status_code: int) -> dict:
    headers = {}
    req_id = get_request_id(request)
    if req_id:
        headers[REQUEST_ID_HEADER] = req_id
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"
    return headers


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    """Render the auth error taxonomy as JSON."""
    content = {"detail": exc.message, "code": exc.error_code}
    if exc.status_code >= 500:
        content["request_id"] = get_request_id(request)
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=_error_headers(request, exc.status_code),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    headers = _error_headers(request, exc.status_code)
    if exc.headers:
        headers.update(exc.headers)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=422,
        content={"detail": "Validation error", "errors": errors},
        headers=_error_headers(request, 422),
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
):
    """Handle unexpected exceptions without echoing internals."""
    logger.exception("Unhandled exception: %s", type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "request_id": get_request_id(request)},
        headers=_error_headers(request, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(status="ok", version=settings.version)


app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


# Main entry point for development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sessionauth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
