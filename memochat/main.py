"""FastAPI application main module."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from memochat.core.config import settings
from memochat.core.errors import ChatServiceError
from memochat.core.logging import setup_logging
from memochat.core.redis import close_redis, init_redis
from memochat.routers import chat, frontend

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(f"Starting up {settings.app_name}...")
    init_redis()
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await close_redis()


app = FastAPI(
    title=settings.app_name,
    description="Chat proxy with per-session history kept in Redis",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
)

setup_logging(app)


@app.middleware("http")
async def cors(request: Request, call_next):
    # Answer every preflight directly, whatever the path
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    if request.method not in frontend.PAGE_METHODS:
        return frontend.page_response()
    response = await call_next(request)
    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers.update(CORS_HEADERS)
    return response


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


@app.exception_handler(ChatServiceError)
async def chat_service_error_handler(request: Request, exc: ChatServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.message}", exc_info=exc)
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
    return error_response(400, message)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {str(exc)}", exc_info=True)
    return error_response(500, str(exc))


# Include routers
app.include_router(chat.router, prefix="/api", tags=["Chat"])
app.include_router(frontend.router)
