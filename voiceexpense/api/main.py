"""
FastAPI application entry point.

This is the main FastAPI application that handles:
- Expense parsing from transcriptions and voice recordings
- Daily usage reporting
- Health checks
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voiceexpense import __version__
from voiceexpense.api.routes import expenses_router, health_router
from voiceexpense.config import settings
from voiceexpense.errors import ExtractionError
from voiceexpense.logging_config import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(
        "application_starting",
        environment=settings.environment,
        llm_provider=settings.llm_provider,
        transcription_provider=settings.transcription_provider,
    )

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="VoiceExpense",
    description="Governed AI extraction of expenses from voice and text",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "development" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─────────────────────────────────────────────────────────────────────────────
# Error Envelope
# ─────────────────────────────────────────────────────────────────────────────

def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
    )


@app.exception_handler(ExtractionError)
async def extraction_error_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    logger.info(
        "request_failed",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = {
        status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
        status.HTTP_404_NOT_FOUND: "NOT_FOUND",
        status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    }.get(exc.status_code, "HTTP_ERROR")
    return _error_response(exc.status_code, code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    message = first.get("msg", "Invalid request")
    return _error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Include Routers
# ─────────────────────────────────────────────────────────────────────────────

app.include_router(expenses_router, prefix="/api/v1")
app.include_router(health_router, prefix="/api/v1")

# Also mount health at root for simpler health checks
app.include_router(health_router)


@app.get("/")
def root():
    """Root endpoint with basic info."""
    return {
        "name": "VoiceExpense",
        "version": __version__,
        "status": "running",
        "docs": "/docs" if settings.environment != "production" else None,
        "health": "/health",
        "parse": "/api/v1/expenses/parse",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "voiceexpense.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level="debug" if settings.environment == "development" else "info",
    )
