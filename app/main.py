"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.domain.errors import (
    PaymentScheduleError, PaymentValidationError, NotFoundError, StorageError,
)
from app.infrastructure.db.session import check_db_connection
from app.api.v1 import payments

logger = logging.getLogger(__name__)


def _error_status(exc: PaymentScheduleError) -> int:
    if isinstance(exc, PaymentValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, StorageError):
        return 503
    return 500


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches exceptions no handler claimed, including those of sync routes"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content=f"Internal Server Error: {exc}", status_code=500)


def create_app() -> FastAPI:
    """
    Application factory: builds and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    app = FastAPI(
        title="Team payments",
        debug=settings.DEBUG,
    )

    app.add_middleware(ErrorLoggingMiddleware)

    @app.exception_handler(PaymentScheduleError)
    async def payment_error_handler(request: Request, exc: PaymentScheduleError):
        status_code = _error_status(exc)
        if status_code >= 500:
            logger.error("%s on %s %s: %s", exc.__class__.__name__, request.method, request.url.path, exc)
        return JSONResponse(
            {"detail": str(exc), "error": exc.__class__.__name__},
            status_code=status_code,
        )

    # Routers
    app.include_router(payments.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (checks database reachability)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
