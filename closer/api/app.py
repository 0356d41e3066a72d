"""HTTP surface of the control plane.

`create_app` is the uvicorn factory (see closer.api.__main__). Every error
leaves the service in the same envelope: {"error": {"code", "message", ...}}.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from closer import __version__
from closer.api.dependencies import get_settings, reset_dependencies
from closer.api.exceptions import CloserAPIError, RateLimitExceededError
from closer.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from closer.api.routes import register_routes
from closer.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _envelope(status_code: int, body: ErrorBody) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=body).model_dump(mode="json", exclude_none=True),
    )


async def _on_api_error(request: Request, exc: CloserAPIError) -> JSONResponse:
    logger.warning(
        "api_error",
        error_code=exc.error_code.value,
        status_code=exc.status_code,
        path=request.url.path,
        message=exc.message,
    )
    body = ErrorBody(code=exc.error_code, message=exc.message)
    if isinstance(exc, RateLimitExceededError):
        body.reason = exc.reason
        body.remaining = exc.remaining
    return _envelope(exc.status_code, body)


async def _on_invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = exc.errors()
    logger.warning("request_rejected", path=request.url.path, problems=len(problems))
    details = [
        ErrorDetail(field=".".join(map(str, problem["loc"])), message=problem["msg"])
        for problem in problems
    ]
    return _envelope(
        400,
        ErrorBody(
            code=ErrorCode.INVALID_REQUEST,
            message="Request validation failed",
            details=details,
        ),
    )


async def _on_unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", error_type=type(exc).__name__, path=request.url.path)
    return _envelope(
        500,
        ErrorBody(code=ErrorCode.INTERNAL_ERROR, message="An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain, validation and unexpected errors onto the error envelope."""
    app.add_exception_handler(CloserAPIError, _on_api_error)
    app.add_exception_handler(RequestValidationError, _on_invalid_request)
    app.add_exception_handler(Exception, _on_unhandled)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    # Close pools and drop cached singletons so a restarted app reconnects.
    await reset_dependencies()
    logger.info("app_shutdown")


def create_app() -> FastAPI:
    settings = get_settings()
    log_cfg = settings.observability.logging
    setup_logging(level=log_cfg.level, format=log_cfg.format, redact_pii=log_cfg.redact_pii)

    app = FastAPI(
        title="Closer API",
        description="Conversation control plane for sales agents",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    register_routes(app, expose_metrics=settings.observability.metrics.enabled)

    logger.info("app_created", version=__version__, debug=settings.debug)
    return app
