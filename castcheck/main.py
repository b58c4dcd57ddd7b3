"""
FastAPI application entry point.

Configures the application with routes, middleware, and settings.
"""
import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from castcheck import __version__
from castcheck.api.routes import analyze, monitoring, verify
from castcheck.config import get_settings
from castcheck.exceptions import CastCheckError
from castcheck.logging_config import configure_logging
from castcheck.middleware.logging import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    redact_sensitive_data,
)

settings = get_settings()

configure_logging(settings.log_level)
logger = structlog.get_logger(__name__)


def _filter_sensitive_data(event: dict) -> dict:
    """Redact secrets and uploaded payloads from Sentry events."""
    if "request" in event and isinstance(event["request"].get("data"), dict):
        event["request"]["data"] = redact_sensitive_data(event["request"]["data"])
    if "extra" in event:
        event["extra"] = redact_sensitive_data(event["extra"])
    return event


if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=__version__,
        traces_sample_rate=0.1,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            LoggingIntegration(level=None, event_level="ERROR"),
        ],
        send_default_pii=False,
        before_send=lambda event, hint: _filter_sensitive_data(event),
    )


app = FastAPI(
    title="CastCheck API",
    description="""
## Financial Statement Casting Verification API

CastCheck re-performs the arithmetic in a set of financial statements with
deterministic code and reports every discrepancy.

### Checks

| Check | Rule |
|------|-------------|
| Vertical casting | Components sum to the stated total |
| Balance sheet | Assets = Liabilities + Equity |
| Movement | Opening + Additions - Deductions = Closing |
| Cross-reference | Note total agrees with the statement line |
    """,
    version=__version__,
    debug=settings.debug,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Verification", "description": "Verify an extracted statement set"},
        {"name": "Analysis", "description": "Extract a document, then verify it"},
        {"name": "Monitoring", "description": "Health checks"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

# Order matters: correlation ID first
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(verify.router, prefix="/api/v1", tags=["Verification"])
app.include_router(analyze.router, prefix="/api/v1", tags=["Analysis"])
app.include_router(monitoring.router, tags=["Monitoring"])


@app.exception_handler(CastCheckError)
async def castcheck_exception_handler(request: Request, exc: CastCheckError):
    """Handle all CastCheck custom exceptions."""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        "castcheck_error",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=str(request.url.path),
    )
    if exc.http_status >= 500:
        sentry_sdk.capture_exception(exc)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with consistent format."""
    sentry_sdk.capture_exception(exc)
    logger.exception(
        "unhandled_error",
        error_type=type(exc).__name__,
        path=str(request.url.path),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "error_code": "CC-999",
            "message": "An unexpected error occurred. Please try again.",
            "details": {"error_type": type(exc).__name__} if settings.debug else {},
        },
    )


@app.on_event("startup")
async def startup_event() -> None:
    logger.info(
        "castcheck_api_started",
        version=__version__,
        extraction_provider=settings.extraction_provider,
        sentry_enabled=bool(settings.sentry_dsn),
    )
