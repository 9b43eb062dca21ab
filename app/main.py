"""
Bestie submission service.

Accepts contact and booking form submissions, fans each one out to the
spreadsheet webhook and the operator mailbox, and acknowledges with a
generated id.

Features:
- Structured logging with correlation IDs
- Prometheus metrics
- Concurrent, failure-tolerant sink dispatch
"""
from typing import Sequence

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from starlette.exceptions import HTTPException as StarletteHTTPException
import httpx

from .config import Settings, get_settings
from .logging import setup_logging, get_logger
from .api.router import router
from .errors import InternalFault, SubmissionValidationError
from .metrics import Metrics
from .middleware import BodyValidationMiddleware, CorrelationIdMiddleware, MetricsMiddleware
from .services.dispatcher import FanOutDispatcher
from .services.submissions import SubmissionService, build_default_sinks, build_mailer
from .sinks import Sink

SERVICE_NAME = "bestie"
VERSION = "0.1.0"

logger = get_logger()


def create_app(settings: Settings | None = None, sinks: Sequence[Sink] | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration; defaults to environment-derived settings.
        sinks: Sinks to fan submissions out to. When omitted they are built
            from configuration (webhook and, if SMTP is configured, email).
    """
    settings = settings or get_settings()
    metrics = Metrics(service_name=SERVICE_NAME, version=VERSION)

    http_client = None
    mailer = None
    if sinks is None:
        http_client = httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT_SECONDS)
        mailer = build_mailer(settings)
        sinks = build_default_sinks(settings, http_client, mailer)

    dispatcher = FanOutDispatcher(metrics=metrics, deadline=settings.DISPATCH_DEADLINE_SECONDS)

    app = FastAPI(
        title="Bestie Submissions",
        version=VERSION,
        description="Contact and booking submission pipeline",
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.submissions = SubmissionService(sinks, dispatcher=dispatcher, metrics=metrics)

    # Last added runs first: correlation ID wraps metrics, which wraps body checks
    app.add_middleware(BodyValidationMiddleware, max_body_size=settings.MAX_BODY_SIZE)
    app.add_middleware(MetricsMiddleware, metrics=metrics)
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(router)
    app.mount("/metrics", make_asgi_app(registry=metrics.registry))

    @app.exception_handler(SubmissionValidationError)
    async def validation_error_handler(request: Request, exc: SubmissionValidationError):
        return JSONResponse(status_code=400, content={"success": False, "error": exc.message})

    @app.exception_handler(InternalFault)
    async def internal_fault_handler(request: Request, exc: InternalFault):
        content = {"success": False, "error": "Failed to process submission"}
        if exc.submission_id:
            content[exc.kind.id_field] = exc.submission_id
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            content = {"success": False, "error": "Route not found", "path": request.url.path}
        else:
            content = {"success": False, "error": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled.exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=True,
        )
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            "service_starting",
            version=VERSION,
            env=settings.ENV,
            sinks=[sink.name for sink in app.state.submissions.sinks],
            email_configured=mailer is not None,
        )
        if mailer is not None:
            await mailer.verify()

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("service_stopping")
        if http_client is not None:
            await http_client.aclose()
        metrics.app_up.labels(service=SERVICE_NAME, version=VERSION).set(0)

    return app


_settings = get_settings()
setup_logging(json_output=_settings.LOG_JSON, service_name=SERVICE_NAME, level=_settings.LOG_LEVEL)
app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=_settings.SERVICE_PORT,
        reload=_settings.ENV == "development",
    )
