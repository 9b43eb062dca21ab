"""
Middleware for observability and request body checks.
"""
import uuid
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import orjson
import structlog

UNMATCHED_PATH = "unmatched"


def route_label(request: Request) -> str:
    """Path template of the matched route, so ids in URLs never become labels."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_PATH


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a per-request correlation id into the log context.

    An inbound ``X-Correlation-ID`` is reused, otherwise a UUID4 is minted;
    either way it is echoed on the response.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            http_method=request.method,
            http_path=request.url.path,
        )

        response = await call_next(request)
        response.headers["x-correlation-id"] = correlation_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts and times every request except the scrape endpoint itself.

    Series are keyed by route template; 404s share a single ``unmatched`` label.
    """

    def __init__(self, app, metrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith("/metrics"):
            return await call_next(request)

        service = self.metrics.service_name
        active = self.metrics.http_requests_active.labels(service=service)
        active.inc()
        start_time = time.time()
        logger = structlog.get_logger()

        try:
            response = await call_next(request)
        except Exception as e:
            self.metrics.http_requests_total.labels(
                service=service, method=request.method, path=route_label(request), status=500
            ).inc()
            logger.error(
                "http_request_error",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )
            raise
        finally:
            active.dec()

        duration = time.time() - start_time
        path = route_label(request)
        self.metrics.http_requests_total.labels(
            service=service, method=request.method, path=path, status=response.status_code
        ).inc()
        self.metrics.http_request_duration.labels(
            service=service, method=request.method, path=path
        ).observe(duration)

        logger.info("http_request", http_status=response.status_code, duration_ms=round(duration * 1000, 2))
        return response


class BodyValidationMiddleware(BaseHTTPMiddleware):
    """Rejects oversized bodies and malformed JSON before they reach a handler."""

    def __init__(self, app, max_body_size: int):
        super().__init__(app)
        self.max_body_size = max_body_size

    def _too_large(self, request: Request, size: int) -> JSONResponse:
        structlog.get_logger().warning(
            "payload.too_large",
            size=size,
            max_size=self.max_body_size,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=413,
            content={
                "success": False,
                "error": f"Request body exceeds maximum size of {self.max_body_size} bytes",
            },
        )

    async def dispatch(self, request: Request, call_next):
        if request.method not in ("POST", "PUT", "PATCH"):
            return await call_next(request)

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_size:
            return self._too_large(request, int(content_length))

        body = await request.body()
        if len(body) > self.max_body_size:
            return self._too_large(request, len(body))

        if body and request.headers.get("content-type", "").startswith("application/json"):
            try:
                orjson.loads(body)
            except orjson.JSONDecodeError as e:
                structlog.get_logger().warning("invalid.json", error=str(e), path=request.url.path)
                return JSONResponse(
                    status_code=400,
                    content={"success": False, "error": "Invalid JSON body"},
                )

        return await call_next(request)
