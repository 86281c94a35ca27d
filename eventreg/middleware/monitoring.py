"""
Request tracking, access logs and Prometheus metrics for the API.
"""

import time
import uuid
from typing import Any, Callable, Dict

import structlog
from fastapi import Request, Response
from prometheus_client import Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from eventreg.core.settings import get_settings

settings = get_settings()

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        (
            structlog.processors.JSONRenderer()
            if settings.monitoring.LOG_FORMAT == "json"
            else structlog.dev.ConsoleRenderer()
        ),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

access_logger = structlog.get_logger("eventreg.access")

LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)


class ServiceMetrics:
    """Prometheus collectors; they register globally, so create one per process"""

    def __init__(self) -> None:
        self.requests = Counter(
            "eventreg_http_requests_total",
            "HTTP requests served",
            ["method", "route", "status_code"],
        )
        self.latency = Histogram(
            "eventreg_http_request_duration_seconds",
            "Time spent serving HTTP requests",
            ["method", "route"],
            buckets=LATENCY_BUCKETS,
        )
        self.in_flight = Gauge(
            "eventreg_http_requests_in_flight", "Requests currently being served"
        )
        self.domain_errors = Counter(
            "eventreg_domain_errors_total",
            "Requests rejected by a business rule",
            ["code"],
        )
        self.unhandled_errors = Counter(
            "eventreg_unhandled_errors_total",
            "Requests that failed with an unexpected exception",
            ["error_type", "route"],
        )

    def observe(self, method: str, route: str, status_code: int, seconds: float) -> None:
        self.requests.labels(method=method, route=route, status_code=status_code).inc()
        self.latency.labels(method=method, route=route).observe(seconds)


metrics = ServiceMetrics()


def route_template(request: Request) -> str:
    """``/api/v1/events/{event_id}`` rather than ``/api/v1/events/42``."""
    route = request.scope.get("route")
    return str(getattr(route, "path", request.url.path))


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ``X-Request-ID``, times it and logs it."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, method=request.method, path=request.url.path
        )

        started = time.perf_counter()
        metrics.in_flight.inc()
        try:
            response = await call_next(request)
        except Exception as e:
            metrics.unhandled_errors.labels(
                error_type=type(e).__name__, route=route_template(request)
            ).inc()
            access_logger.exception(
                "request_failed", duration=time.perf_counter() - started
            )
            raise
        finally:
            metrics.in_flight.dec()

        elapsed = time.perf_counter() - started
        metrics.observe(
            request.method, route_template(request), response.status_code, elapsed
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"

        access_logger.info(
            "request_completed", status_code=response.status_code, duration=elapsed
        )
        return response


async def get_health_status() -> Dict[str, Any]:
    from eventreg.core.database_manager import db_manager

    database = await db_manager.health_check()
    healthy = database.get("status") == "healthy"
    return {
        "status": "healthy" if healthy else "degraded",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": time.time(),
        "database": database,
        "checks": {"database": healthy},
    }


def render_metrics() -> bytes:
    return generate_latest()
