import logging
import time
from uuid import uuid4

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError

from app.api.v1.bookings import router as bookings_router
from app.api.v1.hall_operators import router as hall_operators_router
from app.core.config import settings
from app.core.exceptions import http_exception_handler, validation_exception_handler
from app.core.hall_locks import hall_locks
from app.core.logging import setup_logging
from app.core.metrics import REQUEST_COUNT, REQUEST_LATENCY, render_metrics
from app.core.request_context import request_id_ctx_var

setup_logging()
logger = logging.getLogger("app.request")

app = FastAPI(title="Hall Booking API", version="0.1.0")
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(bookings_router)
app.include_router(hall_operators_router)

logging.getLogger("app").info(
    "hall_booking_api_configured env=%s hall_lock_backend=%s notifications=%s",
    settings.app_env,
    hall_locks.backend,
    settings.notifications_enabled,
)


def _route_path(request: Request) -> str:
    # route template, e.g. /bookings/{booking_id}
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _observe(request: Request, status_code: int, started: float) -> float:
    elapsed = time.perf_counter() - started
    path = _route_path(request)
    REQUEST_COUNT.labels(method=request.method, path=path, status_code=status_code).inc()
    REQUEST_LATENCY.labels(method=request.method, path=path).observe(elapsed)
    return elapsed * 1000


@app.middleware("http")
async def observability_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid4())
    token = request_id_ctx_var.set(request_id)
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = _observe(request, 500, started)
        logger.exception(
            "request_failed method=%s path=%s status=500 duration_ms=%.2f",
            request.method,
            _route_path(request),
            duration_ms,
        )
        raise
    else:
        duration_ms = _observe(request, response.status_code, started)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request_completed method=%s path=%s status=%s duration_ms=%.2f",
            request.method,
            _route_path(request),
            response.status_code,
            duration_ms,
        )
        return response
    finally:
        request_id_ctx_var.reset(token)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", tags=["observability"])
def metrics() -> Response:
    payload, content_type = render_metrics()
    return Response(content=payload, media_type=content_type)
