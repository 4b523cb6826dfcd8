"""
Request middleware: error envelopes, request logging and timing headers.

Every response carries an X-Request-ID header. Errors that escape a router
are rendered as a JSON envelope with ``success: false``.
"""
import time
import traceback
import uuid
from datetime import datetime
from typing import Any, Tuple

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError

from cvmatch.utils.exceptions import CVMatchBaseException, map_to_http_exception
from cvmatch.utils.logging_config import get_logger

logger = get_logger(__name__)

HEALTH_PATHS = ("/", "/health")

INTERNAL_ERROR = {
    "error": "Internal server error",
    "message": "An unexpected error occurred. Please try again later.",
}


def create_error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Wrap an error detail in the standard envelope"""
    if not isinstance(detail, dict):
        detail = {"message": str(detail)}

    body = {
        "success": False,
        "timestamp": datetime.utcnow().isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail,
    }
    return JSONResponse(status_code=status_code, content=body, headers={"X-Request-ID": request_id})


def describe_exception(exc: Exception) -> Tuple[int, Any]:
    """Status code and response detail for an exception escaping a route"""
    if isinstance(exc, CVMatchBaseException):
        http_exc = map_to_http_exception(exc)
        return http_exc.status_code, http_exc.detail
    if isinstance(exc, ValidationError):
        return 400, {
            "error": "Data validation failed",
            "message": "Invalid data format or values",
            "validation_errors": exc.errors(include_url=False, include_context=False),
        }
    if isinstance(exc, HTTPException):
        return exc.status_code, exc.detail
    return 500, INTERNAL_ERROR


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Assigns the request id and renders escaping exceptions as JSON"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as exc:
            status_code, detail = describe_exception(exc)
            where = f"{request.method} {request.url.path}"
            extra = {"request_id": request_id, "exception_type": exc.__class__.__name__}

            if isinstance(exc, CVMatchBaseException):
                logger.error(f"{exc.error_code} in {where}: {exc.message}", extra={**extra, "details": exc.details})
            elif status_code >= 500:
                logger.error(
                    f"Unhandled exception in {where}: {exc}",
                    extra={**extra, "traceback": traceback.format_exc()},
                    exc_info=True,
                )
            else:
                logger.warning(f"{exc.__class__.__name__} in {where}: {detail}", extra=extra)

            return create_error_response(request_id, status_code, detail)

        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every non-health request"""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in HEALTH_PATHS:
            return await call_next(request)

        request_id = getattr(request.state, "request_id", None)
        client_ip = request.client.host if request.client else "unknown"
        logger.debug(
            f"Request: {request.method} {request.url} from {client_ip}",
            extra={"request_id": request_id, "content_length": request.headers.get("content-length", "0")},
        )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Request failed: {request.method} {request.url.path} after {time.perf_counter() - start:.3f}s",
                extra={"request_id": request_id, "exception": str(exc)},
            )
            raise

        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} "
            f"in {time.perf_counter() - start:.3f}s",
            extra={"request_id": request_id, "status_code": response.status_code},
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Adds X-Processing-Time and warns about slow requests"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        if elapsed > self.slow_request_threshold:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {elapsed:.3f}s",
                extra={"processing_time": elapsed, "threshold": self.slow_request_threshold},
            )

        response.headers["X-Processing-Time"] = f"{elapsed:.3f}"
        return response
