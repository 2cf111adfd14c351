"""
Request logging middleware with request ID tracking and context propagation.
"""
import time
import uuid
from contextvars import ContextVar

from app.core.logging_config import LogCategory, get_logger

logger = get_logger(LogCategory.REQUEST)

# Context variable for request ID propagation
request_id_ctx: ContextVar[str] = ContextVar('request_id', default='unknown')
request_path_ctx: ContextVar[str] = ContextVar('request_path', default='unknown')

# Default status code when response is not captured
DEFAULT_STATUS_CODE = 500

SLOW_REQUEST_MS = 10000


class RequestLoggingMiddleware:
    """
    Pure ASGI middleware that assigns a request ID to every HTTP request.

    The ID is stored in ``request_id_ctx`` so service code can log it, and is
    echoed back in the ``x-request-id`` response header.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        request_id_ctx.set(request_id)

        start_time = time.time()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "/")
        request_path_ctx.set(path)

        status_holder = {"status_code": DEFAULT_STATUS_CODE}

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                status_holder["status_code"] = message.get("status", DEFAULT_STATUS_CODE)
                headers = list(message.get("headers", []))
                headers.append([b"x-request-id", request_id.encode()])
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            logger.error(
                "Request failed with exception",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "error": str(e),
                    "event": "request_exception",
                },
                exc_info=True,
            )
            raise
        finally:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            status_code = status_holder["status_code"]
            log_extra = {
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
                "event": "request_complete",
            }
            message = f"{method} {path} - {status_code} - {duration_ms}ms"
            if duration_ms >= SLOW_REQUEST_MS:
                logger.warning(f"Slow request: {message}", extra=log_extra)
            elif status_code >= 500:
                logger.error(message, extra=log_extra)
            elif status_code >= 400:
                logger.warning(message, extra=log_extra)
            else:
                logger.info(message, extra=log_extra)
