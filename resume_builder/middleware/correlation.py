"""
Correlation ID middleware for request tracing.

Uses the client's X-Correlation-ID when present, otherwise a fresh UUID4.
The id lives in a context variable so any log line emitted while the
request is handled can carry it.
"""
import uuid
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from resume_builder.utils.logger import logger, correlation_id_var


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("x-correlation-id") or str(uuid.uuid4())
        token = correlation_id_var.set(cid)

        start = time.monotonic()
        context = {
            "correlation_id": cid,
            "method": request.method,
            "path": request.url.path,
        }
        logger.info(
            "request.started",
            extra={**context, "client_ip": request.client.host if request.client else ""},
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request.failed",
                extra={
                    **context,
                    "duration_ms": round((time.monotonic() - start) * 1000),
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            raise
        finally:
            correlation_id_var.reset(token)

        status = response.status_code
        log_fn = logger.warning if status >= 400 else logger.info
        log_fn(
            "request.completed",
            extra={**context, "status": status, "duration_ms": round((time.monotonic() - start) * 1000)},
        )

        response.headers["X-Correlation-ID"] = cid
        return response
