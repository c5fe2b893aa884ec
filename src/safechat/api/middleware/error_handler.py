"""
Error Handler Middleware

Correlation IDs for every request and a single JSON error envelope
for anything an endpoint lets escape. Student message bodies never
appear in error responses or in the logged context.
"""

import time
import traceback
from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from safechat.config.logging_config import get_logger, bind_correlation_id, clear_context
from safechat.infrastructure.llm.provider import LLMProviderError
from safechat.infrastructure.monitoring.sentry_integration import capture_exception_with_context
from safechat.services.safety.helpline_registry import HelplineConfigError
from safechat.services.safety.interfaces import PersistenceError

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def classify_error(error: Exception) -> tuple[int, str, str]:
    """Map an escaped exception to (status, error code, public message)."""
    if isinstance(error, PersistenceError):
        return 503, "store_unavailable", "The chat store is temporarily unavailable."
    if isinstance(error, LLMProviderError):
        return 502, "verifier_unavailable", "The classification service is unavailable."
    if isinstance(error, HelplineConfigError):
        return 500, "helpline_config_invalid", "Helpline configuration is invalid."
    return 500, "internal_error", "An unexpected error occurred. Please try again."


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Known failures (store, verifier, helpline config) keep their own
    status codes; everything else is a 500 reported to Sentry.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        bind_correlation_id(correlation_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response

        except Exception as e:
            status_code, code, message = classify_error(e)
            log_kwargs = {
                "path": request.url.path,
                "method": request.method,
                "error_type": type(e).__name__,
                "status_code": status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            }
            if status_code == 500:
                logger.error("Unhandled exception", traceback=traceback.format_exc(), **log_kwargs)
                capture_exception_with_context(
                    e,
                    extra={"correlation_id": correlation_id, "path": request.url.path},
                )
            else:
                logger.warning("Dependency failure", error_message=str(e), **log_kwargs)

            return JSONResponse(
                status_code=status_code,
                content={
                    "error": code,
                    "correlation_id": correlation_id,
                    "message": message,
                },
                headers={CORRELATION_HEADER: correlation_id},
            )

        finally:
            clear_context()
