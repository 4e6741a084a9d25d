"""
Notekeeper Backend — Rate Limiting Middleware
===============================================

What:  HTTP binding for the Admission Gate.
Why:   Rejects over-budget requests before any route or store work happens.
How:   Derives a counter key from the request via the configured key
       strategy, asks the gate to admit it, and answers 429 on rejection.
Who:   Applied to every request via Starlette middleware.
When:  First in the middleware chain.

The gate itself (services/admission_gate.py) lives on app.state so tests and
alternative deployments can swap it without touching this module. When no
gate is installed, or rate limiting is disabled, requests pass through.

Exceptions raised inside BaseHTTPMiddleware do not reach FastAPI's exception
handlers, so the error responses are built here.
"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from notekeeper.config import settings
from notekeeper.exceptions import CounterStoreError, RateLimitExceededError
from notekeeper.middleware.request_id import request_id_var
from notekeeper.services.admission_gate import (
    AdmissionGate,
    KeyStrategy,
    resolve_key_strategy,
)

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Consults the Admission Gate for every non-excluded request.

    Excluded paths:
        - /health: Health checks should never be rate-limited
        - /docs, /redoc, /openapi.json: API documentation stays reachable

    Response on rate limit:
        HTTP 429 Too Many Requests
        Retry-After header: hint only, seconds until the oldest request leaves the window
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, key_strategy: Optional[KeyStrategy] = None, **kwargs):
        super().__init__(app, **kwargs)
        self.key_strategy = key_strategy or resolve_key_strategy(settings.rate_limit_key_strategy)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        gate: Optional[AdmissionGate] = getattr(request.app.state, "admission_gate", None)
        if gate is None or not settings.rate_limit_enabled:
            return await call_next(request)

        rid = request_id_var.get("")
        try:
            await gate.admit(self.key_strategy(request))
        except RateLimitExceededError as exc:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": rid,
                },
                headers={"Retry-After": str(exc.retry_after)},
            )
        except CounterStoreError as exc:
            logger.error("[%s] Counter store error: %s | Context: %s", rid, exc.message, exc.context)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "server_error",
                    "message": "An internal error occurred. Please try again later.",
                    "request_id": rid,
                },
            )

        return await call_next(request)
