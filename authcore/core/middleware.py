"""CORS and request-context middleware."""

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from authcore.core.config import settings

logger = logging.getLogger("authcore.http")

MAX_USER_AGENT = 500


def resolve_client_ip(request: Request) -> Optional[str]:
    """First hop of X-Forwarded-For when present, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id, client IP and user agent, and logs it.

    Session and security-event records read the client details from
    ``request.state`` so every router sees the same values.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        request.state.request_id = request_id
        request.state.client_ip = resolve_client_ip(request)
        request.state.user_agent = request.headers.get("user-agent", "")[:MAX_USER_AGENT]
        started = time.perf_counter()

        response: Response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)
        # Auth responses carry tokens.
        if request.url.path.startswith("/api/auth"):
            response.headers["Cache-Control"] = "no-store"

        logger.info(
            "%s %s %s %sms ip=%s [%s]",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.client_ip,
            request_id,
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )
    app.add_middleware(RequestContextMiddleware)
