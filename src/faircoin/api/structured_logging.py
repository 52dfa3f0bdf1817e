# src/faircoin/api/structured_logging.py
from __future__ import annotations

"""JSONL logging for the eligibility service.

One line per HTTP request on `faircoin.http`. Eligibility routes record how a
lookup ended on `request.state.lookup_outcome`; the access line carries it so
operators can count qualified, refused and failed lookups without parsing
response bodies.
"""

import logging
import os
import time
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from faircoin.runtime.runtime_logging import log_event

_OFF = {"0", "false", "no", "off"}


def configure_structured_logging(level_name: Optional[str] = None) -> None:
    """Route the root logger to stderr, one bare message per line.

    The level comes from the argument, then FAIRCOIN_LOG_LEVEL, then INFO.
    Calling it again only moves the level.
    """
    name = (level_name or os.environ.get("FAIRCOIN_LOG_LEVEL") or "INFO").strip().upper()
    level = getattr(logging, name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    if getattr(root, "_faircoin_configured", False):  # type: ignore[attr-defined]
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.handlers = [handler]
    setattr(root, "_faircoin_configured", True)  # type: ignore[attr-defined]


def set_lookup_outcome(request: Request, outcome: str) -> None:
    request.state.lookup_outcome = outcome


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Access log with request ids. FAIRCOIN_LOG_REQUESTS=0 turns it off."""

    def __init__(self, app, *, enabled: Optional[bool] = None) -> None:
        super().__init__(app)
        if enabled is None:
            enabled = (os.environ.get("FAIRCOIN_LOG_REQUESTS") or "1").strip().lower() not in _OFF
        self._enabled = enabled
        self._logger = logging.getLogger("faircoin.http")

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        if not self._enabled:
            response = await call_next(request)
            response.headers.setdefault("x-request-id", request_id)
            return response

        started = time.monotonic()
        status = 500
        err: Optional[str] = None
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        except Exception as e:
            err = f"{type(e).__name__}: {e}"
            raise
        finally:
            fields = {
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": int((time.monotonic() - started) * 1000),
            }
            outcome = getattr(request.state, "lookup_outcome", None)
            if outcome is not None:
                fields["lookup"] = outcome
            if err is not None:
                fields["error"] = err
            level = logging.WARNING if status >= 500 else logging.INFO
            log_event(self._logger, "http_request", level=level, **fields)
            if response is not None:
                response.headers.setdefault("x-request-id", request_id)
