# app/core/middleware.py
from __future__ import annotations

import time
from typing import Dict

from fastapi import Request, Response, status

from app.core.errors import error_response, request_id

# headere fixe pe orice răspuns (API JSON, fără conținut încadrabil)
SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
    "Content-Security-Policy": "frame-ancestors 'none'",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains; preload"


def build_request_context_mw(*, app_version: str, max_body_bytes: int = 0, hsts: bool = False):
    """
    Middleware HTTP: propagă X-Request-ID, respinge corpuri prea mari (pe baza
    Content-Length, 0 = fără limită), adaugă timing și headerele de securitate.
    """

    async def request_context_mw(request: Request, call_next):
        req_id = request_id(request)

        declared = request.headers.get("content-length", "")
        if max_body_bytes > 0 and declared.isdigit() and int(declared) > max_body_bytes:
            return error_response(
                request,
                status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                "Payload too large",
                headers={"X-Request-ID": req_id},
                max_bytes=max_body_bytes,
            )

        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        headers = response.headers
        headers.setdefault("X-Request-ID", req_id)
        for name, value in SECURITY_HEADERS.items():
            headers.setdefault(name, value)
        if hsts:
            headers.setdefault("Strict-Transport-Security", HSTS_VALUE)
        headers.setdefault("X-App-Version", app_version)
        headers.setdefault("Server-Timing", f"app;dur={elapsed_ms:.1f}")
        headers.setdefault("X-Process-Time", f"{elapsed_ms:.1f}ms")
        return response

    return request_context_mw


__all__ = ("SECURITY_HEADERS", "build_request_context_mw")
