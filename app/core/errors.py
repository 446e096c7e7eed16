# app/core/errors.py
"""
Maparea excepțiilor pe răspunsuri JSON.

Toate răspunsurile de eroare au forma `{"detail": ...}` și poartă
`X-Request-ID`, ca să poată fi corelate cu logurile.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Tuple, Type

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from app.crud.listing import DuplicateSKUError
from app.integrations.google_sheets import (
    RowNotFoundError,
    SheetsNotConfiguredError,
    SheetsUnavailableError,
    UnknownColumnError,
)
from app.services.sheet_reconciler import InvalidRecordError

logger = logging.getLogger("resellerpro-api.errors")

# excepție de domeniu → status HTTP; mesajul excepției devine `detail`
DOMAIN_ERRORS: Dict[Type[Exception], int] = {
    DuplicateSKUError: status.HTTP_409_CONFLICT,
    RowNotFoundError: status.HTTP_404_NOT_FOUND,
    UnknownColumnError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidRecordError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    # Sheets căzut: fără retry, apelantul decide
    SheetsUnavailableError: status.HTTP_502_BAD_GATEWAY,
    SheetsNotConfiguredError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

# SQLSTATE Postgres → (status, mesaj)
_SQLSTATE: Dict[str, Tuple[int, str]] = {
    "23505": (status.HTTP_409_CONFLICT, "Unique constraint violated."),
    "23514": (status.HTTP_422_UNPROCESSABLE_ENTITY, "Check constraint violated."),
    "23502": (status.HTTP_422_UNPROCESSABLE_ENTITY, "Not-null constraint violated."),
}


def request_id(request: Request) -> str:
    """X-Request-ID primit, apoi X-Correlation-ID; altfel unul nou."""
    return (
        request.headers.get("x-request-id")
        or request.headers.get("x-correlation-id")
        or uuid.uuid4().hex[:12]
    )


def error_response(request: Request, code: int, detail: Any, headers: Dict[str, str] | None = None, **extra: Any) -> JSONResponse:
    hdrs = dict(headers or {})
    hdrs.setdefault("X-Request-ID", request_id(request))
    return JSONResponse(status_code=code, content={"detail": detail, **extra}, headers=hdrs)


def _domain_handler(code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return error_response(request, code, str(exc))

    return handler


async def _integrity_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _SQLSTATE:
        code, msg = _SQLSTATE[sqlstate]
        return error_response(request, code, msg, pgcode=sqlstate)
    logger.warning("Integrity error without known SQLSTATE: %s", orig)
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Integrity error.")


async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # ctx poate conține Decimal (ex. {"ge": Decimal("0")})
    return error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, jsonable_encoder(exc.errors()))


async def _http_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    # rutele necunoscute / metodele greșite primesc și path-ul, pentru depanare
    if exc.status_code == status.HTTP_404_NOT_FOUND and detail == "Not Found":
        detail = {"message": "Not Found", "path": request.url.path}
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        detail = {"message": "Method Not Allowed", "path": request.url.path}
    return error_response(request, exc.status_code, detail, headers=exc.headers)


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def register_exception_handlers(app: FastAPI) -> None:
    for exc_type, code in DOMAIN_ERRORS.items():
        app.add_exception_handler(exc_type, _domain_handler(code))
    app.add_exception_handler(IntegrityError, _integrity_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_handler)
    app.add_exception_handler(HTTPException, _http_handler)
    app.add_exception_handler(Exception, _unhandled_handler)


__all__ = ("DOMAIN_ERRORS", "error_response", "register_exception_handlers", "request_id")
