from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


def _error_message(detail) -> str:
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict) and detail.get('error'):
        return str(detail['error'])
    return str(detail or 'Request failed')


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return 'Invalid request'
    first = errors[0]
    location = [str(part) for part in first.get('loc', ()) if part not in ('body', 'query', 'path', 'form')]
    field = '.'.join(location)
    message = str(first.get('msg') or 'Invalid value')
    return f'{field}: {message}' if field else message


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={'error': _error_message(exc.detail)},
        headers=getattr(exc, 'headers', None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = _validation_message(exc)
    logger.info('request_validation_failed path=%s error=%s', request.url.path, message)
    return JSONResponse(status_code=400, content={'error': message})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception('request_unhandled_error path=%s method=%s', request.url.path, request.method)
    return JSONResponse(status_code=500, content={'error': 'Internal server error'})


def install_error_handlers(app: FastAPI) -> None:
    """Every non-2xx response carries ``{"error": "<message>"}``."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
