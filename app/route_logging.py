from __future__ import annotations

import logging
import time
from contextvars import ContextVar

from fastapi.routing import APIRoute
from starlette.requests import Request


logger = logging.getLogger('app.request')

current_endpoint: ContextVar[str] = ContextVar('current_endpoint', default='background')


class EndpointNameRoute(APIRoute):
    """Labels every request with its route template so slow-query logs can name it."""

    def get_route_handler(self):
        original_handler = super().get_route_handler()

        async def custom_handler(request: Request):
            endpoint_label = f"{request.method} {self.path}"
            token = current_endpoint.set(endpoint_label)
            started = time.perf_counter()
            try:
                response = await original_handler(request)
            finally:
                current_endpoint.reset(token)
            logger.debug(
                'request_handled endpoint=%s status_code=%s actor_id=%s duration_ms=%.2f',
                endpoint_label,
                response.status_code,
                getattr(request.state, 'actor_id', None) or 'anonymous',
                (time.perf_counter() - started) * 1000.0,
            )
            return response

        return custom_handler
