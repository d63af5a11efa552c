"""Correlation ID middleware for request tracing"""
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from bizmanager.shared.context import set_correlation_id

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Add correlation IDs to all requests.

    - Accepts X-Correlation-ID header from clients, otherwise generates one
    - Stores it in the request context, where the log filter picks it up
    - Echoes it on the response
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
