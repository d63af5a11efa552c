"""Security middleware for HTTP security headers"""
from collections.abc import Callable

from fastapi import Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from bizmanager.infrastructure.config.settings import get_settings

DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all HTTP responses.

    Headers added:
    - X-Frame-Options, X-Content-Type-Options, Referrer-Policy
    - Strict-Transport-Security (HTTPS or production only)
    - Content-Security-Policy (relaxed for the API docs pages)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"

        if request.url.scheme == "https" or get_settings().environment == "production":
            response.headers[
                "Strict-Transport-Security"
            ] = "max-age=63072000; includeSubDomains"

        if request.url.path in DOCS_PATHS:
            # Swagger UI and ReDoc load their assets from a CDN
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "img-src 'self' data: https:; "
                "frame-ancestors 'none'"
            )
        else:
            response.headers["Content-Security-Policy"] = (
                "default-src 'none'; frame-ancestors 'none'"
            )

        return response
