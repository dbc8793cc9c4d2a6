"""Request context middleware.

Binds the inbound request headers to the audit request scope so that audit
writes made while handling the request pick up the client IP and user agent.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from exchange_audit.audit.context import bind_request_headers, reset_request_headers


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Expose request headers to ``resolve_context`` for one request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        token = bind_request_headers(request.headers)
        try:
            return await call_next(request)
        finally:
            reset_request_headers(token)
