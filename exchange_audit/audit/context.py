"""Request context resolution for audit entries.

The HTTP layer binds the inbound request headers to a context variable for
the duration of each request (see ``exchange_audit.api.middleware``). Audit
writes read the client IP and user agent from there. Outside a request, for
example in background jobs, resolution degrades to ``ip_address="unknown"``.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar, Token

from exchange_audit.audit.config import UNKNOWN
from exchange_audit.audit.models import RequestContext
from exchange_audit.audit.noncritical import non_critical

_request_headers: ContextVar[Mapping[str, str]] = ContextVar("audit_request_headers")


def bind_request_headers(headers: Mapping[str, str]) -> Token:
    """Bind request headers to the current context.

    Header names are lowercased so lookups are case-insensitive.

    Returns:
        Token to pass to ``reset_request_headers``.
    """
    normalized = {str(name).lower(): value for name, value in headers.items()}
    return _request_headers.set(normalized)


def reset_request_headers(token: Token) -> None:
    _request_headers.reset(token)


@contextmanager
def request_scope(headers: Mapping[str, str]) -> Iterator[None]:
    """Run a block as if it were handling a request with these headers."""
    token = bind_request_headers(headers)
    try:
        yield
    finally:
        reset_request_headers(token)


def context_from_headers(headers: Mapping[str, str]) -> RequestContext:
    """Extract client IP and user agent from request headers.

    The leftmost ``x-forwarded-for`` entry is the original client in a proxy
    chain; ``x-real-ip`` is used when it is absent.

    Args:
        headers: Header mapping with lowercase names.

    Returns:
        RequestContext with ``ip_address="unknown"`` if no IP header is present.
    """
    ip_address = UNKNOWN

    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            ip_address = first_hop
    if ip_address == UNKNOWN:
        real_ip = headers.get("x-real-ip")
        if real_ip and real_ip.strip():
            ip_address = real_ip.strip()

    user_agent = headers.get("user-agent") or None

    return RequestContext(ip_address=ip_address, user_agent=user_agent)


@non_critical(
    fallback=lambda: RequestContext(ip_address=UNKNOWN, user_agent=None),
    message="Could not resolve request context for audit entry",
)
def resolve_context() -> RequestContext:
    """Resolve the network context of the current request.

    Returns:
        RequestContext of the bound request, or ``("unknown", None)`` when
        called outside a request scope. Never raises.
    """
    headers = _request_headers.get()
    return context_from_headers(headers)
