"""
Building an ExceptionContext from request metadata.

The transport layer owns the request; this module only turns the pieces it
hands over (a header mapping, a peer address) into an immutable context.
"""

from typing import Any, Mapping, Optional

from .exceptions import ContextSource, ExceptionContext

REQUEST_ID_HEADERS = ("x-request-id", "x-correlation-id", "x-trace-id")
FORWARDED_IP_HEADERS = ("x-forwarded-for", "x-real-ip")


def _first(headers: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = headers.get(name)
        if value:
            return value
    return None


def context_from_headers(
    headers: Optional[Mapping[str, Any]] = None,
    *,
    source: ContextSource = ContextSource.WEB,
    ip_address: Optional[str] = None,
    custom_data: Optional[Mapping[str, Any]] = None,
    **ids: Optional[str],
) -> ExceptionContext:
    """
    Build an ExceptionContext from HTTP-style headers.

    Header names are matched case-insensitively. Explicit keyword identifiers
    (tenant_id, user_id, organization_id, department_id, request_id,
    correlation_id, user_agent) take precedence over headers.

    Args:
        headers: Request headers
        source: Entry point of the request
        ip_address: Peer address reported by the server, preferred over forwarding headers
        custom_data: Extra values stored on the context
        **ids: Explicit identifiers

    Example:
        >>> ctx = context_from_headers(
        ...     {"X-Request-Id": "req-1", "X-Tenant-Id": "acme"},
        ...     ip_address="10.0.0.7",
        ... )
        >>> ctx.request_id, ctx.tenant_id
        ('req-1', 'acme')
    """
    normalized = {str(k).lower(): str(v) for k, v in (headers or {}).items() if v is not None}

    forwarded = _first(normalized, *FORWARDED_IP_HEADERS)
    if forwarded:
        # x-forwarded-for lists the client first
        forwarded = forwarded.split(",")[0].strip()

    values = {
        "request_id": _first(normalized, *REQUEST_ID_HEADERS),
        "correlation_id": normalized.get("x-correlation-id"),
        "user_agent": normalized.get("user-agent"),
        "tenant_id": normalized.get("x-tenant-id"),
        "user_id": normalized.get("x-user-id"),
        "organization_id": normalized.get("x-organization-id"),
        "department_id": normalized.get("x-department-id"),
    }
    unknown = set(ids) - set(values)
    if unknown:
        raise TypeError(f"unexpected identifier(s): {', '.join(sorted(unknown))}")
    values.update({k: v for k, v in ids.items() if v is not None})

    return ExceptionContext(
        source=source,
        ip_address=ip_address or forwarded,
        custom_data=dict(custom_data or {}),
        **values,
    )
