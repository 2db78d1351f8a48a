"""
Network exception strategy.

Handles EXTERNAL faults: timeouts, refused connections, DNS and TLS failures.
Besides the regular detail sanitization, credentials passed as query
parameters of a ``url`` detail are redacted.
"""

from typing import Any, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..config import StrategyConfig
from ..exceptions import ExceptionCategory
from ..transformer import UnifiedException
from .base import BaseExceptionStrategy

NETWORK_MESSAGES = {
    "NETWORK_TIMEOUT": "The network connection timed out, please check the connection and try again",
    "NETWORK_UNREACHABLE": "The network is unreachable, please check the connection",
    "DNS_RESOLUTION_FAILED": "The host name could not be resolved, please check the network configuration",
    "SSL_CERTIFICATE_ERROR": "SSL certificate verification failed, please check the certificate configuration",
    "TLS_HANDSHAKE_FAILED": "The TLS handshake failed, please check the encryption configuration",
    "PROXY_ERROR": "The proxy server returned an error, please check the proxy configuration",
    "CONNECTION_REFUSED": "The connection was refused, please check the service status",
    "CONNECTION_RESET": "The connection was reset, please try again later",
    "CONNECTION_ABORTED": "The connection was aborted, please try again later",
    "NETWORK_CONFIG_ERROR": "The network configuration is invalid, please contact the administrator",
    "FIREWALL_BLOCKED": "The connection was blocked by a firewall, please contact the administrator",
    "ROUTING_ERROR": "A network routing error occurred, please contact the administrator",
    "BANDWIDTH_EXCEEDED": "The bandwidth limit was exceeded, please try again later",
    "NETWORK_INTERFACE_ERROR": "A network interface error occurred, please contact the administrator",
}

DEFAULT_MESSAGE = "The network connection failed, please try again later"

NETWORK_CONTEXT_FIELDS = ("endpoint", "method", "timeout")

SENSITIVE_QUERY_PARAMS = frozenset({"password", "token", "secret", "key", "auth"})


def redact_url(url: str, marker: str = "[REDACTED]") -> str:
    """Replace the values of sensitive query parameters; unparsable URLs are returned as-is"""
    try:
        parts = urlsplit(url)
        params = parse_qsl(parts.query, keep_blank_values=True)
    except ValueError:
        return url

    if not any(name.lower() in SENSITIVE_QUERY_PARAMS for name, _ in params):
        return url

    query = urlencode(
        [(name, marker if name.lower() in SENSITIVE_QUERY_PARAMS else value) for name, value in params],
        safe="[]",
    )
    return urlunsplit(parts._replace(query=query))


class NetworkExceptionStrategy(BaseExceptionStrategy):
    """Handles EXTERNAL category faults"""

    error_type = "NETWORK_ERROR"

    def __init__(self, config: Optional[StrategyConfig] = None):
        super().__init__(
            name="network-exception-strategy",
            category=ExceptionCategory.EXTERNAL,
            priority=40,
            config=config,
        )

    def user_message(self, exception: UnifiedException) -> str:
        return NETWORK_MESSAGES.get(exception.code, DEFAULT_MESSAGE)

    def context_fields(self, exception: UnifiedException) -> dict[str, Any]:
        fields = super().context_fields(exception)
        custom = exception.context.custom_data
        fields.update({name: custom.get(name) for name in NETWORK_CONTEXT_FIELDS})
        if isinstance(fields["endpoint"], str):
            fields["endpoint"] = redact_url(fields["endpoint"], self.config.redaction_marker)
        return fields

    def sanitize(self, details: Any) -> Any:
        sanitized = super().sanitize(details)
        if isinstance(sanitized, dict) and isinstance(sanitized.get("url"), str):
            sanitized["url"] = redact_url(sanitized["url"], self.config.redaction_marker)
        return sanitized

    def build_response(self, exception: UnifiedException) -> dict[str, Any]:
        return self.base_response(exception)
