"""HTTP layer for the GitLab runners API."""

from .client import (
    DEFAULT_TIMEOUT,
    JSON_HEADERS,
    APIClient,
    ProxyConfig,
    encode_body,
    parse_endpoint,
)

__all__ = [
    "APIClient",
    "DEFAULT_TIMEOUT",
    "JSON_HEADERS",
    "ProxyConfig",
    "encode_body",
    "parse_endpoint",
]
