"""TLS trust configuration for GitLab API requests."""

from .tls_config import TLSConfig, build_ssl_context, ensure_ca_file

__all__ = ["TLSConfig", "build_ssl_context", "ensure_ca_file"]
