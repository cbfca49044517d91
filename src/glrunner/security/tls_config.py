"""TLS configuration for requests to the GitLab server."""

import logging
import ssl
from pathlib import Path

from pydantic import BaseModel

from glrunner.errors import CAFileNotFoundError, TLSConfigError

logger = logging.getLogger(__name__)


class TLSConfig(BaseModel):
    """TLS settings applied to https endpoints only."""

    ca_file: str | None = None
    insecure: bool = False

    def build_context(self) -> ssl.SSLContext:
        """Build the SSL context for these settings."""
        return build_ssl_context(self.ca_file, self.insecure)


def build_ssl_context(ca_file: str | None = None, insecure: bool = False) -> ssl.SSLContext:
    """Build an SSL context for an https endpoint.

    Peer verification is on by default. ``insecure`` turns it off entirely.
    A non-empty ``ca_file`` is loaded as a trusted root in both cases; with
    ``insecure`` set it has no verifying effect.

    Raises:
        CAFileNotFoundError: If ``ca_file`` does not exist.
        TLSConfigError: If ``ca_file`` is not a usable PEM bundle.
    """
    ctx = ssl.create_default_context()
    if insecure:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        logger.debug("TLS peer verification disabled")

    if ca_file:
        try:
            ctx.load_verify_locations(ca_file)
        except FileNotFoundError:
            raise CAFileNotFoundError(ca_file) from None
        except ssl.SSLError as e:
            raise TLSConfigError(f"Unable to load CA file {ca_file}: {e}") from e

    return ctx


def ensure_ca_file(ca_file: str | None) -> Path | None:
    """Check that a requested CA file exists before any network call.

    Returns:
        The CA file path, or None when no CA file was requested.

    Raises:
        CAFileNotFoundError: If the file is missing.
    """
    if not ca_file:
        return None
    path = Path(ca_file)
    if not path.exists():
        raise CAFileNotFoundError(ca_file)
    return path
