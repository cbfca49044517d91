"""JSON-over-HTTP(S) client for the GitLab runners API.

This module provides APIClient, which performs one JSON request per call
against an automation server, optionally through an HTTP proxy and with a
custom TLS trust configuration, and classifies the outcome into the
exceptions defined in ``glrunner.errors``.

Every call opens its own ``httpx.Client`` and closes it before returning,
so no connection or state is shared between calls.
"""

import json
import logging
import ssl
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel

from glrunner.errors import (
    APIError,
    ConnectionFailedError,
    ConnectTimeoutError,
    InvalidEndpointError,
    InvalidProxyError,
    InvalidResponseError,
    TLSVerificationError,
    TransportError,
)
from glrunner.security.tls_config import TLSConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}

_DEFAULT_PORTS = {"http": 80, "https": 443}


class ProxyConfig(BaseModel):
    """HTTP proxy host and port extracted from a proxy URL."""

    scheme: str = "http"
    host: str
    port: int

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}"

    @classmethod
    def from_url(cls, proxy: str) -> "ProxyConfig":
        """Parse a proxy URL such as ``http://proxy.example.org:3128``.

        Raises:
            InvalidProxyError: If the URL has no host or an unsupported scheme.
        """
        try:
            parsed = httpx.URL(proxy)
        except (httpx.InvalidURL, TypeError) as e:
            raise InvalidProxyError(str(proxy), str(e)) from e

        if parsed.scheme not in _DEFAULT_PORTS:
            raise InvalidProxyError(proxy, f"unsupported scheme {parsed.scheme!r}")
        if not parsed.host:
            raise InvalidProxyError(proxy, "missing host")

        return cls(
            scheme=parsed.scheme,
            host=parsed.host,
            port=parsed.port or _DEFAULT_PORTS[parsed.scheme],
        )


def parse_endpoint(url: str) -> httpx.URL:
    """Parse and validate a request target URL.

    Raises:
        InvalidEndpointError: If the URL is malformed, not http(s), or has no host.
    """
    try:
        target = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidEndpointError(str(url), str(e)) from e

    if target.scheme not in _DEFAULT_PORTS:
        raise InvalidEndpointError(url, "scheme must be http or https")
    if not target.host:
        raise InvalidEndpointError(url, "missing host")
    return target


def encode_body(options: Mapping[str, Any]) -> bytes:
    """Serialize request options as a UTF-8 JSON object, keeping key order."""
    return json.dumps(dict(options)).encode("utf-8")


def _is_certificate_error(exc: BaseException) -> bool:
    """Check whether a connect error was caused by certificate verification."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, ssl.SSLCertVerificationError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return "CERTIFICATE_VERIFY_FAILED" in str(exc)


class APIClient:
    """Performs authenticated JSON requests and classifies their outcome."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            timeout: Timeout in seconds for connecting and for each read.
            transport: Optional transport used instead of a network
                transport (e.g. ``httpx.MockTransport`` in tests). Proxy and
                TLS settings are not applied to an injected transport.
        """
        self.timeout = timeout
        self._transport = transport

    def post(
        self,
        url: str,
        options: Mapping[str, Any],
        proxy: str | None = None,
        ca_file: str | None = None,
        insecure: bool = False,
    ) -> Any:
        """POST ``options`` as JSON and return the parsed response body.

        Raises:
            APIError: On a non-2xx response.
            InvalidResponseError: If the 2xx body is not JSON.
        """
        response = self.request("POST", url, options, proxy, ca_file, insecure)
        self.validate(response)
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"Expected a JSON body from POST {url}, got: {response.text[:200]!r}"
            ) from e

    def delete(
        self,
        url: str,
        options: Mapping[str, Any],
        proxy: str | None = None,
        ca_file: str | None = None,
        insecure: bool = False,
    ) -> dict[str, Any]:
        """DELETE with ``options`` as the JSON body.

        The API answers a deletion without a body, so success is ``{}``.

        Raises:
            APIError: On a non-2xx response.
        """
        response = self.request("DELETE", url, options, proxy, ca_file, insecure)
        self.validate(response)
        return {}

    def request(
        self,
        method: str,
        url: str,
        options: Mapping[str, Any],
        proxy: str | None = None,
        ca_file: str | None = None,
        insecure: bool = False,
    ) -> httpx.Response:
        """Send one JSON request and return the raw response.

        Args:
            method: HTTP method.
            url: Absolute http(s) URL of the request target.
            options: JSON body.
            proxy: Optional HTTP proxy URL.
            ca_file: Optional PEM CA bundle, used for https targets only.
            insecure: Disable TLS peer verification for https targets.

        Returns:
            The response, whatever its status code.

        Raises:
            InvalidEndpointError: If ``url`` is unusable.
            InvalidProxyError: If ``proxy`` is unusable.
            ConnectTimeoutError: If the proxy or target did not accept the
                connection in time.
            TLSVerificationError: If the server certificate was rejected.
            ConnectionFailedError: If the connection was refused.
            TransportError: For any other transport failure.
        """
        target = parse_endpoint(url)
        proxy_config = ProxyConfig.from_url(proxy) if proxy else None
        body = encode_body(options)

        transport = self._transport or self._build_transport(
            target, proxy_config, ca_file, insecure
        )

        if proxy_config:
            logger.debug(f"{method} {target} via proxy {proxy_config.url}")
        else:
            logger.debug(f"{method} {target}")

        with httpx.Client(
            transport=transport, timeout=self.timeout, trust_env=False
        ) as client:
            try:
                return client.request(method, target, content=body, headers=JSON_HEADERS)
            except httpx.ConnectTimeout as e:
                if proxy_config:
                    raise ConnectTimeoutError(proxy_config.host, via_proxy=True) from e
                raise ConnectTimeoutError(target.host) from e
            except httpx.ConnectError as e:
                if _is_certificate_error(e):
                    raise TLSVerificationError(
                        f"TLS certificate verification failed for {target.host}: {e}"
                    ) from e
                where = f"proxy {proxy_config.host}" if proxy_config else target.host
                raise ConnectionFailedError(f"Unable to connect to {where}: {e}") from e
            except httpx.ProxyError as e:
                raise ConnectionFailedError(f"Proxy refused the tunnel to {target.host}: {e}") from e
            except httpx.TransportError as e:
                raise TransportError(f"{method} {target} failed: {e}") from e

    def _build_transport(
        self,
        target: httpx.URL,
        proxy_config: ProxyConfig | None,
        ca_file: str | None,
        insecure: bool,
    ) -> httpx.HTTPTransport:
        """Create the network transport for one request."""
        verify: ssl.SSLContext | bool = True
        if target.scheme == "https":
            verify = TLSConfig(ca_file=ca_file, insecure=insecure).build_context()

        return httpx.HTTPTransport(
            verify=verify,
            proxy=proxy_config.url if proxy_config else None,
        )

    @staticmethod
    def validate(response: httpx.Response) -> None:
        """Raise APIError unless the response status is 2xx."""
        if not 200 <= response.status_code < 300:
            raise APIError(response.status_code, response.reason_phrase, response)
