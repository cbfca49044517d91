"""Exception hierarchy for runner registration.

Every failure raised by the HTTP layer, the runner service and the token
store derives from :class:`RunnerAPIError`, so callers can decide in one
place whether to abort, warn or treat an operation as already complete.
"""

from typing import Any


class RunnerAPIError(Exception):
    """Base class for all glrunner errors."""


class InvalidEndpointError(RunnerAPIError):
    """Raised when the server URL cannot be used as a request target."""

    def __init__(self, url: str, detail: str = "") -> None:
        self.url = url
        message = f"Invalid endpoint URL: {url!r}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class InvalidProxyError(RunnerAPIError):
    """Raised when the proxy URL cannot be parsed into host and port."""

    def __init__(self, proxy: str, detail: str = "") -> None:
        self.proxy = proxy
        message = f"Invalid proxy URL: {proxy!r}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class ConnectTimeoutError(RunnerAPIError):
    """Raised when a connection could not be established in time.

    Attributes:
        address: Host (and port) that did not answer.
        via_proxy: True when ``address`` is the proxy rather than the server.
    """

    def __init__(self, address: str, via_proxy: bool = False) -> None:
        self.address = address
        self.via_proxy = via_proxy
        if via_proxy:
            message = (
                f"Timeout connecting to proxy {address} "
                "when trying to register/unregister gitlab runner"
            )
        else:
            message = (
                f"Timeout connecting to {address} "
                "when trying to register/unregister gitlab runner"
            )
        super().__init__(message)


class ConnectionFailedError(RunnerAPIError):
    """Raised when the server or proxy refused or could not be resolved."""


class TransportError(RunnerAPIError):
    """Raised for transport failures after the connection was established."""


class TLSConfigError(RunnerAPIError):
    """Raised when the requested TLS trust configuration cannot be applied."""


class CAFileNotFoundError(TLSConfigError):
    """Raised when a CA file was requested but does not exist on disk."""

    def __init__(self, ca_file: str) -> None:
        self.ca_file = ca_file
        super().__init__(f"CA file does not exist: {ca_file}")


class TLSVerificationError(RunnerAPIError):
    """Raised when the server certificate fails verification."""


class APIError(RunnerAPIError):
    """Raised for any non-2xx response from the API.

    Attributes:
        status_code: HTTP status code of the response.
        reason: Reason phrase of the response (e.g. "Not Found").
        response: The raw ``httpx.Response``.
    """

    def __init__(self, status_code: int, reason: str, response: Any = None) -> None:
        self.status_code = status_code
        self.reason = reason
        self.response = response
        super().__init__(f"{status_code} {reason}".strip())


class InvalidResponseError(RunnerAPIError):
    """Raised when a successful response does not carry the expected JSON."""


class InvalidRunnerNameError(RunnerAPIError):
    """Raised when a runner name cannot be used as a token file suffix."""


class TokenNotFoundError(RunnerAPIError):
    """Raised when no authentication token is stored for a runner."""


class RegistrationFailedError(RunnerAPIError):
    """Raised when register_to_file could not obtain a token."""
