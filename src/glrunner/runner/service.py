"""Runner registration and unregistration against the GitLab API."""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from glrunner.api.client import APIClient
from glrunner.errors import APIError, InvalidResponseError

from .models import RunnerCredential, UnregisterOutcome, UnregisterResult

logger = logging.getLogger(__name__)

RUNNERS_PATH = "/api/v4/runners"

# GitLab answers 403 for runner tokens it no longer knows.
REMOTE_NOT_FOUND_STATUSES = frozenset({403, 404, 410})


def runners_url(endpoint: str) -> str:
    """Join a server base address and the runners collection path."""
    return f"{endpoint.rstrip('/')}{RUNNERS_PATH}"


def classify_unregister_error(error: APIError) -> UnregisterResult:
    """Map an unregister APIError onto an outcome.

    A 403, 404 or 410 most likely means the runner was already removed on
    the server; every other status is a genuine failure.
    """
    if error.status_code in REMOTE_NOT_FOUND_STATUSES:
        outcome = UnregisterOutcome.REMOTE_NOT_FOUND
    else:
        outcome = UnregisterOutcome.OTHER_FAILURE
    return UnregisterResult(
        outcome=outcome, message=str(error), status_code=error.status_code
    )


class RunnerService:
    """Runner lifecycle operations over ``<endpoint>/api/v4/runners``.

    All transport concerns are delegated to :class:`APIClient`; errors are
    never swallowed here, so the caller decides how to react to them.
    """

    def __init__(
        self,
        client: APIClient | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.client = client or APIClient()
        self._logger = log or logger

    def register(
        self,
        endpoint: str,
        options: Mapping[str, Any],
        proxy: str | None = None,
        ca_file: str | None = None,
        insecure: bool = False,
    ) -> RunnerCredential:
        """Register a runner and return its authentication token.

        Args:
            endpoint: Server base address (e.g. https://gitlab.example.org).
            options: Request body; must include the registration ``token``
                and may carry runner attributes.
            proxy: Optional HTTP proxy URL.
            ca_file: Optional trusted CA bundle for https endpoints.
            insecure: Disable TLS peer verification.

        Returns:
            The credential created by the server.

        Raises:
            InvalidResponseError: If the response carries no runner token.
            RunnerAPIError: Any error raised by the API client.
        """
        url = runners_url(endpoint)
        self._logger.info(f"Registering gitlab runner with {endpoint}")
        data = self.client.post(url, options, proxy, ca_file, insecure)

        if not isinstance(data, dict) or not data.get("token"):
            raise InvalidResponseError(
                f"Registration response from {endpoint} did not contain a runner token"
            )
        try:
            return RunnerCredential.model_validate(data)
        except ValidationError as e:
            raise InvalidResponseError(
                f"Unexpected registration response from {endpoint}: {e}"
            ) from e

    def unregister(
        self,
        endpoint: str,
        token: str,
        proxy: str | None = None,
        ca_file: str | None = None,
        insecure: bool = False,
    ) -> dict[str, Any]:
        """Delete the runner identified by its authentication token.

        Returns:
            ``{}`` on success.

        Raises:
            APIError: On a non-2xx response, including when the runner is
                already gone; see :func:`classify_unregister_error`.
            RunnerAPIError: Any other error raised by the API client.
        """
        url = runners_url(endpoint)
        self._logger.info(f"Unregistering gitlab runner with {endpoint}")
        return self.client.delete(url, {"token": token}, proxy, ca_file, insecure)

    def try_unregister(
        self,
        endpoint: str,
        token: str,
        proxy: str | None = None,
        ca_file: str | None = None,
        insecure: bool = False,
    ) -> UnregisterResult:
        """Unregister and report API rejections as an outcome.

        Only :class:`APIError` is converted; connection, TLS and URL errors
        still propagate.
        """
        try:
            self.unregister(endpoint, token, proxy, ca_file, insecure)
        except APIError as e:
            return classify_unregister_error(e)
        return UnregisterResult(outcome=UnregisterOutcome.SUCCESS)
