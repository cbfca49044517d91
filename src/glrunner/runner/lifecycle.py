"""File-backed runner registration for configuration management runs.

``register_to_file`` and ``unregister_from_file`` wrap RunnerService with
the policy the HTTP layer leaves to its callers: noop short-circuiting,
checking that a CA file exists before touching the network, persisting the
token, and treating a rejected unregistration as already done.

Both return a human readable string rather than raising for expected
conditions, so they can be called once per run without aborting it.
"""

import logging
from collections.abc import Mapping
from typing import Any

from glrunner.errors import (
    APIError,
    CAFileNotFoundError,
    RegistrationFailedError,
    RunnerAPIError,
)
from glrunner.security.tls_config import ensure_ca_file

from .models import UnregisterOutcome, build_registration_options
from .service import RunnerService, classify_unregister_error
from .token_store import TokenStore

logger = logging.getLogger(__name__)

NOOP_TOKEN = "DUMMY-NOOP-TOKEN"


class RunnerLifecycle:
    """Registers and unregisters runners, keeping their tokens in a TokenStore."""

    def __init__(
        self,
        service: RunnerService | None = None,
        store: TokenStore | None = None,
        noop: bool = False,
    ) -> None:
        self.service = service or RunnerService()
        self.store = store or TokenStore()
        self.noop = noop

    def register_to_file(
        self,
        url: str,
        registration_token: str,
        runner_name: str,
        additional_options: Mapping[str, Any] | None = None,
        proxy: str | None = None,
        ca_file: str | None = None,
        insecure: bool = False,
    ) -> str:
        """Register a runner unless a token is already stored for it.

        Returns:
            The runner authentication token, ``DUMMY-NOOP-TOKEN`` in noop
            mode, or an explanation when the CA file is missing.

        Raises:
            RegistrationFailedError: If the server could not be reached or
                rejected the registration.
        """
        if self.store.exists(runner_name):
            return self.store.read(runner_name)

        if self.noop:
            logger.debug(f"Not registering gitlab runner {runner_name} when in noop mode")
            return NOOP_TOKEN

        try:
            ensure_ca_file(ca_file)
        except CAFileNotFoundError:
            logger.warning(
                "Unable to register gitlab runner at this time as the specified "
                "`ca_file` does not exist (yet). If it is being provisioned, the "
                "next run should complete successfully."
            )
            return "Specified CA file doesn't exist, not attempting to create authtoken"

        options = build_registration_options(registration_token, additional_options)
        try:
            credential = self.service.register(url, options, proxy, ca_file, insecure)
        except RunnerAPIError as e:
            raise RegistrationFailedError(f"Failed to register gitlab runner: {e}") from e

        self.store.write(runner_name, credential.token)
        logger.info(f"Registered gitlab runner {runner_name}")
        return credential.token

    def unregister_from_file(
        self,
        url: str,
        runner_name: str,
        proxy: str | None = None,
        ca_file: str | None = None,
        insecure: bool = False,
    ) -> str:
        """Unregister a runner using its stored token, then remove the token.

        An API rejection is logged as a warning and treated as complete,
        since the runner has most likely been removed on the server already.
        Connection, TLS and URL errors propagate and keep the token file.

        Returns:
            A message describing what happened.
        """
        if not self.store.exists(runner_name):
            return f"{self.store.path_for(runner_name)} file doesn't exist"

        token = self.store.read(runner_name)
        if self.noop:
            message = f"Not unregistering gitlab runner {runner_name} when in noop mode"
            logger.debug(message)
            return message

        try:
            ensure_ca_file(ca_file)
        except CAFileNotFoundError:
            logger.warning(
                "Unable to unregister gitlab runner at this time as the specified "
                "`ca_file` does not exist. The runner config will be removed from "
                "this hosts config only; please remove from gitlab manually."
            )
            self.store.remove(runner_name)
            return "Specified CA file doesn't exist, not attempting to remove authtoken"

        try:
            self.service.unregister(url, token, proxy, ca_file, insecure)
        except APIError as e:
            result = classify_unregister_error(e)
            message = f"Error whilst unregistering gitlab runner {runner_name}: {e}"
            if result.outcome == UnregisterOutcome.REMOTE_NOT_FOUND:
                message += " (runner is most likely already unregistered)"
            logger.warning(message)
            self.store.remove(runner_name)
            return message

        self.store.remove(runner_name)
        message = f"Successfully unregistered gitlab runner {runner_name}"
        logger.debug(message)
        return message
