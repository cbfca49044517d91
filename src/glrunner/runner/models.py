"""Data models for runner registration."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class RunnerCredential(BaseModel):
    """Runner authentication token returned by a successful registration.

    GitLab answers with ``id``, ``token`` and ``token_expires_at``; any other
    fields in the response are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    token: str
    id: int | None = None
    token_expires_at: str | None = None

    def __str__(self) -> str:
        return self.token


class UnregisterOutcome(str, Enum):
    SUCCESS = "success"
    REMOTE_NOT_FOUND = "remote_not_found"
    OTHER_FAILURE = "other_failure"


@dataclass
class UnregisterResult:
    """Outcome of an unregistration attempt."""

    outcome: UnregisterOutcome
    message: str = ""
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == UnregisterOutcome.SUCCESS


def build_registration_options(
    registration_token: str,
    additional_options: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the register request body.

    ``token`` comes first; runner attributes such as ``description`` or
    ``tag_list`` follow in the order given and may replace it.
    """
    options: dict[str, Any] = {"token": registration_token}
    if additional_options:
        options.update(additional_options)
    return options
