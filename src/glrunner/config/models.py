"""Pydantic models for glrunner configuration."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from glrunner.api.client import DEFAULT_TIMEOUT
from glrunner.runner.token_store import DEFAULT_CONFIG_DIR


class ConnectionConfig(BaseModel):
    """How to reach the GitLab server.

    Attributes:
        url: Base URL of the GitLab instance (host part only, e.g.
            "https://gitlab.example.org").
        proxy: Optional HTTP proxy URL.
        ca_file: Optional PEM CA bundle trusted for https.
        ssl_insecure: Disable TLS peer verification.
        timeout: Timeout in seconds for each request.
    """

    url: str = ""
    proxy: str | None = None
    ca_file: str | None = None
    ssl_insecure: bool = False
    timeout: float = Field(default=DEFAULT_TIMEOUT, ge=1.0)


class RunnerConfig(BaseModel):
    """Configuration for one runner."""

    name: str = ""
    registration_token: str = ""
    config_dir: Path = DEFAULT_CONFIG_DIR
    additional_options: dict[str, Any] = Field(default_factory=dict)
    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
