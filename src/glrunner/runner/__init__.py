"""Runner lifecycle: registration, unregistration and token storage."""

from .lifecycle import NOOP_TOKEN, RunnerLifecycle
from .models import (
    RunnerCredential,
    UnregisterOutcome,
    UnregisterResult,
    build_registration_options,
)
from .service import RUNNERS_PATH, RunnerService, classify_unregister_error, runners_url
from .token_store import DEFAULT_CONFIG_DIR, TokenStore

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "NOOP_TOKEN",
    "RUNNERS_PATH",
    "RunnerCredential",
    "RunnerLifecycle",
    "RunnerService",
    "TokenStore",
    "UnregisterOutcome",
    "UnregisterResult",
    "build_registration_options",
    "classify_unregister_error",
    "runners_url",
]
