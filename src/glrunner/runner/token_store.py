"""Local storage of runner authentication tokens, one file per runner."""

import logging
import os
from pathlib import Path

from glrunner.errors import InvalidRunnerNameError, TokenNotFoundError
from glrunner.utils.validation import validate_runner_name

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path("/etc/gitlab-runner")
TOKEN_FILE_PREFIX = "auth-token-"


class TokenStore:
    """Read, write and remove ``<config-dir>/auth-token-<runner-name>`` files."""

    def __init__(self, config_dir: Path | None = None) -> None:
        self.config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR

    def path_for(self, runner_name: str) -> Path:
        """Return the token file path for a runner.

        Raises:
            InvalidRunnerNameError: If the name is empty or contains a path separator.
        """
        error = validate_runner_name(runner_name)
        if error:
            raise InvalidRunnerNameError(error)
        return self.config_dir / f"{TOKEN_FILE_PREFIX}{runner_name}"

    def exists(self, runner_name: str) -> bool:
        return self.path_for(runner_name).exists()

    def read(self, runner_name: str) -> str:
        """Read a stored token with surrounding whitespace removed.

        Raises:
            TokenNotFoundError: If no token file exists for the runner.
        """
        path = self.path_for(runner_name)
        try:
            return path.read_text().strip()
        except FileNotFoundError:
            raise TokenNotFoundError(f"{path} file doesn't exist") from None

    def write(self, runner_name: str, token: str) -> Path:
        """Store a token, readable by the owner only.

        The config directory is created with mode 0700 when missing, since
        the runner package may not be installed yet on first registration.
        """
        path = self.path_for(runner_name)
        if not self.config_dir.exists():
            self.config_dir.mkdir(parents=True)
            self.config_dir.chmod(0o700)

        # Existing token files are read-only.
        if path.exists():
            path.chmod(0o600)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(token)
        path.chmod(0o400)
        logger.debug(f"Stored auth token for runner '{runner_name}' in {path}")
        return path

    def remove(self, runner_name: str) -> bool:
        """Remove a runner's token file.

        Returns:
            True if a file was removed.
        """
        path = self.path_for(runner_name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug(f"Removed auth token file {path}")
        return True

    def list_runners(self) -> list[str]:
        """List runner names with a stored token."""
        if not self.config_dir.is_dir():
            return []
        return sorted(
            p.name[len(TOKEN_FILE_PREFIX):]
            for p in self.config_dir.glob(f"{TOKEN_FILE_PREFIX}*")
            if p.is_file()
        )
