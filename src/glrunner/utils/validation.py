"""Input validation utilities."""

_FORBIDDEN_NAME_CHARS = ("/", "\\", "\0")


def validate_runner_name(name: str) -> str | None:
    """Validate a runner name for use as a token file suffix.

    Returns error message or None if valid.
    """
    if not name or not name.strip():
        return "Runner name must not be empty"
    if name in (".", "..") or any(c in name for c in _FORBIDDEN_NAME_CHARS):
        return f"Invalid runner name '{name}': path separators are not allowed"
    return None


def validate_server_url(url: str) -> str | None:
    """Validate that a server URL is an absolute http(s) address.

    Returns error message or None if valid.
    """
    if not url:
        return "Server URL must not be empty"
    if not url.startswith(("http://", "https://")):
        return f"Server URL must start with http:// or https://: {url}"
    return None


def mask_token(token: str, visible: int = 4) -> str:
    """Mask a secret token, keeping only its first characters."""
    if not token:
        return ""
    if len(token) <= visible:
        return "*" * len(token)
    return token[:visible] + "*" * (len(token) - visible)
