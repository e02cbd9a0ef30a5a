"""Exceptions raised before a scan starts."""

from urllib.parse import urlsplit


class SetupError(ValueError):
    """Bad target, proxy or request input. Raised before any network I/O."""


def validate_http_url(url: str, what: str = "URL", require_port: bool = False) -> str:
    """Return *url* unchanged if it is a usable http(s) URL, else raise."""
    if not url or not url.strip():
        raise SetupError(f"{what} is required")
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise SetupError(f"Invalid {what}: {url} ({exc})") from exc
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        raise SetupError(f"Invalid {what}: {url}")
    if require_port and port is None:
        raise SetupError(f"Invalid {what} (missing port): {url}")
    return url
