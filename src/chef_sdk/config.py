"""
Client configuration for Chef server connections
"""

from dataclasses import dataclass, field
from typing import Callable, Optional
from urllib.parse import urlparse

from .exceptions import ValidationError
from .signing.types import normalize_version

ProxyFunction = Callable[[str], Optional[str]]

DEFAULT_TIMEOUT = 30.0


@dataclass
class ClientConfig:
    """
    Configuration for a Chef server client.

    Attributes:
        name: Client or user name registered on the Chef server
        key: PEM encoded RSA private key
        base_url: Chef server URL; include the organization when using orgs,
            e.g. https://chef.example.com/organizations/acme/
        authentication_version: "1.0" or "1.3", anything else becomes "1.0"
        skip_ssl: Disable TLS certificate verification
        root_cas: Path to a CA bundle used instead of the default trust store
        timeout: Seconds to wait for the server, 30 by default; None waits
            indefinitely
        proxy: Callable mapping a request URL to a proxy URL, or None for
            a direct connection. Environment proxies apply when unset.
        is_webui_key: Requests are signed with the web UI key and marked
            with X-Ops-Request-Source: web
    """
    name: str
    key: str = field(repr=False)
    base_url: str
    authentication_version: str = "1.0"
    skip_ssl: bool = False
    root_cas: Optional[str] = None
    timeout: Optional[float] = DEFAULT_TIMEOUT
    proxy: Optional[ProxyFunction] = None
    is_webui_key: bool = False

    def __post_init__(self):
        """Validate client configuration."""
        if not self.name:
            raise ValidationError("Client name cannot be empty")

        if not self.key:
            raise ValidationError("Private key cannot be empty")

        self.base_url = normalize_base_url(self.base_url)
        self.authentication_version = normalize_version(self.authentication_version)

        if self.timeout is not None and self.timeout <= 0:
            raise ValidationError("Timeout must be positive")


def normalize_base_url(base_url: str) -> str:
    """
    Validate a server URL and make sure it ends with ``/``.

    Raises:
        ValidationError: If the URL is empty or lacks a scheme or host
    """
    if not base_url:
        raise ValidationError("Server base_url cannot be empty")

    parsed = urlparse(base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Invalid server URL format: {base_url}")

    if not base_url.endswith('/'):
        base_url += '/'
    return base_url
