"""Client configuration.

Connection settings live in one frozen dataclass, validated on construction.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from suparoute.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Connection settings for the live PostgREST executor. Immutable after creation.

    ::

        config = ClientConfig(url="https://xyz.supabase.co", api_key="anon-key")
        config = ClientConfig.from_env()
    """

    url: str
    api_key: str
    schema: str = "public"

    # HTTP
    timeout: float = 30.0
    headers: tuple[tuple[str, str], ...] = ()  # Extra headers sent with every request

    # Debug-log every request the executor sends
    echo: bool = False

    def __post_init__(self) -> None:
        if not self.url:
            msg = "ClientConfig.url must not be empty"
            raise ConfigurationError(msg)
        if not self.url.startswith(("http://", "https://")):
            msg = f"ClientConfig.url must be an http(s) URL, got {self.url!r}"
            raise ConfigurationError(msg)
        if self.timeout <= 0:
            msg = f"ClientConfig.timeout must be positive, got {self.timeout}"
            raise ConfigurationError(msg)

    @property
    def rest_url(self) -> str:
        """Base URL of the PostgREST API."""
        return f"{self.url.rstrip('/')}/rest/v1"

    @classmethod
    def from_env(cls, *, prefix: str = "SUPABASE", echo: bool = False) -> ClientConfig:
        """Build a config from ``<prefix>_URL``, ``<prefix>_KEY`` and ``<prefix>_SCHEMA``.

        Raises ``ConfigurationError`` when the URL or key is missing.
        """
        url = os.environ.get(f"{prefix}_URL", "")
        key = os.environ.get(f"{prefix}_KEY", "")
        missing = [name for name, value in ((f"{prefix}_URL", url), (f"{prefix}_KEY", key)) if not value]
        if missing:
            msg = f"Missing environment variable(s): {', '.join(missing)}"
            raise ConfigurationError(msg)
        return cls(
            url=url,
            api_key=key,
            schema=os.environ.get(f"{prefix}_SCHEMA", "public"),
            echo=echo,
        )
