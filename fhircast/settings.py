"""Client configuration loaded from FHIRCAST_* environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FhircastSettings(BaseSettings):
    """FHIRcast client settings.

    All fields are read from environment variables with the ``FHIRCAST_``
    prefix.  For example, ``FHIRCAST_IDLE_TIMEOUT=30`` maps to
    ``idle_timeout``.

    Hub URLs, topics and credentials are **not** managed here -- they belong
    to the subscription request the application builds.
    """

    model_config = SettingsConfigDict(
        env_prefix="FHIRCAST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- WebSocket -------------------------------------------------------------
    open_timeout: float = Field(default=10.0, gt=0)
    """Seconds allowed for the WebSocket opening handshake."""

    close_timeout: float = Field(default=5.0, gt=0)
    """Seconds to wait for the closing handshake before dropping the socket."""

    ping_interval: float | None = 20.0
    """Keepalive ping interval in seconds.  ``None`` disables keepalive pings."""

    ping_timeout: float | None = 20.0

    idle_timeout: float | None = Field(default=None, gt=0)
    """Close the session when no frame arrives for this many seconds.

    Guards against a half-open socket hanging forever.  ``None`` (default)
    waits indefinitely and leaves liveness detection to the hub.
    """

    max_frame_size: int = Field(default=2**20, gt=0)
    """Largest inbound frame accepted, in bytes."""


def get_settings() -> FhircastSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


@lru_cache(maxsize=1)
def _get_settings_cached() -> FhircastSettings:
    return FhircastSettings()
