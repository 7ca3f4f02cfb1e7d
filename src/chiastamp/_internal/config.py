"""Environment-driven settings for the external services."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_COINSET_BASE = "https://api.coinset.org"
DEFAULT_BACKEND_URL = "http://localhost:8000"
DEFAULT_HTTP_TIMEOUT = 10.0

ENV_COINSET_BASE = "CHIASTAMP_COINSET_BASE"
ENV_BACKEND_URL = "CHIASTAMP_BACKEND_URL"
ENV_HTTP_TIMEOUT = "CHIASTAMP_HTTP_TIMEOUT"


class ConfigError(ValueError):
    """Raised when a setting cannot be parsed."""
    pass


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigError(f"{ENV_HTTP_TIMEOUT} must be a number, got {raw!r}") from None
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigError(f"{ENV_HTTP_TIMEOUT} must be a positive finite number, got {raw!r}")
    return timeout


@dataclass(frozen=True)
class Settings:
    """Endpoints and transport settings.

    Attributes:
        coinset_base: Base URL of the coin/block index (no trailing slash).
        backend_url: Base URL of the stamping/refresh service.
        http_timeout: Per-request timeout in seconds.
    """

    coinset_base: str = DEFAULT_COINSET_BASE
    backend_url: str = DEFAULT_BACKEND_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "coinset_base", self.coinset_base.rstrip("/"))
        object.__setattr__(self, "backend_url", self.backend_url.rstrip("/"))

    @classmethod
    def from_env(cls) -> Settings:
        """Create settings from environment variables, falling back to defaults."""
        raw_timeout = os.environ.get(ENV_HTTP_TIMEOUT)
        return cls(
            coinset_base=os.environ.get(ENV_COINSET_BASE, DEFAULT_COINSET_BASE),
            backend_url=os.environ.get(ENV_BACKEND_URL, DEFAULT_BACKEND_URL),
            http_timeout=_parse_timeout(raw_timeout) if raw_timeout else DEFAULT_HTTP_TIMEOUT,
        )

    def with_overrides(
        self,
        coinset_base: Optional[str] = None,
        backend_url: Optional[str] = None,
        http_timeout: Optional[float] = None,
    ) -> Settings:
        """Return a copy with any non-None values replaced."""
        changes = {}
        if coinset_base is not None:
            changes["coinset_base"] = coinset_base
        if backend_url is not None:
            changes["backend_url"] = backend_url
        if http_timeout is not None:
            if not math.isfinite(http_timeout) or http_timeout <= 0:
                raise ConfigError(f"Timeout must be a positive finite number, got {http_timeout}")
            changes["http_timeout"] = http_timeout
        return replace(self, **changes)
