"""Configuration loading from environment variables and smsac.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_URL = "ws://127.0.0.1:35353/"
_CONFIG_FILENAME = "smsac.toml"


@dataclass
class ServerConfig:
    """Memory server endpoint."""

    url: str = _DEFAULT_URL
    protocol: str | None = None
    connect_timeout: float = 10.0


@dataclass
class WatchConfig:
    """Live field viewer settings."""

    interval_ms: int = 33

    @property
    def interval(self) -> float:
        return self.interval_ms / 1000


@dataclass
class SmsacConfig:
    """Top-level client configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> SmsacConfig:
    """Load configuration from environment variables and optional smsac.toml.

    Priority: environment variables > smsac.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.smsac/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".smsac" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    server_data = file_data.get("server", {})
    watch_data = file_data.get("watch", {})

    config = SmsacConfig(
        server=ServerConfig(
            url=os.getenv("SMSAC_URL", server_data.get("url", _DEFAULT_URL)),
            protocol=os.getenv("SMSAC_PROTOCOL", server_data.get("protocol")),
            connect_timeout=float(
                os.getenv("SMSAC_CONNECT_TIMEOUT", server_data.get("connect_timeout", 10.0))
            ),
        ),
        watch=WatchConfig(
            interval_ms=int(os.getenv("SMSAC_REFRESH_MS", watch_data.get("interval_ms", 33))),
        ),
        log_level=os.getenv("SMSAC_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
