"""Configuration for the monitor: required CLI inputs and optional YAML settings."""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError
from .parsing import RESPONSE_FORMATS

# Longest interval the timer can wait on this platform
MAX_INTERVAL_SECONDS = min(2**31 - 1, int(threading.TIMEOUT_MAX))


# Defaults for the optional settings file, e.g.:
#
#   request_timeout: 10
#   response_format: json
#   stop_on_input: false
#   logs_dir: /var/log/agent-stats
DEFAULT_SETTINGS: dict[str, Any] = {
    "request_timeout": 30,
    "response_format": "xml",
    "stop_on_input": True,
    "logs_dir": None,
}


@dataclass(frozen=True)
class MonitorConfig:
    """Required monitor inputs, fixed for the process lifetime."""
    interval_seconds: int
    server_url: str
    auth_token: str
    output_file: str | None = None

    @classmethod
    def from_args(
        cls,
        interval: str | int,
        server_url: str,
        auth_token: str,
        output_file: str | None = None,
    ) -> "MonitorConfig":
        """Build a validated config from raw command-line values.

        Raises:
            ConfigError: If the interval is not a positive integer or the
                URL or token is empty
        """
        try:
            interval_seconds = int(str(interval).strip())
        except ValueError:
            raise ConfigError(f"Interval must be a valid integer: {interval!r}") from None

        config = cls(
            interval_seconds=interval_seconds,
            server_url=normalize_server_url(server_url),
            auth_token=auth_token,
            output_file=output_file or None,
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.interval_seconds <= 0:
            raise ConfigError("Interval must be a positive number of seconds")
        if self.interval_seconds > MAX_INTERVAL_SECONDS:
            raise ConfigError(f"Interval must not exceed {MAX_INTERVAL_SECONDS} seconds")
        if not self.server_url:
            raise ConfigError("Server URL must not be empty")
        if not self.auth_token:
            raise ConfigError("Authentication token must not be empty")

    @property
    def auth_header(self) -> str:
        return f"Bearer {self.auth_token}"


@dataclass(frozen=True)
class MonitorSettings:
    """Tunables read from the optional settings file."""
    request_timeout: float = DEFAULT_SETTINGS["request_timeout"]
    response_format: str = DEFAULT_SETTINGS["response_format"]
    stop_on_input: bool = DEFAULT_SETTINGS["stop_on_input"]
    logs_dir: Path | None = DEFAULT_SETTINGS["logs_dir"]


def normalize_server_url(url: str) -> str:
    """Strip surrounding whitespace and trailing slashes."""
    return url.strip().rstrip("/")


def load_settings(path: Path | str | None = None) -> MonitorSettings:
    """Load settings from a YAML file, falling back to DEFAULT_SETTINGS.

    Args:
        path: Settings file, or None for defaults only

    Raises:
        ConfigError: If the file is missing, unreadable or has invalid values
    """
    if path is None:
        return MonitorSettings()

    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read settings file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in settings file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")

    merged = {**DEFAULT_SETTINGS, **{k: v for k, v in data.items() if k in DEFAULT_SETTINGS}}

    timeout = merged["request_timeout"]
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(f"request_timeout must be a positive number, got {timeout!r}")

    fmt = merged["response_format"]
    if fmt not in RESPONSE_FORMATS:
        raise ConfigError(
            f"response_format must be one of {', '.join(RESPONSE_FORMATS)}, got {fmt!r}"
        )

    logs_dir = merged["logs_dir"]
    return MonitorSettings(
        request_timeout=timeout,
        response_format=fmt,
        stop_on_input=bool(merged["stop_on_input"]),
        logs_dir=Path(logs_dir).expanduser() if logs_dir else None,
    )
