"""
Configuration for the workout log client and server.

Values come from a YAML settings file and/or environment variables:

    ```yaml
    workout_log:
      db_path: ~/.workout-log/workout.db
      remote_url: https://gym.example.com
      sync_interval: 60
      request_timeout: 10
    ```

Environment Variables:
    WORKOUT_LOG_DB_PATH: Local SQLite database path
    WORKOUT_LOG_REMOTE_URL: Base URL of the remote authority
    WORKOUT_LOG_SYNC_INTERVAL: Seconds between periodic sync attempts
    WORKOUT_LOG_REQUEST_TIMEOUT: Seconds before a sync request is abandoned
    WORKOUT_LOG_CONNECTIVITY_INTERVAL: Seconds between connectivity probes
    WORKOUT_LOG_CONNECTIVITY_TIMEOUT: Seconds before a probe counts as offline
    WORKOUT_LOG_SERVER_DATA_PATH: JSON file backing the remote authority
    WORKOUT_LOG_SERVER_HOST: Bind address for the server
    WORKOUT_LOG_SERVER_PORT / PORT: Port for the server
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .exceptions import StorageIOError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".workout-log" / "workout.db"
DEFAULT_SETTINGS_PATH = Path.home() / ".workout-log" / "settings.yaml"

_ENV_PREFIX = "WORKOUT_LOG_"


@dataclass
class WorkoutLogConfig:
    """Settings shared by the local store, sync engine and server."""

    db_path: str | Path = DEFAULT_DB_PATH
    remote_url: str = "http://localhost:3000"
    sync_interval: float = 60.0
    request_timeout: float = 10.0
    connectivity_interval: float = 15.0
    connectivity_timeout: float = 5.0
    server_data_path: str | Path = Path("data") / "exercises.json"
    server_host: str = "0.0.0.0"
    server_port: int = 3000

    @classmethod
    def from_env(cls, base: WorkoutLogConfig | None = None) -> WorkoutLogConfig:
        """Create config from environment variables.

        Args:
            base: Values to fall back on for unset variables (defaults otherwise)
        """
        values = _as_dict(base or cls())

        for f in fields(cls):
            raw = os.environ.get(_ENV_PREFIX + f.name.upper())
            if raw is not None:
                values[f.name] = raw

        if _ENV_PREFIX + "SERVER_PORT" not in os.environ and "PORT" in os.environ:
            values["server_port"] = os.environ["PORT"]

        return cls._coerce(values)

    @classmethod
    def from_file(cls, path: Path | None = None) -> WorkoutLogConfig:
        """Create config from the ``workout_log`` section of a YAML file.

        A missing file yields the defaults.
        """
        path = Path(path) if path else DEFAULT_SETTINGS_PATH
        if not path.exists():
            return cls()

        try:
            content = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StorageIOError("read_settings", str(path), e) from e

        section = content.get("workout_log", {}) or {}
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            logger.warning(f"Ignoring unknown settings in {path}: {sorted(unknown)}")

        values = _as_dict(cls())
        values.update({k: v for k, v in section.items() if k in known})
        return cls._coerce(values)

    @classmethod
    def load(cls, path: Path | None = None) -> WorkoutLogConfig:
        """Settings file first, environment variables on top."""
        return cls.from_env(base=cls.from_file(path))

    @classmethod
    def _coerce(cls, values: dict[str, Any]) -> WorkoutLogConfig:
        return cls(
            db_path=_expand(values["db_path"]),
            remote_url=str(values["remote_url"]).rstrip("/"),
            sync_interval=float(values["sync_interval"]),
            request_timeout=float(values["request_timeout"]),
            connectivity_interval=float(values["connectivity_interval"]),
            connectivity_timeout=float(values["connectivity_timeout"]),
            server_data_path=_expand(values["server_data_path"]),
            server_host=str(values["server_host"]),
            server_port=int(values["server_port"]),
        )


def _as_dict(config: WorkoutLogConfig) -> dict[str, Any]:
    return {f.name: getattr(config, f.name) for f in fields(config)}


def _expand(value: str | Path) -> str | Path:
    # Keep the in-memory SQLite marker untouched
    if str(value) == ":memory:":
        return ":memory:"
    return Path(value).expanduser()
