"""
Proxy configuration.

The proxy reads a small JSON file (default: config.json in the working
directory, or the path given with --config):

    {
        "engine": "/usr/local/bin/stockfish",
        "logfile": "/home/me/uci-logs/stockfish.log"
    }
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ucitap.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.json")


@dataclass
class TapConfig:
    """Configuration for the proxy."""

    engine: Path
    """Engine executable to spawn"""

    logfile: Path
    """Tap log to append to"""

    def __post_init__(self):
        """Validate configuration after initialization."""
        for name in ("engine", "logfile"):
            value = getattr(self, name)
            if value is None or not str(value).strip():
                raise ConfigError(f"Config field {name!r} must be a non-empty path")
            setattr(self, name, Path(str(value)).expanduser())

    @classmethod
    def from_dict(cls, data: dict) -> "TapConfig":
        """
        Build a config from parsed JSON.

        Raises:
            ConfigError: If a required field is missing
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Config must be a JSON object, got {type(data).__name__}")

        missing = [name for name in ("engine", "logfile") if name not in data]
        if missing:
            raise ConfigError(f"Config is missing required field(s): {', '.join(missing)}")

        unknown = sorted(set(data) - {"engine", "logfile"})
        if unknown:
            logger.debug(f"Ignoring unknown config fields: {unknown}")

        return cls(engine=data["engine"], logfile=data["logfile"])


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> TapConfig:
    """
    Load the proxy configuration file.

    Args:
        path: Path to the JSON config file

    Returns:
        TapConfig

    Raises:
        ConfigError: If the file is missing, unreadable, not JSON, or incomplete
    """
    path = Path(path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse config {path}: {e}") from e

    config = TapConfig.from_dict(data)
    logger.info(f"Loaded config {path}: engine={config.engine}, logfile={config.logfile}")
    return config
