# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

import configparser
import logging
import os
from dataclasses import dataclass

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "statustray.ini"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class Settings:
    call_timeout_ms: int = 50
    startup_timeout_s: float = 5.0
    settle_delay_ms: int = 50
    run_watcher: bool = True
    log_level: str = "INFO"


def default_config_path() -> str:
    config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return os.path.join(config_home, "statustray", CONFIG_FILENAME)


def _read(parser, section, key, getter, default):
    if not parser.has_option(section, key):
        return default
    try:
        return getter(section, key)
    except ValueError as e:
        raise ConfigError(f"Invalid value for [{section}] {key}: {e}") from e


def load_settings(path: str | None = None) -> Settings:
    """
    Loads settings from an INI file.

    A missing file is not an error; every key falls back to its default.

    Args:
        path (str, optional): File to read. Defaults to
            $XDG_CONFIG_HOME/statustray/statustray.ini.

    Raises:
        ConfigError: if the file cannot be parsed or a value is invalid.
    """
    path = path or default_config_path()
    defaults = Settings()
    # interpolation=None so '%' in values is taken literally
    parser = configparser.ConfigParser(interpolation=None)

    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                parser.read_file(f)
        except configparser.Error as e:
            raise ConfigError(f"Config parsing error in {path}: {e}") from e
        logger.info(f"Loaded configuration from {path}")
    else:
        logger.debug(f"No configuration file at {path}, using defaults.")

    settings = Settings(
        call_timeout_ms=_read(parser, "host", "call_timeout_ms", parser.getint, defaults.call_timeout_ms),
        startup_timeout_s=_read(parser, "watcher", "startup_timeout_s", parser.getfloat, defaults.startup_timeout_s),
        settle_delay_ms=_read(parser, "watcher", "settle_delay_ms", parser.getint, defaults.settle_delay_ms),
        run_watcher=_read(parser, "watcher", "run_watcher", parser.getboolean, defaults.run_watcher),
        log_level=_read(parser, "logging", "level", parser.get, defaults.log_level).upper(),
    )

    if settings.call_timeout_ms <= 0:
        raise ConfigError("[host] call_timeout_ms must be positive")
    if settings.startup_timeout_s <= 0:
        raise ConfigError("[watcher] startup_timeout_s must be positive")
    if settings.settle_delay_ms < 0:
        raise ConfigError("[watcher] settle_delay_ms must not be negative")
    if settings.log_level not in _LOG_LEVELS:
        raise ConfigError(f"[logging] level must be one of {', '.join(sorted(_LOG_LEVELS))}")
    return settings
