"""
Local configuration for tt.

A single JSON object stored in the per-user config directory
(``<config dir>/tt/config.json``). Reads are tolerant: a missing, unreadable or
corrupt file simply means nothing is configured. Writes merge the new key into
whatever is already there and rewrite the whole file.
"""

import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Dict, Optional

from .errors import ConfigDirUnresolvable, ConfigIoFailure

logger = logging.getLogger(__name__)

APP_NAME = "tt"
CONFIG_FILE_NAME = "config.json"

OPENAI_API_KEY = "openai_api_key"
OPENAI_MODEL = "openai_model"


def config_dir() -> Path:
    """Returns the platform-conventional per-user config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            raise ConfigDirUnresolvable("APPDATA is not set.")
        return Path(appdata)

    try:
        home = Path.home()
    except RuntimeError as e:
        raise ConfigDirUnresolvable(f"Could not determine the home directory: {e}") from e

    if sys.platform == "darwin":
        return home / "Library" / "Application Support"

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    # XDG base directories must be absolute; relative values are ignored.
    if xdg_config_home and os.path.isabs(xdg_config_home):
        return Path(xdg_config_home)
    return home / ".config"


def config_path() -> Path:
    return config_dir() / APP_NAME / CONFIG_FILE_NAME


class ConfigStore:
    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path is not None else None

    @property
    def path(self) -> Path:
        # Resolved on demand so an unresolvable config dir only fails
        # the operations that actually touch the file.
        if self._path is None:
            self._path = config_path()
        return self._path

    def _load(self) -> Dict:
        try:
            with open(self.path, "r", encoding="utf-8") as config_file:
                data = json.load(config_file)
        except FileNotFoundError:
            logger.debug("No config file at %s", self.path)
            return {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
            logger.debug("Ignoring unreadable config file %s: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            logger.debug("Ignoring config file %s: top level is not an object", self.path)
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        """
        Returns the value stored under `key`, or None if it is not configured.

        Missing files, unreadable files, invalid JSON and empty or non-string
        values all count as "not configured".
        """
        value = self._load().get(key)
        if not isinstance(value, str) or not value:
            return None
        return value

    def is_configured(self, key: str) -> bool:
        return self.get(key) is not None

    def set(self, key: str, value: str):
        """Stores `value` under `key`, keeping every other key already in the file."""
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigIoFailure(f"Could not create config directory '{path.parent}': {e}") from e

        data = self._load()
        data[key] = value

        # Written next to the target and swapped in, so a failed write never
        # leaves a truncated config behind.
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as config_file:
                tmp_path = Path(config_file.name)
                json.dump(data, config_file, indent=2)
                config_file.write("\n")
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise ConfigIoFailure(f"Could not write config file '{path}': {e}") from e

        logger.debug("Saved '%s' to %s", key, path)
