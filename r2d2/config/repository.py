from __future__ import annotations

import json
import logging
import os
from typing import Any

from ..errors.internal import ConfigurationError


class ConfigRepository:
    """Repository for the bot's JSON configuration file.

    The file holds one object with an ``irc`` section and optional
    ``github``, ``untappd``, ``pagetitles`` and ``geolocation`` sections.
    """

    def __init__(self, path: str | os.PathLike[str]):
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = str(path)

    def load_raw(self) -> dict[str, Any]:
        """Load the raw configuration mapping.

        Returns:
            The decoded JSON object.

        Raises:
            ConfigurationError: If the file is missing, unreadable, not JSON
                or not a JSON object.
        """
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Configuration file not found: {self.path}", data={"path": self.path}
            ) from e
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                f"Configuration file unreadable: {self.path}: {e}",
                data={"path": self.path},
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration root must be an object: {self.path}",
                data={"path": self.path},
            )
        logging.debug(f"📁 Configuration loaded path={self.path} sections={sorted(data)}")
        return data
