"""Load transport settings from YAML.

The settings file comes from an explicit path or the ``WAGON_SETTINGS``
environment variable; with neither, defaults apply. ``${VAR}`` references are
substituted before validation.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from wagon.exceptions import ConfigurationError

from .env_substitution import apply_env_substitution
from .models import TransportSettings

logger = logging.getLogger(__name__)

SETTINGS_ENV = "WAGON_SETTINGS"


def _read_yaml(path: str) -> Dict[str, Any]:
    logger.info("Loading settings from %s", path)

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Settings file not found: {path}", config_path=path)

    try:
        with open(path, "r", encoding="utf-8") as handle:
            cfg = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Invalid YAML in settings file: {exc}", config_path=path
        ) from exc

    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise ConfigurationError(
            "Settings must be a YAML dictionary/object", config_path=path
        )

    return cfg


def load_settings(
    path: Optional[Union[str, Path]] = None, *, enable_env_substitution: bool = True
) -> TransportSettings:
    """Load transport settings.

    Args:
        path: Settings YAML file. Defaults to $WAGON_SETTINGS; when neither is
            set the built-in defaults are returned.
        enable_env_substitution: Substitute ${VAR} and ${VAR:default} with
            environment variables

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid
    """
    if path is None:
        path = os.environ.get(SETTINGS_ENV)
    if not path:
        return TransportSettings()

    path = str(path)
    raw = _read_yaml(path)
    if enable_env_substitution:
        raw = apply_env_substitution(raw, path)

    try:
        return TransportSettings.from_dict(raw)
    except ConfigurationError as exc:
        exc.details.setdefault("config_path", path)
        raise
