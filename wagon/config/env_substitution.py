"""Environment variable substitution for settings values.

Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax, so a settings file
can point repositories and endpoints at per-environment values.
"""

from __future__ import annotations

import os
import re
from typing import Any, Dict, Optional

from wagon.exceptions import ConfigurationError

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def substitute_env_vars(value: Any, config_path: Optional[str] = None) -> Any:
    """Recursively substitute environment variables in settings values.

    Args:
        value: Settings value (str, dict, list, or primitive)
        config_path: Settings file path, reported in errors

    Returns:
        Value with environment variables substituted

    Raises:
        ConfigurationError: If a referenced variable is unset and has no default
    """
    if isinstance(value, str):

        def replacer(match: re.Match) -> str:
            var_name = match.group(1)
            default_value = match.group(2)

            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise ConfigurationError(
                f"Environment variable '{var_name}' is not set and no default provided",
                config_path=config_path,
            )

        return _ENV_VAR_PATTERN.sub(replacer, value)

    if isinstance(value, dict):
        return {k: substitute_env_vars(v, config_path) for k, v in value.items()}

    if isinstance(value, list):
        return [substitute_env_vars(item, config_path) for item in value]

    return value


def apply_env_substitution(
    config: Dict[str, Any], config_path: Optional[str] = None
) -> Dict[str, Any]:
    """Apply environment variable substitution to an entire settings mapping."""
    return substitute_env_vars(config, config_path)
