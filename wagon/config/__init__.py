"""Settings loading and typed settings models."""

from .env_substitution import apply_env_substitution, substitute_env_vars
from .loader import SETTINGS_ENV, load_settings
from .models import GCSSettings, GSUtilSettings, S3Settings, TransportSettings

__all__ = [
    "SETTINGS_ENV",
    "load_settings",
    "apply_env_substitution",
    "substitute_env_vars",
    "GCSSettings",
    "GSUtilSettings",
    "S3Settings",
    "TransportSettings",
]
