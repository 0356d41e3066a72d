"""Process-wide settings.

    from closer.config import get_settings
    settings = get_settings()

Layers, lowest first: model defaults, config/default.toml,
config/$CLOSER_ENV.toml, CLOSER_* environment variables.
"""

from functools import lru_cache

from closer.config.loader import load_config
from closer.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    set_toml_config(load_config())
    return Settings()


def reload_settings() -> Settings:
    """Re-read the TOML files and environment, replacing the cached instance."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "reload_settings"]
