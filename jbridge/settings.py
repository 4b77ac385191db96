"""Tracker connection settings: resolution from config file, env vars and .env."""

import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "jbridge" / "config.toml"

# Key names in config.toml
URL_KEY = "default_url"
LOGIN_KEY = "login"
PASSWORD_KEY = "password"
DEFAULT_PROFILE_KEY = "default_profile"


class TrackerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="JBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    url: str = ""
    login: str = ""
    password: SecretStr = SecretStr("")


def is_complete(settings: TrackerSettings | None) -> bool:
    """Return True when url, login and password are all non-empty."""
    if settings is None:
        return False
    return bool(settings.url and settings.login and settings.password.get_secret_value())


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/jbridge/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def _settings_block(config: Mapping, profile: str | None) -> Mapping | None:
    """Return the mapping holding the connection keys, or None for an unknown profile."""
    active = profile or config.get(DEFAULT_PROFILE_KEY)
    if not active:
        return config
    block = config.get(active)
    if not isinstance(block, Mapping):
        logger.warning("Profile '%s' not found in %s. Available: %s", active, CONFIG_PATH, _list_profiles(config))
        return None
    return block


def resolve_settings(profile: str | None = None) -> TrackerSettings:
    """Load persisted tracker settings.

    Values come from the [profile] table of ~/.config/jbridge/config.toml when a
    profile is given (or named by default_profile), otherwise from its top level.
    Keys missing from the file fall back to JBRIDGE_URL / JBRIDGE_LOGIN /
    JBRIDGE_PASSWORD from the environment or .env. Anything still unset is an
    empty string, which is_complete() rejects.
    """
    block = _settings_block(_load_toml(), profile)
    if block is None:
        return TrackerSettings.model_construct()

    values: dict = {}
    for key, field in ((URL_KEY, "url"), (LOGIN_KEY, "login"), (PASSWORD_KEY, "password")):
        value = block.get(key)
        if value:
            values[field] = str(value)
    return TrackerSettings(**values)


def save_settings(settings: TrackerSettings, profile: str | None = None) -> Path:
    """Write settings to the config file, preserving comments and other keys."""
    doc = tomlkit.load(CONFIG_PATH.open()) if CONFIG_PATH.exists() else tomlkit.document()

    target = doc
    if profile:
        if profile not in doc:
            doc.add(profile, tomlkit.table())
        target = doc[profile]

    target[URL_KEY] = settings.url
    target[LOGIN_KEY] = settings.login
    target[PASSWORD_KEY] = settings.password.get_secret_value()

    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    _load_toml.cache_clear()
    return CONFIG_PATH
