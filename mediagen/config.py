"""Configuration: environment settings plus the persisted credentials file.

Credentials are looked up environment first, then config file. The lookup
helpers take both values explicitly so nothing reads global state behind the
caller's back.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

SOURCE_CONFIG_FILE = "config file"


class Settings(BaseSettings):
    """Process settings, loaded from environment variables or a .env file."""

    DEBUG: bool = False

    # --- Volcano Ark (Seedance video) ---
    ARK_API_KEY: str = ""
    ARK_BASE_URL: str = "https://ark.cn-beijing.volces.com/api/v3"

    # --- Google Gemini (image) ---
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    # --- Jimeng / Volcano Visual (AK/SK signed) ---
    JIMENG_ACCESS_KEY_ID: str = ""
    JIMENG_SECRET_ACCESS_KEY: str = ""

    # --- TopView (video avatar) ---
    TOPVIEW_API_KEY: str = ""
    TOPVIEW_UID: str = ""
    TOPVIEW_BASE_URL: str = "https://api.topview.ai/v1"

    # --- Local ---
    MEDIAGEN_CONFIG_PATH: str = ""
    HTTP_TIMEOUT: float = 120.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def config_path(self) -> Path:
        if self.MEDIAGEN_CONFIG_PATH:
            return Path(self.MEDIAGEN_CONFIG_PATH).expanduser()
        return default_config_path()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()


# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------

class ServiceConfig(BaseModel):
    """Stored credentials for one service."""

    model_config = ConfigDict(extra="allow")

    api_key: str | None = None
    uid: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None


class ConfigFile(BaseModel):
    """Contents of config.json. Unknown sections survive a load/save cycle."""

    model_config = ConfigDict(extra="allow")

    ark: ServiceConfig | None = None
    gemini: ServiceConfig | None = None
    jimeng: ServiceConfig | None = None
    topview: ServiceConfig | None = None


class ConfigError(Exception):
    """Config file missing or unreadable."""


def default_config_path() -> Path:
    return Path.home() / ".config" / "mediagen" / "config.json"


def load_config(path: Path) -> ConfigFile:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            f"failed to read config {path}: {e}\n"
            "Run '<cli> config set-key <KEY>' to configure"
        ) from e
    try:
        return ConfigFile.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"failed to parse config {path}: {e}") from e


def load_or_create(path: Path) -> ConfigFile:
    """Load the config file, or start from an empty one."""
    try:
        return load_config(path)
    except ConfigError as e:
        logger.debug("Using empty config: %s", e)
        return ConfigFile()


def save_config(cfg: ConfigFile, path: Path) -> None:
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    data = cfg.model_dump(exclude_none=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    os.chmod(path, 0o600)


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Resolved:
    """A credential value and where it came from."""

    value: str
    source: str = ""

    def __bool__(self) -> bool:
        return bool(self.value)


def resolve_value(
    env_var: str,
    env_value: str,
    config_value: str | None,
) -> Resolved:
    """Environment value first, then the stored value."""
    if env_value:
        return Resolved(env_value, f"env {env_var}")
    if config_value:
        return Resolved(config_value, SOURCE_CONFIG_FILE)
    return Resolved("")


def resolve_api_key(env_var: str, env_value: str, from_config: ServiceConfig | None) -> Resolved:
    return resolve_value(env_var, env_value, from_config.api_key if from_config else None)


def resolve_access_keys(
    ak_env_var: str,
    ak_env_value: str,
    sk_env_var: str,
    sk_env_value: str,
    from_config: ServiceConfig | None,
) -> tuple[Resolved, Resolved]:
    ak = resolve_value(ak_env_var, ak_env_value, from_config.access_key_id if from_config else None)
    sk = resolve_value(sk_env_var, sk_env_value, from_config.secret_access_key if from_config else None)
    return ak, sk


def mask_key(key: str) -> str:
    """Mask an API key for display: first 4 and last 4 chars."""
    if len(key) <= 8:
        return key
    return f"{key[:4]}...{key[-4:]}"


def mask_secret(secret: str) -> str:
    """Mask an access key, keeping its length visible."""
    if len(secret) <= 8:
        return "*" * len(secret)
    return secret[:4] + "*" * (len(secret) - 8) + secret[-4:]


# ---------------------------------------------------------------------------
# Per-client configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClientConfig:
    """Everything a provider client needs, passed into its constructor."""

    api_key: str = ""
    uid: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    base_url: str = ""
    http_timeout: float = 120.0
