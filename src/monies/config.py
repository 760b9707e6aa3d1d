"""Configuration management for monies.

Settings come from environment variables (optionally via a .env file), layered
over an optional YAML file. CLI flags are merged on top into a ``RunConfig``
that is passed explicitly through the pipeline.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_SECRET_NAME = "monies-access-token"
DEFAULT_SECRET_PREFIX = "monies"
DEFAULT_REGION = "us-east-1"


class Settings(BaseModel):
    """Application settings loaded from the config file and environment."""
    sso_profile: str = Field(default="", description="AWS SSO profile used to reach Secrets Manager")
    region: str = Field(default=DEFAULT_REGION, description="Fallback AWS region")
    secret_name: str = Field(default=DEFAULT_SECRET_NAME, description="Secrets Manager secret holding the SimpleFIN credential")
    secret_prefix: str = Field(default=DEFAULT_SECRET_PREFIX, description="Prefix used by `secrets list`")
    db_path: str = Field(default="~/data/monies.duckdb", description="DuckDB file for account balances")
    aws_dir: str = Field(default="~/.aws", description="Root of the SSO token and role credential caches")
    aws_config_file: str = Field(default="", description="AWS config file (defaults to AWS_CONFIG_FILE or ~/.aws/config)")
    http_timeout: float = Field(default=30.0, description="SimpleFIN request timeout in seconds")


class RunConfig(BaseModel):
    """Everything one CLI invocation needs, resolved once at startup."""
    settings: Settings = Field(default_factory=Settings)
    setup_token: str = ""
    use_secrets: bool = False
    secret_name: str = ""
    sso_profile: str = ""
    db_path: str = ""

    @property
    def effective_secret_name(self) -> str:
        return self.secret_name or self.settings.secret_name

    @property
    def effective_sso_profile(self) -> str:
        return self.sso_profile or self.settings.sso_profile

    @property
    def effective_db_path(self) -> Path:
        return Path(self.db_path or self.settings.db_path).expanduser()

    @property
    def aws_dir(self) -> Path:
        return Path(self.settings.aws_dir).expanduser()

    @property
    def aws_config_file(self) -> Path | None:
        if self.settings.aws_config_file:
            return Path(self.settings.aws_config_file).expanduser()
        return None


def _find_config_file() -> Path | None:
    """Locate the YAML settings file: $MONIES_CONFIG, then ./config/monies.yaml."""
    explicit = os.environ.get("MONIES_CONFIG", "")
    if explicit:
        return Path(explicit).expanduser()
    candidate = Path.cwd() / "config" / "monies.yaml"
    if candidate.exists():
        return candidate
    return None


def _load_file_settings(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found at {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return data


def _env(*keys: str, default: str = "") -> str:
    """Try multiple env var names, return the first one found."""
    for key in keys:
        val = os.environ.get(key, "")
        if val:
            return val.strip().strip('"')
    return default


def _load_settings(file_settings: dict[str, Any] | None = None) -> Settings:
    """Build settings from file values overridden by environment variables."""
    values: dict[str, Any] = dict(file_settings or {})
    env_map = {
        "sso_profile": ("MONIES_SSO_PROFILE",),
        "region": ("MONIES_REGION", "AWS_REGION"),
        "secret_name": ("MONIES_SECRET_NAME",),
        "secret_prefix": ("MONIES_SECRET_PREFIX",),
        "db_path": ("MONIES_DB_PATH",),
        "aws_dir": ("MONIES_AWS_DIR",),
        "aws_config_file": ("AWS_CONFIG_FILE",),
        "http_timeout": ("MONIES_HTTP_TIMEOUT",),
    }
    for field, keys in env_map.items():
        val = _env(*keys)
        if val:
            values[field] = val
    return Settings(**values)


@lru_cache(maxsize=1)
def get_config() -> Settings:
    """Load and cache application settings."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return _load_settings(_load_file_settings(_find_config_file()))
