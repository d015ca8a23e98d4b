"""Repository configuration management.

The accessor never reads ambient global state: a ``RepositoryConfig`` is
built here and injected at construction. Sources, highest priority first:
    - Environment variables (REPOTREE_* prefix)
    - TOML/JSON config file
    - Default values

Key components:
    - RepositoryConfig: settings model
    - load_config(): Safe config loading with fallback
    - ConfigLoadResult: Metadata about config source
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from unittest.mock import patch

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from repotree.core.result import ConfigurationError

CONFIG_ENV_VAR = "REPOTREE_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".repotree.toml"


class RepositoryConfig(BaseSettings):
    """Where the repository lives and how to drive git against it."""

    model_config = SettingsConfigDict(
        env_prefix="REPOTREE_",
        extra="ignore",
    )

    repo_root: Path = Field(
        default_factory=Path.cwd,
        validate_default=True,
        description="Root of the git working tree.",
    )
    branch: str = Field(default="master", description="Branch resolved as the head revision.")
    git_executable: str = Field(default="git", description="git binary to invoke.")
    serialize_mutations: bool = Field(
        default=True,
        description="Serialize reset/write/delete/commit calls on one accessor.",
    )
    log_level: str = Field(default="INFO", description="Log level for repotree output.")

    @field_validator("repo_root", mode="after")
    @classmethod
    def resolve_root(cls, v: Path) -> Path:
        return v.expanduser().resolve()

    @field_validator("branch")
    @classmethod
    def branch_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("branch must not be empty")
        return v.strip()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        # Environment variables override config file entries.
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


@dataclass
class ConfigLoadResult:
    path: Path
    file_loaded: bool
    env_overrides: set[str]
    error: str | None = None


def _resolve_config_path(config_path: Path | None, env_vars: Mapping[str, str]) -> Path:
    candidate = config_path or env_vars.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    return Path(candidate).expanduser()


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    raw = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    parser = json.loads if suffix == ".json" else tomllib.loads

    try:
        data = parser(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(f"Syntax error in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config root in {path} must be a mapping.")

    return data


def _detect_env_overrides(env_vars: Mapping[str, str]) -> set[str]:
    prefix = RepositoryConfig.model_config.get("env_prefix", "")
    return {
        field
        for field in RepositoryConfig.model_fields
        if f"{prefix}{field}".upper() in env_vars
    }


def load_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[RepositoryConfig, ConfigLoadResult]:
    """
    Load configuration with Safe Mode fallback.
    If the file is invalid, returns default config + error message.
    """
    env_vars: Mapping[str, str] = os.environ if env is None else {**os.environ, **env}
    resolved_path = _resolve_config_path(config_path, env_vars)
    env_overrides = _detect_env_overrides(env_vars)

    error: str | None = None
    file_loaded = False
    file_data: dict[str, Any] = {}

    try:
        file_data = _read_config_file(resolved_path)
        file_loaded = resolved_path.exists()
    except ConfigurationError as exc:
        error = str(exc)

    context_manager = (
        patch.dict(os.environ, env_vars, clear=False) if env is not None else nullcontext()
    )

    with context_manager:
        try:
            config = RepositoryConfig(**file_data)
        except ValidationError as exc:
            error = f"{error}; {exc}" if error else str(exc)
            config = RepositoryConfig.model_construct(repo_root=Path.cwd().resolve())

    load_result = ConfigLoadResult(
        path=resolved_path,
        file_loaded=file_loaded,
        env_overrides=env_overrides,
        error=error,
    )

    return config, load_result


__all__ = [
    "CONFIG_ENV_VAR",
    "ConfigLoadResult",
    "RepositoryConfig",
    "load_config",
]
