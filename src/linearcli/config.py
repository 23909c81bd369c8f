from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml

from .errors import LinearCliError

DEFAULT_CONFIG_PATH = 'linear.config.yaml'
DEFAULT_API_URL = 'https://api.linear.app/graphql'


class ConfigError(LinearCliError):
    category = 'config'


@dataclass
class CliConfig:
    source_file: Path | None
    # API configuration
    api_url: str
    api_timeout: float
    token_file: str | None
    # Logging configuration
    logging_json_enabled: bool
    logging_level: str
    # Concurrency configuration
    concurrency_enabled: bool
    concurrency_max_workers: int
    # Transport retry configuration
    retry_attempts: int
    retry_base_sleep: float
    # Environment authentication configuration
    env_load_dotenv: bool
    env_dotenv_path: str | None


def _resolve_env_var(value: Any, env_var_name: str | None = None) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        env_name = env_var_name or value[1:]
        return os.getenv(env_name, value)
    return value


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {}) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Configuration section '{name}' must be a mapping")
    return cast(dict[str, Any], section)


def _from_mapping(raw: dict[str, Any], source: Path | None) -> CliConfig:
    api = _section(raw, 'api')
    logging_config = _section(raw, 'logging')
    concurrency_config = _section(raw, 'concurrency')
    retry_config = _section(raw, 'retry')
    env = _section(raw, 'environment')

    try:
        return CliConfig(
            source_file=source,
            api_url=_resolve_env_var(api.get('url', DEFAULT_API_URL)),
            api_timeout=float(api.get('timeout', 30)),
            token_file=_resolve_env_var(api.get('token_file')),
            logging_json_enabled=bool(logging_config.get('json_enabled', False)),
            logging_level=str(logging_config.get('level', 'WARNING')),
            concurrency_enabled=bool(concurrency_config.get('enabled', True)),
            concurrency_max_workers=int(concurrency_config.get('max_workers', 4)),
            retry_attempts=int(retry_config.get('attempts', 3)),
            retry_base_sleep=float(retry_config.get('base_sleep', 0.5)),
            env_load_dotenv=bool(env.get('load_dotenv', True)),
            env_dotenv_path=_resolve_env_var(env.get('dotenv_path')),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'Invalid configuration value: {exc}') from exc


def default_config() -> CliConfig:
    return _from_mapping({}, None)


def load_config(path: str | Path | None = None, *, required: bool = False) -> CliConfig:
    """Load ``linear.config.yaml`` (or ``path``) into a :class:`CliConfig`.

    A missing file is only an error when the caller asked for it explicitly
    (``required=True``); otherwise the built-in defaults apply.
    """
    p = Path(path) if path is not None else Path(DEFAULT_CONFIG_PATH)
    if not p.exists():
        if required:
            raise ConfigError(f'Configuration file not found: {p}')
        return default_config()
    try:
        raw = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f'Could not parse {p}: {exc}') from exc
    if not isinstance(raw, dict):
        raise ConfigError(f'Configuration root in {p} must be a mapping')
    return _from_mapping(cast(dict[str, Any], raw), p)


__all__ = [
    'CliConfig',
    'ConfigError',
    'DEFAULT_API_URL',
    'DEFAULT_CONFIG_PATH',
    'default_config',
    'load_config',
]
