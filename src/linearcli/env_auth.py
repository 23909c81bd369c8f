"""Environment-based authentication for linearcli.

The API token is looked up, highest priority first, in:

1. the ``--api-token`` command-line flag
2. the ``LINEAR_API_TOKEN`` environment variable (a ``.env`` file is loaded
   first when enabled), with ``LINEAR_API_KEY`` accepted as an alias
3. the ``~/.linear_api_token`` file
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import LinearCliError
from .logging import get_logger

TOKEN_FILE_NAME = '.linear_api_token'


class AuthError(LinearCliError):
    category = 'auth'


@dataclass
class EnvAuthConfig:
    """Configuration for token discovery."""

    load_dotenv: bool = True
    dotenv_path: str | None = None
    token_var: str = 'LINEAR_API_TOKEN'
    token_file: str | None = None


class TokenProvider:
    """Finds the Linear API token from flags, environment, .env files or disk."""

    def __init__(self, config: EnvAuthConfig | None = None):
        self.config = config or EnvAuthConfig()
        self.logger = get_logger()
        self._dotenv_loaded = False
        if self.config.load_dotenv:
            self._load_dotenv()

    def _load_dotenv(self) -> None:
        if self.config.dotenv_path:
            candidates = [self.config.dotenv_path]
        else:
            candidates = ['.env', '.env.local']
        for location in candidates:
            env_path = Path(location)
            if env_path.exists():
                # existing environment variables win over the file
                load_dotenv(str(env_path), override=False)
                self._dotenv_loaded = True
                self.logger.debug(f"Loaded environment variables from {env_path}")
                break

    @property
    def token_file(self) -> Path:
        if self.config.token_file:
            return Path(self.config.token_file).expanduser()
        return Path.home() / TOKEN_FILE_NAME

    def from_environment(self) -> str | None:
        for var in (self.config.token_var, 'LINEAR_API_KEY'):
            token = os.getenv(var)
            if token and token.strip():
                self.logger.debug(f"Found Linear API token in {var}")
                return token.strip()
        return None

    def from_file(self) -> str | None:
        path = self.token_file
        if not path.is_file():
            return None
        try:
            token = path.read_text(encoding='utf-8').strip()
        except OSError as exc:
            raise AuthError(f'Could not read token file {path}: {exc}') from exc
        if token:
            self.logger.debug(f"Found Linear API token in {path}")
            return token
        return None

    def get_token(self, explicit: str | None = None) -> str:
        if explicit:
            return explicit
        token = self.from_environment() or self.from_file()
        if token:
            return token
        raise AuthError(
            'No API token found. Use --api-token, LINEAR_API_TOKEN env var, '
            'or ~/.linear_api_token file'
        )


def get_api_token(explicit: str | None = None, config: EnvAuthConfig | None = None) -> str:
    """Convenience wrapper around :class:`TokenProvider`."""
    return TokenProvider(config).get_token(explicit)


__all__ = ['AuthError', 'EnvAuthConfig', 'TokenProvider', 'get_api_token']
