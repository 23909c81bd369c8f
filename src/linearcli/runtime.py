"""Runtime helpers for linearcli command orchestration."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any, Protocol

from .concurrency import ConcurrencyConfig
from .config import CliConfig, load_config
from .env_auth import EnvAuthConfig, TokenProvider
from .errors import LinearCliError
from .graphql_client import LinearGraphQLClient
from .logging import configure_logging, get_logger
from .output import output_error, output_success
from .retry import RetryConfig
from .services import LinearService


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


def prepare_config(
    args: Any, *, loader: Callable[..., CliConfig] = load_config
) -> CliConfig:
    """Load CliConfig for the given argparse namespace and configure logging.

    An explicit ``--config`` must exist; the default path is optional.
    """
    explicit = getattr(args, "config", None)
    cfg = loader(explicit, required=explicit is not None)
    if getattr(args, "log_level", None):
        cfg.logging_level = args.log_level
    if getattr(args, "json_logs", False):
        cfg.logging_json_enabled = True
    if not getattr(args, "quiet", False) and os.environ.get("LINEARCLI_QUIET") == "1":
        args.quiet = True
    configure_logging(
        json_logging=cfg.logging_json_enabled,
        level="ERROR" if getattr(args, "quiet", False) else cfg.logging_level,
    )
    return cfg


def resolve_token(args: Any, cfg: CliConfig) -> str:
    provider = TokenProvider(
        EnvAuthConfig(
            load_dotenv=cfg.env_load_dotenv,
            dotenv_path=cfg.env_dotenv_path,
            token_file=cfg.token_file,
        )
    )
    return provider.get_token(getattr(args, "api_token", None))


def build_client(token: str, cfg: CliConfig) -> LinearGraphQLClient:
    return LinearGraphQLClient(
        token=token,
        url=cfg.api_url,
        timeout=cfg.api_timeout,
        retry=RetryConfig(attempts=cfg.retry_attempts, base_sleep=cfg.retry_base_sleep),
    )


def build_service(args: Any, cfg: CliConfig) -> LinearService:
    client = build_client(resolve_token(args, cfg), cfg)
    return LinearService(
        client,
        ConcurrencyConfig(
            enabled=cfg.concurrency_enabled, max_workers=cfg.concurrency_max_workers
        ),
    )


def execute_command(
    handler: _HandlerCallable, args: Any, cfg: CliConfig | None, command: str
) -> int:
    """Run a command handler, print its result and map errors to exit code 1.

    Handlers return JSON-serialisable data (printed to stdout) or ``None``.
    Errors raised on purpose are rendered to stderr as ``{"error", "category"}``.
    """
    try:
        with get_logger().timed_operation(f"command:{command}"):
            result = handler()
    except LinearCliError as exc:
        output_error(exc)
        return 1
    if result is not None:
        output_success(result)
    return 0


__all__ = [
    "build_client",
    "build_service",
    "execute_command",
    "prepare_config",
    "resolve_token",
]
