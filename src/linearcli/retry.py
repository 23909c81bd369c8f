"""Centralized retry / backoff helpers for the HTTP transport.

Provides ``run_with_retries`` which wraps a single HTTP call with
exponential backoff and jitter. Only the transport uses it: identifier
resolution never retries, since a not-found or ambiguous answer is final
for that input.

Retried conditions:
  * ``requests.ConnectionError`` / ``requests.Timeout``
  * HTTP 429, 502, 503, 504 responses (``Retry-After`` honoured)

Environment overrides:
  LINEARCLI_RETRY_ATTEMPTS (default 3)
  LINEARCLI_RETRY_BASE (seconds base, default 0.5)
  LINEARCLI_RETRY_MAX_SLEEP (cap on any single sleep)
"""

from __future__ import annotations

import os
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import requests

from .logging import get_logger

TRANSIENT_STATUS = frozenset({429, 502, 503, 504})

_JITTER = random.SystemRandom()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: _env_int("LINEARCLI_RETRY_ATTEMPTS", 3))
    base_sleep: float = field(default_factory=lambda: _env_float("LINEARCLI_RETRY_BASE", 0.5))


def _extract_explicit_backoff(response: requests.Response | None) -> float | None:
    """Read a positive ``Retry-After`` (seconds) header, if any."""
    if response is None:
        return None
    value = response.headers.get("Retry-After") if response.headers else None
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds > 0 else None


def is_transient(response: requests.Response) -> bool:
    return response.status_code in TRANSIENT_STATUS


def _compute_sleep(attempt: int, cfg: RetryConfig, response: requests.Response | None) -> float:
    explicit = _extract_explicit_backoff(response)
    backoff = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    sleep_for: float = explicit if explicit is not None else backoff
    max_cap_env = os.environ.get("LINEARCLI_RETRY_MAX_SLEEP")
    if max_cap_env:
        try:
            cap = float(max_cap_env)
            if cap >= 0:
                sleep_for = min(sleep_for, cap)
        except ValueError:
            return sleep_for
    return sleep_for


def _pause(attempt: int, attempts: int, cfg: RetryConfig, reason: str,
           response: requests.Response | None = None) -> None:
    sleep_for = _compute_sleep(attempt, cfg, response)
    get_logger().warning(
        f"[retry] {reason}, attempt {attempt}/{attempts}, sleeping {sleep_for:.2f}s",
        operation="retry",
    )
    time.sleep(sleep_for)


def run_with_retries(
    fn: Callable[[], requests.Response], *, cfg: RetryConfig | None = None
) -> requests.Response:
    """Call ``fn`` until it returns a non-transient response or attempts run out.

    The final transient response is returned as-is so the caller can turn
    it into a proper error; the final network exception is re-raised.
    """
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    for attempt in range(1, attempts + 1):
        try:
            response = fn()
        except (requests.ConnectionError, requests.Timeout) as exc:
            if attempt >= attempts:
                raise
            _pause(attempt, attempts, cfg, f"network error ({exc.__class__.__name__})")
            continue
        if is_transient(response) and attempt < attempts:
            _pause(attempt, attempts, cfg, f"HTTP {response.status_code}", response)
            continue
        return response
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = ["RetryConfig", "TRANSIENT_STATUS", "is_transient", "run_with_retries"]
