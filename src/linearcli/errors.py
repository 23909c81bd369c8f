"""Error taxonomy & redaction for linearcli.

Every failure the CLI can surface derives from :class:`LinearCliError`. The
resolution layer raises three kinds of its own:

- :class:`MalformedIdentifierError`: the token has the wrong shape; detected
  locally before any request is sent.
- :class:`NotFoundError`: the backend returned zero candidates.
- :class:`AmbiguousMatchError`: more than one candidate survived tie-breaking.

Transport and backend failures (``TransportError`` / ``BackendError``) live
next to the GraphQL client and pass through resolution untouched.

Public helpers:
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import ResolutionCandidate

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"lin_api_[A-Za-z0-9]{16,}"),  # Linear personal API keys
    re.compile(r"lin_oauth_[A-Za-z0-9]{16,}"),  # Linear OAuth access tokens
    re.compile(r"(?i)bearer\s+[A-Za-z0-9._\-]{16,}"),
]

_REDACTION_PLACEHOLDER = "<redacted>"


class LinearCliError(RuntimeError):
    """Base class for every error linearcli raises on purpose."""

    category = "generic"


class MalformedIdentifierError(LinearCliError, ValueError):
    """Raised when an identifier does not have the ``TEAM-123`` shape."""

    category = "input"

    def __init__(
        self, token: str, reason: str | None = None, *, kind: str = "issue identifier"
    ) -> None:
        self.token = token
        self.kind = kind
        self.reason = reason or "Expected format: TEAM-123"
        super().__init__(f'Invalid {kind} format: "{token}". {self.reason}')


class ResolutionError(LinearCliError):
    """A human identifier could not be turned into exactly one id."""

    def __init__(self, message: str, *, entity_kind: str, token: str) -> None:
        super().__init__(message)
        self.entity_kind = entity_kind
        self.token = token


class NotFoundError(ResolutionError):
    category = "not_found"

    def __init__(self, entity_kind: str, token: str, context: str | None = None) -> None:
        context_str = f" {context}" if context else ""
        super().__init__(
            f'{entity_kind} "{token}"{context_str} not found',
            entity_kind=entity_kind,
            token=token,
        )
        self.context = context


class AmbiguousMatchError(ResolutionError):
    category = "ambiguous"

    def __init__(
        self,
        entity_kind: str,
        token: str,
        candidates: Sequence[ResolutionCandidate],
        suggestion: str,
    ) -> None:
        matches = "; ".join(candidate.describe() for candidate in candidates)
        super().__init__(
            f'Multiple {entity_kind.lower()}s found matching "{token}". '
            f"Candidates: {matches}. "
            f"Please {suggestion}.",
            entity_kind=entity_kind,
            token=token,
        )
        self.candidates = list(candidates)
        self.suggestion = suggestion


class UsageError(LinearCliError):
    """Invalid combination of command-line options."""

    category = "usage"


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Redact API keys and bearer tokens in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    Errors raised by linearcli carry their own ``category``. Anything else
    falls back to keyword heuristics:
    - rate limit wording -> 'rate_limit', transient
    - network-y keywords -> 'network', transient
    - fallback -> 'generic'
    """
    msg = str(exc) if exc else ""
    name = exc.__class__.__name__
    if isinstance(exc, LinearCliError):
        details: dict[str, Any] | None = None
        if isinstance(exc, ResolutionError):
            details = {"entity_kind": exc.entity_kind, "token": exc.token}
        if isinstance(exc, AmbiguousMatchError):
            details = dict(details or {})
            details["candidates"] = [c.id for c in exc.candidates]
        return ErrorInfo(
            exc.category,
            redact(msg),
            name,
            transient=exc.category == "transport",
            details=details,
        )

    low = msg.lower()
    if "rate limit" in low or "ratelimited" in low:
        return ErrorInfo("rate_limit", redact(msg), name, transient=True)
    if any(k in low for k in ("timeout", "timed out", "connection reset", "temporarily unavailable")):
        return ErrorInfo("network", redact(msg), name, transient=True)
    return ErrorInfo("generic", redact(msg), name)


__all__ = [
    "AmbiguousMatchError",
    "ErrorInfo",
    "LinearCliError",
    "MalformedIdentifierError",
    "NotFoundError",
    "ResolutionError",
    "UsageError",
    "classify_error",
    "redact",
]
