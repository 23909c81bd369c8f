from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

from .errors import LinearCliError, redact
from .logging import get_logger
from .retry import RetryConfig, run_with_retries

DEFAULT_GRAPHQL_URL = "https://api.linear.app/graphql"
USER_AGENT = "linearcli/0.1.0"
HTTP_ERROR_STATUS = 400


class LinearAPIError(LinearCliError):
    """Raised when talking to the Linear API fails."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


class TransportError(LinearAPIError):
    """Network failure or non-2xx HTTP status."""

    category = "transport"


class BackendError(LinearAPIError):
    """The API answered with a GraphQL ``errors`` list."""

    category = "backend"

    def __init__(self, message: str, *, errors: list[Any] | None = None, **kw: Any):
        super().__init__(message, **kw)
        self.errors = errors or []


class Backend(Protocol):
    """Anything that can run a GraphQL document and hand back ``data``."""

    def execute(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]: ...


@dataclass
class LinearGraphQLClient:
    """Minimal GraphQL client for the Linear API."""

    token: str
    url: str = DEFAULT_GRAPHQL_URL
    timeout: float = 30
    retry: RetryConfig | None = None
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:  # pragma: no cover - simple wiring
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", self.token)
        self._session.headers.setdefault("Content-Type", "application/json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    def _post(self, payload: dict[str, Any]) -> requests.Response:
        def _run() -> requests.Response:
            return self._session.request(
                "POST",
                self.url,
                json=payload,
                headers=self._session.headers,
                timeout=self.timeout,
            )

        try:
            return run_with_retries(_run, cfg=self.retry)
        except requests.RequestException as exc:
            raise TransportError(f"GraphQL request failed: {redact(str(exc))}") from exc

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run ``query`` and return its ``data`` member.

        Raises BackendError when the response carries ``errors`` (the first
        message is surfaced) and TransportError for network failures and
        non-2xx responses without a GraphQL error body.
        """
        logger = get_logger()
        payload = {"query": query, "variables": variables or {}}
        response = self._post(payload)
        logger.debug(
            f"graphql POST {self.url} -> {response.status_code}",
            operation="graphql_request",
        )

        body: Any = None
        if response.text:
            try:
                body = response.json()
            except (ValueError, json.JSONDecodeError):
                body = None

        if isinstance(body, dict) and body.get("errors"):
            errors = body["errors"]
            first = errors[0] if isinstance(errors, list) and errors else {}
            message = first.get("message") if isinstance(first, dict) else None
            raise BackendError(
                message or "GraphQL query failed",
                errors=errors if isinstance(errors, list) else [errors],
                status=response.status_code,
            )
        if response.status_code >= HTTP_ERROR_STATUS:
            raise TransportError(
                f"GraphQL request failed with HTTP {response.status_code}",
                status=response.status_code,
                response_text=response.text,
            )
        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            raise TransportError(
                "GraphQL response did not contain a data object",
                status=response.status_code,
                response_text=response.text,
            )
        data: dict[str, Any] = body["data"]
        return data


__all__ = [
    "Backend",
    "BackendError",
    "DEFAULT_GRAPHQL_URL",
    "LinearAPIError",
    "LinearGraphQLClient",
    "TransportError",
]
