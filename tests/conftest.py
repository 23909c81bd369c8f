"""Pytest configuration for linearcli tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`).
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from linearcli.logging import configure_logging  # noqa: E402

Responder = Callable[[str, dict[str, Any]], Any]


class FakeBackend:
    """In-memory stand-in for LinearGraphQLClient.

    Answers from a queue of canned ``data`` dicts, or from ``responder`` when
    one is given (used when calls may arrive in any order). Queued
    exceptions are raised. Every call is recorded in ``calls``.
    """

    def __init__(self, *responses: Any, responder: Responder | None = None):
        self.responses = list(responses)
        self.responder = responder
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        variables = dict(variables or {})
        self.calls.append((query, variables))
        if self.responder is not None:
            response = self.responder(query, variables)
        elif self.responses:
            response = self.responses.pop(0)
        else:
            raise AssertionError(f"No response queued for query: {query[:60]!r}")
        if isinstance(response, Exception):
            raise response
        return dict(response)

    @property
    def queries(self) -> list[str]:
        return [query for query, _ in self.calls]


def connection(*nodes: dict[str, Any]) -> dict[str, Any]:
    return {"nodes": list(nodes)}


@pytest.fixture
def fake_backend() -> type[FakeBackend]:
    return FakeBackend


@pytest.fixture(autouse=True)
def _reset_logging():
    configure_logging(json_logging=False, level="WARNING")
    yield
    configure_logging(json_logging=False, level="WARNING")


@pytest.fixture
def clean_token_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    # setenv first so teardown restores the original state even if a .env load adds them
    for var in ("LINEAR_API_TOKEN", "LINEAR_API_KEY"):
        monkeypatch.setenv(var, "placeholder")
        monkeypatch.delenv(var)
    return monkeypatch
