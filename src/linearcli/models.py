from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ResolutionCandidate:
    """One backend node that matched a human identifier.

    ``scope_context`` names the owner (team, project, label group) and
    ``disambiguation_hint`` carries whatever else tells two matches apart
    (cycle number and start date, milestone target date). ``flags`` holds
    the tie-break markers a resolver may prefer (``active``, ``next``,
    ``previous``).
    """

    id: str
    display_name: str
    scope_context: str | None = None
    disambiguation_hint: str | None = None
    flags: frozenset[str] = frozenset()
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def describe(self) -> str:
        parts = [f'"{self.display_name}"']
        if self.scope_context:
            parts.append(self.scope_context)
        if self.disambiguation_hint:
            parts.append(self.disambiguation_hint)
        return f"{self.id} ({' / '.join(parts)})"


@dataclass(frozen=True)
class ResolutionContext:
    """Optional scope supplied next to the token being resolved.

    Both values are themselves human tokens (key, name or UUID).
    """

    team: str | None = None
    project: str | None = None

    def scope_for(self, field_name: str | None) -> str | None:
        if field_name is None:
            return None
        value = getattr(self, field_name, None)
        return value or None


@dataclass
class CreateIssueArgs:
    title: str
    team: str | None = None
    description: str | None = None
    assignee: str | None = None
    priority: int | None = None
    project: str | None = None
    state: str | None = None
    labels: list[str] | None = None
    estimate: float | None = None
    parent: str | None = None
    milestone: str | None = None
    cycle: str | None = None


@dataclass
class UpdateIssueArgs:
    id: str
    title: str | None = None
    description: str | None = None
    state: str | None = None
    priority: int | None = None
    assignee: str | None = None
    project: str | None = None
    labels: list[str] | None = None
    estimate: float | None = None
    parent: str | None = None
    clear_parent: bool = False
    milestone: str | None = None
    cycle: str | None = None


__all__ = [
    "CreateIssueArgs",
    "ResolutionCandidate",
    "ResolutionContext",
    "UpdateIssueArgs",
]
