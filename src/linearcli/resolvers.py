"""Per-entity resolvers built on :class:`linearcli.resolution.Resolver`.

Policies:

- Team: key equality, then name equality when no key matched.
- State: case-insensitive name, limited to the context team when given.
- Project: exact name; the first match wins.
- Cycle: exact name inside the context team, then workspace-wide; active
  beats next beats previous.
- Milestone: exact name inside the context project, then workspace-wide.
- Label: exact leaf name, ``Group/Label`` to pick a child of a group.
- Issue: ``TEAM-123`` looked up by team key and number.
- User: email when the token contains ``@``, otherwise name or display name.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from . import queries
from .errors import MalformedIdentifierError
from .graphql_client import Backend
from .identifiers import is_canonical, parse_issue_identifier
from .logging import get_logger
from .models import ResolutionCandidate, ResolutionContext
from .resolution import (
    Resolver,
    chain_queries,
    disambiguate,
    first_wins,
    prefer_flags,
    single_only,
)

Node = Mapping[str, Any]

CYCLE_TIE_BREAK = prefer_flags("active", "next", "previous")

LABEL_GROUP_FORMAT = 'Expected format: "GroupName/LabelName"'

LABEL_SUGGESTION = 'use "GroupName/LabelName" or the label ID'


def nodes_of(data: Mapping[str, Any] | None, root: str) -> list[Node]:
    connection = (data or {}).get(root) or {}
    return list(connection.get("nodes") or [])


# ---- candidate builders ----------------------------------------------------


def team_candidate(node: Node) -> ResolutionCandidate:
    return ResolutionCandidate(
        id=node["id"], display_name=node.get("name") or node["id"],
        scope_context=node.get("key"), raw=node,
    )


def state_candidate(node: Node) -> ResolutionCandidate:
    team = node.get("team") or {}
    return ResolutionCandidate(
        id=node["id"],
        display_name=node.get("name") or node["id"],
        scope_context=f"team {team.get('key') or team.get('name') or '?'}",
        disambiguation_hint=node.get("type"),
        raw=node,
    )


def project_candidate(node: Node) -> ResolutionCandidate:
    return ResolutionCandidate(id=node["id"], display_name=node.get("name") or node["id"], raw=node)


def cycle_candidate(node: Node) -> ResolutionCandidate:
    team = node.get("team") or {}
    flags = {
        flag
        for flag, key in (("active", "isActive"), ("next", "isNext"), ("previous", "isPrevious"))
        if node.get(key)
    }
    number = node.get("number")
    return ResolutionCandidate(
        id=node["id"],
        display_name=node.get("name") or f"Cycle {number}",
        scope_context=team.get("key") or "?",
        disambiguation_hint=f"#{number} starts {node.get('startsAt') or 'unscheduled'}",
        flags=frozenset(flags),
        raw=node,
    )


def milestone_candidate(node: Node) -> ResolutionCandidate:
    project = node.get("project") or {}
    target = node.get("targetDate")
    return ResolutionCandidate(
        id=node["id"],
        display_name=node.get("name") or node["id"],
        scope_context=f'project "{project.get("name") or "?"}"',
        disambiguation_hint=f"target {target}" if target else "no target date",
        raw=node,
    )


def label_candidate(node: Node) -> ResolutionCandidate:
    parent = node.get("parent") or {}
    team = node.get("team") or {}
    return ResolutionCandidate(
        id=node["id"],
        display_name=node.get("name") or node["id"],
        scope_context=f'group "{parent["name"]}"' if parent.get("name") else None,
        disambiguation_hint=f"team {team['key']}" if team.get("key") else "workspace",
        raw=node,
    )


def issue_candidate(node: Node) -> ResolutionCandidate:
    return ResolutionCandidate(
        id=node["id"],
        display_name=node.get("identifier") or node["id"],
        disambiguation_hint=node.get("title"),
        raw=node,
    )


def user_candidate(node: Node) -> ResolutionCandidate:
    return ResolutionCandidate(
        id=node["id"],
        display_name=node.get("name") or node.get("displayName") or node["id"],
        scope_context=node.get("email"),
        raw=node,
    )


# ---- filters ---------------------------------------------------------------


def team_filter(token: str) -> dict[str, Any]:
    """Match a team given as id, key or name."""
    if is_canonical(token):
        return {"id": {"eq": token}}
    return {"or": [{"key": {"eq": token}}, {"name": {"eq": token}}]}


def project_filter(token: str) -> dict[str, Any]:
    if is_canonical(token):
        return {"id": {"eq": token}}
    return {"name": {"eq": token}}


def issue_filter(token: str) -> dict[str, Any]:
    identifier = parse_issue_identifier(token)
    return {
        "team": {"key": {"eq": identifier.scope_code}},
        "number": {"eq": identifier.sequence_number},
    }


def user_filter(token: str) -> dict[str, Any]:
    if "@" in token:
        return {"email": {"eq": token}}
    return {"or": [{"name": {"eqIgnoreCase": token}}, {"displayName": {"eqIgnoreCase": token}}]}


# ---- labels ----------------------------------------------------------------


@dataclass(frozen=True)
class LabelMatch:
    id: str
    name: str
    group: str | None = None


def split_label_token(token: str) -> tuple[str | None, str]:
    """Split ``Group/Label`` into its parts; plain names have no group."""
    if "/" not in token:
        return None, token
    group, leaf = token.split("/", 1)
    if not group or not leaf:
        raise MalformedIdentifierError(token, LABEL_GROUP_FORMAT, kind="label")
    return group, leaf


def _label_belongs_to(node: Node, team: str) -> bool:
    owner = node.get("team")
    if not owner:
        return True
    return team in (owner.get("id"), owner.get("key"), owner.get("name"))


def match_labels(
    token: str, nodes: Iterable[Node], team: str | None = None
) -> list[ResolutionCandidate]:
    """Leaf labels in ``nodes`` answering to ``token``.

    Group labels never match. With a team, labels owned by other teams are
    dropped unless that would leave nothing.
    """
    group, leaf = split_label_token(token)
    found = []
    for node in nodes:
        if node.get("isGroup") or node.get("name") != leaf:
            continue
        if group is not None and (node.get("parent") or {}).get("name") != group:
            continue
        found.append(node)
    if team and len(found) > 1:
        narrowed = [node for node in found if _label_belongs_to(node, team)]
        if narrowed:
            found = narrowed
    return [label_candidate(node) for node in found]


def label_lookup_names(tokens: Iterable[str]) -> list[str]:
    """Leaf names to request for the non-canonical ``tokens``."""
    names: list[str] = []
    for token in tokens:
        if is_canonical(token):
            continue
        _, leaf = split_label_token(token)
        if leaf not in names:
            names.append(leaf)
    return names


def to_label_match(candidate: ResolutionCandidate) -> LabelMatch:
    parent = candidate.raw.get("parent") or {}
    return LabelMatch(id=candidate.id, name=candidate.display_name, group=parent.get("name"))


class LabelResolver:
    """Resolves label names, one request for a whole list."""

    entity_kind = "Label"
    suggestion = LABEL_SUGGESTION

    def __init__(self, backend: Backend):
        self.backend = backend

    def _fetch(self, names: Sequence[str]) -> list[Node]:
        data = self.backend.execute(
            queries.FIND_LABELS_QUERY, {"filter": {"name": {"in": list(names)}}}
        )
        return nodes_of(data, "issueLabels")

    def pick(self, token: str, nodes: Iterable[Node], team: str | None = None) -> LabelMatch:
        candidates = match_labels(token, nodes, team)
        chosen = disambiguate(
            self.entity_kind, token, candidates, single_only, suggestion=self.suggestion
        )
        return to_label_match(chosen)

    def resolve_matches(
        self, tokens: Sequence[str], context: ResolutionContext | None = None
    ) -> list[LabelMatch]:
        names = label_lookup_names(tokens)
        nodes = self._fetch(names) if names else []
        team = context.team if context else None
        matches = [
            LabelMatch(id=token, name=token) if is_canonical(token) else self.pick(token, nodes, team)
            for token in tokens
        ]
        get_logger().log_resolution(
            self.entity_kind, ",".join(tokens), "resolved", 1 if names else 0
        )
        return matches

    def resolve_many(
        self, tokens: Sequence[str], context: ResolutionContext | None = None
    ) -> list[str]:
        return [match.id for match in self.resolve_matches(tokens, context)]

    def resolve(self, token: str, context: ResolutionContext | None = None) -> str:
        return self.resolve_many([token], context)[0]


# ---- facade ----------------------------------------------------------------


class EntityResolvers:
    """One resolver per entity kind, all sharing a backend."""

    def __init__(self, backend: Backend):
        self.backend = backend
        self.team = Resolver(
            entity_kind="Team",
            global_query=chain_queries(
                self._finder(queries.FIND_TEAMS_QUERY, "teams", team_candidate,
                             lambda token: {"key": {"eq": token}}),
                self._finder(queries.FIND_TEAMS_QUERY, "teams", team_candidate,
                             lambda token: {"name": {"eq": token}}),
            ),
            suggestion="use the team key or ID",
        )
        self.state = Resolver(
            entity_kind="State",
            global_query=self._finder(
                queries.FIND_STATES_QUERY, "workflowStates", state_candidate,
                lambda token: {"name": {"eqIgnoreCase": token}},
            ),
            scoped_query=self._scoped_finder(
                queries.FIND_STATES_QUERY, "workflowStates", state_candidate,
                lambda token, team: {"name": {"eqIgnoreCase": token}, "team": team_filter(team)},
            ),
            suggestion="specify --team or use the state ID",
            fallback_to_global=False,
            scope_field="team",
        )
        self.project = Resolver(
            entity_kind="Project",
            global_query=self._finder(
                queries.FIND_PROJECTS_QUERY, "projects", project_candidate,
                lambda token: {"name": {"eq": token}},
            ),
            tie_break=first_wins,
        )
        self.cycle = Resolver(
            entity_kind="Cycle",
            global_query=self._finder(
                queries.FIND_CYCLES_QUERY, "cycles", cycle_candidate,
                lambda token: {"name": {"eq": token}},
            ),
            scoped_query=self._scoped_finder(
                queries.FIND_CYCLES_QUERY, "cycles", cycle_candidate,
                lambda token, team: {"name": {"eq": token}, "team": team_filter(team)},
            ),
            tie_break=CYCLE_TIE_BREAK,
            suggestion="use an ID or scope with --team",
            scope_field="team",
        )
        self.milestone = Resolver(
            entity_kind="Milestone",
            global_query=self._finder(
                queries.FIND_MILESTONES_QUERY, "projectMilestones", milestone_candidate,
                lambda token: {"name": {"eq": token}},
            ),
            scoped_query=self._scoped_finder(
                queries.FIND_MILESTONES_QUERY, "projectMilestones", milestone_candidate,
                lambda token, project: {"name": {"eq": token}, "project": project_filter(project)},
            ),
            suggestion="specify --project or use the milestone ID",
            scope_field="project",
        )
        self.issue = Resolver(
            entity_kind="Issue",
            global_query=self._finder(
                queries.FIND_ISSUES_QUERY, "issues", issue_candidate, issue_filter
            ),
        )
        self.user = Resolver(
            entity_kind="User",
            global_query=self._finder(
                queries.FIND_USERS_QUERY, "users", user_candidate, user_filter
            ),
            suggestion="use the user's email or ID",
        )
        self.label = LabelResolver(backend)

    def _finder(
        self,
        query: str,
        root: str,
        build: Callable[[Node], ResolutionCandidate],
        make_filter: Callable[[str], dict[str, Any]],
    ) -> Callable[[str], list[ResolutionCandidate]]:
        def find(token: str) -> list[ResolutionCandidate]:
            # the filter is built first so malformed tokens fail before any request
            variables = {"filter": make_filter(token)}
            return [build(node) for node in nodes_of(self.backend.execute(query, variables), root)]

        return find

    def _scoped_finder(
        self,
        query: str,
        root: str,
        build: Callable[[Node], ResolutionCandidate],
        make_filter: Callable[[str, str], dict[str, Any]],
    ) -> Callable[[str, str], list[ResolutionCandidate]]:
        def find(token: str, scope: str) -> list[ResolutionCandidate]:
            variables = {"filter": make_filter(token, scope)}
            return [build(node) for node in nodes_of(self.backend.execute(query, variables), root)]

        return find


__all__ = [
    "CYCLE_TIE_BREAK",
    "EntityResolvers",
    "LABEL_GROUP_FORMAT",
    "LABEL_SUGGESTION",
    "LabelMatch",
    "LabelResolver",
    "cycle_candidate",
    "issue_candidate",
    "label_candidate",
    "label_lookup_names",
    "match_labels",
    "milestone_candidate",
    "nodes_of",
    "project_candidate",
    "project_filter",
    "split_label_token",
    "state_candidate",
    "team_candidate",
    "team_filter",
    "user_candidate",
    "user_filter",
]
