"""Batch resolution of the references a create/update/search needs.

:class:`BatchPlanner` folds every lookup that does not depend on another
lookup's answer into ONE GraphQL document made of aliased sub-selections,
sends it once, then reads each sub-result on its own. Canonical ids never
appear in the document; a request whose references are all canonical
sends nothing at all.

Each field ends up either resolved (``BatchResolution.ids``) or failed
(``BatchResolution.errors``). Callers decide which fields are required via
:meth:`BatchResolution.require`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from . import queries
from .errors import LinearCliError, NotFoundError, ResolutionError
from .graphql_client import Backend
from .identifiers import is_canonical
from .logging import get_logger
from .models import ResolutionCandidate
from .resolution import TieBreak, disambiguate, first_wins, single_only
from .resolvers import (
    LABEL_SUGGESTION,
    LabelMatch,
    Node,
    issue_candidate,
    issue_filter,
    label_lookup_names,
    match_labels,
    milestone_candidate,
    nodes_of,
    project_candidate,
    team_candidate,
    to_label_match,
    user_candidate,
    user_filter,
)

ISSUE_DETAIL_FIELDS = (
    f"id identifier title team {{ {queries.TEAM_FIELDS} }} labels {{ nodes {{ id name }} }}"
)


@dataclass
class BatchRequest:
    """References to resolve together; ``None`` means "not supplied"."""

    team: str | None = None
    project: str | None = None
    labels: Sequence[str] | None = None
    parent: str | None = None
    milestone: str | None = None
    issue: str | None = None
    assignee: str | None = None
    issue_details: bool = False

    def supplied(self) -> list[str]:
        names = ("team", "project", "labels", "parent", "milestone", "issue", "assignee")
        return [name for name in names if getattr(self, name)]


@dataclass
class BatchResolution:
    ids: dict[str, str] = field(default_factory=dict)
    errors: dict[str, LinearCliError] = field(default_factory=dict)
    labels: list[LabelMatch] | None = None
    issue_node: dict[str, Any] | None = None
    round_trips: int = 0

    @property
    def label_ids(self) -> list[str] | None:
        if self.labels is None:
            return None
        return [match.id for match in self.labels]

    def get(self, field_name: str) -> str | None:
        return self.ids.get(field_name)

    def require(self, *field_names: str) -> None:
        """Raise the first recorded error among ``field_names``."""
        for name in field_names:
            error = self.errors.get(name)
            if error is not None:
                raise error

    @property
    def issue_team_id(self) -> str | None:
        team = (self.issue_node or {}).get("team") or {}
        return team.get("id")

    @property
    def current_label_ids(self) -> list[str]:
        return [label["id"] for label in nodes_of(self.issue_node, "labels")]


@dataclass
class _Selection:
    text: str
    variables: dict[str, tuple[str, Any]]


class BatchPlanner:
    """Builds, sends and interprets the combined resolution query."""

    def __init__(self, backend: Backend):
        self.backend = backend
        self.logger = get_logger()

    # ---- building ------------------------------------------------------
    def selections(self, request: BatchRequest) -> list[_Selection]:
        """Sub-selections for every non-canonical reference in ``request``.

        Malformed issue identifiers raise here, before anything is sent.
        """
        out: list[_Selection] = []
        milestone_filter = (
            {"name": {"eq": request.milestone}}
            if request.milestone and not is_canonical(request.milestone)
            else None
        )
        nested_milestones = (
            f"projectMilestones(filter: $milestoneFilter) {{ nodes {{ {queries.MILESTONE_FIELDS} }} }}"
            if milestone_filter is not None
            else ""
        )
        milestone_var = (
            {"milestoneFilter": ("ProjectMilestoneFilter", milestone_filter)}
            if milestone_filter is not None
            else {}
        )

        if request.team and not is_canonical(request.team):
            out.append(_Selection(
                f"teamsByKey: teams(filter: $teamKeyFilter, first: 10) {{ nodes {{ {queries.TEAM_FIELDS} }} }}\n"
                f"teamsByName: teams(filter: $teamNameFilter, first: 10) {{ nodes {{ {queries.TEAM_FIELDS} }} }}",
                {
                    "teamKeyFilter": ("TeamFilter", {"key": {"eq": request.team}}),
                    "teamNameFilter": ("TeamFilter", {"name": {"eq": request.team}}),
                },
            ))

        if request.project and not is_canonical(request.project):
            out.append(_Selection(
                f"projects(filter: $projectFilter, first: 10) {{ nodes {{ {queries.PROJECT_FIELDS} {nested_milestones} }} }}",
                {"projectFilter": ("ProjectFilter", {"name": {"eq": request.project}}), **milestone_var},
            ))
        elif request.project and milestone_filter is not None:
            out.append(_Selection(
                f"milestoneProject: project(id: $milestoneProjectId) {{ {queries.PROJECT_FIELDS} {nested_milestones} }}",
                {"milestoneProjectId": ("String!", request.project), **milestone_var},
            ))

        if milestone_filter is not None:
            out.append(_Selection(
                f"milestones: projectMilestones(filter: $milestoneFilter, first: 10) {{ nodes {{ {queries.MILESTONE_FIELDS} }} }}",
                milestone_var,
            ))

        if request.labels:
            names = label_lookup_names(request.labels)
            if names:
                out.append(_Selection(
                    f"labels: issueLabels(filter: $labelFilter, first: 100) {{ nodes {{ {queries.LABEL_FIELDS} }} }}",
                    {"labelFilter": ("IssueLabelFilter", {"name": {"in": names}})},
                ))

        if request.parent and not is_canonical(request.parent):
            out.append(_Selection(
                f"parentIssues: issues(filter: $parentFilter, first: 10) {{ nodes {{ id identifier title team {{ {queries.TEAM_FIELDS} }} }} }}",
                {"parentFilter": ("IssueFilter", issue_filter(request.parent))},
            ))

        if request.issue and not is_canonical(request.issue):
            out.append(_Selection(
                f"targetIssue: issues(filter: $issueFilter, first: 10) {{ nodes {{ {ISSUE_DETAIL_FIELDS} }} }}",
                {"issueFilter": ("IssueFilter", issue_filter(request.issue))},
            ))
        elif request.issue and request.issue_details:
            out.append(_Selection(
                f"targetIssueById: issue(id: $issueId) {{ {ISSUE_DETAIL_FIELDS} }}",
                {"issueId": ("String!", request.issue)},
            ))

        if request.assignee and not is_canonical(request.assignee):
            out.append(_Selection(
                f"users(filter: $userFilter, first: 10) {{ nodes {{ {queries.USER_FIELDS} }} }}",
                {"userFilter": ("UserFilter", user_filter(request.assignee))},
            ))
        return out

    def build(self, request: BatchRequest) -> tuple[str, dict[str, Any]] | None:
        """Return ``(document, variables)`` or ``None`` when nothing needs a lookup."""
        parts = self.selections(request)
        if not parts:
            return None
        declared: dict[str, tuple[str, Any]] = {}
        for part in parts:
            declared.update(part.variables)
        signature = ", ".join(f"${name}: {kind}" for name, (kind, _) in declared.items())
        body = "\n".join(part.text for part in parts)
        document = f"query BatchResolve({signature}) {{\n{body}\n}}"
        return document, {name: value for name, (_, value) in declared.items()}

    # ---- interpreting --------------------------------------------------
    def plan(self, request: BatchRequest) -> BatchResolution:
        built = self.build(request)
        result = BatchResolution()
        data: dict[str, Any] = {}
        if built is not None:
            document, variables = built
            data = self.backend.execute(document, variables)
            result.round_trips = 1

        self._resolve_issue(request, data, result)
        team_id = self._resolve_team(request, data, result)
        project_node = self._resolve_project(request, data, result)
        self._resolve_milestone(request, data, result, project_node)
        self._resolve_labels(request, data, result, team_id or result.issue_team_id or request.team)
        self._resolve_simple(
            result, "parent", "Parent issue", request.parent,
            [issue_candidate(n) for n in nodes_of(data, "parentIssues")],
        )
        self._resolve_simple(
            result, "assignee", "User", request.assignee,
            [user_candidate(n) for n in nodes_of(data, "users")],
            suggestion="use the user's email or ID",
        )
        for name in request.supplied():
            outcome = "failed" if name in result.errors else "resolved"
            value = getattr(request, name)
            token = ",".join(value) if name == "labels" else str(value)
            self.logger.log_resolution(name, token, outcome, result.round_trips)
        return result

    def _settle(
        self,
        result: BatchResolution,
        field_name: str,
        entity_kind: str,
        token: str,
        candidates: list[ResolutionCandidate],
        tie_break: TieBreak = single_only,
        suggestion: str = "use the ID instead",
    ) -> ResolutionCandidate | None:
        try:
            chosen = disambiguate(entity_kind, token, candidates, tie_break, suggestion=suggestion)
        except ResolutionError as exc:
            result.errors[field_name] = exc
            return None
        result.ids[field_name] = chosen.id
        return chosen

    def _resolve_simple(
        self,
        result: BatchResolution,
        field_name: str,
        entity_kind: str,
        token: str | None,
        candidates: list[ResolutionCandidate],
        suggestion: str = "use the ID instead",
    ) -> None:
        if not token:
            return
        if is_canonical(token):
            result.ids[field_name] = token
            return
        self._settle(result, field_name, entity_kind, token, candidates, suggestion=suggestion)

    def _resolve_team(
        self, request: BatchRequest, data: dict[str, Any], result: BatchResolution
    ) -> str | None:
        if not request.team:
            return None
        if is_canonical(request.team):
            result.ids["team"] = request.team
            return request.team
        nodes = nodes_of(data, "teamsByKey") or nodes_of(data, "teamsByName")
        chosen = self._settle(
            result, "team", "Team", request.team, [team_candidate(n) for n in nodes],
            suggestion="use the team key or ID",
        )
        return chosen.id if chosen else None

    def _resolve_project(
        self, request: BatchRequest, data: dict[str, Any], result: BatchResolution
    ) -> Node | None:
        if not request.project:
            return None
        if is_canonical(request.project):
            result.ids["project"] = request.project
            return data.get("milestoneProject")
        chosen = self._settle(
            result, "project", "Project", request.project,
            [project_candidate(n) for n in nodes_of(data, "projects")], first_wins,
        )
        return chosen.raw if chosen else None

    def _resolve_milestone(
        self,
        request: BatchRequest,
        data: dict[str, Any],
        result: BatchResolution,
        project_node: Node | None,
    ) -> None:
        token = request.milestone
        if not token:
            return
        if is_canonical(token):
            result.ids["milestone"] = token
            return
        scoped = nodes_of(project_node, "projectMilestones") if project_node else []
        # the resolved project wins; workspace-wide matches only when it has none
        nodes = scoped or nodes_of(data, "milestones")
        candidates = [milestone_candidate(n) for n in nodes]
        self._settle(
            result, "milestone", "Milestone", token, candidates,
            suggestion="specify --project or use the milestone ID",
        )

    def _resolve_labels(
        self,
        request: BatchRequest,
        data: dict[str, Any],
        result: BatchResolution,
        team: str | None,
    ) -> None:
        if request.labels is None:
            return
        nodes = nodes_of(data, "labels")
        matches: list[LabelMatch] = []
        for token in request.labels:
            if is_canonical(token):
                matches.append(LabelMatch(id=token, name=token))
                continue
            candidates = match_labels(token, nodes, team)
            try:
                chosen = disambiguate(
                    "Label", token, candidates, single_only,
                    suggestion=LABEL_SUGGESTION,
                )
            except ResolutionError as exc:
                result.errors["labels"] = exc
                return
            matches.append(to_label_match(chosen))
        result.labels = matches

    def _resolve_issue(
        self, request: BatchRequest, data: dict[str, Any], result: BatchResolution
    ) -> None:
        token = request.issue
        if not token:
            return
        if is_canonical(token):
            result.ids["issue"] = token
            if request.issue_details:
                node = data.get("targetIssueById")
                if node:
                    result.issue_node = node
                else:
                    result.errors["issue"] = NotFoundError("Issue", token)
            return
        nodes = nodes_of(data, "targetIssue")
        chosen = self._settle(result, "issue", "Issue", token, [issue_candidate(n) for n in nodes])
        if chosen is not None:
            result.issue_node = dict(chosen.raw)


__all__ = ["BatchPlanner", "BatchRequest", "BatchResolution"]
