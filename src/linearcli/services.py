"""Read / create / update operations behind the CLI commands.

Every human identifier a command receives is resolved here before a
mutation is sent: independent references go through one batched lookup
(:mod:`linearcli.batch`), references that need the resolved team (workflow
state, cycle) are fanned out afterwards (:mod:`linearcli.concurrency`).
Mutations are only ever issued from this module.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from . import queries
from .batch import BatchPlanner, BatchRequest, BatchResolution
from .concurrency import ConcurrencyConfig, fan_out
from .embeds import extract_embeds
from .errors import LinearCliError, NotFoundError, UsageError
from .graphql_client import Backend
from .identifiers import is_canonical
from .logging import get_logger
from .models import CreateIssueArgs, ResolutionContext, UpdateIssueArgs
from .resolvers import EntityResolvers, issue_filter, nodes_of, team_filter

LABEL_MODES = ("adding", "overwriting")

_ISSUE_SCALARS = (
    "id",
    "identifier",
    "title",
    "description",
    "priority",
    "estimate",
    "url",
    "createdAt",
    "updatedAt",
)
_ISSUE_RELATIONS = ("state", "assignee", "team", "project", "cycle", "projectMilestone", "parent")


def transform_issue(node: dict[str, Any]) -> dict[str, Any]:
    """Flatten GraphQL connections of an issue node into plain lists."""
    issue: dict[str, Any] = {key: node.get(key) for key in _ISSUE_SCALARS}
    for relation in _ISSUE_RELATIONS:
        if node.get(relation):
            issue[relation] = node[relation]
    issue["labels"] = nodes_of(node, "labels")
    if "comments" in node:
        issue["comments"] = nodes_of(node, "comments")
    return issue


def _mutation_result(data: dict[str, Any], root: str, entity: str, action: str) -> dict[str, Any]:
    payload = data.get(root) or {}
    if not payload.get("success"):
        raise LinearCliError(f"Failed to {action}")
    node = payload.get(entity)
    if not node:
        raise LinearCliError(f"Failed to retrieve {entity} after {action}")
    result: dict[str, Any] = node
    return result


class LinearService:
    """High level Linear operations on top of a GraphQL backend."""

    def __init__(self, backend: Backend, concurrency: ConcurrencyConfig | None = None):
        self.backend = backend
        self.concurrency = concurrency or ConcurrencyConfig()
        self.resolvers = EntityResolvers(backend)
        self.planner = BatchPlanner(backend)
        self.logger = get_logger()

    # ---- shared resolution --------------------------------------------
    def _plan(self, request: BatchRequest) -> BatchResolution:
        batch = self.planner.plan(request)
        batch.require(*request.supplied())
        return batch

    def _resolve_team_scoped(
        self, team_id: str | None, *, state: str | None = None, cycle: str | None = None
    ) -> dict[str, str]:
        """Resolve state and cycle against ``team_id`` side by side."""
        context = ResolutionContext(team=team_id)
        tasks: dict[str, Callable[[], str]] = {}
        if state:
            tasks["state"] = lambda: self.resolvers.state.resolve(state, context)
        if cycle:
            tasks["cycle"] = lambda: self.resolvers.cycle.resolve(cycle, context)
        return fan_out(tasks, self.concurrency)

    # ---- issues -------------------------------------------------------
    def list_issues(self, limit: int = 25) -> list[dict[str, Any]]:
        data = self.backend.execute(
            queries.GET_ISSUES_QUERY, {"first": limit, "orderBy": "updatedAt"}
        )
        return [transform_issue(node) for node in nodes_of(data, "issues")]

    def search_issues(
        self,
        query: str | None = None,
        *,
        team: str | None = None,
        assignee: str | None = None,
        project: str | None = None,
        states: Sequence[str] | None = None,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        batch = self._plan(BatchRequest(team=team, project=project, assignee=assignee))
        team_id = batch.get("team")
        project_id = batch.get("project")
        assignee_id = batch.get("assignee")

        if query:
            data = self.backend.execute(
                queries.SEARCH_ISSUES_QUERY, {"term": query, "first": limit}
            )
            results = [transform_issue(node) for node in nodes_of(data, "searchIssues")]
            # full-text search takes no filter, so narrow locally
            if team_id:
                results = [r for r in results if (r.get("team") or {}).get("id") == team_id]
            if assignee_id:
                results = [r for r in results if (r.get("assignee") or {}).get("id") == assignee_id]
            if project_id:
                results = [r for r in results if (r.get("project") or {}).get("id") == project_id]
            if states:
                results = [r for r in results if (r.get("state") or {}).get("name") in states]
            return results

        issue_filter_: dict[str, Any] = {}
        if team_id:
            issue_filter_["team"] = {"id": {"eq": team_id}}
        if assignee_id:
            issue_filter_["assignee"] = {"id": {"eq": assignee_id}}
        if project_id:
            issue_filter_["project"] = {"id": {"eq": project_id}}
        if states:
            issue_filter_["state"] = {"name": {"in": list(states)}}
        variables: dict[str, Any] = {"first": limit, "orderBy": "updatedAt"}
        if issue_filter_:
            variables["filter"] = issue_filter_
        data = self.backend.execute(queries.FILTERED_SEARCH_ISSUES_QUERY, variables)
        return [transform_issue(node) for node in nodes_of(data, "issues")]

    def read_issue(self, issue: str) -> dict[str, Any]:
        if is_canonical(issue):
            data = self.backend.execute(queries.GET_ISSUE_BY_ID_QUERY, {"id": issue})
            node = data.get("issue")
        else:
            data = self.backend.execute(
                queries.GET_ISSUE_BY_IDENTIFIER_QUERY, {"filter": issue_filter(issue)}
            )
            found = nodes_of(data, "issues")
            node = dict(found[0]) if found else None
        if not node:
            raise NotFoundError("Issue", issue)
        return transform_issue(node)

    def create_issue(self, args: CreateIssueArgs) -> dict[str, Any]:
        batch = self._plan(
            BatchRequest(
                team=args.team,
                project=args.project,
                labels=args.labels,
                parent=args.parent,
                milestone=args.milestone,
                assignee=args.assignee,
            )
        )
        team_id = batch.get("team")
        scoped = self._resolve_team_scoped(team_id, state=args.state, cycle=args.cycle)

        issue_input: dict[str, Any] = {"title": args.title}
        if team_id:
            issue_input["teamId"] = team_id
        if args.description:
            issue_input["description"] = args.description
        if batch.get("assignee"):
            issue_input["assigneeId"] = batch.get("assignee")
        if args.priority is not None:
            issue_input["priority"] = args.priority
        if batch.get("project"):
            issue_input["projectId"] = batch.get("project")
        if "state" in scoped:
            issue_input["stateId"] = scoped["state"]
        if batch.label_ids:
            issue_input["labelIds"] = batch.label_ids
        if args.estimate is not None:
            issue_input["estimate"] = args.estimate
        if batch.get("parent"):
            issue_input["parentId"] = batch.get("parent")
        if batch.get("milestone"):
            issue_input["projectMilestoneId"] = batch.get("milestone")
        if "cycle" in scoped:
            issue_input["cycleId"] = scoped["cycle"]

        data = self.backend.execute(queries.CREATE_ISSUE_MUTATION, {"input": issue_input})
        node = _mutation_result(data, "issueCreate", "issue", "create issue")
        self.logger.log_operation("issue_created", identifier=node.get("identifier"))
        return transform_issue(node)

    def update_issue(
        self,
        args: UpdateIssueArgs,
        label_mode: str = "adding",
        *,
        clear_labels: bool = False,
    ) -> dict[str, Any]:
        if label_mode not in LABEL_MODES:
            raise UsageError("--label-by must be either 'adding' or 'overwriting'")
        if args.parent and args.clear_parent:
            raise UsageError("Cannot use --parent-ticket and --clear-parent-ticket together")
        if clear_labels and args.labels:
            raise UsageError("--clear-labels cannot be used with --labels")

        batch = self._plan(
            BatchRequest(
                issue=args.id,
                project=args.project,
                labels=args.labels,
                parent=args.parent,
                milestone=args.milestone,
                assignee=args.assignee,
                issue_details=bool(args.state or args.cycle or args.labels),
            )
        )
        issue_id = batch.get("issue")
        scoped = self._resolve_team_scoped(
            batch.issue_team_id, state=args.state, cycle=args.cycle
        )

        update: dict[str, Any] = {}
        if args.title is not None:
            update["title"] = args.title
        if args.description is not None:
            update["description"] = args.description
        if "state" in scoped:
            update["stateId"] = scoped["state"]
        if args.priority is not None:
            update["priority"] = args.priority
        if batch.get("assignee"):
            update["assigneeId"] = batch.get("assignee")
        if batch.get("project"):
            update["projectId"] = batch.get("project")
        if "cycle" in scoped:
            update["cycleId"] = scoped["cycle"]
        if args.estimate is not None:
            update["estimate"] = args.estimate
        if args.clear_parent:
            update["parentId"] = None
        elif batch.get("parent"):
            update["parentId"] = batch.get("parent")
        if batch.get("milestone"):
            update["projectMilestoneId"] = batch.get("milestone")
        if clear_labels:
            update["labelIds"] = []
        elif batch.label_ids is not None:
            label_ids = batch.label_ids
            if label_mode == "adding":
                label_ids = list(dict.fromkeys([*batch.current_label_ids, *label_ids]))
            update["labelIds"] = label_ids

        data = self.backend.execute(
            queries.UPDATE_ISSUE_MUTATION, {"id": issue_id, "input": update}
        )
        node = _mutation_result(data, "issueUpdate", "issue", "update issue")
        self.logger.log_operation("issue_updated", identifier=node.get("identifier"))
        return transform_issue(node)

    # ---- comments -----------------------------------------------------
    def create_comment(self, issue: str, body: str) -> dict[str, Any]:
        if not body:
            raise UsageError("--body is required")
        issue_id = self.resolvers.issue.resolve(issue)
        data = self.backend.execute(
            queries.CREATE_COMMENT_MUTATION, {"input": {"issueId": issue_id, "body": body}}
        )
        return _mutation_result(data, "commentCreate", "comment", "create comment")

    # ---- workspace listings -------------------------------------------
    def list_labels(self, team: str | None = None, limit: int = 100) -> dict[str, Any]:
        variables: dict[str, Any] = {"first": limit}
        if team:
            team_id = self.resolvers.team.resolve(team)
            variables["filter"] = {"team": {"id": {"eq": team_id}}}
        data = self.backend.execute(queries.GET_LABELS_QUERY, variables)
        labels = []
        for node in nodes_of(data, "issueLabels"):
            if node.get("isGroup"):
                continue
            label: dict[str, Any] = {
                "id": node["id"],
                "name": node.get("name"),
                "color": node.get("color"),
                "scope": "team" if node.get("team") else "workspace",
            }
            if node.get("team"):
                label["team"] = {"id": node["team"]["id"], "name": node["team"].get("name")}
            if node.get("parent"):
                label["group"] = {"id": node["parent"]["id"], "name": node["parent"].get("name")}
            labels.append(label)
        return {"labels": labels}

    def list_projects(self, limit: int = 100) -> list[dict[str, Any]]:
        data = self.backend.execute(
            queries.GET_PROJECTS_QUERY, {"first": limit, "orderBy": "updatedAt"}
        )
        projects = []
        for node in nodes_of(data, "projects"):
            project = dict(node)
            project["teams"] = nodes_of(node, "teams")
            projects.append(project)
        return projects

    def list_teams(self, limit: int = 100) -> list[dict[str, Any]]:
        data = self.backend.execute(queries.GET_TEAMS_QUERY, {"first": limit})
        return [dict(node) for node in nodes_of(data, "teams")]

    def list_users(self, active_only: bool = False, limit: int = 100) -> list[dict[str, Any]]:
        variables: dict[str, Any] = {"first": limit}
        if active_only:
            variables["filter"] = {"active": {"eq": True}}
        data = self.backend.execute(queries.GET_USERS_QUERY, variables)
        return [dict(node) for node in nodes_of(data, "users")]

    # ---- cycles -------------------------------------------------------
    def list_cycles(
        self,
        team: str | None = None,
        *,
        limit: int = 25,
        active_only: bool = False,
        around_active: int | None = None,
    ) -> list[dict[str, Any]]:
        if around_active is not None:
            if not team:
                raise UsageError("--around-active requires --team to be specified")
            if around_active < 0:
                raise UsageError("--around-active requires a non-negative integer")
            return self._cycles_around_active(team, around_active, limit)

        cycle_filter: dict[str, Any] = {}
        if team:
            cycle_filter["team"] = team_filter(team)
        if active_only:
            cycle_filter["isActive"] = {"eq": True}
        variables: dict[str, Any] = {"first": limit}
        if cycle_filter:
            variables["filter"] = cycle_filter
        data = self.backend.execute(queries.GET_CYCLES_QUERY, variables)
        return [dict(node) for node in nodes_of(data, "cycles")]

    def _cycles_around_active(self, team: str, distance: int, limit: int) -> list[dict[str, Any]]:
        active = self.backend.execute(
            queries.GET_CYCLES_QUERY,
            {"first": 1, "filter": {"team": team_filter(team), "isActive": {"eq": True}}},
        )
        found = nodes_of(active, "cycles")
        if not found:
            raise NotFoundError("Active cycle for team", team)
        number = int(found[0].get("number") or 0)
        low, high = number - distance, number + distance
        data = self.backend.execute(
            queries.GET_CYCLES_QUERY,
            {"first": max(limit, 100), "filter": {"team": team_filter(team)}},
        )
        window = [
            dict(node)
            for node in nodes_of(data, "cycles")
            if isinstance(node.get("number"), (int, float)) and low <= node["number"] <= high
        ]
        return sorted(window, key=lambda node: node["number"])

    def read_cycle(
        self, cycle: str, team: str | None = None, issues_first: int = 50
    ) -> dict[str, Any]:
        cycle_id = self.resolvers.cycle.resolve(cycle, ResolutionContext(team=team))
        data = self.backend.execute(
            queries.GET_CYCLE_BY_ID_QUERY, {"id": cycle_id, "issuesFirst": issues_first}
        )
        node = data.get("cycle")
        if not node:
            raise NotFoundError("Cycle", cycle)
        result = dict(node)
        result["issues"] = [transform_issue(issue) for issue in nodes_of(node, "issues")]
        return result

    # ---- project milestones -------------------------------------------
    def list_milestones(self, project: str, limit: int = 50) -> dict[str, Any]:
        project_id = self.resolvers.project.resolve(project)
        data = self.backend.execute(
            queries.LIST_PROJECT_MILESTONES_QUERY, {"projectId": project_id, "first": limit}
        )
        node = data.get("project")
        if not node:
            raise NotFoundError("Project", project)
        return {
            "id": node["id"],
            "name": node.get("name"),
            "milestones": nodes_of(node, "projectMilestones"),
        }

    def read_milestone(
        self, milestone: str, project: str | None = None, issues_first: int = 50
    ) -> dict[str, Any]:
        milestone_id = self.resolvers.milestone.resolve(
            milestone, ResolutionContext(project=project)
        )
        data = self.backend.execute(
            queries.GET_PROJECT_MILESTONE_BY_ID_QUERY,
            {"id": milestone_id, "issuesFirst": issues_first},
        )
        node = data.get("projectMilestone")
        if not node:
            raise NotFoundError("Milestone", milestone)
        result = dict(node)
        result["issues"] = [transform_issue(issue) for issue in nodes_of(node, "issues")]
        return result

    def create_milestone(
        self,
        name: str,
        project: str,
        *,
        description: str | None = None,
        target_date: str | None = None,
    ) -> dict[str, Any]:
        project_id = self.resolvers.project.resolve(project)
        milestone_input: dict[str, Any] = {"projectId": project_id, "name": name}
        if description is not None:
            milestone_input["description"] = description
        if target_date is not None:
            milestone_input["targetDate"] = target_date
        data = self.backend.execute(
            queries.CREATE_PROJECT_MILESTONE_MUTATION, {"input": milestone_input}
        )
        return _mutation_result(
            data, "projectMilestoneCreate", "projectMilestone", "create milestone"
        )

    def update_milestone(
        self,
        milestone: str,
        *,
        project: str | None = None,
        name: str | None = None,
        description: str | None = None,
        target_date: str | None = None,
        sort_order: float | None = None,
    ) -> dict[str, Any]:
        milestone_id = self.resolvers.milestone.resolve(
            milestone, ResolutionContext(project=project)
        )
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if target_date is not None:
            changes["targetDate"] = target_date
        if sort_order is not None:
            changes["sortOrder"] = sort_order
        data = self.backend.execute(
            queries.UPDATE_PROJECT_MILESTONE_MUTATION, {"id": milestone_id, "input": changes}
        )
        return _mutation_result(
            data, "projectMilestoneUpdate", "projectMilestone", "update milestone"
        )

    # ---- embeds -------------------------------------------------------
    def issue_embeds(self, issue: str) -> dict[str, Any]:
        """Upload URLs found in an issue's description and its comments."""
        node = self.read_issue(issue)
        embeds = [
            {**embed.to_dict(), "source": "description"}
            for embed in extract_embeds(node.get("description"))
        ]
        for comment in node.get("comments") or []:
            embeds.extend(
                {**embed.to_dict(), "source": f"comment {comment.get('id')}"}
                for embed in extract_embeds(comment.get("body"))
            )
        return {"issue": node.get("identifier") or node.get("id"), "embeds": embeds}


__all__ = ["LABEL_MODES", "LinearService", "transform_issue"]
