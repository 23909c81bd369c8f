"""linearcli command line (``linear``).

Command groups:
  issues              -> list / search / read / create / update
  comments            -> create
  labels              -> list
  projects            -> list
  teams               -> list
  users               -> list
  cycles              -> list / read
  project-milestones  -> list / read / create / update
  embeds              -> download / extract
  usage               -> help text of every command

Every identifier option accepts either a canonical id or the human form
(team key, project name, ``ENG-42``, ``Group/Label`` ...). Output is JSON on
stdout; failures are JSON on stderr with exit code 1.
"""

from __future__ import annotations

import argparse
from collections.abc import Callable
from typing import Any

from .config import CliConfig
from .embeds import FileDownloader
from .errors import LinearCliError, UsageError
from .models import CreateIssueArgs, UpdateIssueArgs
from .output import output_error
from .runtime import build_service, execute_command, prepare_config, resolve_token
from .services import LABEL_MODES, LinearService

ID_HELP = "Both UUIDs and identifiers like ABC-123 are supported."
USAGE_SEPARATOR = "\n---\n\n"

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


LeafParsers = dict[str, argparse.ArgumentParser]


class _CommandGroup:
    """A command group whose action parsers are recorded in ``leaves``."""

    def __init__(self, sub: Any, name: str, help_text: str, leaves: LeafParsers) -> None:
        parser = sub.add_parser(name, help=help_text, description=help_text)
        self._actions = parser.add_subparsers(
            dest="action",
            required=True,
            parser_class=_FormatterArgumentParser,
            metavar="<action>",
        )
        self._name = name
        self._leaves = leaves

    def add_parser(self, action: str, **kwargs: Any) -> argparse.ArgumentParser:
        parser = self._actions.add_parser(action, **kwargs)
        self._leaves[f"{self._name} {action}"] = parser
        return parser


def _add_issue_commands(sub: Any, leaves: LeafParsers) -> None:
    issues = _CommandGroup(sub, "issues", "Issue operations", leaves)

    pl = issues.add_parser("list", help="List issues")
    pl.add_argument("-l", "--limit", type=int, default=25, help="limit results")

    ps = issues.add_parser("search", help="Search issues")
    ps.add_argument("query")
    ps.add_argument("--team", help="filter by team key, name, or ID")
    ps.add_argument("--assignee", help="filter by assignee ID, email, or name")
    ps.add_argument("--project", help="filter by project name or ID")
    ps.add_argument("--states", type=_csv, help="filter by states (comma-separated)")
    ps.add_argument("-l", "--limit", type=int, default=10, help="limit results")

    pr = issues.add_parser("read", help="Get issue details", epilog=ID_HELP)
    pr.add_argument("issue")

    pc = issues.add_parser("create", help="Create new issue")
    pc.add_argument("title")
    pc.add_argument("-d", "--description", help="issue description")
    pc.add_argument("-a", "--assignee", help="assign to user (ID, email, or name)")
    pc.add_argument("-p", "--priority", type=int, help="priority level (1-4)")
    pc.add_argument("--estimate", type=float, help="estimate points")
    pc.add_argument("--project", help="add to project (name or ID)")
    pc.add_argument("--team", help="team key, name, or ID")
    pc.add_argument("--labels", type=_csv, help="labels (comma-separated names or IDs)")
    pc.add_argument("--milestone", help="milestone name or ID")
    pc.add_argument("--cycle", help="cycle name or ID")
    pc.add_argument("--status", help="status name or ID")
    pc.add_argument("--parent-ticket", help="parent issue ID or identifier")

    pu = issues.add_parser("update", help="Update an issue", epilog=ID_HELP)
    pu.add_argument("issue")
    pu.add_argument("-t", "--title", help="new title")
    pu.add_argument("-d", "--description", help="new description")
    pu.add_argument("-s", "--state", help="new state name or ID")
    pu.add_argument("-p", "--priority", type=int, help="new priority (1-4)")
    pu.add_argument("--estimate", type=float, help="new estimate")
    pu.add_argument("--assignee", help="new assignee (ID, email, or name)")
    pu.add_argument("--project", help="new project (name or ID)")
    pu.add_argument("--milestone", help="new milestone name or ID")
    pu.add_argument("--cycle", help="new cycle name or ID")
    labels = pu.add_argument_group("labels")
    labels.add_argument(
        "--labels", type=_csv, help="labels to work with (comma-separated names or IDs)"
    )
    labels.add_argument(
        "--label-by", help="how to apply labels: 'adding' (default) or 'overwriting'"
    )
    labels.add_argument("--clear-labels", action="store_true", help="remove all labels")
    parent = pu.add_argument_group("parent ticket")
    parent.add_argument("--parent-ticket", help="set parent issue ID or identifier")
    parent.add_argument(
        "--clear-parent-ticket", action="store_true", help="clear existing parent"
    )


def _add_workspace_commands(sub: Any, leaves: LeafParsers) -> None:
    comments = _CommandGroup(sub, "comments", "Comment operations", leaves)
    pcc = comments.add_parser("create", help="Add a comment to an issue", epilog=ID_HELP)
    pcc.add_argument("issue")
    pcc.add_argument("--body", required=True, help="comment body (markdown)")

    labels = _CommandGroup(sub, "labels", "Label operations", leaves)
    pll = labels.add_parser("list", help="List labels")
    pll.add_argument("--team", help="only labels of this team (key, name, or ID)")

    projects = _CommandGroup(sub, "projects", "Project operations", leaves)
    ppl = projects.add_parser("list", help="List projects")
    ppl.add_argument("-l", "--limit", type=int, default=100, help="limit results")

    teams = _CommandGroup(sub, "teams", "Team operations", leaves)
    teams.add_parser("list", help="List teams")

    users = _CommandGroup(sub, "users", "User operations", leaves)
    pul = users.add_parser("list", help="List users")
    pul.add_argument("--active", action="store_true", help="only active users")


def _add_cycle_commands(sub: Any, leaves: LeafParsers) -> None:
    cycles = _CommandGroup(sub, "cycles", "Cycle operations", leaves)
    pcl = cycles.add_parser("list", help="List cycles")
    pcl.add_argument("--team", help="team key, name, or ID")
    pcl.add_argument("-l", "--limit", type=int, default=25, help="limit results")
    pcl.add_argument("--active", action="store_true", help="only the active cycle")
    pcl.add_argument(
        "--around-active",
        type=int,
        metavar="N",
        help="cycles within N of the active one (requires --team)",
    )

    pcr = cycles.add_parser("read", help="Get cycle details with its issues")
    pcr.add_argument("cycle")
    pcr.add_argument("--team", help="team used to disambiguate a cycle name")
    pcr.add_argument("--issues-first", type=int, default=50, help="issues to include")


def _add_milestone_commands(sub: Any, leaves: LeafParsers) -> None:
    milestones = _CommandGroup(sub, "project-milestones", "Project milestone operations", leaves)
    pml = milestones.add_parser("list", help="List milestones of a project")
    pml.add_argument("--project", required=True, help="project name or ID")
    pml.add_argument("-l", "--limit", type=int, default=50, help="limit results")

    pmr = milestones.add_parser("read", help="Get milestone details with its issues")
    pmr.add_argument("milestone")
    pmr.add_argument("--project", help="project used to disambiguate a milestone name")
    pmr.add_argument("--issues-first", type=int, default=50, help="issues to include")

    pmc = milestones.add_parser("create", help="Create a milestone")
    pmc.add_argument("name")
    pmc.add_argument("--project", required=True, help="project name or ID")
    pmc.add_argument("-d", "--description", help="milestone description")
    pmc.add_argument("--target-date", help="target date (YYYY-MM-DD)")

    pmu = milestones.add_parser("update", help="Update a milestone")
    pmu.add_argument("milestone")
    pmu.add_argument("--project", help="project used to disambiguate a milestone name")
    pmu.add_argument("--name", help="new name")
    pmu.add_argument("-d", "--description", help="new description")
    pmu.add_argument("--target-date", help="new target date (YYYY-MM-DD)")
    pmu.add_argument("--sort-order", type=float, help="new sort order")


def _add_embed_commands(sub: Any, leaves: LeafParsers) -> None:
    embeds = _CommandGroup(sub, "embeds", "Files embedded in Linear storage", leaves)
    ped = embeds.add_parser("download", help="Download a file from Linear storage")
    ped.add_argument("url")
    ped.add_argument("--output", help="output file path")
    ped.add_argument("--overwrite", action="store_true", help="overwrite existing file")

    pee = embeds.add_parser("extract", help="List files embedded in an issue", epilog=ID_HELP)
    pee.add_argument("issue")


def _build_parser(leaves: LeafParsers | None = None) -> argparse.ArgumentParser:
    """Construct top-level CLI parser with subcommands.

    Keep ordering stable for help output readability. Each leaf command's
    parser is recorded in ``leaves`` under its ``"group action"`` name.
    """
    if leaves is None:
        leaves = {}
    p = _FormatterArgumentParser(prog="linear", description="CLI for Linear.app with JSON output")
    p.add_argument("--api-token", help="Linear API token")
    p.add_argument("--config", help="Path to linear.config.yaml")
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational logging (env: LINEARCLI_QUIET=1)",
    )
    p.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--json-logs", action="store_true", help="Emit logs as JSON on stderr")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )
    _add_issue_commands(sub, leaves)
    _add_workspace_commands(sub, leaves)
    _add_cycle_commands(sub, leaves)
    _add_milestone_commands(sub, leaves)
    _add_embed_commands(sub, leaves)
    sub.add_parser("usage", help="Show usage info for all commands")
    return p


def usage_text(leaves: LeafParsers) -> str:
    return USAGE_SEPARATOR.join(leaves[name].format_help() for name in sorted(leaves))


def _cmd_usage(leaves: LeafParsers) -> None:
    print(usage_text(leaves))


def _validate_update_flags(args: argparse.Namespace) -> None:
    if args.parent_ticket and args.clear_parent_ticket:
        raise UsageError("Cannot use --parent-ticket and --clear-parent-ticket together")
    if args.label_by and not args.labels:
        raise UsageError("--label-by requires --labels to be specified")
    if args.clear_labels and args.labels:
        raise UsageError("--clear-labels cannot be used with --labels")
    if args.clear_labels and args.label_by:
        raise UsageError("--clear-labels cannot be used with --label-by")
    if args.label_by and args.label_by not in LABEL_MODES:
        raise UsageError("--label-by must be either 'adding' or 'overwriting'")


def _cmd_issues_create(service: LinearService, args: argparse.Namespace) -> Any:
    return service.create_issue(
        CreateIssueArgs(
            title=args.title,
            team=args.team,
            description=args.description,
            assignee=args.assignee,
            priority=args.priority,
            project=args.project,
            state=args.status,
            labels=args.labels,
            estimate=args.estimate,
            parent=args.parent_ticket,
            milestone=args.milestone,
            cycle=args.cycle,
        )
    )


def _cmd_issues_update(
    service: Callable[[], LinearService], args: argparse.Namespace
) -> Any:
    _validate_update_flags(args)
    return service().update_issue(
        UpdateIssueArgs(
            id=args.issue,
            title=args.title,
            description=args.description,
            state=args.state,
            priority=args.priority,
            assignee=args.assignee,
            project=args.project,
            labels=args.labels,
            estimate=args.estimate,
            parent=args.parent_ticket,
            clear_parent=args.clear_parent_ticket,
            milestone=args.milestone,
            cycle=args.cycle,
        ),
        args.label_by or "adding",
        clear_labels=args.clear_labels,
    )


def _cmd_embeds_download(cfg: CliConfig, args: argparse.Namespace) -> Any:
    downloader = FileDownloader(resolve_token(args, cfg), timeout=cfg.api_timeout)
    return downloader.download(args.url, args.output, overwrite=args.overwrite).to_dict()


def _command_name(args: argparse.Namespace) -> str:
    action = getattr(args, "action", None)
    return f"{args.cmd} {action}" if action else args.cmd


def _build_handlers(
    args: argparse.Namespace, cfg: CliConfig, leaves: LeafParsers
) -> dict[str, Any]:
    def svc() -> LinearService:
        return build_service(args, cfg)

    return {
        "issues list": lambda: svc().list_issues(args.limit),
        "issues search": lambda: svc().search_issues(
            args.query,
            team=args.team,
            assignee=args.assignee,
            project=args.project,
            states=args.states,
            limit=args.limit,
        ),
        "issues read": lambda: svc().read_issue(args.issue),
        "issues create": lambda: _cmd_issues_create(svc(), args),
        "issues update": lambda: _cmd_issues_update(svc, args),
        "comments create": lambda: svc().create_comment(args.issue, args.body),
        "labels list": lambda: svc().list_labels(args.team),
        "projects list": lambda: svc().list_projects(args.limit),
        "teams list": lambda: svc().list_teams(),
        "users list": lambda: svc().list_users(args.active),
        "cycles list": lambda: svc().list_cycles(
            args.team,
            limit=args.limit,
            active_only=args.active,
            around_active=args.around_active,
        ),
        "cycles read": lambda: svc().read_cycle(args.cycle, args.team, args.issues_first),
        "project-milestones list": lambda: svc().list_milestones(args.project, args.limit),
        "project-milestones read": lambda: svc().read_milestone(
            args.milestone, args.project, args.issues_first
        ),
        "project-milestones create": lambda: svc().create_milestone(
            args.name,
            args.project,
            description=args.description,
            target_date=args.target_date,
        ),
        "project-milestones update": lambda: svc().update_milestone(
            args.milestone,
            project=args.project,
            name=args.name,
            description=args.description,
            target_date=args.target_date,
            sort_order=args.sort_order,
        ),
        "embeds download": lambda: _cmd_embeds_download(cfg, args),
        "embeds extract": lambda: svc().issue_embeds(args.issue),
        "usage": lambda: _cmd_usage(leaves),
    }


def main(argv: list[str] | None = None) -> int:
    leaves: LeafParsers = {}
    parser = _build_parser(leaves)
    args = parser.parse_args(argv)
    try:
        cfg = prepare_config(args)
    except LinearCliError as exc:
        output_error(exc)
        return 1
    command = _command_name(args)
    handler = _build_handlers(args, cfg, leaves).get(command)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    return execute_command(handler, args, cfg, command)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
