from __future__ import annotations

import json

import pytest
from conftest import FakeBackend, connection

from linearcli import cli
from linearcli.services import LinearService

ISSUE = {"id": "issue-42", "identifier": "ENG-42", "title": "Crash", "labels": connection()}


@pytest.fixture
def run_cli(tmp_path, monkeypatch, capsys):
    """Run ``linear`` in an empty directory against a FakeBackend."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LINEARCLI_QUIET", raising=False)

    def run(argv: list[str], backend: FakeBackend | None = None):
        backend = backend or FakeBackend()
        monkeypatch.setattr(cli, "build_service", lambda args, cfg: LinearService(backend))
        code = cli.main(argv)
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return run


def test_issues_read_prints_json(run_cli):
    backend = FakeBackend({"issues": connection(ISSUE)})
    code, out, _ = run_cli(["issues", "read", "ENG-42"], backend)
    assert code == 0
    assert json.loads(out)["identifier"] == "ENG-42"


def test_malformed_identifier_is_reported_on_stderr(run_cli):
    backend = FakeBackend()
    code, out, err = run_cli(["issues", "read", "ENG42"], backend)
    assert code == 1
    assert out == ""
    payload = json.loads(err)
    assert payload["category"] == "input"
    assert 'Invalid issue identifier format: "ENG42"' in payload["error"]
    assert backend.calls == []


def test_not_found_exit_code(run_cli):
    code, _, err = run_cli(["issues", "read", "ENG-1"], FakeBackend({"issues": connection()}))
    assert code == 1
    assert json.loads(err) == {
        "error": 'Issue "ENG-1" not found',
        "category": "not_found",
        "details": {"entity_kind": "Issue", "token": "ENG-1"},
    }


@pytest.mark.parametrize(
    ("flags", "message"),
    [
        (["--parent-ticket", "ENG-2", "--clear-parent-ticket"], "Cannot use --parent-ticket and --clear-parent-ticket together"),
        (["--label-by", "adding"], "--label-by requires --labels to be specified"),
        (["--labels", "Bug", "--clear-labels"], "--clear-labels cannot be used with --labels"),
        (["--labels", "Bug", "--label-by", "merge"], "--label-by must be either 'adding' or 'overwriting'"),
    ],
)
def test_update_flag_validation(run_cli, flags, message):
    backend = FakeBackend()
    code, _, err = run_cli(["issues", "update", "ENG-1", *flags], backend)
    assert code == 1
    assert json.loads(err)["error"] == message
    assert json.loads(err)["category"] == "usage"
    assert backend.calls == []


def test_issues_create_passes_options(run_cli):
    team_id = "11111111-1111-1111-1111-111111111111"
    backend = FakeBackend({"issueCreate": {"success": True, "issue": ISSUE}})
    code, out, _ = run_cli(
        ["issues", "create", "Crash", "--team", team_id, "--priority", "1", "-d", "Body"],
        backend,
    )
    assert code == 0
    assert json.loads(out)["id"] == "issue-42"
    assert backend.calls[0][1]["input"] == {
        "title": "Crash",
        "teamId": team_id,
        "description": "Body",
        "priority": 1,
    }


def test_search_splits_states(run_cli):
    backend = FakeBackend({"issues": connection(ISSUE)})
    code, _, _ = run_cli(["issues", "search", "", "--states", "Todo, In Progress"], backend)
    assert code == 0
    assert backend.calls[0][1]["filter"] == {"state": {"name": {"in": ["Todo", "In Progress"]}}}


def test_cycles_around_active_requires_team(run_cli):
    code, _, err = run_cli(["cycles", "list", "--around-active", "2"])
    assert code == 1
    assert json.loads(err)["error"] == "--around-active requires --team to be specified"


def test_usage_lists_every_leaf_command(run_cli):
    code, out, _ = run_cli(["usage"])
    assert code == 0
    assert "usage: linear issues create" in out
    assert "usage: linear project-milestones update" in out
    assert "usage: linear embeds download" in out
    assert "\n---\n\n" in out
    assert out.index("linear comments create") < out.index("linear issues create")


def test_registered_leaf_commands_match_handlers():
    leaves: cli.LeafParsers = {}
    parser = cli._build_parser(leaves)
    args = parser.parse_args(["teams", "list"])
    handlers = cli._build_handlers(args, None, leaves)
    assert set(leaves) == set(handlers) - {"usage"}
    assert leaves["issues update"].prog == "linear issues update"
    assert cli.usage_text(leaves).count(cli.USAGE_SEPARATOR) == len(leaves) - 1


def test_embeds_download_rejects_foreign_url(run_cli):
    code, out, _ = run_cli(
        ["--api-token", "tok", "embeds", "download", "https://example.com/file.png"]
    )
    assert code == 0
    assert json.loads(out) == {
        "success": False,
        "error": "URL must be from uploads.linear.app domain",
    }


def test_missing_explicit_config_is_an_error(run_cli):
    code, _, err = run_cli(["--config", "nope.yaml", "teams", "list"])
    assert code == 1
    assert json.loads(err)["category"] == "config"


def test_quiet_env_sets_flag(run_cli, monkeypatch):
    monkeypatch.setenv("LINEARCLI_QUIET", "1")
    backend = FakeBackend({"teams": connection({"id": "t1", "key": "ENG", "name": "Eng"})})
    code, out, err = run_cli(["teams", "list"], backend)
    assert code == 0
    assert json.loads(out) == [{"id": "t1", "key": "ENG", "name": "Eng"}]
    assert err == ""
