from __future__ import annotations

from linearcli.errors import (
    AmbiguousMatchError,
    LinearCliError,
    MalformedIdentifierError,
    NotFoundError,
    UsageError,
    classify_error,
    redact,
)
from linearcli.graphql_client import TransportError
from linearcli.models import ResolutionCandidate


def test_not_found_message_without_context():
    err = NotFoundError("Project", "Website")
    assert str(err) == 'Project "Website" not found'
    assert err.category == "not_found"


def test_not_found_message_with_context():
    err = NotFoundError("State", "Done", "for team ENG")
    assert str(err) == 'State "Done" for team ENG not found'


def test_ambiguous_message_lists_candidates():
    candidates = [
        ResolutionCandidate("m1", "Beta", scope_context='project "Alpha"'),
        ResolutionCandidate("m2", "Beta", scope_context='project "Gamma"', disambiguation_hint="target 2025-01-01"),
    ]
    err = AmbiguousMatchError("Milestone", "Beta", candidates, "specify --project or use the milestone ID")
    message = str(err)
    assert message.startswith('Multiple milestones found matching "Beta". Candidates: ')
    assert 'm1 ("Beta" / project "Alpha")' in message
    assert 'm2 ("Beta" / project "Gamma" / target 2025-01-01)' in message
    assert message.endswith("Please specify --project or use the milestone ID.")
    assert err.candidates == candidates


def test_redact_linear_tokens():
    text = "token lin_api_abcdefghijklmnop1234 and Bearer abcdefghijklmnopqrstuv"
    out = redact(text)
    assert "lin_api_" not in out
    assert "abcdefghijklmnopqrstuv" not in out
    assert out.count("<redacted>") == 2


def test_classify_resolution_errors_carry_details():
    info = classify_error(NotFoundError("Team", "ENG"))
    assert info.category == "not_found"
    assert info.details == {"entity_kind": "Team", "token": "ENG"}

    candidates = [ResolutionCandidate("a", "X"), ResolutionCandidate("b", "X")]
    info = classify_error(AmbiguousMatchError("Cycle", "X", candidates, "use an ID"))
    assert info.category == "ambiguous"
    assert info.details is not None
    assert info.details["candidates"] == ["a", "b"]


def test_classify_other_errors():
    assert classify_error(MalformedIdentifierError("x")).category == "input"
    assert classify_error(UsageError("bad flags")).category == "usage"
    assert classify_error(LinearCliError("boom")).category == "generic"
    transport = classify_error(TransportError("down"))
    assert transport.category == "transport"
    assert transport.transient
    assert classify_error(RuntimeError("Connection reset by peer")).category == "network"
    assert classify_error(RuntimeError("rate limit hit")).category == "rate_limit"
    assert classify_error(ValueError("other")).category == "generic"
