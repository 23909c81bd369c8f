from __future__ import annotations

import pytest

from linearcli.errors import MalformedIdentifierError
from linearcli.identifiers import (
    StructuredIdentifier,
    is_canonical,
    parse_issue_identifier,
    try_parse_issue_identifier,
)

UUID = "123e4567-e89b-12d3-a456-426614174000"


def test_canonical_uuid_recognized():
    assert is_canonical(UUID)
    assert is_canonical(UUID.upper())


@pytest.mark.parametrize(
    "token",
    ["ABC-123", "Engineering", "", "123e4567e89b12d3a456426614174000", f"{UUID}x", f" {UUID}"],
)
def test_non_canonical_tokens(token):
    assert not is_canonical(token)


def test_non_string_is_not_canonical():
    assert not is_canonical(None)
    assert not is_canonical(42)


def test_parse_issue_identifier_success():
    parsed = parse_issue_identifier("ABC-123")
    assert parsed == StructuredIdentifier(scope_code="ABC", sequence_number=123)
    assert str(parsed) == "ABC-123"


def test_parse_issue_identifier_no_hyphen():
    with pytest.raises(MalformedIdentifierError) as exc:
        parse_issue_identifier("ABC123")
    assert 'Invalid issue identifier format: "ABC123"' in str(exc.value)
    assert "Expected format: TEAM-123" in str(exc.value)


def test_parse_issue_identifier_non_integer_number():
    with pytest.raises(MalformedIdentifierError) as exc:
        parse_issue_identifier("ABC-xyz")
    assert "Issue number must be an integer" in str(exc.value)


@pytest.mark.parametrize("identifier", ["ENG-4_2", "ENG- 7", "ENG-7 ", "ENG-+7", "ENG-", "ENG-٤٢"])
def test_parse_issue_identifier_requires_plain_digits(identifier):
    with pytest.raises(MalformedIdentifierError) as exc:
        parse_issue_identifier(identifier)
    assert "Issue number must be an integer" in str(exc.value)


def test_parse_issue_identifier_too_many_parts():
    with pytest.raises(MalformedIdentifierError):
        parse_issue_identifier("A-B-1")


def test_parse_empty_scope_code_is_accepted_locally():
    assert parse_issue_identifier("-7") == StructuredIdentifier("", 7)


def test_try_parse_returns_none_on_failure():
    assert try_parse_issue_identifier("nope") is None
    assert try_parse_issue_identifier("ENG-1") == StructuredIdentifier("ENG", 1)
