"""Canonical id recognition and ``TEAM-123`` issue identifier parsing.

Linear addresses every entity by a UUID. Issues additionally carry a human
identifier made of the owning team's key and the issue number. Both helpers
here are pure; neither touches the network.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import MalformedIdentifierError

CANONICAL_ID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
_ISSUE_NUMBER_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class StructuredIdentifier:
    scope_code: str
    sequence_number: int

    def __str__(self) -> str:
        return f"{self.scope_code}-{self.sequence_number}"


def is_canonical(token: object) -> bool:
    """Return True when ``token`` is already a Linear UUID.

    >>> is_canonical("123e4567-e89b-12d3-a456-426614174000")
    True
    >>> is_canonical("ABC-123")
    False
    """
    return isinstance(token, str) and CANONICAL_ID_PATTERN.fullmatch(token) is not None


def parse_issue_identifier(identifier: str) -> StructuredIdentifier:
    """Split ``TEAM-123`` into its team key and issue number.

    Raises MalformedIdentifierError when the string does not contain exactly
    one hyphen or when the part after it is not an integer.
    """
    parts = identifier.split("-")
    if len(parts) != 2:
        raise MalformedIdentifierError(identifier)
    scope_code, number = parts
    # ASCII digits only; no sign, whitespace or underscores
    if _ISSUE_NUMBER_PATTERN.fullmatch(number) is None:
        raise MalformedIdentifierError(identifier, "Issue number must be an integer")
    return StructuredIdentifier(scope_code=scope_code, sequence_number=int(number))


def try_parse_issue_identifier(identifier: str) -> StructuredIdentifier | None:
    try:
        return parse_issue_identifier(identifier)
    except MalformedIdentifierError:
        return None


__all__ = [
    "CANONICAL_ID_PATTERN",
    "StructuredIdentifier",
    "is_canonical",
    "parse_issue_identifier",
    "try_parse_issue_identifier",
]
