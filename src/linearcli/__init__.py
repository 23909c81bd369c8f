"""linearcli - Linear.app command line client with JSON output.

High-level public API (stable):

from linearcli import LinearGraphQLClient, LinearService, get_api_token

client = LinearGraphQLClient(token=get_api_token())
service = LinearService(client)
issue = service.read_issue('ENG-42')

Every option that names a team, project, state, cycle, milestone, label,
issue or user accepts either its canonical id or the human form; the
resolvers in :mod:`linearcli.resolvers` turn the latter into ids.
"""

from __future__ import annotations

from .config import CliConfig, load_config
from .env_auth import get_api_token
from .errors import (
    AmbiguousMatchError,
    LinearCliError,
    MalformedIdentifierError,
    NotFoundError,
)
from .graphql_client import BackendError, LinearGraphQLClient, TransportError
from .identifiers import is_canonical, parse_issue_identifier
from .services import LinearService

# Keep in sync with pyproject.toml
__version__ = "0.1.0"

__all__ = [
    "AmbiguousMatchError",
    "BackendError",
    "CliConfig",
    "LinearCliError",
    "LinearGraphQLClient",
    "LinearService",
    "MalformedIdentifierError",
    "NotFoundError",
    "TransportError",
    "__version__",
    "get_api_token",
    "is_canonical",
    "load_config",
    "parse_issue_identifier",
]
