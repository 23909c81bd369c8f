"""Generic identifier resolution and disambiguation.

A :class:`Resolver` turns a human token into exactly one canonical id:

1. canonical tokens are returned untouched, without a request;
2. when the resolver is scope-aware and the context supplies a scope, the
   scoped query runs first;
3. the global query runs when there is no scope, or (if the resolver allows
   it) when the scoped query came back empty;
4. the tie-break picks a winner, or the candidates are reported as
   ambiguous.

Each entity kind supplies its own queries and tie-break; see
:mod:`linearcli.resolvers`.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .errors import AmbiguousMatchError, NotFoundError
from .identifiers import is_canonical as _is_canonical_id
from .logging import get_logger
from .models import ResolutionCandidate, ResolutionContext

GlobalQuery = Callable[[str], list[ResolutionCandidate]]
ScopedQuery = Callable[[str, str], list[ResolutionCandidate]]
TieBreak = Callable[[Sequence[ResolutionCandidate]], "ResolutionCandidate | None"]


def single_only(candidates: Sequence[ResolutionCandidate]) -> ResolutionCandidate | None:
    """Accept a lone candidate; anything else is left undecided."""
    return candidates[0] if len(candidates) == 1 else None


def first_wins(candidates: Sequence[ResolutionCandidate]) -> ResolutionCandidate | None:
    return candidates[0] if candidates else None


def prefer_flags(*flags: str) -> TieBreak:
    """Build a tie-break preferring candidates carrying ``flags``, in order.

    At each level exactly one flagged candidate wins; two or more flagged
    candidates at the same level leave the choice undecided. When no flag
    applies the lone remaining candidate wins.
    """

    def tie_break(candidates: Sequence[ResolutionCandidate]) -> ResolutionCandidate | None:
        for flag in flags:
            flagged = [c for c in candidates if flag in c.flags]
            if len(flagged) == 1:
                return flagged[0]
            if flagged:
                return None
        return single_only(candidates)

    tie_break.__name__ = f"prefer_{'_'.join(flags)}"
    return tie_break


@dataclass(frozen=True)
class QueryChain:
    """Global queries tried in order; the first non-empty result wins."""

    queries: tuple[GlobalQuery, ...]

    def run(self, token: str) -> tuple[list[ResolutionCandidate], int]:
        """Return the first non-empty result and how many queries ran."""
        ran = 0
        for query in self.queries:
            ran += 1
            candidates = query(token)
            if candidates:
                return candidates, ran
        return [], ran

    def __call__(self, token: str) -> list[ResolutionCandidate]:
        return self.run(token)[0]


def chain_queries(*queries: GlobalQuery) -> QueryChain:
    return QueryChain(tuple(queries))


def disambiguate(
    entity_kind: str,
    token: str,
    candidates: Sequence[ResolutionCandidate],
    tie_break: TieBreak,
    *,
    suggestion: str,
    context: str | None = None,
) -> ResolutionCandidate:
    if not candidates:
        raise NotFoundError(entity_kind, token, context)
    chosen = tie_break(candidates)
    if chosen is None:
        raise AmbiguousMatchError(entity_kind, token, candidates, suggestion)
    return chosen


@dataclass(frozen=True)
class Resolver:
    entity_kind: str
    global_query: GlobalQuery
    scoped_query: ScopedQuery | None = None
    tie_break: TieBreak = single_only
    suggestion: str = "use the ID instead"
    is_canonical: Callable[[object], bool] = _is_canonical_id
    fallback_to_global: bool = True
    scope_field: str | None = None

    def search(self, token: str, scope: str | None = None) -> tuple[list[ResolutionCandidate], int]:
        """Return the candidates for ``token`` and the number of requests made."""
        round_trips = 0
        if scope and self.scoped_query is not None:
            candidates = self.scoped_query(token, scope)
            round_trips += 1
            if candidates or not self.fallback_to_global:
                return candidates, round_trips
        if isinstance(self.global_query, QueryChain):
            candidates, ran = self.global_query.run(token)
            return candidates, round_trips + ran
        return self.global_query(token), round_trips + 1

    def resolve_candidate(
        self, token: str, context: ResolutionContext | None = None
    ) -> ResolutionCandidate:
        if self.is_canonical(token):
            get_logger().log_resolution(self.entity_kind, token, "canonical")
            return ResolutionCandidate(id=token, display_name=token)

        scope = context.scope_for(self.scope_field) if context else None
        candidates, round_trips = self.search(token, scope)
        not_found_context = None
        if scope and not self.fallback_to_global:
            not_found_context = f"for {self.scope_field} {scope}"
        try:
            chosen = disambiguate(
                self.entity_kind,
                token,
                candidates,
                self.tie_break,
                suggestion=self.suggestion,
                context=not_found_context,
            )
        except (NotFoundError, AmbiguousMatchError) as exc:
            get_logger().log_resolution(
                self.entity_kind, token, exc.category, round_trips,
                candidates=len(candidates),
            )
            raise
        get_logger().log_resolution(self.entity_kind, token, "resolved", round_trips)
        return chosen

    def resolve(self, token: str, context: ResolutionContext | None = None) -> str:
        return self.resolve_candidate(token, context).id


__all__ = [
    "GlobalQuery",
    "QueryChain",
    "Resolver",
    "ScopedQuery",
    "TieBreak",
    "chain_queries",
    "disambiguate",
    "first_wins",
    "prefer_flags",
    "single_only",
]
