"""Deterministic title matching against a structured KeywordSet."""

from collections.abc import Iterable

from loguru import logger

from people_filter.matching.overlap import phrase_overlaps
from people_filter.schema import KeywordSet, MatchDecision, MatchReason


def _first_contained(title: str, terms: Iterable[str]) -> str | None:
    return next((t for t in sorted(terms) if t in title), None)


def match_title(title: str | None, keywords: KeywordSet) -> MatchDecision:
    """Decide inclusion of a single title. First rule that fires wins.

    Exclusions are checked before inclusions: excluded title (equal to or
    contained in the title), excluded partial term, excluded seniority level.
    Then an exact included title.
    Finally the positive groups (skills, partial include terms), by substring
    and then by word overlap for multi-word terms; empty groups
    place no constraint, and a set with no positive group at all lets every
    non-excluded title through.
    """
    if not title or not title.strip():
        return MatchDecision(included=False, reason=MatchReason.no_match)

    lower = title.strip().lower()

    if term := _first_contained(lower, keywords.exact_titles.exclude):
        return MatchDecision(included=False, reason=MatchReason.exact_exclude, term=term)

    if term := _first_contained(lower, keywords.partial_terms.exclude):
        return MatchDecision(included=False, reason=MatchReason.partial_term, term=term)

    if level := _first_contained(lower, keywords.seniority.exclude):
        return MatchDecision(included=False, reason=MatchReason.seniority, term=level)

    if lower in keywords.exact_titles.include:
        return MatchDecision(included=True, reason=MatchReason.exact_include, term=lower)

    if not keywords.has_positive_signal:
        return MatchDecision(included=True, reason=MatchReason.unconstrained)

    if skill := _first_contained(lower, keywords.skills):
        return MatchDecision(included=True, reason=MatchReason.skill, term=skill)

    if term := _first_contained(lower, keywords.partial_terms.include):
        return MatchDecision(included=True, reason=MatchReason.partial_term, term=term)

    for phrase in sorted(keywords.skills | keywords.partial_terms.include):
        if phrase_overlaps(phrase, lower):
            return MatchDecision(included=True, reason=MatchReason.word_overlap, term=phrase)

    return MatchDecision(included=False, reason=MatchReason.no_match)


class TitleMatcher:
    """Applies ``match_title`` with a fixed KeywordSet and logs each decision."""

    def __init__(self, keywords: KeywordSet):
        self.keywords = keywords

    def match(self, title: str | None) -> MatchDecision:
        decision = match_title(title, self.keywords)
        if decision.included:
            logger.debug(
                f"Title included ({decision.reason}): {title!r}"
                f"{f' via {decision.term!r}' if decision.term else ''}"
                f" | role hint: {self._hint(title, self.keywords.roles)}"
                f" | seniority hint: {self._hint(title, self.keywords.seniority.include)}"
            )
        else:
            logger.debug(f"Title excluded ({decision.reason}): {title!r}")
        return decision

    @staticmethod
    def _hint(title: str | None, terms: frozenset[str]) -> bool | None:
        # roles and seniority.include are advisory, never gating
        if not terms:
            return None
        return _first_contained((title or "").lower(), terms) is not None
