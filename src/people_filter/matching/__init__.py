"""Local, deterministic title matching."""

from typing import Protocol

from people_filter.matching.flat import FlatTitleMatcher
from people_filter.matching.relevance import RelevanceMatcher
from people_filter.matching.title import TitleMatcher, match_title
from people_filter.schema import MatchDecision


class Matcher(Protocol):
    def match(self, title: str | None) -> MatchDecision: ...


__all__ = ["FlatTitleMatcher", "Matcher", "RelevanceMatcher", "TitleMatcher", "match_title"]
