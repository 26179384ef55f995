"""Flat keyword strategy: one positive and one negative term list."""

from loguru import logger

from people_filter.matching.overlap import phrase_overlaps
from people_filter.schema import FlatKeywordSet, MatchDecision, MatchReason


class FlatTitleMatcher:
    """Negative substring first, then positive substring, then word overlap."""

    def __init__(self, keywords: FlatKeywordSet):
        self.keywords = keywords

    def match(self, title: str | None) -> MatchDecision:
        if not title or not title.strip():
            return MatchDecision(included=False, reason=MatchReason.no_match)

        lower = title.strip().lower()

        for negative in self.keywords.negative:
            if negative in lower:
                logger.debug(f"Title excluded by negative keyword: {title!r} contains {negative!r}")
                return MatchDecision(included=False, reason=MatchReason.partial_term, term=negative)

        for positive in self.keywords.positive:
            if positive in lower:
                logger.debug(f"Title matched by positive keyword: {title!r} contains {positive!r}")
                return MatchDecision(included=True, reason=MatchReason.partial_term, term=positive)
            if phrase_overlaps(positive, lower):
                logger.debug(f"Title matched by partial positive keyword: {title!r} ~ {positive!r}")
                return MatchDecision(included=True, reason=MatchReason.word_overlap, term=positive)

        return MatchDecision(included=False, reason=MatchReason.no_match)
