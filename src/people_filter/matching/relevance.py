"""Matching against a set of titles picked as relevant."""

import math
from collections.abc import Iterable

from loguru import logger

from people_filter.matching.overlap import shared_word_count
from people_filter.schema import MatchDecision, MatchReason


def titles_match(title: str, relevant: str) -> bool:
    """Exact, either-way substring, or enough shared words."""
    if title == relevant or relevant in title or title in relevant:
        return True
    needed = min(2, math.ceil(len(relevant.split()) / 2))
    return shared_word_count(title, relevant) >= needed


class RelevanceMatcher:
    def __init__(self, relevant_titles: Iterable[str]):
        self.relevant_titles = tuple(sorted({t.strip().lower() for t in relevant_titles if t.strip()}))
        if not self.relevant_titles:
            logger.warning("No relevant titles selected; every candidate will be excluded")

    def match(self, title: str | None) -> MatchDecision:
        if not title or not title.strip():
            return MatchDecision(included=False, reason=MatchReason.no_match)

        lower = title.strip().lower()
        for relevant in self.relevant_titles:
            if titles_match(lower, relevant):
                logger.debug(f"Title {title!r} matches relevant title {relevant!r}")
                return MatchDecision(included=True, reason=MatchReason.relevant_title, term=relevant)

        return MatchDecision(included=False, reason=MatchReason.no_match)
