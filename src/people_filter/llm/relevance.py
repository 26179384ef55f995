"""Pick the relevant titles out of those actually present in the data."""

import re
from collections.abc import Iterable

from loguru import logger
from pydantic import BaseModel, Field

from people_filter.exceptions import ModelProtocolError, ModelUnavailableError
from people_filter.llm.client import ModelClient
from people_filter.llm.replies import parse_reply, split_terms
from people_filter.matching.overlap import partial_word_hit
from people_filter.schema import normalize_terms

SYSTEM_PROMPT = (
    "You are a recruiting analyst. You pick job titles relevant to a search "
    "from a fixed list and never invent titles."
)

MIN_RELEVANT = 3
MAX_ESCALATED = 15

_PARENTHESISED = re.compile(r"\(([^()]*)\)")
_WORD = re.compile(r"[a-z0-9]+")


class TitleSelection(BaseModel):
    titles: list[str] = Field(description="Titles copied verbatim from the supplied list")


class KeywordExpansion(BaseModel):
    keywords: list[str] = Field(description="Skills, role types, domains and synonyms")


def directive_terms(description: str) -> list[str]:
    """Terms listed inside parentheses, e.g. ``(CRO, UX, Product)``."""
    terms: list[str] = []
    for group in _PARENTHESISED.findall(description):
        terms.extend(group.split(","))
    return list(normalize_terms(terms))


def acronym(title: str) -> str:
    return "".join(w[0] for w in _WORD.findall(title.lower()))


def directive_matches(directives: Iterable[str], titles: Iterable[str]) -> set[str]:
    """Titles containing a directive term, or whose initials spell one."""
    directives = list(directives)
    matched = set()
    for title in titles:
        initials = acronym(title)
        for term in directives:
            if term in title or (len(term) >= 2 and term.isalpha() and term == initials):
                matched.add(title)
                break
    return matched


def score_titles(keywords: Iterable[str], directives: Iterable[str], titles: Iterable[str]) -> list[tuple[str, float]]:
    """Keyword hit score per title, best first; directive terms count double."""
    directive_set = set(directives)
    terms = list(dict.fromkeys([*normalize_terms(keywords), *directive_set]))

    scored = []
    for title in titles:
        score = 0.0
        for term in terms:
            weight = 2 if term in directive_set else 1
            if term in title:
                score += weight
            elif partial_word_hit(term, title):
                score += 0.5 * weight
        scored.append((title, score))

    return sorted(scored, key=lambda item: (-item[1], item[0]))


class RelevanceFilter:
    """Narrows the distinct candidate titles down to the relevant ones.

    The model chooses from the known titles only; anything it returns that is
    not in the data is dropped. Explicit directive terms from the description
    are matched locally as well. When fewer than ``MIN_RELEVANT`` titles
    survive, a second request expands the keywords and the best scoring
    titles are added.
    """

    def __init__(self, client: ModelClient, max_tokens: int = 1500, temperature: float = 0.2):
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def select(self, description: str, titles: Iterable[str]) -> frozenset[str]:
        known = set(normalize_terms(titles))
        if not known:
            return frozenset()

        directives = directive_terms(description)
        if directives:
            logger.info(f"Explicit directive terms: {directives}")

        try:
            chosen = await self._choose(description, directives, known)
        except ModelUnavailableError as e:
            fallback = {t for t in known if any(d in t for d in directives)}
            logger.warning(f"Title selection unavailable ({e}); {len(fallback)} title(s) matched directive terms")
            return frozenset(fallback)

        relevant = chosen | directive_matches(directives, known)

        if len(relevant) < MIN_RELEVANT:
            logger.info(f"Only {len(relevant)} relevant title(s), expanding keywords")
            relevant |= await self._escalate(description, directives, known)

        logger.info(f"Selected {len(relevant)} relevant title(s) out of {len(known)}")
        return frozenset(relevant)

    async def _choose(self, description: str, directives: list[str], known: set[str]) -> set[str]:
        listing = "\n".join(f"- {t}" for t in sorted(known))
        prompt = f"""Search description:
"{description}"

Explicit terms from the searcher (highest priority): {", ".join(directives) if directives else "none"}

From the list below, select the job titles most relevant to the search.
Prioritise titles matching the explicit terms.
Return only titles that appear in the list, copied exactly.

{listing}

Return ONLY valid JSON: {{"titles": [...]}}"""

        raw = await self.client.complete(
            prompt,
            system=SYSTEM_PROMPT,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            schema=TitleSelection,
        )
        try:
            suggested = normalize_terms(parse_reply(raw, TitleSelection).titles)
        except ModelProtocolError as e:
            logger.warning(f"Title selection reply not JSON, reading it as a list: {e}")
            suggested = tuple(split_terms(raw))

        invented = [t for t in suggested if t not in known]
        if invented:
            logger.debug(f"Discarded {len(invented)} title(s) not present in the data: {invented}")
        return {t for t in suggested if t in known}

    async def _escalate(self, description: str, directives: list[str], known: set[str]) -> set[str]:
        prompt = f"""Search description:
"{description}"

Explicit terms from the searcher: {", ".join(directives) if directives else "none"}

List keywords that would appear in job titles of suitable people: skills, role types,
domains and synonyms of the explicit terms.

Return ONLY valid JSON: {{"keywords": [...]}}"""

        try:
            raw = await self.client.complete(
                prompt,
                system=SYSTEM_PROMPT,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                schema=KeywordExpansion,
            )
        except ModelUnavailableError as e:
            logger.warning(f"Keyword expansion unavailable, scoring with directive terms only: {e}")
            raw = ""

        try:
            keywords = parse_reply(raw, KeywordExpansion).keywords if raw else []
        except ModelProtocolError:
            keywords = split_terms(raw)
        logger.debug(f"Expanded keywords: {keywords}")

        scored = score_titles(keywords, directives, known)
        return {title for title, score in scored[:MAX_ESCALATED] if score > 0}
