"""Keyword extraction from a free-text search description."""

import asyncio
from collections.abc import Iterable
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from people_filter.exceptions import ModelProtocolError, ModelUnavailableError
from people_filter.llm.client import ModelClient
from people_filter.llm.replies import json_string_leaves, parse_reply, split_terms
from people_filter.schema import FlatKeywordSet, KeywordSet

SYSTEM_PROMPT = (
    "You are a recruiting analyst. You turn a search description into keywords "
    "used to filter people by their job titles."
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # null reads as absent, so the field default applies
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class KeywordGroup(_CamelModel):
    exact_terms: list[str] = Field(default_factory=list, description="Exact job titles")
    partial_terms: list[str] = Field(default_factory=list, description="Terms that may appear inside a title")
    role_types: list[str] = Field(default_factory=list, description="Types of roles")


class SeniorityLevels(_CamelModel):
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)


class KeywordReply(_CamelModel):
    positive_keywords: KeywordGroup = Field(default_factory=KeywordGroup)
    negative_keywords: KeywordGroup = Field(default_factory=KeywordGroup)
    skill_keywords: list[str] = Field(default_factory=list)
    seniority_levels: SeniorityLevels = Field(default_factory=SeniorityLevels)

    def to_keyword_set(self) -> KeywordSet:
        return KeywordSet(
            exact_titles={
                "include": self.positive_keywords.exact_terms,
                "exclude": self.negative_keywords.exact_terms,
            },
            partial_terms={
                "include": self.positive_keywords.partial_terms,
                "exclude": self.negative_keywords.partial_terms,
            },
            roles=self.positive_keywords.role_types,
            skills=self.skill_keywords,
            seniority={
                "include": self.seniority_levels.include,
                "exclude": self.seniority_levels.exclude,
            },
        )


def _build_prompt(description: str, titles: Iterable[str] | None) -> str:
    prompt = f"""Analyze this job search description to identify title-related keywords for filtering candidates:
"{description}"

Respond with a JSON object in this format:
{{
    "positiveKeywords": {{
        "exactTerms": ["exact job titles that are highly relevant"],
        "partialTerms": ["partial terms that should be included in job titles"],
        "roleTypes": ["types of roles that would be suitable"]
    }},
    "negativeKeywords": {{
        "exactTerms": ["exact job titles that should be excluded"],
        "partialTerms": ["partial terms in job titles that indicate unsuitability"],
        "roleTypes": ["types of roles that would be unsuitable"]
    }},
    "skillKeywords": ["key technical or professional skills to identify in titles"],
    "seniorityLevels": {{
        "include": ["seniority levels to include"],
        "exclude": ["seniority levels to exclude"]
    }}
}}

Terms in parentheses are explicit requirements from the searcher; always cover them.
Focus on job title filtering rather than general job descriptions."""

    if titles:
        listing = "\n".join(f"- {t}" for t in sorted(titles))
        prompt += f"""

These are the titles present in the candidate list. Take "exactTerms" verbatim from it:
{listing}"""

    return prompt + "\n\nReturn ONLY valid JSON."


class KeywordExtractor:
    """Builds the KeywordSet for one run with a single model request."""

    def __init__(self, client: ModelClient, max_tokens: int = 800, temperature: float = 0.2):
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def extract(
        self,
        description: str,
        titles: Iterable[str] | None = None,
        exclude_override: Iterable[str] | None = None,
    ) -> KeywordSet:
        """Never raises: model failures degrade to a looser KeywordSet."""
        keywords = await self._request(description, titles)

        override = list(exclude_override or [])
        if override:
            logger.info(f"Using caller-supplied exclude terms: {override}")
            keywords = keywords.with_excludes(override)

        logger.info(f"Structured keywords: {keywords.model_dump_json(indent=2)}")
        return keywords

    async def _request(self, description: str, titles: Iterable[str] | None) -> KeywordSet:
        try:
            raw = await self.client.complete(
                _build_prompt(description, titles),
                system=SYSTEM_PROMPT,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                schema=KeywordReply,
            )
        except ModelUnavailableError as e:
            logger.error(f"Keyword extraction unavailable, no title constraints applied: {e}")
            return KeywordSet()

        try:
            return parse_reply(raw, KeywordReply).to_keyword_set()
        except ModelProtocolError as e:
            logger.warning(f"Could not parse keyword reply, falling back to flat terms: {e}")
            logger.warning(f"Raw response: {raw}")
            terms = json_string_leaves(raw, skip_keys=("negative", "exclude"))
            return KeywordSet(partial_terms={"include": split_terms(raw) if terms is None else terms})


FLAT_POSITIVE_PROMPT = """Based on this job search description:
"{description}"

Generate a list of job titles, keywords, or terms that should be INCLUDED in the search results.
These are titles or terms that would indicate someone is SUITABLE for this role.

Return ONLY a comma-separated list of terms, with NO other text.
Each term should be a single word or phrase."""

FLAT_NEGATIVE_PROMPT = """Based on this job search description:
"{description}"

Generate a list of keywords that should be excluded from position titles.
These are titles or terms that would indicate someone is NOT suitable for this role.

Return ONLY a comma-separated list of terms, with NO other text.
Each term should be a single word or phrase."""


class FlatKeywordExtractor:
    """Positive and negative term lists from two concurrent requests."""

    def __init__(self, client: ModelClient, max_tokens: int = 150, temperature: float = 0.2):
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def extract(
        self,
        description: str,
        exclude_override: Iterable[str] | None = None,
    ) -> FlatKeywordSet:
        positive, negative = await asyncio.gather(
            self._terms(FLAT_POSITIVE_PROMPT.format(description=description)),
            self._terms(FLAT_NEGATIVE_PROMPT.format(description=description)),
        )
        override = list(exclude_override or [])
        keywords = FlatKeywordSet(positive=positive, negative=override or negative)
        logger.info(f"Final positive keywords: {list(keywords.positive)}")
        logger.info(f"Final negative keywords: {list(keywords.negative)}")
        return keywords

    async def _terms(self, prompt: str) -> list[str]:
        try:
            raw = await self.client.complete(
                prompt,
                system=SYSTEM_PROMPT,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except ModelUnavailableError as e:
            logger.error(f"Error generating keywords: {e}")
            return []
        return split_terms(raw)
