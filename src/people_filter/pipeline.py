"""Candidate filtering pipeline.

Runs in two phases:
  - title stage: local keyword matching on every candidate (no model calls)
  - remote stage: scoring and verification of the survivors, concurrently
"""

import asyncio
from collections.abc import Iterable

from loguru import logger

from people_filter.config import PipelineOptions, Strategy
from people_filter.exceptions import ConfigurationError, ModelError, VerificationFailed
from people_filter.llm import (
    FlatKeywordExtractor,
    KeywordExtractor,
    ModelClient,
    RelevanceFilter,
    Scorer,
    Verifier,
)
from people_filter.matching import FlatTitleMatcher, Matcher, RelevanceMatcher, TitleMatcher
from people_filter.schema import Candidate, MatchResult


def distinct_titles(candidates: Iterable[Candidate]) -> set[str]:
    return {title for c in candidates if (title := (c.get("title") or "").strip().lower())}


class Pipeline:
    """Filters candidates against a search description."""

    def __init__(self, client: ModelClient, options: PipelineOptions | None = None):
        self.options = options or PipelineOptions()
        self.keyword_extractor = KeywordExtractor(client)
        self.flat_extractor = FlatKeywordExtractor(client)
        self.relevance_filter = RelevanceFilter(client)
        self.scorer = Scorer(client)
        self.verifier = Verifier(client, tolerate_errors=self.options.tolerate_verification_errors)

    async def build_matcher(self, description: str, titles: set[str]) -> Matcher:
        """Derive the keywords for this run. Called once per run."""
        match self.options.strategy:
            case Strategy.relevance:
                relevant = await self.relevance_filter.select(description, titles)
                return RelevanceMatcher(relevant)
            case Strategy.flat:
                flat = await self.flat_extractor.extract(description, self.options.exclude_terms)
                return FlatTitleMatcher(flat)
            case _:
                keywords = await self.keyword_extractor.extract(description, titles, self.options.exclude_terms)
                return TitleMatcher(keywords)

    async def run(self, candidates: Iterable[Candidate], description: str) -> list[MatchResult]:
        """Filter ``candidates``; results keep the input order.

        Raises:
            ConfigurationError: blank search description.
            VerificationFailed: the verifier failed for some candidates and
                errors are not tolerated. Raised after every candidate ran.
        """
        if not description or not description.strip():
            raise ConfigurationError("A search description is required")

        candidates = list(candidates)
        titles = distinct_titles(candidates)
        logger.info(f"Processing {len(candidates)} people ({len(titles)} unique titles)...")

        matcher = await self.build_matcher(description, titles)
        survivors = [c for c in candidates if matcher.match(c.get("title")).included]
        logger.info(f"Title stage: {len(survivors)}/{len(candidates)} passed")

        if not (self.options.use_scorer or self.options.use_verifier):
            return [MatchResult(candidate=c) for c in survivors]

        total = len(survivors)
        failures: list[tuple[Candidate, ModelError]] = []
        semaphore = asyncio.Semaphore(self.options.max_concurrency)

        async def judge_one(candidate: Candidate, index: int) -> MatchResult | None:
            async with semaphore:
                logger.debug(f"[{index}/{total}] Judging: {candidate.get('title')}")

                rating = None
                if self.options.use_scorer:
                    rating = await self.scorer.rate(candidate, description)
                    if rating < self.options.min_rating:
                        return None

                verified = None
                if self.options.use_verifier:
                    try:
                        verified = await self.verifier.verify(candidate, description)
                    except ModelError as e:
                        logger.error(f"Verification failed for {candidate.get('title')!r}: {e}")
                        failures.append((candidate, e))
                        return None
                    if not verified:
                        return None

                return MatchResult(candidate=candidate, rating=rating, verified=verified)

        outcomes = await asyncio.gather(*(judge_one(c, i + 1) for i, c in enumerate(survivors)))
        results = [r for r in outcomes if r is not None]

        logger.info(f"Search complete. Found {len(results)} matches out of {total} title matches")
        if failures:
            raise VerificationFailed(failures, results)
        return results


async def filter_candidates(
    candidates: Iterable[Candidate],
    description: str,
    options: PipelineOptions | None = None,
    *,
    client: ModelClient,
) -> list[MatchResult]:
    return await Pipeline(client, options).run(candidates, description)
