"""0-100 relevance rating of a single candidate."""

import re

from loguru import logger

from people_filter.exceptions import ModelError, ModelProtocolError
from people_filter.llm.client import ModelClient
from people_filter.schema import Candidate

SYSTEM_PROMPT = "You rate how well a person fits a search description. You answer with a number only."

_LEADING_INT = re.compile(r"\s*(-?\d+)")


def parse_rating(raw: str) -> int:
    """Leading integer of the reply, clamped to 0-100.

    Raises:
        ModelProtocolError: the reply does not start with a number.
    """
    found = _LEADING_INT.match(raw)
    if not found:
        raise ModelProtocolError(f"Expected a rating, got {raw!r}", raw)
    return max(0, min(100, int(found.group(1))))


class Scorer:
    def __init__(self, client: ModelClient, max_tokens: int = 16, temperature: float = 0.1):
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def rate(self, candidate: Candidate, description: str) -> int:
        """Rating for ``candidate``; 0 whenever the model cannot provide one."""
        prompt = f"""Rate how well this person matches the following description (0-100):
Person: {candidate.get("name", "")}, Title: {candidate.get("title", "")}, Experience: {candidate.get("experience", "")}
Search Description: {description}
Provide only a number between 0-100."""

        try:
            raw = await self.client.complete(
                prompt,
                system=SYSTEM_PROMPT,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            rating = parse_rating(raw)
        except ModelError as e:
            logger.warning(f"Rating failed for {candidate.get('title', 'Unknown')!r}, using 0: {e}")
            return 0

        logger.debug(f"Rated {candidate.get('name', 'Unknown')!r} ({candidate.get('title', '')!r}): {rating}")
        return rating
