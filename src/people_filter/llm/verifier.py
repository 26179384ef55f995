"""Binary MATCH / NO_MATCH judgment of a single candidate."""

import json

from loguru import logger

from people_filter.exceptions import ModelError, ModelProtocolError
from people_filter.llm.client import ModelClient
from people_filter.schema import Candidate

SYSTEM_PROMPT = 'You verify candidate matches. You answer with exactly "MATCH" or "NO_MATCH".'

MATCH = "MATCH"
NO_MATCH = "NO_MATCH"


class Verifier:
    """Asks the model for a strict MATCH/NO_MATCH verdict.

    Any other reply raises ModelProtocolError. With ``tolerate_errors`` set,
    protocol and transport errors are logged and read as NO_MATCH so a batch
    keeps running.
    """

    def __init__(
        self,
        client: ModelClient,
        tolerate_errors: bool = False,
        max_tokens: int = 16,
        temperature: float = 0.1,
    ):
        self.client = client
        self.tolerate_errors = tolerate_errors
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def verify(self, candidate: Candidate, description: str) -> bool:
        prompt = f"""Verify if this person is a good match for the following description:
Person: {json.dumps(candidate, ensure_ascii=False)}
Search Description: {description}
Respond with either "{MATCH}" or "{NO_MATCH}" only."""

        try:
            raw = await self.client.complete(
                prompt,
                system=SYSTEM_PROMPT,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            if raw.strip() not in (MATCH, NO_MATCH):
                raise ModelProtocolError(f'Invalid AI response: "{raw}". Expected either "{MATCH}" or "{NO_MATCH}"', raw)
        except ModelError as e:
            if not self.tolerate_errors:
                raise
            logger.warning(f"Verification failed for {candidate.get('title', 'Unknown')!r}, treating as no match: {e}")
            return False

        verdict = raw.strip() == MATCH
        logger.debug(f"Verified {candidate.get('name', 'Unknown')!r}: {MATCH if verdict else NO_MATCH}")
        return verdict
