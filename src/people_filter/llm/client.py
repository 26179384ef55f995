"""Language-model client used by every remote stage."""

import json
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

import openai
from loguru import logger
from openai import AsyncOpenAI
from pydantic import BaseModel

from people_filter.config.settings import LLMConfig
from people_filter.exceptions import ModelUnavailableError


class ModelClient(Protocol):
    """Single-shot request: role instruction plus task prompt, text back."""

    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        max_tokens: int,
        temperature: float,
        schema: type[BaseModel] | None = None,
    ) -> str: ...


class OpenAIModelClient:
    """ModelClient backed by the OpenAI Responses API."""

    def __init__(
        self,
        config: LLMConfig,
        profile_log: Path | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.model = config.model_name
        self.client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )
        self.profile_log = profile_log

    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        max_tokens: int,
        temperature: float,
        schema: type[BaseModel] | None = None,
    ) -> str:
        kwargs: dict[str, Any] = {}
        if schema is not None:
            kwargs["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": schema.__name__,
                    "schema": schema.model_json_schema(by_alias=True),
                    "strict": False,
                }
            }

        t0 = time.perf_counter()
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                max_output_tokens=max_tokens,
                temperature=temperature,
                **kwargs,
            )
        except openai.OpenAIError as e:
            logger.error(f"Model call failed: {e}")
            raise ModelUnavailableError(str(e)) from e
        duration = time.perf_counter() - t0

        if self.profile_log is not None:
            self._profile(response, duration, schema)

        return (response.output_text or "").strip()

    def _profile(self, response: Any, duration: float, schema: type[BaseModel] | None) -> None:
        usage = getattr(response, "usage", None)
        entry = {
            "ts": datetime.now(UTC).isoformat(),
            "model": self.model,
            "schema": schema.__name__ if schema else None,
            "duration_s": round(duration, 3),
            "input_tokens": getattr(usage, "input_tokens", None),
            "output_tokens": getattr(usage, "output_tokens", None),
        }
        self.profile_log.parent.mkdir(parents=True, exist_ok=True)
        with self.profile_log.open("a") as f:
            f.write(json.dumps(entry) + "\n")
