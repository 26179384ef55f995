import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel

Reply = str | Exception | Callable[[str], str | Exception]


@dataclass
class Call:
    prompt: str
    system: str
    schema: type[BaseModel] | None


@dataclass
class FakeModelClient:
    """ModelClient double. The first marker found in the prompt picks the reply."""

    replies: dict[str, Reply] = field(default_factory=dict)
    default: Reply = ""
    delay: float = 0.0
    calls: list[Call] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0

    async def complete(self, prompt, *, system, max_tokens, temperature, schema=None):
        self.calls.append(Call(prompt, system, schema))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            reply = next((r for marker, r in self.replies.items() if marker in prompt), self.default)
            if callable(reply):
                reply = reply(prompt)
            if isinstance(reply, Exception):
                raise reply
            return reply
        finally:
            self.in_flight -= 1

    def prompts_with(self, marker: str) -> list[str]:
        return [c.prompt for c in self.calls if marker in c.prompt]


@pytest.fixture(scope="session")
def make_client():
    return FakeModelClient
