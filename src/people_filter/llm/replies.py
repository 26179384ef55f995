"""Parsing helpers for model replies."""

import json
import re
from collections.abc import Iterable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from people_filter.exceptions import ModelProtocolError

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")
_DELIMITERS = re.compile(r"[\n,]")

M = TypeVar("M", bound=BaseModel)


def strip_code_fence(text: str) -> str:
    return _FENCE.sub("", text.strip())


def parse_reply(raw: str, schema: type[M]) -> M:
    """Validate a JSON reply against ``schema``.

    Raises:
        ModelProtocolError: reply is not valid JSON or does not fit the schema.
    """
    try:
        return schema.model_validate_json(strip_code_fence(raw))
    except ValidationError as e:
        raise ModelProtocolError(f"Reply does not match {schema.__name__}: {e.error_count()} error(s)", raw) from e


def split_terms(raw: str) -> list[str]:
    """Read a reply as a comma/newline separated term list, lowercased."""
    terms = (t.strip().strip("\"'").strip().lower() for t in _DELIMITERS.split(raw))
    return list(dict.fromkeys(t for t in terms if t and not t.startswith(("{", "}"))))


def json_string_leaves(raw: str, skip_keys: Iterable[str] = ()) -> list[str] | None:
    """Every string value of a JSON reply, lowercased; None when it is not JSON.

    Values under an object key containing any of ``skip_keys``
    (case-insensitive) are left out.
    """
    try:
        data = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError:
        return None

    skip = [k.lower() for k in skip_keys]
    leaves: list[str] = []

    def walk(node: Any) -> None:
        match node:
            case str():
                leaves.append(node)
            case dict():
                for key, value in node.items():
                    if not any(s in str(key).lower() for s in skip):
                        walk(value)
            case list():
                for item in node:
                    walk(item)

    walk(data)
    return list(dict.fromkeys(t for t in (leaf.strip().lower() for leaf in leaves) if t))
