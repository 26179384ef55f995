from collections.abc import Iterable
from enum import StrEnum
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Candidate = dict[str, str]


def normalize_terms(values: Iterable[str] | str | None) -> tuple[str, ...]:
    """Strip, lowercase and de-duplicate terms, keeping first-seen order."""
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    terms = (str(v).strip().lower() for v in values if v is not None)
    return tuple(dict.fromkeys(t for t in terms if t))


class MatchReason(StrEnum):
    exact_include = "exact-include"
    exact_exclude = "exact-exclude"
    partial_term = "partial-term"
    seniority = "seniority"
    skill = "skill"
    word_overlap = "word-overlap"
    relevant_title = "relevant-title"
    unconstrained = "unconstrained"
    no_match = "no-match"


class MatchDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    included: bool
    reason: MatchReason
    term: str | None = None


class TermSplit(BaseModel):
    """Include/exclude pair. Include wins where the two overlap."""

    model_config = ConfigDict(frozen=True)

    include: frozenset[str] = frozenset()
    exclude: frozenset[str] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        include = frozenset(normalize_terms(data.get("include")))
        exclude = frozenset(normalize_terms(data.get("exclude")))
        conflicts = include & exclude
        if conflicts:
            logger.debug(f"Keyword conflicts resolved in favour of include: {sorted(conflicts)}")
        return {"include": include, "exclude": exclude - conflicts}


class KeywordSet(BaseModel):
    """Structured, lowercase view of what a search description asks for."""

    model_config = ConfigDict(frozen=True)

    exact_titles: TermSplit = Field(default_factory=TermSplit)
    partial_terms: TermSplit = Field(default_factory=TermSplit)
    roles: frozenset[str] = frozenset()
    skills: frozenset[str] = frozenset()
    seniority: TermSplit = Field(default_factory=TermSplit)

    @field_validator("roles", "skills", mode="before")
    @classmethod
    def _lowercase(cls, v: Any) -> frozenset[str]:
        return frozenset(normalize_terms(v))

    @property
    def has_positive_signal(self) -> bool:
        return bool(self.exact_titles.include or self.skills or self.partial_terms.include)

    def with_excludes(self, terms: Iterable[str]) -> "KeywordSet":
        """Replace every exclude set with caller-supplied partial exclude terms."""
        return KeywordSet(
            exact_titles={"include": self.exact_titles.include},
            partial_terms={"include": self.partial_terms.include, "exclude": terms},
            roles=self.roles,
            skills=self.skills,
            seniority={"include": self.seniority.include},
        )


class FlatKeywordSet(BaseModel):
    """Flat positive/negative term lists.

    Negatives overlapping a positive (either containing the other) are dropped.
    """

    model_config = ConfigDict(frozen=True)

    positive: tuple[str, ...] = ()
    negative: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _resolve_conflicts(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        positive = normalize_terms(data.get("positive"))
        negative = normalize_terms(data.get("negative"))
        kept = tuple(n for n in negative if not any(p in n or n in p for p in positive))
        if len(kept) != len(negative):
            dropped = [n for n in negative if n not in kept]
            logger.info(f"Found keyword conflicts (positive takes precedence): {dropped}")
        return {"positive": positive, "negative": kept}


class MatchResult(BaseModel):
    candidate: Candidate
    rating: int | None = None
    verified: bool | None = None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = dict(self.candidate)
        if self.rating is not None:
            record["match_rating"] = self.rating
        return record
