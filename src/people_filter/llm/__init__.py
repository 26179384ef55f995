"""Language-model backed stages."""

from people_filter.llm.client import ModelClient, OpenAIModelClient
from people_filter.llm.keywords import FlatKeywordExtractor, KeywordExtractor
from people_filter.llm.relevance import RelevanceFilter
from people_filter.llm.scorer import Scorer
from people_filter.llm.verifier import Verifier

__all__ = [
    "FlatKeywordExtractor",
    "KeywordExtractor",
    "ModelClient",
    "OpenAIModelClient",
    "RelevanceFilter",
    "Scorer",
    "Verifier",
]
