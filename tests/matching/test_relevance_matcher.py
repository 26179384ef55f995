import pytest

from people_filter.matching import RelevanceMatcher
from people_filter.matching.relevance import titles_match
from people_filter.schema import MatchReason


@pytest.mark.parametrize("title,relevant,expected", [
    ("growth lead", "growth lead", True),
    ("head of growth", "growth", True),                              # relevant inside title
    ("growth", "head of growth", True),                              # title inside relevant
    ("optimization manager, conversion", "conversion rate optimization manager", True),  # 2 shared words
    ("sales manager", "conversion rate optimization manager", False),  # 1 shared word
    ("product owner", "product designer", True),                       # two-word title needs 1 shared word
    ("sales rep", "product designer", False),
])
def test_titles_match(title, relevant, expected):
    assert titles_match(title, relevant) is expected


def test_matcher_includes_relevant_titles():
    matcher = RelevanceMatcher({"Head of Conversion", "ux designer"})
    decision = matcher.match("Senior UX Designer")
    assert decision.included
    assert decision.reason == MatchReason.relevant_title
    assert decision.term == "ux designer"


def test_matcher_excludes_empty_and_unrelated_titles():
    matcher = RelevanceMatcher({"head of conversion"})
    assert not matcher.match(None).included
    assert not matcher.match("Accountant").included


def test_empty_relevant_set_excludes_everything():
    assert not RelevanceMatcher(set()).match("Head of Conversion").included
