import string

import pytest
from hypothesis import given
from hypothesis import strategies as st

from people_filter.matching.overlap import (
    partial_word_hit,
    phrase_overlaps,
    shared_word_count,
    significant_words,
)

LONG_WORDS = st.text(alphabet=string.ascii_lowercase, min_size=3, max_size=10)


def test_significant_words_drop_short_words():
    assert significant_words("Head of UX and Growth") == ["head", "and", "growth"]


@pytest.mark.parametrize("phrase", ["conversion", "ux designer", "vp of ux"])
def test_single_significant_word_never_overlaps(phrase):
    # fewer than two words longer than two characters
    assert not phrase_overlaps(phrase, phrase + " lead")


@pytest.mark.parametrize("title,expected", [
    ("growth marketing manager", True),       # 3 of 4
    ("marketing manager", False),             # 2 of 4
    ("senior growth manager", True),          # 3 of 4
    ("growth marketing lead", False),         # 2 of 4
])
def test_four_word_phrase_needs_three_words(title, expected):
    assert phrase_overlaps("senior growth marketing manager", title) is expected


@pytest.mark.parametrize("title,expected", [
    ("optimization of conversion", True),     # 2 of 2
    ("conversion lead", False),               # 1 of 2
])
def test_two_word_phrase_needs_both_words(title, expected):
    assert phrase_overlaps("conversion optimization", title) is expected


def test_containment_works_both_ways():
    # "optim" is contained in "optimization"; "conversions" contains "conversion"
    assert phrase_overlaps("conversion optim", "conversions optimization")


@given(st.lists(LONG_WORDS, min_size=2, max_size=6))
def test_phrase_overlaps_itself(words):
    phrase = " ".join(words)
    assert phrase_overlaps(phrase, phrase)


def test_shared_word_count():
    assert shared_word_count("Head of Product Design", "product design lead") == 2


def test_partial_word_hit():
    assert partial_word_hit("marketing analytics", "market analyst")
    assert not partial_word_hit("marketing", "sales rep")
