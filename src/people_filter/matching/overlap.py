"""Word-level fuzzy matching helpers shared by the title matchers."""

import math

MIN_WORD_LENGTH = 3
PHRASE_OVERLAP_RATIO = 0.75


def significant_words(text: str) -> list[str]:
    """Whitespace-delimited words longer than two characters."""
    return [w for w in text.lower().split() if len(w) >= MIN_WORD_LENGTH]


def phrase_overlaps(phrase: str, title: str) -> bool:
    """True when most words of a multi-word phrase show up in the title.

    A phrase word counts when some title word contains it or is contained by
    it. Single-word phrases never match here; plain substring tests cover them.
    """
    phrase_words = significant_words(phrase)
    if len(phrase_words) < 2:
        return False
    title_words = significant_words(title)
    hits = sum(1 for pw in phrase_words if any(pw in tw or tw in pw for tw in title_words))
    return hits >= math.ceil(len(phrase_words) * PHRASE_OVERLAP_RATIO)


def shared_word_count(a: str, b: str) -> int:
    return len(set(significant_words(a)) & set(significant_words(b)))


def partial_word_hit(keyword: str, title: str) -> bool:
    """Any significant keyword word contained in, or containing, a title word."""
    title_words = significant_words(title)
    return any(kw in tw or tw in kw for kw in significant_words(keyword) for tw in title_words)
