"""Hot-word counting over chat history."""

from __future__ import annotations

import re
from collections import Counter
from typing import Container, Iterable, Mapping

MAX_MESSAGES = 10000
DEFAULT_MESSAGES = 1000
TOP_N = 20

_CHINESE = re.compile(r"^[一-龥]+$")


def load_stopwords(text: str) -> frozenset[str]:
    """Parse a newline-separated stopword list."""
    return frozenset(text.replace("\r", "").split("\n"))


def clamp_message_count(p: int) -> int:
    """Cap the requested message count, defaulting when it is zero."""
    if p > MAX_MESSAGES:
        return MAX_MESSAGES
    if p == 0:
        return DEFAULT_MESSAGES
    return p


def count_words(slices: Iterable[str], stopwords: Container[str]) -> Counter:
    """Count purely Chinese words that are not stopwords."""
    counts: Counter = Counter()
    for word in slices:
        word = word.strip()
        if _CHINESE.match(word) and word not in stopwords:
            counts[word] += 1
    return counts


def rank_by_word_count(freq: Mapping[str, int]) -> list[tuple[str, int]]:
    """Return (word, count) pairs, most frequent first."""
    return sorted(freq.items(), key=lambda pair: (-pair[1], pair[0]))