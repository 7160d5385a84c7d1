"""
Text feature extraction for ChatBond
Tokenization, stopword-filtered themes and key topics
"""

import re
import logging
from collections import Counter
from typing import Iterable, List, Optional, Tuple

from . import config

logger = logging.getLogger(__name__)

_SPLIT_RE = re.compile(r"\W+")


def tokenize(text: str) -> List[str]:
    """Lowercase and split on non-word characters."""
    if not text:
        return []
    return [t for t in _SPLIT_RE.split(text.lower()) if t]


def word_frequencies(
    messages: Iterable[str],
    min_length: int = config.MIN_THEME_WORD_LENGTH,
    stopwords: Optional[Iterable[str]] = None,
) -> List[Tuple[str, int]]:
    """
    Word counts over all messages, most frequent first.

    Ties keep first-seen order so results are deterministic.
    """
    stop = frozenset(stopwords) if stopwords is not None else frozenset()
    counts = Counter()
    for text in messages:
        if not isinstance(text, str):
            continue
        counts.update(t for t in tokenize(text) if len(t) >= min_length and t not in stop)
    return counts.most_common()


def extract_top_keywords(
    messages: Iterable[str],
    top_n: int = config.TOP_THEMES,
    stopwords: Optional[Iterable[str]] = config.STOPWORDS,
    min_length: int = config.MIN_THEME_WORD_LENGTH,
) -> List[str]:
    """Top-N stopword-filtered words, used as dominant themes."""
    return [word for word, _ in word_frequencies(messages, min_length, stopwords)[:top_n]]


def extract_key_topics(messages: Iterable[str], top_n: int = 5) -> List[str]:
    """
    Lightweight topic list formatted as "word (count)".

    Unlike themes, stopwords are not removed here; only short words are.
    """
    return [f"{word} ({count})" for word, count in word_frequencies(messages)[:top_n]]
