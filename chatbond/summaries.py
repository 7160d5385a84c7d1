"""
Segment summaries for ChatBond
Attaches text summaries to conversation segments with a keyword fallback
"""

import logging
from dataclasses import replace
from typing import List, Optional
import pandas as pd

from .config import AnalyzerConfig, get_default_config
from .segmenter import ConversationSegment
from .text_features import extract_top_keywords

logger = logging.getLogger(__name__)


def fallback_summary(messages: List[str], config: Optional[AnalyzerConfig] = None) -> str:
    """Deterministic summary from the most frequent non-stopword tokens."""
    config = config or get_default_config()
    topics = extract_top_keywords(
        messages,
        top_n=config.fallback_summary_topics,
        stopwords=config.stopwords,
        min_length=config.min_theme_word_length,
    )
    if not topics:
        return f"Conversation with {len(messages)} messages"
    return f"Discussion about: {', '.join(topics)}"


def summarize_messages(
    messages: List[str],
    summarizer=None,
    config: Optional[AnalyzerConfig] = None,
) -> str:
    """Use the summarizer when it produces something, else the fallback."""
    if summarizer is not None:
        summary = summarizer.summarize(messages)
        if summary:
            return summary
        logger.debug("Summarizer returned nothing; using keyword fallback")
    return fallback_summary(messages, config)


def attach_summaries(
    segments: List[ConversationSegment],
    records: pd.DataFrame,
    summarizer=None,
    config: Optional[AnalyzerConfig] = None,
) -> List[ConversationSegment]:
    """
    Return copies of the segments with text_summary filled in.

    Args:
        segments: Segments from ConversationSegmenter
        records: The enriched record table the segments came from
        summarizer: Object with summarize(messages) -> Optional[str], or None
        config: Analyzer configuration driving the keyword fallback
    """
    if not segments:
        return []

    config = config or get_default_config()
    bodies = records.groupby("conversation_id")["body"].apply(list)
    summarized = []
    for segment in segments:
        messages = bodies.get(segment.conversation_id, [])
        summary = summarize_messages(messages, summarizer, config)
        summarized.append(replace(segment, text_summary=summary))

    logger.info(f"Attached summaries to {len(summarized)} segments")
    return summarized
