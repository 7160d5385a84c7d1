"""
Keyword indicator scoring for ChatBond
Counts romantic, intimacy and future-planning phrases per message
"""

import re
import logging
import math
from typing import Dict, Any, List, Optional
import pandas as pd

from .config import AnalyzerConfig, IndicatorCategory, get_default_config

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def _compile(keywords) -> Optional[re.Pattern]:
    # Longest phrases first so "te amo" wins over "amo" at the same position
    phrases = sorted({k.lower() for k in keywords if k}, key=len, reverse=True)
    if not phrases:
        return None
    return re.compile("|".join(re.escape(p) for p in phrases), re.IGNORECASE)


class IndicatorScorer:
    """Score message bodies against the configured keyword categories."""

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or get_default_config()
        self.patterns: Dict[IndicatorCategory, Optional[re.Pattern]] = {
            category: _compile(self.config.keywords_for(category))
            for category in IndicatorCategory
        }

    def count(self, body: str, category: IndicatorCategory) -> int:
        """Number of non-overlapping keyword matches of one category in body."""
        pattern = self.patterns[IndicatorCategory(category)]
        if pattern is None or not isinstance(body, str) or not body:
            return 0
        return len(pattern.findall(body.lower()))

    def score_message(self, body: str) -> Dict[IndicatorCategory, int]:
        return {category: self.count(body, category) for category in IndicatorCategory}

    def add_score_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Populate romantic_score, intimacy_score and future_planning_score."""
        df = df.copy()
        for category in IndicatorCategory:
            df[category.column] = (
                df["body"].map(lambda body, c=category: self.count(body, c)).astype("int64")
            )
        return df

    def _counts(self, df: pd.DataFrame, category: IndicatorCategory) -> pd.Series:
        category = IndicatorCategory(category)
        if category.column in df.columns:
            return df[category.column].astype("int64")
        return df["body"].map(lambda body: self.count(body, category)).astype("int64")

    def summarize(self, df: pd.DataFrame, category: IndicatorCategory) -> Dict[str, Any]:
        """
        Aggregate indicator statistics for one category.

        Returns:
            - total_indicators: sum of per-message matches
            - by_sender: matches summed per sender
            - percentage_of_messages: share of messages with a match (0-100, int)
        """
        if len(df) == 0:
            return {"total_indicators": 0, "by_sender": {}, "percentage_of_messages": 0}

        counts = self._counts(df, category)
        by_sender = counts.groupby(df["sender"]).sum()
        with_match = int((counts > 0).sum())

        return {
            "total_indicators": int(counts.sum()),
            "by_sender": {str(s): int(v) for s, v in by_sender.items()},
            "percentage_of_messages": round_half_up(with_match / len(df) * 100),
        }

    def summarize_all(self, df: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
        return {category.value: self.summarize(df, category) for category in IndicatorCategory}

    def top_excerpts(
        self,
        df: pd.DataFrame,
        category: IndicatorCategory,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """Highest-scoring messages for a category, ties kept in chronological order."""
        if len(df) == 0:
            return []

        scored = df.assign(excerpt_score=self._counts(df, category).values)
        scored = scored[scored["excerpt_score"] > 0]
        top = scored.sort_values("excerpt_score", ascending=False, kind="mergesort").head(limit)

        excerpts = [
            {
                "timestamp": row.timestamp,
                "sender": row.sender,
                "body": row.body,
                "score": int(row.excerpt_score),
            }
            for row in top.itertuples(index=False)
        ]
        logger.debug(f"Extracted {len(excerpts)} excerpts for {IndicatorCategory(category).value}")
        return excerpts
