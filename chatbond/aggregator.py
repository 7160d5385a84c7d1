"""
Aggregator for ChatBond
Relationship-level metrics computed over the enriched record table
"""

import logging
from typing import Dict, Any, List, Optional
import pandas as pd

from . import config
from .config import AnalyzerConfig, IndicatorCategory, SYSTEM_SENDER, get_default_config
from .indicators import IndicatorScorer, round_half_up

logger = logging.getLogger(__name__)


def time_period(hour: int) -> str:
    """Map an hour (0-23) to morning/afternoon/evening/night."""
    for name, (start, end) in config.TIME_PERIODS.items():
        if start <= hour <= end:
            return name
    return "night"


def day_name(weekday: int) -> str:
    return config.DAY_NAMES.get(weekday, "Unknown")


def _percentages(counts: Dict[str, int], total: int) -> Dict[str, float]:
    if total == 0:
        return {key: 0.0 for key in counts}
    return {key: round(count / total * 100, 1) for key, count in counts.items()}


class Aggregator:
    """Aggregate enriched records into relationship metrics."""

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        scorer: Optional[IndicatorScorer] = None,
    ):
        self.config = config or get_default_config()
        self.scorer = scorer or IndicatorScorer(self.config)

    def senders(self, df: pd.DataFrame) -> List[str]:
        """Distinct senders in first-seen order, SYSTEM excluded."""
        return [s for s in df["sender"].drop_duplicates().tolist() if s != SYSTEM_SENDER]

    def compute_time_span(self, df: pd.DataFrame) -> Dict[str, Any]:
        if len(df) == 0:
            return {"first_message": None, "last_message": None, "days": 0.0, "months": 0.0}

        first = df["timestamp"].min()
        last = df["timestamp"].max()
        days = (last - first).total_seconds() / 86400

        return {
            "first_message": first,
            "last_message": last,
            "days": round(days, 1),
            "months": round(days / 30, 1),
        }

    def compute_messaging_frequency(self, df: pd.DataFrame) -> Dict[str, Any]:
        """
        Messages per day over the whole span.

        Spans shorter than one day are treated as one day so that a single
        burst of messages does not divide by zero.
        """
        if len(df) == 0:
            return {"messages_per_day": 0.0, "by_sender": {}}

        days = max(self.compute_time_span(df)["days"], 1.0)
        counts = df["sender"].value_counts(sort=False)

        return {
            "messages_per_day": round(len(df) / days, 2),
            "by_sender": {str(s): round(int(c) / days, 2) for s, c in counts.items()},
        }

    def compute_response_patterns(self, df: pd.DataFrame) -> Dict[str, Any]:
        if len(df) == 0 or "response_time_minutes" not in df.columns:
            return {"overall_avg_minutes": None, "by_sender": {}}

        responses = df[df["response_time_minutes"].notna()]
        if len(responses) == 0:
            return {"overall_avg_minutes": None, "by_sender": {}}

        by_sender = responses.groupby("sender")["response_time_minutes"].mean()
        return {
            "overall_avg_minutes": float(responses["response_time_minutes"].mean()),
            "by_sender": {str(s): float(v) for s, v in by_sender.items()},
        }

    def compute_conversation_initiation(self, df: pd.DataFrame) -> Dict[str, Any]:
        if len(df) == 0:
            return {"total_conversations": 0, "initiations_by_sender": {}, "initiation_percentage": {}}

        starts = df[df["is_conversation_start"].astype(bool)]
        initiations = {str(s): int(c) for s, c in starts["sender"].value_counts().sort_index().items()}
        total = int(len(starts))

        return {
            "total_conversations": total,
            "initiations_by_sender": initiations,
            "initiation_percentage": _percentages(initiations, total),
        }

    def compute_time_of_day(self, df: pd.DataFrame) -> Dict[str, Any]:
        periods = df["hour"].map(time_period) if len(df) else pd.Series(dtype="object")
        counts = {str(k): int(v) for k, v in periods.value_counts().sort_index().items()}
        return {
            "count_by_period": counts,
            "percentage_by_period": _percentages(counts, len(df)),
        }

    def compute_day_of_week(self, df: pd.DataFrame) -> Dict[str, Any]:
        total = len(df)
        weekdays = df["weekday"].astype(int) if total else pd.Series(dtype="int64")
        by_number = weekdays.value_counts()

        counts = {day_name(n): int(by_number.get(n, 0)) for n in range(1, 8) if by_number.get(n, 0)}
        weekday_count = int(sum(by_number.get(n, 0) for n in range(1, 6)))
        weekend_count = int(sum(by_number.get(n, 0) for n in range(6, 8)))

        return {
            "count_by_day": counts,
            "percentage_by_day": _percentages(counts, total),
            "weekday_vs_weekend": {
                "weekday": weekday_count,
                "weekend": weekend_count,
                "weekday_percentage": round(weekday_count / total * 100, 1) if total else 0.0,
                "weekend_percentage": round(weekend_count / total * 100, 1) if total else 0.0,
            },
        }

    def analyze_relationship(self, df: pd.DataFrame, classification=None) -> Dict[str, Any]:
        """
        Full relationship analysis bundle.

        Args:
            df: Enriched record table
            classification: Precomputed ClassificationResult (computed here if None)
        """
        if classification is None:
            from .scoring import RelationshipClassifier
            classification = RelationshipClassifier(self.config, self.scorer).classify(df)

        return {
            "total_messages": len(df),
            "time_span": self.compute_time_span(df),
            "messaging_frequency": self.compute_messaging_frequency(df),
            "response_patterns": self.compute_response_patterns(df),
            "conversation_initiation": self.compute_conversation_initiation(df),
            "romantic_indicators": self.scorer.summarize(df, IndicatorCategory.ROMANTIC),
            "intimacy_indicators": self.scorer.summarize(df, IndicatorCategory.INTIMACY),
            "future_planning": self.scorer.summarize(df, IndicatorCategory.FUTURE_PLANNING),
            "time_of_day_patterns": self.compute_time_of_day(df),
            "day_of_week_patterns": self.compute_day_of_week(df),
            "relationship_classification": classification,
        }

    def relationship_summary(self, df: pd.DataFrame, classification=None) -> Dict[str, Any]:
        """Quick overview: senders, volume, average length, initiations."""
        if classification is None:
            from .scoring import RelationshipClassifier
            classification = RelationshipClassifier(self.config, self.scorer).classify(df)

        senders = self.senders(df)
        grouped = df.groupby("sender")
        counts = grouped.size()
        avg_lengths = grouped["message_length"].mean()

        return {
            "senders": senders,
            "message_counts": {s: int(counts[s]) for s in senders},
            "avg_message_length": {s: round(float(avg_lengths[s]), 1) for s in senders},
            "romantic_indicator_count": self.scorer.summarize(df, IndicatorCategory.ROMANTIC),
            "conversation_initiations": self.compute_conversation_initiation(df),
            "classification": classification,
        }


def primary_indicators(component_scores: Dict[str, float], n: int = 2) -> Dict[str, int]:
    """The n strongest component scores, rounded."""
    ranked = sorted(component_scores.items(), key=lambda kv: kv[1], reverse=True)
    return {key: round_half_up(value) for key, value in ranked[:n]}
