"""
Feature enrichment for ChatBond
Derives time, length, response latency, conversation and indicator columns
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
import numpy as np
import pandas as pd

from .config import AnalyzerConfig, SYSTEM_SENDER, get_default_config
from .indicators import IndicatorScorer
from .parser import Message

logger = logging.getLogger(__name__)

BASE_COLUMNS = ["timestamp", "sender", "body"]

RECORD_COLUMNS = BASE_COLUMNS + [
    "date",
    "hour",
    "weekday",
    "message_length",
    "word_count",
    "response_time_minutes",
    "is_conversation_start",
    "conversation_id",
    "romantic_score",
    "intimacy_score",
    "future_planning_score",
]

ORDER_DEPENDENT_COLUMNS = ["response_time_minutes", "is_conversation_start", "conversation_id"]


@dataclass(frozen=True)
class EnrichmentState:
    """
    Carried between consecutive chunks so that response times and
    conversation ids continue across chunk edges.
    """

    last_timestamp: Optional[pd.Timestamp] = None
    last_sender: Optional[str] = None
    conversation_id: int = 0


def messages_to_dataframe(messages: List[Message]) -> pd.DataFrame:
    """Convert parsed messages to a base record frame, dropping SYSTEM events."""
    kept = [m for m in messages if m.sender != SYSTEM_SENDER]
    df = pd.DataFrame(
        {
            "timestamp": pd.Series(pd.to_datetime([m.timestamp for m in kept]), dtype="datetime64[ns]"),
            "sender": pd.Series([m.sender for m in kept], dtype="object"),
            "body": pd.Series([m.body for m in kept], dtype="object"),
        }
    )
    return df


class FeatureEnricher:
    """Pure Records -> Records transformation."""

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        scorer: Optional[IndicatorScorer] = None,
    ):
        self.config = config or get_default_config()
        self.scorer = scorer or IndicatorScorer(self.config)

    def enrich(self, df: pd.DataFrame) -> pd.DataFrame:
        """Enrich a complete, self-contained record table."""
        enriched, _ = self.enrich_chunk(df, EnrichmentState())
        return enriched

    def enrich_chunk(
        self,
        df: pd.DataFrame,
        state: EnrichmentState,
    ) -> Tuple[pd.DataFrame, EnrichmentState]:
        """
        Enrich one chunk given the state left by the previous chunk.

        Returns the enriched chunk and the state to hand to the next one.
        An empty chunk is returned unchanged together with the same state.
        """
        if len(df) == 0:
            return df, state

        df = df.sort_values("timestamp", kind="mergesort").reset_index(drop=True)
        df = self.add_time_features(df)
        df = self.add_message_length(df)
        df = self.add_order_features(df, state)
        df = self.scorer.add_score_columns(df)

        last = df.iloc[-1]
        new_state = EnrichmentState(
            last_timestamp=last["timestamp"],
            last_sender=last["sender"],
            conversation_id=int(last["conversation_id"]),
        )
        return df[RECORD_COLUMNS], new_state

    def add_time_features(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.copy()
        ts = df["timestamp"]
        df["date"] = ts.dt.date
        df["hour"] = ts.dt.hour.astype("int64")
        df["weekday"] = (ts.dt.dayofweek + 1).astype("int64")  # Monday=1 .. Sunday=7
        return df

    def add_message_length(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.copy()
        bodies = df["body"].fillna("").astype(str)
        df["message_length"] = bodies.str.len().astype("int64")
        df["word_count"] = bodies.str.split().str.len().fillna(0).astype("int64")
        return df

    def add_order_features(self, df: pd.DataFrame, state: EnrichmentState) -> pd.DataFrame:
        """
        Response time, conversation start and conversation id in one pass.

        Expects df sorted by timestamp. Each record is compared only with its
        immediate predecessor (the carried state for the first record).
        """
        df = df.copy()
        gap_limit = self.config.conversation_gap_minutes
        cap = self.config.response_time_cap_minutes

        response_times = np.full(len(df), np.nan)
        starts = np.zeros(len(df), dtype=bool)
        conv_ids = np.zeros(len(df), dtype="int64")

        prev_ts = state.last_timestamp
        prev_sender = state.last_sender
        conv_id = state.conversation_id

        for i, (ts, sender) in enumerate(zip(df["timestamp"], df["sender"])):
            if prev_ts is None:
                starts[i] = True
            else:
                gap = (ts - prev_ts).total_seconds() / 60
                if sender != prev_sender:
                    response_times[i] = min(gap, cap)
                starts[i] = gap > gap_limit

            if starts[i]:
                conv_id += 1
            conv_ids[i] = conv_id
            prev_ts, prev_sender = ts, sender

        df["response_time_minutes"] = response_times
        df["is_conversation_start"] = starts
        df["conversation_id"] = conv_ids
        return df

    def reconcile(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Re-sort a concatenated table and recompute the order-dependent columns.

        Used after chunks were enriched independently or arrived out of order.
        """
        if len(df) == 0:
            return df
        df = df.sort_values("timestamp", kind="mergesort").reset_index(drop=True)
        df = self.add_order_features(df, EnrichmentState())
        return df[RECORD_COLUMNS]


def empty_records() -> pd.DataFrame:
    """Empty record table with the full schema."""
    return pd.DataFrame({col: pd.Series(dtype="object") for col in RECORD_COLUMNS})
