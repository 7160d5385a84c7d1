"""
Conversation segmentation for ChatBond
Groups enriched records into bounded, ranked conversation segments
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional
import pandas as pd

from .config import AnalyzerConfig, SYSTEM_SENDER, get_default_config
from .text_features import extract_top_keywords

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationSegment:
    conversation_id: int
    start_time: datetime
    end_time: datetime
    duration_minutes: float
    message_count: int
    participants: List[str] = field(default_factory=list)
    dominant_themes: List[str] = field(default_factory=list)
    text_summary: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": round(self.duration_minutes, 1),
            "message_count": self.message_count,
            "participants": list(self.participants),
            "dominant_themes": list(self.dominant_themes),
            "text_summary": self.text_summary,
        }


class ConversationSegmenter:
    """Build one segment per conversation_id, keep the largest, order by time."""

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or get_default_config()

    def build_segment(self, conversation_id: int, group: pd.DataFrame) -> ConversationSegment:
        start = group["timestamp"].min().to_pydatetime()
        end = group["timestamp"].max().to_pydatetime()
        participants = sorted(s for s in group["sender"].unique() if s != SYSTEM_SENDER)

        return ConversationSegment(
            conversation_id=int(conversation_id),
            start_time=start,
            end_time=end,
            duration_minutes=abs((end - start).total_seconds()) / 60,
            message_count=int(len(group)),
            participants=participants,
            dominant_themes=extract_top_keywords(
                group["body"].tolist(),
                top_n=self.config.top_themes,
                stopwords=self.config.stopwords,
                min_length=self.config.min_theme_word_length,
            ),
        )

    def segment(self, df: pd.DataFrame) -> List[ConversationSegment]:
        """
        Segment an enriched record table.

        Segments are ranked by message_count (ties keep conversation order),
        the top max_segments kept, then re-sorted by start_time.
        """
        if len(df) == 0:
            return []

        segments = [
            self.build_segment(conv_id, group)
            for conv_id, group in df.groupby("conversation_id", sort=True)
        ]

        ranked = sorted(segments, key=lambda s: s.message_count, reverse=True)
        kept = ranked[: self.config.max_segments]
        if len(segments) > len(kept):
            logger.info(f"Keeping {len(kept)} of {len(segments)} conversations")

        return sorted(kept, key=lambda s: s.start_time)


def format_segment(segment: ConversationSegment) -> str:
    """Formats a conversation segment for display."""
    lines = [
        f"Conversation #{segment.conversation_id}",
        f"Time: {segment.start_time:%Y-%m-%d %H:%M:%S} - {segment.end_time:%Y-%m-%d %H:%M:%S}",
        f"Duration: {segment.duration_minutes:.1f} minutes",
        f"Messages: {segment.message_count}",
        f"Participants: {', '.join(segment.participants)}",
    ]
    if segment.dominant_themes:
        lines.append(f"Themes: {', '.join(segment.dominant_themes)}")
    if segment.text_summary:
        lines.append(f"Summary: {segment.text_summary}")
    return "\n".join(lines) + "\n"
