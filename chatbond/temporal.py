"""
Temporal summarization for ChatBond
Adaptive weekly/biweekly/monthly buckets with per-period statistics
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Any, List, Optional
import pandas as pd

from .config import AnalyzerConfig, IndicatorCategory, get_default_config
from .text_features import extract_top_keywords

logger = logging.getLogger(__name__)


class Granularity(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    NONE = "none"

    @property
    def label(self) -> str:
        return {"weekly": "Weekly", "biweekly": "Biweekly", "monthly": "Monthly"}.get(self.value, "None")


@dataclass
class PeriodSummary:
    period_key: str
    period_start: datetime
    period_end: datetime
    message_count: int
    messages_per_day: float
    avg_response_time: Optional[float]
    sentiment_totals: Dict[str, int] = field(default_factory=dict)
    dominant_themes: List[str] = field(default_factory=list)
    peak_activity_date: Optional[Dict[str, Any]] = None
    sender_breakdown: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        peak = None
        if self.peak_activity_date:
            peak = {
                "date": self.peak_activity_date["date"].isoformat(),
                "count": self.peak_activity_date["count"],
            }
        return {
            "period_key": self.period_key,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "message_count": self.message_count,
            "messages_per_day": self.messages_per_day,
            "avg_response_time": self.avg_response_time,
            "sentiment_totals": dict(self.sentiment_totals),
            "dominant_themes": list(self.dominant_themes),
            "peak_activity_date": peak,
            "sender_breakdown": dict(self.sender_breakdown),
        }


@dataclass
class TemporalSummary:
    periods: List[PeriodSummary] = field(default_factory=list)
    granularity: Granularity = Granularity.NONE
    total_days: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "periods": [p.to_dict() for p in self.periods],
            "granularity": self.granularity.value,
            "total_days": self.total_days,
        }

    def to_markdown(self) -> str:
        """Render the summary as a human-readable markdown report."""
        header = [
            "# Conversation Timeline",
            "",
            f"**Total Duration:** {self.total_days} days",
            f"**Granularity:** {self.granularity.label}",
            f"**Total Periods:** {len(self.periods)}",
            "",
            "---",
            "",
        ]
        body = "\n\n---\n\n".join(_period_markdown(p) for p in self.periods)
        return "\n".join(header) + body + "\n"


def _period_markdown(period: PeriodSummary) -> str:
    sentiment = ", ".join(f"{k}: {v}" for k, v in period.sentiment_totals.items())
    themes = ", ".join(period.dominant_themes) if period.dominant_themes else "None identified"

    if period.peak_activity_date:
        peak = f"{period.peak_activity_date['date']} ({period.peak_activity_date['count']} messages)"
    else:
        peak = "N/A"

    if period.avg_response_time is not None:
        response = f"{period.avg_response_time} minutes"
    else:
        response = "N/A"

    senders = "\n".join(f"- {s}: {c} messages" for s, c in period.sender_breakdown.items())

    return "\n".join([
        f"## {period.period_key}",
        "",
        f"**Period:** {period.period_start:%Y-%m-%d} to {period.period_end:%Y-%m-%d}",
        "",
        "### Metrics",
        f"- **Messages:** {period.message_count} ({period.messages_per_day} per day)",
        f"- **Average Response Time:** {response}",
        f"- **Peak Activity:** {peak}",
        "",
        "### Indicators",
        sentiment,
        "",
        "### Dominant Themes",
        themes,
        "",
        "### Messages by Sender",
        senders,
    ])


class TemporalSummarizer:
    """Bucket a record table into adaptive time periods and summarize each."""

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or get_default_config()

    def choose_granularity(self, total_days: int) -> Granularity:
        """
        - < 30 days: weekly
        - < 180 days: biweekly
        - otherwise: monthly
        """
        if total_days < self.config.weekly_max_days:
            return Granularity.WEEKLY
        if total_days < self.config.biweekly_max_days:
            return Granularity.BIWEEKLY
        return Granularity.MONTHLY

    @staticmethod
    def period_key(day: date, start: date, granularity: Granularity) -> str:
        offset = max((day - start).days, 0)
        if granularity == Granularity.WEEKLY:
            return f"Week {offset // 7 + 1}"
        if granularity == Granularity.BIWEEKLY:
            return f"Period {offset // 14 + 1}"
        return f"{day.year:04d}-{day.month:02d}"

    @staticmethod
    def period_index(day: date, start: date, granularity: Granularity) -> int:
        offset = max((day - start).days, 0)
        if granularity == Granularity.WEEKLY:
            return offset // 7
        if granularity == Granularity.BIWEEKLY:
            return offset // 14
        return day.year * 12 + day.month

    def summarize(self, df: pd.DataFrame) -> TemporalSummary:
        if len(df) == 0:
            return TemporalSummary()

        days = df["timestamp"].dt.date
        start, end = days.min(), days.max()
        total_days = (end - start).days
        granularity = self.choose_granularity(total_days)

        keys = days.map(lambda d: self.period_key(d, start, granularity))
        indices = days.map(lambda d: self.period_index(d, start, granularity))

        groups = []
        for key, group in df.groupby(keys, sort=False):
            groups.append((int(indices[group.index].iloc[0]), key, group))
        groups.sort(key=lambda g: g[0])

        periods = [self.summarize_period(key, group) for _, key, group in groups]
        periods.sort(key=lambda p: p.period_start)

        logger.info(f"Temporal summary: {len(periods)} {granularity.value} periods over {total_days} days")
        return TemporalSummary(periods=periods, granularity=granularity, total_days=int(total_days))

    def summarize_period(self, key: str, group: pd.DataFrame) -> PeriodSummary:
        period_start = group["timestamp"].min().to_pydatetime()
        period_end = group["timestamp"].max().to_pydatetime()
        count = int(len(group))
        span_days = max((period_end.date() - period_start.date()).days, 1)

        responses = group["response_time_minutes"].dropna()
        avg_response = round(float(responses.mean()), 1) if len(responses) else None

        return PeriodSummary(
            period_key=key,
            period_start=period_start,
            period_end=period_end,
            message_count=count,
            messages_per_day=round(count / span_days, 1),
            avg_response_time=avg_response,
            sentiment_totals={
                category.value: int(group[category.column].sum()) for category in IndicatorCategory
            },
            dominant_themes=extract_top_keywords(
                group["body"].tolist(),
                top_n=self.config.top_themes,
                stopwords=self.config.stopwords,
                min_length=self.config.min_theme_word_length,
            ),
            peak_activity_date=self.peak_activity(group),
            sender_breakdown={
                str(s): int(c) for s, c in group.groupby("sender").size().sort_index().items()
            },
        )

    @staticmethod
    def peak_activity(group: pd.DataFrame) -> Optional[Dict[str, Any]]:
        """The busiest date in the group; the earliest one wins ties."""
        if len(group) == 0:
            return None
        per_day = group["timestamp"].dt.date.value_counts().sort_index()
        peak = per_day.idxmax()
        return {"date": peak, "count": int(per_day[peak])}
