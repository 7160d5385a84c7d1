"""
Tests for temporal summaries
"""

import json
import pytest
import pandas as pd
from datetime import date, datetime, timedelta
from chatbond.enricher import FeatureEnricher
from chatbond.temporal import Granularity, TemporalSummarizer


def records_on(days, start=datetime(2023, 1, 2, 9, 0), senders=("Alice", "Bob"), body="hello"):
    """One message per entry of days (offset in days from start)."""
    rows = [
        (start + timedelta(days=d, minutes=i), senders[i % len(senders)], body)
        for i, d in enumerate(days)
    ]
    base = pd.DataFrame(rows, columns=["timestamp", "sender", "body"])
    return FeatureEnricher().enrich(base)


@pytest.fixture
def summarizer():
    return TemporalSummarizer()


@pytest.mark.parametrize("days,granularity", [
    (0, Granularity.WEEKLY),
    (29, Granularity.WEEKLY),
    (30, Granularity.BIWEEKLY),
    (179, Granularity.BIWEEKLY),
    (180, Granularity.MONTHLY),
    (900, Granularity.MONTHLY),
])
def test_choose_granularity(summarizer, days, granularity):
    assert summarizer.choose_granularity(days) == granularity


def test_empty_summary(summarizer):
    empty = pd.DataFrame(columns=["timestamp", "sender", "body"])
    summary = summarizer.summarize(empty)

    assert summary.periods == []
    assert summary.granularity == Granularity.NONE
    assert summary.total_days == 0


def test_weekly_periods(summarizer):
    summary = summarizer.summarize(records_on([0, 0, 3, 8, 9, 20]))

    assert summary.granularity == Granularity.WEEKLY
    assert summary.total_days == 20
    assert [p.period_key for p in summary.periods] == ["Week 1", "Week 2", "Week 3"]
    assert [p.message_count for p in summary.periods] == [3, 2, 1]


def test_biweekly_periods(summarizer):
    summary = summarizer.summarize(records_on([0, 13, 14, 60]))

    assert summary.granularity == Granularity.BIWEEKLY
    assert [p.period_key for p in summary.periods] == ["Period 1", "Period 2", "Period 5"]


def test_monthly_periods(summarizer):
    summary = summarizer.summarize(records_on([0, 40, 200], start=datetime(2023, 1, 30, 9, 0)))

    assert summary.granularity == Granularity.MONTHLY
    assert [p.period_key for p in summary.periods] == ["2023-01", "2023-03", "2023-08"]


def test_period_statistics(summarizer):
    summary = summarizer.summarize(records_on([0, 0, 0, 2, 2, 2]))
    period = summary.periods[0]

    # 6 messages over a 2-day span
    assert period.messages_per_day == 3.0
    assert period.period_start == datetime(2023, 1, 2, 9, 0)
    assert period.sender_breakdown == {"Alice": 3, "Bob": 3}
    # the earliest of two equally busy days
    assert period.peak_activity_date == {"date": date(2023, 1, 2), "count": 3}


def test_single_day_rate_uses_one_day(summarizer):
    period = summarizer.summarize(records_on([0, 0, 0, 0])).periods[0]
    assert period.messages_per_day == 4.0


def test_avg_response_time(summarizer):
    period = summarizer.summarize(records_on([0, 0, 0])).periods[0]
    # replies arrive one minute apart
    assert period.avg_response_time == 1.0

    solo = summarizer.summarize(records_on([0, 0], senders=("Alice",))).periods[0]
    assert solo.avg_response_time is None


def test_sentiment_totals_and_themes(summarizer):
    summary = summarizer.summarize(records_on([0, 1], body="love the beach house plans"))
    period = summary.periods[0]

    assert period.sentiment_totals == {"romantic": 2, "intimacy": 0, "future_planning": 4}
    assert period.dominant_themes[:2] == ["love", "beach"]


def test_to_dict_is_json_ready(summarizer):
    data = summarizer.summarize(records_on([0, 3, 10])).to_dict()
    json.dumps(data)

    assert data["granularity"] == "weekly"
    assert data["periods"][0]["peak_activity_date"]["date"] == "2023-01-02"


def test_to_markdown(summarizer):
    markdown = summarizer.summarize(records_on([0, 3, 10])).to_markdown()

    assert markdown.startswith("# Conversation Timeline")
    assert "**Granularity:** Weekly" in markdown
    assert "## Week 1" in markdown
    assert "## Week 2" in markdown
    assert "- Alice:" in markdown


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
