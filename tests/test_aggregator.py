"""
Tests for aggregator
"""

import pytest
import pandas as pd
from datetime import datetime, timedelta
from chatbond.aggregator import Aggregator, day_name, primary_indicators, time_period
from chatbond.enricher import FeatureEnricher
from chatbond.scoring import ClassificationResult


@pytest.fixture
def sample_df():
    """Two days of chat starting Friday 6 Jan 2023."""
    rows = [
        (datetime(2023, 1, 6, 7, 0), "Alice", "good morning love"),
        (datetime(2023, 1, 6, 7, 4), "Bob", "morning"),
        (datetime(2023, 1, 6, 13, 0), "Bob", "lunch plan for the weekend?"),
        (datetime(2023, 1, 6, 13, 10), "Alice", "sure"),
        (datetime(2023, 1, 7, 20, 0), "Alice", "dinner?"),
        (datetime(2023, 1, 7, 20, 6), "Bob", "yes"),
        (datetime(2023, 1, 7, 23, 30), "Bob", "night"),
        (datetime(2023, 1, 7, 23, 31), "Bob", "sleep well"),
    ]
    base = pd.DataFrame(rows, columns=["timestamp", "sender", "body"])
    return FeatureEnricher().enrich(base)


@pytest.mark.parametrize("hour,period", [
    (6, "morning"), (11, "morning"), (12, "afternoon"), (17, "afternoon"),
    (18, "evening"), (22, "evening"), (23, "night"), (0, "night"), (5, "night"),
])
def test_time_period(hour, period):
    assert time_period(hour) == period


def test_day_name():
    assert day_name(1) == "Monday"
    assert day_name(7) == "Sunday"


def test_time_span(sample_df):
    span = Aggregator().compute_time_span(sample_df)

    assert span["first_message"] == pd.Timestamp(2023, 1, 6, 7, 0)
    assert span["days"] == round((40 * 60 + 31) / 1440, 1)


def test_messaging_frequency_short_span_counts_as_one_day(sample_df):
    one_day = sample_df.iloc[:4]
    freq = Aggregator().compute_messaging_frequency(one_day)

    assert freq["messages_per_day"] == 4
    assert freq["by_sender"] == {"Alice": 2, "Bob": 2}


def test_response_patterns(sample_df):
    patterns = Aggregator().compute_response_patterns(sample_df)

    # Bob +4, Alice +10, Bob +6
    assert patterns["overall_avg_minutes"] == pytest.approx(20 / 3)
    assert patterns["by_sender"]["Bob"] == pytest.approx(5)


def test_response_patterns_without_replies():
    base = pd.DataFrame(
        {"timestamp": [datetime(2023, 1, 1, 9), datetime(2023, 1, 1, 9, 5)], "sender": ["A", "A"], "body": ["x", "y"]}
    )
    patterns = Aggregator().compute_response_patterns(FeatureEnricher().enrich(base))
    assert patterns["overall_avg_minutes"] is None


def test_conversation_initiation(sample_df):
    initiation = Aggregator().compute_conversation_initiation(sample_df)

    assert initiation["total_conversations"] == 4
    assert initiation["initiations_by_sender"] == {"Alice": 2, "Bob": 2}
    assert initiation["initiation_percentage"] == {"Alice": 50.0, "Bob": 50.0}


def test_time_of_day(sample_df):
    patterns = Aggregator().compute_time_of_day(sample_df)

    assert patterns["count_by_period"] == {"afternoon": 2, "evening": 2, "morning": 2, "night": 2}
    assert sum(patterns["percentage_by_period"].values()) == pytest.approx(100)


def test_day_of_week(sample_df):
    patterns = Aggregator().compute_day_of_week(sample_df)

    assert patterns["count_by_day"] == {"Friday": 4, "Saturday": 4}
    assert patterns["weekday_vs_weekend"]["weekday"] == 4
    assert patterns["weekday_vs_weekend"]["weekend"] == 4
    assert patterns["weekday_vs_weekend"]["weekend_percentage"] == 50.0


def test_analyze_relationship(sample_df):
    analysis = Aggregator().analyze_relationship(sample_df)

    assert analysis["total_messages"] == 8
    assert analysis["romantic_indicators"]["total_indicators"] == 1
    assert analysis["future_planning"]["total_indicators"] == 2
    assert isinstance(analysis["relationship_classification"], ClassificationResult)


def test_relationship_summary(sample_df):
    summary = Aggregator().relationship_summary(sample_df)

    assert summary["senders"] == ["Alice", "Bob"]
    assert summary["message_counts"] == {"Alice": 3, "Bob": 5}
    assert summary["avg_message_length"]["Alice"] == round((17 + 4 + 7) / 3, 1)


def test_primary_indicators():
    scores = {"romantic": 80.0, "intimacy": 20.4, "future_planning": 95.5, "frequency": 10.0}
    assert primary_indicators(scores) == {"future_planning": 96, "romantic": 80}
    assert list(primary_indicators(scores, n=3)) == ["future_planning", "romantic", "intimacy"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
