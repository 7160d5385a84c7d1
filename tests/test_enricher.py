"""
Tests for feature enrichment
"""

import pytest
import numpy as np
import pandas as pd
from datetime import datetime, timedelta
from chatbond.enricher import (
    RECORD_COLUMNS,
    EnrichmentState,
    FeatureEnricher,
    messages_to_dataframe,
)
from chatbond.parser import Message, WhatsAppParser


def make_base(rows):
    """rows: (timestamp, sender, body) tuples."""
    return pd.DataFrame(
        {
            "timestamp": pd.to_datetime([r[0] for r in rows]),
            "sender": [r[1] for r in rows],
            "body": [r[2] for r in rows],
        }
    )


@pytest.fixture
def scenario_records():
    text = (
        "[01/01/23, 09:00] Alice: good morning\n"
        "[01/01/23, 09:05] Bob: morning!\n"
        "[01/01/23, 11:10] Alice: lunch?\n"
    )
    messages = WhatsAppParser().parse_text(text)
    return FeatureEnricher().enrich(messages_to_dataframe(messages))


def test_scenario_response_times(scenario_records):
    rt = scenario_records["response_time_minutes"].tolist()

    assert np.isnan(rt[0])
    assert rt[1] == 5
    assert rt[2] == 125


def test_scenario_conversation_boundaries(scenario_records):
    assert scenario_records["is_conversation_start"].tolist() == [True, False, True]
    assert scenario_records["conversation_id"].tolist() == [1, 1, 2]


def test_record_schema(scenario_records):
    assert list(scenario_records.columns) == RECORD_COLUMNS


def test_time_features(scenario_records):
    # 1 Jan 2023 was a Sunday
    assert scenario_records["weekday"].tolist() == [7, 7, 7]
    assert scenario_records["hour"].tolist() == [9, 9, 11]
    assert scenario_records["date"].iloc[0] == datetime(2023, 1, 1).date()


def test_length_features():
    df = FeatureEnricher().enrich(make_base([(datetime(2023, 1, 2, 8), "A", "two  words")]))
    assert df["message_length"].iloc[0] == 10
    assert df["word_count"].iloc[0] == 2
    assert df["weekday"].iloc[0] == 1


def test_same_sender_has_no_response_time():
    base = make_base([
        (datetime(2023, 1, 1, 9, 0), "Alice", "a"),
        (datetime(2023, 1, 1, 9, 1), "Alice", "b"),
        (datetime(2023, 1, 1, 9, 3), "Bob", "c"),
        (datetime(2023, 1, 1, 9, 4), "Bob", "d"),
    ])
    df = FeatureEnricher().enrich(base)

    same = df["sender"] == df["sender"].shift()
    assert df.loc[same, "response_time_minutes"].isna().all()
    assert df["response_time_minutes"].iloc[2] == 2


def test_response_time_capped():
    base = make_base([
        (datetime(2023, 1, 1, 9, 0), "Alice", "a"),
        (datetime(2023, 1, 3, 9, 0), "Bob", "b"),
    ])
    df = FeatureEnricher().enrich(base)
    assert df["response_time_minutes"].iloc[1] == 1440


def test_unordered_input_is_sorted_not_clamped():
    base = make_base([
        (datetime(2023, 1, 1, 9, 10), "Bob", "second"),
        (datetime(2023, 1, 1, 9, 0), "Alice", "first"),
    ])
    df = FeatureEnricher().enrich(base)

    assert df["body"].tolist() == ["first", "second"]
    assert df["response_time_minutes"].iloc[1] == 10


def test_sort_is_stable_for_equal_timestamps():
    ts = datetime(2023, 1, 1, 9, 0)
    base = make_base([(ts, "Alice", "x"), (ts, "Bob", "y"), (ts, "Alice", "z")])
    df = FeatureEnricher().enrich(base)
    assert df["body"].tolist() == ["x", "y", "z"]


def test_boundary_invariant_on_generated_records():
    start = datetime(2023, 3, 1, 8, 0)
    gaps = [0, 5, 61, 60, 1, 300, 59, 2000, 15]
    rows, t = [], start
    for i, gap in enumerate(gaps):
        t = t + timedelta(minutes=gap)
        rows.append((t, "Alice" if i % 3 else "Bob", f"m{i}"))
    df = FeatureEnricher().enrich(make_base(rows))

    delta = df["timestamp"].diff().dt.total_seconds() / 60
    expected = delta.isna() | (delta > 60)
    assert df["is_conversation_start"].tolist() == expected.tolist()

    assert df["conversation_id"].iloc[0] == 1
    assert df["conversation_id"].tolist() == df["is_conversation_start"].astype(int).cumsum().tolist()


def test_empty_input_returned_unchanged():
    empty = make_base([])
    assert FeatureEnricher().enrich(empty) is empty


def test_score_columns_populated():
    df = FeatureEnricher().enrich(make_base([(datetime(2023, 1, 1), "A", "I love you, see you tomorrow")]))
    assert df["romantic_score"].iloc[0] == 1
    assert df["future_planning_score"].iloc[0] == 1
    assert df["intimacy_score"].iloc[0] == 0


def test_chunk_state_carries_across_chunks():
    rows = [
        (datetime(2023, 1, 1, 9, 0), "Alice", "a"),
        (datetime(2023, 1, 1, 9, 5), "Bob", "b"),
        (datetime(2023, 1, 1, 11, 0), "Alice", "c"),
        (datetime(2023, 1, 1, 11, 2), "Bob", "d"),
    ]
    enricher = FeatureEnricher()
    whole = enricher.enrich(make_base(rows))

    first, state = enricher.enrich_chunk(make_base(rows[:2]), EnrichmentState())
    second, state = enricher.enrich_chunk(make_base(rows[2:]), state)
    chunked = pd.concat([first, second], ignore_index=True)

    pd.testing.assert_frame_equal(whole, chunked)
    assert state.conversation_id == 2
    assert state.last_sender == "Bob"


def test_reconcile_fixes_independent_chunks():
    rows = [
        (datetime(2023, 1, 1, 9, 0), "Alice", "a"),
        (datetime(2023, 1, 1, 9, 5), "Bob", "b"),
        (datetime(2023, 1, 1, 11, 0), "Alice", "c"),
    ]
    enricher = FeatureEnricher()
    naive = pd.concat(
        [enricher.enrich(make_base(rows[2:])), enricher.enrich(make_base(rows[:2]))],
        ignore_index=True,
    )

    reconciled = enricher.reconcile(naive)

    pd.testing.assert_frame_equal(reconciled, enricher.enrich(make_base(rows)))


def test_messages_to_dataframe_drops_system():
    messages = [
        Message(datetime(2023, 1, 1, 9), "SYSTEM", "encrypted"),
        Message(datetime(2023, 1, 1, 9, 1), "Alice", "hi"),
    ]
    df = messages_to_dataframe(messages)
    assert df["sender"].tolist() == ["Alice"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
