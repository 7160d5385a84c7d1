"""
Tests for WhatsApp parser
"""

import pytest
from datetime import datetime
from chatbond.parser import (
    EPOCH_SENTINEL,
    Continuation,
    ContinuationAssembler,
    LineParser,
    Message,
    WhatsAppParser,
    build_timestamp,
    normalize_line,
    parse_lines,
    validate_format,
)


def test_normalize_unicode_spaces():
    """Narrow, non-breaking and thin spaces collapse to ASCII space."""
    assert normalize_line("9:00\u202fPM") == "9:00 PM"
    assert normalize_line("test\u00a0space") == "test space"
    assert normalize_line("a\u2009b") == "a b"
    assert normalize_line("  padded  ") == "padded"


def test_normalize_strips_invisible_marks():
    assert normalize_line("\ufeff\u200e[01/01/23, 09:00] Alice: hi") == "[01/01/23, 09:00] Alice: hi"


def test_parse_participant_message():
    parsed = LineParser().parse_line("[01/01/23, 09:00] Alice: good morning")

    assert isinstance(parsed, Message)
    assert parsed.sender == "Alice"
    assert parsed.body == "good morning"
    assert parsed.timestamp == datetime(2023, 1, 1, 9, 0)
    assert not parsed.is_system


def test_body_may_contain_colons():
    parsed = LineParser().parse_line("[01/01/23, 09:00] Alice: note: buy milk at 5:30")
    assert parsed.sender == "Alice"
    assert parsed.body == "note: buy milk at 5:30"


def test_parse_system_message():
    parsed = LineParser().parse_line("[01/01/23, 09:00] Messages and calls are end-to-end encrypted.")

    assert isinstance(parsed, Message)
    assert parsed.is_system
    assert parsed.sender == "SYSTEM"


def test_parse_continuation():
    parsed = LineParser().parse_line("Just finished a project.", 7)
    assert parsed == Continuation("Just finished a project.", 7)


@pytest.mark.parametrize("time_str,hour", [
    ("12:30 AM", 0),
    ("1:05 AM", 1),
    ("11:59 AM", 11),
    ("12:15 PM", 12),
    ("1:05 PM", 13),
    ("11:00 pm", 23),
])
def test_twelve_hour_conversion(time_str, hour):
    assert build_timestamp("01/01/23", time_str).hour == hour


def test_four_digit_year_and_seconds():
    ts = build_timestamp("15/06/2022", "14:03:27")
    assert ts == datetime(2022, 6, 15, 14, 3, 27)


def test_two_digit_year_is_2000s():
    assert build_timestamp("01/01/99", "10:00").year == 2099


def test_build_timestamp_rejects_invalid_dates():
    with pytest.raises(ValueError):
        build_timestamp("31/02/23", "10:00")
    with pytest.raises(ValueError):
        build_timestamp("01/01/23", "25:00")


def test_invalid_timestamp_uses_sentinel_and_records_diagnostic():
    line_parser = LineParser()
    parsed = line_parser.parse_line("[31/02/23, 10:00] Bob: still emitted", 3)

    assert parsed.timestamp == EPOCH_SENTINEL
    assert parsed.body == "still emitted"
    assert len(line_parser.diagnostics) == 1
    assert line_parser.diagnostics[0].line_number == 3
    assert "31/02/23" in line_parser.diagnostics[0].reason


def test_continuation_scenario():
    text = "[02/01/23, 10:00] Bob: I'm doing great!\nJust finished a project."

    messages = WhatsAppParser().parse_text(text)

    assert len(messages) == 1
    assert messages[0].body == "I'm doing great!\nJust finished a project."


def test_continuation_attaches_to_system_message():
    text = "[02/01/23, 10:00] Alice created group \"Trip\"\nsecond line"
    messages = WhatsAppParser().parse_text(text)

    assert len(messages) == 1
    assert messages[0].is_system
    assert messages[0].body.endswith("\nsecond line")


def test_orphan_continuation_dropped():
    assembler = ContinuationAssembler()
    assert assembler.feed(Continuation("nobody owns me", 1)) is None
    assert assembler.orphans == 1
    assert assembler.flush() is None


def test_parse_lines_preserves_order_and_skips_blank_lines():
    lines = [
        "[01/01/23, 09:00] Alice: one",
        "",
        "   ",
        "[01/01/23, 09:01] Bob: two",
        "more of two",
        "[01/01/23, 09:02] Alice: three",
    ]
    messages = list(parse_lines(lines))

    assert [m.body for m in messages] == ["one", "two\nmore of two", "three"]
    assert [m.line_number for m in messages] == [1, 4, 6]


def test_parse_file(tmp_path):
    path = tmp_path / "chat.txt"
    path.write_text(
        "[01/01/23, 09:00] Alice: good morning\n"
        "[01/01/23, 09:05] Bob: morning!\n",
        encoding="utf-8",
    )

    parser = WhatsAppParser()
    messages = parser.parse_file(str(path))

    assert len(messages) == 2
    assert parser.diagnostics == []


def test_parse_file_missing_raises(tmp_path):
    with pytest.raises(OSError):
        WhatsAppParser().parse_file(str(tmp_path / "missing.txt"))


def test_validate_format(tmp_path):
    good = tmp_path / "good.txt"
    good.write_text(
        "[01/01/23, 09:00] Alice: a\n[01/01/23, 09:01] Bob: b\n[01/01/23, 09:02] Alice: c\n",
        encoding="utf-8",
    )
    bad = tmp_path / "bad.txt"
    bad.write_text("just some notes\nnothing to see\n", encoding="utf-8")

    assert validate_format(str(good))[0] is True
    assert validate_format(str(bad))[0] is False
    assert validate_format(str(tmp_path / "missing.txt"))[0] is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
