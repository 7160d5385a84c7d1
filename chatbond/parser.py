"""
WhatsApp Chat Parser for ChatBond
Line grammar, timestamp recovery and multiline continuation assembly
"""

import re
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .config import SYSTEM_SENDER

logger = logging.getLogger(__name__)

# Unicode quirks
NBSP = "\u00A0"
NNBSP = "\u202F"
THIN_SPACE = "\u2009"
LRM = "\u200E"
RLM = "\u200F"
BOM = "\uFEFF"

# Timestamps that cannot be constructed fall back to this value
EPOCH_SENTINEL = datetime(1970, 1, 1)

# Record tables hold nanosecond timestamps, which only span these years
MIN_YEAR = 1678
MAX_YEAR = 2261

_STAMP = r"\[(?P<date>\d{2}/\d{2}/\d{2,4}), (?P<time>\d{1,2}:\d{2}(?::\d{2})?(?: [AaPp][Mm])?)\]"

# [DD/MM/YY, H:MM(:SS)( AM|PM)] Sender: Body
MESSAGE_RE = re.compile(rf"^{_STAMP} (?P<sender>[^:]+): (?P<body>.+)$")

# [DD/MM/YY, H:MM(:SS)( AM|PM)] Body
SYSTEM_RE = re.compile(rf"^{_STAMP} (?P<body>.+)$")


@dataclass
class Message:
    """One parsed chat message (participant or SYSTEM)."""

    timestamp: datetime
    sender: str
    body: str
    line_number: int = 0

    @property
    def is_system(self) -> bool:
        return self.sender == SYSTEM_SENDER


@dataclass(frozen=True)
class Continuation:
    """A line that belongs to the body of the previous message."""

    text: str
    line_number: int = 0


@dataclass(frozen=True)
class ParseDiagnostic:
    """Recorded whenever a timestamp had to be replaced by the sentinel."""

    line_number: int
    raw: str
    reason: str

    def to_dict(self):
        return {"line_number": self.line_number, "raw": self.raw, "reason": self.reason}


ParsedLine = Union[Message, Continuation]


def normalize_line(s: str) -> str:
    """Normalize WhatsApp quirks: unify Unicode spaces, drop invisible marks, trim."""
    if not s:
        return ""
    s = s.replace(BOM, "").replace(LRM, "").replace(RLM, "")
    s = s.replace(NNBSP, " ").replace(NBSP, " ").replace(THIN_SPACE, " ")
    return s.strip()


def _to_24h(hour: int, period: Optional[str]) -> int:
    if period == "AM":
        return 0 if hour == 12 else hour
    if period == "PM":
        return 12 if hour == 12 else hour + 12
    return hour


def build_timestamp(date_str: str, time_str: str) -> datetime:
    """
    Build a datetime from the bracketed date and time tokens.

    Raises ValueError when the tokens do not describe a real instant
    (e.g. 31/02, 25:00, 13 PM).
    """
    day_s, month_s, year_s = date_str.split("/")
    day, month = int(day_s), int(month_s)
    year = int(year_s) if len(year_s) == 4 else 2000 + int(year_s)
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValueError(f"year {year} out of range")

    period = None
    parts = time_str.split(" ")
    if len(parts) == 2:
        time_str, period = parts[0], parts[1].upper()

    fields = [int(p) for p in time_str.split(":")]
    hour, minute = fields[0], fields[1]
    second = fields[2] if len(fields) == 3 else 0

    return datetime(year, month, day, _to_24h(hour, period), minute, second)


class LineParser:
    """Turns a single normalized line into a Message or a Continuation."""

    def __init__(self):
        self.diagnostics: List[ParseDiagnostic] = []

    def parse_line(self, line: str, line_number: int = 0) -> ParsedLine:
        m = MESSAGE_RE.match(line)
        if m:
            sender = m.group("sender").strip()
        else:
            m = SYSTEM_RE.match(line)
            if not m:
                return Continuation(line, line_number)
            sender = SYSTEM_SENDER

        return Message(
            timestamp=self._timestamp(m.group("date"), m.group("time"), line, line_number),
            sender=sender,
            body=m.group("body").strip(),
            line_number=line_number,
        )

    def _timestamp(self, date_str: str, time_str: str, raw: str, line_number: int) -> datetime:
        try:
            return build_timestamp(date_str, time_str)
        except ValueError as e:
            reason = f"Unrecognized timestamp '{date_str}, {time_str}': {e}"
            logger.warning(f"Line {line_number}: {reason}; using epoch sentinel")
            self.diagnostics.append(ParseDiagnostic(line_number, raw[:200], reason))
            return EPOCH_SENTINEL


class ContinuationAssembler:
    """
    Folds continuation lines into the most recently opened message.

    Messages are only emitted once the next message starts (or on flush),
    so a message body is complete when it leaves the assembler.
    """

    def __init__(self):
        self.current: Optional[Message] = None
        self.orphans = 0

    def feed(self, parsed: ParsedLine) -> Optional[Message]:
        """Consume one parsed line; return a finished message if one closed."""
        if isinstance(parsed, Message):
            finished, self.current = self.current, parsed
            return finished

        if self.current is not None:
            self.current.body += "\n" + parsed.text
        else:
            self.orphans += 1
            logger.debug(f"Orphaned line {parsed.line_number}: {parsed.text[:80]}")
        return None

    def flush(self) -> Optional[Message]:
        finished, self.current = self.current, None
        return finished


def parse_lines(
    lines: Iterable[str],
    line_parser: Optional[LineParser] = None,
) -> Iterator[Message]:
    """
    Lazily parse raw lines into complete messages (SYSTEM included).

    Holds at most one open message in memory, so it is safe to drive from a
    file handle of any size.
    """
    line_parser = line_parser or LineParser()
    assembler = ContinuationAssembler()

    for i, raw in enumerate(lines, start=1):
        line = normalize_line(raw)
        if not line:
            continue
        finished = assembler.feed(line_parser.parse_line(line, i))
        if finished is not None:
            yield finished

    last = assembler.flush()
    if last is not None:
        yield last


class WhatsAppParser:
    """Parse WhatsApp chat exports into Message lists."""

    def __init__(self):
        self.diagnostics: List[ParseDiagnostic] = []

    def parse_file(self, file_path: str) -> List[Message]:
        """Parse WhatsApp export file from disk (OSError propagates)."""
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            return self._parse(f)

    def parse_text(self, text: str) -> List[Message]:
        """Parse WhatsApp export text already loaded in memory."""
        return self._parse(text.splitlines())

    def _parse(self, lines: Iterable[str]) -> List[Message]:
        line_parser = LineParser()
        messages = list(parse_lines(lines, line_parser))
        self.diagnostics = line_parser.diagnostics

        senders = {m.sender for m in messages if not m.is_system}
        logger.info(f"Parsed {len(messages)} messages from {len(senders)} senders")
        if self.diagnostics:
            logger.warning(f"{len(self.diagnostics)} timestamps replaced by epoch sentinel")
        return messages


def validate_format(file_path: str, min_hits: int = 3) -> Tuple[bool, str]:
    """
    Validate WhatsApp export format.
    Returns (is_valid, reason).
    """
    try:
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            hits = 0
            for raw in f:
                if MESSAGE_RE.match(normalize_line(raw)):
                    hits += 1
                    if hits >= min_hits:
                        return True, "Format appears valid"
    except OSError as e:
        return False, f"Could not read file: {e}"

    return False, "Not enough lines match expected WhatsApp format"
