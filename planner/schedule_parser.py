"""Heuristic extraction of calendar events from plain schedule text."""
import logging
import re
from datetime import date, datetime, time, timedelta
from types import MappingProxyType
from typing import Callable, List, Optional, Tuple, Union

from planner.models import ParsedEvent, TimeRange, WallClock

logger = logging.getLogger(__name__)


# Weekday abbreviations in match priority order, Sunday = 0 ... Saturday = 6
WEEKDAY_TOKENS = MappingProxyType({
    'пн': 1,
    'вт': 2,
    'ср': 3,
    'чт': 4,
    'пт': 5,
    'сб': 6,
    'вс': 0,
    'mon': 1,
    'tue': 2,
    'wed': 3,
    'thu': 4,
    'fri': 5,
    'sat': 6,
    'sun': 0,
})

# A token has to start a word; "Вторник" and "Monday" still resolve
_NOT_AFTER_LETTER = r'(?<![^\W\d_])'
_NOT_BEFORE_LETTER = r'(?![^\W\d_])'

_WEEKDAY_PATTERNS = tuple(
    (token, weekday, re.compile(_NOT_AFTER_LETTER + re.escape(token), re.IGNORECASE))
    for token, weekday in WEEKDAY_TOKENS.items()
)

_LEADING_WEEKDAY_RE = re.compile(
    r'^\s*(?:' + '|'.join(re.escape(token) for token in WEEKDAY_TOKENS) + r')'
    + _NOT_BEFORE_LETTER + r'[\s.,:;]*',
    re.IGNORECASE
)

TIME_RANGE_RE = re.compile(
    r'([0-9]{1,2})\s*[:.]\s*([0-9]{2})'
    r'\s*[-–—]\s*'
    r'([0-9]{1,2})\s*[:.]\s*([0-9]{2})'
)

DATE_RE = re.compile(r'[0-9]{1,2}[./][0-9]{1,2}(?:[./][0-9]{2,4})?')

DEFAULT_TITLE = 'Занятие'

MAX_HOUR = 23
MAX_MINUTE = 59


def split_lines(text: str) -> List[str]:
    """Split raw text into trimmed, non-empty lines in their original order."""
    if not text:
        return []
    return [line.strip() for line in text.split('\n') if line.strip()]


def find_weekday(line: str) -> Optional[Tuple[str, int]]:
    """
    Find the first weekday token present in a line.

    Tokens are tried in the fixed priority order of WEEKDAY_TOKENS, so the
    winner is the highest-priority token found, not the leftmost one.

    Args:
        line: Line of schedule text

    Returns:
        Tuple of (token, weekday index) or None if no token is present
    """
    for token, weekday, pattern in _WEEKDAY_PATTERNS:
        if pattern.search(line):
            return token, weekday
    return None


def resolve_day_offset(line: str, anchor_weekday: int) -> int:
    """
    Resolve the number of days from the anchor to the weekday named in a line.

    Args:
        line: Line of schedule text
        anchor_weekday: Weekday of the anchor date (Sunday = 0)

    Returns:
        Day offset in [0, 6]; 0 when the line names no weekday
    """
    match = find_weekday(line)
    if match is None:
        return 0
    _, target = match
    return (target + 7 - anchor_weekday) % 7


def recognize_time_range(line: str) -> Optional[TimeRange]:
    """
    Recognize an "HH:MM-HH:MM" time range in a line.

    Only the first range-shaped substring is considered. A range with an
    out-of-bounds hour or minute rejects the whole line.

    Args:
        line: Line of schedule text

    Returns:
        TimeRange or None if the line holds no valid range
    """
    match = TIME_RANGE_RE.search(line)
    if not match:
        return None

    start_hour, start_minute, end_hour, end_minute = (
        int(group) for group in match.groups()
    )
    if (start_hour > MAX_HOUR or start_minute > MAX_MINUTE or
            end_hour > MAX_HOUR or end_minute > MAX_MINUTE):
        logger.debug(f"Rejected out-of-range time '{match.group(0)}'")
        return None

    return TimeRange(
        start=WallClock(start_hour, start_minute),
        end=WallClock(end_hour, end_minute),
        matched_text=match.group(0)
    )


def is_schedule_marker(line: str) -> bool:
    """Return True if a line holds a valid time range or looks like a date."""
    return recognize_time_range(line) is not None or bool(DATE_RE.search(line))


def extract_title(
    line: str,
    matched_text: str,
    next_line: Optional[str] = None,
    looks_like_marker: Callable[[str], bool] = is_schedule_marker
) -> str:
    """
    Derive a human-readable title for a schedule line.

    The matched time range and a leading weekday token are removed from the
    line. When nothing is left, the next line is borrowed unless it is itself
    a schedule marker; failing that the default title is used.

    Args:
        line: Line of schedule text
        matched_text: Time-range substring recognized in the line
        next_line: Following line, if any
        looks_like_marker: Classifier for time-range or date lines

    Returns:
        Non-empty title string
    """
    title = line.replace(matched_text, '', 1) if matched_text else line
    title = _LEADING_WEEKDAY_RE.sub('', title, count=1).strip()
    if title:
        return title

    if next_line is not None and next_line.strip() and not looks_like_marker(next_line):
        return next_line.strip()

    return DEFAULT_TITLE


def synthesize_event(
    anchor: Union[datetime, date],
    offset: int,
    time_range: TimeRange,
    title: str
) -> ParsedEvent:
    """
    Build a ParsedEvent on the day ``offset`` days after the anchor.

    Inverted ranges are kept as they are, so ``end`` may precede ``start``.
    """
    anchor = _as_datetime(anchor)
    day = anchor + timedelta(days=offset)
    start = day.replace(
        hour=time_range.start.hour, minute=time_range.start.minute,
        second=0, microsecond=0
    )
    end = day.replace(
        hour=time_range.end.hour, minute=time_range.end.minute,
        second=0, microsecond=0
    )
    if end < start:
        logger.debug(f"Event '{title}' ends before it starts: {time_range.matched_text}")
    return ParsedEvent(title=title, start=start, end=end, subject=title)


def anchor_weekday(anchor: Union[datetime, date]) -> int:
    """Weekday of the anchor with Sunday = 0 ... Saturday = 6."""
    return anchor.isoweekday() % 7


def parse_schedule(text: str, anchor: Union[datetime, date]) -> List[ParsedEvent]:
    """
    Extract candidate calendar events from schedule text.

    Every line holding a valid time range yields one event; all other
    lines are dropped. Events keep the order of their lines.

    Args:
        text: Text extracted from a schedule document
        anchor: Reference date that weekday offsets are counted from

    Returns:
        List of ParsedEvent objects, empty if nothing was recognized
    """
    lines = split_lines(text)
    weekday = anchor_weekday(anchor)
    events = []

    for index, line in enumerate(lines):
        time_range = recognize_time_range(line)
        if time_range is None:
            continue

        offset = resolve_day_offset(line, weekday)
        next_line = lines[index + 1] if index + 1 < len(lines) else None
        title = extract_title(line, time_range.matched_text, next_line)
        events.append(synthesize_event(anchor, offset, time_range, title))

    logger.info(f"Recognized {len(events)} events out of {len(lines)} lines")
    return events


def parse_schedule_now(text: str) -> List[ParsedEvent]:
    """Parse schedule text anchored at the current local time."""
    return parse_schedule(text, datetime.now())


def _as_datetime(anchor: Union[datetime, date]) -> datetime:
    if isinstance(anchor, datetime):
        return anchor
    return datetime.combine(anchor, time())
