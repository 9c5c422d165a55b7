"""Data models for schedule extraction and import."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class WallClock:
    """Time of day on a 24-hour clock."""
    hour: int
    minute: int

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class TimeRange:
    """Start and end wall-clock times recognized on one line.

    ``end`` is allowed to precede ``start``.
    """
    start: WallClock
    end: WallClock
    matched_text: str = ''


@dataclass(frozen=True)
class ParsedEvent:
    """Candidate calendar event produced from one schedule line."""
    title: str
    start: datetime
    end: datetime
    subject: str


@dataclass
class StoredEvent:
    """Event record as kept by the planner store."""
    event_id: str
    title: str
    start: datetime
    end: datetime
    subject: Optional[str]
    task_ids: List[str] = field(default_factory=list)
    created_at: int = 0


@dataclass
class SaveResult:
    """Result of a save operation."""
    saved: int
    event_ids: List[str]
    errors: list[str]
