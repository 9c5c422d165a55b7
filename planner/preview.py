"""Preview of parsed events before they are saved."""
from typing import Any, Dict, List

from planner.models import ParsedEvent

PREVIEW_LIMIT = 20


def format_event(event: ParsedEvent) -> str:
    """Render one event as a preview line, e.g. "Анатомия — 2024-01-02 09:00 – 10:30"."""
    return (
        f"{event.title} — {event.start.strftime('%Y-%m-%d %H:%M')} – "
        f"{event.end.strftime('%H:%M')}"
    )


def event_to_dict(event: ParsedEvent) -> Dict[str, str]:
    """Serialize a ParsedEvent with ISO 8601 timestamps."""
    return {
        'title': event.title,
        'subject': event.subject,
        'start': event.start.isoformat(),
        'end': event.end.isoformat()
    }


def build_preview(events: List[ParsedEvent], limit: int = PREVIEW_LIMIT) -> Dict[str, Any]:
    """
    Build a preview of the first ``limit`` events.

    Args:
        events: Parsed events in input order
        limit: Maximum number of events to include

    Returns:
        Dict with the total count, the shown events and the remaining count
    """
    limit = max(limit, 0)
    shown = events[:limit]
    return {
        'total': len(events),
        'events': [event_to_dict(event) for event in shown],
        'lines': [format_event(event) for event in shown],
        'remaining': len(events) - len(shown)
    }
